import base64
import binascii
import io
import logging
from datetime import datetime
from typing import Dict, List, Optional

from django.utils import timezone
from PIL import Image
from PyPDF2 import PdfReader, PdfWriter
from PyPDF2.errors import PdfReadError
from reportlab.lib.colors import Color
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from apps.domain.exceptions import PdfRenderError
from apps.domain.interfaces.agreement_renderer import AgreementRenderer, RenderedPdf, SignerInfo

logger = logging.getLogger('apps')

PAGE_SIZE = (595, 842)
CERTIFICATE_PAGE_SIZE = (595, 520)
MARGIN = 50
CERTIFICATE_REQUIRED_HEIGHT = 350
SIGNATURE_MAX_WIDTH = 200
SIGNATURE_MAX_HEIGHT = 80

FONT = 'Helvetica'
BOLD_FONT = 'Helvetica-Bold'
TEXT_COLOR = Color(0.1, 0.1, 0.1)
HEADING_COLOR = Color(0.17, 0.24, 0.31)
ACCENT_COLOR = Color(0.20, 0.60, 0.86)
MUTED_COLOR = Color(0.5, 0.5, 0.5)
RULE_COLOR = Color(0.8, 0.8, 0.8)

BRANDED_TEMPLATE_ID = 'us-brand-booster'
BRANDED_TEMPLATE_NAME = 'US Brand Booster'

DEFAULT_SERVICE_OVERVIEW = (
    '- Tailored Content: Unique content aligned with your business nature and target audience.\n'
    '- Geographic Targeting: Optimize Google Guarantee for specific cities of your choice, expanding '
    'your local reach based on the list of zip codes supplied by the customer.\n'
    '- Complete Website (10 Page website): Standard set of the pages and the galleries of the services on top.\n'
    '- ROI Reports: Receive monthly reports on the return on investment (ROI) generated by the marketing efforts.'
)

DEFAULT_SERVICES_IN_SCOPE = (
    '- Create the Mockup pages for the {company} verification and approval.\n'
    '- Assist in creating the Google Business account.\n'
    '- As soon as the Web-Site is created a 3 months Web SEO free service will start.\n'
    '- Creating the landing pages on the {company} domain.\n'
    '- All the Credentials of all the accounts will be defined with the agreement by the {company}.'
)

PDF_MAGIC_BASE64 = 'JVBERi0'
PDF_DATA_URI_PREFIX = 'data:application/pdf'


def _strip_data_uri(value: str) -> str:
    return value.split(',', 1)[1] if ',' in value else value


def extract_pdf_payload(file_url: Optional[str]) -> Optional[str]:
    """Returns the base64 body when the stored file is already a PDF, None otherwise."""
    if not file_url:
        return None
    value = file_url.strip()
    if value.startswith(PDF_DATA_URI_PREFIX):
        return _strip_data_uri(value)
    if value.startswith(PDF_MAGIC_BASE64):
        return value
    return None


def decode_base64(value: str) -> bytes:
    try:
        return base64.b64decode(_strip_data_uri(value.strip()), validate=False)
    except (binascii.Error, ValueError) as e:
        raise PdfRenderError(f'Invalid base64 payload: {str(e)}')


def split_word(word: str, font: str, size: float, max_width: float) -> List[str]:
    """Breaks a word wider than the line (URLs, e-mails) into character chunks."""
    chunks = []
    current = ''
    for char in word:
        if current and stringWidth(current + char, font, size) >= max_width:
            chunks.append(current)
            current = char
        else:
            current += char
    if current:
        chunks.append(current)
    return chunks


def wrap_text(text: str, font: str, size: float, max_width: float) -> List[str]:
    words = []
    for word in (text or '').split():
        if stringWidth(word, font, size) >= max_width:
            words.extend(split_word(word, font, size, max_width))
        else:
            words.append(word)
    if not words:
        return []

    lines = []
    current = words[0]
    for word in words[1:]:
        candidate = f'{current} {word}'
        if stringWidth(candidate, font, size) < max_width:
            current = candidate
        else:
            lines.append(current)
            current = word
    lines.append(current)
    return lines


class _AgreementLayout:
    """Cursor-based writer over a reportlab canvas, breaking pages as content grows."""

    def __init__(self):
        self.buffer = io.BytesIO()
        self.canvas = canvas.Canvas(self.buffer, pagesize=PAGE_SIZE)
        self.width, self.height = PAGE_SIZE
        self.content_width = self.width - MARGIN * 2
        self.y = self.height - MARGIN

    def new_page(self, top: Optional[float] = None):
        self.canvas.showPage()
        self.y = top if top is not None else self.height - MARGIN

    def ensure_space(self, needed: float, top: Optional[float] = None):
        if self.y - needed < MARGIN:
            self.new_page(top)

    def line(self, text: str, size: float, bold: bool = False, color: Color = TEXT_COLOR):
        if self.y < MARGIN + 20:
            self.new_page()
        self.canvas.setFillColor(color)
        self.canvas.setFont(BOLD_FONT if bold else FONT, size)
        self.canvas.drawString(MARGIN, self.y, text)
        self.y -= size + 10

    def rule(self, color: Color = ACCENT_COLOR, thickness: float = 2):
        self.canvas.setFillColor(color)
        self.canvas.rect(MARGIN, self.y + 10, self.content_width, thickness, stroke=0, fill=1)

    def block(self, title: str, items: List[Dict]):
        padding = 15
        inner_width = self.content_width - padding * 2

        measured = []
        height = padding * 2 + (25 if title else 0)
        for item in items:
            font = BOLD_FONT if item.get('bold') else FONT
            size = item.get('size', 10)
            indent = 15 if item.get('bullet') else 0
            lines = wrap_text(item.get('text', ''), font, size, inner_width - indent)
            measured.append((item, font, size, indent, lines))
            height += len(lines) * size * 1.4 + 6

        self.ensure_space(height)

        cursor = self.y - padding
        if title:
            self.canvas.setFillColor(HEADING_COLOR)
            self.canvas.setFont(BOLD_FONT, 11)
            self.canvas.drawString(MARGIN + padding, cursor, title)
            cursor -= 25

        for item, font, size, indent, lines in measured:
            for index, text in enumerate(lines):
                if cursor < MARGIN:
                    self.new_page()
                    cursor = self.y
                self.canvas.setFillColor(TEXT_COLOR)
                self.canvas.setFont(font, size)
                self.canvas.drawString(MARGIN + padding + indent, cursor, text)
                if item.get('bullet') and index == 0:
                    self.canvas.setFont(BOLD_FONT, size)
                    self.canvas.drawString(MARGIN + padding + 5, cursor, '•')
                cursor -= size * 1.4
            cursor -= 6

        self.y = cursor - padding - 20

    def image(self, data: bytes, max_width: float, max_height: float, offset: float):
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            width, height = img.size
            scale = min(max_width / width, max_height / height)
            self.canvas.drawImage(
                ImageReader(img.copy()),
                MARGIN,
                self.y - offset,
                width=width * scale,
                height=height * scale,
                mask='auto'
            )

    def finish(self) -> bytes:
        self.canvas.save()
        return self.buffer.getvalue()


class AgreementPdfRenderer(AgreementRenderer):
    def generate_base_pdf(self, context: Dict) -> RenderedPdf:
        try:
            layout = _AgreementLayout()
            self._write_agreement(layout, context or {})
            pdf = layout.finish()
        except PdfRenderError:
            raise
        except Exception as e:
            logger.error(f'Error generating base PDF: {str(e)}', exc_info=True)
            raise PdfRenderError('Failed to generate base PDF')

        return RenderedPdf(pdf=base64.b64encode(pdf).decode('ascii'), last_y=layout.y)

    def embed_signature(
        self,
        base_pdf: str,
        signature: str,
        signer: SignerInfo,
        last_y: Optional[float] = None
    ) -> str:
        try:
            reader = PdfReader(io.BytesIO(decode_base64(base_pdf)))
            signature_bytes = decode_base64(signature)

            writer = PdfWriter()
            for page in reader.pages:
                writer.add_page(page)

            if last_y is not None and last_y > CERTIFICATE_REQUIRED_HEIGHT and writer.pages:
                last_page = writer.pages[-1]
                page_size = (float(last_page.mediabox.width), float(last_page.mediabox.height))
                overlay = self._certificate(page_size, last_y - 50, signature_bytes, signer, new_page=False)
                last_page.merge_page(PdfReader(io.BytesIO(overlay)).pages[0])
            else:
                overlay = self._certificate(CERTIFICATE_PAGE_SIZE, 470, signature_bytes, signer, new_page=True)
                writer.add_page(PdfReader(io.BytesIO(overlay)).pages[0])

            output = io.BytesIO()
            writer.write(output)
        except PdfRenderError:
            raise
        except (PdfReadError, OSError, ValueError) as e:
            logger.error(f'Error embedding signature: {str(e)}', exc_info=True)
            raise PdfRenderError('Failed to embed signature in PDF')

        return base64.b64encode(output.getvalue()).decode('ascii')

    def _certificate(
        self,
        page_size,
        start_y: float,
        signature: bytes,
        signer: SignerInfo,
        new_page: bool
    ) -> bytes:
        buffer = io.BytesIO()
        c = canvas.Canvas(buffer, pagesize=page_size)
        y = start_y

        if new_page:
            c.setFont(BOLD_FONT, 16)
            c.setFillColor(TEXT_COLOR)
            c.drawString(MARGIN, y, 'DIGITAL SIGNATURE CERTIFICATE')
            y -= 40
        else:
            c.setStrokeColor(RULE_COLOR)
            c.setLineWidth(1)
            c.line(MARGIN, y + 20, page_size[0] - MARGIN, y + 20)
            c.setFont(BOLD_FONT, 14)
            c.setFillColor(Color(0.3, 0.3, 0.3))
            c.drawString(MARGIN, y, 'DIGITAL SIGNATURE CERTIFICATE')
            y -= 30

        c.setFillColor(TEXT_COLOR)
        if signer.company_name or signer.owner_name:
            c.setFont(BOLD_FONT, 12)
            c.drawString(MARGIN, y, 'Customer Information')
            y -= 20
            c.setFont(FONT, 10)
            c.drawString(MARGIN, y, f'Customer Business Name: {signer.company_name or "N/A"}')
            y -= 15
            c.drawString(MARGIN, y, f'Business owner (Managing Member): {signer.owner_name or "N/A"}')
            y -= 30

        signed_at = signer.signed_at or timezone.now()
        c.setFont(FONT, 12)
        c.drawString(MARGIN, y, f'Digitally Signed: {self._format_signed_at(signed_at)}')
        y -= 20

        if signer.email:
            c.drawString(MARGIN, y, f'Signed by: {signer.email}')
            y -= 30
        else:
            y -= 10

        c.setFont(BOLD_FONT, 14)
        c.drawString(MARGIN, y, 'Signature:')

        with Image.open(io.BytesIO(signature)) as img:
            img.load()
            width = min(img.size[0] * 0.4, SIGNATURE_MAX_WIDTH)
            height = min(img.size[1] * 0.4, SIGNATURE_MAX_HEIGHT)
            c.drawImage(ImageReader(img.copy()), MARGIN, y - 80, width=width, height=height, mask='auto')

        footer_y = 50 if new_page else y - 100
        c.setFont(FONT, 10)
        c.setFillColor(MUTED_COLOR)
        c.drawString(MARGIN, footer_y, 'This document has been digitally signed and secured via SignFlow.')

        c.save()
        return buffer.getvalue()

    @staticmethod
    def _format_signed_at(value: datetime) -> str:
        return timezone.localtime(value).strftime('%m/%d/%Y %I:%M:%S %p')

    @staticmethod
    def _is_branded(context: Dict) -> bool:
        return bool(
            context.get('templateId') == BRANDED_TEMPLATE_ID
            or BRANDED_TEMPLATE_NAME in str(context.get('templateName') or '')
            or context.get('clientCompanyName')
            or context.get('businessOwnerName')
        )

    def _write_agreement(self, layout: _AgreementLayout, data: Dict):
        branded = self._is_branded(data)
        company = data.get('clientCompanyName') or data.get('clientCompany')

        layout.line('DIGITAL MARKETING AGREEMENT', 18, bold=True, color=HEADING_COLOR)
        layout.y -= 15
        layout.rule()
        layout.line(f'Date: {timezone.localdate().strftime("%m/%d/%Y")}', 10)
        layout.y -= 20

        if branded:
            parties = [
                {'text': f'Service Provider: {data.get("agencyName") or "US Brand Booster LLC"}', 'bold': True, 'size': 11},
                {'text': ''},
                {'text': 'Client:', 'bold': True, 'size': 11},
                {'text': f'Business Name: {company or "N/A"}'},
                {'text': f'Business Owner: {data.get("businessOwnerName") or data.get("clientName") or "N/A"}'},
                {'text': f'Email: {data.get("clientEmail") or "N/A"}'},
            ]
        else:
            parties = [
                {'text': f'Service Provider: {data.get("agencyName") or "SignFlow Agency"}'},
                {'text': f'Client: {data.get("clientName") or "N/A"}'},
            ]
        layout.block('PARTIES TO THIS AGREEMENT', parties)

        client = [
            {'text': f'Client Name: {data.get("clientName") or data.get("businessOwnerName") or "N/A"}'},
            {'text': f'Company: {company or "N/A"}'},
        ]
        for key, label in (
            ('clientEmail', 'Email'),
            ('clientPhone', 'Phone'),
            ('clientAddress', 'Address'),
            ('clientCityStateZip', 'City / State / Zip'),
            ('clientCountry', 'Country'),
        ):
            if data.get(key):
                client.append({'text': f'{label}: {data[key]}'})
        layout.block('CLIENT DETAILS', client)

        project = [{'text': f'Document Title: {data.get("title") or "Service Agreement"}'}]
        for key, label in (
            ('projectName', 'Project'),
            ('startDate', 'Start Date'),
            ('endDate', 'End / Delivery Date'),
            ('clientDomain', 'Client Domain'),
        ):
            if data.get(key):
                project.append({'text': f'{label}: {data[key]}'})
        layout.block('PROJECT DETAILS', project)

        if branded:
            self._write_branded_terms(layout, data, company or 'Client')
        else:
            self._write_generic_terms(layout, data)

        if layout.y < 50:
            layout.new_page(top=800)
        layout.y -= 30
        layout.canvas.setFillColor(MUTED_COLOR)
        layout.canvas.setFont(FONT, 8)
        layout.canvas.drawString(MARGIN, layout.y, 'This agreement is legally binding upon signature by both parties.')
        layout.canvas.drawString(MARGIN, layout.y - 10, 'Generated via SignFlow')

    def _write_generic_terms(self, layout: _AgreementLayout, data: Dict):
        if data.get('scopeOfWork'):
            layout.block('SCOPE OF WORK', [{'text': data['scopeOfWork']}])
        if data.get('paymentTerms'):
            layout.block('PAYMENT TERMS', [{'text': data['paymentTerms']}])
        if data.get('specialNotes'):
            layout.block('SPECIAL NOTES / CLAUSES', [{'text': data['specialNotes']}])

        if layout.y < 200:
            layout.new_page(top=800)
        layout.y -= 20
        layout.line('AGREEMENT SIGNATURES', 12, bold=True)
        layout.line(f'Service Provider: {data.get("agencyName") or "Agency"}', 10)
        layout.line(f'Client: {data.get("clientName") or "Client"}', 10)
        layout.y -= 30
        layout.line('Signatures are collected digitally.', 10, color=MUTED_COLOR)

    def _write_branded_terms(self, layout: _AgreementLayout, data: Dict, company: str):
        overview = []
        for raw in (data.get('serviceOverviewDetails') or DEFAULT_SERVICE_OVERVIEW).split('\n'):
            text = raw.strip()
            if not text:
                continue
            bullet = text.startswith('-')
            colon = text.find(':')
            if bullet and colon > -1:
                overview.append({'text': text[1:colon + 1].strip(), 'bold': True, 'bullet': True})
                overview.append({'text': text[colon + 1:].strip()})
            else:
                overview.append({'text': text.lstrip('-').strip(), 'bullet': bullet})
        layout.block('SERVICE OVERVIEW', overview)

        upfront = data.get('upfrontPayment') or '350'
        remaining = data.get('remainingPayment') or '650'
        domain = data.get('clientDomain') or 'domain.com'
        layout.block('PAYMENT TERMS', [
            {'text': f'The {company} is going to pay ${upfront} upfront for website development.'},
            {'text': f'The {company} is going to pay remaining ${remaining} when the website goes live on {company} domain ({domain}).'},
            {'text': 'The Web-site will be developed on Word Press platform.'},
        ])

        scope_text = data.get('servicesInScopeDetails') or DEFAULT_SERVICES_IN_SCOPE.format(company=company)
        scope = [{'text': 'Following are the services in scope:'}]
        for raw in scope_text.split('\n'):
            if raw.strip():
                scope.append({'text': raw.strip().lstrip('-').strip(), 'bullet': True})
        layout.block('SERVICES IN SCOPE', scope)

        layout.block('PRIVACY POLICY & TERMS & CONDITION', [
            {'text': 'Cancellation Policy', 'bold': True},
            {'text': 'No long-term contract is required. A 15-day cancellation notice is requested to ensure a '
                     'smooth transition of all domain, hosting, and social platform credentials.', 'bullet': True},
            {'text': 'Non-Refundable Policy:', 'bold': True},
            {'text': 'Due to the immediate allocation of funds for service execution, all payments are '
                     'non-refundable unless otherwise required by law.', 'bullet': True},
        ])

        if layout.y < 300:
            layout.new_page(top=800)
        layout.y -= 30
        layout.line('AGREEMENT SIGNATURES', 12, bold=True, color=HEADING_COLOR)
        layout.y -= 10
        layout.line(f'Services Supplier: {data.get("agencyName") or "US Brand Booster LLC"}', 10, bold=True)
        layout.line(f'Marketing Manager: {data.get("agentName") or "N/A"}', 10)
        layout.y -= 15
        layout.line('Signature:', 10, bold=True)

        agent_signature = data.get('agentSignature')
        if agent_signature:
            try:
                layout.image(decode_base64(agent_signature), 200, 50, 45)
            except (PdfRenderError, OSError, ValueError) as e:
                logger.warning(f'Failed to embed agent signature: {str(e)}')
        else:
            layout.canvas.setStrokeColor(Color(0, 0, 0))
            layout.canvas.setLineWidth(1)
            layout.canvas.line(MARGIN, layout.y - 30, MARGIN + 250, layout.y - 30)
        layout.y -= 50
        layout.line('Date: ________________________________', 10)
        layout.y -= 30
