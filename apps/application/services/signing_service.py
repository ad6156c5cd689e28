import logging
from typing import Dict, List, Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.domain.exceptions import (
    DocumentAlreadySigned, Conflict, Forbidden, InvalidSignToken, SignFlowError, ValidationFailed
)
from apps.domain.interfaces.agreement_renderer import AgreementRenderer, SignerInfo
from apps.domain.mappers import map_record
from apps.domain.models import Document, User
from apps.domain.models.document import generate_document_id, generate_sign_token
from apps.infrastructure.repositories import DocumentRepository
from apps.infrastructure.services.notification_service import AgreementNotifier, build_signing_link
from apps.infrastructure.services.pdf_renderer import AgreementPdfRenderer, extract_pdf_payload

logger = logging.getLogger('apps')

CREATED = 'created'
UPDATED = 'updated'
SKIPPED = 'skipped'
FAILED = 'failed'


class SigningService:
    def __init__(
        self,
        documents: Optional[DocumentRepository] = None,
        renderer: Optional[AgreementRenderer] = None,
        notifier: Optional[AgreementNotifier] = None,
        strict_tokens: Optional[bool] = None
    ):
        self.documents = documents or DocumentRepository()
        self.renderer = renderer or AgreementPdfRenderer()
        self.notifier = notifier or AgreementNotifier()
        self.strict_tokens = settings.SIGN_TOKEN_STRICT if strict_tokens is None else strict_tokens

    @staticmethod
    def _ensure_owner(principal: User, document: Document):
        if principal.is_admin:
            return
        if not document.is_owned_by(principal.pk):
            logger.warning(f'User {principal.pk} denied access to document {document.pk}')
            raise Forbidden()

    def _notify(self, document: Document) -> bool:
        if not (document.metadata or {}).get('clientEmail'):
            return False
        return self.notifier.send_agreement(document, build_signing_link(document))

    def create_document(
        self,
        principal: User,
        title: Optional[str] = None,
        file_url: Optional[str] = None,
        metadata: Optional[Dict] = None
    ) -> (Document, bool):
        metadata = dict(metadata or {})

        # Admin pode atribuir o documento a outro agente; agente é sempre o dono
        if principal.is_admin:
            agent_id = str(metadata.get('agentId') or principal.pk)
            agent_name = metadata.get('agentName') or principal.name
        else:
            agent_id = str(principal.pk)
            agent_name = principal.name
        metadata['agentId'] = agent_id

        document = self.documents.create(
            id=generate_document_id(),
            title=title or 'Untitled',
            status=Document.PENDING,
            file_url=file_url,
            agent_id=agent_id,
            agent_name=agent_name or '',
            metadata=metadata,
            sign_token=generate_sign_token(),
        )
        logger.info(f'Document {document.pk} created by user {principal.pk}')

        notified = self._notify(document)
        return document, notified

    def list_documents(
        self,
        principal: User,
        status: Optional[str] = None,
        agent_id: Optional[str] = None,
        client_id: Optional[str] = None
    ) -> List[Document]:
        if not principal.is_admin:
            agent_id = str(principal.pk)
        return self.documents.list(status=status, agent_id=agent_id, client_id=client_id)

    def get_document(self, principal: User, document_id: str) -> Document:
        document = self.documents.get(document_id)
        self._ensure_owner(principal, document)
        return document

    def get_public_document(self, document_id: str, token: Optional[str]) -> Document:
        document = self.documents.get(document_id)
        if not token or token != document.sign_token:
            logger.warning(f'Invalid sign token presented for document {document.pk}')
            raise InvalidSignToken()
        return document

    def resend(self, principal: User, document_id: str) -> (Document, bool):
        document = self.documents.get(document_id)
        self._ensure_owner(principal, document)

        document = self.documents.rotate_token(document)
        logger.info(f'Sign token rotated for document {document.pk}')

        notified = self._notify(document)
        return document, notified

    def _check_sign_token(self, document: Document, presented: Optional[str]):
        if self.strict_tokens:
            if not presented or presented != document.sign_token:
                raise InvalidSignToken()
        elif presented and document.sign_token and presented != document.sign_token:
            raise InvalidSignToken()

    @staticmethod
    def _render_context(document: Document) -> Dict:
        context = dict(document.metadata or {})
        context.setdefault('title', document.title)
        context.setdefault('agentName', document.agent_name)
        return context

    def sign(
        self,
        document_id: str,
        signature_data_url: str,
        presented_token: Optional[str] = None,
        signer_email: Optional[str] = None,
        signer_ip: Optional[str] = None
    ) -> Document:
        if not signature_data_url:
            raise ValidationFailed('dataUrl is required')

        document = self.documents.get(document_id)
        expected_version = document.version

        try:
            self._check_sign_token(document, presented_token)
        except InvalidSignToken:
            logger.warning(f'Invalid sign token presented for document {document.pk}')
            raise

        if document.is_signed:
            raise DocumentAlreadySigned()

        metadata = document.metadata or {}
        base_pdf = extract_pdf_payload(document.file_url)
        last_y = None
        if base_pdf is None:
            rendered = self.renderer.generate_base_pdf(self._render_context(document))
            base_pdf, last_y = rendered.pdf, rendered.last_y

        signed_at = timezone.now()
        signer = SignerInfo(
            email=signer_email or metadata.get('clientEmail'),
            signed_at=signed_at,
            company_name=metadata.get('clientCompanyName') or metadata.get('clientCompany'),
            owner_name=metadata.get('businessOwnerName') or metadata.get('clientName'),
        )
        signed_pdf = self.renderer.embed_signature(base_pdf, signature_data_url, signer, last_y)

        changed = self.documents.mark_signed(
            document,
            expected_version=expected_version,
            signed_pdf_url=signed_pdf,
            signed_at=signed_at,
            signer_gmail=signer.email,
            signer_ip=signer_ip,
        )
        if not changed:
            logger.warning(f'Concurrent modification while signing document {document.pk}')
            current = self.documents.resolve(document.pk)
            if current is not None and current.is_signed:
                raise DocumentAlreadySigned()
            raise Conflict()

        logger.info(f'Document {document.pk} signed')
        return document

    def delete_document(self, document_id: str) -> None:
        self.documents.delete(document_id)
        logger.info(f'Document {document_id} deleted')

    def _import_item(self, item) -> Dict:
        if not isinstance(item, dict) or not item:
            return {'itemId': None, 'outcome': SKIPPED}

        fields = map_record(item)
        fields['id'] = fields['id'] or generate_document_id()
        fields['sign_token'] = fields['sign_token'] or generate_sign_token()
        item_id = fields['id']

        try:
            with transaction.atomic():
                _, created = self.documents.upsert(fields)
        except SignFlowError as e:
            return {'itemId': item_id, 'outcome': FAILED, 'error': e.message}
        except Exception as e:
            logger.error(f'Error importing document {item_id}: {str(e)}', exc_info=True)
            return {'itemId': item_id, 'outcome': FAILED, 'error': 'Failed to import document'}

        return {'itemId': item_id, 'outcome': CREATED if created else UPDATED}

    def import_documents(self, items) -> Dict:
        if not isinstance(items, list):
            raise ValidationFailed('Invalid payload')

        results = [self._import_item(item) for item in items]
        added = sum(1 for result in results if result['outcome'] == CREATED)
        logger.info(f'Import finished: {added} added, {len(results)} processed')

        return {
            'ok': True,
            'added': added,
            'total': self.documents.count(),
            'results': results,
        }
