import logging
from urllib.parse import quote

from django.conf import settings
from django.core.mail import EmailMessage

from apps.domain.models import Document

logger = logging.getLogger('apps')


def build_signing_link(document: Document) -> str:
    base_url = settings.FRONTEND_URL.rstrip('/')
    return f'{base_url}/#/sign/{quote(str(document.pk), safe="")}?token={quote(document.sign_token or "", safe="")}'


class AgreementNotifier:
    """Sends the signing link to the document's client."""

    subject_template = 'Agreement ready for signature: {title}'
    body_template = (
        'Hello {client_name},\n\n'
        '{agent_name} has sent you the agreement "{title}" for your review and signature.\n\n'
        'Open the link below to read and sign it:\n{link}\n\n'
        'If you have any questions, simply reply to this e-mail.\n'
    )

    def __init__(self, from_email: str = None, default_reply_to: str = None):
        self.from_email = from_email or settings.DEFAULT_FROM_EMAIL
        self.default_reply_to = default_reply_to or settings.DEFAULT_AGENCY_EMAIL

    def send_agreement(self, document: Document, link: str) -> bool:
        metadata = document.metadata or {}
        recipient = metadata.get('clientEmail')
        if not recipient:
            return False

        message = EmailMessage(
            subject=self.subject_template.format(title=document.title),
            body=self.body_template.format(
                client_name=metadata.get('clientName') or 'Client',
                agent_name=document.agent_name or 'Agent',
                title=document.title,
                link=link,
            ),
            from_email=self.from_email,
            to=[recipient],
            reply_to=[metadata.get('agencyEmail') or self.default_reply_to],
        )

        try:
            message.send(fail_silently=False)
        except Exception as e:
            logger.error(f'Error sending agreement e-mail for document {document.pk}: {str(e)}', exc_info=True)
            return False

        logger.info(f'Agreement e-mail sent for document {document.pk}')
        return True
