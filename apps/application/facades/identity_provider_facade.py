import logging
from typing import Optional
from apps.domain.exceptions import Forbidden, IdentityProviderError, ValidationFailed
from apps.domain.interfaces.identity_provider_strategy import IdentityProviderStrategy
from apps.infrastructure.providers.factory import IdentityProviderFactory
from apps.infrastructure.repositories import DocumentRepository

logger = logging.getLogger('apps')


class IdentityProviderFacade:
    def __init__(
        self,
        provider_factory: Optional[IdentityProviderFactory] = None,
        documents: Optional[DocumentRepository] = None
    ):
        self.provider_factory = provider_factory or IdentityProviderFactory()
        self.documents = documents or DocumentRepository()

    def _get_strategy(self) -> IdentityProviderStrategy:
        return self.provider_factory.get_provider()

    def verify_signer(self, document_id: str, credential: str) -> str:
        """Checks that the identity behind the credential is the client the document was sent to."""
        strategy = self._get_strategy()
        if not strategy.is_configured():
            raise IdentityProviderError('Google OAuth not configured')

        if not document_id or not credential:
            raise ValidationFailed('idToken and docId are required')

        email = strategy.verify(credential)
        document = self.documents.get(document_id)

        expected = str((document.metadata or {}).get('clientEmail') or '').strip().lower()
        if not expected:
            logger.warning(f'Identity check on document {document.pk} without client e-mail')
            raise Forbidden('Access denied for this document.')
        if expected != email:
            logger.warning(f'Identity mismatch for document {document.pk}')
            raise Forbidden(f'Access denied. This document is assigned to {expected}.')

        logger.info(f'Signer identity verified for document {document.pk}')
        return email
