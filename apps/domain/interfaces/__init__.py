from .identity_provider_strategy import IdentityProviderStrategy
from .agreement_renderer import AgreementRenderer, RenderedPdf, SignerInfo

__all__ = ['IdentityProviderStrategy', 'AgreementRenderer', 'RenderedPdf', 'SignerInfo']
