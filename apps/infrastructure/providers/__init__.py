from .google_strategy import GoogleIdentityStrategy
from .factory import IdentityProviderFactory

__all__ = ['GoogleIdentityStrategy', 'IdentityProviderFactory']
