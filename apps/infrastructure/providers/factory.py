import threading
import logging
from typing import Dict, Optional
from django.conf import settings
from apps.domain.interfaces.identity_provider_strategy import IdentityProviderStrategy
from .google_strategy import GoogleIdentityStrategy

logger = logging.getLogger('apps')


class IdentityProviderFactory:
    _instance = None
    _lock = threading.Lock()
    _providers_cache: Dict[str, IdentityProviderStrategy] = {}

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(IdentityProviderFactory, cls).__new__(cls)
        return cls._instance

    def get_provider(self, provider_code: Optional[str] = None, client_id: Optional[str] = None) -> IdentityProviderStrategy:
        provider_code = (provider_code or settings.IDENTITY_PROVIDER).lower()
        client_id = settings.GOOGLE_CLIENT_ID if client_id is None else client_id
        cache_key = f'{provider_code}:{client_id}'

        if cache_key not in self._providers_cache:
            with self._lock:
                if cache_key not in self._providers_cache:
                    strategy = self._create_strategy(provider_code, client_id)
                    self._providers_cache[cache_key] = strategy

        return self._providers_cache[cache_key]

    def _create_strategy(self, provider_code: str, client_id: str) -> IdentityProviderStrategy:
        if provider_code == 'google':
            return GoogleIdentityStrategy(
                client_id,
                tokeninfo_url=settings.GOOGLE_TOKENINFO_URL,
                timeout=settings.IDENTITY_TIMEOUT,
            )
        else:
            raise ValueError(f'Unknown identity provider code: {provider_code}')

    def clear_cache(self):
        with self._lock:
            self._providers_cache.clear()
