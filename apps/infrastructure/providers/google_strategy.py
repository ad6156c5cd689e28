import requests
import logging
from typing import Dict, Optional
from apps.domain.exceptions import IdentityProviderError, Unauthenticated
from apps.domain.interfaces.identity_provider_strategy import IdentityProviderStrategy

logger = logging.getLogger('apps')


class GoogleIdentityStrategy(IdentityProviderStrategy):
    def __init__(self, client_id: str, tokeninfo_url: Optional[str] = None, timeout: int = 10):
        self.client_id = client_id
        self.tokeninfo_url = tokeninfo_url or 'https://oauth2.googleapis.com/tokeninfo'
        self.timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.client_id)

    def _fetch_token_info(self, id_token: str) -> Dict:
        try:
            response = requests.get(self.tokeninfo_url, params={'id_token': id_token}, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f'Error contacting Google tokeninfo: {str(e)}')
            raise IdentityProviderError(f'Failed to verify Google token: {str(e)}')

        # O Google responde 400 para tokens expirados ou adulterados
        if response.status_code == 400:
            raise Unauthenticated('Invalid Google token')

        try:
            response.raise_for_status()
            return response.json()
        except requests.exceptions.HTTPError as e:
            logger.error(f'Google tokeninfo returned {response.status_code}')
            raise IdentityProviderError(f'Failed to verify Google token: {str(e)}')
        except ValueError:
            raise IdentityProviderError('Google tokeninfo returned an invalid response')

    def verify(self, credential: str) -> str:
        if not credential:
            raise Unauthenticated('Missing idToken')

        info = self._fetch_token_info(credential)

        if self.client_id and info.get('aud') != self.client_id:
            logger.warning('Google token issued for a different audience')
            raise Unauthenticated('Invalid Google token')

        if str(info.get('email_verified', '')).lower() != 'true':
            raise Unauthenticated('Google account e-mail is not verified')

        email = (info.get('email') or '').strip().lower()
        if not email:
            raise Unauthenticated('Google token has no e-mail')
        return email
