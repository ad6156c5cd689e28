import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from django.conf import settings
from jose import JWTError, jwt

logger = logging.getLogger('apps')


class TokenService:
    def __init__(self, secret: Optional[str] = None, algorithm: Optional[str] = None, expire_days: Optional[int] = None):
        self.secret = secret or settings.JWT_SECRET
        self.algorithm = algorithm or settings.JWT_ALGORITHM
        self.expire_days = expire_days if expire_days is not None else settings.JWT_EXPIRE_DAYS

    def issue(self, user) -> str:
        expire = datetime.now(timezone.utc) + timedelta(days=self.expire_days)
        claims = {
            'sub': str(user.pk),
            'email': user.email,
            'role': user.role,
            'exp': expire,
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> Optional[Dict]:
        """Returns the claims of a valid token, or None for expired/forged/malformed ones."""
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError:
            return None
