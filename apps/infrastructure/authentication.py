import logging
import re

from django.db import DatabaseError
from rest_framework import status
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import APIException

from apps.application.services.token_service import TokenService
from apps.infrastructure.repositories import UserRepository

logger = logging.getLogger('apps')

BEARER_PATTERN = re.compile(r'^Bearer\s+(.+)$', re.IGNORECASE)


class AuthenticationStoreError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Authentication store unavailable'
    default_code = 'authentication_store_error'


class JWTAuthentication(BaseAuthentication):
    """Bearer token authentication. Any credential problem leaves the request anonymous."""

    keyword = 'Bearer'

    def __init__(self, token_service: TokenService = None, users: UserRepository = None):
        self.token_service = token_service or TokenService()
        self.users = users or UserRepository()

    def authenticate(self, request):
        header = request.META.get('HTTP_AUTHORIZATION', '')
        match = BEARER_PATTERN.match(header.strip()) if header else None
        if not match:
            return None

        token = match.group(1).strip()
        claims = self.token_service.decode(token)
        if not claims:
            return None

        try:
            user = self.users.find_by_claims(claims.get('sub') or claims.get('id'), claims.get('email'))
        except DatabaseError as e:
            logger.error(f'Error resolving authenticated user: {str(e)}', exc_info=True)
            raise AuthenticationStoreError()

        if user is None or not user.active:
            return None

        return (user, token)

    def authenticate_header(self, request):
        return self.keyword
