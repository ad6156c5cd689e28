import logging
from typing import List, Optional

from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.utils import timezone

from apps.application.services.token_service import TokenService
from apps.domain.exceptions import Forbidden, Unauthenticated, ValidationFailed
from apps.domain.models import User
from apps.infrastructure.repositories import UserRepository

logger = logging.getLogger('apps')


def normalize_role(role) -> str:
    return User.ADMIN if str(role or '').strip().lower() == User.ADMIN else User.AGENT


class AccountService:
    def __init__(self, users: Optional[UserRepository] = None, token_service: Optional[TokenService] = None):
        self.users = users or UserRepository()
        self.token_service = token_service or TokenService()

    def register(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        role: Optional[str] = None,
        caller: Optional[User] = None
    ) -> User:
        if not email or not password:
            raise ValidationFailed('Email and password are required')

        role = normalize_role(role)
        if role == User.ADMIN and not (caller is not None and caller.is_authenticated and caller.is_admin):
            logger.warning('Admin registration attempted without an admin caller')
            raise Forbidden('Only admins can create admin users')

        try:
            validate_password(password)
        except ValidationError as e:
            raise ValidationFailed(' '.join(e.messages))

        user = self.users.create(email=email, password=password, name=name or email, role=role)
        logger.info(f'User {user.pk} registered with role {user.role}')
        return user

    def login(self, email: str, password: str) -> (str, User):
        user = self.users.find_by_email(email)
        if user is None or not user.check_password(password or ''):
            logger.warning('Login rejected: invalid credentials')
            raise Unauthenticated('Invalid credentials')

        if not user.active:
            logger.warning(f'Login rejected: user {user.pk} is inactive')
            raise Unauthenticated('Account is disabled')

        user.last_login = timezone.now()
        user.save(update_fields=['last_login'])
        return self.token_service.issue(user), user

    def list_users(self) -> List[User]:
        return self.users.list()

    def toggle_active(self, user_id) -> User:
        user = self.users.get(user_id)
        user = self.users.set_active(user, not user.active)
        logger.info(f'User {user.pk} active set to {user.active}')
        return user

    def delete_user(self, user_id) -> None:
        user = self.users.get(user_id)
        if user.is_admin:
            raise ValidationFailed('Cannot delete admin user')
        self.users.delete(user)
        logger.info(f'User {user_id} deleted')

    def update_profile(self, user: User, name: Optional[str] = None, signature: Optional[str] = None) -> User:
        return self.users.update_profile(user, name=name, signature=signature)
