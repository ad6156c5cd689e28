from typing import Dict, List, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Count, F, Q
from django.utils import timezone

from apps.domain.exceptions import Conflict, NotFound, ValidationFailed
from apps.domain.mappers import parse_object_id
from apps.domain.models import Document, User
from apps.domain.models.document import generate_sign_token

UPSERT_ATTEMPTS = 3


class DocumentRepository:
    """Document store. Identifiers resolve by structured id first, then by string id."""

    def resolve(self, identifier) -> Optional[Document]:
        if identifier is None or identifier == '':
            return None

        object_id = parse_object_id(identifier)
        if object_id:
            document = Document.objects.filter(legacy_id=object_id).first()
            if document is not None:
                return document

        return Document.objects.filter(pk=str(identifier)).first()

    def get(self, identifier) -> Document:
        document = self.resolve(identifier)
        if document is None:
            raise NotFound('Not found')
        return document

    def list(
        self,
        status: Optional[str] = None,
        agent_id: Optional[str] = None,
        client_id: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[Document]:
        queryset = Document.objects.all()
        if status:
            queryset = queryset.filter(status__iexact=str(status))
        if agent_id:
            queryset = queryset.filter(Q(agent_id=str(agent_id)) | Q(metadata__agentId=str(agent_id)))
        if client_id:
            queryset = queryset.filter(metadata__clientId=str(client_id))
        return list(queryset.order_by('-created_at')[:limit or settings.DOCUMENT_LIST_LIMIT])

    def create(self, **fields) -> Document:
        return Document.objects.create(**fields)

    def rotate_token(self, document: Document) -> Document:
        new_token = generate_sign_token()
        while new_token == document.sign_token:
            new_token = generate_sign_token()

        Document.objects.filter(pk=document.pk).update(sign_token=new_token, version=F('version') + 1)
        document.refresh_from_db()
        return document

    def mark_signed(
        self,
        document: Document,
        expected_version: int,
        signed_pdf_url: str,
        signed_at,
        signer_gmail: Optional[str],
        signer_ip: Optional[str]
    ) -> bool:
        # Um único UPDATE condicionado à versão lida: tudo ou nada
        updated = Document.objects.filter(
            pk=document.pk,
            version=expected_version,
            status=Document.PENDING,
        ).update(
            status=Document.SIGNED,
            signed_pdf_url=signed_pdf_url,
            signed_at=signed_at,
            signer_gmail=signer_gmail,
            signer_ip=signer_ip,
            version=F('version') + 1,
            updated_at=timezone.now(),
        )
        if updated:
            document.refresh_from_db()
        return bool(updated)

    def delete(self, identifier) -> None:
        document = self.get(identifier)
        document.delete()

    def upsert(self, fields: Dict) -> (Document, bool):
        """Creates or merges an imported record. A SIGNED document never goes back to PENDING."""
        for _ in range(UPSERT_ATTEMPTS):
            existing = self.resolve(fields.get('legacy_id') or fields['id'])
            if existing is None:
                return Document.objects.create(**fields), True

            merged = {name: value for name, value in fields.items() if name not in ('id', 'legacy_id')}
            if existing.status == Document.SIGNED:
                merged['status'] = Document.SIGNED
                merged['signed_at'] = merged.get('signed_at') or existing.signed_at
                merged['signed_pdf_url'] = merged.get('signed_pdf_url') or existing.signed_pdf_url

            # Só grava se ninguém alterou o documento desde a leitura
            updated = Document.objects.filter(pk=existing.pk, version=existing.version).update(
                **merged,
                version=F('version') + 1,
                updated_at=timezone.now(),
            )
            if updated:
                existing.refresh_from_db()
                return existing, False

        raise Conflict('Document was modified during import')

    def count(self) -> int:
        return Document.objects.count()

    def stats(self) -> Dict:
        counts = Document.objects.aggregate(
            total=Count('id'),
            signed=Count('id', filter=Q(status=Document.SIGNED)),
            pending=Count('id', filter=Q(status=Document.PENDING)),
        )

        hours = []
        signed = Document.objects.filter(status=Document.SIGNED, signed_at__isnull=False)
        for created_at, signed_at in signed.values_list('created_at', 'signed_at'):
            hours.append((signed_at - created_at).total_seconds() / 3600)
        counts['average_signature_time_hours'] = sum(hours) / len(hours) if hours else None
        return counts


class UserRepository:
    """User store. Token claims resolve by primary key first, then by e-mail."""

    @staticmethod
    def _parse_pk(identifier) -> Optional[int]:
        try:
            return int(str(identifier))
        except (TypeError, ValueError):
            return None

    def find_by_claims(self, subject=None, email: Optional[str] = None) -> Optional[User]:
        pk = self._parse_pk(subject) if subject is not None else None
        if pk is not None:
            user = User.objects.filter(pk=pk).first()
            if user is not None:
                return user

        if email:
            return User.objects.filter(email=str(email)).first()
        return None

    def find_by_email(self, email: str) -> Optional[User]:
        if not email:
            return None
        return User.objects.filter(email=User.objects.normalize_email(email)).first()

    def resolve(self, identifier) -> Optional[User]:
        pk = self._parse_pk(identifier)
        if pk is None:
            return None
        return User.objects.filter(pk=pk).first()

    def get(self, identifier) -> User:
        user = self.resolve(identifier)
        if user is None:
            raise NotFound('User not found')
        return user

    def list(self) -> List[User]:
        return list(User.objects.order_by('-created_at'))

    def create(self, email: str, password: str, name: str, role: str) -> User:
        if self.find_by_email(email) is not None:
            raise ValidationFailed('User with this email already exists')
        try:
            with transaction.atomic():
                return User.objects.create_user(email=email, password=password, name=name, role=role)
        except IntegrityError:
            raise ValidationFailed('User with this email already exists')

    def set_active(self, user: User, active: bool) -> User:
        user.active = active
        user.save(update_fields=['active'])
        return user

    def delete(self, user: User) -> None:
        user.delete()

    def update_profile(self, user: User, **fields) -> User:
        changed = [name for name, value in fields.items() if value is not None]
        for name in changed:
            setattr(user, name, fields[name])
        if changed:
            user.save(update_fields=changed)
        return user

    def count(self) -> int:
        return User.objects.count()
