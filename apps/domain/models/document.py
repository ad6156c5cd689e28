import secrets
import time
from django.db import models
from django.utils import timezone


def generate_uid(prefix: str = 'doc') -> str:
    return f'{prefix}-{int(time.time() * 1000)}-{secrets.token_hex(4)}'


def generate_document_id() -> str:
    return generate_uid('doc')


def generate_sign_token() -> str:
    return generate_uid('sign')


class Document(models.Model):
    PENDING = 'PENDING'
    SIGNED = 'SIGNED'
    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (SIGNED, 'Signed'),
    ]

    id = models.CharField(max_length=64, primary_key=True, default=generate_document_id, editable=False)
    legacy_id = models.CharField(max_length=64, unique=True, blank=True, null=True)
    title = models.CharField(max_length=255, default='Untitled')
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=PENDING)
    created_at = models.DateTimeField(default=timezone.now)
    signed_at = models.DateTimeField(blank=True, null=True)
    signer_ip = models.CharField(max_length=64, blank=True, null=True)
    signer_gmail = models.CharField(max_length=255, blank=True, null=True)
    file_url = models.TextField(blank=True, null=True)
    signed_pdf_url = models.TextField(blank=True, null=True)
    agent_id = models.CharField(max_length=64, blank=True, default='')
    agent_name = models.CharField(max_length=255, blank=True, default='')
    metadata = models.JSONField(default=dict, blank=True)
    sign_token = models.CharField(max_length=128, blank=True, null=True)
    version = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'documents'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['agent_id'], name='documents_agent_id_idx'),
            models.Index(fields=['status'], name='documents_status_idx'),
        ]

    def __str__(self):
        return f"{self.title} ({self.status})"

    @property
    def is_signed(self) -> bool:
        return self.status == self.SIGNED

    @property
    def owner_ids(self) -> set:
        ids = {str(self.agent_id or '')}
        ids.add(str((self.metadata or {}).get('agentId') or ''))
        ids.discard('')
        return ids

    def is_owned_by(self, user_id) -> bool:
        return bool(user_id) and str(user_id) in self.owner_ids
