"""Normalizes stored or imported document records into the canonical document shape.

Legacy records come from several generations of the signing frontend and the
old document collection, so field names and value types vary. Every function
here is pure and degrades to a default instead of raising.
"""
import re
from datetime import datetime, date, timezone as dt_timezone
from typing import Any, Dict, Optional

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

PENDING = 'PENDING'
SIGNED = 'SIGNED'

OBJECT_ID_PATTERN = re.compile(r'^[0-9a-fA-F]{24}$')

CREATED_AT_FIELDS = ('createdAt', 'created_at', 'dateCreated')
SIGNED_AT_FIELDS = ('signedAt', 'signed_at')
TITLE_FIELDS = ('title', 'name', 'documentTitle')
FILE_FIELDS = ('fileUrl', 'pdfUrl', 'base64', 'file')
LOOSE_METADATA_FIELDS = ('clientName', 'clientEmail', 'projectName', 'agencyName', 'agencyEmail')


def normalize_status(value: Any) -> str:
    if value is None:
        return PENDING
    return SIGNED if str(value).strip().upper() == SIGNED else PENDING


def parse_object_id(value: Any) -> Optional[str]:
    if value is None:
        return None
    candidate = str(value).strip()
    if OBJECT_ID_PATTERN.match(candidate):
        return candidate.lower()
    return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parses epoch milliseconds, datetime/date objects and ISO strings."""
    if value is None or value == '' or isinstance(value, bool):
        return None

    if isinstance(value, dict) and '$date' in value:
        return parse_timestamp(value['$date'])

    if isinstance(value, datetime):
        return value if timezone.is_aware(value) else timezone.make_aware(value, dt_timezone.utc)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=dt_timezone.utc)

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=dt_timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    text = str(value).strip()
    if text.isdigit():
        return parse_timestamp(int(text))

    try:
        parsed = parse_datetime(text.replace('Z', '+00:00'))
    except ValueError:
        parsed = None
    if parsed is not None:
        return parse_timestamp(parsed)

    try:
        parsed_date = parse_date(text)
    except ValueError:
        parsed_date = None
    if parsed_date is not None:
        return parse_timestamp(parsed_date)

    return None


def to_millis(value: Optional[datetime]) -> Optional[int]:
    if value is None:
        return None
    return int(value.timestamp() * 1000)


def _first(record: Dict, fields) -> Any:
    for field in fields:
        value = record.get(field)
        if value:
            return value
    return None


def _first_timestamp(record: Dict, fields) -> Optional[datetime]:
    for field in fields:
        parsed = parse_timestamp(record.get(field))
        if parsed is not None:
            return parsed
    return None


def _raw_identifier(value: Any) -> Optional[str]:
    # Exportações do Mongo trazem {"$oid": "..."}
    if isinstance(value, dict):
        value = value.get('$oid')
    if value is None or value == '':
        return None
    return str(value)


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == '':
        return None
    return str(value)


def map_record(record: Any) -> Dict[str, Any]:
    """Maps an arbitrary stored record to the canonical document fields."""
    if not isinstance(record, dict):
        record = {}

    provider_id = _raw_identifier(record.get('_id'))
    supplied_id = _raw_identifier(record.get('id'))
    document_id = provider_id or supplied_id or ''

    metadata = record.get('metadata')
    if not isinstance(metadata, dict):
        metadata = {field: record.get(field) for field in LOOSE_METADATA_FIELDS}

    agent_id = record.get('agentId') or metadata.get('agentId') or ''

    return {
        'id': document_id,
        'legacy_id': parse_object_id(provider_id),
        'title': str(_first(record, TITLE_FIELDS) or 'Untitled'),
        'status': normalize_status(record.get('status')),
        'created_at': _first_timestamp(record, CREATED_AT_FIELDS) or timezone.now(),
        'signed_at': _first_timestamp(record, SIGNED_AT_FIELDS),
        'signer_ip': _optional_str(record.get('signerIP')),
        'signer_gmail': _optional_str(record.get('signerGmail')),
        'file_url': _optional_str(_first(record, FILE_FIELDS)),
        'signed_pdf_url': _optional_str(record.get('signedPdfUrl')),
        'agent_id': str(agent_id),
        'agent_name': str(record.get('agentName') or ''),
        'metadata': metadata,
        'sign_token': _optional_str(record.get('signToken')),
    }
