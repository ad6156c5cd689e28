from datetime import datetime, timezone as dt_timezone
from apps.domain.mappers import map_record, normalize_status, parse_object_id, parse_timestamp, to_millis


class TestMapRecord:
    def test_object_id_takes_precedence(self):
        mapped = map_record({'_id': {'$oid': '65a1b2c3d4e5f6a7b8c9d0e1'}, 'id': 'doc-1'})
        assert mapped['id'] == '65a1b2c3d4e5f6a7b8c9d0e1'
        assert mapped['legacy_id'] == '65a1b2c3d4e5f6a7b8c9d0e1'

    def test_falls_back_to_id(self):
        mapped = map_record({'id': 'doc-1'})
        assert mapped['id'] == 'doc-1'
        assert mapped['legacy_id'] is None

    def test_empty_record(self):
        mapped = map_record({})
        assert mapped['id'] == ''
        assert mapped['title'] == 'Untitled'
        assert mapped['status'] == 'PENDING'
        assert mapped['created_at'] is not None
        assert mapped['signed_at'] is None

    def test_non_dict_never_raises(self):
        assert map_record(None)['title'] == 'Untitled'
        assert map_record('garbage')['id'] == ''

    def test_title_fallbacks(self):
        assert map_record({'name': 'From name'})['title'] == 'From name'
        assert map_record({'documentTitle': 'From doc title'})['title'] == 'From doc title'

    def test_status_normalization(self):
        assert map_record({'status': 'signed'})['status'] == 'SIGNED'
        assert map_record({'status': 'DRAFT'})['status'] == 'PENDING'
        assert normalize_status(None) == 'PENDING'

    def test_created_at_sources(self):
        expected = datetime(2024, 1, 2, 3, 4, 5, tzinfo=dt_timezone.utc)
        millis = int(expected.timestamp() * 1000)
        assert map_record({'createdAt': millis})['created_at'] == expected
        assert map_record({'created_at': '2024-01-02T03:04:05Z'})['created_at'] == expected
        assert map_record({'dateCreated': {'$date': millis}})['created_at'] == expected

    def test_file_url_fallbacks(self):
        assert map_record({'pdfUrl': 'https://x/a.pdf'})['file_url'] == 'https://x/a.pdf'
        assert map_record({'base64': 'JVBERi0xx'})['file_url'] == 'JVBERi0xx'

    def test_metadata_synthesized_from_loose_fields(self):
        mapped = map_record({'clientName': 'Ana', 'clientEmail': 'ana@example.com', 'agentId': '3'})
        assert mapped['metadata']['clientName'] == 'Ana'
        assert mapped['metadata']['clientEmail'] == 'ana@example.com'
        assert mapped['agent_id'] == '3'

    def test_agent_from_metadata(self):
        mapped = map_record({'metadata': {'agentId': 12}})
        assert mapped['agent_id'] == '12'
        assert mapped['agent_name'] == ''


class TestParsers:
    def test_parse_object_id(self):
        assert parse_object_id('65A1B2C3D4E5F6A7B8C9D0E1') == '65a1b2c3d4e5f6a7b8c9d0e1'
        assert parse_object_id('doc-123') is None
        assert parse_object_id(None) is None

    def test_parse_timestamp_invalid(self):
        assert parse_timestamp('not a date') is None
        assert parse_timestamp('') is None
        assert parse_timestamp(True) is None

    def test_to_millis_round_trip(self):
        value = datetime(2024, 5, 1, tzinfo=dt_timezone.utc)
        assert parse_timestamp(to_millis(value)) == value
        assert to_millis(None) is None
