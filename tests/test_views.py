import pytest
from unittest.mock import patch
from apps.domain.interfaces.agreement_renderer import RenderedPdf
from apps.domain.models import User, Document


@pytest.fixture
def stub_pdf():
    with patch('apps.application.services.signing_service.AgreementPdfRenderer') as renderer_class:
        renderer = renderer_class.return_value
        renderer.generate_base_pdf.return_value = RenderedPdf(pdf='JVBERi0base', last_y=500.0)
        renderer.embed_signature.return_value = 'JVBERi0signed'
        yield renderer


@pytest.mark.django_db
class TestAuthEndpoints:
    def test_register_agent(self, api_client):
        response = api_client.post('/api/auth/register/', {
            'name': 'New Agent', 'email': 'new@example.com', 'password': 'secret123'
        }, format='json')

        assert response.status_code == 201
        assert response.data['user']['email'] == 'new@example.com'
        assert response.data['user']['role'] == 'agent'
        assert 'password' not in response.data['user']

    def test_register_duplicate(self, api_client, agent_user):
        response = api_client.post('/api/auth/register/', {
            'email': agent_user.email, 'password': 'secret123'
        }, format='json')

        assert response.status_code == 400
        assert response.data == {'error': 'User with this email already exists', 'status': 400}

    def test_register_missing_fields(self, api_client):
        response = api_client.post('/api/auth/register/', {}, format='json')
        assert response.status_code == 400
        assert response.data['error'] == 'Email and password are required'

    def test_register_admin_requires_admin(self, api_client, auth_client, admin_user):
        payload = {'email': 'second-admin@example.com', 'password': 'secret123', 'role': 'admin'}

        assert api_client.post('/api/auth/register/', payload, format='json').status_code == 403

        response = auth_client(admin_user).post('/api/auth/register/', payload, format='json')
        assert response.status_code == 201
        assert response.data['user']['role'] == 'admin'

    def test_login(self, api_client, agent_user):
        response = api_client.post('/api/auth/login/', {
            'email': 'agent@example.com', 'password': 'agentpass123'
        }, format='json')

        assert response.status_code == 200
        assert response.data['token']
        assert response.data['user']['id'] == str(agent_user.pk)

        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {response.data["token"]}')
        me = api_client.get('/api/auth/me/')
        assert me.status_code == 200
        assert me.data['user']['email'] == 'agent@example.com'

    def test_login_invalid_credentials(self, api_client, agent_user):
        response = api_client.post('/api/auth/login/', {
            'email': 'agent@example.com', 'password': 'wrong'
        }, format='json')
        assert response.status_code == 401
        assert response.data['error'] == 'Invalid credentials'

    def test_default_admin_can_login(self, api_client):
        response = api_client.post('/api/auth/login/', {
            'email': 'admin@example.com', 'password': 'Passw0rd!'
        }, format='json')
        assert response.status_code == 200
        assert response.data['user']['role'] == 'admin'

    def test_me_requires_auth(self, api_client):
        response = api_client.get('/api/auth/me/')
        assert response.status_code == 401
        assert response['WWW-Authenticate'] == 'Bearer'

    def test_me_with_garbage_token(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION='Bearer garbage')
        assert api_client.get('/api/auth/me/').status_code == 401

    @patch('apps.presentation.views.IdentityProviderFacade')
    def test_google_verify(self, mock_facade_class, api_client, document):
        mock_facade_class.return_value.verify_signer.return_value = 'client@example.com'

        response = api_client.post('/api/auth/google-verify/', {
            'idToken': 'id-token', 'docId': document.pk
        }, format='json')

        assert response.status_code == 200
        assert response.data == {'ok': True, 'email': 'client@example.com'}
        mock_facade_class.return_value.verify_signer.assert_called_once_with(document.pk, 'id-token')

    @patch('apps.infrastructure.providers.google_strategy.requests.get')
    def test_google_verify_mismatch(self, mock_get, api_client, settings, document):
        from apps.infrastructure.providers.factory import IdentityProviderFactory
        settings.GOOGLE_CLIENT_ID = 'client-1'
        IdentityProviderFactory().clear_cache()
        mock_get.return_value.status_code = 200
        mock_get.return_value.json.return_value = {
            'aud': 'client-1', 'email': 'intruder@example.com', 'email_verified': 'true'
        }

        response = api_client.post('/api/auth/google-verify/', {
            'idToken': 'id-token', 'docId': document.pk
        }, format='json')

        IdentityProviderFactory().clear_cache()
        assert response.status_code == 403
        assert response.data['error'] == 'Access denied. This document is assigned to client@example.com.'


@pytest.mark.django_db
class TestDocumentEndpoints:
    def test_requires_authentication(self, api_client):
        assert api_client.get('/api/documents/').status_code == 401

    def test_create_document(self, auth_client, agent_user, mailoutbox):
        response = auth_client(agent_user).post('/api/documents/', {
            'title': 'Website',
            'metadata': {'clientName': 'Jane', 'clientEmail': 'jane@example.com', 'agentId': '999'}
        }, format='json')

        assert response.status_code == 201
        document = response.data['document']
        assert document['status'] == 'PENDING'
        assert document['agentId'] == str(agent_user.pk)
        assert document['signToken'].startswith('sign-')
        assert isinstance(document['createdAt'], int)
        assert document['signedAt'] is None
        assert response.data['notified'] is True
        assert len(mailoutbox) == 1
        assert document['signToken'] in mailoutbox[0].body

    def test_create_document_invalid_client_email(self, auth_client, agent_user):
        response = auth_client(agent_user).post('/api/documents/', {
            'metadata': {'clientEmail': 'not-an-email'}
        }, format='json')
        assert response.status_code == 400

    def test_list_documents_ownership(self, auth_client, agent_user, other_agent, document):
        Document.objects.create(title='Not mine', agent_id=str(other_agent.pk))

        response = auth_client(agent_user).get('/api/documents/')

        assert response.status_code == 200
        assert [d['id'] for d in response.data['documents']] == [document.pk]

    def test_admin_lists_everything(self, auth_client, admin_user, other_agent, document):
        Document.objects.create(title='Not mine', agent_id=str(other_agent.pk))
        response = auth_client(admin_user).get('/api/documents/', {'status': 'PENDING'})
        assert len(response.data['documents']) == 2

    def test_retrieve_forbidden(self, auth_client, other_agent, document):
        response = auth_client(other_agent).get(f'/api/documents/{document.pk}/')
        assert response.status_code == 403
        assert response.data == {'error': 'Forbidden', 'status': 403}

    def test_retrieve_not_found(self, auth_client, agent_user):
        response = auth_client(agent_user).get('/api/documents/doc-missing/')
        assert response.status_code == 404

    def test_public_document(self, api_client, document):
        response = api_client.get(f'/api/documents/{document.pk}/public/', {'token': document.sign_token})
        assert response.status_code == 200
        assert response.data['document']['id'] == document.pk

    def test_public_document_wrong_token(self, api_client, document):
        response = api_client.get(f'/api/documents/{document.pk}/public/', {'token': 'sign-wrong'})
        assert response.status_code == 401
        assert response.data['error'] == 'Invalid token'

        assert api_client.get(f'/api/documents/{document.pk}/public/').status_code == 401

    def test_resend_rotates_token(self, auth_client, api_client, agent_user, document):
        old_token = document.sign_token

        response = auth_client(agent_user).post(f'/api/documents/{document.pk}/resend/')

        assert response.status_code == 201
        new_token = response.data['document']['signToken']
        assert new_token != old_token
        assert api_client.get(f'/api/documents/{document.pk}/public/', {'token': old_token}).status_code == 401
        assert api_client.get(f'/api/documents/{document.pk}/public/', {'token': new_token}).status_code == 200

    def test_resend_forbidden(self, auth_client, other_agent, document):
        response = auth_client(other_agent).post(f'/api/documents/{document.pk}/resend/')
        assert response.status_code == 403

    def test_sign_document(self, api_client, document, stub_pdf, signature_data_url):
        response = api_client.post(f'/api/documents/{document.pk}/sign/', {
            'dataUrl': signature_data_url, 'token': document.sign_token
        }, format='json', REMOTE_ADDR='203.0.113.7')

        assert response.status_code == 200
        signed = response.data['document']
        assert signed['status'] == 'SIGNED'
        assert signed['signedPdfUrl'] == 'JVBERi0signed'
        assert signed['signerGmail'] == 'client@example.com'
        assert signed['signerIP'] == '203.0.113.7'
        assert isinstance(signed['signedAt'], int)

    def test_sign_uses_forwarded_ip(self, api_client, document, stub_pdf, signature_data_url):
        response = api_client.post(f'/api/documents/{document.pk}/sign/', {
            'dataUrl': signature_data_url
        }, format='json', HTTP_X_FORWARDED_FOR='198.51.100.1, 10.0.0.1')
        assert response.data['document']['signerIP'] == '198.51.100.1'

    def test_sign_twice_conflicts(self, api_client, document, stub_pdf, signature_data_url):
        url = f'/api/documents/{document.pk}/sign/'
        assert api_client.post(url, {'dataUrl': signature_data_url}, format='json').status_code == 200

        response = api_client.post(url, {'dataUrl': signature_data_url}, format='json')

        assert response.status_code == 409
        assert response.data['error'] == 'Document is already signed'

    def test_sign_wrong_token(self, api_client, document, stub_pdf, signature_data_url):
        response = api_client.post(f'/api/documents/{document.pk}/sign/', {
            'dataUrl': signature_data_url, 'token': 'sign-wrong'
        }, format='json')
        assert response.status_code == 401
        document.refresh_from_db()
        assert document.status == Document.PENDING

    def test_sign_render_failure_is_internal(self, api_client, document, stub_pdf, signature_data_url):
        stub_pdf.embed_signature.side_effect = RuntimeError('/tmp/secret/path exploded')

        response = api_client.post(f'/api/documents/{document.pk}/sign/', {
            'dataUrl': signature_data_url
        }, format='json')

        assert response.status_code == 500
        assert response.data == {'error': 'Failed to sign document', 'status': 500}
        document.refresh_from_db()
        assert document.status == Document.PENDING

    def test_sign_with_real_renderer(self, api_client, document, signature_data_url):
        response = api_client.post(f'/api/documents/{document.pk}/sign/', {
            'dataUrl': signature_data_url
        }, format='json')

        assert response.status_code == 200
        assert response.data['document']['signedPdfUrl'].startswith('JVBERi0')

    def test_sign_missing_signature(self, api_client, document):
        response = api_client.post(f'/api/documents/{document.pk}/sign/', {}, format='json')
        assert response.status_code == 400

    def test_delete_requires_admin(self, auth_client, agent_user, admin_user, document):
        assert auth_client(agent_user).delete(f'/api/documents/{document.pk}/').status_code == 403

        response = auth_client(admin_user).delete(f'/api/documents/{document.pk}/')
        assert response.status_code == 200
        assert not Document.objects.filter(pk=document.pk).exists()

        assert auth_client(admin_user).delete(f'/api/documents/{document.pk}/').status_code == 404

    def test_import_documents(self, auth_client, admin_user):
        response = auth_client(admin_user).post('/api/documents/import/', {
            'documents': [
                {'id': 'doc-imported', 'title': 'Imported', 'createdAt': 1700000000000},
                {'_id': '65a1b2c3d4e5f6a7b8c9d0e1', 'name': 'Legacy', 'status': 'SIGNED'},
            ]
        }, format='json')

        assert response.status_code == 200
        assert response.data['ok'] is True
        assert response.data['added'] == 2
        assert response.data['total'] == 2
        assert Document.objects.get(pk='doc-imported').title == 'Imported'

        legacy = auth_client(admin_user).get('/api/documents/65a1b2c3d4e5f6a7b8c9d0e1/')
        assert legacy.data['document']['status'] == 'SIGNED'

    def test_import_accepts_plain_list(self, auth_client, admin_user):
        response = auth_client(admin_user).post('/api/documents/import/', [{'id': 'doc-a'}], format='json')
        assert response.data['results'] == [{'itemId': 'doc-a', 'outcome': 'created'}]

    def test_import_rejects_invalid_payload(self, auth_client, admin_user):
        response = auth_client(admin_user).post('/api/documents/import/', {'documents': 'nope'}, format='json')
        assert response.status_code == 400
        assert response.data['error'] == 'Invalid payload'

    def test_import_without_documents_is_empty(self, auth_client, admin_user):
        for payload in ({}, {'documents': None}):
            response = auth_client(admin_user).post('/api/documents/import/', payload, format='json')
            assert response.status_code == 200
            assert response.data['added'] == 0
            assert response.data['results'] == []

    def test_import_requires_admin(self, auth_client, agent_user):
        response = auth_client(agent_user).post('/api/documents/import/', [], format='json')
        assert response.status_code == 403

    def test_stats(self, auth_client, admin_user, document):
        Document.objects.create(title='Done', status=Document.SIGNED, signed_at=document.created_at)

        response = auth_client(admin_user).get('/api/documents/stats/')

        assert response.status_code == 200
        assert response.data['total_documents'] == 2
        assert response.data['signed_documents'] == 1
        assert response.data['pending_documents'] == 1
        assert response.data['signature_rate'] == 50.0
        assert response.data['total_users'] == User.objects.count()


@pytest.mark.django_db
class TestUserEndpoints:
    def test_list_users_admin_only(self, auth_client, admin_user, agent_user):
        assert auth_client(agent_user).get('/api/users/').status_code == 403

        response = auth_client(admin_user).get('/api/users/')
        assert response.status_code == 200
        emails = [u['email'] for u in response.data['users']]
        assert 'agent@example.com' in emails
        assert 'admin@example.com' in emails

    def test_toggle_blocks_authentication(self, auth_client, admin_user, agent_user, api_client):
        agent_client = auth_client(agent_user)
        assert agent_client.get('/api/documents/').status_code == 200

        response = auth_client(admin_user).patch(f'/api/users/{agent_user.pk}/toggle/')
        assert response.status_code == 200
        assert response.data == {'ok': True, 'active': False}

        # O token antigo deixa de valer imediatamente
        assert agent_client.get('/api/documents/').status_code == 401
        login = api_client.post('/api/auth/login/', {
            'email': 'agent@example.com', 'password': 'agentpass123'
        }, format='json')
        assert login.status_code == 401

        response = auth_client(admin_user).patch(f'/api/users/{agent_user.pk}/toggle/')
        assert response.data['active'] is True
        assert agent_client.get('/api/documents/').status_code == 200

    def test_toggle_missing_user(self, auth_client, admin_user):
        response = auth_client(admin_user).patch('/api/users/987654/toggle/')
        assert response.status_code == 404
        assert response.data['error'] == 'User not found'

    def test_delete_admin_rejected(self, auth_client, admin_user):
        seeded = User.objects.get(email='admin@example.com')

        response = auth_client(admin_user).delete(f'/api/users/{seeded.pk}/')

        assert response.status_code == 400
        assert response.data['error'] == 'Cannot delete admin user'
        assert User.objects.filter(pk=seeded.pk).exists()

    def test_delete_agent(self, auth_client, admin_user, agent_user):
        response = auth_client(admin_user).delete(f'/api/users/{agent_user.pk}/')
        assert response.status_code == 200
        assert not User.objects.filter(pk=agent_user.pk).exists()

    def test_update_profile(self, auth_client, agent_user):
        response = auth_client(agent_user).post('/api/users/profile/', {
            'name': 'Renamed Agent', 'signature': 'data:image/png;base64,AAAA'
        }, format='json')

        assert response.status_code == 200
        assert response.data['user']['name'] == 'Renamed Agent'
        assert response.data['user']['signature'] == 'data:image/png;base64,AAAA'

    def test_update_profile_requires_auth(self, api_client):
        assert api_client.post('/api/users/profile/', {}, format='json').status_code == 401


@pytest.mark.django_db
class TestHealth:
    def test_health_check(self, api_client, document):
        response = api_client.get('/health/')
        assert response.status_code == 200
        assert response.data == {'status': 'ok', 'database': 'healthy', 'documents': 1}


@pytest.mark.django_db
class TestDocumentAdmin:
    def test_signed_document_status_is_read_only(self, client, admin_user, document):
        Document.objects.filter(pk=document.pk).update(
            status=Document.SIGNED, signed_pdf_url='JVBERi0signed', signed_at=document.created_at
        )
        client.force_login(admin_user)
        url = f'/admin/domain/document/{document.pk}/change/'

        page = client.get(url)
        assert page.status_code == 200
        assert 'name="status"' not in page.content.decode()

        response = client.post(url, {
            'title': 'Edited',
            'legacy_id': '',
            'file_url': '',
            'metadata': '{}',
            'agent_id': document.agent_id,
            'agent_name': document.agent_name,
            'status': Document.PENDING,
        })

        assert response.status_code == 302
        document.refresh_from_db()
        assert document.title == 'Edited'
        assert document.status == Document.SIGNED
        assert document.signed_pdf_url == 'JVBERi0signed'
