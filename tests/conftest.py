import base64
import io
import pytest
from unittest.mock import Mock
from PIL import Image
from rest_framework.test import APIClient
from apps.application.services.token_service import TokenService
from apps.domain.interfaces.agreement_renderer import AgreementRenderer, RenderedPdf
from apps.domain.models import User, Document
from apps.domain.models.document import generate_sign_token


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def admin_user():
    return User.objects.create_user(
        email='boss@example.com',
        password='adminpass123',
        name='Boss',
        role=User.ADMIN
    )


@pytest.fixture
def agent_user():
    return User.objects.create_user(
        email='agent@example.com',
        password='agentpass123',
        name='Agent Smith',
        role=User.AGENT
    )


@pytest.fixture
def other_agent():
    return User.objects.create_user(
        email='other@example.com',
        password='otherpass123',
        name='Other Agent',
        role=User.AGENT
    )


@pytest.fixture
def auth_client():
    def _client(user):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {TokenService().issue(user)}')
        return client
    return _client


@pytest.fixture
def document(agent_user):
    return Document.objects.create(
        title='Service Agreement',
        agent_id=str(agent_user.pk),
        agent_name=agent_user.name,
        metadata={
            'agentId': str(agent_user.pk),
            'clientName': 'Client Co',
            'clientEmail': 'client@example.com',
        },
        sign_token=generate_sign_token()
    )


@pytest.fixture
def signature_data_url():
    buffer = io.BytesIO()
    Image.new('RGBA', (300, 120), (0, 0, 0, 0)).save(buffer, format='PNG')
    return 'data:image/png;base64,' + base64.b64encode(buffer.getvalue()).decode('ascii')


@pytest.fixture
def mock_renderer():
    renderer = Mock(spec=AgreementRenderer)
    renderer.generate_base_pdf.return_value = RenderedPdf(pdf='JVBERi0base', last_y=420.0)
    renderer.embed_signature.return_value = 'JVBERi0signed'
    return renderer


@pytest.fixture
def mock_notifier():
    notifier = Mock()
    notifier.send_agreement.return_value = True
    return notifier
