import logging
from rest_framework import viewsets, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiParameter, OpenApiExample
from drf_spectacular.types import OpenApiTypes
from apps.application.facades.identity_provider_facade import IdentityProviderFacade
from apps.application.services.account_service import AccountService
from apps.application.services.signing_service import SigningService
from apps.domain.exceptions import SignFlowError
from apps.presentation.permissions import IsAdmin, IsAdminOrAgent
from apps.presentation.serializers import (
    DocumentSerializer, DocumentCreateSerializer, SignDocumentSerializer, UserSerializer,
    RegisterSerializer, LoginSerializer, GoogleVerifySerializer, ProfileSerializer
)
from apps.presentation.stats import get_document_metrics
from apps.presentation.utils import error_response, client_ip

logger = logging.getLogger('apps')

DOCUMENT_RESPONSE = {
    'type': 'object',
    'properties': {
        'document': {'type': 'object', 'description': 'Documento no formato da API'},
    },
}


def invalid_payload(serializer) -> Response:
    return error_response('Invalid payload', status.HTTP_400_BAD_REQUEST, serializer.errors)


def internal_error(message: str, exc: Exception) -> Response:
    logger.error(f'{message}: {str(exc)}', exc_info=True)
    return error_response(message, status.HTTP_500_INTERNAL_SERVER_ERROR)


@extend_schema(
    summary='Cadastrar usuário',
    description='Cria um novo usuário. Qualquer pessoa pode criar um agente; criar um administrador exige um token de administrador.',
    tags=['Autenticação'],
    request=RegisterSerializer,
    responses={201: {'type': 'object', 'properties': {'user': {'type': 'object'}}}, 400: OpenApiTypes.OBJECT, 403: OpenApiTypes.OBJECT},
    examples=[
        OpenApiExample(
            'Cadastro de agente',
            value={'name': 'Maria Santos', 'email': 'maria@example.com', 'password': 'senha123', 'role': 'agent'}
        ),
    ],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    serializer = RegisterSerializer(data=request.data)
    if not serializer.is_valid():
        if 'email' in serializer.errors and 'password' in serializer.errors:
            return error_response('Email and password are required', status.HTTP_400_BAD_REQUEST)
        return invalid_payload(serializer)

    try:
        user = AccountService().register(caller=request.user, **serializer.validated_data)
    except SignFlowError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        return internal_error('Failed to register user', e)

    return Response({'user': UserSerializer(user).data}, status=status.HTTP_201_CREATED)


@extend_schema(
    summary='Obter token de acesso',
    description='Autentica com e-mail e senha e retorna um token JWT. Use-o no header "Authorization: Bearer <token>".',
    tags=['Autenticação'],
    request=LoginSerializer,
    responses={
        200: {
            'type': 'object',
            'properties': {
                'token': {'type': 'string', 'description': 'Token JWT (validade de 30 dias)'},
                'user': {'type': 'object', 'description': 'Usuário autenticado'},
            }
        },
        401: OpenApiTypes.OBJECT,
    },
)
@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    serializer = LoginSerializer(data=request.data)
    if not serializer.is_valid():
        return error_response('Invalid credentials', status.HTTP_401_UNAUTHORIZED)

    try:
        token, user = AccountService().login(**serializer.validated_data)
    except SignFlowError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        return internal_error('Login failed', e)

    return Response({'token': token, 'user': UserSerializer(user).data}, status=status.HTTP_200_OK)


@extend_schema(
    summary='Usuário autenticado',
    description='Retorna o usuário dono do token enviado.',
    tags=['Autenticação'],
    responses={200: {'type': 'object', 'properties': {'user': {'type': 'object'}}}, 401: OpenApiTypes.OBJECT},
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me(request):
    return Response({'user': UserSerializer(request.user).data}, status=status.HTTP_200_OK)


@extend_schema(
    summary='Verificar identidade do cliente',
    description='Valida um ID token do Google e confirma que o e-mail corresponde ao cliente do documento.',
    tags=['Autenticação'],
    request=GoogleVerifySerializer,
    responses={
        200: {'type': 'object', 'properties': {'ok': {'type': 'boolean'}, 'email': {'type': 'string'}}},
        400: OpenApiTypes.OBJECT,
        403: OpenApiTypes.OBJECT,
        404: OpenApiTypes.OBJECT,
    },
)
@api_view(['POST'])
@permission_classes([AllowAny])
def google_verify(request):
    try:
        email = IdentityProviderFacade().verify_signer(
            request.data.get('docId'),
            request.data.get('idToken'),
        )
    except SignFlowError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        return internal_error('Google verification failed', e)

    return Response({'ok': True, 'email': email}, status=status.HTTP_200_OK)


@extend_schema_view(
    list=extend_schema(
        summary='Listar documentos',
        description='Lista os documentos mais recentes (até 1000). Agentes veem apenas os próprios documentos.',
        tags=['Documents'],
        parameters=[
            OpenApiParameter('status', OpenApiTypes.STR, description='Filtra por status (PENDING ou SIGNED)'),
            OpenApiParameter('agentId', OpenApiTypes.STR, description='Filtra por agente (somente administradores)'),
            OpenApiParameter('clientId', OpenApiTypes.STR, description='Filtra por metadata.clientId'),
        ],
        responses={200: {'type': 'object', 'properties': {'documents': {'type': 'array', 'items': {'type': 'object'}}}}},
    ),
    create=extend_schema(
        summary='Criar documento',
        description='Cria um contrato pendente, gera o token de assinatura e envia o link ao e-mail do cliente, se informado.',
        tags=['Documents'],
        request=DocumentCreateSerializer,
        responses={201: DOCUMENT_RESPONSE, 400: OpenApiTypes.OBJECT},
        examples=[
            OpenApiExample(
                'Criar contrato',
                value={
                    'title': 'Contrato de Prestação de Serviços',
                    'metadata': {
                        'clientName': 'João Silva',
                        'clientEmail': 'joao@example.com',
                        'projectName': 'Website institucional'
                    }
                }
            ),
        ],
    ),
    retrieve=extend_schema(
        summary='Obter documento',
        description='Retorna um documento. Agentes só podem acessar os próprios documentos.',
        tags=['Documents'],
        responses={200: DOCUMENT_RESPONSE, 403: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT},
    ),
    destroy=extend_schema(
        summary='Excluir documento',
        description='Remove um documento (somente administradores).',
        tags=['Documents'],
        responses={200: {'type': 'object', 'properties': {'ok': {'type': 'boolean'}}}, 404: OpenApiTypes.OBJECT},
    ),
)
class DocumentViewSet(viewsets.ViewSet):
    lookup_value_regex = '[^/]+'

    def get_permissions(self):
        if self.action in ('public', 'sign'):
            return [AllowAny()]
        if self.action in ('destroy', 'import_documents', 'stats'):
            return [IsAdmin()]
        return [IsAdminOrAgent()]

    def get_service(self) -> SigningService:
        return SigningService()

    def list(self, request):
        try:
            documents = self.get_service().list_documents(
                request.user,
                status=request.query_params.get('status'),
                agent_id=request.query_params.get('agentId'),
                client_id=request.query_params.get('clientId'),
            )
        except Exception as e:
            return internal_error('Failed to list documents', e)
        return Response({'documents': DocumentSerializer(documents, many=True).data}, status=status.HTTP_200_OK)

    def create(self, request):
        serializer = DocumentCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_payload(serializer)

        data = serializer.validated_data
        try:
            document, notified = self.get_service().create_document(
                request.user,
                title=data.get('title'),
                file_url=data.get('fileUrl'),
                metadata=data.get('metadata'),
            )
        except SignFlowError as e:
            return error_response(e.message, e.status_code)
        except Exception as e:
            return internal_error('Failed to create document', e)

        return Response(
            {'document': DocumentSerializer(document).data, 'notified': notified},
            status=status.HTTP_201_CREATED
        )

    def retrieve(self, request, pk=None):
        try:
            document = self.get_service().get_document(request.user, pk)
        except SignFlowError as e:
            return error_response(e.message, e.status_code)
        except Exception as e:
            return internal_error('Failed to fetch document', e)
        return Response({'document': DocumentSerializer(document).data}, status=status.HTTP_200_OK)

    def destroy(self, request, pk=None):
        try:
            self.get_service().delete_document(pk)
        except SignFlowError as e:
            return error_response(e.message, e.status_code)
        except Exception as e:
            return internal_error('Failed to delete document', e)
        return Response({'ok': True}, status=status.HTTP_200_OK)

    @extend_schema(
        summary='Abrir documento pelo link de assinatura',
        description='Endpoint público usado pela página de assinatura. Exige o token exato do link.',
        tags=['Documents'],
        parameters=[OpenApiParameter('token', OpenApiTypes.STR, required=True, description='Token do link de assinatura')],
        responses={200: DOCUMENT_RESPONSE, 401: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT},
    )
    @action(detail=True, methods=['get'], authentication_classes=[])
    def public(self, request, pk=None):
        try:
            document = self.get_service().get_public_document(pk, request.query_params.get('token'))
        except SignFlowError as e:
            return error_response(e.message, e.status_code)
        except Exception as e:
            return internal_error('Failed to load document', e)
        return Response({'document': DocumentSerializer(document).data}, status=status.HTTP_200_OK)

    @extend_schema(
        summary='Reenviar link de assinatura',
        description='Gera um novo token (o link anterior deixa de funcionar) e reenvia o e-mail ao cliente.',
        tags=['Documents'],
        request=None,
        responses={201: DOCUMENT_RESPONSE, 403: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT},
    )
    @action(detail=True, methods=['post'])
    def resend(self, request, pk=None):
        try:
            document, notified = self.get_service().resend(request.user, pk)
        except SignFlowError as e:
            return error_response(e.message, e.status_code)
        except Exception as e:
            return internal_error('Failed to resend document', e)
        return Response(
            {'document': DocumentSerializer(document).data, 'notified': notified},
            status=status.HTTP_201_CREATED
        )

    @extend_schema(
        summary='Assinar documento',
        description='Incorpora a assinatura do cliente ao PDF (enviado ou gerado) e marca o documento como assinado. '
                    'Um documento já assinado retorna 409.',
        tags=['Documents'],
        request=SignDocumentSerializer,
        responses={
            200: DOCUMENT_RESPONSE,
            401: OpenApiTypes.OBJECT,
            404: OpenApiTypes.OBJECT,
            409: OpenApiTypes.OBJECT,
            500: OpenApiTypes.OBJECT,
        },
    )
    @action(detail=True, methods=['post'], authentication_classes=[])
    def sign(self, request, pk=None):
        serializer = SignDocumentSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_payload(serializer)

        data = serializer.validated_data
        try:
            document = self.get_service().sign(
                pk,
                data['dataUrl'],
                presented_token=data.get('token'),
                signer_email=data.get('signerEmail'),
                signer_ip=client_ip(request),
            )
        except SignFlowError as e:
            return error_response(e.message, e.status_code)
        except Exception as e:
            return internal_error('Failed to sign document', e)
        return Response({'document': DocumentSerializer(document).data}, status=status.HTTP_200_OK)

    @extend_schema(
        summary='Importar documentos',
        description='Importa (cria ou mescla) documentos de um export legado. Aceita uma lista ou {"documents": [...]}. '
                    'Cada item é processado isoladamente; documentos assinados nunca voltam a pendente.',
        tags=['Documents'],
        request={'application/json': {'type': 'array', 'items': {'type': 'object'}}},
        responses={
            200: {
                'type': 'object',
                'properties': {
                    'ok': {'type': 'boolean'},
                    'added': {'type': 'integer', 'description': 'Documentos criados'},
                    'total': {'type': 'integer', 'description': 'Total de documentos após a importação'},
                    'results': {'type': 'array', 'description': 'Resultado por item (created/updated/skipped/failed)'},
                }
            },
            400: OpenApiTypes.OBJECT,
        },
    )
    @action(detail=False, methods=['post'], url_path='import')
    def import_documents(self, request):
        items = request.data
        if isinstance(items, dict):
            items = items.get('documents') or []
        try:
            result = self.get_service().import_documents(items)
        except SignFlowError as e:
            return error_response(e.message, e.status_code)
        except Exception as e:
            return internal_error('Failed to import documents', e)
        return Response(result, status=status.HTTP_200_OK)

    @extend_schema(
        summary='Obter métricas',
        description='Retorna totais de usuários e documentos, taxa de assinatura e tempo médio até a assinatura.',
        tags=['Documents'],
        responses={200: {'type': 'object', 'description': 'Métricas agregadas'}},
    )
    @action(detail=False, methods=['get'])
    def stats(self, request):
        try:
            metrics = get_document_metrics()
        except Exception as e:
            return internal_error('Failed to load stats', e)
        return Response(metrics, status=status.HTTP_200_OK)


@extend_schema_view(
    list=extend_schema(
        summary='Listar usuários',
        description='Lista todos os usuários, do mais recente ao mais antigo (somente administradores).',
        tags=['Users'],
        responses={200: {'type': 'object', 'properties': {'users': {'type': 'array', 'items': {'type': 'object'}}}}},
    ),
    destroy=extend_schema(
        summary='Excluir usuário',
        description='Remove um usuário. Administradores não podem ser excluídos.',
        tags=['Users'],
        responses={200: {'type': 'object', 'properties': {'ok': {'type': 'boolean'}}}, 400: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT},
    ),
)
class UserViewSet(viewsets.ViewSet):
    def get_permissions(self):
        if self.action == 'profile':
            return [IsAuthenticated()]
        return [IsAdmin()]

    def get_service(self) -> AccountService:
        return AccountService()

    def list(self, request):
        try:
            users = self.get_service().list_users()
        except Exception as e:
            return internal_error('Failed to list users', e)
        return Response({'users': UserSerializer(users, many=True).data}, status=status.HTTP_200_OK)

    def destroy(self, request, pk=None):
        try:
            self.get_service().delete_user(pk)
        except SignFlowError as e:
            return error_response(e.message, e.status_code)
        except Exception as e:
            return internal_error('Failed to delete user', e)
        return Response({'ok': True}, status=status.HTTP_200_OK)

    @extend_schema(
        summary='Ativar/desativar usuário',
        description='Inverte o status ativo do usuário. Usuários inativos não conseguem autenticar.',
        tags=['Users'],
        request=None,
        responses={200: {'type': 'object', 'properties': {'ok': {'type': 'boolean'}, 'active': {'type': 'boolean'}}}},
    )
    @action(detail=True, methods=['patch'])
    def toggle(self, request, pk=None):
        try:
            user = self.get_service().toggle_active(pk)
        except SignFlowError as e:
            return error_response(e.message, e.status_code)
        except Exception as e:
            return internal_error('Failed to toggle user', e)
        return Response({'ok': True, 'active': user.active}, status=status.HTTP_200_OK)

    @extend_schema(
        summary='Atualizar perfil',
        description='Atualiza o nome e/ou a assinatura do usuário autenticado.',
        tags=['Users'],
        request=ProfileSerializer,
        responses={200: {'type': 'object', 'properties': {'user': {'type': 'object'}}}},
    )
    @action(detail=False, methods=['post'])
    def profile(self, request):
        serializer = ProfileSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_payload(serializer)

        try:
            user = self.get_service().update_profile(request.user, **serializer.validated_data)
        except SignFlowError as e:
            return error_response(e.message, e.status_code)
        except Exception as e:
            return internal_error('Failed to update profile', e)
        return Response({'user': UserSerializer(user).data}, status=status.HTTP_200_OK)
