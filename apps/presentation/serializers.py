from rest_framework import serializers
from drf_spectacular.utils import extend_schema_field
from drf_spectacular.types import OpenApiTypes
from apps.domain.mappers import to_millis
from apps.domain.models import Document, User


@extend_schema_field(OpenApiTypes.INT)
class EpochMillisField(serializers.Field):
    def to_representation(self, value):
        return to_millis(value)


class DocumentSerializer(serializers.ModelSerializer):
    id = serializers.CharField(read_only=True, help_text='ID único do documento')
    title = serializers.CharField(read_only=True, help_text='Título do contrato')
    status = serializers.ChoiceField(
        choices=Document.STATUS_CHOICES,
        read_only=True,
        help_text='Status do documento: PENDING ou SIGNED'
    )
    createdAt = EpochMillisField(source='created_at', read_only=True, help_text='Data de criação (epoch em ms)')
    signedAt = EpochMillisField(source='signed_at', read_only=True, help_text='Data da assinatura (epoch em ms)')
    signerIP = serializers.CharField(source='signer_ip', read_only=True, help_text='IP de onde o cliente assinou')
    signerGmail = serializers.CharField(source='signer_gmail', read_only=True, help_text='E-mail de quem assinou')
    fileUrl = serializers.CharField(source='file_url', read_only=True, help_text='Arquivo original (URL ou data URI do PDF)')
    signedPdfUrl = serializers.CharField(source='signed_pdf_url', read_only=True, help_text='PDF assinado em base64')
    agentId = serializers.CharField(source='agent_id', read_only=True, help_text='ID do agente responsável')
    agentName = serializers.CharField(source='agent_name', read_only=True, help_text='Nome do agente responsável')
    metadata = serializers.JSONField(read_only=True, help_text='Dados do cliente, projeto e agência')
    signToken = serializers.CharField(source='sign_token', read_only=True, help_text='Token do link de assinatura')

    class Meta:
        model = Document
        fields = [
            'id', 'title', 'status', 'createdAt', 'signedAt', 'signerIP', 'signerGmail',
            'fileUrl', 'signedPdfUrl', 'agentId', 'agentName', 'metadata', 'signToken'
        ]


class DocumentCreateSerializer(serializers.Serializer):
    title = serializers.CharField(
        max_length=255,
        required=False,
        allow_blank=True,
        help_text='Título do contrato (padrão: "Untitled")'
    )
    fileUrl = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        help_text='URL ou data URI (data:application/pdf;base64,...) do PDF original'
    )
    metadata = serializers.DictField(
        required=False,
        default=dict,
        help_text='Dados do cliente e do projeto (clientName, clientEmail, projectName, agencyEmail, ...)'
    )

    def validate_metadata(self, value):
        email = value.get('clientEmail')
        if email:
            serializers.EmailField().run_validation(email)
        return value


class SignDocumentSerializer(serializers.Serializer):
    dataUrl = serializers.CharField(help_text='Imagem da assinatura em data URI (PNG)')
    token = serializers.CharField(required=False, allow_blank=True, allow_null=True, help_text='Token do link de assinatura')
    signerEmail = serializers.EmailField(
        required=False,
        allow_blank=True,
        allow_null=True,
        help_text='E-mail de quem está assinando (padrão: e-mail do cliente)'
    )


class UserSerializer(serializers.ModelSerializer):
    id = serializers.SerializerMethodField(help_text='ID único do usuário')
    email = serializers.EmailField(read_only=True, help_text='E-mail do usuário')
    name = serializers.CharField(read_only=True, help_text='Nome do usuário')
    role = serializers.CharField(read_only=True, help_text='Papel: admin ou agent')
    active = serializers.BooleanField(read_only=True, help_text='Indica se o usuário pode acessar o sistema')
    signature = serializers.CharField(read_only=True, help_text='Assinatura do usuário em data URI')
    createdAt = EpochMillisField(source='created_at', read_only=True, help_text='Data de criação (epoch em ms)')

    class Meta:
        model = User
        fields = ['id', 'email', 'name', 'role', 'active', 'signature', 'createdAt']

    def get_id(self, obj) -> str:
        return str(obj.pk)


class RegisterSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, allow_blank=True, max_length=200, help_text='Nome do usuário')
    email = serializers.EmailField(help_text='E-mail de acesso')
    password = serializers.CharField(write_only=True, help_text='Senha (mínimo 6 caracteres)')
    role = serializers.CharField(required=False, allow_blank=True, help_text='admin ou agent (padrão: agent)')


class LoginSerializer(serializers.Serializer):
    email = serializers.CharField(help_text='E-mail de acesso')
    password = serializers.CharField(write_only=True, help_text='Senha')


class GoogleVerifySerializer(serializers.Serializer):
    idToken = serializers.CharField(help_text='ID token emitido pelo Google Sign-In')
    docId = serializers.CharField(help_text='ID do documento que será assinado')


class ProfileSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, max_length=200, help_text='Novo nome')
    signature = serializers.CharField(required=False, allow_blank=True, help_text='Assinatura em data URI')
