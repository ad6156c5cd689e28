from pathlib import Path
from decouple import config
import dj_database_url
import logging

BASE_DIR = Path(__file__).resolve().parent.parent

LOGS_DIR = BASE_DIR / 'logs'
LOGS_DIR.mkdir(exist_ok=True)

SECRET_KEY = config('SECRET_KEY', default='django-insecure-change-in-production')

DEBUG = config('DEBUG', default=True, cast=bool)

allowed_hosts_env = config('ALLOWED_HOSTS', default=None)
if allowed_hosts_env:
    ALLOWED_HOSTS = [host.strip() for host in allowed_hosts_env.split(',')]
elif not DEBUG:
    ALLOWED_HOSTS = ['*']
else:
    # Desenvolvimento: localhost e testes
    ALLOWED_HOSTS = ['localhost', '127.0.0.1', 'testserver']

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'corsheaders',
    'drf_spectacular',
    'apps.domain',
    'apps.application',
    'apps.infrastructure',
    'apps.presentation',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'signflow_project.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'signflow_project.wsgi.application'

# Configuração do banco de dados
# DATABASE_URL em produção (Postgres), SQLite local por padrão
DATABASE_URL = config('DATABASE_URL', default=f'sqlite:///{BASE_DIR / "db.sqlite3"}')
DATABASES = {
    'default': dj_database_url.parse(DATABASE_URL, conn_max_age=600)
}

AUTH_USER_MODEL = 'domain.User'

AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
        'OPTIONS': {'min_length': 6},
    },
]

LANGUAGE_CODE = 'pt-br'

TIME_ZONE = 'America/Sao_Paulo'

USE_I18N = True

USE_TZ = True

STATIC_URL = 'static/'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# PDFs e assinaturas trafegam em base64 dentro do JSON
DATA_UPLOAD_MAX_MEMORY_SIZE = config('DATA_UPLOAD_MAX_MEMORY_SIZE', default=50 * 1024 * 1024, cast=int)

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'apps.infrastructure.authentication.JWTAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],
    'DEFAULT_PARSER_CLASSES': [
        'rest_framework.parsers.JSONParser',
    ],
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',
}

# CORS Configuration - Permitir todas as origens
CORS_ALLOW_ALL_ORIGINS = True
CORS_ALLOW_CREDENTIALS = True

logger = logging.getLogger(__name__)
logger.info('CORS_ALLOW_ALL_ORIGINS = True (permitindo todas as origens)')

CORS_ALLOW_METHODS = [
    'DELETE',
    'GET',
    'OPTIONS',
    'PATCH',
    'POST',
    'PUT',
]
CORS_ALLOW_HEADERS = [
    'accept',
    'accept-encoding',
    'authorization',
    'content-type',
    'dnt',
    'origin',
    'user-agent',
    'x-csrftoken',
    'x-requested-with',
]
CORS_PREFLIGHT_MAX_AGE = 86400

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'file': {
            'level': 'INFO',
            'class': 'logging.FileHandler',
            'filename': BASE_DIR / 'logs' / 'django.log',
            'formatter': 'verbose',
        },
        'console': {
            'level': 'DEBUG',
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console', 'file'],
        'level': 'INFO',
    },
    'loggers': {
        'django': {
            'handlers': ['console', 'file'],
            'level': 'INFO',
            'propagate': False,
        },
        'apps': {
            'handlers': ['console', 'file'],
            'level': 'DEBUG',
            'propagate': False,
        },
    },
}

# Autenticação JWT (Bearer)
JWT_SECRET = config('JWT_SECRET', default='dev_secret')
JWT_ALGORITHM = config('JWT_ALGORITHM', default='HS256')
JWT_EXPIRE_DAYS = config('JWT_EXPIRE_DAYS', default=30, cast=int)

# Administrador criado quando a tabela de usuários está vazia
DEFAULT_ADMIN_EMAIL = config('DEFAULT_ADMIN_EMAIL', default='admin@example.com')
DEFAULT_ADMIN_PASSWORD = config('DEFAULT_ADMIN_PASSWORD', default='Passw0rd!')

# Fluxo de assinatura
FRONTEND_URL = config('FRONTEND_URL', default='http://localhost:3000')
DEFAULT_AGENCY_EMAIL = config('DEFAULT_AGENCY_EMAIL', default='info@usbrandbooster.com')
# Quando False, o token de assinatura só é validado se o documento e a requisição trouxerem um token
SIGN_TOKEN_STRICT = config('SIGN_TOKEN_STRICT', default=False, cast=bool)
DOCUMENT_LIST_LIMIT = config('DOCUMENT_LIST_LIMIT', default=1000, cast=int)

# Provedor de identidade (verificação do e-mail do cliente)
IDENTITY_PROVIDER = config('IDENTITY_PROVIDER', default='google')
GOOGLE_CLIENT_ID = config('GOOGLE_CLIENT_ID', default='')
GOOGLE_TOKENINFO_URL = config('GOOGLE_TOKENINFO_URL', default='https://oauth2.googleapis.com/tokeninfo')
IDENTITY_TIMEOUT = config('IDENTITY_TIMEOUT', default=10, cast=int)

# E-mail
EMAIL_BACKEND = config('EMAIL_BACKEND', default='django.core.mail.backends.console.EmailBackend')
EMAIL_HOST = config('SMTP_HOST', default='localhost')
EMAIL_PORT = config('SMTP_PORT', default=587, cast=int)
EMAIL_HOST_USER = config('SMTP_USER', default='')
EMAIL_HOST_PASSWORD = config('SMTP_PASS', default='')
EMAIL_USE_TLS = config('SMTP_USE_TLS', default=True, cast=bool)
DEFAULT_FROM_EMAIL = config('DEFAULT_FROM_EMAIL', default='SignFlow <no-reply@signflow.local>')

# Swagger/OpenAPI Configuration
SPECTACULAR_SETTINGS = {
    'TITLE': 'SignFlow API',
    'DESCRIPTION': '''
    API para criação, envio e assinatura eletrônica de contratos.

    ## Funcionalidades Principais

    - **Documentos**: Criação, listagem, reenvio de link e exclusão de contratos
    - **Assinatura**: Página pública por token, verificação de e-mail e geração do PDF assinado
    - **Usuários**: Cadastro, login e administração de agentes

    ## Autenticação

    A API utiliza tokens JWT. Para obter um token:

    1. Faça uma requisição POST para `/api/auth/login/` com `email` e `password`
    2. Use o token retornado no header: `Authorization: Bearer <seu-token>`

    ## Códigos de Status HTTP

    - `200 OK`: Requisição bem-sucedida
    - `201 Created`: Recurso criado com sucesso
    - `400 Bad Request`: Erro na requisição (validação, dados inválidos)
    - `401 Unauthorized`: Token ausente, inválido ou expirado
    - `403 Forbidden`: Usuário sem permissão para o recurso
    - `404 Not Found`: Recurso não encontrado
    - `409 Conflict`: Documento já assinado ou alterado concorrentemente
    - `500 Internal Server Error`: Erro interno do servidor
    ''',
    'VERSION': '1.0.0',
    'SERVE_INCLUDE_SCHEMA': False,
    'LICENSE': {
        'name': 'Proprietary',
    },
    'TAGS': [
        {'name': 'Autenticação', 'description': 'Cadastro, login e verificação de identidade'},
        {'name': 'Documents', 'description': 'Ciclo de vida dos contratos e assinatura'},
        {'name': 'Users', 'description': 'Administração de usuários'},
        {'name': 'Health', 'description': 'Endpoints de verificação de saúde da API'},
    ],
    'SCHEMA_PATH_PREFIX': '/api/',
    'COMPONENT_SPLIT_REQUEST': True,
    'COMPONENT_NO_READ_ONLY_REQUIRED': True,
    'SWAGGER_UI_SETTINGS': {
        'deepLinking': True,
        'displayRequestDuration': True,
        'docExpansion': 'list',
        'filter': True,
    },
}
