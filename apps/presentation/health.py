import logging
from django.db import connection, DatabaseError
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework import status
from drf_spectacular.utils import extend_schema
from apps.infrastructure.repositories import DocumentRepository

logger = logging.getLogger('apps')


@extend_schema(
    summary='Health Check',
    description='Verifica o status de saúde da API, a conectividade com o banco de dados e o total de documentos.',
    tags=['Health'],
    responses={
        200: {
            'type': 'object',
            'properties': {
                'status': {
                    'type': 'string',
                    'example': 'ok',
                    'description': 'Status geral da API'
                },
                'database': {
                    'type': 'string',
                    'example': 'healthy',
                    'description': 'Status da conexão com o banco de dados (healthy/unhealthy)'
                },
                'documents': {
                    'type': 'integer',
                    'example': 42,
                    'description': 'Total de documentos armazenados (null se o banco estiver indisponível)'
                }
            }
        }
    },
)
@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def health_check(request):
    document_count = None
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        document_count = DocumentRepository().count()
        db_status = "healthy"
    except DatabaseError as e:
        logger.error(f'Health check database error: {str(e)}')
        db_status = "unhealthy"

    return Response({
        "status": "ok",
        "database": db_status,
        "documents": document_count
    }, status=status.HTTP_200_OK)
