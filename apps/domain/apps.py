from django.apps import AppConfig
from django.core.checks import Error, Tags, register
from django.db import DatabaseError, connection


class DomainConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.domain'
    label = 'domain'

    def ready(self):
        register(check_database_connection, Tags.database)


def check_database_connection(app_configs=None, **kwargs):
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError as e:
        return [
            Error(
                f'Document store is unreachable: {e}',
                hint='Check DATABASE_URL.',
                id='domain.E001',
            )
        ]
    return []
