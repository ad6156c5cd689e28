from django.conf import settings
from django.contrib.auth.hashers import make_password
from django.db import migrations


def create_default_admin(apps, schema_editor):
    User = apps.get_model('domain', 'User')
    if User.objects.exists():
        return
    User.objects.create(
        email=settings.DEFAULT_ADMIN_EMAIL,
        name='Admin',
        password=make_password(settings.DEFAULT_ADMIN_PASSWORD),
        role='admin',
        active=True,
    )


def reverse_create_default_admin(apps, schema_editor):
    User = apps.get_model('domain', 'User')
    User.objects.filter(email=settings.DEFAULT_ADMIN_EMAIL, role='admin').delete()


class Migration(migrations.Migration):

    dependencies = [
        ('domain', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(create_default_admin, reverse_create_default_admin),
    ]
