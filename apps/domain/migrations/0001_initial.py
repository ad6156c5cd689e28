from django.db import migrations, models
import django.utils.timezone
import apps.domain.models.document


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('email', models.EmailField(max_length=254, unique=True)),
                ('name', models.CharField(blank=True, max_length=200)),
                ('role', models.CharField(choices=[('admin', 'Admin'), ('agent', 'Agent')], default='agent', max_length=20)),
                ('active', models.BooleanField(default=True)),
                ('signature', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'users',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Document',
            fields=[
                ('id', models.CharField(default=apps.domain.models.document.generate_document_id, editable=False, max_length=64, primary_key=True, serialize=False)),
                ('legacy_id', models.CharField(blank=True, max_length=64, null=True, unique=True)),
                ('title', models.CharField(default='Untitled', max_length=255)),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('SIGNED', 'Signed')], default='PENDING', max_length=10)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('signed_at', models.DateTimeField(blank=True, null=True)),
                ('signer_ip', models.CharField(blank=True, max_length=64, null=True)),
                ('signer_gmail', models.CharField(blank=True, max_length=255, null=True)),
                ('file_url', models.TextField(blank=True, null=True)),
                ('signed_pdf_url', models.TextField(blank=True, null=True)),
                ('agent_id', models.CharField(blank=True, default='', max_length=64)),
                ('agent_name', models.CharField(blank=True, default='', max_length=255)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('sign_token', models.CharField(blank=True, max_length=128, null=True)),
                ('version', models.PositiveIntegerField(default=0)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'documents',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['agent_id'], name='documents_agent_id_idx'),
                    models.Index(fields=['status'], name='documents_status_idx'),
                ],
            },
        ),
    ]
