from django.contrib import admin
from .models import User, Document


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ['email', 'name', 'role', 'active', 'created_at']
    list_filter = ['role', 'active', 'created_at']
    search_fields = ['email', 'name']
    readonly_fields = ['password', 'last_login', 'created_at']
    fieldsets = (
        ('Informações Básicas', {
            'fields': ('email', 'name', 'role', 'active')
        }),
        ('Assinatura', {
            'fields': ('signature',)
        }),
        ('Acesso', {
            'fields': ('password', 'last_login', 'created_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ['title', 'agent_name', 'status', 'created_at', 'signed_at']
    list_filter = ['status', 'created_at']
    search_fields = ['id', 'legacy_id', 'title', 'agent_name', 'signer_gmail']
    readonly_fields = [
        'id', 'status', 'sign_token', 'signed_at', 'signer_ip', 'signer_gmail', 'version', 'created_at', 'updated_at'
    ]
    exclude = ['signed_pdf_url']
    fieldsets = (
        ('Informações Básicas', {
            'fields': ('id', 'legacy_id', 'title', 'file_url', 'metadata')
        }),
        ('Agente', {
            'fields': ('agent_id', 'agent_name')
        }),
        ('Assinatura', {
            'fields': ('status', 'sign_token', 'signed_at', 'signer_ip', 'signer_gmail')
        }),
        ('Controle', {
            'fields': ('version', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )
