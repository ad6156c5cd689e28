from django.contrib.auth.base_user import AbstractBaseUser, BaseUserManager
from django.db import models


class UserManager(BaseUserManager):
    def create_user(self, email, password=None, name='', role='agent', **extra_fields):
        if not email:
            raise ValueError('Email is required')
        email = self.normalize_email(email)
        user = self.model(email=email, name=name or email, role=role, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, name='', **extra_fields):
        return self.create_user(email, password=password, name=name, role=User.ADMIN, **extra_fields)


class User(AbstractBaseUser):
    ADMIN = 'admin'
    AGENT = 'agent'
    ROLE_CHOICES = [
        (ADMIN, 'Admin'),
        (AGENT, 'Agent'),
    ]

    email = models.EmailField(unique=True)
    name = models.CharField(max_length=200, blank=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=AGENT)
    active = models.BooleanField(default=True)
    signature = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    EMAIL_FIELD = 'email'
    REQUIRED_FIELDS = ['name']

    class Meta:
        db_table = 'users'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.name} ({self.email}) - {self.role}"

    @property
    def is_active(self):
        return self.active

    @property
    def is_admin(self):
        return str(self.role or '').lower() == self.ADMIN

    # Usado pelo Django admin
    @property
    def is_staff(self):
        return self.is_admin

    def has_perm(self, perm, obj=None):
        return self.active and self.is_admin

    def has_module_perms(self, app_label):
        return self.active and self.is_admin
