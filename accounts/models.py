from django.contrib.auth.base_user import AbstractBaseUser, BaseUserManager
from django.db import models

from core.api import isoformat


ROLE_USER = 'USER'
ROLE_ADMIN = 'ADMIN'

ROLE_CHOICES = [
    (ROLE_USER, 'User'),
    (ROLE_ADMIN, 'Admin'),
]


class AppUserManager(BaseUserManager):
    use_in_migrations = True

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('Users must have an email address')
        user = self.model(email=self.normalize_email(email), **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields['role'] = ROLE_ADMIN
        return self.create_user(email, password, **extra_fields)


# Panel account; signs in with email, role decides admin access
class AppUser(AbstractBaseUser):
    email = models.EmailField(unique=True)
    display_name = models.CharField(max_length=100, blank=True)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_USER)
    is_blocked = models.BooleanField(default=False)

    # Binom tracker and Google Sheets integrations
    binom_url = models.URLField(max_length=255, blank=True, null=True)
    binom_api_key = models.CharField(max_length=255, blank=True, null=True)
    binom_user_id = models.IntegerField(blank=True, null=True)
    google_sheets_id = models.CharField(max_length=255, blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = AppUserManager()

    USERNAME_FIELD = 'email'
    EMAIL_FIELD = 'email'
    REQUIRED_FIELDS = ['display_name']

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.email

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN

    # Blocked accounts fail ModelBackend authentication
    @property
    def is_active(self):
        return not self.is_blocked

    @property
    def is_staff(self):
        return self.is_admin

    def has_perm(self, perm, obj=None):
        return self.is_active and self.is_admin

    def has_module_perms(self, app_label):
        return self.is_active and self.is_admin

    def summary(self):
        return {
            'id': self.pk,
            'email': self.email,
            'display_name': self.display_name,
            'role': self.role,
        }

    def as_dict(self, include_integrations=False):
        data = {
            **self.summary(),
            'is_blocked': self.is_blocked,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
            'last_login': isoformat(self.last_login),
        }
        if include_integrations:
            data['binom_api_key'] = self.binom_api_key
            data['google_sheets_id'] = self.google_sheets_id
        return data
