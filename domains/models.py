from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from core.api import isoformat


REQUEST_STATUS_CHOICES = [
    ('PENDING', 'Pending'),
    ('APPROVED', 'Approved'),
    ('REJECTED', 'Rejected'),
]

MAX_COST = 999999.99
MAX_DOMAIN_LENGTH = 255


# A pool domain handed out to users on request
class Domain(models.Model):
    domain = models.CharField(max_length=MAX_DOMAIN_LENGTH, unique=True)
    is_assigned = models.BooleanField(default=False)
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL,
        blank=True, null=True, related_name='domains',
    )
    assigned_at = models.DateTimeField(blank=True, null=True)
    is_archived = models.BooleanField(default=False)
    archived_at = models.DateTimeField(blank=True, null=True)
    cost = models.DecimalField(
        max_digits=8, decimal_places=2, blank=True, null=True,
        validators=[MinValueValidator(0), MaxValueValidator(MAX_COST)],
    )
    note = models.CharField(max_length=500, blank=True, null=True)
    binom_domain_id = models.CharField(max_length=64, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['created_at']

    def __str__(self):
        return self.domain

    def as_dict(self, include_user=False, include_requests=False):
        data = {
            'id': self.pk,
            'domain': self.domain,
            'is_assigned': self.is_assigned,
            'assigned_to': self.assigned_to_id,
            'assigned_at': isoformat(self.assigned_at),
            'is_archived': self.is_archived,
            'archived_at': isoformat(self.archived_at),
            'cost': float(self.cost) if self.cost is not None else None,
            'note': self.note,
            'binom_domain_id': self.binom_domain_id,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
        if include_user:
            data['user'] = user_brief(self.assigned_to)
        if include_requests:
            data['requests'] = [item.as_dict(include_user=True, include_domain=False) for item in self.requests.all()]
        return data


class DomainRequest(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='domain_requests')
    domain = models.ForeignKey(Domain, on_delete=models.SET_NULL, blank=True, null=True, related_name='requests')
    comment = models.TextField(blank=True, default='')
    status = models.CharField(max_length=10, choices=REQUEST_STATUS_CHOICES, default='PENDING')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user} - {self.get_status_display()}"

    def as_dict(self, include_user=False, include_domain=True):
        data = {
            'id': self.pk,
            'user_id': self.user_id,
            'domain_id': self.domain_id,
            'comment': self.comment,
            'status': self.status,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
        if include_user:
            data['user'] = user_brief(self.user)
        if include_domain:
            data['domain'] = self.domain.as_dict() if self.domain else None
        return data


def user_brief(user):
    if user is None:
        return None
    return {'id': user.pk, 'display_name': user.display_name, 'email': user.email}
