from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.api import isoformat


STATUS_CHOICES = [
    ('ACTIVE', 'Active'),
    ('PAUSED', 'Paused'),
    ('ARCHIVED', 'Archived'),
]

LANDING_TYPE_CHOICES = [
    ('LANDING', 'Landing'),
    ('PRELANDING', 'Pre-landing'),
]

AUDIT_ACTIONS = ['create', 'update', 'delete', 'duplicate']
AUDIT_ENTITIES = ['offer', 'landing']

# Offers younger than this are flagged as new
NEW_OFFER_WINDOW = timedelta(days=2)


# Reference tables the offer editor picks values from
class ReferenceItem(models.Model):
    is_active = models.BooleanField(default=True)
    order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    unique_field = 'name'

    class Meta:
        abstract = True
        ordering = ['order', 'name']

    def as_dict(self):
        return {
            'id': self.pk,
            'is_active': self.is_active,
            'order': self.order,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }


class NamedReference(ReferenceItem):
    name = models.CharField(max_length=100, unique=True)
    description = models.CharField(max_length=255, blank=True, null=True)

    class Meta(ReferenceItem.Meta):
        abstract = True

    def __str__(self):
        return self.name

    def as_dict(self):
        return {**super().as_dict(), 'name': self.name, 'description': self.description}

    def option(self):
        return {'name': self.name, 'order': self.order}


class CodedReference(ReferenceItem):
    code = models.CharField(max_length=5, unique=True)
    name = models.CharField(max_length=100)

    unique_field = 'code'

    class Meta(ReferenceItem.Meta):
        abstract = True

    def __str__(self):
        return f"{self.code} ({self.name})"

    def as_dict(self):
        return {**super().as_dict(), 'code': self.code, 'name': self.name}

    def option(self):
        return {'code': self.code, 'name': self.name, 'order': self.order}


class Vertical(NamedReference):
    pass


class OfferType(NamedReference):
    pass


class Geo(CodedReference):
    code = models.CharField(max_length=3, unique=True)


class Language(CodedReference):
    code = models.CharField(max_length=3, unique=True)


class Partner(CodedReference):
    pass


class Offer(models.Model):
    vertical = models.CharField(max_length=100)
    title = models.CharField(max_length=255)
    price_usd = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    geo = models.JSONField(default=list, blank=True)
    tags = models.JSONField(default=list, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='ACTIVE')
    image_url = models.CharField(max_length=500, blank=True, default='')
    order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['order', 'pk']

    def __str__(self):
        return self.title

    @property
    def is_new(self):
        return self.created_at > timezone.now() - NEW_OFFER_WINDOW

    def as_dict(self, landings=None):
        if landings is None:
            landings = self.landings.all()
        return {
            'id': self.pk,
            'vertical': self.vertical,
            'title': self.title,
            'price_usd': float(self.price_usd),
            'geo': self.geo,
            'tags': self.tags,
            'status': self.status,
            'image_url': self.image_url,
            'order': self.order,
            'is_new': self.is_new,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
            'landings': [landing.as_dict() for landing in landings],
        }


class Landing(models.Model):
    offer = models.ForeignKey(Offer, on_delete=models.CASCADE, related_name='landings')
    ext_id = models.IntegerField(blank=True, null=True)
    label = models.CharField(max_length=255)
    type = models.CharField(max_length=10, choices=LANDING_TYPE_CHOICES)
    locale = models.CharField(max_length=6)
    network_code = models.CharField(max_length=6, blank=True, null=True)
    url = models.URLField(max_length=500)
    notes = models.TextField(blank=True, null=True)
    order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['order', 'pk']

    def __str__(self):
        return f"{self.label} ({self.get_type_display()})"

    def as_dict(self):
        return {
            'id': self.pk,
            'offer_id': self.offer_id,
            'ext_id': self.ext_id,
            'label': self.label,
            'type': self.type,
            'locale': self.locale,
            'network_code': self.network_code,
            'url': self.url,
            'notes': self.notes,
            'order': self.order,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }


class AuditLog(models.Model):
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL,
        blank=True, null=True, related_name='audit_logs',
    )
    action = models.CharField(max_length=20, choices=[(a, a) for a in AUDIT_ACTIONS])
    entity = models.CharField(max_length=20, choices=[(e, e) for e in AUDIT_ENTITIES])
    entity_id = models.CharField(max_length=64)
    diff = models.JSONField(default=dict)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.action} {self.entity} #{self.entity_id}"

    def as_dict(self):
        return {
            'id': self.pk,
            'actor': self.actor.summary() if self.actor else None,
            'action': self.action,
            'entity': self.entity,
            'entity_id': self.entity_id,
            'diff': self.diff,
            'created_at': isoformat(self.created_at),
        }
