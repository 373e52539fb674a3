from django import forms
from django.conf import settings
from django.core.validators import MaxLengthValidator

from .models import AUDIT_ACTIONS, AUDIT_ENTITIES, LANDING_TYPE_CHOICES, STATUS_CHOICES


class PartialUpdateMixin:
    """With ``partial=True`` (PATCH) a field is only required when the client sent it."""

    def __init__(self, data=None, *args, partial=False, **kwargs):
        super().__init__(data, *args, **kwargs)
        if partial:
            for name, field in self.fields.items():
                field.required = field.required and data is not None and name in data


class StringListField(forms.Field):
    default_error_messages = {
        'invalid': 'Expected a list of strings',
    }

    def to_python(self, value):
        if value is None or value == '':
            return None
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise forms.ValidationError(self.error_messages['invalid'], code='invalid')
        return value

    def validate(self, value):
        # An empty list is a valid value, a missing one is not
        if value is None and self.required:
            raise forms.ValidationError(self.error_messages['required'], code='required')

    def clean(self, value):
        value = super().clean(value)
        return [] if value is None else value


class ReorderItemsField(forms.Field):
    def to_python(self, value):
        if not isinstance(value, list):
            raise forms.ValidationError('Expected a list of {id, order} items', code='invalid')
        items = []
        for item in value:
            if not isinstance(item, dict):
                raise forms.ValidationError('Expected a list of {id, order} items', code='invalid')
            try:
                items.append({'id': int(item['id']), 'order': int(item['order'])})
            except (KeyError, TypeError, ValueError):
                raise forms.ValidationError('Each item needs a numeric id and order', code='invalid')
        return items

    def validate(self, value):
        pass


# 1. Offers

class OfferForm(PartialUpdateMixin, forms.Form):
    vertical = forms.CharField(min_length=1, max_length=100)
    title = forms.CharField(min_length=1, max_length=255)
    price_usd = forms.DecimalField(min_value=0, max_digits=10, decimal_places=2)
    geo = StringListField()
    tags = StringListField()
    status = forms.ChoiceField(choices=STATUS_CHOICES)
    image_url = forms.CharField(required=False, max_length=500)


class OfferFilterForm(forms.Form):
    search = forms.CharField(required=False)
    status = forms.ChoiceField(required=False, choices=STATUS_CHOICES)
    geo = forms.CharField(required=False)
    vertical = forms.CharField(required=False)
    tag = forms.CharField(required=False)
    locale = forms.CharField(required=False)
    partner = forms.CharField(required=False)
    page = forms.IntegerField(required=False, min_value=1)
    limit = forms.IntegerField(required=False, min_value=1, max_value=100)


class ReorderForm(forms.Form):
    items = ReorderItemsField()


class OfferImageForm(forms.Form):
    image = forms.ImageField(error_messages={
        'required': 'File not found',
        'invalid_image': 'File must be an image',
    })

    def clean_image(self):
        image = self.cleaned_data['image']
        if image.size > settings.OFFER_IMAGE_MAX_BYTES:
            raise forms.ValidationError('File size must not exceed 5MB')
        return image


# 2. Landings

class LandingForm(PartialUpdateMixin, forms.Form):
    ext_id = forms.IntegerField(required=False)
    label = forms.CharField(min_length=1, max_length=255)
    type = forms.ChoiceField(choices=LANDING_TYPE_CHOICES)
    locale = forms.CharField(min_length=2, max_length=6)
    network_code = forms.RegexField(
        regex=r'^[A-Z0-9]{2,6}$', required=False,
        error_messages={'invalid': 'Partner code must be 2-6 upper-case letters or digits'},
    )
    url = forms.URLField(max_length=500)
    notes = forms.CharField(required=False)

    def clean_network_code(self):
        return self.cleaned_data.get('network_code') or None

    def clean_notes(self):
        return self.cleaned_data.get('notes') or None

    def clean_url(self):
        url = self.cleaned_data.get('url')
        if url and not url.startswith('https://'):
            raise forms.ValidationError('URL must start with https://')
        return url


# 3. Reference tables

class NamedReferenceForm(PartialUpdateMixin, forms.Form):
    name = forms.CharField(min_length=1, max_length=100)
    description = forms.CharField(required=False, max_length=255)
    is_active = forms.BooleanField(required=False)
    order = forms.IntegerField(required=False)

    def clean_description(self):
        return self.cleaned_data.get('description') or None


class CodedReferenceForm(PartialUpdateMixin, forms.Form):
    code_max_length = 3

    code = forms.CharField(min_length=1)
    name = forms.CharField(min_length=1, max_length=100)
    is_active = forms.BooleanField(required=False)
    order = forms.IntegerField(required=False)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['code'].max_length = self.code_max_length
        self.fields['code'].validators.append(MaxLengthValidator(self.code_max_length))

    def clean_code(self):
        return (self.cleaned_data.get('code') or '').upper()


class GeoForm(CodedReferenceForm):
    code_max_length = 3


class LanguageForm(CodedReferenceForm):
    code_max_length = 3


class PartnerForm(CodedReferenceForm):
    code_max_length = 5


class AuditLogFilterForm(forms.Form):
    page = forms.IntegerField(required=False, min_value=1)
    limit = forms.IntegerField(required=False, min_value=1, max_value=100)
    entity = forms.ChoiceField(required=False, choices=[(e, e) for e in AUDIT_ENTITIES])
    action = forms.ChoiceField(required=False, choices=[(a, a) for a in AUDIT_ACTIONS])
