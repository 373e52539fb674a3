from django import forms
from django.core.validators import MaxLengthValidator, RegexValidator

from .models import MAX_COST, MAX_DOMAIN_LENGTH

DOMAIN_REGEX = r'^[a-zA-Z0-9][a-zA-Z0-9-]*[a-zA-Z0-9]*\.[a-zA-Z]{2,}$'

validate_domain = RegexValidator(DOMAIN_REGEX, 'Invalid domain format')
validate_domain_length = MaxLengthValidator(MAX_DOMAIN_LENGTH, 'Domain must be at most %(limit_value)s characters')


def cost_field(**kwargs):
    return forms.DecimalField(
        required=False, min_value=0, max_value=MAX_COST, max_digits=8, decimal_places=2, **kwargs
    )


class CostRequiredMixin:
    """``cost`` may be null but the key itself must be sent."""

    def clean(self):
        cleaned = super().clean()
        if 'cost' not in self.data:
            self.add_error('cost', 'This field is required.')
        return cleaned


class DomainListField(forms.Field):
    def to_python(self, value):
        if value in self.empty_values:
            return []
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise forms.ValidationError('Expected a list of domains', code='invalid')
        return [item.strip() for item in value]

    def validate(self, value):
        if not value:
            raise forms.ValidationError('At least one domain is required', code='required')
        for domain in value:
            validate_domain_length(domain)
            validate_domain(domain)


# 1. User side

class DomainRequestForm(forms.Form):
    comment = forms.CharField(required=False)


class ArchiveForm(forms.Form):
    is_archived = forms.NullBooleanField()

    def clean_is_archived(self):
        value = self.cleaned_data.get('is_archived')
        if value is None:
            raise forms.ValidationError('is_archived must be a boolean')
        return value


class NoteForm(forms.Form):
    note = forms.CharField(required=False, max_length=500, strip=False, error_messages={
        'max_length': 'Note must be less than 500 characters',
    })

    def clean_note(self):
        return self.cleaned_data.get('note') or None


# 2. Admin side

class DomainForm(forms.Form):
    domain = forms.CharField(
        min_length=1, max_length=MAX_DOMAIN_LENGTH, validators=[validate_domain],
        error_messages={'required': 'Domain is required'},
    )


class BulkDomainsForm(forms.Form):
    domains = DomainListField()
    cost = cost_field()


class CostForm(CostRequiredMixin, forms.Form):
    cost = cost_field()


class RequestDecisionForm(forms.Form):
    status = forms.ChoiceField(choices=[('APPROVED', 'Approved'), ('REJECTED', 'Rejected')])
    comment = forms.CharField(required=False)
    domain_id = forms.IntegerField(required=False)


class CloudflareSetupForm(forms.Form):
    domains = forms.CharField(min_length=1)
    cost = cost_field()
    cloudflare_api_key = forms.CharField(min_length=1)
    cloudflare_email = forms.EmailField()
    namecheap_api_user = forms.CharField(min_length=1)
    namecheap_api_key = forms.CharField(min_length=1)
    namecheap_username = forms.CharField(min_length=1)
    client_ip = forms.CharField(min_length=1)
    target_ip = forms.CharField(min_length=1)

    def clean_domains(self):
        text = self.cleaned_data['domains']
        for line in text.splitlines():
            validate_domain_length(line.strip())
        return text
