from django import forms
from django.contrib.auth.forms import BaseUserCreationForm, UserChangeForm

from .models import AppUser, ROLE_CHOICES


class AppUserCreationForm(BaseUserCreationForm):
    class Meta:
        model = AppUser
        fields = ('email', 'display_name', 'role')


class AppUserChangeForm(UserChangeForm):
    class Meta:
        model = AppUser
        fields = '__all__'


class LoginForm(forms.Form):
    email = forms.EmailField()
    password = forms.CharField(strip=False)


class ProfileForm(forms.Form):
    display_name = forms.CharField(min_length=1, max_length=100)
    email = forms.EmailField(max_length=254)
    current_password = forms.CharField(required=False, strip=False)
    new_password = forms.CharField(required=False, strip=False)
    confirm_password = forms.CharField(required=False, strip=False)

    def clean(self):
        cleaned = super().clean()
        current = cleaned.get('current_password')
        new = cleaned.get('new_password')
        confirm = cleaned.get('confirm_password')
        # Changing the password needs all three fields, matching, 6+ chars
        if current or new or confirm:
            if not (current and new and confirm) or new != confirm or len(new) < 6:
                raise forms.ValidationError(
                    "Password fields are required when changing password, passwords must match, "
                    "and new password must be at least 6 characters"
                )
        return cleaned

    @property
    def changes_password(self):
        return bool(self.cleaned_data.get('current_password') and self.cleaned_data.get('new_password'))


class BinomSettingsForm(forms.Form):
    binom_url = forms.URLField(max_length=255, error_messages={'invalid': 'Please enter a valid URL'})
    binom_api_key = forms.CharField(max_length=255, error_messages={'required': 'API key is required'})
    binom_user_id = forms.IntegerField(required=False)


class CreateUserForm(forms.Form):
    email = forms.EmailField(max_length=254)
    display_name = forms.CharField(min_length=1, max_length=100)
    password = forms.CharField(min_length=6, strip=False)
    role = forms.ChoiceField(choices=ROLE_CHOICES)


class EditUserForm(forms.Form):
    email = forms.EmailField(max_length=254)
    display_name = forms.CharField(min_length=1, max_length=100)
    role = forms.ChoiceField(choices=ROLE_CHOICES)
    new_password = forms.CharField(required=False, strip=False)

    def clean_new_password(self):
        password = self.cleaned_data.get('new_password') or ''
        if password and len(password) < 6:
            raise forms.ValidationError('Password must be at least 6 characters')
        return password


USER_ACTIONS = ['block', 'unblock', 'delete', 'promote', 'demote']


class UserActionForm(forms.Form):
    action = forms.ChoiceField(choices=[(action, action) for action in USER_ACTIONS])


class UserBinomForm(forms.Form):
    binom_api_key = forms.CharField(required=False, max_length=255)

    def clean_binom_api_key(self):
        return self.cleaned_data.get('binom_api_key') or None


class UserIntegrationsForm(forms.Form):
    binom_api_key = forms.CharField(required=False, max_length=255)
    google_sheets_id = forms.CharField(required=False, max_length=255)

    def clean_binom_api_key(self):
        return self.cleaned_data.get('binom_api_key') or None

    def clean_google_sheets_id(self):
        return self.cleaned_data.get('google_sheets_id') or None


class BinomKeyForm(forms.Form):
    binom_api_key = forms.CharField(min_length=1)


class UserFilterForm(forms.Form):
    page = forms.IntegerField(required=False, min_value=1)
    page_size = forms.IntegerField(required=False, min_value=1, max_value=100)
    search = forms.CharField(required=False)
    role = forms.ChoiceField(required=False, choices=[('all', 'all')] + ROLE_CHOICES)
    status = forms.ChoiceField(required=False, choices=[('all', 'all'), ('active', 'active'), ('blocked', 'blocked')])
