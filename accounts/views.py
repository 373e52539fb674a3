import logging

from django.contrib.auth import authenticate, get_user_model, login, logout, update_session_auth_hash
from django.db import transaction
from django.db.models import Count, Q
from django.http import JsonResponse
from django.middleware.csrf import get_token
from django.views.decorators.csrf import ensure_csrf_cookie
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from core.api import (
    admin_required, api_login_required, form_error, get_or_404, json_error, present_fields,
    with_json_body,
)
from domains.binom import BinomService
from domains.models import Domain, DomainRequest
from .forms import (
    BinomKeyForm, BinomSettingsForm, CreateUserForm, EditUserForm, LoginForm, ProfileForm,
    UserActionForm, UserBinomForm, UserFilterForm, UserIntegrationsForm,
)
from .models import ROLE_ADMIN, ROLE_USER

logger = logging.getLogger(__name__)

AppUser = get_user_model()

HIDDEN_KEY = '***hidden***'


def _with_request_count(user):
    data = user.as_dict(include_integrations=True)
    data['domain_request_count'] = getattr(user, 'domain_request_count', None)
    if data['domain_request_count'] is None:
        data['domain_request_count'] = user.domain_requests.count()
    return data


# 1. Session endpoints

@ensure_csrf_cookie
@require_GET
def csrf(request):
    return JsonResponse({'csrf_token': get_token(request)})


@require_POST
@with_json_body
def api_login(request, data):
    form = LoginForm(data)
    if not form.is_valid():
        return form_error(form)

    user = authenticate(request, email=form.cleaned_data['email'], password=form.cleaned_data['password'])
    if user is None:
        return json_error('Invalid email or password')

    login(request, user)
    logger.info("User %s signed in", user.email)
    return JsonResponse({'user': user.summary()})


@require_POST
def api_logout(request):
    logout(request)
    return JsonResponse({'success': True})


@require_GET
@api_login_required
def session(request):
    return JsonResponse({'user': request.user.summary()})


# 2. Own profile

@require_http_methods(['GET', 'PATCH'])
@api_login_required
@with_json_body
def profile(request, data):
    user = request.user

    if request.method == 'GET':
        return JsonResponse(user.as_dict())

    form = ProfileForm(data)
    if not form.is_valid():
        return form_error(form)

    email = form.cleaned_data['email']
    if email != user.email and AppUser.objects.filter(email=email).exclude(pk=user.pk).exists():
        return json_error('Email address is already in use')

    if form.changes_password:
        if not user.check_password(form.cleaned_data['current_password']):
            return json_error('Current password is incorrect')
        user.set_password(form.cleaned_data['new_password'])

    user.display_name = form.cleaned_data['display_name']
    user.email = email
    user.save()

    # Keep the current session valid after a password change
    if form.changes_password:
        update_session_auth_hash(request, user)

    logger.info("User %s updated their profile", user.email)
    return JsonResponse({
        'success': True,
        'user': {**user.summary(), 'updated_at': user.as_dict()['updated_at']},
        'message': 'Profile updated successfully',
    })


@require_http_methods(['GET', 'POST', 'DELETE'])
@api_login_required
@with_json_body
def binom_settings(request, data):
    user = request.user

    if request.method == 'GET':
        return JsonResponse({
            'binom_url': user.binom_url,
            'binom_api_key': HIDDEN_KEY if user.binom_api_key else None,
            'binom_user_id': user.binom_user_id,
            'is_configured': bool(user.binom_url and user.binom_api_key),
        })

    if request.method == 'DELETE':
        user.binom_url = None
        user.binom_api_key = None
        user.binom_user_id = None
        user.save(update_fields=['binom_url', 'binom_api_key', 'binom_user_id', 'updated_at'])
        logger.info("Binom settings removed for user %s", user.email)
        return JsonResponse({'success': True, 'message': 'Binom settings removed successfully'})

    form = BinomSettingsForm(data)
    if not form.is_valid():
        return form_error(form)

    # Test connection before saving
    service = BinomService(form.cleaned_data['binom_api_key'], base_url=form.cleaned_data['binom_url'])
    logger.info("Testing Binom connection for user %s", user.email)
    ok, message = service.test_connection()
    if not ok:
        return json_error('Failed to connect to Binom API', details=message)

    user.binom_url = form.cleaned_data['binom_url']
    user.binom_api_key = form.cleaned_data['binom_api_key']
    user.binom_user_id = form.cleaned_data['binom_user_id']
    user.save(update_fields=['binom_url', 'binom_api_key', 'binom_user_id', 'updated_at'])

    logger.info("Binom settings saved for user %s", user.email)
    return JsonResponse({
        'success': True,
        'message': 'Binom settings saved successfully',
        'settings': {
            'binom_url': user.binom_url,
            'binom_api_key': HIDDEN_KEY,
            'binom_user_id': user.binom_user_id,
            'is_configured': True,
        },
    })


# 3. User administration

@require_http_methods(['GET', 'POST'])
@admin_required
@with_json_body
def admin_users(request, data):
    if request.method == 'POST':
        form = CreateUserForm(data)
        if not form.is_valid():
            return form_error(form)

        if AppUser.objects.filter(email=form.cleaned_data['email']).exists():
            return json_error('User with this email already exists')

        user = AppUser.objects.create_user(
            email=form.cleaned_data['email'],
            password=form.cleaned_data['password'],
            display_name=form.cleaned_data['display_name'],
            role=form.cleaned_data['role'],
        )
        logger.info("Admin %s created user %s", request.user.email, user.email)
        return JsonResponse({'success': True, 'user': _with_request_count(user)})

    filters = UserFilterForm(request.GET)
    if not filters.is_valid():
        return form_error(filters, 'Invalid request parameters')

    page = filters.cleaned_data['page'] or 1
    page_size = filters.cleaned_data['page_size'] or 20
    search = filters.cleaned_data['search']
    role = filters.cleaned_data['role']
    status = filters.cleaned_data['status']

    users = AppUser.objects.annotate(domain_request_count=Count('domain_requests'))
    if search:
        users = users.filter(Q(email__icontains=search) | Q(display_name__icontains=search))
    if role and role != 'all':
        users = users.filter(role=role)
    if status and status != 'all':
        users = users.filter(is_blocked=(status == 'blocked'))

    total = users.count()
    users = users.order_by('-created_at')[(page - 1) * page_size:page * page_size]

    return JsonResponse({
        'users': [_with_request_count(user) for user in users],
        'total': total,
        'page': page,
        'page_size': page_size,
    })


@require_http_methods(['GET', 'PATCH'])
@admin_required
@with_json_body
def admin_user_detail(request, user_id, data):
    target = get_or_404(AppUser, 'User not found', pk=user_id)

    if request.method == 'GET':
        recent_requests = (
            DomainRequest.objects.filter(user=target)
            .select_related('domain')
            .order_by('-created_at')[:10]
        )
        return JsonResponse({
            **_with_request_count(target),
            'domain_requests': [item.as_dict() for item in recent_requests],
        })

    form = UserActionForm(data)
    if not form.is_valid():
        return form_error(form)
    action = form.cleaned_data['action']

    if target.pk == request.user.pk and action in ('delete', 'block', 'demote'):
        return json_error('Cannot perform this action on yourself')

    if action == 'delete':
        snapshot = target.as_dict()
        with transaction.atomic():
            DomainRequest.objects.filter(user=target).delete()
            Domain.objects.filter(assigned_to=target).update(
                assigned_to=None, is_assigned=False, assigned_at=None,
            )
            target.delete()
        logger.info("Admin %s deleted user %s", request.user.email, snapshot['email'])
        return JsonResponse({'success': True, 'user': snapshot, 'action': action})

    if action == 'block':
        target.is_blocked = True
    elif action == 'unblock':
        target.is_blocked = False
    elif action == 'promote':
        target.role = ROLE_ADMIN
    elif action == 'demote':
        target.role = ROLE_USER
    target.save()

    logger.info("Admin %s applied %s to user %s", request.user.email, action, target.email)
    return JsonResponse({'success': True, 'user': target.as_dict(), 'action': action})


@require_http_methods(['PATCH'])
@admin_required
@with_json_body
def admin_user_edit(request, user_id, data):
    form = EditUserForm(data)
    if not form.is_valid():
        return form_error(form)

    target = get_or_404(AppUser, 'User not found', pk=user_id)

    email = form.cleaned_data['email']
    if email != target.email and AppUser.objects.filter(email=email).exclude(pk=target.pk).exists():
        return json_error('Email address is already in use by another user')

    target.email = email
    target.display_name = form.cleaned_data['display_name']
    target.role = form.cleaned_data['role']
    if form.cleaned_data['new_password']:
        target.set_password(form.cleaned_data['new_password'])
    target.save()

    logger.info("Admin %s updated user %s", request.user.email, target.email)
    return JsonResponse({
        'success': True,
        'user': _with_request_count(target),
        'message': 'User updated successfully',
    })


@require_http_methods(['PATCH'])
@admin_required
@with_json_body
def admin_user_binom(request, user_id, data):
    form = UserBinomForm(data)
    if not form.is_valid():
        return form_error(form)

    target = get_or_404(AppUser, 'User not found', pk=user_id)
    target.binom_api_key = form.cleaned_data['binom_api_key']
    target.save(update_fields=['binom_api_key', 'updated_at'])

    logger.info("Admin %s updated Binom settings for user %s", request.user.email, target.email)
    return JsonResponse({
        'success': True,
        'user': {**target.summary(), 'binom_api_key': target.binom_api_key},
    })


@require_http_methods(['PATCH'])
@admin_required
@with_json_body
def admin_user_integrations(request, user_id, data):
    form = UserIntegrationsForm(data)
    if not form.is_valid():
        return form_error(form)

    target = get_or_404(AppUser, 'User not found', pk=user_id)
    changes = present_fields(form, data)
    for field, value in changes.items():
        setattr(target, field, value)
    target.save()

    logger.info("Admin %s updated integrations for user %s", request.user.email, target.email)
    return JsonResponse({
        'success': True,
        'user': {
            **target.summary(),
            'binom_api_key': target.binom_api_key,
            'google_sheets_id': target.google_sheets_id,
        },
    })


@require_POST
@admin_required
@with_json_body
def admin_test_binom(request, data):
    form = BinomKeyForm(data)
    if not form.is_valid():
        return form_error(form)

    api_key = form.cleaned_data['binom_api_key']
    logger.info("Admin %s testing Binom API key", request.user.email)

    if len(api_key) < 10:
        return JsonResponse({'success': False, 'error': 'API key seems too short'})

    ok, message = BinomService(api_key).test_connection()
    if not ok:
        return JsonResponse({'success': False, 'error': message})
    return JsonResponse({'success': True, 'message': message})
