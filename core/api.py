"""
Helpers shared by the JSON API views: session/role checks, body parsing,
form error responses and paging.
"""
import json
import math
from functools import wraps

from django.http import Http404, JsonResponse
from django.shortcuts import get_object_or_404


def json_error(message, status=400, **extra):
    return JsonResponse({'error': message, **extra}, status=status)


def get_or_404(klass, message, **lookup):
    """``get_object_or_404`` with the message the API reports."""
    try:
        return get_object_or_404(klass, **lookup)
    except Http404:
        raise Http404(message) from None


def api_login_required(view_func):
    """Like ``login_required`` but answers 401 JSON instead of redirecting."""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return json_error('Authentication required', status=401)
        return view_func(request, *args, **kwargs)
    return wrapper


def admin_required(view_func):
    """Session must belong to an ADMIN user."""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return json_error('Authentication required', status=401)
        if not request.user.is_admin:
            return json_error('Insufficient permissions', status=403)
        return view_func(request, *args, **kwargs)
    return wrapper


class InvalidJSON(ValueError):
    pass


def parse_json(request):
    """Decode a JSON object body. An empty body is an empty dict."""
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidJSON(str(exc)) from exc
    if not isinstance(data, dict):
        raise InvalidJSON('Expected a JSON object')
    return data


def with_json_body(view_func):
    """Parse the body once and pass it as ``data``; malformed JSON is a 400."""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if request.method in ('POST', 'PATCH', 'PUT'):
            try:
                kwargs['data'] = parse_json(request)
            except InvalidJSON:
                return json_error('Invalid JSON')
        else:
            kwargs['data'] = {}
        return view_func(request, *args, **kwargs)
    return wrapper


def form_error(form, message='Invalid data'):
    return json_error(message, details=form.errors.get_json_data())


def present_fields(form, data):
    """Cleaned values for only the keys the client actually sent (PATCH)."""
    return {name: value for name, value in form.cleaned_data.items() if name in data}


def paginate(queryset, page, limit):
    """Slice a queryset the way the list endpoints report it."""
    total = queryset.count()
    offset = (page - 1) * limit
    items = list(queryset[offset:offset + limit])
    return items, {
        'page': page,
        'limit': limit,
        'total': total,
        'pages': math.ceil(total / limit) if limit else 0,
    }


def isoformat(value):
    return value.isoformat() if value else None
