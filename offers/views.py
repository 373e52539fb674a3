import logging
import mimetypes
import os
import time

from django.core.files.storage import default_storage
from django.db import connection, transaction
from django.db.models import Max, Min, Prefetch, Q
from django.http import FileResponse, HttpResponse, JsonResponse
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from core.api import (
    admin_required, api_login_required, form_error, get_or_404, json_error, paginate,
    present_fields, with_json_body,
)
from .audit import create_audit_log
from .forms import (
    AuditLogFilterForm, GeoForm, LandingForm, LanguageForm, NamedReferenceForm, OfferFilterForm,
    OfferForm, OfferImageForm, PartnerForm, ReorderForm,
)
from .models import AuditLog, Geo, Landing, Language, Offer, OfferType, Partner, Vertical

logger = logging.getLogger(__name__)

OFFER_IMAGE_DIR = 'offers'

# Blank card created when the editor posts an empty body
DEFAULT_OFFER = {
    'title': 'Untitled',
    'vertical': 'Undefined',
    'price_usd': 0,
    'geo': [],
    'tags': [],
    'status': 'ACTIVE',
    'image_url': '',
}

REFERENCE_TABLES = {
    'verticals': (Vertical, NamedReferenceForm),
    'offer-types': (OfferType, NamedReferenceForm),
    'geos': (Geo, GeoForm),
    'languages': (Language, LanguageForm),
    'partners': (Partner, PartnerForm),
}


def _offers_with_landings():
    return Offer.objects.prefetch_related(
        Prefetch('landings', queryset=Landing.objects.order_by('order', 'pk'))
    )


def _next_offer_order():
    # New offers sort before every existing one
    min_order = Offer.objects.aggregate(Min('order'))['order__min']
    return (min_order or 10) - 10


def _next_landing_order(offer, landing_type):
    max_order = offer.landings.filter(type=landing_type).aggregate(Max('order'))['order__max']
    return (max_order or 0) + 10


def _ext_id_taken(offer_id, landing_type, ext_id, exclude_pk=None):
    clash = Landing.objects.filter(offer_id=offer_id, type=landing_type, ext_id=ext_id)
    if exclude_pk is not None:
        clash = clash.exclude(pk=exclude_pk)
    return clash.exists()


def _filter_list_membership(queryset, geo, tag):
    """Offers whose ``geo`` / ``tags`` JSON lists contain the given values."""
    if connection.features.supports_json_field_contains:
        if geo:
            queryset = queryset.filter(geo__contains=[geo])
        if tag:
            queryset = queryset.filter(tags__contains=[tag])
        return queryset
    # SQLite has no JSON containment lookup
    matching = [
        pk for pk, offer_geo, offer_tags in queryset.values_list('pk', 'geo', 'tags')
        if (not geo or geo in (offer_geo or [])) and (not tag or tag in (offer_tags or []))
    ]
    return queryset.filter(pk__in=matching)


# 1. Offers

@require_http_methods(['GET', 'POST'])
@api_login_required
@with_json_body
def offers(request, data):
    if request.method == 'POST':
        return _create_offer(request, data)

    filters = OfferFilterForm(request.GET)
    if not filters.is_valid():
        return form_error(filters, 'Invalid request parameters')
    params = filters.cleaned_data

    queryset = _offers_with_landings()
    if params['search']:
        queryset = queryset.filter(
            Q(title__icontains=params['search']) | Q(vertical__icontains=params['search'])
        )
    if params['status']:
        queryset = queryset.filter(status=params['status'])
    if params['vertical']:
        queryset = queryset.filter(vertical=params['vertical'])

    # Landing filters must match on the same landing
    landing_filter = {}
    if params['locale']:
        landing_filter['landings__locale'] = params['locale']
    if params['partner']:
        landing_filter['landings__network_code'] = params['partner']
    if landing_filter:
        queryset = queryset.filter(**landing_filter).distinct()

    if params['geo'] or params['tag']:
        queryset = _filter_list_membership(queryset, params['geo'], params['tag'])

    items, pagination = paginate(
        queryset.order_by('order', 'pk'), params['page'] or 1, params['limit'] or 20,
    )
    return JsonResponse({
        'offers': [offer.as_dict() for offer in items],
        'pagination': pagination,
    })


def _create_offer(request, data):
    if not request.user.is_admin:
        return json_error('Insufficient permissions', status=403)

    if data:
        form = OfferForm(data)
        if not form.is_valid():
            return form_error(form)
        fields = form.cleaned_data
    else:
        fields = dict(DEFAULT_OFFER)

    offer = Offer.objects.create(**fields, order=_next_offer_order())
    logger.info("Offer %s created by %s", offer.pk, request.user.email)

    result = offer.as_dict(landings=[])
    create_audit_log(request.user, 'create', 'offer', offer.pk, after=result)
    return JsonResponse(result, status=201)


@require_http_methods(['PATCH', 'DELETE'])
@admin_required
@with_json_body
def offer_detail(request, offer_id, data):
    offer = get_or_404(_offers_with_landings(), 'Offer not found', pk=offer_id)
    before = offer.as_dict()

    if request.method == 'DELETE':
        offer.delete()
        logger.info("Offer %s deleted by %s", offer_id, request.user.email)
        create_audit_log(request.user, 'delete', 'offer', offer_id, before=before)
        return JsonResponse({'success': True})

    form = OfferForm(data, partial=True)
    if not form.is_valid():
        return form_error(form)

    for field, value in present_fields(form, data).items():
        setattr(offer, field, value)
    offer.save()
    offer.refresh_from_db()

    after = offer.as_dict()
    create_audit_log(request.user, 'update', 'offer', offer.pk, before=before, after=after)
    return JsonResponse(after)


@require_POST
@admin_required
def offer_duplicate(request, offer_id):
    original = get_or_404(_offers_with_landings(), 'Offer not found', pk=offer_id)

    with transaction.atomic():
        copy = Offer.objects.create(
            vertical=original.vertical,
            title=f"{original.title} (copy)",
            price_usd=original.price_usd,
            geo=list(original.geo),
            tags=list(original.tags),
            status='ACTIVE',
            image_url=original.image_url,
            order=_next_offer_order(),
        )
        landings = [
            Landing.objects.create(
                offer=copy,
                ext_id=landing.ext_id,
                label=landing.label,
                type=landing.type,
                locale=landing.locale,
                network_code=landing.network_code,
                url=landing.url,
                notes=landing.notes,
                order=landing.order,
            )
            for landing in original.landings.all()
        ]

    result = copy.as_dict(landings=landings)
    logger.info("Offer %s duplicated as %s by %s", original.pk, copy.pk, request.user.email)

    create_audit_log(
        request.user, 'duplicate', 'offer', copy.pk, after=result,
        metadata={'original_offer_id': original.pk, 'duplicated_landings_count': len(landings)},
    )
    for landing in landings:
        create_audit_log(
            request.user, 'create', 'landing', landing.pk, after=landing.as_dict(),
            metadata={'created_via_duplication': True, 'original_offer_id': original.pk},
        )
    return JsonResponse(result, status=201)


@require_POST
@admin_required
@with_json_body
def offer_landings(request, offer_id, data):
    form = LandingForm(data)
    if not form.is_valid():
        return form_error(form)
    fields = form.cleaned_data

    offer = get_or_404(Offer, 'Offer not found', pk=offer_id)

    if fields['ext_id'] and _ext_id_taken(offer.pk, fields['type'], fields['ext_id']):
        return json_error('Landing with this ext_id already exists for this type')

    landing = Landing.objects.create(
        offer=offer, order=_next_landing_order(offer, fields['type']), **fields,
    )
    result = landing.as_dict()
    create_audit_log(request.user, 'create', 'landing', landing.pk, after=result)
    return JsonResponse(result, status=201)


@require_POST
@admin_required
def offer_image(request, offer_id):
    offer = get_or_404(Offer, 'Offer not found', pk=offer_id)

    form = OfferImageForm(request.POST, request.FILES)
    if not form.is_valid():
        return json_error(form.errors['image'][0], details=form.errors.get_json_data())

    image = form.cleaned_data['image']
    extension = os.path.splitext(image.name)[1].lower()
    filename = f"{offer.pk}-{int(time.time() * 1000)}{extension}"
    stored_name = default_storage.save(f"{OFFER_IMAGE_DIR}/{filename}", image)

    offer.image_url = default_storage.url(stored_name)
    offer.save(update_fields=['image_url', 'updated_at'])
    logger.info("Image %s uploaded for offer %s", stored_name, offer.pk)

    return JsonResponse({'image_url': offer.image_url, 'offer': offer.as_dict()})


def _reorder(model, label, data):
    form = ReorderForm(data)
    if not form.is_valid():
        return form_error(form)
    items = form.cleaned_data['items']

    ids = {item['id'] for item in items}
    if model.objects.filter(pk__in=ids).count() != len(ids):
        return json_error(f'{label} not found', status=404)

    with transaction.atomic():
        for item in items:
            model.objects.filter(pk=item['id']).update(order=item['order'])
    return JsonResponse({'success': True})


@require_POST
@admin_required
@with_json_body
def offers_reorder(request, data):
    return _reorder(Offer, 'Offer', data)


# 2. Landings

@require_POST
@admin_required
@with_json_body
def landings_reorder(request, data):
    return _reorder(Landing, 'Landing', data)


@require_http_methods(['PATCH', 'DELETE'])
@admin_required
@with_json_body
def landing_detail(request, landing_id, data):
    landing = get_or_404(Landing, 'Landing not found', pk=landing_id)
    before = landing.as_dict()

    if request.method == 'DELETE':
        landing.delete()
        create_audit_log(request.user, 'delete', 'landing', landing_id, before=before)
        return JsonResponse({'success': True})

    form = LandingForm(data, partial=True)
    if not form.is_valid():
        return form_error(form)
    changes = present_fields(form, data)

    ext_id = changes.get('ext_id')
    if ext_id and ext_id != landing.ext_id:
        landing_type = changes.get('type', landing.type)
        if _ext_id_taken(landing.offer_id, landing_type, ext_id, exclude_pk=landing.pk):
            return json_error('Landing with this ext_id already exists for this type')

    for field, value in changes.items():
        setattr(landing, field, value)
    landing.save()

    after = landing.as_dict()
    create_audit_log(request.user, 'update', 'landing', landing.pk, before=before, after=after)
    return JsonResponse(after)


# 3. Reference tables

@require_GET
def references(request):
    tables = {
        'verticals': Vertical,
        'offer_types': OfferType,
        'geos': Geo,
        'languages': Language,
        'partners': Partner,
    }
    rows = {
        key: list(model.objects.filter(is_active=True).order_by('order'))
        for key, model in tables.items()
    }
    return JsonResponse({
        'vertical_options': [row.name for row in rows['verticals']],
        'offer_type_options': [row.name for row in rows['offer_types']],
        'geo_options': [row.code for row in rows['geos']],
        'locale_options': [row.code for row in rows['languages']],
        'partner_options': [row.code for row in rows['partners']],
        **{key: [row.option() for row in items] for key, items in rows.items()},
    })


def _reference_label(model):
    return model._meta.verbose_name.capitalize()


@require_http_methods(['GET', 'POST'])
@admin_required
@with_json_body
def reference_collection(request, table, data):
    model, form_class = REFERENCE_TABLES[table]
    label = _reference_label(model)

    if request.method == 'GET':
        rows = model.objects.order_by('order', 'name')
        return JsonResponse([row.as_dict() for row in rows], safe=False)

    form = form_class(data)
    if not form.is_valid():
        return form_error(form, 'Validation error')

    key = model.unique_field
    value = form.cleaned_data[key]
    if model.objects.filter(**{key: value}).exists():
        return json_error(f'{label} with this {key} already exists')

    fields = {key: value, 'is_active': True, 'order': 0}
    if key == 'code':
        fields['name'] = form.cleaned_data['name']
    else:
        fields['description'] = form.cleaned_data['description']
    row = model.objects.create(**fields)

    logger.info("%s %s created by %s", label, value, request.user.email)
    return JsonResponse(row.as_dict(), status=201)


@require_http_methods(['PATCH', 'DELETE'])
@admin_required
@with_json_body
def reference_detail(request, table, pk, data):
    model, form_class = REFERENCE_TABLES[table]
    label = _reference_label(model)
    row = get_or_404(model, f'{label} not found', pk=pk)

    if request.method == 'DELETE':
        row.delete()
        logger.info("%s %s deleted by %s", label, pk, request.user.email)
        return JsonResponse({'message': f'{label} deleted'})

    form = form_class(data, partial=True)
    if not form.is_valid():
        return form_error(form, 'Validation error')
    changes = present_fields(form, data)

    key = model.unique_field
    if key in changes and changes[key] != getattr(row, key):
        if model.objects.filter(**{key: changes[key]}).exclude(pk=row.pk).exists():
            return json_error(f'{label} with this {key} already exists')

    for field, value in changes.items():
        # order is optional on the form; a null keeps the current value
        if field == 'order' and value is None:
            continue
        setattr(row, field, value)
    row.save()
    return JsonResponse(row.as_dict())


# 4. Audit trail

@require_GET
@admin_required
def audit_logs(request):
    filters = AuditLogFilterForm(request.GET)
    if not filters.is_valid():
        return form_error(filters, 'Invalid request parameters')
    params = filters.cleaned_data

    logs = AuditLog.objects.select_related('actor').order_by('-created_at', '-pk')
    if params['entity']:
        logs = logs.filter(entity=params['entity'])
    if params['action']:
        logs = logs.filter(action=params['action'])

    items, pagination = paginate(logs, params['page'] or 1, params['limit'] or 50)
    return JsonResponse({
        'logs': [log.as_dict() for log in items],
        'pagination': pagination,
    })


# 5. Uploaded images

@require_GET
def serve_offer_image(request, filename):
    if '..' in filename or '/' in filename or '\\' in filename:
        return HttpResponse('Invalid filename', status=400)

    name = f"{OFFER_IMAGE_DIR}/{filename}"
    if not default_storage.exists(name):
        return HttpResponse('File not found', status=404)

    content_type = mimetypes.guess_type(filename)[0] or 'application/octet-stream'
    response = FileResponse(default_storage.open(name, 'rb'), content_type=content_type)
    response['Cache-Control'] = 'public, max-age=31536000, immutable'
    return response
