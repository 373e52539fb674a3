import logging

from django.conf import settings
from django.db import transaction
from django.db.models import F, Prefetch
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from core.api import (
    admin_required, api_login_required, form_error, get_or_404, json_error, with_json_body,
)
from .binom import BinomError, BinomService
from .cloudflare import CloudflareClient, NamecheapClient
from .forms import (
    ArchiveForm, BulkDomainsForm, CloudflareSetupForm, CostForm, DomainForm, DomainRequestForm,
    NoteForm, RequestDecisionForm,
)
from .google_sheets import GoogleSheetsError, create_google_sheets_service
from .models import Domain, DomainRequest
from .provisioning import parse_domain_list, provision_domains

logger = logging.getLogger(__name__)


def _active_domain_count(user, exclude=None):
    domains = Domain.objects.filter(assigned_to=user, is_archived=False)
    if exclude is not None:
        domains = domains.exclude(pk=exclude.pk)
    return domains.count()


def _add_to_binom(user, domain):
    """Register an assigned domain with the user's tracker; returns the status string."""
    service = BinomService.for_user(user)
    if service is None:
        return 'not_configured'
    try:
        created = service.add_domain(domain.domain)
    except BinomError as e:
        logger.error("Failed to add domain %s to Binom for %s: %s", domain.domain, user.email, e)
        return 'error'
    domain.binom_domain_id = created['id']
    domain.save(update_fields=['binom_domain_id', 'updated_at'])
    logger.info("Added domain %s to Binom with ID %s", domain.domain, created['id'])
    return 'success'


def _report_to_sheets(user, domain):
    if not user.google_sheets_id:
        return 'disabled'
    try:
        service = create_google_sheets_service(user.google_sheets_id)
        if service is None:
            return 'disabled'
        service.update_monthly_stats(
            domain=domain.domain,
            cost=domain.cost,
            assigned_at=domain.assigned_at or timezone.now(),
        )
    except GoogleSheetsError as e:
        logger.error("Failed to update monthly stats for %s: %s", domain.domain, e)
        return 'error'
    except (KeyError, TypeError, ValueError):
        # Unexpected spreadsheet payload; the domain stays assigned
        logger.exception("Unexpected Google Sheets response for %s", domain.domain)
        return 'error'
    return 'success'


# 1. Domains of the signed-in user

@require_GET
@api_login_required
def my_domains(request):
    domains = Domain.objects.filter(assigned_to=request.user).order_by(F('assigned_at').asc(nulls_first=True))
    return JsonResponse([domain.as_dict() for domain in domains], safe=False)


@require_http_methods(['GET', 'POST'])
@api_login_required
@with_json_body
def domain_requests(request, data):
    user = request.user

    if request.method == 'GET':
        items = DomainRequest.objects.filter(user=user).select_related('domain').order_by('-created_at')
        return JsonResponse([item.as_dict() for item in items], safe=False)

    form = DomainRequestForm(data)
    if not form.is_valid():
        return form_error(form)

    if DomainRequest.objects.filter(user=user, status='PENDING').exists():
        return json_error('You already have a pending domain request')

    limit = settings.MAX_ACTIVE_DOMAINS
    active_count = _active_domain_count(user)
    logger.info("User %s has %s active domains", user.email, active_count)
    if active_count >= limit:
        return json_error(
            f'You have reached the maximum limit of {limit} active domains. '
            'Please archive some domains before requesting new ones.',
            current_count=active_count,
            max_limit=limit,
        )

    with transaction.atomic():
        # First added, first assigned
        domain = (
            Domain.objects.select_for_update()
            .filter(is_assigned=False)
            .order_by('created_at', 'pk')
            .first()
        )
        if domain is None:
            return json_error('No available domains at the moment. Please try again later.')

        domain.is_assigned = True
        domain.assigned_to = user
        domain.assigned_at = timezone.now()
        domain.save()

        domain_request = DomainRequest.objects.create(
            user=user,
            domain=domain,
            comment=form.cleaned_data['comment'] or 'Auto-assigned domain',
            status='APPROVED',
        )

    logger.info("Domain %s assigned to %s", domain.domain, user.email)
    binom_status = _add_to_binom(user, domain)
    sheets_status = _report_to_sheets(user, domain)

    return JsonResponse({
        **domain_request.as_dict(include_user=True),
        'binom_integration': binom_status,
        'sheets_integration': sheets_status,
    }, status=201)


@require_http_methods(['PATCH'])
@api_login_required
@with_json_body
def domain_archive(request, domain_id, data):
    form = ArchiveForm(data)
    if not form.is_valid():
        return form_error(form)
    is_archived = form.cleaned_data['is_archived']

    user = request.user
    domain = get_or_404(Domain, 'Domain not found', pk=domain_id, assigned_to=user)
    service = BinomService.for_user(user)
    binom_status = 'disabled'

    if is_archived:
        if domain.binom_domain_id and service is not None:
            try:
                service.delete_domain(domain.binom_domain_id)
                binom_status = 'deleted'
            except BinomError as e:
                logger.error("Failed to delete domain %s from Binom: %s", domain.domain, e)
                binom_status = 'delete_error'
    else:
        limit = settings.MAX_ACTIVE_DOMAINS
        active_count = _active_domain_count(user, exclude=domain)
        if active_count >= limit:
            return json_error(
                f'Cannot restore domain: You have reached the maximum limit of {limit} active domains. '
                'Please archive some domains first.',
                current_count=active_count,
                max_limit=limit,
            )
        if service is None:
            binom_status = 'restored_no_binom'
        else:
            try:
                created = service.add_domain(domain.domain)
                domain.binom_domain_id = created['id']
                binom_status = 'restored'
            except BinomError as e:
                logger.error("Failed to re-add domain %s to Binom: %s", domain.domain, e)
                binom_status = 'restore_error'

    domain.is_archived = is_archived
    domain.archived_at = timezone.now() if is_archived else None
    domain.save()

    logger.info("Domain %s %s by %s", domain.domain, 'archived' if is_archived else 'restored', user.email)
    return JsonResponse({**domain.as_dict(), 'binom_integration': binom_status})


@require_http_methods(['PATCH'])
@api_login_required
@with_json_body
def domain_note(request, domain_id, data):
    form = NoteForm(data)
    if not form.is_valid():
        return form_error(form)

    domain = get_or_404(Domain, 'Domain not found', pk=domain_id, assigned_to=request.user)
    domain.note = form.cleaned_data['note']
    domain.save(update_fields=['note', 'updated_at'])
    return JsonResponse(domain.as_dict())


@require_http_methods(['DELETE'])
@api_login_required
def domain_delete(request, domain_id):
    domain = get_or_404(
        Domain, 'Domain not found or cannot be deleted. Only archived domains can be deleted.',
        pk=domain_id, assigned_to=request.user, is_archived=True,
    )
    # Archiving already removed it from Binom
    domain.delete()
    logger.info("Domain %s deleted by %s", domain.domain, request.user.email)
    return JsonResponse({'success': True, 'binom_integration': 'skipped'})


# 2. Domain pool administration

@require_http_methods(['GET', 'POST'])
@admin_required
@with_json_body
def admin_domains(request, data):
    if request.method == 'GET':
        domains = (
            Domain.objects.select_related('assigned_to')
            .prefetch_related(Prefetch(
                'requests',
                queryset=DomainRequest.objects.select_related('user').order_by('-created_at'),
            ))
            .order_by(F('assigned_at').desc(nulls_first=True), 'created_at')
        )
        return JsonResponse(
            [domain.as_dict(include_user=True, include_requests=True) for domain in domains], safe=False,
        )

    form = DomainForm(data)
    if not form.is_valid():
        return form_error(form)

    name = form.cleaned_data['domain']
    if Domain.objects.filter(domain=name).exists():
        return json_error('Domain already exists')

    domain = Domain.objects.create(domain=name)
    logger.info("Domain %s added by %s", name, request.user.email)
    return JsonResponse(domain.as_dict(include_user=True), status=201)


@require_POST
@admin_required
@with_json_body
def admin_domains_bulk(request, data):
    form = BulkDomainsForm(data)
    if not form.is_valid():
        return form_error(form)

    names = list(dict.fromkeys(form.cleaned_data['domains']))
    cost = form.cleaned_data['cost']

    existing = list(Domain.objects.filter(domain__in=names).values_list('domain', flat=True))
    new_names = [name for name in names if name not in existing]
    if not new_names:
        return json_error('All domains already exist', existing=existing)

    with transaction.atomic():
        created = [Domain.objects.create(domain=name, cost=cost or None) for name in new_names]

    message = f"Created {len(created)} domains"
    if existing:
        message += f", skipped {len(existing)} existing"
    logger.info("%s (by %s)", message, request.user.email)

    return JsonResponse({
        'created': [domain.as_dict(include_user=True) for domain in created],
        'skipped': existing,
        'message': message,
    }, status=201)


@require_http_methods(['PATCH'])
@admin_required
@with_json_body
def admin_domains_bulk_cost(request, data):
    form = CostForm(data)
    if not form.is_valid():
        return form_error(form)

    cost = form.cleaned_data['cost']
    updated = Domain.objects.update(cost=cost, updated_at=timezone.now())
    logger.info("Cost of %s domains set to %s by %s", updated, cost, request.user.email)
    return JsonResponse({
        'success': True,
        'updated_count': updated,
        'cost': float(cost) if cost is not None else None,
    })


@require_http_methods(['PATCH'])
@admin_required
@with_json_body
def admin_domain_cost(request, domain_id, data):
    form = CostForm(data)
    if not form.is_valid():
        return form_error(form)

    domain = get_or_404(Domain, 'Domain not found', pk=domain_id)
    domain.cost = form.cleaned_data['cost']
    domain.save(update_fields=['cost', 'updated_at'])
    return JsonResponse({'success': True, 'domain': domain.as_dict()})


@require_http_methods(['DELETE'])
@admin_required
def admin_domain_delete(request, domain_id):
    domain = get_or_404(Domain, 'Domain not found', pk=domain_id)
    domain.delete()
    logger.info("Domain %s deleted by admin %s", domain.domain, request.user.email)
    return JsonResponse({'success': True})


@require_GET
@admin_required
def admin_domain_requests(request):
    items = DomainRequest.objects.select_related('user', 'domain').order_by('-created_at')
    return JsonResponse([item.as_dict(include_user=True) for item in items], safe=False)


@require_http_methods(['PATCH'])
@admin_required
@with_json_body
def admin_domain_request_detail(request, request_id, data):
    form = RequestDecisionForm(data)
    if not form.is_valid():
        return form_error(form)
    status = form.cleaned_data['status']
    domain_id = form.cleaned_data['domain_id']

    domain_request = get_or_404(DomainRequest, 'Domain request not found', pk=request_id)
    if domain_request.status != 'PENDING':
        return json_error('Request has already been processed')

    with transaction.atomic():
        if status == 'APPROVED' and domain_id:
            domain = get_or_404(Domain.objects.select_for_update(), 'Domain not found', pk=domain_id)
            if domain.is_assigned:
                return json_error('Domain is already assigned')
            domain.is_assigned = True
            domain.assigned_to_id = domain_request.user_id
            domain.assigned_at = timezone.now()
            domain.save()
            domain_request.domain = domain

        domain_request.status = status
        if 'comment' in data:
            domain_request.comment = form.cleaned_data['comment']
        domain_request.save()

    logger.info("Domain request %s %s by %s", domain_request.pk, status.lower(), request.user.email)
    return JsonResponse(domain_request.as_dict(include_user=True))


@require_POST
@admin_required
@with_json_body
def cloudflare_setup(request, data):
    """Onboard domains through Cloudflare and Namecheap, pausing between them.

    Blocks for minutes per extra domain; batches belong in the
    ``provision_domains`` command.
    """
    form = CloudflareSetupForm(data)
    if not form.is_valid():
        return form_error(form)
    params = form.cleaned_data

    domains = parse_domain_list(params['domains'])
    logger.info("Cloudflare setup for %s domains started by %s", len(domains), request.user.email)

    results = provision_domains(
        domains,
        cost=params['cost'] or None,
        cloudflare=CloudflareClient(params['cloudflare_email'], params['cloudflare_api_key']),
        namecheap=NamecheapClient(
            params['namecheap_api_user'], params['namecheap_api_key'],
            params['namecheap_username'], params['client_ip'],
        ),
        target_ip=params['target_ip'],
        delay_range=settings.CLOUDFLARE_SETUP_DELAY,
    )
    return JsonResponse({'results': results})
