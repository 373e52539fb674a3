"""Tests for the domain endpoints a regular user sees."""

import json
from datetime import timedelta
from unittest import mock

import pytest
import requests
from django.utils import timezone

from domains.binom import BinomError
from domains.google_sheets import GoogleSheetsError
from domains.models import Domain, DomainRequest


def patch_json(client, url, payload):
    return client.patch(url, data=json.dumps(payload), content_type='application/json')


def request_domain(client, **payload):
    return client.post('/api/domain-requests', data=payload, content_type='application/json')


def pool(*names):
    """Unassigned domains, oldest first."""
    now = timezone.now()
    domains = []
    for offset, name in enumerate(names):
        domain = Domain.objects.create(domain=name)
        Domain.objects.filter(pk=domain.pk).update(created_at=now - timedelta(minutes=len(names) - offset))
        domains.append(domain)
    return domains


def assign(user, name, archived=False, **fields):
    return Domain.objects.create(
        domain=name, is_assigned=True, assigned_to=user, assigned_at=timezone.now(),
        is_archived=archived, archived_at=timezone.now() if archived else None, **fields,
    )


@pytest.mark.django_db
class TestDomainRequest:
    def test_assigns_oldest_free_domain(self, user_client, regular_user):
        pool('first.com', 'second.com')

        response = request_domain(user_client, comment='For the spring campaign')
        assert response.status_code == 201
        data = response.json()
        assert data['status'] == 'APPROVED'
        assert data['comment'] == 'For the spring campaign'
        assert data['domain']['domain'] == 'first.com'
        assert data['user']['email'] == 'user@example.com'
        assert data['binom_integration'] == 'not_configured'
        assert data['sheets_integration'] == 'disabled'

        domain = Domain.objects.get(domain='first.com')
        assert domain.is_assigned
        assert domain.assigned_to == regular_user
        assert domain.assigned_at is not None

    def test_default_comment(self, user_client):
        pool('first.com')
        assert request_domain(user_client).json()['comment'] == 'Auto-assigned domain'

    def test_pending_request_blocks_new_one(self, user_client, regular_user):
        pool('first.com')
        DomainRequest.objects.create(user=regular_user, status='PENDING')
        response = request_domain(user_client)
        assert response.status_code == 400
        assert response.json()['error'] == 'You already have a pending domain request'

    def test_active_domain_limit(self, user_client, regular_user, settings):
        settings.MAX_ACTIVE_DOMAINS = 2
        assign(regular_user, 'a.com')
        assign(regular_user, 'b.com')
        assign(regular_user, 'old.com', archived=True)
        pool('free.com')

        response = request_domain(user_client)
        assert response.status_code == 400
        data = response.json()
        assert data['current_count'] == 2
        assert data['max_limit'] == 2
        assert 'maximum limit of 2 active domains' in data['error']

    def test_empty_pool(self, user_client):
        response = request_domain(user_client)
        assert response.status_code == 400
        assert response.json()['error'] == 'No available domains at the moment. Please try again later.'
        assert not DomainRequest.objects.exists()

    def test_adds_domain_to_binom(self, user_client, regular_user):
        regular_user.binom_api_key = 'user-binom-key'
        regular_user.save()
        pool('first.com')

        with mock.patch(
            'domains.views.BinomService.add_domain',
            return_value={'id': 'binom-1', 'name': 'first.com', 'status': 'active'},
        ) as add_domain:
            response = request_domain(user_client)

        assert response.json()['binom_integration'] == 'success'
        add_domain.assert_called_once_with('first.com')
        assert Domain.objects.get(domain='first.com').binom_domain_id == 'binom-1'

    def test_binom_failure_keeps_assignment(self, user_client, regular_user):
        regular_user.binom_api_key = 'user-binom-key'
        regular_user.save()
        pool('first.com')

        with mock.patch('domains.views.BinomService.add_domain', side_effect=BinomError('HTTP 500: down')):
            response = request_domain(user_client)

        assert response.status_code == 201
        assert response.json()['binom_integration'] == 'error'
        assert Domain.objects.get(domain='first.com').assigned_to == regular_user

    def test_reports_to_sheets(self, user_client, regular_user):
        regular_user.google_sheets_id = 'sheet-1'
        regular_user.save()
        pool('first.com')
        Domain.objects.filter(domain='first.com').update(cost='4.50')

        service = mock.Mock()
        with mock.patch('domains.views.create_google_sheets_service', return_value=service) as factory:
            response = request_domain(user_client)

        assert response.json()['sheets_integration'] == 'success'
        factory.assert_called_once_with('sheet-1')
        kwargs = service.update_monthly_stats.call_args.kwargs
        assert kwargs['domain'] == 'first.com'
        assert float(kwargs['cost']) == 4.5

    def test_sheets_failure_is_reported(self, user_client, regular_user):
        regular_user.google_sheets_id = 'sheet-1'
        regular_user.save()
        pool('first.com')

        service = mock.Mock()
        service.update_monthly_stats.side_effect = GoogleSheetsError("Sheet 'May 2025' not found")
        with mock.patch('domains.views.create_google_sheets_service', return_value=service):
            response = request_domain(user_client)

        assert response.status_code == 201
        assert response.json()['sheets_integration'] == 'error'

    def test_non_json_sheets_reply_keeps_assignment(self, user_client, regular_user, settings):
        settings.GOOGLE_SHEETS_SERVICE_ACCOUNT_EMAIL = 'bot@project.iam.gserviceaccount.com'
        settings.GOOGLE_SHEETS_PRIVATE_KEY = 'key'
        regular_user.google_sheets_id = 'sheet-1'
        regular_user.save()
        pool('first.com')

        reply = requests.Response()
        reply.status_code = 200
        reply._content = b'<html>maintenance</html>'
        with mock.patch('domains.google_sheets.service_account.Credentials.from_service_account_info'), \
                mock.patch('domains.google_sheets.AuthorizedSession') as session_class:
            session_class.return_value.request.return_value = reply
            response = request_domain(user_client)

        assert response.status_code == 201
        assert response.json()['sheets_integration'] == 'error'
        assert Domain.objects.get(domain='first.com').assigned_to == regular_user
        assert DomainRequest.objects.get(user=regular_user).status == 'APPROVED'

    def test_malformed_sheet_metadata_is_reported(self, user_client, regular_user):
        regular_user.google_sheets_id = 'sheet-1'
        regular_user.save()
        pool('first.com')

        service = mock.Mock()
        service.update_monthly_stats.side_effect = KeyError('sheetId')
        with mock.patch('domains.views.create_google_sheets_service', return_value=service):
            response = request_domain(user_client)

        assert response.status_code == 201
        assert response.json()['sheets_integration'] == 'error'

    def test_sheets_not_configured(self, user_client, regular_user):
        regular_user.google_sheets_id = 'sheet-1'
        regular_user.save()
        pool('first.com')
        # No service account in the test settings
        assert request_domain(user_client).json()['sheets_integration'] == 'disabled'

    def test_list_own_requests(self, user_client, regular_user, admin_user):
        DomainRequest.objects.create(user=regular_user, status='REJECTED', comment='mine')
        DomainRequest.objects.create(user=admin_user, status='PENDING', comment='not mine')
        data = user_client.get('/api/domain-requests').json()
        assert [item['comment'] for item in data] == ['mine']


@pytest.mark.django_db
class TestMyDomains:
    def test_only_own_domains(self, user_client, regular_user, admin_user):
        assign(regular_user, 'mine.com')
        assign(admin_user, 'theirs.com')
        pool('free.com')
        data = user_client.get('/api/my-domains').json()
        assert [item['domain'] for item in data] == ['mine.com']

    def test_requires_session(self, client):
        assert client.get('/api/my-domains').status_code == 401


@pytest.mark.django_db
class TestArchive:
    def test_archive_removes_from_binom(self, user_client, regular_user):
        regular_user.binom_api_key = 'user-binom-key'
        regular_user.save()
        domain = assign(regular_user, 'mine.com', binom_domain_id='binom-1')

        with mock.patch('domains.views.BinomService.delete_domain') as delete_domain:
            response = patch_json(user_client, f'/api/domains/{domain.pk}/archive', {'is_archived': True})

        assert response.status_code == 200
        data = response.json()
        assert data['binom_integration'] == 'deleted'
        assert data['is_archived'] is True
        assert data['archived_at'] is not None
        delete_domain.assert_called_once_with('binom-1')

    def test_archive_binom_error(self, user_client, regular_user):
        regular_user.binom_api_key = 'user-binom-key'
        regular_user.save()
        domain = assign(regular_user, 'mine.com', binom_domain_id='binom-1')

        with mock.patch('domains.views.BinomService.delete_domain', side_effect=BinomError('HTTP 404: gone')):
            response = patch_json(user_client, f'/api/domains/{domain.pk}/archive', {'is_archived': True})

        assert response.json()['binom_integration'] == 'delete_error'
        domain.refresh_from_db()
        assert domain.is_archived

    def test_archive_without_binom(self, user_client, regular_user):
        domain = assign(regular_user, 'mine.com')
        response = patch_json(user_client, f'/api/domains/{domain.pk}/archive', {'is_archived': True})
        assert response.json()['binom_integration'] == 'disabled'

    def test_restore_without_binom(self, user_client, regular_user):
        domain = assign(regular_user, 'mine.com', archived=True)
        response = patch_json(user_client, f'/api/domains/{domain.pk}/archive', {'is_archived': False})
        data = response.json()
        assert data['binom_integration'] == 'restored_no_binom'
        assert data['is_archived'] is False
        assert data['archived_at'] is None

    def test_restore_re_adds_to_binom(self, user_client, regular_user):
        regular_user.binom_api_key = 'user-binom-key'
        regular_user.save()
        domain = assign(regular_user, 'mine.com', archived=True, binom_domain_id='old-id')

        with mock.patch(
            'domains.views.BinomService.add_domain',
            return_value={'id': 'new-id', 'name': 'mine.com', 'status': 'active'},
        ):
            response = patch_json(user_client, f'/api/domains/{domain.pk}/archive', {'is_archived': False})

        assert response.json()['binom_integration'] == 'restored'
        domain.refresh_from_db()
        assert domain.binom_domain_id == 'new-id'

    def test_restore_error(self, user_client, regular_user):
        regular_user.binom_api_key = 'user-binom-key'
        regular_user.save()
        domain = assign(regular_user, 'mine.com', archived=True)

        with mock.patch('domains.views.BinomService.add_domain', side_effect=BinomError('Network error: timeout')):
            response = patch_json(user_client, f'/api/domains/{domain.pk}/archive', {'is_archived': False})

        assert response.json()['binom_integration'] == 'restore_error'
        domain.refresh_from_db()
        assert domain.is_archived is False

    def test_restore_respects_limit(self, user_client, regular_user, settings):
        settings.MAX_ACTIVE_DOMAINS = 1
        assign(regular_user, 'active.com')
        domain = assign(regular_user, 'mine.com', archived=True)

        response = patch_json(user_client, f'/api/domains/{domain.pk}/archive', {'is_archived': False})
        assert response.status_code == 400
        assert response.json()['current_count'] == 1
        domain.refresh_from_db()
        assert domain.is_archived

    def test_other_users_domain(self, user_client, admin_user):
        domain = assign(admin_user, 'theirs.com')
        response = patch_json(user_client, f'/api/domains/{domain.pk}/archive', {'is_archived': True})
        assert response.status_code == 404
        assert response.json() == {'error': 'Domain not found'}

    def test_flag_is_required(self, user_client, regular_user):
        domain = assign(regular_user, 'mine.com')
        response = patch_json(user_client, f'/api/domains/{domain.pk}/archive', {})
        assert response.status_code == 400


@pytest.mark.django_db
class TestNote:
    def test_set_and_clear(self, user_client, regular_user):
        domain = assign(regular_user, 'mine.com')
        url = f'/api/domains/{domain.pk}/note'
        assert patch_json(user_client, url, {'note': 'Used for FB'}).json()['note'] == 'Used for FB'
        assert patch_json(user_client, url, {'note': ''}).json()['note'] is None

    def test_too_long(self, user_client, regular_user):
        domain = assign(regular_user, 'mine.com')
        response = patch_json(user_client, f'/api/domains/{domain.pk}/note', {'note': 'x' * 501})
        assert response.status_code == 400
        assert response.json()['details']['note'][0]['message'] == 'Note must be less than 500 characters'


@pytest.mark.django_db
class TestDelete:
    def test_only_archived(self, user_client, regular_user):
        active = assign(regular_user, 'active.com')
        archived = assign(regular_user, 'archived.com', archived=True)

        assert user_client.delete(f'/api/domains/{active.pk}').status_code == 404
        response = user_client.delete(f'/api/domains/{archived.pk}')
        assert response.json() == {'success': True, 'binom_integration': 'skipped'}
        assert list(Domain.objects.values_list('domain', flat=True)) == ['active.com']
