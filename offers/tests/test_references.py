"""Tests for reference tables, the audit trail, offer images and seeding."""

import io
import json
from unittest import mock

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.db import DatabaseError
from django.test import Client
from PIL import Image

from accounts.models import AppUser
from offers.audit import create_audit_log
from offers.models import AuditLog, Geo, Landing, Language, Offer, OfferType, Partner, Vertical


def patch_json(client, url, payload):
    return client.patch(url, data=json.dumps(payload), content_type='application/json')


def png_upload(name='banner.png', size=(4, 4)):
    buffer = io.BytesIO()
    Image.new('RGB', size, color=(200, 30, 30)).save(buffer, format='PNG')
    return SimpleUploadedFile(name, buffer.getvalue(), content_type='image/png')


@pytest.mark.django_db
class TestPublicReferences:
    def test_active_rows_and_options(self):
        Vertical.objects.create(name='Health', order=2)
        Vertical.objects.create(name='Crypto', order=1)
        Vertical.objects.create(name='Hidden', order=0, is_active=False)
        OfferType.objects.create(name='Trial', order=1)
        Geo.objects.create(code='US', name='United States', order=1)
        Language.objects.create(code='EN', name='English', order=1)
        Partner.objects.create(code='JL', name='JumpLead', order=1)

        response = Client().get('/api/references')
        assert response.status_code == 200
        data = response.json()
        assert data['vertical_options'] == ['Crypto', 'Health']
        assert data['offer_type_options'] == ['Trial']
        assert data['geo_options'] == ['US']
        assert data['locale_options'] == ['EN']
        assert data['partner_options'] == ['JL']
        assert data['geos'] == [{'code': 'US', 'name': 'United States', 'order': 1}]
        assert data['verticals'][0] == {'name': 'Crypto', 'order': 1}


@pytest.mark.django_db
class TestReferenceAdmin:
    def test_requires_admin(self, user_client):
        assert user_client.get('/api/admin/verticals').status_code == 403

    def test_list_includes_inactive(self, admin_client):
        Vertical.objects.create(name='B', order=1)
        Vertical.objects.create(name='A', order=1, is_active=False)
        rows = admin_client.get('/api/admin/verticals').json()
        assert [row['name'] for row in rows] == ['A', 'B']

    def test_create_named(self, admin_client):
        response = admin_client.post(
            '/api/admin/offer-types', data={'name': 'HOT', 'description': 'Hot offer'},
            content_type='application/json',
        )
        assert response.status_code == 201
        data = response.json()
        assert data['name'] == 'HOT'
        assert data['is_active'] is True
        assert data['order'] == 0

    def test_duplicate_name(self, admin_client):
        Vertical.objects.create(name='Health')
        response = admin_client.post(
            '/api/admin/verticals', data={'name': 'Health'}, content_type='application/json',
        )
        assert response.status_code == 400
        assert response.json()['error'] == 'Vertical with this name already exists'

    def test_codes_are_upper_cased(self, admin_client):
        response = admin_client.post(
            '/api/admin/geos', data={'code': 'de', 'name': 'Germany'}, content_type='application/json',
        )
        assert response.status_code == 201
        assert response.json()['code'] == 'DE'

    def test_duplicate_code(self, admin_client):
        Partner.objects.create(code='JL', name='JumpLead')
        response = admin_client.post(
            '/api/admin/partners', data={'code': 'jl', 'name': 'Other'}, content_type='application/json',
        )
        assert response.status_code == 400
        assert response.json()['error'] == 'Partner with this code already exists'

    @pytest.mark.parametrize('url, code', [
        ('/api/admin/geos', 'ABCD'),
        ('/api/admin/languages', 'ENGL'),
        ('/api/admin/partners', 'ABCDEF'),
    ])
    def test_code_length(self, admin_client, url, code):
        response = admin_client.post(url, data={'code': code, 'name': 'X'}, content_type='application/json')
        assert response.status_code == 400
        assert response.json()['error'] == 'Validation error'

    def test_partner_code_may_have_five_chars(self, admin_client):
        response = admin_client.post(
            '/api/admin/partners', data={'code': 'ABCDE', 'name': 'Five'}, content_type='application/json',
        )
        assert response.status_code == 201

    def test_partial_update(self, admin_client):
        row = Language.objects.create(code='EN', name='English', order=3)
        response = patch_json(admin_client, f'/api/admin/languages/{row.pk}', {'is_active': False})
        assert response.status_code == 200
        row.refresh_from_db()
        assert row.is_active is False
        assert row.order == 3
        assert row.name == 'English'

    def test_rename_clash(self, admin_client):
        Vertical.objects.create(name='Health')
        row = Vertical.objects.create(name='Beauty')
        response = patch_json(admin_client, f'/api/admin/verticals/{row.pk}', {'name': 'Health'})
        assert response.status_code == 400

    def test_rename_to_same_value(self, admin_client):
        row = Vertical.objects.create(name='Beauty')
        response = patch_json(admin_client, f'/api/admin/verticals/{row.pk}', {'name': 'Beauty', 'order': 4})
        assert response.status_code == 200
        assert response.json()['order'] == 4

    def test_delete(self, admin_client):
        row = OfferType.objects.create(name='Trial')
        response = admin_client.delete(f'/api/admin/offer-types/{row.pk}')
        assert response.json() == {'message': 'Offer type deleted'}
        assert not OfferType.objects.exists()

    def test_unknown_row(self, admin_client):
        response = admin_client.delete('/api/admin/geos/999')
        assert response.status_code == 404
        assert response.json() == {'error': 'Geo not found'}


@pytest.mark.django_db
class TestAuditLogs:
    def test_filters_and_actor(self, admin_client, admin_user):
        create_audit_log(admin_user, 'create', 'offer', 1, after={'title': 'A'})
        create_audit_log(admin_user, 'delete', 'landing', 2, before={'label': 'B'})
        create_audit_log(None, 'update', 'offer', 1, before={}, after={'title': 'C'})

        data = admin_client.get('/api/audit-logs').json()
        assert data['pagination'] == {'page': 1, 'limit': 50, 'total': 3, 'pages': 1}
        assert data['logs'][0]['actor'] is None
        assert data['logs'][-1]['actor']['email'] == 'admin@example.com'

        only_landings = admin_client.get('/api/audit-logs', {'entity': 'landing'}).json()
        assert [log['entity_id'] for log in only_landings['logs']] == ['2']
        only_updates = admin_client.get('/api/audit-logs', {'action': 'update'}).json()
        assert only_updates['logs'][0]['diff'] == {'before': None, 'after': {'title': 'C'}}

    def test_requires_admin(self, user_client):
        assert user_client.get('/api/audit-logs').status_code == 403

    def test_write_failure_is_logged_not_raised(self, admin_user):
        with (
            mock.patch('offers.audit.AuditLog.objects.create', side_effect=DatabaseError('locked')),
            mock.patch('offers.audit.logger') as logger,
        ):
            assert create_audit_log(admin_user, 'create', 'offer', 1) is None
        logger.exception.assert_called_once()
        assert not AuditLog.objects.exists()


@pytest.mark.django_db
class TestOfferImage:
    def test_upload_and_serve(self, admin_client, user_client):
        offer = Offer.objects.create(vertical='Health', title='Keto', price_usd=10)
        response = admin_client.post(f'/api/offers/{offer.pk}/image', {'image': png_upload()})
        assert response.status_code == 200
        image_url = response.json()['image_url']
        assert image_url.startswith(f'/uploads/offers/{offer.pk}-')
        assert image_url.endswith('.png')
        offer.refresh_from_db()
        assert offer.image_url == image_url

        served = Client().get(image_url)
        assert served.status_code == 200
        assert served['Content-Type'] == 'image/png'
        assert served['Cache-Control'] == 'public, max-age=31536000, immutable'
        assert b''.join(served.streaming_content).startswith(b'\x89PNG')

    def test_missing_file(self, admin_client):
        offer = Offer.objects.create(vertical='Health', title='Keto', price_usd=10)
        response = admin_client.post(f'/api/offers/{offer.pk}/image', {})
        assert response.status_code == 400
        assert response.json()['error'] == 'File not found'

    def test_not_an_image(self, admin_client):
        offer = Offer.objects.create(vertical='Health', title='Keto', price_usd=10)
        upload = SimpleUploadedFile('notes.png', b'plain text', content_type='image/png')
        response = admin_client.post(f'/api/offers/{offer.pk}/image', {'image': upload})
        assert response.status_code == 400
        assert response.json()['error'] == 'File must be an image'

    def test_too_large(self, admin_client, settings):
        settings.OFFER_IMAGE_MAX_BYTES = 10
        offer = Offer.objects.create(vertical='Health', title='Keto', price_usd=10)
        response = admin_client.post(f'/api/offers/{offer.pk}/image', {'image': png_upload()})
        assert response.status_code == 400
        assert response.json()['error'] == 'File size must not exceed 5MB'

    def test_unknown_offer(self, admin_client):
        response = admin_client.post('/api/offers/999/image', {'image': png_upload()})
        assert response.status_code == 404

    def test_serve_missing_file(self):
        assert Client().get('/uploads/offers/nothing-here.png').status_code == 404

    def test_serve_rejects_traversal(self):
        assert Client().get('/uploads/offers/..secret.png').status_code == 400


@pytest.mark.django_db
class TestSeedReferences:
    def test_seed_is_repeatable(self):
        call_command('seed_references')
        call_command('seed_references')
        assert Vertical.objects.count() == 10
        assert OfferType.objects.count() == 10
        assert Geo.objects.get(code='US').name == 'United States'
        assert Language.objects.filter(code='JB').exists()
        assert Partner.objects.get(code='JL').order == 1


@pytest.mark.django_db
class TestSeedDemo:
    def test_creates_accounts_offers_and_landings(self):
        call_command('seed_demo', password='local-pass', stdout=io.StringIO())

        admin = AppUser.objects.get(email='admin@example.com')
        assert admin.is_admin
        assert admin.check_password('local-pass')
        assert AppUser.objects.get(email='user@example.com').role == 'USER'
        assert list(Offer.objects.values_list('title', flat=True)) == ['Proliving', 'Titan Surge', 'Vydox']
        proliving = Offer.objects.get(title='Proliving')
        assert proliving.landings.count() == 3
        assert proliving.landings.filter(type='PRELANDING', locale='ES').get().ext_id == 274

    def test_rerun_keeps_existing_rows(self, admin_user):
        call_command('seed_demo', stdout=io.StringIO())
        call_command('seed_demo', stdout=io.StringIO())

        assert Offer.objects.count() == 3
        assert Landing.objects.count() == 6
        # The existing account keeps its password
        admin_user.refresh_from_db()
        assert admin_user.check_password('admin-pass')
