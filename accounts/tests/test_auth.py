"""Tests for the session and profile endpoints."""

import json
from unittest import mock

import pytest
from django.test import Client

from accounts.models import AppUser


def patch_json(client, url, payload):
    return client.patch(url, data=json.dumps(payload), content_type='application/json')


@pytest.mark.django_db
class TestLogin:
    def test_login_sets_session(self, regular_user):
        client = Client()
        response = client.post(
            '/api/auth/login',
            data={'email': 'user@example.com', 'password': 'user-pass'},
            content_type='application/json',
        )
        assert response.status_code == 200
        assert response.json()['user']['email'] == 'user@example.com'

        session = client.get('/api/auth/session')
        assert session.status_code == 200
        assert session.json()['user']['role'] == 'USER'

        regular_user.refresh_from_db()
        assert regular_user.last_login is not None

    def test_wrong_password(self, regular_user):
        response = Client().post(
            '/api/auth/login',
            data={'email': 'user@example.com', 'password': 'nope'},
            content_type='application/json',
        )
        assert response.status_code == 400
        assert response.json()['error'] == 'Invalid email or password'

    def test_blocked_user_cannot_sign_in(self, regular_user):
        regular_user.is_blocked = True
        regular_user.save()
        response = Client().post(
            '/api/auth/login',
            data={'email': 'user@example.com', 'password': 'user-pass'},
            content_type='application/json',
        )
        assert response.status_code == 400

    def test_malformed_json(self):
        response = Client().post('/api/auth/login', data='{oops', content_type='application/json')
        assert response.status_code == 400
        assert response.json() == {'error': 'Invalid JSON'}

    def test_logout(self, user_client):
        assert user_client.post('/api/auth/logout').status_code == 200
        assert user_client.get('/api/auth/session').status_code == 401

    def test_session_requires_login(self):
        response = Client().get('/api/auth/session')
        assert response.status_code == 401
        assert response.json() == {'error': 'Authentication required'}

    def test_blocking_ends_existing_session(self, user_client, regular_user):
        assert user_client.get('/api/auth/session').status_code == 200
        regular_user.is_blocked = True
        regular_user.save()
        assert user_client.get('/api/auth/session').status_code == 401

    def test_csrf_cookie(self):
        response = Client().get('/api/auth/csrf')
        assert response.status_code == 200
        assert response.json()['csrf_token']
        assert 'csrftoken' in response.cookies

    def test_login_page_renders(self):
        response = Client().get('/auth/login/')
        assert response.status_code == 200


@pytest.mark.django_db
class TestProfile:
    def test_get_profile(self, user_client):
        data = user_client.get('/api/user/profile').json()
        assert data['email'] == 'user@example.com'
        assert data['display_name'] == 'User'
        assert 'binom_api_key' not in data

    def test_update_name_and_email(self, user_client, regular_user):
        response = patch_json(user_client, '/api/user/profile', {
            'display_name': 'Renamed',
            'email': 'renamed@example.com',
        })
        assert response.status_code == 200
        assert response.json()['message'] == 'Profile updated successfully'
        regular_user.refresh_from_db()
        assert regular_user.display_name == 'Renamed'
        assert regular_user.email == 'renamed@example.com'

    def test_email_taken(self, user_client, admin_user):
        response = patch_json(user_client, '/api/user/profile', {
            'display_name': 'User',
            'email': 'admin@example.com',
        })
        assert response.status_code == 400
        assert response.json()['error'] == 'Email address is already in use'

    def test_change_password_keeps_session(self, user_client, regular_user):
        response = patch_json(user_client, '/api/user/profile', {
            'display_name': 'User',
            'email': 'user@example.com',
            'current_password': 'user-pass',
            'new_password': 'brand-new',
            'confirm_password': 'brand-new',
        })
        assert response.status_code == 200
        regular_user.refresh_from_db()
        assert regular_user.check_password('brand-new')
        assert user_client.get('/api/auth/session').status_code == 200

    def test_wrong_current_password(self, user_client):
        response = patch_json(user_client, '/api/user/profile', {
            'display_name': 'User',
            'email': 'user@example.com',
            'current_password': 'wrong',
            'new_password': 'brand-new',
            'confirm_password': 'brand-new',
        })
        assert response.status_code == 400
        assert response.json()['error'] == 'Current password is incorrect'

    @pytest.mark.parametrize('new_password, confirm_password', [
        ('brand-new', 'different'),
        ('short', 'short'),
        ('brand-new', ''),
    ])
    def test_password_rules(self, user_client, new_password, confirm_password):
        response = patch_json(user_client, '/api/user/profile', {
            'display_name': 'User',
            'email': 'user@example.com',
            'current_password': 'user-pass',
            'new_password': new_password,
            'confirm_password': confirm_password,
        })
        assert response.status_code == 400
        assert response.json()['error'] == 'Invalid data'

    def test_blank_display_name(self, user_client):
        response = patch_json(user_client, '/api/user/profile', {'display_name': '', 'email': 'user@example.com'})
        assert response.status_code == 400
        assert 'display_name' in response.json()['details']


@pytest.mark.django_db
class TestBinomSettings:
    def test_not_configured(self, user_client):
        data = user_client.get('/api/user/binom-settings').json()
        assert data == {
            'binom_url': None,
            'binom_api_key': None,
            'binom_user_id': None,
            'is_configured': False,
        }

    def test_save_after_successful_check(self, user_client, regular_user):
        with mock.patch(
            'accounts.views.BinomService.test_connection', return_value=(True, 'Connection successful'),
        ) as check:
            response = user_client.post('/api/user/binom-settings', data={
                'binom_url': 'https://tracker.example.com',
                'binom_api_key': 'secret-key-123',
                'binom_user_id': 7,
            }, content_type='application/json')
        assert response.status_code == 200
        assert response.json()['settings']['binom_api_key'] == '***hidden***'
        check.assert_called_once()

        regular_user.refresh_from_db()
        assert regular_user.binom_api_key == 'secret-key-123'
        assert regular_user.binom_user_id == 7

        data = user_client.get('/api/user/binom-settings').json()
        assert data['binom_api_key'] == '***hidden***'
        assert data['is_configured'] is True

    def test_failed_check_does_not_save(self, user_client, regular_user):
        with mock.patch(
            'accounts.views.BinomService.test_connection', return_value=(False, 'HTTP 500: boom'),
        ):
            response = user_client.post('/api/user/binom-settings', data={
                'binom_url': 'https://tracker.example.com',
                'binom_api_key': 'secret-key-123',
            }, content_type='application/json')
        assert response.status_code == 400
        assert response.json() == {'error': 'Failed to connect to Binom API', 'details': 'HTTP 500: boom'}
        regular_user.refresh_from_db()
        assert regular_user.binom_api_key is None

    def test_invalid_url(self, user_client):
        response = user_client.post('/api/user/binom-settings', data={
            'binom_url': 'not a url',
            'binom_api_key': 'secret-key-123',
        }, content_type='application/json')
        assert response.status_code == 400
        assert response.json()['details']['binom_url'][0]['message'] == 'Please enter a valid URL'

    def test_delete(self, user_client, regular_user):
        regular_user.binom_url = 'https://tracker.example.com'
        regular_user.binom_api_key = 'secret-key-123'
        regular_user.save()

        response = user_client.delete('/api/user/binom-settings')
        assert response.status_code == 200
        regular_user.refresh_from_db()
        assert regular_user.binom_url is None
        assert regular_user.binom_api_key is None


@pytest.mark.django_db
def test_create_superuser_is_admin():
    user = AppUser.objects.create_superuser(email='root@example.com', password='root-pass')
    assert user.is_admin
    assert user.is_staff
    assert user.has_perm('offers.change_offer')
