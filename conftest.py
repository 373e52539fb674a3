"""Shared fixtures: users of both roles and signed-in test clients."""

import pytest
from django.test import Client

from accounts.models import AppUser, ROLE_ADMIN, ROLE_USER


@pytest.fixture
def admin_user(db):
    """An ADMIN account."""
    return AppUser.objects.create_user(
        email='admin@example.com', password='admin-pass', display_name='Admin', role=ROLE_ADMIN,
    )


@pytest.fixture
def regular_user(db):
    """A USER account."""
    return AppUser.objects.create_user(
        email='user@example.com', password='user-pass', display_name='User', role=ROLE_USER,
    )


@pytest.fixture
def admin_client(admin_user):
    client = Client()
    client.force_login(admin_user)
    return client


@pytest.fixture
def user_client(regular_user):
    client = Client()
    client.force_login(regular_user)
    return client
