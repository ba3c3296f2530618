"""
MediStock — Root conftest for pytest

Shared fixtures available to all test modules: users for each role and
API clients authenticated as them.

@file conftest.py
"""

import pytest
from rest_framework.test import APIClient

from tests.factories import SuperuserFactory, UserFactory, UserRoleFactory
from users.models import UserRole


@pytest.fixture
def api_client():
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture
def user(db):
    """Active user without a role. Default password TestPass2026!"""
    return UserFactory()


@pytest.fixture
def admin_user(db):
    """Superuser holding the admin role."""
    user = SuperuserFactory()
    UserRoleFactory(user=user, role=UserRole.RoleChoices.ADMIN)
    return user


@pytest.fixture
def pharmacy_manager(db):
    user = UserFactory()
    UserRoleFactory(user=user, role=UserRole.RoleChoices.PHARMACY_MANAGER)
    return user


@pytest.fixture
def store_manager(db):
    user = UserFactory()
    UserRoleFactory(user=user, role=UserRole.RoleChoices.STORE_MANAGER)
    return user


def _client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def authenticated_client(user):
    """API client authenticated as a user with no role."""
    return _client_for(user)


@pytest.fixture
def admin_client(admin_user):
    return _client_for(admin_user)


@pytest.fixture
def manager_client(pharmacy_manager):
    return _client_for(pharmacy_manager)


@pytest.fixture
def store_client(store_manager):
    return _client_for(store_manager)
