"""
Users — API Integration Tests

End-to-end tests for auth endpoints, preferences and user management.

@file users/tests/test_views.py
"""

import pytest
from django.urls import reverse
from rest_framework import status

from tests.factories import UserFactory, UserRoleFactory
from users.models import User, UserRole


@pytest.mark.django_db
class TestLoginEndpoint:
    def test_login_success(self, api_client):
        user = UserFactory(email='login@medistock.test', password='Login2026!!')
        UserRoleFactory(user=user, role=UserRole.RoleChoices.STORE_MANAGER)
        response = api_client.post(
            reverse('api-v1:auth:login'),
            {'email': 'login@medistock.test', 'password': 'Login2026!!'},
            format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data['success'] is True
        assert 'access' in data['data']
        assert 'refresh' in data['data']
        assert data['data']['user']['role'] == 'store_manager'

    def test_login_wrong_password(self, api_client):
        UserFactory(email='wrong@medistock.test', password='Login2026!!')
        response = api_client.post(
            reverse('api-v1:auth:login'),
            {'email': 'wrong@medistock.test', 'password': 'wrong'},
            format='json',
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()['success'] is False

    def test_login_inactive_user(self, api_client):
        UserFactory(email='gone@medistock.test', password='Login2026!!', is_active=False)
        response = api_client.post(
            reverse('api-v1:auth:login'),
            {'email': 'gone@medistock.test', 'password': 'Login2026!!'},
            format='json',
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestMeEndpoint:
    def test_me_authenticated(self, authenticated_client, user):
        response = authenticated_client.get(reverse('api-v1:auth:me'))
        assert response.status_code == status.HTTP_200_OK
        data = response.json()['data']
        assert data['email'] == user.email
        assert data['role'] == 'none'

    def test_me_unauthenticated(self, api_client):
        response = api_client.get(reverse('api-v1:auth:me'))
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestPreferencesEndpoint:
    def test_get_defaults(self, manager_client):
        response = manager_client.get(reverse('api-v1:auth:preferences'))
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data']['email_enabled'] is True

    def test_patch(self, manager_client):
        response = manager_client.patch(
            reverse('api-v1:auth:preferences'),
            {'daily_summary': True},
            format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data']['daily_summary'] is True

    def test_sms_requires_phone(self, manager_client):
        response = manager_client.patch(
            reverse('api-v1:auth:preferences'),
            {'sms_enabled': True},
            format='json',
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'phone' in response.json()['errors']


@pytest.mark.django_db
class TestUserViewSet:
    def test_list_users_as_admin(self, admin_client):
        UserFactory.create_batch(3)
        response = admin_client.get(reverse('api-v1:users:user-list'))
        assert response.status_code == status.HTTP_200_OK
        assert len(response.json()['data']) >= 4

    @pytest.mark.parametrize('client_fixture', ['manager_client', 'store_client', 'authenticated_client'])
    def test_non_admins_forbidden(self, request, client_fixture):
        client = request.getfixturevalue(client_fixture)
        response = client.get(reverse('api-v1:users:user-list'))
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_create_user(self, admin_client):
        response = admin_client.post(
            reverse('api-v1:users:user-list'),
            {'email': 'New.Pharmacist@MediStock.test', 'full_name': 'New Pharmacist', 'password': 'Pharma2026!!'},
            format='json',
        )
        assert response.status_code == status.HTTP_201_CREATED
        assert User.objects.filter(email='new.pharmacist@medistock.test').exists()

    def test_destroy_deactivates(self, admin_client):
        target = UserFactory()
        response = admin_client.delete(reverse('api-v1:users:user-detail', args=[target.pk]))
        assert response.status_code == status.HTTP_204_NO_CONTENT
        target.refresh_from_db()
        assert target.is_active is False

    def test_assign_and_revoke_role(self, admin_client):
        target = UserFactory()
        response = admin_client.post(
            reverse('api-v1:users:user-assign-role', args=[target.pk]),
            {'role': 'pharmacy_manager'},
            format='json',
        )
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()['data']['role'] == 'pharmacy_manager'

        response = admin_client.post(reverse('api-v1:users:user-revoke-role', args=[target.pk]))
        assert response.status_code == status.HTTP_200_OK
        assert not UserRole.objects.filter(user=target).exists()

    def test_assign_unknown_role(self, admin_client):
        target = UserFactory()
        response = admin_client.post(
            reverse('api-v1:users:user-assign-role', args=[target.pk]),
            {'role': 'owner'},
            format='json',
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
