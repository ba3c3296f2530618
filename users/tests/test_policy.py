"""
Users — Access Policy Tests

The role × action matrix, field restrictions and Principal resolution.

@file users/tests/test_policy.py
"""

import pytest

from core.exceptions import AccessDenied
from tests.factories import SuperuserFactory, UserFactory, UserRoleFactory
from users.policy import (
    ROLE_ADMIN,
    ROLE_NONE,
    ROLE_PHARMACY_MANAGER,
    ROLE_STORE_MANAGER,
    AccessPolicy,
    Action,
    Principal,
    resolve_role,
)

ALL_ACTIONS = [
    value for name, value in vars(Action).items()
    if not name.startswith('_') and isinstance(value, str)
]

ADMIN_ONLY = {Action.DELETE_MEDICINE, Action.DELETE_BATCH, Action.MANAGE_USERS}
MANAGER_AND_UP = {Action.RESOLVE_ALERT, Action.DISMISS_ALERT, Action.EVALUATE_ALERTS}


class TestCapabilityMatrix:
    @pytest.mark.parametrize('action', ALL_ACTIONS)
    def test_admin_may_do_everything(self, action):
        assert AccessPolicy.is_allowed(ROLE_ADMIN, action)

    @pytest.mark.parametrize('action', ALL_ACTIONS)
    def test_no_role_may_do_nothing(self, action):
        assert not AccessPolicy.is_allowed(ROLE_NONE, action)

    @pytest.mark.parametrize('action', ALL_ACTIONS)
    def test_pharmacy_manager(self, action):
        assert AccessPolicy.is_allowed(ROLE_PHARMACY_MANAGER, action) == (action not in ADMIN_ONLY)

    @pytest.mark.parametrize('action', ALL_ACTIONS)
    def test_store_manager(self, action):
        expected = action not in ADMIN_ONLY and action not in MANAGER_AND_UP
        assert AccessPolicy.is_allowed(ROLE_STORE_MANAGER, action) == expected

    @pytest.mark.parametrize('value', [None, '', 'superuser', 42, 'ADMIN'])
    def test_unknown_roles_fail_closed(self, value):
        assert resolve_role(value) == ROLE_NONE
        assert not AccessPolicy.is_allowed(value, Action.VIEW)


class TestFieldRestrictions:
    def test_store_manager_may_edit_thresholds(self):
        principal = Principal(role=ROLE_STORE_MANAGER)
        AccessPolicy.check_fields(principal, Action.EDIT_MEDICINE, ['reorder_level', 'safety_stock'])

    def test_store_manager_may_not_rename_medicine(self):
        principal = Principal(role=ROLE_STORE_MANAGER)
        with pytest.raises(AccessDenied):
            AccessPolicy.check_fields(principal, Action.EDIT_MEDICINE, ['name', 'reorder_level'])

    def test_store_manager_batch_fields(self):
        principal = Principal(role=ROLE_STORE_MANAGER)
        AccessPolicy.check_fields(principal, Action.EDIT_BATCH, ['quantity', 'location'])
        with pytest.raises(AccessDenied):
            AccessPolicy.check_fields(principal, Action.EDIT_BATCH, ['expiry_date'])

    def test_store_manager_creates_with_stock_fields(self):
        principal = Principal(role=ROLE_STORE_MANAGER)
        AccessPolicy.check_fields(
            principal, Action.CREATE_MEDICINE, ['name', 'category', 'unit', 'reorder_level'],
        )
        with pytest.raises(AccessDenied):
            AccessPolicy.check_fields(principal, Action.CREATE_MEDICINE, ['name', 'manufacturer'])

    def test_store_manager_batch_receipt_fields(self):
        principal = Principal(role=ROLE_STORE_MANAGER)
        assert AccessPolicy.writable_fields(principal.role, Action.CREATE_BATCH) == {
            'batch_number', 'quantity', 'expiry_date', 'location',
        }
        with pytest.raises(AccessDenied):
            AccessPolicy.check_fields(
                principal, Action.CREATE_BATCH, ['batch_number', 'quantity', 'unit_price'],
            )

    def test_manager_is_unrestricted(self):
        principal = Principal(role=ROLE_PHARMACY_MANAGER)
        assert AccessPolicy.writable_fields(principal.role, Action.EDIT_MEDICINE) is None
        AccessPolicy.check_fields(principal, Action.EDIT_MEDICINE, ['name', 'category'])

    def test_check_fields_checks_action_first(self):
        with pytest.raises(AccessDenied):
            AccessPolicy.check_fields(Principal(), Action.EDIT_MEDICINE, [])


@pytest.mark.django_db
class TestPrincipal:
    def test_from_user_with_role(self):
        user = UserFactory()
        UserRoleFactory(user=user, role=ROLE_STORE_MANAGER)
        assert Principal.from_user(user).role == ROLE_STORE_MANAGER

    def test_from_user_without_role(self):
        assert Principal.from_user(UserFactory()).role == ROLE_NONE

    def test_superuser_acts_as_admin(self):
        assert Principal.from_user(SuperuserFactory()).role == ROLE_ADMIN

    def test_anonymous(self):
        principal = Principal.from_user(None)
        assert principal.role == ROLE_NONE
        assert principal.actor is None

    def test_system_principal(self):
        principal = Principal.system()
        assert principal.role == ROLE_ADMIN
        assert principal.actor is None
