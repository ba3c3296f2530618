"""
Users — Access Policy

Single predicate module deciding whether a role may perform an action.
Every mutating service entry point calls ``AccessPolicy.check`` with the
request-scoped Principal before touching state. Unknown roles resolve to
ROLE_NONE and are denied.

@file users/policy.py
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable

from core.exceptions import AccessDenied

logger = logging.getLogger('medistock')

ROLE_ADMIN = 'admin'
ROLE_PHARMACY_MANAGER = 'pharmacy_manager'
ROLE_STORE_MANAGER = 'store_manager'
ROLE_NONE = 'none'

KNOWN_ROLES = frozenset({ROLE_ADMIN, ROLE_PHARMACY_MANAGER, ROLE_STORE_MANAGER})


class Action:
    VIEW = 'view'
    CREATE_MEDICINE = 'create_medicine'
    EDIT_MEDICINE = 'edit_medicine'
    DELETE_MEDICINE = 'delete_medicine'
    CREATE_BATCH = 'create_batch'
    EDIT_BATCH = 'edit_batch'
    DELETE_BATCH = 'delete_batch'
    RECORD_CONSUMPTION = 'record_consumption'
    MARK_ALERT_READ = 'mark_alert_read'
    RESOLVE_ALERT = 'resolve_alert'
    DISMISS_ALERT = 'dismiss_alert'
    EVALUATE_ALERTS = 'evaluate_alerts'
    MANAGE_USERS = 'manage_users'


_VIEWER = frozenset({Action.VIEW, Action.MARK_ALERT_READ})

_STOCK_KEEPER = _VIEWER | {
    Action.CREATE_MEDICINE,
    Action.EDIT_MEDICINE,
    Action.CREATE_BATCH,
    Action.EDIT_BATCH,
    Action.RECORD_CONSUMPTION,
}

_MANAGER = _STOCK_KEEPER | {
    Action.RESOLVE_ALERT,
    Action.DISMISS_ALERT,
    Action.EVALUATE_ALERTS,
}

_ADMIN = _MANAGER | {
    Action.DELETE_MEDICINE,
    Action.DELETE_BATCH,
    Action.MANAGE_USERS,
}

CAPABILITIES: dict[str, frozenset[str]] = {
    ROLE_ADMIN: frozenset(_ADMIN),
    ROLE_PHARMACY_MANAGER: frozenset(_MANAGER),
    ROLE_STORE_MANAGER: frozenset(_STOCK_KEEPER),
    ROLE_NONE: frozenset(),
}

# Roles restricted to a subset of writable fields, per action.
# Roles absent from this table may write every field the serializer accepts.
FIELD_RESTRICTIONS: dict[str, dict[str, frozenset[str]]] = {
    ROLE_STORE_MANAGER: {
        Action.CREATE_MEDICINE: frozenset({
            'name', 'generic_name', 'category', 'unit', 'reorder_level', 'safety_stock',
        }),
        Action.EDIT_MEDICINE: frozenset({'reorder_level', 'safety_stock'}),
        Action.CREATE_BATCH: frozenset({'batch_number', 'quantity', 'expiry_date', 'location'}),
        Action.EDIT_BATCH: frozenset({'quantity', 'location'}),
    },
}


def resolve_role(value: Any) -> str:
    """Map any stored role value onto a known role, failing closed to ROLE_NONE."""
    if isinstance(value, str) and value in KNOWN_ROLES:
        return value
    return ROLE_NONE


@dataclass(frozen=True)
class Principal:
    """The acting identity for one request: who (user) acting as what (role)."""

    user: Any = None
    role: str = ROLE_NONE

    @classmethod
    def from_user(cls, user) -> 'Principal':
        if user is None or not getattr(user, 'is_authenticated', False):
            return cls(user=None, role=ROLE_NONE)
        if user.is_superuser:
            return cls(user=user, role=ROLE_ADMIN)
        return cls(user=user, role=resolve_role(user.role_name))

    @classmethod
    def system(cls) -> 'Principal':
        """Principal used by scheduled tasks (no human actor)."""
        return cls(user=None, role=ROLE_ADMIN)

    @property
    def actor(self):
        """The user to stamp on audit rows, if any."""
        return self.user


class AccessPolicy:
    """Role × action capability matrix."""

    @staticmethod
    def is_allowed(role: Any, action: str) -> bool:
        return action in CAPABILITIES[resolve_role(role)]

    @staticmethod
    def writable_fields(role: Any, action: str) -> frozenset[str] | None:
        """Fields the role may write for ``action``; None means unrestricted."""
        return FIELD_RESTRICTIONS.get(resolve_role(role), {}).get(action)

    @classmethod
    def check(cls, principal: Principal, action: str) -> None:
        if not cls.is_allowed(principal.role, action):
            logger.warning(
                'Access denied: role=%s action=%s user=%s',
                principal.role, action, getattr(principal.user, 'pk', None),
            )
            raise AccessDenied(detail=f'Role "{principal.role}" may not {action.replace("_", " ")}.')

    @classmethod
    def check_fields(cls, principal: Principal, action: str, fields: Iterable[str]) -> None:
        """Check the action, then that every field written is within the role's allowance."""
        cls.check(principal, action)
        allowed = cls.writable_fields(principal.role, action)
        if allowed is None:
            return
        forbidden = sorted(set(fields) - allowed)
        if forbidden:
            logger.warning(
                'Access denied: role=%s action=%s fields=%s',
                principal.role, action, forbidden,
            )
            raise AccessDenied(
                detail=f'Role "{principal.role}" may only change: {", ".join(sorted(allowed))}.',
            )
