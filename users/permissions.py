"""
Users — DRF Permission Classes

Thin adapters from DRF's permission hooks onto the AccessPolicy matrix.
Services re-check the policy at the mutation boundary; these classes give
the early 403 for the request as a whole.

@file users/permissions.py
"""

from rest_framework.permissions import SAFE_METHODS, BasePermission

from .policy import AccessPolicy, Action, Principal


def principal_for(request) -> Principal:
    """Build (once per request) the explicit principal passed to services."""
    principal = getattr(request, '_principal', None)
    if principal is None:
        principal = Principal.from_user(request.user)
        request._principal = principal
    return principal


class HasCapability(BasePermission):
    """
    Checks the policy action declared by the view.

    Safe methods require ``Action.VIEW``. Other methods look the view's
    action name up in ``view.action_capabilities``::

        class MyViewSet(viewsets.ModelViewSet):
            permission_classes = [IsAuthenticated, HasCapability]
            action_capabilities = {'create': Action.CREATE_MEDICINE}
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        principal = principal_for(request)
        if request.method in SAFE_METHODS:
            return AccessPolicy.is_allowed(principal.role, Action.VIEW)
        required = getattr(view, 'action_capabilities', {}).get(getattr(view, 'action', None))
        if required is None:
            required = getattr(view, 'required_action', None)
        if required is None:
            return False
        return AccessPolicy.is_allowed(principal.role, required)


class CanManageUsers(BasePermission):
    """Shortcut: only roles holding MANAGE_USERS (admins)."""

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return AccessPolicy.is_allowed(principal_for(request).role, Action.MANAGE_USERS)
