"""
Role based permission classes for the records API.
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS

CLINICAL_ROLES = {"staff", "doctor", "head nurse", "admin"}


class IsClinicalRole(BasePermission):
    """Allow access only to users who may author medical records."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "role", None) in CLINICAL_ROLES)


class ClinicalWriteOrReadOnly(BasePermission):
    """Any authenticated user may read; writes need a clinical role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        if request.method in SAFE_METHODS:
            user = getattr(request, "user", None)
            return bool(user and user.is_authenticated)
        return IsClinicalRole().has_permission(request, view)
