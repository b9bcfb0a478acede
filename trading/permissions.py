# trading/permissions.py
from rest_framework import permissions

from .models import DIRECTOR, MANAGER, SALES_AGENT


class _RolePermission(permissions.BasePermission):
    roles = ()
    message = "Access denied."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and getattr(user, "role", None) in self.roles)


class IsDirector(_RolePermission):
    roles = (DIRECTOR,)
    message = "Access denied: Directors only."


class IsDirectorOrManager(_RolePermission):
    roles = (DIRECTOR, MANAGER)
    message = "Only directors or managers can view this."


class IsManagerOrAgent(_RolePermission):
    roles = (MANAGER, SALES_AGENT)
    message = "Access denied: Managers and Sales Agents only."


class HasBranchOrIsDirector(permissions.BasePermission):
    message = "Branch assignment is required for this account."

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        return user.role == DIRECTOR or bool(user.branch)


class IsManager(_RolePermission):
    roles = (MANAGER,)
    message = "Access denied: only branch managers can record procurement."
