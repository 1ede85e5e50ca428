from rest_framework import permissions

from .roles import Role, role_of


class IsWorkspaceAdmin(permissions.BasePermission):
    """Admins and super admins"""
    message = 'Access denied'

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return role_of(request.user).at_least(Role.ADMIN)
