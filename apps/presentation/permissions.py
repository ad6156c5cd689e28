from rest_framework.permissions import BasePermission


def require_role(*roles):
    """Builds a permission class that admits authenticated users holding one of the roles."""
    allowed = {str(role).lower() for role in roles}

    class HasRole(BasePermission):
        message = 'Forbidden'

        def has_permission(self, request, view):
            user = request.user
            if not (user and user.is_authenticated):
                return False
            return str(getattr(user, 'role', '') or '').lower() in allowed

    HasRole.__name__ = f'HasRole_{"_".join(sorted(allowed))}'
    return HasRole


IsAdmin = require_role('admin')
IsAdminOrAgent = require_role('admin', 'agent')
