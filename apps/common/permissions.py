from rest_framework.permissions import BasePermission

from apps.accounts.models import UserRole


VIEW_CAPABILITIES = {
    "catalog.view",
    "suppliers.view",
    "orders.view",
    "warranties.view",
    "dashboard.view",
}

MANAGE_CAPABILITIES = {
    "catalog.manage",
    "suppliers.manage",
    "orders.manage",
    "warranties.manage",
}

ROLE_CAPABILITIES = {
    UserRole.ADMIN: VIEW_CAPABILITIES
    | MANAGE_CAPABILITIES
    | {
        "catalog.delete",
        "suppliers.delete",
        "orders.delete",
        "warranties.delete",
    },
    UserRole.MANAGER: VIEW_CAPABILITIES | MANAGE_CAPABILITIES,
    UserRole.VIEWER: VIEW_CAPABILITIES,
}


def resolve_role(user):
    if getattr(user, "is_superuser", False):
        return UserRole.ADMIN
    return getattr(user, "role", UserRole.VIEWER)


class RolePermission(BasePermission):
    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False

        capability_map = getattr(view, "capability_map", {})
        action = getattr(view, "action", None) or request.method.lower()
        required = capability_map.get(action) or capability_map.get(request.method.lower()) or set()
        if not required:
            return True

        user_caps = ROLE_CAPABILITIES.get(resolve_role(request.user), set())
        return all(cap in user_caps for cap in required)
