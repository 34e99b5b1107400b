from rest_framework import permissions

from .exceptions import AccessDenied, InvalidOperation


# Role constants
class Roles:
    SUPER_ADMIN = 'SuperAdmin'
    ADMIN = 'Admin'
    AREA_ADMIN = 'AreaAdmin'
    CASHIER = 'Cashier'
    WAITER = 'Waiter'
    PREPARER = 'Preparer'

    ALL = [SUPER_ADMIN, ADMIN, AREA_ADMIN, CASHIER, WAITER, PREPARER]


def get_user_roles(user):
    """Role names of ``user``, cached on the instance for the request"""
    if not user or not user.is_authenticated:
        return set()
    if not hasattr(user, '_role_cache'):
        user._role_cache = set(user.groups.values_list('name', flat=True))
    return user._role_cache


def is_super_admin(user):
    return Roles.SUPER_ADMIN in get_user_roles(user)


def ensure_organization_access(user, organization_id, message=None):
    """Raise AccessDenied unless ``user`` may act on ``organization_id``"""
    if is_super_admin(user):
        return
    if user.organization_id is None or str(user.organization_id) != str(organization_id):
        raise AccessDenied(message or 'User is not authorized to access this organization.')


def resolve_organization_id(request, required_for_super_admin=True):
    """
    Organization scope of a request.

    Regular users are always bound to their own organization. SuperAdmins pass
    ``organization_id`` as a query parameter or through the X-Organization-Id
    header picked up by OrganizationMiddleware.
    """
    user = request.user
    requested = request.query_params.get('organization_id') or getattr(request, 'header_organization_id', None)
    if is_super_admin(user):
        if not requested and required_for_super_admin:
            raise InvalidOperation('organization_id is required for SuperAdmin users.')
        return requested
    if user.organization_id is None:
        raise AccessDenied('User is not associated with any organization.')
    if requested and str(requested) != str(user.organization_id):
        raise AccessDenied('User is not authorized to access this organization.')
    return user.organization_id


class RolePermission(permissions.BasePermission):
    """
    Grants access to authenticated users holding one of ``allowed_roles``
    """
    allowed_roles = []
    message = 'You do not have the required role for this operation.'

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return bool(get_user_roles(request.user) & set(self.allowed_roles))


class IsSuperAdmin(RolePermission):
    allowed_roles = [Roles.SUPER_ADMIN]


class IsOrganizationAdmin(RolePermission):
    allowed_roles = [Roles.SUPER_ADMIN, Roles.ADMIN]


class IsAreaManager(RolePermission):
    allowed_roles = [Roles.SUPER_ADMIN, Roles.ADMIN, Roles.AREA_ADMIN]


class IsAreaReader(RolePermission):
    allowed_roles = [Roles.SUPER_ADMIN, Roles.ADMIN, Roles.AREA_ADMIN, Roles.CASHIER, Roles.WAITER]


class IsCashier(RolePermission):
    allowed_roles = [Roles.SUPER_ADMIN, Roles.ADMIN, Roles.AREA_ADMIN, Roles.CASHIER]


class IsQueueOperator(RolePermission):
    allowed_roles = [Roles.SUPER_ADMIN, Roles.ADMIN, Roles.CASHIER]


class IsWaiter(RolePermission):
    allowed_roles = [Roles.SUPER_ADMIN, Roles.ADMIN, Roles.AREA_ADMIN, Roles.WAITER]


class IsKitchenViewer(RolePermission):
    allowed_roles = [Roles.SUPER_ADMIN, Roles.ADMIN, Roles.AREA_ADMIN, Roles.PREPARER]


class IsKitchenOperator(RolePermission):
    allowed_roles = [Roles.SUPER_ADMIN, Roles.ADMIN, Roles.WAITER, Roles.PREPARER]

