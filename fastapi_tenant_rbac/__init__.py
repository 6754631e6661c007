"""FastAPI Tenant RBAC - application-scoped permission resolution and enforcement."""

__version__ = "0.1.0"

from fastapi_tenant_rbac.access import RoleStoreAccess
from fastapi_tenant_rbac.admin import RoleAdministration
from fastapi_tenant_rbac.cache import CachedRoleStore
from fastapi_tenant_rbac.config import PolicySettings, configure_logging, get_settings
from fastapi_tenant_rbac.core import PolicyAuthz
from fastapi_tenant_rbac.dependencies import (
    enforce_permissions,
    path_param,
    require_all_permissions,
    require_any_permission,
    require_permission,
)
from fastapi_tenant_rbac.engine import PermissionResolver
from fastapi_tenant_rbac.exceptions import (
    Forbidden,
    PermissionValidationError,
    PolicyLookupUnavailable,
    RoleLookupError,
    RoleNotFoundError,
    RoleValidationError,
    Unauthorized,
)
from fastapi_tenant_rbac.models import Identity, Role
from fastapi_tenant_rbac.permissions import (
    UNIVERSAL,
    WILDCARD,
    Action,
    ConcretePermission,
    Permission,
    Resource,
    UniversalPermission,
    parse_permission,
    validate_permission,
)
from fastapi_tenant_rbac.router import PolicyRouter
from fastapi_tenant_rbac.store import InMemoryRoleStore, RoleRepository, RoleStore

__all__ = [
    "PolicyAuthz",
    "PolicyRouter",
    "PolicySettings",
    "PermissionResolver",
    "RoleStoreAccess",
    "RoleStore",
    "RoleRepository",
    "InMemoryRoleStore",
    "CachedRoleStore",
    "RoleAdministration",
    "Role",
    "Identity",
    "Permission",
    "ConcretePermission",
    "UniversalPermission",
    "Resource",
    "Action",
    "UNIVERSAL",
    "WILDCARD",
    "Forbidden",
    "Unauthorized",
    "PolicyLookupUnavailable",
    "PermissionValidationError",
    "RoleValidationError",
    "RoleNotFoundError",
    "RoleLookupError",
    "configure_logging",
    "enforce_permissions",
    "get_settings",
    "parse_permission",
    "path_param",
    "require_all_permissions",
    "require_any_permission",
    "require_permission",
    "validate_permission",
]
