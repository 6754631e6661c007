import logging
from collections.abc import Iterable

from fastapi_tenant_rbac.access import RoleStoreAccess
from fastapi_tenant_rbac.cache import CachedRoleStore
from fastapi_tenant_rbac.config import PolicySettings, get_settings
from fastapi_tenant_rbac.exceptions import PermissionValidationError
from fastapi_tenant_rbac.models import Role
from fastapi_tenant_rbac.permissions import Permission, parse_permission, permissions_grant
from fastapi_tenant_rbac.store import RoleStore

logger = logging.getLogger(__name__)


def _parse_required(required: str) -> Permission | None:
    try:
        return parse_permission(required)
    except PermissionValidationError as exc:
        logger.debug("Denying check for invalid requirement: %s", exc)
        return None


def roles_grant(roles: Iterable[Role], required: Permission) -> bool:
    """Check if any candidate role grants ``required``.

    Pure computation: role and entry order only affect how soon it returns.
    """
    return any(permissions_grant(role.permissions, required) for role in roles)


class PermissionResolver:
    """Decide whether an identity holds a permission within an application.

    Every check fails closed: an invalid requirement, an identity with no roles
    for the application, or an unknown role all deny. Store failures raise
    RoleLookupError so the caller can tell them apart from a denial.

    Args:
        access: Candidate role lookup (hint path and identity path).
    """

    def __init__(self, access: RoleStoreAccess) -> None:
        self.access = access

    @classmethod
    def from_settings(cls, store: RoleStore, settings: PolicySettings | None = None) -> "PermissionResolver":
        """Build a resolver over ``store`` with the configured cache and timeout."""
        settings = settings or get_settings()
        if settings.cache_enabled and not isinstance(store, CachedRoleStore):
            store = CachedRoleStore(store, ttl=settings.cache_ttl_seconds)
        return cls(RoleStoreAccess(store, timeout=settings.lookup_timeout_seconds))

    @property
    def cache(self) -> CachedRoleStore | None:
        """The role cache in use, if any, for wiring the invalidation hook."""
        store = self.access.store
        return store if isinstance(store, CachedRoleStore) else None

    async def _candidate_roles(
        self,
        identity_id: str,
        application: str,
        role_id_hint: Iterable[str] | None,
    ) -> list[Role]:
        if role_id_hint is not None:
            return await self.access.roles_for_hint(role_id_hint, application)
        return await self.access.roles_for_identity(identity_id, application)

    async def has_permission(
        self,
        identity_id: str,
        required: str,
        application: str,
        role_id_hint: Iterable[str] | None = None,
    ) -> bool:
        """Check a single ``resource:action`` requirement.

        Raises:
            RoleLookupError: If candidate roles could not be loaded.
        """
        permission = _parse_required(required)
        if permission is None:
            return False

        roles = await self._candidate_roles(identity_id, application, role_id_hint)
        granted = roles_grant(roles, permission)
        if not granted:
            logger.debug("Identity %s lacks %s in %s", identity_id, required, application)
        return granted

    async def has_any_permission(
        self,
        identity_id: str,
        required: Iterable[str],
        application: str,
        role_id_hint: Iterable[str] | None = None,
    ) -> bool:
        """Check that at least one of several requirements is granted.

        Candidate roles are loaded once. Invalid requirements are ignored.
        """
        permissions = [p for p in map(_parse_required, required) if p is not None]
        if not permissions:
            return False

        roles = await self._candidate_roles(identity_id, application, role_id_hint)
        return any(roles_grant(roles, permission) for permission in permissions)

    async def has_all_permissions(
        self,
        identity_id: str,
        required: Iterable[str],
        application: str,
        role_id_hint: Iterable[str] | None = None,
    ) -> bool:
        """Check that every one of several requirements is granted.

        Candidate roles are loaded once. An empty list or any invalid
        requirement denies.
        """
        required = list(required)
        permissions = [_parse_required(p) for p in required]
        if not permissions or any(p is None for p in permissions):
            return False

        roles = await self._candidate_roles(identity_id, application, role_id_hint)
        granted = all(roles_grant(roles, permission) for permission in permissions)  # type: ignore[arg-type]
        if not granted:
            logger.debug("Identity %s lacks one of %s in %s", identity_id, required, application)
        return granted

    async def get_effective_permissions(
        self,
        identity_id: str,
        application: str,
        role_id_hint: Iterable[str] | None = None,
    ) -> frozenset[str]:
        """Union of the permission strings of every role applying to ``application``.

        Candidate roles come from the same hint or identity path as
        has_permission. For display only. It is a snapshot and does not answer
        "is X granted" without re-applying the matching rule; use has_permission
        to enforce.
        """
        roles = await self._candidate_roles(identity_id, application, role_id_hint)
        return frozenset(permission for role in roles for permission in role.permissions)

    async def role_has_permission(self, role_id: str, required: str) -> bool:
        """Preview a single role against a requirement, ignoring its scope."""
        permission = _parse_required(required)
        if permission is None:
            return False

        role = await self.access.get_role(role_id)
        if role is None:
            return False
        return permissions_grant(role.permissions, permission)
