"""Role writes and role assignment.

The resolution engine never writes. This module is the path that does, and it
enforces two obligations: permission strings are validated by the grammar
before anything is persisted, and cached entries touching the written role or
identity are invalidated as part of the commit.
"""

import logging
import uuid
from collections.abc import Iterable
from datetime import UTC, datetime

from fastapi_tenant_rbac.cache import CachedRoleStore
from fastapi_tenant_rbac.exceptions import RoleNotFoundError, RoleValidationError
from fastapi_tenant_rbac.models import Role
from fastapi_tenant_rbac.permissions import parse_permission
from fastapi_tenant_rbac.store import RoleRepository

logger = logging.getLogger(__name__)

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50


def _validate_name(name: str) -> str:
    name = name.strip()
    if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
        raise RoleValidationError(
            f"Role name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters"
        )
    return name


def _validate_permissions(permissions: Iterable[str]) -> frozenset[str]:
    validated = frozenset(str(parse_permission(permission)) for permission in permissions)
    if not validated:
        raise RoleValidationError("At least one permission is required")
    return validated


class RoleAdministration:
    """Validated writes against a RoleRepository.

    Args:
        repository: The source-of-truth store.
        cache: The role cache used by the resolver, if any. Its entries are
            invalidated synchronously after each commit.
    """

    def __init__(self, repository: RoleRepository, cache: CachedRoleStore | None = None) -> None:
        self.repository = repository
        self.cache = cache

    async def _get_role(self, role_id: str) -> Role:
        roles = await self.repository.fetch_roles([role_id])
        if not roles:
            raise RoleNotFoundError(role_id)
        return roles[0]

    def _invalidate(self, role_ids: Iterable[str] = (), identity_ids: Iterable[str] = ()) -> None:
        if self.cache is None:
            return
        for role_id in role_ids:
            self.cache.invalidate_role(role_id)
        for identity_id in identity_ids:
            self.cache.invalidate_identity(identity_id)

    async def create_role(self, name: str, application: str, permissions: Iterable[str]) -> Role:
        """Create a role.

        Raises:
            PermissionValidationError: If any permission string is malformed.
            RoleValidationError: If the name or application is unacceptable.
        """
        application = application.strip()
        if not application:
            raise RoleValidationError("Application name is required")

        role = Role(
            id=uuid.uuid4().hex,
            name=_validate_name(name),
            application=application,
            permissions=_validate_permissions(permissions),
        )
        await self.repository.save_role(role)
        self._invalidate(role_ids=[role.id])
        logger.info("Created role %s (%s) for application %s", role.name, role.id, role.application)
        return role

    async def update_role(
        self,
        role_id: str,
        *,
        name: str | None = None,
        permissions: Iterable[str] | None = None,
    ) -> Role:
        """Replace a role's name and/or permission set."""
        current = await self._get_role(role_id)
        changes: dict[str, object] = {"updated_at": datetime.now(UTC)}
        if name is not None:
            changes["name"] = _validate_name(name)
        if permissions is not None:
            changes["permissions"] = _validate_permissions(permissions)

        role = current.model_copy(update=changes)
        await self.repository.save_role(role)
        self._invalidate(role_ids=[role_id])
        logger.info("Updated role %s", role_id)
        return role

    async def delete_role(self, role_id: str) -> None:
        await self._get_role(role_id)
        holders = await self.repository.delete_role(role_id)
        self._invalidate(role_ids=[role_id], identity_ids=holders)
        logger.info("Deleted role %s, revoked from %d identities", role_id, len(holders))

    async def assign_role(self, identity_id: str, role_id: str) -> None:
        await self._get_role(role_id)
        await self.repository.add_identity_role(identity_id, role_id)
        self._invalidate(identity_ids=[identity_id])

    async def revoke_role(self, identity_id: str, role_id: str) -> None:
        await self.repository.remove_identity_role(identity_id, role_id)
        self._invalidate(identity_ids=[identity_id])
