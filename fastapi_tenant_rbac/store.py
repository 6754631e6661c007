from abc import ABC, abstractmethod
from collections.abc import Iterable

from fastapi_tenant_rbac.models import Role


class RoleStore(ABC):
    """Read side of a role source.

    Implementations back onto a database, a cache, or memory. They report
    infrastructure failures by raising; unknown ids are not failures.

    Example:
        class MongoRoleStore(RoleStore):
            def __init__(self, db: AsyncIOMotorDatabase) -> None:
                self.db = db

            async def fetch_roles(self, role_ids: Iterable[str]) -> list[Role]:
                cursor = self.db.roles.find({"_id": {"$in": list(role_ids)}})
                return [Role.model_validate(doc) async for doc in cursor]

            async def fetch_identity_role_ids(self, identity_id: str) -> frozenset[str] | None:
                doc = await self.db.users.find_one({"_id": identity_id}, {"roles": 1})
                return frozenset(doc["roles"]) if doc else None
    """

    @abstractmethod
    async def fetch_roles(self, role_ids: Iterable[str]) -> list[Role]:
        """Return the role records for the given ids, skipping unknown ids."""
        ...

    @abstractmethod
    async def fetch_identity_role_ids(self, identity_id: str) -> frozenset[str] | None:
        """Return the role ids held by an identity, or None if it is unknown."""
        ...


class RoleRepository(RoleStore):
    """Write side used by the administrative path."""

    @abstractmethod
    async def save_role(self, role: Role) -> None: ...

    @abstractmethod
    async def delete_role(self, role_id: str) -> frozenset[str]:
        """Delete a role and drop it from every identity.

        Returns:
            The ids of identities that held the role.
        """
        ...

    @abstractmethod
    async def save_identity_role_ids(self, identity_id: str, role_ids: frozenset[str]) -> None: ...

    @abstractmethod
    async def add_identity_role(self, identity_id: str, role_id: str) -> None:
        """Add one role to an identity's membership as a single atomic write."""
        ...

    @abstractmethod
    async def remove_identity_role(self, identity_id: str, role_id: str) -> None:
        """Remove one role from an identity's membership as a single atomic write."""
        ...


class InMemoryRoleStore(RoleRepository):
    """Dictionary-backed source of truth for tests and single-process apps."""

    def __init__(
        self,
        roles: Iterable[Role] = (),
        identities: dict[str, Iterable[str]] | None = None,
    ) -> None:
        self._roles: dict[str, Role] = {role.id: role for role in roles}
        self._identities: dict[str, frozenset[str]] = {
            identity_id: frozenset(role_ids) for identity_id, role_ids in (identities or {}).items()
        }

    async def fetch_roles(self, role_ids: Iterable[str]) -> list[Role]:
        return [self._roles[role_id] for role_id in dict.fromkeys(role_ids) if role_id in self._roles]

    async def fetch_identity_role_ids(self, identity_id: str) -> frozenset[str] | None:
        return self._identities.get(identity_id)

    async def save_role(self, role: Role) -> None:
        self._roles[role.id] = role

    async def delete_role(self, role_id: str) -> frozenset[str]:
        self._roles.pop(role_id, None)
        holders = frozenset(identity_id for identity_id, role_ids in self._identities.items() if role_id in role_ids)
        for identity_id in holders:
            self._identities[identity_id] = self._identities[identity_id] - {role_id}
        return holders

    async def save_identity_role_ids(self, identity_id: str, role_ids: frozenset[str]) -> None:
        self._identities[identity_id] = frozenset(role_ids)

    # Read and write with no await in between
    async def add_identity_role(self, identity_id: str, role_id: str) -> None:
        self._identities[identity_id] = self._identities.get(identity_id, frozenset()) | {role_id}

    async def remove_identity_role(self, identity_id: str, role_id: str) -> None:
        if identity_id in self._identities:
            self._identities[identity_id] = self._identities[identity_id] - {role_id}
