"""TTL cache in front of a RoleStore."""

import logging
import time
from collections.abc import Callable, Iterable

from fastapi_tenant_rbac.models import Role
from fastapi_tenant_rbac.store import RoleStore

logger = logging.getLogger(__name__)


class CachedRoleStore(RoleStore):
    """Serve role and membership lookups from memory for up to ``ttl`` seconds.

    The administrative write path must call ``invalidate_role`` /
    ``invalidate_identity`` when it commits, so a revoked permission is gone
    immediately rather than after the TTL. Lookups that were in flight when an
    invalidation happened are returned to their caller but not cached.

    Args:
        store: The source-of-truth store.
        ttl: Seconds an entry stays valid.
        clock: Monotonic time source, replaceable in tests.
    """

    def __init__(
        self,
        store: RoleStore,
        ttl: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self.store = store
        self.ttl = ttl
        self._clock = clock
        self._roles: dict[str, tuple[Role | None, float]] = {}
        self._identities: dict[str, tuple[frozenset[str] | None, float]] = {}
        self._generation = 0
        self._next_sweep = 0.0

    def _evict_expired(self, now: float) -> None:
        # At most one full sweep per TTL period
        if now < self._next_sweep:
            return
        self._roles = {key: entry for key, entry in self._roles.items() if entry[1] > now}
        self._identities = {key: entry for key, entry in self._identities.items() if entry[1] > now}
        self._next_sweep = now + self.ttl

    async def fetch_roles(self, role_ids: Iterable[str]) -> list[Role]:
        requested = list(dict.fromkeys(role_ids))
        now = self._clock()
        self._evict_expired(now)
        found: dict[str, Role | None] = {}
        misses: list[str] = []

        for role_id in requested:
            entry = self._roles.get(role_id)
            if entry is not None and entry[1] > now:
                found[role_id] = entry[0]
            else:
                misses.append(role_id)

        if misses:
            generation = self._generation
            fetched = {role.id: role for role in await self.store.fetch_roles(misses)}
            expires_at = self._clock() + self.ttl
            for role_id in misses:
                role = fetched.get(role_id)
                found[role_id] = role
                if generation == self._generation:
                    self._roles[role_id] = (role, expires_at)

        return [role for role_id in requested if (role := found[role_id]) is not None]

    async def fetch_identity_role_ids(self, identity_id: str) -> frozenset[str] | None:
        now = self._clock()
        self._evict_expired(now)
        entry = self._identities.get(identity_id)
        if entry is not None and entry[1] > now:
            return entry[0]

        generation = self._generation
        role_ids = await self.store.fetch_identity_role_ids(identity_id)
        if generation == self._generation:
            self._identities[identity_id] = (role_ids, self._clock() + self.ttl)
        return role_ids

    def invalidate_role(self, role_id: str) -> None:
        self._generation += 1
        self._roles.pop(role_id, None)
        logger.debug("Invalidated cached role %s", role_id)

    def invalidate_identity(self, identity_id: str) -> None:
        self._generation += 1
        self._identities.pop(identity_id, None)
        logger.debug("Invalidated cached membership of identity %s", identity_id)

    def clear(self) -> None:
        self._generation += 1
        self._roles.clear()
        self._identities.clear()
