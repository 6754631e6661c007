import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

import anyio

from fastapi_tenant_rbac.exceptions import RoleLookupError
from fastapi_tenant_rbac.models import Role
from fastapi_tenant_rbac.permissions import applies_to
from fastapi_tenant_rbac.store import RoleStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RoleStoreAccess:
    """Resolve the candidate roles for an identity within an application.

    Two strategies share one fetch and one scope filter:

    - hint path: the caller already knows the role ids (e.g. from a verified
      session) and only the role records are fetched.
    - identity path: the identity's role ids are looked up first.

    Whether the hint is current is the caller's concern. Every store call is
    bounded by ``timeout``; timeouts and store failures raise RoleLookupError.
    """

    def __init__(self, store: RoleStore, timeout: float) -> None:
        self.store = store
        self.timeout = timeout

    async def _call(self, operation: str, fn: Callable[[], Awaitable[T]]) -> T:
        try:
            with anyio.fail_after(self.timeout):
                return await fn()
        except TimeoutError as exc:
            raise RoleLookupError(f"{operation} timed out after {self.timeout}s") from exc
        except RoleLookupError:
            raise
        except Exception as exc:
            raise RoleLookupError(f"{operation} failed: {exc}") from exc

    async def roles_for_hint(self, role_ids: Iterable[str], application: str) -> list[Role]:
        ids = list(role_ids)
        if not ids:
            return []
        roles = await self._call("role lookup", lambda: self.store.fetch_roles(ids))
        return [role for role in roles if applies_to(role.application, application)]

    async def roles_for_identity(self, identity_id: str, application: str) -> list[Role]:
        role_ids = await self._call(
            "membership lookup",
            lambda: self.store.fetch_identity_role_ids(identity_id),
        )
        if role_ids is None:
            logger.debug("Unknown identity %s has no roles", identity_id)
            return []
        return await self.roles_for_hint(role_ids, application)

    async def get_role(self, role_id: str) -> Role | None:
        roles = await self._call("role lookup", lambda: self.store.fetch_roles([role_id]))
        return next((role for role in roles if role.id == role_id), None)
