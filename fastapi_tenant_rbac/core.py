from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import FastAPI

from fastapi_tenant_rbac.admin import RoleAdministration
from fastapi_tenant_rbac.config import get_settings
from fastapi_tenant_rbac.dependencies import _identity_dependency_placeholder
from fastapi_tenant_rbac.engine import PermissionResolver
from fastapi_tenant_rbac.introspection.routes import create_introspection_router
from fastapi_tenant_rbac.store import RoleRepository


class PolicyAuthz:
    """Attach a permission resolver to a FastAPI application.

    Guards created with require_permission() and PolicyRouter endpoints look
    the resolver up from ``app.state.policy`` at request time.

    Args:
        app: The FastAPI application instance.
        resolver: The permission resolver used by every guard.
        identity_dependency: Optional FastAPI dependency returning the
            authenticated identity (an object with ``id`` and optionally
            ``role_ids``), or None when unauthenticated. Without it, guards
            read ``request.state.identity``.
        introspection_path: Optional path to mount the introspection routes
            (e.g., "/_rbac").
        introspection_permission: Permission required for role previews.
        default_application: Application checked by guards declared without
            one. Defaults to the ``RBAC_DEFAULT_APPLICATION`` setting ("*"),
            under which only wildcard-scoped roles apply.
    """

    def __init__(
        self,
        app: FastAPI,
        resolver: PermissionResolver,
        identity_dependency: Callable[..., Any] | Callable[..., Awaitable[Any]] | None = None,
        introspection_path: str | None = None,
        introspection_permission: str = "role:read",
        default_application: str | None = None,
    ) -> None:
        self.app = app
        self.resolver = resolver
        self.identity_dependency = identity_dependency
        self.introspection_path = introspection_path
        self.introspection_permission = introspection_permission
        self.default_application = default_application or get_settings().default_application

        app.state.policy = self

        # Inject the application's own authentication into every guard
        if identity_dependency is not None:
            app.dependency_overrides[_identity_dependency_placeholder] = identity_dependency

        if introspection_path:
            self._mount_introspection()

    def administration(self, repository: RoleRepository) -> RoleAdministration:
        """Role write service wired to invalidate this resolver's cache."""
        return RoleAdministration(repository, cache=self.resolver.cache)

    def _mount_introspection(self) -> None:
        router = create_introspection_router(self.introspection_permission)
        self.app.include_router(router, prefix=self.introspection_path)
