"""PolicyRouter - FastAPI router with per-route permission guards."""

from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, Depends

from fastapi_tenant_rbac.dependencies import ApplicationExpr, require_permission
from fastapi_tenant_rbac.permissions import parse_permission


class PolicyRouter(APIRouter):
    """FastAPI router that guards its endpoints with a permission requirement.

    Args:
        permission: Default permission required by every endpoint on this router.
        application: Default application scope (static name or request-derived).
            None uses the default application configured on PolicyAuthz.
        **kwargs: Additional arguments passed to APIRouter.

    Example:
        router = PolicyRouter(permission="content:read", application="cms")

        @router.get("/content")
        async def list_content():
            return {"items": [...]}

        # Override for a specific endpoint
        @router.delete("/content/{item_id}", permission="content:delete")
        async def delete_content(item_id: str):
            ...
    """

    def __init__(
        self,
        *,
        permission: str | None = None,
        application: ApplicationExpr | None = None,
        **kwargs: Any,
    ) -> None:
        if permission is not None:
            parse_permission(permission)

        super().__init__(**kwargs)
        self.default_permission = permission
        self.default_application = application
        self.endpoint_metadata: dict[tuple[str, str], dict[str, Any]] = {}

    def _route_kwargs(
        self,
        path: str,
        method: str,
        permission: str | None,
        application: ApplicationExpr | None,
        kwargs: dict[str, Any],
    ) -> dict[str, Any]:
        """Resolve the endpoint's requirement and add its guard to the route dependencies.

        Endpoint values override router defaults.
        """
        final_permission = permission if permission is not None else self.default_permission
        final_application = application if application is not None else self.default_application

        self.endpoint_metadata[(path, method)] = {
            "permission": final_permission,
            "application": final_application,
        }

        if final_permission is not None:
            guard = require_permission(final_permission, application=final_application)
            kwargs["dependencies"] = [*(kwargs.get("dependencies") or []), Depends(guard)]
        return kwargs

    def get(  # type: ignore[override]
        self,
        path: str,
        *,
        permission: str | None = None,
        application: ApplicationExpr | None = None,
        **kwargs: Any,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a GET endpoint with an optional requirement override."""
        return super().get(path, **self._route_kwargs(path, "GET", permission, application, kwargs))

    def post(  # type: ignore[override]
        self,
        path: str,
        *,
        permission: str | None = None,
        application: ApplicationExpr | None = None,
        **kwargs: Any,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a POST endpoint with an optional requirement override."""
        return super().post(path, **self._route_kwargs(path, "POST", permission, application, kwargs))

    def put(  # type: ignore[override]
        self,
        path: str,
        *,
        permission: str | None = None,
        application: ApplicationExpr | None = None,
        **kwargs: Any,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a PUT endpoint with an optional requirement override."""
        return super().put(path, **self._route_kwargs(path, "PUT", permission, application, kwargs))

    def patch(  # type: ignore[override]
        self,
        path: str,
        *,
        permission: str | None = None,
        application: ApplicationExpr | None = None,
        **kwargs: Any,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a PATCH endpoint with an optional requirement override."""
        return super().patch(path, **self._route_kwargs(path, "PATCH", permission, application, kwargs))

    def delete(  # type: ignore[override]
        self,
        path: str,
        *,
        permission: str | None = None,
        application: ApplicationExpr | None = None,
        **kwargs: Any,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a DELETE endpoint with an optional requirement override."""
        return super().delete(path, **self._route_kwargs(path, "DELETE", permission, application, kwargs))
