"""Response schemas and route introspection for the policy views."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi.routing import APIRoute
from pydantic import BaseModel

from fastapi_tenant_rbac.dependencies import describe_application

if TYPE_CHECKING:
    from fastapi import FastAPI


class EffectivePermissionsSchema(BaseModel):
    """Permissions the caller holds within an application, for display."""

    identity_id: str
    application: str
    permissions: list[str]


class RoleGrantPreviewSchema(BaseModel):
    """Whether a single role grants a permission, ignoring its scope."""

    role_id: str
    permission: str
    granted: bool


class EndpointSchema(BaseModel):
    """An endpoint and the requirement guarding it."""

    path: str
    method: str
    summary: str | None
    permissions: list[str]
    match: str
    application: str


def build_endpoint_schemas(app: FastAPI) -> list[EndpointSchema]:
    """List every guarded route with its declared requirement.

    A route is guarded when one of its dependencies was produced by
    require_permission(), require_any_permission() or require_all_permissions(),
    either directly or via PolicyRouter.
    """
    endpoints: list[EndpointSchema] = []
    for route in app.routes:
        if not isinstance(route, APIRoute):
            continue
        for dependency in route.dependencies:
            guard = dependency.dependency
            required = getattr(guard, "required_permissions", None)
            if required is None:
                continue
            for method in sorted(route.methods):
                endpoints.append(
                    EndpointSchema(
                        path=route.path,
                        method=method,
                        summary=route.summary,
                        permissions=list(required),
                        match="all" if getattr(guard, "match_all", False) else "any",
                        application=describe_application(guard.application),  # type: ignore[union-attr]
                    )
                )
    return sorted(endpoints, key=lambda e: (e.path, e.method))
