"""Read-only HTTP views over the resolution engine."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request

from fastapi_tenant_rbac.dependencies import (
    _identity_dependency_placeholder,
    get_policy,
    require_identity,
    require_permission,
    role_id_hint_for,
)
from fastapi_tenant_rbac.exceptions import PolicyLookupUnavailable, RoleLookupError
from fastapi_tenant_rbac.introspection.schema import (
    EffectivePermissionsSchema,
    EndpointSchema,
    RoleGrantPreviewSchema,
    build_endpoint_schemas,
)


def create_introspection_router(introspection_permission: str) -> APIRouter:
    """Create a router exposing effective permissions and role previews.

    Args:
        introspection_permission: Permission required to preview roles and
            list guarded endpoints. The caller's own effective permissions only
            require authentication.

    Returns:
        An APIRouter to be mounted under a prefix such as "/_rbac".
    """
    router = APIRouter(tags=["rbac"])
    admin_guard = Depends(require_permission(introspection_permission))

    @router.get(
        "/permissions",
        response_model=EffectivePermissionsSchema,
        summary="Effective permissions",
        description=(
            "Permissions the current identity holds within an application, from the same"
            " role-id hint or membership lookup the guards use. Display only."
        ),
    )
    async def get_effective_permissions(
        request: Request,
        identity: Annotated[Any, Depends(_identity_dependency_placeholder)],
        application: Annotated[str, Query(min_length=1)],
    ) -> EffectivePermissionsSchema:
        identity = require_identity(identity)
        try:
            permissions = await get_policy(request).resolver.get_effective_permissions(
                identity.id, application, role_id_hint=role_id_hint_for(identity, request)
            )
        except RoleLookupError:
            raise PolicyLookupUnavailable() from None
        return EffectivePermissionsSchema(
            identity_id=identity.id,
            application=application,
            permissions=sorted(permissions),
        )

    @router.get(
        "/roles/{role_id}/grants",
        response_model=RoleGrantPreviewSchema,
        summary="Preview role grant",
        description="Whether a single role grants a permission, independent of any identity.",
        dependencies=[admin_guard],
    )
    async def preview_role_grant(
        request: Request,
        role_id: str,
        permission: Annotated[str, Query(min_length=1)],
    ) -> RoleGrantPreviewSchema:
        try:
            granted = await get_policy(request).resolver.role_has_permission(role_id, permission)
        except RoleLookupError:
            raise PolicyLookupUnavailable() from None
        return RoleGrantPreviewSchema(role_id=role_id, permission=permission, granted=granted)

    @router.get(
        "/endpoints",
        response_model=list[EndpointSchema],
        summary="Guarded endpoints",
        description="Every guarded route with its declared permission requirement.",
        dependencies=[admin_guard],
    )
    async def list_guarded_endpoints(request: Request) -> list[EndpointSchema]:
        return build_endpoint_schemas(request.app)

    return router
