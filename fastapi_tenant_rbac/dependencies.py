import logging
from collections.abc import Callable, Coroutine, Iterable
from typing import TYPE_CHECKING, Annotated, Any

from fastapi import Depends, Request

from fastapi_tenant_rbac.exceptions import (
    Forbidden,
    PolicyLookupUnavailable,
    RoleLookupError,
    Unauthorized,
)
from fastapi_tenant_rbac.permissions import parse_permission

if TYPE_CHECKING:
    from fastapi_tenant_rbac.core import PolicyAuthz

logger = logging.getLogger(__name__)

# A static application name, or a callable deriving it from the request
ApplicationExpr = str | Callable[[Request], str | None]


def path_param(name: str) -> Callable[[Request], str | None]:
    """Derive the application scope from a path parameter.

    Example:
        @router.get("/apps/{app}/content", permission="content:read", application=path_param("app"))
    """

    def from_path(request: Request) -> str | None:
        return request.path_params.get(name)

    from_path.__qualname__ = f"path_param({name!r})"
    return from_path


def resolve_application(application: ApplicationExpr | None, request: Request, default: str) -> str | None:
    if application is None:
        return default
    if callable(application):
        return application(request)
    return application


def describe_application(application: ApplicationExpr | None) -> str:
    """Human-readable form of an application expression, for introspection."""
    if application is None:
        return "default"
    if callable(application):
        return getattr(application, "__qualname__", repr(application))
    return application


async def _identity_dependency_placeholder(request: Request) -> Any:
    """Placeholder dependency for the authenticated identity.

    Replaced at runtime via FastAPI's dependency_overrides when PolicyAuthz is
    initialized with an identity_dependency. Without one, the identity is read
    from request.state.identity, which upstream authentication must populate.
    """
    return getattr(request.state, "identity", None)


def get_policy(request: Request) -> "PolicyAuthz":
    policy = getattr(request.app.state, "policy", None)
    if policy is None:
        raise RuntimeError("PolicyAuthz not configured. Make sure to create a PolicyAuthz instance with your app.")
    return policy


def require_identity(identity: Any) -> Any:
    if identity is None:
        raise Unauthorized()
    return identity


def role_id_hint_for(identity: Any, request: Request) -> Iterable[str] | None:
    """Role-id hint from the identity, falling back to request.state.role_ids."""
    role_id_hint = getattr(identity, "role_ids", None)
    if role_id_hint is None:
        role_id_hint = getattr(request.state, "role_ids", None)
    return role_id_hint


async def enforce_permissions(
    identity: Any,
    request: Request,
    policy: "PolicyAuthz",
    required_permissions: list[str],
    application: ApplicationExpr | None,
    *,
    match_all: bool = False,
) -> None:
    """Run the enforcement decision for one request.

    Passes silently when any of ``required_permissions`` is granted, or every
    one of them when ``match_all`` is set.

    Raises:
        Unauthorized: No authenticated identity; the resolver is not called.
        PolicyLookupUnavailable: Roles could not be loaded.
        Forbidden: The requirement is not met.
    """
    identity = require_identity(identity)

    scope = resolve_application(application, request, policy.default_application)
    if not scope:
        logger.debug("Denying %s: application scope could not be derived", request.scope.get("path"))
        raise Forbidden()

    role_id_hint = role_id_hint_for(identity, request)
    try:
        if match_all:
            granted = await policy.resolver.has_all_permissions(
                identity.id, required_permissions, scope, role_id_hint=role_id_hint
            )
        elif len(required_permissions) == 1:
            granted = await policy.resolver.has_permission(
                identity.id, required_permissions[0], scope, role_id_hint=role_id_hint
            )
        else:
            granted = await policy.resolver.has_any_permission(
                identity.id, required_permissions, scope, role_id_hint=role_id_hint
            )
    except RoleLookupError:
        logger.exception("Permission lookup failed for identity %s in %s", identity.id, scope)
        raise PolicyLookupUnavailable() from None

    if not granted:
        raise Forbidden()


def _create_guard(
    required_permissions: list[str],
    application: ApplicationExpr | None,
    match_all: bool = False,
) -> Callable[..., Coroutine[Any, Any, None]]:
    # Fail at declaration time, not on the first request
    for permission in required_permissions:
        parse_permission(permission)

    async def permission_guard(
        request: Request,
        identity: Annotated[Any, Depends(_identity_dependency_placeholder)],
    ) -> None:
        await enforce_permissions(
            identity, request, get_policy(request), required_permissions, application, match_all=match_all
        )

    permission_guard.required_permissions = tuple(required_permissions)  # type: ignore[attr-defined]
    permission_guard.application = application  # type: ignore[attr-defined]
    permission_guard.match_all = match_all  # type: ignore[attr-defined]
    return permission_guard


def require_permission(
    permission: str,
    *,
    application: ApplicationExpr | None = None,
) -> Callable[..., Coroutine[Any, Any, None]]:
    """Create a guard dependency requiring one permission within an application.

    Args:
        permission: A ``resource:action`` string, validated immediately.
        application: Static application name, or a callable such as
            ``path_param("app")`` resolving it from the request. None uses
            the default application configured on PolicyAuthz.

    Returns:
        An async dependency for ``Depends()`` or a route's ``dependencies``.
        It ends the request with 401, 403 or 503, or lets it through.

    Raises:
        PermissionValidationError: If ``permission`` is malformed.
    """
    return _create_guard([permission], application)


def require_any_permission(
    permissions: Iterable[str],
    *,
    application: ApplicationExpr | None = None,
) -> Callable[..., Coroutine[Any, Any, None]]:
    """Create a guard that passes if any one of ``permissions`` is granted."""
    required = list(dict.fromkeys(permissions))
    if not required:
        raise ValueError("At least one permission is required")
    return _create_guard(required, application)


def require_all_permissions(
    permissions: Iterable[str],
    *,
    application: ApplicationExpr | None = None,
) -> Callable[..., Coroutine[Any, Any, None]]:
    """Create a guard that passes only if every one of ``permissions`` is granted."""
    required = list(dict.fromkeys(permissions))
    if not required:
        raise ValueError("At least one permission is required")
    return _create_guard(required, application, match_all=True)
