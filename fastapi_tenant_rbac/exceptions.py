from fastapi import HTTPException
from starlette.status import (
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_503_SERVICE_UNAVAILABLE,
)


class PermissionValidationError(ValueError):
    """A permission string does not follow the ``resource:action`` grammar."""

    def __init__(self, permission: object, reason: str) -> None:
        self.permission = permission
        self.reason = reason
        super().__init__(f"Invalid permission {permission!r}: {reason}")


class RoleValidationError(ValueError):
    """A role write was rejected before anything was persisted."""


class RoleNotFoundError(KeyError):
    """An administrative write referenced a role that does not exist."""


class RoleLookupError(Exception):
    """Role store unreachable, errored or timed out.

    Distinct from a denial: the engine could not decide, so the gate fails
    closed with a server-error status.
    """


class Unauthorized(HTTPException):
    """401 Unauthorized - no authenticated identity on the request."""

    def __init__(self, detail: str = "Authentication required") -> None:
        super().__init__(status_code=HTTP_401_UNAUTHORIZED, detail=detail)


class Forbidden(HTTPException):
    """403 Forbidden - identity lacks the required permission."""

    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(status_code=HTTP_403_FORBIDDEN, detail=detail)


class PolicyLookupUnavailable(HTTPException):
    """503 Service Unavailable - permission could not be resolved."""

    def __init__(self, detail: str = "Authorization service unavailable") -> None:
        super().__init__(status_code=HTTP_503_SERVICE_UNAVAILABLE, detail=detail)
