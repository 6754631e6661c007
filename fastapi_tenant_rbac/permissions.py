import logging
from collections.abc import Iterable
from enum import StrEnum

from fastapi_tenant_rbac.exceptions import PermissionValidationError

logger = logging.getLogger(__name__)

WILDCARD = "*"
SEPARATOR = ":"
UNIVERSAL_LITERAL = f"{WILDCARD}{SEPARATOR}{WILDCARD}"


class Resource(StrEnum):
    USER = "user"
    ROLE = "role"
    PERMISSION = "permission"
    SUBSCRIPTION = "subscription"
    CONTENT = "content"
    SETTINGS = "settings"
    MEDIA = "media"
    VIDEO = "video"
    PROMOCODE = "promocode"


class Action(StrEnum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    MANAGE = "manage"
    APPROVE = "approve"
    EXPORT = "export"
    IMPORT = "import"


_RESOURCES = frozenset(Resource)
_ACTIONS = frozenset(Action)


class Permission:
    """A parsed permission: either concrete or universal."""

    __slots__ = ()

    resource: str
    action: str

    def __str__(self) -> str:
        return f"{self.resource}{SEPARATOR}{self.action}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({str(self)!r})"


class ConcretePermission(Permission):
    """A ``resource:action`` pair where either segment may be the wildcard."""

    __slots__ = ("resource", "action")

    def __init__(self, resource: str, action: str) -> None:
        self.resource = resource
        self.action = action

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConcretePermission):
            return NotImplemented
        return self.resource == other.resource and self.action == other.action

    def __hash__(self) -> int:
        return hash((self.resource, self.action))


class UniversalPermission(Permission):
    """The ``*:*`` grant - matches any permission in any position."""

    __slots__ = ()

    resource = WILDCARD
    action = WILDCARD

    def __eq__(self, other: object) -> bool:
        return isinstance(other, UniversalPermission)

    def __hash__(self) -> int:
        return hash(UNIVERSAL_LITERAL)


UNIVERSAL = UniversalPermission()


def parse_permission(value: object) -> Permission:
    """Parse a permission string into its structured form.

    Raises:
        PermissionValidationError: If the string is not ``*:*`` or a pair of
            vocabulary tokens (or wildcards) separated by a single ``:``.
    """
    if not isinstance(value, str):
        raise PermissionValidationError(value, "must be a string")
    if value == UNIVERSAL_LITERAL:
        return UNIVERSAL

    parts = value.split(SEPARATOR)
    if len(parts) != 2:
        raise PermissionValidationError(value, "expected exactly one ':' separator")

    resource, action = parts
    if not resource or not action:
        raise PermissionValidationError(value, "segments must be non-empty")
    if resource != WILDCARD and resource not in _RESOURCES:
        raise PermissionValidationError(value, f"unknown resource {resource!r}")
    if action != WILDCARD and action not in _ACTIONS:
        raise PermissionValidationError(value, f"unknown action {action!r}")

    return ConcretePermission(resource, action)


def validate_permission(value: object) -> bool:
    """Return True if ``value`` is a well-formed permission string."""
    try:
        parse_permission(value)
    except PermissionValidationError:
        return False
    return True


def parse_stored_permission(value: object) -> Permission | None:
    """Parse a permission read back from a stored role, never raising.

    A malformed entry is logged and treated as matching nothing.
    """
    try:
        return parse_permission(value)
    except PermissionValidationError as exc:
        logger.warning("Skipping malformed stored permission: %s", exc)
        return None


def implies(held: Permission, required: Permission) -> bool:
    """Check if a held permission grants a required permission.

    '*:*' grants everything. Otherwise each segment must be equal or the held
    segment must be the wildcard: 'content:*' grants 'content:read',
    '*:read' grants 'media:read'.
    """
    if isinstance(held, UniversalPermission):
        return True
    return (held.resource == required.resource or held.resource == WILDCARD) and (
        held.action == required.action or held.action == WILDCARD
    )


def permissions_grant(stored: Iterable[object], required: Permission) -> bool:
    """Check if any stored permission string grants ``required``.

    Stops at the first match. Malformed entries are skipped.
    """
    for raw in stored:
        held = parse_stored_permission(raw)
        if held is not None and implies(held, required):
            return True
    return False


def applies_to(role_application: str, application: str) -> bool:
    """Scope comparison is exact string or wildcard, nothing else."""
    return role_application == WILDCARD or role_application == application
