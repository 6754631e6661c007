"""Role and identity records consumed by the resolution engine."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from fastapi_tenant_rbac.permissions import WILDCARD


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Role(BaseModel):
    """An application-scoped bundle of permission strings.

    Records are frozen: a write replaces the whole record, so a reader never
    observes a half-updated role.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    application: str = WILDCARD
    permissions: frozenset[str] = frozenset()
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class Identity(BaseModel):
    """An authenticated principal.

    ``role_ids`` is the optional role-id hint carried by a verified session.
    When it is None the engine looks membership up by ``id``.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    role_ids: frozenset[str] | None = None
