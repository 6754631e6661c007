"""Introspection routes for effective permissions and role previews."""

from fastapi_tenant_rbac.introspection.routes import create_introspection_router
from fastapi_tenant_rbac.introspection.schema import build_endpoint_schemas

__all__ = [
    "create_introspection_router",
    "build_endpoint_schemas",
]
