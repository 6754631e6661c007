"""
Basic example demonstrating fastapi-tenant-rbac usage.

Run with:
    uvicorn examples.basic_app:app --reload

Then try:
    curl -H "X-Token: editor-token" localhost:8000/apps/cms/content      # 200
    curl -H "X-Token: editor-token" localhost:8000/apps/billing/content  # 403
    curl -H "X-Token: admin-token" -X DELETE localhost:8000/apps/cms/content/1
    curl -H "X-Token: editor-token" "localhost:8000/_rbac/permissions?application=cms"
"""

from typing import Annotated

import uvicorn
from fastapi import FastAPI, Header

from fastapi_tenant_rbac import (
    Identity,
    InMemoryRoleStore,
    PermissionResolver,
    PolicyAuthz,
    PolicyRouter,
    Role,
    configure_logging,
    path_param,
)

# =============================================================================
# Roles and memberships
# =============================================================================
store = InMemoryRoleStore(
    roles=[
        Role(id="superadmin", name="Superadmin", application="*", permissions=frozenset({"*:*"})),
        Role(
            id="cms-editor",
            name="CMS editor",
            application="cms",
            permissions=frozenset({"content:read", "content:update", "media:*"}),
        ),
        Role(id="billing-viewer", name="Billing viewer", application="billing", permissions=frozenset({"*:read"})),
    ],
    identities={
        "admin-1": {"superadmin"},
        "editor-1": {"cms-editor", "billing-viewer"},
    },
)

# Fake session store (token -> identity). A session may carry the role-id hint.
SESSIONS = {
    "admin-token": Identity(id="admin-1"),
    "editor-token": Identity(id="editor-1"),
    "hinted-token": Identity(id="editor-1", role_ids=frozenset({"cms-editor"})),
}


# =============================================================================
# Authentication Dependency
# =============================================================================
async def get_current_identity(x_token: Annotated[str | None, Header()] = None) -> Identity | None:
    """Simulate authentication via X-Token header. None means unauthenticated (401)."""
    return SESSIONS.get(x_token or "")


# =============================================================================
# Routers
# =============================================================================
content_router = PolicyRouter(
    prefix="/apps/{app_name}/content",
    permission="content:read",
    application=path_param("app_name"),
    tags=["content"],
)


@content_router.get("")
async def list_content(app_name: str) -> dict[str, object]:
    return {"application": app_name, "items": []}


@content_router.put("/{item_id}", permission="content:update")
async def update_content(app_name: str, item_id: int) -> dict[str, object]:
    return {"application": app_name, "id": item_id, "updated": True}


@content_router.delete("/{item_id}", permission="content:delete")
async def delete_content(app_name: str, item_id: int) -> dict[str, object]:
    return {"application": app_name, "id": item_id, "deleted": True}


billing_router = PolicyRouter(
    prefix="/billing", permission="subscription:read", application="billing", tags=["billing"]
)


@billing_router.get("/subscriptions")
async def list_subscriptions() -> list[dict[str, str]]:
    return [{"plan": "pro"}]


@billing_router.post("/promocodes", permission="promocode:create")
async def create_promocode() -> dict[str, str]:
    return {"code": "WELCOME10"}


# =============================================================================
# Application
# =============================================================================
configure_logging()

app = FastAPI(title="Tenant RBAC Example")

PolicyAuthz(
    app,
    resolver=PermissionResolver.from_settings(store),
    identity_dependency=get_current_identity,
    introspection_path="/_rbac",
)

app.include_router(content_router)
app.include_router(billing_router)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
