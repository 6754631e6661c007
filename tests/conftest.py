import pytest

from fastapi_tenant_rbac import InMemoryRoleStore, PermissionResolver, Role, RoleStoreAccess


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def cms_editor() -> Role:
    return Role(
        id="role-a",
        name="CMS editor",
        application="cms",
        permissions=frozenset({"content:read", "content:update"}),
    )


@pytest.fixture
def superadmin() -> Role:
    return Role(id="role-b", name="Superadmin", application="*", permissions=frozenset({"*:*"}))


@pytest.fixture
def store(cms_editor: Role, superadmin: Role) -> InMemoryRoleStore:
    return InMemoryRoleStore(
        roles=[cms_editor, superadmin],
        identities={"user-u": {"role-a"}, "user-root": {"role-b"}, "user-none": set()},
    )


@pytest.fixture
def resolver(store: InMemoryRoleStore) -> PermissionResolver:
    return PermissionResolver(RoleStoreAccess(store, timeout=1.0))
