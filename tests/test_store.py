import pytest

from fastapi_tenant_rbac import CachedRoleStore, InMemoryRoleStore, Role


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class CountingStore(InMemoryRoleStore):
    """In-memory store that records how often it is read."""

    role_fetches = 0
    identity_fetches = 0

    async def fetch_roles(self, role_ids):  # type: ignore[no-untyped-def]
        self.role_fetches += 1
        return await super().fetch_roles(role_ids)

    async def fetch_identity_role_ids(self, identity_id):  # type: ignore[no-untyped-def]
        self.identity_fetches += 1
        return await super().fetch_identity_role_ids(identity_id)


def make_role(role_id: str, *permissions: str, application: str = "cms") -> Role:
    return Role(id=role_id, name=role_id, application=application, permissions=frozenset(permissions))


class TestInMemoryRoleStore:
    @pytest.mark.anyio
    async def test_fetch_roles_skips_unknown_ids(self) -> None:
        store = InMemoryRoleStore(roles=[make_role("a", "content:read")])
        roles = await store.fetch_roles(["a", "missing"])
        assert [role.id for role in roles] == ["a"]

    @pytest.mark.anyio
    async def test_fetch_roles_deduplicates(self) -> None:
        store = InMemoryRoleStore(roles=[make_role("a", "content:read")])
        assert len(await store.fetch_roles(["a", "a"])) == 1

    @pytest.mark.anyio
    async def test_unknown_identity_returns_none(self) -> None:
        store = InMemoryRoleStore()
        assert await store.fetch_identity_role_ids("nobody") is None

    @pytest.mark.anyio
    async def test_delete_role_drops_it_from_holders(self) -> None:
        store = InMemoryRoleStore(
            roles=[make_role("a", "content:read"), make_role("b", "media:read")],
            identities={"u1": {"a", "b"}, "u2": {"b"}},
        )
        holders = await store.delete_role("a")
        assert holders == frozenset({"u1"})
        assert await store.fetch_identity_role_ids("u1") == frozenset({"b"})
        assert await store.fetch_roles(["a"]) == []


class TestCachedRoleStore:
    @pytest.mark.anyio
    async def test_serves_repeated_lookups_from_cache(self) -> None:
        backend = CountingStore(roles=[make_role("a", "content:read")], identities={"u": {"a"}})
        cache = CachedRoleStore(backend, ttl=10, clock=FakeClock())

        for _ in range(3):
            assert await cache.fetch_identity_role_ids("u") == frozenset({"a"})
            assert [r.id for r in await cache.fetch_roles(["a"])] == ["a"]

        assert backend.identity_fetches == 1
        assert backend.role_fetches == 1

    @pytest.mark.anyio
    async def test_entries_expire_after_ttl(self) -> None:
        clock = FakeClock()
        backend = CountingStore(roles=[make_role("a", "content:read")])
        cache = CachedRoleStore(backend, ttl=10, clock=clock)

        await cache.fetch_roles(["a"])
        clock.now = 9.9
        await cache.fetch_roles(["a"])
        assert backend.role_fetches == 1

        clock.now = 10.0
        await cache.fetch_roles(["a"])
        assert backend.role_fetches == 2

    @pytest.mark.anyio
    async def test_stale_role_visible_until_invalidated(self) -> None:
        backend = InMemoryRoleStore(roles=[make_role("a", "content:read")])
        cache = CachedRoleStore(backend, ttl=10, clock=FakeClock())

        await cache.fetch_roles(["a"])
        await backend.save_role(make_role("a", "media:read"))
        assert (await cache.fetch_roles(["a"]))[0].permissions == frozenset({"content:read"})

        cache.invalidate_role("a")
        assert (await cache.fetch_roles(["a"]))[0].permissions == frozenset({"media:read"})

    @pytest.mark.anyio
    async def test_invalidate_identity(self) -> None:
        backend = InMemoryRoleStore(identities={"u": {"a"}})
        cache = CachedRoleStore(backend, ttl=10, clock=FakeClock())

        await cache.fetch_identity_role_ids("u")
        await backend.save_identity_role_ids("u", frozenset())
        cache.invalidate_identity("u")

        assert await cache.fetch_identity_role_ids("u") == frozenset()

    @pytest.mark.anyio
    async def test_missing_roles_are_cached_and_omitted(self) -> None:
        backend = CountingStore()
        cache = CachedRoleStore(backend, ttl=10, clock=FakeClock())

        assert await cache.fetch_roles(["ghost"]) == []
        assert await cache.fetch_roles(["ghost"]) == []
        assert backend.role_fetches == 1

    @pytest.mark.anyio
    async def test_only_misses_reach_the_backend(self) -> None:
        backend = CountingStore(roles=[make_role("a", "content:read"), make_role("b", "media:read")])
        cache = CachedRoleStore(backend, ttl=10, clock=FakeClock())

        await cache.fetch_roles(["a"])
        roles = await cache.fetch_roles(["a", "b"])

        assert sorted(role.id for role in roles) == ["a", "b"]
        assert backend.role_fetches == 2

    @pytest.mark.anyio
    async def test_lookup_racing_an_invalidation_is_not_cached(self) -> None:
        class InvalidatingStore(InMemoryRoleStore):
            cache: CachedRoleStore

            async def fetch_roles(self, role_ids):  # type: ignore[no-untyped-def]
                roles = await super().fetch_roles(role_ids)
                self.cache.invalidate_role("a")
                return roles

        backend = InvalidatingStore(roles=[make_role("a", "content:read")])
        cache = CachedRoleStore(backend, ttl=10, clock=FakeClock())
        backend.cache = cache

        await cache.fetch_roles(["a"])
        assert "a" not in cache._roles

    @pytest.mark.anyio
    async def test_expired_entries_are_evicted(self) -> None:
        clock = FakeClock()
        backend = InMemoryRoleStore(roles=[make_role("a", "content:read"), make_role("b", "media:read")])
        cache = CachedRoleStore(backend, ttl=10, clock=clock)

        await cache.fetch_roles(["a"])
        await cache.fetch_identity_role_ids("u")
        assert "a" in cache._roles
        assert "u" in cache._identities

        clock.now = 10.0
        await cache.fetch_roles(["b"])

        assert "a" not in cache._roles
        assert "u" not in cache._identities
        assert "b" in cache._roles

    def test_ttl_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            CachedRoleStore(InMemoryRoleStore(), ttl=0)
