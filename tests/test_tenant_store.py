"""
Tests for the tenant store backends.
"""
from datetime import timedelta

import pytest
import pytest_asyncio

from iptv_addon.models.tenant import utcnow
from iptv_addon.services.tenant_store import MemoryTenantStore, SQLiteTenantStore


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def store(request, tmp_path):
    if request.param == "memory":
        backend = MemoryTenantStore()
    else:
        backend = SQLiteTenantStore(str(tmp_path / "data" / "tenants.db"))
    await backend.initialize()
    return backend


class TestTenantStore:

    @pytest.mark.asyncio
    async def test_put_get_roundtrip(self, store, sample_tenant):
        sample_tenant.favorites.add(sample_tenant.channels[0].id)
        await store.put(sample_tenant)

        loaded = await store.get("tenant1")
        assert loaded.config == sample_tenant.config
        assert loaded.channels == sample_tenant.channels
        assert loaded.categories == sample_tenant.categories
        assert loaded.guide_index == sample_tenant.guide_index
        assert loaded.favorites == sample_tenant.favorites
        assert loaded.channels[1].drm_config.key == "def456"

    @pytest.mark.asyncio
    async def test_get_unknown(self, store):
        assert await store.get("missing") is None

    @pytest.mark.asyncio
    async def test_put_replaces_whole_record(self, store, sample_tenant):
        await store.put(sample_tenant)
        await store.put(sample_tenant.model_copy(update={"channels": sample_tenant.channels[:1]}))

        loaded = await store.get("tenant1")
        assert len(loaded.channels) == 1
        assert len(await store.list_tenants()) == 1

    @pytest.mark.asyncio
    async def test_delete(self, store, sample_tenant):
        await store.put(sample_tenant)

        assert await store.delete("tenant1") is True
        assert await store.delete("tenant1") is False
        assert await store.get("tenant1") is None

    @pytest.mark.asyncio
    async def test_touch_and_evict_idle(self, store, sample_tenant):
        old = utcnow() - timedelta(days=3)
        await store.put(sample_tenant.model_copy(update={"last_access": old}))
        await store.put(sample_tenant.model_copy(update={"tenant_id": "tenant2", "last_access": old}))

        now = utcnow()
        await store.touch("tenant2", now)
        assert (await store.get("tenant2")).last_access == now

        evicted = await store.evict_idle(utcnow() - timedelta(days=1))
        assert evicted == ["tenant1"]
        assert [t.tenant_id for t in await store.list_tenants()] == ["tenant2"]

    @pytest.mark.asyncio
    async def test_touch_unknown_is_noop(self, store):
        await store.touch("missing", utcnow())
        assert await store.get("missing") is None
