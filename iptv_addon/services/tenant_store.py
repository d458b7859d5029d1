"""
Tenant storage.

TenantStore is the interface the services depend on. MemoryTenantStore keeps
tenants in process memory; SQLiteTenantStore persists them with aiosqlite so
configured addons survive restarts.
"""
import aiosqlite
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Optional

from iptv_addon.config import get_settings
from iptv_addon.models.tenant import Tenant


class TenantStore(ABC):
    """Keyed holder of tenant state. A put replaces the whole record."""

    async def initialize(self):
        """Prepare the backend. No-op by default."""

    @abstractmethod
    async def get(self, tenant_id: str) -> Optional[Tenant]:
        ...

    @abstractmethod
    async def put(self, tenant: Tenant):
        ...

    @abstractmethod
    async def delete(self, tenant_id: str) -> bool:
        ...

    @abstractmethod
    async def list_tenants(self) -> list[Tenant]:
        ...

    async def touch(self, tenant_id: str, when: datetime):
        """Record an access to a tenant."""
        tenant = await self.get(tenant_id)
        if tenant is not None:
            await self.put(tenant.model_copy(update={"last_access": when}))

    async def evict_idle(self, cutoff: datetime) -> list[str]:
        """Delete tenants not accessed since cutoff. Returns evicted ids."""
        evicted = []
        for tenant in await self.list_tenants():
            if tenant.last_access < cutoff:
                await self.delete(tenant.tenant_id)
                evicted.append(tenant.tenant_id)
        return evicted


class MemoryTenantStore(TenantStore):
    """Process-memory store. State is lost on restart."""

    def __init__(self):
        self._tenants: dict[str, Tenant] = {}

    async def get(self, tenant_id: str) -> Optional[Tenant]:
        return self._tenants.get(tenant_id)

    async def put(self, tenant: Tenant):
        self._tenants[tenant.tenant_id] = tenant

    async def delete(self, tenant_id: str) -> bool:
        return self._tenants.pop(tenant_id, None) is not None

    async def list_tenants(self) -> list[Tenant]:
        return list(self._tenants.values())


class SQLiteTenantStore(TenantStore):
    """Async SQLite store keyed by tenant id."""

    def __init__(self, db_path: Optional[str] = None):
        settings = get_settings()
        self.db_path = db_path or settings.database_path
        self._ensure_directory()

    def _ensure_directory(self):
        """Create data directory if it doesn't exist."""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

    async def initialize(self):
        """Create the tenants table if it doesn't exist."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("""
                CREATE TABLE IF NOT EXISTS tenants (
                    tenant_id TEXT PRIMARY KEY,
                    data TEXT NOT NULL,
                    last_access TIMESTAMP NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            await db.execute("CREATE INDEX IF NOT EXISTS idx_tenants_access ON tenants(last_access)")
            await db.commit()

    def _load(self, data: str, last_access: str) -> Tenant:
        tenant = Tenant.model_validate_json(data)
        # last_access is tracked in its own column so touches stay cheap
        return tenant.model_copy(update={"last_access": datetime.fromisoformat(last_access)})

    async def get(self, tenant_id: str) -> Optional[Tenant]:
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "SELECT data, last_access FROM tenants WHERE tenant_id = ?",
                (tenant_id,)
            )
            row = await cursor.fetchone()
            if row:
                return self._load(row[0], row[1])
            return None

    async def put(self, tenant: Tenant):
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """INSERT OR REPLACE INTO tenants (tenant_id, data, last_access, updated_at)
                   VALUES (?, ?, ?, CURRENT_TIMESTAMP)""",
                (tenant.tenant_id, tenant.model_dump_json(), tenant.last_access.isoformat())
            )
            await db.commit()

    async def delete(self, tenant_id: str) -> bool:
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute("DELETE FROM tenants WHERE tenant_id = ?", (tenant_id,))
            await db.commit()
            return cursor.rowcount > 0

    async def list_tenants(self) -> list[Tenant]:
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute("SELECT data, last_access FROM tenants ORDER BY tenant_id")
            rows = await cursor.fetchall()
            return [self._load(r[0], r[1]) for r in rows]

    async def touch(self, tenant_id: str, when: datetime):
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "UPDATE tenants SET last_access = ? WHERE tenant_id = ?",
                (when.isoformat(), tenant_id)
            )
            await db.commit()

    async def evict_idle(self, cutoff: datetime) -> list[str]:
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "SELECT tenant_id FROM tenants WHERE last_access < ?",
                (cutoff.isoformat(),)
            )
            evicted = [row[0] for row in await cursor.fetchall()]
            await db.execute("DELETE FROM tenants WHERE last_access < ?", (cutoff.isoformat(),))
            await db.commit()
            return evicted


# Singleton instance
_tenant_store: Optional[TenantStore] = None


async def get_tenant_store() -> TenantStore:
    """Get or create the configured tenant store singleton."""
    global _tenant_store
    if _tenant_store is None:
        settings = get_settings()
        if settings.storage_backend == "sqlite":
            _tenant_store = SQLiteTenantStore()
        else:
            _tenant_store = MemoryTenantStore()
        await _tenant_store.initialize()
    return _tenant_store
