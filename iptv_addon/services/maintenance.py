"""
Background Maintenance Worker

Periodically evicts idle tenants and re-ingests tenants whose sources
have not been refreshed within the configured interval.
"""

import asyncio
import logging
from datetime import timedelta
from typing import Optional

from iptv_addon.errors import AddonError
from iptv_addon.services.tenant_service import TenantService

logger = logging.getLogger(__name__)


class MaintenanceWorker:
    """Background worker for tenant eviction and refresh."""

    CHECK_INTERVAL = 300  # Seconds between passes
    ERROR_BACKOFF = 60

    def __init__(self, tenants: TenantService, idle_hours: int = 0, refresh_hours: int = 0):
        self.tenants = tenants
        self.idle_hours = idle_hours
        self.refresh_hours = refresh_hours
        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._stats = {"passes": 0, "evicted": 0, "refreshed": 0, "refresh_failures": 0}

    @property
    def enabled(self) -> bool:
        return self.idle_hours > 0 or self.refresh_hours > 0

    async def start(self):
        """Start the background worker."""
        if self._running:
            logger.warning("Maintenance worker already running")
            return
        self._running = True
        self._task = asyncio.create_task(self._worker_loop())
        logger.info("Maintenance worker started")

    async def stop(self):
        """Stop the background worker."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("Maintenance worker stopped")

    def get_stats(self) -> dict:
        return {**self._stats, "running": self._running}

    async def _worker_loop(self):
        while self._running:
            try:
                await self.run_once()
                await asyncio.sleep(self.CHECK_INTERVAL)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Maintenance worker error: {e}", exc_info=True)
                await asyncio.sleep(self.ERROR_BACKOFF)

    async def run_once(self):
        """One maintenance pass: evict, then refresh."""
        if self.idle_hours > 0:
            evicted = await self.tenants.evict_idle(timedelta(hours=self.idle_hours))
            self._stats["evicted"] += len(evicted)

        if self.refresh_hours > 0:
            for tenant_id in await self.tenants.stale_tenants(timedelta(hours=self.refresh_hours)):
                try:
                    await self.tenants.refresh(tenant_id)
                    self._stats["refreshed"] += 1
                except AddonError as e:
                    # Previous catalog stays in place
                    self._stats["refresh_failures"] += 1
                    logger.warning(f"Refresh failed for tenant {tenant_id}: {e}")

        self._stats["passes"] += 1
