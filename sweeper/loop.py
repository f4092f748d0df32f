# ============================================================================
# EXPIRY SWEEPER
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Core - Periodic lease expiry
# PURPOSE: Reclaim ports whose holders stopped sending heartbeats
# CREATED: 19 OCT 2026
# ============================================================================
"""
Expiry Sweeper

A single background task that, every `interval_seconds`:
1. Snapshots the lease table under shared access
2. Picks the leases whose last_heartbeat + ttl_seconds has passed
3. Evicts them from the table and the store under exclusive access

Store failures for individual ports are logged by the table and counted
here; they never stop the loop. Unexpected errors in a cycle are logged
and the loop carries on at the next tick.

Runs as a background task in the FastAPI application.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from services.lease_table import EvictionResult, LeaseTable

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """Periodic evictor of expired leases."""

    def __init__(self, table: LeaseTable, interval_seconds: float = 10.0):
        """
        Initialize sweeper.

        Args:
            table: Lease table to sweep
            interval_seconds: Seconds between sweep cycles
        """
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be > 0, got {interval_seconds}")

        self.table = table
        self.interval_seconds = interval_seconds

        # State
        self._running = False
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

        # Metrics
        self._started_at: Optional[datetime] = None
        self._cycles = 0
        self._evicted_total = 0
        self._store_failures = 0
        self._errors = 0
        self._last_sweep_at: Optional[datetime] = None

    async def start(self) -> None:
        """Start the background sweep loop."""
        if self._running:
            logger.warning("Expiry sweeper already running")
            return

        self._running = True
        self._started_at = datetime.now(timezone.utc)
        self._stop_event.clear()

        self._task = asyncio.create_task(self._sweep_loop(), name="lease-expiry-sweeper")
        logger.info(f"Expiry sweeper started (interval={self.interval_seconds}s)")

    async def stop(self) -> None:
        """Signal the loop to stop and wait for it to exit."""
        if not self._running:
            return

        self._running = False
        self._stop_event.set()

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info(
            f"Expiry sweeper stopped (cycles={self._cycles}, "
            f"evicted={self._evicted_total}, store_failures={self._store_failures})"
        )

    async def sweep_once(self) -> EvictionResult:
        """Run one sweep cycle and update the metrics."""
        result = await self.table.evict_expired()

        self._cycles += 1
        self._last_sweep_at = datetime.now(timezone.utc)
        self._evicted_total += len(result.evicted)
        self._store_failures += len(result.store_failures)

        if result.evicted:
            logger.info(
                f"Sweep evicted {len(result.evicted)} expired lease(s): {result.evicted}"
            )
        if result.store_failures:
            logger.warning(
                f"Sweep could not delete {len(result.store_failures)} store row(s): "
                f"{result.store_failures}; startup reconciliation will purge them"
            )
        return result

    async def _sweep_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(),
                    timeout=self.interval_seconds,
                )
                break
            except asyncio.TimeoutError:
                pass

            try:
                await self.sweep_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._errors += 1
                logger.exception(f"Expiry sweep error: {e}")

    # =========================================================================
    # STATS AND PROPERTIES
    # =========================================================================

    @property
    def is_running(self) -> bool:
        """Check if the sweep loop is running."""
        return self._running and self._task is not None and not self._task.done()

    @property
    def stats(self) -> Dict[str, Any]:
        """Get sweeper statistics."""
        uptime_seconds = None
        if self._started_at:
            uptime_seconds = (datetime.now(timezone.utc) - self._started_at).total_seconds()

        return {
            "running": self.is_running,
            "interval_seconds": self.interval_seconds,
            "started_at": self._started_at.isoformat() if self._started_at else None,
            "uptime_seconds": uptime_seconds,
            "cycles": self._cycles,
            "evicted_total": self._evicted_total,
            "store_failures": self._store_failures,
            "errors": self._errors,
            "last_sweep_at": self._last_sweep_at.isoformat() if self._last_sweep_at else None,
        }
