# ============================================================================
# TEST FAKES
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Tests - In-memory stand-ins for the lease store and clock
# PURPOSE: Drive LeaseTable without PostgreSQL
# CREATED: 19 OCT 2026
# ============================================================================
"""
Test fakes shared by the lease table, sweeper and route tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Set

from core.models import Lease


T0 = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class StoreDown(Exception):
    """Raised by InMemoryLeaseStore for operations listed in fail_on."""


class InMemoryLeaseStore:
    """
    Dict-backed LeaseStore.

    Operations named in `fail_on` raise StoreDown before touching state.
    Every call is recorded in `calls` as (operation, arg).
    """

    def __init__(self, leases: List[Lease] = None):
        self.rows: Dict[int, Lease] = {lease.port: lease for lease in leases or []}
        self.fail_on: Set[str] = set()
        self.calls: List[tuple] = []

    def _enter(self, operation: str, arg=None) -> None:
        self.calls.append((operation, arg))
        if operation in self.fail_on:
            raise StoreDown(f"{operation} unavailable")

    def ops(self) -> List[str]:
        return [op for op, _ in self.calls]

    async def load_all(self) -> Dict[int, Lease]:
        self._enter("load_all")
        return {port: lease.model_copy(deep=True) for port, lease in self.rows.items()}

    async def upsert(self, lease: Lease) -> None:
        self._enter("upsert", lease.port)
        self.rows[lease.port] = lease.model_copy(deep=True)

    async def delete(self, port: int) -> bool:
        self._enter("delete", port)
        return self.rows.pop(port, None) is not None

    async def update_heartbeat(self, port: int, timestamp: datetime) -> bool:
        self._enter("update_heartbeat", port)
        lease = self.rows.get(port)
        if lease is None:
            return False
        self.rows[port] = lease.model_copy(update={"last_heartbeat": timestamp})
        return True

    async def delete_expired_as_of(self, now: datetime) -> List[int]:
        self._enter("delete_expired_as_of", now)
        expired = sorted(
            port for port, lease in self.rows.items()
            if lease.last_heartbeat + timedelta(seconds=lease.ttl_seconds) < now
        )
        for port in expired:
            del self.rows[port]
        return expired

    async def ping(self) -> bool:
        self._enter("ping")
        return True


def make_lease(
    port: int = 8000,
    service_name: str = "svc",
    ttl_seconds: int = 60,
    last_heartbeat: datetime = T0,
    tags: List[str] = None,
) -> Lease:
    return Lease(
        port=port,
        service_name=service_name,
        allocated_at=last_heartbeat,
        last_heartbeat=last_heartbeat,
        ttl_seconds=ttl_seconds,
        tags=tags or [],
    )
