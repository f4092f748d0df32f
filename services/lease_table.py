# ============================================================================
# LEASE TABLE
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Core - Authoritative port allocation table
# PURPOSE: Allocate, release, renew and look up port leases
# CREATED: 19 OCT 2026
# ============================================================================
"""
Lease Table

The in-memory map port -> Lease is the authority on who holds which port.
The store is a write-through mirror used to rebuild the map after a
restart.

Concurrency:
- lookup_by_service, list_all and get take shared access
- allocate, release, renew and evict_expired take exclusive access
- store calls run while exclusive access is held, so a table mutation
  and its store mutation are never interleaved with another mutation

Mutation ordering:
    Every request-path mutation writes the store first and changes the
    map only after the store call succeeded. A failed store call raises
    PersistenceFailure and leaves the map untouched, so the map never
    claims a state the store does not hold. Sweeper eviction is the
    one exception: an expired lease leaves memory even when its store
    delete fails. The orphan row is already expired, so the next
    startup reconciliation deletes it.

Usage:
    table = await LeaseTable.open(LeaseRepository(pool), LeaseDefaults.from_env())
    lease = await table.allocate("api-gateway", tags=["dev"])
    await table.renew(lease.port)
    await table.release(lease.port)
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from core.config import LeaseDefaults
from core.errors import LeaseNotFound, PersistenceFailure, ResourceExhausted
from core.logging import log_context
from core.models import Lease, LookupResult
from infrastructure.locking import ReadWriteLock
from repositories.lease_repo import LeaseStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class EvictionResult:
    """Outcome of one expiry pass."""
    evicted: List[int] = field(default_factory=list)
    store_failures: List[int] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.evicted)


class LeaseTable:
    """
    Authoritative port -> Lease table.

    Build instances with `await LeaseTable.open(...)`, which reconciles
    the table against the store before returning.
    """

    def __init__(
        self,
        store: LeaseStore,
        config: LeaseDefaults,
        clock: Optional[Clock] = None,
    ):
        self._store = store
        self._config = config
        self._clock = clock or utc_now
        self._leases: Dict[int, Lease] = {}
        self._lock = ReadWriteLock()

    @classmethod
    async def open(
        cls,
        store: LeaseStore,
        config: LeaseDefaults,
        clock: Optional[Clock] = None,
    ) -> "LeaseTable":
        """
        Create a table populated from the store.

        Raises:
            PersistenceFailure: If the store cannot be read or purged;
                the daemon must not start serving in that case
        """
        table = cls(store, config, clock)
        await table._reconcile()
        return table

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def config(self) -> LeaseDefaults:
        return self._config

    @property
    def capacity(self) -> int:
        """Number of ports in the allocatable range."""
        return self._config.capacity

    def __len__(self) -> int:
        return len(self._leases)

    # =========================================================================
    # STARTUP RECONCILIATION
    # =========================================================================

    async def _reconcile(self) -> None:
        """Load the store, purge what expired during downtime, fill the map."""
        with log_context(operation="reconcile"):
            async with self._lock.write():
                async with self._store_call("load_all"):
                    loaded = await self._store.load_all()

                now = self._clock()
                async with self._store_call("delete_expired_as_of"):
                    purged = await self._store.delete_expired_as_of(now)

                for port in purged:
                    loaded.pop(port, None)

                # The store's own purge and the table's rule can disagree on
                # clock skew; the table's rule wins.
                stale = sorted(
                    port for port, lease in loaded.items()
                    if lease.is_expired(now) or not self._config.contains(port)
                )
                for port in stale:
                    lease = loaded.pop(port)
                    if not self._config.contains(port):
                        logger.warning(
                            f"Dropping lease on port {port} ({lease.service_name}): "
                            f"outside range {self._config.min_port}-{self._config.max_port}"
                        )
                    async with self._store_call("delete", port):
                        await self._store.delete(port)

                self._leases = dict(loaded)

            logger.info(
                f"Reconciled lease table: {len(self._leases)} active, "
                f"{len(purged) + len(stale)} purged"
            )

    # =========================================================================
    # MUTATIONS (exclusive access)
    # =========================================================================

    async def allocate(
        self,
        service_name: str,
        ttl_seconds: Optional[int] = None,
        tags: Optional[List[str]] = None,
    ) -> Lease:
        """
        Lease the lowest free port in range to a service.

        Args:
            service_name: Holder name (non-empty)
            ttl_seconds: Lease TTL, defaults to the configured TTL
            tags: Opaque labels stored with the lease

        Returns:
            The new Lease

        Raises:
            ValueError: Blank service name or non-positive TTL
            ResourceExhausted: Every port in range is leased
            PersistenceFailure: The store rejected the lease; nothing was
                allocated
        """
        if not service_name or not service_name.strip():
            raise ValueError("service_name must not be empty")
        ttl = self._config.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            raise ValueError(f"ttl_seconds must be > 0, got {ttl}")

        with log_context(service_name=service_name, operation="allocate"):
            async with self._lock.write():
                port = self._first_free_port()
                if port is None:
                    logger.warning(
                        f"Port range {self._config.min_port}-{self._config.max_port} exhausted"
                    )
                    raise ResourceExhausted(self._config.min_port, self._config.max_port)

                lease = Lease.create(
                    port=port,
                    service_name=service_name,
                    ttl_seconds=ttl,
                    tags=tags,
                    now=self._clock(),
                )

                async with self._store_call("upsert", port):
                    await self._store.upsert(lease)
                self._leases[port] = lease

            logger.info(f"Allocated port {port} to {service_name} (ttl={ttl}s)")
            return lease.model_copy(deep=True)

    async def release(self, port: int) -> None:
        """
        Release a leased port.

        Raises:
            LeaseNotFound: No active lease on the port; the store is not
                touched
            PersistenceFailure: The store delete failed; the lease stays
                held
        """
        with log_context(port=port, operation="release"):
            async with self._lock.write():
                lease = self._leases.get(port)
                if lease is None:
                    raise LeaseNotFound(port, operation="release")

                async with self._store_call("delete", port):
                    existed = await self._store.delete(port)
                if not existed:
                    logger.warning(f"Store had no row for released port {port}")

                del self._leases[port]

            logger.info(f"Released port {port} ({lease.service_name})")

    async def renew(self, port: int) -> Lease:
        """
        Record a heartbeat for a leased port.

        Only last_heartbeat changes, and it never moves backwards.

        Returns:
            The renewed Lease

        Raises:
            LeaseNotFound: No active lease on the port; the store is not
                touched
            PersistenceFailure: The store update failed; the previous
                heartbeat stays in effect
        """
        with log_context(port=port, operation="renew"):
            async with self._lock.write():
                current = self._leases.get(port)
                if current is None:
                    raise LeaseNotFound(port, operation="renew")

                renewed = current.renewed(self._clock())

                async with self._store_call("update_heartbeat", port):
                    present = await self._store.update_heartbeat(port, renewed.last_heartbeat)
                    if not present:
                        logger.warning(f"Store row for port {port} missing, rewriting it")
                        await self._store.upsert(renewed)

                self._leases[port] = renewed

            logger.debug(f"Renewed port {port} until {renewed.expires_at.isoformat()}")
            return renewed.model_copy(deep=True)

    async def evict_expired(self, now: Optional[datetime] = None) -> EvictionResult:
        """
        Remove every expired lease from the table and the store.

        Expired ports are found under shared access; exclusive access is
        taken only when there is something to remove, and each candidate
        is re-checked under it so a renewal that landed in between wins.

        A store failure for one port is logged and recorded in the result.
        It does not keep that lease in memory or stop the other evictions.
        """
        if now is None:
            now = self._clock()

        async with self._lock.read():
            candidates = [
                port for port, lease in self._leases.items()
                if lease.is_expired(now)
            ]

        result = EvictionResult()
        if not candidates:
            return result

        async with self._lock.write():
            for port in sorted(candidates):
                lease = self._leases.get(port)
                if lease is None or not lease.is_expired(now):
                    continue

                del self._leases[port]
                result.evicted.append(port)
                logger.info(
                    f"Evicted expired lease on port {port} ({lease.service_name}, "
                    f"last heartbeat {lease.last_heartbeat.isoformat()})"
                )

                try:
                    await self._store.delete(port)
                except Exception as e:
                    result.store_failures.append(port)
                    logger.error(f"Store delete failed for expired port {port}: {e}")

        return result

    # =========================================================================
    # READS (shared access)
    # =========================================================================

    async def get(self, port: int) -> Optional[Lease]:
        """Get the lease on a port, or None."""
        async with self._lock.read():
            lease = self._leases.get(port)
            return lease.model_copy(deep=True) if lease else None

    async def list_all(self) -> List[Lease]:
        """Snapshot of every current lease."""
        async with self._lock.read():
            return [lease.model_copy(deep=True) for lease in self._leases.values()]

    async def lookup_by_service(self, service_name: str) -> LookupResult:
        """
        Find every port leased under an exact service name.

        The representative lease in the result is whichever match the
        table yields first; callers holding several ports under one name
        must not rely on which one that is.
        """
        async with self._lock.read():
            matches = [
                lease.model_copy(deep=True)
                for lease in self._leases.values()
                if lease.service_name == service_name
            ]
        return LookupResult.from_matches(service_name, matches)

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _first_free_port(self) -> Optional[int]:
        for port in range(self._config.min_port, self._config.max_port + 1):
            if port not in self._leases:
                return port
        return None

    @asynccontextmanager
    async def _store_call(self, operation: str, port: Optional[int] = None):
        """
        Wrap a store call, converting any failure into PersistenceFailure.

        The failure is logged with context before being re-raised.
        """
        try:
            yield
        except PersistenceFailure:
            raise
        except Exception as e:
            error_msg = f"Store {operation} failed"
            if port is not None:
                error_msg += f" for port {port}"
            error_msg += f": {e}"
            logger.error(error_msg)
            raise PersistenceFailure(error_msg, operation=operation, port=port) from e


__all__ = ["LeaseTable", "EvictionResult", "utc_now"]
