# ============================================================================
# LEASE REPOSITORY
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Core - Durable mirror of the lease table
# PURPOSE: Database access for the port_leases table
# CREATED: 19 OCT 2026
# ============================================================================
"""
Lease Repository

Durable table of leases keyed by port. The in-memory lease table owns the
authoritative copy; this table is the mirror used for restart recovery.

Every method runs inside one pooled connection context, which psycopg
commits on clean exit and rolls back on error, so each call is a single
atomic unit and partial writes are never observable.

Driver errors (psycopg.Error) propagate to the caller.
"""

import logging
from datetime import datetime
from typing import Dict, List, Protocol

from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Json
from psycopg_pool import AsyncConnectionPool

from core.models import Lease
from .database import SCHEMA_IDENT, TABLE_LEASES

logger = logging.getLogger(__name__)


class LeaseStore(Protocol):
    """Persistence contract consumed by the lease table and sweeper."""

    async def load_all(self) -> Dict[int, Lease]: ...

    async def upsert(self, lease: Lease) -> None: ...

    async def delete(self, port: int) -> bool: ...

    async def update_heartbeat(self, port: int, timestamp: datetime) -> bool: ...

    async def delete_expired_as_of(self, now: datetime) -> List[int]: ...


class LeaseRepository:
    """Repository for Lease rows in PostgreSQL."""

    def __init__(self, pool: AsyncConnectionPool):
        self.pool = pool

    async def ensure_schema(self) -> None:
        """Create the schema and lease table if they do not exist."""
        async with self.pool.connection() as conn:
            await conn.execute(
                sql.SQL("CREATE SCHEMA IF NOT EXISTS {}").format(SCHEMA_IDENT)
            )
            await conn.execute(
                sql.SQL("""
                CREATE TABLE IF NOT EXISTS {} (
                    port INTEGER PRIMARY KEY,
                    service_name TEXT NOT NULL,
                    allocated_at TIMESTAMPTZ NOT NULL,
                    last_heartbeat TIMESTAMPTZ NOT NULL,
                    ttl_seconds INTEGER NOT NULL CHECK (ttl_seconds > 0),
                    tags JSONB NOT NULL DEFAULT '[]'::jsonb
                )
                """).format(TABLE_LEASES)
            )
        logger.info("Lease table schema verified")

    async def ping(self) -> bool:
        """Check that the database answers a trivial query."""
        async with self.pool.connection() as conn:
            result = await conn.execute("SELECT 1")
            row = await result.fetchone()
            return row is not None

    async def load_all(self) -> Dict[int, Lease]:
        """
        Load every persisted lease.

        Returns:
            Mapping of port to Lease
        """
        async with self.pool.connection() as conn:
            conn.row_factory = dict_row
            result = await conn.execute(
                sql.SQL("""
                SELECT port, service_name, allocated_at, last_heartbeat,
                       ttl_seconds, tags
                FROM {}
                ORDER BY port
                """).format(TABLE_LEASES)
            )
            rows = await result.fetchall()

        leases = {}
        for row in rows:
            lease = self._row_to_lease(row)
            leases[lease.port] = lease

        logger.debug(f"Loaded {len(leases)} leases from store")
        return leases

    async def upsert(self, lease: Lease) -> None:
        """
        Insert or replace the row for lease.port.

        Args:
            lease: Lease to persist
        """
        async with self.pool.connection() as conn:
            await conn.execute(
                sql.SQL("""
                INSERT INTO {} (
                    port, service_name, allocated_at, last_heartbeat,
                    ttl_seconds, tags
                ) VALUES (
                    %(port)s, %(service_name)s, %(allocated_at)s, %(last_heartbeat)s,
                    %(ttl_seconds)s, %(tags)s
                )
                ON CONFLICT (port) DO UPDATE SET
                    service_name = EXCLUDED.service_name,
                    allocated_at = EXCLUDED.allocated_at,
                    last_heartbeat = EXCLUDED.last_heartbeat,
                    ttl_seconds = EXCLUDED.ttl_seconds,
                    tags = EXCLUDED.tags
                """).format(TABLE_LEASES),
                {
                    "port": lease.port,
                    "service_name": lease.service_name,
                    "allocated_at": lease.allocated_at,
                    "last_heartbeat": lease.last_heartbeat,
                    "ttl_seconds": lease.ttl_seconds,
                    "tags": Json(list(lease.tags)),
                },
            )
        logger.debug(f"Upserted lease row for port {lease.port}")

    async def delete(self, port: int) -> bool:
        """
        Delete the row for a port.

        Returns:
            True if a row was deleted
        """
        async with self.pool.connection() as conn:
            result = await conn.execute(
                sql.SQL("DELETE FROM {} WHERE port = %s").format(TABLE_LEASES),
                (port,),
            )
            return result.rowcount > 0

    async def update_heartbeat(self, port: int, timestamp: datetime) -> bool:
        """
        Set last_heartbeat for a port.

        Returns:
            True if a row was updated
        """
        async with self.pool.connection() as conn:
            result = await conn.execute(
                sql.SQL("""
                UPDATE {}
                SET last_heartbeat = %s
                WHERE port = %s
                """).format(TABLE_LEASES),
                (timestamp, port),
            )
            return result.rowcount > 0

    async def delete_expired_as_of(self, now: datetime) -> List[int]:
        """
        Delete every row whose heartbeat deadline passed before `now`.

        Used once at startup to purge leases that expired while the
        daemon was down.

        Returns:
            Ports whose rows were removed
        """
        async with self.pool.connection() as conn:
            result = await conn.execute(
                sql.SQL("""
                DELETE FROM {}
                WHERE last_heartbeat + make_interval(secs => ttl_seconds) < %s
                RETURNING port
                """).format(TABLE_LEASES),
                (now,),
            )
            rows = await result.fetchall()

        ports = sorted(row[0] for row in rows)
        if ports:
            logger.info(f"Deleted {len(ports)} expired lease rows: {ports}")
        return ports

    def _row_to_lease(self, row: dict) -> Lease:
        """Convert a database row to a Lease."""
        return Lease(
            port=row["port"],
            service_name=row["service_name"],
            allocated_at=row["allocated_at"],
            last_heartbeat=row["last_heartbeat"],
            ttl_seconds=row["ttl_seconds"],
            tags=row["tags"] or [],
        )


__all__ = ["LeaseStore", "LeaseRepository"]
