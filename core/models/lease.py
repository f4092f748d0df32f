# ============================================================================
# PORT LEASE MODEL
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Core - Time-bounded claim on one port
# PURPOSE: Lease record shared by the lease table, the store and the API
# CREATED: 19 OCT 2026
# ============================================================================
"""
Port Lease Model

A lease is an exclusive, time-bounded claim on one port by one named
service. The holder keeps it alive by sending heartbeats; if
last_heartbeat + ttl_seconds < NOW(), the lease is expired and the
port can be handed to someone else.

Key properties:
- port is the unique key (table dict key and SQL primary key)
- allocated_at is set once and never changes
- last_heartbeat only moves forward
- tags are opaque to the daemon
"""

from datetime import datetime, timedelta, timezone
from typing import ClassVar, List, Optional

from pydantic import BaseModel, Field, field_validator

# ttl_seconds is stored in an INTEGER column
MAX_TTL_SECONDS = 2**31 - 1


class Lease(BaseModel):
    """
    Port lease.

    Table: portmgr.port_leases (one row per port)
    """

    # SQL DDL Metadata
    __sql_table__: ClassVar[str] = "port_leases"
    __sql_schema__: ClassVar[str] = "portmgr"
    __sql_primary_key__: ClassVar[List[str]] = ["port"]

    port: int = Field(
        ge=1,
        le=65535,
        description="Leased port number"
    )
    service_name: str = Field(
        min_length=1,
        max_length=255,
        description="Name of the service holding the port"
    )
    allocated_at: datetime = Field(
        description="When the lease was created (UTC)"
    )
    last_heartbeat: datetime = Field(
        description="Last renewal timestamp (UTC)"
    )
    ttl_seconds: int = Field(
        gt=0,
        le=MAX_TTL_SECONDS,
        description="Seconds after last_heartbeat before the lease expires"
    )
    tags: List[str] = Field(
        default_factory=list,
        description="Caller-supplied labels, stored verbatim"
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "port": 8000,
                    "service_name": "api-gateway",
                    "allocated_at": "2026-10-19T12:00:00Z",
                    "last_heartbeat": "2026-10-19T12:04:30Z",
                    "ttl_seconds": 300,
                    "tags": ["dev", "http"],
                }
            ]
        }
    }

    @field_validator("service_name")
    @classmethod
    def validate_service_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("service_name must not be blank")
        return v

    @classmethod
    def create(
        cls,
        port: int,
        service_name: str,
        ttl_seconds: int,
        tags: Optional[List[str]] = None,
        now: Optional[datetime] = None,
    ) -> "Lease":
        """
        Create a fresh lease whose heartbeat starts at its allocation time.

        Raises:
            ValueError: If any field fails validation
        """
        if now is None:
            now = datetime.now(timezone.utc)
        return cls(
            port=port,
            service_name=service_name,
            allocated_at=now,
            last_heartbeat=now,
            ttl_seconds=ttl_seconds,
            tags=list(tags or []),
        )

    @property
    def expires_at(self) -> datetime:
        """Deadline after which the lease counts as expired."""
        return self.last_heartbeat + timedelta(seconds=self.ttl_seconds)

    def is_expired(self, now: datetime = None) -> bool:
        """
        Check if the lease has expired.

        Args:
            now: Current time (defaults to UTC now)

        Returns:
            True if last_heartbeat + ttl_seconds < now
        """
        if now is None:
            now = datetime.now(timezone.utc)
        return now > self.expires_at

    def renewed(self, now: datetime) -> "Lease":
        """Copy of this lease with the heartbeat moved up to `now`."""
        return self.model_copy(
            update={"last_heartbeat": max(self.last_heartbeat, now)}
        )


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = ['Lease']
