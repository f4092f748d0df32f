# ============================================================================
# SERVICE LOOKUP RESULT
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Core model - Result of a by-name lookup
# PURPOSE: Every port leased under a service name plus one representative
# CREATED: 19 OCT 2026
# ============================================================================
"""
Service Lookup Result

A service may hold several ports. A lookup returns all of them and one
representative lease for callers that only need "a" port. Which lease is
the representative follows table iteration order and is not guaranteed.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from core.models.lease import Lease


class LookupResult(BaseModel):
    """Ports currently leased under one service name."""

    service_name: str
    port: Optional[int] = Field(
        None,
        description="Port of the representative lease, None when nothing matched"
    )
    all_ports: List[int] = Field(default_factory=list)
    lease: Optional[Lease] = None

    @property
    def found(self) -> bool:
        return self.lease is not None

    @classmethod
    def from_matches(cls, service_name: str, matches: List[Lease]) -> "LookupResult":
        """Build a result from the leases that matched the name."""
        if not matches:
            return cls(service_name=service_name)
        first = matches[0]
        return cls(
            service_name=service_name,
            port=first.port,
            all_ports=[lease.port for lease in matches],
            lease=first,
        )


__all__ = ["LookupResult"]
