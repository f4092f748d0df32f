# ============================================================================
# API SCHEMAS
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Core - Request/Response schemas
# PURPOSE: Pydantic models for API validation
# CREATED: 19 OCT 2026
# ============================================================================
"""
API Schemas

Request and response models for the API. Lease and LookupResult from
core.models are returned as-is.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from core.models import Lease
from core.models.lease import MAX_TTL_SECONDS


# ============================================================================
# REQUEST SCHEMAS
# ============================================================================

class AllocateRequest(BaseModel):
    """Request to lease a port."""
    service_name: str = Field(..., min_length=1, max_length=255, description="Holder name")
    ttl_seconds: Optional[int] = Field(
        None,
        gt=0,
        le=MAX_TTL_SECONDS,
        description="Lease TTL in seconds (server default when omitted)"
    )
    tags: Optional[List[str]] = Field(None, description="Opaque labels stored with the lease")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "service_name": "api-gateway",
                    "ttl_seconds": 60,
                    "tags": ["dev"],
                }
            ]
        }
    }


class ReleaseRequest(BaseModel):
    """Request to release a leased port."""
    port: int = Field(..., ge=1, le=65535)


class HeartbeatRequest(BaseModel):
    """Request to renew a leased port."""
    port: int = Field(..., ge=1, le=65535)


# ============================================================================
# RESPONSE SCHEMAS
# ============================================================================

class AllocateResponse(BaseModel):
    """Allocated port and its lease."""
    port: int
    lease: Lease


class ReleaseResponse(BaseModel):
    """Release acknowledgement."""
    status: str = "released"
    port: int


class HeartbeatResponse(BaseModel):
    """Heartbeat acknowledgement with the new deadline."""
    status: str = "ok"
    port: int
    expires_at: datetime


class StatusResponse(BaseModel):
    """Table occupancy and sweeper statistics."""
    min_port: int
    max_port: int
    capacity: int
    active_leases: int
    default_ttl_seconds: int
    sweeper: Dict[str, Any] = {}


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str
