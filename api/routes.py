# ============================================================================
# API ROUTES
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Core - FastAPI route definitions
# PURPOSE: HTTP endpoints for allocate, release, heartbeat, list, lookup
# CREATED: 19 OCT 2026
# ============================================================================
"""
API Routes

FastAPI routes for the port lease daemon. Each route translates one
request into one LeaseTable call and maps the lease error taxonomy onto
HTTP status codes:

    ResourceExhausted  -> 503
    LeaseNotFound      -> 404
    PersistenceFailure -> 500
    ValueError         -> 400
"""

import logging
from typing import List

from fastapi import APIRouter, HTTPException, Query

from core.errors import LeaseNotFound, PersistenceFailure, ResourceExhausted
from core.models import Lease, LookupResult
from .schemas import (
    AllocateRequest,
    AllocateResponse,
    ReleaseRequest,
    ReleaseResponse,
    HeartbeatRequest,
    HeartbeatResponse,
    StatusResponse,
    ErrorResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================
# These will be set by the main app at startup

_lease_table = None
_sweeper = None


def set_services(lease_table, sweeper=None):
    """Set service instances for dependency injection."""
    global _lease_table, _sweeper
    _lease_table = lease_table
    _sweeper = sweeper


def get_lease_table():
    if _lease_table is None:
        raise HTTPException(500, "Lease table not initialized")
    return _lease_table


# ============================================================================
# LEASES
# ============================================================================

@router.post(
    "/alloc",
    response_model=AllocateResponse,
    tags=["Leases"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        500: {"model": ErrorResponse, "description": "Store failure"},
        503: {"model": ErrorResponse, "description": "No free port in range"},
    },
)
async def allocate_port(request: AllocateRequest):
    """
    Lease the lowest free port in the configured range.
    """
    table = get_lease_table()

    try:
        lease = await table.allocate(
            service_name=request.service_name,
            ttl_seconds=request.ttl_seconds,
            tags=request.tags,
        )
    except ResourceExhausted as e:
        raise HTTPException(503, str(e))
    except PersistenceFailure as e:
        raise HTTPException(500, str(e))
    except ValueError as e:
        raise HTTPException(400, str(e))

    return AllocateResponse(port=lease.port, lease=lease)


@router.post(
    "/release",
    response_model=ReleaseResponse,
    tags=["Leases"],
    responses={
        404: {"model": ErrorResponse, "description": "Port not leased"},
        500: {"model": ErrorResponse, "description": "Store failure"},
    },
)
async def release_port(request: ReleaseRequest):
    """
    Release a leased port. It is immediately available to the next /alloc.
    """
    table = get_lease_table()

    try:
        await table.release(request.port)
    except LeaseNotFound as e:
        raise HTTPException(404, str(e))
    except PersistenceFailure as e:
        raise HTTPException(500, str(e))

    return ReleaseResponse(port=request.port)


@router.post(
    "/heartbeat",
    response_model=HeartbeatResponse,
    tags=["Leases"],
    responses={
        404: {"model": ErrorResponse, "description": "Port not leased"},
        500: {"model": ErrorResponse, "description": "Store failure"},
    },
)
async def heartbeat(request: HeartbeatRequest):
    """
    Renew a lease. Only the heartbeat timestamp changes.
    """
    table = get_lease_table()

    try:
        lease = await table.renew(request.port)
    except LeaseNotFound as e:
        raise HTTPException(404, str(e))
    except PersistenceFailure as e:
        raise HTTPException(500, str(e))

    return HeartbeatResponse(port=lease.port, expires_at=lease.expires_at)


@router.get("/list", response_model=List[Lease], tags=["Leases"])
async def list_leases():
    """
    List every current lease.
    """
    table = get_lease_table()
    return await table.list_all()


@router.get("/lookup", response_model=LookupResult, tags=["Leases"])
async def lookup_service(
    service: str = Query(..., min_length=1, description="Exact service name"),
):
    """
    Find the ports leased under a service name.

    With several matches, `port`/`lease` hold an arbitrary one of them;
    `all_ports` lists them all.
    """
    table = get_lease_table()
    return await table.lookup_by_service(service)


# ============================================================================
# STATUS
# ============================================================================

@router.get("/status", response_model=StatusResponse, tags=["Status"])
async def get_status():
    """
    Get table occupancy and sweeper statistics.
    """
    table = get_lease_table()
    config = table.config

    return StatusResponse(
        min_port=config.min_port,
        max_port=config.max_port,
        capacity=table.capacity,
        active_leases=len(table),
        default_ttl_seconds=config.default_ttl_seconds,
        sweeper=_sweeper.stats if _sweeper is not None else {},
    )
