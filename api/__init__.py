# ============================================================================
# API MODULE
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Core - FastAPI routes
# PURPOSE: HTTP API for port leases
# CREATED: 19 OCT 2026
# ============================================================================
"""
API Module

FastAPI routes for the port lease daemon.
"""

from .routes import router, set_services
from .schemas import (
    AllocateRequest,
    AllocateResponse,
    ReleaseRequest,
    HeartbeatRequest,
)

__all__ = [
    "router",
    "set_services",
    "AllocateRequest",
    "AllocateResponse",
    "ReleaseRequest",
    "HeartbeatRequest",
]
