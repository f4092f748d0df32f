# ============================================================================
# REPOSITORIES MODULE
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Core - Database access layer
# PURPOSE: Durable storage for port leases
# CREATED: 19 OCT 2026
# ============================================================================
"""
Repositories Module

Provides database access for port leases.
Uses psycopg3 async with connection pooling.

Usage:
    from repositories import LeaseRepository, get_pool

    pool = await get_pool()
    repo = LeaseRepository(pool)
    leases = await repo.load_all()
"""

from .database import get_pool, init_pool, close_pool
from .lease_repo import LeaseStore, LeaseRepository

__all__ = [
    "get_pool",
    "init_pool",
    "close_pool",
    "LeaseStore",
    "LeaseRepository",
]
