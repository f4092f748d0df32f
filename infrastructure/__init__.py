# ============================================================================
# INFRASTRUCTURE MODULE
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Infrastructure - Concurrency primitives
# PURPOSE: Locking used by the lease table
# CREATED: 19 OCT 2026
# ============================================================================
"""
Infrastructure module for the port lease daemon.

Provides:
- ReadWriteLock: shared/exclusive asyncio lock guarding the lease table
"""

from infrastructure.locking import ReadWriteLock

__all__ = [
    'ReadWriteLock',
]
