# ============================================================================
# SERVICES MODULE
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Core - Business logic layer
# PURPOSE: Port lease management
# CREATED: 19 OCT 2026
# ============================================================================
"""
Services Module

Business logic for the port lease daemon.
Services coordinate between the in-memory table and repositories.

Usage:
    from services import LeaseTable

    table = await LeaseTable.open(store, config)
    lease = await table.allocate("my-service")
"""

from .lease_table import LeaseTable, EvictionResult

__all__ = [
    "LeaseTable",
    "EvictionResult",
]
