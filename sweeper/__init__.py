# ============================================================================
# SWEEPER MODULE
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Core - Background expiry loop
# PURPOSE: Evict leases whose holders stopped heartbeating
# CREATED: 19 OCT 2026
# ============================================================================
"""
Sweeper Module

Usage:
    from sweeper import ExpirySweeper

    sweeper = ExpirySweeper(table, interval_seconds=10)
    await sweeper.start()
    ...
    await sweeper.stop()
"""

from .loop import ExpirySweeper

__all__ = ["ExpirySweeper"]
