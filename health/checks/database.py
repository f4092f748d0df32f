# ============================================================================
# DATABASE HEALTH CHECKS
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Infrastructure - Lease store connectivity
# PURPOSE: Verify the lease store answers
# CREATED: 19 OCT 2026
# ============================================================================
"""
Database Health Checks

Lease store connectivity check (priority 30).
"""

import logging

from health.core import (
    HealthCheckPlugin,
    HealthCheckResult,
)
from health.registry import register_check

logger = logging.getLogger(__name__)


# Global reference to the lease repository (set by main app)
_lease_store = None


def set_lease_store(store):
    """Set lease store reference for health checks."""
    global _lease_store
    _lease_store = store


@register_check(category="database")
class LeaseStoreCheck(HealthCheckPlugin):
    """
    Lease store connectivity health check.

    Runs a trivial query through the repository's pool.
    """

    name = "lease_store"
    timeout_seconds = 5.0

    async def check(self) -> HealthCheckResult:
        if _lease_store is None:
            return HealthCheckResult.unhealthy(
                message="Lease store not initialized",
            )

        try:
            ok = await _lease_store.ping()
        except Exception as e:
            return HealthCheckResult.unhealthy(
                message=f"Lease store unreachable: {e}",
                exception_type=type(e).__name__,
            )

        if not ok:
            return HealthCheckResult.unhealthy(
                message="Lease store query returned unexpected result",
            )

        return HealthCheckResult.healthy(message="Lease store connected")
