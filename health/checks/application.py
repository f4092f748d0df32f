# ============================================================================
# APPLICATION HEALTH CHECKS
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Infrastructure - Application state checks
# PURPOSE: Lease table occupancy and sweeper liveness
# CREATED: 19 OCT 2026
# ============================================================================
"""
Application Health Checks

Application-level checks (priority 40):
- LeaseTableCheck: Lease table loaded; degraded when the range is nearly full
- SweeperCheck: Expiry sweeper loop running
"""

import logging

from health.core import (
    HealthCheckPlugin,
    HealthCheckResult,
)
from health.registry import register_check

logger = logging.getLogger(__name__)

# Occupancy ratio at which the table reports degraded
OCCUPANCY_WARNING_RATIO = 0.9


# Global references (set by main app)
_lease_table = None
_sweeper = None


def set_lease_table(table):
    """Set lease table reference for health checks."""
    global _lease_table
    _lease_table = table


def set_sweeper(sweeper):
    """Set sweeper reference for health checks."""
    global _sweeper
    _sweeper = sweeper


@register_check(category="application")
class LeaseTableCheck(HealthCheckPlugin):
    """
    Lease table health check.

    Unhealthy until the table has been loaded. Degraded once occupancy
    crosses OCCUPANCY_WARNING_RATIO, including a fully leased range. A full
    range never fails readiness.
    """

    name = "lease_table"
    timeout_seconds = 2.0

    async def check(self) -> HealthCheckResult:
        if _lease_table is None:
            return HealthCheckResult.unhealthy(
                message="Lease table not initialized",
            )

        active = len(_lease_table)
        capacity = _lease_table.capacity
        details = {
            "active_leases": active,
            "capacity": capacity,
            "free_ports": capacity - active,
        }

        if active >= capacity:
            return HealthCheckResult.degraded(
                message="Port range exhausted",
                **details,
            )

        if active >= capacity * OCCUPANCY_WARNING_RATIO:
            return HealthCheckResult.degraded(
                message=f"Port range {active}/{capacity} leased",
                **details,
            )

        return HealthCheckResult.healthy(
            message=f"{active}/{capacity} ports leased",
            **details,
        )


@register_check(category="application", required_for_ready=False)
class SweeperCheck(HealthCheckPlugin):
    """
    Expiry sweeper health check.

    Not required for readiness: leases still allocate and renew while the
    sweeper is down, they just are not reclaimed on expiry.
    """

    name = "sweeper"
    timeout_seconds = 2.0

    async def check(self) -> HealthCheckResult:
        if _sweeper is None:
            return HealthCheckResult.unhealthy(
                message="Sweeper not initialized",
            )

        stats = _sweeper.stats

        if not _sweeper.is_running:
            return HealthCheckResult.unhealthy(
                message="Sweeper loop not running",
                **stats,
            )

        if stats.get("errors", 0) > 0:
            return HealthCheckResult.degraded(
                message=f"Sweeper has failed {stats['errors']} cycle(s)",
                **stats,
            )

        return HealthCheckResult.healthy(
            message="Sweeper running",
            **stats,
        )
