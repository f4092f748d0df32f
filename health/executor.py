# ============================================================================
# HEALTH CHECK EXECUTOR
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Infrastructure - Concurrent health check execution
# PURPOSE: Execute health checks with timeouts and aggregation
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Check Executor

Runs checks concurrently, each under its own timeout, and folds the
results with 'worst wins' semantics. A check that raises or times out is
reported as unhealthy rather than failing the probe request.
"""

import asyncio
import logging
import time
from typing import List, Optional

from health.core import (
    HealthStatus,
    HealthCheckResult,
    HealthCheckPlugin,
    AggregatedHealthResult,
)
from health.registry import HealthCheckRegistry, get_registry

logger = logging.getLogger(__name__)


class HealthCheckExecutor:
    """Executes registered health checks."""

    def __init__(self, registry: Optional[HealthCheckRegistry] = None):
        self.registry = registry or get_registry()

    async def execute_all(self) -> AggregatedHealthResult:
        """Execute every registered check."""
        return await self._execute_many(self.registry.get_checks_by_priority())

    async def execute_required(self) -> AggregatedHealthResult:
        """Execute only checks required for /readyz."""
        return await self._execute_many(self.registry.get_required_checks())

    async def execute_single(self, name: str) -> Optional[HealthCheckResult]:
        """Execute a single check by name."""
        check = self.registry.get(name)
        if check is None:
            return None
        return await self._execute_check(check)

    async def _execute_many(self, checks: List[HealthCheckPlugin]) -> AggregatedHealthResult:
        start_time = time.monotonic()

        results = await asyncio.gather(*(self._execute_check(c) for c in checks))
        by_name = {check.name: result for check, result in zip(checks, results)}

        return AggregatedHealthResult(
            status=HealthStatus.aggregate([r.status for r in results]),
            checks=by_name,
            total_duration_ms=(time.monotonic() - start_time) * 1000,
        )

    async def _execute_check(self, check: HealthCheckPlugin) -> HealthCheckResult:
        """Execute a single check with timeout."""
        start_time = time.monotonic()

        try:
            result = await asyncio.wait_for(check.check(), timeout=check.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                f"Health check {check.name} timed out after {check.timeout_seconds}s"
            )
            result = HealthCheckResult.unhealthy(f"Timeout after {check.timeout_seconds}s")
        except Exception as e:
            logger.error(f"Health check {check.name} failed: {e}")
            result = HealthCheckResult.from_exception(e)

        result.duration_ms = (time.monotonic() - start_time) * 1000
        logger.debug(
            f"Health check {check.name}: {result.status.value} ({result.duration_ms:.1f}ms)"
        )
        return result


__all__ = [
    "HealthCheckExecutor",
]
