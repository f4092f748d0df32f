# ============================================================================
# STARTUP HEALTH CHECKS
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Infrastructure - Startup health checks
# PURPOSE: Basic process and configuration checks
# CREATED: 19 OCT 2026
# ============================================================================
"""
Startup Health Checks

Basic checks that run first (priority 10):
- ProcessCheck: Always healthy if process is running
- ConfigCheck: Lease settings parse from the environment and validate
"""

import os
import sys
import platform
import logging

from health.core import (
    HealthCheckPlugin,
    HealthCheckResult,
)
from health.registry import register_check
from core.config import LeaseDefaults

logger = logging.getLogger(__name__)


@register_check(category="startup")
class ProcessCheck(HealthCheckPlugin):
    """
    Basic process health check.

    Always returns healthy if the check runs (proves process is alive).
    """

    name = "process"
    timeout_seconds = 1.0

    async def check(self) -> HealthCheckResult:
        return HealthCheckResult.healthy(
            message="Process running",
            python_version=sys.version,
            platform=platform.platform(),
            pid=os.getpid(),
        )


@register_check(category="startup")
class ConfigCheck(HealthCheckPlugin):
    """
    Configuration health check.

    Re-reads PM_PORT_MIN, PM_PORT_MAX, PM_DEFAULT_TTL and PM_SWEEP_INTERVAL
    and reports whether they still form a valid configuration.
    """

    name = "config"
    timeout_seconds = 1.0

    async def check(self) -> HealthCheckResult:
        try:
            config = LeaseDefaults.from_env()
        except ValueError as e:
            return HealthCheckResult.unhealthy(
                message=f"Invalid lease configuration: {e}",
            )

        return HealthCheckResult.healthy(
            message="Lease configuration valid",
            min_port=config.min_port,
            max_port=config.max_port,
            default_ttl_seconds=config.default_ttl_seconds,
            sweep_interval_seconds=config.sweep_interval_seconds,
        )
