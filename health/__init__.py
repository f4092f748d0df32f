# ============================================================================
# HEALTH CHECK MODULE
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Infrastructure - Health check plugin system
# PURPOSE: Liveness/readiness probes for the lease daemon
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Check Module

Plugin-based health checks:
- /livez: Process alive (instant)
- /readyz: Store reachable and lease table loaded
- /health: Every registered plugin with details

Usage:
    from health import health_router
    import health.checks  # registers the built-in plugins

    app.include_router(health_router)
"""

from health.core import (
    HealthStatus,
    HealthCheckResult,
    HealthCheckPlugin,
    HealthCheckCategory,
    AggregatedHealthResult,
)
from health.registry import (
    HealthCheckRegistry,
    register_check,
    get_registry,
)
from health.executor import HealthCheckExecutor
from health.router import health_router

__all__ = [
    # Core types
    "HealthStatus",
    "HealthCheckResult",
    "HealthCheckPlugin",
    "HealthCheckCategory",
    "AggregatedHealthResult",
    # Registry
    "HealthCheckRegistry",
    "register_check",
    "get_registry",
    # Executor
    "HealthCheckExecutor",
    # Router
    "health_router",
]
