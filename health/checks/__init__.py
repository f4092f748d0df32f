# ============================================================================
# HEALTH CHECK PLUGINS
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Infrastructure - Health check implementations
# PURPOSE: Checks for the lease store, lease table and sweeper
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Check Plugins

Startup Checks (priority 10):
- process: Basic process health (always healthy if running)
- config: Port range and TTL settings parse and validate

Database Checks (priority 30):
- lease_store: Lease store answers a ping

Application Checks (priority 40):
- lease_table: Lease table loaded, occupancy of the port range
- sweeper: Expiry sweeper loop running

Import this module to register all checks:
    import health.checks
"""

from health.checks.startup import ProcessCheck, ConfigCheck
from health.checks.database import LeaseStoreCheck, set_lease_store
from health.checks.application import (
    LeaseTableCheck,
    SweeperCheck,
    set_lease_table,
    set_sweeper,
)

__all__ = [
    # Startup
    "ProcessCheck",
    "ConfigCheck",
    # Database
    "LeaseStoreCheck",
    "set_lease_store",
    # Application
    "LeaseTableCheck",
    "SweeperCheck",
    "set_lease_table",
    "set_sweeper",
]
