# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the port lease daemon.
"""

from core.config.defaults import (
    LeaseDefaults,
    ServerDefaults,
    Defaults,
    get_defaults,
    reset_defaults,
)

__all__ = [
    "LeaseDefaults",
    "ServerDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
