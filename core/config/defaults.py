# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Core - Default configuration values
# PURPOSE: Port range, TTL, sweep interval and listener defaults
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Defaults

Provides the defaults consumed by the lease table, the sweeper and the
HTTP listener. Each group can be overridden via environment variables.

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- Validation at construction, so a bad range never reaches the table
"""

import os
from dataclasses import dataclass, field
from typing import Optional


MIN_VALID_PORT = 1
MAX_VALID_PORT = 65535


@dataclass(frozen=True)
class LeaseDefaults:
    """
    Defaults for the lease table and expiry sweeper.

    The allocatable range is inclusive on both ends.
    """
    min_port: int = 8000
    max_port: int = 9000

    # Applied when a request does not carry its own TTL
    default_ttl_seconds: int = 300  # 5 minutes

    # Seconds between expiry sweeps
    sweep_interval_seconds: float = 10.0

    def __post_init__(self):
        for name in ("min_port", "max_port"):
            value = getattr(self, name)
            if not (MIN_VALID_PORT <= value <= MAX_VALID_PORT):
                raise ValueError(
                    f"{name} must be {MIN_VALID_PORT}-{MAX_VALID_PORT}, got {value}"
                )
        if self.min_port > self.max_port:
            raise ValueError(
                f"min_port ({self.min_port}) must not exceed max_port ({self.max_port})"
            )
        if self.default_ttl_seconds <= 0:
            raise ValueError(
                f"default_ttl_seconds must be > 0, got {self.default_ttl_seconds}"
            )
        if self.sweep_interval_seconds <= 0:
            raise ValueError(
                f"sweep_interval_seconds must be > 0, got {self.sweep_interval_seconds}"
            )

    @property
    def capacity(self) -> int:
        """Number of ports in the allocatable range."""
        return self.max_port - self.min_port + 1

    def contains(self, port: int) -> bool:
        """Check if a port lies inside the allocatable range."""
        return self.min_port <= port <= self.max_port

    @classmethod
    def from_env(cls) -> "LeaseDefaults":
        """Create from environment variables."""
        return cls(
            min_port=int(os.getenv("PM_PORT_MIN", 8000)),
            max_port=int(os.getenv("PM_PORT_MAX", 9000)),
            default_ttl_seconds=int(os.getenv("PM_DEFAULT_TTL", 300)),
            sweep_interval_seconds=float(os.getenv("PM_SWEEP_INTERVAL", 10.0)),
        )


@dataclass(frozen=True)
class ServerDefaults:
    """Defaults for the HTTP listener."""
    host: str = "127.0.0.1"
    port: int = 3030

    @classmethod
    def from_env(cls) -> "ServerDefaults":
        """Create from environment variables."""
        return cls(
            host=os.getenv("PM_HOST", "127.0.0.1"),
            port=int(os.getenv("PM_LISTEN_PORT", 3030)),
        )


# ============================================================================
# GLOBAL DEFAULTS INSTANCE
# ============================================================================

@dataclass
class Defaults:
    """Container for all default configurations."""
    leases: LeaseDefaults = field(default_factory=LeaseDefaults)
    server: ServerDefaults = field(default_factory=ServerDefaults)

    @classmethod
    def from_env(cls) -> "Defaults":
        """Create all defaults from environment variables."""
        return cls(
            leases=LeaseDefaults.from_env(),
            server=ServerDefaults.from_env(),
        )


_defaults: Optional[Defaults] = None


def get_defaults() -> Defaults:
    """Get global defaults instance."""
    global _defaults
    if _defaults is None:
        _defaults = Defaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Reset defaults (for testing)."""
    global _defaults
    _defaults = None


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "LeaseDefaults",
    "ServerDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
