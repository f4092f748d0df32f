# ============================================================================
# LEASE ERRORS
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Core - Error taxonomy
# PURPOSE: Exceptions raised by the lease table and mapped by the API
# CREATED: 19 OCT 2026
# ============================================================================
"""
Lease Errors

Three failure kinds cross the lease table boundary:

- ResourceExhausted: every port in range is leased (caller may back off
  and retry; never fatal to the daemon)
- LeaseNotFound: the referenced port has no active lease (caller error)
- PersistenceFailure: the backing store rejected or failed an operation;
  the driver exception is chained as __cause__
"""

from typing import Optional


class LeaseError(Exception):
    """Base exception for lease operations."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        port: Optional[int] = None,
    ):
        self.operation = operation
        self.port = port
        super().__init__(message)


class ResourceExhausted(LeaseError):
    """Raised when no port in the configured range is free."""

    def __init__(self, min_port: int, max_port: int):
        self.min_port = min_port
        self.max_port = max_port
        super().__init__(
            f"No free port in range {min_port}-{max_port}",
            operation="allocate",
        )


class LeaseNotFound(LeaseError):
    """Raised when an operation references a port with no active lease."""

    def __init__(self, port: int, operation: Optional[str] = None):
        super().__init__(
            f"No active lease for port {port}",
            operation=operation,
            port=port,
        )


class PersistenceFailure(LeaseError):
    """Raised when a store operation fails."""


__all__ = [
    "LeaseError",
    "ResourceExhausted",
    "LeaseNotFound",
    "PersistenceFailure",
]
