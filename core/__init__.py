# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Core module initialization
# PURPOSE: Export models, errors and configuration
# CREATED: 19 OCT 2026
# ============================================================================

from core.errors import LeaseError, ResourceExhausted, LeaseNotFound, PersistenceFailure
from core.models import Lease, LookupResult
from core.config import LeaseDefaults, ServerDefaults, get_defaults

__all__ = [
    # Models
    "Lease",
    "LookupResult",
    # Errors
    "LeaseError",
    "ResourceExhausted",
    "LeaseNotFound",
    "PersistenceFailure",
    # Config
    "LeaseDefaults",
    "ServerDefaults",
    "get_defaults",
]
