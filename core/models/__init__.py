# ============================================================================
# MODELS MODULE
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Model exports
# PURPOSE: Central export point for Pydantic models
# CREATED: 19 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

Pydantic models for the port lease daemon. Models carry their SQL
location via __sql_* ClassVar attributes.
"""

from core.models.lease import Lease
from core.models.lookup import LookupResult

__all__ = [
    "Lease",
    "LookupResult",
]
