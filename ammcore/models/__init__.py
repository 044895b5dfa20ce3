"""Pydantic models and shared types."""

from ammcore.models.route import Hop, PairType, Route
from ammcore.models.types import Address, normalize_address

__all__ = [
    # Types
    "Address",
    "normalize_address",
    # Routes
    "Hop",
    "PairType",
    "Route",
]
