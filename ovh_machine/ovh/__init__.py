"""OVH Public Cloud driver implementation."""

from .api import API
from .driver import Driver

__all__ = [
    "API",
    "Driver",
]
