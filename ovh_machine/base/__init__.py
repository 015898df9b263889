"""Abstract driver blueprint and core utilities.

Every machine driver inherits from the blueprint defined here.
Import it to type-hint your own code or to create custom drivers.
"""

from .driver import Flag, MachineDriverBlueprint, MachineInfo
from .state import State
from .supported_drivers import existing_drivers, billing_periods


__all__ = [
    "Flag",
    "MachineDriverBlueprint",
    "MachineInfo",
    "State",
    "existing_drivers",
    "billing_periods",
]
