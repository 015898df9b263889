"""ovh_machine: machine driver for OVH Public Cloud.

Entry point for the library. Import :func:`driver_factory` to create a
configured driver with a single call::

    from ovh_machine import driver_factory

    driver = driver_factory("ovh", "web-1", "/var/lib/machines", {"ovh-region": "GRA1"})
    driver.pre_create_check()
    driver.create()
"""

from .base import MachineDriverBlueprint, State
from .factory import driver_factory

__all__ = [
    "MachineDriverBlueprint",
    "State",
    "driver_factory",
]
