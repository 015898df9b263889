"""OVH driver factory.

Maps driver names to their OVH implementations.
``DRIVER_REGISTRY`` is consumed by :func:`ovh_machine.factory.driver_factory`.
"""

from ovh_machine.ovh.driver import Driver


# Driver registry for OVH
DRIVER_REGISTRY: dict[str, type] = {
    "ovh": Driver,
}
