"""Driver factory.

Provides :func:`driver_factory`, the single entry-point for creating
machine drivers. The function looks the driver up in the provider
registries and hands it the host's flags, so the returned driver is
ready for :meth:`~ovh_machine.base.MachineDriverBlueprint.pre_create_check`.
"""

from collections.abc import Mapping
from typing import Any

from ovh_machine.base import MachineDriverBlueprint, existing_drivers
from ovh_machine.ovh.factory import DRIVER_REGISTRY as OVH_DRIVERS


_FACTORY_REGISTRY: dict[str, type] = {
    **OVH_DRIVERS,
}


def driver_factory(
    driver_name: existing_drivers,
    machine_name: str,
    store_path: str,
    flags: Mapping[str, Any] | None = None,
) -> MachineDriverBlueprint:
    """
    Create a configured machine driver.
    Args:
        driver_name: The driver name (e.g., 'ovh').
        machine_name: Name of the machine the driver will manage.
        store_path: Root of the local machine store (keys, records).
        flags: Create flags, keyed by flag name (e.g. 'ovh-region').
    Returns:
        A driver instance configured from *flags*.
    Raises:
        ValueError: If the driver is not supported.
        ConfigurationError: If the flags are invalid.
    """
    if driver_name not in _FACTORY_REGISTRY:
        raise ValueError(f"Unsupported driver: {driver_name}")

    driver = _FACTORY_REGISTRY[driver_name](machine_name, store_path)
    driver.set_config_from_flags(flags or {})
    return driver
