"""
Pydantic configuration models for machine drivers.

Validates driver options at configuration time instead of silently
passing bad values to the provider SDK.
"""

from __future__ import annotations

import os
from typing import Any
from pydantic import BaseModel, ConfigDict, Field, model_validator


DEFAULT_ENDPOINT = "ovh-eu"
DEFAULT_REGION = "GRA1"
DEFAULT_FLAVOR = "b2-7"
DEFAULT_IMAGE = "Ubuntu 20.04"
DEFAULT_SSH_USER = "ubuntu"
DEFAULT_SSH_PORT = 22
DEFAULT_BILLING_PERIOD = "hourly"


class OVHConfig(BaseModel):
    """Credentials and endpoint for the OVH API.

    Credentials are resolved in order:
    1. Explicit values passed in the config dict.
    2. Environment variables (OVH_APPLICATION_KEY, OVH_APPLICATION_SECRET,
       OVH_CONSUMER_KEY, OVH_ENDPOINT).
    3. If neither is set, fields are left as None so the ``ovh`` SDK can fall
       back to its own lookup (``ovh.conf`` in the usual locations).
    """

    model_config = ConfigDict(extra="forbid")

    application_key: str | None = Field(default=None, description="OVH API application key")
    application_secret: str | None = Field(
        default=None, description="OVH API application secret"
    )
    consumer_key: str | None = Field(default=None, description="OVH API consumer key")
    endpoint: str | None = Field(
        default=None, description="OVH API endpoint (e.g. 'ovh-eu', 'ovh-ca')"
    )

    @model_validator(mode="before")
    @classmethod
    def resolve_from_env(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Fall back to environment variables for missing credentials."""
        env_map = {
            "application_key": "OVH_APPLICATION_KEY",
            "application_secret": "OVH_APPLICATION_SECRET",
            "consumer_key": "OVH_CONSUMER_KEY",
            "endpoint": "OVH_ENDPOINT",
        }
        for field, env_var in env_map.items():
            if not values.get(field):
                values[field] = os.environ.get(env_var)
        return values


class MachineOptions(BaseModel):
    """User-facing options for a machine created on OVH Public Cloud.

    Names are kept as typed by the user; resolution to ids happens during
    the pre-create check. ``billing_period`` is checked there as well so the
    error points at the offending flag.
    """

    model_config = ConfigDict(extra="forbid")

    project: str = Field(default="", description="Cloud project name or id")
    region: str = Field(default=DEFAULT_REGION, description="Cloud region name")
    flavor: str = Field(default=DEFAULT_FLAVOR, description="Flavor name or id")
    image: str = Field(default=DEFAULT_IMAGE, description="Image name or id")
    private_network: str = Field(
        default="", description="Private network name or vlan id"
    )
    ssh_key: str = Field(default="", description="SSH key name or id")
    ssh_user: str = Field(default=DEFAULT_SSH_USER, description="SSH username")
    billing_period: str = Field(
        default=DEFAULT_BILLING_PERIOD, description="'hourly' or 'monthly'"
    )


# Map driver names to their credential models for dynamic validation
CONFIG_REGISTRY: dict[str, type[BaseModel]] = {
    "ovh": OVHConfig,
}


def validate_config(driver_name: str, config: dict) -> BaseModel:
    """Validate and return a typed credential model for the given driver.

    Args:
        driver_name: The driver name (e.g. 'ovh').
        config: Raw configuration dictionary.

    Returns:
        A validated Pydantic config model.

    Raises:
        ValueError: If the driver is unknown.
        pydantic.ValidationError: If the config is invalid.
    """
    model = CONFIG_REGISTRY.get(driver_name)
    if model is None:
        raise ValueError(f"No config model registered for driver: {driver_name}")
    return model(**config)


__all__ = [
    "OVHConfig",
    "MachineOptions",
    "CONFIG_REGISTRY",
    "validate_config",
]
