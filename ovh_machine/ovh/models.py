"""Pydantic models for OVH Public Cloud resources.

Field aliases follow the JSON keys of the ``/cloud/project`` API so that
responses can be validated as-is; unknown keys are ignored.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ovh_machine.base.config import MachineOptions
from ovh_machine.base.driver import MachineInfo


class _Resource(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        """Treat JSON ``null`` like an absent key so field defaults apply."""
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class Project(_Resource):
    id: str = Field(alias="project_id")
    name: str = Field(default="", alias="description")
    status: str = ""
    unleash: bool = False
    creation_date: str | None = Field(default=None, alias="creationDate")
    order_id: int | None = Field(default=None, alias="orderId")


class Flavor(_Resource):
    id: str
    name: str = ""
    region: str = ""
    os_type: str = Field(default="", alias="osType")
    vcpus: int = 0
    memory: int = Field(default=0, alias="ram")
    disk: int = 0
    type: str = ""


class Image(_Resource):
    id: str
    name: str = ""
    region: str = ""
    os_type: str = Field(default="", alias="type")
    creation_date: str | None = Field(default=None, alias="creationDate")
    status: str = ""
    min_disk: int = Field(default=0, alias="minDisk")
    visibility: str = ""


class Network(_Resource):
    id: str
    name: str = ""
    status: str = ""
    type: str = ""
    vlan_id: int | None = Field(default=None, alias="vlanId")


class SshKey(_Resource):
    id: str
    name: str = ""
    public_key: str = Field(default="", alias="publicKey")
    fingerprint: str = Field(default="", alias="fingerPrint")
    regions: list[str] = Field(default_factory=list)


class IpAddress(_Resource):
    ip: str
    type: str
    version: int | None = None


class NetworkParam(_Resource):
    network_id: str = Field(alias="networkId")


class Instance(_Resource):
    id: str
    name: str = ""
    status: str = ""
    created: str | None = None
    region: str = ""
    ip_addresses: list[IpAddress] = Field(default_factory=list, alias="ipAddresses")
    flavor: Flavor | None = None
    image: Image | None = None
    ssh_key: SshKey | None = Field(default=None, alias="sshKey")
    monthly_billing: bool | dict | None = Field(default=None, alias="monthlyBilling")

    def public_ip(self) -> str | None:
        """Return the first public IP address, if any."""
        for address in self.ip_addresses:
            if address.type == "public":
                return address.ip
        return None


class InstanceRequest(_Resource):
    """Body of ``POST /cloud/project/{id}/instance``."""

    name: str
    flavor_id: str = Field(alias="flavorId")
    image_id: str = Field(alias="imageId")
    region: str
    networks: list[NetworkParam] | None = None
    ssh_key_id: str = Field(alias="sshKeyId")
    monthly_billing: bool = Field(default=False, alias="monthlyBilling")

    @classmethod
    def build(
        cls,
        name: str,
        flavor_id: str,
        image_id: str,
        region: str,
        ssh_key_id: str,
        network_ids: list[str] | None = None,
        monthly_billing: bool = False,
    ) -> InstanceRequest:
        networks = [NetworkParam(network_id=nid) for nid in network_ids or []]
        return cls(
            name=name,
            flavor_id=flavor_id,
            image_id=image_id,
            region=region,
            networks=networks or None,
            ssh_key_id=ssh_key_id,
            monthly_billing=monthly_billing,
        )

    def to_body(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class DriverRecord(BaseModel):
    """Persisted form of an OVH driver. Credentials are never stored."""

    machine: MachineInfo
    options: MachineOptions = Field(default_factory=MachineOptions)
    project_id: str = ""
    flavor_id: str = ""
    image_id: str = ""
    instance_id: str = ""
    key_pair_name: str = ""
    key_pair_id: str = ""
    network_ids: list[str] = Field(default_factory=list)
