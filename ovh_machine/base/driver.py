"""Machine driver blueprint."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict

from ovh_machine.base.config import DEFAULT_SSH_PORT, DEFAULT_SSH_USER
from ovh_machine.base.state import State


class Flag(BaseModel):
    """A create-time option recognised by a driver."""

    name: str
    usage: str
    default: str = ""
    env_var: str | None = None


class MachineInfo(BaseModel):
    """Fields every driver shares with the host.

    The host hands these to the driver and reads them back once the machine
    is created (``ip_address``, ``ssh_key_path``).
    """

    model_config = ConfigDict(validate_assignment=True)

    machine_name: str
    store_path: str
    ssh_user: str = DEFAULT_SSH_USER
    ssh_port: int = DEFAULT_SSH_PORT
    ssh_key_path: str = ""
    ip_address: str = ""

    def resolve_store_path(self, file: str) -> str:
        """Return the path of *file* inside this machine's store directory."""
        return os.path.join(self.store_path, "machines", self.machine_name, file)


class MachineDriverBlueprint(ABC):
    """Abstract interface for the machine lifecycle driven by the host.

    Implementations keep one machine's options and remote identifiers and
    are invoked one method at a time.
    """

    def __init__(self, machine_name: str, store_path: str) -> None:
        self.machine = MachineInfo(machine_name=machine_name, store_path=store_path)

    @abstractmethod
    def driver_name(self) -> str:
        """Return the driver name (e.g. ``ovh``)."""

    @abstractmethod
    def get_create_flags(self) -> list[Flag]:
        """Return the create-time flags, their env vars and defaults."""

    @abstractmethod
    def set_config_from_flags(self, flags: Mapping[str, Any]) -> None:
        """Assign and check the options presented by the host."""

    @abstractmethod
    def pre_create_check(self) -> None:
        """Validate the requested machine against the provider before creation."""

    @abstractmethod
    def create(self) -> None:
        """Create the machine and wait until it is reachable."""

    @abstractmethod
    def get_state(self) -> State:
        """Return the current machine state."""

    @abstractmethod
    def get_url(self) -> str:
        """Return the daemon URL, or an empty string if no address is known."""

    @abstractmethod
    def remove(self) -> None:
        """Destroy the machine and any credential created for it."""

    @abstractmethod
    def restart(self) -> None:
        """Restart the machine."""

    @abstractmethod
    def start(self) -> None:
        """Start a stopped machine."""

    @abstractmethod
    def stop(self) -> None:
        """Stop a running machine."""

    @abstractmethod
    def kill(self) -> None:
        """Forcefully stop the machine."""

    def get_machine_name(self) -> str:
        return self.machine.machine_name

    def get_ip(self) -> str:
        return self.machine.ip_address

    def get_ssh_hostname(self) -> str:
        return self.machine.ip_address

    def get_ssh_port(self) -> int:
        return self.machine.ssh_port

    def get_ssh_username(self) -> str:
        return self.machine.ssh_user

    def get_ssh_key_path(self) -> str:
        """Return the private key path, defaulting to ``id_rsa`` in the store."""
        if not self.machine.ssh_key_path:
            self.machine.ssh_key_path = self.machine.resolve_store_path("id_rsa")
        return self.machine.ssh_key_path
