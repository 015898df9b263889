"""OVH Public Cloud implementation of the machine driver blueprint."""

from __future__ import annotations

import os
import re
import secrets
from collections.abc import Mapping
from typing import Any, get_args

import pydantic

from ovh_machine.base.config import (
    DEFAULT_BILLING_PERIOD,
    DEFAULT_FLAVOR,
    DEFAULT_IMAGE,
    DEFAULT_REGION,
    DEFAULT_SSH_USER,
    MachineOptions,
    OVHConfig,
    validate_config,
)
from ovh_machine.base.driver import Flag, MachineDriverBlueprint
from ovh_machine.base.exceptions import (
    ConfigurationError,
    InstanceStateError,
    NotFoundError,
    RemoteError,
    UnsupportedOperationError,
    ValidationError,
)
from ovh_machine.base.logger import md_logger
from ovh_machine.base.state import State
from ovh_machine.base.supported_drivers import billing_periods
from ovh_machine.base.wait import wait_for_specific_or_error
from ovh_machine.ovh.api import API, CUSTOMER_INTERFACE
from ovh_machine.ovh.models import DriverRecord, Instance, InstanceRequest
from ovh_machine.ovh.ssh import generate_ssh_key, read_public_key

# Seconds to wait for a new instance, polled every STATUS_INTERVAL seconds.
STATUS_TIMEOUT = 200
STATUS_INTERVAL = 4

DOCKER_PORT = 2376

_STATE_MAP: dict[str, State] = {
    "ACTIVE": State.RUNNING,
    "PAUSED": State.PAUSED,
    "SUSPENDED": State.SAVED,
    "SHUTOFF": State.STOPPED,
    "BUILDING": State.STARTING,
    "ERROR": State.ERROR,
}

CREATE_FLAGS: list[Flag] = [
    Flag(
        name="ovh-application-key",
        env_var="OVH_APPLICATION_KEY",
        usage="OVH API application key. May be stored in ovh.conf",
    ),
    Flag(
        name="ovh-application-secret",
        env_var="OVH_APPLICATION_SECRET",
        usage="OVH API application secret. May be stored in ovh.conf",
    ),
    Flag(
        name="ovh-consumer-key",
        env_var="OVH_CONSUMER_KEY",
        usage="OVH API consumer key. May be stored in ovh.conf",
    ),
    Flag(name="ovh-endpoint", usage="OVH Cloud API endpoint. Default: ovh-eu"),
    Flag(name="ovh-project", usage="OVH Cloud project name or id"),
    Flag(name="ovh-region", usage="OVH Cloud region name", default=DEFAULT_REGION),
    Flag(
        name="ovh-flavor",
        usage=f"OVH Cloud flavor name or id. Default: {DEFAULT_FLAVOR}",
        default=DEFAULT_FLAVOR,
    ),
    Flag(
        name="ovh-image",
        usage=f"OVH Cloud Image name or id. Default: {DEFAULT_IMAGE}",
        default=DEFAULT_IMAGE,
    ),
    Flag(
        name="ovh-private-network",
        usage="OVH Cloud (private) network name or vlan number. Default: public network",
    ),
    Flag(
        name="ovh-ssh-key",
        usage="OVH Cloud ssh key name or id to use. Default: generate a random name",
    ),
    Flag(
        name="ovh-ssh-user",
        usage=f"OVH Cloud ssh username to use. Default: {DEFAULT_SSH_USER}",
        default=DEFAULT_SSH_USER,
    ),
    Flag(
        name="ovh-billing-period",
        usage="OVH Cloud billing period (hourly or monthly). Default: hourly",
        default=DEFAULT_BILLING_PERIOD,
    ),
]

_FLAG_DEFAULTS = {flag.name: flag.default for flag in CREATE_FLAGS}


def validate_billing_period(period: str) -> None:
    """Accept exactly the billing periods OVH knows about.

    Raises:
        ValidationError: For anything else, including case variants.
    """
    if period not in get_args(billing_periods):
        raise ValidationError(
            f"Invalid billing period '{period}'. Please select one of 'hourly', 'monthly'"
        )


def sanitize_key_pair_name(name: str) -> str:
    return name.replace(".", "_")


def is_generated_key_pair_name(key_pair_name: str, machine_name: str) -> bool:
    """Tell whether *key_pair_name* belongs to *machine_name*.

    Keys named after the machine are owned by it, as are the names
    :meth:`Driver.pre_create_check` generates for dotted machine names.
    """
    if key_pair_name.startswith(machine_name):
        return True
    pattern = rf"{re.escape(sanitize_key_pair_name(machine_name))}-[0-9a-f]{{32}}"
    return re.fullmatch(pattern, key_pair_name) is not None


def credentials_from_flags(flags: Mapping[str, Any]) -> OVHConfig:
    """Build the OVH credentials from the ``ovh-*`` credential flags.

    Empty or missing flags are left to the environment fallback.

    Raises:
        ConfigurationError: If a credential has the wrong type.
    """
    try:
        return validate_config(
            "ovh",
            {
                "application_key": flags.get("ovh-application-key") or None,
                "application_secret": flags.get("ovh-application-secret") or None,
                "consumer_key": flags.get("ovh-consumer-key") or None,
                "endpoint": flags.get("ovh-endpoint") or None,
            },
        )
    except pydantic.ValidationError as e:
        raise ConfigurationError(f"Invalid OVH credentials: {e}") from e


class Driver(MachineDriverBlueprint):
    """Machine driver for OVH Public Cloud.

    Attributes:
        credentials: API credentials and endpoint.
        options: Names requested by the user (project, flavor, image...).
        project_id: Resolved project id.
        flavor_id: Resolved flavor id.
        image_id: Resolved image id.
        network_ids: Extra network attachments, empty for public only.
        key_pair_name: Name of the SSH key on OVH.
        key_pair_id: Id of the SSH key on OVH, once ensured.
        instance_id: Id of the created instance, empty until ``create``.
    """

    def __init__(self, machine_name: str, store_path: str) -> None:
        super().__init__(machine_name, store_path)
        self.credentials = OVHConfig()
        self.options = MachineOptions()
        self.project_id = ""
        self.flavor_id = ""
        self.image_id = ""
        self.network_ids: list[str] = []
        self.key_pair_name = ""
        self.key_pair_id = ""
        self.instance_id = ""
        self._client: API | None = None

    def driver_name(self) -> str:
        return "ovh"

    def _debug(self, operation: str, message: str, **details: Any) -> None:
        md_logger.debug(
            message,
            driver=self.driver_name(),
            machine=self.machine.machine_name,
            operation=operation,
            details=details or None,
        )

    def _get_client(self) -> API:
        if self._client is None:
            self._client = API(self.credentials)
        return self._client

    # ── Configuration ─────────────────────────────────────────────────

    def get_create_flags(self) -> list[Flag]:
        return list(CREATE_FLAGS)

    def set_config_from_flags(self, flags: Mapping[str, Any]) -> None:
        """Assign the options presented by the host.

        Missing flags take their default; empty credentials fall back to the
        environment.

        Raises:
            ConfigurationError: If an option has the wrong type.
        """

        def flag(name: str) -> Any:
            value = flags.get(name)
            return _FLAG_DEFAULTS[name] if value is None else value

        self.credentials = credentials_from_flags(flags)
        try:
            self.options = MachineOptions(
                project=flag("ovh-project"),
                region=flag("ovh-region"),
                flavor=flag("ovh-flavor"),
                image=flag("ovh-image"),
                private_network=flag("ovh-private-network"),
                ssh_key=flag("ovh-ssh-key"),
                ssh_user=flag("ovh-ssh-user"),
                billing_period=flag("ovh-billing-period"),
            )
        except pydantic.ValidationError as e:
            raise ConfigurationError(f"Invalid driver options: {e}") from e

        self.key_pair_name = self.options.ssh_key
        self.machine.ssh_user = self.options.ssh_user
        self._client = None

    # ── Pre-create validation ─────────────────────────────────────────

    def pre_create_check(self) -> None:
        """Resolve every user-supplied name against the OVH catalogs.

        Fills ``project_id``, ``flavor_id``, ``image_id``, ``network_ids`` and
        decides which SSH key the machine will use.

        Raises:
            ValidationError: Invalid billing period, ambiguous project or
                unknown region.
            NotFoundError: Unknown project, flavor, image or network.
            RemoteError: On OVH API failure.
        """
        client = self._get_client()

        self._debug("validate", "Validating billing period")
        validate_billing_period(self.options.billing_period)

        self._debug("validate", "Validating project")
        self.project_id = self._resolve_project(client)
        self._debug("validate", "Found project id", project_id=self.project_id)

        self._debug("validate", "Validating region")
        regions = client.list_regions(self.project_id)
        if self.options.region not in regions:
            raise ValidationError(
                f"Invalid region {self.options.region}. Valid regions for this project "
                f"include {', '.join(regions)}. For a list of valid ovh regions, "
                f"please visit {CUSTOMER_INTERFACE}"
            )

        self._debug("validate", "Validating flavor")
        flavor = client.get_flavor_by_name(self.project_id, self.options.region, self.options.flavor)
        self.flavor_id = flavor.id
        self._debug("validate", "Found flavor id", flavor_id=self.flavor_id)

        self._debug("validate", "Validating image")
        image = client.get_image_by_name(self.project_id, self.options.region, self.options.image)
        self.image_id = image.id
        self._debug("validate", "Found image id", image_id=self.image_id)

        self._debug("validate", "Validating private network")
        self.network_ids = self._resolve_networks(client)

        self._resolve_ssh_key()

    validate = pre_create_check

    def _resolve_project(self, client: API) -> str:
        if self.options.project:
            return client.get_project_by_name(self.options.project).id

        project_ids = client.list_projects()
        if len(project_ids) == 1:
            return project_ids[0]
        if not project_ids:
            raise NotFoundError(
                f"No Cloud project could be found. To create a new one, please visit {CUSTOMER_INTERFACE}"
            )

        # Names only help the user pick one; fall back to the id
        names: list[str] = []
        for project_id in project_ids:
            try:
                names.append(client.get_project(project_id).name or project_id)
            except RemoteError:
                names.append(project_id)
        raise ValidationError(
            f"Multiple Cloud projects found ({', '.join(names)}), "
            "to select one, use '--ovh-project' option"
        )

    def _resolve_networks(self, client: API) -> list[str]:
        if not self.options.private_network:
            self._debug("validate", "No private network requested. Using public network")
            return []

        private = client.get_private_network_by_name(self.project_id, self.options.private_network)
        self._debug("validate", "Found private network id", network_id=private.id)
        public_id = client.get_public_network_id(self.project_id)
        self._debug("validate", "Found public network id", network_id=public_id)
        return [private.id, public_id]

    def _resolve_ssh_key(self) -> None:
        if self.key_pair_name:
            key_path = os.path.join(self.machine.store_path, "sshkeys", self.key_pair_name)
            if os.path.exists(key_path):
                self.machine.ssh_key_path = key_path
            else:
                self._debug(
                    "validate",
                    "SSH key file does not exist. Assuming the key is in '~/.ssh/' or in a SSH agent.",
                    key_path=key_path,
                    key_pair_name=self.key_pair_name,
                )
            return

        self.key_pair_name = sanitize_key_pair_name(
            f"{self.machine.machine_name}-{secrets.token_hex(16)}"
        )
        self.machine.ssh_key_path = self.machine.resolve_store_path(self.key_pair_name)

    # ── Creation ──────────────────────────────────────────────────────

    def ensure_ssh_key(self) -> None:
        """Make sure an SSH key named ``key_pair_name`` exists on OVH.

        An existing key is reused as-is. Otherwise a local key pair is
        generated (unless one is already on disk) and its public half uploaded.
        """
        client = self._get_client()

        self._debug("create", "Checking key pair", name=self.key_pair_name)
        try:
            key = client.get_ssh_key_by_name(self.project_id, self.options.region, self.key_pair_name)
        except NotFoundError:
            key = None
        if key is not None:
            self.key_pair_id = key.id
            self._debug("create", "Found key id", key_pair_id=self.key_pair_id)
            return

        self._debug("create", "Creating key pair", name=self.key_pair_name)
        key_file = self.get_ssh_key_path()
        os.makedirs(os.path.dirname(key_file), mode=0o700, exist_ok=True)
        if not os.path.exists(key_file):
            generate_ssh_key(key_file)
        public_key = read_public_key(key_file)

        key = client.create_ssh_key(self.project_id, self.key_pair_name, public_key)
        self.key_pair_id = key.id
        self._debug("create", "Created key id", key_pair_id=self.key_pair_id)

    def wait_for_instance_status(self, status: str) -> Instance:
        """Poll the instance until it reports *status*.

        Raises:
            InstanceStateError: As soon as the instance reports ERROR.
            InstanceTimeoutError: If *status* is not reached in time.
        """
        client = self._get_client()
        latest: Instance | None = None

        def reached() -> bool:
            nonlocal latest
            latest = client.get_instance(self.project_id, self.instance_id)
            self._debug("create", "Polled instance", instance_id=self.instance_id, status=latest.status)
            if latest.status == "ERROR":
                raise InstanceStateError("Instance creation failed. Instance is in ERROR state")
            return latest.status == status

        wait_for_specific_or_error(
            reached,
            max_attempts=STATUS_TIMEOUT // STATUS_INTERVAL,
            wait_interval=STATUS_INTERVAL,
            description=f"instance {self.instance_id} to be {status}",
        )
        assert latest is not None
        return latest

    def create(self) -> None:
        """Create the instance and record its public IP address.

        Raises:
            InstanceStateError: If the instance fails or has no public IP.
            InstanceTimeoutError: If the instance never becomes ACTIVE.
            RemoteError: On OVH API failure.
        """
        client = self._get_client()

        self.ensure_ssh_key()

        self._debug("create", "Creating OVH instance")
        request = InstanceRequest.build(
            name=self.machine.machine_name,
            flavor_id=self.flavor_id,
            image_id=self.image_id,
            region=self.options.region,
            ssh_key_id=self.key_pair_id,
            network_ids=self.network_ids,
            monthly_billing=self.options.billing_period == "monthly",
        )
        instance = client.create_instance(self.project_id, request)
        self.instance_id = instance.id

        self._debug("create", "Waiting for OVH instance", instance_id=self.instance_id)
        instance = self.wait_for_instance_status("ACTIVE")

        self.machine.ip_address = ""
        ip = instance.public_ip()
        if not ip:
            raise InstanceStateError(f"No IP found for instance {instance.id}")
        self.machine.ip_address = ip

        self._debug("create", "IP address found", instance_id=self.instance_id, ip=ip)

    # ── Inspection ────────────────────────────────────────────────────

    def get_state(self) -> State:
        """Return the host-facing state of the instance.

        Unknown OVH statuses map to :attr:`State.NONE`; fetch errors propagate.
        """
        if not self.instance_id:
            return State.NONE

        self._debug("state", "Get status for OVH instance", instance_id=self.instance_id)
        instance = self._get_client().get_instance(self.project_id, self.instance_id)
        self._debug("state", "OVH instance", instance_id=self.instance_id, status=instance.status)
        return _STATE_MAP.get(instance.status, State.NONE)

    def get_url(self) -> str:
        ip = self.machine.ip_address
        if not ip:
            return ""
        host = f"[{ip}]" if ":" in ip else ip
        return f"tcp://{host}:{DOCKER_PORT}"

    # ── Teardown and power ────────────────────────────────────────────

    def remove(self) -> None:
        """Delete the instance, then the SSH key if this driver generated it."""
        md_logger.info(
            "Deleting OVH instance...",
            driver=self.driver_name(),
            machine=self.machine.machine_name,
            operation="remove",
        )
        client = self._get_client()

        if self.instance_id:
            self._debug("remove", "Deleting instance", instance_id=self.instance_id)
            client.delete_instance(self.project_id, self.instance_id)

        if not is_generated_key_pair_name(self.key_pair_name, self.machine.machine_name):
            self._debug("remove", "Keeping key pair", key_pair_id=self.key_pair_id)
            return

        if self.key_pair_id:
            self._debug("remove", "Deleting key pair", key_pair_id=self.key_pair_id)
            client.delete_ssh_key(self.project_id, self.key_pair_id)

    def restart(self) -> None:
        self._debug("restart", "Restarting OVH instance", instance_id=self.instance_id)
        self._get_client().reboot_instance(self.project_id, self.instance_id, hard=False)

    def kill(self) -> None:
        raise UnsupportedOperationError("Killing machines is not possible on OVH Cloud")

    def start(self) -> None:
        raise UnsupportedOperationError("Starting machines is not possible on OVH Cloud")

    def stop(self) -> None:
        raise UnsupportedOperationError("Stopping machines is not possible on OVH Cloud")

    # ── Persistence ───────────────────────────────────────────────────

    def to_record(self) -> DriverRecord:
        return DriverRecord(
            machine=self.machine.model_copy(),
            options=self.options.model_copy(),
            project_id=self.project_id,
            flavor_id=self.flavor_id,
            image_id=self.image_id,
            instance_id=self.instance_id,
            key_pair_name=self.key_pair_name,
            key_pair_id=self.key_pair_id,
            network_ids=list(self.network_ids),
        )

    @classmethod
    def from_record(cls, record: DriverRecord, credentials: OVHConfig | None = None) -> Driver:
        """Rebuild a driver from its persisted record.

        Args:
            record: Record produced by :meth:`to_record`.
            credentials: API credentials; looked up in the environment if omitted.
        """
        driver = cls(record.machine.machine_name, record.machine.store_path)
        driver.machine = record.machine.model_copy()
        driver.options = record.options.model_copy()
        if credentials is not None:
            driver.credentials = credentials
        driver.project_id = record.project_id
        driver.flavor_id = record.flavor_id
        driver.image_id = record.image_id
        driver.instance_id = record.instance_id
        driver.key_pair_name = record.key_pair_name
        driver.key_pair_id = record.key_pair_id
        driver.network_ids = list(record.network_ids)
        return driver
