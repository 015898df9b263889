"""OVH Public Cloud API client.

A thin façade over the ``/cloud/project`` REST endpoints. Every method
issues a single call through :class:`ovh.Client`, which signs requests,
and validates the JSON answer into the models of
:mod:`ovh_machine.ovh.models`. The ``*_by_name`` helpers are the only
composite calls: they list a catalog and pick the entry matching a
user-supplied name or id.
"""

from __future__ import annotations

from typing import Any, NoReturn, TypeVar

import ovh
import pydantic
from ovh import exceptions as ovh_exceptions

from ovh_machine.base.config import DEFAULT_ENDPOINT, OVHConfig
from ovh_machine.base.exceptions import ConfigurationError, NotFoundError, RemoteError
from ovh_machine.ovh.models import (
    Flavor,
    Image,
    Instance,
    InstanceRequest,
    Network,
    Project,
    SshKey,
)

_M = TypeVar("_M", bound=pydantic.BaseModel)

CUSTOMER_INTERFACE = "https://www.ovh.com/manager/cloud/index.html"

_STATUS_MAP: dict[type[ovh_exceptions.APIError], int] = {
    ovh_exceptions.ResourceNotFoundError: 404,
    ovh_exceptions.BadParametersError: 400,
    ovh_exceptions.ResourceConflictError: 409,
    ovh_exceptions.NotCredential: 401,
    ovh_exceptions.NotGrantedCall: 403,
    ovh_exceptions.Forbidden: 403,
    ovh_exceptions.InvalidCredential: 403,
    ovh_exceptions.InvalidKey: 403,
}


def _status_code(e: ovh_exceptions.APIError) -> int | None:
    response = getattr(e, "response", None)
    code = getattr(response, "status_code", None)
    if isinstance(code, int):
        return code
    for exc_type, status in _STATUS_MAP.items():
        if isinstance(e, exc_type):
            return status
    return None


def _handle(e: ovh_exceptions.APIError, msg: str) -> NoReturn:
    raise RemoteError(f"{msg}: {e}", status_code=_status_code(e)) from e


def _parse(model: type[_M], data: Any, msg: str) -> _M:
    """Validate one API answer into *model*; a malformed payload is a remote failure."""
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        raise RemoteError(f"{msg}: unexpected response from OVH API: {e}") from e


_STRING_LIST = pydantic.TypeAdapter(list[str])


def _parse_strings(data: Any, msg: str) -> list[str]:
    try:
        return _STRING_LIST.validate_python(data)
    except pydantic.ValidationError as e:
        raise RemoteError(f"{msg}: unexpected response from OVH API: {e}") from e


def _parse_list(model: type[_M], data: Any, msg: str) -> list[_M]:
    if not isinstance(data, list):
        raise RemoteError(f"{msg}: expected a list from OVH API, got {type(data).__name__}")
    return [_parse(model, item, msg) for item in data]


def _not_found(kind: str, name: str, alternatives: list[str], hint: str) -> NotFoundError:
    message = f"{kind} '{name}' does not exist on OVH cloud."
    if alternatives:
        message += f" Valid choices include {', '.join(alternatives)}."
    message += f" {hint}, please visit {CUSTOMER_INTERFACE}"
    return NotFoundError(message, alternatives=alternatives)


class API:
    """Handle on the OVH API for one set of credentials.

    Attributes:
        client: Signed ``ovh.Client`` used for every request.
    """

    def __init__(self, config: OVHConfig) -> None:
        """Initialize the OVH client.

        Args:
            config: OVH configuration object. ``None`` credentials are looked
                up by the SDK itself (environment, ``ovh.conf``).

        Raises:
            ConfigurationError: If the SDK rejects the endpoint or credentials.
        """
        try:
            self.client = ovh.Client(
                endpoint=config.endpoint or DEFAULT_ENDPOINT,
                application_key=config.application_key,
                application_secret=config.application_secret,
                consumer_key=config.consumer_key,
            )
        except ovh_exceptions.APIError as e:
            raise ConfigurationError(
                "Could not create a connection to OVH API. Check the endpoint and "
                f"the application key, secret and consumer key. The original error was: {e}"
            ) from e

    def _get(self, path: str, msg: str, **params: Any) -> Any:
        try:
            return self.client.get(path, **params)
        except ovh_exceptions.APIError as e:
            _handle(e, msg)

    def _post(self, path: str, msg: str, **body: Any) -> Any:
        try:
            return self.client.post(path, **body)
        except ovh_exceptions.APIError as e:
            _handle(e, msg)

    def _delete(self, path: str, msg: str) -> None:
        """DELETE *path*; an already-absent resource counts as deleted."""
        try:
            self.client.delete(path)
        except ovh_exceptions.ResourceNotFoundError:
            return
        except ovh_exceptions.APIError as e:
            if _status_code(e) == 404:
                return
            _handle(e, msg)

    # ── Projects ──────────────────────────────────────────────────────

    def list_projects(self) -> list[str]:
        """Return the ids of all cloud projects."""
        msg = "Failed to list projects"
        return _parse_strings(self._get("/cloud/project", msg), msg)

    def get_project(self, project_id: str) -> Project:
        msg = f"Failed to get project '{project_id}'"
        return _parse(Project, self._get(f"/cloud/project/{project_id}", msg), msg)

    def get_project_by_name(self, name: str) -> Project:
        """Return a project given its id or its description.

        An id is returned without scanning names; otherwise every project is
        fetched until one matches.

        Raises:
            NotFoundError: If no project matches, listing the known names.
        """
        project_ids = self.list_projects()
        if name in project_ids:
            return self.get_project(name)

        names: list[str] = []
        for project_id in project_ids:
            project = self.get_project(project_id)
            if project.name == name:
                return project
            names.append(project.name or project.id)

        raise _not_found("Project", name, names, "To create or rename a project")

    # ── Regions ───────────────────────────────────────────────────────

    def list_regions(self, project_id: str) -> list[str]:
        msg = f"Failed to list regions of project '{project_id}'"
        return _parse_strings(self._get(f"/cloud/project/{project_id}/region", msg), msg)

    # ── Flavors ───────────────────────────────────────────────────────

    def list_flavors(self, project_id: str, region: str) -> list[Flavor]:
        data = self._get(
            f"/cloud/project/{project_id}/flavor",
            f"Failed to list flavors in region '{region}'",
            region=region,
        )
        return _parse_list(Flavor, data, f"Failed to list flavors in region '{region}'")

    def get_flavor_by_name(self, project_id: str, region: str, name: str) -> Flavor:
        """Return the first Linux flavor whose id or name equals *name*.

        Raises:
            NotFoundError: If no Linux flavor matches.
        """
        flavors = [f for f in self.list_flavors(project_id, region) if f.os_type == "linux"]
        for flavor in flavors:
            if flavor.id == name or flavor.name == name:
                return flavor
        raise _not_found(
            "Flavor", name, [f.name for f in flavors], "To find a list of available flavors"
        )

    # ── Images ────────────────────────────────────────────────────────

    def list_images(self, project_id: str, region: str) -> list[Image]:
        data = self._get(
            f"/cloud/project/{project_id}/image",
            f"Failed to list images in region '{region}'",
            osType="linux",
            region=region,
        )
        return _parse_list(Image, data, f"Failed to list images in region '{region}'")

    def get_image_by_name(self, project_id: str, region: str, name: str) -> Image:
        """Return the first Linux image whose id or name equals *name*.

        Raises:
            NotFoundError: If no Linux image matches.
        """
        images = [i for i in self.list_images(project_id, region) if i.os_type == "linux"]
        for image in images:
            if image.id == name or image.name == name:
                return image
        raise _not_found(
            "Image", name, [i.name for i in images], "To find a list of available images"
        )

    # ── Networks ──────────────────────────────────────────────────────

    def list_networks(self, project_id: str, private: bool) -> list[Network]:
        kind = "private" if private else "public"
        data = self._get(
            f"/cloud/project/{project_id}/network/{kind}",
            f"Failed to list {kind} networks of project '{project_id}'",
        )
        return _parse_list(Network, data, f"Failed to list {kind} networks of project '{project_id}'")

    def get_public_network_id(self, project_id: str) -> str:
        networks = self.list_networks(project_id, private=False)
        if not networks:
            raise NotFoundError(
                f"No public network found for project '{project_id}'. "
                f"Please visit {CUSTOMER_INTERFACE}"
            )
        return networks[0].id

    def get_private_network_by_name(self, project_id: str, name: str) -> Network:
        """Return the private network whose vlan id or name equals *name*.

        Raises:
            NotFoundError: If nothing matches, listing the private network names.
        """
        networks = self.list_networks(project_id, private=True)
        for network in networks:
            if str(network.vlan_id) == name or network.name == name:
                return network
        names = [n.name for n in networks]
        raise NotFoundError(
            f"Invalid private network {name}. "
            f"List of valid private networks include {', '.join(names)}",
            alternatives=names,
        )

    # ── SSH keys ──────────────────────────────────────────────────────

    def list_ssh_keys(self, project_id: str, region: str) -> list[SshKey]:
        data = self._get(
            f"/cloud/project/{project_id}/sshkey",
            f"Failed to list ssh keys in region '{region}'",
            region=region,
        )
        return _parse_list(SshKey, data, f"Failed to list ssh keys in region '{region}'")

    def get_ssh_key_by_name(self, project_id: str, region: str, name: str) -> SshKey:
        """Return the SSH key whose id or name equals *name*.

        Raises:
            NotFoundError: If no key matches.
        """
        keys = self.list_ssh_keys(project_id, region)
        for key in keys:
            if key.id == name or key.name == name:
                return key
        raise _not_found(
            "SSH key", name, [k.name for k in keys], "To find a list of available ssh keys"
        )

    def create_ssh_key(self, project_id: str, name: str, public_key: str) -> SshKey:
        data = self._post(
            f"/cloud/project/{project_id}/sshkey",
            f"Failed to create ssh key '{name}'",
            name=name,
            publicKey=public_key,
        )
        return _parse(SshKey, data, f"Failed to create ssh key '{name}'")

    def delete_ssh_key(self, project_id: str, key_id: str) -> None:
        self._delete(
            f"/cloud/project/{project_id}/sshkey/{key_id}",
            f"Failed to delete ssh key '{key_id}'",
        )

    # ── Instances ─────────────────────────────────────────────────────

    def create_instance(self, project_id: str, request: InstanceRequest) -> Instance:
        """Submit an instance creation; the returned instance is usually BUILDING."""
        data = self._post(
            f"/cloud/project/{project_id}/instance",
            f"Failed to create instance '{request.name}'",
            **request.to_body(),
        )
        return _parse(Instance, data, f"Failed to create instance '{request.name}'")

    def get_instance(self, project_id: str, instance_id: str) -> Instance:
        data = self._get(
            f"/cloud/project/{project_id}/instance/{instance_id}",
            f"Failed to get instance '{instance_id}'",
        )
        return _parse(Instance, data, f"Failed to get instance '{instance_id}'")

    def reboot_instance(self, project_id: str, instance_id: str, hard: bool = False) -> None:
        self._post(
            f"/cloud/project/{project_id}/instance/{instance_id}/reboot",
            f"Failed to reboot instance '{instance_id}'",
            type="hard" if hard else "soft",
        )

    def delete_instance(self, project_id: str, instance_id: str) -> None:
        self._delete(
            f"/cloud/project/{project_id}/instance/{instance_id}",
            f"Failed to delete instance '{instance_id}'",
        )
