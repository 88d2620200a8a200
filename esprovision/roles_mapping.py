"""Security role mappings managed through the OpenDistro security API."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from typing import Any

from esprovision.resource import ResourceData
from esprovision.transport import ApiClient, ApiError, NotFoundError, expand_path

log = logging.getLogger(__name__)

_ROLES_MAPPING_PATH = "/_opendistro/_security/api/rolesmapping/{name}"
_UNSUPPORTED = "role mapping resource not implemented prior to Elastic v7"
_RETRY_STATUS_CODES = (409, 500)


@dataclass
class RolesMapping:
    """The users, hosts and backend roles mapped to a security role."""

    backend_roles: list[str] = field(default_factory=list)
    hosts: list[str] = field(default_factory=list)
    users: list[str] = field(default_factory=list)
    description: str = ""
    and_backend_roles: list[str] = field(default_factory=list)

    @classmethod
    def from_json(cls, payload: Any) -> RolesMapping:
        if not isinstance(payload, dict):
            return cls()
        return cls(
            backend_roles=list(payload.get("backend_roles") or []),
            hosts=list(payload.get("hosts") or []),
            users=list(payload.get("users") or []),
            description=payload.get("description") or "",
            and_backend_roles=list(payload.get("and_backend_roles") or []),
        )


@dataclass
class RoleMappingResponse:
    """The security API's answer to a role mapping change."""

    message: str = ""
    status: str = ""

    @classmethod
    def from_json(cls, payload: Any) -> RoleMappingResponse:
        if not isinstance(payload, dict):
            raise ApiError(f"error unmarshalling role mapping body: {payload!r}")
        return cls(message=payload.get("message", ""), status=payload.get("status", ""))


def _require_supported(client: ApiClient) -> None:
    if client.major_version < 7:
        raise ApiError(_UNSUPPORTED)


def _mapping_path(name: str) -> str:
    return expand_path(_ROLES_MAPPING_PATH, {"name": name})


def _strings(value: Any) -> list[str]:
    return [str(item) for item in value or ()]


def create_roles_mapping(data: ResourceData, client: ApiClient) -> None:
    put_roles_mapping(data, client)
    data.id = data.get("role_name")
    read_roles_mapping(data, client)


def read_roles_mapping(data: ResourceData, client: ApiClient) -> None:
    """Refresh the resource from the server, clearing its id if it is gone."""
    try:
        mapping = get_roles_mapping(data.id, client)
    except NotFoundError:
        log.warning("OpenDistroRolesMapping (%s) not found, removing from state", data.id)
        data.id = ""
        return
    data.set("role_name", data.id)
    data.set("backend_roles", mapping.backend_roles)
    data.set("hosts", mapping.hosts)
    data.set("users", mapping.users)
    data.set("description", mapping.description)
    data.set("and_backend_roles", mapping.and_backend_roles)


def update_roles_mapping(data: ResourceData, client: ApiClient) -> None:
    put_roles_mapping(data, client)
    read_roles_mapping(data, client)


def delete_roles_mapping(data: ResourceData, client: ApiClient) -> None:
    path = _mapping_path(data.get("role_name"))
    _require_supported(client)
    client.perform_request("DELETE", path, retry_status_codes=_RETRY_STATUS_CODES)


def get_roles_mapping(role_name: str, client: ApiClient) -> RolesMapping:
    path = _mapping_path(role_name)
    _require_supported(client)
    payload = client.perform_request("GET", path)
    if not isinstance(payload, dict):
        raise ApiError(f"error unmarshalling role mapping body: {payload!r}")
    return RolesMapping.from_json(payload.get(role_name))


def put_roles_mapping(data: ResourceData, client: ApiClient) -> RoleMappingResponse:
    definition = RolesMapping(
        backend_roles=_strings(data.get("backend_roles")),
        hosts=_strings(data.get("hosts")),
        users=_strings(data.get("users")),
        description=data.get("description") or "",
        and_backend_roles=_strings(data.get("and_backend_roles")),
    )
    path = _mapping_path(data.get("role_name"))
    _require_supported(client)
    # The security plugin may answer a concurrent change with 409 or 500.
    payload = client.perform_request(
        "PUT",
        path,
        body=json.dumps(asdict(definition)),
        retry_status_codes=_RETRY_STATUS_CODES,
    )
    return RoleMappingResponse.from_json(payload)