"""Kibana tenants managed through the OpenDistro security API."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict, dataclass
from typing import Any

from esprovision.resource import ResourceData
from esprovision.transport import ApiClient, ApiError, NotFoundError, expand_path

log = logging.getLogger(__name__)

_TENANT_PATH = "/_opendistro/_security/api/tenants/{name}"
_UNSUPPORTED = "Creating tenants requires elastic v7 client"
_RETRY_STATUS_CODES = (409, 500)
_NON_ALPHANUMERIC = re.compile(r"[^a-zA-Z0-9]+")


@dataclass
class TenantBody:
    """The definition of a tenant."""

    description: str = ""

    @classmethod
    def from_json(cls, payload: Any) -> TenantBody:
        if not isinstance(payload, dict):
            return cls()
        return cls(description=payload.get("description") or "")


@dataclass
class TenantResponse:
    """The security API's answer to a tenant change."""

    message: str = ""
    status: str = ""

    @classmethod
    def from_json(cls, payload: Any) -> TenantResponse:
        if not isinstance(payload, dict):
            raise ApiError(f"error unmarshalling tenant body: {payload!r}")
        return cls(message=payload.get("message", ""), status=payload.get("status", ""))


def _to_int32(value: int) -> int:
    return (value + 2**31) % 2**32 - 2**31


def compute_tenant_index(tenant: str) -> str:
    """Return the Kibana index name that holds a tenant's saved objects."""
    hash_sum = 0
    for char in tenant:
        hash_sum = _to_int32(_to_int32(hash_sum << 5) - hash_sum + ord(char))
    cleaned = _NON_ALPHANUMERIC.sub("", tenant)
    return f".kibana_{hash_sum}_{cleaned.lower()}"


def _require_supported(client: ApiClient) -> None:
    if client.major_version < 7:
        raise ApiError(_UNSUPPORTED)


def _tenant_path(name: str) -> str:
    return expand_path(_TENANT_PATH, {"name": name})


def create_tenant(data: ResourceData, client: ApiClient) -> None:
    put_tenant(data, client)
    data.id = data.get("tenant_name")
    read_tenant(data, client)


def read_tenant(data: ResourceData, client: ApiClient) -> None:
    """Refresh the resource from the server, clearing its id if it is gone."""
    try:
        tenant = get_tenant(data.id, client)
    except NotFoundError:
        log.warning("OpenDistroKibanaTenant (%s) not found, removing from state", data.id)
        data.id = ""
        return
    data.set("tenant_name", data.id)
    data.set("description", tenant.description)
    data.set("index", compute_tenant_index(data.id))


def update_tenant(data: ResourceData, client: ApiClient) -> None:
    put_tenant(data, client)
    read_tenant(data, client)


def delete_tenant(data: ResourceData, client: ApiClient) -> None:
    path = _tenant_path(data.get("tenant_name"))
    _require_supported(client)
    client.perform_request("DELETE", path, retry_status_codes=_RETRY_STATUS_CODES)


def get_tenant(tenant_id: str, client: ApiClient) -> TenantBody:
    path = _tenant_path(tenant_id)
    _require_supported(client)
    payload = client.perform_request("GET", path)
    if not isinstance(payload, dict):
        raise ApiError(f"error unmarshalling tenant body: {payload!r}")
    return TenantBody.from_json(payload.get(tenant_id))


def put_tenant(data: ResourceData, client: ApiClient) -> TenantResponse:
    definition = TenantBody(description=data.get("description") or "")
    path = _tenant_path(data.get("tenant_name"))
    _require_supported(client)
    payload = client.perform_request(
        "PUT",
        path,
        body=json.dumps(asdict(definition)),
        retry_status_codes=_RETRY_STATUS_CODES,
    )
    return TenantResponse.from_json(payload)