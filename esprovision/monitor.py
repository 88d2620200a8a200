"""Alerting monitors managed through the OpenDistro alerting API."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from esprovision.resource import ResourceData, normalize_json
from esprovision.transport import ApiClient, ApiError, NotFoundError, expand_path

log = logging.getLogger(__name__)

_MONITOR_PATH = "/_opendistro/_alerting/monitors/{id}"
_MONITORS_PATH = "/_opendistro/_alerting/monitors/"
_UNSUPPORTED = "monitor resource not implemented prior to Elastic v6"


@dataclass
class MonitorResponse:
    """A monitor as returned by the alerting API."""

    id: str = ""
    version: int = 0
    monitor: dict[str, Any] | None = None

    @classmethod
    def from_json(cls, payload: Any) -> MonitorResponse:
        if not isinstance(payload, dict):
            raise ApiError(f"error unmarshalling monitor body: {payload!r}")
        return cls(
            id=payload.get("_id", ""),
            version=payload.get("_version", 0),
            monitor=payload.get("monitor"),
        )


def _require_supported(client: ApiClient) -> None:
    if client.major_version < 6:
        raise ApiError(_UNSUPPORTED)


def _monitor_path(monitor_id: str) -> str:
    return expand_path(_MONITOR_PATH, {"id": monitor_id})


def create_monitor(data: ResourceData, client: ApiClient) -> None:
    """Create the monitor, then read it back since the server fills in defaults."""
    response = post_monitor(data, client)
    data.id = response.id
    log.info("Object ID: %s", data.id)
    read_monitor(data, client)


def read_monitor(data: ResourceData, client: ApiClient) -> None:
    """Refresh the resource from the server, clearing its id if it is gone."""
    try:
        response = get_monitor(data.id, client)
    except NotFoundError:
        log.warning("Monitor (%s) not found, removing from state", data.id)
        data.id = ""
        return
    data.id = response.id
    data.set("body", normalize_json(json.dumps(response.monitor)))


def update_monitor(data: ResourceData, client: ApiClient) -> None:
    put_monitor(data, client)
    read_monitor(data, client)


def delete_monitor(data: ResourceData, client: ApiClient) -> None:
    path = _monitor_path(data.id)
    _require_supported(client)
    client.perform_request("DELETE", path)


def get_monitor(monitor_id: str, client: ApiClient) -> MonitorResponse:
    path = _monitor_path(monitor_id)
    _require_supported(client)
    return MonitorResponse.from_json(client.perform_request("GET", path))


def post_monitor(data: ResourceData, client: ApiClient) -> MonitorResponse:
    _require_supported(client)
    payload = client.perform_request("POST", _MONITORS_PATH, body=data.get("body"))
    return MonitorResponse.from_json(payload)


def put_monitor(data: ResourceData, client: ApiClient) -> MonitorResponse:
    path = _monitor_path(data.id)
    _require_supported(client)
    payload = client.perform_request("PUT", path, body=data.get("body"))
    return MonitorResponse.from_json(payload)