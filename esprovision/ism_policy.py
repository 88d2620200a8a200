"""Index State Management policies managed through the OpenDistro ISM API."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from esprovision.resource import ResourceData, normalize_json
from esprovision.transport import ApiClient, ApiError, NotFoundError, expand_path

log = logging.getLogger(__name__)

_POLICY_PATH = "/_opendistro/_ism/policies/{policy_id}"
_UNSUPPORTED = "policy resource not implemented prior to Elastic v6"
_RETRY_STATUS_CODES = (409,)


@dataclass
class GetPolicyResponse:
    """A policy as returned by the ISM get endpoint."""

    policy_id: str = ""
    version: int = 0
    primary_term: int = 0
    seq_no: int = 0
    policy: dict[str, Any] | None = None

    @classmethod
    def from_json(cls, payload: Any) -> GetPolicyResponse:
        if not isinstance(payload, dict):
            raise ApiError(f"error unmarshalling policy body: {payload!r}")
        return cls(
            policy_id=payload.get("_id", ""),
            version=payload.get("_version", 0),
            primary_term=payload.get("_primary_term", 0),
            seq_no=payload.get("_seq_no", 0),
            policy=payload.get("policy"),
        )


@dataclass
class PutPolicyResponse:
    """The ISM API's answer to storing a policy."""

    policy_id: str = ""
    version: int = 0
    primary_term: int = 0
    seq_no: int = 0
    policy: dict[str, Any] | None = None

    @classmethod
    def from_json(cls, payload: Any) -> PutPolicyResponse:
        if not isinstance(payload, dict):
            raise ApiError(f"error unmarshalling policy body: {payload!r}")
        wrapper = payload.get("policy")
        inner = wrapper.get("policy") if isinstance(wrapper, dict) else None
        return cls(
            policy_id=payload.get("_id", ""),
            version=payload.get("_version", 0),
            primary_term=payload.get("_primary_term", 0),
            seq_no=payload.get("_seq_no", 0),
            policy=inner,
        )


def _policy_path(policy_id: str) -> str:
    return expand_path(_POLICY_PATH, {"policy_id": policy_id})


def _rewrap(exc: ApiError, message: str) -> ApiError:
    """Return an error of the same kind as ``exc`` carrying a new message."""
    return type(exc)(message, exc.status, exc.body)


def create_policy(data: ResourceData, client: ApiClient) -> None:
    put_policy(data, client)
    data.id = data.get("policy_id")
    read_policy(data, client)


def read_policy(data: ResourceData, client: ApiClient) -> None:
    """Refresh the resource from the server, clearing its id if it is gone."""
    try:
        response = get_policy(data.id, client)
    except NotFoundError:
        log.warning("OpenDistroPolicy (%s) not found, removing from state", data.id)
        data.id = ""
        return
    # The GET response lacks the wrapping object that the PUT body carries.
    body = normalize_json(json.dumps({"policy": response.policy}))
    data.set("policy_id", response.policy_id)
    data.set("body", body)
    data.set("primary_term", response.primary_term)
    data.set("seq_no", response.seq_no)


def update_policy(data: ResourceData, client: ApiClient) -> None:
    put_policy(data, client)
    read_policy(data, client)


def delete_policy(data: ResourceData, client: ApiClient) -> None:
    path = _policy_path(data.id)
    if client.major_version < 6:
        raise ApiError(_UNSUPPORTED)
    retry = _RETRY_STATUS_CODES if client.major_version >= 7 else None
    try:
        client.perform_request("DELETE", path, retry_status_codes=retry)
    except ApiError as exc:
        raise _rewrap(exc, f"error deleting policy: {path} : {exc}") from exc


def get_policy(policy_id: str, client: ApiClient) -> GetPolicyResponse:
    path = _policy_path(policy_id)
    if client.major_version < 6:
        raise ApiError(_UNSUPPORTED)
    try:
        payload = client.perform_request("GET", path)
    except ApiError as exc:
        raise _rewrap(exc, f"error getting policy: {path} : {exc}") from exc
    return GetPolicyResponse.from_json(payload)


def put_policy(data: ResourceData, client: ApiClient) -> PutPolicyResponse:
    """Store the policy, guarding with sequence number and primary term when known."""
    policy_json = data.get("body")
    seq_no = data.get("seq_no") or 0
    primary_term = data.get("primary_term") or 0
    params: dict[str, str] = {}
    if seq_no >= 0 and primary_term > 0:
        params["if_seq_no"] = str(seq_no)
        params["if_primary_term"] = str(primary_term)

    path = _policy_path(data.get("policy_id"))
    if client.major_version < 6:
        raise ApiError(f"error creating policy mapping: {_UNSUPPORTED}")
    retry = _RETRY_STATUS_CODES if client.major_version >= 7 else None
    try:
        payload = client.perform_request(
            "PUT", path, body=policy_json, params=params or None, retry_status_codes=retry
        )
    except ApiError as exc:
        inner = f"error putting policy: {path} : {policy_json} : {exc}"
        raise _rewrap(exc, f"error creating policy mapping: {inner}") from exc
    return PutPolicyResponse.from_json(payload)