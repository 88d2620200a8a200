"""Kibana saved objects stored directly as documents in the Kibana index."""

from __future__ import annotations

import json
import logging
from enum import IntEnum
from typing import Any

from esprovision.resource import ResourceData, normalize_json
from esprovision.transport import ApiClient, ApiError, NotFoundError

log = logging.getLogger(__name__)

DEFAULT_INDEX = ".kibana"
DEPRECATED_DOC_TYPE = "doc"
REQUIRED_KEYS = ("_source", "_id")
_EMPTY_MAPPINGS = '{"mappings":{}}'
_UNSUPPORTED = "Elasticsearch version not supported"


class IndexCreation(IntEnum):
    """Outcome of making sure the Kibana index exists."""

    CREATED = 0
    EXISTS = 1
    CREATION_FAILED = 2


def validate_body(value: Any) -> list[dict[str, Any]]:
    """Check a body holds a JSON array of objects with the required keys.

    Returns the parsed objects; raises TypeError if the value is not a string
    and ValueError listing every problem found otherwise.
    """
    if not isinstance(value, str):
        raise TypeError("expected type of body to be string")
    try:
        normalize_json(value)
    except ValueError as exc:
        raise ValueError(f'"body" contains an invalid JSON: {exc}') from exc
    try:
        body = json.loads(value)
    except json.JSONDecodeError as exc:
        raise ValueError(f'"body" must be an array of objects: {exc}') from exc
    if not isinstance(body, list):
        raise ValueError(
            f'"body" must be an array of objects: got {type(body).__name__}'
        )

    problems: list[str] = []
    for entry in body:
        if not isinstance(entry, dict):
            problems.append("entries must be objects")
            continue
        problems.extend(
            f'object must have the "{key}" key' for key in REQUIRED_KEYS if entry.get(key) is None
        )
    if problems:
        raise ValueError("; ".join(problems))
    return body


def object_type_or_default(document: dict[str, Any]) -> str:
    """Return the document's deprecated ``_type``, or ``doc`` when it has none."""
    object_type = document.get("_type")
    return DEPRECATED_DOC_TYPE if object_type is None else str(object_type)


def _require_supported(client: ApiClient) -> None:
    if client.major_version < 6:
        raise ApiError(_UNSUPPORTED)


def _index(data: ResourceData) -> str:
    return data.get("index") or DEFAULT_INDEX


def _first_object(data: ResourceData) -> tuple[dict[str, Any], str]:
    """Return the first object of the body and its ``_id``."""
    body_string = data.get("body") or ""
    try:
        body = json.loads(body_string)
    except json.JSONDecodeError as exc:
        log.warning("Failed to unmarshal body: %s", body_string)
        raise ValueError(f"invalid body: {exc}") from exc
    if not isinstance(body, list) or not body:
        raise ValueError("body must be a non-empty array of objects")
    first = body[0]
    if not isinstance(first, dict):
        raise ValueError(f"expected {first!r} to be an object")
    doc_id = first.get("_id")
    if not isinstance(doc_id, str):
        raise ValueError('object must have a string "_id"')
    return first, doc_id


def create_index_if_not_exists(
    client: ApiClient, index: str, mapping_index: str
) -> IndexCreation:
    """Create ``mapping_index`` with empty mappings unless ``index`` exists."""
    log.info("create_index_if_not_exists %s", index)
    if client.index_exists(index):
        return IndexCreation.EXISTS
    answer = client.create_index(mapping_index, body=_EMPTY_MAPPINGS)
    if isinstance(answer, dict) and answer.get("acknowledged"):
        return IndexCreation.CREATED
    return IndexCreation.CREATION_FAILED


def create_kibana_object(data: ResourceData, client: ApiClient) -> None:
    """Make sure the index exists, then store the object and record its id."""
    index = _index(data)
    _require_supported(client)
    outcome = create_index_if_not_exists(client, index, index)
    if outcome is IndexCreation.CREATED:
        log.info("Created new kibana index")
    elif outcome is IndexCreation.CREATION_FAILED:
        raise ApiError("fail to create the Elasticsearch index")

    data.id = put_kibana_object(data, client)
    log.info("Object ID: %s", data.id)


def read_kibana_object(data: ResourceData, client: ApiClient) -> None:
    """Refresh the body from the stored document, clearing the id if it is gone."""
    original, doc_id = _first_object(data)
    object_type = object_type_or_default(original)
    index = _index(data)
    _require_supported(client)

    try:
        result = client.get_document(index, doc_id, doc_type=object_type)
    except NotFoundError:
        log.warning("Kibana Object (%s) not found, removing from state", doc_id)
        data.id = ""
        return

    if not isinstance(result, dict):
        raise ApiError(f"error unmarshalling kibana object: {result!r}")

    data.set("index", index)
    # The API handles one object; keep only the keys the configuration used.
    state = [{key: result.get(key) for key in original}]
    data.set("body", json.dumps(state, sort_keys=True, separators=(",", ":")))


def update_kibana_object(data: ResourceData, client: ApiClient) -> None:
    put_kibana_object(data, client)


def delete_kibana_object(data: ResourceData, client: ApiClient) -> None:
    """Delete the stored document; a missing document raises NotFoundError."""
    original, doc_id = _first_object(data)
    object_type = object_type_or_default(original)
    index = _index(data)
    _require_supported(client)
    client.delete_document(index, doc_id, doc_type=object_type)


def put_kibana_object(data: ResourceData, client: ApiClient) -> str:
    """Store the ``_source`` of the first object and return its id."""
    original, doc_id = _first_object(data)
    object_type = object_type_or_default(original)
    index = _index(data)
    _require_supported(client)
    client.index_document(index, doc_id, original.get("_source"), doc_type=object_type)
    return doc_id