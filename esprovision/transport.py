"""HTTP access to an Elasticsearch cluster and its plugin APIs."""

from __future__ import annotations

import http.client
import json
import logging
import random
import re
import time
from collections.abc import Iterable, Iterator, Mapping
from typing import Any
from urllib.parse import quote

import requests

log = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{([A-Za-z0-9_]+)\}")

# Exponential backoff bounds for retried requests, in milliseconds.
_BACKOFF_INITIAL_MS = 100.0
_BACKOFF_MAX_MS = 30_000.0
_BACKOFF_FACTOR = 2.0


class ApiError(Exception):
    """An error reported by the cluster or raised while talking to it."""

    def __init__(self, message: str, status: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status = status
        self.body = body


class NotFoundError(ApiError):
    """The requested object does not exist (HTTP 404)."""


def expand_path(template: str, values: Mapping[str, Any]) -> str:
    """Fill ``{name}`` placeholders in a URL path, percent-encoding each value."""
    if "{" in _PLACEHOLDER.sub("", template) or "}" in _PLACEHOLDER.sub("", template):
        raise ValueError(f"malformed path template: {template!r}")

    def replace(match: re.Match[str]) -> str:
        value = values.get(match.group(1))
        return "" if value is None else quote(str(value), safe="")

    return _PLACEHOLDER.sub(replace, template)


def _backoff_delays() -> Iterator[float]:
    """Yield jittered exponential delays in seconds until the maximum is reached."""
    retry = 0
    while True:
        jitter = 1.0 + random.random()
        delay_ms = min(jitter * _BACKOFF_INITIAL_MS * _BACKOFF_FACTOR**retry, _BACKOFF_MAX_MS)
        if delay_ms >= _BACKOFF_MAX_MS:
            return
        yield delay_ms / 1000.0
        retry += 1


def _check_response(response: requests.Response) -> None:
    status = response.status_code
    if 200 <= status < 300:
        return
    reason = http.client.responses.get(status, "Unknown")
    error_class = NotFoundError if status == 404 else ApiError
    raise error_class(f"Error {status} ({reason})", status=status, body=response.text)


def _decode(response: requests.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as exc:
        raise ApiError(f"error decoding response body: {exc}", response.status_code, response.text) from exc


class ApiClient:
    """A small client for the REST API of one cluster."""

    def __init__(self, url: str, major_version: int = 7, session: requests.Session | None = None):
        self.url = url.rstrip("/")
        self.major_version = major_version
        self._session = session if session is not None else requests.Session()

    def perform_request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Mapping[str, Any] | None = None,
        retry_status_codes: Iterable[int] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON response, or None if empty.

        Responses whose status is in ``retry_status_codes`` are retried with
        exponential backoff before the final status is checked.
        """
        headers = {}
        data = None
        if body is not None:
            data = body if isinstance(body, (str, bytes)) else json.dumps(body)
            if isinstance(data, str):
                data = data.encode("utf-8")
            headers["Content-Type"] = "application/json"

        retry_on = frozenset(retry_status_codes or ())
        delays = _backoff_delays()
        while True:
            response = self._session.request(
                method, self.url + path, data=data, params=params, headers=headers
            )
            if response.status_code in retry_on:
                delay = next(delays, None)
                if delay is not None:
                    log.info("retrying %s %s after status %s", method, path, response.status_code)
                    time.sleep(delay)
                    continue
            break

        _check_response(response)
        return _decode(response)

    def index_exists(self, index: str) -> bool:
        """Tell whether an index exists."""
        try:
            self.perform_request("HEAD", expand_path("/{index}", {"index": index}))
        except NotFoundError:
            return False
        return True

    def create_index(self, index: str, body: Any = None) -> Any:
        """Create an index and return the cluster's acknowledgement."""
        return self.perform_request("PUT", expand_path("/{index}", {"index": index}), body=body)

    def _document_path(self, index: str, doc_id: str, doc_type: str | None) -> str:
        segment = "_doc" if doc_type is None or self.major_version >= 7 else doc_type
        return expand_path(
            "/{index}/{type}/{id}", {"index": index, "type": segment, "id": doc_id}
        )

    def get_document(self, index: str, doc_id: str, doc_type: str | None = None) -> Any:
        """Fetch a document; raises NotFoundError if it is missing."""
        return self.perform_request("GET", self._document_path(index, doc_id, doc_type))

    def index_document(
        self, index: str, doc_id: str, document: Any, doc_type: str | None = None
    ) -> Any:
        """Store a document under the given id."""
        return self.perform_request(
            "PUT", self._document_path(index, doc_id, doc_type), body=json.dumps(document)
        )

    def delete_document(self, index: str, doc_id: str, doc_type: str | None = None) -> Any:
        """Delete a document; raises NotFoundError if it is missing."""
        return self.perform_request("DELETE", self._document_path(index, doc_id, doc_type))