import json
from unittest import mock

import pytest
import responses

from esprovision.transport import ApiClient, ApiError, NotFoundError, expand_path

BASE = "http://localhost:9200"


@pytest.fixture
def mocked():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


@pytest.fixture
def client():
    return ApiClient(BASE, 7)


def test_expand_path_substitutes_value():
    path = expand_path("/_opendistro/_alerting/monitors/{id}", {"id": "abc"})
    assert path == "/_opendistro/_alerting/monitors/abc"


def test_expand_path_encodes_reserved_characters():
    assert expand_path("/x/{id}", {"id": "a b/c"}) == "/x/a%20b%2Fc"


def test_expand_path_multiple_placeholders():
    path = expand_path("/_opendistro/_ism/{action}/{indexes}", {"action": "add", "indexes": "ingest-*"})
    assert path.startswith("/_opendistro/_ism/add/")
    assert "ingest-" in path


def test_expand_path_missing_value_is_empty():
    assert expand_path("/x/{id}", {}) == "/x/"


def test_expand_path_rejects_malformed_template():
    with pytest.raises(ValueError):
        expand_path("/x/{id", {"id": "a"})


def test_perform_request_returns_decoded_json(mocked, client):
    mocked.add(responses.GET, BASE + "/thing", json={"a": 1})
    assert client.perform_request("GET", "/thing") == {"a": 1}


def test_perform_request_sends_string_body_and_params(mocked, client):
    mocked.add(responses.PUT, BASE + "/thing", json={"ok": True})
    result = client.perform_request("PUT", "/thing", body='{"x": 2}', params={"if_seq_no": "1"})
    assert result == {"ok": True}
    request = mocked.calls[0].request
    assert json.loads(request.body) == {"x": 2}
    assert request.headers["Content-Type"] == "application/json"
    assert "if_seq_no=1" in request.url


def test_not_found_raises_not_found_error(mocked, client):
    mocked.add(responses.GET, BASE + "/missing", status=404, json={"found": False})
    with pytest.raises(NotFoundError) as info:
        client.perform_request("GET", "/missing")
    assert info.value.status == 404


def test_bad_request_raises_api_error(mocked, client):
    mocked.add(responses.PUT, BASE + "/bad", status=400, json={"error": "nope"})
    with pytest.raises(ApiError, match="Error 400") as info:
        client.perform_request("PUT", "/bad", body="{}")
    assert not isinstance(info.value, NotFoundError)


def test_retry_status_codes_are_retried(mocked, client):
    mocked.add(responses.PUT, BASE + "/retry", status=409)
    mocked.add(responses.PUT, BASE + "/retry", json={"status": "OK"})
    with mock.patch("esprovision.transport.time.sleep") as sleep:
        result = client.perform_request("PUT", "/retry", body="{}", retry_status_codes=[409])
    assert result == {"status": "OK"}
    assert len(mocked.calls) == 2
    assert sleep.call_count == 1
    delay = sleep.call_args[0][0]
    assert 0.1 <= delay <= 0.2


def test_unlisted_status_is_not_retried(mocked, client):
    mocked.add(responses.PUT, BASE + "/conflict", status=409)
    with pytest.raises(ApiError) as info:
        client.perform_request("PUT", "/conflict")
    assert info.value.status == 409
    assert len(mocked.calls) == 1


def test_index_exists(mocked, client):
    mocked.add(responses.HEAD, BASE + "/.kibana", status=200)
    mocked.add(responses.HEAD, BASE + "/absent", status=404)
    assert client.index_exists(".kibana") is True
    assert client.index_exists("absent") is False


def test_create_index_returns_acknowledgement(mocked, client):
    mocked.add(responses.PUT, BASE + "/.kibana", json={"acknowledged": True})
    result = client.create_index(".kibana", '{"mappings":{}}')
    assert result["acknowledged"] is True
    assert json.loads(mocked.calls[0].request.body) == {"mappings": {}}


def test_get_document_paths_depend_on_version(mocked):
    mocked.add(responses.GET, BASE + "/.kibana/_doc/obj", json={"_id": "obj", "found": True})
    mocked.add(responses.GET, BASE + "/.kibana/doc/obj", json={"_id": "obj", "found": True})
    assert ApiClient(BASE, 7).get_document(".kibana", "obj", "doc")["_id"] == "obj"
    assert ApiClient(BASE, 6).get_document(".kibana", "obj", "doc")["found"] is True
    assert mocked.calls[0].request.url.endswith("/.kibana/_doc/obj")
    assert mocked.calls[1].request.url.endswith("/.kibana/doc/obj")


def test_index_document_sends_json(mocked, client):
    mocked.add(responses.PUT, BASE + "/.kibana/_doc/obj", json={"result": "created"})
    mocked.add(
        responses.GET,
        BASE + "/.kibana/_doc/obj",
        json={"_id": "obj", "found": True, "_source": {"title": "cloudwatch-*"}},
    )
    client.index_document(".kibana", "obj", {"title": "cloudwatch-*"})
    assert json.loads(mocked.calls[0].request.body) == {"title": "cloudwatch-*"}
    stored = client.get_document(".kibana", "obj")
    assert stored["_source"] == {"title": "cloudwatch-*"}


def test_delete_document_missing_raises(mocked, client):
    mocked.add(responses.DELETE, BASE + "/.kibana/_doc/gone", status=404)
    with pytest.raises(NotFoundError):
        client.delete_document(".kibana", "gone")