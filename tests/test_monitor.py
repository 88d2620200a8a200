import json

import pytest
import responses

from esprovision.monitor import (
    MonitorResponse,
    create_monitor,
    delete_monitor,
    get_monitor,
    post_monitor,
    put_monitor,
    read_monitor,
    update_monitor,
)
from esprovision.resource import ResourceData
from esprovision.transport import ApiClient, ApiError

BASE = "http://localhost:9200"
MONITORS = BASE + "/_opendistro/_alerting/monitors/"

MONITOR_BODY = """
{
  "name": "test-monitor",
  "type": "monitor",
  "enabled": true,
  "schedule": {
    "period": {
      "interval": 1,
      "unit": "MINUTES"
    }
  },
  "inputs": [{
    "search": {
      "indices": ["*"],
      "query": {
        "size": 0,
        "aggregations": {},
        "query": {
          "bool": {
            "adjust_pure_negative":true,
            "boost":1,
            "filter": [{
              "range": {
                "@timestamp": {
                  "boost":1,
                  "from":"||-1h",
                  "to":"",
                  "include_lower":true,
                  "include_upper":true,
                  "format": "epoch_millis"
                }
              }
            }]
          }
        }
      }
    }
  }],
  "triggers": []
}
"""


@pytest.fixture
def mocked():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


@pytest.fixture
def client():
    return ApiClient(BASE, 7)


def _server_monitor():
    monitor = json.loads(MONITOR_BODY)
    monitor["last_update_time"] = 1600000000000
    return monitor


def test_create_monitor_reads_back_server_state(mocked, client):
    mocked.add(
        responses.POST,
        MONITORS,
        json={"_id": "mon-1", "_version": 1, "monitor": json.loads(MONITOR_BODY)},
    )
    mocked.add(
        responses.GET,
        MONITORS + "mon-1",
        json={"_id": "mon-1", "_version": 1, "monitor": _server_monitor()},
    )
    data = ResourceData({"body": MONITOR_BODY})
    create_monitor(data, client)
    assert data.id == "mon-1"
    assert json.loads(data.get("body")) == _server_monitor()
    assert json.loads(mocked.calls[0].request.body) == json.loads(MONITOR_BODY)


def test_read_monitor_not_found_clears_id(mocked, client):
    mocked.add(responses.GET, MONITORS + "gone", status=404)
    data = ResourceData({"body": MONITOR_BODY}, "gone")
    read_monitor(data, client)
    assert data.id == ""


def test_update_monitor_puts_then_reads(mocked, client):
    mocked.add(
        responses.PUT,
        MONITORS + "mon-1",
        json={"_id": "mon-1", "_version": 2, "monitor": json.loads(MONITOR_BODY)},
    )
    mocked.add(
        responses.GET,
        MONITORS + "mon-1",
        json={"_id": "mon-1", "_version": 2, "monitor": json.loads(MONITOR_BODY)},
    )
    data = ResourceData({"body": MONITOR_BODY}, "mon-1")
    update_monitor(data, client)
    assert [call.request.method for call in mocked.calls] == ["PUT", "GET"]
    assert json.loads(data.get("body"))["name"] == "test-monitor"


def test_delete_monitor_sends_delete(mocked, client):
    mocked.add(responses.DELETE, MONITORS + "mon-1", json={"result": "deleted"})
    mocked.add(responses.GET, MONITORS + "mon-1", status=404)
    data = ResourceData({"body": MONITOR_BODY}, "mon-1")
    delete_monitor(data, client)
    assert mocked.calls[0].request.method == "DELETE"
    assert mocked.calls[0].request.url == MONITORS + "mon-1"
    read_monitor(data, client)
    assert data.id == ""


def test_get_monitor_returns_response(mocked, client):
    mocked.add(
        responses.GET,
        MONITORS + "mon-1",
        json={"_id": "mon-1", "_version": 3, "monitor": {"name": "test-monitor"}},
    )
    response = get_monitor("mon-1", client)
    assert response == MonitorResponse(id="mon-1", version=3, monitor={"name": "test-monitor"})


def test_post_and_put_on_elastic_6(mocked):
    client = ApiClient(BASE, 6)
    mocked.add(responses.POST, MONITORS, json={"_id": "m6", "_version": 1, "monitor": {}})
    mocked.add(responses.PUT, MONITORS + "m6", json={"_id": "m6", "_version": 2, "monitor": {}})
    data = ResourceData({"body": MONITOR_BODY})
    assert post_monitor(data, client).id == "m6"
    data.id = "m6"
    assert put_monitor(data, client).version == 2


def test_unsupported_version_raises(client):
    with pytest.raises(ApiError, match="prior to Elastic v6"):
        get_monitor("mon-1", ApiClient(BASE, 5))


def test_malformed_monitor_body_raises(mocked, client):
    mocked.add(responses.GET, MONITORS + "mon-1", json=[1, 2])
    with pytest.raises(ApiError, match="error unmarshalling monitor body"):
        get_monitor("mon-1", client)