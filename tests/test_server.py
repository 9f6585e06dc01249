import json
import threading
import urllib.error
import urllib.request

import pytest

from obcable.monitor import ObserverState
from obcable.server import NOT_FOUND_BODY, RESPONSE_HEADERS, CableServer


class _RecordingStarter:
    def __init__(self):
        self.calls = []
        self.called = threading.Event()

    def __call__(self, params):
        self.calls.append(params)
        self.called.set()


@pytest.fixture
def starter():
    return _RecordingStarter()


@pytest.fixture
def server(starter):
    cable = CableServer(ObserverState(), starter, info=lambda: {"eth0": ["10.0.0.1"]}, port=0)
    yield cable
    cable.stop()


def test_info_returns_provider_data(server):
    code, body = server.handle("GET", "/api/system/info")
    assert code == 200
    assert json.loads(body) == {"eth0": ["10.0.0.1"]}


def test_info_failure_answers_400(starter):
    def broken():
        raise RuntimeError("no nic")

    cable = CableServer(ObserverState(), starter, info=broken, port=0)
    assert cable.handle("GET", "/api/system/info") == (400, b"{}")


def test_paused_and_rework_toggle_state(server):
    assert server.handle("POST", "/api/system/paused") == (200, b"{}")
    assert server.state.paused is True
    assert server.handle("POST", "/api/system/rework") == (200, b"{}")
    assert server.state.paused is False


def test_start_runs_starter_once(server, starter):
    params = {"clusterName": "cn", "zoneName": "zone1"}
    code, _ = server.handle("POST", "/api/ob/start", json.dumps(params).encode())
    assert code == 200
    assert starter.called.wait(5)
    assert starter.calls == [params]
    assert server.state.ob_started is True

    code, body = server.handle("POST", "/api/ob/start", json.dumps(params))
    assert code == 400
    assert json.loads(body) == {}
    assert len(starter.calls) == 1


def test_start_with_invalid_body_answers_400(server, starter):
    assert server.handle("POST", "/api/ob/start", b"not json")[0] == 400
    assert server.handle("POST", "/api/ob/start", b"[1, 2]")[0] == 400
    assert server.state.ob_started is False
    assert starter.calls == []


def test_status_follows_liveness(server):
    assert server.handle("GET", "/api/ob/status")[0] == 400
    server.state.liveness = True
    assert server.handle("GET", "/api/ob/status")[0] == 200


def test_readiness_update(server):
    assert server.handle("GET", "/api/ob/readiness")[0] == 400
    assert server.handle("POST", "/api/ob/readinessUpdate")[0] == 200
    assert server.state.readiness is True
    assert server.handle("GET", "/api/ob/readiness")[0] == 200


@pytest.mark.parametrize(
    "method, path",
    [
        ("GET", "/api/ob/start"),
        ("POST", "/api/ob/status"),
        ("GET", "/api/unknown"),
    ],
)
def test_unknown_route_is_404(server, method, path):
    assert server.handle(method, path) == (404, NOT_FOUND_BODY)


def test_query_string_is_ignored(server):
    server.state.liveness = True
    assert server.handle("GET", "/api/ob/status?x=1")[0] == 200


def test_start_resets_flags(server):
    server.state.readiness = True
    server.state.ob_started = True
    server.start()
    assert server.state.readiness is False
    assert server.state.ob_started is False


def test_start_twice_raises(server):
    server.start()
    with pytest.raises(RuntimeError):
        server.start()


def test_http_round_trip(server):
    server.start()
    base = f"http://127.0.0.1:{server.port}"

    request = urllib.request.Request(base + "/api/ob/readinessUpdate", data=b"", method="POST")
    with urllib.request.urlopen(request, timeout=5) as response:
        assert response.status == 200
        assert response.headers["Access-Control-Allow-Origin"] == RESPONSE_HEADERS["Access-Control-Allow-Origin"]
        assert response.headers["Content-Type"] == "application/json"
        assert json.loads(response.read()) == {}

    with urllib.request.urlopen(base + "/api/ob/readiness", timeout=5) as response:
        assert response.status == 200

    with pytest.raises(urllib.error.HTTPError) as excinfo:
        urllib.request.urlopen(base + "/api/ob/status", timeout=5)
    assert excinfo.value.code == 400


def test_stop_without_start_is_harmless(starter):
    cable = CableServer(ObserverState(), starter, port=0)
    cable.stop()
    assert cable.handle("GET", "/api/ob/status")[0] == 400