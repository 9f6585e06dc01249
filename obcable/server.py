"""HTTP control endpoint of the observer sidecar."""

from __future__ import annotations

import argparse
import json
import logging
import shlex
import signal
import subprocess
import threading
import time
from collections.abc import Callable, Mapping
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Optional, Union
from urllib.parse import urlsplit

import psutil

from obcable.dirs import DEFAULT_ROOT, init_dirs
from obcable.monitor import ObserverMonitor, ObserverState

log = logging.getLogger(__name__)

DEFAULT_PORT = 19001
RESPONSE_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
}
NOT_FOUND_BODY = b"404 page not found"

Starter = Callable[[dict[str, Any]], None]
InfoProvider = Callable[[], Any]
Body = Union[bytes, str, None]


def _nic_info() -> dict[str, list[str]]:
    """Addresses of every network interface, keyed by interface name."""
    return {
        name: [addr.address for addr in addrs]
        for name, addrs in psutil.net_if_addrs().items()
    }


def _parse_params(body: Body) -> dict[str, Any]:
    if body is None:
        return {}
    if isinstance(body, bytes):
        body = body.decode("utf-8")
    if not body.strip():
        return {}
    params = json.loads(body)
    if not isinstance(params, Mapping):
        raise ValueError("start parameters must be a JSON object")
    return dict(params)


def _flag_response(name: str, flag: bool) -> tuple[int, Any]:
    code = 200 if flag else 400
    log.debug("%s is %s, answering %d", name, flag, code)
    return code, {}


class _HTTPServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, address: tuple[str, int], cable: "CableServer") -> None:
        self.cable = cable
        super().__init__(address, _RequestHandler)


class _RequestHandler(BaseHTTPRequestHandler):
    server: _HTTPServer

    def _dispatch(self) -> None:
        started = time.monotonic()
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length > 0 else b""
        code, payload = self.server.cable.handle(self.command, self.path, body)
        self.send_response(code)
        if code == 404:
            self.send_header("Content-Type", "text/plain")
        else:
            for key, value in RESPONSE_HEADERS.items():
                self.send_header(key, value)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)
        log.info(
            "%s %d %s %s %.6fs",
            self.client_address[0],
            code,
            self.command,
            urlsplit(self.path).path,
            time.monotonic() - started,
        )

    do_GET = do_POST = do_PUT = do_DELETE = do_PATCH = _dispatch

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
        log.debug(format, *args)


class CableServer:
    """Serves the system and observer control API on a TCP port."""

    def __init__(
        self,
        state: ObserverState,
        starter: Starter,
        info: Optional[InfoProvider] = None,
        port: int = DEFAULT_PORT,
    ) -> None:
        self.state = state
        self.starter = starter
        self.info = info or _nic_info
        self.port = port
        self.monitor = ObserverMonitor(state)
        self._stop_event = threading.Event()
        self._httpd: Optional[_HTTPServer] = None
        self._thread: Optional[threading.Thread] = None
        self._routes: dict[tuple[str, str], Callable[[Body], tuple[int, Any]]] = {
            ("GET", "/api/system/info"): self._info,
            ("POST", "/api/system/paused"): self._paused,
            ("POST", "/api/system/rework"): self._rework,
            ("POST", "/api/ob/start"): self._ob_start,
            ("POST", "/api/ob/stop"): self._ob_stop,
            ("GET", "/api/ob/status"): self._ob_status,
            ("GET", "/api/ob/readiness"): self._ob_readiness,
            ("POST", "/api/ob/readinessUpdate"): self._ob_readiness_update,
        }

    # --- routes ------------------------------------------------------------

    def _info(self, body: Body) -> tuple[int, Any]:
        return 200, self.info()

    def _paused(self, body: Body) -> tuple[int, Any]:
        self.state.paused = True
        log.info("Paused is %s", self.state.paused)
        return 200, {}

    def _rework(self, body: Body) -> tuple[int, Any]:
        self.state.paused = False
        log.info("Paused is %s", self.state.paused)
        return 200, {}

    def _run_starter(self, params: dict[str, Any]) -> None:
        try:
            self.starter(params)
        except Exception:
            log.exception("observer start failed")

    def _ob_start(self, body: Body) -> tuple[int, Any]:
        params = _parse_params(body)
        log.info("%s", json.dumps(params))
        if self.state.ob_started:
            return 400, {}
        threading.Thread(target=self._run_starter, args=(params,), daemon=True).start()
        threading.Thread(
            target=self.monitor.run, args=(self._stop_event,), daemon=True
        ).start()
        self.state.ob_started = True
        return 200, {}

    def _ob_stop(self, body: Body) -> tuple[int, Any]:
        threading.Thread(target=self.monitor.stop_process, daemon=True).start()
        return 200, {}

    def _ob_status(self, body: Body) -> tuple[int, Any]:
        return _flag_response("liveness", self.state.liveness)

    def _ob_readiness(self, body: Body) -> tuple[int, Any]:
        return _flag_response("readiness", self.state.readiness)

    def _ob_readiness_update(self, body: Body) -> tuple[int, Any]:
        self.state.readiness = True
        return 200, {}

    # --- public API --------------------------------------------------------

    def handle(self, method: str, path: str, body: Body = None) -> tuple[int, bytes]:
        """Answer one request; return the status code and the response body."""
        route = self._routes.get((method.upper(), urlsplit(path).path))
        if route is None:
            return 404, NOT_FOUND_BODY
        try:
            code, data = route(body)
        except Exception as exc:
            log.error("[Error Info] %s", exc)
            code, data = 400, {}
        return code, json.dumps(data, separators=(",", ":")).encode("utf-8")

    def start(self) -> None:
        """Reset the flags and serve requests in a background thread."""
        if self._httpd is not None:
            raise RuntimeError("server already started")
        self.state.readiness = False
        self.state.ob_started = False
        self._stop_event.clear()
        self._httpd = _HTTPServer(("", self.port), self)
        self.port = self._httpd.server_address[1]
        self._thread = threading.Thread(target=self._httpd.serve_forever, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop serving and end the monitor loop."""
        self._stop_event.set()
        if self._httpd is None:
            return
        self._httpd.shutdown()
        self._httpd.server_close()
        if self._thread is not None:
            self._thread.join()
        self._httpd = None
        self._thread = None


def _command_starter(command: str) -> Starter:
    args = shlex.split(command)

    def start(params: dict[str, Any]) -> None:
        subprocess.run([*args, json.dumps(params)], check=False)

    return start


def main(argv: Optional[list[str]] = None) -> int:
    """Prepare directories, serve the control API and wait for a signal."""
    parser = argparse.ArgumentParser(description="Observer sidecar control server.")
    parser.add_argument("--root", default=DEFAULT_ROOT, help="home directory of the observer")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to listen on")
    parser.add_argument(
        "--start-command",
        default="observer",
        help="command that starts the observer; the start parameters are "
        "appended as one JSON argument",
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    state = ObserverState(paused=False)
    init_dirs(args.root)
    server = CableServer(state, _command_starter(args.start_command), port=args.port)
    server.start()

    done = threading.Event()

    def _on_signal(signum: int, frame: Any) -> None:
        done.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, _on_signal)
    done.wait()
    server.stop()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())