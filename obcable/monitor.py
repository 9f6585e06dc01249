"""Supervision of the observer process: liveness checks and shutdown."""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Optional

import psutil

log = logging.getLogger(__name__)

PROCESS_OBSERVER = "observer"
GRACEFUL_TIME = 10.0
TICK_TIME = 5.0
KILL_DELAY = 2.0


@dataclass
class ObserverState:
    """Flags shared between the monitor and the HTTP handlers."""

    ob_started: bool = False
    paused: bool = False
    liveness: bool = False
    readiness: bool = False


def _matches(proc: psutil.Process, name: str) -> bool:
    info = getattr(proc, "info", None) or {}
    if info.get("name") == name:
        return True
    cmdline = info.get("cmdline") or []
    return bool(cmdline) and os.path.basename(cmdline[0]) == name


def _processes(name: str) -> Iterator[psutil.Process]:
    own_pid = os.getpid()
    for proc in psutil.process_iter(["name", "cmdline"]):
        if proc.pid == own_pid and name != proc.info.get("name"):
            continue
        try:
            if _matches(proc, name):
                yield proc
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue


def process_running(name: str) -> bool:
    """Tell whether any process with the given name is running."""
    return any(True for _ in _processes(name))


def _signal_all(name: str, action: Callable[[psutil.Process], None]) -> int:
    count = 0
    for proc in _processes(name):
        try:
            action(proc)
        except psutil.NoSuchProcess:
            continue
        count += 1
    if count == 0:
        raise ProcessLookupError(f"no process named {name!r}")
    return count


def terminate_process(name: str) -> int:
    """Ask every process with the given name to terminate; return how many were signalled."""
    return _signal_all(name, psutil.Process.terminate)


def kill_process(name: str) -> int:
    """Kill every process with the given name; return how many were signalled."""
    return _signal_all(name, psutil.Process.kill)


def _exit_now() -> None:
    os._exit(1)


class ObserverMonitor:
    """Watches the observer process and keeps the liveness flag up to date."""

    graceful_time: float = GRACEFUL_TIME
    tick_time: float = TICK_TIME
    kill_delay: float = KILL_DELAY

    def __init__(
        self,
        state: ObserverState,
        is_running: Optional[Callable[[str], bool]] = None,
        on_exit: Optional[Callable[[], None]] = None,
        process_name: str = PROCESS_OBSERVER,
    ) -> None:
        self.state = state
        self.is_running = is_running or process_running
        self.on_exit = on_exit or _exit_now
        self.process_name = process_name

    def check_once(self) -> bool:
        """Run one check; return True when the observer counts as alive."""
        if self.is_running(self.process_name) or self.state.paused:
            self.state.liveness = True
            return True
        log.info("not Paused")
        self.on_exit()
        return False

    def run(self, stop_event: threading.Event) -> None:
        """Check periodically after a grace period until ``stop_event`` is set."""
        if stop_event.wait(self.graceful_time):
            return
        while not stop_event.wait(self.tick_time):
            self.check_once()

    def stop_process(self) -> None:
        """Terminate the observer, then kill it after a short delay."""
        try:
            terminate_process(self.process_name)
        except (ProcessLookupError, psutil.Error) as exc:
            log.warning("%s", exc)
        time.sleep(self.kill_delay)
        try:
            kill_process(self.process_name)
        except (ProcessLookupError, psutil.Error) as exc:
            log.warning("%s", exc)
        self.state.ob_started = False