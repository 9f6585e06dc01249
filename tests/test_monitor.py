import threading

import psutil
import pytest

from obcable.monitor import (
    PROCESS_OBSERVER,
    ObserverMonitor,
    ObserverState,
    kill_process,
    process_running,
    terminate_process,
)

MISSING = "no-such-process-obcable-test"


class _Exit:
    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1


def test_state_defaults():
    state = ObserverState()
    assert (state.ob_started, state.paused, state.liveness, state.readiness) == (
        False,
        False,
        False,
        False,
    )


def test_default_process_name():
    monitor = ObserverMonitor(ObserverState())
    assert monitor.process_name == "observer" == PROCESS_OBSERVER


def test_process_running_finds_current_process():
    assert process_running(psutil.Process().name()) is True


def test_process_running_missing():
    assert process_running(MISSING) is False


def test_terminate_missing_raises():
    with pytest.raises(ProcessLookupError):
        terminate_process(MISSING)


def test_kill_missing_raises():
    with pytest.raises(ProcessLookupError):
        kill_process(MISSING)


def test_check_once_running_sets_liveness():
    state = ObserverState()
    exit_hook = _Exit()
    monitor = ObserverMonitor(state, lambda name: True, exit_hook)
    assert monitor.check_once() is True
    assert state.liveness is True
    assert exit_hook.calls == 0


def test_check_once_paused_keeps_alive():
    state = ObserverState(paused=True)
    exit_hook = _Exit()
    monitor = ObserverMonitor(state, lambda name: False, exit_hook)
    assert monitor.check_once() is True
    assert state.liveness is True
    assert exit_hook.calls == 0


def test_check_once_dead_and_not_paused_exits():
    state = ObserverState()
    exit_hook = _Exit()
    monitor = ObserverMonitor(state, lambda name: False, exit_hook)
    assert monitor.check_once() is False
    assert exit_hook.calls == 1
    assert state.liveness is False


def test_check_uses_process_name():
    seen = []
    monitor = ObserverMonitor(ObserverState(), lambda name: seen.append(name) or True,
                              _Exit(), process_name="custom")
    monitor.check_once()
    assert seen == ["custom"]


def test_run_stops_before_grace_period():
    calls = []
    monitor = ObserverMonitor(ObserverState(), lambda name: calls.append(name) or True, _Exit())
    stop = threading.Event()
    stop.set()
    monitor.run(stop)
    assert calls == []


def test_run_checks_periodically_until_stopped():
    stop = threading.Event()
    calls = []

    def is_running(name):
        calls.append(name)
        if len(calls) >= 3:
            stop.set()
        return True

    state = ObserverState()
    monitor = ObserverMonitor(state, is_running, _Exit())
    monitor.graceful_time = 0
    monitor.tick_time = 0.01
    worker = threading.Thread(target=monitor.run, args=(stop,))
    worker.start()
    worker.join(timeout=5)
    assert not worker.is_alive()
    assert len(calls) == 3
    assert state.liveness is True


def test_stop_process_clears_started_flag():
    state = ObserverState(ob_started=True)
    monitor = ObserverMonitor(state, lambda name: False, _Exit(), process_name=MISSING)
    monitor.kill_delay = 0
    monitor.stop_process()
    assert state.ob_started is False