"""Tests for the fatal-failure path of the server process."""

import asyncio
import signal

import pytest

from sqlrest import main as main_module
from sqlrest import server
from sqlrest.main import create_app, handle_loop_exception


class FakeLoop:
    def __init__(self):
        self.defaulted = []

    def default_exception_handler(self, context):
        self.defaulted.append(context)


@pytest.fixture
def kills(monkeypatch):
    sent = []
    monkeypatch.setattr(main_module.os, "kill", lambda pid, sig: sent.append(sig))
    return sent


def test_unhandled_async_failure_is_fatal(db_path, kills):
    app = create_app(db_path=db_path)
    loop = FakeLoop()

    handle_loop_exception(
        app, loop, {"message": "Task exception was never retrieved", "exception": RuntimeError("x")}
    )

    assert app.state.fatal_error
    assert kills == [signal.SIGTERM]
    assert loop.defaulted == []


@pytest.mark.parametrize(
    "context",
    [
        {"message": "Executing <Handle> took 0.2 seconds"},
        {"message": "Fatal read error", "exception": ConnectionResetError()},
        {"message": "cancelled", "exception": asyncio.CancelledError()},
    ],
)
def test_benign_loop_reports_do_not_stop_the_server(db_path, kills, context):
    app = create_app(db_path=db_path)
    loop = FakeLoop()

    handle_loop_exception(app, loop, context)

    assert not app.state.fatal_error
    assert kills == []
    assert loop.defaulted == [context]


def test_main_exits_with_status_1_after_fatal_failure(monkeypatch):
    def fake_run(app, **kwargs):
        app.state.fatal_error = True

    monkeypatch.setattr(server.uvicorn, "run", fake_run)

    with pytest.raises(SystemExit) as exc_info:
        server.main()

    assert exc_info.value.code == 1


def test_main_returns_normally_after_clean_shutdown(monkeypatch):
    runs = []
    monkeypatch.setattr(server.uvicorn, "run", lambda app, **kwargs: runs.append(app))

    server.main()

    assert len(runs) == 1
    assert not runs[0].state.fatal_error
