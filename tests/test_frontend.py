"""Tests for the front end controller."""

from __future__ import annotations

import queue

import pytest

from forwardsync.adapters.frontend import Frontend
from forwardsync.core.exceptions import ConfigError, TableNotPushableError
from forwardsync.domain.models import AuthStatus, Credentials, TableStatus, Target
from forwardsync.domain.sync import (
    Authenticate,
    AuthenticationResult,
    FetchFailed,
    FetchTable,
    PushResult,
    PushTable,
    Shutdown,
    TableFetched,
    start_backend,
)

from .conftest import CONFIG_PATH

MX1 = Target(address="mx1.example.com", path=CONFIG_PATH)
MX2 = Target(address="mx2.example.com", path=CONFIG_PATH)


@pytest.fixture
def notices():
    return []


@pytest.fixture
def frontend(notices) -> Frontend:
    targets = [MX1.identity(), MX2.identity()]
    return Frontend(
        targets,
        queue.Queue(),
        queue.Queue(),
        notify=lambda level, message: notices.append((level, message)),
    )


def _sent(frontend: Frontend):
    sent = []
    while not frontend.requests.empty():
        sent.append(frontend.requests.get_nowait())
    return sent


class TestRequests:
    def test_login_marks_targets_in_progress(self, frontend) -> None:
        frontend.login(Credentials("admin", "secret", "rootpw"))

        (request,) = _sent(frontend)
        assert isinstance(request, Authenticate)
        assert request.targets == [MX1, MX2]
        assert request.targets[0] is not frontend.targets[0]
        assert all(t.auth_status == AuthStatus.IN_PROGRESS for t in frontend.targets)
        assert frontend.busy

    def test_login_subset(self, frontend) -> None:
        frontend.login(Credentials("admin", "secret", "rootpw"), frontend.select("mx2.example.com"))

        (request,) = _sent(frontend)
        assert request.targets == [MX2]
        assert frontend.targets[0].auth_status == AuthStatus.UNKNOWN

    def test_push_sends_a_snapshot(self, frontend) -> None:
        target = frontend.targets[0]
        target.table = {"alice@x.com": ["bob@y.com"]}

        frontend.push(target)
        target.table["alice@x.com"].append("later@y.com")

        (request,) = _sent(frontend)
        assert isinstance(request, PushTable)
        assert request.table == {"alice@x.com": ["bob@y.com"]}
        assert target.table_status == TableStatus.UPLOADING

    def test_push_refuses_empty_destinations(self, frontend) -> None:
        target = frontend.targets[0]
        target.table = {"alice@x.com": ["bob@y.com"], "carol@z.com": []}

        with pytest.raises(TableNotPushableError):
            frontend.push(target)

        assert _sent(frontend) == []
        assert target.table_status == TableStatus.UNKNOWN

    def test_shutdown(self, frontend) -> None:
        frontend.shutdown()

        assert _sent(frontend) == [Shutdown()]

    def test_select_unknown(self, frontend) -> None:
        with pytest.raises(ConfigError):
            frontend.select("mx7")

        assert frontend.select(None) == frontend.targets


class TestResponses:
    def test_auth_success_requests_table(self, frontend) -> None:
        frontend.apply(AuthenticationResult(target=MX1.identity(), success=True))

        target = frontend.targets[0]
        assert target.auth_status == AuthStatus.AUTHENTICATED
        assert target.table_status == TableStatus.DOWNLOADING
        assert _sent(frontend) == [FetchTable(target=MX1)]

    def test_auth_success_without_fetch(self, frontend) -> None:
        frontend.fetch_on_login = False

        frontend.apply(AuthenticationResult(target=MX1.identity(), success=True))

        assert _sent(frontend) == []

    def test_rejected_password(self, frontend, notices) -> None:
        frontend.apply(AuthenticationResult(target=MX2.identity(), success=False))

        target = frontend.targets[1]
        assert target.auth_status == AuthStatus.FAILED
        assert notices == [("error", "Authentication failed for mx2.example.com:22")]
        assert _sent(frontend) == []

    def test_transport_failure_detail(self, frontend, notices) -> None:
        frontend.apply(AuthenticationResult(target=MX2.identity(), success=False, error="refused"))

        assert notices == [("error", "Authentication failed for mx2.example.com:22: refused")]
        assert frontend.targets[1].last_error == "refused"

    def test_table_fetched(self, frontend) -> None:
        table = {"alice@x.com": ["bob@y.com"]}

        updated = frontend.apply(TableFetched(target=MX1.identity(), table=table))

        assert updated is frontend.targets[0]
        assert updated.table == table
        assert updated.table_status == TableStatus.IDLE

    def test_fetch_failure_keeps_previous_table(self, frontend, notices) -> None:
        target = frontend.targets[0]
        target.table = {"alice@x.com": ["bob@y.com"]}

        frontend.apply(FetchFailed(target=MX1.identity(), error="Error parsing file: line 1"))

        assert target.table == {"alice@x.com": ["bob@y.com"]}
        assert target.table_status == TableStatus.UNKNOWN
        assert notices[0][0] == "error"
        assert "line 1" in notices[0][1]

    def test_push_results(self, frontend, notices) -> None:
        frontend.apply(PushResult(target=MX1.identity()))
        frontend.apply(PushResult(target=MX2.identity(), error="Configuration was not updated!"))

        assert notices == [
            ("success", "Configuration updated on mx1.example.com:22"),
            ("error", "Error uploading data to mx2.example.com:22: Configuration was not updated!"),
        ]
        assert frontend.targets[1].last_error == "Configuration was not updated!"

    def test_unknown_target_is_ignored(self, frontend) -> None:
        stray = Target(address="mx3.example.com", path=CONFIG_PATH)

        assert frontend.apply(PushResult(target=stray)) is None

    def test_responses_matched_by_identity_not_order(self, frontend) -> None:
        frontend.responses.put(TableFetched(target=MX2.identity(), table={"b@x": ["2@y"]}))
        frontend.responses.put(TableFetched(target=MX1.identity(), table={"a@x": ["1@y"]}))

        assert frontend.process_pending() == 2
        assert frontend.targets[0].table == {"a@x": ["1@y"]}
        assert frontend.targets[1].table == {"b@x": ["2@y"]}

    def test_wait_idle_times_out(self, frontend) -> None:
        frontend.targets[0].table_status = TableStatus.DOWNLOADING

        with pytest.raises(TimeoutError):
            frontend.wait_idle(timeout=0.01)


def test_login_fetch_push_against_backend(engine, host, notices) -> None:
    requests, responses, thread = start_backend(engine)
    target = Target(address="mx1.example.com", path=CONFIG_PATH)
    frontend = Frontend(
        [target], requests, responses,
        notify=lambda level, message: notices.append((level, message)),
    )
    try:
        frontend.login(Credentials("admin", "secret", "rootpw"))
        frontend.wait_idle(timeout=5)
        assert target.table_status == TableStatus.IDLE
        assert target.table["alice@x.com"] == ["bob@y.com"]

        target.table["alice@x.com"].append("frank@y.com")
        frontend.push(target)
        frontend.wait_idle(timeout=5)
    finally:
        frontend.shutdown()
        thread.join(timeout=5)

    assert notices == [("success", "Configuration updated on mx1.example.com:22")]
    assert b"alice@x.com bob@y.com frank@y.com\n" in host.files[CONFIG_PATH]
