"""Shared fixtures: a fake mail host reachable through a fake paramiko factory."""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from forwardsync.domain.models import Credentials, Target
from forwardsync.domain.sync import SessionRegistry, SyncEngine, SyncSettings

from .fakes import FakeClientFactory, FakeRemoteHost

CONFIG_PATH = "/etc/postfix/virtual"
INITIAL_CONTENT = b"alice@x.com bob@y.com\n# comment\ncarol@z.com dave@w.com,eve@w.com\n"


@pytest.fixture
def host() -> FakeRemoteHost:
    return FakeRemoteHost(files={CONFIG_PATH: INITIAL_CONTENT})


@pytest.fixture
def factory(host: FakeRemoteHost) -> FakeClientFactory:
    return FakeClientFactory({"mx1.example.com:22": host})


@pytest.fixture
def target() -> Target:
    return Target(address="mx1.example.com", path=CONFIG_PATH, port=22)


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(username="admin", password="secret", root_password="rootpw")


@pytest.fixture
def settings() -> SyncSettings:
    return SyncSettings(
        backup_settle=0,
        escalation_prompt_delay=0,
        install_settle=0,
    )


@pytest.fixture
def registry(factory: FakeClientFactory) -> SessionRegistry:
    return SessionRegistry(factory=factory)


@pytest.fixture
def engine(registry: SessionRegistry, settings: SyncSettings) -> SyncEngine:
    return SyncEngine(registry, settings)


@pytest.fixture
def authenticated(registry: SessionRegistry, target: Target, credentials: Credentials):
    """Registry holding a logged-in session for the target."""
    (_, result), = registry.authenticate_all([target], credentials)
    assert result.success
    return registry


@pytest.fixture
def scratch_tmp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Redirect tempfile to an empty directory so leftovers can be detected."""
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(scratch))
    return scratch
