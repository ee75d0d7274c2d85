"""
Shared fixtures: real SQLite stores in tmp_path, a scripted AAA transport,
and a stand-in radclient executable for subprocess-level tests.
"""

from __future__ import annotations

import logging
import stat
from dataclasses import dataclass
from pathlib import Path

import pytest

from ovpn_radius.config.schema import DatabaseSettings, PluginConfig
from ovpn_radius.sessions.store import SessionStore

OPENVPN_ENV = (
    "untrusted_ip",
    "untrusted_port",
    "trusted_ip",
    "trusted_port",
    "ifconfig_pool_remote_ip",
    "OVPN_RADIUS_CONFIG",
    "OVPN_RADIUS_AUTH_SECRET",
    "OVPN_RADIUS_ACCT_SECRET",
)

ACCEPT_LINES = [
    "Sent Access-Request Id 17 from 0.0.0.0:40000 to 127.0.0.1:1812 length 98",
    "Received Access-Accept Id 17 from 127.0.0.1:1812 to 0.0.0.0:0 length 40",
    "\tClass = 0x737461666631",
]
REJECT_LINES = [
    "Sent Access-Request Id 18 from 0.0.0.0:40000 to 127.0.0.1:1812 length 98",
    "Received Access-Reject Id 18 from 127.0.0.1:1812 to 0.0.0.0:0 length 20",
]
ACK_LINES = [
    "Sent Accounting-Request Id 9 from 0.0.0.0:40001 to 127.0.0.1:1813 length 110",
    "Received Accounting-Response Id 9 from 127.0.0.1:1813 to 0.0.0.0:0 length 20",
]
NO_ACK_LINES = [
    "Sent Accounting-Request Id 9 from 0.0.0.0:40001 to 127.0.0.1:1813 length 110",
    "(0) No reply from server for ID 9 socket 3",
]


@pytest.fixture(autouse=True)
def _clean_openvpn_env(monkeypatch: pytest.MonkeyPatch):
    """Keep host OpenVPN/plugin variables out of every test."""
    for name in OPENVPN_ENV:
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """The CLI replaces root handlers; put pytest's back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


@dataclass
class SentRequest:
    command: str
    server: str
    secret: str
    payload: str

    @property
    def attributes(self) -> dict[str, str]:
        pairs = (item.split("=", 1) for item in self.payload.split(","))
        return {name: value for name, value in pairs}


class FakeTransport:
    """Scripted stand-in for radclient: records requests, replays lines."""

    def __init__(
        self,
        auth_lines: list[str] | None = None,
        acct_lines: list[str] | None = None,
    ) -> None:
        self.auth_lines = ACCEPT_LINES if auth_lines is None else auth_lines
        self.acct_lines = ACK_LINES if acct_lines is None else acct_lines
        self.requests: list[SentRequest] = []

    def send(self, command: str, server: str, secret: str, payload: str) -> list[str]:
        self.requests.append(SentRequest(command, server, secret, payload))
        return list(self.auth_lines if command == "auth" else self.acct_lines)

    def sent(self, command: str) -> list[SentRequest]:
        return [r for r in self.requests if r.command == command]

    def status_types(self) -> list[str]:
        return [r.attributes["Acct-Status-Type"] for r in self.sent("acct")]


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def db_settings(tmp_path: Path) -> DatabaseSettings:
    return DatabaseSettings(
        db_path=str(tmp_path / "db" / "ovpn-radius.db"), lock_timeout=2.0
    )


@pytest.fixture
def store(db_settings: DatabaseSettings):
    s = SessionStore.from_settings(db_settings)
    try:
        yield s
    finally:
        s.close()


def make_config(tmp_path: Path, **radius_overrides) -> PluginConfig:
    radius = {
        "auth_server": "127.0.0.1:1812",
        "auth_secret": "testing123",
        "acct_server": "127.0.0.1:1813",
        "acct_secret": "testing456",
        **radius_overrides,
    }
    return PluginConfig.model_validate(
        {
            "server": {"identifier": "vpn-gw-test", "ip_address": "192.0.2.10"},
            "logging": {"log_file": str(tmp_path / "log" / "ovpn-radius.log")},
            "radius": radius,
            "database": {"db_path": str(tmp_path / "db" / "ovpn-radius.db")},
        }
    )


@pytest.fixture
def plugin_config(tmp_path: Path) -> PluginConfig:
    return make_config(tmp_path)


_RADCLIENT_TEMPLATE = """#!/bin/sh
# radclient stand-in: $1=-x $2=server $3=command $4=secret
payload=$(cat)
printf '%s %s %s\\n' "$3" "$2" "$payload" >> "{calls}"
case "$3" in
  auth)
    printf 'Sent Access-Request Id 1 from 0.0.0.0:40000 to %s length 80\\n' "$2"
    {auth_reply}
    ;;
  acct)
    printf 'Sent Accounting-Request Id 2 from 0.0.0.0:40001 to %s length 90\\n' "$2"
    {acct_reply}
    ;;
esac
{tail}
"""


@dataclass
class RadclientStub:
    path: Path
    calls_file: Path

    def calls(self) -> list[str]:
        if not self.calls_file.exists():
            return []
        return self.calls_file.read_text(encoding="utf-8").splitlines()


def write_radclient_stub(
    directory: Path,
    *,
    accept: bool = True,
    class_hex: str | None = "737461666631",
    acknowledge: bool = True,
    exit_status: int = 0,
    sleep_seconds: float = 0,
    silent: bool = False,
) -> RadclientStub:
    directory.mkdir(parents=True, exist_ok=True)
    calls = directory / "radclient-calls.txt"
    script = directory / "radclient"
    if silent:
        body = "#!/bin/sh\ncat > /dev/null\nexit 0\n"
    else:
        if accept:
            auth_reply = (
                "printf 'Received Access-Accept Id 1 from %s to 0.0.0.0:0 length 40\\n' \"$2\""
            )
            if class_hex:
                auth_reply += f"\n    printf '\\tClass = 0x{class_hex}\\n'"
        else:
            auth_reply = (
                "printf 'Received Access-Reject Id 1 from %s to 0.0.0.0:0 length 20\\n' \"$2\""
            )
        acct_reply = (
            "printf 'Received Accounting-Response Id 2 from %s to 0.0.0.0:0 length 20\\n' \"$2\""
            if acknowledge
            else "printf '(0) No reply from server for ID 2\\n'"
        )
        if sleep_seconds:
            tail = f"exec sleep {sleep_seconds}"
        else:
            tail = f"exit {exit_status}"
        body = _RADCLIENT_TEMPLATE.format(
            calls=calls, auth_reply=auth_reply, acct_reply=acct_reply, tail=tail
        )
    script.write_text(body, encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return RadclientStub(path=script, calls_file=calls)


@pytest.fixture
def radclient_stub(tmp_path: Path) -> RadclientStub:
    return write_radclient_stub(tmp_path / "bin")


@pytest.fixture
def config_factory(tmp_path: Path):
    def _factory(**radius_overrides) -> PluginConfig:
        return make_config(tmp_path, **radius_overrides)

    return _factory


@pytest.fixture
def stub_factory(tmp_path: Path):
    def _factory(**kwargs) -> RadclientStub:
        return write_radclient_stub(tmp_path / "bin", **kwargs)

    return _factory


@pytest.fixture
def transport_factory():
    return FakeTransport
