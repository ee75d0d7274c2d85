"""AAA transport: the FreeRADIUS ``radclient`` utility run as a subprocess."""

from __future__ import annotations

import subprocess
from typing import Protocol

from ovpn_radius.config.schema import RadiusSettings
from ovpn_radius.exceptions import MalformedResponseError, TransportError
from ovpn_radius.utils.logger import get_logger

from .constants import COMMAND_ACCT, COMMAND_AUTH

logger = get_logger(__name__, component="radius")


class Transport(Protocol):
    """Sends one attribute payload and returns the client's output lines."""

    def send(self, command: str, server: str, secret: str, payload: str) -> list[str]:
        ...


class RadclientTransport:
    """Run ``radclient -x <server> <command> <secret>`` with the payload on stdin."""

    def __init__(self, radclient_path: str = "/usr/bin/radclient", timeout: float | None = None):
        self.radclient_path = radclient_path
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: RadiusSettings) -> RadclientTransport:
        return cls(settings.radclient_path, timeout=settings.transport_timeout)

    def send(self, command: str, server: str, secret: str, payload: str) -> list[str]:
        if command not in (COMMAND_AUTH, COMMAND_ACCT):
            raise ValueError(f"unsupported radclient command: {command}")
        args = [self.radclient_path, "-x", server, command, secret]
        try:
            proc = subprocess.run(
                args,
                input=payload,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise TransportError(
                f"radclient timed out after {self.timeout}s",
                {"server": server, "command": command},
            ) from exc
        except OSError as exc:
            raise TransportError(
                f"unable to run {self.radclient_path}: {exc}",
                {"server": server, "command": command},
            ) from exc

        if proc.returncode != 0:
            logger.debug(
                "radclient stderr",
                event="ovpn.radius.stderr",
                stderr=proc.stderr.strip(),
            )
            raise TransportError(
                f"radclient exited with status {proc.returncode}",
                {
                    "server": server,
                    "command": command,
                    "returncode": proc.returncode,
                },
            )

        lines = proc.stdout.splitlines()
        if not any(line.strip() for line in lines):
            raise MalformedResponseError(
                "no output received from radclient",
                {"server": server, "command": command},
            )
        return lines
