"""Credential file written by OpenVPN for ``auth-user-pass-verify via-file``."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ovpn_radius.exceptions import CredentialError


@dataclass(frozen=True)
class Credentials:
    username: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password='***')"


def read_credentials(path: str | Path | None) -> Credentials:
    """Read the two-line username/password file at ``path``.

    Raises:
        CredentialError: no path, unreadable file, or an empty line.
    """
    if not path:
        raise CredentialError("no credential file path given")
    try:
        content = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise CredentialError(
            f"unable to read credential file: {exc}", {"path": str(path)}
        ) from exc

    lines = content.splitlines()
    username = lines[0] if lines else ""
    password = lines[1] if len(lines) > 1 else ""
    if not username or not password:
        raise CredentialError(
            "username or password is empty", {"path": str(path)}
        )
    return Credentials(username=username, password=password)
