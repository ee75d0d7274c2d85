"""Data models for VPN client sessions."""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any


class SessionState(str, Enum):
    """Lifecycle position of a session key.

    ``UNAUTHENTICATED`` and ``ACCOUNTING_STOPPED`` have no stored record;
    they exist so log entries and callers can name every phase boundary.
    """

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    ACCOUNTING_STARTED = "accounting_started"
    ACCOUNTING_STOPPED = "accounting_stopped"


@dataclass(frozen=True)
class SessionRecord:
    """Persisted state for one client connection."""

    key: str
    principal: str
    endpoint: str | None = None
    class_tag: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def state(self) -> SessionState:
        if self.endpoint:
            return SessionState.ACCOUNTING_STARTED
        return SessionState.AUTHENTICATED

    def with_endpoint(self, endpoint: str) -> SessionRecord:
        return replace(self, endpoint=endpoint)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for name in ("created_at", "updated_at"):
            if data[name] is not None:
                data[name] = data[name].isoformat()
        data["state"] = self.state.value
        return data

    def __str__(self) -> str:
        return f"SessionRecord({self.principal}@{self.key}: {self.state.value})"
