"""Builders for radclient attribute payloads.

radclient reads one request per line as comma-separated ``Name=value``
pairs. Values are passed through unquoted except the password, which is
single-quoted so commas and spaces survive.
"""

from __future__ import annotations

from collections.abc import Iterable

from ovpn_radius.config.schema import ServerSettings
from ovpn_radius.sessions.models import SessionRecord

from .constants import (
    ACCESS_ACCEPT,
    ACCT_STATUS_STOP,
    ATTR_ACCT_SESSION_ID,
    ATTR_ACCT_STATUS_TYPE,
    ATTR_ACCT_TERMINATE_CAUSE,
    ATTR_CALLING_STATION_ID,
    ATTR_CLASS,
    ATTR_FRAMED_IP_ADDRESS,
    ATTR_FRAMED_PROTOCOL,
    ATTR_MESSAGE_AUTHENTICATOR,
    ATTR_NAS_IDENTIFIER,
    ATTR_NAS_IP_ADDRESS,
    ATTR_NAS_PORT_TYPE,
    ATTR_RESPONSE_PACKET_TYPE,
    ATTR_SERVICE_TYPE,
    ATTR_USER_NAME,
    ATTR_USER_PASSWORD,
    FRAMED_PROTOCOL_PPP,
    MESSAGE_AUTHENTICATOR_PLACEHOLDER,
    TERMINATE_CAUSE_USER_REQUEST,
)

Attribute = tuple[str, str]


def format_attributes(attributes: Iterable[Attribute]) -> str:
    return ",".join(f"{name}={value}" for name, value in attributes)


def _quote_password(password: str) -> str:
    return "'" + password.replace("\\", "\\\\").replace("'", "\\'") + "'"


def build_auth_request(server: ServerSettings, username: str, password: str) -> str:
    """Access-Request payload for ``username``/``password``."""
    return format_attributes(
        [
            (ATTR_RESPONSE_PACKET_TYPE, ACCESS_ACCEPT),
            (ATTR_NAS_IDENTIFIER, server.identifier),
            (ATTR_NAS_PORT_TYPE, server.port_type),
            (ATTR_NAS_IP_ADDRESS, server.ip_address),
            (ATTR_SERVICE_TYPE, server.service_type),
            (ATTR_USER_NAME, username),
            (ATTR_USER_PASSWORD, _quote_password(password)),
            (ATTR_FRAMED_PROTOCOL, FRAMED_PROTOCOL_PPP),
            (ATTR_MESSAGE_AUTHENTICATOR, MESSAGE_AUTHENTICATOR_PLACEHOLDER),
        ]
    )


def build_acct_request(
    server: ServerSettings,
    record: SessionRecord,
    status_type: str,
    acct_session_id: int,
    *,
    terminate_cause: str = TERMINATE_CAUSE_USER_REQUEST,
) -> str:
    """Accounting-Request payload for ``record``.

    ``Class`` is echoed exactly as the server issued it and is omitted when
    the session has none. Stop requests carry a termination cause.
    """
    attributes: list[Attribute] = []
    if record.class_tag:
        attributes.append((ATTR_CLASS, record.class_tag))
    attributes.extend(
        [
            (ATTR_ACCT_SESSION_ID, str(acct_session_id)),
            (ATTR_ACCT_STATUS_TYPE, status_type),
            (ATTR_USER_NAME, record.principal),
            (ATTR_CALLING_STATION_ID, server.ip_address),
            (ATTR_NAS_IDENTIFIER, server.identifier),
        ]
    )
    if record.endpoint:
        attributes.append((ATTR_FRAMED_IP_ADDRESS, record.endpoint))
    if status_type == ACCT_STATUS_STOP:
        attributes.append((ATTR_ACCT_TERMINATE_CAUSE, terminate_cause))
    return format_attributes(attributes)
