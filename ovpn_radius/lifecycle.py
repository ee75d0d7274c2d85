"""
Session lifecycle orchestration.

Each OpenVPN hook runs one phase in a fresh process:

    auth-user-pass-verify  ->  authenticate        (creates the record)
    client-connect         ->  accounting_start    (sets the endpoint, then
                                                    one Interim-Update)
    client-disconnect      ->  accounting_stop     (deletes the record)

Phases share nothing but the session key and the record store, so every
method re-reads the record it needs and never caches it.
"""

from __future__ import annotations

import random
from collections.abc import Callable

from ovpn_radius.config.schema import PluginConfig
from ovpn_radius.exceptions import CredentialError, TransportRejection
from ovpn_radius.radius.constants import (
    ACCT_SESSION_ID_MAX,
    ACCT_STATUS_INTERIM_UPDATE,
    ACCT_STATUS_START,
    ACCT_STATUS_STOP,
    COMMAND_ACCT,
    COMMAND_AUTH,
)
from ovpn_radius.radius.requests import build_acct_request, build_auth_request
from ovpn_radius.radius.response import (
    interpret_acct_response,
    interpret_auth_response,
)
from ovpn_radius.radius.transport import Transport
from ovpn_radius.sessions.models import SessionRecord, SessionState
from ovpn_radius.sessions.store import SessionStore
from ovpn_radius.utils.logger import get_logger, logging_context

logger = get_logger(__name__, component="lifecycle")


def random_acct_session_id() -> int:
    return random.randrange(ACCT_SESSION_ID_MAX)  # nosec B311: correlation id, not a secret


class SessionLifecycle:
    """Drives authenticate / start / interim-update / stop for one session key."""

    def __init__(
        self,
        config: PluginConfig,
        store: SessionStore,
        transport: Transport,
        *,
        session_id_factory: Callable[[], int] = random_acct_session_id,
    ) -> None:
        self.config = config
        self.store = store
        self.transport = transport
        self._session_id_factory = session_id_factory

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------
    def authenticate(self, key: str, username: str, password: str) -> SessionRecord | None:
        """Verify credentials and create the session record.

        Returns the created record, or None in authentication-only mode.

        Raises:
            CredentialError: empty username or password.
            TransportError / MalformedResponseError: radclient failed.
            TransportRejection: no Access-Accept.
            DuplicateSessionError: a record already exists for ``key``.
        """
        if not username or not password:
            raise CredentialError("username or password is empty")

        radius = self.config.radius
        with logging_context(session_key=key, phase="auth", username=username):
            logger.info(
                "Authenticating user",
                event="ovpn.auth.request",
                server=radius.auth_server,
            )
            lines = self.transport.send(
                COMMAND_AUTH,
                radius.auth_server,
                radius.auth_secret,
                build_auth_request(self.config.server, username, password),
            )
            verdict = interpret_auth_response(lines)
            if not verdict.accepted:
                raise TransportRejection(
                    "failed to authenticate",
                    {"username": username, "server": radius.auth_server},
                )

            logger.info(
                "User authenticated",
                event="ovpn.auth.accepted",
                class_tag=verdict.class_tag,
            )

            if radius.authentication_only:
                logger.info(
                    "Authentication-only mode; session record not stored",
                    event="ovpn.auth.record_skipped",
                )
                return None

            record = self.store.create(
                SessionRecord(key=key, principal=username, class_tag=verdict.class_tag)
            )
            logger.info(
                "Session record saved",
                event="ovpn.auth.record_saved",
                state=record.state.value,
            )
            return record

    def accounting_start(
        self, key: str, endpoint: str, acct_session_id: int | None = None
    ) -> SessionRecord:
        """Record the tunnel address, send Start, then one Interim-Update.

        Both requests carry the same Acct-Session-Id so the server can
        correlate them.
        """
        session_id = self._resolve_session_id(acct_session_id)
        with logging_context(session_key=key, phase="start", acct_session_id=session_id):
            record = self.store.get_by_key(key)
            if record.state is SessionState.ACCOUNTING_STARTED:
                logger.warning(
                    "Accounting already started for session; endpoint replaced",
                    event="ovpn.acct.restart",
                    previous_endpoint=record.endpoint,
                    endpoint=endpoint,
                )
            record = self.store.update(record.with_endpoint(endpoint))
            logger.info(
                "Session endpoint recorded",
                event="ovpn.acct.endpoint_set",
                endpoint=endpoint,
            )
            self._send_accounting(record, ACCT_STATUS_START, session_id)
        return self.accounting_update(key, session_id)

    def accounting_update(self, key: str, acct_session_id: int) -> SessionRecord:
        """Send an Interim-Update for the stored session; never mutates it."""
        with logging_context(
            session_key=key, phase="update", acct_session_id=acct_session_id
        ):
            record = self.store.get_by_key(key)
            self._send_accounting(record, ACCT_STATUS_INTERIM_UPDATE, acct_session_id)
            return record

    def accounting_stop(
        self, key: str, acct_session_id: int | None = None
    ) -> SessionRecord:
        """Send Stop and delete the record once the server acknowledged it.

        An unacknowledged Stop raises before the delete, leaving the record
        in place for inspection or a retried disconnect.
        """
        session_id = self._resolve_session_id(acct_session_id)
        with logging_context(session_key=key, phase="stop", acct_session_id=session_id):
            record = self.store.get_by_key(key)
            self._send_accounting(record, ACCT_STATUS_STOP, session_id)
            self.store.delete(record.key)
            logger.info(
                "Session record deleted",
                event="ovpn.acct.record_deleted",
                state=SessionState.ACCOUNTING_STOPPED.value,
            )
            return record

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _resolve_session_id(self, acct_session_id: int | None) -> int:
        if acct_session_id is not None:
            return acct_session_id
        return self._session_id_factory()

    def _send_accounting(
        self, record: SessionRecord, status_type: str, acct_session_id: int
    ) -> None:
        radius = self.config.radius
        logger.info(
            "Sending accounting request",
            event="ovpn.acct.request",
            status_type=status_type,
            server=radius.acct_server,
            username=record.principal,
        )
        lines = self.transport.send(
            COMMAND_ACCT,
            radius.acct_server,
            radius.acct_secret,
            build_acct_request(
                self.config.server, record, status_type, acct_session_id
            ),
        )
        if not interpret_acct_response(lines).acknowledged:
            raise TransportRejection(
                "no Accounting-Response received",
                {"status_type": status_type, "server": radius.acct_server},
            )
        logger.info(
            "Accounting-Response received",
            event="ovpn.acct.acknowledged",
            status_type=status_type,
        )
