"""SQLite-backed session record store shared by all plugin invocations."""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ovpn_radius.config.schema import DatabaseSettings
from ovpn_radius.db.engine import (
    Base,
    get_session_factory,
    session_scope,
    sqlite_engine,
)
from ovpn_radius.db.models import OVPNClient
from ovpn_radius.exceptions import (
    DeleteFailedError,
    DuplicateSessionError,
    SessionNotFoundError,
    StoreError,
    UpdateFailedError,
)
from ovpn_radius.utils.logger import get_logger

from .lock import StoreLock
from .models import SessionRecord

logger = get_logger(__name__, component="store")


class SessionStore:
    """Durable key/value table of session records.

    Mutating calls hold the cross-process :class:`StoreLock` for the whole
    transaction and release it on every exit path. Reads go straight to
    SQLite; WAL mode shows them either the pre- or post-commit row.
    There is deliberately no in-memory cache: every phase is a new process
    and must see what the previous phase committed.
    """

    def __init__(
        self,
        db_path: str | Path,
        *,
        lock_path: str | Path | None = None,
        lock_timeout: float = 10.0,
        pool_size: int = 5,
        max_overflow: int = 5,
        busy_timeout_ms: int = 10000,
    ) -> None:
        self.db_path = Path(db_path)
        self.lock = StoreLock(
            lock_path or f"{self.db_path}.lock", timeout=lock_timeout
        )
        self.engine = sqlite_engine(
            str(self.db_path),
            pool_size=pool_size,
            max_overflow=max_overflow,
            busy_timeout_ms=busy_timeout_ms,
        )
        self._session_factory = get_session_factory(self.engine)
        try:
            self.migrate()
        except StoreError:
            self.engine.dispose()
            raise
        except SQLAlchemyError as exc:
            self.engine.dispose()
            raise StoreError(
                f"unable to open session database {self.db_path}: {exc}",
                {"db_path": str(self.db_path)},
            ) from exc

    @classmethod
    def from_settings(cls, settings: DatabaseSettings) -> SessionStore:
        return cls(
            settings.db_path,
            lock_path=settings.lock_path,
            lock_timeout=settings.lock_timeout,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            busy_timeout_ms=settings.busy_timeout_ms,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def migrate(self) -> None:
        """Create the session table if it does not exist yet."""
        # DDL runs under the store lock: concurrent first opens would
        # otherwise both issue CREATE TABLE.
        with self.lock:
            Base.metadata.create_all(self.engine, tables=[OVPNClient.__table__])

    def close(self) -> None:
        """Release this thread's hold on the lock and dispose pooled connections."""
        while self.lock.owned:
            self.lock.release()
        self.engine.dispose()

    def __enter__(self) -> SessionStore:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _now() -> datetime:
        return datetime.now(UTC)

    @staticmethod
    def _row_to_record(row: OVPNClient) -> SessionRecord:
        return SessionRecord(
            key=row.id,
            principal=row.common_name,
            endpoint=row.ip_address or None,
            class_tag=row.class_name or None,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def _storage_error(self, operation: str, key: str | None, exc: Exception) -> StoreError:
        logger.error(
            "Session database operation failed",
            event="ovpn.store.error",
            operation=operation,
            session_key=key,
            error=str(exc),
        )
        return StoreError(
            f"{operation} failed: {exc}", {"operation": operation, "key": key}
        )

    # ------------------------------------------------------------------
    # Record operations
    # ------------------------------------------------------------------
    def create(self, record: SessionRecord) -> SessionRecord:
        """Insert ``record``; raise DuplicateSessionError if the key exists."""
        now = self._now()
        with self.lock:
            try:
                with session_scope(self._session_factory) as session:
                    session.add(
                        OVPNClient(
                            id=record.key,
                            common_name=record.principal,
                            ip_address=record.endpoint,
                            class_name=record.class_tag,
                            created_at=now,
                            updated_at=now,
                        )
                    )
            except IntegrityError as exc:
                if "UNIQUE" not in str(exc.orig).upper():
                    raise self._storage_error("create", record.key, exc) from exc
                raise DuplicateSessionError(
                    "record already exists", {"key": record.key}
                ) from exc
            except SQLAlchemyError as exc:
                raise self._storage_error("create", record.key, exc) from exc
        logger.debug(
            "Session record created",
            event="ovpn.store.created",
            session_key=record.key,
        )
        return SessionRecord(
            key=record.key,
            principal=record.principal,
            endpoint=record.endpoint,
            class_tag=record.class_tag,
            created_at=now,
            updated_at=now,
        )

    def get_by_key(self, key: str) -> SessionRecord:
        """Return the record for ``key``; raise SessionNotFoundError if absent."""
        try:
            with session_scope(self._session_factory) as session:
                row = session.execute(
                    select(OVPNClient).where(OVPNClient.id == key)
                ).scalar_one_or_none()
                record = self._row_to_record(row) if row else None
        except SQLAlchemyError as exc:
            raise self._storage_error("get", key, exc) from exc
        if record is None:
            raise SessionNotFoundError("row not exists", {"key": key})
        return record

    def update(self, record: SessionRecord) -> SessionRecord:
        """Replace the mutable fields of the row keyed by ``record.key``."""
        if not record.key:
            raise UpdateFailedError("invalid session key", {"key": record.key})
        now = self._now()
        with self.lock:
            try:
                with session_scope(self._session_factory) as session:
                    result = session.execute(
                        update(OVPNClient)
                        .where(OVPNClient.id == record.key)
                        .values(
                            common_name=record.principal,
                            ip_address=record.endpoint,
                            class_name=record.class_tag,
                            updated_at=now,
                        )
                    )
                    matched = result.rowcount
            except SQLAlchemyError as exc:
                raise self._storage_error("update", record.key, exc) from exc
        if not matched:
            raise UpdateFailedError("update failed", {"key": record.key})
        logger.debug(
            "Session record updated",
            event="ovpn.store.updated",
            session_key=record.key,
        )
        return SessionRecord(
            key=record.key,
            principal=record.principal,
            endpoint=record.endpoint,
            class_tag=record.class_tag,
            created_at=record.created_at,
            updated_at=now,
        )

    def delete(self, key: str) -> None:
        """Remove the row for ``key``; raise DeleteFailedError if none matched."""
        with self.lock:
            try:
                with session_scope(self._session_factory) as session:
                    result = session.execute(
                        delete(OVPNClient).where(OVPNClient.id == key)
                    )
                    matched = result.rowcount
            except SQLAlchemyError as exc:
                raise self._storage_error("delete", key, exc) from exc
        if not matched:
            raise DeleteFailedError("delete failed", {"key": key})
        logger.debug(
            "Session record deleted", event="ovpn.store.deleted", session_key=key
        )

    def list_all(self) -> list[SessionRecord]:
        """Return every stored record, oldest first. Diagnostic use only."""
        try:
            with session_scope(self._session_factory) as session:
                rows = session.execute(
                    select(OVPNClient).order_by(OVPNClient.created_at, OVPNClient.id)
                ).scalars()
                return [self._row_to_record(row) for row in rows]
        except SQLAlchemyError as exc:
            raise self._storage_error("list", None, exc) from exc


def reset_database(settings: DatabaseSettings) -> None:
    """Remove the database, its WAL side files and the lock file."""
    for path in (
        settings.db_path,
        f"{settings.db_path}-wal",
        f"{settings.db_path}-shm",
        str(settings.lock_path),
    ):
        try:
            os.remove(path)
        except FileNotFoundError:
            continue
    logger.info(
        "Session database reset",
        event="ovpn.store.reset",
        db_path=settings.db_path,
    )


@contextmanager
def open_store(settings: DatabaseSettings) -> Iterator[SessionStore]:
    """Scoped store acquisition: the handle and its lock never outlive the block."""
    store = SessionStore.from_settings(settings)
    try:
        yield store
    finally:
        store.close()
