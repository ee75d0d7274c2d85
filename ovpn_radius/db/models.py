"""SQLAlchemy model for persisted VPN client sessions."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, String, Text

from ovpn_radius.db.engine import Base


class OVPNClient(Base):
    """One authenticated OpenVPN client connection.

    ``id`` is the session key; the primary key gives the uniqueness
    guarantee the lifecycle relies on.
    """

    __tablename__ = "ovpn_clients"

    id = Column(String, primary_key=True, nullable=False)
    common_name = Column(String, nullable=False)
    ip_address = Column(String, nullable=True)
    class_name = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=True, default=lambda: datetime.now(UTC)
    )
    updated_at = Column(
        DateTime(timezone=True), nullable=True, default=lambda: datetime.now(UTC)
    )
