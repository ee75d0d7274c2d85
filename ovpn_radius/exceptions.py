# ovpn_radius/exceptions.py
"""
Exceptions for the OpenVPN RADIUS plugin.

Every fatal condition has its own class and a stable process exit code so
operators can tell failure classes apart from the OpenVPN log alone.
"""

from typing import Any


class OvpnRadiusError(Exception):
    """Base exception for all plugin errors."""

    exit_code = 1
    error_code = "plugin_error"

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


# Startup inputs
class ConfigurationError(OvpnRadiusError):
    """Raised when the configuration or environment context is missing or invalid."""

    exit_code = 10
    error_code = "configuration_error"

    def __init__(
        self, message: str, field: str | None = None, value: Any = None, **kwargs: Any
    ):
        details = {"field": field, "value": value, **kwargs}
        super().__init__(message, details)
        self.field = field
        self.value = value


class CredentialError(OvpnRadiusError):
    """Raised when the credential file is missing, unreadable or incomplete."""

    exit_code = 30
    error_code = "credential_error"


# AAA transport
class TransportError(OvpnRadiusError):
    """Raised when the RADIUS client could not be run or failed."""

    exit_code = 40
    error_code = "transport_error"


class MalformedResponseError(OvpnRadiusError):
    """Raised when the RADIUS client produced no usable output."""

    exit_code = 41
    error_code = "malformed_response"


class TransportRejection(OvpnRadiusError):
    """Raised when the server denied the request or did not acknowledge it."""

    exit_code = 42
    error_code = "transport_rejection"


class EncodingError(OvpnRadiusError):
    """Raised for a malformed opaque attribute.

    Never fatal: the response interpreter discards the attribute instead.
    """

    error_code = "encoding_error"


# Record store
class StoreError(OvpnRadiusError):
    """Raised when the underlying session database fails."""

    exit_code = 50
    error_code = "store_error"


class LockTimeoutError(StoreError):
    """Raised when the store lock could not be acquired in time."""

    exit_code = 51
    error_code = "lock_timeout"


class DuplicateSessionError(StoreError):
    """Raised when a record already exists for the session key."""

    exit_code = 52
    error_code = "duplicate_session"


class SessionNotFoundError(StoreError):
    """Raised when no record exists for the session key."""

    exit_code = 53
    error_code = "session_not_found"


class UpdateFailedError(StoreError):
    """Raised when an update matched no record."""

    exit_code = 54
    error_code = "update_failed"


class DeleteFailedError(StoreError):
    """Raised when a delete matched no record."""

    exit_code = 55
    error_code = "delete_failed"
