"""OpenVPN session coordinator delegating AAA to a RADIUS server."""

__version__ = "1.0.0"
