"""RADIUS request construction, transport and response interpretation."""

from .requests import build_acct_request, build_auth_request
from .response import (
    AcctVerdict,
    AuthVerdict,
    decode_class_tag,
    interpret_acct_response,
    interpret_auth_response,
)
from .transport import RadclientTransport, Transport

__all__ = [
    "build_auth_request",
    "build_acct_request",
    "AuthVerdict",
    "AcctVerdict",
    "decode_class_tag",
    "interpret_auth_response",
    "interpret_acct_response",
    "RadclientTransport",
    "Transport",
]
