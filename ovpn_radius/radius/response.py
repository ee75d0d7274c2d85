"""Interpretation of `radclient -x` output."""

from __future__ import annotations

import binascii
from collections.abc import Iterable
from dataclasses import dataclass

from ovpn_radius.exceptions import EncodingError
from ovpn_radius.utils.logger import get_logger

from .constants import ATTR_CLASS, MARKER_ACCESS_ACCEPT, MARKER_ACCOUNTING_RESPONSE

logger = get_logger(__name__, component="radius")


@dataclass(frozen=True)
class AuthVerdict:
    accepted: bool
    class_tag: str | None = None


@dataclass(frozen=True)
class AcctVerdict:
    acknowledged: bool


def decode_class_tag(token: str) -> str:
    """Decode a hex ``Class`` token and return its text.

    Raises:
        EncodingError: the token is not hex or does not decode to UTF-8.
    """
    digits = token.strip().lower().removeprefix("0x")
    if not digits:
        raise EncodingError("empty Class attribute", {"token": token})
    try:
        return binascii.unhexlify(digits).decode("utf-8")
    except (binascii.Error, ValueError) as exc:
        raise EncodingError(
            f"invalid Class attribute encoding: {exc}", {"token": token}
        ) from exc


def _class_token(line: str) -> str | None:
    name, sep, value = line.strip().partition("=")
    if not sep or name.strip() != ATTR_CLASS:
        return None
    return value.strip() or None


def interpret_auth_response(lines: Iterable[str]) -> AuthVerdict:
    """Scan for an Access-Accept and an optional, well-formed Class.

    The token is kept in its wire form so accounting can echo it byte for
    byte; decoding only validates it. A malformed token is dropped.
    """
    accepted = False
    class_tag: str | None = None
    for line in lines:
        if line.startswith(MARKER_ACCESS_ACCEPT):
            accepted = True
            continue
        token = _class_token(line)
        if token is None:
            continue
        try:
            decode_class_tag(token)
        except EncodingError as exc:
            logger.warning(
                "Discarding malformed Class attribute",
                event="ovpn.radius.class_invalid",
                error=exc.message,
            )
            continue
        class_tag = token
    return AuthVerdict(accepted=accepted, class_tag=class_tag)


def interpret_acct_response(lines: Iterable[str]) -> AcctVerdict:
    """Scan for an Accounting-Response."""
    return AcctVerdict(
        acknowledged=any(line.startswith(MARKER_ACCOUNTING_RESPONSE) for line in lines)
    )
