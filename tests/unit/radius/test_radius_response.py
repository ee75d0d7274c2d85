import pytest

from ovpn_radius.exceptions import EncodingError
from ovpn_radius.radius.response import (
    decode_class_tag,
    interpret_acct_response,
    interpret_auth_response,
)


def test_access_accept_with_class():
    verdict = interpret_auth_response(
        [
            "Sent Access-Request Id 17 from 0.0.0.0:40000 to 127.0.0.1:1812 length 98",
            "Received Access-Accept Id 17 from 127.0.0.1:1812 to 0.0.0.0:0 length 40",
            "\tClass = 0x737461666631",
        ]
    )
    assert verdict.accepted is True
    assert verdict.class_tag == "0x737461666631"


def test_access_accept_without_class():
    verdict = interpret_auth_response(
        ["Received Access-Accept Id 3 from 127.0.0.1:1812 to 0.0.0.0:0 length 20"]
    )
    assert verdict.accepted is True
    assert verdict.class_tag is None


def test_access_reject_is_not_accepted():
    verdict = interpret_auth_response(
        [
            "Received Access-Reject Id 18 from 127.0.0.1:1812 to 0.0.0.0:0 length 20",
            "\tReply-Message = \"denied\"",
        ]
    )
    assert verdict.accepted is False


def test_accept_marker_must_start_the_line():
    verdict = interpret_auth_response(
        ["\tReply-Message = \"Received Access-Accept Id 1\""]
    )
    assert verdict.accepted is False


@pytest.mark.parametrize(
    "token",
    [
        "0xc328",  # invalid UTF-8 continuation
        "0xfffe",
        "0xnothex",
        "0x123",  # odd length
        "0x",
        "0x410x42",  # 0x only allowed as a prefix
    ],
)
def test_malformed_class_is_discarded_not_fatal(token):
    verdict = interpret_auth_response(
        [
            "Received Access-Accept Id 17 from 127.0.0.1:1812 to 0.0.0.0:0 length 40",
            f"\tClass = {token}",
        ]
    )
    assert verdict.accepted is True
    assert verdict.class_tag is None


def test_class_line_without_value_is_ignored():
    verdict = interpret_auth_response(
        ["Received Access-Accept Id 1 from x to y length 20", "\tClass ="]
    )
    assert verdict.class_tag is None


def test_other_attributes_starting_with_class_are_ignored():
    verdict = interpret_auth_response(
        ["Received Access-Accept Id 1 from x to y length 20", "\tClassification = 0x41"]
    )
    assert verdict.class_tag is None


def test_decode_class_tag():
    assert decode_class_tag("0x737461666631") == "staff1"
    assert decode_class_tag("737461666631") == "staff1"
    assert decode_class_tag("0X4142") == "AB"
    with pytest.raises(EncodingError):
        decode_class_tag("0xc328")


def test_accounting_response_acknowledged():
    verdict = interpret_acct_response(
        [
            "Sent Accounting-Request Id 9 from 0.0.0.0:40001 to 127.0.0.1:1813 length 110",
            "Received Accounting-Response Id 9 from 127.0.0.1:1813 to 0.0.0.0:0 length 20",
        ]
    )
    assert verdict.acknowledged is True


def test_accounting_without_response_is_unacknowledged():
    verdict = interpret_acct_response(
        [
            "Sent Accounting-Request Id 9 from 0.0.0.0:40001 to 127.0.0.1:1813 length 110",
            "(0) No reply from server for ID 9 socket 3",
        ]
    )
    assert verdict.acknowledged is False
    assert interpret_acct_response([]).acknowledged is False
