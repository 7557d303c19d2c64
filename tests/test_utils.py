from typing import Any
from typing import Mapping
from typing import Type

import pytest

from ihexbuf.utils import hexlify
from ihexbuf.utils import parse_hex
from ihexbuf.utils import parse_int

PARSE_INT_PASS: Mapping[Any, int] = {
    None: None,

    '123': 123,
    ' 123 ': 123,
    '\t123\t': 123,
    '+123': 123,
    '-123': -123,
    ' - 123 ': -123,

    '0xDEADBEEF': 0xDEADBEEF,
    '0XDEADBEEF': 0xDEADBEEF,
    'DEADBEEFh': 0xDEADBEEF,
    'DEADBEEFH': 0xDEADBEEF,

    '0b101100111000': 0b101100111000,

    '01234567': 0o1234567,
    '0o1234567': 0o1234567,

    '1k': 2**10,
    '1M': 2**20,
    '1 G': 2**30,

    '1KiB': 2**10,
    '64 kib': 2**16,

    '1 KB': 10**3,
    '1MB': 10**6,

    b'456': 456,
    123: 123,
    135.7: 135,
}

PARSE_INT_FAIL: Mapping[Any, Type[BaseException]] = {
    Ellipsis: TypeError,
    'x': ValueError,
    '0b1h': ValueError,
    '0o1h': ValueError,
    '1 tib': ValueError,
    (1,): TypeError,
}


def test_hexlify():
    assert hexlify(b'') == b''
    assert hexlify(b'\xAA\xBB\xCC') == b'AABBCC'
    assert hexlify(bytearray(b'\x01\x0F')) == b'010F'
    assert hexlify(memoryview(b'\xAB')) == b'AB'
    assert hexlify(b'\xAA\xBB\xCC', upper=False) == b'aabbcc'


def test_parse_hex():
    assert parse_hex(b'00') == 0x00
    assert parse_hex(b'fF') == 0xFF
    assert parse_hex(b'1234') == 0x1234
    assert parse_hex(bytearray(b'Ab')) == 0xAB


def test_parse_hex_fail():
    for token in (b'', b' 1', b'1 ', b'+1', b'-1', b'1_0', b'0x', b'G0', b'\x00'):
        assert parse_hex(token) is None, token


def test_parse_int_pass():
    for value_in, value_out in PARSE_INT_PASS.items():
        assert parse_int(value_in) == value_out


def test_parse_int_fail():
    for value_in, raised_exception in PARSE_INT_FAIL.items():
        with pytest.raises(raised_exception):
            parse_int(value_in)
