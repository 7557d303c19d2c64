# Copyright (c) 2013-2025, Andrea Zoppi
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice,
#    this list of conditions and the following disclaimer.
#
# 2. Redistributions in binary form must reproduce the above copyright
#    notice, this list of conditions and the following disclaimer in the
#    documentation and/or other materials provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

r"""Base types, limits and exceptions."""

import os
from typing import Any
from typing import Mapping
from typing import Optional
from typing import Union

import colorama

try:
    from typing import TypeAlias
except ImportError:  # pragma: no cover
    TypeAlias = Any  # Python < 3.10

AnyBytes: TypeAlias = Union[bytes, bytearray, memoryview]
AnyPath: TypeAlias = Union[bytes, bytearray, str, os.PathLike]

MAX_LINE_SIZE: int = 9 + (255 * 2) + 2 + 2
r"""Maximum size of a serialized record line.

It accounts for the ``:LLAAAATT`` header, up to 255 data bytes, the checksum
byte, and an optional ``CR LF`` line terminator.
"""

MAX_ADDRESS: int = 0x100000000
r"""Exclusive upper bound of the extended address space."""

TOKEN_COLOR_CODES: Mapping[str, bytes] = {
    '':         colorama.Style.RESET_ALL.encode(),
    '<':        colorama.Style.RESET_ALL.encode(),
    '>':        colorama.Style.RESET_ALL.encode(),
    'address':  colorama.Fore.RED.encode(),
    'begin':    colorama.Fore.YELLOW.encode(),
    'checksum': colorama.Fore.MAGENTA.encode(),
    'count':    colorama.Fore.BLUE.encode(),
    'data':     colorama.Fore.CYAN.encode(),
    'dataalt':  colorama.Fore.LIGHTCYAN_EX.encode(),
    'end':      colorama.Style.RESET_ALL.encode(),
    'tag':      colorama.Fore.GREEN.encode(),
}
r"""ANSI color codes for each possible token type."""


def colorize_tokens(
    tokens: Mapping[str, bytes],
    altdata: bool = True,
) -> Mapping[str, bytes]:
    r"""Prepends ANSI color codes to record field tokens.

    For each token within `tokens`, its key is used to look up the ANSI color
    code from :data:`TOKEN_COLOR_CODES`.
    Empty tokens are dropped.

    Args:
        tokens (dict):
            A mapping of each token key name to token byte string.

        altdata (bool):
            If true, it alternates each data byte (two hex digits) between the
            ``data`` and ``dataalt`` color codes.

    Returns:
        dict: `tokens` with prepended ANSI color codes.

    Examples:
        >>> from ihexbuf.records import IhexRecord
        >>> tokens = IhexRecord.create_end_of_file().to_tokens()
        >>> colorize_tokens(tokens)['checksum']
        b'\x1b[35mFF'
    """

    codes = TOKEN_COLOR_CODES
    colorized = {}
    colorized.setdefault('<', codes['<'])

    for key, value in tokens.items():
        if key not in codes:
            key = ''
        if value:
            code = codes[key]

            if key == 'data' and altdata:
                altcode = codes['dataalt']
                buffer = bytearray()

                for i in range(0, len(value) - 1, 2):
                    buffer.extend(altcode if i & 2 else code)
                    buffer.extend(value[i:(i + 2)])

                colorized[key] = bytes(buffer)
            else:
                colorized[key] = code + value

    colorized.setdefault('>', codes['>'])
    return colorized


class IhexError(Exception):
    r"""Intel HEX codec error."""


class MalformedRecordError(IhexError, ValueError):
    r"""A record line does not follow the record grammar.

    Attributes:
        line (int):
            1-based line number.

        column (int):
            0-based character offset of the offending token, or ``None`` if
            the whole line is at fault.

        detail (str):
            Human readable reason.
    """

    def __init__(
        self,
        line: int,
        detail: str = 'syntax error',
        column: Optional[int] = None,
    ):

        self.line: int = line
        self.column: Optional[int] = column
        self.detail: str = detail

        if column is None:
            message = f'{detail} at line {line}'
        else:
            message = f'{detail} at line {line} byte {column}'
        super().__init__(message)


class ChecksumError(MalformedRecordError):
    r"""A record checksum does not match its contents."""

    def __init__(self, line: int, expected: int, actual: int):

        self.expected: int = expected
        self.actual: int = actual
        detail = f'wrong checksum 0x{actual:02X} (expected 0x{expected:02X})'
        super().__init__(line, detail)


class OutOfRangeError(IhexError, ValueError):
    r"""A data record falls outside of the buffer window.

    Attributes:
        line (int):
            1-based line number.

        address (int):
            Effective (extended) address of the record.

        count (int):
            Declared data length of the record.
    """

    def __init__(self, line: int, address: int, count: int):

        self.line: int = line
        self.address: int = address
        self.count: int = count
        super().__init__(f'address 0x{address:08X} + {count} '
                         f'is out of range at line {line}')


class IhexIOError(IhexError, OSError):
    r"""Stream read or write failure."""

    def __init__(self, detail: str):

        self.detail: str = detail
        super().__init__(f'I/O error: {detail}')
