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

r"""Intel HEX records.

See Also:
    `<https://en.wikipedia.org/wiki/Intel_HEX>`_
"""

import enum
import re
import sys
from typing import IO
from typing import Any
from typing import Iterable
from typing import Mapping
from typing import Optional
from typing import Tuple
from typing import Union

from .base import AnyBytes
from .base import colorize_tokens
from .utils import hexlify

HEADER_REGEX = re.compile(
    b'^:'
    b'(?P<count>[0-9A-Fa-f]{2})'
    b'(?P<address>[0-9A-Fa-f]{4})'
    b'(?P<tag>[0-9A-Fa-f]{2})'
)
r"""Record header parser regex."""

HEADER_SIZE: int = 9
r"""Size of the ``:LLAAAATT`` header."""


class IhexTag(enum.IntEnum):
    r"""Intel HEX record tag."""

    DATA = 0
    r"""Binary data."""

    END_OF_FILE = 1
    r"""End Of File."""

    EXTENDED_SEGMENT_ADDRESS = 2
    r"""Extended Segment Address."""

    EXTENDED_LINEAR_ADDRESS = 4
    r"""Extended Linear Address."""

    def is_data(self) -> bool:

        return self == self.DATA

    def is_eof(self) -> bool:

        return self == self.END_OF_FILE

    def is_extension(self) -> bool:
        r"""Tells whether this is an Extended Address record tag.

        Returns:
            bool: This is an Extended Address record tag.

        Examples:
            >>> IhexTag.EXTENDED_LINEAR_ADDRESS.is_extension()
            True
            >>> IhexTag.EXTENDED_SEGMENT_ADDRESS.is_extension()
            True
            >>> IhexTag.DATA.is_extension()
            False
        """

        return ((self == self.EXTENDED_SEGMENT_ADDRESS) or
                (self == self.EXTENDED_LINEAR_ADDRESS))

    def extension_scale(self) -> int:
        r"""Scale factor of the extension value.

        Returns:
            int: Factor applied to the extension value to obtain the address
            offset of the following data records; 0 for non-extension tags.

        Examples:
            >>> IhexTag.EXTENDED_SEGMENT_ADDRESS.extension_scale()
            16
            >>> IhexTag.EXTENDED_LINEAR_ADDRESS.extension_scale()
            65536
        """

        if self == self.EXTENDED_SEGMENT_ADDRESS:
            return 0x10
        elif self == self.EXTENDED_LINEAR_ADDRESS:
            return 0x10000
        else:
            return 0


def checksum(
    data: Iterable[int],
    count: int,
    address: int,
    tag: int,
) -> int:
    r"""Computes the checksum of a record.

    The checksum is the two's complement of the low byte of the sum of the
    count, the two address bytes, the tag, and all the data bytes.

    Args:
        data (bytes):
            Data field bytes.

        count (int):
            Declared data length.

        address (int):
            Address field; only its 16 least significant bits are summed.

        tag (int):
            Record type.

    Returns:
        int: Checksum byte.

    Examples:
        >>> checksum(b'\x11\x22\x33', 3, 0x0000, 0)
        151
        >>> checksum(b'', 0, 0x0000, 1)
        255
    """

    total = count + (address & 0xFF) + ((address >> 8) & 0xFF) + tag
    total += sum(data)
    return -total & 0xFF


class IhexRecord:
    r"""Intel HEX record object.

    Records only live while a line is being parsed or serialized.

    Attributes:
        tag (:class:`IhexTag`):
            Record type.

        address (int):
            16-bit address field.

        data (bytes):
            Data field.

        count (int):
            Declared data length.

        checksum (int):
            Checksum byte.
    """

    Tag = IhexTag

    def __eq__(self, other: Any) -> bool:

        if not isinstance(other, IhexRecord):
            return NotImplemented
        return self._key() == other._key()

    def __init__(
        self,
        tag: IhexTag,
        address: int = 0,
        data: AnyBytes = b'',
        count: Optional[int] = None,
        checksum: Optional[int] = None,
    ):

        address = address.__index__()
        if not 0 <= address <= 0xFFFF:
            raise ValueError('address overflow')

        if len(data) > 0xFF:
            raise ValueError('data size overflow')

        self.tag: IhexTag = tag
        self.address: int = address
        self.data: bytes = bytes(data)
        self.count: int = len(self.data) if count is None else count
        self.checksum: int = self.compute_checksum() if checksum is None else checksum

    def __repr__(self) -> str:

        return (f'{self.__class__.__name__}({self.tag!r}, '
                f'address=0x{self.address:04X}, data={self.data!r}, '
                f'count={self.count}, checksum=0x{self.checksum:02X})')

    def __str__(self) -> str:

        return self.to_bytestr().decode()

    def _key(self) -> Tuple[int, int, bytes, int, int]:

        return int(self.tag), self.address, self.data, self.count, self.checksum

    def compute_checksum(self) -> int:

        return checksum(self.data, self.count, self.address, self.tag)

    @classmethod
    def create_data(cls, address: int, data: AnyBytes) -> 'IhexRecord':
        r"""Creates a Data record.

        Args:
            address (int):
                16-bit address field.

            data (bytes):
                Up to 255 bytes of data.

        Returns:
            :class:`IhexRecord`: Data record object.

        Examples:
            >>> str(IhexRecord.create_data(0x0000, b'\x11\x22\x33'))
            ':0300000011223397\n'
        """

        return cls(cls.Tag.DATA, address=address, data=data)

    @classmethod
    def create_end_of_file(cls) -> 'IhexRecord':
        r"""Creates an End Of File record.

        Returns:
            :class:`IhexRecord`: End Of File record object.

        Examples:
            >>> str(IhexRecord.create_end_of_file())
            ':00000001FF\n'
        """

        return cls(cls.Tag.END_OF_FILE)

    @classmethod
    def create_extended_linear_address(cls, extension: int) -> 'IhexRecord':
        r"""Creates an Extended Linear Address record.

        Args:
            extension (int):
                Bits 31:16 of the address of the following data records.

        Returns:
            :class:`IhexRecord`: Extended Linear Address record object.

        Examples:
            >>> str(IhexRecord.create_extended_linear_address(0x1234))
            ':020000041234B4\n'
        """

        extension = extension.__index__()
        if not 0 <= extension <= 0xFFFF:
            raise ValueError('extension overflow')

        data = extension.to_bytes(2, byteorder='big')
        return cls(cls.Tag.EXTENDED_LINEAR_ADDRESS, data=data)

    def print(
        self,
        stream: Optional[IO] = None,
        color: bool = False,
        end: AnyBytes = b'\n',
    ) -> 'IhexRecord':
        r"""Prints a record.

        The record is converted into tokens (eventually colorized) then joined
        and written onto a byte stream (*stdout* by default).

        Args:
            stream (bytes IO):
                The byte stream where the record tokens are printed.
                If ``None``, *stdout* is selected.

            color (bool):
                Tokens are colorized before printing.

            end (bytes):
                Line terminator.

        Returns:
            :class:`IhexRecord`: *self*.
        """

        if stream is None:
            stream = sys.stdout.buffer
        tokens = self.to_tokens(end=end)
        if color:
            tokens = colorize_tokens(tokens)
        stream.write(b''.join(tokens.values()))
        return self

    def to_bytestr(self, end: AnyBytes = b'\n') -> bytes:

        return b':%02X%04X%02X%s%02X%s' % (
            self.count & 0xFF,
            self.address & 0xFFFF,
            self.tag & 0xFF,
            hexlify(self.data),
            self.checksum & 0xFF,
            end,
        )

    def to_tokens(self, end: AnyBytes = b'\n') -> Mapping[str, bytes]:

        return {
            'begin': b':',
            'count': b'%02X' % (self.count & 0xFF),
            'address': b'%04X' % (self.address & 0xFFFF),
            'tag': b'%02X' % (self.tag & 0xFF),
            'data': hexlify(self.data),
            'checksum': b'%02X' % (self.checksum & 0xFF),
            'end': end,
        }


def parse_header(line: Union[bytes, bytearray]) -> Optional[Tuple[int, int, int]]:
    r"""Parses the ``:LLAAAATT`` header of a record line.

    Args:
        line (bytes):
            Record line.

    Returns:
        tuple: ``(count, address, tag)`` as integers, or ``None`` if the line
        does not start with a well-formed header.
        The tag is not restricted to :class:`IhexTag` values.

    Examples:
        >>> parse_header(b':0300000011223397')
        (3, 0, 0)
        >>> parse_header(b'0300000011223397') is None
        True
    """

    match = HEADER_REGEX.match(line)
    if not match:
        return None

    count = int(match.group('count'), 16)
    address = int(match.group('address'), 16)
    tag = int(match.group('tag'), 16)
    return count, address, tag
