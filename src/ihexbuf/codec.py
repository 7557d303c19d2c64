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

r"""Intel HEX codec for flat memory buffers.

The codec translates between Intel HEX record lines and a caller-owned byte
buffer, which represents the address window ``[start, end)``.
The byte at address ``a`` is stored at ``buffer[a - start]``.

Examples:
    >>> import io
    >>> stream = io.BytesIO()
    >>> encode(stream, b'\x11\x22\x33', 0, 3)
    >>> stream.getvalue()
    b':0300000011223397\n:00000001FF\n'
    >>> buffer = bytearray(3)
    >>> decode(stream.getvalue(), buffer, 0, 3)
    3
    >>> bytes(buffer)
    b'\x11"3'
"""

import io
import logging
import os
import sys
from typing import IO
from typing import Iterable
from typing import Iterator
from typing import MutableSequence
from typing import Optional
from typing import Sequence
from typing import Tuple
from typing import Union

from .base import MAX_ADDRESS
from .base import MAX_LINE_SIZE
from .base import AnyBytes
from .base import AnyPath
from .base import ChecksumError
from .base import IhexIOError
from .base import MalformedRecordError
from .base import OutOfRangeError
from .records import HEADER_SIZE
from .records import IhexRecord
from .records import IhexTag
from .records import checksum
from .records import parse_header
from .utils import parse_hex

logger = logging.getLogger(__name__)

LineSource = Union[AnyBytes, IO, Iterable[Union[bytes, str]]]

MAX_DATA_LENGTH: int = 32
r"""Default maximum data length of encoded records."""

_KNOWN_TAGS = frozenset(IhexTag)


def _check_window(
    buffer: Sequence[int],
    start: int,
    end: int,
) -> Tuple[int, int]:

    start = start.__index__()
    end = end.__index__()

    if not 0 <= start <= end <= MAX_ADDRESS:
        raise ValueError('invalid address window')

    if len(buffer) < end - start:
        raise ValueError('buffer too small')

    return start, end


def _read_lines(stream: IO) -> Iterator[Union[bytes, str]]:

    while True:
        try:
            # One byte more than allowed, so that overlong lines get detected
            line = stream.readline(MAX_LINE_SIZE + 1)
        except (OSError, ValueError) as exc:
            raise IhexIOError(str(exc)) from exc

        if not line:
            break
        yield line


def iter_lines(source: LineSource) -> Iterator[bytes]:
    r"""Iterates over the lines of a record source.

    Args:
        source:
            Either a byte string, a stream providing ``readline`` (binary or
            text), or an iterable of lines (:obj:`bytes` or :obj:`str`).

    Yields:
        bytes: Raw lines, including their line terminators, if any.

    Raises:
        :class:`IhexIOError`: Stream read failure.

    Examples:
        >>> list(iter_lines(b':00000001FF\r\n\n'))
        [b':00000001FF\r\n', b'\n']
        >>> list(iter_lines([':00000001FF\n']))
        [b':00000001FF\n']
    """

    if isinstance(source, (bytes, bytearray, memoryview)):
        source = io.BytesIO(source)

    if hasattr(source, 'readline'):
        lines = _read_lines(source)
    else:
        lines = iter(source)

    for line in lines:
        if isinstance(line, str):
            line = line.encode('ascii', 'replace')
        yield line


def _verify_record(
    line: bytes,
    row: int,
    count: int,
    address: int,
    tag: int,
) -> None:

    size = HEADER_SIZE + ((count + 1) * 2)
    if len(line) != size:
        raise MalformedRecordError(row, 'wrong record size')

    values = []
    for column in range(HEADER_SIZE, size, 2):
        value = parse_hex(line[column:(column + 2)])
        if value is None:
            raise MalformedRecordError(row, 'invalid hex byte', column)
        values.append(value)

    actual = values.pop()
    expected = checksum(values, count, address, tag)
    if actual != expected:
        raise ChecksumError(row, expected, actual)


def decode(
    stream: LineSource,
    buffer: MutableSequence[int],
    start: int,
    end: int,
    verify: bool = False,
) -> int:
    r"""Decodes Intel HEX records into a memory buffer.

    Each *data* record is stored into `buffer` at its extended address,
    relative to `start`.
    *Extended Segment Address* and *Extended Linear Address* records set the
    offset added to the address of all the following records.
    Any other record type is parsed but carries no data.

    Blank lines are skipped.
    An *End Of File* record is not required, and does not stop decoding.

    Notes:
        Checksums are not compared unless `verify` is true, so a corrupt but
        well-formed record is accepted by default.

    Args:
        stream:
            Record source, see :func:`iter_lines`.

        buffer (bytearray):
            Destination buffer, holding at least ``end - start`` bytes.
            It is left partially written on failure.

        start (int):
            Inclusive start address of the window.

        end (int):
            Exclusive end address of the window.

        verify (bool):
            Requires each record to have exactly its declared data length,
            and a matching checksum.

    Returns:
        int: Span from `start` to the end of the highest data record, i.e.
        the number of buffer bytes covered by data, holes included.

    Raises:
        ValueError: Invalid window or buffer size.
        :class:`MalformedRecordError`: Record syntax error.
        :class:`ChecksumError`: Checksum mismatch, when verifying.
        :class:`OutOfRangeError`: Data record outside of the window.
        :class:`IhexIOError`: Stream read failure.
    """

    start, end = _check_window(buffer, start, end)
    greatest = start
    offset = 0
    row = 0

    for line in iter_lines(stream):
        row += 1

        if len(line) > MAX_LINE_SIZE:
            raise MalformedRecordError(row, 'line too long')

        if line.endswith(b'\n'):
            line = line[:-1]
        if line.endswith(b'\r'):
            line = line[:-1]
        if not line or line.isspace():
            continue

        header = parse_header(line)
        if header is None:
            raise MalformedRecordError(row)
        count, address, tag = header

        if verify:
            _verify_record(line, row, count, address, tag)

        # Start address and unknown record types carry no data
        kind = IhexTag(tag) if tag in _KNOWN_TAGS else None
        is_data = kind is not None and kind.is_data()

        if kind is not None and kind.is_extension():
            token = line[HEADER_SIZE:(HEADER_SIZE + 4)]
            value = parse_hex(token) if len(token) == 4 else None
            if value is None:
                raise MalformedRecordError(row, 'invalid extension', HEADER_SIZE)
            offset = value * kind.extension_scale()
            logger.debug('line %d: address offset set to 0x%08X', row, offset)

        elif kind is not None and kind.is_eof():
            logger.debug('line %d: end of file record', row)

        effective = address + offset

        for column in range(HEADER_SIZE, len(line) - 1, 2):
            byte = parse_hex(line[column:(column + 2)])
            if byte is None:
                raise MalformedRecordError(row, 'invalid hex byte', column)

            if not is_data:
                break

            index = (column - HEADER_SIZE) >> 1
            if index >= count:
                break  # checksum

            if effective < start:
                raise OutOfRangeError(row, effective, count)
            if effective + count > end:
                raise OutOfRangeError(row, effective, count)

            if greatest < effective + count:
                greatest = effective + count

            buffer[effective - start + index] = byte

    logger.debug('decoded %d lines, span 0x%X', row, greatest - start)
    return greatest - start


def _emit(stream: IO, record: IhexRecord, color: bool) -> None:

    try:
        if color:
            record.print(stream=stream, color=True)
        else:
            stream.write(record.to_bytestr())
    except (OSError, ValueError) as exc:
        raise IhexIOError(str(exc)) from exc


def encode(
    stream: IO,
    buffer: Sequence[int],
    start: int,
    end: int,
    maxdatalen: int = MAX_DATA_LENGTH,
    color: bool = False,
) -> None:
    r"""Encodes a memory buffer into Intel HEX records.

    The window ``[start, end)`` is split into *data* records of up to
    `maxdatalen` bytes, never crossing a 64 KiB block boundary.
    An *Extended Linear Address* record precedes the first *data* record of
    each new block; if `end` exceeds the first block, one is emitted before
    the very first *data* record too.
    A single *End Of File* record terminates the output.

    Args:
        stream (bytes IO):
            Output byte stream.

        buffer (bytes):
            Source buffer, holding at least ``end - start`` bytes.

        start (int):
            Inclusive start address of the window.

        end (int):
            Exclusive end address of the window.

        maxdatalen (int):
            Maximum data length of each record, within 1 and 255.

        color (bool):
            Emits ANSI color codes around record fields, for display only.

    Raises:
        ValueError: Invalid arguments.
        :class:`IhexIOError`: Stream write failure; nothing more is written.

    Examples:
        >>> import io
        >>> stream = io.BytesIO()
        >>> encode(stream, bytes(4), 0x1FFFE, 0x20002)
        >>> print(stream.getvalue().decode(), end='')
        :020000040001F9
        :02FFFE00000001
        :020000040002F8
        :020000000000FE
        :00000001FF
    """

    start, end = _check_window(buffer, start, end)

    maxdatalen = maxdatalen.__index__()
    if not 1 <= maxdatalen <= 0xFF:
        raise ValueError('invalid maximum data length')

    Record = IhexRecord
    cursor: Optional[int] = None if end > 0xFFFF else 0
    chunk_start = start

    while chunk_start < end:
        chunk_len = min(end - chunk_start, maxdatalen)
        address = chunk_start & 0xFFFF
        if address + chunk_len > 0xFFFF:
            chunk_len = 0x10000 - address

        block = chunk_start >> 16
        if block != cursor:
            _emit(stream, Record.create_extended_linear_address(block), color)
            cursor = block

        index = chunk_start - start
        data = bytes(buffer[index:(index + chunk_len)])
        _emit(stream, Record.create_data(address, data), color)
        chunk_start += chunk_len

    _emit(stream, Record.create_end_of_file(), color)
    logger.debug('encoded 0x%X bytes from 0x%08X', end - start, start)


def load(
    in_path_or_stream: Optional[Union[AnyPath, IO]],
    buffer: MutableSequence[int],
    start: int,
    end: int,
    **kwargs,
) -> int:
    r"""Loads a record file into a memory buffer.

    Args:
        in_path_or_stream (str or bytes IO):
            Path of the file within the filesystem, or byte input stream.
            If ``None``, ``sys.stdin.buffer`` is used.

        buffer (bytearray):
            See :func:`decode`.

        start (int):
            See :func:`decode`.

        end (int):
            See :func:`decode`.

        kwargs:
            Forwarded to :func:`decode`.

    Returns:
        int: See :func:`decode`.

    See Also:
        :func:`decode`
        :func:`save`
    """

    if in_path_or_stream is None:
        in_path_or_stream = sys.stdin.buffer

    if isinstance(in_path_or_stream, io.IOBase):
        return decode(in_path_or_stream, buffer, start, end, **kwargs)
    else:
        path = os.fsdecode(in_path_or_stream)
        with open(path, 'rb') as stream:
            return decode(stream, buffer, start, end, **kwargs)


def save(
    out_path_or_stream: Optional[Union[AnyPath, IO]],
    buffer: Sequence[int],
    start: int,
    end: int,
    **kwargs,
) -> None:
    r"""Saves a memory buffer into a record file.

    Args:
        out_path_or_stream (str or bytes IO):
            Path of the file within the filesystem, or output byte stream.
            If ``None``, ``sys.stdout.buffer`` is used.

        buffer (bytes):
            See :func:`encode`.

        start (int):
            See :func:`encode`.

        end (int):
            See :func:`encode`.

        kwargs:
            Forwarded to :func:`encode`.

    See Also:
        :func:`encode`
        :func:`load`
    """

    if out_path_or_stream is None:
        out_path_or_stream = sys.stdout.buffer

    if isinstance(out_path_or_stream, io.IOBase):
        encode(out_path_or_stream, buffer, start, end, **kwargs)
    else:
        path = os.fsdecode(out_path_or_stream)
        with open(path, 'wb') as stream:
            encode(stream, buffer, start, end, **kwargs)
