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

"""
Module that contains the command line app.

Why does this file exist, and why not put this in __main__?

  You might be tempted to import things from __main__ later, but that will cause
  problems: the code will get executed twice:

  - When you run `python -m ihexbuf` python will execute
    ``__main__.py`` as a script. That means there won't be any
    ``ihexbuf.__main__`` in ``sys.modules``.
  - When you import __main__ it will get executed again (as a module) because
    there's no ``ihexbuf.__main__`` in ``sys.modules``.

  Also see (1) from https://click.palletsprojects.com/en/stable/setuptools/#setuptools-integration
"""

import logging
import sys
from typing import Optional

import click

from .__init__ import __version__
from .base import MAX_ADDRESS
from .base import IhexError
from .codec import MAX_DATA_LENGTH
from .codec import load
from .codec import save
from .utils import parse_int


class BasedIntParamType(click.ParamType):
    name = 'integer'

    def convert(self, value, param, ctx):
        try:
            return parse_int(value)
        except ValueError:
            self.fail(f'invalid integer: {value!r}', param, ctx)


class ByteIntParamType(click.ParamType):
    name = 'byte'

    def convert(self, value, param, ctx):
        try:
            b = parse_int(value)
            if not 0 <= b <= 255:
                raise ValueError()
            return b
        except ValueError:
            self.fail(f'invalid byte: {value!r}', param, ctx)


BASED_INT = BasedIntParamType()
BYTE_INT = ByteIntParamType()

FILE_PATH_IN = click.Path(dir_okay=False, allow_dash=True, readable=True, exists=True)
FILE_PATH_OUT = click.Path(dir_okay=False, allow_dash=True, writable=True)


# ----------------------------------------------------------------------------

def print_version(ctx, _, value):

    if not value or ctx.resilient_parsing:
        return

    click.echo(str(__version__))
    ctx.exit()


def read_binary(path: Optional[str]) -> bytes:

    if path is None or path == '-':
        return sys.stdin.buffer.read()
    with open(path, 'rb') as stream:
        return stream.read()


def write_binary(path: Optional[str], data: bytes) -> None:

    try:
        if path is None or path == '-':
            sys.stdout.buffer.write(data)
            sys.stdout.buffer.flush()
        else:
            with open(path, 'wb') as stream:
                stream.write(data)
    except OSError as exc:
        raise click.ClickException(f'cannot write output: {exc}') from exc


def dash_to_none(path: str) -> Optional[str]:

    return None if path == '-' else path


# ============================================================================

@click.group()
@click.option('--version', is_flag=True, callback=print_version,
              expose_value=False, is_eager=True, help="""
    Prints the package version number.
""")
@click.option('-v', '--verbose', is_flag=True, help="""
    Logs debug messages onto standard error.
""")
def main(verbose: bool) -> None:
    """
    Command line utilities to convert between Intel HEX record files and
    flat binary memory images.

    Being built with `Click <https://click.palletsprojects.com/en/stable/>`_, all the
    commands follow POSIX-like syntax rules, as well as reserving the virtual
    file path ``-`` for command chaining via standard output/input buffering.
    """

    if verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(levelname)s:%(name)s:%(message)s')


# ----------------------------------------------------------------------------

@main.command()
@click.option('-s', '--start', type=BASED_INT, default=0, show_default=True, help="""
    Inclusive start address of the memory image.
""")
@click.option('-e', '--end', type=BASED_INT, required=True, help="""
    Exclusive end address of the memory image.
""")
@click.option('-f', '--fill', type=BYTE_INT, default=0xFF, show_default=True, help="""
    Byte value of the memory image bytes not covered by data records.
""")
@click.option('--verify', is_flag=True, help="""
    Checks record lengths and checksums.
""")
@click.argument('infile', type=FILE_PATH_IN)
@click.argument('outfile', type=FILE_PATH_OUT)
def decode(
    start: int,
    end: int,
    fill: int,
    verify: bool,
    infile: str,
    outfile: str,
) -> None:
    r"""Converts an Intel HEX file into a binary image.

    The binary image spans from ``START`` up to the end of the highest data
    record within the ``[START, END)`` window.

    ``INFILE`` is the path of the input Intel HEX file.
    Set to ``-`` to read from standard input.

    ``OUTFILE`` is the path of the output binary file.
    Set to ``-`` to write to standard output.
    """

    if not 0 <= start <= end <= MAX_ADDRESS:
        raise click.BadParameter('invalid address window', param_hint='--start/--end')

    buffer = bytearray([fill]) * (end - start)
    try:
        span = load(dash_to_none(infile), buffer, start, end, verify=verify)
    except (IhexError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    write_binary(outfile, bytes(buffer[:span]))


# ----------------------------------------------------------------------------

@main.command()
@click.option('-s', '--start', type=BASED_INT, default=0, show_default=True, help="""
    Address of the first byte of the binary image.
""")
@click.option('-w', '--width', type=BASED_INT, default=MAX_DATA_LENGTH,
              show_default=True, help="""
    Sets the maximum length of the record data field, in bytes.
""")
@click.option('-c', '--color', is_flag=True, help="""
    Colorizes record fields with ANSI codes.
""")
@click.argument('infile', type=FILE_PATH_IN)
@click.argument('outfile', type=FILE_PATH_OUT)
def encode(
    start: int,
    width: int,
    color: bool,
    infile: str,
    outfile: str,
) -> None:
    r"""Converts a binary image into an Intel HEX file.

    ``INFILE`` is the path of the input binary file.
    Set to ``-`` to read from standard input.

    ``OUTFILE`` is the path of the output Intel HEX file.
    Set to ``-`` to write to standard output.
    """

    data = read_binary(infile)
    try:
        save(dash_to_none(outfile), data, start, start + len(data),
             maxdatalen=width, color=color)
    except (IhexError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
