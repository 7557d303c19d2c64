from pathlib import Path
from typing import cast as _cast

import click
import pytest
from click.core import Command
from click.testing import CliRunner

from ihexbuf import __version__ as _version
from ihexbuf.__main__ import main as _main
from ihexbuf.cli import *

main = _cast(Command, main)  # suppress warnings

SIMPLE_HEX = ':0300000011223397\n:00000001FF\n'


@pytest.fixture
def tmppath(tmpdir):
    return Path(str(tmpdir))


def read_text(path):
    path = str(path)
    with open(path, 'rt') as file:
        data = file.read()
    return data


def write_text(path, text):
    path = str(path)
    with open(path, 'wt', newline='') as file:
        file.write(text)


def test_main():
    try:
        _main('__main__')
    except SystemExit:
        pass


def test_version():
    runner = CliRunner()
    result = runner.invoke(main, ['--version'])
    assert result.exit_code == 0
    assert result.output == f'{_version}\n'


def test_help():
    commands = ('decode', 'encode')
    runner = CliRunner()

    for command in commands:
        result = runner.invoke(main, [command, '--help'])
        assert result.exit_code == 0
        assert result.output.strip().startswith('Usage:')


def test_based_int():
    assert BASED_INT.convert('0x10', None, None) == 16
    assert BASED_INT.convert('10h', None, None) == 16
    assert BASED_INT.convert('1k', None, None) == 1024


def test_byte_int():
    assert BYTE_INT.convert('0xFF', None, None) == 255
    assert BYTE_INT.convert('0', None, None) == 0


def test_dash_to_none():
    assert dash_to_none('-') is None
    assert dash_to_none('x.hex') == 'x.hex'


def test_read_write_binary(tmppath):
    path = str(tmppath / 'data.bin')
    write_binary(path, b'abc')
    assert read_binary(path) == b'abc'


# ----------------------------------------------------------------------------

def test_decode(tmppath):
    path_in = str(tmppath / 'simple.hex')
    path_out = str(tmppath / 'simple.bin')
    write_text(path_in, SIMPLE_HEX)

    runner = CliRunner()
    result = runner.invoke(main, ['decode', '-e', '3', path_in, path_out])
    assert result.exit_code == 0, result.output
    assert read_binary(path_out) == b'\x11\x22\x33'


def test_decode_fill_span(tmppath):
    path_in = str(tmppath / 'holes.hex')
    path_out = str(tmppath / 'holes.bin')
    write_text(path_in, ':0100000011EE\r\n:0100080022D5\r\n:00000001FF\r\n')

    runner = CliRunner()
    args = ['decode', '-e', '0x10', '-f', '0xA5', path_in, path_out]
    result = runner.invoke(main, args)
    assert result.exit_code == 0, result.output
    assert read_binary(path_out) == b'\x11' + (b'\xA5' * 7) + b'\x22'


def test_decode_default_fill(tmppath):
    path_in = str(tmppath / 'holes.hex')
    path_out = str(tmppath / 'holes.bin')
    write_text(path_in, ':0100010011ED\n')

    runner = CliRunner()
    result = runner.invoke(main, ['decode', '-e', '4', path_in, path_out])
    assert result.exit_code == 0, result.output
    assert read_binary(path_out) == b'\xFF\x11'


def test_decode_start(tmppath):
    path_in = str(tmppath / 'offset.hex')
    path_out = str(tmppath / 'offset.bin')
    write_text(path_in, ':02800100ABCD05\n:00000001FF\n')

    runner = CliRunner()
    args = ['decode', '-s', '0x8000', '-e', '0x8004', path_in, path_out]
    result = runner.invoke(main, args)
    assert result.exit_code == 0, result.output
    assert read_binary(path_out) == b'\xFF\xAB\xCD'


def test_decode_stdio():
    runner = CliRunner()
    result = runner.invoke(main, ['decode', '-e', '3', '-', '-'], input=SIMPLE_HEX)
    assert result.exit_code == 0
    assert result.stdout_bytes == b'\x11\x22\x33'


def test_decode_malformed():
    runner = CliRunner()
    result = runner.invoke(main, ['decode', '-e', '3', '-', '-'],
                           input=':00000001FF\nxyz\n')
    assert result.exit_code == 1
    assert 'syntax error at line 2' in result.output


def test_decode_out_of_range():
    runner = CliRunner()
    result = runner.invoke(main, ['decode', '-e', '2', '-', '-'], input=SIMPLE_HEX)
    assert result.exit_code == 1
    assert 'out of range at line 1' in result.output


def test_decode_verify():
    runner = CliRunner()
    text = ':0300000011223300\n'

    result = runner.invoke(main, ['decode', '-e', '3', '-', '-'], input=text)
    assert result.exit_code == 0
    assert result.stdout_bytes == b'\x11\x22\x33'

    result = runner.invoke(main, ['decode', '--verify', '-e', '3', '-', '-'], input=text)
    assert result.exit_code == 1
    assert 'wrong checksum' in result.output


def test_decode_bad_window():
    runner = CliRunner()
    result = runner.invoke(main, ['decode', '-s', '4', '-e', '3', '-', '-'], input=SIMPLE_HEX)
    assert result.exit_code == 2
    assert 'invalid address window' in result.output


def test_decode_end_overflow():
    runner = CliRunner()
    args = ['decode', '-e', '0x10000000000', '-', '-']
    result = runner.invoke(main, args, input=SIMPLE_HEX)
    assert result.exit_code == 2
    assert 'invalid address window' in result.output


def test_decode_write_error(tmppath):
    path_in = str(tmppath / 'simple.hex')
    path_out = str(tmppath / 'missing' / 'simple.bin')
    write_text(path_in, SIMPLE_HEX)

    runner = CliRunner()
    result = runner.invoke(main, ['decode', '-e', '3', path_in, path_out])
    assert result.exit_code == 1
    assert 'cannot write output' in result.output


def test_write_binary_raises(tmppath):
    with pytest.raises(click.ClickException, match='cannot write output'):
        write_binary(str(tmppath / 'missing' / 'data.bin'), b'abc')


def test_decode_end_required():
    runner = CliRunner()
    result = runner.invoke(main, ['decode', '-', '-'], input=SIMPLE_HEX)
    assert result.exit_code == 2


def test_decode_parse_byte_fail():
    runner = CliRunner()
    result = runner.invoke(main, 'decode -e 3 -f 256 - -'.split())
    assert result.exit_code == 2
    assert "invalid byte: '256'" in result.output


def test_decode_parse_int_fail():
    runner = CliRunner()
    result = runner.invoke(main, 'decode -e xyz - -'.split())
    assert result.exit_code == 2
    assert "invalid integer: 'xyz'" in result.output


# ----------------------------------------------------------------------------

def test_encode(tmppath):
    path_in = str(tmppath / 'simple.bin')
    path_out = str(tmppath / 'simple.hex')
    write_binary(path_in, b'\x11\x22\x33')

    runner = CliRunner()
    result = runner.invoke(main, ['encode', path_in, path_out])
    assert result.exit_code == 0, result.output
    assert read_text(path_out) == SIMPLE_HEX


def test_encode_start_width(tmppath):
    path_in = str(tmppath / 'simple.bin')
    path_out = str(tmppath / 'simple.hex')
    write_binary(path_in, b'\x11\x22\x33')

    runner = CliRunner()
    args = ['encode', '-s', '0xFFFF', '-w', '2', path_in, path_out]
    result = runner.invoke(main, args)
    assert result.exit_code == 0, result.output
    assert read_text(path_out) == (':020000040000FA\n'
                                   ':01FFFF0011F0\n'
                                   ':020000040001F9\n'
                                   ':020000002233A9\n'
                                   ':00000001FF\n')


def test_encode_stdio():
    runner = CliRunner()
    result = runner.invoke(main, ['encode', '-', '-'], input=b'\x11\x22\x33')
    assert result.exit_code == 0
    assert result.output == SIMPLE_HEX


def test_encode_color():
    runner = CliRunner()
    result = runner.invoke(main, ['encode', '-c', '-', '-'], input=b'\x11\x22\x33')
    assert result.exit_code == 0
    assert '\x1b[' in result.output
    assert result.output != SIMPLE_HEX


def test_encode_bad_width():
    runner = CliRunner()
    result = runner.invoke(main, ['encode', '-w', '0', '-', '-'], input=b'abc')
    assert result.exit_code == 1
    assert 'invalid maximum data length' in result.output


def test_encode_overflow():
    runner = CliRunner()
    result = runner.invoke(main, ['encode', '-s', '0xFFFFFFFF', '-', '-'], input=b'abc')
    assert result.exit_code == 1
    assert 'invalid address window' in result.output


def test_verbose(tmppath):
    path_in = str(tmppath / 'simple.bin')
    path_out = str(tmppath / 'simple.hex')
    write_binary(path_in, b'\x11\x22\x33')

    runner = CliRunner()
    result = runner.invoke(main, ['-v', 'encode', path_in, path_out])
    assert result.exit_code == 0
    assert read_text(path_out) == SIMPLE_HEX


def test_round_trip(tmppath):
    data = bytes(range(256)) * 300
    path_bin = str(tmppath / 'data.bin')
    path_hex = str(tmppath / 'data.hex')
    path_out = str(tmppath / 'data.out')
    write_binary(path_bin, data)

    runner = CliRunner()
    result = runner.invoke(main, ['encode', '-s', '0x8000', path_bin, path_hex])
    assert result.exit_code == 0, result.output

    end = str(0x8000 + len(data))
    args = ['decode', '--verify', '-s', '0x8000', '-e', end, path_hex, path_out]
    result = runner.invoke(main, args)
    assert result.exit_code == 0, result.output
    assert read_binary(path_out) == data
