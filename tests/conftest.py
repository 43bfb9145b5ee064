"""Shared fixtures: an in-memory serial port and a scripted controller."""

import re

import pytest
import serial

from ledsc_serial import transport
from ledsc_serial.crc import crc16_xmodem

_MNEMONIC = re.compile(r"\[([A-Z]*)")


def build_frame(body: str) -> str:
    """Append checksum and CR LF to ``[...]``."""
    return f"{body}{crc16_xmodem(body.encode('ascii')):X}\r\n"


class FakeSerial:
    """Stands in for a pyserial port.

    ``replies`` is either a fixed response string or a callable that maps
    the written command text to a response.
    """

    def __init__(self, replies=None, fail_write=False, fail_read=False, fail_read_chunk=False):
        self.replies = replies
        self.fail_write = fail_write
        self.fail_read = fail_read
        self.fail_read_chunk = fail_read_chunk
        self.written = []
        self.open_count = 0
        self.close_count = 0
        self._buffer = bytearray()

    @property
    def in_waiting(self):
        if self.fail_read:
            raise serial.SerialException("device reports readiness to read but returned no data")
        return len(self._buffer)

    def read(self, size=1):
        if self.fail_read_chunk:
            raise serial.SerialException("read failed: device disconnected")
        chunk = bytes(self._buffer[:size])
        del self._buffer[:size]
        return chunk

    def write(self, data):
        if self.fail_write:
            raise serial.SerialException("write failed")
        text = data.decode("utf-8")
        self.written.append(text)
        reply = self.replies(text) if callable(self.replies) else self.replies
        if reply:
            self._buffer.extend(reply.encode("utf-8"))
        return len(data)

    def close(self):
        self.close_count += 1


def controller(version="LEDSC_TEENSY_001", status="0", statuses=None):
    """Reply function for a well-behaved controller.

    PrintVersion answers ``[CPV:<status>:<version>]``; every other command
    echoes its mnemonic with the status (overridable per mnemonic).
    """
    statuses = statuses or {}

    def reply(command: str) -> str:
        mnemonic = _MNEMONIC.match(command).group(1)
        code = statuses.get(mnemonic, status)
        if mnemonic == "CPV":
            return build_frame(f"[CPV:{code}:{version}]")
        return build_frame(f"[{mnemonic}:{code}]")

    return reply


@pytest.fixture
def frame():
    return build_frame


@pytest.fixture
def fake_serial(monkeypatch):
    """Install a FakeSerial behind transport.open_port.

    Returns a factory taking FakeSerial arguments; the created port also
    records every device name it was opened with in ``opened``.
    """

    def install(replies=None, **kwargs):
        port = FakeSerial(replies, **kwargs)
        port.opened = []

        def open_port(name):
            port.opened.append(transport._device_name(name))
            port.open_count += 1
            return port

        monkeypatch.setattr(transport, "open_port", open_port)
        return port

    return install


@pytest.fixture
def scripted_controller(fake_serial):
    """FakeSerial answering like LEDSC_TEENSY_001 firmware."""

    def install(**kwargs):
        return fake_serial(controller(**kwargs))

    return install


@pytest.fixture
def raw_serial():
    """A bare FakeSerial preloaded with incoming bytes."""

    def make(incoming=b"", **kwargs):
        port = FakeSerial(**kwargs)
        port._buffer.extend(incoming)
        return port

    return make
