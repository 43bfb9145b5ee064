"""Tests for the serial transport: response collection, exchange and discovery."""

import time
from types import SimpleNamespace

import pytest
import serial
import serial.tools.list_ports

from ledsc_serial import transport
from ledsc_serial.exceptions import (
    LedscTimeoutError,
    NoDeviceFoundError,
    NoPortsAvailableError,
    PortOpenError,
    SerialLinkError,
    WriteError,
)
from ledsc_serial.protocol import decode
from ledsc_serial.transport import (
    PortHandle,
    discover,
    exchange,
    list_ports,
    open_port,
    wait_for_response,
)
from ledsc_serial.types import ErrorCode, FailedLocal, FailedRemote, Success

BUDGET = 0.05


# =========================================================================
# wait_for_response
# =========================================================================

def test_wait_times_out_with_no_data(raw_serial):
    port = raw_serial()
    start = time.monotonic()
    with pytest.raises(LedscTimeoutError):
        wait_for_response(port, timeout=BUDGET, poll_interval=0.005)
    assert time.monotonic() - start >= BUDGET


def test_wait_collects_pending_bytes_in_chunks(raw_serial):
    port = raw_serial(b"[CPV:0:LEDSC_TEENSY_001]ABCD\r\n")
    assert wait_for_response(port, BUDGET, 0.005, chunk_size=4) == "[CPV:0:LEDSC_TEENSY_001]ABCD\r\n"


def test_wait_uses_the_full_budget(raw_serial):
    """Replies have no length, so collection only stops at the deadline."""
    port = raw_serial(b"[CSB:0]F1F5\r\n")
    start = time.monotonic()
    wait_for_response(port, timeout=BUDGET, poll_interval=0.005)
    assert time.monotonic() - start >= BUDGET


def test_wait_replaces_invalid_utf8(raw_serial):
    port = raw_serial(b"[CSB:0]\xff\r\n")
    assert "�" in wait_for_response(port, BUDGET, 0.005)


def test_wait_link_error(raw_serial):
    port = raw_serial(fail_read=True)
    with pytest.raises(SerialLinkError):
        wait_for_response(port, BUDGET, 0.005)


def test_wait_read_error_while_draining(raw_serial):
    """A read failure after bytes were reported is a link error too."""
    port = raw_serial(b"[CSB:0]F1F5\r\n", fail_read_chunk=True)
    with pytest.raises(SerialLinkError):
        wait_for_response(port, BUDGET, 0.005)


# =========================================================================
# exchange
# =========================================================================

def test_exchange_writes_and_reads(fake_serial, frame):
    reply = frame("[CPV:0:LEDSC_TEENSY_001]")
    port = fake_serial(reply)
    assert exchange("/dev/ttyFAKE", "[CPV]7D02\r\n", BUDGET, 0.005) == reply
    assert port.written == ["[CPV]7D02\r\n"]
    assert port.opened == ["/dev/ttyFAKE"]
    assert port.close_count == 1


def test_exchange_closes_port_on_timeout(fake_serial):
    port = fake_serial(None)
    with pytest.raises(LedscTimeoutError):
        exchange("/dev/ttyFAKE", "[CPV]7D02\r\n", BUDGET, 0.005)
    assert port.close_count == 1


def test_exchange_closes_port_on_read_error(fake_serial):
    port = fake_serial("[CPV:0]0000\r\n", fail_read_chunk=True)
    with pytest.raises(SerialLinkError):
        exchange("/dev/ttyFAKE", "[CPV]7D02\r\n", BUDGET, 0.005)
    assert port.written == ["[CPV]7D02\r\n"]
    assert port.close_count == 1


def test_exchange_write_failure_skips_read(fake_serial):
    port = fake_serial("[CPV:0]0000\r\n", fail_write=True)
    with pytest.raises(WriteError):
        exchange("/dev/ttyFAKE", "[CPV]7D02\r\n", BUDGET, 0.005)
    assert port.written == []
    assert port.close_count == 1


def test_exchange_accepts_port_handle(fake_serial):
    port = fake_serial("[CSB:0]F1F5\r\n")
    exchange(PortHandle("/dev/ttyACM3"), "[CSB:0]F1F5\r\n", BUDGET, 0.005)
    assert port.opened == ["/dev/ttyACM3"]


def test_exchange_over_loopback_url():
    """pyserial's loop:// echoes the command back."""
    assert exchange("loop://", "[CSB:0]F1F5\r\n", BUDGET, 0.005) == "[CSB:0]F1F5\r\n"


def test_open_port_failure():
    with pytest.raises(PortOpenError):
        open_port("/dev/ledsc-port-that-does-not-exist")


def test_open_port_link_settings():
    port = open_port("loop://")
    try:
        assert port.baudrate == 115200
        assert port.bytesize == serial.EIGHTBITS
        assert port.parity == serial.PARITY_NONE
        assert port.stopbits == serial.STOPBITS_ONE
    finally:
        port.close()


# =========================================================================
# Port enumeration and discovery
# =========================================================================

def test_list_ports(monkeypatch):
    infos = [
        SimpleNamespace(device="/dev/ttyACM0", description="Teensy", hwid="USB VID:PID=16C0:0483"),
        SimpleNamespace(device="/dev/ttyS0", description=None, hwid=None),
    ]
    monkeypatch.setattr(serial.tools.list_ports, "comports", lambda: infos)
    ports = list_ports()
    assert ports == [
        PortHandle("/dev/ttyACM0", "Teensy", "USB VID:PID=16C0:0483"),
        PortHandle("/dev/ttyS0", "", ""),
    ]
    assert str(ports[0]) == "/dev/ttyACM0"


def test_list_ports_failure(monkeypatch):
    def broken():
        raise OSError("permission denied")

    monkeypatch.setattr(serial.tools.list_ports, "comports", broken)
    with pytest.raises(NoPortsAvailableError):
        list_ports()


def _install_probe(monkeypatch, results):
    """Make probe_port return (or raise) a scripted result per device."""
    probed = []

    def probe(port, timeout, poll_interval):
        probed.append(port.device)
        result = results[port.device]
        if isinstance(result, Exception):
            raise result
        return result

    monkeypatch.setattr(transport, "probe_port", probe)
    monkeypatch.setattr(transport, "list_ports", lambda: [PortHandle(name) for name in results])
    return probed


def test_discover_returns_first_responding_port(monkeypatch):
    probed = _install_probe(
        monkeypatch,
        {
            "/dev/ttyS0": LedscTimeoutError("nothing"),
            "/dev/ttyUSB0": FailedLocal(ErrorCode.MISSING_STX),
            "/dev/ttyACM0": decode("[CSB:0]F1F5"),
            "/dev/ttyACM1": decode("[CSB:0]F1F5"),
        },
    )
    assert discover(BUDGET).device == "/dev/ttyACM0"
    assert probed == ["/dev/ttyS0", "/dev/ttyUSB0", "/dev/ttyACM0"]


def test_discover_accepts_remote_failure(monkeypatch):
    result = decode("[CS:-104]599D")
    assert isinstance(result, FailedRemote)
    _install_probe(monkeypatch, {"/dev/ttyACM0": result})
    assert discover(BUDGET).device == "/dev/ttyACM0"


def test_discover_skips_port_open_errors(monkeypatch):
    result = decode("[CSE:0]A0D8")
    assert isinstance(result, Success)
    _install_probe(
        monkeypatch,
        {"/dev/ttyACM0": PortOpenError("busy"), "/dev/ttyACM1": result},
    )
    assert discover(BUDGET).device == "/dev/ttyACM1"


def test_discover_nothing_found(monkeypatch):
    _install_probe(monkeypatch, {"/dev/ttyS0": SerialLinkError("gone")})
    with pytest.raises(NoDeviceFoundError):
        discover(BUDGET)


def test_discover_no_ports(monkeypatch):
    _install_probe(monkeypatch, {})
    with pytest.raises(NoDeviceFoundError):
        discover(BUDGET)


def test_discover_end_to_end(monkeypatch, scripted_controller):
    """Discovery sends PrintVersion through the real probe."""
    port = scripted_controller()
    monkeypatch.setattr(transport, "list_ports", lambda: [PortHandle("/dev/ttyACM0")])
    assert discover(BUDGET, 0.005).device == "/dev/ttyACM0"
    assert port.written == ["[CPV]7D02\r\n"]
