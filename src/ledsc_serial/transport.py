"""Serial transport for LEDSC controllers.

Every exchange opens the port, writes one command, collects the reply and
closes the port again. No serial handle is kept between calls.
"""

import logging
import time
from dataclasses import dataclass
from typing import Union

import serial
import serial.tools.list_ports

from ledsc_serial.exceptions import (
    LedscError,
    LedscTimeoutError,
    NoDeviceFoundError,
    NoPortsAvailableError,
    PortOpenError,
    SerialLinkError,
    WriteError,
)
from ledsc_serial.protocol import (
    BAUDRATE,
    DATA_BITS,
    PARITY,
    POLL_INTERVAL,
    READ_CHUNK_SIZE,
    RECEIVE_TIMEOUT,
    STOP_BITS,
    decode,
    encode,
)
from ledsc_serial.types import Command, FailedLocal, ResponsePacketOption

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PortHandle:
    """A serial port that may host a controller."""

    device: str
    description: str = ""
    hwid: str = ""

    @classmethod
    def from_port_info(cls, info) -> "PortHandle":
        return cls(
            device=info.device,
            description=info.description or "",
            hwid=info.hwid or "",
        )

    def __str__(self) -> str:
        return self.device


PortLike = Union[PortHandle, str]


def _device_name(port: PortLike) -> str:
    return port.device if isinstance(port, PortHandle) else str(port)


def list_ports() -> list[PortHandle]:
    """List the serial ports present on this system.

    Raises:
        NoPortsAvailableError: The ports could not be enumerated
    """
    try:
        infos = serial.tools.list_ports.comports()
    except Exception as e:
        raise NoPortsAvailableError(f"Failed to list serial ports: {e}") from e
    return [PortHandle.from_port_info(info) for info in infos]


def open_port(port: PortLike) -> serial.SerialBase:
    """
    Open a serial port at the fixed link settings (115200 8N1).

    Args:
        port: Port handle, device path or pyserial URL (e.g. 'loop://')

    Raises:
        PortOpenError: The port could not be opened
    """
    device = _device_name(port)
    try:
        return serial.serial_for_url(
            device,
            baudrate=BAUDRATE,
            bytesize=DATA_BITS,
            parity=PARITY,
            stopbits=STOP_BITS,
            timeout=0,
        )
    except (serial.SerialException, OSError, ValueError) as e:
        raise PortOpenError(f"Failed to open {device}: {e}") from e


def _bytes_waiting(serial_port) -> int:
    try:
        return serial_port.in_waiting
    except (serial.SerialException, OSError) as e:
        raise SerialLinkError(f"Serial port error: {e}") from e


def _read_chunk(serial_port, size: int) -> bytes:
    try:
        return serial_port.read(size)
    except (serial.SerialException, OSError) as e:
        raise SerialLinkError(f"Failed to read serial port bytes: {e}") from e


def wait_for_response(
    serial_port,
    timeout: float = RECEIVE_TIMEOUT,
    poll_interval: float = POLL_INTERVAL,
    chunk_size: int = READ_CHUNK_SIZE,
) -> str:
    """
    Collect incoming bytes until the timeout budget is used up.

    The reply has no length prefix, so this always takes at least
    ``timeout`` seconds: after each burst of bytes it keeps polling in case
    more arrive. Example with a 500ms budget: wait 100ms for the first
    bytes, drain them, wait 50ms, drain again, then poll the remaining
    350ms without new bytes and return.

    Args:
        serial_port: Open pyserial port
        timeout: Total budget in seconds
        poll_interval: Sleep between polls while the port is quiet
        chunk_size: Maximum bytes per read call

    Returns:
        Received bytes decoded as UTF-8

    Raises:
        SerialLinkError: The port failed while reading
        LedscTimeoutError: Nothing was received
    """
    deadline = time.monotonic() + timeout
    received = bytearray()

    while time.monotonic() < deadline:
        # Wait for bytes to be available
        while _bytes_waiting(serial_port) == 0:
            if time.monotonic() >= deadline:
                break
            time.sleep(poll_interval)

        # Drain what is available
        while time.monotonic() < deadline:
            waiting = _bytes_waiting(serial_port)
            if waiting <= 0:
                break
            received.extend(_read_chunk(serial_port, min(waiting, chunk_size)))

    if not received:
        raise LedscTimeoutError(f"Timed out reading serial port after {timeout:.3f}s")

    return received.decode("utf-8", errors="replace")


def exchange(
    port: PortLike,
    command: str,
    timeout: float = RECEIVE_TIMEOUT,
    poll_interval: float = POLL_INTERVAL,
) -> str:
    """
    Send a command string and return the raw response string.

    The port is opened for this exchange only and closed on every exit path.

    Raises:
        PortOpenError: The port could not be opened
        WriteError: Writing failed (no read is attempted)
        SerialLinkError: The port failed while reading
        LedscTimeoutError: Nothing was received
    """
    device = _device_name(port)
    serial_port = open_port(port)
    try:
        logger.debug(f"TX -> {device}: {command!r}")
        try:
            serial_port.write(command.encode("utf-8"))
        except (serial.SerialException, OSError) as e:
            raise WriteError(f"Failed to write to {device}: {e}") from e

        response = wait_for_response(serial_port, timeout, poll_interval)
        logger.debug(f"RX <- {device}: {response!r}")
        return response
    finally:
        serial_port.close()


def probe_port(
    port: PortLike,
    timeout: float = RECEIVE_TIMEOUT,
    poll_interval: float = POLL_INTERVAL,
) -> ResponsePacketOption:
    """Send PrintVersion to a port and decode whatever comes back."""
    response = exchange(port, encode(Command.print_version()), timeout, poll_interval)
    return decode(response)


def discover(
    timeout: float = RECEIVE_TIMEOUT,
    poll_interval: float = POLL_INTERVAL,
) -> PortHandle:
    """
    Find the first serial port with a responding controller.

    A port matches when its PrintVersion reply parses, whether the firmware
    reports success or an error. Failures on one port move on to the next.

    Raises:
        NoPortsAvailableError: The ports could not be enumerated
        NoDeviceFoundError: No port answered with a parseable reply
    """
    ports = list_ports()
    logger.debug(f"Probing {len(ports)} serial port(s)")

    for port in ports:
        try:
            option = probe_port(port, timeout, poll_interval)
        except LedscError as e:
            logger.debug(f"Probe of {port.device} failed: {e}")
            continue

        if isinstance(option, FailedLocal):
            logger.debug(f"Probe of {port.device} got unparseable reply: {option.error_code.name}")
            continue

        logger.info(f"Found LEDSC controller on {port.device}")
        return port

    raise NoDeviceFoundError("No Devices Found")
