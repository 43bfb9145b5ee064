"""
LEDSC Serial Protocol - Exceptions
"""

from ledsc_serial.types import ErrorCode, ResponsePacket


class LedscError(Exception):
    """Base exception for LEDSC errors."""
    pass


# =========================================================================
# Transport
# =========================================================================

class NoPortsAvailableError(LedscError):
    """Serial ports could not be enumerated."""
    pass


class NoDeviceFoundError(LedscError):
    """No serial port answered the version probe."""
    pass


class PortOpenError(LedscError):
    """Failed to open the serial port."""
    pass


class WriteError(LedscError):
    """Failed to write the command to the serial port."""
    pass


class SerialLinkError(LedscError):
    """Serial port failed while reading (e.g. device unplugged)."""
    pass


class LedscTimeoutError(LedscError):
    """No bytes received before the timeout expired."""
    pass


# =========================================================================
# Protocol
# =========================================================================

class LocalParseError(LedscError):
    """Response frame was malformed."""

    def __init__(self, error_code: int, response: str = ""):
        self.error_code = error_code
        self.response = response
        super().__init__(
            f"{ErrorCode.describe(error_code)} (code {int(error_code)}) parsing {response!r}"
        )


class RemoteFailureError(LedscError):
    """Controller answered with a non-zero status."""

    def __init__(self, packet: ResponsePacket):
        self.packet = packet
        self.status = packet.status
        super().__init__(
            f"{ErrorCode.describe(packet.status)} (status {packet.status}) "
            f"for command {packet.command!r}"
        )


class ChecksumMismatchError(LedscError):
    """Transmitted checksum does not match the computed one."""

    def __init__(self, packet: ResponsePacket):
        self.packet = packet
        super().__init__(
            f"CRC16_MISMATCH: received 0x{packet.crc16_in:04X}, "
            f"computed 0x{packet.crc16_calc:04X} for command {packet.command!r}"
        )


class UnsupportedCommandError(LedscError):
    """Command is not supported by the connected firmware version."""
    pass
