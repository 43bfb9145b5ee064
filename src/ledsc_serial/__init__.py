"""
LEDSC Serial Protocol - Python Host Implementation

Drive LED strip controllers running the LEDSC text protocol over USB serial.

Example:
    from ledsc_serial import LedscDevice, Effect, Color24

    device = LedscDevice()  # auto-detect the port
    device.connect()

    device.set_effect(Effect.SOLID_COLOR)
    device.set_color(Color24(255, 128, 0))
    device.set_brightness(128)
"""

from .color import Color24
from .crc import Crc16Xmodem, crc16_xmodem
from .device import LedscDevice, send_command
from .exceptions import (
    ChecksumMismatchError,
    LedscError,
    LedscTimeoutError,
    LocalParseError,
    NoDeviceFoundError,
    NoPortsAvailableError,
    PortOpenError,
    RemoteFailureError,
    SerialLinkError,
    UnsupportedCommandError,
    WriteError,
)
from .protocol import LedscProtocol, decode, encode
from .transport import PortHandle, discover, exchange, list_ports
from .types import (
    Command,
    CommandKind,
    Effect,
    ErrorCode,
    FailedLocal,
    FailedRemote,
    FireColorPallet,
    ResponsePacket,
    ResponsePacketOption,
    Success,
)
from .versions import (
    BASELINE_POLICY,
    ProtocolPolicy,
    ProtocolVersion,
    VersionKind,
    classify,
    resolve_policy,
)

__version__ = "0.1.0"
__all__ = [
    # Main class
    "LedscDevice",
    "LedscProtocol",
    # Codec
    "encode",
    "decode",
    "send_command",
    "crc16_xmodem",
    "Crc16Xmodem",
    # Transport
    "PortHandle",
    "list_ports",
    "discover",
    "exchange",
    # Data classes
    "Color24",
    "Command",
    "CommandKind",
    "Effect",
    "FireColorPallet",
    "ErrorCode",
    "ResponsePacket",
    "ResponsePacketOption",
    "Success",
    "FailedRemote",
    "FailedLocal",
    # Versions
    "ProtocolVersion",
    "VersionKind",
    "ProtocolPolicy",
    "BASELINE_POLICY",
    "classify",
    "resolve_policy",
    # Exceptions
    "LedscError",
    "NoPortsAvailableError",
    "NoDeviceFoundError",
    "PortOpenError",
    "WriteError",
    "SerialLinkError",
    "LedscTimeoutError",
    "LocalParseError",
    "RemoteFailureError",
    "ChecksumMismatchError",
    "UnsupportedCommandError",
]
