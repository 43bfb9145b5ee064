"""
LEDSC Serial Protocol - Protocol Constants and Frame Handling

Frames are ASCII text terminated by CR LF::

    [MNEMONIC:PARAM_1:PARAM_2...]CRC16\\r\\n

Commands carry at most one parameter. Responses always carry at least one
parameter, the firmware status code (``0`` on success). CRC16 is the
uppercase hex CRC-16/XMODEM of everything from ``[`` through ``]``.
"""

import logging
import re
from typing import Optional, Union

from ledsc_serial.crc import Crc16Xmodem, crc16_xmodem
from ledsc_serial.types import (
    Command,
    CommandKind,
    ErrorCode,
    FailedLocal,
    FailedRemote,
    ResponsePacket,
    ResponsePacketOption,
    Success,
)
from ledsc_serial.versions import BASELINE_POLICY, ProtocolPolicy, policy_for_version_string

logger = logging.getLogger(__name__)

# Framing characters
PROTO_STX = "["
PROTO_ETX = "]"
PROTO_PSC = ":"
PROTO_CR = "\r"
PROTO_NL = "\n"

# Status text of a successful response
PROTO_SUCCESS = str(int(ErrorCode.SUCCESS))

# SetDebugging parameter literals
DEBUG_ON = "0x01"
DEBUG_OFF = "0x00"

# Serial link (fixed: 115200 8N1)
BAUDRATE = 115200
DATA_BITS = 8
STOP_BITS = 1
PARITY = "N"

# Response timing
RECEIVE_TIMEOUT = 0.5  # seconds
POLL_INTERVAL = 0.01  # seconds
READ_CHUNK_SIZE = 10  # bytes per read call

_HEX_DIGITS = re.compile(r"[0-9A-Fa-f]+")


def _render_parameter(command: Command, policy: ProtocolPolicy) -> Optional[str]:
    """Render the command parameter, or None if the command has none."""
    kind = command.kind
    if kind == CommandKind.SET_DEBUGGING:
        return DEBUG_ON if command.value else DEBUG_OFF
    if kind == CommandKind.SET_EFFECT:
        return f"{policy.effect_to_code(command.value):X}"
    if kind == CommandKind.SET_COLOR:
        return f"{command.value.to_int():X}"
    if kind == CommandKind.SET_BRIGHTNESS:
        return f"{command.value:X}"
    if kind == CommandKind.SET_FIRE_COLOR_PALLET:
        return f"{policy.pallet_to_code(command.value):X}"
    return None


def encode(command: Command, policy: Optional[ProtocolPolicy] = None) -> str:
    """
    Build the command string for a command.

    Args:
        command: Command to encode
        policy: Capability table used for effect and pallet codes
            (default: the baseline firmware table)

    Returns:
        Complete frame including checksum and CR LF
    """
    policy = policy or BASELINE_POLICY

    frame = PROTO_STX + command.kind.mnemonic
    parameter = _render_parameter(command, policy)
    if parameter is not None:
        frame += PROTO_PSC + parameter
    frame += PROTO_ETX

    checksum = crc16_xmodem(frame.encode("ascii"))
    return f"{frame}{checksum:X}{PROTO_CR}{PROTO_NL}"


def _parse_crc16(text: str) -> int:
    """Parse the transmitted checksum. Malformed values read as 0."""
    if not _HEX_DIGITS.fullmatch(text):
        return 0
    value = int(text, 16)
    return value if value <= 0xFFFF else 0


def decode(raw: Union[str, bytes]) -> ResponsePacketOption:
    """
    Parse a response string.

    The checksum is computed while the frame is scanned. A mismatch between
    the transmitted and computed checksum is reported in the packet, not
    rejected here.

    Args:
        raw: Response text as read from the serial port

    Returns:
        Success, FailedRemote or FailedLocal
    """
    if isinstance(raw, (bytes, bytearray)):
        raw = bytes(raw).decode("utf-8", errors="replace")

    chars = iter(raw.strip())
    if next(chars, None) != PROTO_STX:
        return FailedLocal(ErrorCode.MISSING_STX)

    crc = Crc16Xmodem(PROTO_STX.encode("ascii"))

    def advance() -> Optional[str]:
        ch = next(chars, None)
        if ch is not None:
            crc.update(ch.encode("utf-8"))
        return ch

    delimiters = (PROTO_PSC, PROTO_ETX, None)

    # Command
    command = []
    current = advance()
    while current not in delimiters:
        command.append(current)
        current = advance()

    # Parameters
    parameters = []
    while current == PROTO_PSC:
        param = []
        current = advance()
        while current not in delimiters:
            param.append(current)
            current = advance()
        parameters.append("".join(param))

    if not parameters:
        # Responses always carry at least the status code
        return FailedLocal(ErrorCode.MISSING_PARAMS)

    if current != PROTO_ETX:
        return FailedLocal(ErrorCode.MISSING_ETX)

    # Transmitted checksum, up to CR
    crc_text = []
    for ch in chars:
        if ch == PROTO_CR:
            break
        crc_text.append(ch)

    packet = ResponsePacket(
        command="".join(command),
        parameters=tuple(parameters),
        crc16_in=_parse_crc16("".join(crc_text)),
        crc16_calc=crc.finalize(),
    )

    if not packet.checksum_ok:
        logger.debug(f"Checksum mismatch in {packet!r}")

    if packet.parameters[0] == PROTO_SUCCESS:
        return Success(packet)
    return FailedRemote(packet)


class LedscProtocol:
    """
    Protocol handler bound to one firmware capability table.

    Example:
        protocol = LedscProtocol.for_version("LEDSC_TEENSY_001")
        frame = protocol.encode(Command.set_brightness(0x5C))
        option = protocol.decode("[CSB:0]F1F5")
    """

    def __init__(self, policy: Optional[ProtocolPolicy] = None):
        self.policy = policy or BASELINE_POLICY

    @classmethod
    def for_version(cls, version_string: Optional[str]) -> "LedscProtocol":
        return cls(policy_for_version_string(version_string))

    def encode(self, command: Command) -> str:
        return encode(command, self.policy)

    @staticmethod
    def decode(raw: Union[str, bytes]) -> ResponsePacketOption:
        return decode(raw)

    def is_supported(self, command: Command) -> bool:
        return self.policy.is_command_supported(command)
