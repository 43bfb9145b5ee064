"""
LEDSC Serial Protocol - High-Level Device Interface

Provides a convenient API for driving an LED strip controller.
"""

import logging
from typing import Optional, Union

from ledsc_serial.color import Color24
from ledsc_serial.exceptions import (
    ChecksumMismatchError,
    LocalParseError,
    RemoteFailureError,
    UnsupportedCommandError,
)
from ledsc_serial.protocol import POLL_INTERVAL, RECEIVE_TIMEOUT, decode, encode
from ledsc_serial.transport import PortLike, discover, exchange
from ledsc_serial.types import (
    Command,
    Effect,
    FailedLocal,
    FailedRemote,
    FireColorPallet,
    ResponsePacket,
)
from ledsc_serial.versions import (
    BASELINE_POLICY,
    ProtocolPolicy,
    ProtocolVersion,
    classify,
    resolve_policy,
)

logger = logging.getLogger(__name__)


def send_command(
    port: PortLike,
    command: Command,
    policy: Optional[ProtocolPolicy] = None,
    timeout: float = RECEIVE_TIMEOUT,
    poll_interval: float = POLL_INTERVAL,
    strict_checksum: bool = False,
) -> ResponsePacket:
    """
    Encode a command, exchange it and decode the reply.

    Args:
        port: Port handle, device path or pyserial URL
        command: Command to send
        policy: Capability table for effect/pallet codes (default: baseline)
        timeout: Response budget in seconds
        poll_interval: Poll interval while waiting for bytes
        strict_checksum: Raise on checksum mismatch instead of logging it

    Returns:
        The successful response packet

    Raises:
        LocalParseError: The reply could not be parsed
        RemoteFailureError: The firmware reported a non-zero status
        ChecksumMismatchError: strict_checksum is set and the checksum is wrong
        LedscError: Any transport failure from exchange()
    """
    response = exchange(port, encode(command, policy), timeout, poll_interval)
    option = decode(response)

    if isinstance(option, FailedLocal):
        raise LocalParseError(option.error_code, response)

    packet = option.packet
    if not packet.checksum_ok:
        if strict_checksum:
            raise ChecksumMismatchError(packet)
        logger.warning(
            f"Checksum mismatch for {packet.command!r}: "
            f"received 0x{packet.crc16_in:04X}, computed 0x{packet.crc16_calc:04X}"
        )

    if isinstance(option, FailedRemote):
        raise RemoteFailureError(packet)

    return packet


class LedscDevice:
    """
    High-level interface for LEDSC controllers.

    Example:
        device = LedscDevice()          # auto-detect
        device.connect()

        print(device.version)

        device.set_effect(Effect.SOLID_COLOR)
        device.set_color(Color24(255, 0, 0))
        device.set_brightness(128)
    """

    def __init__(
        self,
        port: Optional[PortLike] = None,
        timeout: float = RECEIVE_TIMEOUT,
        poll_interval: float = POLL_INTERVAL,
        strict_checksum: bool = False,
    ):
        """
        Initialize the device.

        Args:
            port: Serial port (None = auto-detect on connect)
            timeout: Per-exchange response budget in seconds
            poll_interval: Poll interval while waiting for bytes
            strict_checksum: Reject replies whose checksum does not match
        """
        self.port: Optional[PortLike] = port
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.strict_checksum = strict_checksum

        self._version: Optional[ProtocolVersion] = None
        self._policy: ProtocolPolicy = BASELINE_POLICY

    @property
    def version(self) -> Optional[ProtocolVersion]:
        """Firmware protocol version (populated after connect)."""
        return self._version

    @property
    def policy(self) -> ProtocolPolicy:
        return self._policy

    @property
    def is_connected(self) -> bool:
        return self.port is not None and self._version is not None

    def connect(self) -> ProtocolVersion:
        """
        Locate the controller and read its firmware version.

        Returns:
            The classified firmware version

        Raises:
            NoPortsAvailableError, NoDeviceFoundError: Auto-detect failed
            LedscError: The version request failed
        """
        if self.port is None:
            self.port = discover(self.timeout, self.poll_interval)

        packet = self.print_version()
        version_string = packet.parameters[1] if len(packet.parameters) > 1 else ""
        self._version = classify(version_string)
        self._policy = resolve_policy(self._version)

        logger.info(
            f"Connected to {self.port}: firmware {version_string or 'unknown'} "
            f"({self._version.kind.value}), using {self._policy.version_code}"
        )
        return self._version

    def close(self):
        """Forget the session state. No port is held open between calls."""
        self._version = None
        self._policy = BASELINE_POLICY

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # =========================================================================
    # Commands
    # =========================================================================

    def send(self, command: Command) -> ResponsePacket:
        """
        Send a command and return the successful response.

        Raises:
            UnsupportedCommandError: The firmware does not implement the command
        """
        if not self._policy.is_command_supported(command):
            raise UnsupportedCommandError(
                f"{command!r} is not supported by {self._policy.version_code}"
            )
        if self.port is None:
            self.port = discover(self.timeout, self.poll_interval)

        return send_command(
            self.port,
            command,
            self._policy,
            timeout=self.timeout,
            poll_interval=self.poll_interval,
            strict_checksum=self.strict_checksum,
        )

    def print_version(self) -> ResponsePacket:
        return self.send(Command.print_version())

    def get_status(self) -> ResponsePacket:
        return self.send(Command.get_status())

    def set_effect(self, effect: Effect) -> ResponsePacket:
        return self.send(Command.set_effect(effect))

    def set_effect_code(self, code: int) -> ResponsePacket:
        """Set an effect by firmware code. Unknown codes select Off."""
        return self.set_effect(self._policy.code_to_effect(code))

    def set_color(self, color: Union[Color24, int, str]) -> ResponsePacket:
        """Set the solid color from a Color24, 0xRRGGBB int or hex string."""
        if isinstance(color, str):
            color = Color24.from_hex(color)
        return self.send(Command.set_color(color))

    def set_brightness(self, brightness: int) -> ResponsePacket:
        """Set brightness (0-255)."""
        return self.send(Command.set_brightness(brightness))

    def set_brightness_percent(self, percent: float) -> ResponsePacket:
        """Set brightness from a 0-100 percentage."""
        if not 0 <= percent <= 100:
            raise ValueError(f"Brightness percent must be 0-100, got {percent}")
        return self.set_brightness(int(percent / 100.0 * 255.0))

    def set_fire_color_pallet(self, pallet: FireColorPallet) -> ResponsePacket:
        return self.send(Command.set_fire_color_pallet(pallet))

    def set_fire_color_pallet_code(self, code: int) -> ResponsePacket:
        """Set the fire pallet by firmware code. Unknown codes select the default."""
        return self.set_fire_color_pallet(self._policy.code_to_pallet(code))

    def set_debugging(self, enabled: bool) -> ResponsePacket:
        return self.send(Command.set_debugging(enabled))

    def full_reset(self) -> ResponsePacket:
        return self.send(Command.full_reset())

    def enter_bootloader(self) -> ResponsePacket:
        return self.send(Command.enter_bootloader())
