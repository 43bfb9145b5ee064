"""Common data types and enums for the LEDSC serial protocol."""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Union

from ledsc_serial.color import Color24


class Effect(Enum):
    """LED strip effects.

    Wire codes are owned by the protocol policy, not by this enum.
    """

    OFF = "off"
    SOLID_COLOR = "solid_color"
    RAINBOW_CYCLE = "rainbow_cycle"
    COMET = "comet"
    COMET_RAINBOW = "comet_rainbow"
    FIRE = "fire"
    FIRE_COLOR = "fire_color"
    SOLID_COLOR_PULSE = "solid_color_pulse"
    BOUNCING_BALL = "bouncing_ball"
    TWINKLE = "twinkle"
    MAX_EFFECT = "max_effect"


class FireColorPallet(Enum):
    """Color pallets for the fire effect."""

    HEAT = "heat"
    PARTY = "party"
    RAINBOW = "rainbow"
    RAINBOW_STRIPE = "rainbow_stripe"
    FOREST = "forest"
    OCEAN = "ocean"
    LAVA = "lava"
    CLOUD = "cloud"


class CommandKind(Enum):
    """Controller commands. The value is the wire mnemonic."""

    NONE = ""
    PRINT_VERSION = "CPV"
    FULL_RESET = "CFR"
    ENTER_BOOTLOADER = "CEB"
    SET_DEBUGGING = "CSD"
    SET_EFFECT = "CSE"
    SET_COLOR = "CSC"
    SET_BRIGHTNESS = "CSB"
    SET_FIRE_COLOR_PALLET = "CSFP"
    GET_STATUS = "CGS"

    @property
    def mnemonic(self) -> str:
        return self.value


class ErrorCode(IntEnum):
    """Status and error codes shared by the firmware and the host parser."""

    SUCCESS = 0

    # Command parsing
    CMD_PARSING = -100
    MISSING_STX = -101
    MISSING_ETX = -102
    MISSING_PSC = -103
    MISSING_EFC = -104
    CMD_OVERFLOW = -105
    CMD_NOT_IMPLEMENTED = -106
    CMD_UNKNOWN = -107
    MISSING_PARAMS = -108
    PARAM_OUT_OF_RANGE = -109
    CRC16_MISMATCH = -110
    MISSING_CRC16 = -111

    # Response building
    RSP_BUILDING = -200
    RB_TOO_MANY_PARAMS = -201
    RB_PARAM_OVERFLOW = -202

    # ADC
    ADC = -300
    ADC_READFAIL = -301
    ADC_REGISTER_DEPTH = -302

    # Set move-to-hall config
    SMC = -400
    SMC_POLY_INDEX_OOR = -401

    @classmethod
    def describe(cls, code: Union[int, str]) -> str:
        """Name a status code, tolerating unknown or non-numeric values."""
        try:
            return cls(int(code)).name
        except ValueError:
            return f"UNKNOWN({code})"


@dataclass(frozen=True)
class Command:
    """A single controller command.

    Build instances with the constructors, e.g. ``Command.set_effect(Effect.COMET)``.
    """

    kind: CommandKind = CommandKind.NONE
    value: Any = None

    @classmethod
    def none(cls) -> "Command":
        return cls(CommandKind.NONE)

    @classmethod
    def print_version(cls) -> "Command":
        return cls(CommandKind.PRINT_VERSION)

    @classmethod
    def full_reset(cls) -> "Command":
        return cls(CommandKind.FULL_RESET)

    @classmethod
    def enter_bootloader(cls) -> "Command":
        return cls(CommandKind.ENTER_BOOTLOADER)

    @classmethod
    def get_status(cls) -> "Command":
        return cls(CommandKind.GET_STATUS)

    @classmethod
    def set_debugging(cls, enabled: bool) -> "Command":
        if not isinstance(enabled, bool):
            raise TypeError(f"Debugging flag must be a bool, got {type(enabled).__name__}")
        return cls(CommandKind.SET_DEBUGGING, enabled)

    @classmethod
    def set_effect(cls, effect: Effect) -> "Command":
        if not isinstance(effect, Effect):
            raise TypeError(f"Expected Effect, got {type(effect).__name__}")
        return cls(CommandKind.SET_EFFECT, effect)

    @classmethod
    def set_color(cls, color: Union[Color24, int]) -> "Command":
        if isinstance(color, int) and not isinstance(color, bool):
            color = Color24.from_int(color)
        if not isinstance(color, Color24):
            raise TypeError(f"Expected Color24, got {type(color).__name__}")
        return cls(CommandKind.SET_COLOR, color)

    @classmethod
    def set_brightness(cls, brightness: int) -> "Command":
        if not isinstance(brightness, int) or isinstance(brightness, bool):
            raise TypeError(f"Brightness must be an int, got {type(brightness).__name__}")
        if not 0 <= brightness <= 0xFF:
            raise ValueError(f"Brightness must be 0-255, got {brightness}")
        return cls(CommandKind.SET_BRIGHTNESS, brightness)

    @classmethod
    def set_fire_color_pallet(cls, pallet: FireColorPallet) -> "Command":
        if not isinstance(pallet, FireColorPallet):
            raise TypeError(f"Expected FireColorPallet, got {type(pallet).__name__}")
        return cls(CommandKind.SET_FIRE_COLOR_PALLET, pallet)

    def __repr__(self) -> str:
        if self.value is None:
            return f"Command({self.kind.name})"
        return f"Command({self.kind.name}, {self.value!r})"


@dataclass(frozen=True)
class ResponsePacket:
    """A response frame parsed from the controller."""

    command: str
    parameters: tuple[str, ...]
    crc16_in: int
    crc16_calc: int

    @property
    def status(self) -> str:
        """First parameter: the firmware status code."""
        return self.parameters[0] if self.parameters else ""

    @property
    def checksum_ok(self) -> bool:
        return self.crc16_in == self.crc16_calc

    def __repr__(self) -> str:
        return (
            f"ResponsePacket({self.command!r}, params={list(self.parameters)}, "
            f"crc_in=0x{self.crc16_in:04X}, crc_calc=0x{self.crc16_calc:04X})"
        )


@dataclass(frozen=True)
class Success:
    """Well-formed response reporting success."""

    packet: ResponsePacket
    ok = True


@dataclass(frozen=True)
class FailedRemote:
    """Well-formed response whose status code is not success."""

    packet: ResponsePacket
    ok = False

    @property
    def error_name(self) -> str:
        return ErrorCode.describe(self.packet.status)


@dataclass(frozen=True)
class FailedLocal:
    """Response frame could not be parsed."""

    error_code: ErrorCode
    ok = False
    packet = None


ResponsePacketOption = Union[Success, FailedRemote, FailedLocal]
