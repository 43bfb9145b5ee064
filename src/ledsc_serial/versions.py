"""Firmware protocol versions and their capability tables.

The controller reports a version string such as ``LEDSC_TEENSY_001`` in its
reply to ``PrintVersion``. The string is classified once per session and
the classification selects a :class:`ProtocolPolicy` from
:data:`POLICY_TABLE`. Supporting a new firmware version means adding a
policy and a table entry.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from ledsc_serial.types import Command, CommandKind, Effect, FireColorPallet

logger = logging.getLogger(__name__)

FWV_UNKNOWN = "UNKNOWN"
FWV_LEDSC_TEENSY = "LEDSC_TEENSY_"
FWV_LEDSC_TEENSY_001 = "LEDSC_TEENSY_001"

# Known version string -> version number within the family
KNOWN_VERSIONS: Mapping[str, str] = MappingProxyType({
    FWV_LEDSC_TEENSY_001: "001",
})


class VersionKind(Enum):
    """How a reported firmware version relates to the versions we know."""

    UNKNOWN = "unknown"
    EXACT = "exact"
    NEWER_THAN_KNOWN = "newer_than_known"


@dataclass(frozen=True)
class ProtocolVersion:
    """Classification of a firmware version string."""

    kind: VersionKind
    number: Optional[str] = None
    raw: str = field(default="", compare=False)

    @classmethod
    def unknown(cls, raw: str = "") -> "ProtocolVersion":
        return cls(VersionKind.UNKNOWN, raw=raw)

    @classmethod
    def exact(cls, number: str, raw: str = "") -> "ProtocolVersion":
        return cls(VersionKind.EXACT, number, raw=raw)

    @classmethod
    def newer_than_known(cls, raw: str = "") -> "ProtocolVersion":
        return cls(VersionKind.NEWER_THAN_KNOWN, raw=raw)

    def __str__(self) -> str:
        if self.kind == VersionKind.EXACT:
            return f"{FWV_LEDSC_TEENSY}{self.number}"
        return self.raw or self.kind.value


def classify(version_string: Optional[str]) -> ProtocolVersion:
    """Classify a firmware version string (case-insensitive)."""
    raw = (version_string or "").strip()
    upper = raw.upper()

    if upper == FWV_UNKNOWN:
        return ProtocolVersion.unknown(raw=raw)
    if upper in KNOWN_VERSIONS:
        return ProtocolVersion.exact(KNOWN_VERSIONS[upper], raw=raw)
    if upper.startswith(FWV_LEDSC_TEENSY):
        return ProtocolVersion.newer_than_known(raw=raw)
    return ProtocolVersion.unknown(raw=raw)


@dataclass(frozen=True, eq=False)
class ProtocolPolicy:
    """Capability table for one firmware protocol version.

    Maps the logical effect and pallet enums to the byte codes the firmware
    expects and reports which commands it implements.
    """

    version_code: str
    effect_codes: Mapping[Effect, int]
    pallet_codes: Mapping[FireColorPallet, int]
    unsupported_commands: frozenset = frozenset()
    unsupported_effects: frozenset = frozenset()
    default_effect: Effect = Effect.OFF
    default_pallet: FireColorPallet = FireColorPallet.HEAT

    def __post_init__(self):
        object.__setattr__(self, "effect_codes", MappingProxyType(dict(self.effect_codes)))
        object.__setattr__(self, "pallet_codes", MappingProxyType(dict(self.pallet_codes)))
        object.__setattr__(
            self, "_effects_by_code",
            MappingProxyType({code: effect for effect, code in self.effect_codes.items()}),
        )
        object.__setattr__(
            self, "_pallets_by_code",
            MappingProxyType({code: pallet for pallet, code in self.pallet_codes.items()}),
        )

    def is_command_supported(self, command: Command) -> bool:
        if command.kind in self.unsupported_commands:
            return False
        if command.kind == CommandKind.SET_EFFECT:
            return self.is_effect_supported(command.value)
        return True

    def is_effect_supported(self, effect: Effect) -> bool:
        return effect in self.effect_codes and effect not in self.unsupported_effects

    def effect_to_code(self, effect: Effect) -> int:
        try:
            return self.effect_codes[effect]
        except KeyError:
            raise ValueError(f"Effect {effect} has no code in {self.version_code}") from None

    def code_to_effect(self, code: int) -> Effect:
        """Effect for a wire code. Unknown codes map to the default effect."""
        return self._effects_by_code.get(code, self.default_effect)

    def pallet_to_code(self, pallet: FireColorPallet) -> int:
        try:
            return self.pallet_codes[pallet]
        except KeyError:
            raise ValueError(f"Pallet {pallet} has no code in {self.version_code}") from None

    def code_to_pallet(self, code: int) -> FireColorPallet:
        """Pallet for a wire code. Unknown codes map to the default pallet."""
        return self._pallets_by_code.get(code, self.default_pallet)


LEDSC_TEENSY_001 = ProtocolPolicy(
    version_code=FWV_LEDSC_TEENSY_001,
    effect_codes={
        Effect.OFF: 0x00,
        Effect.SOLID_COLOR: 0x01,
        Effect.RAINBOW_CYCLE: 0x02,
        Effect.COMET: 0x03,
        Effect.COMET_RAINBOW: 0x04,
        Effect.FIRE: 0x05,
        Effect.FIRE_COLOR: 0x06,
        Effect.SOLID_COLOR_PULSE: 0x07,
        Effect.BOUNCING_BALL: 0x08,
        Effect.TWINKLE: 0x09,
        Effect.MAX_EFFECT: 0x0A,
    },
    pallet_codes={
        FireColorPallet.HEAT: 0x00,
        FireColorPallet.PARTY: 0x01,
        FireColorPallet.RAINBOW: 0x02,
        FireColorPallet.RAINBOW_STRIPE: 0x03,
        FireColorPallet.FOREST: 0x04,
        FireColorPallet.OCEAN: 0x05,
        FireColorPallet.LAVA: 0x06,
        FireColorPallet.CLOUD: 0x07,
    },
    unsupported_commands=frozenset({
        CommandKind.NONE,
        CommandKind.FULL_RESET,
        CommandKind.ENTER_BOOTLOADER,
    }),
)

BASELINE_POLICY = LEDSC_TEENSY_001

# Unknown and newer firmware are assumed to honor the oldest known codes.
POLICY_TABLE: Mapping[ProtocolVersion, ProtocolPolicy] = MappingProxyType({
    ProtocolVersion.unknown(): LEDSC_TEENSY_001,
    ProtocolVersion.exact("001"): LEDSC_TEENSY_001,
    ProtocolVersion.newer_than_known(): LEDSC_TEENSY_001,
})


def resolve_policy(version: ProtocolVersion) -> ProtocolPolicy:
    """Select the capability table for a classified version."""
    policy = POLICY_TABLE.get(version)
    if policy is None:
        logger.debug(f"No policy for {version!r}, using {BASELINE_POLICY.version_code}")
        return BASELINE_POLICY
    return policy


def policy_for_version_string(version_string: Optional[str]) -> ProtocolPolicy:
    return resolve_policy(classify(version_string))
