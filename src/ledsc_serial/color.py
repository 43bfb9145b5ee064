"""24-bit RGB color packing."""

import re
from dataclasses import dataclass

_HEX_COLOR = re.compile(r"(?:#|0[xX])?([0-9a-fA-F]{1,6})")


@dataclass(frozen=True)
class Color24:
    """An RGB color with 8 bits per channel."""

    r: int = 0
    g: int = 0
    b: int = 0

    def __post_init__(self):
        for name in ("r", "g", "b"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"Channel {name} must be an int, got {type(value).__name__}")
            if not 0 <= value <= 0xFF:
                raise ValueError(f"Channel {name} must be 0-255, got {value}")

    def to_int(self) -> int:
        """Pack into ``0xRRGGBB``."""
        return (self.r << 16) | (self.g << 8) | self.b

    @classmethod
    def from_int(cls, rgb: int) -> "Color24":
        """Unpack ``0xRRGGBB``. Bits above bit 23 are ignored."""
        return cls(r=(rgb >> 16) & 0xFF, g=(rgb >> 8) & 0xFF, b=rgb & 0xFF)

    @classmethod
    def from_hex(cls, text: str) -> "Color24":
        """Parse ``#RRGGBB``, ``0xRRGGBB`` or bare ``RRGGBB``."""
        match = _HEX_COLOR.fullmatch(text.strip())
        if not match:
            raise ValueError(f"Invalid hex color: {text!r}")
        return cls.from_int(int(match.group(1), 16))

    def __str__(self) -> str:
        return f"#{self.to_int():06X}"
