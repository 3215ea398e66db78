"""
Color values used by properties and layer/map attributes

Tiled writes colors as hex strings:

    #AARRGGBB   alpha first (tint colors, color properties)
    #RRGGBB     opaque (alpha defaults to 0xFF)

Attributes written by old Tiled versions (image 'trans', for instance) omit
the leading '#', so the hash is optional unless the caller requires it.
"""

from dataclasses import dataclass
from typing import Tuple

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


@dataclass(frozen=True)
class Color:
    """An ARGB color, 8 bits per channel."""
    alpha: int
    red: int
    green: int
    blue: int

    @classmethod
    def from_hex(cls, text: str, require_hash: bool = False) -> 'Color':
        """
        Parse '#AARRGGBB' or '#RRGGBB'.

        Raises ValueError for any other form; callers translate that into
        the error that fits their context (attribute vs. property).
        """
        digits = text
        if digits.startswith('#'):
            digits = digits[1:]
        elif require_hash:
            raise ValueError(f"color {text!r} must start with '#'")

        if len(digits) not in (6, 8) or not set(digits) <= _HEX_DIGITS:
            raise ValueError(f"invalid color {text!r}")

        value = int(digits, 16)
        alpha = 0xFF if len(digits) == 6 else (value >> 24) & 0xFF
        return cls(
            alpha=alpha,
            red=(value >> 16) & 0xFF,
            green=(value >> 8) & 0xFF,
            blue=value & 0xFF,
        )

    def to_hex(self) -> str:
        """Format back to '#AARRGGBB'."""
        return f"#{self.alpha:02x}{self.red:02x}{self.green:02x}{self.blue:02x}"

    def as_floats(self) -> Tuple[float, float, float, float]:
        """(r, g, b, a) normalized to 0.0-1.0, the order GL-style APIs expect."""
        return (self.red / 255.0, self.green / 255.0,
                self.blue / 255.0, self.alpha / 255.0)
