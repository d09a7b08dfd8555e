"""Linear RGB color value type.

Colors are three floats in linear space. They are commonly in [0, 1] but are
not clamped by any arithmetic here; clamping happens once, when a pixel is
produced for output.

Example:
    >>> red = Color(1.0, 0.0, 0.0)
    >>> dim = red * 0.25 + Color.black()
    >>> dim.as_tuple()
    (0.25, 0.0, 0.0)
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Color:
    """A color in the linear RGB color space.

    Attributes:
        r: Red channel.
        g: Green channel.
        b: Blue channel.
    """

    r: float
    g: float
    b: float

    @classmethod
    def black(cls) -> Color:
        return cls(0.0, 0.0, 0.0)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Color:
        """Build a color from a ``{r, g, b}`` mapping.

        Raises:
            KeyError: If a channel is missing.
            TypeError, ValueError: If a channel is not a number.
        """
        return cls(float(data["r"]), float(data["g"]), float(data["b"]))

    @classmethod
    def from_tuple(cls, values: tuple[float, float, float]) -> Color:
        r, g, b = values
        return cls(float(r), float(g), float(b))

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.r, self.g, self.b)

    def to_dict(self) -> dict[str, float]:
        return {"r": self.r, "g": self.g, "b": self.b}

    def is_finite(self) -> bool:
        return all(math.isfinite(c) for c in self.as_tuple())

    def __add__(self, other: Color) -> Color:
        return Color(self.r + other.r, self.g + other.g, self.b + other.b)

    def __sub__(self, other: Color) -> Color:
        return Color(self.r - other.r, self.g - other.g, self.b - other.b)

    def __mul__(self, other: Color | float) -> Color:
        # Channel-wise product for colors, uniform scale for scalars
        if isinstance(other, Color):
            return Color(self.r * other.r, self.g * other.g, self.b * other.b)
        return Color(self.r * other, self.g * other, self.b * other)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> Color:
        return Color(self.r / scalar, self.g / scalar, self.b / scalar)

    def clamp(self, low: float = 0.0, high: float = 1.0) -> Color:
        """Clamp every channel to [low, high]."""
        return Color(
            min(max(self.r, low), high),
            min(max(self.g, low), high),
            min(max(self.b, low), high),
        )

    def blend(self, other: Color, t: float) -> Color:
        """Linear blend: (1 - t) * self + t * other."""
        return self * (1.0 - t) + other * t
