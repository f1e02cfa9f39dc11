"""
Pixel value type.

A Pixel is a canvas coordinate plus RGBA color. Bulk reads fill the
caller's Pixel objects in place, so the class is a plain mutable dataclass.
"""

from dataclasses import dataclass
from typing import Tuple

from py2pixelflut.core.errors import InvalidArgumentError

COORD_MAX = 0xFFFF
CHANNEL_MAX = 0xFF


def _check_range(name: str, value, upper: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(
            f"Pixel.{name} must be an integer, got {type(value).__name__}",
            field_name=name
        )
    if not 0 <= value <= upper:
        raise InvalidArgumentError(
            f"Pixel.{name} out of range (0-{upper}): {value}",
            field_name=name
        )


@dataclass
class Pixel:
    """
    A single canvas pixel.

    Attributes:
        x, y: Canvas coordinates (0-65535)
        r, g, b: Color channels (0-255)
        a: Alpha (0-255). Only sent by put operations with use_alpha;
           read operations always set it to 0xFF.

    Example:
        >>> px = Pixel(3, 4, 255, 0, 0)
        >>> px.rgb
        (255, 0, 0)
    """

    x: int
    y: int
    r: int = 0
    g: int = 0
    b: int = 0
    a: int = CHANNEL_MAX

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Raise InvalidArgumentError if any field is out of range."""
        _check_range('x', self.x, COORD_MAX)
        _check_range('y', self.y, COORD_MAX)
        for name in ('r', 'g', 'b', 'a'):
            _check_range(name, getattr(self, name), CHANNEL_MAX)

    @property
    def coords(self) -> Tuple[int, int]:
        return self.x, self.y

    @property
    def rgb(self) -> Tuple[int, int, int]:
        return self.r, self.g, self.b

    @property
    def rgba(self) -> Tuple[int, int, int, int]:
        return self.r, self.g, self.b, self.a

    def set_rgb(self, r: int, g: int, b: int) -> None:
        """Store a color read from the canvas; alpha becomes opaque."""
        self.r = r
        self.g = g
        self.b = b
        self.a = CHANNEL_MAX

    def inverted(self) -> "Pixel":
        """Return a copy with r, g and b inverted."""
        return Pixel(
            self.x, self.y,
            CHANNEL_MAX - self.r,
            CHANNEL_MAX - self.g,
            CHANNEL_MAX - self.b,
            self.a
        )
