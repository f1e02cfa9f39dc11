"""
Line codec for the pixelflut text protocol.

PROTOCOL (ASCII, one command or reply per line, "\\n" terminated):
=================================================================
    Direction  Line                      Notes
    ---------  ------------------------  -----------------------------------
    request    SIZE                      query canvas dimensions
    reply      SIZE <w> <h>              unsigned decimal, each <= 65535
    request    PX <x> <y> <rrggbb>       set pixel, no alpha
    request    PX <x> <y> <rrggbbaa>     set pixel, with alpha
    request    PX <x> <y>                read pixel
    reply      PX <x> <y> <RRGGBB>       echoes coordinates, no alpha

Requests write each color channel as two lowercase, zero-padded hex digits
and coordinates as plain unsigned decimal. Replies are accepted with hex
digits in either case.

Encoders return bytes ready to append to a write buffer. Decoders take one
line with the newline already stripped and raise ProtocolError if it does
not match.
"""

import re
from typing import Tuple

from py2pixelflut.core.errors import ProtocolError
from py2pixelflut.models.pixel import Pixel

# Every buffer handed to a buffered operation must hold at least this many
# bytes. It also bounds how long an unterminated reply line may grow.
MIN_BUFFER_SIZE = 32

SIZE_REQUEST = b"SIZE\n"

_SIZE_REPLY = re.compile(rb'SIZE ([0-9]{1,5}) ([0-9]{1,5})')
_PX_REPLY = re.compile(
    rb'PX ([0-9]{1,5}) ([0-9]{1,5}) '
    rb'([0-9a-fA-F]{2})([0-9a-fA-F]{2})([0-9a-fA-F]{2})'
)

_COORD_MAX = 0xFFFF


def encode_put(px: Pixel, use_alpha: bool) -> bytes:
    """
    Encode a set-pixel command.

    Example:
        >>> encode_put(Pixel(3, 4, 255, 0, 0), use_alpha=False)
        b'PX 3 4 ff0000\\n'
    """
    if use_alpha:
        line = "PX %d %d %02x%02x%02x%02x\n" % (px.x, px.y, px.r, px.g, px.b, px.a)
    else:
        line = "PX %d %d %02x%02x%02x\n" % (px.x, px.y, px.r, px.g, px.b)
    return line.encode('ascii')


def encode_get(px: Pixel) -> bytes:
    """Encode a read-pixel request for px's coordinates."""
    return ("PX %d %d\n" % (px.x, px.y)).encode('ascii')


def decode_size(line: bytes) -> Tuple[int, int]:
    """Parse a SIZE reply into (width, height)."""
    match = _SIZE_REPLY.fullmatch(line)
    if match is None:
        raise ProtocolError("malformed SIZE reply from server", line=line)
    width, height = int(match.group(1)), int(match.group(2))
    if width > _COORD_MAX or height > _COORD_MAX:
        raise ProtocolError("SIZE reply out of range", line=line)
    return width, height


def decode_pixel(line: bytes) -> Tuple[int, int, int, int, int]:
    """Parse a PX reply into (x, y, r, g, b)."""
    match = _PX_REPLY.fullmatch(line)
    if match is None:
        raise ProtocolError("malformed PX reply from server", line=line)
    x, y = int(match.group(1)), int(match.group(2))
    if x > _COORD_MAX or y > _COORD_MAX:
        raise ProtocolError("PX reply coordinates out of range", line=line)
    r, g, b = (int(match.group(i), 16) for i in (3, 4, 5))
    return x, y, r, g, b


# Longest line any encoder can produce: 5-digit coordinates and 8 hex digits.
MAX_COMMAND_LENGTH = len(encode_put(Pixel(_COORD_MAX, _COORD_MAX, 0xFF, 0xFF, 0xFF, 0xFF), use_alpha=True))
assert MAX_COMMAND_LENGTH <= MIN_BUFFER_SIZE, MAX_COMMAND_LENGTH
