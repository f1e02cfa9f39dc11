"""Value types for py2pixelflut."""

from .pixel import Pixel
from .connection import ConnectionConfig, ConnectionState

__all__ = ['Pixel', 'ConnectionConfig', 'ConnectionState']
