# src/py2pixelflut/client.py
"""
High-level pixelflut client.

Wraps a PixelflutConnection together with the settings it was opened with
and one reusable bulk buffer, so repeated bulk calls do not reallocate.
"""

import logging
from typing import Optional, Sequence, Tuple, Union

from py2pixelflut.core.errors import InvalidStateError
from py2pixelflut.core.tcp_connection import PixelflutConnection
from py2pixelflut.models.connection import ConnectionState
from py2pixelflut.models.pixel import Pixel
from py2pixelflut.services import bulk_service, canvas_service
from py2pixelflut.services.configuration_service import ClientSettings, ConfigurationService


class PixelflutClient:
    """
    Pixelflut client bound to one server.

    Example:
        >>> with PixelflutClient(ClientSettings(port=1234)) as client:
        ...     width, height = client.get_size()
        ...     client.put_pixel(Pixel(3, 4, 255, 0, 0))
    """

    def __init__(self, settings: Optional[ClientSettings] = None):
        """
        Args:
            settings: Client settings (defaults to ClientSettings())

        Raises:
            ConfigurationError: If settings are invalid
        """
        self.settings = ConfigurationService().validate(settings or ClientSettings())
        self.connection: Optional[PixelflutConnection] = None
        self.buffer = bytearray(self.settings.buffer_size)
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config_file(cls, path) -> "PixelflutClient":
        return cls(ConfigurationService().load(path))

    # ========== Lifecycle ==========

    def connect(self) -> PixelflutConnection:
        """
        Open a new connection, closing any previous one first.

        Raises:
            AddressParseError, PortParseError, SocketCreateError, ConnectError
        """
        if self.connection is not None and self.connection.is_valid():
            self.logger.warning("Already connected. Disconnecting first.")
            self.connection.close()
        self.connection = PixelflutConnection.open(
            self.settings.ip_address,
            self.settings.port,
            timeout=self.settings.timeout
        )
        return self.connection

    def close(self) -> None:
        if self.connection is not None:
            self.connection.close()

    @property
    def state(self) -> ConnectionState:
        if self.connection is None:
            return ConnectionState.DISCONNECTED
        return self.connection.state

    def is_connected(self) -> bool:
        return self.connection is not None and self.connection.is_valid()

    @property
    def num_pixels_written(self) -> int:
        return self.connection.num_pixels_written if self.connection else 0

    @property
    def num_pixels_read(self) -> int:
        return self.connection.num_pixels_read if self.connection else 0

    def __enter__(self) -> "PixelflutClient":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _conn(self) -> PixelflutConnection:
        if self.connection is None:
            raise InvalidStateError("client is not connected")
        return self.connection

    # ========== Canvas operations ==========

    def get_size(self) -> Tuple[int, int]:
        return canvas_service.get_size(self._conn())

    def put_pixel(self, px: Pixel, use_alpha: bool = False) -> None:
        canvas_service.put_pixel(self._conn(), px, use_alpha)

    def get_pixel(self, x: Union[int, Pixel], y: Optional[int] = None) -> Pixel:
        """Read one pixel, given either a Pixel or x and y."""
        px = x if isinstance(x, Pixel) else Pixel(x, y)
        return canvas_service.get_pixel(self._conn(), px)

    def put_pixels(self, pixels: Sequence[Pixel], use_alpha: bool = False) -> None:
        bulk_service.put_pixels(self._conn(), pixels, self.buffer, use_alpha)

    def get_pixels(self, pixels: Sequence[Pixel], batch_limit: Optional[int] = None) -> Sequence[Pixel]:
        """
        Read many pixels in place.

        Args:
            pixels: Pixels to read
            batch_limit: Overrides the configured batch limit
        """
        if batch_limit is None:
            batch_limit = self.settings.batch_limit
        return bulk_service.get_pixels(self._conn(), pixels, self.buffer, batch_limit)
