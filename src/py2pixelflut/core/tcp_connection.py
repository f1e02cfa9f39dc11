"""
TCP connection management for the pixelflut protocol.

This module owns the socket and the per-connection counters. Every
operation is synchronous and blocking: the only blocking points are
send() and recv_into(). There is no locking; a caller sharing one
connection between threads must serialize access itself.

Once any operation observes an I/O failure or a protocol violation the
connection is closed for good (see teardown_on_failure()). Reconnecting is
the caller's decision.

Setting the ``py2pixelflut.core.tcp_connection`` logger to DEBUG logs
every send/recv call together with its payload.
"""

import socket
import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Tuple, Union

from py2pixelflut.core.errors import (
    AddressParseError,
    ConnectError,
    InvalidArgumentError,
    InvalidStateError,
    PortParseError,
    ProtocolError,
    ReadError,
    ReadReturnedZeroError,
    SocketCreateError,
    TransportError,
    WriteError,
    WriteReturnedZeroError,
)
from py2pixelflut.core.error_formatting import log_error
from py2pixelflut.models.connection import ConnectionState, IPV4_PATTERN, parse_port

logger = logging.getLogger(__name__)


class PixelflutConnection:
    """
    A single pixelflut connection and its accounting counters.

    Attributes:
        num_pixels_written: Pixels successfully sent by put operations
        num_pixels_read: Pixels successfully read by get operations

    Example:
        >>> conn = PixelflutConnection.open("127.0.0.1", "1234")
        >>> conn.is_valid()
        True
        >>> conn.close()
        >>> conn.close()  # no-op
    """

    def __init__(self, sock: Optional[socket.socket] = None):
        """
        Args:
            sock: Connected stream socket, or None for a never-opened
                  connection (every operation then raises InvalidStateError)
        """
        self._socket = sock
        self._failed = False
        self.logger = logging.getLogger(__name__)

        self._ip: Optional[str] = None
        self._port: Optional[int] = None

        self.num_pixels_written = 0
        self.num_pixels_read = 0

    @classmethod
    def open(
        cls,
        address: str,
        port: Union[int, str],
        timeout: Optional[float] = None
    ) -> "PixelflutConnection":
        """
        Parse address and port, then open and connect a TCP socket.

        Args:
            address: Literal dotted-decimal IPv4 address, e.g. "127.0.0.1"
            port: Port as decimal string or int, 0-65535
            timeout: Optional timeout for the connect call only

        Returns:
            Connected PixelflutConnection

        Raises:
            InvalidArgumentError: If address or port is None or timeout <= 0
            AddressParseError: If address is not dotted-decimal IPv4
            PortParseError: If port is not a decimal in 0-65535
            SocketCreateError: If the socket cannot be created
            ConnectError: If connecting fails
        """
        if address is None or port is None:
            raise InvalidArgumentError("address and port are required")
        if timeout is not None and (not isinstance(timeout, (int, float)) or timeout <= 0):
            raise InvalidArgumentError(f"timeout must be positive: {timeout}", field_name='timeout')

        if not isinstance(address, str) or not IPV4_PATTERN.fullmatch(address):
            raise AddressParseError(f"could not parse address: {address!r}", field_name='address')
        parsed_port = parse_port(port)
        if parsed_port is None:
            raise PortParseError(f"could not parse port: {port!r}", field_name='port')

        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        except OSError as e:
            raise SocketCreateError(f"could not create socket: {e}", cause=e)

        try:
            logger.info(f"Connecting to {address}:{parsed_port}")
            if timeout is not None:
                sock.settimeout(timeout)
            sock.connect((address, parsed_port))
            sock.settimeout(None)
        except OSError as e:
            logger.error(f"Connection to {address}:{parsed_port} failed: {e}")
            sock.close()
            raise ConnectError(
                f"could not connect to {address}:{parsed_port}: {e}",
                cause=e,
                context={'ip': address, 'port': parsed_port}
            )

        conn = cls(sock)
        conn._ip = address
        conn._port = parsed_port
        logger.info(f"Connected to {address}:{parsed_port}")
        return conn

    @classmethod
    def from_socket(cls, sock: socket.socket) -> "PixelflutConnection":
        """
        Adopt an already connected stream socket.

        Use this to set timeouts or socket options before handing the
        transport over; the connection closes the socket on failure.
        """
        if sock is None:
            raise InvalidArgumentError("socket must not be None", field_name='sock')
        return cls(sock)

    # ========== Lifecycle ==========

    def is_valid(self) -> bool:
        """True iff the connection holds a live socket."""
        return self._socket is not None

    def ensure_valid(self) -> None:
        """
        Raises:
            InvalidStateError: If the connection is closed or never opened
        """
        if self._socket is None:
            raise InvalidStateError()

    @property
    def state(self) -> ConnectionState:
        if self._socket is not None:
            return ConnectionState.CONNECTED
        if self._failed:
            return ConnectionState.ERROR
        return ConnectionState.DISCONNECTED

    def get_connection_info(self) -> Tuple[Optional[str], Optional[int]]:
        """Return (ip, port) as given to open(), or (None, None)."""
        return self._ip, self._port

    def close(self) -> None:
        """
        Release the socket. Safe to call any number of times.
        """
        if self._socket is None:
            return
        sock, self._socket = self._socket, None
        try:
            sock.close()
            self.logger.info("Closed connection")
        except OSError as e:
            self.logger.error(f"Error closing socket: {e}")

    @contextmanager
    def teardown_on_failure(self) -> Iterator[None]:
        """
        Close the connection if the wrapped block raises a transport or
        protocol error, then let the error propagate.

        Validation errors pass through without touching the connection.
        """
        try:
            yield
        except (TransportError, ProtocolError) as e:
            log_error(e, logger=self.logger, level=logging.WARNING,
                      extra_context={'action': 'closing connection'})
            self._failed = True
            self.close()
            raise

    def __enter__(self) -> "PixelflutConnection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ========== Transport primitives ==========

    def write_all(self, data: Union[bytes, bytearray, memoryview]) -> None:
        """
        Send every byte of data, issuing as many send() calls as needed.

        Raises:
            InvalidStateError: If the connection is not valid
            WriteError: If send() fails
            WriteReturnedZeroError: If send() makes no progress
        """
        self.ensure_valid()
        view = memoryview(data)
        total = view.nbytes
        written = 0
        while written < total:
            try:
                sent = self._socket.send(view[written:])
            except OSError as e:
                self.logger.debug(f"send() failed: {e}")
                raise WriteError(f"send() failed: {e}", cause=e)
            if sent == 0:
                raise WriteReturnedZeroError()
            if self.logger.isEnabledFor(logging.DEBUG):
                self.logger.debug(
                    f"send() wrote {sent} bytes: {bytes(view[written:written + sent])!r}"
                )
            written += sent

    def read_into(self, view: memoryview) -> int:
        """
        Perform one blocking recv into view.

        Returns:
            Number of bytes received (always > 0)

        Raises:
            InvalidStateError: If the connection is not valid
            ReadError: If recv fails
            ReadReturnedZeroError: If the peer closed the connection
        """
        self.ensure_valid()
        try:
            received = self._socket.recv_into(view)
        except OSError as e:
            self.logger.debug(f"recv() failed: {e}")
            raise ReadError(f"recv() failed: {e}", cause=e)
        if received == 0:
            raise ReadReturnedZeroError()
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(
                f"recv() read {received} bytes: {bytes(view[:received])!r}"
            )
        return received


def open_connection(
    address: str,
    port: Union[int, str],
    timeout: Optional[float] = None
) -> PixelflutConnection:
    """Open a connection; see PixelflutConnection.open()."""
    return PixelflutConnection.open(address, port, timeout=timeout)


def disconnect(conn: Optional[PixelflutConnection]) -> None:
    """Close conn. Accepts None and already closed connections."""
    if conn is not None:
        conn.close()
