"""
Connection models for py2pixelflut.

Classes:
    ConnectionConfig: Immutable configuration for a connection
    ConnectionState: Enumeration of connection states
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union


# Literal dotted-decimal IPv4 address, exactly four octets
IPV4_PATTERN = re.compile(
    r'(?:(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}'
    r'(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)'
)

# Decimal port string, no sign, no whitespace
PORT_PATTERN = re.compile(r'[0-9]+')

PORT_MAX = 0xFFFF


@dataclass(frozen=True)
class ConnectionConfig:
    """
    Immutable configuration for a pixelflut connection.

    Attributes:
        ip_address: IPv4 address of the server (e.g., "127.0.0.1")
        port: Server port (0-65535), as int or decimal string
        timeout: Optional connect timeout in seconds (None = block)

    Example:
        >>> config = ConnectionConfig("127.0.0.1", 1234)
        >>> valid, errors = config.validate()
    """

    ip_address: str
    port: Union[int, str]
    timeout: Optional[float] = None

    def validate(self) -> Tuple[bool, List[str]]:
        """
        Validate the connection configuration.

        Returns:
            Tuple of (is_valid, list_of_error_messages)
        """
        errors = []

        if not isinstance(self.ip_address, str) or not IPV4_PATTERN.fullmatch(self.ip_address):
            errors.append(f"Invalid IP address format: {self.ip_address}")

        if parse_port(self.port) is None:
            errors.append(f"Port out of range (0-65535): {self.port}")

        if self.timeout is not None:
            if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)):
                errors.append(f"Timeout must be a number: {self.timeout!r}")
            elif self.timeout <= 0:
                errors.append(f"Timeout must be positive: {self.timeout}")

        return (len(errors) == 0, errors)


def parse_port(port: Union[int, str]) -> Optional[int]:
    """Return the port as int, or None if it is not a decimal in 0-65535."""
    if isinstance(port, bool):
        return None
    if isinstance(port, int):
        value = port
    elif isinstance(port, str) and PORT_PATTERN.fullmatch(port):
        value = int(port)
    else:
        return None
    if not 0 <= value <= PORT_MAX:
        return None
    return value


class ConnectionState(Enum):
    """
    Enumeration of possible connection states.

    States:
        DISCONNECTED: Never connected, or closed by the caller
        CONNECTED: Live socket held
        ERROR: Closed because an operation failed
    """

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    ERROR = "error"
