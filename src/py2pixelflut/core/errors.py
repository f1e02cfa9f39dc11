"""
Unified error handling framework for py2pixelflut.

Every failing operation raises a specific subclass of PixelflutError so
callers can tell transient I/O problems ("reconnect and retry") apart from
a peer that does not speak the protocol and from programmer error.

Error Code Ranges:
- 1000-1999: Transport errors (socket, connect, read, write)
- 2000-2999: Protocol errors (malformed or unexpected replies)
- 5000-5999: State errors
- 6000-6999: Configuration errors
- 7000-7999: Validation errors
- 9000-9999: Unknown errors
"""

from typing import Optional, Dict, Any, List
from datetime import datetime
import traceback


class PixelflutError(Exception):
    """
    Base exception for all py2pixelflut errors.

    Provides structured error information with context tracking.
    """

    DEFAULT_CODE = 9000

    def __init__(
        self,
        message: Optional[str] = None,
        error_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        suggestions: Optional[List[str]] = None
    ):
        """
        Initialize a py2pixelflut error.

        Args:
            message: Human-readable error description. Defaults to the
                     standard description of the error code.
            error_code: Numeric error code for categorization
            context: Additional context information (WHERE)
            cause: Original exception if this wraps another error
            suggestions: List of possible solutions or next steps
        """
        self.error_code = error_code or self.DEFAULT_CODE
        if message is None:
            message = error_message(self.error_code)
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.cause = cause
        self.suggestions = suggestions or []
        self.timestamp = datetime.now()

        self.stack_trace = traceback.format_exc() if cause else None

        if cause:
            self.context['original_error'] = str(cause)
            self.context['original_type'] = type(cause).__name__

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'code': self.error_code,
            'context': self.context,
            'suggestions': self.suggestions,
            'timestamp': self.timestamp.isoformat(),
            'cause': str(self.cause) if self.cause else None,
            'stack_trace': self.stack_trace
        }

    def format_user_message(self) -> str:
        """Format error for user display (without technical details)."""
        msg = f"{self.message}"
        if self.suggestions:
            msg += "\n\nSuggestions:"
            for i, suggestion in enumerate(self.suggestions, 1):
                msg += f"\n  {i}. {suggestion}"
        return msg

    def format_log_message(self) -> str:
        """Format error for logging (with all details)."""
        parts = [
            f"[{self.error_code}] {self.__class__.__name__}: {self.message}"
        ]

        if self.context:
            parts.append(f"Context: {self.context}")

        if self.cause:
            parts.append(f"Caused by: {self.cause}")

        if self.stack_trace:
            parts.append(f"Stack trace:\n{self.stack_trace}")

        return " | ".join(parts)


def _with_category(kwargs: Dict[str, Any], category: str) -> Dict[str, Any]:
    if kwargs.get('context') is None:
        kwargs['context'] = {}
    kwargs['context']['category'] = category
    return kwargs


# ---------- Category classes ----------

class TransportError(PixelflutError):
    """Errors raised by the socket layer. The connection is closed."""
    DEFAULT_CODE = 1000

    def __init__(self, message: Optional[str] = None, **kwargs):
        super().__init__(message, **_with_category(kwargs, 'TRANSPORT'))


class ProtocolError(PixelflutError):
    """The server sent something that is not a valid reply. The connection is closed."""
    DEFAULT_CODE = 2001

    def __init__(self, message: Optional[str] = None, line: Optional[bytes] = None, **kwargs):
        kwargs = _with_category(kwargs, 'PROTOCOL')
        if line is not None:
            kwargs['context']['line'] = line
        super().__init__(message, **kwargs)


class StateError(PixelflutError):
    """Operation attempted on a connection in the wrong state."""
    DEFAULT_CODE = 5000

    def __init__(self, message: Optional[str] = None, **kwargs):
        super().__init__(message, **_with_category(kwargs, 'STATE'))


class ConfigurationError(PixelflutError):
    """Errors related to loading or validating client settings."""
    DEFAULT_CODE = 6001

    def __init__(self, message: Optional[str] = None, setting_name: Optional[str] = None, **kwargs):
        kwargs = _with_category(kwargs, 'CONFIGURATION')
        if setting_name:
            kwargs['context']['setting'] = setting_name
        super().__init__(message, **kwargs)


class ValidationError(PixelflutError):
    """Argument errors, detected before any I/O. The connection is untouched."""
    DEFAULT_CODE = 7000

    def __init__(self, message: Optional[str] = None, field_name: Optional[str] = None, **kwargs):
        kwargs = _with_category(kwargs, 'VALIDATION')
        if field_name:
            kwargs['context']['field'] = field_name
        super().__init__(message, **kwargs)


# ---------- Concrete errors ----------

class SocketCreateError(TransportError):
    DEFAULT_CODE = 1001


class ConnectError(TransportError):
    DEFAULT_CODE = 1002


class WriteError(TransportError):
    DEFAULT_CODE = 1003


class WriteReturnedZeroError(WriteError):
    """send() made no progress; the peer has probably closed its side."""
    DEFAULT_CODE = 1004


class ReadError(TransportError):
    DEFAULT_CODE = 1005


class ReadReturnedZeroError(ReadError):
    """recv() returned no data; the peer closed the connection."""
    DEFAULT_CODE = 1006


class ReadTooMuchError(ProtocolError):
    """The server sent more reply data than the request asked for."""
    DEFAULT_CODE = 2002


class UnexpectedCoordsError(ProtocolError):
    """
    A pixel reply echoed different coordinates than requested.

    This means requests and replies are out of step, not that the reply
    was badly formatted.
    """
    DEFAULT_CODE = 2003

    def __init__(self, message: Optional[str] = None, expected=None, received=None, **kwargs):
        kwargs = _with_category(kwargs, 'PROTOCOL')
        if expected is not None:
            kwargs['context']['expected'] = expected
        if received is not None:
            kwargs['context']['received'] = received
        super().__init__(message, **kwargs)


class InvalidStateError(StateError):
    DEFAULT_CODE = 5001


class InvalidArgumentError(ValidationError):
    DEFAULT_CODE = 7001


class AddressParseError(ValidationError):
    DEFAULT_CODE = 7002


class PortParseError(ValidationError):
    DEFAULT_CODE = 7003


class BufferSizeError(ValidationError):
    DEFAULT_CODE = 7004


class ErrorCodes:
    """Standard error codes."""

    # Transport errors (1000-1999)
    SOCKET_CREATE = 1001
    CONNECT_FAILED = 1002
    WRITE_FAILED = 1003
    WRITE_RETURNED_ZERO = 1004
    READ_FAILED = 1005
    READ_RETURNED_ZERO = 1006

    # Protocol errors (2000-2999)
    PROTOCOL_ERROR = 2001
    READ_TOO_MUCH = 2002
    UNEXPECTED_COORDS = 2003

    # State errors (5000-5999)
    INVALID_STATE = 5001

    # Configuration errors (6000-6999)
    CONFIG_INVALID = 6001

    # Validation errors (7000-7999)
    INVALID_ARGUMENT = 7001
    PARSE_ADDRESS = 7002
    PARSE_PORT = 7003
    BUFFER_SIZE = 7004

    # Unknown (9000-9999)
    UNKNOWN_ERROR = 9000


_MESSAGES = {
    ErrorCodes.SOCKET_CREATE: "could not create socket",
    ErrorCodes.CONNECT_FAILED: "could not connect socket",
    ErrorCodes.WRITE_FAILED: "send() failed",
    ErrorCodes.WRITE_RETURNED_ZERO: "send() returned 0 -- closed connection?",
    ErrorCodes.READ_FAILED: "recv() failed",
    ErrorCodes.READ_RETURNED_ZERO: "recv() returned 0 -- closed connection?",
    ErrorCodes.PROTOCOL_ERROR: "server sent an invalid response",
    ErrorCodes.READ_TOO_MUCH: "read more lines from the server than expected",
    ErrorCodes.UNEXPECTED_COORDS: "got pixel with unexpected coords from server",
    ErrorCodes.INVALID_STATE: "called function with failed/closed connection",
    ErrorCodes.CONFIG_INVALID: "invalid client configuration",
    ErrorCodes.INVALID_ARGUMENT: "encountered invalid or missing argument",
    ErrorCodes.PARSE_ADDRESS: "could not parse address",
    ErrorCodes.PARSE_PORT: "could not parse port",
    ErrorCodes.BUFFER_SIZE: "buffer too small",
    ErrorCodes.UNKNOWN_ERROR: "unknown error",
}


def error_message(error_code: int) -> str:
    """Return the standard description for an error code."""
    return _MESSAGES.get(error_code, "?")
