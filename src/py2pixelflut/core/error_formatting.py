"""
Error formatting and logging utilities for py2pixelflut.

Provides consistent error formatting for both user display (CLI output)
and technical logging.
"""

import json
import logging
import traceback
from datetime import datetime
from typing import Any, Dict, Optional, Union

from py2pixelflut.core.errors import PixelflutError


class ErrorFormatter:
    """
    Formats errors for consistent presentation.

    Handles both PixelflutError instances and standard Python exceptions.
    """

    COLORS = {
        'RED': '\033[91m',
        'YELLOW': '\033[93m',
        'RESET': '\033[0m'
    }

    def __init__(self, use_colors: bool = False):
        self.use_colors = use_colors

    def format_for_user(self, error: Exception) -> str:
        """
        Format error for end-user display.

        Shows the error kind and message without technical details.
        """
        if isinstance(error, PixelflutError):
            text = f"{error.__class__.__name__}: {error.format_user_message()}"
        else:
            text = f"An error occurred: {str(error)}"
        return self.colorize(text, 'RED')

    def format_for_log(self, error: Exception, include_trace: bool = True) -> str:
        """Format error for technical logging."""
        if isinstance(error, PixelflutError):
            return error.format_log_message()
        msg = f"{error.__class__.__name__}: {str(error)}"
        if include_trace:
            msg += f"\nStack trace:\n{traceback.format_exc()}"
        return msg

    def format_for_json(self, error: Exception) -> str:
        """Format error as JSON for structured logging."""
        if isinstance(error, PixelflutError):
            data = error.to_dict()
        else:
            data = {
                'error_type': error.__class__.__name__,
                'message': str(error),
                'timestamp': datetime.now().isoformat()
            }
        return json.dumps(data, indent=2, default=str)

    def get_severity(self, error: Exception) -> str:
        """
        Determine error severity.

        Transport errors are recoverable by reconnecting, protocol errors
        mean the peer is broken, validation errors are caller bugs.
        """
        if not isinstance(error, PixelflutError):
            return 'error'
        code = error.error_code
        if code < 2000:
            return 'warning'
        elif code < 3000:
            return 'critical'
        return 'error'

    def colorize(self, text: str, color: str) -> str:
        if self.use_colors and color in self.COLORS:
            return f"{self.COLORS[color]}{text}{self.COLORS['RESET']}"
        return text


def log_error(
    error: Exception,
    logger: Optional[logging.Logger] = None,
    level: int = logging.ERROR,
    extra_context: Optional[Dict[str, Any]] = None
) -> None:
    """
    Log an error with a user-level line and a DEBUG-level detail line.

    Args:
        error: The error to log
        logger: Logger to use (defaults to this module's logger)
        level: Level for the summary line
        extra_context: Additional context to include in the detail line
    """
    logger = logger or logging.getLogger(__name__)
    formatter = ErrorFormatter()

    context = {}
    if isinstance(error, PixelflutError) and error.context:
        context.update(error.context)
    if extra_context:
        context.update(extra_context)

    logger.log(level, formatter.format_for_user(error))
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(formatter.format_for_log(error, include_trace=False))
        if context:
            logger.debug(f"Error context: {json.dumps(context, indent=2, default=str)}")


def format_error(error: Exception, format_type: str = 'user', use_colors: bool = False) -> Union[str, Dict]:
    """
    Convenience function to format an error.

    Args:
        error: The error to format
        format_type: One of 'user', 'log' or 'json'
        use_colors: Whether to use ANSI colors ('user' only)

    Returns:
        Formatted error based on type
    """
    formatter = ErrorFormatter(use_colors=use_colors)

    if format_type == 'user':
        return formatter.format_for_user(error)
    elif format_type == 'log':
        return formatter.format_for_log(error)
    elif format_type == 'json':
        return formatter.format_for_json(error)
    else:
        raise ValueError(f"Unknown format type: {format_type}")
