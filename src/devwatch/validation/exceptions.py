"""
Exception types and error handling helpers.

This module provides the error taxonomy used across devwatch together with
the logging helpers that report errors consistently.
"""

import logging
import sys
from enum import Enum
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ValidationError(Exception):
    """
    Exception raised when validation fails.

    This is the main exception type used when checking configuration values.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class BuildError(Exception):
    """
    Raised by a build executor when building a package fails.

    The scheduler catches it, logs it and keeps running.
    """

    def __init__(self, package: str, message: str, return_code: Optional[int] = None):
        super().__init__(message)
        self.package = package
        self.return_code = return_code


class SetupError(Exception):
    """Raised for unrecoverable errors before the watch loop is established."""


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    effective_logger = logger or globals()['logger']

    error_msg = f"Error in {context}: {error}"

    if isinstance(severity, str):
        severity_str = severity.lower()
    else:
        severity_str = severity.value

    if severity_str == "debug":
        effective_logger.debug(error_msg, exc_info=True)
    elif severity_str == "info":
        effective_logger.info(error_msg)
    elif severity_str == "warning":
        effective_logger.warning(error_msg)
    elif severity_str == "error":
        effective_logger.error(error_msg)
    elif severity_str == "critical":
        effective_logger.critical(error_msg, exc_info=True)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    """Handle configuration-related errors."""
    handle_error(error, f"config {context}", **kwargs)


def handle_build_error(error: Exception, package: str, **kwargs) -> None:
    """Handle a failed build without letting it escape."""
    kwargs.setdefault("reraise", False)
    handle_error(error, f"build of package '{package}'", **kwargs)


def handle_cli_error(error: Exception, context: str, **kwargs) -> None:
    """Handle CLI-related errors and exit the process."""
    exit_code = kwargs.pop('exit_code', 1)
    include_traceback = kwargs.pop('include_traceback', False)

    severity = kwargs.pop('severity', ErrorSeverity.ERROR)
    if include_traceback and severity == ErrorSeverity.ERROR:
        severity = ErrorSeverity.CRITICAL
    handle_error(error, f"CLI {context}", severity=severity, reraise=False, **kwargs)

    sys.exit(exit_code)
