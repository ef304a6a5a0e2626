"""
Custom exception classes and process exit codes for itmsplit.

Every fatal error carries the exit code the command line returns for it.
Transient connectivity problems never surface as exceptions; the network
acquirer logs and retries them.
"""

from enum import IntEnum
from typing import Any, Dict, Optional


class ExitCode(IntEnum):
    """Process exit codes."""

    OK = 0
    CONFIG_ERROR = 1
    SOURCE_OPEN_ERROR = 2
    SOCKET_ERROR = 3
    HOST_RESOLUTION_ERROR = 4
    MAIN_LOOP_FALLTHROUGH = 5


class ItmSplitException(Exception):
    """Base exception class for all itmsplit exceptions."""

    exit_code: ExitCode = ExitCode.CONFIG_ERROR

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        self.reason = reason
        self.details = details or {}
        message = f"{reason}"
        if self.details:
            message += f" - {self.details}"
        super().__init__(message)


class ConfigurationError(ItmSplitException):
    """Raised when command line or config document values are unusable."""

    exit_code = ExitCode.CONFIG_ERROR


class ChannelConfigError(ConfigurationError):
    """
    Raised for a malformed ``index,name[,format]`` channel option.

    Example:
        >>> raise ChannelConfigError(
        ...     reason="Channel index out of range",
        ...     details={"spec": "40,foo", "max": 31},
        ... )
    """


class DecoderLoadError(ConfigurationError):
    """Raised when the decoder factory reference cannot be imported or called."""


class SourceOpenError(ItmSplitException):
    """Raised when a capture file cannot be opened. Never retried."""

    exit_code = ExitCode.SOURCE_OPEN_ERROR


class SocketCreateError(ItmSplitException):
    """Raised when a client socket cannot be created or configured."""

    exit_code = ExitCode.SOCKET_ERROR


class HostResolutionError(ItmSplitException):
    """Raised for a hostname that can never resolve (not encodable)."""

    exit_code = ExitCode.HOST_RESOLUTION_ERROR


class AcquisitionAborted(ItmSplitException):
    """Raised by an acquirer when shutdown was requested before a source opened."""

    exit_code = ExitCode.OK
