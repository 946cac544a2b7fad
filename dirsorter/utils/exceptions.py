"""
Custom Exceptions
=================

Defines custom exception classes for the directory sorter.
All exceptions include error codes for programmatic handling.

Errors raised at the two initialization boundaries (before backload and
before watching) are fatal; everything raised while handling a single file
or event is recoverable and only skips that file.
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """Error codes for programmatic error handling."""

    # General errors (1000-1099)
    UNKNOWN_ERROR = 1000
    CONFIGURATION_ERROR = 1001

    # Initialization errors (1100-1199)
    DIRECTORY_LIST_FAILED = 1100
    WATCH_REGISTRATION_FAILED = 1101

    # File handling errors (1200-1299)
    UNCLASSIFIABLE_FILE = 1200
    DIRECTORY_CREATE_FAILED = 1201
    MOVE_FAILED = 1202

    # Event channel errors (1300-1399)
    CHANNEL_FAULT = 1300


class DirSorterError(Exception):
    """Base exception for all directory sorter errors.

    Attributes:
        message: Human-readable error message.
        error_code: Programmatic error code.
        details: Additional error context.
        cause: Original exception that caused this error.
        fatal: Whether the error must halt the process.
    """

    fatal = False

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[dict] = None,
        cause: Optional[Exception] = None
    ):
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Programmatic error code.
            details: Additional context as key-value pairs.
            cause: Original exception if wrapping another error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """Return a formatted error string."""
        result = f"[{self.error_code.name}] {self.message}"
        if self.details:
            result += f" | Details: {self.details}"
        if self.cause:
            result += f" | Caused by: {type(self.cause).__name__}: {self.cause}"
        return result

    def log_extra(self) -> dict:
        """Fields to pass as ``extra=`` when logging this error."""
        extra = {"error_code": self.error_code.name}
        for key in ("file_path", "directory", "destination"):
            if key in self.details:
                extra[key] = self.details[key]
        return extra

    def to_dict(self) -> dict:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "error_code": self.error_code.value,
            "error_name": self.error_code.name,
            "fatal": self.fatal,
            "details": self.details,
            "cause": str(self.cause) if self.cause else None,
        }


class ConfigurationError(DirSorterError):
    """Raised when there's a configuration problem.

    Examples:
        - Target directory cannot be resolved
        - Home directory cannot be determined
        - Invalid configuration values
    """

    fatal = True

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        if expected_type:
            details["expected_type"] = expected_type
        super().__init__(
            message,
            error_code=ErrorCode.CONFIGURATION_ERROR,
            details=details,
            **kwargs
        )


class DirectoryError(DirSorterError):
    """Base for errors tied to a directory path."""

    def __init__(
        self,
        message: str,
        directory: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if directory:
            details["directory"] = directory
        super().__init__(
            message,
            error_code=error_code,
            details=details,
            **kwargs
        )


class DirectoryListError(DirectoryError):
    """Raised when the target directory cannot be enumerated at backload."""

    fatal = True

    def __init__(self, message: str, directory: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            directory=directory,
            error_code=ErrorCode.DIRECTORY_LIST_FAILED,
            **kwargs
        )


class WatchRegistrationError(DirectoryError):
    """Raised when the watch on the target directory cannot be established."""

    fatal = True

    def __init__(self, message: str, directory: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            directory=directory,
            error_code=ErrorCode.WATCH_REGISTRATION_FAILED,
            **kwargs
        )


class FileHandlingError(DirSorterError):
    """Raised when a single candidate file cannot be sorted.

    These never stop the process; the file is left where it is.
    """

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if file_path:
            details["file_path"] = file_path
        super().__init__(
            message,
            error_code=error_code,
            details=details,
            **kwargs
        )


class UnclassifiableFileError(FileHandlingError):
    """Raised when a file has no name or no extension."""

    def __init__(self, message: str, file_path: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            file_path=file_path,
            error_code=ErrorCode.UNCLASSIFIABLE_FILE,
            **kwargs
        )


class DirectoryCreateError(FileHandlingError):
    """Raised when an extension bucket cannot be created."""

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        directory: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if directory:
            details["directory"] = directory
        super().__init__(
            message,
            file_path=file_path,
            error_code=ErrorCode.DIRECTORY_CREATE_FAILED,
            details=details,
            **kwargs
        )


class MoveError(FileHandlingError):
    """Raised when the rename into the bucket fails."""

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        destination: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if destination:
            details["destination"] = destination
        super().__init__(
            message,
            file_path=file_path,
            error_code=ErrorCode.MOVE_FAILED,
            details=details,
            **kwargs
        )


class ChannelError(DirSorterError):
    """Raised when the notification mechanism reports a delivery fault."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            error_code=ErrorCode.CHANNEL_FAULT,
            **kwargs
        )
