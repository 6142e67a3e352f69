"""
This module contains the exceptions raised by install-tar.

Every failure is fatal for the current run. The CLI catches
InstallTarException once, prints its message and exits with exit_code.
"""


class InstallTarException(Exception):
    """
    Base exception for all install-tar failures.
    """

    exit_code = 1

    def __init__(self, message: str):
        """
        Initializes the exception with the given message.
        """
        super().__init__(message)
        self.message = message


class UsageError(InstallTarException):
    """Raised when the command line has the wrong shape."""

    pass


class PreconditionError(InstallTarException):
    """Raised when a filesystem precondition or local file operation fails."""

    pass


class FetchError(InstallTarException):
    """Raised when the artifact cannot be fetched or its body cannot be read."""

    pass


class IntegrityError(InstallTarException):
    """Raised when the downloaded bytes do not hash to the expected digest."""

    def __init__(self, actual: str, expected: str):
        super().__init__(f"SHA256 mismatch got={actual} expect={expected}")
        self.actual = actual
        self.expected = expected


class ExtractionError(InstallTarException):
    """Raised when the archive extractor fails."""

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output
