"""Error taxonomy for dotstrap.

Fatal errors (``UnsupportedPlatformError``, ``InvalidManifestError``,
``FatalActionError``) stop the run. ``ActionFailure`` describes a single
action that could not be applied; it is recorded and the run continues
unless the action was marked fatal.
"""

from pathlib import Path


class DotstrapError(Exception):
    """Base class for all dotstrap errors."""


class UnsupportedPlatformError(DotstrapError):
    """Raised when the operating system family cannot be determined."""

    def __init__(self, sysname: str) -> None:
        self.sysname = sysname
        super().__init__(f"Unsupported platform: {sysname or 'unknown'}")


class InvalidManifestError(DotstrapError, ValueError):
    """Raised when a manifest cannot be loaded or planned on this machine."""


class ActionFailure(DotstrapError):
    """An action that could not be applied.

    Attributes:
        description: Human readable description of the action
        reason: Underlying error text, verbatim from the failing tool
    """

    def __init__(self, description: str, reason: str) -> None:
        self.description = description
        self.reason = reason
        super().__init__(f"{description}: {reason}")


class FatalActionError(DotstrapError):
    """Raised when a failed action leaves nothing sensible to do afterwards."""

    def __init__(self, failure: ActionFailure) -> None:
        self.failure = failure
        super().__init__(str(failure))


class HomeNotWritableError(DotstrapError):
    """Raised when a file under a home directory cannot be written."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Cannot write to {path}: {reason}")
