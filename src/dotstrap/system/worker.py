"""Worker protocol for system operations."""

from pathlib import Path
from typing import Protocol, runtime_checkable

from dotstrap.system.command import Command
from dotstrap.system.models import UserInfo


@runtime_checkable
class Worker(Protocol):
    """Protocol for a system that can execute commands and perform system operations.

    This protocol defines the interface that all system implementations must follow,
    allowing for both real system operations and in-memory implementations for testing.
    Query methods are synchronous and read-only; anything that runs a program or
    touches the filesystem is a coroutine.
    """

    async def run(self, cmd: Command) -> bytes:
        """Execute a command and return its output.

        Args:
            cmd: Command to execute

        Returns:
            Combined stdout/stderr output as bytes

        Raises:
            CommandError: If the command fails
        """
        ...

    async def run_interactive(self, cmd: Command) -> None:
        """Execute a command attached to the operator's terminal.

        Used for password prompts and installers that ask questions.

        Args:
            cmd: Command to execute

        Raises:
            CommandError: If the command fails
        """
        ...

    async def read_file(self, filepath: Path) -> bytes:
        """Read a file from anywhere on the filesystem.

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        ...

    async def write_file(
        self, filepath: Path, contents: bytes, mode: int | None = None, owner: str = ""
    ) -> None:
        """Write a file, creating missing parent directories.

        Args:
            filepath: Absolute path to write
            contents: File contents
            mode: Optional permission bits for the file
            owner: Optional user that should own the file and created directories

        Raises:
            OSError: If file cannot be written
        """
        ...

    async def make_dir(self, directory: Path, mode: int | None = None, owner: str = "") -> None:
        """Create a directory and its parents if missing.

        Raises:
            OSError: If directory cannot be created
        """
        ...

    async def fetch_text(self, url: str) -> str:
        """Download a text document over HTTP(S).

        Raises:
            DownloadError: If the download fails
        """
        ...

    def sysname(self) -> str:
        """Get the kernel name as reported by uname (e.g. 'Linux', 'Darwin')."""
        ...

    def which(self, name: str) -> str | None:
        """Locate an executable on PATH."""
        ...

    def is_root(self) -> bool:
        """Check whether the process runs with an effective uid of 0."""
        ...

    def username(self) -> str:
        """Get the real username (not root if running with sudo)."""
        ...

    def home_dir(self) -> Path:
        """Get the real user's home directory."""
        ...

    def home_of(self, user: str) -> Path:
        """Get a named user's home directory."""
        ...

    def user_info(self, user: str) -> UserInfo | None:
        """Look up an account, returning None when it does not exist."""
        ...

    def user_groups(self, user: str) -> set[str]:
        """Get the names of all groups the user belongs to."""
        ...

    def list_users(self) -> set[str]:
        """Get the names of all local accounts."""
        ...

    def path_exists(self, path: Path) -> bool:
        """Check whether a path exists."""
        ...

    def file_mode(self, path: Path) -> int | None:
        """Get the permission bits of a path, or None if it does not exist."""
        ...

    def glob(self, directory: Path, pattern: str) -> list[Path]:
        """List paths in a directory matching a glob pattern, sorted."""
        ...
