"""System command runner implementation."""

import asyncio
import grp
import os
import pwd
import shutil
from pathlib import Path

from dotstrap.core.logging import get_logger
from dotstrap.system.command import Command, CommandError
from dotstrap.system.http import HttpClient
from dotstrap.system.models import UserInfo

logger = get_logger(__name__)


def _get_real_user() -> tuple[str, Path]:
    """Get the real username and home directory.

    When running with sudo, this returns the original user instead of root.

    Returns:
        Tuple of (username, home_directory)
    """
    sudo_user = os.getenv("SUDO_USER")
    if sudo_user:
        try:
            return sudo_user, Path(pwd.getpwnam(sudo_user).pw_dir)
        except KeyError:
            return sudo_user, Path(f"/home/{sudo_user}")

    try:
        entry = pwd.getpwuid(os.getuid())
        return entry.pw_name, Path(os.getenv("HOME") or entry.pw_dir)
    except KeyError:
        username = os.getenv("USER", "root")
        return username, Path(os.getenv("HOME", f"/home/{username}"))


class System:
    """System implementation that executes commands on the local machine.

    This class implements the Worker protocol and provides methods for
    executing commands, querying accounts and managing files.
    """

    def __init__(self, trace: bool = False, http: HttpClient | None = None) -> None:
        """Initialize the System.

        Args:
            trace: Enable trace logging for all command output
            http: HTTP client used for downloads
        """
        self._trace = trace
        self._username, self._home_dir = _get_real_user()
        self._http = http or HttpClient()

    def username(self) -> str:
        return self._username

    def home_dir(self) -> Path:
        return self._home_dir

    def home_of(self, user: str) -> Path:
        if user == self._username:
            return self._home_dir
        info = self.user_info(user)
        if info is None:
            # Matches useradd's default for accounts created later in the run
            return Path(f"/home/{user}")
        return info.home

    def sysname(self) -> str:
        return os.uname().sysname

    def which(self, name: str) -> str | None:
        return shutil.which(name)

    def is_root(self) -> bool:
        return os.geteuid() == 0

    def user_info(self, user: str) -> UserInfo | None:
        try:
            entry = pwd.getpwnam(user)
        except KeyError:
            return None
        return UserInfo(
            name=entry.pw_name,
            uid=entry.pw_uid,
            gid=entry.pw_gid,
            home=Path(entry.pw_dir),
            shell=entry.pw_shell,
        )

    def user_groups(self, user: str) -> set[str]:
        info = self.user_info(user)
        if info is None:
            return set()

        groups = {group.gr_name for group in grp.getgrall() if user in group.gr_mem}
        try:
            groups.add(grp.getgrgid(info.gid).gr_name)
        except KeyError:
            pass
        return groups

    def list_users(self) -> set[str]:
        return {entry.pw_name for entry in pwd.getpwall()}

    def path_exists(self, path: Path) -> bool:
        return path.exists()

    def file_mode(self, path: Path) -> int | None:
        try:
            return path.stat().st_mode & 0o7777
        except FileNotFoundError:
            return None

    def glob(self, directory: Path, pattern: str) -> list[Path]:
        if not directory.is_dir():
            return []
        return sorted(directory.glob(pattern))

    async def run(self, cmd: Command) -> bytes:
        """Execute a command and return its output.

        Args:
            cmd: Command to execute

        Returns:
            Combined stdout/stderr output as bytes

        Raises:
            CommandError: If the command fails
        """
        full_command = cmd.full_command
        command_string = cmd.command_string

        log_ctx = {}
        if cmd.user:
            log_ctx["user"] = cmd.user

        logger.debug("Starting command", command=command_string, **log_ctx)

        try:
            process = await asyncio.create_subprocess_exec(
                *full_command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except FileNotFoundError as e:
            raise CommandError(command_string, 127, str(e)) from e

        stdout, _ = await process.communicate()
        output_str = stdout.decode("utf-8", errors="replace")

        if self._trace:
            self._print_trace(command_string, output_str)

        if process.returncode != 0:
            returncode = process.returncode if process.returncode is not None else 1
            raise CommandError(command_string, returncode, output_str)

        logger.debug("Finished command", command=command_string)

        return stdout

    async def run_interactive(self, cmd: Command) -> None:
        """Execute a command with the operator's terminal attached.

        Args:
            cmd: Command to execute

        Raises:
            CommandError: If the command fails
        """
        command_string = cmd.command_string
        logger.debug("Starting interactive command", command=command_string)

        try:
            process = await asyncio.create_subprocess_exec(*cmd.full_command)
        except FileNotFoundError as e:
            raise CommandError(command_string, 127, str(e)) from e

        returncode = await process.wait()
        if returncode != 0:
            raise CommandError(command_string, returncode, "")

        logger.debug("Finished interactive command", command=command_string)

    async def read_file(self, filepath: Path) -> bytes:
        """Read a file from anywhere on the filesystem.

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        if not filepath.exists():
            raise FileNotFoundError(f"File '{filepath}' does not exist")

        return filepath.read_bytes()

    async def write_file(
        self, filepath: Path, contents: bytes, mode: int | None = None, owner: str = ""
    ) -> None:
        """Write a file, creating parent directories as needed.

        Args:
            filepath: Absolute path to write
            contents: File contents to write
            mode: Optional permission bits
            owner: User that should own the file (only applied when running as root)

        Raises:
            ValueError: If filepath is relative
            OSError: If file cannot be written
        """
        if not filepath.is_absolute():
            raise ValueError("Only absolute paths are supported")

        await self.make_dir(filepath.parent, owner=owner)

        filepath.write_bytes(contents)
        if mode is not None:
            filepath.chmod(mode)

        self._chown(filepath, owner)

        logger.debug("Wrote file", path=str(filepath))

    async def make_dir(self, directory: Path, mode: int | None = None, owner: str = "") -> None:
        """Create a directory and any missing parents.

        Directories created by this call are handed to ``owner``.

        Raises:
            OSError: If directory cannot be created
        """
        missing = [directory, *directory.parents]
        missing = [path for path in missing if not path.exists()]

        directory.mkdir(parents=True, exist_ok=True)
        if mode is not None:
            directory.chmod(mode)

        for path in missing:
            self._chown(path, owner)

        if missing:
            logger.debug("Created directory", path=str(directory))

    async def fetch_text(self, url: str) -> str:
        return await self._http.fetch_text(url)

    def _chown(self, path: Path, owner: str) -> None:
        """Change ownership of a path to the given user when running as root.

        Args:
            path: Path to change ownership of
            owner: Target username
        """
        if not owner or not self.is_root():
            return

        info = self.user_info(owner)
        if info is None:
            logger.warning("Could not find user info", user=owner)
            return

        try:
            os.chown(path, info.uid, info.gid)
        except OSError as e:
            logger.warning("Failed to change ownership", path=str(path), error=str(e))
            return

        logger.debug("Changed ownership", path=str(path), user=owner)

    def _print_trace(self, command: str, output: str) -> None:
        """Print trace output for a command.

        Args:
            command: The command that was executed
            output: The command output
        """
        print(f"\n\033[1;32;4mCommand:\033[0m \033[1m{command}\033[0m")
        if output:
            print(f"\033[1;32mOutput:\033[0m\n{output}")
