"""Command models for system execution."""

import os
import shlex
from dataclasses import dataclass, field
from shutil import which


@dataclass
class Command:
    """Represents a command to be executed by dotstrap.

    Attributes:
        executable: The command to execute
        args: Arguments to pass to the executable
        user: Optional user to run the command as (via sudo)
        privileged: Whether the command needs root (prefixed with sudo when not root)
        env: Extra environment variables for the command
    """

    executable: str
    args: list[str] = field(default_factory=list)
    user: str = ""
    privileged: bool = False
    env: dict[str, str] = field(default_factory=dict)

    @property
    def full_command(self) -> list[str]:
        """Build the full command including sudo and environment if needed.

        Returns:
            List of command components
        """
        executable_path = which(self.executable)
        if executable_path is None:
            executable_path = self.executable

        cmd: list[str] = []

        if self.user and self.user != "root":
            cmd.extend(["sudo", "-u", self.user])
        elif self.privileged and os.geteuid() != 0:
            cmd.append("sudo")

        # sudo resets the environment, so variables are passed through env(1)
        if self.env:
            cmd.append("env")
            cmd.extend(f"{key}={value}" for key, value in sorted(self.env.items()))

        cmd.append(executable_path)
        cmd.extend(self.args)

        return cmd

    @property
    def command_string(self) -> str:
        """Build the command as a properly escaped shell string.

        Returns:
            Shell-escaped command string
        """
        return shlex.join(self.full_command)


class CommandError(Exception):
    """Raised when a command execution fails.

    Attributes:
        command: The command that failed
        returncode: Exit code from the command
        output: Combined stdout/stderr output
    """

    def __init__(self, command: str, returncode: int, output: str) -> None:
        """Initialize CommandError.

        Args:
            command: The command that failed
            returncode: Exit code from the command
            output: Combined stdout/stderr output
        """
        self.command = command
        self.returncode = returncode
        self.output = output
        super().__init__(f"Command failed with exit code {returncode}: {command}")

    @property
    def reason(self) -> str:
        """The tool's own error text, or the exit status when it printed nothing."""
        text = self.output.strip()
        if text:
            return text
        return f"{self.command} exited with code {self.returncode}"
