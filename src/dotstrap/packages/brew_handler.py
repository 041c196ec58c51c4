"""Homebrew package handler."""

from pathlib import Path

from dotstrap.core.logging import get_logger
from dotstrap.core.models import PackageManagerKind
from dotstrap.system.command import Command, CommandError
from dotstrap.system.worker import Worker

logger = get_logger(__name__)

# Install locations on Apple Silicon and Intel; a fresh install is not yet on PATH
HOMEBREW_LOCATIONS = [Path("/opt/homebrew/bin/brew"), Path("/usr/local/bin/brew")]

# Keep brew from updating itself on every command; refresh_index does it once
BREW_ENV = {"HOMEBREW_NO_AUTO_UPDATE": "1"}


def find_brew(system: Worker) -> str | None:
    """Locate the brew executable.

    Args:
        system: System worker

    Returns:
        Path to brew, or None if Homebrew is not installed
    """
    found = system.which("brew")
    if found:
        return found
    for location in HOMEBREW_LOCATIONS:
        if system.path_exists(location):
            return str(location)
    return None


def formula_name(package: str, version: str = "") -> str:
    """Name brew lists a formula under.

    The tap prefix is dropped (``cloudflare/cloudflare/cloudflared``) and a
    pinned version selects the versioned formula (``go@1.21``).
    """
    name = package.rsplit("/", 1)[-1]
    return f"{name}@{version}" if version else name


class BrewHandler:
    """Handler for managing packages via Homebrew.

    Homebrew refuses to run as root, so commands are never privileged.
    """

    kind = PackageManagerKind.BREW

    def __init__(self, system: Worker) -> None:
        """Initialize the BrewHandler.

        Args:
            system: System worker for executing commands
        """
        self.system = system

    def _command(self, *args: str) -> Command:
        # Resolved per call: Homebrew may be installed earlier in the same run
        return Command(executable=find_brew(self.system) or "brew", args=list(args), env=BREW_ENV)

    async def installed_version(self, package: str, version: str = "") -> str | None:
        try:
            cmd = self._command("list", "--versions", formula_name(package, version))
            output = await self.system.run(cmd)
        except CommandError:
            return None

        # "<name> <version> [<older versions>...]"
        parts = output.decode("utf-8", errors="replace").split()
        if len(parts) < 2:
            return None
        return parts[1]

    async def is_outdated(self, package: str, version: str = "") -> bool:
        cmd = self._command("outdated", "--quiet", formula_name(package, version))
        output = await self.system.run(cmd)
        return bool(output.strip())

    async def install(self, package: str, version: str = "") -> None:
        name = f"{package}@{version}" if version else package
        await self.system.run(self._command("install", name))

        logger.info("Installed brew package", package=name)

    async def upgrade(self, package: str) -> None:
        await self.system.run(self._command("upgrade", package))

        logger.info("Upgraded brew package", package=package)

    async def refresh_index(self) -> None:
        logger.info("Updating Homebrew")
        await self.system.run(self._command("update"))
