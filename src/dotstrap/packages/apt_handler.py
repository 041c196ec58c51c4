"""Debian package handler for installing and querying apt packages."""

from dotstrap.core.logging import get_logger
from dotstrap.core.models import PackageManagerKind
from dotstrap.system.command import Command, CommandError
from dotstrap.system.worker import Worker

logger = get_logger(__name__)

APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


def _parse_policy(output: str) -> tuple[str, str]:
    """Extract the installed and candidate versions from ``apt-cache policy``.

    Returns:
        Tuple of (installed, candidate); "(none)" when absent
    """
    installed = candidate = "(none)"
    for line in output.splitlines():
        key, _, value = line.strip().partition(":")
        if key == "Installed":
            installed = value.strip()
        elif key == "Candidate":
            candidate = value.strip()
    return installed, candidate


class AptHandler:
    """Handler for managing Debian packages via apt.

    This handler installs packages from the Ubuntu/Debian package archives
    using apt-get and queries their state with dpkg-query and apt-cache.
    """

    kind = PackageManagerKind.APT

    def __init__(self, system: Worker) -> None:
        """Initialize the AptHandler.

        Args:
            system: System worker for executing commands
        """
        self.system = system

    async def installed_version(self, package: str, version: str = "") -> str | None:
        cmd = Command(
            executable="dpkg-query",
            args=["--show", "--showformat", "${Status}\t${Version}", package],
        )
        try:
            output = await self.system.run(cmd)
        except CommandError:
            return None

        status, _, version = output.decode("utf-8", errors="replace").partition("\t")
        # Removed-but-not-purged packages are still known to dpkg
        if not status.strip().endswith(" installed"):
            return None
        return version.strip() or None

    async def is_outdated(self, package: str, version: str = "") -> bool:
        output = await self.system.run(Command(executable="apt-cache", args=["policy", package]))
        installed, candidate = _parse_policy(output.decode("utf-8", errors="replace"))
        return installed != "(none)" and candidate != "(none)" and installed != candidate

    async def install(self, package: str, version: str = "") -> None:
        name = f"{package}={version}*" if version else package
        cmd = Command(
            executable="apt-get",
            args=["install", "-y", name],
            privileged=True,
            env=APT_ENV,
        )
        await self.system.run(cmd)

        logger.info("Installed apt package", package=name)

    async def upgrade(self, package: str) -> None:
        cmd = Command(
            executable="apt-get",
            args=["install", "-y", "--only-upgrade", package],
            privileged=True,
            env=APT_ENV,
        )
        await self.system.run(cmd)

        logger.info("Upgraded apt package", package=package)

    async def refresh_index(self) -> None:
        logger.info("Updating apt package cache")
        cmd = Command(executable="apt-get", args=["update"], privileged=True, env=APT_ENV)
        await self.system.run(cmd)
