"""RPM package handler for yum and dnf."""

from dotstrap.core.logging import get_logger
from dotstrap.core.models import PackageManagerKind
from dotstrap.system.command import Command, CommandError
from dotstrap.system.worker import Worker

logger = get_logger(__name__)

# Exit status of "check-update" when updates are available
UPDATES_AVAILABLE = 100


class YumHandler:
    """Handler for managing RPM packages via yum or dnf.

    dnf accepts the same subcommands as yum, so one handler serves both.
    """

    def __init__(self, system: Worker, kind: PackageManagerKind = PackageManagerKind.YUM) -> None:
        """Initialize the YumHandler.

        Args:
            system: System worker for executing commands
            kind: Either YUM or DNF

        Raises:
            ValueError: If kind is not an RPM package manager
        """
        if kind not in (PackageManagerKind.YUM, PackageManagerKind.DNF):
            raise ValueError(f"YumHandler cannot manage {kind.value} packages")
        self.system = system
        self.kind = kind

    @property
    def executable(self) -> str:
        return self.kind.value

    async def installed_version(self, package: str, version: str = "") -> str | None:
        cmd = Command(executable="rpm", args=["-q", "--queryformat", "%{VERSION}", package])
        try:
            output = await self.system.run(cmd)
        except CommandError:
            return None
        return output.decode("utf-8", errors="replace").strip() or None

    async def is_outdated(self, package: str, version: str = "") -> bool:
        cmd = Command(executable=self.executable, args=["check-update", "--quiet", package])
        try:
            await self.system.run(cmd)
        except CommandError as e:
            if e.returncode == UPDATES_AVAILABLE:
                return True
            raise
        return False

    async def install(self, package: str, version: str = "") -> None:
        name = f"{package}-{version}" if version else package
        cmd = Command(executable=self.executable, args=["install", "-y", name], privileged=True)
        await self.system.run(cmd)

        logger.info("Installed rpm package", package=name, manager=self.executable)

    async def upgrade(self, package: str) -> None:
        cmd = Command(executable=self.executable, args=["upgrade", "-y", package], privileged=True)
        await self.system.run(cmd)

        logger.info("Upgraded rpm package", package=package, manager=self.executable)

    async def refresh_index(self) -> None:
        logger.info("Refreshing package metadata", manager=self.executable)
        cmd = Command(executable=self.executable, args=["makecache"], privileged=True)
        await self.system.run(cmd)
