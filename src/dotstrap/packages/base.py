"""PackageHandler protocol shared by all package managers."""

from typing import Protocol, runtime_checkable

from dotstrap.core.models import PackageManagerKind

# Characters that may follow a matched version prefix (release, revision, bottle rebuild)
VERSION_SEPARATORS = ".-_+~"


@runtime_checkable
class PackageHandler(Protocol):
    """Protocol for querying and installing packages with one package manager."""

    kind: PackageManagerKind

    async def installed_version(self, package: str, version: str = "") -> str | None:
        """Get the installed version of a package.

        Args:
            package: Package name
            version: Pinned version the package was installed with, if any

        Returns:
            Version string, or None if the package is not installed
        """
        ...

    async def is_outdated(self, package: str, version: str = "") -> bool:
        """Check whether a newer version of an installed package is available."""
        ...

    async def install(self, package: str, version: str = "") -> None:
        """Install a package, optionally at a specific version.

        Raises:
            CommandError: If installation fails
        """
        ...

    async def upgrade(self, package: str) -> None:
        """Upgrade an installed package.

        Raises:
            CommandError: If the upgrade fails
        """
        ...

    async def refresh_index(self) -> None:
        """Refresh the package index.

        Raises:
            CommandError: If the refresh fails
        """
        ...


def version_satisfies(installed: str, constraint: str) -> bool:
    """Check an installed version against a version constraint.

    A constraint matches the version itself or any version below it, so
    ``1.21`` accepts ``1.21``, ``1.21.4`` and ``1.21-3`` but not ``1.210``.
    A Debian epoch (``2:9.0.1378-2``) is ignored.

    Args:
        installed: Installed version string
        constraint: Required version prefix, empty to accept anything

    Returns:
        True if the installed version satisfies the constraint
    """
    if not constraint:
        return True
    epoch, sep, rest = installed.partition(":")
    if sep and epoch.isdigit():
        installed = rest
    if installed == constraint:
        return True
    return installed.startswith(constraint) and installed[len(constraint)] in VERSION_SEPARATORS
