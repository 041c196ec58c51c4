"""Factory for creating package handler instances."""

from dotstrap.core.models import PackageManagerKind
from dotstrap.packages.apt_handler import AptHandler
from dotstrap.packages.base import PackageHandler
from dotstrap.packages.brew_handler import BrewHandler
from dotstrap.packages.yum_handler import YumHandler
from dotstrap.system.worker import Worker


def create_package_handler(kind: PackageManagerKind, system: Worker) -> PackageHandler:
    """Create the handler for a package manager.

    Args:
        kind: Package manager to handle
        system: System worker

    Returns:
        Package handler instance
    """
    match kind:
        case PackageManagerKind.BREW:
            return BrewHandler(system)
        case PackageManagerKind.DNF | PackageManagerKind.YUM:
            return YumHandler(system, kind)
        case PackageManagerKind.APT:
            return AptHandler(system)
