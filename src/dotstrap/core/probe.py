"""Environment prober: read-only detection of the machine's state."""

from dotstrap.core.errors import UnsupportedPlatformError
from dotstrap.core.logging import get_logger
from dotstrap.core.models import OSFamily, PackageManagerKind, ProbeResult
from dotstrap.packages.brew_handler import find_brew
from dotstrap.system.worker import Worker

logger = get_logger(__name__)

# Checked in order; the first one found wins
LINUX_PACKAGE_MANAGERS = [
    ("dnf", PackageManagerKind.DNF),
    ("yum", PackageManagerKind.YUM),
    ("apt-get", PackageManagerKind.APT),
]


def detect_os_family(sysname: str) -> OSFamily:
    """Map a uname kernel name to an OS family.

    Args:
        sysname: Output of ``uname -s``

    Returns:
        Matching OS family, UNSUPPORTED if unknown
    """
    if sysname.startswith("Linux"):
        return OSFamily.LINUX
    if sysname.startswith("Darwin"):
        return OSFamily.MACOS
    return OSFamily.UNSUPPORTED


def detect_package_manager(system: Worker, os_family: OSFamily) -> PackageManagerKind | None:
    """Find the package manager available for an OS family.

    Args:
        system: System worker
        os_family: Detected OS family

    Returns:
        The package manager, or None if none is installed
    """
    match os_family:
        case OSFamily.MACOS:
            return PackageManagerKind.BREW if find_brew(system) else None
        case OSFamily.LINUX:
            for binary, kind in LINUX_PACKAGE_MANAGERS:
                if system.which(binary):
                    return kind
            return None
        case OSFamily.UNSUPPORTED:
            return None


def probe(system: Worker) -> ProbeResult:
    """Take a snapshot of the machine.

    Args:
        system: System worker used for all queries

    Returns:
        Probe result for this run

    Raises:
        UnsupportedPlatformError: If the OS family cannot be determined
    """
    sysname = system.sysname()
    os_family = detect_os_family(sysname)
    if os_family is OSFamily.UNSUPPORTED:
        raise UnsupportedPlatformError(sysname)

    home = system.home_dir()
    result = ProbeResult(
        os_family=os_family,
        package_manager=detect_package_manager(system, os_family),
        username=system.username(),
        home=home,
        is_root=system.is_root(),
        existing_users=frozenset(system.list_users()),
        ssh_public_keys=frozenset(str(p) for p in system.glob(home / ".ssh", "*.pub")),
    )

    logger.info(
        "Detected machine",
        os=result.os_family.value,
        package_manager=result.package_manager.value if result.package_manager else "none",
        user=result.username,
    )
    return result
