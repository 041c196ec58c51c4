"""Action planner: turns a manifest and a probe result into ordered actions."""

from pathlib import Path

from dotstrap.actions.bootstrap import homebrew_action, xcode_tools_action
from dotstrap.actions.files import copy_file_action, profile_action
from dotstrap.actions.packages import package_actions
from dotstrap.actions.paths import split_home_path
from dotstrap.actions.ssh import ssh_key_action
from dotstrap.actions.users import user_action
from dotstrap.config.models import Manifest
from dotstrap.core.errors import InvalidManifestError, UnsupportedPlatformError
from dotstrap.core.logging import get_logger
from dotstrap.core.models import Action, OSFamily, PackageManagerKind, ProbeResult
from dotstrap.packages.factory import create_package_handler
from dotstrap.system.worker import Worker

logger = get_logger(__name__)


def _resolve_source(manifest: Manifest, source: str) -> Path:
    path = Path(source).expanduser()
    if path.is_absolute():
        return path
    return (manifest.base_dir or Path.cwd()) / path


def _macos_package_setup(
    manifest: Manifest, probe_result: ProbeResult, system: Worker, needs_packages: bool
) -> tuple[list[Action], PackageManagerKind | None]:
    settings = manifest.package_manager

    if settings.bootstrap:
        actions = [xcode_tools_action(system), homebrew_action(system, settings)]
        return actions, PackageManagerKind.BREW

    if needs_packages and probe_result.package_manager is not PackageManagerKind.BREW:
        raise InvalidManifestError(
            "Packages are declared but Homebrew is not installed and bootstrapping is disabled"
        )
    return [], probe_result.package_manager


def _linux_package_setup(
    probe_result: ProbeResult, needs_packages: bool
) -> tuple[list[Action], PackageManagerKind | None]:
    if needs_packages and probe_result.package_manager is None:
        raise InvalidManifestError("Packages are declared but no supported package manager was found")
    return [], probe_result.package_manager


def _check_scope_users(scoped: list[tuple[str, str]], known_users: set[str]) -> None:
    for user, what in scoped:
        if user and user not in known_users:
            raise InvalidManifestError(
                f"{what} is scoped to user '{user}', who neither exists nor is declared"
            )


def plan(manifest: Manifest, probe_result: ProbeResult, system: Worker) -> list[Action]:
    """Build the ordered list of actions for this machine.

    Order: package-manager bootstrap, packages, users, SSH keys, dotfiles,
    profile lines. Manifest order is kept within each group, so the result
    is deterministic for identical inputs.

    Args:
        manifest: Desired state
        probe_result: Snapshot of the machine
        system: System worker the actions will use

    Returns:
        Ordered actions

    Raises:
        UnsupportedPlatformError: If the probe result has no supported OS family
        InvalidManifestError: If the manifest cannot be applied on this platform
    """
    os_family = probe_result.os_family

    packages = [spec for spec in manifest.packages if spec.applies_to(os_family)]
    users = [spec for spec in manifest.users if spec.applies_to(os_family)]
    ssh_keys = [spec for spec in manifest.ssh_keys if spec.applies_to(os_family)]
    dotfiles = [spec for spec in manifest.dotfiles if spec.applies_to(os_family)]
    profile = [spec for spec in manifest.profile if spec.applies_to(os_family)]

    match os_family:
        case OSFamily.MACOS:
            if users:
                raise InvalidManifestError(
                    f"User accounts cannot be provisioned on macOS: {users[0].name}"
                )
            bootstrap, manager = _macos_package_setup(
                manifest, probe_result, system, bool(packages)
            )
        case OSFamily.LINUX:
            bootstrap, manager = _linux_package_setup(probe_result, bool(packages))
        case OSFamily.UNSUPPORTED:
            raise UnsupportedPlatformError(os_family.value)

    known_users = set(probe_result.existing_users) | {spec.name for spec in users}
    known_users.add(probe_result.username)
    _check_scope_users(
        [(spec.user, f"SSH key {spec.default_path}") for spec in ssh_keys]
        + [(split_home_path(spec.destination)[0], f"Dotfile {spec.destination}") for spec in dotfiles]
        + [(split_home_path(spec.file)[0], f"Profile {spec.file}") for spec in profile],
        known_users,
    )

    sources = [_resolve_source(manifest, spec.source) for spec in dotfiles]
    for source in sources:
        if not system.path_exists(source):
            raise InvalidManifestError(f"Dotfile source does not exist: {source}")

    actions: list[Action] = list(bootstrap)

    if packages and manager is not None:
        handler = create_package_handler(manager, system)
        actions += package_actions(packages, handler, manifest.package_manager.refresh_index)

    actions += [user_action(spec, system) for spec in users]
    actions += [ssh_key_action(spec, system) for spec in ssh_keys]
    actions += [
        copy_file_action(spec, source, system) for spec, source in zip(dotfiles, sources)
    ]
    actions += [profile_action(spec, system) for spec in profile]

    logger.info("Planned actions", count=len(actions), os=os_family.value)
    return actions
