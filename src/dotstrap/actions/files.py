"""Dotfile copy and shell profile actions."""

from pathlib import Path

from dotstrap.actions.paths import (
    file_owner,
    home_write_errors,
    resolve_home_path,
    split_home_path,
)
from dotstrap.config.models import DotfileSpec, ProfileSpec
from dotstrap.core.logging import get_logger
from dotstrap.core.models import Action, ActionKind
from dotstrap.system.worker import Worker

logger = get_logger(__name__)


async def _write_home_file(
    system: Worker, path: Path, contents: bytes, mode: int | None, scope_user: str
) -> None:
    with home_write_errors(path, scope_user, system):
        await system.write_file(path, contents, mode=mode, owner=file_owner(scope_user, system))


def copy_file_action(spec: DotfileSpec, source: Path, system: Worker) -> Action:
    """Build the action that copies a dotfile into place.

    Args:
        spec: Dotfile declaration
        source: Resolved source path
        system: System worker

    Returns:
        Copy action, satisfied when the destination matches byte for byte
    """
    scope_user, _ = split_home_path(spec.destination)

    async def check() -> bool:
        destination = resolve_home_path(spec.destination, system)
        if not system.path_exists(destination):
            return False
        if spec.mode is not None and system.file_mode(destination) != spec.mode:
            return False
        return await system.read_file(destination) == await system.read_file(source)

    async def apply() -> None:
        destination = resolve_home_path(spec.destination, system)
        contents = await system.read_file(source)
        await _write_home_file(system, destination, contents, spec.mode, scope_user)

        logger.info("Copied file", source=str(source), destination=str(destination))

    return Action(
        kind=ActionKind.COPY_FILE,
        target=f"{source.name} -> {spec.destination}",
        check=check,
        apply=apply,
        scope_user=scope_user,
    )


def _missing_lines(existing: str, lines: list[str]) -> list[str]:
    present = set(existing.splitlines())
    return [line for line in lines if line not in present]


def profile_action(spec: ProfileSpec, system: Worker) -> Action:
    """Build the action that ensures lines are present in a shell profile."""
    scope_user, _ = split_home_path(spec.file)

    async def current_contents() -> str:
        path = resolve_home_path(spec.file, system)
        if not system.path_exists(path):
            return ""
        return (await system.read_file(path)).decode("utf-8", errors="replace")

    async def check() -> bool:
        return not _missing_lines(await current_contents(), spec.lines)

    async def apply() -> None:
        path = resolve_home_path(spec.file, system)
        existing = await current_contents()
        missing = _missing_lines(existing, spec.lines)
        if existing and not existing.endswith("\n"):
            existing += "\n"
        updated = existing + "".join(f"{line}\n" for line in missing)
        await _write_home_file(system, path, updated.encode("utf-8"), None, scope_user)

        logger.info("Updated profile", path=str(path), lines=len(missing))

    return Action(
        kind=ActionKind.ENSURE_LINES,
        target=spec.file,
        check=check,
        apply=apply,
        scope_user=scope_user,
    )
