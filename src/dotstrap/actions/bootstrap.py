"""Package-manager bootstrap actions (Xcode command line tools, Homebrew)."""

from pathlib import Path

from dotstrap.config.models import PackageManagerSettings
from dotstrap.core.logging import get_logger
from dotstrap.core.models import Action, ActionKind
from dotstrap.packages.brew_handler import find_brew
from dotstrap.system.command import Command, CommandError
from dotstrap.system.worker import Worker

logger = get_logger(__name__)


def xcode_tools_action(system: Worker) -> Action:
    """Ensure the Apple command line tools are installed.

    ``xcode-select --install`` opens a system dialog and returns before the
    tools are installed, so the postcondition fails until the dialog
    completes; re-running dotstrap afterwards picks up where it left off.
    """

    async def check() -> bool:
        if not system.which("xcode-select"):
            return False
        try:
            output = await system.run(Command(executable="xcode-select", args=["--print-path"]))
        except CommandError:
            return False
        tools_path = output.decode("utf-8", errors="replace").strip()
        return bool(tools_path) and system.path_exists(Path(tools_path))

    async def apply() -> None:
        logger.info("Installing Apple command line tools")
        await system.run_interactive(Command(executable="xcode-select", args=["--install"]))

    return Action(
        kind=ActionKind.BOOTSTRAP_PACKAGE_MANAGER,
        target="xcode-command-line-tools",
        check=check,
        apply=apply,
        fatal=True,
    )


def homebrew_action(system: Worker, settings: PackageManagerSettings) -> Action:
    """Ensure Homebrew is installed using its official install script."""

    async def check() -> bool:
        return find_brew(system) is not None

    async def apply() -> None:
        logger.info("Installing Homebrew", url=settings.homebrew_install_url)
        script = await system.fetch_text(settings.homebrew_install_url)
        await system.run_interactive(Command(executable="/bin/bash", args=["-c", script]))

    return Action(
        kind=ActionKind.BOOTSTRAP_PACKAGE_MANAGER,
        target="homebrew",
        check=check,
        apply=apply,
        fatal=True,
    )
