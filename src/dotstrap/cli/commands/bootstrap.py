"""Bootstrap command implementation."""

from rich.console import Console

from dotstrap.config.loader import load_manifest
from dotstrap.config.models import ConfigOverrides
from dotstrap.core.logging import get_logger
from dotstrap.core.manager import Manager
from dotstrap.core.reporter import Summary, render_plan, render_report
from dotstrap.system.worker import Worker

logger = get_logger(__name__)


async def run_bootstrap(
    manifest_file: str,
    preset: str,
    overrides: ConfigOverrides,
    *,
    dry_run: bool = False,
    trace: bool = False,
    console: Console | None = None,
    system: Worker | None = None,
) -> Summary | None:
    """Execute the bootstrap command.

    Args:
        manifest_file: Path to manifest file
        preset: Preset name to use
        overrides: Manifest overrides from CLI/env
        dry_run: Only show the plan
        trace: Echo command output
        console: Console to print the report on
        system: System worker, a real System by default

    Returns:
        Summary of the run, None for a dry run
    """
    console = console or Console()

    manifest = load_manifest(manifest_file=manifest_file, preset=preset, overrides=overrides)

    logger.info(
        "Manifest loaded",
        packages=len(manifest.packages),
        users=len(manifest.users),
        ssh_keys=len(manifest.ssh_keys),
        dotfiles=len(manifest.dotfiles),
    )

    manager = Manager(manifest, system=system, trace=trace)

    if dry_run:
        render_plan(await manager.preview(), console)
        return None

    summary = await manager.bootstrap()
    render_report(summary, console)
    return summary
