"""Main CLI application for dotstrap."""

import asyncio
from typing import Annotated

import typer

from dotstrap.cli.commands.bootstrap import run_bootstrap
from dotstrap.config.loader import get_env_overrides, get_env_source
from dotstrap.config.models import ConfigOverrides
from dotstrap.config.presets import get_available_presets
from dotstrap.core.errors import FatalActionError, InvalidManifestError, UnsupportedPlatformError
from dotstrap.core.logging import setup_logging

EXIT_FATAL_ACTION = 1
EXIT_INVALID_SETUP = 2

app = typer.Typer(
    name="dotstrap",
    help="Bring a macOS or Linux workstation to a declared state",
    add_completion=False,
)


def split_comma_list(items: list[str]) -> list[str]:
    """Flatten repeated and comma-separated option values."""
    result = []
    for item in items:
        result.extend([s.strip() for s in item.split(",") if s.strip()])
    return result


@app.command()
def main(
    manifest: Annotated[
        str,
        typer.Option("--manifest", "-m", help="Path to a manifest file"),
    ] = "",
    preset: Annotated[
        str,
        typer.Option("--preset", "-p", help="Bundled manifest preset (default, minimal)"),
    ] = "",
    extra_packages: Annotated[
        list[str] | None,
        typer.Option("--extra-packages", help="Additional packages to install"),
    ] = None,
    skip_users: Annotated[
        bool,
        typer.Option("--skip-users", help="Do not create user accounts"),
    ] = False,
    skip_ssh: Annotated[
        bool,
        typer.Option("--skip-ssh", help="Do not generate SSH keys"),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show planned actions without applying them"),
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
    trace: Annotated[
        bool, typer.Option("--trace", help="Echo every command and its output")
    ] = False,
) -> None:
    """Probe the machine, plan idempotent actions, apply them and report."""
    setup_logging(verbose=verbose, trace=trace)

    env_manifest, env_preset = get_env_source()
    manifest = manifest or env_manifest
    preset = preset or env_preset

    if preset:
        available = get_available_presets()
        if preset not in available:
            typer.echo(
                f"Error: Unknown preset '{preset}'. Available presets: {', '.join(available)}",
                err=True,
            )
            raise typer.Exit(code=EXIT_INVALID_SETUP)

    env_overrides = get_env_overrides()
    overrides = ConfigOverrides(
        # CLI and env extra packages combine rather than replace each other
        extra_packages=split_comma_list(extra_packages or []) + env_overrides.extra_packages,
        skip_users=skip_users or env_overrides.skip_users,
        skip_ssh=skip_ssh or env_overrides.skip_ssh,
    )

    try:
        asyncio.run(run_bootstrap(manifest, preset, overrides, dry_run=dry_run, trace=trace))
    except (UnsupportedPlatformError, InvalidManifestError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=EXIT_INVALID_SETUP) from e
    except FatalActionError as e:
        typer.echo(f"Error: {e}", err=True)
        typer.echo("Fix the problem above and re-run dotstrap; finished steps are skipped.", err=True)
        raise typer.Exit(code=EXIT_FATAL_ACTION) from e


if __name__ == "__main__":
    app()
