"""Package install actions."""

from dotstrap.config.models import PackageSpec
from dotstrap.core.logging import get_logger
from dotstrap.core.models import Action, ActionKind
from dotstrap.packages.base import PackageHandler, version_satisfies

logger = get_logger(__name__)


class IndexRefresher:
    """Refreshes a package index at most once per run.

    Only actions that actually install something trigger the refresh, so a
    run where every package is present makes no network calls.
    """

    def __init__(self, handler: PackageHandler, enabled: bool = True) -> None:
        self.handler = handler
        self.enabled = enabled
        self.refreshed = False

    async def ensure(self) -> None:
        if not self.enabled or self.refreshed:
            return
        await self.handler.refresh_index()
        self.refreshed = True


def package_action(spec: PackageSpec, handler: PackageHandler, refresher: IndexRefresher) -> Action:
    """Build the action that installs (or upgrades) one package.

    Args:
        spec: Package declaration
        handler: Handler for the machine's package manager
        refresher: Shared index refresher

    Returns:
        Install action
    """
    name = spec.name_for(handler.kind)

    async def check() -> bool:
        version = await handler.installed_version(name, spec.version)
        if version is None:
            return False
        if not version_satisfies(version, spec.version):
            logger.debug("Installed version does not match", package=name, installed=version)
            return False
        if spec.upgrade and await handler.is_outdated(name, spec.version):
            logger.debug("Installed package is outdated", package=name, installed=version)
            return False
        return True

    async def apply() -> None:
        await refresher.ensure()
        installed = await handler.installed_version(name, spec.version)
        if installed is not None and spec.upgrade and not spec.version:
            await handler.upgrade(name)
        else:
            await handler.install(name, spec.version)

    target = f"{name} {spec.version}" if spec.version else name
    return Action(kind=ActionKind.INSTALL_PACKAGE, target=target, check=check, apply=apply)


def package_actions(
    specs: list[PackageSpec], handler: PackageHandler, refresh_index: bool = True
) -> list[Action]:
    refresher = IndexRefresher(handler, enabled=refresh_index)
    return [package_action(spec, handler, refresher) for spec in specs]
