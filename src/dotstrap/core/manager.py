"""Manager for orchestrating a dotstrap run."""

from dotstrap.config.models import Manifest
from dotstrap.core.executor import execute_all
from dotstrap.core.logging import get_logger
from dotstrap.core.models import Action, PlannedAction, ProbeResult
from dotstrap.core.planner import plan
from dotstrap.core.probe import probe
from dotstrap.core.reporter import Summary, report
from dotstrap.system.command import CommandError
from dotstrap.system.runner import System
from dotstrap.system.worker import Worker

logger = get_logger(__name__)


class Manager:
    """Manager runs probe, plan, execute and report in sequence.

    Nothing is persisted between runs; every run starts from a fresh probe.
    """

    def __init__(self, manifest: Manifest, system: Worker | None = None, trace: bool = False) -> None:
        """Initialize the Manager.

        Args:
            manifest: Desired state
            system: System worker, a real System by default
            trace: Enable trace output for commands
        """
        self.manifest = manifest
        self.system = system if system is not None else System(trace=trace)
        self.probe_result: ProbeResult | None = None
        self.actions: list[Action] = []

    def build_plan(self) -> list[Action]:
        """Probe the machine and plan actions.

        Raises:
            UnsupportedPlatformError: If the platform is not supported
            InvalidManifestError: If the manifest cannot be applied here
        """
        self.probe_result = probe(self.system)
        self.actions = plan(self.manifest, self.probe_result, self.system)
        return self.actions

    async def preview(self) -> list[PlannedAction]:
        """Plan and evaluate each precondition without applying anything.

        A precondition that cannot be evaluated is shown as an error rather
        than ending the dry run.

        Returns:
            Planned actions in plan order
        """
        preview = []
        for action in self.build_plan():
            try:
                satisfied = await action.check()
            except CommandError as e:
                preview.append(PlannedAction(action=action, satisfied=False, error=e.reason))
            except OSError as e:
                preview.append(PlannedAction(action=action, satisfied=False, error=str(e)))
            else:
                preview.append(PlannedAction(action=action, satisfied=satisfied))
        return preview

    async def bootstrap(self) -> Summary:
        """Bring the machine to the manifest's desired state.

        Returns:
            Summary of the run

        Raises:
            UnsupportedPlatformError: Before any action runs
            InvalidManifestError: Before any action runs
            FatalActionError: When a fatal action fails
        """
        actions = self.build_plan()
        results = await execute_all(actions)
        summary = report(results)

        logger.info(
            "Bootstrap finished",
            applied=summary.applied,
            skipped=summary.skipped,
            failed=summary.failed,
        )
        return summary
