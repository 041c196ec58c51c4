"""User account actions."""

from dotstrap.config.models import UserSpec
from dotstrap.core.logging import get_logger
from dotstrap.core.models import Action, ActionKind
from dotstrap.system.command import Command
from dotstrap.system.worker import Worker

logger = get_logger(__name__)


def user_action(spec: UserSpec, system: Worker) -> Action:
    """Build the action that ensures an account exists with its groups and shell.

    Account commands are privileged; when dotstrap is not root they run
    through sudo.
    """

    async def check() -> bool:
        info = system.user_info(spec.name)
        if info is None:
            return False
        if spec.shell and info.shell != spec.shell:
            return False
        return set(spec.groups) <= system.user_groups(spec.name)

    async def apply() -> None:
        info = system.user_info(spec.name)

        if info is None:
            args = ["--create-home"]
            if spec.shell:
                args += ["--shell", spec.shell]
            if spec.groups:
                args += ["--groups", ",".join(spec.groups)]
            await system.run(Command(executable="useradd", args=[*args, spec.name], privileged=True))
            logger.info("Created user", user=spec.name)

            if spec.set_password:
                await system.run_interactive(
                    Command(executable="passwd", args=[spec.name], privileged=True)
                )
            return

        missing = sorted(set(spec.groups) - system.user_groups(spec.name))
        if missing:
            await system.run(
                Command(
                    executable="usermod",
                    args=["--append", "--groups", ",".join(missing), spec.name],
                    privileged=True,
                )
            )
            logger.info("Added user to groups", user=spec.name, groups=",".join(missing))

        if spec.shell and info.shell != spec.shell:
            await system.run(
                Command(
                    executable="usermod", args=["--shell", spec.shell, spec.name], privileged=True
                )
            )
            logger.info("Changed login shell", user=spec.name, shell=spec.shell)

    return Action(
        kind=ActionKind.CREATE_USER,
        target=spec.name,
        check=check,
        apply=apply,
        scope_user=spec.name,
    )
