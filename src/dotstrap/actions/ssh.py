"""SSH key generation actions."""

from pathlib import Path

from dotstrap.actions.paths import file_owner, home_write_errors, resolve_home_path
from dotstrap.config.models import SshKeySpec
from dotstrap.core.logging import get_logger
from dotstrap.core.models import Action, ActionKind
from dotstrap.system.command import Command
from dotstrap.system.worker import Worker

logger = get_logger(__name__)


def _key_path(spec: SshKeySpec, system: Worker) -> Path:
    path = spec.default_path
    if spec.user and path.startswith("~/"):
        path = f"~{spec.user}/{path[2:]}"
    return resolve_home_path(path, system)


def _public_key_path(private_key: Path) -> Path:
    return private_key.with_name(f"{private_key.name}.pub")


def ssh_key_action(spec: SshKeySpec, system: Worker) -> Action:
    """Build the action that generates an SSH key pair.

    With ``reuse_existing`` any public key already present in the key's
    directory satisfies the action. The public key text is surfaced as a
    credential so it can be pasted into a code host.
    """
    owner = file_owner(spec.user, system)

    def existing_public_keys() -> list[Path]:
        key_path = _key_path(spec, system)
        public_key = _public_key_path(key_path)
        if system.path_exists(public_key):
            return [public_key]
        if spec.reuse_existing:
            return system.glob(key_path.parent, "*.pub")
        return []

    async def check() -> bool:
        return bool(existing_public_keys())

    async def apply() -> None:
        key_path = _key_path(spec, system)
        with home_write_errors(key_path.parent, spec.user, system):
            await system.make_dir(key_path.parent, mode=0o700, owner=owner)

        args = ["-t", spec.key_type, "-f", str(key_path), "-C", spec.comment]
        # Only switch users when root is generating a key for somebody else
        run_as = owner if system.is_root() and owner != system.username() else ""

        if spec.passphrase:
            await system.run_interactive(Command(executable="ssh-keygen", args=args, user=run_as))
        else:
            cmd = Command(executable="ssh-keygen", args=[*args, "-N", "", "-q"], user=run_as)
            await system.run(cmd)

        logger.info("Generated SSH key", path=str(key_path), type=spec.key_type)

    async def credential() -> str:
        keys = existing_public_keys()
        if not keys:
            return ""
        contents = await system.read_file(keys[0])
        return f"{keys[0]}\n{contents.decode('utf-8', errors='replace').strip()}"

    return Action(
        kind=ActionKind.GENERATE_SSH_KEY,
        target=spec.default_path,
        check=check,
        apply=apply,
        scope_user=spec.user,
        credential=credential,
    )
