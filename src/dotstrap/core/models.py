"""Core data model: probe results, actions and execution results."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class OSFamily(str, Enum):
    """Operating system families dotstrap knows how to bootstrap."""

    LINUX = "linux"
    MACOS = "macos"
    UNSUPPORTED = "unsupported"


class PackageManagerKind(str, Enum):
    """Package managers with a handler implementation."""

    BREW = "brew"
    DNF = "dnf"
    YUM = "yum"
    APT = "apt"


@dataclass(frozen=True)
class ProbeResult:
    """Read-only snapshot of the machine taken once at the start of a run.

    Attributes:
        os_family: Detected operating system family
        package_manager: Detected package manager, None if none was found
        username: Real (non-sudo) user invoking dotstrap
        home: Home directory of that user
        is_root: Whether the process runs as root
        existing_users: Names of all local accounts
        ssh_public_keys: Paths of the invoking user's ~/.ssh/*.pub files
    """

    os_family: OSFamily
    package_manager: PackageManagerKind | None
    username: str
    home: Path
    is_root: bool = False
    existing_users: frozenset[str] = frozenset()
    ssh_public_keys: frozenset[str] = frozenset()


class ActionKind(str, Enum):
    """Kinds of idempotent steps, in the order the planner emits them."""

    BOOTSTRAP_PACKAGE_MANAGER = "bootstrap-package-manager"
    INSTALL_PACKAGE = "install-package"
    CREATE_USER = "create-user"
    GENERATE_SSH_KEY = "generate-ssh-key"
    COPY_FILE = "copy-file"
    ENSURE_LINES = "ensure-lines"


Check = Callable[[], Awaitable[bool]]
Effect = Callable[[], Awaitable[None]]
CredentialReader = Callable[[], Awaitable[str]]


@dataclass(frozen=True)
class Action:
    """A single idempotent step.

    ``check`` answers whether the desired state already holds and is called
    again at execution time and after ``apply``. The callables do not take
    part in equality, so two plans built from the same inputs compare equal.

    Attributes:
        kind: What the action does
        target: What it does it to (package name, username, path)
        check: Precondition, True when nothing needs doing
        apply: The effect
        scope_user: User whose account or home directory the action touches
        fatal: Whether a failure of this action must stop the run
        credential: Optional reader for text to surface in the report
    """

    kind: ActionKind
    target: str
    check: Check = field(compare=False, repr=False)
    apply: Effect = field(compare=False, repr=False)
    scope_user: str = ""
    fatal: bool = False
    credential: CredentialReader | None = field(default=None, compare=False, repr=False)

    @property
    def description(self) -> str:
        text = f"{self.kind.value} {self.target}"
        if self.scope_user and self.kind is not ActionKind.CREATE_USER:
            text = f"{text} (user {self.scope_user})"
        return text


class ActionStatus(str, Enum):
    """Outcome of executing an action."""

    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one action.

    Attributes:
        action: The action that was executed
        status: Applied, skipped (already satisfied) or failed
        reason: Failure text, empty unless failed
        credential: Credential text surfaced by the action, if any
    """

    action: Action
    status: ActionStatus
    reason: str = ""
    credential: str = ""


@dataclass(frozen=True)
class PlannedAction:
    """A planned action and the state of its precondition, for dry runs.

    Attributes:
        action: The planned action
        satisfied: Whether the precondition already holds
        error: Why the precondition could not be evaluated, empty if it could
    """

    action: Action
    satisfied: bool
    error: str = ""
