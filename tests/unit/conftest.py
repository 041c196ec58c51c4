"""Shared fixtures: an in-memory system worker."""

from pathlib import Path

import pytest

from dotstrap.system.command import Command, CommandError
from dotstrap.system.models import UserInfo

COMMAND_LINE_TOOLS = Path("/Library/Developer/CommandLineTools")


class FakeSystem:
    """In-memory implementation of the Worker protocol.

    Understands just enough of rpm, yum, brew, useradd, usermod and
    ssh-keygen for actions to change and observe its state.
    """

    def __init__(
        self,
        sysname: str = "Linux",
        username: str = "dev",
        root: bool = False,
        binaries: set[str] | None = None,
    ) -> None:
        self._sysname = sysname
        self._username = username
        self._root = root
        self.binaries = binaries if binaries is not None else {"yum", "rpm"}
        self.packages: dict[str, str] = {}
        self.outdated: set[str] = set()
        self.broken_packages: set[str] = set()
        self.users: dict[str, UserInfo] = {
            username: UserInfo(name=username, uid=1000, gid=1000, home=self.home_dir())
        }
        self.groups: dict[str, set[str]] = {}
        self.files: dict[Path, bytes] = {}
        self.modes: dict[Path, int] = {}
        self.owners: dict[Path, str] = {}
        self.read_only: set[Path] = set()
        self.commands: list[list[str]] = []
        self.interactive: list[list[str]] = []
        self.downloads: dict[str, str] = {}
        # (tool, subcommand) -> output of a command that exits 1
        self.failing: dict[tuple[str, str], str] = {}

    # Queries

    def sysname(self) -> str:
        return self._sysname

    def which(self, name: str) -> str | None:
        return f"/usr/bin/{name}" if name in self.binaries else None

    def is_root(self) -> bool:
        return self._root

    def username(self) -> str:
        return self._username

    def home_dir(self) -> Path:
        return Path("/root") if self._username == "root" else Path(f"/home/{self._username}")

    def home_of(self, user: str) -> Path:
        info = self.users.get(user)
        return info.home if info else Path(f"/home/{user}")

    def user_info(self, user: str) -> UserInfo | None:
        return self.users.get(user)

    def user_groups(self, user: str) -> set[str]:
        if user not in self.users:
            return set()
        return {user} | self.groups.get(user, set())

    def list_users(self) -> set[str]:
        return set(self.users)

    def path_exists(self, path: Path) -> bool:
        return path in self.files or any(path in f.parents for f in self.files)

    def file_mode(self, path: Path) -> int | None:
        if path not in self.files:
            return None
        return self.modes.get(path, 0o644)

    def glob(self, directory: Path, pattern: str) -> list[Path]:
        return sorted(p for p in self.files if p.parent == directory and p.match(pattern))

    # Effects

    async def read_file(self, filepath: Path) -> bytes:
        if filepath not in self.files:
            raise FileNotFoundError(f"File '{filepath}' does not exist")
        return self.files[filepath]

    async def write_file(
        self, filepath: Path, contents: bytes, mode: int | None = None, owner: str = ""
    ) -> None:
        if any(filepath == p or p in filepath.parents for p in self.read_only):
            raise PermissionError(13, "Permission denied")
        self.files[filepath] = contents
        if mode is not None:
            self.modes[filepath] = mode
        self.owners[filepath] = owner

    async def make_dir(self, directory: Path, mode: int | None = None, owner: str = "") -> None:
        if any(directory == p or p in directory.parents for p in self.read_only):
            raise PermissionError(13, "Permission denied")

    async def fetch_text(self, url: str) -> str:
        return self.downloads.get(url, "#!/bin/bash\n")

    async def run_interactive(self, cmd: Command) -> None:
        self.interactive.append([cmd.executable, *cmd.args])
        if cmd.executable == "/bin/bash":
            self.binaries.add("brew")
        elif cmd.executable == "xcode-select":
            self.files[COMMAND_LINE_TOOLS / "usr/bin/git"] = b""

    def _run_xcode_select(self, args: list[str]) -> bytes:
        if not self.path_exists(COMMAND_LINE_TOOLS):
            raise self._fail(args, "xcode-select: error: unable to get active developer directory")
        return f"{COMMAND_LINE_TOOLS}\n".encode()

    async def run(self, cmd: Command) -> bytes:
        self.commands.append([cmd.executable, *cmd.args])
        tool = Path(cmd.executable).name
        if (tool, cmd.args[0] if cmd.args else "") in self.failing:
            raise self._fail(cmd.args, self.failing[(tool, cmd.args[0])])
        handler = getattr(self, f"_run_{tool.replace('-', '_')}", None)
        if handler is None:
            return b""
        return handler(cmd.args)

    def _fail(self, args: list[str], output: str, returncode: int = 1) -> CommandError:
        return CommandError(" ".join(args), returncode, output)

    def _install(self, name: str, version: str = "") -> None:
        if name in self.broken_packages:
            raise self._fail([name], f"No package {name} available.")
        self.packages[name] = f"{version}.13" if version else self.packages.get(name, "1.0")
        self.outdated.discard(name)

    def _run_yum_install(self, spec: str) -> None:
        # "golang-1.22" pins a version, "git-lfs" doesn't
        name, _, version = spec.rpartition("-")
        if name and version[:1].isdigit():
            self._install(name, version)
        else:
            self._install(spec)

    def _run_rpm(self, args: list[str]) -> bytes:
        name = args[-1]
        if name not in self.packages:
            raise self._fail(args, f"package {name} is not installed")
        return self.packages[name].encode()

    def _run_yum(self, args: list[str]) -> bytes:
        if args[0] == "install":
            self._run_yum_install(args[-1])
        elif args[0] == "upgrade":
            self.outdated.discard(args[-1])
        elif args[0] == "check-update" and args[-1] in self.outdated:
            raise self._fail(args, "", returncode=100)
        return b""

    _run_dnf = _run_yum

    def _run_dpkg_query(self, args: list[str]) -> bytes:
        name = args[-1]
        if name not in self.packages:
            raise self._fail(args, f"dpkg-query: no packages found matching {name}")
        return f"install ok installed\t2:{self.packages[name]}-2".encode()

    def _run_apt_get(self, args: list[str]) -> bytes:
        if args[0] == "install" and "--only-upgrade" not in args:
            name, _, version = args[-1].partition("=")
            self._install(name, version.rstrip("*"))
        return b""

    def _run_brew(self, args: list[str]) -> bytes:
        if args[0] == "list":
            name = args[-1]
            if name not in self.packages:
                raise self._fail(args, "")
            return f"{name} {self.packages[name]}\n".encode()
        if args[0] == "outdated":
            return b"" if args[-1] not in self.outdated else f"{args[-1]}\n".encode()
        if args[0] == "install":
            # "go@1.21" is a formula of its own, listed under that name
            formula = args[-1].rsplit("/", 1)[-1]
            self._install(formula, formula.partition("@")[2])
        elif args[0] == "upgrade":
            self.outdated.discard(args[-1].rsplit("/", 1)[-1])
        return b""

    def _run_useradd(self, args: list[str]) -> bytes:
        name = args[-1]
        uid = 1000 + len(self.users)
        shell = args[args.index("--shell") + 1] if "--shell" in args else "/bin/bash"
        self.users[name] = UserInfo(
            name=name, uid=uid, gid=uid, home=Path(f"/home/{name}"), shell=shell
        )
        if "--groups" in args:
            self.groups[name] = set(args[args.index("--groups") + 1].split(","))
        return b""

    def _run_usermod(self, args: list[str]) -> bytes:
        name = args[-1]
        if "--groups" in args:
            self.groups.setdefault(name, set()).update(args[args.index("--groups") + 1].split(","))
        if "--shell" in args:
            info = self.users[name]
            self.users[name] = UserInfo(
                name=info.name,
                uid=info.uid,
                gid=info.gid,
                home=info.home,
                shell=args[args.index("--shell") + 1],
            )
        return b""

    def _run_ssh_keygen(self, args: list[str]) -> bytes:
        path = Path(args[args.index("-f") + 1])
        comment = args[args.index("-C") + 1]
        self.files[path] = b"PRIVATE KEY"
        self.files[path.with_name(f"{path.name}.pub")] = f"ssh-ed25519 AAAAC3Nza {comment}\n".encode()
        return b""


@pytest.fixture
def fake_system() -> FakeSystem:
    """A Linux machine with yum, no packages and a single user 'dev'."""
    return FakeSystem()


@pytest.fixture
def mac_system() -> FakeSystem:
    """A macOS machine with Homebrew and the command line tools installed."""
    system = FakeSystem(sysname="Darwin", username="dev", binaries={"brew", "xcode-select"})
    system.files[COMMAND_LINE_TOOLS / "usr/bin/git"] = b""
    return system
