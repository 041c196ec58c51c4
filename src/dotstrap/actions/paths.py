"""Helpers for home-relative destination paths (``~/x``, ``~user/x``)."""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from dotstrap.core.errors import HomeNotWritableError
from dotstrap.system.worker import Worker


def split_home_path(path: str) -> tuple[str, str]:
    """Split a destination into its scope user and remainder.

    ``~mg/.vimrc`` gives ``("mg", ".vimrc")``, ``~/.vimrc`` gives
    ``("", ".vimrc")`` and paths without a tilde give ``("", path)``.
    """
    if not path.startswith("~"):
        return "", path
    head, _, rest = path[1:].partition("/")
    return head, rest


def resolve_home_path(path: str, system: Worker) -> Path:
    """Resolve a destination to an absolute path.

    Home directories are looked up when called, so an account created
    earlier in the run resolves to its real home.
    """
    user, rest = split_home_path(path)
    if not path.startswith("~"):
        resolved = Path(rest)
        return resolved if resolved.is_absolute() else system.home_dir() / resolved
    home = system.home_of(user) if user else system.home_dir()
    return home / rest if rest else home


def file_owner(scope_user: str, system: Worker) -> str:
    """User that should own files written for an action scope."""
    return scope_user or system.username()


def is_under(path: Path, directory: Path) -> bool:
    return path == directory or directory in path.parents


@contextmanager
def home_write_errors(path: Path, scope_user: str, system: Worker) -> Iterator[None]:
    """Turn permission errors for a path inside a home directory into fatal ones.

    Raises:
        HomeNotWritableError: If ``path`` is under the scope user's home
    """
    home = system.home_of(scope_user) if scope_user else system.home_dir()
    try:
        yield
    except PermissionError as e:
        if is_under(path, home):
            raise HomeNotWritableError(path, e.strerror or str(e)) from e
        raise
