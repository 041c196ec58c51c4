"""Data models for system operations."""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class UserInfo:
    """An entry from the local account database.

    Attributes:
        name: Login name
        uid: Numeric user id
        gid: Numeric primary group id
        home: Home directory
        shell: Login shell
    """

    name: str
    uid: int
    gid: int
    home: Path
    shell: str = ""
