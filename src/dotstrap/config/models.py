"""Manifest models for dotstrap using Pydantic."""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from dotstrap.core.models import OSFamily, PackageManagerKind


class _Spec(BaseModel):
    """Common settings for manifest entries."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    platforms: list[OSFamily] = Field(default_factory=list)

    @field_validator("platforms")
    @classmethod
    def _known_platforms(cls, value: list[OSFamily]) -> list[OSFamily]:
        if OSFamily.UNSUPPORTED in value:
            raise ValueError("'unsupported' is not a platform that can be targeted")
        return value

    def applies_to(self, os_family: OSFamily) -> bool:
        """Check whether the entry should be planned on an OS family."""
        return not self.platforms or os_family in self.platforms


class PackageSpec(_Spec):
    """A package that should be installed.

    May be written as a bare string in YAML (``- vim``).
    """

    name: str = Field(min_length=1)
    version: str = ""
    aliases: dict[PackageManagerKind, str] = Field(default_factory=dict)
    upgrade: bool = False

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"name": data}
        return data

    def name_for(self, manager: PackageManagerKind) -> str:
        """Get the package name used by a package manager."""
        return self.aliases.get(manager, self.name)


class UserSpec(_Spec):
    """A local user account that should exist."""

    name: str = Field(min_length=1, pattern=r"^[a-z_][a-z0-9_-]*\$?$")
    groups: list[str] = Field(default_factory=list)
    shell: str = ""
    set_password: bool = Field(False, alias="set-password")


class SshKeySpec(_Spec):
    """An SSH key pair that should exist."""

    user: str = ""
    key_type: str = Field("ed25519", alias="type")
    comment: str = ""
    path: str = ""
    passphrase: bool = False
    reuse_existing: bool = Field(True, alias="reuse-existing")

    @property
    def default_path(self) -> str:
        return self.path or f"~/.ssh/id_{self.key_type}"


class DotfileSpec(_Spec):
    """A file that should be copied into place."""

    source: str = Field(min_length=1)
    destination: str = Field(min_length=1)
    mode: int | None = None


class ProfileSpec(_Spec):
    """Lines that should be present in a shell profile."""

    file: str = Field(min_length=1)
    lines: list[str] = Field(min_length=1)


class PackageManagerSettings(BaseModel):
    """Settings for the package manager itself."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    bootstrap: bool = True
    refresh_index: bool = Field(True, alias="refresh-index")
    homebrew_install_url: str = Field(
        "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh",
        alias="homebrew-install-url",
    )


class Manifest(BaseModel):
    """Declarative description of the desired end state of a machine."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    package_manager: PackageManagerSettings = Field(
        default_factory=PackageManagerSettings, alias="package-manager"
    )
    packages: list[PackageSpec] = Field(default_factory=list)
    users: list[UserSpec] = Field(default_factory=list)
    ssh_keys: list[SshKeySpec] = Field(default_factory=list, alias="ssh-keys")
    dotfiles: list[DotfileSpec] = Field(default_factory=list)
    profile: list[ProfileSpec] = Field(default_factory=list)

    # Directory that relative dotfile sources are resolved against
    base_dir: Path | None = Field(default=None, exclude=True)


class ConfigOverrides(BaseModel):
    """CLI flag and environment variable overrides for a manifest."""

    extra_packages: list[str] = Field(default_factory=list)
    skip_users: bool = False
    skip_ssh: bool = False
