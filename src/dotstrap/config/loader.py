"""Manifest loading and parsing for dotstrap."""

import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from dotstrap.config.models import ConfigOverrides, Manifest, PackageSpec
from dotstrap.config.presets import get_preset
from dotstrap.core.errors import InvalidManifestError
from dotstrap.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MANIFEST = Path("dotstrap.yaml")


def load_manifest(
    manifest_file: str = "",
    preset: str = "",
    overrides: ConfigOverrides | None = None,
) -> Manifest:
    """Load a manifest from a file, a preset, or the defaults.

    Args:
        manifest_file: Path to a YAML manifest (optional)
        preset: Name of a bundled preset (optional)
        overrides: Overrides from CLI/env (optional)

    Returns:
        Loaded and validated manifest

    Raises:
        InvalidManifestError: If the manifest is missing or invalid
    """
    manifest: Manifest

    if preset:
        logger.info("Loading preset", preset=preset)
        try:
            manifest = get_preset(preset)
        except ValueError as e:
            raise InvalidManifestError(str(e)) from e
    elif manifest_file:
        manifest = _load_from_file(Path(manifest_file))
    elif DEFAULT_MANIFEST.exists():
        manifest = _load_from_file(DEFAULT_MANIFEST)
    else:
        logger.info("No manifest file found, using 'default' preset")
        manifest = get_preset("default")

    if overrides:
        manifest = _apply_overrides(manifest, overrides)

    return manifest


def _load_from_file(path: Path) -> Manifest:
    """Load a manifest from a YAML file.

    Relative dotfile sources are resolved against the file's directory.

    Raises:
        InvalidManifestError: If the file is missing, not YAML, or doesn't match the schema
    """
    if not path.exists():
        raise InvalidManifestError(f"Manifest file not found: {path}")

    logger.info("Loading manifest file", path=str(path))

    try:
        with path.open("r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise InvalidManifestError(f"Invalid YAML in manifest file: {e}") from e

    # Treat empty files as an empty manifest
    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidManifestError("Manifest file must contain a YAML mapping")

    try:
        manifest = Manifest.model_validate(data)
    except ValidationError as e:
        raise InvalidManifestError(f"Invalid manifest {path}: {e}") from e

    return manifest.model_copy(update={"base_dir": path.resolve().parent})


def _apply_overrides(manifest: Manifest, overrides: ConfigOverrides) -> Manifest:
    """Return a copy of the manifest with overrides applied.

    Args:
        manifest: Manifest to start from
        overrides: Override values to apply

    Returns:
        New manifest
    """
    update = {}

    if overrides.extra_packages:
        declared = {spec.name for spec in manifest.packages}
        extra = [
            PackageSpec(name=name) for name in overrides.extra_packages if name not in declared
        ]
        update["packages"] = [*manifest.packages, *extra]

    if overrides.skip_users:
        update["users"] = []

    if overrides.skip_ssh:
        update["ssh_keys"] = []

    if not update:
        return manifest
    return manifest.model_copy(update=update)


def get_env_overrides() -> ConfigOverrides:
    """Get manifest overrides from environment variables.

    Environment variables are prefixed with DOTSTRAP_ (e.g. DOTSTRAP_SKIP_USERS).

    Returns:
        ConfigOverrides populated from environment variables
    """

    def get_bool(key: str) -> bool:
        val = os.getenv(f"DOTSTRAP_{key.upper()}")
        return val is not None and val.lower() in ("1", "true", "yes")

    def get_list(key: str) -> list[str]:
        val = os.getenv(f"DOTSTRAP_{key.upper()}", "")
        return [item.strip() for item in val.split(",") if item.strip()]

    return ConfigOverrides(
        extra_packages=get_list("extra_packages"),
        skip_users=get_bool("skip_users"),
        skip_ssh=get_bool("skip_ssh"),
    )


def get_env_source() -> tuple[str, str]:
    """Get the manifest file and preset named by DOTSTRAP_MANIFEST / DOTSTRAP_PRESET."""
    return os.getenv("DOTSTRAP_MANIFEST", ""), os.getenv("DOTSTRAP_PRESET", "")
