"""Built-in manifest presets for dotstrap."""

from pathlib import Path

from dotstrap.config.models import Manifest

# Dotfile sources of the presets live next to the package
DATA_DIR = Path(__file__).resolve().parent.parent / "data"

MACOS_ONLY = ["macos"]
LINUX_ONLY = ["linux"]

CORE_PACKAGES = [
    {"name": "vim", "upgrade": True},
    {"name": "git", "upgrade": True},
    {"name": "git-lfs", "upgrade": True},
    {"name": "tree", "upgrade": True},
    {"name": "go", "aliases": {"yum": "golang", "dnf": "golang", "apt": "golang"}, "upgrade": True},
]

MACOS_PACKAGES = [
    {"name": name, "upgrade": True, "platforms": MACOS_ONLY}
    for name in [
        "grep",
        "hexyl",
        "ssh-copy-id",
        "cloudflare/cloudflare/cloudflared",
        "sqlc",
        "protobuf",
        "clang-format",
    ]
]

GO_ENVIRONMENT = [
    "export GOROOT=/usr/local/go",
    "export GOPATH=$HOME/go",
    "export PATH=$PATH:$GOROOT/bin:$GOPATH/bin",
]


def _default_preset() -> Manifest:
    """Full workstation: tooling, an admin account and SSH key on Linux, dotfiles."""
    return Manifest.model_validate(
        {
            "packages": CORE_PACKAGES + MACOS_PACKAGES,
            "users": [
                {
                    "name": "mg",
                    "groups": ["wheel"],
                    "set-password": True,
                    "platforms": LINUX_ONLY,
                }
            ],
            "ssh-keys": [{"type": "ed25519", "platforms": LINUX_ONLY}],
            "dotfiles": [
                {"source": "vimrc", "destination": "~/.vimrc"},
                {
                    "source": "authorized_keys",
                    "destination": "~/.ssh/authorized_keys",
                    "mode": 0o600,
                    "platforms": LINUX_ONLY,
                },
            ],
            "profile": [{"file": "~/.zshrc", "lines": GO_ENVIRONMENT, "platforms": MACOS_ONLY}],
        }
    ).model_copy(update={"base_dir": DATA_DIR})


def _minimal_preset() -> Manifest:
    """Editor and dotfiles only, no accounts or keys."""
    return Manifest.model_validate(
        {
            "packages": [{"name": "vim"}, {"name": "git"}],
            "dotfiles": [{"source": "vimrc", "destination": "~/.vimrc"}],
        }
    ).model_copy(update={"base_dir": DATA_DIR})


PRESETS: dict[str, Manifest] = {
    "default": _default_preset(),
    "minimal": _minimal_preset(),
}


def get_available_presets() -> list[str]:
    """Get list of available preset names.

    Returns:
        List of preset names
    """
    return list(PRESETS.keys())


def get_preset(name: str) -> Manifest:
    """Get a manifest preset by name.

    Args:
        name: Preset name (default, minimal)

    Returns:
        The preset manifest

    Raises:
        ValueError: If preset name is not recognized
    """
    if name not in PRESETS:
        raise ValueError(f"Unknown preset '{name}'. Available presets: {', '.join(PRESETS.keys())}")
    return PRESETS[name]
