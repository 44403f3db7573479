"""Configuration utilities for ckanwms.

This module provides project root discovery and the defaults used to
build adapters from group definition files.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


# Directory holding group definitions, relative to the project root
CONFIG_DIR = ".ckanwms"
GROUPS_DIR = "groups"


def find_project_root(start: Path | None = None) -> Path:
    """Find the project root directory by walking up from start directory.

    Searches for marker files in the following priority order:
    1. .ckanwms - Explicit project marker
    2. pyproject.toml - Python project root
    3. .git - Version control root

    Args:
        start: Directory to start searching from. If None, uses current directory.

    Returns:
        Path to project root directory. Returns start directory if no markers found.
    """
    if start is None:
        start = Path.cwd()

    markers = [CONFIG_DIR, "pyproject.toml", ".git"]
    current = start.resolve()

    for parent in [current, *current.parents]:
        for marker in markers:
            if (parent / marker).exists():
                return parent

    return start.resolve()


def groups_dir(root: Path) -> Path:
    return root / CONFIG_DIR / GROUPS_DIR


@dataclass(frozen=True)
class ProxySettings:
    """Proxy configuration gathered from definition files.

    Attributes:
        base_url: URL of the CORS relay, or None for no proxy.
        domains: Hosts whose requests go through the relay.
    """

    base_url: str | None = None
    domains: tuple[str, ...] = field(default_factory=tuple)

    def merge(self, other: ProxySettings) -> ProxySettings:
        """Combine two settings; the other's base_url wins when set."""
        return ProxySettings(
            base_url=other.base_url or self.base_url,
            domains=tuple(dict.fromkeys(self.domains + other.domains)),
        )
