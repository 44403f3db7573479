"""Group definition discovery utilities.

Discovers and loads group definition files from .ckanwms/groups/.
A definition file is a Python module defining ``groups``, a list of
GroupDefinition objects, and optionally ``proxy_url`` and ``proxy_domains``.
"""

from __future__ import annotations

import importlib.util
import sys
import traceback
from pathlib import Path
from typing import TYPE_CHECKING

from ckanwms.config import ProxySettings, groups_dir
from ckanwms.core.exceptions import DefinitionLoadError, NotFoundError
from ckanwms.core.models import GroupDefinition


if TYPE_CHECKING:
    from types import TracebackType


def discover_group_files(root: Path) -> dict[str, Path]:
    """Find all definition files under .ckanwms/groups/.

    Args:
        root: Project root directory to search from.

    Returns:
        Dict mapping file names to their paths.
        Names are derived from filenames (e.g., 'national.py' -> 'national').
    """
    directory = groups_dir(root)
    if not directory.exists():
        return {}

    return {
        p.stem: p for p in sorted(directory.glob("*.py")) if not p.name.startswith("_")
    }


def _error_line(path: Path, tb: TracebackType | None) -> int | None:
    """Return the deepest line number of the traceback inside the definition file."""
    line = None
    for frame in traceback.extract_tb(tb):
        if Path(frame.filename) == path:
            line = frame.lineno
    return line


def load_group_file(path: Path) -> tuple[list[GroupDefinition], ProxySettings]:
    """Load a definition file and extract its groups and proxy settings.

    Args:
        path: Path to the definition Python file.

    Returns:
        Tuple of (group definitions, proxy settings).

    Raises:
        DefinitionLoadError: If the file cannot be executed or its
            ``groups`` attribute is not a list of GroupDefinition.
    """
    # Generate a unique module name to avoid conflicts
    module_name = f"_ckanwms_groups_{path.stem}_{id(path)}"

    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise DefinitionLoadError(f"Could not load group definitions from {path}", path)

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module

    try:
        spec.loader.exec_module(module)
    except SyntaxError as e:
        raise DefinitionLoadError(
            f"Syntax error in {path.name}: {e.msg}", path, line=e.lineno, cause=e
        ) from e
    except Exception as e:
        raise DefinitionLoadError(
            f"Error loading {path.name}: {e}",
            path,
            line=_error_line(path, e.__traceback__),
            cause=e,
        ) from e
    finally:
        # Clean up to avoid polluting sys.modules
        sys.modules.pop(module_name, None)

    groups = getattr(module, "groups", [])
    if not isinstance(groups, list) or not all(
        isinstance(group, GroupDefinition) for group in groups
    ):
        raise DefinitionLoadError(
            f"'groups' in {path.name} must be a list of GroupDefinition", path
        )

    proxy = ProxySettings(
        base_url=getattr(module, "proxy_url", None),
        domains=tuple(getattr(module, "proxy_domains", ())),
    )
    return groups, proxy


def load_all_groups(root: Path) -> tuple[dict[str, GroupDefinition], ProxySettings]:
    """Load every definition file under the project root.

    Returns:
        Tuple of (group definitions keyed by name, merged proxy settings).
        When two files define the same group name, the later file wins.
    """
    definitions: dict[str, GroupDefinition] = {}
    proxy = ProxySettings()
    for path in discover_group_files(root).values():
        groups, file_proxy = load_group_file(path)
        for group in groups:
            definitions[group.name] = group
        proxy = proxy.merge(file_proxy)
    return definitions, proxy


def get_group_definition(
    definitions: dict[str, GroupDefinition], name: str
) -> GroupDefinition:
    """Look up a group definition by name.

    Raises:
        NotFoundError: If no definition has that name.
    """
    try:
        return definitions[name]
    except KeyError:
        raise NotFoundError(
            f"Group '{name}' not found", name, available=sorted(definitions)
        ) from None
