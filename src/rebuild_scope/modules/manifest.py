"""Load a build's module list from a TOML manifest.

Format::

    current = "com.acme:app:1.0"      # optional, defaults to the first module

    [[module]]
    group = "com.acme"
    artifact = "core"
    version = "1.0"
    path = "core"                     # relative to the manifest
    parent = "com.acme:parent:1.0"    # optional module id
    dependencies = ["com.acme:api:1.0", "junit:junit:4.12"]
    goals = ["test-jar"]
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from ..exceptions import ManifestError
from ..logging_config import get_logger
from .models import Dependency, Module

logger = get_logger(__name__)


@dataclass
class Manifest:
    """Modules in declaration order plus the module the build was started from."""

    modules: list[Module]
    current: Module
    root: Path


def load_manifest(path: Path) -> Manifest:
    """Parse a module manifest.

    Raises:
        ManifestError: If the file is missing, not TOML, or inconsistent
    """
    path = Path(path)
    if not path.is_file():
        raise ManifestError(path, "file not found")

    try:
        import tomllib
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ManifestError(path, str(e))

    root = Path(os.path.normpath(path.resolve().parent))
    entries = data.get("module", [])
    if not isinstance(entries, list) or not entries:
        raise ManifestError(path, "no [[module]] entries")

    modules: list[Module] = []
    seen: set[str] = set()
    for index, entry in enumerate(entries):
        module = _parse_module(path, root, index, entry)
        if module.id in seen:
            raise ManifestError(path, f"duplicate module '{module.id}'")
        seen.add(module.id)
        modules.append(module)

    for module in modules:
        if module.parent is not None and module.parent not in seen:
            logger.debug(f"Parent {module.parent} of {module.id} is outside the build")

    current_id = data.get("current")
    if current_id is None:
        current = modules[0]
    else:
        matches = [m for m in modules if m.id == current_id]
        if not matches:
            raise ManifestError(path, f"current module '{current_id}' is not declared")
        current = matches[0]

    logger.debug(f"Loaded {len(modules)} modules from {path}")
    return Manifest(modules=modules, current=current, root=root)


def _parse_module(path: Path, root: Path, index: int, entry: dict) -> Module:
    if not isinstance(entry, dict):
        raise ManifestError(path, f"module #{index + 1} is not a table")

    coordinates = [entry.get(name) for name in ("group", "artifact", "version")]
    if not all(isinstance(value, str) and value for value in coordinates):
        raise ManifestError(path, f"module #{index + 1} needs group, artifact and version")
    group, artifact, version = coordinates
    where = f"module {group}:{artifact}"

    relative = entry.get("path", ".")
    if not isinstance(relative, str):
        raise ManifestError(path, f"{where}: path must be a string")
    parent = entry.get("parent")
    if parent is not None and not isinstance(parent, str):
        raise ManifestError(path, f"{where}: parent must be a module id string")

    raw_dependencies = _string_list(path, where, entry, "dependencies")
    goals = _string_list(path, where, entry, "goals")
    try:
        dependencies = [Dependency.parse(d) for d in raw_dependencies]
    except ValueError as e:
        raise ManifestError(path, f"{where}: {e}")

    return Module(
        group_id=group,
        artifact_id=artifact,
        version=version,
        basedir=Path(os.path.normpath(root / relative)),
        dependencies=dependencies,
        parent=parent,
        goals=goals,
    )


def _string_list(path: Path, where: str, entry: dict, key: str) -> list[str]:
    values = entry.get(key, [])
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        raise ManifestError(path, f"{where}: {key} must be a list of strings")
    return list(values)
