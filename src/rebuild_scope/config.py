"""Configuration loading and management for rebuild-scope.

This module provides configuration discovery and validation. Configuration
sources are merged in priority order:
    1. Defaults (defined in RebuildConfig)
    2. Global config (~/.rebuild-scope.toml)
    3. Project config (./rebuild-scope.toml)
    4. Explicit config file
    5. Environment variables (REBUILD_SCOPE_* prefix)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(make_upstream=True, base_branch="refs/heads/feature")
    >>> config.make_upstream
    True
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]

ENV_PREFIX = "REBUILD_SCOPE_"

# Matches nothing; the default when no exclusion is configured.
NEVER_MATCH = "(?!x)x"


@dataclass(frozen=True)
class RebuildConfig:
    """Settings for one impact analysis run.

    Attributes:
        Switches:
            enabled: Run the analysis at all
            fail_on_error: Abort the build on analysis errors instead of
                logging them and building everything

        Revisions:
            base_branch: Branch checked out and diffed from ("HEAD" = current checkout)
            reference_branch: Branch compared against, a remote-tracking name
                when it is fetched
            base_commit: Explicit base commit id; overrides base_branch
            reference_commit: Explicit reference commit id; overrides reference_branch
            commit_range: "<reference>...<base>" overriding both commits, or
                "" to treat the whole build as changed (None = unused)
            fetch_base_branch: Fetch base_branch from its remote first
            fetch_reference_branch: Fetch reference_branch from its remote first
            compare_to_merge_base: Diff against the merge base of base and
                reference instead of the reference tip
            include_uncommitted: Add uncommitted working-tree changes

        Policies:
            build_all: Keep every module, skip tests of unimpacted ones
            make_upstream: Also build what impacted modules depend on
            skip_tests_for_not_impacted: Emit test-skip directives for
                modules built but not impacted

        Filtering:
            exclude_path_regex: Changed paths matching this are ignored
            descriptor_file_name: Build descriptor ignored when the
                dependency fingerprint is unchanged

        State files ("" disables):
            fingerprint_file: Dependency fingerprint cache
            skipped_modules_file: Ledger of modules skipped in the last run

        Test selection:
            use_test_selector: Ask the host to attach the test-selection plugin
            test_selector_source_suffixes: Changes limited to these suffixes
                let the selector work incrementally

        Misc:
            disable_if_branch_regex: Skip the analysis on matching branches
            verbosity: Logging verbosity level
    """

    enabled: bool = True
    fail_on_error: bool = True

    base_branch: str = "HEAD"
    reference_branch: str = "refs/remotes/origin/develop"
    base_commit: str = ""
    reference_commit: str = ""
    commit_range: Optional[str] = None
    fetch_base_branch: bool = False
    fetch_reference_branch: bool = False
    compare_to_merge_base: bool = True
    include_uncommitted: bool = True

    build_all: bool = False
    make_upstream: bool = False
    skip_tests_for_not_impacted: bool = False

    exclude_path_regex: str = NEVER_MATCH
    descriptor_file_name: str = "pom.xml"

    fingerprint_file: str = ""
    skipped_modules_file: str = ""

    use_test_selector: bool = False
    test_selector_source_suffixes: tuple[str, ...] = (".java",)

    disable_if_branch_regex: str = ""
    verbosity: Verbosity = "normal"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        for field_name in ("exclude_path_regex", "disable_if_branch_regex"):
            value = getattr(self, field_name)
            try:
                re.compile(value)
            except re.error as e:
                raise InvalidConfigError(field_name, value, f"not a regular expression: {e}")

        if self.commit_range and "..." not in self.commit_range:
            raise InvalidConfigError(
                "commit_range", self.commit_range, "expected '<reference>...<base>'"
            )

        if not self.base_branch:
            raise InvalidConfigError("base_branch", self.base_branch, "must not be empty")
        if not self.descriptor_file_name:
            raise InvalidConfigError(
                "descriptor_file_name", self.descriptor_file_name, "must not be empty"
            )
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise InvalidConfigError("verbosity", self.verbosity, "expected quiet/normal/verbose")

    @property
    def fingerprint_path(self) -> Optional[Path]:
        return Path(self.fingerprint_file) if self.fingerprint_file else None

    @property
    def skipped_modules_path(self) -> Optional[Path]:
        return Path(self.skipped_modules_file) if self.skipped_modules_file else None


def load_config(config_file: Optional[Path] = None, **overrides) -> RebuildConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). ``None``
            values are ignored so unset CLI options do not mask files.

    Returns:
        Validated RebuildConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or missing
    """
    merged: dict = {}

    global_config = Path.home() / ".rebuild-scope.toml"
    if global_config.exists():
        try:
            merged.update(_load_toml_file(global_config))
        except Exception as e:
            raise ConfigurationError(f"Invalid global config '{global_config}': {e}")

    project_config = Path.cwd() / "rebuild-scope.toml"
    if project_config.exists():
        try:
            merged.update(_load_toml_file(project_config))
        except Exception as e:
            raise ConfigurationError(f"Invalid project config '{project_config}': {e}")

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        try:
            merged.update(_load_toml_file(config_file))
        except Exception as e:
            raise ConfigurationError(f"Invalid config file '{config_file}': {e}")

    merged.update(_load_env_vars())

    if "verbose" in overrides:
        if overrides["verbose"]:
            overrides["verbosity"] = "verbose"
        del overrides["verbose"]
    if "quiet" in overrides:
        if overrides["quiet"]:
            overrides["verbosity"] = "quiet"
        del overrides["quiet"]

    merged.update({k: v for k, v in overrides.items() if v is not None})

    suffixes = merged.get("test_selector_source_suffixes")
    if isinstance(suffixes, (list, str)):
        merged["test_selector_source_suffixes"] = (
            tuple(_split_csv(suffixes)) if isinstance(suffixes, str) else tuple(suffixes)
        )

    try:
        return RebuildConfig(**merged)
    except TypeError as e:
        # Unknown field in config
        raise ConfigurationError(f"Invalid configuration: {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from REBUILD_SCOPE_* environment variables.

    Every RebuildConfig field maps to ``REBUILD_SCOPE_<FIELD_NAME>``, e.g.
    ``REBUILD_SCOPE_MAKE_UPSTREAM=true`` or
    ``REBUILD_SCOPE_TEST_SELECTOR_SOURCE_SUFFIXES=.java,.kt``.

    Returns:
        Dict of field_name -> parsed_value for any REBUILD_SCOPE_* vars found.
    """
    type_hints = get_type_hints(RebuildConfig)

    result: dict[str, Any] = {}

    for field_name in RebuildConfig.__dataclass_fields__:
        env_key = f"{ENV_PREFIX}{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
            if parsed is not None:
                result[field_name] = parsed
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse environment variable string to the correct type.

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    # Optional[X] is Union[X, None]
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]
            origin = getattr(type_hint, "__origin__", None)

    if origin is tuple:
        return tuple(_split_csv(value))

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    # String (including Literal types like Verbosity)
    if type_hint is str or origin is Literal:
        return value

    return None


def _split_csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    A ``[rebuild-scope]`` table is used when present so the settings can
    live inside a larger shared file.
    """
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        try:
            # Fallback to tomli for Python 3.9-3.10
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigurationError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    with open(path, "rb") as f:
        data = tomllib.load(f)
    return data.get("rebuild-scope", data)
