"""Unified configuration loaded from .insightful.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.

The resulting :class:`InsightfulConfig` is passed explicitly into the
pipeline; nothing below reads fixed filesystem locations on its own.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from insightful.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".insightful.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
    Path.home() / ".config" / "insightful",
]

HISTORY_FILENAME = "history.jsonl"
PROJECTS_DIRNAME = "projects"
FACETS_SUBDIR = ("usage-data", "facets")
STATS_FILENAME = "stats-cache.json"
OUTPUT_SUBPATH = ("usage-data", "insightful-data.json")


def _expand(value: str) -> Path:
    return Path(value).expanduser()


class PathsConfig(BaseModel):
    """[paths] section.

    Empty file/directory entries are derived from ``claude_dir``.
    """

    claude_dir: str = "~/.claude"
    history_file: str = ""
    projects_dir: str = ""
    facets_dir: str = ""
    stats_file: str = ""
    output_file: str = ""
    home_dir: str = "~"

    @property
    def claude_path(self) -> Path:
        return _expand(self.claude_dir)

    @property
    def history_path(self) -> Path:
        return _expand(self.history_file) if self.history_file else self.claude_path / HISTORY_FILENAME

    @property
    def projects_path(self) -> Path:
        return _expand(self.projects_dir) if self.projects_dir else self.claude_path / PROJECTS_DIRNAME

    @property
    def facets_path(self) -> Path:
        return _expand(self.facets_dir) if self.facets_dir else self.claude_path.joinpath(*FACETS_SUBDIR)

    @property
    def stats_path(self) -> Path:
        return _expand(self.stats_file) if self.stats_file else self.claude_path / STATS_FILENAME

    @property
    def output_path(self) -> Path:
        return _expand(self.output_file) if self.output_file else self.claude_path.joinpath(*OUTPUT_SUBPATH)

    @property
    def home_path(self) -> Path:
        return _expand(self.home_dir)


class CollectConfig(BaseModel):
    """[collect] section."""

    max_workers: int = Field(default=8, ge=1)
    history_prompt_limit: int = Field(default=3, ge=0)
    history_prompt_chars: int = Field(default=200, ge=1)
    transcript_prompt_chars: int = Field(default=300, ge=1)


class InsightfulConfig(BaseModel):
    """Top-level configuration for a collection run."""

    paths: PathsConfig = Field(default_factory=PathsConfig)
    collect: CollectConfig = Field(default_factory=CollectConfig)


def load_config(path: str | Path | None = None) -> InsightfulConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .insightful.toml in CWD
    3. ~/.config/insightful/.insightful.toml
    4. ~/.config/insightful/config.toml

    Then overlay environment variables.

    Args:
        path: Explicit path to a TOML file.

    Returns:
        Merged InsightfulConfig.

    Raises:
        ConfigError: If a TOML or environment value fails validation.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for search_dir in CONFIG_SEARCH_PATHS:
            candidate = search_dir / CONFIG_FILENAME
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break
        global_config = Path.home() / ".config" / "insightful" / "config.toml"
        if not data and global_config.exists():
            data = _load_toml(global_config)
            logger.info("Loaded config from %s", global_config)

    config = _validate(data) if data else InsightfulConfig()

    return _apply_env_vars(config)


def merge_cli_overrides(config: InsightfulConfig, **cli_kwargs: object) -> InsightfulConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only overrides values where the CLI flag was explicitly provided
    (i.e., not None).

    Args:
        config: Base config.
        **cli_kwargs: CLI flag values, e.g. ``claude_dir``, ``output_file``,
            ``max_workers``.

    Returns:
        Updated config with CLI overrides applied.
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "claude_dir": ("paths", "claude_dir"),
        "output_file": ("paths", "output_file"),
        "home_dir": ("paths", "home_dir"),
        "max_workers": ("collect", "max_workers"),
    }

    for key, value in cli_kwargs.items():
        if value is None:
            continue
        if key in mapping:
            section, field = mapping[key]
            data[section][field] = str(value) if isinstance(value, Path) else value

    return _validate(data)


def _validate(data: dict[str, object]) -> InsightfulConfig:
    try:
        return InsightfulConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: InsightfulConfig) -> InsightfulConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "INSIGHTFUL_CLAUDE_DIR": ("paths", "claude_dir"),
        "INSIGHTFUL_OUTPUT": ("paths", "output_file"),
        "INSIGHTFUL_HOME_DIR": ("paths", "home_dir"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    workers_raw = os.environ.get("INSIGHTFUL_MAX_WORKERS")
    if workers_raw is not None:
        try:
            data["collect"]["max_workers"] = int(workers_raw)
        except ValueError:
            logger.warning("Ignoring non-integer INSIGHTFUL_MAX_WORKERS=%r", workers_raw)

    return _validate(data)
