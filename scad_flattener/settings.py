"""Settings management for scad-flatten.

Simple, scope-aware YAML settings. Each scope is a plain mapping; the
merged result is validated into a FlattenSettings model.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel
from pydantic import Field
from pydantic import ValidationError

from .lib.flattening.context import DEFAULT_MAX_DEPTH
from .lib.flattening.serializer import Layout

logger = logging.getLogger(__name__)

SETTINGS_DIR = ".scad-flatten"


class FlattenSettings(BaseModel):
    """Effective configuration for a flatten run."""

    output_dir: Path = Field(default=Path("flattened"), description="Directory receiving merged files")
    layout: Layout = Field(default=Layout.GROUPED, description="Output arrangement")
    library_paths: list[Path] = Field(default_factory=list, description="Extra directories searched for references")
    exclude: list[str] = Field(default_factory=list, description="Glob patterns skipped during discovery")
    extensions: list[str] = Field(default_factory=lambda: [".scad"], description="Source file suffixes")
    encoding: str = Field(default="utf-8", description="Source file encoding")
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1, description="Maximum reference chain depth")
    hide_free_variables: bool = Field(
        default=True, description="Insert a Hidden customizer header before free variables"
    )


@dataclass
class SettingsPaths:
    """Standard paths for settings files."""

    global_settings: Path
    project_settings: Path
    local_settings: Path

    @classmethod
    def default(cls) -> SettingsPaths:
        """Create default paths for the standard layout."""
        return cls(
            global_settings=Path.home() / SETTINGS_DIR / "settings.yaml",
            project_settings=Path.cwd() / SETTINGS_DIR / "settings.yaml",
            local_settings=Path.cwd() / SETTINGS_DIR / "settings.local.yaml",
        )


class AppSettings:
    """Settings manager with scope-aware merging.

    Scope priority (most specific wins):
    1. local (.scad-flatten/settings.local.yaml) - gitignored, machine-specific
    2. project (.scad-flatten/settings.yaml) - committed, shared
    3. global (~/.scad-flatten/settings.yaml) - user defaults

    Usage:
        settings = AppSettings()
        config = settings.load(layout="inline")
    """

    def __init__(self, paths: SettingsPaths | None = None) -> None:
        self.paths = paths or SettingsPaths.default()

    def get_merged_settings(self) -> dict[str, Any]:
        """Load and merge settings from all scopes."""
        result: dict[str, Any] = {}
        for path in [self.paths.global_settings, self.paths.project_settings, self.paths.local_settings]:
            if path.exists():
                try:
                    with open(path, encoding="utf-8") as f:
                        content = yaml.safe_load(f) or {}
                except (OSError, yaml.YAMLError) as e:
                    logger.warning(f"Skipping malformed settings file {path}: {e}")
                    continue
                if not isinstance(content, dict):
                    logger.warning(f"Skipping settings file {path}: expected a mapping")
                    continue
                result = deep_merge(result, content)
        return result

    def load(self, **overrides: Any) -> FlattenSettings:
        """Build the effective settings, applying non-None overrides last.

        Invalid merged values fall back to the defaults with a warning.
        """
        merged = self.get_merged_settings()
        merged.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return FlattenSettings(**merged)
        except ValidationError as e:
            logger.warning(f"Invalid settings, using defaults: {e}")
            return FlattenSettings(**{k: v for k, v in overrides.items() if v is not None})


def deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dicts, overlay wins."""
    result = base.copy()
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def get_settings() -> AppSettings:
    """Get a settings instance with default paths."""
    return AppSettings()
