"""
YAML → EngineSettings loader.

Optionally merges user overrides from ``~/.dayplan/config.yaml`` (or
``$DAYPLAN_HOME/config.yaml``) over the defaults in config.py.

Usage:
    from dayplan.core.engine.config_loader import get_settings
    settings = get_settings()
    rest = settings.default_rest_seconds

Example config.yaml:

    intensity:
      rir_max: 4
    default_set:
      reps_min: 6
      reps_max: 10
    workout:
      default_rest_seconds: 120

If the user file has parse errors or invalid values, a warning is logged and
the defaults are used.
"""

from __future__ import annotations

import os
from dataclasses import asdict
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from ..config import (
    HOME_ENV_VAR,
    RIR_MAX,
    RIR_MIN,
    RPE_MAX,
    RPE_MIN,
    WORKSPACE_DIR_NAME,
    DefaultSetTemplate,
    EngineSettings,
)

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; return {} on parse or read errors."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        logger.warning(f"[CONFIG] Ignoring unreadable config {path}: {exc}")
        return {}
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _defaults_as_dict() -> dict[str, Any]:
    defaults = EngineSettings()
    return {
        "intensity": {
            "rir_min": defaults.rir_min,
            "rir_max": defaults.rir_max,
            "rpe_min": defaults.rpe_min,
            "rpe_max": defaults.rpe_max,
        },
        "default_set": asdict(defaults.default_set),
        "workout": {"default_rest_seconds": defaults.default_rest_seconds},
        "notes": {"extra_sets": defaults.extra_sets_note_template},
    }


def settings_from_dict(data: dict[str, Any]) -> EngineSettings:
    """
    Build EngineSettings from a (possibly partial) config dict.

    Missing keys take their default values.

    Raises:
        ValueError: If a value has the wrong type, a range is inverted, or an
            intensity range reaches past RIR 0-5 / RPE 1-10
    """
    merged = _deep_merge(_defaults_as_dict(), data)
    intensity = merged["intensity"]
    ds = merged["default_set"]

    settings = EngineSettings(
        rir_min=int(intensity["rir_min"]),
        rir_max=int(intensity["rir_max"]),
        rpe_min=int(intensity["rpe_min"]),
        rpe_max=int(intensity["rpe_max"]),
        default_set=DefaultSetTemplate(
            reps_min=int(ds["reps_min"]),
            reps_max=int(ds["reps_max"]),
            weight=float(ds["weight"]),
            rir=int(ds["rir"]) if ds.get("rir") is not None else None,
            rpe=int(ds["rpe"]) if ds.get("rpe") is not None else None,
        ),
        default_rest_seconds=int(merged["workout"]["default_rest_seconds"]),
        extra_sets_note_template=str(merged["notes"]["extra_sets"]),
    )

    if settings.rir_min > settings.rir_max or settings.rpe_min > settings.rpe_max:
        raise ValueError("intensity ranges must have min <= max")
    # Overrides may narrow the editor ranges, never widen them
    if settings.rir_min < RIR_MIN or settings.rir_max > RIR_MAX:
        raise ValueError(f"intensity RIR range must lie within {RIR_MIN}..{RIR_MAX}")
    if settings.rpe_min < RPE_MIN or settings.rpe_max > RPE_MAX:
        raise ValueError(f"intensity RPE range must lie within {RPE_MIN}..{RPE_MAX}")
    if not 0 < settings.default_set.reps_min <= settings.default_set.reps_max:
        raise ValueError("default_set reps must be positive with reps_min <= reps_max")
    if settings.default_set.weight < 0:
        raise ValueError("default_set weight must be non-negative")
    if settings.default_rest_seconds < 0:
        raise ValueError("workout.default_rest_seconds must be non-negative")
    return settings


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_dayplan_home() -> Path:
    """Return the dayplan home directory ($DAYPLAN_HOME or ~/.dayplan)."""
    env = os.environ.get(HOME_ENV_VAR)
    if env:
        return Path(env).expanduser()
    home = Path(os.environ.get("HOME", "~")).expanduser()
    return home / WORKSPACE_DIR_NAME


def get_user_yaml_path() -> Path | None:
    """Return the user config.yaml if it exists, else None."""
    p = get_dayplan_home() / "config.yaml"
    return p if p.exists() else None


def load_settings(path: Path | None = None) -> EngineSettings:
    """
    Load settings, merging the user YAML (if any) over the defaults.

    Args:
        path: Explicit YAML path; defaults to the user config location

    Returns:
        EngineSettings; defaults if no YAML is available or it is invalid
    """
    if path is None:
        path = get_user_yaml_path()
    if path is None:
        return EngineSettings()

    user_cfg = _load_yaml_file(path)
    if not user_cfg:
        return EngineSettings()

    try:
        return settings_from_dict(user_cfg)
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning(f"[CONFIG] Ignoring invalid config {path}: {exc}")
        return EngineSettings()


@lru_cache(maxsize=1)
def get_settings() -> EngineSettings:
    """Process-wide settings, loaded once."""
    return load_settings()
