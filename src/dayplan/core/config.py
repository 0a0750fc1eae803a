"""
Configuration constants for the day-plan override engine.

All adjustable parameters are centralized here.  Values can be overridden
per user through ``~/.dayplan/config.yaml`` (see engine/config_loader.py);
the constants below are the defaults the loader falls back to.
"""

from dataclasses import dataclass
from typing import Final

# =============================================================================
# INTENSITY METRICS
# =============================================================================

RIR_MIN: Final[int] = 0  # Reps in reserve: 0 = failure
RIR_MAX: Final[int] = 5
RPE_MIN: Final[int] = 1  # Rate of perceived exertion
RPE_MAX: Final[int] = 10

# Server-side acceptance window is wider than the editor's for RIR
SERVER_RIR_MAX: Final[int] = 10

# Editor default when a set tracks neither RIR nor RPE.  UI only.
DEFAULT_EDITOR_INTENSITY_TYPE: Final[str] = "RIR"
DEFAULT_EDITOR_INTENSITY: Final[int] = 2

# =============================================================================
# NEW SETS / EXERCISES
# =============================================================================

DEFAULT_REPS_MIN: Final[int] = 8
DEFAULT_REPS_MAX: Final[int] = 12
DEFAULT_WEIGHT_KG: Final[float] = 0.0
DEFAULT_RIR: Final[int] = 2

# Note attached to the synthetic "added exercise" record that carries extra
# sets for a template exercise.
EXTRA_SETS_NOTE_TEMPLATE: Final[str] = "Extra sets for {name}"

# =============================================================================
# LIVE WORKOUT
# =============================================================================

DEFAULT_REST_SECONDS: Final[int] = 90

# =============================================================================
# LOCAL WORKSPACE
# =============================================================================

WORKSPACE_DIR_NAME: Final[str] = ".dayplan"
HOME_ENV_VAR: Final[str] = "DAYPLAN_HOME"


@dataclass(frozen=True)
class DefaultSetTemplate:
    """Values for a set created on an exercise that has no sets to copy."""

    reps_min: int = DEFAULT_REPS_MIN
    reps_max: int = DEFAULT_REPS_MAX
    weight: float = DEFAULT_WEIGHT_KG
    rir: int | None = DEFAULT_RIR
    rpe: int | None = None


@dataclass(frozen=True)
class EngineSettings:
    """Effective settings after merging YAML overrides over the defaults."""

    rir_min: int = RIR_MIN
    rir_max: int = RIR_MAX
    rpe_min: int = RPE_MIN
    rpe_max: int = RPE_MAX
    default_set: DefaultSetTemplate = DefaultSetTemplate()
    default_rest_seconds: int = DEFAULT_REST_SECONDS
    extra_sets_note_template: str = EXTRA_SETS_NOTE_TEMPLATE
