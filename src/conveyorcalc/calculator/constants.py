"""
Engineering constants for conveyor calculations.

This module centralizes the fixed numerical thresholds used by the geometry
resolver, the formula pipeline and the validation rules. Tunable engineering
defaults (friction, safety factor, belt coefficients, clearances) are NOT here:
they live on `conveyorcalc.io.models.Parameters` so callers can override them
per call.

MODIFICATION GUIDELINES:
- Values reproduce the legacy spreadsheet; changing one breaks fixture parity
- Always include units in constant names (_IN, _DEG, _PSI, _LB)
- Add new thresholds here rather than hardcoding in functions

Constants are grouped by category:
- Model identity
- Geometry
- Pulleys and belt
- Frame height and rollers
- Drive train
- PCI tube stress
- Validation ranges
- Belt tracking recommendation
- Fixture comparison
"""

from typing import Dict, Tuple

# =============================================================================
# Model identity
# =============================================================================

MODEL_KEY: str = "sliderbed_conveyor_v1"

# =============================================================================
# Geometry
# =============================================================================

# Angles closer than this to zero are exactly horizontal (rise = 0, no noise)
HORIZONTAL_THRESHOLD_DEG: float = 0.01

# Steepest incline the centerline-derived angle is clamped to
MAX_INCLINE_DEG: float = 45.0

# Below this |cos(angle)| the axis length is capped at H / 0.01
NEAR_VERTICAL_COS: float = 0.01

# Centerline rise smaller than this is treated as level
LEVEL_RISE_EPSILON_IN: float = 0.001

# Implied (from TOBs) vs entered angle tolerance before warning
ANGLE_MISMATCH_TOLERANCE_DEG: float = 0.5

# =============================================================================
# Pulleys and belt
# =============================================================================

# Used when a configuration carries no pulley diameter at all
DEFAULT_PULLEY_DIAMETER_IN: float = 4.0

# Belt coefficient table switches on this exact drive pulley diameter
SMALL_PULLEY_DIAMETER_IN: float = 2.5

# Smallest pulley the model supports (no upper bound)
MIN_PULLEY_DIAMETER_IN: float = 2.5

# Default cleat centers when cleats are enabled without a spacing
DEFAULT_CLEAT_CENTERS_IN: float = 12.0

# Hot-welded cleat spacing → minimum pulley multiplier (interpolated between)
CLEAT_SPACING_MULTIPLIERS: Tuple[Tuple[float, float], ...] = (
    (4.0, 1.35),
    (6.0, 1.25),
    (8.0, 1.15),
    (12.0, 1.0),
)

# Adjusted minimum pulley diameters are rounded up to this increment
MIN_PULLEY_ROUNDING_INCREMENT_IN: float = 0.25

# Shaft placeholder heuristic: (max belt width, shaft diameter)
SHAFT_DIAMETER_BANDS_IN: Tuple[Tuple[float, float], ...] = (
    (18.0, 1.0),
    (36.0, 1.25),
)
SHAFT_DIAMETER_WIDE_IN: float = 1.5
SHAFT_DIAMETER_MANUAL_DEFAULT_IN: float = 1.0

# Manual shaft diameter bounds
SHAFT_DIAMETER_MIN_IN: float = 0.5
SHAFT_DIAMETER_MAX_IN: float = 4.0

# Euler-Eytelwein pulley tension defaults (bare pulley, 180° wrap)
DEFAULT_WRAP_ANGLE_DEG: float = 180.0
DEFAULT_PULLEY_FRICTION_COEFF: float = 0.3

# =============================================================================
# Frame height and rollers
# =============================================================================

# Snub rollers are needed when frame height < largest pulley + this margin
SNUB_ROLLER_CLEARANCE_THRESHOLD_IN: float = 2.5

# Frames lower than this need an engineering design review
DESIGN_REVIEW_THRESHOLD_IN: float = 4.0

# Smallest custom frame height accepted
MIN_FRAME_HEIGHT_IN: float = 3.0

# Gravity (return) roller pitch along the conveyor
GRAVITY_ROLLER_SPACING_IN: float = 60.0

# Snubs occupy both end positions
SNUB_ROLLERS_PER_CONVEYOR: int = 2

# =============================================================================
# Drive train
# =============================================================================

DEFAULT_GM_SPROCKET_TEETH: int = 18
DEFAULT_DRIVE_SHAFT_SPROCKET_TEETH: int = 24

# Sprockets below this tooth count wear quickly
MIN_RECOMMENDED_SPROCKET_TEETH: int = 12

# Chain ratio band outside of which a warning is raised
CHAIN_RATIO_MIN: float = 0.5
CHAIN_RATIO_MAX: float = 3.0

# =============================================================================
# PCI tube stress
# =============================================================================

# Pulley Conveyor Institute allowable tube stress
PCI_TUBE_STRESS_LIMIT_DRUM_PSI: float = 10000.0
PCI_TUBE_STRESS_LIMIT_VGROOVE_PSI: float = 3400.0

# =============================================================================
# Validation ranges
# =============================================================================

# Power-user overrides entered on the configuration: (min, max) inclusive
POWER_USER_RANGES: Dict[str, Tuple[float, float]] = {
    "safety_factor": (1.0, 5.0),
    "belt_coeff": (0.05, 0.30),
    "starting_belt_pull_lb": (0.0, 2000.0),
    "friction_coeff": (0.05, 0.6),
    "motor_rpm": (800.0, 3600.0),
}

# Parameter bundle sanity: friction coefficient (min, max) inclusive
PARAMETER_FRICTION_RANGE: Tuple[float, float] = (0.1, 1.0)

# Incline thresholds (degrees): hard ceiling, strong warning, warning
INCLINE_ERROR_DEG: float = 45.0
INCLINE_STRONG_WARNING_DEG: float = 35.0
INCLINE_WARNING_DEG: float = 20.0

# Advisory thresholds
LONG_CONVEYOR_IN: float = 120.0
HIGH_DROP_HEIGHT_IN: float = 24.0
SHORT_CYCLE_TIME_S: float = 10.0

# Cleat limits (inches), inclusive
CLEAT_HEIGHT_RANGE_IN: Tuple[float, float] = (0.5, 6.0)
CLEAT_SPACING_RANGE_IN: Tuple[float, float] = (2.0, 48.0)
CLEAT_EDGE_OFFSET_MAX_IN: float = 12.0

# =============================================================================
# Belt tracking recommendation
# =============================================================================

# Length/width ratio bands: low <= 5, medium <= 10, high above
TRACKING_LW_LOW_MAX: float = 5.0
TRACKING_LW_MEDIUM_MAX: float = 10.0

# This many disturbance factors make the disturbance significant
TRACKING_SIGNIFICANT_DISTURBANCE_COUNT: int = 3

# =============================================================================
# Fixture comparison
# =============================================================================

# Relative tolerance for numeric fixture fields (0.5%)
DEFAULT_TOLERANCE: float = 0.005
