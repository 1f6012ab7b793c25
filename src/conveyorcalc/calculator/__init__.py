"""
Conveyor Calculator - engineering calculations for sliderbed conveyors.

This module provides the normalizer, geometry resolver, formula pipeline,
validation rules and fixture comparator. `run_calculation()` chains them.

Example:
    >>> from conveyorcalc.calculator import run_calculation
    >>>
    >>> result = run_calculation({
    ...     "conveyor_length_cc_in": 120,
    ...     "belt_width_in": 24,
    ...     "drive_pulley_diameter_in": 4,
    ...     "belt_speed_fpm": 65,
    ...     "part_weight_lbs": 5,
    ...     "part_length_in": 12,
    ...     "part_width_in": 6,
    ...     "part_spacing_in": 12,
    ... })
    >>> result.outputs.parts_on_belt
    5.0
"""

from .constants import (
    MODEL_KEY,
    DEFAULT_TOLERANCE,
)

from .geometry import (
    # Geometry resolver
    resolve_geometry,
    normalize_geometry,
    axis_from_horizontal,
    horizontal_from_axis,
    rise_from_axis_and_angle,
    rise_from_horizontal_and_angle,
    tob_to_centerline,
    centerline_to_tob,
    angle_from_centerlines,
    calculate_implied_angle_from_tobs,
    calculate_opposite_tob_from_angle,
)

from .migrate import (
    # Normalizer
    MIGRATION_STEPS,
    normalize,
    migrate_inputs,
    normalize_inputs_for_calculation,
    build_cleats_summary,
    has_angle_mismatch,

    # Deprecated helpers
    calculate_implied_angle_deg,
    calculate_opposite_tob,
)

from .core import (
    # Formula pipeline
    calculate,

    # Individual formulas
    calculate_effective_belt_coefficients,
    calculate_total_belt_length,
    calculate_belt_weight,
    calculate_parts_on_belt,
    calculate_load_on_belt,
    calculate_bulk_mass_flow,
    calculate_bulk_load_on_belt,
    calculate_friction_pull,
    calculate_incline_pull,
    calculate_total_belt_pull,
    calculate_drive_shaft_rpm,
    calculate_belt_speed,
    calculate_torque_drive_shaft,
    calculate_gear_ratio,
    calculate_chain_ratio,
    calculate_pitch,
    calculate_capacity,
    calculate_pulley_tensions,
    calculate_frame_height,
    calculate_requires_snub_rollers,
    calculate_min_pulley_requirements,
)

from .pci import (
    calculate_pci_tube_stress,
    run_pci_checks,
)

from .validation import (
    # Validation
    validate,
    validate_result,
    Finding,
    Severity,
    ValidationResult,
)

from .engine import (
    # Entry points
    run_calculation,
    calculate_json,
)

from .fixtures import (
    # Fixture comparator
    is_within_tolerance,
    compare_outputs,
    ComparisonResult,
    FieldFailure,
    Fixture,
    FixtureRun,
    run_fixture,
    run_fixtures,
    EXAMPLE_FIXTURE,
)

from .output import (
    # Output formatters
    to_json,
    to_markdown,
    to_summary,
)


__all__ = [
    # Constants
    "MODEL_KEY",
    "DEFAULT_TOLERANCE",

    # Geometry resolver
    "resolve_geometry",
    "normalize_geometry",
    "axis_from_horizontal",
    "horizontal_from_axis",
    "rise_from_axis_and_angle",
    "rise_from_horizontal_and_angle",
    "tob_to_centerline",
    "centerline_to_tob",
    "angle_from_centerlines",
    "calculate_implied_angle_from_tobs",
    "calculate_opposite_tob_from_angle",

    # Normalizer
    "MIGRATION_STEPS",
    "normalize",
    "migrate_inputs",
    "normalize_inputs_for_calculation",
    "build_cleats_summary",
    "has_angle_mismatch",
    "calculate_implied_angle_deg",
    "calculate_opposite_tob",

    # Formula pipeline
    "calculate",
    "calculate_effective_belt_coefficients",
    "calculate_total_belt_length",
    "calculate_belt_weight",
    "calculate_parts_on_belt",
    "calculate_load_on_belt",
    "calculate_bulk_mass_flow",
    "calculate_bulk_load_on_belt",
    "calculate_friction_pull",
    "calculate_incline_pull",
    "calculate_total_belt_pull",
    "calculate_drive_shaft_rpm",
    "calculate_belt_speed",
    "calculate_torque_drive_shaft",
    "calculate_gear_ratio",
    "calculate_chain_ratio",
    "calculate_pitch",
    "calculate_capacity",
    "calculate_pulley_tensions",
    "calculate_frame_height",
    "calculate_requires_snub_rollers",
    "calculate_min_pulley_requirements",
    "calculate_pci_tube_stress",
    "run_pci_checks",

    # Validation
    "validate",
    "validate_result",
    "Finding",
    "Severity",
    "ValidationResult",

    # Entry points
    "run_calculation",
    "calculate_json",

    # Fixture comparator
    "is_within_tolerance",
    "compare_outputs",
    "ComparisonResult",
    "FieldFailure",
    "Fixture",
    "FixtureRun",
    "run_fixture",
    "run_fixtures",
    "EXAMPLE_FIXTURE",

    # Output formatters
    "to_json",
    "to_markdown",
    "to_summary",
]
