"""
Conveyor Calculator - Geometry Resolver

A conveyor's incline can be described three ways, and the user picks one:

- L_ANGLE: axis length L (pulley center to center, along the belt) + angle θ
- H_ANGLE: horizontal run H + angle θ
- H_TOB:   horizontal run H + top-of-belt height at each end

All three resolve to one DerivedGeometry:

    H    = L · cos θ            L = H / cos θ
    rise = L · sin θ = H · tan θ
    CL   = TOB − D/2            (pulley shaft centerline from top of belt)
    θ    = atan((CL_drive − CL_tail) / H)      clamped to ±45°

Angles within 0.01° of zero are exactly horizontal: rise is 0.0, not noise.
Note that rise uses the HORIZONTAL run with tan and the AXIS length with sin;
mixing the two is the bug in the legacy helpers kept in migrate.py.
"""

import logging
from math import atan, cos, degrees, radians, sin, tan
from typing import Any, Dict, Mapping, Optional, Tuple

from ..enums import GeometryMode, ReferenceEnd, coerce_enum
from ..io.models import DerivedGeometry
from .constants import (
    DEFAULT_PULLEY_DIAMETER_IN,
    HORIZONTAL_THRESHOLD_DEG,
    LEVEL_RISE_EPSILON_IN,
    MAX_INCLINE_DEG,
    NEAR_VERTICAL_COS,
)

logger = logging.getLogger(__name__)

ERROR_LENGTH_NOT_POSITIVE = "Conveyor length must be greater than 0"
ERROR_HORIZONTAL_NOT_POSITIVE = "Horizontal run must be greater than 0"
ERROR_TOB_MISSING = "H_TOB mode requires both tail and drive TOB values"


def is_effectively_horizontal(angle_deg: float) -> bool:
    return abs(angle_deg) < HORIZONTAL_THRESHOLD_DEG


def axis_from_horizontal(horizontal_run_in: float, angle_deg: float) -> float:
    """
    Axis length from horizontal run: L = H / cos θ.

    Near vertical (|cos θ| < 0.01) the result is capped at H / 0.01 so it
    stays large but finite.
    """
    if horizontal_run_in <= 0:
        return 0.0
    if is_effectively_horizontal(angle_deg):
        return horizontal_run_in

    cos_theta = cos(radians(angle_deg))
    if abs(cos_theta) < NEAR_VERTICAL_COS:
        return horizontal_run_in / NEAR_VERTICAL_COS
    return horizontal_run_in / cos_theta


def horizontal_from_axis(axis_length_in: float, angle_deg: float) -> float:
    """Horizontal run from axis length: H = L · cos θ."""
    if axis_length_in <= 0:
        return 0.0
    if is_effectively_horizontal(angle_deg):
        return axis_length_in
    return axis_length_in * cos(radians(angle_deg))


def rise_from_axis_and_angle(axis_length_in: float, angle_deg: float) -> float:
    """rise = L · sin θ"""
    if axis_length_in <= 0 or is_effectively_horizontal(angle_deg):
        return 0.0
    return axis_length_in * sin(radians(angle_deg))


def rise_from_horizontal_and_angle(horizontal_run_in: float, angle_deg: float) -> float:
    """rise = H · tan θ"""
    if horizontal_run_in <= 0 or is_effectively_horizontal(angle_deg):
        return 0.0
    return horizontal_run_in * tan(radians(angle_deg))


def tob_to_centerline(tob_in: float, pulley_diameter_in: float) -> float:
    return tob_in - pulley_diameter_in / 2


def centerline_to_tob(centerline_in: float, pulley_diameter_in: float) -> float:
    return centerline_in + pulley_diameter_in / 2


def angle_from_centerlines(
    tail_centerline_in: float,
    drive_centerline_in: float,
    horizontal_run_in: float,
) -> float:
    """
    Incline angle implied by the two pulley centerlines.

    Returns 0 for a non-positive run or a rise under 0.001", and clamps the
    result to ±45° (the steepest incline the model supports).
    """
    if horizontal_run_in <= 0:
        return 0.0

    rise = drive_centerline_in - tail_centerline_in
    if abs(rise) < LEVEL_RISE_EPSILON_IN:
        return 0.0

    angle_deg = degrees(atan(rise / horizontal_run_in))
    return max(-MAX_INCLINE_DEG, min(MAX_INCLINE_DEG, angle_deg))


def calculate_opposite_tob_from_angle(
    reference_tob_in: float,
    angle_deg: float,
    horizontal_run_in: float,
    reference_pulley_dia_in: float,
    opposite_pulley_dia_in: float,
    reference_end: Any = ReferenceEnd.TAIL,
) -> float:
    """
    TOB at the far end from the measured end, the angle and the horizontal run.

    Works through centerlines, so different drive and tail pulley diameters
    are handled correctly.
    """
    reference_cl = tob_to_centerline(reference_tob_in, reference_pulley_dia_in)
    rise = rise_from_horizontal_and_angle(horizontal_run_in, angle_deg)

    end = coerce_enum(ReferenceEnd, reference_end, ReferenceEnd.TAIL)
    if end == ReferenceEnd.TAIL:
        opposite_cl = reference_cl + rise
    else:
        opposite_cl = reference_cl - rise

    return centerline_to_tob(opposite_cl, opposite_pulley_dia_in)


def calculate_implied_angle_from_tobs(
    tail_tob_in: float,
    drive_tob_in: float,
    horizontal_run_in: float,
    tail_pulley_dia_in: float,
    drive_pulley_dia_in: float,
) -> float:
    tail_cl = tob_to_centerline(tail_tob_in, tail_pulley_dia_in)
    drive_cl = tob_to_centerline(drive_tob_in, drive_pulley_dia_in)
    return angle_from_centerlines(tail_cl, drive_cl, horizontal_run_in)


def _pulley_diameters(inputs: Mapping[str, Any]) -> Tuple[float, float]:
    """Drive and tail diameters for TOB/centerline conversion."""
    legacy = inputs.get("pulley_diameter_in")
    drive = inputs.get("drive_pulley_diameter_in")
    if drive is None:
        drive = legacy if legacy is not None else DEFAULT_PULLEY_DIAMETER_IN
    tail = inputs.get("tail_pulley_diameter_in")
    if tail is None:
        tail = legacy if legacy is not None else drive
    return float(drive), float(tail)


def _number(inputs: Mapping[str, Any], *keys: str, default: float = 0.0) -> float:
    """First non-None value among `keys`, as a float."""
    for key in keys:
        value = inputs.get(key)
        if value is not None:
            return float(value)
    return default


def _optional_number(inputs: Mapping[str, Any], key: str) -> Optional[float]:
    value = inputs.get(key)
    return float(value) if value is not None else None


def resolve_geometry(inputs: Mapping[str, Any]) -> Tuple[Dict[str, Any], DerivedGeometry]:
    """
    Resolve the active geometry mode into canonical geometry.

    Args:
        inputs: Canonical (or raw) configuration mapping; not modified

    Returns:
        (normalized_fields, derived) where normalized_fields holds the input
        fields the mode derives (for example conveyor_length_cc_in in H_ANGLE
        mode) and derived is the DerivedGeometry. Invalid geometry gives
        derived.is_valid False with an error message and zeroed numbers.

    Raises:
        ValueError: geometry_mode is set to a value that is not a GeometryMode
    """
    raw_mode = inputs.get("geometry_mode")
    mode = coerce_enum(GeometryMode, raw_mode, GeometryMode.L_ANGLE if raw_mode is None else None)
    if mode is None:
        raise ValueError(f"Unknown geometry mode: {raw_mode}")

    drive_dia, tail_dia = _pulley_diameters(inputs)
    derived = DerivedGeometry(
        mode=mode,
        drive_pulley_dia_in=drive_dia,
        tail_pulley_dia_in=tail_dia,
    )
    normalized: Dict[str, Any] = {}

    tail_tob = _optional_number(inputs, "tail_tob_in")
    drive_tob = _optional_number(inputs, "drive_tob_in")

    if mode == GeometryMode.L_ANGLE:
        length = _number(inputs, "conveyor_length_cc_in")
        theta = _number(inputs, "conveyor_incline_deg")
        if length <= 0:
            return normalized, _invalid(derived, ERROR_LENGTH_NOT_POSITIVE)

        horizontal = horizontal_from_axis(length, theta)
        derived.length_cc_in = length
        derived.horizontal_run_in = horizontal
        derived.incline_deg = theta
        derived.rise_in = rise_from_axis_and_angle(length, theta)
        normalized["horizontal_run_in"] = horizontal

    elif mode == GeometryMode.H_ANGLE:
        horizontal = _number(inputs, "horizontal_run_in", "conveyor_length_cc_in")
        theta = _number(inputs, "conveyor_incline_deg")
        if horizontal <= 0:
            return normalized, _invalid(derived, ERROR_HORIZONTAL_NOT_POSITIVE)

        length = axis_from_horizontal(horizontal, theta)
        derived.length_cc_in = length
        derived.horizontal_run_in = horizontal
        derived.incline_deg = theta
        derived.rise_in = rise_from_horizontal_and_angle(horizontal, theta)
        normalized["conveyor_length_cc_in"] = length
        normalized["horizontal_run_in"] = horizontal

    elif mode == GeometryMode.H_TOB:
        horizontal = _number(inputs, "horizontal_run_in", "conveyor_length_cc_in")
        if horizontal <= 0:
            return normalized, _invalid(derived, ERROR_HORIZONTAL_NOT_POSITIVE)
        if tail_tob is None or drive_tob is None:
            return normalized, _invalid(derived, ERROR_TOB_MISSING)

        tail_cl = tob_to_centerline(tail_tob, tail_dia)
        drive_cl = tob_to_centerline(drive_tob, drive_dia)
        theta = angle_from_centerlines(tail_cl, drive_cl, horizontal)
        length = axis_from_horizontal(horizontal, theta)

        derived.length_cc_in = length
        derived.horizontal_run_in = horizontal
        derived.incline_deg = theta
        derived.rise_in = drive_cl - tail_cl
        derived.tail_centerline_in = tail_cl
        derived.drive_centerline_in = drive_cl
        normalized["conveyor_length_cc_in"] = length
        normalized["horizontal_run_in"] = horizontal
        normalized["conveyor_incline_deg"] = theta

    # Centerlines for any mode where TOBs were entered
    if tail_tob is not None and derived.tail_centerline_in is None:
        derived.tail_centerline_in = tob_to_centerline(tail_tob, tail_dia)
    if drive_tob is not None and derived.drive_centerline_in is None:
        derived.drive_centerline_in = tob_to_centerline(drive_tob, drive_dia)

    return normalized, derived


def _invalid(derived: DerivedGeometry, error: str) -> DerivedGeometry:
    logger.debug(f"Geometry invalid ({derived.mode.value}): {error}")
    derived.is_valid = False
    derived.error = error
    return derived


# Legacy name
normalize_geometry = resolve_geometry
