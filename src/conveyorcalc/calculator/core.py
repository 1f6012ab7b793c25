"""
Conveyor Calculator - Formula Pipeline

Pure functions reproducing the legacy sliderbed spreadsheet. Every formula is
public and testable on its own; `calculate()` only wires them together in
dependency order:

    1. belt coefficients      7. tracking / pulley face
    2. belt length            8. shafts, pulley tensions
    3. loads                  9. frame height, snub rollers
    4. belt pull             10. roller quantities
    5. speed and drive       11. PCI tube stress
    6. throughput            12. belt minimum pulley diameter
                             13. belt tracking recommendation

Units are in the names (_in, _lbf, _fpm, _rpm). Guards return 0 where the
spreadsheet would divide by zero, so the pipeline never raises for numbers.
"""

import logging
import re
from math import ceil, cos, exp, pi, radians, sin, sqrt
from typing import Any, Dict, Mapping, Optional, Tuple

from ..enums import (
    ApplicationClass,
    BeltConstruction,
    BeltTrackingMethod,
    BulkInputMethod,
    DisturbanceSeverity,
    FrameConstructionType,
    FrameHeightMode,
    GearmotorMountingStyle,
    LwBand,
    MaterialForm,
    Orientation,
    ShaftDiameterMode,
    SideLoadingDirection,
    SpeedMode,
    TrackingMode,
    TrackingPreference,
    coerce_enum,
)
from ..io.models import CalculationOutputs, DerivedGeometry, FrameHeightBreakdown, Parameters
from .constants import (
    CLEAT_SPACING_MULTIPLIERS,
    DEFAULT_CLEAT_CENTERS_IN,
    DEFAULT_DRIVE_SHAFT_SPROCKET_TEETH,
    DEFAULT_GM_SPROCKET_TEETH,
    DEFAULT_PULLEY_FRICTION_COEFF,
    DEFAULT_WRAP_ANGLE_DEG,
    DESIGN_REVIEW_THRESHOLD_IN,
    GRAVITY_ROLLER_SPACING_IN,
    MIN_PULLEY_ROUNDING_INCREMENT_IN,
    SHAFT_DIAMETER_BANDS_IN,
    SHAFT_DIAMETER_MANUAL_DEFAULT_IN,
    SHAFT_DIAMETER_WIDE_IN,
    SMALL_PULLEY_DIAMETER_IN,
    SNUB_ROLLER_CLEARANCE_THRESHOLD_IN,
    SNUB_ROLLERS_PER_CONVEYOR,
    TRACKING_LW_LOW_MAX,
    TRACKING_LW_MEDIUM_MAX,
    TRACKING_SIGNIFICANT_DISTURBANCE_COUNT,
)
from .geometry import resolve_geometry
from .migrate import build_cleats_summary, normalize_inputs_for_calculation
from .pci import run_pci_checks

logger = logging.getLogger(__name__)


def _safe_div(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


def _num(inputs: Mapping[str, Any], key: str, default: float = 0.0) -> float:
    value = inputs.get(key)
    return float(value) if value is not None else default


def _opt(inputs: Mapping[str, Any], key: str) -> Optional[float]:
    value = inputs.get(key)
    return float(value) if value is not None else None


# =============================================================================
# 1-4. Belt, load and pull
# =============================================================================

def calculate_effective_belt_coefficients(
    drive_pulley_diameter_in: float,
    params: Parameters,
    belt_piw_override: Optional[float] = None,
    belt_pil_override: Optional[float] = None,
    belt_piw_from_catalog: Optional[float] = None,
    belt_pil_from_catalog: Optional[float] = None,
    advanced_piw: Optional[float] = None,
    advanced_pil: Optional[float] = None,
) -> Dict[str, float]:
    """
    Belt weight coefficients through the override chain.

    Priority: explicit override → catalog belt value → advanced parameter
    (belt_coeff_piw/pil) → default keyed on drive pulley (2.5" vs other).

    Returns:
        Dict with piw, pil (used in calculations) and belt_piw_effective,
        belt_pil_effective (the belt's own value, else the value used).
    """
    belt_piw = belt_piw_override if belt_piw_override is not None else belt_piw_from_catalog
    belt_pil = belt_pil_override if belt_pil_override is not None else belt_pil_from_catalog

    small = drive_pulley_diameter_in == SMALL_PULLEY_DIAMETER_IN
    default_piw = params.piw_2p5 if small else params.piw_other
    default_pil = params.pil_2p5 if small else params.pil_other

    piw = next(v for v in (belt_piw, advanced_piw, default_piw) if v is not None)
    pil = next(v for v in (belt_pil, advanced_pil, default_pil) if v is not None)

    return {
        "piw": piw,
        "pil": pil,
        "belt_piw_effective": belt_piw if belt_piw is not None else piw,
        "belt_pil_effective": belt_pil if belt_pil is not None else pil,
    }


def calculate_total_belt_length(conveyor_length_cc_in: float, pulley_diameter_in: float) -> float:
    """
    Open belt length, single pulley diameter: 2L + πD.

    Each pulley wraps half a circumference, so the two ends together add πD
    (not 2πD).
    """
    return 2 * conveyor_length_cc_in + pi * pulley_diameter_in


def calculate_total_belt_length_split(
    conveyor_length_cc_in: float,
    drive_pulley_diameter_in: float,
    tail_pulley_diameter_in: float,
) -> float:
    """2L + π(D_drive + D_tail)/2; equal to the single-diameter form when D_drive == D_tail."""
    return 2 * conveyor_length_cc_in + pi * (drive_pulley_diameter_in + tail_pulley_diameter_in) / 2


def calculate_belt_weight(piw: float, pil: float, belt_width_in: float, total_belt_length_in: float) -> float:
    return piw * pil * belt_width_in * total_belt_length_in


def calculate_travel_dimension(part_length_in: float, part_width_in: float, orientation: Any) -> float:
    """Part dimension along the direction of travel."""
    if coerce_enum(Orientation, orientation, Orientation.LENGTHWISE) == Orientation.CROSSWISE:
        return part_width_in
    return part_length_in


def calculate_parts_on_belt(
    conveyor_length_cc_in: float,
    part_length_in: float,
    part_width_in: float,
    part_spacing_in: float,
    orientation: Any,
) -> float:
    """L / (travel dimension + spacing)"""
    travel = calculate_travel_dimension(part_length_in, part_width_in, orientation)
    return _safe_div(conveyor_length_cc_in, travel + part_spacing_in)


def calculate_load_on_belt(parts_on_belt: float, part_weight_lbs: float) -> float:
    return parts_on_belt * part_weight_lbs


def calculate_bulk_mass_flow(
    bulk_input_method: Any,
    mass_flow_lbs_per_hr: Optional[float] = None,
    volume_flow_ft3_per_hr: Optional[float] = None,
    density_lbs_per_ft3: Optional[float] = None,
) -> float:
    """Mass flow in lb/hr; volume flow is converted with the bulk density."""
    method = coerce_enum(BulkInputMethod, bulk_input_method, BulkInputMethod.WEIGHT_FLOW)
    if method == BulkInputMethod.VOLUME_FLOW:
        return (volume_flow_ft3_per_hr or 0.0) * (density_lbs_per_ft3 or 0.0)
    return mass_flow_lbs_per_hr or 0.0


def calculate_bulk_load_on_belt(
    mass_flow_lbs_per_hr: float,
    conveyor_length_cc_in: float,
    belt_speed_fpm: float,
) -> float:
    """
    Bulk material on the belt at any moment.

    Formula:
        lb per foot of belt = mass_flow / (fpm · 60)
        load = lb per foot · (L / 12)
    """
    if belt_speed_fpm <= 0:
        return 0.0
    lbs_per_ft = mass_flow_lbs_per_hr / (belt_speed_fpm * 60)
    return lbs_per_ft * (conveyor_length_cc_in / 12)


def calculate_total_load(belt_weight_lbf: float, load_on_belt_lbf: float) -> float:
    return belt_weight_lbf + load_on_belt_lbf


def calculate_avg_load_per_foot(total_load_lbf: float, conveyor_length_cc_in: float) -> float:
    return _safe_div(total_load_lbf, conveyor_length_cc_in / 12)


def calculate_belt_pull(avg_load_per_ft: float, friction_coeff: float, conveyor_length_cc_in: float) -> float:
    """Legacy friction-only belt pull (kept as an output for spreadsheet parity)."""
    return avg_load_per_ft * friction_coeff * (conveyor_length_cc_in / 12)


def calculate_friction_pull(friction_coeff: float, total_load_lbf: float) -> float:
    """μ·W on the full load, regardless of incline (conservative)."""
    return friction_coeff * total_load_lbf


def calculate_incline_pull(total_load_lbf: float, incline_deg: float) -> float:
    return total_load_lbf * sin(radians(incline_deg))


def calculate_total_belt_pull(friction_pull_lb: float, incline_pull_lb: float, starting_belt_pull_lb: float) -> float:
    return friction_pull_lb + incline_pull_lb + starting_belt_pull_lb


# =============================================================================
# 5. Speed and drive
# =============================================================================

def calculate_drive_shaft_rpm(belt_speed_fpm: float, pulley_diameter_in: float) -> float:
    """fpm / (π · D/12)"""
    return _safe_div(belt_speed_fpm, pi * pulley_diameter_in / 12)


def calculate_belt_speed(drive_rpm: float, pulley_diameter_in: float) -> float:
    """rpm · π · D/12 (inverse of calculate_drive_shaft_rpm)"""
    return drive_rpm * pi * pulley_diameter_in / 12


def calculate_torque_drive_shaft(total_belt_pull_lb: float, pulley_diameter_in: float, safety_factor: float) -> float:
    return total_belt_pull_lb * (pulley_diameter_in / 2) * safety_factor


def calculate_gear_ratio(motor_rpm: float, drive_shaft_rpm: float) -> float:
    return _safe_div(motor_rpm, drive_shaft_rpm)


def calculate_chain_ratio(
    mounting_style: Any,
    gm_sprocket_teeth: Optional[int] = None,
    drive_shaft_sprocket_teeth: Optional[int] = None,
) -> float:
    """
    Chain stage between gearmotor and drive shaft.

    Bottom mount: driven / driver teeth (18T driver, 24T driven when not
    given; 1 when the driver count is not positive). Shaft mounted: 1.
    """
    style = coerce_enum(GearmotorMountingStyle, mounting_style, GearmotorMountingStyle.SHAFT_MOUNTED)
    if style != GearmotorMountingStyle.BOTTOM_MOUNT:
        return 1.0

    driver = gm_sprocket_teeth if gm_sprocket_teeth is not None else DEFAULT_GM_SPROCKET_TEETH
    driven = drive_shaft_sprocket_teeth if drive_shaft_sprocket_teeth is not None else DEFAULT_DRIVE_SHAFT_SPROCKET_TEETH
    if driver <= 0:
        return 1.0
    return driven / driver


def resolve_speed(
    inputs: Mapping[str, Any],
    drive_pulley_diameter_in: float,
) -> Tuple[SpeedMode, float, float]:
    """
    (speed mode, belt speed fpm, drive shaft rpm) from whichever is primary.

    Raises:
        ValueError: speed_mode is set to an unrecognized value
    """
    raw_mode = inputs.get("speed_mode")
    mode = coerce_enum(SpeedMode, raw_mode, SpeedMode.BELT_SPEED if raw_mode is None else None)
    if mode is None:
        raise ValueError(f"Unknown speed mode: {raw_mode}")

    if mode == SpeedMode.BELT_SPEED:
        fpm = _num(inputs, "belt_speed_fpm")
        return mode, fpm, calculate_drive_shaft_rpm(fpm, drive_pulley_diameter_in)

    rpm = _opt(inputs, "drive_rpm_input")
    if rpm is None:
        rpm = _num(inputs, "drive_rpm")
    return mode, calculate_belt_speed(rpm, drive_pulley_diameter_in), rpm


# =============================================================================
# 6. Throughput
# =============================================================================

def calculate_pitch(part_length_in: float, part_width_in: float, part_spacing_in: float, orientation: Any) -> float:
    return calculate_travel_dimension(part_length_in, part_width_in, orientation) + part_spacing_in


def calculate_capacity(belt_speed_fpm: float, pitch_in: float) -> float:
    """Parts per hour: fpm · 12 · 60 / pitch"""
    return _safe_div(belt_speed_fpm * 12 * 60, pitch_in)


def calculate_target_throughput(required_throughput_pph: float, throughput_margin_pct: float) -> float:
    return required_throughput_pph * (1 + throughput_margin_pct / 100)


def calculate_rpm_required(target_pph: float, pitch_in: float, pulley_diameter_in: float) -> float:
    """Drive RPM that reaches target_pph (capacity formula solved for rpm)."""
    return _safe_div(target_pph * pitch_in, 12 * 60 * pi * pulley_diameter_in / 12)


def calculate_margin_achieved(capacity_pph: float, required_throughput_pph: float) -> float:
    if required_throughput_pph == 0:
        return 0.0
    return (capacity_pph / required_throughput_pph - 1) * 100


# =============================================================================
# 7. Tracking and pulley face
# =============================================================================

def calculate_is_v_guided(belt_tracking_method: Any) -> bool:
    return coerce_enum(BeltTrackingMethod, belt_tracking_method) == BeltTrackingMethod.V_GUIDED


def calculate_pulley_requires_crown(is_v_guided: bool) -> bool:
    """Crowned tracking needs a crown on at least one pulley"""
    return not is_v_guided


def calculate_pulley_face_extra(is_v_guided: bool, params: Parameters) -> float:
    return params.pulley_face_extra_v_guided_in if is_v_guided else params.pulley_face_extra_crowned_in


def calculate_pulley_face_length(belt_width_in: float, pulley_face_extra_in: float) -> float:
    return belt_width_in + pulley_face_extra_in


# =============================================================================
# 8. Shafts and pulley tensions
# =============================================================================

def calculate_shaft_diameter_legacy(
    shaft_diameter_mode: Any,
    manual_diameter_in: Optional[float],
    belt_width_in: float,
) -> float:
    """
    Shaft diameter: manual value, or a width-banded placeholder.

    The calculated bands (≤18" → 1.0", ≤36" → 1.25", wider → 1.5") are a
    stand-in for a shaft selection table and are kept as-is for parity.
    """
    mode = coerce_enum(ShaftDiameterMode, shaft_diameter_mode, ShaftDiameterMode.CALCULATED)
    if mode == ShaftDiameterMode.MANUAL:
        return manual_diameter_in if manual_diameter_in is not None else SHAFT_DIAMETER_MANUAL_DEFAULT_IN

    for max_width_in, diameter_in in SHAFT_DIAMETER_BANDS_IN:
        if belt_width_in <= max_width_in:
            return diameter_in
    return SHAFT_DIAMETER_WIDE_IN


def calculate_pulley_tensions(
    effective_tension_lbf: float,
    wrap_angle_deg: float = DEFAULT_WRAP_ANGLE_DEG,
    friction_coeff: float = DEFAULT_PULLEY_FRICTION_COEFF,
) -> Tuple[float, float, float]:
    """
    Drive pulley belt tensions (Euler-Eytelwein).

    Formula:
        T1/T2 = e^(μθ),  Te = T1 − T2
        T2 = Te / (e^(μθ) − 1),  T1 = T2 · e^(μθ)
        R  = √(T1² + T2² − 2·T1·T2·cos θ)

    Returns:
        (T1 tight side, T2 slack side, R resultant shaft load), all lbf
    """
    theta = radians(wrap_angle_deg)
    ratio = exp(friction_coeff * theta)
    if effective_tension_lbf <= 0 or ratio <= 1:
        return 0.0, 0.0, 0.0

    t2 = effective_tension_lbf / (ratio - 1)
    t1 = t2 * ratio
    resultant = sqrt(max(t1 ** 2 + t2 ** 2 - 2 * t1 * t2 * cos(theta), 0.0))
    return t1, t2, resultant


# =============================================================================
# 9-10. Frame height and rollers
# =============================================================================

_CLEAT_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)")


def calculate_effective_cleat_height(
    cleats_enabled: bool,
    cleat_height_in: Optional[float] = None,
    cleat_size: Optional[str] = None,
) -> float:
    """Cleat height in inches: explicit height, else parsed from a size like '1.5"'."""
    if not cleats_enabled:
        return 0.0
    if cleat_height_in is not None and cleat_height_in > 0:
        return float(cleat_height_in)
    if cleat_size:
        match = _CLEAT_SIZE_PATTERN.match(str(cleat_size))
        if match:
            return float(match.group(1))
    return 0.0


def _frame_mode(frame_height_mode: Any) -> FrameHeightMode:
    mode = coerce_enum(
        FrameHeightMode,
        frame_height_mode,
        FrameHeightMode.STANDARD if frame_height_mode is None else None,
    )
    if mode is None:
        raise ValueError(f"Unknown frame height mode: {frame_height_mode}")
    return mode


def calculate_frame_height(
    frame_height_mode: Any,
    drive_pulley_diameter_in: float,
    tail_pulley_diameter_in: float,
    params: Parameters,
    cleat_height_in: float = 0.0,
    custom_frame_height_in: Optional[float] = None,
) -> FrameHeightBreakdown:
    """
    Build up the frame height.

    Formula:
        required  = largest pulley + 2 · cleat height + return roller allowance
        reference = required + clearance
        effective = custom value (Custom mode) else reference

    Low Profile has no return roller allowance; the belt return then runs on
    snub rollers.

    Raises:
        ValueError: frame_height_mode is not a FrameHeightMode
    """
    mode = _frame_mode(frame_height_mode)
    largest = max(drive_pulley_diameter_in, tail_pulley_diameter_in)
    cleat_adder = 2 * cleat_height_in
    return_roller = 0.0 if mode == FrameHeightMode.LOW_PROFILE else params.return_roller_diameter_in
    clearance = params.frame_clearance_in

    required = largest + (cleat_adder + return_roller)
    # Summed the same way as the snub threshold so Standard sits exactly on it
    reference = largest + (cleat_adder + return_roller + clearance)

    total = reference
    if mode == FrameHeightMode.CUSTOM and custom_frame_height_in is not None:
        total = float(custom_frame_height_in)

    formula = (
        f'Largest pulley {largest:g}" + Cleats 2 x {cleat_height_in:g}" '
        f'+ Return roller {return_roller:g}" = Required {required:g}"; '
        f'Required + clearance {clearance:g}" = Reference {reference:g}"'
    )
    if mode == FrameHeightMode.CUSTOM and custom_frame_height_in is not None:
        formula += f'; Custom {total:g}"'

    return FrameHeightBreakdown(
        largest_pulley_in=largest,
        cleat_height_in=cleat_height_in,
        cleat_adder_in=cleat_adder,
        return_roller_in=return_roller,
        required_total_in=required,
        clearance_in=clearance,
        reference_total_in=reference,
        total_in=total,
        formula=formula,
    )


def calculate_requires_snub_rollers(
    frame_height_in: float,
    drive_pulley_diameter_in: float,
    tail_pulley_diameter_in: float,
) -> bool:
    """Snubs when the frame is strictly lower than largest pulley + 2.5"."""
    largest = max(drive_pulley_diameter_in, tail_pulley_diameter_in)
    return frame_height_in < largest + SNUB_ROLLER_CLEARANCE_THRESHOLD_IN


def calculate_frame_height_cost_flags(
    frame_height_mode: Any,
    effective_frame_height_in: float,
    requires_snub_rollers: bool,
) -> Dict[str, bool]:
    mode = _frame_mode(frame_height_mode)
    return {
        "cost_flag_low_profile": mode == FrameHeightMode.LOW_PROFILE,
        "cost_flag_custom_frame": mode == FrameHeightMode.CUSTOM,
        "cost_flag_snub_rollers": requires_snub_rollers,
        "cost_flag_design_review": effective_frame_height_in < DESIGN_REVIEW_THRESHOLD_IN,
    }


def calculate_gravity_roller_quantity(
    conveyor_length_cc_in: float,
    requires_snub_rollers: bool,
    spacing_in: float = GRAVITY_ROLLER_SPACING_IN,
) -> int:
    """
    Gravity return rollers along the return path.

    positions = floor(L / spacing) + 1. Snubs take both end positions;
    without snubs there are always at least 2.
    """
    if conveyor_length_cc_in <= 0 or spacing_in <= 0:
        return 0
    positions = int(conveyor_length_cc_in // spacing_in) + 1
    if requires_snub_rollers:
        return max(positions - 2, 0)
    return max(positions, 2)


def calculate_snub_roller_quantity(requires_snub_rollers: bool) -> int:
    return SNUB_ROLLERS_PER_CONVEYOR if requires_snub_rollers else 0


# =============================================================================
# 12. Belt minimum pulley diameter
# =============================================================================

def get_cleat_spacing_multiplier(cleat_spacing_in: float) -> float:
    """
    Minimum pulley multiplier for hot-welded cleats.

    12" and wider → 1.0, 4" and closer → 1.35, linear between the
    4/6/8/12" breakpoints.
    """
    breakpoints = CLEAT_SPACING_MULTIPLIERS
    if cleat_spacing_in >= breakpoints[-1][0]:
        return breakpoints[-1][1]
    if cleat_spacing_in <= breakpoints[0][0]:
        return breakpoints[0][1]

    for (lo_in, lo_mult), (hi_in, hi_mult) in zip(breakpoints, breakpoints[1:]):
        if lo_in <= cleat_spacing_in < hi_in:
            t = (cleat_spacing_in - lo_in) / (hi_in - lo_in)
            return lo_mult + t * (hi_mult - lo_mult)
    return 1.0


def round_up_to_increment(value: float, increment: float) -> float:
    return ceil(value / increment) * increment


def calculate_min_pulley_requirements(
    is_v_guided: bool,
    belt_min_pulley_dia_no_vguide_in: Optional[float],
    belt_min_pulley_dia_with_vguide_in: Optional[float],
    cleats_enabled: bool,
    belt_cleat_method: Optional[str],
    cleat_spacing_in: Optional[float],
) -> Dict[str, Optional[float]]:
    """
    Minimum pulley diameter required by the selected belt.

    Hot-welded cleats raise the minimum by the spacing multiplier, rounded up
    to 0.25". All values are None when no belt minimum is known.
    """
    base = belt_min_pulley_dia_with_vguide_in if is_v_guided else belt_min_pulley_dia_no_vguide_in
    if base is None:
        return {"min_pulley_base_in": None, "cleat_spacing_multiplier": None, "required_in": None}

    if cleats_enabled and belt_cleat_method == "hot_welded":
        spacing = cleat_spacing_in if cleat_spacing_in is not None else DEFAULT_CLEAT_CENTERS_IN
        multiplier = get_cleat_spacing_multiplier(spacing)
        required = round_up_to_increment(base * multiplier, MIN_PULLEY_ROUNDING_INCREMENT_IN)
        return {"min_pulley_base_in": base, "cleat_spacing_multiplier": multiplier, "required_in": required}

    return {"min_pulley_base_in": base, "cleat_spacing_multiplier": None, "required_in": base}


# =============================================================================
# 13. Belt tracking recommendation
# =============================================================================

# Recommended mode and whether a margin note is shown, by band and severity
_TRACKING_MATRIX: Dict[Tuple[LwBand, DisturbanceSeverity], Tuple[TrackingMode, bool]] = {
    (LwBand.LOW, DisturbanceSeverity.MINIMAL): (TrackingMode.CROWNED, False),
    (LwBand.LOW, DisturbanceSeverity.MODERATE): (TrackingMode.CROWNED, True),
    (LwBand.LOW, DisturbanceSeverity.SIGNIFICANT): (TrackingMode.HYBRID, False),
    (LwBand.MEDIUM, DisturbanceSeverity.MINIMAL): (TrackingMode.CROWNED, True),
    (LwBand.MEDIUM, DisturbanceSeverity.MODERATE): (TrackingMode.HYBRID, False),
    (LwBand.MEDIUM, DisturbanceSeverity.SIGNIFICANT): (TrackingMode.V_GUIDED, False),
    (LwBand.HIGH, DisturbanceSeverity.MINIMAL): (TrackingMode.HYBRID, False),
    (LwBand.HIGH, DisturbanceSeverity.MODERATE): (TrackingMode.V_GUIDED, False),
    (LwBand.HIGH, DisturbanceSeverity.SIGNIFICANT): (TrackingMode.V_GUIDED, False),
}

_TRACKING_PREFERENCE_MODES = {
    TrackingPreference.PREFER_CROWNED: TrackingMode.CROWNED,
    TrackingPreference.PREFER_HYBRID: TrackingMode.HYBRID,
    TrackingPreference.PREFER_V_GUIDED: TrackingMode.V_GUIDED,
}

_TRACKING_MODE_NAMES = {
    TrackingMode.CROWNED: "Crowned pulleys",
    TrackingMode.HYBRID: "Hybrid (crowned pulleys + V-guide)",
    TrackingMode.V_GUIDED: "V-guided (flat pulleys + V-guide)",
}

_STIFF_BELT_CONSTRUCTIONS = (
    BeltConstruction.STEEL_CORD_OR_VERY_STIFF,
    BeltConstruction.PROFILED_SIDEWALL_OR_HIGH_CLEAT,
)

_SEVERITY_ORDER = (DisturbanceSeverity.MINIMAL, DisturbanceSeverity.MODERATE, DisturbanceSeverity.SIGNIFICANT)
_MODE_ORDER = (TrackingMode.CROWNED, TrackingMode.HYBRID, TrackingMode.V_GUIDED)


def calculate_lw_ratio(conveyor_length_cc_in: float, belt_width_in: float) -> Optional[float]:
    """L / W rounded to 0.1; None without a belt width."""
    if belt_width_in <= 0:
        return None
    return round(conveyor_length_cc_in / belt_width_in, 1)


def calculate_lw_band(lw_ratio: Optional[float]) -> LwBand:
    if lw_ratio is None or lw_ratio > TRACKING_LW_MEDIUM_MAX:
        return LwBand.HIGH
    if lw_ratio > TRACKING_LW_LOW_MAX:
        return LwBand.MEDIUM
    return LwBand.LOW


def has_side_loading_disturbance(inputs: Mapping[str, Any]) -> bool:
    """Explicit disturbance flag, or any side loading direction other than None."""
    if inputs.get("disturbance_side_loading"):
        return True
    direction = coerce_enum(SideLoadingDirection, inputs.get("side_loading_direction"))
    return direction is not None and direction != SideLoadingDirection.NONE


def count_disturbances(inputs: Mapping[str, Any]) -> int:
    """Reversing, side loading, load variability, environment, installation risk"""
    return sum((
        bool(inputs.get("reversing_operation")),
        has_side_loading_disturbance(inputs),
        bool(inputs.get("disturbance_load_variability")),
        bool(inputs.get("disturbance_environment")),
        bool(inputs.get("disturbance_installation_risk")),
    ))


def calculate_raw_disturbance_severity(inputs: Mapping[str, Any]) -> DisturbanceSeverity:
    """
    Significant for 3+ disturbances or reversing with side loading,
    moderate for 1-2, minimal for none.
    """
    if inputs.get("reversing_operation") and has_side_loading_disturbance(inputs):
        return DisturbanceSeverity.SIGNIFICANT
    count = count_disturbances(inputs)
    if count >= TRACKING_SIGNIFICANT_DISTURBANCE_COUNT:
        return DisturbanceSeverity.SIGNIFICANT
    if count >= 1:
        return DisturbanceSeverity.MODERATE
    return DisturbanceSeverity.MINIMAL


def _worse(severity: DisturbanceSeverity) -> DisturbanceSeverity:
    index = _SEVERITY_ORDER.index(severity)
    return _SEVERITY_ORDER[min(index + 1, len(_SEVERITY_ORDER) - 1)]


def apply_disturbance_modifiers(
    raw_severity: DisturbanceSeverity,
    application_class: Any = None,
    belt_construction: Any = None,
) -> DisturbanceSeverity:
    """Bulk handling and stiff or profiled belts each nudge severity one step worse."""
    severity = raw_severity
    if coerce_enum(ApplicationClass, application_class) == ApplicationClass.BULK_HANDLING:
        severity = _worse(severity)
    if coerce_enum(BeltConstruction, belt_construction) in _STIFF_BELT_CONSTRUCTIONS:
        severity = _worse(severity)
    return severity


def recommend_tracking_mode(band: LwBand, severity: DisturbanceSeverity) -> Tuple[TrackingMode, bool]:
    """(mode, with_note) from the band / severity matrix"""
    return _TRACKING_MATRIX[(band, severity)]


def _tracking_rationale(
    band: LwBand,
    severity: DisturbanceSeverity,
    mode: TrackingMode,
    computed_mode: TrackingMode,
    is_override: bool,
) -> str:
    if is_override and computed_mode != mode:
        return (
            f"User preference applied. {_TRACKING_MODE_NAMES[mode]} selected. System would "
            f"recommend {_TRACKING_MODE_NAMES[computed_mode]} for these conditions."
        )

    band_text = {LwBand.LOW: "favorable", LwBand.MEDIUM: "moderate", LwBand.HIGH: "high"}[band]
    if mode == TrackingMode.CROWNED:
        if severity == DisturbanceSeverity.MINIMAL:
            return f"Crowned pulleys are appropriate. L/W ratio is {band_text} and disturbance factors are minimal."
        return "Crowned pulleys are appropriate for this geometry. Selected conditions may reduce tracking margin."
    if mode == TrackingMode.HYBRID:
        return (
            "Hybrid adds tracking margin by combining crowned pulleys with a V-guide. "
            f"Recommended given {band_text} L/W ratio and selected conditions."
        )
    return (
        "V-guided provides positive belt constraint. Recommended when geometry and "
        "conditions increase tracking sensitivity."
    )


def _tracking_note(
    with_note: bool,
    mode: TrackingMode,
    computed_mode: TrackingMode,
    is_override: bool,
) -> Optional[str]:
    if is_override and computed_mode != mode:
        # Choosing more control than needed is not worth a note
        if _MODE_ORDER.index(mode) < _MODE_ORDER.index(computed_mode):
            return "Selected mode provides less tracking control than recommended. Tracking margin may be reduced."
        return None
    if with_note:
        return "Conditions may reduce tracking margin. Consider Hybrid if issues appear in service."
    return None


def calculate_tracking_recommendation(
    conveyor_length_cc_in: float,
    belt_width_in: float,
    inputs: Mapping[str, Any],
) -> Dict[str, Any]:
    """
    Recommend crowned, hybrid or V-guided tracking.

    The L/W band and the disturbance severity (after the bulk-handling and
    stiff-belt modifiers) select the mode from a fixed matrix. A tracking
    preference other than auto replaces the computed mode; the rationale
    then names both.

    Returns:
        The tracking_* output fields
    """
    lw_ratio = calculate_lw_ratio(conveyor_length_cc_in, belt_width_in)
    band = calculate_lw_band(lw_ratio)
    raw = calculate_raw_disturbance_severity(inputs)
    modified = apply_disturbance_modifiers(raw, inputs.get("application_class"), inputs.get("belt_construction"))
    computed_mode, with_note = recommend_tracking_mode(band, modified)

    preference = coerce_enum(TrackingPreference, inputs.get("tracking_preference"), TrackingPreference.AUTO)
    preferred = _TRACKING_PREFERENCE_MODES.get(preference)
    is_override = preferred is not None
    mode = preferred if is_override else computed_mode

    return {
        "tracking_lw_ratio": lw_ratio,
        "tracking_lw_band": band.value,
        "tracking_disturbance_count": count_disturbances(inputs),
        "tracking_disturbance_severity_raw": raw.value,
        "tracking_disturbance_severity_modified": modified.value,
        "tracking_mode_recommended": mode.value,
        "tracking_recommendation_note": _tracking_note(with_note, mode, computed_mode, is_override),
        "tracking_recommendation_rationale": _tracking_rationale(band, modified, mode, computed_mode, is_override),
    }


# =============================================================================
# Pipeline
# =============================================================================

def calculate(
    inputs: Mapping[str, Any],
    parameters: Optional[Parameters] = None,
    geometry: Optional[DerivedGeometry] = None,
) -> CalculationOutputs:
    """
    Run every formula in dependency order.

    Args:
        inputs: Canonical inputs (see migrate.normalize); not modified
        parameters: Engineering parameters (defaults when None)
        geometry: Already-resolved geometry; resolved here when None

    Returns:
        CalculationOutputs

    Raises:
        ValueError: an unrecognized geometry, speed or frame height mode
    """
    params = parameters or Parameters()
    if geometry is None:
        _, geometry = resolve_geometry(inputs)

    # Power-user overrides on the inputs win over parameters
    safety_factor = _num(inputs, "safety_factor", params.safety_factor)
    starting_pull_lb = _num(inputs, "starting_belt_pull_lb", params.starting_belt_pull_lb)
    friction_coeff = _num(inputs, "friction_coeff", params.friction_coeff)
    motor_rpm = _num(inputs, "motor_rpm", params.motor_rpm)

    drive_dia, tail_dia = normalize_inputs_for_calculation(inputs)

    if geometry.is_valid:
        length_in = geometry.length_cc_in
        incline_deg = geometry.incline_deg
    else:
        length_in = max(_num(inputs, "conveyor_length_cc_in"), 0.0)
        incline_deg = _num(inputs, "conveyor_incline_deg")

    belt_width_in = _num(inputs, "belt_width_in")
    is_bulk = coerce_enum(MaterialForm, inputs.get("material_form"), MaterialForm.PARTS) == MaterialForm.BULK
    orientation = inputs.get("orientation")
    part_length_in = _num(inputs, "part_length_in")
    part_width_in = _num(inputs, "part_width_in")
    part_spacing_in = _num(inputs, "part_spacing_in")

    # 1. Belt coefficients (keyed on the drive pulley)
    coeffs = calculate_effective_belt_coefficients(
        drive_dia,
        params,
        _opt(inputs, "belt_piw_override"),
        _opt(inputs, "belt_pil_override"),
        _opt(inputs, "belt_piw"),
        _opt(inputs, "belt_pil"),
        _opt(inputs, "belt_coeff_piw"),
        _opt(inputs, "belt_coeff_pil"),
    )

    # 2. Belt length
    total_belt_length_in = calculate_total_belt_length_split(length_in, drive_dia, tail_dia)

    # 5 (early). Speed is needed for the bulk load
    speed_mode, belt_speed_fpm, drive_shaft_rpm = resolve_speed(inputs, drive_dia)

    # 3. Loads
    belt_weight_lbf = calculate_belt_weight(coeffs["piw"], coeffs["pil"], belt_width_in, total_belt_length_in)
    if is_bulk:
        parts_on_belt = 0.0
        mass_flow = calculate_bulk_mass_flow(
            inputs.get("bulk_input_method"),
            _opt(inputs, "mass_flow_lbs_per_hr"),
            _opt(inputs, "volume_flow_ft3_per_hr"),
            _opt(inputs, "density_lbs_per_ft3"),
        )
        load_on_belt_lbf = calculate_bulk_load_on_belt(mass_flow, length_in, belt_speed_fpm)
    else:
        parts_on_belt = calculate_parts_on_belt(length_in, part_length_in, part_width_in, part_spacing_in, orientation)
        load_on_belt_lbf = calculate_load_on_belt(parts_on_belt, _num(inputs, "part_weight_lbs"))

    total_load_lbf = calculate_total_load(belt_weight_lbf, load_on_belt_lbf)
    avg_load_per_ft = calculate_avg_load_per_foot(total_load_lbf, length_in)
    belt_pull_calc_lb = calculate_belt_pull(avg_load_per_ft, friction_coeff, length_in)

    # 4. Pull
    friction_pull_lb = calculate_friction_pull(friction_coeff, total_load_lbf)
    incline_pull_lb = calculate_incline_pull(total_load_lbf, incline_deg)
    total_belt_pull_lb = calculate_total_belt_pull(friction_pull_lb, incline_pull_lb, starting_pull_lb)

    # 5. Drive
    torque_inlbf = calculate_torque_drive_shaft(total_belt_pull_lb, drive_dia, safety_factor)
    gear_ratio = calculate_gear_ratio(motor_rpm, drive_shaft_rpm)
    chain_ratio = calculate_chain_ratio(
        inputs.get("gearmotor_mounting_style"),
        inputs.get("gm_sprocket_teeth"),
        inputs.get("drive_shaft_sprocket_teeth"),
    )

    # 6. Throughput (discrete parts only)
    pitch_in = capacity_pph = target_pph = None
    meets_throughput = rpm_required = margin_achieved = None
    if not is_bulk:
        pitch_in = calculate_pitch(part_length_in, part_width_in, part_spacing_in, orientation)
        capacity_pph = calculate_capacity(belt_speed_fpm, pitch_in)
        required_pph = _num(inputs, "required_throughput_pph")
        if required_pph > 0:
            target_pph = calculate_target_throughput(required_pph, _num(inputs, "throughput_margin_pct"))
            meets_throughput = capacity_pph >= target_pph
            rpm_required = calculate_rpm_required(target_pph, pitch_in, drive_dia)
            margin_achieved = calculate_margin_achieved(capacity_pph, required_pph)

    # 7. Tracking
    is_v_guided = calculate_is_v_guided(inputs.get("belt_tracking_method"))
    face_extra_in = calculate_pulley_face_extra(is_v_guided, params)

    # 8. Shafts and tensions
    shaft_mode = inputs.get("shaft_diameter_mode")
    drive_shaft_in = calculate_shaft_diameter_legacy(shaft_mode, _opt(inputs, "drive_shaft_diameter_in"), belt_width_in)
    tail_shaft_in = calculate_shaft_diameter_legacy(shaft_mode, _opt(inputs, "tail_shaft_diameter_in"), belt_width_in)
    t1, t2, drive_radial = calculate_pulley_tensions(total_belt_pull_lb)
    tail_radial = 2 * t2

    # 9. Frame
    cleats_enabled = bool(inputs.get("cleats_enabled", False))
    cleat_height_in = calculate_effective_cleat_height(
        cleats_enabled, _opt(inputs, "cleat_height_in"), inputs.get("cleat_size")
    )
    frame_mode = inputs.get("frame_height_mode")
    frame = calculate_frame_height(
        frame_mode,
        drive_dia,
        tail_dia,
        params,
        cleat_height_in=cleat_height_in,
        custom_frame_height_in=_opt(inputs, "custom_frame_height_in"),
    )
    requires_snubs = calculate_requires_snub_rollers(frame.total_in, drive_dia, tail_dia)
    cost_flags = calculate_frame_height_cost_flags(frame_mode, frame.total_in, requires_snubs)

    # 10. Rollers
    gravity_rollers = calculate_gravity_roller_quantity(length_in, requires_snubs)
    snub_rollers = calculate_snub_roller_quantity(requires_snubs)

    # 11. PCI tube stress
    pci = run_pci_checks(inputs, drive_radial, tail_radial, belt_width_in)

    # 12. Belt minimum pulley
    min_pulley = calculate_min_pulley_requirements(
        is_v_guided,
        _opt(inputs, "belt_min_pulley_dia_no_vguide_in"),
        _opt(inputs, "belt_min_pulley_dia_with_vguide_in"),
        cleats_enabled,
        inputs.get("belt_cleat_method"),
        _opt(inputs, "cleat_spacing_in"),
    )
    required_min = min_pulley["required_in"]

    # 13. Tracking recommendation
    tracking = calculate_tracking_recommendation(length_in, belt_width_in, inputs)

    raw_construction = inputs.get("frame_construction_type")
    construction = coerce_enum(FrameConstructionType, raw_construction)
    logger.debug(
        f"Calculated L={length_in:.3f}in pull={total_belt_pull_lb:.2f}lb "
        f"torque={torque_inlbf:.1f}inlbf frame={frame.total_in:g}in snubs={requires_snubs}"
    )

    return CalculationOutputs(
        geometry_mode_used=geometry.mode.value,
        conveyor_length_cc_in=length_in,
        horizontal_run_in=geometry.horizontal_run_in,
        conveyor_incline_deg=incline_deg,
        rise_in=geometry.rise_in,
        tail_centerline_in=geometry.tail_centerline_in,
        drive_centerline_in=geometry.drive_centerline_in,
        parts_on_belt=parts_on_belt,
        load_on_belt_lbf=load_on_belt_lbf,
        belt_weight_lbf=belt_weight_lbf,
        total_load_lbf=total_load_lbf,
        avg_load_per_ft_lbf=avg_load_per_ft,
        total_belt_length_in=total_belt_length_in,
        piw_used=coeffs["piw"],
        pil_used=coeffs["pil"],
        belt_piw_effective=coeffs["belt_piw_effective"],
        belt_pil_effective=coeffs["belt_pil_effective"],
        friction_pull_lb=friction_pull_lb,
        incline_pull_lb=incline_pull_lb,
        starting_belt_pull_lb=starting_pull_lb,
        total_belt_pull_lb=total_belt_pull_lb,
        belt_pull_calc_lb=belt_pull_calc_lb,
        speed_mode_used=speed_mode.value,
        belt_speed_fpm=belt_speed_fpm,
        drive_shaft_rpm=drive_shaft_rpm,
        pitch_in=pitch_in,
        capacity_pph=capacity_pph,
        target_pph=target_pph,
        meets_throughput=meets_throughput,
        rpm_required_for_target=rpm_required,
        throughput_margin_achieved_pct=margin_achieved,
        torque_drive_shaft_inlbf=torque_inlbf,
        gear_ratio=gear_ratio,
        chain_ratio=chain_ratio,
        gearmotor_output_rpm=drive_shaft_rpm * chain_ratio,
        total_drive_ratio=gear_ratio * chain_ratio,
        safety_factor_used=safety_factor,
        starting_belt_pull_lb_used=starting_pull_lb,
        friction_coeff_used=friction_coeff,
        motor_rpm_used=motor_rpm,
        drive_pulley_diameter_in=drive_dia,
        tail_pulley_diameter_in=tail_dia,
        largest_pulley_diameter_in=max(drive_dia, tail_dia),
        is_v_guided=is_v_guided,
        pulley_requires_crown=calculate_pulley_requires_crown(is_v_guided),
        pulley_face_extra_in=face_extra_in,
        pulley_face_length_in=calculate_pulley_face_length(belt_width_in, face_extra_in),
        drive_shaft_diameter_in=drive_shaft_in,
        tail_shaft_diameter_in=tail_shaft_in,
        drive_pulley_t1_lbf=t1,
        drive_pulley_t2_lbf=t2,
        drive_pulley_radial_load_lbf=drive_radial,
        tail_pulley_radial_load_lbf=tail_radial,
        min_pulley_base_in=min_pulley["min_pulley_base_in"],
        cleat_spacing_multiplier=min_pulley["cleat_spacing_multiplier"],
        min_pulley_drive_required_in=required_min,
        min_pulley_tail_required_in=required_min,
        drive_pulley_meets_minimum=None if required_min is None else drive_dia >= required_min,
        tail_pulley_meets_minimum=None if required_min is None else tail_dia >= required_min,
        cleats_enabled=cleats_enabled,
        cleats_summary=build_cleats_summary(inputs),
        effective_cleat_height_in=cleat_height_in,
        frame_construction_type=construction.value if construction is not None else raw_construction,
        frame_height_breakdown=frame,
        required_frame_height_in=frame.required_total_in,
        reference_frame_height_in=frame.reference_total_in,
        clearance_for_selected_standard_in=frame.reference_total_in - frame.required_total_in,
        effective_frame_height_in=frame.total_in,
        requires_snub_rollers=requires_snubs,
        gravity_roller_quantity=gravity_rollers,
        gravity_roller_spacing_in=GRAVITY_ROLLER_SPACING_IN,
        snub_roller_quantity=snub_rollers,
        **cost_flags,
        **pci,
        **tracking,
    )
