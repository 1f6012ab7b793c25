"""
Conveyor Calculator - Validation Rules

Findings are produced in a fixed order:

- required inputs for the active modes (errors)
- parameter bundle and power-user overrides (errors, some warnings)
- geometry (invalid geometry, TOB heights, angle mismatch)
- pulleys, shafts, cleats, frame, drive and support
- application and safety advisories
- PCI tube stress

Validation only reads the canonical inputs, the parameters, and (when given)
the calculated outputs and derived geometry. It never raises for bad values
and never changes its arguments, so repeated calls return identical findings.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Optional

from ..enums import (
    BeltTrackingMethod,
    BulkInputMethod,
    EndGuards,
    FluidType,
    FrameConstructionType,
    FrameHeightMode,
    GearmotorMountingStyle,
    GeometryMode,
    LacingStyle,
    MaterialForm,
    PartTemperatureClass,
    PciStatus,
    ReferenceEnd,
    ShaftDiameterMode,
    SideLoadingDirection,
    SideLoadingSeverity,
    SpeedMode,
    casters_selected,
    coerce_enum,
    is_floor_supported,
    legs_selected,
)
from ..io.models import CalculationOutputs, DerivedGeometry, Parameters
from .constants import (
    CHAIN_RATIO_MAX,
    CHAIN_RATIO_MIN,
    CLEAT_EDGE_OFFSET_MAX_IN,
    CLEAT_HEIGHT_RANGE_IN,
    CLEAT_SPACING_RANGE_IN,
    HIGH_DROP_HEIGHT_IN,
    INCLINE_ERROR_DEG,
    INCLINE_STRONG_WARNING_DEG,
    INCLINE_WARNING_DEG,
    LONG_CONVEYOR_IN,
    MIN_FRAME_HEIGHT_IN,
    MIN_PULLEY_DIAMETER_IN,
    MIN_RECOMMENDED_SPROCKET_TEETH,
    PARAMETER_FRICTION_RANGE,
    POWER_USER_RANGES,
    SHAFT_DIAMETER_MAX_IN,
    SHAFT_DIAMETER_MIN_IN,
    SHORT_CYCLE_TIME_S,
)
from .core import calculate_chain_ratio, calculate_effective_cleat_height, calculate_travel_dimension
from .geometry import ERROR_TOB_MISSING, calculate_implied_angle_from_tobs, resolve_geometry
from .migrate import has_angle_mismatch


class Severity(Enum):
    """Finding severity"""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Finding:
    """A single validation finding"""
    severity: Severity
    code: str
    message: str
    field: Optional[str] = None
    suggestion: Optional[str] = None


@dataclass
class ValidationResult:
    """All findings for one configuration"""
    valid: bool  # True if no errors
    messages: List[Finding] = field(default_factory=list)

    @property
    def errors(self) -> List[Finding]:
        return [m for m in self.messages if m.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[Finding]:
        return [m for m in self.messages if m.severity == Severity.WARNING]

    @property
    def infos(self) -> List[Finding]:
        return [m for m in self.messages if m.severity == Severity.INFO]


def _value(inputs: Mapping[str, Any], key: str) -> Optional[float]:
    value = inputs.get(key)
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _missing_or_not_positive(inputs: Mapping[str, Any], key: str) -> bool:
    value = _value(inputs, key)
    return value is None or value <= 0


def _is_negative(inputs: Mapping[str, Any], key: str) -> bool:
    value = _value(inputs, key)
    return value is not None and value < 0


def validate(
    inputs: Mapping[str, Any],
    parameters: Optional[Parameters] = None,
    outputs: Optional[CalculationOutputs] = None,
    geometry: Optional[DerivedGeometry] = None,
) -> List[Finding]:
    """
    Check a canonical configuration.

    Args:
        inputs: Canonical inputs (see migrate.normalize)
        parameters: Parameters used for the calculation (defaults when None)
        outputs: Calculated outputs; rules that need them are skipped when None
        geometry: Derived geometry; resolved here when None

    Returns:
        Findings in rule order
    """
    params = parameters or Parameters()
    if geometry is None:
        _, geometry = resolve_geometry(inputs)

    messages: List[Finding] = []
    messages.extend(_validate_required_inputs(inputs))
    messages.extend(_validate_material(inputs))
    messages.extend(_validate_parameters(params))
    messages.extend(_validate_power_user_overrides(inputs))
    messages.extend(_validate_geometry(inputs, geometry, messages))
    messages.extend(_validate_pulleys(inputs, outputs))
    messages.extend(_validate_shafts(inputs))
    messages.extend(_validate_cleats(inputs))
    messages.extend(_validate_frame(inputs, outputs))
    messages.extend(_validate_drive(inputs))
    messages.extend(_validate_support(inputs))
    messages.extend(_validate_application(inputs, geometry))
    messages.extend(_validate_features(inputs))
    messages.extend(_validate_pci(outputs))
    return messages


def validate_result(
    inputs: Mapping[str, Any],
    parameters: Optional[Parameters] = None,
    outputs: Optional[CalculationOutputs] = None,
    geometry: Optional[DerivedGeometry] = None,
) -> ValidationResult:
    """Same as validate(), wrapped in a ValidationResult."""
    messages = validate(inputs, parameters, outputs, geometry)
    has_errors = any(m.severity == Severity.ERROR for m in messages)
    return ValidationResult(valid=not has_errors, messages=messages)


# =============================================================================
# Required inputs
# =============================================================================

def _validate_required_inputs(inputs: Mapping[str, Any]) -> List[Finding]:
    """Field presence and sign checks for the active modes"""
    messages = []

    geometry_mode = coerce_enum(GeometryMode, inputs.get("geometry_mode"), GeometryMode.L_ANGLE)
    # In the horizontal-run modes the axis length is derived; geometry reports it
    if geometry_mode == GeometryMode.L_ANGLE and _missing_or_not_positive(inputs, "conveyor_length_cc_in"):
        messages.append(Finding(
            severity=Severity.ERROR,
            code="CONVEYOR_LENGTH_REQUIRED",
            field="conveyor_length_cc_in",
            message="Conveyor Length (C-C) must be greater than 0",
        ))

    if _missing_or_not_positive(inputs, "belt_width_in"):
        messages.append(Finding(
            severity=Severity.ERROR,
            code="BELT_WIDTH_REQUIRED",
            field="belt_width_in",
            message="Belt Width must be greater than 0",
        ))

    if _is_negative(inputs, "conveyor_incline_deg"):
        messages.append(Finding(
            severity=Severity.ERROR,
            code="INCLINE_NEGATIVE",
            field="conveyor_incline_deg",
            message="Incline Angle must be >= 0",
            suggestion="Declines are not supported by this model",
        ))

    for key, label in (("drive_pulley_diameter_in", "Drive"), ("tail_pulley_diameter_in", "Tail")):
        if _missing_or_not_positive(inputs, key):
            messages.append(Finding(
                severity=Severity.ERROR,
                code="PULLEY_DIAMETER_REQUIRED",
                field=key,
                message=f"{label} Pulley Diameter must be greater than 0",
            ))

    speed_mode = coerce_enum(SpeedMode, inputs.get("speed_mode"), SpeedMode.BELT_SPEED)
    if speed_mode == SpeedMode.BELT_SPEED:
        if _missing_or_not_positive(inputs, "belt_speed_fpm"):
            messages.append(Finding(
                severity=Severity.ERROR,
                code="BELT_SPEED_REQUIRED",
                field="belt_speed_fpm",
                message="Belt Speed must be greater than 0",
            ))
    else:
        rpm = _value(inputs, "drive_rpm_input")
        if rpm is None:
            rpm = _value(inputs, "drive_rpm")
        if rpm is None or rpm <= 0:
            messages.append(Finding(
                severity=Severity.ERROR,
                code="DRIVE_RPM_REQUIRED",
                field="drive_rpm_input",
                message="Drive RPM must be greater than 0",
            ))

    if _is_negative(inputs, "required_throughput_pph"):
        messages.append(Finding(
            severity=Severity.ERROR,
            code="THROUGHPUT_NEGATIVE",
            field="required_throughput_pph",
            message="Required throughput must be >= 0",
        ))
    if _is_negative(inputs, "throughput_margin_pct"):
        messages.append(Finding(
            severity=Severity.ERROR,
            code="THROUGHPUT_MARGIN_NEGATIVE",
            field="throughput_margin_pct",
            message="Throughput margin must be >= 0",
        ))
    if _is_negative(inputs, "drop_height_in"):
        messages.append(Finding(
            severity=Severity.ERROR,
            code="DROP_HEIGHT_NEGATIVE",
            field="drop_height_in",
            message="Drop height cannot be negative.",
        ))

    return messages


def _validate_material(inputs: Mapping[str, Any]) -> List[Finding]:
    """Parts need weight and size; bulk material needs a flow rate"""
    messages = []
    form = coerce_enum(MaterialForm, inputs.get("material_form"), MaterialForm.PARTS)

    if form == MaterialForm.PARTS:
        for key, label in (
            ("part_weight_lbs", "Part Weight"),
            ("part_length_in", "Part Length"),
            ("part_width_in", "Part Width"),
        ):
            if _missing_or_not_positive(inputs, key):
                messages.append(Finding(
                    severity=Severity.ERROR,
                    code=f"{key.upper()}_REQUIRED",
                    field=key,
                    message=f"{label} must be greater than 0",
                ))
        if _is_negative(inputs, "part_spacing_in"):
            messages.append(Finding(
                severity=Severity.ERROR,
                code="PART_SPACING_NEGATIVE",
                field="part_spacing_in",
                message="Part Spacing must be >= 0",
            ))
        return messages

    method = coerce_enum(BulkInputMethod, inputs.get("bulk_input_method"))
    if method is None:
        messages.append(Finding(
            severity=Severity.ERROR,
            code="BULK_METHOD_REQUIRED",
            field="bulk_input_method",
            message="Select a bulk input method (weight flow or volume flow)",
        ))
    elif method == BulkInputMethod.WEIGHT_FLOW:
        if _missing_or_not_positive(inputs, "mass_flow_lbs_per_hr"):
            messages.append(Finding(
                severity=Severity.ERROR,
                code="MASS_FLOW_REQUIRED",
                field="mass_flow_lbs_per_hr",
                message="Mass flow rate must be greater than 0",
            ))
    else:
        if _missing_or_not_positive(inputs, "volume_flow_ft3_per_hr"):
            messages.append(Finding(
                severity=Severity.ERROR,
                code="VOLUME_FLOW_REQUIRED",
                field="volume_flow_ft3_per_hr",
                message="Volume flow rate must be greater than 0",
            ))
        if _missing_or_not_positive(inputs, "density_lbs_per_ft3"):
            messages.append(Finding(
                severity=Severity.ERROR,
                code="DENSITY_REQUIRED",
                field="density_lbs_per_ft3",
                message="Material density must be greater than 0 for volume flow",
            ))

    for key in ("smallest_lump_size_in", "largest_lump_size_in"):
        if _is_negative(inputs, key):
            messages.append(Finding(
                severity=Severity.ERROR,
                code="LUMP_SIZE_NEGATIVE",
                field=key,
                message="Lump size cannot be negative",
            ))

    smallest = _value(inputs, "smallest_lump_size_in")
    largest = _value(inputs, "largest_lump_size_in")
    if smallest is not None and largest is not None and smallest > largest:
        messages.append(Finding(
            severity=Severity.ERROR,
            code="LUMP_SIZE_INVERTED",
            field="smallest_lump_size_in",
            message=f'Smallest lump size ({smallest:g}") exceeds largest lump size ({largest:g}")',
        ))

    return messages


# =============================================================================
# Parameters and overrides
# =============================================================================

def _validate_parameters(params: Parameters) -> List[Finding]:
    messages = []
    low, high = PARAMETER_FRICTION_RANGE

    if not low <= params.friction_coeff <= high:
        messages.append(Finding(
            severity=Severity.ERROR,
            code="PARAM_FRICTION_RANGE",
            field="friction_coeff",
            message=f"Friction coefficient must be between {low} and {high}",
        ))
    if params.safety_factor < 1.0:
        messages.append(Finding(
            severity=Severity.ERROR,
            code="PARAM_SAFETY_FACTOR_LOW",
            field="safety_factor",
            message="Safety factor must be >= 1.0",
        ))
    if params.starting_belt_pull_lb < 0:
        messages.append(Finding(
            severity=Severity.ERROR,
            code="PARAM_STARTING_PULL_NEGATIVE",
            field="starting_belt_pull_lb",
            message="Starting belt pull must be >= 0",
        ))
    if params.motor_rpm <= 0:
        messages.append(Finding(
            severity=Severity.ERROR,
            code="PARAM_MOTOR_RPM_INVALID",
            field="motor_rpm",
            message="Motor RPM must be greater than 0",
        ))
    if params.gravity_in_per_s2 <= 0:
        messages.append(Finding(
            severity=Severity.ERROR,
            code="PARAM_GRAVITY_INVALID",
            field="gravity_in_per_s2",
            message="Gravity constant must be greater than 0",
        ))

    return messages


def _check_range(inputs: Mapping[str, Any], key: str, label: str, code: str) -> List[Finding]:
    """Power-user override must sit inside POWER_USER_RANGES (inclusive)"""
    value = _value(inputs, key)
    if value is None:
        return []
    low, high = POWER_USER_RANGES[key]
    if value < low:
        return [Finding(
            severity=Severity.ERROR,
            code=f"{code}_LOW",
            field=key,
            message=f"{label} must be >= {low:g}",
        )]
    if value > high:
        return [Finding(
            severity=Severity.ERROR,
            code=f"{code}_HIGH",
            field=key,
            message=f"{label} must be <= {high:g}",
        )]
    return []


def _validate_power_user_overrides(inputs: Mapping[str, Any]) -> List[Finding]:
    """Per-configuration overrides of the engineering parameters"""
    messages = []
    messages.extend(_check_range(inputs, "safety_factor", "Safety factor", "SAFETY_FACTOR"))
    messages.extend(_check_range(inputs, "starting_belt_pull_lb", "Starting belt pull", "STARTING_PULL"))
    messages.extend(_check_range(inputs, "friction_coeff", "Friction coefficient", "FRICTION_COEFF"))
    messages.extend(_check_range(inputs, "motor_rpm", "Motor RPM", "MOTOR_RPM"))

    low, high = POWER_USER_RANGES["belt_coeff"]
    for key, label in (
        ("belt_coeff_piw", "Belt coefficient piw"),
        ("belt_coeff_pil", "Belt coefficient pil"),
        ("belt_piw_override", "Belt PIW override"),
        ("belt_pil_override", "Belt PIL override"),
    ):
        value = _value(inputs, key)
        if value is None:
            continue
        if value <= 0:
            messages.append(Finding(
                severity=Severity.ERROR,
                code="BELT_COEFF_NOT_POSITIVE",
                field=key,
                message=f"{label} must be > 0",
            ))
        elif not low <= value <= high:
            messages.append(Finding(
                severity=Severity.ERROR,
                code="BELT_COEFF_OUT_OF_RANGE",
                field=key,
                message=f"{label} must be between {low:.2f} and {high:.2f}",
            ))

    return messages


# =============================================================================
# Geometry
# =============================================================================

_GEOMETRY_PRIMARY_FIELD = {
    GeometryMode.L_ANGLE: "conveyor_length_cc_in",
    GeometryMode.H_ANGLE: "horizontal_run_in",
    GeometryMode.H_TOB: "horizontal_run_in",
}


def _validate_geometry(
    inputs: Mapping[str, Any],
    geometry: DerivedGeometry,
    earlier: List[Finding],
) -> List[Finding]:
    messages = []

    if not geometry.is_valid:
        primary = _GEOMETRY_PRIMARY_FIELD[geometry.mode]
        if geometry.error == ERROR_TOB_MISSING:
            primary = "tail_tob_in" if inputs.get("tail_tob_in") is None else "drive_tob_in"
        already_flagged = any(m.severity == Severity.ERROR and m.field == primary for m in earlier)
        if not already_flagged:
            messages.append(Finding(
                severity=Severity.ERROR,
                code="GEOMETRY_INVALID",
                field=primary,
                message=geometry.error or "Invalid conveyor geometry",
            ))

    for key, label in (("tail_tob_in", "Tail TOB"), ("drive_tob_in", "Drive TOB")):
        if _is_negative(inputs, key):
            messages.append(Finding(
                severity=Severity.ERROR,
                code="TOB_NEGATIVE",
                field=key,
                message=f"{label} cannot be negative",
            ))

    tail_tob = _value(inputs, "tail_tob_in")
    drive_tob = _value(inputs, "drive_tob_in")
    entered = _value(inputs, "conveyor_incline_deg")
    if (
        geometry.is_valid
        and geometry.mode != GeometryMode.H_TOB
        and tail_tob is not None
        and drive_tob is not None
        and entered is not None
    ):
        implied = calculate_implied_angle_from_tobs(
            tail_tob,
            drive_tob,
            geometry.horizontal_run_in,
            geometry.tail_pulley_dia_in,
            geometry.drive_pulley_dia_in,
        )
        if has_angle_mismatch(implied, entered):
            messages.append(Finding(
                severity=Severity.WARNING,
                code="ANGLE_MISMATCH",
                field="conveyor_incline_deg",
                message=(
                    f"Incline angle {entered:.1f}° differs from the {implied:.1f}° "
                    f"implied by the TOB heights"
                ),
                suggestion="Update the TOB heights or the incline angle so they agree",
            ))

    return messages


# =============================================================================
# Pulleys, shafts, frame
# =============================================================================

def _validate_pulleys(inputs: Mapping[str, Any], outputs: Optional[CalculationOutputs]) -> List[Finding]:
    messages = []

    for key, label in (("drive_pulley_diameter_in", "Drive"), ("tail_pulley_diameter_in", "Tail")):
        diameter = _value(inputs, key)
        if diameter is not None and 0 < diameter < MIN_PULLEY_DIAMETER_IN:
            messages.append(Finding(
                severity=Severity.ERROR,
                code="PULLEY_DIAMETER_TOO_SMALL",
                field=key,
                message=f'{label} pulley diameter {diameter:g}" is below the {MIN_PULLEY_DIAMETER_IN:g}" minimum',
            ))

    tracking = coerce_enum(BeltTrackingMethod, inputs.get("belt_tracking_method"))
    if tracking == BeltTrackingMethod.V_GUIDED and not inputs.get("v_guide_key"):
        messages.append(Finding(
            severity=Severity.ERROR,
            code="V_GUIDE_REQUIRED",
            field="v_guide_key",
            message="Select a V-guide profile for V-guided belt tracking",
        ))

    if outputs is not None and outputs.min_pulley_drive_required_in is not None:
        for label, key, meets, diameter in (
            ("Drive", "drive_pulley_diameter_in", outputs.drive_pulley_meets_minimum, outputs.drive_pulley_diameter_in),
            ("Tail", "tail_pulley_diameter_in", outputs.tail_pulley_meets_minimum, outputs.tail_pulley_diameter_in),
        ):
            if meets is False:
                messages.append(Finding(
                    severity=Severity.WARNING,
                    code="PULLEY_BELOW_BELT_MINIMUM",
                    field=key,
                    message=(
                        f'{label} pulley {diameter:g}" is below the belt minimum of '
                        f'{outputs.min_pulley_drive_required_in:g}"'
                    ),
                    suggestion="Use a larger pulley or a belt rated for smaller pulleys",
                ))

    return messages


def _validate_shafts(inputs: Mapping[str, Any]) -> List[Finding]:
    """Manual shaft diameters must be given and within bounds"""
    messages = []
    mode = coerce_enum(ShaftDiameterMode, inputs.get("shaft_diameter_mode"), ShaftDiameterMode.CALCULATED)
    if mode != ShaftDiameterMode.MANUAL:
        return messages

    for key, label in (("drive_shaft_diameter_in", "Drive"), ("tail_shaft_diameter_in", "Tail")):
        diameter = _value(inputs, key)
        if diameter is None or diameter <= 0:
            messages.append(Finding(
                severity=Severity.ERROR,
                code="SHAFT_DIAMETER_REQUIRED",
                field=key,
                message=f"{label} shaft diameter is required when Shaft Diameter Mode is Manual",
            ))
        elif not SHAFT_DIAMETER_MIN_IN <= diameter <= SHAFT_DIAMETER_MAX_IN:
            messages.append(Finding(
                severity=Severity.ERROR,
                code="SHAFT_DIAMETER_OUT_OF_RANGE",
                field=key,
                message=(
                    f'{label} shaft diameter {diameter:g}" must be between '
                    f'{SHAFT_DIAMETER_MIN_IN:g}" and {SHAFT_DIAMETER_MAX_IN:g}"'
                ),
            ))

    return messages


def _validate_cleats(inputs: Mapping[str, Any]) -> List[Finding]:
    """Cleat height, spacing and edge offset when cleats are enabled"""
    messages = []
    if not inputs.get("cleats_enabled"):
        return messages

    # A size like '3"' stands in for a missing height
    height = calculate_effective_cleat_height(True, _value(inputs, "cleat_height_in"), inputs.get("cleat_size"))
    low, high = CLEAT_HEIGHT_RANGE_IN
    if height <= 0:
        messages.append(Finding(
            severity=Severity.ERROR,
            code="CLEAT_HEIGHT_REQUIRED",
            field="cleat_height_in",
            message="Cleat height is required when cleats are enabled",
        ))
    elif not low <= height <= high:
        messages.append(Finding(
            severity=Severity.ERROR,
            code="CLEAT_HEIGHT_OUT_OF_RANGE",
            field="cleat_height_in",
            message=f'Cleat height must be between {low:g}" and {high:g}"',
        ))

    spacing = _value(inputs, "cleat_spacing_in")
    low, high = CLEAT_SPACING_RANGE_IN
    if spacing is None or spacing <= 0:
        messages.append(Finding(
            severity=Severity.ERROR,
            code="CLEAT_SPACING_REQUIRED",
            field="cleat_spacing_in",
            message="Cleat spacing is required when cleats are enabled",
        ))
    elif not low <= spacing <= high:
        messages.append(Finding(
            severity=Severity.ERROR,
            code="CLEAT_SPACING_OUT_OF_RANGE",
            field="cleat_spacing_in",
            message=f'Cleat spacing must be between {low:g}" and {high:g}"',
        ))

    offset = _value(inputs, "cleat_edge_offset_in")
    if offset is None:
        messages.append(Finding(
            severity=Severity.ERROR,
            code="CLEAT_EDGE_OFFSET_REQUIRED",
            field="cleat_edge_offset_in",
            message="Cleat edge offset is required when cleats are enabled",
        ))
    elif offset < 0:
        messages.append(Finding(
            severity=Severity.ERROR,
            code="CLEAT_EDGE_OFFSET_NEGATIVE",
            field="cleat_edge_offset_in",
            message="Cleat edge offset must be >= 0",
        ))
    elif offset > CLEAT_EDGE_OFFSET_MAX_IN:
        messages.append(Finding(
            severity=Severity.ERROR,
            code="CLEAT_EDGE_OFFSET_TOO_LARGE",
            field="cleat_edge_offset_in",
            message=f'Cleat edge offset must be <= {CLEAT_EDGE_OFFSET_MAX_IN:g}"',
        ))

    is_bulk = coerce_enum(MaterialForm, inputs.get("material_form"), MaterialForm.PARTS) == MaterialForm.BULK
    if not is_bulk and spacing is not None and spacing > 0:
        travel = calculate_travel_dimension(
            _value(inputs, "part_length_in") or 0.0,
            _value(inputs, "part_width_in") or 0.0,
            inputs.get("orientation"),
        )
        if spacing < travel:
            messages.append(Finding(
                severity=Severity.WARNING,
                code="CLEAT_SPACING_BELOW_PART",
                field="cleat_spacing_in",
                message=f'Cleat spacing {spacing:g}" is less than the part travel dimension ({travel:g}")',
                suggestion="Increase cleat spacing so each part fits between cleats",
            ))

    belt_width = _value(inputs, "belt_width_in")
    if offset is not None and offset >= 0 and belt_width and belt_width > 0 and offset > belt_width / 2:
        messages.append(Finding(
            severity=Severity.WARNING,
            code="CLEAT_EDGE_OFFSET_OVERLAP",
            field="cleat_edge_offset_in",
            message=(
                f'Cleat edge offset {offset:g}" exceeds half the belt width; '
                "offsets from both edges overlap"
            ),
        ))

    return messages


def _validate_frame(inputs: Mapping[str, Any], outputs: Optional[CalculationOutputs]) -> List[Finding]:
    messages = []
    mode = coerce_enum(FrameHeightMode, inputs.get("frame_height_mode"), FrameHeightMode.STANDARD)

    if mode == FrameHeightMode.CUSTOM:
        custom = _value(inputs, "custom_frame_height_in")
        if custom is None:
            messages.append(Finding(
                severity=Severity.ERROR,
                code="CUSTOM_FRAME_HEIGHT_REQUIRED",
                field="custom_frame_height_in",
                message="Custom frame height is required when Frame Height Mode is Custom",
            ))
        elif custom < MIN_FRAME_HEIGHT_IN:
            messages.append(Finding(
                severity=Severity.ERROR,
                code="CUSTOM_FRAME_HEIGHT_TOO_LOW",
                field="custom_frame_height_in",
                message=f'Custom frame height must be at least {MIN_FRAME_HEIGHT_IN:.1f}"',
            ))

    if mode == FrameHeightMode.LOW_PROFILE and inputs.get("cleats_enabled"):
        messages.append(Finding(
            severity=Severity.ERROR,
            code="LOW_PROFILE_WITH_CLEATS",
            field="frame_height_mode",
            message="Low Profile not compatible with cleats: cleated belts cannot run over snub rollers",
            suggestion="Use a Standard or Custom frame height, or remove the cleats",
        ))

    construction = coerce_enum(FrameConstructionType, inputs.get("frame_construction_type"))
    if construction == FrameConstructionType.SHEET_METAL and not inputs.get("frame_sheet_metal_gauge"):
        messages.append(Finding(
            severity=Severity.ERROR,
            code="SHEET_METAL_GAUGE_REQUIRED",
            field="frame_sheet_metal_gauge",
            message="Select a sheet metal gauge for a sheet metal frame",
        ))
    elif construction == FrameConstructionType.STRUCTURAL_CHANNEL and not inputs.get("frame_structural_channel_series"):
        messages.append(Finding(
            severity=Severity.ERROR,
            code="CHANNEL_SERIES_REQUIRED",
            field="frame_structural_channel_series",
            message="Select a channel series for a structural channel frame",
        ))

    if outputs is None:
        return messages

    if outputs.cost_flag_design_review:
        messages.append(Finding(
            severity=Severity.WARNING,
            code="FRAME_HEIGHT_DESIGN_REVIEW",
            field="frame_height_mode",
            message=f'Frame height {outputs.effective_frame_height_in:g}" is below 4". Design review required.',
        ))

    if outputs.requires_snub_rollers:
        messages.append(Finding(
            severity=Severity.INFO,
            code="SNUB_ROLLERS_REQUIRED",
            field="frame_height_mode",
            message=(
                f'Snub rollers will be required: frame height {outputs.effective_frame_height_in:g}" '
                f'is below largest pulley + 2.5"'
            ),
        ))

    breakdown = outputs.frame_height_breakdown
    if breakdown.cleat_adder_in > 0:
        messages.append(Finding(
            severity=Severity.INFO,
            code="CLEATS_INCREASE_FRAME_HEIGHT",
            field="frame_height_mode",
            message=(
                f'Cleats add {breakdown.cleat_adder_in:g}" to the frame height '
                f'(2 x {breakdown.cleat_height_in:g}" cleat height)'
            ),
        ))

    return messages


# =============================================================================
# Drive and support
# =============================================================================

def _validate_drive(inputs: Mapping[str, Any]) -> List[Finding]:
    """Chain stage checks for bottom-mounted gearmotors"""
    messages = []
    style = coerce_enum(
        GearmotorMountingStyle, inputs.get("gearmotor_mounting_style"), GearmotorMountingStyle.SHAFT_MOUNTED
    )
    if style != GearmotorMountingStyle.BOTTOM_MOUNT:
        return messages

    teeth_ok = True
    for key, label in (("gm_sprocket_teeth", "Gearmotor sprocket"), ("drive_shaft_sprocket_teeth", "Drive shaft sprocket")):
        teeth = _value(inputs, key)
        if teeth is None:
            continue
        if teeth <= 0:
            teeth_ok = False
            messages.append(Finding(
                severity=Severity.ERROR,
                code="SPROCKET_TEETH_INVALID",
                field=key,
                message=f"{label} teeth must be greater than 0",
            ))
        elif teeth < MIN_RECOMMENDED_SPROCKET_TEETH:
            messages.append(Finding(
                severity=Severity.WARNING,
                code="SPROCKET_TEETH_LOW",
                field=key,
                message=(
                    f"{label} has {teeth:g} teeth; sprockets under "
                    f"{MIN_RECOMMENDED_SPROCKET_TEETH} teeth wear quickly"
                ),
            ))

    if teeth_ok:
        ratio = calculate_chain_ratio(style, inputs.get("gm_sprocket_teeth"), inputs.get("drive_shaft_sprocket_teeth"))
        if ratio > CHAIN_RATIO_MAX or ratio < CHAIN_RATIO_MIN:
            messages.append(Finding(
                severity=Severity.WARNING,
                code="CHAIN_RATIO_OUT_OF_RANGE",
                field="drive_shaft_sprocket_teeth",
                message=(
                    f"Drive chain ratio {ratio:.2f} is outside the recommended "
                    f"{CHAIN_RATIO_MIN:g}-{CHAIN_RATIO_MAX:g} range; check chain ratio and sprocket selection"
                ),
            ))

    return messages


def _validate_support(inputs: Mapping[str, Any]) -> List[Finding]:
    """Floor supports need a reference height and hardware selections"""
    messages = []
    if not is_floor_supported(inputs.get("support_method")):
        return messages

    reference = coerce_enum(ReferenceEnd, inputs.get("reference_end"), ReferenceEnd.TAIL)
    tob_key = "tail_tob_in" if reference == ReferenceEnd.TAIL else "drive_tob_in"
    if inputs.get(tob_key) is None:
        label = "Tail" if reference == ReferenceEnd.TAIL else "Drive"
        messages.append(Finding(
            severity=Severity.ERROR,
            code="REFERENCE_TOB_REQUIRED",
            field=tob_key,
            message=f"{label} TOB height is required for a floor-supported conveyor",
        ))

    if legs_selected(inputs) and not inputs.get("leg_model_key"):
        messages.append(Finding(
            severity=Severity.ERROR,
            code="LEG_MODEL_REQUIRED",
            field="leg_model_key",
            message="Select a leg model when legs are included",
        ))

    if casters_selected(inputs):
        rigid = _value(inputs, "caster_rigid_qty") or 0
        swivel = _value(inputs, "caster_swivel_qty") or 0
        if rigid + swivel <= 0:
            messages.append(Finding(
                severity=Severity.ERROR,
                code="CASTER_QTY_REQUIRED",
                field="caster_rigid_qty",
                message="At least one caster is required when casters are included",
            ))
        if rigid > 0 and not inputs.get("caster_rigid_model_key"):
            messages.append(Finding(
                severity=Severity.ERROR,
                code="CASTER_MODEL_REQUIRED",
                field="caster_rigid_model_key",
                message="Select a rigid caster model",
            ))
        if swivel > 0 and not inputs.get("caster_swivel_model_key"):
            messages.append(Finding(
                severity=Severity.ERROR,
                code="CASTER_MODEL_REQUIRED",
                field="caster_swivel_model_key",
                message="Select a swivel caster model",
            ))

    return messages


# =============================================================================
# Application and features
# =============================================================================

def _validate_application(inputs: Mapping[str, Any], geometry: DerivedGeometry) -> List[Finding]:
    """Temperature, fluids, length, drop height and incline limits"""
    messages = []

    temperature = coerce_enum(PartTemperatureClass, inputs.get("part_temperature_class"))
    fluid = coerce_enum(FluidType, inputs.get("fluid_type"))

    if temperature == PartTemperatureClass.RED_HOT:
        messages.append(Finding(
            severity=Severity.ERROR,
            code="RED_HOT_PARTS",
            field="part_temperature_class",
            message="Do not use sliderbed conveyor for red hot parts",
        ))
    if fluid == FluidType.CONSIDERABLE_OIL_LIQUID:
        messages.append(Finding(
            severity=Severity.WARNING,
            code="CONSIDERABLE_OIL",
            field="fluid_type",
            message="Consider ribbed or specialty belt",
        ))

    length = geometry.length_cc_in if geometry.is_valid else (_value(inputs, "conveyor_length_cc_in") or 0.0)
    if length > LONG_CONVEYOR_IN:
        messages.append(Finding(
            severity=Severity.WARNING,
            code="LONG_CONVEYOR",
            field="conveyor_length_cc_in",
            message="Consider multi-section body",
        ))
    if temperature == PartTemperatureClass.HOT:
        messages.append(Finding(
            severity=Severity.WARNING,
            code="HOT_PARTS",
            field="part_temperature_class",
            message="Consider high-temperature belt",
        ))
    if fluid == FluidType.MINIMAL_RESIDUAL_OIL:
        messages.append(Finding(
            severity=Severity.INFO,
            code="MINIMAL_OIL",
            field="fluid_type",
            message="Minimal residual oil present",
        ))

    drop_height = _value(inputs, "drop_height_in")
    if drop_height is not None and drop_height >= HIGH_DROP_HEIGHT_IN:
        messages.append(Finding(
            severity=Severity.WARNING,
            code="HIGH_DROP_HEIGHT",
            field="drop_height_in",
            message="Drop height is high. Consider impact or wear protection.",
        ))

    incline = geometry.incline_deg if geometry.is_valid else (_value(inputs, "conveyor_incline_deg") or 0.0)
    if incline > INCLINE_ERROR_DEG:
        messages.append(Finding(
            severity=Severity.ERROR,
            code="INCLINE_TOO_STEEP",
            field="conveyor_incline_deg",
            message=(
                "Incline exceeds 45°. Sliderbed conveyor without positive engagement "
                "is not supported by this model."
            ),
        ))
    elif incline > INCLINE_STRONG_WARNING_DEG:
        messages.append(Finding(
            severity=Severity.WARNING,
            code="INCLINE_VERY_STEEP",
            field="conveyor_incline_deg",
            message=(
                "Incline exceeds 35°. Product retention by friction alone is unlikely. "
                "Cleats or positive engagement features are required for reliable operation."
            ),
        ))
    elif incline > INCLINE_WARNING_DEG:
        messages.append(Finding(
            severity=Severity.WARNING,
            code="INCLINE_STEEP",
            field="conveyor_incline_deg",
            message=(
                "Incline exceeds 20°. Product retention by friction alone may be insufficient. "
                "Cleats or other retention features are typically required at this angle."
            ),
        ))

    return messages


def _validate_features(inputs: Mapping[str, Any]) -> List[Finding]:
    messages = []

    if inputs.get("finger_safe"):
        if coerce_enum(EndGuards, inputs.get("end_guards")) == EndGuards.NONE:
            messages.append(Finding(
                severity=Severity.WARNING,
                code="FINGER_SAFE_NO_END_GUARDS",
                field="end_guards",
                message="Finger safety may require end guards depending on layout.",
            ))
        if not inputs.get("bottom_covers"):
            messages.append(Finding(
                severity=Severity.WARNING,
                code="FINGER_SAFE_NO_BOTTOM_COVERS",
                field="bottom_covers",
                message="Bottom covers may be required to achieve finger-safe access underneath.",
            ))

    if coerce_enum(LacingStyle, inputs.get("lacing_style")) == LacingStyle.CLIPPER_LACING:
        messages.append(Finding(
            severity=Severity.WARNING,
            code="CLIPPER_LACING",
            field="lacing_style",
            message="Clipper lacing may interfere with end guards due to protrusion.",
        ))

    cycle_time = _value(inputs, "cycle_time_seconds")
    if inputs.get("start_stop_application") and cycle_time is not None and cycle_time < SHORT_CYCLE_TIME_S:
        messages.append(Finding(
            severity=Severity.WARNING,
            code="SHORT_CYCLE_START_STOP",
            field="cycle_time_seconds",
            message="Frequent start/stop applications may require a higher-duty gearbox.",
        ))

    direction = coerce_enum(SideLoadingDirection, inputs.get("side_loading_direction"))
    severity = coerce_enum(SideLoadingSeverity, inputs.get("side_loading_severity"))
    if direction != SideLoadingDirection.NONE:
        if severity == SideLoadingSeverity.HEAVY:
            if coerce_enum(BeltTrackingMethod, inputs.get("belt_tracking_method")) != BeltTrackingMethod.V_GUIDED:
                messages.append(Finding(
                    severity=Severity.ERROR,
                    code="HEAVY_SIDE_LOADING_REQUIRES_V_GUIDE",
                    field="belt_tracking_method",
                    message="Heavy side loading requires V-guided tracking. Change tracking method to V-guided.",
                ))
            messages.append(Finding(
                severity=Severity.WARNING,
                code="HEAVY_SIDE_LOADING",
                field="side_loading_severity",
                message="Heavy side loading typically requires a V-guide for reliable tracking.",
            ))
        elif severity == SideLoadingSeverity.MODERATE:
            messages.append(Finding(
                severity=Severity.WARNING,
                code="MODERATE_SIDE_LOADING",
                field="side_loading_severity",
                message="Moderate side loading may require a V-guide for reliable tracking.",
            ))

    return messages


# =============================================================================
# PCI tube stress
# =============================================================================

def _validate_pci(outputs: Optional[CalculationOutputs]) -> List[Finding]:
    messages = []
    if outputs is None:
        return messages

    limit = outputs.pci_tube_stress_limit_psi
    for label, prefix, status, stress in (
        ("Drive", "drive", outputs.pci_drive_tube_status, outputs.pci_drive_tube_stress_psi),
        ("Tail", "tail", outputs.pci_tail_tube_status, outputs.pci_tail_tube_stress_psi),
    ):
        state = coerce_enum(PciStatus, status)
        if state == PciStatus.ERROR:
            messages.append(Finding(
                severity=Severity.ERROR,
                code="PCI_TUBE_GEOMETRY_INVALID",
                field=f"{prefix}_tube_wall_in",
                message=outputs.pci_error_message or f"{label} pulley tube geometry is invalid",
            ))
        elif state in (PciStatus.FAIL, PciStatus.WARN):
            messages.append(Finding(
                severity=Severity.ERROR if state == PciStatus.FAIL else Severity.WARNING,
                code="PCI_TUBE_STRESS_EXCEEDED",
                field=f"{prefix}_tube_od_in",
                message=f"{label} pulley tube stress {stress} psi exceeds the PCI limit of {limit:g} psi",
                suggestion="Use a heavier tube wall, a larger tube or closer hub centers",
            ))

    if outputs.pci_hub_centers_estimated and PciStatus.ESTIMATED.value in (
        outputs.pci_drive_tube_status,
        outputs.pci_tail_tube_status,
    ):
        messages.append(Finding(
            severity=Severity.INFO,
            code="PCI_HUB_CENTERS_ESTIMATED",
            field="hub_centers_in",
            message=(
                f'Tube stress uses hub centers estimated from belt width '
                f'({outputs.pci_hub_centers_in:g}"); enter hub centers for a firm result'
            ),
        ))

    return messages
