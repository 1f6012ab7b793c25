"""
Typed records exchanged between the calculator and its callers.

Uses Pydantic for validation, enum coercion and JSON serialization.
Raw and canonical configuration inputs stay plain dicts (they are an open
mapping with many optional fields); everything the core produces is a model.
"""

from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict

from ..enums import GeometryMode


class Parameters(BaseModel):
    """
    Engineering constants applied to every calculation.

    Defaults reproduce the legacy spreadsheet. Instances are immutable;
    use `with_overrides()` for call-scoped changes.
    """
    model_config = ConfigDict(extra='ignore', frozen=True)

    friction_coeff: float = 0.25
    safety_factor: float = 2.0
    starting_belt_pull_lb: float = 75.0
    motor_rpm: float = 1750.0
    gravity_in_per_s2: float = 386.1

    # Belt weight coefficients, keyed on drive pulley diameter
    piw_2p5: float = 0.138
    piw_other: float = 0.109
    pil_2p5: float = 0.138
    pil_other: float = 0.109

    # Pulley face allowance over belt width
    pulley_face_extra_v_guided_in: float = 0.5
    pulley_face_extra_crowned_in: float = 2.0

    # Frame height allowances
    return_roller_diameter_in: float = 2.0
    frame_clearance_in: float = 0.5

    def with_overrides(self, overrides: Optional[Mapping[str, Any]] = None) -> "Parameters":
        """Return a copy with `overrides` merged in (None values are skipped)."""
        if not overrides:
            return self
        merged = self.model_dump()
        merged.update({k: v for k, v in overrides.items() if v is not None})
        return type(self).model_validate(merged)


class DerivedGeometry(BaseModel):
    """Canonical conveyor geometry, whichever mode it was entered in."""
    model_config = ConfigDict(extra='ignore')

    mode: GeometryMode = GeometryMode.L_ANGLE
    length_cc_in: float = 0.0        # Along the belt axis, pulley center to center
    horizontal_run_in: float = 0.0
    incline_deg: float = 0.0
    rise_in: float = 0.0
    tail_centerline_in: Optional[float] = None
    drive_centerline_in: Optional[float] = None
    drive_pulley_dia_in: float = 0.0
    tail_pulley_dia_in: float = 0.0
    is_valid: bool = True
    error: Optional[str] = None


class FrameHeightBreakdown(BaseModel):
    """How the frame height was built up"""
    model_config = ConfigDict(extra='ignore')

    largest_pulley_in: float
    cleat_height_in: float = 0.0
    cleat_adder_in: float = 0.0
    return_roller_in: float = 0.0
    required_total_in: float
    clearance_in: float
    reference_total_in: float
    total_in: float  # Effective frame height
    formula: str


class PciTubeStressResult(BaseModel):
    model_config = ConfigDict(extra='ignore')

    stress_psi: Optional[int] = None
    status: str
    error_message: Optional[str] = None


class CalculationOutputs(BaseModel):
    """
    Every value computed by the formula pipeline.

    Optional fields are None when the step that produces them did not apply
    (no throughput target, no belt minimum, bulk material, ...).
    """
    model_config = ConfigDict(extra='ignore')

    # Geometry
    geometry_mode_used: str
    conveyor_length_cc_in: float
    horizontal_run_in: float
    conveyor_incline_deg: float
    rise_in: float
    tail_centerline_in: Optional[float] = None
    drive_centerline_in: Optional[float] = None

    # Load and belt
    parts_on_belt: float
    load_on_belt_lbf: float
    belt_weight_lbf: float
    total_load_lbf: float
    avg_load_per_ft_lbf: float
    total_belt_length_in: float
    piw_used: float
    pil_used: float
    belt_piw_effective: float
    belt_pil_effective: float

    # Belt pull
    friction_pull_lb: float
    incline_pull_lb: float
    starting_belt_pull_lb: float
    total_belt_pull_lb: float
    belt_pull_calc_lb: float

    # Speed and throughput
    speed_mode_used: str
    belt_speed_fpm: float
    drive_shaft_rpm: float
    pitch_in: Optional[float] = None
    capacity_pph: Optional[float] = None
    target_pph: Optional[float] = None
    meets_throughput: Optional[bool] = None
    rpm_required_for_target: Optional[float] = None
    throughput_margin_achieved_pct: Optional[float] = None

    # Drive
    torque_drive_shaft_inlbf: float
    gear_ratio: float
    chain_ratio: float
    gearmotor_output_rpm: float
    total_drive_ratio: float
    safety_factor_used: float
    starting_belt_pull_lb_used: float
    friction_coeff_used: float
    motor_rpm_used: float

    # Pulleys, tracking and shafts
    drive_pulley_diameter_in: float
    tail_pulley_diameter_in: float
    largest_pulley_diameter_in: float
    is_v_guided: bool
    pulley_requires_crown: bool
    pulley_face_extra_in: float
    pulley_face_length_in: float
    drive_shaft_diameter_in: float
    tail_shaft_diameter_in: float
    drive_pulley_t1_lbf: float
    drive_pulley_t2_lbf: float
    drive_pulley_radial_load_lbf: float
    tail_pulley_radial_load_lbf: float

    # Belt minimum pulley diameter
    min_pulley_base_in: Optional[float] = None
    cleat_spacing_multiplier: Optional[float] = None
    min_pulley_drive_required_in: Optional[float] = None
    min_pulley_tail_required_in: Optional[float] = None
    drive_pulley_meets_minimum: Optional[bool] = None
    tail_pulley_meets_minimum: Optional[bool] = None

    # Cleats
    cleats_enabled: bool = False
    cleats_summary: Optional[str] = None
    effective_cleat_height_in: float = 0.0

    # Frame height
    frame_construction_type: Optional[str] = None
    frame_height_breakdown: FrameHeightBreakdown
    required_frame_height_in: float
    reference_frame_height_in: float
    clearance_for_selected_standard_in: float
    effective_frame_height_in: float
    requires_snub_rollers: bool
    cost_flag_low_profile: bool
    cost_flag_custom_frame: bool
    cost_flag_snub_rollers: bool
    cost_flag_design_review: bool

    # Rollers
    gravity_roller_quantity: int
    gravity_roller_spacing_in: float
    snub_roller_quantity: int

    # PCI tube stress
    pci_tube_stress_limit_psi: float
    pci_drive_tube_stress_psi: Optional[int] = None
    pci_tail_tube_stress_psi: Optional[int] = None
    pci_drive_tube_status: str
    pci_tail_tube_status: str
    pci_tube_stress_status: str
    pci_hub_centers_in: float
    pci_hub_centers_estimated: bool
    pci_error_message: Optional[str] = None

    # Belt tracking recommendation
    tracking_lw_ratio: Optional[float] = None  # None without a belt width
    tracking_lw_band: str
    tracking_disturbance_count: int
    tracking_disturbance_severity_raw: str
    tracking_disturbance_severity_modified: str
    tracking_mode_recommended: str  # "crowned", "hybrid", "v_guided"
    tracking_recommendation_note: Optional[str] = None
    tracking_recommendation_rationale: str


class FindingRecord(BaseModel):
    """Serialized validation finding."""
    model_config = ConfigDict(extra='ignore')

    severity: str  # "error", "warning", "info"
    code: str      # e.g. "PULLEY_DIAMETER_TOO_SMALL"
    field: Optional[str] = None
    message: str
    suggestion: Optional[str] = None


class CalculationMetadata(BaseModel):
    model_config = ConfigDict(extra='ignore', protected_namespaces=())

    model_key: str
    model_version_id: str
    calculated_at: str  # ISO-8601, UTC


class CalculationResult(BaseModel):
    """What `run_calculation()` hands back to the caller."""
    model_config = ConfigDict(extra='ignore')

    success: bool
    outputs: Optional[CalculationOutputs] = None
    errors: Optional[List[FindingRecord]] = None
    warnings: Optional[List[FindingRecord]] = None
    metadata: CalculationMetadata

