"""
Conveyor Calculator - Input Migration / Normalization

Saved configurations span many schema revisions. `normalize()` upgrades any of
them (or a partially filled new one) into canonical form:

- every field the active modes need is present
- legacy fields are translated and then removed
- fields the active modes do not use are deleted, not just ignored, so stale
  values can never reach validation looking like user input

The pipeline is a fixed sequence of pure steps. Each step only acts when its
target fields are missing or non-canonical, so each step is idempotent and
normalize(normalize(x)) == normalize(x). Nothing here raises for bad data;
validation reports it.

The "DEPRECATED" helpers at the bottom of this module are kept for old callers
only. They are wrong for inclined conveyors and nothing in the calculation
pipeline uses them; use geometry.py instead.
"""

import logging
from math import atan, degrees, radians, tan
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from ..enums import (
    EndSupportType,
    FluidType,
    FrameConstructionType,
    GeometryMode,
    MaterialForm,
    ReferenceEnd,
    SpeedMode,
    SupportMethod,
    SupportOption,
    casters_selected,
    coerce_enum,
    is_floor_supported,
    legs_selected,
)
from .constants import ANGLE_MISMATCH_TOLERANCE_DEG, DEFAULT_CLEAT_CENTERS_IN, DEFAULT_PULLEY_DIAMETER_IN
from .geometry import horizontal_from_axis

logger = logging.getLogger(__name__)

Inputs = Dict[str, Any]

# Every cleat sub-field; all are removed when cleats are disabled
CLEAT_FIELDS: Tuple[str, ...] = (
    "cleat_height_in",
    "cleat_spacing_in",
    "cleat_edge_offset_in",
    "cleat_profile",
    "cleat_size",
    "cleat_pattern",
    "cleat_style",
    "cleat_centers_in",
    "cleat_material_family",
)

LEG_FIELDS: Tuple[str, ...] = ("leg_model_key",)

CASTER_FIELDS: Tuple[str, ...] = (
    "caster_rigid_qty",
    "caster_rigid_model_key",
    "caster_swivel_qty",
    "caster_swivel_model_key",
)

TOB_FIELDS: Tuple[str, ...] = ("tail_tob_in", "drive_tob_in", "reference_end")

LEGACY_SUPPORT_FIELDS: Tuple[str, ...] = (
    "support_option",
    "tail_support_type",
    "drive_support_type",
    "height_input_mode",
)

DEFAULT_SHEET_METAL_GAUGE = "12_GA"
DEFAULT_CHANNEL_SERIES = "C4"

# Legacy support selection → (support method, legs, casters)
SUPPORT_OPTION_MAP: Dict[str, Tuple[SupportMethod, bool, bool]] = {
    SupportOption.FLOOR_MOUNTED.value: (SupportMethod.FLOOR_SUPPORTED, True, False),
    SupportOption.SUSPENDED.value: (SupportMethod.EXTERNAL, False, False),
    SupportOption.INTEGRATED_FRAME.value: (SupportMethod.EXTERNAL, False, False),
    "Casters": (SupportMethod.FLOOR_SUPPORTED, False, True),
}

# Short fluid values written by the first schema revision
LEGACY_FLUID_TYPES: Dict[str, str] = {
    "CONSIDERABLE": FluidType.CONSIDERABLE_OIL_LIQUID.value,
    "MINIMAL": FluidType.MINIMAL_RESIDUAL_OIL.value,
}

# Used for unknown legacy values: never invents floor hardware or TOB requirements
SAFEST_SUPPORT: Tuple[SupportMethod, bool, bool] = (SupportMethod.EXTERNAL, False, False)


def _is_positive(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def _as_float(value: Any, default: float) -> Optional[float]:
    """Numeric value or numeric string as a float; None when it cannot be read."""
    if value is None:
        return default
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


# =============================================================================
# Steps
# =============================================================================

def rename_legacy_fields(inputs: Mapping[str, Any]) -> Inputs:
    """conveyor_width_in was renamed belt_width_in; short fluid values were spelled out."""
    out = dict(inputs)
    fluid = out.get("fluid_type")
    if isinstance(fluid, str) and fluid.strip().upper() in LEGACY_FLUID_TYPES:
        out["fluid_type"] = LEGACY_FLUID_TYPES[fluid.strip().upper()]
    if out.get("belt_width_in") is None and out.get("conveyor_width_in") is not None:
        out["belt_width_in"] = out["conveyor_width_in"]
    out.pop("conveyor_width_in", None)
    return out


def migrate_pulley_diameters(inputs: Mapping[str, Any]) -> Inputs:
    """
    Give both pulleys an explicit diameter.

    With neither given, both come from the legacy single pulley_diameter_in
    (or 4" when that is missing too). With one given, the other copies it.
    Pairs filled from a single value are marked pulley_diameters_linked.
    """
    out = dict(inputs)
    drive = out.get("drive_pulley_diameter_in")
    tail = out.get("tail_pulley_diameter_in")
    has_drive = _is_positive(drive)
    has_tail = _is_positive(tail)

    if not has_drive and not has_tail:
        legacy = out.get("pulley_diameter_in")
        diameter = legacy if _is_positive(legacy) else DEFAULT_PULLEY_DIAMETER_IN
        out["drive_pulley_diameter_in"] = diameter
        out["tail_pulley_diameter_in"] = diameter
        out["pulley_diameters_linked"] = True
        logger.debug(f"Pulley diameters defaulted to {diameter}")
    elif has_drive and not has_tail:
        out["tail_pulley_diameter_in"] = drive
        out["pulley_diameters_linked"] = True
    elif has_tail and not has_drive:
        out["drive_pulley_diameter_in"] = tail
        out["pulley_diameters_linked"] = True
    elif "pulley_diameters_linked" not in out:
        out["pulley_diameters_linked"] = False

    out.pop("tail_matches_drive", None)
    # Legacy single diameter mirrors the drive pulley
    out["pulley_diameter_in"] = out["drive_pulley_diameter_in"]
    return out


def migrate_cleats(inputs: Mapping[str, Any]) -> Inputs:
    """
    Cleats default to disabled; cleats_mode and cleats_enabled stay in sync
    (an explicit cleats_mode wins). Disabled cleats lose every sub-field.
    """
    out = dict(inputs)
    mode = out.get("cleats_mode")
    if mode == "cleated":
        enabled = True
    elif mode == "none":
        enabled = False
    else:
        enabled = bool(out.get("cleats_enabled", False))

    out["cleats_enabled"] = enabled
    out["cleats_mode"] = "cleated" if enabled else "none"

    if enabled:
        if out.get("cleat_material_family") is None:
            out["cleat_material_family"] = "PVC_HOT_WELDED"
        if out.get("cleat_style") is None:
            out["cleat_style"] = "SOLID"
        if out.get("cleat_centers_in") is None:
            out["cleat_centers_in"] = DEFAULT_CLEAT_CENTERS_IN
        if out.get("cleat_pattern") is None:
            out["cleat_pattern"] = "STRAIGHT_CROSS"
    else:
        for name in CLEAT_FIELDS:
            out.pop(name, None)
    return out


def _support_from_legacy(inputs: Mapping[str, Any]) -> Tuple[SupportMethod, bool, bool]:
    option = inputs.get("support_option")
    if option is not None:
        option_key = option.value if isinstance(option, SupportOption) else option
        mapped = SUPPORT_OPTION_MAP.get(option_key)
        if mapped is None:
            logger.warning(f"Unknown legacy support_option {option!r}; using external support")
            return SAFEST_SUPPORT
        return mapped

    raw_ends = [inputs.get("tail_support_type"), inputs.get("drive_support_type")]
    if all(end is None for end in raw_ends):
        return SAFEST_SUPPORT

    ends = [coerce_enum(EndSupportType, end) for end in raw_ends if end is not None]
    if len(ends) != len([end for end in raw_ends if end is not None]) or None in ends:
        logger.warning(f"Unknown legacy end support types {raw_ends!r}; using external support")
        return SAFEST_SUPPORT

    legs = EndSupportType.LEGS in ends
    casters = EndSupportType.CASTERS in ends
    if legs or casters:
        return SupportMethod.FLOOR_SUPPORTED, legs, casters
    return SAFEST_SUPPORT


def migrate_support(inputs: Mapping[str, Any]) -> Inputs:
    """
    Translate legacy support selections to support_method + include flags.

    The legacy "legs" and "casters" methods become floor_supported with the
    matching include flag. Legacy support fields are then deleted.
    """
    out = dict(inputs)
    raw_method = out.get("support_method")
    method = coerce_enum(SupportMethod, raw_method)

    if method is None:
        if raw_method is not None:
            logger.warning(f"Unknown support_method {raw_method!r}; using external support")
            method, legs, casters = SAFEST_SUPPORT
        else:
            method, legs, casters = _support_from_legacy(out)
        if legs:
            out["include_legs"] = True
        if casters:
            out["include_casters"] = True
    elif method == SupportMethod.LEGS:
        method = SupportMethod.FLOOR_SUPPORTED
        out["include_legs"] = True
    elif method == SupportMethod.CASTERS:
        method = SupportMethod.FLOOR_SUPPORTED
        out["include_casters"] = True

    out["support_method"] = method.value
    out["include_legs"] = bool(out.get("include_legs", False))
    out["include_casters"] = bool(out.get("include_casters", False))

    for name in LEGACY_SUPPORT_FIELDS:
        out.pop(name, None)
    return out


def strip_inactive_fields(inputs: Mapping[str, Any]) -> Inputs:
    """
    Delete fields whose governing mode is off.

    TOB heights (and the reference end) only exist for floor-supported
    conveyors or when they ARE the geometry input (H_TOB mode). Leg and
    caster details only exist when legs / casters are included.
    """
    out = dict(inputs)
    floor = is_floor_supported(out.get("support_method"))
    tob_geometry = coerce_enum(GeometryMode, out.get("geometry_mode")) == GeometryMode.H_TOB

    if not floor:
        out["include_legs"] = False
        out["include_casters"] = False
        if not tob_geometry:
            for name in TOB_FIELDS:
                out.pop(name, None)

    if not legs_selected(out):
        for name in LEG_FIELDS:
            out.pop(name, None)
    if not casters_selected(out):
        for name in CASTER_FIELDS:
            out.pop(name, None)

    if floor and out.get("reference_end") is None:
        out["reference_end"] = ReferenceEnd.TAIL.value
    return out


def migrate_speed_mode(inputs: Mapping[str, Any]) -> Inputs:
    """
    Infer speed_mode for configurations saved before it existed.

    A legacy drive_rpm > 0 means the drive RPM was the primary input; it is
    copied into drive_rpm_input. Otherwise belt speed is primary. In drive_rpm
    mode the legacy drive_rpm field mirrors drive_rpm_input.
    """
    out = dict(inputs)
    raw_mode = out.get("speed_mode")

    if raw_mode is None:
        legacy_rpm = out.get("drive_rpm")
        if _is_positive(legacy_rpm):
            out["speed_mode"] = SpeedMode.DRIVE_RPM.value
            out["drive_rpm_input"] = legacy_rpm
        else:
            out["speed_mode"] = SpeedMode.BELT_SPEED.value
    else:
        mode = coerce_enum(SpeedMode, raw_mode)
        if mode is not None:
            out["speed_mode"] = mode.value

    if out["speed_mode"] == SpeedMode.DRIVE_RPM.value and out.get("drive_rpm_input") is not None:
        out["drive_rpm"] = out["drive_rpm_input"]
    return out


def migrate_geometry_mode(inputs: Mapping[str, Any]) -> Inputs:
    """Default to length + angle and fill in the horizontal run."""
    out = dict(inputs)
    raw_mode = out.get("geometry_mode")
    if raw_mode is None:
        out["geometry_mode"] = GeometryMode.L_ANGLE.value
    else:
        mode = coerce_enum(GeometryMode, raw_mode)
        if mode is not None:
            out["geometry_mode"] = mode.value

    if out.get("horizontal_run_in") is None:
        length = out.get("conveyor_length_cc_in")
        if _is_positive(length):
            angle = _as_float(out.get("conveyor_incline_deg"), 0.0)
            # Unreadable angles are left for validation to report
            if angle is not None:
                out["horizontal_run_in"] = horizontal_from_axis(length, angle)
    return out


def migrate_frame_construction(inputs: Mapping[str, Any]) -> Inputs:
    """
    Default to a 12 gauge sheet metal frame; keep only the sub-field that
    belongs to the construction type.
    """
    out = dict(inputs)
    raw_type = out.get("frame_construction_type")
    construction = coerce_enum(
        FrameConstructionType,
        raw_type,
        FrameConstructionType.SHEET_METAL if raw_type is None else None,
    )
    if construction is None:
        logger.warning(f"Unknown frame_construction_type {raw_type!r}; left unchanged")
        return out

    out["frame_construction_type"] = construction.value
    if construction == FrameConstructionType.SHEET_METAL:
        if out.get("frame_sheet_metal_gauge") is None:
            out["frame_sheet_metal_gauge"] = DEFAULT_SHEET_METAL_GAUGE
        out.pop("frame_structural_channel_series", None)
    elif construction == FrameConstructionType.STRUCTURAL_CHANNEL:
        if out.get("frame_structural_channel_series") is None:
            out["frame_structural_channel_series"] = DEFAULT_CHANNEL_SERIES
        out.pop("frame_sheet_metal_gauge", None)
    else:
        out.pop("frame_sheet_metal_gauge", None)
        out.pop("frame_structural_channel_series", None)
    return out


def migrate_material_form(inputs: Mapping[str, Any]) -> Inputs:
    """Configurations from before bulk material support describe parts."""
    out = dict(inputs)
    form = coerce_enum(MaterialForm, out.get("material_form"))
    if out.get("material_form") is None:
        form = MaterialForm.PARTS
    if form is not None:
        out["material_form"] = form.value
    return out


MIGRATION_STEPS: Tuple[Callable[[Mapping[str, Any]], Inputs], ...] = (
    rename_legacy_fields,
    migrate_pulley_diameters,
    migrate_cleats,
    migrate_support,
    strip_inactive_fields,
    migrate_speed_mode,
    migrate_geometry_mode,
    migrate_frame_construction,
    migrate_material_form,
)


def normalize(raw: Optional[Mapping[str, Any]]) -> Inputs:
    """
    Upgrade raw or legacy inputs to canonical form.

    Args:
        raw: Configuration mapping (may be partial or legacy shaped); not modified

    Returns:
        New canonical dict. Never raises for bad values; they are left for
        validation to report.
    """
    result: Inputs = dict(raw or {})
    for step in MIGRATION_STEPS:
        result = step(result)
    return result


# Legacy name
migrate_inputs = normalize


# =============================================================================
# Helpers used by the pipeline
# =============================================================================

def normalize_inputs_for_calculation(inputs: Mapping[str, Any]) -> Tuple[float, float]:
    """
    Effective (drive, tail) pulley diameters.

    Catalog keys cannot be resolved by this core; a supplied key is logged and
    the entered diameter is used.
    """
    migrated = normalize(inputs)
    for key in ("head_pulley_catalog_key", "tail_pulley_catalog_key"):
        if migrated.get(key):
            logger.warning(f"Pulley catalog key {migrated[key]!r} not resolvable here; using entered diameter")

    drive = float(migrated["drive_pulley_diameter_in"])
    tail = migrated.get("tail_pulley_diameter_in")
    return drive, float(tail) if tail is not None else drive


def _fmt(value: Any) -> str:
    return f"{value:g}" if isinstance(value, (int, float)) else str(value)


def build_cleats_summary(inputs: Mapping[str, Any]) -> Optional[str]:
    """One-line cleat description, or None when cleats are off."""
    if not inputs.get("cleats_enabled"):
        return None

    profile = inputs.get("cleat_profile")
    size = inputs.get("cleat_size")
    pattern = inputs.get("cleat_pattern")
    if profile and size and pattern:
        style = " (D&S)" if inputs.get("cleat_style") == "DRILL_SIPED_1IN" else ""
        centers = inputs.get("cleat_centers_in")
        if centers is None:
            centers = DEFAULT_CLEAT_CENTERS_IN
        return f'{profile} {size} {pattern}{style} @ {_fmt(centers)}" c/c'

    height = inputs.get("cleat_height_in")
    spacing = inputs.get("cleat_spacing_in")
    offset = inputs.get("cleat_edge_offset_in")
    if height is None or spacing is None or offset is None:
        return "Cleats: Configuration incomplete"
    return f'Cleats: {_fmt(height)}" high @ {_fmt(spacing)}" c/c, {_fmt(offset)}" from belt edge'


def has_angle_mismatch(
    implied_angle_deg: float,
    entered_angle_deg: float,
    tolerance_deg: float = ANGLE_MISMATCH_TOLERANCE_DEG,
) -> bool:
    return abs(implied_angle_deg - entered_angle_deg) > tolerance_deg


# =============================================================================
# DEPRECATED legacy geometry helpers
# =============================================================================
#
# **KNOWN INCORRECT FOR INCLINED CONVEYORS.** Both treat the axis length as if
# it were the horizontal run and ignore pulley diameters (TOB vs centerline).
# Kept only so old callers keep getting the numbers they always got. Do not
# call them from new code; use geometry.calculate_implied_angle_from_tobs and
# geometry.calculate_opposite_tob_from_angle.

def calculate_implied_angle_deg(tail_tob_in: float, drive_tob_in: float, conveyor_length_cc_in: float) -> float:
    """DEPRECATED: atan(TOB difference / axis length). Wrong when inclined."""
    if conveyor_length_cc_in <= 0:
        return 0.0
    return degrees(atan((drive_tob_in - tail_tob_in) / conveyor_length_cc_in))


def calculate_opposite_tob(
    reference_tob_in: float,
    angle_deg: float,
    conveyor_length_cc_in: float,
    reference_end: Any = ReferenceEnd.TAIL,
) -> float:
    """DEPRECATED: reference TOB ± tan(angle) · axis length. Wrong when inclined."""
    rise = tan(radians(angle_deg)) * conveyor_length_cc_in
    end = coerce_enum(ReferenceEnd, reference_end, ReferenceEnd.TAIL)
    if end == ReferenceEnd.TAIL:
        return reference_tob_in + rise
    return reference_tob_in - rise
