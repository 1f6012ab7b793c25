"""Type-safe enums for the conveyor calculator.

Values are the strings persisted in saved configurations, so they must never
be renamed. Legacy values are kept as members where old configurations still
carry them; the normalizer rewrites them to their current equivalents.
"""

from enum import Enum
from typing import Any, Mapping, Optional, Type, TypeVar

E = TypeVar("E", bound=Enum)


class GeometryMode(Enum):
    """Which pair of geometry fields the user entered"""
    L_ANGLE = "L_ANGLE"  # Axis length + incline angle
    H_ANGLE = "H_ANGLE"  # Horizontal run + incline angle
    H_TOB = "H_TOB"      # Horizontal run + both top-of-belt heights


class SpeedMode(Enum):
    """Primary speed input"""
    BELT_SPEED = "belt_speed"
    DRIVE_RPM = "drive_rpm"


class FrameHeightMode(Enum):
    STANDARD = "Standard"
    LOW_PROFILE = "Low Profile"
    CUSTOM = "Custom"


class BeltTrackingMethod(Enum):
    V_GUIDED = "V-guided"
    CROWNED = "Crowned"


class ShaftDiameterMode(Enum):
    CALCULATED = "Calculated"
    MANUAL = "Manual"


class SupportMethod(Enum):
    """How the conveyor is held up.

    LEGS and CASTERS are legacy values from before legs and casters became
    independent options of FLOOR_SUPPORTED.
    """
    EXTERNAL = "external"
    FLOOR_SUPPORTED = "floor_supported"
    LEGS = "legs"
    CASTERS = "casters"


class EndSupportType(Enum):
    """Legacy per-end support selection"""
    LEGS = "Legs"
    EXTERNAL = "External"
    CASTERS = "Casters"


class SupportOption(Enum):
    """Legacy single support selection"""
    FLOOR_MOUNTED = "Floor Mounted"
    SUSPENDED = "Suspended"
    INTEGRATED_FRAME = "Integrated Frame"


class GearmotorMountingStyle(Enum):
    SHAFT_MOUNTED = "shaft_mounted"
    BOTTOM_MOUNT = "bottom_mount"  # Chain drive between gearmotor and drive shaft


class FrameConstructionType(Enum):
    SHEET_METAL = "sheet_metal"
    STRUCTURAL_CHANNEL = "structural_channel"
    SPECIAL = "special"


class MaterialForm(Enum):
    PARTS = "PARTS"  # Discrete parts
    BULK = "BULK"    # Bulk material described by flow rate


class BulkInputMethod(Enum):
    WEIGHT_FLOW = "WEIGHT_FLOW"
    VOLUME_FLOW = "VOLUME_FLOW"


class Orientation(Enum):
    """Which part dimension lies along the direction of travel"""
    LENGTHWISE = "Lengthwise"
    CROSSWISE = "Crosswise"


class PartTemperatureClass(Enum):
    AMBIENT = "Ambient"
    HOT = "Hot"
    RED_HOT = "Red Hot"


class FluidType(Enum):
    NONE = "None"
    MINIMAL_RESIDUAL_OIL = "Minimal Residual Oil"
    CONSIDERABLE_OIL_LIQUID = "Considerable Oil / Liquid"


class EndGuards(Enum):
    NONE = "None"
    HEAD_END = "Head End"
    TAIL_END = "Tail End"
    BOTH_ENDS = "Both Ends"


class LacingStyle(Enum):
    ENDLESS = "Endless"
    CLIPPER_LACING = "Clipper Lacing"
    ALLIGATOR_LACING = "Alligator Lacing"


class SideLoadingDirection(Enum):
    NONE = "None"
    LEFT = "Left"
    RIGHT = "Right"
    BOTH = "Both"


class SideLoadingSeverity(Enum):
    LIGHT = "Light"
    MODERATE = "Moderate"
    HEAVY = "Heavy"


class ApplicationClass(Enum):
    UNIT_HANDLING = "unit_handling"
    BULK_HANDLING = "bulk_handling"


class BeltConstruction(Enum):
    GENERAL = "general"
    FABRIC_PLY = "fabric_ply"
    THERMOPLASTIC_PVC_PU = "thermoplastic_pvc_pu"
    RUBBER_COMPOUND = "rubber_compound"
    STEEL_CORD_OR_VERY_STIFF = "steel_cord_or_very_stiff"
    PROFILED_SIDEWALL_OR_HIGH_CLEAT = "profiled_sidewall_or_high_cleat"


class TrackingPreference(Enum):
    AUTO = "auto"
    PREFER_CROWNED = "prefer_crowned"
    PREFER_HYBRID = "prefer_hybrid"
    PREFER_V_GUIDED = "prefer_v_guided"


class TrackingMode(Enum):
    """Recommended tracking, least to most belt control"""
    CROWNED = "crowned"    # Crowned pulleys
    HYBRID = "hybrid"      # Crowned pulleys + V-guide
    V_GUIDED = "v_guided"  # Flat pulleys + V-guide


class LwBand(Enum):
    """Length/width ratio band"""
    LOW = "low"        # <= 5:1
    MEDIUM = "medium"  # <= 10:1
    HIGH = "high"


class DisturbanceSeverity(Enum):
    MINIMAL = "minimal"
    MODERATE = "moderate"
    SIGNIFICANT = "significant"


class ReferenceEnd(Enum):
    """End whose top-of-belt height the user measured"""
    TAIL = "tail"
    DRIVE = "drive"


class PciStatus(Enum):
    """Outcome of a PCI tube stress check, best to worst"""
    PASS = "pass"
    ESTIMATED = "estimated"    # Within limit, but hub centers were defaulted
    INCOMPLETE = "incomplete"  # Tube geometry not supplied
    WARN = "warn"
    FAIL = "fail"
    ERROR = "error"            # Impossible tube geometry


def coerce_enum(enum_cls: Type[E], value: Any, default: Optional[E] = None) -> Optional[E]:
    """
    Convert a persisted value to an enum member.

    Accepts a member, its value, or its name, case-insensitively
    ("Low Profile", "LOW_PROFILE" and "low profile" all work).
    Unrecognized or missing values return `default`.
    """
    if value is None:
        return default
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        wanted = value.strip().lower()
        for member in enum_cls:
            if str(member.value).lower() == wanted or member.name.lower() == wanted:
                return member
    return default


def is_floor_supported(method: Any) -> bool:
    """True when the conveyor stands on the floor (legs and/or casters)."""
    return coerce_enum(SupportMethod, method) in (
        SupportMethod.FLOOR_SUPPORTED,
        SupportMethod.LEGS,
        SupportMethod.CASTERS,
    )


def legs_selected(inputs: Mapping[str, Any]) -> bool:
    method = coerce_enum(SupportMethod, inputs.get("support_method"))
    return method == SupportMethod.LEGS or (
        is_floor_supported(method) and bool(inputs.get("include_legs"))
    )


def casters_selected(inputs: Mapping[str, Any]) -> bool:
    method = coerce_enum(SupportMethod, inputs.get("support_method"))
    return method == SupportMethod.CASTERS or (
        is_floor_supported(method) and bool(inputs.get("include_casters"))
    )
