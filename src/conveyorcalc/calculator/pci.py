"""
Conveyor Calculator - PCI Tube Stress

Pulley tube bending stress per the PCI Conveyor Pulley Selection Guide
(Appendix A):

    σ = 8 · OD · F · H / (π · (OD⁴ − ID⁴))

    OD = tube outer diameter, ID = OD − 2 · wall
    F  = resultant radial load on the pulley
    H  = hub center distance

Allowable stress is 10,000 psi for drum pulleys and 3,400 psi for V-groove
pulleys. Missing tube geometry is "incomplete", impossible geometry is
"error"; neither raises.
"""

from math import floor, pi
from typing import Any, Dict, Mapping, Optional

from ..enums import BeltTrackingMethod, PciStatus, coerce_enum
from ..io.models import PciTubeStressResult
from .constants import PCI_TUBE_STRESS_LIMIT_DRUM_PSI, PCI_TUBE_STRESS_LIMIT_VGROOVE_PSI

# Worst first
STATUS_PRIORITY = (
    PciStatus.ERROR,
    PciStatus.FAIL,
    PciStatus.WARN,
    PciStatus.INCOMPLETE,
    PciStatus.ESTIMATED,
    PciStatus.PASS,
)


def _round_half_up(value: float) -> int:
    return int(floor(value + 0.5))


def is_v_groove_pulley(belt_tracking_method: Any, v_guide_key: Optional[str]) -> bool:
    """V-guided tracking with a V-guide selected means a V-groove pulley."""
    return (
        coerce_enum(BeltTrackingMethod, belt_tracking_method) == BeltTrackingMethod.V_GUIDED
        and bool(v_guide_key)
    )


def get_tube_stress_limit(v_groove: bool) -> float:
    return PCI_TUBE_STRESS_LIMIT_VGROOVE_PSI if v_groove else PCI_TUBE_STRESS_LIMIT_DRUM_PSI


def calculate_pci_tube_stress(
    tube_od_in: Optional[float],
    tube_wall_in: Optional[float],
    hub_centers_in: float,
    radial_load_lbf: float,
    stress_limit_psi: float,
    hub_centers_estimated: bool = False,
    enforce_checks: bool = False,
) -> PciTubeStressResult:
    """
    Tube stress and check status for one pulley.

    Args:
        tube_od_in: Tube outer diameter (None when not supplied)
        tube_wall_in: Tube wall thickness (None when not supplied)
        hub_centers_in: Hub center distance
        radial_load_lbf: Resultant pulley load (PCI "F")
        stress_limit_psi: Allowable stress
        hub_centers_estimated: Hub centers were defaulted, not entered
        enforce_checks: Over-limit is "fail" rather than "warn"

    Returns:
        PciTubeStressResult with stress rounded to whole psi
    """
    if tube_od_in is None or tube_wall_in is None or tube_od_in <= 0 or tube_wall_in <= 0:
        return PciTubeStressResult(status=PciStatus.INCOMPLETE.value)

    inner_in = tube_od_in - 2 * tube_wall_in
    if inner_in <= 0:
        return PciTubeStressResult(
            status=PciStatus.ERROR.value,
            error_message=(
                f'Invalid tube geometry: wall thickness ({tube_wall_in:g}") '
                f'exceeds radius ({tube_od_in / 2:g}")'
            ),
        )

    section = tube_od_in ** 4 - inner_in ** 4
    if section <= 0:
        return PciTubeStressResult(
            status=PciStatus.ERROR.value,
            error_message="Invalid tube geometry: OD^4 - ID^4 <= 0",
        )

    stress_psi = 8 * tube_od_in * radial_load_lbf * hub_centers_in / (pi * section)

    if stress_psi > stress_limit_psi:
        status = PciStatus.FAIL if enforce_checks else PciStatus.WARN
    elif hub_centers_estimated:
        status = PciStatus.ESTIMATED
    else:
        status = PciStatus.PASS

    return PciTubeStressResult(stress_psi=_round_half_up(stress_psi), status=status.value)


def worst_status(*statuses: str) -> str:
    """Most severe of the given status values."""
    present = {coerce_enum(PciStatus, s) for s in statuses}
    for status in STATUS_PRIORITY:
        if status in present:
            return status.value
    return PciStatus.PASS.value


def run_pci_checks(
    inputs: Mapping[str, Any],
    drive_radial_load_lbf: float,
    tail_radial_load_lbf: float,
    belt_width_in: float,
) -> Dict[str, Any]:
    """
    Drive and tail tube checks as output fields (pci_*).

    Hub centers default to the belt width; results are then "estimated".
    """
    hub_centers = inputs.get("hub_centers_in")
    estimated = hub_centers is None or hub_centers <= 0
    hub_centers_in = belt_width_in if estimated else float(hub_centers)

    v_groove = is_v_groove_pulley(inputs.get("belt_tracking_method"), inputs.get("v_guide_key"))
    limit = get_tube_stress_limit(v_groove)
    enforce = bool(inputs.get("enforce_pci_checks", False))

    drive = calculate_pci_tube_stress(
        inputs.get("drive_tube_od_in"),
        inputs.get("drive_tube_wall_in"),
        hub_centers_in,
        drive_radial_load_lbf,
        limit,
        estimated,
        enforce,
    )
    tail = calculate_pci_tube_stress(
        inputs.get("tail_tube_od_in"),
        inputs.get("tail_tube_wall_in"),
        hub_centers_in,
        tail_radial_load_lbf,
        limit,
        estimated,
        enforce,
    )

    return {
        "pci_tube_stress_limit_psi": limit,
        "pci_drive_tube_stress_psi": drive.stress_psi,
        "pci_tail_tube_stress_psi": tail.stress_psi,
        "pci_drive_tube_status": drive.status,
        "pci_tail_tube_status": tail.status,
        "pci_tube_stress_status": worst_status(drive.status, tail.status),
        "pci_hub_centers_in": hub_centers_in,
        "pci_hub_centers_estimated": estimated,
        "pci_error_message": drive.error_message or tail.error_message,
    }
