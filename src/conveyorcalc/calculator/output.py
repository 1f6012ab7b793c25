"""Output formatters for conveyor calculation results.

Converts a CalculationResult to JSON, a Markdown report, or a short text
summary. Uses Pydantic's model_dump(mode='json') so enums and nested models
serialize the same way everywhere.
"""

import json
from typing import Any, Dict, List

from ..io.models import CalculationResult, FindingRecord


def _result_to_dict(result: CalculationResult) -> Dict[str, Any]:
    return result.model_dump(mode='json')


def _fmt(value: Any, spec: str = ".2f", unit: str = "") -> str:
    """Number with unit, or "n/a" when not calculated."""
    if value is None:
        return "n/a"
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return f"{value:{spec}}{unit}"


def to_json(result: CalculationResult, indent: int = 2) -> str:
    """Convert a CalculationResult to a JSON string.

    Args:
        result: Result from run_calculation()
        indent: JSON indentation level (default: 2)

    Returns:
        JSON string with success, outputs, findings and metadata
    """
    return json.dumps(_result_to_dict(result), indent=indent)


def _findings_section(title: str, findings: List[FindingRecord]) -> str:
    md = f"### {title}\n\n"
    for finding in findings:
        where = f" (`{finding.field}`)" if finding.field else ""
        md += f"- **{finding.code}**{where}: {finding.message}\n"
        if finding.suggestion:
            md += f"  - *Suggestion*: {finding.suggestion}\n"
    return md + "\n"


def to_markdown(result: CalculationResult) -> str:
    """Convert a CalculationResult to a Markdown report.

    Args:
        result: Result from run_calculation()

    Returns:
        Markdown with key outputs in tables and findings grouped by severity
    """
    md = "# Sliderbed Conveyor Calculation\n\n"
    meta = result.metadata
    md += f"*Model:* `{meta.model_key}` | *Version:* `{meta.model_version_id}` | *Calculated:* {meta.calculated_at}\n\n"

    out = result.outputs
    if out is not None:
        md += "## Geometry\n\n"
        md += "| Parameter | Value |\n"
        md += "|-----------|-------|\n"
        md += f"| Geometry Mode | {out.geometry_mode_used} |\n"
        md += f"| Length (C-C) | {_fmt(out.conveyor_length_cc_in, '.3f', ' in')} |\n"
        md += f"| Horizontal Run | {_fmt(out.horizontal_run_in, '.3f', ' in')} |\n"
        md += f"| Incline | {_fmt(out.conveyor_incline_deg, '.2f', '°')} |\n"
        md += f"| Rise | {_fmt(out.rise_in, '.3f', ' in')} |\n"
        md += f"| Belt Length | {_fmt(out.total_belt_length_in, '.3f', ' in')} |\n\n"

        md += "## Load & Belt Pull\n\n"
        md += "| Parameter | Value |\n"
        md += "|-----------|-------|\n"
        md += f"| Parts on Belt | {_fmt(out.parts_on_belt, '.2f')} |\n"
        md += f"| Load on Belt | {_fmt(out.load_on_belt_lbf, '.2f', ' lbf')} |\n"
        md += f"| Belt Weight | {_fmt(out.belt_weight_lbf, '.2f', ' lbf')} |\n"
        md += f"| Total Load | {_fmt(out.total_load_lbf, '.2f', ' lbf')} |\n"
        md += f"| Friction Pull | {_fmt(out.friction_pull_lb, '.2f', ' lb')} |\n"
        md += f"| Incline Pull | {_fmt(out.incline_pull_lb, '.2f', ' lb')} |\n"
        md += f"| Total Belt Pull | {_fmt(out.total_belt_pull_lb, '.2f', ' lb')} |\n\n"

        md += "## Drive\n\n"
        md += "| Parameter | Value |\n"
        md += "|-----------|-------|\n"
        md += f"| Speed Mode | {out.speed_mode_used} |\n"
        md += f"| Belt Speed | {_fmt(out.belt_speed_fpm, '.2f', ' fpm')} |\n"
        md += f"| Drive Shaft RPM | {_fmt(out.drive_shaft_rpm, '.2f')} |\n"
        md += f"| Torque | {_fmt(out.torque_drive_shaft_inlbf, '.1f', ' in-lbf')} |\n"
        md += f"| Gear Ratio | {_fmt(out.gear_ratio, '.2f')} |\n"
        md += f"| Chain Ratio | {_fmt(out.chain_ratio, '.3f')} |\n"
        md += f"| Capacity | {_fmt(out.capacity_pph, '.0f', ' parts/hr')} |\n"
        md += f"| Meets Throughput | {_fmt(out.meets_throughput)} |\n\n"

        md += "## Pulleys & Frame\n\n"
        md += "| Parameter | Value |\n"
        md += "|-----------|-------|\n"
        md += f"| Drive / Tail Pulley | {out.drive_pulley_diameter_in:g} in / {out.tail_pulley_diameter_in:g} in |\n"
        md += f"| Pulley Face Length | {_fmt(out.pulley_face_length_in, '.2f', ' in')} |\n"
        md += f"| Drive / Tail Shaft | {out.drive_shaft_diameter_in:g} in / {out.tail_shaft_diameter_in:g} in |\n"
        md += f"| Drive Radial Load | {_fmt(out.drive_pulley_radial_load_lbf, '.1f', ' lbf')} |\n"
        md += f"| Frame Height | {_fmt(out.effective_frame_height_in, '.2f', ' in')} |\n"
        md += f"| Snub Rollers | {out.snub_roller_quantity} |\n"
        md += f"| Gravity Rollers | {out.gravity_roller_quantity} |\n"
        md += f"| PCI Tube Stress | {out.pci_tube_stress_status} |\n\n"

        md += f"*Frame height:* {out.frame_height_breakdown.formula}\n\n"
        md += f"*Tracking:* {out.tracking_mode_recommended} (L/W {_fmt(out.tracking_lw_ratio, '.1f')}). "
        md += f"{out.tracking_recommendation_rationale}\n\n"

    md += "## Validation\n\n"
    if result.success:
        md += "**Status:** ✅ Configuration is valid\n\n"
    else:
        md += "**Status:** ❌ Configuration has errors\n\n"

    if result.errors:
        md += _findings_section("Errors", result.errors)

    notices = result.warnings or []
    warnings = [f for f in notices if f.severity == "warning"]
    infos = [f for f in notices if f.severity == "info"]
    if warnings:
        md += _findings_section("Warnings", warnings)
    if infos:
        md += "### Information\n\n"
        for finding in infos:
            md += f"- {finding.message}\n"
        md += "\n"

    md += "---\n"
    md += "*Generated by conveyorcalc*\n"
    return md


def to_summary(result: CalculationResult, validation_only: bool = False) -> str:
    """Convert a CalculationResult to a short text summary.

    Args:
        result: Result from run_calculation()
        validation_only: Only report the validation status line

    Returns:
        Multi-line formatted summary string
    """
    n_errors = len(result.errors or [])
    n_warnings = len(result.warnings or [])
    status = "OK" if result.success else "ERRORS"
    status_line = f"Status: {status} ({n_errors} errors, {n_warnings} warnings/notes)"

    out = result.outputs
    if validation_only or out is None:
        return status_line

    lines = [
        "═══ Sliderbed Conveyor ═══",
        f"Length (C-C): {out.conveyor_length_cc_in:.2f} in at {out.conveyor_incline_deg:.1f}°",
        f"Belt speed:   {out.belt_speed_fpm:.2f} fpm ({out.drive_shaft_rpm:.2f} rpm)",
        f"Belt pull:    {out.total_belt_pull_lb:.2f} lb",
        f"Torque:       {out.torque_drive_shaft_inlbf:.1f} in-lbf (gear ratio {out.gear_ratio:.2f})",
        f"Frame height: {out.effective_frame_height_in:.2f} in"
        + (" with snub rollers" if out.requires_snub_rollers else ""),
        status_line,
    ]

    for finding in result.errors or []:
        lines.append(f"  ERROR {finding.code}: {finding.message}")

    return "\n".join(lines)
