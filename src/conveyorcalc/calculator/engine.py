"""
Single entry point for running a conveyor calculation.

`run_calculation()` takes raw (possibly legacy) inputs and returns a
CalculationResult: normalized, geometry-resolved, calculated and validated.
`calculate_json()` wraps it for host applications that exchange JSON strings:

    result_json = calculate_json(json.dumps({
        "inputs": {...},
        "parameters": {"friction_coeff": 0.3},   # optional
        "model_version_id": "rev-42",             # optional
    }))
    result = json.loads(result_json)

A payload without an "inputs" key is treated as the inputs themselves.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict

from ..io.models import (
    CalculationMetadata,
    CalculationResult,
    DerivedGeometry,
    FindingRecord,
    Parameters,
)
from .constants import MODEL_KEY
from .core import calculate
from .geometry import resolve_geometry
from .migrate import normalize
from .validation import Finding, Severity, validate

logger = logging.getLogger(__name__)

ParametersLike = Union[Parameters, Mapping[str, Any], None]


class BridgeFailure(BaseModel):
    """What calculate_json() returns when the payload cannot be run."""
    model_config = ConfigDict(extra='ignore')

    success: bool = False
    error: str


def resolve_parameters(parameters: ParametersLike = None) -> Parameters:
    """Parameters instance from an instance, a partial mapping of overrides, or None."""
    if parameters is None:
        return Parameters()
    if isinstance(parameters, Parameters):
        return parameters
    return Parameters().with_overrides(parameters)


def prepare_inputs(raw: Optional[Mapping[str, Any]]) -> Tuple[Dict[str, Any], DerivedGeometry]:
    """
    Normalize raw inputs and merge in the fields the geometry mode derives.

    Returns:
        (canonical_inputs, derived_geometry)
    """
    canonical = normalize(raw)
    derived_fields, geometry = resolve_geometry(canonical)
    canonical.update(derived_fields)
    if not geometry.is_valid:
        logger.warning(f"Invalid geometry ({geometry.mode.value}): {geometry.error}")
    return canonical, geometry


def _to_record(finding: Finding) -> FindingRecord:
    return FindingRecord(
        severity=finding.severity.value,
        code=finding.code,
        field=finding.field,
        message=finding.message,
        suggestion=finding.suggestion,
    )


def run_calculation(
    inputs: Optional[Mapping[str, Any]],
    parameters: ParametersLike = None,
    model_version_id: Optional[str] = None,
) -> CalculationResult:
    """
    Normalize, calculate and validate one configuration.

    Outputs are always calculated, even when validation reports errors.

    Args:
        inputs: Raw or canonical configuration; not modified
        parameters: Parameters, a mapping of parameter overrides, or None
        model_version_id: Identifies the calculation model revision;
            generated when not given

    Returns:
        CalculationResult. `errors` and `warnings` are None when empty;
        `warnings` carries both warning and info findings.

    Raises:
        ValueError: unknown geometry, speed or frame height mode
        pydantic.ValidationError: malformed parameter overrides
    """
    params = resolve_parameters(parameters)
    canonical, geometry = prepare_inputs(inputs)

    outputs = calculate(canonical, params, geometry)
    findings = validate(canonical, params, outputs, geometry)

    errors: List[FindingRecord] = [_to_record(f) for f in findings if f.severity == Severity.ERROR]
    warnings: List[FindingRecord] = [_to_record(f) for f in findings if f.severity != Severity.ERROR]

    metadata = CalculationMetadata(
        model_key=MODEL_KEY,
        model_version_id=model_version_id or f"{MODEL_KEY}-{uuid4().hex}",
        calculated_at=datetime.now(timezone.utc).isoformat(),
    )

    logger.info(
        f"{MODEL_KEY}: success={not errors} errors={len(errors)} "
        f"warnings={len(warnings)} version={metadata.model_version_id}"
    )

    return CalculationResult(
        success=not errors,
        outputs=outputs,
        errors=errors or None,
        warnings=warnings or None,
        metadata=metadata,
    )


def calculate_json(input_json: str) -> str:
    """
    JSON in, JSON out wrapper around run_calculation().

    Args:
        input_json: JSON object, either the inputs themselves or an envelope
            with "inputs" and optional "parameters" / "model_version_id"

    Returns:
        CalculationResult as JSON, or {"success": false, "error": ...}
    """
    try:
        payload = json.loads(input_json)
        if not isinstance(payload, dict):
            raise ValueError("Expected a JSON object")

        if "inputs" in payload:
            inputs = payload.get("inputs") or {}
            parameters = payload.get("parameters")
            model_version_id = payload.get("model_version_id")
        else:
            inputs, parameters, model_version_id = payload, None, None

        result = run_calculation(inputs, parameters, model_version_id)
        return result.model_dump_json()

    except json.JSONDecodeError as e:
        return BridgeFailure(error=f"Invalid JSON: {e}").model_dump_json()

    except Exception as e:
        logger.exception("Calculation failed")
        return BridgeFailure(error=str(e)).model_dump_json()
