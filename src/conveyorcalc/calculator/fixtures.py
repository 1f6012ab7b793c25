"""
Conveyor Calculator - Fixture Comparator

Fixtures are recorded input / expected-output pairs from the legacy
spreadsheet. A model revision is only trusted once every fixture passes.

Numeric fields pass when |actual - expected| <= |expected * tolerance|;
the default tolerance is 0.5%. Everything else (strings, booleans, None)
must match exactly.
"""

import logging
from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .constants import DEFAULT_TOLERANCE
from .engine import run_calculation

logger = logging.getLogger(__name__)

Tolerance = Union[float, Mapping[str, float]]


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def is_within_tolerance(actual: float, expected: float, tolerance: float = DEFAULT_TOLERANCE) -> bool:
    """True when `actual` is within a relative `tolerance` of `expected` (edges inclusive)."""
    return abs(actual - expected) <= abs(expected * tolerance)


@dataclass(frozen=True)
class FieldFailure:
    """One non-conforming output field"""
    field: str
    expected: Any
    actual: Any
    abs_diff: Optional[float] = None
    percent_diff: Optional[float] = None  # None when expected is 0 or non-numeric

    @property
    def message(self) -> str:
        if self.percent_diff is not None:
            return (
                f"{self.field}: expected {self.expected}, got {self.actual} "
                f"({self.percent_diff:.2f}% difference)"
            )
        if self.abs_diff is not None:
            return f"{self.field}: expected {self.expected}, got {self.actual} (off by {self.abs_diff:g})"
        return f"{self.field}: expected {self.expected!r}, got {self.actual!r}"


@dataclass
class ComparisonResult:
    passed: bool
    failures: List[FieldFailure] = field(default_factory=list)

    @property
    def messages(self) -> List[str]:
        return [f.message for f in self.failures]


def _field_tolerance(tolerance: Optional[Tolerance], key: str) -> float:
    if tolerance is None:
        return DEFAULT_TOLERANCE
    if isinstance(tolerance, Mapping):
        value = tolerance.get(key)
        return DEFAULT_TOLERANCE if value is None else float(value)
    return float(tolerance)


def compare_outputs(
    actual: Union[BaseModel, Mapping[str, Any]],
    expected: Mapping[str, Any],
    tolerance: Optional[Tolerance] = DEFAULT_TOLERANCE,
) -> ComparisonResult:
    """
    Compare calculated outputs with a partial set of expected values.

    Args:
        actual: CalculationOutputs (or any model) or a plain mapping
        expected: Only the fields to check
        tolerance: Relative tolerance, either one value for every field or a
            per-field mapping (missing fields use DEFAULT_TOLERANCE)

    Returns:
        ComparisonResult with one FieldFailure per non-conforming field
    """
    values = actual.model_dump() if isinstance(actual, BaseModel) else dict(actual)
    failures: List[FieldFailure] = []

    for key, expected_value in expected.items():
        actual_value = values.get(key)

        if _is_number(expected_value) and _is_number(actual_value):
            if is_within_tolerance(actual_value, expected_value, _field_tolerance(tolerance, key)):
                continue
            diff = abs(actual_value - expected_value)
            percent = None if expected_value == 0 else (actual_value - expected_value) / expected_value * 100
            failures.append(FieldFailure(
                field=key,
                expected=expected_value,
                actual=actual_value,
                abs_diff=diff,
                percent_diff=percent,
            ))
        elif actual_value != expected_value or isinstance(actual_value, bool) != isinstance(expected_value, bool):
            failures.append(FieldFailure(field=key, expected=expected_value, actual=actual_value))

    return ComparisonResult(passed=not failures, failures=failures)


class Fixture(BaseModel):
    """A recorded calculation case"""
    model_config = ConfigDict(extra='ignore')

    name: str
    inputs: Dict[str, Any]
    expected_outputs: Dict[str, Any] = Field(default_factory=dict)
    tolerance: Optional[Union[float, Dict[str, float]]] = DEFAULT_TOLERANCE
    expected_errors: List[str] = Field(default_factory=list)
    expected_warnings: List[str] = Field(default_factory=list)
    parameters: Optional[Dict[str, Any]] = None


@dataclass
class FixtureRun:
    """Outcome of running one fixture through the engine"""
    name: str
    comparison: ComparisonResult
    missing_errors: List[str] = field(default_factory=list)
    missing_warnings: List[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.comparison.passed and not self.missing_errors and not self.missing_warnings

    @property
    def messages(self) -> List[str]:
        messages = list(self.comparison.messages)
        messages.extend(f"expected error not reported: {m}" for m in self.missing_errors)
        messages.extend(f"expected warning not reported: {m}" for m in self.missing_warnings)
        return messages


def _missing(expected: Iterable[str], reported: List[str]) -> List[str]:
    """Expected messages not found (as a substring) in any reported message"""
    return [e for e in expected if not any(e in r for r in reported)]


def run_fixture(fixture: Fixture) -> FixtureRun:
    """Run one fixture through run_calculation() and check outputs and findings."""
    result = run_calculation(fixture.inputs, fixture.parameters)
    comparison = compare_outputs(result.outputs, fixture.expected_outputs, fixture.tolerance)

    reported_errors = [f.message for f in result.errors or []]
    reported_warnings = [f.message for f in result.warnings or []]

    run = FixtureRun(
        name=fixture.name,
        comparison=comparison,
        missing_errors=_missing(fixture.expected_errors, reported_errors),
        missing_warnings=_missing(fixture.expected_warnings, reported_warnings),
    )
    if run.passed:
        logger.debug(f"Fixture passed: {fixture.name}")
    else:
        logger.warning(f"Fixture failed: {fixture.name} ({len(run.messages)} problems)")
    return run


def run_fixtures(fixtures: Iterable[Fixture]) -> List[FixtureRun]:
    return [run_fixture(f) for f in fixtures]


EXAMPLE_FIXTURE = Fixture(
    name="Example Case - Basic Conveyor",
    inputs={
        "conveyor_length_cc_in": 120,
        "conveyor_width_in": 24,
        "conveyor_incline_deg": 0,
        "pulley_diameter_in": 4,
        "belt_speed_fpm": 104.72,
        "drive_rpm": 100,
        "part_weight_lbs": 5,
        "part_length_in": 12,
        "part_width_in": 6,
        "part_spacing_in": 12,
        "drop_height_in": 0,
        "part_temperature_class": "Ambient",
        "fluid_type": "None",
        "orientation": "Lengthwise",
        "end_guards": "None",
        "finger_safe": False,
        "lacing_style": "Endless",
        "start_stop_application": False,
        "side_loading_direction": "None",
        "belt_tracking_method": "Crowned",
        "shaft_diameter_mode": "Calculated",
    },
    expected_outputs={
        "parts_on_belt": 5.0,
    },
    tolerance=DEFAULT_TOLERANCE,
)
