"""
Conveyorcalc IO - typed records and JSON loaders.

Example:
    >>> from conveyorcalc.io import load_inputs, save_result
    >>> from conveyorcalc.calculator import run_calculation
    >>>
    >>> result = run_calculation(load_inputs("conveyor.json"))
    >>> save_result(result, "result.json")
"""

# Models first: calculator modules import them while io is still loading
from .models import (
    Parameters,
    DerivedGeometry,
    FrameHeightBreakdown,
    PciTubeStressResult,
    CalculationOutputs,
    FindingRecord,
    CalculationMetadata,
    CalculationResult,
)

from .loaders import (
    load_inputs,
    load_parameters,
    save_result,
    load_fixtures,
)

__all__ = [
    # Models
    "Parameters",
    "DerivedGeometry",
    "FrameHeightBreakdown",
    "PciTubeStressResult",
    "CalculationOutputs",
    "FindingRecord",
    "CalculationMetadata",
    "CalculationResult",

    # Loaders
    "load_inputs",
    "load_parameters",
    "save_result",
    "load_fixtures",
]
