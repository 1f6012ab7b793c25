"""
Conveyorcalc - calculation and validation core for sliderbed belt conveyors.

Upgrades saved (possibly legacy) configurations, resolves conveyor geometry,
runs the engineering formulas and reports validation findings.

Example:
    >>> from conveyorcalc import run_calculation
    >>>
    >>> result = run_calculation({"conveyor_length_cc_in": 120, "belt_width_in": 24, ...})
    >>> result.success, result.outputs.total_belt_pull_lb

Note: All imports are lazy-loaded, so `import conveyorcalc` does not pull in
the calculator or Pydantic until a name is used.
"""

__version__ = "1.0.0"

# Define which names come from which submodule

_ENUMS = {
    "GeometryMode",
    "SpeedMode",
    "FrameHeightMode",
    "MaterialForm",
    "SupportMethod",
    "PciStatus",
}

_CALCULATOR = {
    "run_calculation",
    "calculate_json",
    "normalize",
    "resolve_geometry",
    "calculate",
    "validate",
    "compare_outputs",
    "Finding",
    "Severity",
    "Fixture",
}

_IO = {
    "Parameters",
    "CalculationOutputs",
    "CalculationResult",
    "DerivedGeometry",
    "load_inputs",
    "load_parameters",
    "load_fixtures",
    "save_result",
}

# Cache for lazy-loaded modules
_modules = {}


def __getattr__(name):
    """Lazy load submodules when their attributes are accessed."""
    if name in _ENUMS:
        if "enums" not in _modules:
            from . import enums
            _modules["enums"] = enums
        return getattr(_modules["enums"], name)

    if name in _CALCULATOR:
        if "calculator" not in _modules:
            from . import calculator
            _modules["calculator"] = calculator
        return getattr(_modules["calculator"], name)

    if name in _IO:
        if "io" not in _modules:
            from . import io
            _modules["io"] = io
        return getattr(_modules["io"], name)

    raise AttributeError(f"module 'conveyorcalc' has no attribute {name!r}")


__all__ = [
    # Version
    "__version__",

    # Enums (lazy loaded from enums)
    "GeometryMode",
    "SpeedMode",
    "FrameHeightMode",
    "MaterialForm",
    "SupportMethod",
    "PciStatus",

    # Calculator (lazy loaded from calculator)
    "run_calculation",
    "calculate_json",
    "normalize",
    "resolve_geometry",
    "calculate",
    "validate",
    "compare_outputs",
    "Finding",
    "Severity",
    "Fixture",

    # IO (lazy loaded from io)
    "Parameters",
    "CalculationOutputs",
    "CalculationResult",
    "DerivedGeometry",
    "load_inputs",
    "load_parameters",
    "load_fixtures",
    "save_result",
]
