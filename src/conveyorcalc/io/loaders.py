"""
JSON input/output for conveyor configurations, parameters and results.

Inputs stay plain dicts (normalization upgrades them later); parameters,
results and fixtures go through Pydantic for validation.
"""

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Union

from .models import CalculationResult, Parameters

if TYPE_CHECKING:
    from ..calculator.fixtures import Fixture

PathLike = Union[str, Path]


def _read_json(filepath: PathLike, what: str) -> Any:
    filepath = Path(filepath)

    if not filepath.exists():
        raise FileNotFoundError(f"{what} file not found: {filepath}")

    with open(filepath, 'r') as f:
        return json.load(f)


def load_inputs(filepath: PathLike) -> Dict[str, Any]:
    """
    Load a conveyor configuration.

    Accepts either the inputs object itself or a saved envelope with an
    "inputs" key (as written by host applications).

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If the file does not hold a JSON object
    """
    data = _read_json(filepath, "Inputs")

    if isinstance(data, dict) and isinstance(data.get("inputs"), dict):
        data = data["inputs"]

    if not isinstance(data, dict):
        raise ValueError(f"Invalid inputs JSON - expected an object, got {type(data).__name__}")

    return data


def load_parameters(filepath: PathLike) -> Parameters:
    """
    Load parameter overrides on top of the defaults.

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If the file does not hold a JSON object
        ValidationError: If a parameter has the wrong type
    """
    data = _read_json(filepath, "Parameters")
    if not isinstance(data, dict):
        raise ValueError("Invalid parameters JSON - expected an object")
    return Parameters().with_overrides(data)


def save_result(result: CalculationResult, filepath: PathLike, indent: int = 2) -> None:
    """Write a CalculationResult as JSON."""
    filepath = Path(filepath)
    with open(filepath, 'w') as f:
        f.write(result.model_dump_json(indent=indent))


def load_fixtures(filepath: PathLike) -> List["Fixture"]:
    """
    Load recorded fixtures.

    The file holds either a list of fixtures or {"fixtures": [...]}.

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If the file has the wrong shape
        ValidationError: If a fixture is missing name or inputs
    """
    from ..calculator.fixtures import Fixture

    data = _read_json(filepath, "Fixtures")

    if isinstance(data, dict):
        data = data.get("fixtures")

    if not isinstance(data, list):
        raise ValueError("Invalid fixtures JSON - expected a list or an object with a 'fixtures' list")

    return [Fixture.model_validate(item) for item in data]
