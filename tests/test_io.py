"""
Tests for JSON loaders and the Parameters model.
"""

import json
import pytest
from pydantic import ValidationError

from conveyorcalc.calculator.engine import run_calculation
from conveyorcalc.io import (
    CalculationResult,
    Parameters,
    load_fixtures,
    load_inputs,
    load_parameters,
    save_result,
)


def _write(path, data):
    path.write_text(json.dumps(data))
    return path


class TestLoadInputs:

    def test_plain_object(self, inputs_file):
        assert load_inputs(inputs_file)["belt_width_in"] == 24.0

    def test_envelope_unwrapped(self, base_inputs, tmp_path):
        path = _write(tmp_path / "saved.json", {"inputs": base_inputs, "model_version_id": "rev-1"})
        assert load_inputs(path) == base_inputs

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Inputs file not found"):
            load_inputs(tmp_path / "missing.json")

    def test_not_an_object(self, tmp_path):
        with pytest.raises(ValueError, match="expected an object, got list"):
            load_inputs(_write(tmp_path / "list.json", [1]))


class TestParameters:

    def test_defaults(self):
        params = Parameters()
        assert params.friction_coeff == 0.25
        assert params.safety_factor == 2.0
        assert params.starting_belt_pull_lb == 75.0

    def test_overrides_return_copy(self):
        params = Parameters()
        changed = params.with_overrides({"motor_rpm": 1800, "friction_coeff": None})
        assert changed.motor_rpm == 1800
        assert changed.friction_coeff == 0.25
        assert params.motor_rpm == 1750.0

    def test_frozen(self):
        with pytest.raises(ValidationError):
            Parameters().safety_factor = 3.0

    def test_unknown_keys_ignored(self, tmp_path):
        params = load_parameters(_write(tmp_path / "p.json", {"safety_factor": 2.5, "colour": "red"}))
        assert params.safety_factor == 2.5

    def test_bad_type(self, tmp_path):
        with pytest.raises(ValidationError):
            load_parameters(_write(tmp_path / "p.json", {"safety_factor": "lots"}))

    def test_not_an_object(self, tmp_path):
        with pytest.raises(ValueError):
            load_parameters(_write(tmp_path / "p.json", [2.0]))


class TestSaveResult:

    def test_round_trip(self, base_inputs, tmp_path):
        result = run_calculation(base_inputs, model_version_id="rev-2")
        path = tmp_path / "result.json"
        save_result(result, path)
        loaded = CalculationResult.model_validate_json(path.read_text())
        assert loaded == result


class TestLoadFixtures:

    def test_list(self, base_inputs, tmp_path):
        path = _write(tmp_path / "f.json", [{"name": "a", "inputs": base_inputs}])
        fixtures = load_fixtures(path)
        assert fixtures[0].name == "a"
        assert fixtures[0].tolerance == 0.005

    def test_wrapped(self, base_inputs, tmp_path):
        path = _write(tmp_path / "f.json", {"fixtures": [
            {"name": "a", "inputs": base_inputs, "tolerance": {"parts_on_belt": 0.01}},
        ]})
        assert load_fixtures(path)[0].tolerance == {"parts_on_belt": 0.01}

    def test_wrong_shape(self, tmp_path):
        with pytest.raises(ValueError, match="expected a list"):
            load_fixtures(_write(tmp_path / "f.json", {"cases": []}))

    def test_missing_inputs(self, tmp_path):
        with pytest.raises(ValidationError):
            load_fixtures(_write(tmp_path / "f.json", [{"name": "a"}]))
