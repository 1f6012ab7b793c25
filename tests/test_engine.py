"""
Tests for run_calculation() and the JSON bridge.
"""

import copy
import json
import logging
import pytest

from conveyorcalc.calculator.constants import MODEL_KEY
from conveyorcalc.calculator.engine import (
    calculate_json,
    prepare_inputs,
    resolve_parameters,
    run_calculation,
)
from conveyorcalc.io.models import Parameters


class TestParameters:

    def test_none_gives_defaults(self):
        assert resolve_parameters(None) == Parameters()

    def test_mapping_overrides(self):
        params = resolve_parameters({"friction_coeff": 0.3, "safety_factor": None})
        assert params.friction_coeff == 0.3
        assert params.safety_factor == 2.0

    def test_instance_passthrough(self):
        params = Parameters(motor_rpm=1800)
        assert resolve_parameters(params) is params


class TestPrepareInputs:

    def test_derived_fields_merged(self, base_inputs):
        inputs = dict(base_inputs, geometry_mode="H_ANGLE", horizontal_run_in=100.0, conveyor_incline_deg=0.0)
        canonical, geometry = prepare_inputs(inputs)
        assert canonical["conveyor_length_cc_in"] == pytest.approx(100.0)
        assert geometry.is_valid

    def test_invalid_geometry_logged(self, base_inputs, caplog):
        with caplog.at_level(logging.WARNING):
            _, geometry = prepare_inputs(dict(base_inputs, conveyor_length_cc_in=0))
        assert not geometry.is_valid
        assert "Invalid geometry" in caplog.text


class TestRunCalculation:

    def test_success(self, base_inputs):
        result = run_calculation(base_inputs, model_version_id="rev-7")
        assert result.success
        assert result.errors is None
        assert result.warnings is None
        assert result.outputs.parts_on_belt == pytest.approx(5.0)
        assert result.metadata.model_key == MODEL_KEY
        assert result.metadata.model_version_id == "rev-7"
        assert result.metadata.calculated_at.endswith("+00:00")

    def test_generated_version_id(self, base_inputs):
        result = run_calculation(base_inputs)
        assert result.metadata.model_version_id.startswith(f"{MODEL_KEY}-")

    def test_errors_still_have_outputs(self, base_inputs):
        result = run_calculation(dict(base_inputs, part_temperature_class="Red Hot"))
        assert not result.success
        assert [e.code for e in result.errors] == ["RED_HOT_PARTS"]
        assert result.errors[0].severity == "error"
        assert result.outputs is not None

    def test_info_findings_reported_as_warnings(self, base_inputs):
        result = run_calculation(dict(base_inputs, frame_height_mode="Low Profile"))
        assert result.success
        assert [w.severity for w in result.warnings] == ["info"]

    def test_parameters_mapping(self, base_inputs):
        result = run_calculation(base_inputs, {"safety_factor": 3.0})
        assert result.outputs.safety_factor_used == 3.0

    def test_legacy_inputs(self, legacy_inputs):
        result = run_calculation(legacy_inputs)
        assert result.outputs.speed_mode_used == "drive_rpm"
        assert result.outputs.drive_shaft_rpm == pytest.approx(100.0)
        # Floor mounted with a tail TOB but no leg model
        assert [e.code for e in result.errors] == ["LEG_MODEL_REQUIRED"]

    def test_inputs_not_modified(self, legacy_inputs):
        snapshot = copy.deepcopy(legacy_inputs)
        run_calculation(legacy_inputs)
        assert legacy_inputs == snapshot

    def test_unknown_mode_raises(self, base_inputs):
        with pytest.raises(ValueError):
            run_calculation(dict(base_inputs, geometry_mode="DIAGONAL"))


class TestCalculateJson:

    def test_envelope(self, base_inputs):
        payload = {"inputs": base_inputs, "parameters": {"motor_rpm": 1800}, "model_version_id": "rev-1"}
        result = json.loads(calculate_json(json.dumps(payload)))
        assert result["success"] is True
        assert result["outputs"]["motor_rpm_used"] == 1800
        assert result["metadata"]["model_version_id"] == "rev-1"

    def test_bare_inputs(self, base_inputs):
        result = json.loads(calculate_json(json.dumps(base_inputs)))
        assert result["success"] is True
        assert result["outputs"]["parts_on_belt"] == pytest.approx(5.0)

    def test_invalid_json(self):
        result = json.loads(calculate_json("{not json"))
        assert result["success"] is False
        assert result["error"].startswith("Invalid JSON")

    def test_not_an_object(self):
        result = json.loads(calculate_json("[1, 2]"))
        assert result == {"success": False, "error": "Expected a JSON object"}

    def test_calculation_error_reported(self, base_inputs):
        result = json.loads(calculate_json(json.dumps(dict(base_inputs, speed_mode="warp"))))
        assert result["success"] is False
        assert "Unknown speed mode" in result["error"]
