"""
Tests for the conveyorcalc command-line interface.
"""

import json
import pytest

from conveyorcalc.calculator.fixtures import EXAMPLE_FIXTURE
from conveyorcalc.cli.run import main


def _write(path, data):
    path.write_text(json.dumps(data))
    return str(path)


class TestCalculate:

    def test_summary_default(self, inputs_file, capsys):
        assert main([str(inputs_file)]) == 0
        out = capsys.readouterr().out
        assert "═══ Sliderbed Conveyor ═══" in out
        assert "Status: OK" in out

    def test_json_format(self, inputs_file, capsys):
        assert main([str(inputs_file), "--format", "json", "--model-version", "rev-9"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["metadata"]["model_version_id"] == "rev-9"

    def test_output_file(self, inputs_file, tmp_path, capsys):
        target = tmp_path / "report.md"
        assert main([str(inputs_file), "--format", "markdown", "-o", str(target)]) == 0
        assert target.read_text().startswith("# Sliderbed Conveyor Calculation")
        assert "Saved markdown output" in capsys.readouterr().out

    def test_params_file(self, inputs_file, tmp_path, capsys):
        params = _write(tmp_path / "params.json", {"safety_factor": 3.0})
        assert main([str(inputs_file), "--params", params, "--format", "json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["outputs"]["safety_factor_used"] == 3.0

    def test_errors_exit_code(self, base_inputs, tmp_path, capsys):
        path = _write(tmp_path / "hot.json", dict(base_inputs, part_temperature_class="Red Hot"))
        assert main([path]) == 2
        assert "ERROR RED_HOT_PARTS" in capsys.readouterr().out


class TestFailures:

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.json")]) == 1
        assert "Error loading input" in capsys.readouterr().err

    def test_not_an_object(self, tmp_path, capsys):
        path = _write(tmp_path / "list.json", [1, 2, 3])
        assert main([path]) == 1
        assert "expected an object" in capsys.readouterr().err

    def test_unknown_mode(self, base_inputs, tmp_path, capsys):
        path = _write(tmp_path / "bad.json", dict(base_inputs, frame_height_mode="Tall"))
        assert main([path]) == 1
        assert "Unknown frame height mode" in capsys.readouterr().err

    def test_no_input(self):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 2


class TestFixtures:

    def test_all_pass(self, tmp_path, capsys):
        path = _write(tmp_path / "fixtures.json", [EXAMPLE_FIXTURE.model_dump()])
        assert main(["--fixtures", path]) == 0
        out = capsys.readouterr().out
        assert "✓ Example Case - Basic Conveyor" in out
        assert "1/1 fixtures passed" in out

    def test_failure_reported(self, base_inputs, tmp_path, capsys):
        fixtures = {"fixtures": [
            {"name": "wrong", "inputs": base_inputs, "expected_outputs": {"parts_on_belt": 6.0}},
        ]}
        path = _write(tmp_path / "fixtures.json", fixtures)
        assert main(["--fixtures", path]) == 1
        out = capsys.readouterr().out
        assert "✗ wrong" in out
        assert "parts_on_belt" in out
        assert "0/1 fixtures passed" in out

    def test_fixture_with_unknown_mode(self, base_inputs, tmp_path, capsys):
        fixtures = [{"name": "warp", "inputs": dict(base_inputs, speed_mode="warp")}]
        path = _write(tmp_path / "fixtures.json", fixtures)
        assert main(["--fixtures", path]) == 1
        assert "Error running fixtures" in capsys.readouterr().err

    def test_bad_fixture_file(self, tmp_path, capsys):
        path = _write(tmp_path / "fixtures.json", {"cases": []})
        assert main(["--fixtures", path]) == 1
        assert "Error loading fixtures" in capsys.readouterr().err
