"""Tests for PCI pulley tube stress checks."""

import math
import pytest

from conveyorcalc.calculator.pci import (
    calculate_pci_tube_stress,
    get_tube_stress_limit,
    is_v_groove_pulley,
    run_pci_checks,
    worst_status,
)


def _expected_stress(od, wall, hub_centers, load):
    inner = od - 2 * wall
    return 8 * od * load * hub_centers / (math.pi * (od ** 4 - inner ** 4))


class TestTubeStress:

    def test_stress_formula(self):
        result = calculate_pci_tube_stress(4.0, 0.25, 24.0, 500.0, 10000.0)
        assert result.status == "pass"
        assert result.stress_psi == int(math.floor(_expected_stress(4.0, 0.25, 24.0, 500.0) + 0.5))

    def test_over_limit_warns_by_default(self):
        result = calculate_pci_tube_stress(2.0, 0.083, 36.0, 2000.0, 3400.0)
        assert result.status == "warn"

    def test_over_limit_fails_when_enforced(self):
        result = calculate_pci_tube_stress(2.0, 0.083, 36.0, 2000.0, 3400.0, enforce_checks=True)
        assert result.status == "fail"
        assert result.stress_psi > 3400

    def test_estimated_hub_centers(self):
        result = calculate_pci_tube_stress(4.0, 0.25, 24.0, 100.0, 10000.0, hub_centers_estimated=True)
        assert result.status == "estimated"

    @pytest.mark.parametrize("od,wall", [(None, 0.25), (4.0, None), (0.0, 0.25), (4.0, -1.0)])
    def test_missing_geometry_incomplete(self, od, wall):
        result = calculate_pci_tube_stress(od, wall, 24.0, 100.0, 10000.0)
        assert result.status == "incomplete"
        assert result.stress_psi is None

    def test_wall_exceeding_radius_is_error(self):
        result = calculate_pci_tube_stress(2.0, 1.0, 24.0, 100.0, 10000.0)
        assert result.status == "error"
        assert "exceeds radius" in result.error_message


class TestLimits:

    def test_v_groove_needs_v_guide_selected(self):
        assert is_v_groove_pulley("V-guided", "K10")
        assert not is_v_groove_pulley("V-guided", None)
        assert not is_v_groove_pulley("Crowned", "K10")

    def test_limits(self):
        assert get_tube_stress_limit(True) == 3400.0
        assert get_tube_stress_limit(False) == 10000.0


class TestStatusRollup:

    def test_worst_wins(self):
        assert worst_status("pass", "warn") == "warn"
        assert worst_status("estimated", "incomplete") == "incomplete"
        assert worst_status("fail", "error") == "error"

    def test_all_pass(self):
        assert worst_status("pass", "pass") == "pass"


class TestRunChecks:

    def test_no_tube_data(self):
        result = run_pci_checks({}, 200.0, 100.0, 24.0)
        assert result["pci_tube_stress_status"] == "incomplete"
        assert result["pci_hub_centers_in"] == 24.0
        assert result["pci_hub_centers_estimated"] is True

    def test_entered_hub_centers(self):
        inputs = {
            "hub_centers_in": 20.0,
            "drive_tube_od_in": 4.0,
            "drive_tube_wall_in": 0.25,
            "tail_tube_od_in": 4.0,
            "tail_tube_wall_in": 0.25,
        }
        result = run_pci_checks(inputs, 200.0, 100.0, 24.0)
        assert result["pci_hub_centers_estimated"] is False
        assert result["pci_drive_tube_status"] == "pass"
        assert result["pci_drive_tube_stress_psi"] > result["pci_tail_tube_stress_psi"]

    def test_v_groove_limit_applied(self):
        inputs = {"belt_tracking_method": "V-guided", "v_guide_key": "K10"}
        assert run_pci_checks(inputs, 0.0, 0.0, 24.0)["pci_tube_stress_limit_psi"] == 3400.0
