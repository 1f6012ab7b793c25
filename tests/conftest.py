"""
Pytest configuration and shared fixtures for conveyorcalc tests.
"""

import json
import pytest


def _base_inputs():
    """A valid, level, 10 ft conveyor carrying discrete parts."""
    return {
        "conveyor_length_cc_in": 120.0,
        "belt_width_in": 24.0,
        "conveyor_incline_deg": 0.0,
        "drive_pulley_diameter_in": 4.0,
        "tail_pulley_diameter_in": 4.0,
        "belt_speed_fpm": 65.0,
        "part_weight_lbs": 5.0,
        "part_length_in": 12.0,
        "part_width_in": 6.0,
        "part_spacing_in": 12.0,
        "drop_height_in": 0.0,
        "orientation": "Lengthwise",
        "part_temperature_class": "Ambient",
        "fluid_type": "None",
        "belt_tracking_method": "Crowned",
        "shaft_diameter_mode": "Calculated",
        "frame_height_mode": "Standard",
    }


@pytest.fixture
def base_inputs():
    """Fresh copy of the valid base configuration."""
    return _base_inputs()


@pytest.fixture
def legacy_inputs():
    """Configuration as saved by an old schema revision."""
    return {
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
        "support_option": "Floor Mounted",
        "tail_tob_in": 36.0,
    }


@pytest.fixture
def inputs_file(tmp_path):
    """Write the base configuration to a JSON file and return its path."""
    path = tmp_path / "conveyor.json"
    path.write_text(json.dumps(_base_inputs()))
    return path
