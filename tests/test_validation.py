"""
Tests for configuration validation rules.

Most tests normalize a configuration, run the formulas and then validate,
which is how the engine uses the rules. Rules that do not need outputs are
also exercised without them.
"""

import pytest

from conveyorcalc.calculator.core import calculate
from conveyorcalc.calculator.migrate import normalize
from conveyorcalc.calculator.validation import Finding, Severity, validate, validate_result
from conveyorcalc.io.models import Parameters


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _codes(messages):
    """Extract code strings from a list of Findings."""
    return [m.code for m in messages]


def _find(messages, code):
    matches = [m for m in messages if m.code == code]
    assert matches, f"{code} not in {_codes(messages)}"
    return matches[0]


def _canonical(base, **overrides):
    merged = dict(base)
    merged.update(overrides)
    return normalize(merged)


def _validate(base, **overrides):
    canonical = _canonical(base, **overrides)
    return validate(canonical, outputs=calculate(canonical))


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestBaseConfiguration:

    def test_base_is_clean(self, base_inputs):
        assert _validate(base_inputs) == []

    def test_repeated_calls_identical(self, base_inputs):
        canonical = _canonical(base_inputs, frame_height_mode="Low Profile", conveyor_incline_deg=25.0)
        outputs = calculate(canonical)
        first = validate(canonical, outputs=outputs)
        second = validate(canonical, outputs=outputs)
        assert first == second
        assert first

    def test_result_wrapper(self, base_inputs):
        result = validate_result(_canonical(base_inputs, part_temperature_class="Red Hot"))
        assert not result.valid
        assert _codes(result.errors) == ["RED_HOT_PARTS"]
        assert result.warnings == []

    def test_findings_are_frozen(self):
        finding = Finding(severity=Severity.INFO, code="X", message="x")
        with pytest.raises(AttributeError):
            finding.code = "Y"


class TestRequiredInputs:

    def test_zero_length(self, base_inputs):
        messages = validate(_canonical(base_inputs, conveyor_length_cc_in=0))
        assert "CONVEYOR_LENGTH_REQUIRED" in _codes(messages)
        # The geometry error on the same field is not repeated
        assert "GEOMETRY_INVALID" not in _codes(messages)

    def test_negative_incline(self, base_inputs):
        messages = validate(_canonical(base_inputs, conveyor_incline_deg=-5))
        finding = _find(messages, "INCLINE_NEGATIVE")
        assert finding.severity == Severity.ERROR

    def test_belt_speed_required(self, base_inputs):
        assert "BELT_SPEED_REQUIRED" in _codes(validate(_canonical(base_inputs, belt_speed_fpm=0)))

    def test_drive_rpm_required_in_rpm_mode(self, base_inputs):
        messages = validate(_canonical(base_inputs, speed_mode="drive_rpm"))
        finding = _find(messages, "DRIVE_RPM_REQUIRED")
        assert finding.field == "drive_rpm_input"
        assert "BELT_SPEED_REQUIRED" not in _codes(messages)

    def test_part_fields(self, base_inputs):
        messages = validate(_canonical(base_inputs, part_weight_lbs=0, part_spacing_in=-1))
        assert "PART_WEIGHT_LBS_REQUIRED" in _codes(messages)
        assert "PART_SPACING_NEGATIVE" in _codes(messages)

    def test_negative_throughput_and_drop(self, base_inputs):
        messages = validate(_canonical(base_inputs, required_throughput_pph=-1, drop_height_in=-2))
        assert "THROUGHPUT_NEGATIVE" in _codes(messages)
        assert "DROP_HEIGHT_NEGATIVE" in _codes(messages)


class TestBulkMaterial:

    def test_method_required(self, base_inputs):
        messages = validate(_canonical(base_inputs, material_form="BULK"))
        assert "BULK_METHOD_REQUIRED" in _codes(messages)
        assert "PART_WEIGHT_LBS_REQUIRED" not in _codes(messages)

    def test_volume_flow_needs_density(self, base_inputs):
        messages = validate(_canonical(
            base_inputs, material_form="BULK", bulk_input_method="VOLUME_FLOW", volume_flow_ft3_per_hr=5.0,
        ))
        assert _codes(messages) == ["DENSITY_REQUIRED"]

    def test_lump_sizes_inverted(self, base_inputs):
        messages = validate(_canonical(
            base_inputs,
            material_form="BULK",
            bulk_input_method="WEIGHT_FLOW",
            mass_flow_lbs_per_hr=500.0,
            smallest_lump_size_in=3.0,
            largest_lump_size_in=1.0,
        ))
        assert _codes(messages) == ["LUMP_SIZE_INVERTED"]


class TestParameters:

    def test_friction_out_of_range(self, base_inputs):
        messages = validate(_canonical(base_inputs), parameters=Parameters(friction_coeff=0.05))
        assert "PARAM_FRICTION_RANGE" in _codes(messages)

    def test_safety_factor_low(self, base_inputs):
        messages = validate(_canonical(base_inputs), parameters=Parameters(safety_factor=0.9))
        assert "PARAM_SAFETY_FACTOR_LOW" in _codes(messages)

    @pytest.mark.parametrize("key,value,code", [
        ("safety_factor", 0.5, "SAFETY_FACTOR_LOW"),
        ("safety_factor", 6.0, "SAFETY_FACTOR_HIGH"),
        ("starting_belt_pull_lb", -1.0, "STARTING_PULL_LOW"),
        ("friction_coeff", 0.7, "FRICTION_COEFF_HIGH"),
        ("motor_rpm", 5000.0, "MOTOR_RPM_HIGH"),
    ])
    def test_power_user_ranges(self, base_inputs, key, value, code):
        messages = validate(_canonical(base_inputs, **{key: value}))
        assert code in _codes(messages)

    def test_power_user_range_inclusive(self, base_inputs):
        messages = validate(_canonical(base_inputs, safety_factor=5.0, motor_rpm=800.0))
        assert messages == []

    def test_belt_coefficients(self, base_inputs):
        messages = validate(_canonical(base_inputs, belt_coeff_piw=0.0, belt_coeff_pil=0.5))
        assert _find(messages, "BELT_COEFF_NOT_POSITIVE").field == "belt_coeff_piw"
        out_of_range = _find(messages, "BELT_COEFF_OUT_OF_RANGE")
        assert out_of_range.severity == Severity.ERROR
        assert out_of_range.field == "belt_coeff_pil"

    @pytest.mark.parametrize("value,valid", [(0.5, False), (0.04, False), (0.30, True), (0.05, True)])
    def test_belt_coefficient_range_blocks(self, base_inputs, value, valid):
        result = validate_result(_canonical(base_inputs, belt_coeff_piw=value))
        assert result.valid is valid


class TestGeometry:

    def test_missing_tob_flags_missing_field(self, base_inputs):
        messages = validate(_canonical(
            base_inputs, geometry_mode="H_TOB", horizontal_run_in=120.0, tail_tob_in=30.0,
        ))
        finding = _find(messages, "GEOMETRY_INVALID")
        assert finding.field == "drive_tob_in"
        assert finding.message == "H_TOB mode requires both tail and drive TOB values"

    def test_missing_horizontal_run(self, base_inputs):
        inputs = dict(base_inputs)
        del inputs["conveyor_length_cc_in"]
        messages = validate(_canonical(inputs, geometry_mode="H_ANGLE"))
        assert _find(messages, "GEOMETRY_INVALID").field == "horizontal_run_in"
        assert "CONVEYOR_LENGTH_REQUIRED" not in _codes(messages)

    def test_angle_mismatch(self, base_inputs):
        messages = _validate(
            base_inputs,
            support_method="floor_supported",
            include_legs=True,
            leg_model_key="L-24",
            tail_tob_in=30.0,
            drive_tob_in=50.0,
        )
        finding = _find(messages, "ANGLE_MISMATCH")
        assert finding.severity == Severity.WARNING
        assert finding.field == "conveyor_incline_deg"

    def test_matching_tobs_no_mismatch(self, base_inputs):
        messages = _validate(
            base_inputs,
            support_method="floor_supported",
            include_legs=True,
            leg_model_key="L-24",
            tail_tob_in=30.0,
            drive_tob_in=30.0,
        )
        assert messages == []

    def test_negative_tob(self, base_inputs):
        messages = validate(_canonical(
            base_inputs, geometry_mode="H_TOB", horizontal_run_in=120.0, tail_tob_in=-1.0, drive_tob_in=10.0,
        ))
        assert "TOB_NEGATIVE" in _codes(messages)


class TestPulleysAndShafts:

    def test_pulley_too_small(self, base_inputs):
        messages = _validate(base_inputs, drive_pulley_diameter_in=2.0, tail_pulley_diameter_in=2.0)
        assert _codes(messages).count("PULLEY_DIAMETER_TOO_SMALL") == 2

    def test_v_guide_required(self, base_inputs):
        messages = _validate(base_inputs, belt_tracking_method="V-guided")
        assert "V_GUIDE_REQUIRED" in _codes(messages)

    def test_below_belt_minimum(self, base_inputs):
        messages = _validate(base_inputs, belt_min_pulley_dia_no_vguide_in=5.0)
        assert _codes(messages) == ["PULLEY_BELOW_BELT_MINIMUM", "PULLEY_BELOW_BELT_MINIMUM"]
        assert all(m.severity == Severity.WARNING for m in messages)

    def test_manual_shaft_required(self, base_inputs):
        messages = _validate(base_inputs, shaft_diameter_mode="Manual", drive_shaft_diameter_in=1.25)
        finding = _find(messages, "SHAFT_DIAMETER_REQUIRED")
        assert finding.field == "tail_shaft_diameter_in"

    def test_manual_shaft_out_of_range(self, base_inputs):
        messages = _validate(
            base_inputs, shaft_diameter_mode="Manual", drive_shaft_diameter_in=5.0, tail_shaft_diameter_in=1.0,
        )
        assert _codes(messages) == ["SHAFT_DIAMETER_OUT_OF_RANGE"]


CLEATS = {"cleats_enabled": True, "cleat_height_in": 1.0, "cleat_spacing_in": 18.0, "cleat_edge_offset_in": 0.5}


class TestCleats:

    def test_complete_cleats(self, base_inputs):
        messages = _validate(base_inputs, **CLEATS)
        assert all(m.severity != Severity.ERROR for m in messages)
        assert not [c for c in _codes(messages) if c.startswith("CLEAT_")]

    def test_enabled_without_dimensions(self, base_inputs):
        result = validate_result(_canonical(base_inputs, cleats_enabled=True))
        assert not result.valid
        assert [m.code for m in result.errors] == [
            "CLEAT_HEIGHT_REQUIRED",
            "CLEAT_SPACING_REQUIRED",
            "CLEAT_EDGE_OFFSET_REQUIRED",
        ]

    def test_size_stands_in_for_height(self, base_inputs):
        inputs = dict(CLEATS, cleat_height_in=None, cleat_size='3"')
        assert "CLEAT_HEIGHT_REQUIRED" not in _codes(_validate(base_inputs, **inputs))

    def test_unreadable_size_still_requires_height(self, base_inputs):
        inputs = dict(CLEATS, cleat_height_in=None, cleat_size="abc")
        assert "CLEAT_HEIGHT_REQUIRED" in _codes(_validate(base_inputs, **inputs))

    @pytest.mark.parametrize("key,value,code", [
        ("cleat_height_in", 0.25, "CLEAT_HEIGHT_OUT_OF_RANGE"),
        ("cleat_height_in", 7.0, "CLEAT_HEIGHT_OUT_OF_RANGE"),
        ("cleat_spacing_in", 1.0, "CLEAT_SPACING_OUT_OF_RANGE"),
        ("cleat_spacing_in", 50.0, "CLEAT_SPACING_OUT_OF_RANGE"),
        ("cleat_edge_offset_in", -0.5, "CLEAT_EDGE_OFFSET_NEGATIVE"),
        ("cleat_edge_offset_in", 15.0, "CLEAT_EDGE_OFFSET_TOO_LARGE"),
    ])
    def test_ranges(self, base_inputs, key, value, code):
        finding = _find(_validate(base_inputs, **dict(CLEATS, **{key: value})), code)
        assert finding.severity == Severity.ERROR
        assert finding.field == key

    def test_range_limits_inclusive(self, base_inputs):
        inputs = dict(CLEATS, cleat_height_in=6.0, cleat_spacing_in=48.0, cleat_edge_offset_in=0.0)
        assert not [c for c in _codes(_validate(base_inputs, **inputs)) if c.startswith("CLEAT_")]

    def test_spacing_below_part_travel(self, base_inputs):
        messages = _validate(base_inputs, **dict(CLEATS, cleat_spacing_in=8.0))
        finding = _find(messages, "CLEAT_SPACING_BELOW_PART")
        assert finding.severity == Severity.WARNING
        assert "travel dimension" in finding.message

    def test_spacing_uses_crosswise_travel(self, base_inputs):
        messages = _validate(base_inputs, orientation="Crosswise", **dict(CLEATS, cleat_spacing_in=8.0))
        assert "CLEAT_SPACING_BELOW_PART" not in _codes(messages)

    def test_edge_offset_overlap(self, base_inputs):
        messages = _validate(base_inputs, belt_width_in=20.0, **dict(CLEATS, cleat_edge_offset_in=11.0))
        finding = _find(messages, "CLEAT_EDGE_OFFSET_OVERLAP")
        assert finding.severity == Severity.WARNING
        assert "overlap" in finding.message

    def test_disabled_cleats_not_checked(self, base_inputs):
        assert _validate(base_inputs, cleats_enabled=False, cleat_spacing_in=1.0) == []


class TestFrame:

    def test_low_profile_with_cleats(self, base_inputs):
        messages = _validate(base_inputs, frame_height_mode="Low Profile", cleats_enabled=True, cleat_height_in=1.0)
        finding = _find(messages, "LOW_PROFILE_WITH_CLEATS")
        assert finding.severity == Severity.ERROR
        assert finding.field == "frame_height_mode"
        assert "Low Profile not compatible with cleats" in finding.message

    def test_low_profile_snub_info(self, base_inputs):
        messages = _validate(base_inputs, frame_height_mode="Low Profile")
        finding = _find(messages, "SNUB_ROLLERS_REQUIRED")
        assert finding.severity == Severity.INFO
        assert finding.message.startswith("Snub rollers will be required")

    def test_custom_height_required(self, base_inputs):
        messages = _validate(base_inputs, frame_height_mode="Custom")
        assert "CUSTOM_FRAME_HEIGHT_REQUIRED" in _codes(messages)

    def test_custom_height_too_low(self, base_inputs):
        messages = _validate(base_inputs, frame_height_mode="Custom", custom_frame_height_in=2.5)
        assert _find(messages, "CUSTOM_FRAME_HEIGHT_TOO_LOW").message == 'Custom frame height must be at least 3.0"'
        review = _find(messages, "FRAME_HEIGHT_DESIGN_REVIEW")
        assert review.severity == Severity.WARNING
        assert "Design review required." in review.message

    def test_cleats_increase_frame_height(self, base_inputs):
        messages = _validate(base_inputs, cleats_enabled=True, cleat_height_in=1.0)
        finding = _find(messages, "CLEATS_INCREASE_FRAME_HEIGHT")
        assert finding.severity == Severity.INFO
        assert "cleat height" in finding.message

    def test_channel_series_required(self, base_inputs):
        canonical = _canonical(base_inputs, frame_construction_type="structural_channel")
        canonical.pop("frame_structural_channel_series")
        assert "CHANNEL_SERIES_REQUIRED" in _codes(validate(canonical))


class TestDrive:

    def test_low_tooth_count(self, base_inputs):
        messages = _validate(base_inputs, gearmotor_mounting_style="bottom_mount", gm_sprocket_teeth=10)
        finding = _find(messages, "SPROCKET_TEETH_LOW")
        assert "sprockets under 12 teeth" in finding.message

    def test_chain_ratio_out_of_range(self, base_inputs):
        messages = _validate(
            base_inputs, gearmotor_mounting_style="bottom_mount", gm_sprocket_teeth=12, drive_shaft_sprocket_teeth=48,
        )
        assert "chain ratio" in _find(messages, "CHAIN_RATIO_OUT_OF_RANGE").message

    def test_invalid_teeth_skip_ratio_check(self, base_inputs):
        messages = validate(_canonical(base_inputs, gearmotor_mounting_style="bottom_mount", gm_sprocket_teeth=0))
        assert _codes(messages) == ["SPROCKET_TEETH_INVALID"]

    def test_shaft_mounted_ignores_sprockets(self, base_inputs):
        messages = _validate(base_inputs, gm_sprocket_teeth=0)
        assert messages == []


class TestSupport:

    def test_floor_support_requirements(self, base_inputs):
        messages = validate(_canonical(base_inputs, support_method="legs"))
        assert "REFERENCE_TOB_REQUIRED" in _codes(messages)
        assert "LEG_MODEL_REQUIRED" in _codes(messages)

    def test_drive_reference_end(self, base_inputs):
        messages = validate(_canonical(
            base_inputs, support_method="legs", leg_model_key="L-24", reference_end="drive", tail_tob_in=30.0,
        ))
        assert _find(messages, "REFERENCE_TOB_REQUIRED").field == "drive_tob_in"

    def test_casters(self, base_inputs):
        messages = validate(_canonical(base_inputs, support_method="casters", tail_tob_in=30.0))
        assert _find(messages, "CASTER_QTY_REQUIRED").field == "caster_rigid_qty"

    def test_caster_model_required(self, base_inputs):
        messages = validate(_canonical(
            base_inputs, support_method="casters", tail_tob_in=30.0, caster_swivel_qty=4,
        ))
        assert _find(messages, "CASTER_MODEL_REQUIRED").field == "caster_swivel_model_key"

    def test_external_support_needs_nothing(self, base_inputs):
        assert validate(_canonical(base_inputs, support_method="external")) == []


class TestApplication:

    def test_red_hot(self, base_inputs):
        assert _find(_validate(base_inputs, part_temperature_class="Red Hot"), "RED_HOT_PARTS").severity == Severity.ERROR

    def test_oil(self, base_inputs):
        assert "CONSIDERABLE_OIL" in _codes(_validate(base_inputs, fluid_type="Considerable Oil / Liquid"))
        assert _find(_validate(base_inputs, fluid_type="Minimal Residual Oil"), "MINIMAL_OIL").severity == Severity.INFO

    def test_short_fluid_values(self, base_inputs):
        assert "CONSIDERABLE_OIL" in _codes(_validate(base_inputs, fluid_type="CONSIDERABLE"))
        assert "MINIMAL_OIL" in _codes(_validate(base_inputs, fluid_type="MINIMAL"))

    def test_long_conveyor(self, base_inputs):
        assert "LONG_CONVEYOR" in _codes(_validate(base_inputs, conveyor_length_cc_in=240.0))

    def test_high_drop(self, base_inputs):
        assert "HIGH_DROP_HEIGHT" in _codes(_validate(base_inputs, drop_height_in=24.0))

    @pytest.mark.parametrize("angle,code", [
        (25.0, "INCLINE_STEEP"),
        (40.0, "INCLINE_VERY_STEEP"),
        (50.0, "INCLINE_TOO_STEEP"),
    ])
    def test_incline_thresholds(self, base_inputs, angle, code):
        codes = _codes(_validate(base_inputs, conveyor_incline_deg=angle))
        incline_codes = [c for c in codes if c.startswith("INCLINE_")]
        assert incline_codes == [code]

    def test_incline_at_threshold_is_clean(self, base_inputs):
        assert _validate(base_inputs, conveyor_incline_deg=20.0) == []


class TestFeatures:

    def test_finger_safe(self, base_inputs):
        messages = _validate(base_inputs, finger_safe=True, end_guards="None", bottom_covers=False)
        assert _codes(messages) == ["FINGER_SAFE_NO_END_GUARDS", "FINGER_SAFE_NO_BOTTOM_COVERS"]

    def test_not_finger_safe(self, base_inputs):
        assert _validate(base_inputs, finger_safe=False, end_guards="None") == []

    def test_clipper_lacing(self, base_inputs):
        assert "CLIPPER_LACING" in _codes(_validate(base_inputs, lacing_style="Clipper Lacing"))

    def test_short_cycle(self, base_inputs):
        messages = _validate(base_inputs, start_stop_application=True, cycle_time_seconds=5)
        assert "SHORT_CYCLE_START_STOP" in _codes(messages)

    def test_moderate_side_loading(self, base_inputs):
        messages = _validate(base_inputs, side_loading_direction="Left", side_loading_severity="Moderate")
        assert _codes(messages) == ["MODERATE_SIDE_LOADING"]

    def test_heavy_side_loading_crowned_blocks(self, base_inputs):
        messages = _validate(base_inputs, side_loading_direction="Left", side_loading_severity="Heavy")
        assert _codes(messages) == ["HEAVY_SIDE_LOADING_REQUIRES_V_GUIDE", "HEAVY_SIDE_LOADING"]
        blocking = _find(messages, "HEAVY_SIDE_LOADING_REQUIRES_V_GUIDE")
        assert blocking.severity == Severity.ERROR
        assert blocking.field == "belt_tracking_method"

    def test_heavy_side_loading_without_direction(self, base_inputs):
        messages = _validate(base_inputs, side_loading_severity="Heavy")
        assert "HEAVY_SIDE_LOADING_REQUIRES_V_GUIDE" in _codes(messages)

    def test_heavy_side_loading_v_guided(self, base_inputs):
        messages = _validate(
            base_inputs,
            side_loading_direction="Both",
            side_loading_severity="Heavy",
            belt_tracking_method="V-guided",
        )
        assert _find(messages, "HEAVY_SIDE_LOADING").severity == Severity.WARNING
        assert all(m.severity != Severity.ERROR for m in messages)


class TestPci:

    THIN_TUBES = {
        "hub_centers_in": 60.0,
        "drive_tube_od_in": 1.5,
        "drive_tube_wall_in": 0.065,
        "tail_tube_od_in": 1.5,
        "tail_tube_wall_in": 0.065,
    }

    def test_exceeded_warns(self, base_inputs):
        messages = _validate(base_inputs, **self.THIN_TUBES)
        exceeded = [m for m in messages if m.code == "PCI_TUBE_STRESS_EXCEEDED"]
        assert len(exceeded) == 2
        assert all(m.severity == Severity.WARNING for m in exceeded)

    def test_exceeded_fails_when_enforced(self, base_inputs):
        messages = _validate(base_inputs, enforce_pci_checks=True, **self.THIN_TUBES)
        assert _find(messages, "PCI_TUBE_STRESS_EXCEEDED").severity == Severity.ERROR

    def test_invalid_tube(self, base_inputs):
        messages = _validate(base_inputs, drive_tube_od_in=2.0, drive_tube_wall_in=1.0)
        assert _find(messages, "PCI_TUBE_GEOMETRY_INVALID").field == "drive_tube_wall_in"

    def test_estimated_hub_centers(self, base_inputs):
        messages = _validate(base_inputs, drive_tube_od_in=4.0, drive_tube_wall_in=0.25)
        finding = _find(messages, "PCI_HUB_CENTERS_ESTIMATED")
        assert finding.severity == Severity.INFO
        assert finding.field == "hub_centers_in"
