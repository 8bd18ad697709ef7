import pytest

from sgbm_tuner.controls import SLIDER_CONTROLS, control_for
from sgbm_tuner.parameters import ParameterSet


def test_every_parameter_has_a_slider():
    parameters = {control.parameter for control in SLIDER_CONTROLS}

    assert parameters == set(ParameterSet().to_dict())


def test_negative_ranges_use_an_offset():
    control = control_for('min_disparity')

    assert control.to_value(0) == -256
    assert control.to_position(-66) == 190
    assert control.to_value(control.to_position(-66)) == -66


def test_positions_are_clamped_to_slider_range():
    control = control_for('disp12_max_diff')

    assert control.to_position(-50) == 0
    assert control.to_position(1000) == control.positions


def test_default_parameters_fit_their_sliders():
    defaults = ParameterSet().to_dict()

    for control in SLIDER_CONTROLS:
        value = defaults[control.parameter]
        assert control.minimum <= value <= control.maximum
        assert control.to_value(control.to_position(value)) == value


def test_with_maximum_never_goes_below_minimum():
    control = control_for('block_size')

    assert control.with_maximum(48).maximum == 48
    assert control.with_maximum(2).maximum == control.minimum


def test_unknown_parameter():
    with pytest.raises(KeyError):
        control_for('window')
