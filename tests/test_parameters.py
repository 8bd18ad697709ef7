import pytest

from sgbm_tuner.exceptions import InvalidParameter
from sgbm_tuner.parameters import ParameterSet


def test_defaults_match_tuner_start_values():
    params = ParameterSet()

    assert params.pre_filter_cap == 42
    assert params.block_size == 11
    assert params.min_disparity == -66
    assert params.num_disparities == 128
    assert params.uniqueness_ratio == 15
    assert params.speckle_window_size == 0
    assert params.speckle_range == 0
    assert params.disp12_max_diff == -1
    assert (params.p1, params.p2) == (120, 240)
    assert params.full_dp is False
    params.validate()


@pytest.mark.parametrize("value", range(2, 260, 2))
def test_even_block_size_becomes_next_lower_odd(value):
    params = ParameterSet()

    assert params.set_block_size(value) == value - 1
    assert params.block_size == value - 1


@pytest.mark.parametrize("value", [5, 7, 11, 255])
def test_odd_block_size_is_kept(value):
    params = ParameterSet()

    assert params.set_block_size(value) == value


@pytest.mark.parametrize("value", [-40, -1, 0, 1, 15, 16, 17, 31, 32, 100, 128, 129])
def test_num_disparities_floors_to_multiple_of_16(value):
    params = ParameterSet()

    stored = params.set_num_disparities(value)

    assert stored == (value // 16) * 16
    assert params.num_disparities == stored


@pytest.mark.parametrize("value", [-32, -1, 0, 15])
def test_non_positive_num_disparities_fails_validation(value):
    params = ParameterSet()
    params.set_num_disparities(value)

    with pytest.raises(InvalidParameter) as excinfo:
        params.validate()
    assert excinfo.value.name == 'num_disparities'


@pytest.mark.parametrize("value", [0, 64, -3])
def test_pre_filter_cap_out_of_range_is_rejected(value):
    params = ParameterSet()

    with pytest.raises(InvalidParameter):
        params.set_pre_filter_cap(value)
    assert params.pre_filter_cap == 42


@pytest.mark.parametrize("name", ['uniqueness_ratio', 'speckle_window_size', 'speckle_range', 'p1', 'p2'])
def test_negative_values_are_rejected(name):
    params = ParameterSet()

    with pytest.raises(InvalidParameter) as excinfo:
        params.set(name, -1)
    assert excinfo.value.name == name


def test_min_disparity_and_disp12_accept_negative_values():
    params = ParameterSet()

    assert params.set_min_disparity(-100) == -100
    assert params.set_disp12_max_diff(-5) == -5


def test_full_dp_accepts_slider_integers():
    params = ParameterSet()

    assert params.set_full_dp(1) is True
    assert params.set_full_dp(0) is False
    with pytest.raises(InvalidParameter):
        params.set_full_dp(2)


def test_non_integer_values_are_rejected():
    params = ParameterSet()

    with pytest.raises(InvalidParameter):
        params.set_uniqueness_ratio(2.5)
    with pytest.raises(InvalidParameter):
        params.set_p1("many")
    with pytest.raises(InvalidParameter):
        params.set_block_size(True)


def test_set_accepts_opencv_parameter_names():
    params = ParameterSet()

    assert params.set('SADWindowSize', 8) == 7
    assert params.set('numberOfDisparities', 70) == 64
    assert params.set('preFilterCap', 10) == 10
    assert params.set('P2', 500) == 500
    assert params.set('fullDP', 1) is True
    assert params.block_size == 7
    assert params.num_disparities == 64


def test_set_unknown_name_raises():
    with pytest.raises(InvalidParameter):
        ParameterSet().set('window', 5)


@pytest.mark.parametrize("p1, p2", [(100, 100), (200, 100)])
def test_p2_not_greater_than_p1_fails_validation(p1, p2):
    params = ParameterSet(p1=p1, p2=p2)

    with pytest.raises(InvalidParameter) as excinfo:
        params.validate()
    assert excinfo.value.name == 'p2'


@pytest.mark.parametrize("block_size", [1, 3, 257])
def test_block_size_outside_range_fails_validation(block_size):
    params = ParameterSet(block_size=block_size)

    with pytest.raises(InvalidParameter):
        params.validate()


def test_block_size_larger_than_image_fails_validation():
    params = ParameterSet(block_size=21)

    params.validate((40, 21))
    with pytest.raises(InvalidParameter):
        params.validate((40, 20))


def test_disparity_range_must_fit_int16():
    with pytest.raises(InvalidParameter):
        ParameterSet(min_disparity=-3000).validate()
    with pytest.raises(InvalidParameter):
        ParameterSet(min_disparity=2000, num_disparities=128).validate()


@pytest.mark.parametrize("width, height, expected", [
    (640, 480, 255),
    (100, 200, 100),
    (64, 48, 48),
    (3, 3, 5),
])
def test_max_block_size(width, height, expected):
    assert ParameterSet.max_block_size(width, height) == expected


def test_clamp_block_size_keeps_value_odd():
    params = ParameterSet(block_size=101)

    assert params.clamp_block_size(48) == 47
    assert params.clamp_block_size(255) == 47


def test_copy_and_dict_round_trip():
    params = ParameterSet(block_size=7, min_disparity=-16, full_dp=True)

    clone = params.copy()
    clone.set_block_size(9)

    assert params.block_size == 7
    assert ParameterSet.from_dict(params.to_dict()) == params


def test_from_dict_goes_through_setters():
    params = ParameterSet.from_dict({'blockSize': 10, 'num_disparities': 40})

    assert params.block_size == 9
    assert params.num_disparities == 32
    with pytest.raises(InvalidParameter):
        ParameterSet.from_dict({'pre_filter_cap': 100})
