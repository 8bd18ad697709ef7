import numpy as np
import pytest

from sgbm_tuner.exceptions import ImageSizeMismatch, InvalidParameter
from sgbm_tuner.tuner import TunerResult, TunerSession


class Recorder:
    def __init__(self):
        self.results = []
        self.errors = []

    def on_result(self, result):
        self.results.append(result)

    def on_error(self, error):
        self.errors.append(error)


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def session(params, recorder):
    return TunerSession(params=params(), on_result=recorder.on_result, on_error=recorder.on_error)


def test_nothing_is_computed_until_both_images_are_loaded(session, stereo_pair, recorder):
    left, right = stereo_pair(height=32, width=40, shift=2)

    assert session.recompute() is None
    assert session.set_left_image(left) is None
    assert recorder.results == []

    result = session.set_right_image(right)

    assert isinstance(result, TunerResult)
    assert recorder.results == [result]
    assert result.display.image.shape == (32, 40)
    assert result.parameters['block_size'] == 5


def test_loading_small_images_clamps_block_size(params, stereo_pair):
    session = TunerSession(params=params(block_size=11))
    left, right = stereo_pair(height=8, width=9, shift=0)

    session.set_left_image(left)

    assert session.block_size_limit == 8
    assert session.params.block_size == 7

    session.set_right_image(right)
    assert session.last_result is not None


def test_block_size_limit_is_floored_at_minimum_window(session, recorder):
    tiny = np.zeros((4, 4), dtype=np.uint8)

    session.set_left_image(tiny)
    result = session.set_right_image(tiny.copy())

    assert session.block_size_limit == 5
    assert result is None
    assert len(recorder.errors) == 1
    assert isinstance(recorder.errors[0], InvalidParameter)


def test_size_mismatch_is_reported_not_rendered(session, recorder):
    session.set_left_image(np.zeros((32, 40), dtype=np.uint8))
    result = session.set_right_image(np.zeros((32, 41), dtype=np.uint8))

    assert result is None
    assert session.last_result is None
    assert isinstance(session.last_error, ImageSizeMismatch)
    assert isinstance(recorder.errors[0], ImageSizeMismatch)


def test_parameter_change_returns_coerced_value_and_recomputes(session, stereo_pair, recorder):
    session.set_left_image(stereo_pair(height=32, width=40, shift=2)[0])
    session.set_right_image(stereo_pair(height=32, width=40, shift=2)[1])

    stored = session.on_parameter_changed('numberOfDisparities', 40)

    assert stored == 32
    assert session.params.num_disparities == 32
    assert recorder.results[-1].field.num_disparities == 32


def test_block_size_change_respects_image_bound(session, stereo_pair):
    left, right = stereo_pair(height=20, width=30, shift=1)
    session.set_left_image(left)
    session.set_right_image(right)

    assert session.on_parameter_changed('SADWindowSize', 200) == 19
    assert session.on_parameter_changed('block_size', 8) == 7


def test_rejected_value_raises_and_keeps_previous(session):
    with pytest.raises(InvalidParameter):
        session.on_parameter_changed('preFilterCap', 0)

    assert session.params.pre_filter_cap == 31


def test_recovering_from_invalid_combination(session, stereo_pair, recorder):
    left, right = stereo_pair(height=32, width=40, shift=2)
    session.set_left_image(left)
    session.set_right_image(right)

    session.on_parameter_changed('p2', 100)
    assert session.last_result is None
    assert isinstance(recorder.errors[-1], InvalidParameter)

    session.on_parameter_changed('p2', 900)
    assert session.last_result is not None
    assert session.last_error is None


def test_apply_changes_recomputes_once(session, stereo_pair, recorder):
    left, right = stereo_pair(height=32, width=40, shift=2)
    session.set_left_image(left)
    session.set_right_image(right)
    computed = len(recorder.results)

    stored = session.apply_changes({'uniquenessRatio': 5, 'speckle_window_size': 30, 'blockSize': 8})

    assert stored == {'uniqueness_ratio': 5, 'speckle_window_size': 30, 'block_size': 7}
    assert len(recorder.results) == computed + 1


def test_sweep_leaves_session_parameters_untouched(session, stereo_pair, recorder):
    left, right = stereo_pair(height=32, width=40, shift=2)
    session.set_left_image(left)
    session.set_right_image(right)
    computed = len(recorder.results)

    results = session.sweep('uniqueness_ratio', [0, 50])

    assert [value for value, _ in results] == [0, 50]
    assert results[0][1].parameters['uniqueness_ratio'] == 0
    first_valid = np.count_nonzero(results[0][1].field.valid_mask)
    second_valid = np.count_nonzero(results[1][1].field.valid_mask)
    assert second_valid <= first_valid
    assert session.params.uniqueness_ratio == 10
    assert len(recorder.results) == computed


def test_sweep_requires_images(session):
    with pytest.raises(RuntimeError):
        session.sweep('p1', [10])
