import numpy as np
import pytest

from beat_mapping_helper import movement
from beat_mapping_helper.animation import Track, TrackShapeError


class TestRotatePoint:
    def test_no_rotation(self):
        np.testing.assert_allclose(movement.rotate_point([1, 2, 3], [0, 0, 0]), [1, 2, 3])

    def test_yaw(self):
        np.testing.assert_allclose(movement.rotate_point([0, 0, 1], [0, 90, 0]), [1, 0, 0], atol=1e-12)

    def test_pitch(self):
        np.testing.assert_allclose(movement.rotate_point([0, 1, 0], [90, 0, 0]), [0, 0, 1], atol=1e-12)

    def test_anchor(self):
        np.testing.assert_allclose(movement.rotate_point([2, 0, 0], [0, 0, 90], anchor=[1, 0, 0]), [1, 1, 0], atol=1e-12)

    def test_z_applied_before_y(self):
        # roll first moves x to y, the yaw afterwards does not affect the y axis
        np.testing.assert_allclose(movement.rotate_point([1, 0, 0], [0, 90, 90]), [0, 1, 0], atol=1e-12)

    def test_input_not_modified(self):
        point = np.array([1.0, 0.0, 0.0])
        movement.rotate_point(point, [0, 0, 90])
        np.testing.assert_allclose(point, [1, 0, 0])


class TestTrackMovement:
    track = Track.from_raw([[0, 0, 0, 0], [1, 0, 0, 1, "easeInQuad"]], "position")

    def test_offset(self):
        out = movement.offset(self.track, [1, 2, 3])
        assert out.to_raw() == [[1, 2, 3, 0], [2, 2, 3, 1, "easeInQuad"]]
        assert self.track.to_raw() == [[0, 0, 0, 0], [1, 0, 0, 1, "easeInQuad"]]

    def test_scale(self):
        out = movement.scale(self.track, [2, 1, 1])
        assert out.to_raw() == [[0, 0, 0, 0], [2, 0, 0, 1, "easeInQuad"]]

    def test_scale_with_pivot(self):
        out = movement.scale(self.track, [2, 2, 2], pivot=[1, 0, 0])
        assert out.to_raw() == [[-1, 0, 0, 0], [1, 0, 0, 1, "easeInQuad"]]

    def test_rotate(self):
        out = movement.rotate(self.track, [0, 0, 90])
        np.testing.assert_allclose(out.values, [[0, 0, 0], [0, 1, 0]], atol=1e-12)
        assert out[1].easing == "easeInQuad"
        assert list(out.times) == [0, 1]

    def test_static_stays_static(self):
        out = movement.offset(Track.from_raw([1, 1, 1], "position"), [1, 0, 0])
        assert out.static
        assert out.to_raw() == [2, 1, 1]

    def test_empty(self):
        empty = Track()
        assert movement.offset(empty, [1, 0, 0]) is empty

    def test_needs_vectors(self):
        with pytest.raises(TrackShapeError):
            movement.offset(Track.from_raw([[0, 0], [1, 1]], "dissolve"), [1, 0, 0])
