import pytest

from beat_mapping_helper.animation import (
    Keyframe,
    ParseError,
    Track,
    TrackShapeError,
    animation_from_raw,
    animation_to_raw,
    property_arity,
)


# ---------------------------------------------------------------------------
# Keyframe parsing
# ---------------------------------------------------------------------------


class TestKeyframeParse:
    def test_values_time_and_easing(self):
        kf = Keyframe.parse([1, 2, 3, 0.5, "easeInQuad"])
        assert kf.values == (1, 2, 3)
        assert kf.time == pytest.approx(0.5)
        assert kf.easing == "easeInQuad"
        assert kf.spline is None
        assert kf.flags == ()

    def test_round_trip(self):
        raw = [0, 1, 0, 0.25, "easeOutCubic", "splineCatmullRom"]
        assert Keyframe.parse(raw).to_raw() == raw

    def test_modifier_order_is_kept(self):
        raw = [1, 0, 0, 1, 1, "lerpHSV", "easeInSine"]
        kf = Keyframe.parse(raw)
        assert kf.flags == ("lerpHSV",)
        assert kf.easing == "easeInSine"
        assert kf.to_raw() == raw

    def test_implicit_time_with_known_arity(self):
        kf = Keyframe.parse([1, 2, 3], arity=3)
        assert kf.values == (1, 2, 3)
        assert kf.time == 0

    def test_without_arity_last_number_is_time(self):
        kf = Keyframe.parse([1, 2, 3])
        assert kf.values == (1, 2)
        assert kf.time == 3

    def test_wrong_arity(self):
        with pytest.raises(ParseError):
            Keyframe.parse([1, 2, 0.5], arity=1)

    def test_too_short(self):
        with pytest.raises(ParseError):
            Keyframe.parse([1])

    def test_only_modifier(self):
        with pytest.raises(ParseError):
            Keyframe.parse([1, "easeInQuad"])

    def test_unknown_easing(self):
        with pytest.raises(ParseError):
            Keyframe.parse([0, 1, "easeSideways"])

    def test_unknown_spline(self):
        with pytest.raises(ParseError):
            Keyframe.parse([0, 1, "splineBezier"])

    def test_multiple_easings(self):
        with pytest.raises(ParseError):
            Keyframe.parse([0, 1, "easeInQuad", "easeOutQuad"])

    def test_number_after_modifier(self):
        with pytest.raises(ParseError):
            Keyframe.parse([0, "easeInQuad", 1])

    def test_bool_is_not_a_number(self):
        with pytest.raises(ParseError):
            Keyframe.parse([True, 0])

    def test_not_a_list(self):
        with pytest.raises(ParseError) as excinfo:
            Keyframe.parse("easeInQuad")
        assert excinfo.value.data == "easeInQuad"
        assert "Error while parsing" in str(excinfo.value)

    def test_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            Keyframe.parse([])


class TestKeyframeModifiers:
    def test_build(self):
        kf = Keyframe.build((1, 2, 3), 0.5, easing="easeInQuad", flags=("lerpHSV",))
        assert kf.to_raw() == [1, 2, 3, 0.5, "easeInQuad", "lerpHSV"]

    def test_with_easing_returns_new_keyframe(self):
        kf = Keyframe.parse([0, 0, 0, 1])
        eased = kf.with_easing("easeOutBounce")
        assert eased.easing == "easeOutBounce"
        assert kf.easing is None

    def test_with_easing_replaces(self):
        kf = Keyframe.parse([0, 1, "easeInQuad", "splineCatmullRom"])
        assert kf.with_easing("easeOutQuad").modifiers == ("easeOutQuad", "splineCatmullRom")
        assert kf.with_easing(None).modifiers == ("splineCatmullRom",)

    def test_with_easing_validates(self):
        with pytest.raises(ParseError):
            Keyframe.parse([0, 1]).with_easing("easeNowhere")

    def test_with_spline(self):
        kf = Keyframe.parse([0, 0, 0, 1]).with_spline("splineCatmullRom")
        assert kf.spline == "splineCatmullRom"

    def test_with_values_and_time(self):
        kf = Keyframe.parse([0, 0, 0, 1, "easeInQuad"])
        moved = kf.with_values((1, 2, 3)).with_time(2)
        assert moved.to_raw() == [1.0, 2.0, 3.0, 2, "easeInQuad"]

    def test_frozen(self):
        kf = Keyframe.parse([0, 1])
        with pytest.raises(AttributeError):
            kf.time = 2


# ---------------------------------------------------------------------------
# Track parsing and access
# ---------------------------------------------------------------------------


class TestTrackFromRaw:
    def test_static_vector(self):
        track = Track.from_raw([0, 1, 2], "position")
        assert track.static
        assert len(track) == 1
        assert track.to_raw() == [0, 1, 2]

    def test_static_wrong_arity(self):
        with pytest.raises(ParseError):
            Track.from_raw([0, 1], "position")

    def test_scalar_for_vector_property(self):
        with pytest.raises(ParseError):
            Track.from_raw(5, "position")

    def test_static_value_checks_property(self):
        assert Track.static_value((1, 2, 3), "scale").to_raw() == [1, 2, 3]
        with pytest.raises(ParseError):
            Track.static_value((1, 2), "scale")
        # unknown properties take any number of values
        assert Track.static_value((1, 2), "customThing").arity == 2

    def test_scalar(self):
        track = Track.from_raw(0.5, "dissolve")
        assert track.static
        assert track.value_at(10) == (0.5,)

    def test_animated(self):
        raw = [[0, 0, 0, 0], [1, 1, 1, 1, "easeInOutSine"]]
        track = Track.from_raw(raw, "position")
        assert not track.static
        assert track.arity == 3
        assert track.to_raw() == raw

    def test_animated_with_implicit_time(self):
        track = Track.from_raw([[0, 0, 0], [1, 1, 1, 1]], "position")
        assert track.to_raw() == [[0, 0, 0, 0], [1, 1, 1, 1]]

    def test_empty(self):
        track = Track.from_raw([])
        assert len(track) == 0
        assert not track
        assert track.arity is None
        assert track.to_raw() == []

    def test_track_passthrough(self):
        track = Track.from_raw([[0, 0]])
        assert Track.from_raw(track) is track

    def test_mixed_values_and_keyframes(self):
        with pytest.raises(ParseError):
            Track.from_raw([0, [1, 2]])

    def test_not_a_list(self):
        with pytest.raises(ParseError):
            Track.from_raw("position")

    def test_decreasing_time(self):
        with pytest.raises(ParseError):
            Track.from_raw([[0, 0, 0, 1], [0, 0, 0, 0]], "position")

    def test_equal_times_allowed(self):
        track = Track.from_raw([[0, 0, 0, 0.5], [1, 1, 1, 0.5]], "position")
        assert len(track) == 2

    def test_mixed_arity(self):
        with pytest.raises(TrackShapeError):
            Track.from_raw([[0, 0], [1, 1, 1]])

    def test_shape_error_is_type_error(self):
        with pytest.raises(TypeError):
            Track.from_raw([[0, 0], [1, 1, 1]])

    def test_static_needs_one_keyframe(self):
        with pytest.raises(ValueError):
            Track((), static=True)

    def test_unknown_property_any_arity(self):
        track = Track.from_raw([1, 2, 3, 4, 5], "myProperty")
        assert track.static
        assert track.arity == 5


class TestTrackAccess:
    track = Track.from_raw([[0, 0, 0, 0], [1, 1, 1, 0.5], [2, 2, 2, 0.5], [3, 3, 3, 1]], "position")

    def test_times_and_values(self):
        assert list(self.track.times) == [0, 0.5, 0.5, 1]
        assert self.track.values.shape == (4, 3)

    def test_value_before_first(self):
        assert self.track.value_at(-1) == (0, 0, 0)

    def test_value_after_last(self):
        assert self.track.value_at(5) == (3, 3, 3)

    def test_value_at_tie_is_last(self):
        assert self.track.value_at(0.5) == (2, 2, 2)

    def test_value_between_keyframes(self):
        with pytest.raises(ValueError):
            self.track.value_at(0.25)

    def test_value_of_empty(self):
        with pytest.raises(ValueError):
            Track().value_at(0)

    def test_as_animated(self):
        static = Track.static_value((1, 2, 3))
        animated = static.as_animated()
        assert not animated.static
        assert animated.to_raw() == [[1, 2, 3, 0]]
        assert self.track.as_animated() is self.track

    def test_iteration(self):
        assert [kf.time for kf in self.track] == [0, 0.5, 0.5, 1]
        assert self.track[-1].values == (3, 3, 3)


# ---------------------------------------------------------------------------
# Animation dicts
# ---------------------------------------------------------------------------


class TestAnimationDict:
    def test_property_arity(self):
        assert property_arity("position") == 3
        assert property_arity("color") == 4
        assert property_arity("dissolve") == 1
        assert property_arity("somethingElse") is None
        assert property_arity(None) is None

    def test_point_definition_reference_is_kept(self):
        animation = animation_from_raw({"position": "wobble", "dissolve": [[0, 0], [1, 1]]})
        assert animation["position"] == "wobble"
        assert isinstance(animation["dissolve"], Track)

    def test_round_trip(self):
        raw = {"position": [[0, 0, 0, 0], [0, 1, 0, 1, "easeOutQuad"]], "scale": [1, 1, 1], "color": "flash"}
        assert animation_to_raw(animation_from_raw(raw)) == raw

    def test_not_a_dict(self):
        with pytest.raises(ParseError):
            animation_from_raw([[0, 0, 0, 0]])
