import dataclasses
from typing import Any, Iterator, Union

import numpy as np

from .easing import EASING_NAMES
from .utils import is_number

# value arity of every known animated property, unknown properties are accepted with any arity
PROPERTY_ARITY: dict[str, int] = {
    "position": 3,
    "localPosition": 3,
    "definitePosition": 3,
    "offsetPosition": 3,
    "rotation": 3,
    "localRotation": 3,
    "offsetWorldRotation": 3,
    "scale": 3,
    "color": 4,
    "dissolve": 1,
    "dissolveArrow": 1,
    "interactable": 1,
    "time": 1,
    # fog (BloomFogEnvironment component)
    "attenuation": 1,
    "offset": 1,
    "startY": 1,
    "height": 1,
}
SPLINE_NAMES = ("splineCatmullRom",)

RawKeyframe = list[Union[float, str]]
RawTrack = Union[list[float], list[RawKeyframe]]


class BeatmapError(Exception):
    pass

class ParseError(BeatmapError, ValueError):
    def __init__(self, data: Any, reason: str) -> None:
        super().__init__()
        self.data = data
        self.reason = reason

    def __str__(self) -> str:
        return f"Error while parsing {self.data!r}: {self.reason}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self})"

class TrackShapeError(BeatmapError, TypeError):
    """tracks (or keyframes of one track) disagree on value arity"""

class ConfigError(BeatmapError, ValueError):
    pass

class ConflictError(BeatmapError, ValueError):
    pass


def property_arity(prop: str|None) -> int|None:
    if prop is None:
        return None
    return PROPERTY_ARITY.get(prop)


@dataclasses.dataclass(frozen=True)
class Keyframe:
    values: tuple[float, ...]
    time: float = 0.0
    # easing, spline and flags, in the order they were given
    modifiers: tuple[str, ...] = ()

    @classmethod
    def build(cls, values: "sequence of float", time: float = 0.0, easing: str|None = None, spline: str|None = None, flags: tuple[str, ...] = ()) -> "Keyframe":
        modifiers = tuple(m for m in (easing, spline) if m is not None) + tuple(flags)
        # run through the parser to get the same validation as raw data
        return cls.parse([*values, time, *modifiers])

    @classmethod
    def parse(cls, raw: RawKeyframe, arity: int|None = None) -> "Keyframe":
        if not isinstance(raw, (list, tuple)):
            raise ParseError(raw, "keyframe must be an array")
        if len(raw) < 2:
            raise ParseError(raw, "keyframe needs at least one value and a time")
        numbers: list[float] = []
        modifiers: list[str] = []
        for i, v in enumerate(raw):
            if isinstance(v, str):
                modifiers.append(v)
            elif is_number(v):
                if modifiers:
                    raise ParseError(raw, f"number at index {i} after modifier {modifiers[-1]!r}")
                numbers.append(v)
            else:
                raise ParseError(raw, f"unexpected element at index {i}: {v!r}")

        if arity is not None and len(numbers) == arity:
            # static value inside an animated track: implicit time 0
            values, time = tuple(numbers), 0
        elif len(numbers) < 2:
            raise ParseError(raw, "missing numeric time")
        else:
            values, time = tuple(numbers[:-1]), numbers[-1]
            if arity is not None and len(values) != arity:
                raise ParseError(raw, f"expected {arity} values, got {len(values)}")

        seen_easing = seen_spline = False
        for m in modifiers:
            if m.startswith("ease"):
                if m not in EASING_NAMES:
                    raise ParseError(raw, f"unknown easing {m!r}")
                if seen_easing:
                    raise ParseError(raw, "multiple easings")
                seen_easing = True
            elif m.startswith("spline"):
                if m not in SPLINE_NAMES:
                    raise ParseError(raw, f"unknown spline {m!r}")
                if seen_spline:
                    raise ParseError(raw, "multiple splines")
                seen_spline = True
        return cls(values=values, time=time, modifiers=tuple(modifiers))

    @property
    def easing(self) -> str|None:
        return next((m for m in self.modifiers if m.startswith("ease")), None)

    @property
    def spline(self) -> str|None:
        return next((m for m in self.modifiers if m.startswith("spline")), None)

    @property
    def flags(self) -> tuple[str, ...]:
        return tuple(m for m in self.modifiers if not m.startswith(("ease", "spline")))

    @property
    def arity(self) -> int:
        return len(self.values)

    def with_values(self, values: "sequence of float") -> "Keyframe":
        return dataclasses.replace(self, values=tuple(float(v) for v in values))

    def with_time(self, time: float) -> "Keyframe":
        return dataclasses.replace(self, time=time)

    def with_easing(self, easing: str|None) -> "Keyframe":
        return Keyframe.build(self.values, self.time, easing=easing, spline=self.spline, flags=self.flags)

    def with_spline(self, spline: str|None) -> "Keyframe":
        return Keyframe.build(self.values, self.time, easing=self.easing, spline=spline, flags=self.flags)

    def to_raw(self) -> RawKeyframe:
        return [*self.values, self.time, *self.modifiers]


@dataclasses.dataclass(frozen=True)
class Track:
    keyframes: tuple[Keyframe, ...] = ()
    # static tracks hold exactly one keyframe at time 0 and serialize as a bare value
    static: bool = False

    def __post_init__(self) -> None:
        if self.static and len(self.keyframes) != 1:
            raise ValueError("Static tracks must contain exactly one keyframe")
        if len({kf.arity for kf in self.keyframes}) > 1:
            raise TrackShapeError(f"Keyframes with mixed value counts: {[kf.to_raw() for kf in self.keyframes]}")
        for prev, cur in zip(self.keyframes, self.keyframes[1:]):
            if cur.time < prev.time:
                raise ParseError(self.to_raw(), f"keyframe at {cur.time} is before previous keyframe at {prev.time}")

    @classmethod
    def static_value(cls, values: "sequence of float", prop: str|None = None) -> "Track":
        arity = property_arity(prop)
        if arity is not None and len(values) != arity:
            raise ParseError(list(values), f"{prop} needs {arity} values, got {len(values)}")
        return cls((Keyframe(values=tuple(values)),), static=True)

    @classmethod
    def from_keyframes(cls, keyframes: "iterable of Keyframe") -> "Track":
        return cls(tuple(keyframes))

    @classmethod
    def from_raw(cls, data: Union[RawTrack, "Track"], prop: str|None = None) -> "Track":
        if isinstance(data, Track):
            return data
        if not isinstance(data, (list, tuple)):
            if is_number(data):
                # bare scalar, ie "dissolve": 0
                return cls.static_value((data,), prop)
            raise ParseError(data, "animation must be an array")
        arity = property_arity(prop)
        if not data:
            return cls()
        if all(is_number(v) for v in data):
            return cls.static_value(data, prop)
        if not all(isinstance(v, (list, tuple)) for v in data):
            raise ParseError(data, "mixed values and keyframes")
        return cls(tuple(Keyframe.parse(kf, arity) for kf in data))

    def __len__(self) -> int:
        return len(self.keyframes)

    def __iter__(self) -> Iterator[Keyframe]:
        return iter(self.keyframes)

    def __getitem__(self, index: int) -> Keyframe:
        return self.keyframes[index]

    @property
    def arity(self) -> int|None:
        if not self.keyframes:
            return None
        return self.keyframes[0].arity

    @property
    def times(self) -> "numpy array (n)":
        return np.array([kf.time for kf in self.keyframes], dtype=float)

    @property
    def values(self) -> "numpy array (n, arity)":
        return np.array([kf.values for kf in self.keyframes], dtype=float).reshape(len(self.keyframes), self.arity or 0)

    def as_animated(self) -> "Track":
        """static value as keyframe at time 0, animated tracks stay as-is"""
        if not self.static:
            return self
        return Track(self.keyframes)

    def value_at(self, time: float) -> tuple[float, ...]:
        # Note: in-between values are up to the renderer, so this only answers what the keyframes state directly
        if not self.keyframes:
            raise ValueError("Empty track has no value")
        if self.static or len(self.keyframes) == 1:
            return self.keyframes[0].values
        if time <= self.keyframes[0].time:
            return self.keyframes[0].values
        if time >= self.keyframes[-1].time:
            return self.keyframes[-1].values
        matches = [kf for kf in self.keyframes if kf.time == time]
        if matches:
            return matches[-1].values
        raise ValueError(f"No keyframe at {time}, interpolation is done by the renderer")

    def to_raw(self) -> RawTrack:
        if self.static:
            return list(self.keyframes[0].values)
        return [kf.to_raw() for kf in self.keyframes]


# strings are references to point definitions and stay unresolved
Animation = dict[str, Union[Track, str]]

def animation_from_raw(data: dict[str, Any]) -> Animation:
    """parse a whole animation dict ("position": [...], ...)"""
    if not isinstance(data, dict):
        raise ParseError(data, "animation must be a dict")
    return {
        prop: raw if isinstance(raw, str) else Track.from_raw(raw, prop)
        for prop, raw in data.items()
    }

def animation_to_raw(animation: Animation) -> dict[str, Any]:
    return {prop: (track.to_raw() if isinstance(track, Track) else track) for prop, track in animation.items()}
