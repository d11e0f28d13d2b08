import copy
import dataclasses
import enum
from typing import Any, ClassVar, TYPE_CHECKING

from .animation import Animation, ParseError, Track, animation_from_raw, animation_to_raw
from .beatmap_format import BaseObject, FieldTable, MapVersion, drop_none, from_v2_keys, to_v2_keys
from .easing import EASING_NAMES

if TYPE_CHECKING:
    from .difficulty import AuthoringSession

class EventGroup(enum.IntEnum):
    BACK_LASERS = 0
    RING_LIGHTS = 1
    LEFT_LASERS = 2
    RIGHT_LASERS = 3
    CENTER_LASERS = 4
    BOOST = 5
    RING_SPIN = 8
    RING_ZOOM = 9
    LEFT_ROTATING = 12
    RIGHT_ROTATING = 13
    EARLY_ROTATION = 14
    LATE_ROTATION = 15

class EventAction(enum.IntEnum):
    OFF = 0
    BLUE_ON = 1
    BLUE_FLASH = 2
    BLUE_FADE = 3
    BLUE_IN = 4
    RED_ON = 5
    RED_FLASH = 6
    RED_FADE = 7
    RED_IN = 8

LASER_SPEED_GROUPS = (EventGroup.LEFT_ROTATING, EventGroup.RIGHT_ROTATING)
ROTATION_GROUPS = (EventGroup.EARLY_ROTATION, EventGroup.LATE_ROTATION)


@dataclasses.dataclass
class BaseEvent(BaseObject):
    """basic (lighting/environment) event"""
    type: int = 0
    value: int = 0
    float_value: float = 1.0

    FIELDS: ClassVar[FieldTable] = (
        ("time", "_time", "b"),
        ("type", "_type", "et"),
        ("value", "_value", "i"),
        ("float_value", "_floatValue", "f"),
    )
    # (attribute, custom data key)
    CUSTOM_FIELDS: ClassVar[tuple[tuple[str, str], ...]] = ()

    def _custom_json(self) -> dict:
        custom = super()._custom_json()
        for attr, key in self.CUSTOM_FIELDS:
            custom[key] = copy.deepcopy(getattr(self, attr))
        return custom

    def _load_custom(self, custom: dict) -> None:
        for attr, key in self.CUSTOM_FIELDS:
            setattr(self, attr, custom.pop(key, None))
        super()._load_custom(custom)

    def push(self, session: "AuthoringSession", clone: bool = True) -> "BaseEvent":
        session.difficulty.events.append(self.clone() if clone else self)
        return self


@dataclasses.dataclass
class LightEvent(BaseEvent):
    light_id: int|list[int]|None = None
    color: list[float]|None = None
    easing: str|None = None
    lerp_type: str|None = None

    CUSTOM_FIELDS: ClassVar[tuple[tuple[str, str], ...]] = (
        ("light_id", "lightID"),
        ("color", "color"),
        ("easing", "easing"),
        ("lerp_type", "lerpType"),
    )

    def _set_action(self, blue_action: EventAction, red_action: EventAction, color: list[float]|bool, light_id: int|list[int]|None) -> "LightEvent":
        # True: blue, False: red, list: red with custom color
        if isinstance(color, bool):
            self.value = blue_action if color else red_action
        else:
            self.value = red_action
            self.color = list(color)
        if light_id is not None:
            self.light_id = light_id
        return self

    def off(self, light_id: int|list[int]|None = None) -> "LightEvent":
        self.value = EventAction.OFF
        if light_id is not None:
            self.light_id = light_id
        return self

    def on(self, color: list[float]|bool = True, light_id: int|list[int]|None = None) -> "LightEvent":
        return self._set_action(EventAction.BLUE_ON, EventAction.RED_ON, color, light_id)

    def flash(self, color: list[float]|bool = True, light_id: int|list[int]|None = None) -> "LightEvent":
        return self._set_action(EventAction.BLUE_FLASH, EventAction.RED_FLASH, color, light_id)

    def fade(self, color: list[float]|bool = True, light_id: int|list[int]|None = None) -> "LightEvent":
        return self._set_action(EventAction.BLUE_FADE, EventAction.RED_FADE, color, light_id)

    def in_(self, color: list[float]|bool = True, light_id: int|list[int]|None = None) -> "LightEvent":
        """fade in to this color from the previous one"""
        return self._set_action(EventAction.BLUE_IN, EventAction.RED_IN, color, light_id)


@dataclasses.dataclass
class LaserSpeedEvent(BaseEvent):
    type: int = EventGroup.LEFT_ROTATING
    lock_rotation: bool|None = None
    speed: float|None = None
    direction: int|None = None

    CUSTOM_FIELDS: ClassVar[tuple[tuple[str, str], ...]] = (
        ("lock_rotation", "lockRotation"),
        ("speed", "speed"),
        ("direction", "direction"),
    )

    def _to_json_v2(self) -> dict:
        out = super()._to_json_v2()
        custom = out.get("_customData", {})
        # v2 uses different names for these
        if "_lockRotation" in custom:
            custom["_lockPosition"] = custom.pop("_lockRotation")
        if "_speed" in custom:
            custom["_preciseSpeed"] = custom["_speed"]
        return out

    @classmethod
    def from_json(cls, data: dict, version: MapVersion) -> "LaserSpeedEvent":
        if version == MapVersion.V2 and isinstance(data, dict) and "_customData" in data:
            data = copy.deepcopy(data)
            custom = data["_customData"]
            if "_lockPosition" in custom:
                custom["_lockRotation"] = custom.pop("_lockPosition")
            if "_preciseSpeed" in custom:
                custom["_speed"] = custom.pop("_preciseSpeed")
        return super().from_json(data, version)


@dataclasses.dataclass
class RingZoomEvent(BaseEvent):
    type: int = EventGroup.RING_ZOOM
    step: float|None = None
    speed: float|None = None

    CUSTOM_FIELDS: ClassVar[tuple[tuple[str, str], ...]] = (
        ("step", "step"),
        ("speed", "speed"),
    )


@dataclasses.dataclass
class RingSpinEvent(BaseEvent):
    type: int = EventGroup.RING_SPIN
    speed: float|None = None
    # 1: clockwise, 0: counterclockwise
    direction: int|None = None
    name_filter: str|None = None
    rotation: float|None = None
    step: float|None = None
    # how fast the spin propagates through the rings, high values move all rings at once
    prop: float|None = None

    CUSTOM_FIELDS: ClassVar[tuple[tuple[str, str], ...]] = (
        ("speed", "speed"),
        ("direction", "direction"),
        ("name_filter", "nameFilter"),
        ("rotation", "rotation"),
        ("step", "step"),
        ("prop", "prop"),
    )


@dataclasses.dataclass
class RotationEvent(BaseEvent):
    """spins the gameplay objects, value is the rotation in degrees (multiple of 15, -60 to 60)"""
    type: int = EventGroup.EARLY_ROTATION

    def _to_json_v2(self) -> dict:
        out = super()._to_json_v2()
        out.setdefault("_customData", {})["_rotation"] = self.value
        return out

    def _load_custom(self, custom: dict) -> None:
        custom.pop("rotation", None)
        super()._load_custom(custom)


def event_class_for_type(event_type: int) -> type[BaseEvent]:
    if event_type in LASER_SPEED_GROUPS:
        return LaserSpeedEvent
    if event_type == EventGroup.RING_ZOOM:
        return RingZoomEvent
    if event_type == EventGroup.RING_SPIN:
        return RingSpinEvent
    if event_type in ROTATION_GROUPS:
        return RotationEvent
    return LightEvent

def event_from_json(data: dict, version: MapVersion) -> BaseEvent:
    type_key = "_type" if version == MapVersion.V2 else "et"
    if not isinstance(data, dict) or type_key not in data:
        raise ParseError(data, "event without type")
    return event_class_for_type(data[type_key]).from_json(data, version)


CUSTOM_EVENT_TYPES = ("AnimateTrack", "AssignPathAnimation", "AssignTrackParent", "AssignPlayerToTrack", "AnimateComponent")
# custom event data that is not an animated property
CUSTOM_EVENT_DATA_KEYS = ("childrenTracks", "parentTrack", "worldPositionStays", "target")

@dataclasses.dataclass
class CustomEvent(BaseObject):
    type: str = "AnimateTrack"
    track: str|list[str]|None = None
    duration: float|None = None
    easing: str|None = None
    repeat: int|None = None
    animation: Animation = dataclasses.field(default_factory=dict)
    # non-animation data, ie parent track
    data: dict = dataclasses.field(default_factory=dict)

    def animate_track(self, track: str|list[str], duration: float|None = None, easing: str|None = None) -> "CustomEvent":
        return self._with_type("AnimateTrack", track, duration, easing)

    def assign_path_animation(self, track: str|list[str], duration: float|None = None, easing: str|None = None) -> "CustomEvent":
        return self._with_type("AssignPathAnimation", track, duration, easing)

    def assign_track_parent(self, children_tracks: list[str], parent_track: str, world_position_stays: bool|None = None) -> "CustomEvent":
        self.type = "AssignTrackParent"
        self.data["childrenTracks"] = list(children_tracks)
        self.data["parentTrack"] = parent_track
        if world_position_stays is not None:
            self.data["worldPositionStays"] = world_position_stays
        return self

    def assign_player_to_track(self, track: str, target: str|None = None) -> "CustomEvent":
        self.type = "AssignPlayerToTrack"
        self.track = track
        if target is not None:
            self.data["target"] = target
        return self

    def _with_type(self, event_type: str, track: str|list[str], duration: float|None, easing: str|None) -> "CustomEvent":
        if easing is not None and easing not in EASING_NAMES:
            raise ValueError(f"Unknown easing: {easing!r}")
        self.type = event_type
        self.track = track
        if duration is not None:
            self.duration = duration
        if easing is not None:
            self.easing = easing
        return self

    def animate(self, prop: str, raw: Any) -> "CustomEvent":
        self.animation[prop] = raw if isinstance(raw, str) else Track.from_raw(raw, prop)
        return self

    def _data_json(self) -> dict:
        out = {
            "track": copy.deepcopy(self.track),
            "duration": self.duration,
            "easing": self.easing,
            "repeat": self.repeat,
        }
        out |= animation_to_raw(self.animation)
        out |= copy.deepcopy(self.data)
        out |= copy.deepcopy(self.custom_data)
        return drop_none(out)

    def _to_json_v2(self) -> dict:
        return {"_time": self.time, "_type": self.type, "_data": to_v2_keys(self._data_json())}

    def _to_json_v3(self) -> dict:
        return {"b": self.time, "t": self.type, "d": self._data_json()}

    @classmethod
    def from_json(cls, data: dict, version: MapVersion) -> "CustomEvent":
        keys = ("_time", "_type", "_data") if version == MapVersion.V2 else ("b", "t", "d")
        if not isinstance(data, dict) or any(k not in data for k in keys[:2]):
            raise ParseError(data, "custom event needs time and type")
        event_data = copy.deepcopy(data.get(keys[2], {}))
        if version == MapVersion.V2:
            event_data = from_v2_keys(event_data)
        obj = cls(time=data[keys[0]], type=data[keys[1]])
        obj.track = event_data.pop("track", None)
        obj.duration = event_data.pop("duration", None)
        obj.easing = event_data.pop("easing", None)
        obj.repeat = event_data.pop("repeat", None)
        obj.data = {k: event_data.pop(k) for k in CUSTOM_EVENT_DATA_KEYS if k in event_data}
        if obj.type in ("AnimateTrack", "AssignPathAnimation"):
            obj.animation = animation_from_raw(event_data)
        else:
            obj.custom_data = event_data
        return obj

    def push(self, session: "AuthoringSession", clone: bool = True) -> "CustomEvent":
        session.difficulty.custom_events.append(self.clone() if clone else self)
        return self
