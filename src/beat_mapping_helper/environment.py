import copy
import dataclasses
from typing import Any, ClassVar, TYPE_CHECKING, Union

from .animation import Animation, ParseError, Track
from .beatmap_format import MapVersion, drop_none, from_v2_keys, json_get, json_set, to_v2_keys
from .combiner import combine_animations
from .easing import EASING_NAMES
from .events import CustomEvent
from .utils import logger

if TYPE_CHECKING:
    from .difficulty import AuthoringSession

LOOKUP_METHODS = ("Contains", "Regex", "Exact", "StartsWith", "EndsWith")
GEOMETRY_TYPES = ("Sphere", "Capsule", "Cylinder", "Cube", "Plane", "Quad", "Triangle")
GEOMETRY_SHADERS = ("Standard", "OpaqueLight", "TransparentLight", "BaseWater", "BillieWater", "BTSPillar", "InterscopeConcrete", "InterscopeCar", "Obstacle", "WaterfallMirror")

Vec3 = list[float]
GeometryMaterial = Union[dict, str]


@dataclasses.dataclass
class BaseEnvironment:
    _: dataclasses.KW_ONLY
    duplicate: int|None = None
    active: bool|None = None
    scale: Vec3|None = None
    position: Vec3|None = None
    local_position: Vec3|None = None
    rotation: Vec3|None = None
    local_rotation: Vec3|None = None
    track: str|None = None
    components: dict = dataclasses.field(default_factory=dict)
    # only used for grouping while authoring, not written to the difficulty
    group: str|None = None

    # (attribute, v3 key), v2 keys are the same with '_' prepended
    FIELDS: ClassVar[tuple[tuple[str, str], ...]] = (
        ("duplicate", "duplicate"),
        ("active", "active"),
        ("scale", "scale"),
        ("position", "position"),
        ("local_position", "localPosition"),
        ("rotation", "rotation"),
        ("local_rotation", "localRotation"),
        ("track", "track"),
    )
    # transform attributes that can be combined with animations, by property name
    TRANSFORMS: ClassVar[dict[str, str]] = {
        "position": "position",
        "localPosition": "local_position",
        "rotation": "rotation",
        "localRotation": "local_rotation",
        "scale": "scale",
    }

    @property
    def animation_properties(self) -> Animation:
        """transform values that are set, as static tracks"""
        return {
            prop: Track.static_value(getattr(self, attr), prop)
            for prop, attr in self.TRANSFORMS.items()
            if getattr(self, attr) is not None
        }

    @property
    def light_id(self) -> int|None:
        return json_get(self.components, "ILightWithId.lightID")

    @light_id.setter
    def light_id(self, value: int) -> None:
        json_set(self.components, "ILightWithId.lightID", value)

    @property
    def light_type(self) -> int|None:
        return json_get(self.components, "ILightWithId.type")

    @light_type.setter
    def light_type(self, value: int) -> None:
        json_set(self.components, "ILightWithId.type", value)

    def _json(self) -> dict:
        out = {key: copy.deepcopy(getattr(self, attr)) for attr, key in self.FIELDS}
        out["components"] = copy.deepcopy(self.components)
        return out

    def _load(self, data: dict) -> None:
        for attr, key in self.FIELDS:
            value = data.get(key)
            if attr in self.TRANSFORMS.values() and value is not None:
                # validate like any other static value
                Track.from_raw(value, "position")
            setattr(self, attr, value)
        self.components = data.get("components", {})

    def to_json(self, version: MapVersion) -> dict:
        serializers = {
            MapVersion.V2: lambda: to_v2_keys(drop_none(self._json())),
            MapVersion.V3: lambda: drop_none(self._json()),
        }
        return serializers[version]()

    def push(self, session: "AuthoringSession", clone: bool = True) -> "BaseEnvironment":
        session.difficulty.environment.append(copy.deepcopy(self) if clone else self)
        return self


@dataclasses.dataclass
class Environment(BaseEnvironment):
    """existing environment object, found by id"""
    id: str = ""
    lookup_method: str = "Contains"

    def __post_init__(self) -> None:
        if self.lookup_method not in LOOKUP_METHODS:
            raise ValueError(f"Unknown lookup method: {self.lookup_method!r}")

    def _json(self) -> dict:
        return {"id": self.id, "lookupMethod": self.lookup_method} | super()._json()

    def _load(self, data: dict) -> None:
        self.id = data["id"]
        self.lookup_method = data.get("lookupMethod", "Contains")
        super()._load(data)


@dataclasses.dataclass
class Geometry(BaseEnvironment):
    """new primitive object"""
    type: str = "Cube"
    material: GeometryMaterial = dataclasses.field(default_factory=lambda: {"shader": "Standard"})
    collision: bool|None = None

    def __post_init__(self) -> None:
        if self.type not in GEOMETRY_TYPES:
            raise ValueError(f"Unknown geometry type: {self.type!r}")
        if isinstance(self.material, dict) and self.material.get("shader", "Standard") not in GEOMETRY_SHADERS:
            raise ValueError(f"Unknown shader: {self.material['shader']!r}")

    def _json(self) -> dict:
        geometry = {"type": self.type, "material": copy.deepcopy(self.material), "collision": self.collision}
        return {"geometry": geometry} | super()._json()

    def _load(self, data: dict) -> None:
        geometry = data["geometry"]
        self.type = geometry.get("type", "Cube")
        self.material = geometry.get("material", {"shader": "Standard"})
        self.collision = geometry.get("collision")
        super()._load(data)


def environment_from_json(data: dict, version: MapVersion) -> BaseEnvironment:
    if not isinstance(data, dict):
        raise ParseError(data, "environment object must be a json dict")
    if version == MapVersion.V2:
        data = from_v2_keys(data)
    if "geometry" in data:
        obj: BaseEnvironment = Geometry()
    elif "id" in data:
        obj = Environment()
    else:
        raise ParseError(data, "environment object needs id or geometry")
    try:
        obj._load(data)
    except (KeyError, TypeError) as exc:
        raise ParseError(data, "invalid environment object") from exc
    return obj


def _animate_environment(
    session: "AuthoringSession", env: BaseEnvironment, time: float, animation: dict[str, Any], duration: float|None, easing: str|None,
) -> CustomEvent:
    new: Animation = {
        prop: raw if isinstance(raw, (str, Track)) else Track.from_raw(raw, prop)
        for prop, raw in animation.items()
    }
    event = CustomEvent(time=time).animate_track(env.track, duration=duration, easing=easing)
    event.animation = combine_animations(new, env.animation_properties, resolve=session.point_definitions.resolve_track)
    event.push(session, clone=False)
    return event

def animate_env_group(
    session: "AuthoringSession", group: str, time: float, animation: dict[str, Any], duration: float|None = None, easing: str|None = None,
) -> list[CustomEvent]:
    """animate every environment object of a group, giving it a track if it has none.

    The new animation is combined with the current transform of each object.
    """
    if easing is not None and easing not in EASING_NAMES:
        raise ValueError(f"Unknown easing: {easing!r}")
    events = []
    for env in session.difficulty.environment:
        if env.group != group:
            continue
        if env.track is None:
            env.track = session.next_env_track()
        events.append(_animate_environment(session, env, time, animation, duration, easing))
    logger.debug(f"Animated {len(events)} environment objects of group {group!r} at {time}")
    return events

def animate_env_track(
    session: "AuthoringSession", track: str, time: float, animation: dict[str, Any], duration: float|None = None, easing: str|None = None,
) -> list[CustomEvent]:
    """like animate_env_group, but for all environment objects on a track (one event per object)"""
    if easing is not None and easing not in EASING_NAMES:
        raise ValueError(f"Unknown easing: {easing!r}")
    events = [
        _animate_environment(session, env, time, animation, duration, easing)
        for env in session.difficulty.environment
        if env.track == track
    ]
    logger.debug(f"Animated {len(events)} environment objects on track {track!r} at {time}")
    return events
