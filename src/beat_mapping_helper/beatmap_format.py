import copy
import dataclasses
import enum
from typing import Any, ClassVar, Optional

from .animation import Animation, ParseError, Track, animation_from_raw, animation_to_raw
from .utils import is_number

class MapVersion(enum.Enum):
    V2 = "v2"
    V3 = "v3"

VERSION_STRINGS = {
    MapVersion.V2: "2.2.0",
    MapVersion.V3: "3.2.0",
}
VERSION_KEYS = {
    MapVersion.V2: "_version",
    MapVersion.V3: "version",
}
CUSTOM_DATA_KEYS = {
    MapVersion.V2: "_customData",
    MapVersion.V3: "customData",
}

def detect_version(data: dict) -> MapVersion:
    if not isinstance(data, dict):
        raise ParseError(data, "difficulty must be a json dict")
    for version, key in VERSION_KEYS.items():
        if key in data:
            if not str(data[key]).startswith(VERSION_STRINGS[version][0]):
                raise ParseError(data[key], f"unsupported {version.value} version string")
            return version
    raise ParseError(sorted(data), "no version or _version key found")

def to_v2_keys(data: Any) -> Any:
    """recursively prefix dict keys with '_', like the v2 custom data expects"""
    if isinstance(data, dict):
        return {(k if k.startswith("_") else "_" + k): to_v2_keys(v) for k, v in data.items()}
    if isinstance(data, list):
        return [to_v2_keys(v) for v in data]
    return data

def from_v2_keys(data: Any) -> Any:
    if isinstance(data, dict):
        return {(k[1:] if k.startswith("_") else k): from_v2_keys(v) for k, v in data.items()}
    if isinstance(data, list):
        return [from_v2_keys(v) for v in data]
    return data

def drop_none(data: dict) -> dict:
    """remove keys with None values (recursively), and dicts that end up empty"""
    out = {}
    for k, v in data.items():
        if isinstance(v, dict):
            v = drop_none(v)
            if not v:
                continue
        if v is not None:
            out[k] = v
    return out

def json_get(data: dict, path: str, default: Any = None) -> Any:
    """get value at dotted path, ie 'components.ILightWithId.lightID'"""
    for key in path.split("."):
        if not isinstance(data, dict) or key not in data:
            return default
        data = data[key]
    return data

def json_set(data: dict, path: str, value: Any) -> None:
    """set value at dotted path, creating intermediate dicts"""
    *parents, last = path.split(".")
    for key in parents:
        data = data.setdefault(key, {})
    data[last] = value


# (attribute, v2 key, v3 key), None: not present in that version
FieldTable = tuple[tuple[str, Optional[str], Optional[str]], ...]

@dataclasses.dataclass
class BaseObject:
    """object in one of the lists of a difficulty

    Subclasses describe their top level keys in FIELDS, custom data lives in custom_data
    (always stored with v3 key names, converted on output).
    """
    time: float = 0.0
    _: dataclasses.KW_ONLY
    custom_data: dict = dataclasses.field(default_factory=dict)

    FIELDS: ClassVar[FieldTable] = (("time", "_time", "b"),)
    # fixed values written in a version, ie the v2 note type of bombs
    CONSTANTS: ClassVar[dict[MapVersion, dict[str, Any]]] = {}

    def _custom_json(self) -> dict:
        """custom data with typed fields (animation, track, ...) merged in, in v3 naming"""
        return copy.deepcopy(self.custom_data)

    def _load_custom(self, custom: dict) -> None:
        self.custom_data = custom

    @classmethod
    def _custom_to_v2(cls, custom: dict) -> dict:
        """v3 named custom data in v2 naming, subclasses handle keys that are renamed rather than prefixed"""
        return to_v2_keys(custom)

    @classmethod
    def _custom_from_v2(cls, custom: dict) -> dict:
        return from_v2_keys(custom)

    def _to_json_v2(self) -> dict:
        out = {v2: getattr(self, attr) for attr, v2, _ in self.FIELDS if v2 is not None}
        out |= self.CONSTANTS.get(MapVersion.V2, {})
        custom = drop_none(self._custom_json())
        if custom:
            out["_customData"] = self._custom_to_v2(custom)
        return out

    def _to_json_v3(self) -> dict:
        out = {v3: getattr(self, attr) for attr, _, v3 in self.FIELDS if v3 is not None}
        out |= self.CONSTANTS.get(MapVersion.V3, {})
        custom = drop_none(self._custom_json())
        if custom:
            out["customData"] = custom
        return out

    def to_json(self, version: MapVersion) -> dict:
        serializers = {
            MapVersion.V2: self._to_json_v2,
            MapVersion.V3: self._to_json_v3,
        }
        return serializers[version]()

    @classmethod
    def from_json(cls, data: dict, version: MapVersion) -> "BaseObject":
        if not isinstance(data, dict):
            raise ParseError(data, f"{cls.__name__} must be a json dict")
        obj = cls()
        index = 1 if version == MapVersion.V2 else 2
        for field in cls.FIELDS:
            key = field[index]
            if key is not None and key in data:
                value = data[key]
                if not is_number(value) and isinstance(getattr(obj, field[0]), (int, float)):
                    raise ParseError(data, f"{key} must be a number")
                setattr(obj, field[0], value)
        custom = data.get(CUSTOM_DATA_KEYS[version], {})
        if version == MapVersion.V2:
            custom = cls._custom_from_v2(custom)
        obj._load_custom(copy.deepcopy(custom))
        return obj

    def clone(self) -> "BaseObject":
        return copy.deepcopy(self)


@dataclasses.dataclass
class AnimatedObject(BaseObject):
    """object that carries a track name and an animation in its custom data"""
    _: dataclasses.KW_ONLY
    track: str|list[str]|None = None
    animation: Animation = dataclasses.field(default_factory=dict)

    def animate(self, prop: str, raw: Any) -> "AnimatedObject":
        """set the animation of a property, replacing any existing one"""
        if isinstance(raw, str):
            self.animation[prop] = raw
        else:
            self.animation[prop] = Track.from_raw(raw, prop)
        return self

    def _custom_json(self) -> dict:
        custom = super()._custom_json()
        if self.track is not None:
            custom["track"] = copy.deepcopy(self.track)
        if self.animation:
            custom["animation"] = animation_to_raw(self.animation)
        return custom

    def _load_custom(self, custom: dict) -> None:
        self.track = custom.pop("track", None)
        self.animation = animation_from_raw(custom.pop("animation", {}))
        super()._load_custom(custom)
