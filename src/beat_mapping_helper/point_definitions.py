import copy
from typing import Any, Union

from .animation import ConflictError, ParseError, RawTrack, Track
from .beatmap_format import MapVersion
from .utils import is_number, logger


def _as_lists(value: Any) -> Any:
    # tuples and lists are the same json array, nested ones included
    if isinstance(value, (list, tuple)):
        return [_as_lists(v) for v in value]
    return value


class PointDefinitionRegistry:
    """named, reusable animation values, written to the difficulty so the game can resolve the names"""

    def __init__(self) -> None:
        self._points: dict[str, RawTrack] = {}
        # per-prefix counter for intern()
        self._counters: dict[str, int] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._points

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self):
        return iter(self._points)

    @staticmethod
    def _normalize(value: Union[RawTrack, Track, float]) -> RawTrack:
        if isinstance(value, Track):
            return value.to_raw()
        # stored as given, keyframes are only parsed on resolve_track, where the property (and its arity) is known
        if isinstance(value, (list, tuple)):
            return _as_lists(value)
        if is_number(value):
            return [value]
        raise ParseError(value, "point definition must be a number, an array or a Track")

    def define(self, value: Union[RawTrack, Track, float], name: str) -> str:
        if not name:
            raise ValueError("Point definition name must not be empty")
        raw = self._normalize(value)
        if name in self._points:
            if self._points[name] != raw:
                raise ConflictError(f"Point definition {name!r} already defined as {self._points[name]!r}, refusing to redefine as {raw!r}")
            return name
        self._points[name] = raw
        return name

    def resolve(self, name: str) -> RawTrack:
        try:
            return copy.deepcopy(self._points[name])
        except KeyError:
            raise KeyError(f"Unknown point definition: {name!r}") from None

    def resolve_track(self, name: str, prop: str|None = None) -> Track:
        return Track.from_raw(self.resolve(name), prop)

    def intern(self, value: Union[RawTrack, Track, float], prefix: str = "point") -> str:
        """name of an identical existing definition, or a new one named <prefix>_<n>"""
        raw = self._normalize(value)
        for name, existing in self._points.items():
            if existing == raw:
                return name
        n = self._counters.get(prefix, 0)
        while f"{prefix}_{n}" in self._points:
            n += 1
        self._counters[prefix] = n + 1
        return self.define(raw, f"{prefix}_{n}")

    def updated(self, values: dict[str, Union[RawTrack, Track, float]]) -> "PointDefinitionRegistry":
        """copy with some definitions replaced, intern() keeps counting where this one left off"""
        registry = PointDefinitionRegistry()
        registry._counters = dict(self._counters)
        for name, points in self._points.items():
            registry.define(values.get(name, points), name)
        return registry

    def to_json(self, version: MapVersion) -> Any:
        if version == MapVersion.V2:
            return [{"_name": name, "_points": copy.deepcopy(points)} for name, points in self._points.items()]
        return {name: copy.deepcopy(points) for name, points in self._points.items()}

    @classmethod
    def from_json(cls, data: Any) -> "PointDefinitionRegistry":
        registry = cls()
        if isinstance(data, dict):
            items = data.items()
        elif isinstance(data, list):
            try:
                items = [(d["_name"], d["_points"]) for d in data]
            except (KeyError, TypeError) as exc:
                raise ParseError(data, "point definitions must have _name and _points") from exc
        else:
            raise ParseError(data, "point definitions must be a dict (v3) or list (v2)")
        for name, points in items:
            registry.define(points, name)
        logger.debug(f"Loaded {len(registry)} point definitions")
        return registry
