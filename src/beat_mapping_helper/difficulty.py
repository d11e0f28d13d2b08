from contextlib import contextmanager
import dataclasses
import json
from pathlib import Path
from typing import Any, Generator, Iterable

from .animation import BeatmapError, ParseError, Track
from .beatmap_format import BaseObject, CUSTOM_DATA_KEYS, MapVersion, VERSION_KEYS, VERSION_STRINGS, detect_version
from .environment import BaseEnvironment, environment_from_json
from .events import BaseEvent, CustomEvent, event_from_json
from .objects import Arc, Bomb, Chain, GameplayObject, Note, V2_BOMB_TYPE, Wall
from .optimizer import OptimizeSettings, optimize, optimize_animation
from .point_definitions import PointDefinitionRegistry
from .utils import logger, round_values

# v3 top level list name, difficulty attribute, object class
V3_LISTS: tuple[tuple[str, str, type[BaseObject]], ...] = (
    ("colorNotes", "notes", Note),
    ("bombNotes", "bombs", Bomb),
    ("obstacles", "walls", Wall),
    ("sliders", "arcs", Arc),
    ("burstSliders", "chains", Chain),
)
# v3 custom data list name, difficulty attribute, object class
V3_FAKE_LISTS: tuple[tuple[str, str, type[BaseObject]], ...] = (
    ("fakeColorNotes", "fake_notes", Note),
    ("fakeBombNotes", "fake_bombs", Bomb),
    ("fakeObstacles", "fake_walls", Wall),
    ("fakeBurstSliders", "fake_chains", Chain),
)
V3_EVENTS_KEY = "basicBeatmapEvents"

def _sorted_json(objects: Iterable[BaseObject], version: MapVersion) -> list[dict]:
    # the game expects every list to be sorted by time
    return [o.to_json(version) for o in sorted(objects, key=lambda o: o.time)]

def _fake_v2_json(obj: BaseObject) -> dict:
    out = obj.to_json(MapVersion.V2)
    out.setdefault("_customData", {})["_fake"] = True
    return out


@dataclasses.dataclass
class Difficulty:
    notes: list[Note] = dataclasses.field(default_factory=list)
    bombs: list[Bomb] = dataclasses.field(default_factory=list)
    walls: list[Wall] = dataclasses.field(default_factory=list)
    arcs: list[Arc] = dataclasses.field(default_factory=list)
    chains: list[Chain] = dataclasses.field(default_factory=list)
    fake_notes: list[Note] = dataclasses.field(default_factory=list)
    fake_bombs: list[Bomb] = dataclasses.field(default_factory=list)
    fake_walls: list[Wall] = dataclasses.field(default_factory=list)
    fake_chains: list[Chain] = dataclasses.field(default_factory=list)
    events: list[BaseEvent] = dataclasses.field(default_factory=list)
    custom_events: list[CustomEvent] = dataclasses.field(default_factory=list)
    environment: list[BaseEnvironment] = dataclasses.field(default_factory=list)
    point_definitions: PointDefinitionRegistry = dataclasses.field(default_factory=PointDefinitionRegistry)
    # version the difficulty was read in, unknown keys (top level and custom data) are only written back in that version
    source_version: MapVersion|None = None
    extra: dict[str, Any] = dataclasses.field(default_factory=dict)
    extra_custom: dict[str, Any] = dataclasses.field(default_factory=dict)

    @property
    def gameplay_objects(self) -> list[GameplayObject]:
        return [
            *self.notes, *self.bombs, *self.walls, *self.arcs, *self.chains,
            *self.fake_notes, *self.fake_bombs, *self.fake_walls, *self.fake_chains,
        ]

    def _extra_for(self, version: MapVersion) -> tuple[dict, dict]:
        if self.source_version is None or version == self.source_version:
            return dict(self.extra), dict(self.extra_custom)
        if self.extra or self.extra_custom:
            logger.warning(f"Dropping unknown {self.source_version.value} keys when writing {version.value}: {sorted(self.extra) + sorted(self.extra_custom)}")
        return {}, {}

    def _to_json_v2(self) -> dict:
        if self.arcs or self.chains or self.fake_chains:
            raise ValueError("Arcs and chains can not be written in v2 format")
        extra, extra_custom = self._extra_for(MapVersion.V2)
        notes = sorted(
            [(o.time, o.to_json(MapVersion.V2)) for o in (*self.notes, *self.bombs)]
            + [(o.time, _fake_v2_json(o)) for o in (*self.fake_notes, *self.fake_bombs)],
            key=lambda item: item[0],
        )
        walls = sorted(
            [(o.time, o.to_json(MapVersion.V2)) for o in self.walls]
            + [(o.time, _fake_v2_json(o)) for o in self.fake_walls],
            key=lambda item: item[0],
        )
        out = {
            VERSION_KEYS[MapVersion.V2]: VERSION_STRINGS[MapVersion.V2],
            "_notes": [n for _, n in notes],
            "_obstacles": [w for _, w in walls],
            "_events": _sorted_json(self.events, MapVersion.V2),
        } | extra
        custom = extra_custom
        if self.custom_events:
            custom["_customEvents"] = _sorted_json(self.custom_events, MapVersion.V2)
        if self.environment:
            custom["_environment"] = [e.to_json(MapVersion.V2) for e in self.environment]
        if self.point_definitions:
            custom["_pointDefinitions"] = self.point_definitions.to_json(MapVersion.V2)
        if custom:
            out["_customData"] = custom
        return out

    def _to_json_v3(self) -> dict:
        extra, extra_custom = self._extra_for(MapVersion.V3)
        out: dict[str, Any] = {VERSION_KEYS[MapVersion.V3]: VERSION_STRINGS[MapVersion.V3]}
        for key, attr, _ in V3_LISTS:
            out[key] = _sorted_json(getattr(self, attr), MapVersion.V3)
        out[V3_EVENTS_KEY] = _sorted_json(self.events, MapVersion.V3)
        out |= extra
        custom = extra_custom
        for key, attr, _ in V3_FAKE_LISTS:
            if getattr(self, attr):
                custom[key] = _sorted_json(getattr(self, attr), MapVersion.V3)
        if self.custom_events:
            custom["customEvents"] = _sorted_json(self.custom_events, MapVersion.V3)
        if self.environment:
            custom["environment"] = [e.to_json(MapVersion.V3) for e in self.environment]
        if self.point_definitions:
            custom["pointDefinitions"] = self.point_definitions.to_json(MapVersion.V3)
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
    def _from_json_v2(cls, data: dict) -> "Difficulty":
        diff = cls(source_version=MapVersion.V2)
        for raw in data.get("_notes", []):
            if not isinstance(raw, dict) or "_type" not in raw:
                raise ParseError(raw, "note without type")
            obj = (Bomb if raw["_type"] == V2_BOMB_TYPE else Note).from_json(raw, MapVersion.V2)
            fake = bool(obj.custom_data.pop("fake", False))
            getattr(diff, ("fake_" if fake else "") + obj.LIST_NAME).append(obj)
        for raw in data.get("_obstacles", []):
            obj = Wall.from_json(raw, MapVersion.V2)
            fake = bool(obj.custom_data.pop("fake", False))
            (diff.fake_walls if fake else diff.walls).append(obj)
        diff.events = [event_from_json(raw, MapVersion.V2) for raw in data.get("_events", [])]

        custom = dict(data.get("_customData", {}))
        diff.custom_events = [CustomEvent.from_json(raw, MapVersion.V2) for raw in custom.pop("_customEvents", [])]
        diff.environment = [environment_from_json(raw, MapVersion.V2) for raw in custom.pop("_environment", [])]
        diff.point_definitions = PointDefinitionRegistry.from_json(custom.pop("_pointDefinitions", []))
        diff.extra_custom = custom
        known = {VERSION_KEYS[MapVersion.V2], "_notes", "_obstacles", "_events", "_customData"}
        diff.extra = {k: v for k, v in data.items() if k not in known}
        return diff

    @classmethod
    def _from_json_v3(cls, data: dict) -> "Difficulty":
        diff = cls(source_version=MapVersion.V3)
        for key, attr, obj_cls in V3_LISTS:
            setattr(diff, attr, [obj_cls.from_json(raw, MapVersion.V3) for raw in data.get(key, [])])
        diff.events = [event_from_json(raw, MapVersion.V3) for raw in data.get(V3_EVENTS_KEY, [])]

        custom = dict(data.get(CUSTOM_DATA_KEYS[MapVersion.V3], {}))
        for key, attr, obj_cls in V3_FAKE_LISTS:
            setattr(diff, attr, [obj_cls.from_json(raw, MapVersion.V3) for raw in custom.pop(key, [])])
        diff.custom_events = [CustomEvent.from_json(raw, MapVersion.V3) for raw in custom.pop("customEvents", [])]
        diff.environment = [environment_from_json(raw, MapVersion.V3) for raw in custom.pop("environment", [])]
        diff.point_definitions = PointDefinitionRegistry.from_json(custom.pop("pointDefinitions", {}))
        diff.extra_custom = custom
        known = {VERSION_KEYS[MapVersion.V3], V3_EVENTS_KEY, CUSTOM_DATA_KEYS[MapVersion.V3]} | {key for key, _, _ in V3_LISTS}
        diff.extra = {k: v for k, v in data.items() if k not in known}
        return diff

    @classmethod
    def from_json(cls, data: dict) -> "Difficulty":
        parsers = {
            MapVersion.V2: cls._from_json_v2,
            MapVersion.V3: cls._from_json_v3,
        }
        return parsers[detect_version(data)](data)

    @classmethod
    def load(cls, path: str|Path) -> "Difficulty":
        fp = Path(path)
        logger.info(f"Loading {fp.absolute()}")
        with fp.open("r", encoding="utf-8") as f:
            data = json.load(f)
        return cls.from_json(data)

    def save(self, path: str|Path, version: MapVersion, precision: int|None = None) -> None:
        # serialize before opening, so a failure does not leave a truncated file behind
        data = round_values(self.to_json(version), precision)
        fp = Path(path)
        logger.info(f"Saving {fp.absolute()}")
        with fp.open("w", encoding="utf-8") as f:
            json.dump(data, f)

    def optimize_animations(self, settings: OptimizeSettings|None = None) -> int:
        """optimize the animation of every object, custom event and point definition in place

        Returns the number of removed keyframes.
        """
        removed = 0

        def _count(animation) -> int:
            return sum(len(track) for track in animation.values() if not isinstance(track, str))

        for obj in (*self.gameplay_objects, *self.custom_events):
            before = _count(obj.animation)
            obj.animation = optimize_animation(obj.animation, settings)
            removed += before - _count(obj.animation)

        optimized: dict[str, Track] = {}
        for name in self.point_definitions:
            try:
                track = self.point_definitions.resolve_track(name)
            except BeatmapError as be:
                # implicit times can't be told apart from values without knowing the property
                logger.warning(f"Not optimizing point definition {name!r}: {be}")
                continue
            optimized[name] = optimize(track, settings)
            removed += len(track) - len(optimized[name])
        self.point_definitions = self.point_definitions.updated(optimized)
        logger.debug(f"Removed {removed} keyframes in total")
        return removed


class AuthoringSession:
    """in-progress difficulty, plus the state shared by authoring calls"""

    def __init__(self, version: MapVersion = MapVersion.V3, difficulty: Difficulty|None = None) -> None:
        self.version = version
        self.difficulty = difficulty if difficulty is not None else Difficulty()
        self._env_track_counter = 0

    @property
    def point_definitions(self) -> PointDefinitionRegistry:
        return self.difficulty.point_definitions

    def next_env_track(self) -> str:
        """fresh track name for environment objects, skipping names already in use"""
        used = {env.track for env in self.difficulty.environment}
        while True:
            name = f"environment_{self._env_track_counter}"
            self._env_track_counter += 1
            if name not in used:
                return name

    def to_json(self) -> dict:
        return self.difficulty.to_json(self.version)

    def save(self, path: str|Path, precision: int|None = None) -> None:
        self.difficulty.save(path, self.version, precision=precision)


@contextmanager
def difficulty_file(
    filename: str|Path, save_suffix: str|None = "_out", version: MapVersion|None = None,
) -> Generator[AuthoringSession, None, None]:
    """load a difficulty, yield a session for it and save the result next to the input

    The output keeps the input version unless one is given. With save_suffix=None nothing is saved.
    """
    fp = Path(filename)
    with fp.open("r", encoding="utf-8") as f:
        data = json.load(f)
    logger.info(f"Loaded {fp.absolute()}")
    session = AuthoringSession(
        version=version if version is not None else detect_version(data),
        difficulty=Difficulty.from_json(data),
    )
    yield session
    if save_suffix is not None:
        session.save(fp.with_stem(f"{fp.stem}{save_suffix}"))
