import dataclasses
import enum
from typing import Any, ClassVar, Optional, TYPE_CHECKING

from .beatmap_format import AnimatedObject, FieldTable, MapVersion

if TYPE_CHECKING:
    from .difficulty import AuthoringSession

class NoteType(enum.IntEnum):
    RED = 0
    BLUE = 1

class Cut(enum.IntEnum):
    UP = 0
    DOWN = 1
    LEFT = 2
    RIGHT = 3
    UP_LEFT = 4
    UP_RIGHT = 5
    DOWN_LEFT = 6
    DOWN_RIGHT = 7
    DOT = 8

V2_BOMB_TYPE = 3

# (attribute, v2 custom data key, v3 custom data key) shared by all gameplay objects, None: not present in that version
CustomFieldTable = tuple[tuple[str, Optional[str], str], ...]
GAMEPLAY_CUSTOM_FIELDS: CustomFieldTable = (
    ("coordinates", "_position", "coordinates"),
    ("world_rotation", "_rotation", "worldRotation"),
    ("local_rotation", "_localRotation", "localRotation"),
    ("njs", "_noteJumpMovementSpeed", "noteJumpMovementSpeed"),
    ("spawn_offset", "_noteJumpStartBeatOffset", "noteJumpStartBeatOffset"),
    ("uninteractable", "_interactable", "uninteractable"),
    ("color", "_color", "color"),
)

@dataclasses.dataclass
class GameplayObject(AnimatedObject):
    _: dataclasses.KW_ONLY
    x: int = 0
    y: int = 0
    coordinates: list[float]|None = None
    world_rotation: list[float]|float|None = None
    local_rotation: list[float]|None = None
    njs: float|None = None
    spawn_offset: float|None = None
    uninteractable: bool|None = None
    color: list[float]|None = None

    # name of the difficulty list to push into, "fake_" is prepended for fake objects
    LIST_NAME: ClassVar[str] = ""
    CUSTOM_FIELDS: ClassVar[CustomFieldTable] = GAMEPLAY_CUSTOM_FIELDS
    # booleans whose v2 key states the opposite, ie _interactable vs uninteractable
    V2_INVERTED: ClassVar[frozenset[str]] = frozenset({"uninteractable"})

    def _custom_json(self) -> dict:
        custom = super()._custom_json()
        for attr, _, key in self.CUSTOM_FIELDS:
            custom[key] = getattr(self, attr)
        return custom

    def _load_custom(self, custom: dict) -> None:
        for attr, _, key in self.CUSTOM_FIELDS:
            setattr(self, attr, custom.pop(key, None))
        super()._load_custom(custom)

    @classmethod
    def _custom_to_v2(cls, custom: dict) -> dict:
        custom = dict(custom)
        renamed = {}
        for attr, v2_key, v3_key in cls.CUSTOM_FIELDS:
            if v2_key is not None and v3_key in custom:
                value = custom.pop(v3_key)
                renamed[v2_key] = (not value) if attr in cls.V2_INVERTED else value
        return super()._custom_to_v2(custom) | renamed

    @classmethod
    def _custom_from_v2(cls, custom: dict) -> dict:
        custom = dict(custom)
        renamed = {}
        for attr, v2_key, v3_key in cls.CUSTOM_FIELDS:
            if v2_key is not None and v2_key in custom:
                value = custom.pop(v2_key)
                renamed[v3_key] = (not value) if attr in cls.V2_INVERTED else value
        return super()._custom_from_v2(custom) | renamed

    def push(self, session: "AuthoringSession", fake: bool = False, clone: bool = True) -> "GameplayObject":
        """add to the difficulty of the session"""
        list_name = ("fake_" if fake else "") + self.LIST_NAME
        getattr(session.difficulty, list_name).append(self.clone() if clone else self)
        return self


@dataclasses.dataclass
class Note(GameplayObject):
    type: int = NoteType.BLUE
    direction: int = Cut.DOWN
    angle_offset: int = 0
    flip: list[float]|None = None
    disable_note_gravity: bool|None = None
    disable_note_look: bool|None = None
    spawn_effect: bool|None = None

    FIELDS: ClassVar[FieldTable] = (
        ("time", "_time", "b"),
        ("x", "_lineIndex", "x"),
        ("y", "_lineLayer", "y"),
        ("type", "_type", "c"),
        ("direction", "_cutDirection", "d"),
        ("angle_offset", None, "a"),
    )
    LIST_NAME: ClassVar[str] = "notes"
    CUSTOM_FIELDS: ClassVar[CustomFieldTable] = GAMEPLAY_CUSTOM_FIELDS + (
        ("flip", "_flip", "flip"),
        ("disable_note_gravity", "_disableNoteGravity", "disableNoteGravity"),
        ("disable_note_look", "_disableNoteLook", "disableNoteLook"),
        ("spawn_effect", "_disableSpawnEffect", "spawnEffect"),
    )
    V2_INVERTED: ClassVar[frozenset[str]] = GameplayObject.V2_INVERTED | {"spawn_effect"}


@dataclasses.dataclass
class Bomb(GameplayObject):
    flip: list[float]|None = None
    disable_note_gravity: bool|None = None
    disable_note_look: bool|None = None

    FIELDS: ClassVar[FieldTable] = (
        ("time", "_time", "b"),
        ("x", "_lineIndex", "x"),
        ("y", "_lineLayer", "y"),
    )
    # v2 has no bomb list, bombs are notes of type 3
    CONSTANTS: ClassVar[dict[MapVersion, dict[str, Any]]] = {
        MapVersion.V2: {"_type": V2_BOMB_TYPE, "_cutDirection": 0},
    }
    LIST_NAME: ClassVar[str] = "bombs"
    CUSTOM_FIELDS: ClassVar[CustomFieldTable] = GAMEPLAY_CUSTOM_FIELDS + (
        ("flip", "_flip", "flip"),
        ("disable_note_gravity", "_disableNoteGravity", "disableNoteGravity"),
        ("disable_note_look", "_disableNoteLook", "disableNoteLook"),
    )


@dataclasses.dataclass
class Wall(GameplayObject):
    duration: float = 1.0
    width: int = 1
    height: int = 1
    size: list[float]|None = None

    FIELDS: ClassVar[FieldTable] = (
        ("time", "_time", "b"),
        ("x", "_lineIndex", "x"),
        ("y", "_lineLayer", "y"),
        ("duration", "_duration", "d"),
        ("width", "_width", "w"),
        ("height", "_height", "h"),
    )
    LIST_NAME: ClassVar[str] = "walls"
    CUSTOM_FIELDS: ClassVar[CustomFieldTable] = GAMEPLAY_CUSTOM_FIELDS + (
        ("size", "_scale", "size"),
    )
    # v2 wall type: (y, height), full height and crouch walls
    V2_TYPES: ClassVar[dict[int, tuple[int, int]]] = {
        0: (0, 5),
        1: (2, 3),
    }

    def _to_json_v2(self) -> dict:
        out = super()._to_json_v2()
        out["_type"] = 1 if (self.y, self.height) == self.V2_TYPES[1] else 0
        return out

    @classmethod
    def from_json(cls, data: dict, version: MapVersion) -> "Wall":
        obj = super().from_json(data, version)
        # plain v2 walls only carry a type, layer and height are implied by it
        if version == MapVersion.V2 and "_lineLayer" not in data and "_height" not in data and data.get("_type") in cls.V2_TYPES:
            obj.y, obj.height = cls.V2_TYPES[data["_type"]]
        return obj


@dataclasses.dataclass
class _V3OnlyObject(GameplayObject):
    def _to_json_v2(self) -> dict:
        raise ValueError(f"{type(self).__name__} objects can not be written in v2 format")


@dataclasses.dataclass
class Arc(_V3OnlyObject):
    type: int = NoteType.BLUE
    head_direction: int = Cut.DOWN
    head_length: float = 0.0
    tail_time: float = 0.0
    tail_x: int = 0
    tail_y: int = 0
    tail_direction: int = Cut.DOWN
    tail_length: float = 0.0
    anchor_mode: int = 0
    tail_coordinates: list[float]|None = None

    FIELDS: ClassVar[FieldTable] = (
        ("time", None, "b"),
        ("type", None, "c"),
        ("x", None, "x"),
        ("y", None, "y"),
        ("head_direction", None, "d"),
        ("head_length", None, "mu"),
        ("tail_time", None, "tb"),
        ("tail_x", None, "tx"),
        ("tail_y", None, "ty"),
        ("tail_direction", None, "tc"),
        ("tail_length", None, "tmu"),
        ("anchor_mode", None, "m"),
    )
    LIST_NAME: ClassVar[str] = "arcs"
    CUSTOM_FIELDS: ClassVar[CustomFieldTable] = GAMEPLAY_CUSTOM_FIELDS + (
        ("tail_coordinates", None, "tailCoordinates"),
    )

    def push(self, session: "AuthoringSession", fake: bool = False, clone: bool = True) -> "Arc":
        if fake:
            raise ValueError("Arcs can not be fake")
        return super().push(session, clone=clone)


@dataclasses.dataclass
class Chain(_V3OnlyObject):
    type: int = NoteType.BLUE
    head_direction: int = Cut.DOWN
    tail_time: float = 0.0
    tail_x: int = 0
    tail_y: int = 0
    links: int = 4
    squish: float = 1.0
    tail_coordinates: list[float]|None = None

    FIELDS: ClassVar[FieldTable] = (
        ("time", None, "b"),
        ("type", None, "c"),
        ("x", None, "x"),
        ("y", None, "y"),
        ("head_direction", None, "d"),
        ("tail_time", None, "tb"),
        ("tail_x", None, "tx"),
        ("tail_y", None, "ty"),
        ("links", None, "sc"),
        ("squish", None, "s"),
    )
    LIST_NAME: ClassVar[str] = "chains"
    CUSTOM_FIELDS: ClassVar[CustomFieldTable] = GAMEPLAY_CUSTOM_FIELDS + (
        ("tail_coordinates", None, "tailCoordinates"),
    )
