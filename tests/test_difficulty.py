import json

import pytest

from beat_mapping_helper.animation import ParseError, Track
from beat_mapping_helper.beatmap_format import MapVersion, detect_version
from beat_mapping_helper.difficulty import AuthoringSession, Difficulty, difficulty_file
from beat_mapping_helper.environment import Environment, Geometry
from beat_mapping_helper.events import CustomEvent, LightEvent
from beat_mapping_helper.objects import Arc, Bomb, Cut, Note, NoteType, Wall
from beat_mapping_helper.optimizer import OptimizeSettings


def _session(version: MapVersion = MapVersion.V3) -> AuthoringSession:
    session = AuthoringSession(version)
    Note(time=2, type=NoteType.RED, direction=Cut.UP, x=1).push(session)
    Note(time=1, type=NoteType.BLUE, direction=Cut.DOWN, x=2, track="first").push(session)
    Note(time=1.5).push(session, fake=True)
    Bomb(time=3, x=0).push(session)
    Wall(time=0, duration=4, width=2).push(session)
    LightEvent(time=0).on().push(session)
    CustomEvent(time=0).animate_track("first", duration=1).animate("dissolve", [[0, 0], [1, 1]]).push(session)
    Environment("Mountains", active=False).push(session)
    session.point_definitions.define([[0, 0, 0, 0], [0, 1, 0, 1]], "rise")
    return session


# ---------------------------------------------------------------------------
# version detection
# ---------------------------------------------------------------------------


class TestVersion:
    def test_detect(self):
        assert detect_version({"version": "3.2.0"}) == MapVersion.V3
        assert detect_version({"_version": "2.6.0"}) == MapVersion.V2

    def test_missing(self):
        with pytest.raises(ParseError):
            detect_version({"notes": []})

    def test_unsupported(self):
        with pytest.raises(ParseError):
            detect_version({"version": "4.0.0"})

    def test_not_a_dict(self):
        with pytest.raises(ParseError):
            Difficulty.from_json([])


# ---------------------------------------------------------------------------
# serialization
# ---------------------------------------------------------------------------


class TestV3:
    def test_layout(self):
        out = _session().to_json()
        assert out["version"] == "3.2.0"
        assert [n["b"] for n in out["colorNotes"]] == [1, 2]
        assert len(out["bombNotes"]) == 1
        assert len(out["obstacles"]) == 1
        assert out["sliders"] == []
        assert len(out["basicBeatmapEvents"]) == 1
        custom = out["customData"]
        assert [n["b"] for n in custom["fakeColorNotes"]] == [1.5]
        assert custom["customEvents"][0]["t"] == "AnimateTrack"
        assert custom["environment"] == [{"id": "Mountains", "lookupMethod": "Contains", "active": False}]
        assert custom["pointDefinitions"] == {"rise": [[0, 0, 0, 0], [0, 1, 0, 1]]}

    def test_round_trip(self):
        out = _session().to_json()
        assert Difficulty.from_json(out).to_json(MapVersion.V3) == out

    def test_unknown_keys_kept(self):
        data = {"version": "3.2.0", "bpmEvents": [{"b": 0, "m": 120}], "customData": {"materials": {"x": {}}}}
        diff = Difficulty.from_json(data)
        out = diff.to_json(MapVersion.V3)
        assert out["bpmEvents"] == [{"b": 0, "m": 120}]
        assert out["customData"] == {"materials": {"x": {}}}
        assert "bpmEvents" not in diff.to_json(MapVersion.V2)


class TestV2:
    def test_layout(self):
        out = _session(MapVersion.V2).to_json()
        assert out["_version"] == "2.2.0"
        # notes, the fake note and the bomb share one list, sorted by time
        assert [(n["_time"], n["_type"]) for n in out["_notes"]] == [(1, 1), (1.5, 1), (2, 0), (3, 3)]
        assert out["_notes"][1]["_customData"] == {"_fake": True}
        assert out["_notes"][0]["_customData"] == {"_track": "first"}
        custom = out["_customData"]
        assert custom["_customEvents"][0]["_data"]["_dissolve"] == [[0, 0], [1, 1]]
        assert custom["_environment"] == [{"_id": "Mountains", "_lookupMethod": "Contains", "_active": False}]
        assert custom["_pointDefinitions"] == [{"_name": "rise", "_points": [[0, 0, 0, 0], [0, 1, 0, 1]]}]

    def test_round_trip(self):
        out = _session(MapVersion.V2).to_json()
        diff = Difficulty.from_json(out)
        assert len(diff.notes) == 2
        assert len(diff.fake_notes) == 1
        assert len(diff.bombs) == 1
        assert diff.fake_notes[0].custom_data == {}
        assert diff.to_json(MapVersion.V2) == out

    def test_convert_to_v3(self):
        v2 = _session(MapVersion.V2).to_json()
        assert Difficulty.from_json(v2).to_json(MapVersion.V3) == _session().to_json()

    def test_renamed_custom_data_survives_conversion(self):
        v2 = {
            "_version": "2.2.0",
            "_notes": [{"_time": 1, "_lineIndex": 1, "_lineLayer": 0, "_type": 0, "_cutDirection": 1,
                        "_customData": {"_position": [0, 1], "_interactable": False}}],
            "_obstacles": [{"_time": 2, "_lineIndex": 0, "_type": 1, "_duration": 1, "_width": 4,
                            "_customData": {"_scale": [4, 1, 1], "_rotation": 15}}],
            "_events": [],
        }
        v3 = Difficulty.from_json(v2).to_json(MapVersion.V3)
        assert v3["colorNotes"][0]["customData"] == {"coordinates": [0, 1], "uninteractable": True}
        wall = v3["obstacles"][0]
        assert (wall["y"], wall["h"]) == (2, 3)
        assert wall["customData"] == {"worldRotation": 15, "size": [4, 1, 1]}
        back = Difficulty.from_json(v3).to_json(MapVersion.V2)
        assert back["_notes"][0]["_customData"] == v2["_notes"][0]["_customData"]
        assert back["_obstacles"][0]["_type"] == 1
        assert back["_obstacles"][0]["_customData"] == v2["_obstacles"][0]["_customData"]

    def test_arcs_not_in_v2(self):
        session = AuthoringSession(MapVersion.V2)
        Arc(time=1).push(session)
        with pytest.raises(ValueError):
            session.to_json()

    def test_note_without_type(self):
        with pytest.raises(ParseError):
            Difficulty.from_json({"_version": "2.2.0", "_notes": [{"_time": 1}]})


# ---------------------------------------------------------------------------
# session, files and optimization
# ---------------------------------------------------------------------------


class TestSession:
    def test_point_definitions_shared(self):
        session = AuthoringSession()
        session.point_definitions.define([1], "one")
        assert "one" in session.difficulty.point_definitions

    def test_env_tracks(self):
        session = AuthoringSession()
        Geometry(track="environment_0").push(session)
        assert session.next_env_track() == "environment_1"
        assert session.next_env_track() == "environment_2"

    def test_deterministic(self):
        assert json.dumps(_session().to_json()) == json.dumps(_session().to_json())


class TestFiles:
    def test_save_and_load(self, tmp_path):
        path = tmp_path / "ExpertPlusStandard.dat"
        _session().difficulty.save(path, MapVersion.V3)
        loaded = Difficulty.load(path)
        assert loaded.source_version == MapVersion.V3
        assert loaded.to_json(MapVersion.V3) == _session().to_json()

    def test_save_precision(self, tmp_path):
        path = tmp_path / "out.dat"
        diff = Difficulty()
        diff.notes.append(Note(time=1.23456))
        diff.save(path, MapVersion.V3, precision=2)
        assert json.loads(path.read_text())["colorNotes"][0]["b"] == 1.23

    def test_difficulty_file(self, tmp_path):
        path = tmp_path / "Hard.dat"
        path.write_text(json.dumps({"_version": "2.2.0", "_notes": [], "_obstacles": [], "_events": []}))
        with difficulty_file(path) as session:
            assert session.version == MapVersion.V2
            Note(time=4).push(session)
        out = json.loads((tmp_path / "Hard_out.dat").read_text())
        assert out["_notes"][0]["_time"] == 4

    def test_difficulty_file_no_save(self, tmp_path):
        path = tmp_path / "Hard.dat"
        path.write_text(json.dumps({"version": "3.2.0"}))
        with difficulty_file(path, save_suffix=None, version=MapVersion.V2) as session:
            assert session.version == MapVersion.V2
        assert sorted(p.name for p in tmp_path.iterdir()) == ["Hard.dat"]


class TestOptimizeAnimations:
    def test_everything_optimized(self):
        session = AuthoringSession()
        line = [[0, 0, 0, 0], [0.5, 0, 0, 0.5], [1, 0, 0, 1]]
        Note(time=1).animate("position", line).push(session)
        CustomEvent(time=0).animate_track("t").animate("position", line).push(session)
        session.point_definitions.define(line, "line")
        session.point_definitions.define([[0, 0, 0], [1, 1, 1, 1]], "implicit")
        removed = session.difficulty.optimize_animations(OptimizeSettings(tolerance=0))
        assert removed == 3
        assert len(session.difficulty.notes[0].animation["position"]) == 2
        assert len(session.difficulty.custom_events[0].animation["position"]) == 2
        assert session.point_definitions.resolve("line") == [[0, 0, 0, 0], [1, 0, 0, 1]]
        assert session.point_definitions.resolve("implicit") == [[0, 0, 0], [1, 1, 1, 1]]

    def test_references_untouched(self):
        session = AuthoringSession()
        Note(time=1).animate("position", "line").push(session)
        assert session.difficulty.optimize_animations() == 0
        assert session.difficulty.notes[0].animation == {"position": "line"}

    def test_static_untouched(self):
        session = AuthoringSession()
        Note(time=1).animate("scale", [1, 1, 1]).push(session)
        session.difficulty.optimize_animations()
        assert session.difficulty.notes[0].animation["scale"] == Track.from_raw([1, 1, 1], "scale")
