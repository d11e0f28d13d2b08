from typing import Callable, Union

from .animation import Animation, RawTrack, Track, TrackShapeError

TrackLike = Union[Track, RawTrack, float]

# Note: None of these functions modify their inputs, tracks are immutable and dicts are rebuilt.

def combine(a: TrackLike, b: TrackLike, prop: str|None = None) -> Track:
    """merge two tracks of the same property by time

    Static values become a keyframe at time 0. Keyframes are never dropped or deduplicated,
    at equal times all keyframes of a come before those of b.
    This is a pure merge in time: positions are not added, rotations are not composed.
    """
    track_a = Track.from_raw(a, prop)
    track_b = Track.from_raw(b, prop)
    if not track_a:
        return track_b
    if not track_b:
        return track_a
    if track_a.arity != track_b.arity:
        raise TrackShapeError(
            f"Cannot combine {prop or 'tracks'} with {track_a.arity} and {track_b.arity} values: {track_a.to_raw()} / {track_b.to_raw()}"
        )
    # sorted() is stable, and a is chained first
    merged = sorted((*track_a.as_animated(), *track_b.as_animated()), key=lambda kf: kf.time)
    return Track.from_keyframes(merged)

def combine_animations(
    new: Animation,
    existing: Animation,
    resolve: Callable[[str, str], Track]|None = None,
) -> Animation:
    """combine two animation dicts property by property

    Properties only in new are taken as-is, properties in both are combined (new first).
    Properties only in existing are not added, since they are already applied to the object.
    Point definition names are resolved via resolve(name, prop), if given.
    """
    out: Animation = {}
    for prop, new_track in new.items():
        if prop not in existing:
            out[prop] = new_track
            continue
        old_track = existing[prop]
        if isinstance(new_track, str) or isinstance(old_track, str):
            if resolve is None:
                raise ValueError(f"Cannot combine point definition reference for {prop} without resolver")
            if isinstance(new_track, str):
                new_track = resolve(new_track, prop)
            if isinstance(old_track, str):
                old_track = resolve(old_track, prop)
        out[prop] = combine(new_track, old_track, prop)
    return out
