from functools import wraps

import numpy as np
from scipy.spatial.transform import Rotation

from .animation import Track, TrackShapeError

# Note: None of these functions are allowed to *modify* the input. Tracks are immutable, so a new one is always returned.

def euler_rotation(rotation: "numpy array (3)") -> Rotation:
    """rotation from euler angles in degrees, applied z first, then x, then y (like the game does)"""
    rx, ry, rz = rotation
    return Rotation.from_euler("zxy", [rz, rx, ry], degrees=True)

def rotate_point(
    point: "numpy array (3)", rotation: "numpy array (3)", anchor: "numpy array (3)" = (0, 0, 0)
) -> "numpy array (3)":
    anchor = np.asarray(anchor, dtype=float)
    return euler_rotation(rotation).apply(np.asarray(point, dtype=float) - anchor) + anchor

def _map_values(track: Track, func) -> Track:
    """apply func to the (n, 3) value array, keeping times and modifiers"""
    if not track:
        return track
    if track.arity != 3:
        raise TrackShapeError(f"Movement needs tracks with 3 values, got {track.arity}")
    new_values = func(track.values)
    return Track(
        tuple(kf.with_values(v) for kf, v in zip(track, new_values)),
        static=track.static,
    )

def add_pivot_wrapper(func):
    @wraps(func)
    def _pivot_wrapper(data: "numpy array (n, 3)", *args, pivot: "optional numpy array (3)" = None, **kwargs) -> "numpy array (n, 3)":
        if pivot is not None and np.any(pivot):
            pivot = np.asarray(pivot, dtype=float)
            return func(data - pivot, *args, **kwargs) + pivot
        return func(data, *args, **kwargs)
    return _pivot_wrapper

def _offset(data: "numpy array (n, 3)", offset_3d: "numpy array (3)") -> "numpy array (n, 3)":
    return data + np.asarray(offset_3d, dtype=float)

@add_pivot_wrapper
def _scale(data: "numpy array (n, 3)", scale_3d: "numpy array (3)") -> "numpy array (n, 3)":
    return data * np.asarray(scale_3d, dtype=float)

@add_pivot_wrapper
def _rotate(data: "numpy array (n, 3)", rotation: "numpy array (3)") -> "numpy array (n, 3)":
    return euler_rotation(rotation).apply(data)

def offset(track: Track, offset_3d: "numpy array (3)") -> Track:
    """translate every position of a track"""
    return _map_values(track, lambda data: _offset(data, offset_3d))

def scale(track: Track, scale_3d: "numpy array (3)", pivot: "optional numpy array (3)" = None) -> Track:
    """scale every position of a track relative to pivot (default: origin)"""
    return _map_values(track, lambda data: _scale(data, scale_3d, pivot=pivot))

def rotate(track: Track, rotation: "numpy array (3)", pivot: "optional numpy array (3)" = None) -> Track:
    """rotate every position of a track around pivot by euler angles in degrees"""
    return _map_values(track, lambda data: _rotate(data, rotation, pivot=pivot))
