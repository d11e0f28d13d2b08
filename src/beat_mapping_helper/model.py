import copy
import dataclasses
from typing import TYPE_CHECKING, Iterable

import numpy as np

from .animation import Keyframe, Track
from .environment import Geometry, GeometryMaterial
from .events import CustomEvent
from .optimizer import OptimizeSettings, optimize
from .utils import logger, second_to_beat

if TYPE_CHECKING:
    from .difficulty import AuthoringSession

CHANNELS = ("position", "rotation", "scale")

def _channel_track(fractions: "numpy array (n)", samples: "numpy array (n, 3)") -> Track:
    if np.all(samples == samples[0]):
        return Track.static_value(samples[0].tolist())
    return Track.from_keyframes(
        Keyframe(values=tuple(v.tolist()), time=float(t))
        for t, v in zip(fractions, samples)
    )


@dataclasses.dataclass
class ModelObject:
    """transform of one object over time, with keyframe times as fraction of duration (like AnimateTrack expects)"""
    position: Track
    rotation: Track
    scale: Track
    start: float = 0.0
    duration: float = 0.0
    track: str|None = None
    group: str|None = None

    @property
    def animated(self) -> bool:
        return any(not getattr(self, channel).static for channel in CHANNELS)

    @classmethod
    def from_samples(
        cls,
        times: "numpy array (n)",
        positions: "numpy array (n, 3)",
        rotations: "numpy array (n, 3)",
        scales: "numpy array (n, 3)",
        bpm: float|None = None,
        track: str|None = None,
        group: str|None = None,
    ) -> "ModelObject":
        """build from sampled transforms, times in beats (or seconds when bpm is given)

        Channels that never change become static values.
        """
        times = np.asarray(times, dtype=float)
        channels = [np.asarray(c, dtype=float).reshape(-1, 3) for c in (positions, rotations, scales)]
        if not times.shape[0]:
            raise ValueError("Need at least one sample")
        if any(c.shape[0] != times.shape[0] for c in channels):
            raise ValueError(f"Sample count mismatch: {times.shape[0]} times, {[c.shape[0] for c in channels]} transforms")
        if np.any(np.diff(times) < 0):
            raise ValueError("Sample times must not decrease")
        if bpm is not None:
            times = second_to_beat(times, bpm)
        start = float(times[0])
        duration = float(times[-1] - times[0])
        fractions = (times - start) / duration if duration > 0 else np.zeros_like(times)
        position, rotation, scale = (_channel_track(fractions, c) for c in channels)
        return cls(position, rotation, scale, start=start, duration=duration, track=track, group=group)

    def optimize(self, settings: OptimizeSettings|None = None) -> "ModelObject":
        return dataclasses.replace(self, **{channel: optimize(getattr(self, channel), settings) for channel in CHANNELS})


def place_geometry(
    session: "AuthoringSession",
    objects: Iterable[ModelObject],
    material: GeometryMaterial|None = None,
    geometry_type: str = "Cube",
    optimize_settings: OptimizeSettings|None = None,
) -> list[Geometry]:
    """push one geometry object per model object

    Static transforms are set on the geometry, animated ones are played by an AnimateTrack event
    starting at the first sample.
    """
    placed = []
    for obj in objects:
        if optimize_settings is not None:
            obj = obj.optimize(optimize_settings)
        if material is None:
            geo = Geometry(geometry_type, group=obj.group)
        else:
            geo = Geometry(geometry_type, copy.deepcopy(material), group=obj.group)
        animation = {}
        for channel in CHANNELS:
            track: Track = getattr(obj, channel)
            if track.static:
                setattr(geo, channel, list(track[0].values))
            else:
                animation[channel] = track
        if animation:
            geo.track = obj.track or session.next_env_track()
            event = CustomEvent(time=obj.start).animate_track(geo.track, duration=obj.duration)
            event.animation = animation
            event.push(session, clone=False)
        elif obj.track is not None:
            geo.track = obj.track
        geo.push(session, clone=False)
        placed.append(geo)
    logger.debug(f"Placed {len(placed)} geometry objects")
    return placed
