import dataclasses

import numpy as np
from scipy.interpolate import CubicHermiteSpline

from .animation import Animation, ConfigError, Track
from .easing import ease_by_name
from .utils import logger

# float noise allowed on top of the tolerance, so exactly collinear points are removed at tolerance 0
TOLERANCE_EPSILON = 1e-9

@dataclasses.dataclass
class OptimizeSettings:
    # maximum deviation per value axis, axes without an entry in axis_tolerances use tolerance
    tolerance: float = 0.01
    axis_tolerances: tuple[float, ...] = ()
    # never remove keyframes that carry an easing, spline or flag
    keep_modifiers: bool = True

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if self.tolerance < 0:
            raise ConfigError(f"Tolerance must not be negative, got {self.tolerance}")
        for i, t in enumerate(self.axis_tolerances):
            if t < 0:
                raise ConfigError(f"Tolerance for axis #{i} must not be negative, got {t}")

    def tolerances(self, arity: int) -> "numpy array (arity)":
        out = np.full(arity, float(self.tolerance))
        n = min(arity, len(self.axis_tolerances))
        out[:n] = self.axis_tolerances[:n]
        return out


def interpolate_segment(
    p_before: "numpy array (m)", p0: "numpy array (m)", p1: "numpy array (m)", p_after: "numpy array (m)",
    t0: float, t1: float, query_times: "numpy array (x)", easing: str|None = None, spline: str|None = None,
) -> "numpy array (x, m)":
    """value between two keyframes, like the game does it. easing and spline are taken from the keyframe at t1"""
    fraction = np.atleast_1d(ease_by_name(easing, (np.asarray(query_times, dtype=float) - t0) / (t1 - t0)))
    if spline == "splineCatmullRom":
        # uniform catmull-rom: tangents from the neighboring points
        curve = CubicHermiteSpline([0, 1], np.stack((p0, p1)), np.stack(((p1 - p_before) / 2, (p_after - p0) / 2)))
        return curve(fraction)
    return p0 + (p1 - p0) * fraction[:, np.newaxis]


def optimize(track: Track, settings: OptimizeSettings|None = None) -> Track:
    """greedily remove keyframes that the remaining ones already describe within tolerance

    Each round removes the interior keyframe with the smallest deviation. This is a heuristic,
    it does not guarantee the smallest possible number of keyframes.
    The input track is not modified, at least 2 keyframes are kept.
    """
    if settings is None:
        settings = OptimizeSettings()
    settings.validate()
    if track.static or len(track) < 3:
        return track

    times = track.times
    values = track.values
    tolerances = settings.tolerances(track.arity)
    kept = list(range(len(track)))

    def _cost(pos: int) -> float|None:
        # deviation when removing kept[pos], None if it can't be removed
        idx = kept[pos]
        left, right = kept[pos-1], kept[pos+1]
        if settings.keep_modifiers and track[idx].modifiers:
            return None
        if not times[left] < times[idx] < times[right]:
            # instant jumps stay
            return None
        before = kept[pos-2] if pos >= 2 else left
        after = kept[pos+2] if pos + 2 < len(kept) else right
        removed = np.arange(left + 1, right)
        predicted = interpolate_segment(
            values[before], values[left], values[right], values[after],
            times[left], times[right], times[removed],
            easing=track[right].easing, spline=track[right].spline,
        )
        deviation = np.abs(predicted - values[removed])
        if np.any(deviation > tolerances + TOLERANCE_EPSILON):
            return None
        return float(deviation.max())

    costs: dict[int, float|None] = {kept[pos]: _cost(pos) for pos in range(1, len(kept) - 1)}
    while len(kept) > 2:
        candidates = [(c, idx) for idx, c in costs.items() if c is not None]
        if not candidates:
            break
        _, idx = min(candidates)
        pos = kept.index(idx)
        del kept[pos]
        del costs[idx]
        # neighbors (and theirs, for splines) now have different segments
        for p in range(max(pos - 2, 1), min(pos + 2, len(kept) - 1)):
            costs[kept[p]] = _cost(p)

    if len(kept) < len(track):
        logger.debug(f"Optimized track from {len(track)} to {len(kept)} keyframes")
    return Track.from_keyframes(track[i] for i in kept)

def optimize_animation(animation: Animation, settings: OptimizeSettings|None = None) -> Animation:
    """optimize every track of an animation dict, point definition references are kept as-is"""
    return {
        prop: track if isinstance(track, str) else optimize(track, settings)
        for prop, track in animation.items()
    }
