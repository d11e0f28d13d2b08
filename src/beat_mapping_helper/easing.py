from typing import Callable, Literal

import numpy as np

# curves based on https://easings.net, named like the game expects them ("easeInOutCubic")

EASE_MAGIC_BACK_C1 = 1.70158
EASE_MAGIC_BACK_C3 = 2.70158
EASE_MAGIC_ELASTIC_C4 = np.pi * (2/3)
EASE_MAGIC_BOUNCE_N1 = 7.5625
EASE_MAGIC_BOUNCE_D1 = 2.75
EASE_MAGIC_BOUNCE_SHIFTS: tuple[float,float,float,float] = (0.0, 1.5, 2.25, 2.625)
EASE_MAGIC_BOUNCE_OFFSETS: tuple[float,float,float,float] = (0.0, 0.75, 0.9375, 0.984375)

Easing = Literal["sine", "quad", "cubic", "quart", "quint", "expo", "circ", "back", "elastic", "bounce"]
EaseDirection = Literal["in", "out", "inout"]

# all of these are the "out" variant
easings: dict[Easing, Callable[[float|np.ndarray], float|np.ndarray]] = {
    "sine":    lambda x: np.sin(x * np.pi / 2),
    "quad":    lambda x: (1-(1-x)**2),
    "cubic":   lambda x: (1-(1-x)**3),
    "quart":   lambda x: (1-(1-x)**4),
    "quint":   lambda x: (1-(1-x)**5),
    "expo":    lambda x: np.where(x >= 1, 1.0, 1-2**(-10*x)),
    "circ":    lambda x: (np.sqrt(1-(x-1)**2)),
    "back":    lambda x: (1-((1-x)**3 * EASE_MAGIC_BACK_C3 - (1-x)**2 * EASE_MAGIC_BACK_C1)),
    "elastic": lambda x: np.where(x <= 0, 0.0, np.where(x >= 1, 1.0, (2**(-10*x)) * np.sin((10*x-0.75)*EASE_MAGIC_ELASTIC_C4) + 1)),
    "bounce":  lambda x: np.min(tuple(  # type: ignore
        EASE_MAGIC_BOUNCE_N1*(x-s/EASE_MAGIC_BOUNCE_D1)**2+o
        for s, o in zip(EASE_MAGIC_BOUNCE_SHIFTS, EASE_MAGIC_BOUNCE_OFFSETS)
    ), axis=0),
}

_DIRECTION_PREFIXES: dict[str, EaseDirection] = {"InOut": "inout", "In": "in", "Out": "out"}

EASING_NAMES: tuple[str, ...] = ("easeLinear", "easeStep") + tuple(
    f"ease{prefix}{easing.capitalize()}"
    for easing in easings
    for prefix in ("In", "Out", "InOut")
)

def split_name(name: str) -> tuple[Easing|None, EaseDirection|None]:
    """'easeInOutCubic' -> ('cubic', 'inout'), ('easeLinear' -> (None, None))"""
    if name not in EASING_NAMES:
        raise ValueError(f"Unknown easing: {name!r}")
    if name in ("easeLinear", "easeStep"):
        return None, None
    rest = name[len("ease"):]
    # InOut must be checked before In
    for prefix, direction in _DIRECTION_PREFIXES.items():
        if rest.startswith(prefix):
            return rest[len(prefix):].lower(), direction  # type: ignore
    raise ValueError(f"Unknown easing: {name!r}")

def ease(easing: Easing, dir: EaseDirection, data: float|np.ndarray) -> float|np.ndarray:
    # data can either be number or any array. numbers will be clipped to between 0.0 and 1.0
    # the curve always starts at in=0.0,out=0.0 and ends at in=1,out=1.0
    # if direction is "in", the curve will be flat-ish near in=0.0 and steep-ish near in=1.0
    # if direction is "out", the curve will be steep-ish near in=0.0 and flat-ish near in=1.0
    # if direction is "inout", the curve will be flat-ish near in=0.0 and in=1.0, and steep-ish near in=0.5
    x = np.clip(data, 0, 1)
    f = easings[easing]
    if dir == "out":
        return f(x)
    if dir == "in":
        return 1-f(1-x)
    # inout
    x_scaled = x * 2 - 1  # range: -1 to +1
    y_scaled = np.sign(x_scaled) * f(np.abs(x_scaled))  # range: -1 to +1
    return y_scaled / 2 + 0.5

def ease_by_name(name: str|None, data: float|np.ndarray) -> float|np.ndarray:
    """apply the easing a keyframe declares, None means linear"""
    if name is None or name == "easeLinear":
        return np.clip(data, 0, 1)
    if name == "easeStep":
        # holds the previous value until the segment ends
        return np.floor(np.clip(data, 0, 1))
    easing, direction = split_name(name)
    return ease(easing, direction, data)  # type: ignore
