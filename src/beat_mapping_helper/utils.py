import logging
from typing import Any

import numpy as np

logger = logging.getLogger("BMH")

def beat_to_second(beat: float, bpm: float) -> float:
    return beat * 60 / bpm

def second_to_beat(second: float, bpm: float) -> float:
    return second * bpm / 60

def is_number(val: Any) -> bool:
    # bool is a subclass of int, but never a valid keyframe value
    return isinstance(val, (int, float, np.integer, np.floating)) and not isinstance(val, bool)

def parse_number(val: str) -> float:
    if not val:
        raise ValueError("Value empty")
    if "/" in val:
        num, denom = val.split("/", 1)
        if " " in num:
            # mixed fraction, ie "1 1/2" -> 1.5
            integer, num = num.split(" ", 1)
            i = int(integer)
            return i + np.sign(i) * (float(num) / float(denom))
        return float(num) / float(denom)
    elif val.endswith("%"):
        return float(val[:-1]) / 100
    return float(val)

def parse_vector(val: str) -> tuple[float, ...]:
    split = val.split(",")
    out = []
    for i, v in enumerate(split):
        try:
            out.append(parse_number(v.strip()))
        except ValueError:
            raise ValueError(f"Error parsing component #{i}")
    return tuple(out)

def round_values(data: Any, precision: int | None) -> Any:
    """round all numbers in a nested list/dict structure, leaves everything else as-is"""
    if precision is None:
        return data
    if isinstance(data, dict):
        return {k: round_values(v, precision) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [round_values(v, precision) for v in data]
    if is_number(data):
        r = round(float(data), precision)
        # keep ints as ints, so output stays compact
        return int(r) if r.is_integer() and isinstance(data, (int, np.integer)) else r
    return data
