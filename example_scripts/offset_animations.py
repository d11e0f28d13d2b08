#! /usr/bin/env python3

# Shifts the path animation of every note and wall in a difficulty by the configured amount

from pathlib import Path
from beat_mapping_helper import difficulty, movement
from beat_mapping_helper.animation import Track

# CONFIG

offset = [0, 1, 0]  # move paths up by one unit

# looks for "ExpertPlusStandard.dat" in the current working directory
in_file = Path("ExpertPlusStandard.dat")
save_suffix = "_offset"  # output is saved as ExpertPlusStandard_offset.dat

# END OF CONFIG

with difficulty.difficulty_file(in_file, save_suffix=save_suffix) as session:
    for obj in session.difficulty.gameplay_objects:
        for prop in ("offsetPosition", "definitePosition"):
            track = obj.animation.get(prop)
            # references to point definitions are shared, those are left alone
            if isinstance(track, Track):
                obj.animation[prop] = movement.offset(track, offset)
