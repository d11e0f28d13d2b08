#! /usr/bin/env python3

# Sways a group of environment pillars left and right based on a sine wave

import numpy as np
from beat_mapping_helper import difficulty, environment
from beat_mapping_helper.optimizer import OptimizeSettings

amplitude = 2  # in units, both left and right of the start position
cycle = 4  # in beats, for a full cycle
start = 16  # beat to start swaying at
cycles = 8
samples_per_cycle = 32

with difficulty.difficulty_file("ExpertPlusStandard.dat", save_suffix="_sway") as session:
    for i in range(5):
        environment.Environment(
            r"\[\d+\]PillarPair \(1\)\.\[\d+\]PillarL$", "Regex", duplicate=1, position=[-10 - i * 4, 0, 20 + i * 8], group="pillars",
        ).push(session)

    duration = cycle * cycles
    fractions = np.linspace(0, 1, cycles * samples_per_cycle + 1)
    sway = np.sin(np.radians(fractions * 360 * cycles)) * amplitude
    keyframes = [[x, 0, 0, t] for x, t in zip(sway, fractions)]
    environment.animate_env_group(session, "pillars", start, {"position": keyframes}, duration=duration)

    # dense sine samples, most can be interpolated again
    session.difficulty.optimize_animations(OptimizeSettings(tolerance=0.01))
