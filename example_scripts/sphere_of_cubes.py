#! /usr/bin/env python3

# Creates a static sphere of small cubes around the player

import numpy as np
from beat_mapping_helper import difficulty, model

radius = 30
rings = 12  # rings from top to bottom
cube_size = 0.5
material = {"shader": "Standard", "color": [0.2, 0.6, 1, 1]}

session = difficulty.AuthoringSession()

objects = []
for polar in np.linspace(0, 180, rings + 1)[1:-1]:
    # keep cubes about equally spaced, rings close to the poles get fewer
    count = max(1, int(rings * 2 * np.sin(np.radians(polar))))
    for azimuth in np.linspace(0, 360, count, endpoint=False):
        position = radius * np.array([
            np.sin(np.radians(polar)) * np.sin(np.radians(azimuth)),
            np.cos(np.radians(polar)),
            np.sin(np.radians(polar)) * np.cos(np.radians(azimuth)),
        ])
        objects.append(model.ModelObject.from_samples(
            [0], [position], [[0, azimuth, 0]], [[cube_size] * 3], group="sphere",
        ))

model.place_geometry(session, objects, material=material)
session.save("sphere.dat", precision=3)
