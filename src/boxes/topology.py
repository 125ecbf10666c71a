"""
Canonical corner enumeration and edge tables for oriented boxes.

Corner i of a box has unit-cube coordinates taken from the bits of i:

    x = +1 if i & 4 else -1     (forward)
    y = +1 if i & 2 else -1     (left)
    z = +1 if i & 1 else -1     (up)

    index   0   1   2   3   4   5   6   7
    x      -1  -1  -1  -1  +1  +1  +1  +1
    y      -1  -1  +1  +1  -1  -1  +1  +1
    z      -1  +1  -1  +1  -1  +1  -1  +1

Box construction, wireframe rendering, the mask hull and the export layout
all index corners in this order.
"""

from typing import Tuple

import numpy as np

NUM_CORNERS = 8

# (8, 3) unit-cube corners, read-only
UNIT_CUBE_CORNERS = np.array([
    [-1, -1, -1],
    [-1, -1, 1],
    [-1, 1, -1],
    [-1, 1, 1],
    [1, -1, -1],
    [1, -1, 1],
    [1, 1, -1],
    [1, 1, 1],
], dtype=np.float64)
UNIT_CUBE_CORNERS.flags.writeable = False

# The 12 pairs of corners that differ in exactly one axis
BOX_EDGES: Tuple[Tuple[int, int], ...] = (
    (0, 1), (0, 2), (0, 4), (1, 3), (1, 5), (2, 3),
    (2, 6), (3, 7), (4, 5), (4, 6), (5, 7), (6, 7),
)

# Edges of the +x (front) face
FRONT_EDGES: Tuple[Tuple[int, int], ...] = (
    (4, 5), (4, 6), (5, 7), (6, 7),
)

FRONT_CORNERS: Tuple[int, ...] = (4, 5, 6, 7)
