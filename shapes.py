# shapes.py
# Procedural target clouds. Every generator fills a fixed-capacity (N, 3)
# buffer; slots past the requested count hold SENTINEL.

from __future__ import annotations
from enum import Enum
import math
import numpy as np

MAX_PARTICLES = 40000
SENTINEL = 9999.0

SPHERE_RADIUS = 25.0
CUBE_SIZE = 35.0
HEART_SCALE = 1.2
HEART_DEPTH = 10.0
HEART_Y_SHIFT = 5.0
HELIX_RADIUS = 20.0
HELIX_TURN = 0.05
HELIX_HEIGHT = 60.0


class ShapeType(Enum):
    SPHERE = "Sphere"
    CUBE = "Cube"
    HEART = "Heart"
    SPIRAL = "Spiral"

    @classmethod
    def parse(cls, name: str) -> "ShapeType":
        for shape in cls:
            if shape.value.lower() == str(name).strip().lower():
                return shape
        raise ValueError(f"Unknown shape: {name!r}")


def _sphere_surface(n: int, rng: np.random.Generator) -> np.ndarray:
    u = rng.random(n)
    v = rng.random(n)
    theta = 2.0 * math.pi * u
    phi = np.arccos(2.0 * v - 1.0)
    r = SPHERE_RADIUS
    return np.stack([
        r * np.sin(phi) * np.cos(theta),
        r * np.sin(phi) * np.sin(theta),
        r * np.cos(phi),
    ], axis=1)


def _cube(n: int, rng: np.random.Generator) -> np.ndarray:
    return (rng.random((n, 3)) - 0.5) * CUBE_SIZE


def _heart(n: int, rng: np.random.Generator) -> np.ndarray:
    t = rng.random(n) * 2.0 * math.pi
    # sqrt(r) spreads points inside the outline instead of tracing it
    vol = np.sqrt(rng.random(n))
    depth = rng.random(n) - 0.5

    x = HEART_SCALE * 16.0 * np.sin(t) ** 3 * vol
    y = HEART_SCALE * (13.0 * np.cos(t) - 5.0 * np.cos(2 * t) - 2.0 * np.cos(3 * t) - np.cos(4 * t)) * vol
    z = depth * HEART_DEPTH * vol
    return np.stack([x, y + HEART_Y_SHIFT, z], axis=1)


def _spiral(n: int, rng: np.random.Generator) -> np.ndarray:
    # Single helix along the generation order; index-driven, no randomness.
    i = np.arange(n, dtype=np.float64)
    x = HELIX_RADIUS * np.cos(i * HELIX_TURN)
    z = HELIX_RADIUS * np.sin(i * HELIX_TURN)
    y = (i / max(n, 1)) * HELIX_HEIGHT - HELIX_HEIGHT * 0.5
    return np.stack([x, y, z], axis=1)


_GENERATORS = {
    ShapeType.SPHERE: _sphere_surface,
    ShapeType.CUBE: _cube,
    ShapeType.HEART: _heart,
    ShapeType.SPIRAL: _spiral,
}


def generate_shape_positions(shape: ShapeType, count: int, capacity: int = MAX_PARTICLES,
                             rng: np.random.Generator | None = None) -> np.ndarray:
    """
    Build a (capacity, 3) float32 target buffer for `shape`.

    The first `count` rows are points of the shape, the rest are SENTINEL
    on every axis.
    """
    gen = _GENERATORS.get(shape)
    if gen is None:
        raise ValueError(f"Unknown shape: {shape!r}")

    capacity = int(capacity)
    count = int(count)
    if not 0 <= count <= capacity:
        raise ValueError(f"count must be in [0, {capacity}], got {count}")

    if rng is None:
        rng = np.random.default_rng()

    out = np.full((capacity, 3), SENTINEL, dtype=np.float32)
    if count > 0:
        out[:count] = gen(count, rng)
    return out
