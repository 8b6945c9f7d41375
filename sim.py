"""
Particle morph simulation.

State (struct-of-arrays, fixed capacity):
- pos:     Nx3 world positions
- vel:     Nx3 world units / frame
- targets: Nx3 current shape target per slot

Per active particle, every frame:
- return force: spring toward the target (return_speed)
- hand force: open hand repels, fist attracts, linear falloff in radius
- damping
- explicit Euler with a unit timestep

Only the first `settings.particle_count` slots are touched; the rest stay
frozen where they are.
"""

from __future__ import annotations
from dataclasses import dataclass
import math
import numpy as np

from gestures import HandData, HandGesture
from shapes import MAX_PARTICLES, ShapeType, generate_shape_positions

REPEL_GAIN = 2.0
ATTRACT_GAIN = 3.0


@dataclass(frozen=True)
class CameraProjection:
    """The only camera facts the simulator needs (hand plane sits at z=0)."""
    fov_deg: float = 75.0
    aspect: float = 16.0 / 9.0
    distance: float = 60.0

    def view_size(self) -> tuple[float, float]:
        height = 2.0 * math.tan(math.radians(self.fov_deg) * 0.5) * self.distance
        return height * self.aspect, height

    def hand_to_world(self, x: float, y: float) -> np.ndarray:
        width, height = self.view_size()
        return np.array([(x - 0.5) * width, -(y - 0.5) * height, 0.0], dtype=np.float32)


def hand_gain(gesture: HandGesture) -> float:
    if gesture == HandGesture.OPEN:
        return REPEL_GAIN
    if gesture == HandGesture.FIST:
        return -ATTRACT_GAIN
    return 0.0


class ParticleSim:
    def __init__(self, capacity: int = MAX_PARTICLES, rotation_step: float = 0.001, rng=None):
        capacity = int(capacity)
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")

        self.capacity = capacity
        self.rotation_step = float(rotation_step)
        self.rng = rng if rng is not None else np.random.default_rng()

        self.pos = np.zeros((capacity, 3), dtype=np.float32)
        self.vel = np.zeros((capacity, 3), dtype=np.float32)
        self.targets = np.zeros((capacity, 3), dtype=np.float32)

        self.shape: ShapeType | None = None
        self.rotation_y = 0.0

    def reset(self):
        self.pos[:] = 0.0
        self.vel[:] = 0.0
        self.rotation_y = 0.0
        self.shape = None

    def set_shape(self, shape: ShapeType, count: int | None = None, force: bool = False) -> bool:
        """
        Swap in a new target buffer. Returns False if nothing changed.

        Live particles only get pulled over by the return force, except on
        the very first load (untouched all-zero buffer) where they snap.
        """
        if shape == self.shape and not force:
            return False

        n = self.capacity if count is None else int(count)
        self.targets = generate_shape_positions(shape, n, self.capacity, self.rng)
        self.shape = shape

        if not self.pos.any():
            self.pos[:] = self.targets
            self.vel[:] = 0.0
        return True

    def get_positions(self) -> np.ndarray:
        return self.pos

    def step(self, settings, hand: HandData, camera: CameraProjection):
        n = int(settings.particle_count)
        assert 0 <= n <= self.capacity, f"particle_count {n} outside [0, {self.capacity}]"

        p = self.pos[:n]
        v = self.vel[:n]

        # --- Return force ---
        v += (self.targets[:n] - p) * np.float32(settings.return_speed)

        # --- Hand force field ---
        gain = hand_gain(hand.gesture) if hand.detected else 0.0
        if gain != 0.0 and n > 0:
            self._apply_hand(p, v, settings, camera.hand_to_world(hand.x, hand.y), gain)

        # --- Damping ---
        v *= np.float32(settings.damping)

        # --- Integrate ---
        p += v

        self.rotation_y += self.rotation_step

    @staticmethod
    def _apply_hand(p, v, settings, hand_pt, gain):
        radius = float(settings.interaction_radius)
        if radius <= 0.0:
            return

        away = p - hand_pt[None, :]
        d2 = np.einsum("ij,ij->i", away, away)

        # d2 == 0 has no direction; leave those particles to the spring
        inside = (d2 < radius * radius) & (d2 > 0.0)
        if not np.any(inside):
            return

        d = np.sqrt(d2[inside])
        dirn = away[inside] / d[:, None]
        falloff = 1.0 - d / radius
        force = (settings.force_strength * gain) * falloff

        v[inside] += (dirn * force[:, None]).astype(np.float32)
