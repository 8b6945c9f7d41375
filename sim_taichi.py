# pyright: reportInvalidTypeForm=false
# sim_taichi.py
# Same particle morph integrator as sim.py, one taichi thread per particle.

import numpy as np
import taichi as ti

from gestures import HandData
from shapes import MAX_PARTICLES, ShapeType, generate_shape_positions
from sim import CameraProjection, hand_gain

_TAICHI_READY = False


def ensure_ti():
    global _TAICHI_READY
    if _TAICHI_READY:
        return
    try:
        ti.init(arch=ti.cuda, device_memory_fraction=0.7)
        print("✅ Taichi CUDA (particles)")
    except Exception:
        ti.init(arch=ti.cpu)
        print("⚠️ Taichi CPU fallback (particles)")
    _TAICHI_READY = True


@ti.data_oriented
class ParticleSimTaichi:
    """
    Drop-in for sim.ParticleSim:
      sim = ParticleSimTaichi(capacity=...)
      sim.set_shape(ShapeType.SPHERE)
      sim.step(settings, hand, camera)
      sim.get_positions()          # numpy copy, (capacity, 3)
    """

    def __init__(self, capacity: int = MAX_PARTICLES, rotation_step: float = 0.001, rng=None):
        capacity = int(capacity)
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        ensure_ti()

        self.capacity = capacity
        self.rotation_step = float(rotation_step)
        self.rng = rng if rng is not None else np.random.default_rng()

        self.pos = ti.Vector.field(3, dtype=ti.f32, shape=capacity)
        self.vel = ti.Vector.field(3, dtype=ti.f32, shape=capacity)
        self.targets = ti.Vector.field(3, dtype=ti.f32, shape=capacity)

        self.shape = None
        self.rotation_y = 0.0

        self.reset()

    def reset(self):
        self.pos.fill(0.0)
        self.vel.fill(0.0)
        self.targets.fill(0.0)
        self.rotation_y = 0.0
        self.shape = None

    def set_shape(self, shape: ShapeType, count=None, force: bool = False) -> bool:
        if shape == self.shape and not force:
            return False

        n = self.capacity if count is None else int(count)
        tgt = generate_shape_positions(shape, n, self.capacity, self.rng)
        self.targets.from_numpy(tgt)
        self.shape = shape

        # First load: nothing has moved yet, show the shape at once
        if not self.pos.to_numpy().any():
            self.pos.from_numpy(tgt)
            self.vel.fill(0.0)
        return True

    def get_positions(self) -> np.ndarray:
        return self.pos.to_numpy()

    def step(self, settings, hand: HandData, camera: CameraProjection):
        n = int(settings.particle_count)
        assert 0 <= n <= self.capacity, f"particle_count {n} outside [0, {self.capacity}]"

        gain = hand_gain(hand.gesture) if hand.detected else 0.0
        hp = camera.hand_to_world(hand.x, hand.y)

        self._step_kernel(
            n,
            float(settings.return_speed),
            float(settings.damping),
            float(hp[0]), float(hp[1]), float(hp[2]),
            float(settings.interaction_radius),
            float(settings.force_strength) * gain,
        )
        self.rotation_y += self.rotation_step

    @ti.kernel
    def _step_kernel(self, n: ti.i32, return_speed: ti.f32, damping: ti.f32,
                     hx: ti.f32, hy: ti.f32, hz: ti.f32, radius: ti.f32, force: ti.f32):
        hand = ti.Vector([hx, hy, hz])
        for i in range(n):
            p = self.pos[i]
            v = self.vel[i] + (self.targets[i] - p) * return_speed

            if force != 0.0 and radius > 0.0:
                away = p - hand
                d2 = away.dot(away)
                if d2 > 0.0 and d2 < radius * radius:
                    d = ti.sqrt(d2)
                    v += (away / d) * (force * (1.0 - d / radius))

            v *= damping
            self.pos[i] = p + v
            self.vel[i] = v
