from __future__ import annotations

from dataclasses import dataclass, fields, replace
import math

from shapes import MAX_PARTICLES, ShapeType

# Control surface bounds (min, max)
PARTICLE_COUNT_RANGE = (5000, 40000)
PARTICLE_COUNT_STEP = 1000
FORCE_STRENGTH_RANGE = (0.0, 10.0)
INTERACTION_RADIUS_RANGE = (10.0, 60.0)
DAMPING_RANGE = (0.5, 0.999)
RETURN_SPEED_RANGE = (0.001, 0.5)


def _clamp(x, a, b):
    return a if x < a else (b if x > b else x)


class Params:
    """
    Process-start knobs. Everything the control panel can change at
    runtime lives in Settings instead.
    """
    def __init__(self):
        # Particle buffers (fixed for the whole run)
        self.capacity = MAX_PARTICLES
        self.initial_shape = ShapeType.SPHERE

        # "numpy" or "taichi"
        self.backend = "numpy"

        # Camera capture
        self.camera_index = 0
        self.capture_width = 640
        self.capture_height = 480
        self.max_camera_probe = 6

        # Hand detector
        self.det_conf = 0.5
        self.track_conf = 0.5

        # Window / perspective camera
        self.window_width = 1280
        self.window_height = 720
        self.fov_deg = 75.0
        self.camera_distance = 60.0
        self.near = 0.1
        self.far = 1000.0

        # Cosmetic spin around the vertical axis (radians per frame)
        self.rotation_step = 0.001

        # Particle visuals (BGR)
        self.point_color = (255, 255, 0)
        self.glow = True
        self.preview_width = 240


@dataclass(frozen=True)
class Settings:
    """Live tunables. Writers publish a whole new value, never mutate one."""
    particle_count: int = 20000
    force_strength: float = 2.5
    interaction_radius: float = 25.0
    damping: float = 0.96
    return_speed: float = 0.04

    def clamped(self, capacity: int = MAX_PARTICLES) -> "Settings":
        defaults = {f.name: f.default for f in fields(Settings)}

        def _finite(name, value):
            value = float(value)
            return value if math.isfinite(value) else float(defaults[name])

        lo, hi = PARTICLE_COUNT_RANGE
        count = int(_finite("particle_count", self.particle_count))
        count = (count // PARTICLE_COUNT_STEP) * PARTICLE_COUNT_STEP
        count = _clamp(count, lo, hi)
        count = min(count, int(capacity))

        return Settings(
            particle_count=count,
            force_strength=_clamp(_finite("force_strength", self.force_strength), *FORCE_STRENGTH_RANGE),
            interaction_radius=_clamp(_finite("interaction_radius", self.interaction_radius), *INTERACTION_RADIUS_RANGE),
            damping=_clamp(_finite("damping", self.damping), *DAMPING_RANGE),
            return_speed=_clamp(_finite("return_speed", self.return_speed), *RETURN_SPEED_RANGE),
        )

    def with_changes(self, capacity: int = MAX_PARTICLES, **changes) -> "Settings":
        return replace(self, **changes).clamped(capacity)
