from __future__ import annotations
import math
import numpy as np
import cv2

from sim import CameraProjection


class Renderer3D:
    """
    Perspective point-cloud rasterizer. Owns the camera; the simulator only
    ever sees camera_projection().

    Camera sits on +z at `distance`, looking at the origin. Points add up
    (additive blending) and get a soft glow.
    """

    def __init__(self, width: int = 1280, height: int = 720, fov_deg: float = 75.0,
                 distance: float = 60.0, near: float = 0.1, far: float = 1000.0,
                 color=(255, 255, 0), opacity: float = 0.8, glow: bool = True):
        self.width = int(width)
        self.height = int(height)
        self.fov_deg = float(fov_deg)
        self.distance = float(distance)
        self.near = float(near)
        self.far = float(far)
        self.color = np.array(color, dtype=np.float32)
        self.opacity = float(opacity)
        self.glow = bool(glow)

    def resize(self, width: int, height: int):
        self.width = max(1, int(width))
        self.height = max(1, int(height))

    def camera_projection(self) -> CameraProjection:
        return CameraProjection(
            fov_deg=self.fov_deg,
            aspect=self.width / float(self.height),
            distance=self.distance,
        )

    def project(self, points: np.ndarray, rotation_y: float = 0.0):
        """Returns integer pixel coords (sx, sy) of the visible points."""
        cyaw, syaw = math.cos(rotation_y), math.sin(rotation_y)
        Ry = np.array([[cyaw, 0, syaw], [0, 1, 0], [-syaw, 0, cyaw]], dtype=np.float32)
        pts = points @ Ry.T

        depth = self.distance - pts[:, 2]
        keep = (depth > self.near) & (depth < self.far)
        pts = pts[keep]
        depth = depth[keep]

        f = (self.height * 0.5) / math.tan(math.radians(self.fov_deg) * 0.5)
        sx = np.floor(self.width * 0.5 + (pts[:, 0] / depth) * f).astype(np.int64)
        sy = np.floor(self.height * 0.5 - (pts[:, 1] / depth) * f).astype(np.int64)

        on_screen = (sx >= 0) & (sx < self.width) & (sy >= 0) & (sy < self.height)
        return sx[on_screen], sy[on_screen]

    def render(self, positions: np.ndarray, count: int, rotation_y: float = 0.0):
        """Draw positions[:count] only; later slots are frozen and hidden."""
        img = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        count = max(0, min(int(count), len(positions)))
        if count == 0:
            return img

        sx, sy = self.project(positions[:count], rotation_y)
        hits = np.bincount(sy * self.width + sx, minlength=self.width * self.height)
        light = np.minimum(hits.reshape(self.height, self.width) * self.opacity, 1.0)
        img = (light[:, :, None] * self.color[None, None, :]).astype(np.uint8)

        if self.glow:
            blur = cv2.GaussianBlur(img, (0, 0), 3)
            img = cv2.addWeighted(img, 0.8, blur, 0.6, 0)

        return img
