# app.py - particle morph with hand control
import argparse
import functools
import time

import cv2

from gestures import HandGesture, HandSignal
from params import (
    DAMPING_RANGE,
    FORCE_STRENGTH_RANGE,
    INTERACTION_RADIUS_RANGE,
    PARTICLE_COUNT_RANGE,
    PARTICLE_COUNT_STEP,
    RETURN_SPEED_RANGE,
    Params,
    Settings,
)
from renderer3d import Renderer3D
from shapes import ShapeType

WINDOW_NAME = "Particle Morph"

SHAPE_KEYS = {
    ord("1"): ShapeType.SPHERE,
    ord("2"): ShapeType.CUBE,
    ord("3"): ShapeType.HEART,
    ord("4"): ShapeType.SPIRAL,
}

GESTURE_COLORS = {
    HandGesture.OPEN: (255, 160, 60),
    HandGesture.FIST: (60, 150, 255),
    HandGesture.NONE: (160, 160, 160),
}


def open_camera(preferred=0, max_index=6, width=640, height=480):
    order = [preferred] + [i for i in range(max_index) if i != preferred]
    for i in order:
        cap = cv2.VideoCapture(i)
        if cap.isOpened():
            ok, _ = cap.read()
            if ok:
                cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
                cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
                print(f"✅ Using camera index: {i}")
                return cap
        cap.release()
    raise RuntimeError(f"❌ No working camera found (0–{max_index-1}).")


def make_sim(params: Params):
    if params.backend == "taichi":
        from sim_taichi import ParticleSimTaichi
        print("✅ Particle backend: taichi")
        return ParticleSimTaichi(capacity=params.capacity, rotation_step=params.rotation_step)

    from sim import ParticleSim
    print("✅ Particle backend: numpy")
    return ParticleSim(capacity=params.capacity, rotation_step=params.rotation_step)


# (label, Settings field, trackbar ticks per unit, (min, max))
TRACKBARS = [
    ("Particles (k)", "particle_count", 1.0 / PARTICLE_COUNT_STEP, PARTICLE_COUNT_RANGE),
    ("Force x10", "force_strength", 10, FORCE_STRENGTH_RANGE),
    ("Radius", "interaction_radius", 1, INTERACTION_RADIUS_RANGE),
    ("Damping x1000", "damping", 1000, DAMPING_RANGE),
    ("Return x1000", "return_speed", 1000, RETURN_SPEED_RANGE),
]


class ControlPanel:
    """
    Trackbars + keys. Owns the Settings value and republishes a whole,
    clamped Settings on every change. Without a window it is headless and
    only the callbacks are live.
    """

    def __init__(self, settings: Settings, capacity: int, window=None):
        self.window = window
        self.capacity = capacity
        self.settings = settings.clamped(capacity)
        self._bars = {field: (label, scale) for label, field, scale, _ in TRACKBARS}

        if window is not None:
            self._create_trackbars()

    def _create_trackbars(self):
        for label, field, scale, (lo, hi) in TRACKBARS:
            if field == "particle_count":
                hi = min(hi, self.capacity)
                lo = min(lo, hi)
            cv2.createTrackbar(label, self.window, self.ticks(field), int(round(hi * scale)),
                               functools.partial(self.on_trackbar, field))
            cv2.setTrackbarMin(label, self.window, int(round(lo * scale)))

    def ticks(self, field: str) -> int:
        _, scale = self._bars[field]
        return int(round(getattr(self.settings, field) * scale))

    def publish(self, **changes):
        self.settings = self.settings.with_changes(self.capacity, **changes)

    def on_trackbar(self, field: str, ticks: int):
        _, scale = self._bars[field]
        value = float(ticks) / scale
        if field == "particle_count":
            value = int(round(value))
        self.publish(**{field: value})

    def bump_count(self, steps: int):
        self.publish(particle_count=self.settings.particle_count + steps * PARTICLE_COUNT_STEP)
        if self.window is not None:
            label, _ = self._bars["particle_count"]
            cv2.setTrackbarPos(label, self.window, self.ticks("particle_count"))


def _text(img, s, org, color, scale=0.6):
    cv2.putText(img, s, org, cv2.FONT_HERSHEY_SIMPLEX, scale, (0, 0, 0), 3, cv2.LINE_AA)
    cv2.putText(img, s, org, cv2.FONT_HERSHEY_SIMPLEX, scale, color, 1, cv2.LINE_AA)


def draw_hud(img, hand, shape, settings, fps, preview=None, preview_width=240):
    h, w = img.shape[:2]

    _text(img, "Particle Morph", (16, 34), (255, 255, 0), 0.9)
    _text(img, f"Shape: {shape.value}   Particles: {settings.particle_count:,}", (16, 62), (230, 230, 230))
    _text(img, f"Force {settings.force_strength:.1f}   Radius {settings.interaction_radius:.0f}   "
          f"Damping {settings.damping:.3f}   Return {settings.return_speed:.3f}",
          (16, 86), (230, 230, 230))

    if hand.detected:
        cv2.circle(img, (18, 110), 6, (0, 200, 0), -1, cv2.LINE_AA)
        _text(img, f"Hand Tracking Active  [{hand.gesture.value}]", (32, 116), GESTURE_COLORS[hand.gesture])
    else:
        cv2.circle(img, (18, 110), 6, (0, 0, 220), -1, cv2.LINE_AA)
        _text(img, "No Hand Detected", (32, 116), (160, 160, 160))

    _text(img, f"FPS: {fps:5.1f}", (16, h - 16), (255, 255, 128))

    if preview is not None and preview_width > 0 and w > preview_width + 16:
        ph = int(preview.shape[0] * preview_width / float(preview.shape[1]))
        if ph + 16 < h:
            small = cv2.resize(preview, (preview_width, ph), interpolation=cv2.INTER_AREA)
            x0, y0 = w - preview_width - 12, 12
            img[y0:y0 + ph, x0:x0 + preview_width] = cv2.addWeighted(
                img[y0:y0 + ph, x0:x0 + preview_width], 0.3, small, 0.7, 0)
            cv2.rectangle(img, (x0, y0), (x0 + preview_width, y0 + ph), (90, 140, 160), 1, cv2.LINE_AA)

            # Palm marker, same mirrored space as the preview
            if hand.detected:
                mx = x0 + int(hand.x * preview_width)
                my = y0 + int(hand.y * ph)
                cv2.circle(img, (mx, my), 5, GESTURE_COLORS[hand.gesture], -1, cv2.LINE_AA)

    return img


def parse_args(argv=None):
    params = Params()
    ap = argparse.ArgumentParser(description="Hand-controlled particle morph")
    ap.add_argument("--camera", type=int, default=params.camera_index)
    ap.add_argument("--width", type=int, default=params.window_width)
    ap.add_argument("--height", type=int, default=params.window_height)
    ap.add_argument("--shape", default=params.initial_shape.value,
                    choices=[s.value for s in ShapeType])
    ap.add_argument("--particles", type=int, default=Settings().particle_count)
    ap.add_argument("--backend", choices=["numpy", "taichi"], default=params.backend)
    ap.add_argument("--no-camera", action="store_true", help="run without hand tracking")
    return ap.parse_args(argv)


def run(params: Params, args, signal: HandSignal, worker=None):
    sim = make_sim(params)
    sim.set_shape(params.initial_shape)

    renderer = Renderer3D(
        width=params.window_width,
        height=params.window_height,
        fov_deg=params.fov_deg,
        distance=params.camera_distance,
        near=params.near,
        far=params.far,
        color=params.point_color,
        glow=params.glow,
    )

    cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_NORMAL)
    cv2.resizeWindow(WINDOW_NAME, params.window_width, params.window_height)
    panel = ControlPanel(Settings(particle_count=args.particles), params.capacity, window=WINDOW_NAME)

    print("\n" + "=" * 60)
    print("✨ PARTICLE MORPH")
    print("=" * 60)
    print("\n📋 CONTROLS:")
    print("   1 Sphere | 2 Cube | 3 Heart | 4 Spiral")
    print("   [ / ] - Fewer / more particles")
    print("   Trackbars - particles, force, radius, damping, return speed")
    print("   R - Reset (snap to current shape)")
    print("   ESC or Q - Exit")
    print("\n✋ GESTURES:")
    print("   Open hand - push particles")
    print("   Fist      - pull particles")
    print("\n" + "=" * 60 + "\n")

    prev = time.time()
    fps_smooth = 0.0

    while True:
        now = time.time()
        dt = max(1e-6, now - prev)
        prev = now
        fps = 1.0 / dt
        fps_smooth = fps if fps_smooth == 0 else 0.9 * fps_smooth + 0.1 * fps

        rect = cv2.getWindowImageRect(WINDOW_NAME)
        if rect[2] > 0 and rect[3] > 0:
            renderer.resize(rect[2], rect[3])

        # One snapshot of each external value per frame
        settings = panel.settings
        hand = signal.latest

        sim.step(settings, hand, renderer.camera_projection())

        img = renderer.render(sim.get_positions(), settings.particle_count, sim.rotation_y)
        preview = worker.latest_preview() if worker else None
        draw_hud(img, hand, sim.shape, settings, fps_smooth, preview, params.preview_width)

        cv2.imshow(WINDOW_NAME, img)

        key = cv2.waitKey(1) & 0xFF
        if key in (27, ord("q"), ord("Q")):
            break
        if key in SHAPE_KEYS:
            sim.set_shape(SHAPE_KEYS[key])
        elif key == ord("["):
            panel.bump_count(-1)
        elif key == ord("]"):
            panel.bump_count(1)
        elif key in (ord("r"), ord("R")):
            shape = sim.shape
            sim.reset()
            sim.set_shape(shape)


def main(argv=None):
    args = parse_args(argv)

    params = Params()
    params.camera_index = args.camera
    params.window_width = args.width
    params.window_height = args.height
    params.initial_shape = ShapeType.parse(args.shape)
    params.backend = args.backend

    signal = HandSignal()
    worker = None
    if not args.no_camera:
        from hands import HandTracker, HandTrackingWorker

        cap = open_camera(params.camera_index, params.max_camera_probe,
                          params.capture_width, params.capture_height)
        tracker = HandTracker(det_conf=params.det_conf, track_conf=params.track_conf)
        worker = HandTrackingWorker(cap, tracker, signal)
        worker.start()
    else:
        print("⚠️  Camera disabled - particles only")

    # The worker owns the camera; it must be stopped however setup or the loop ends
    try:
        run(params, args, signal, worker)
    finally:
        if worker:
            worker.stop()
        cv2.destroyAllWindows()

    print("\n✅ Particle morph shutdown complete")


if __name__ == "__main__":
    main()
