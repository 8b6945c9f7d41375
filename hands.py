import threading

import cv2
import mediapipe as mp

from gestures import HandSignal


class HandTracker:
    """
    MediaPipe hands wrapper, single hand.

    process(frame_bgr) returns the first hand's 21 normalized (x, y)
    landmarks in camera (unmirrored) coordinates, or None.
    """

    def __init__(self, det_conf=0.5, track_conf=0.5):
        self.mp_hands = mp.solutions.hands
        self.hands = self.mp_hands.Hands(
            static_image_mode=False,
            max_num_hands=1,
            model_complexity=1,
            min_detection_confidence=float(det_conf),
            min_tracking_confidence=float(track_conf),
        )

    def process(self, frame_bgr):
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)

        # Fixes NORM_RECT without IMAGE_DIMENSIONS warning
        self.hands._image_width, self.hands._image_height = frame_bgr.shape[1], frame_bgr.shape[0]  # type: ignore[attr-defined]

        res = self.hands.process(frame_rgb)

        if not res.multi_hand_landmarks:
            return None

        return [(lm.x, lm.y) for lm in res.multi_hand_landmarks[0].landmark]

    def close(self):
        self.hands.close()


class HandTrackingWorker:
    """
    Reads the camera and runs the tracker on its own thread, publishing every
    result into a HandSignal. The render loop only ever reads signal.latest.
    """

    def __init__(self, cap, tracker, signal: HandSignal):
        self.cap = cap
        self.tracker = tracker
        self.signal = signal

        self._stop = threading.Event()
        self._thread = None
        self._lock = threading.Lock()
        self._preview = None
        self._warned = False

    def start(self):
        if self._thread and self._thread.is_alive():
            return

        def worker():
            print("✅ Hand tracking thread started")
            try:
                while not self._stop.is_set():
                    ok, frame = self.cap.read()
                    if not ok:
                        self.signal.reset()
                        self._stop.wait(0.01)
                        continue
                    raw = self._detect(frame)

                    # stop() may have run while detecting; its reset must win
                    with self._lock:
                        if self._stop.is_set():
                            break
                        self.signal.update(raw)
                        self._preview = cv2.flip(frame, 1)
            finally:
                self.signal.reset()
                self.cap.release()
                self.tracker.close()

        self._thread = threading.Thread(target=worker, daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 0.5):
        # An in-flight detection is not waited for past `timeout`
        with self._lock:
            self._stop.set()
            self.signal.reset()
        if self._thread:
            self._thread.join(timeout)

    def latest_preview(self):
        with self._lock:
            return self._preview

    def _detect(self, frame):
        try:
            return self.tracker.process(frame)
        except Exception as e:
            if not self._warned:
                print(f"⚠️  Hand tracker failed, treating as no hand: {e}")
                self._warned = True
            return None
