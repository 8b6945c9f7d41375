"""
Hand gesture classification.

Turns one frame of 21 normalized 2-D landmarks into a HandData value:
a mirrored palm position and an Open / Fist gesture. HandSignal holds the
most recently published value for the render loop.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, IntEnum
import numpy as np

NUM_LANDMARKS = 21

# Fingertip closer to the wrist than this many squared palm lengths = folded
FOLD_RATIO_SQ = 1.5
FOLDED_FOR_FIST = 3


class Landmark(IntEnum):
    WRIST = 0
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_TIP = 12
    RING_TIP = 16
    PINKY_TIP = 20


FINGERTIPS = [int(i) for i in (Landmark.INDEX_TIP, Landmark.MIDDLE_TIP, Landmark.RING_TIP, Landmark.PINKY_TIP)]


class HandGesture(Enum):
    NONE = "None"
    OPEN = "Open"
    FIST = "Fist"


@dataclass(frozen=True)
class HandData:
    x: float = 0.5              # 0..1, origin top-left, already mirrored
    y: float = 0.5
    gesture: HandGesture = HandGesture.NONE
    detected: bool = False


NO_HAND = HandData()


def _coerce_point(p):
    if hasattr(p, "x") and hasattr(p, "y"):
        return float(p.x), float(p.y)
    if isinstance(p, dict):
        return float(p["x"]), float(p["y"])
    return float(p[0]), float(p[1])


def parse_landmarks(raw) -> np.ndarray | None:
    """
    Validate a detector result into a (21, 2) float array.

    Accepts MediaPipe-style objects with .x/.y, dicts with "x"/"y" keys or
    plain (x, y[, z]) sequences. Anything else returns None.
    """
    if raw is None:
        return None
    if hasattr(raw, "landmark"):
        raw = raw.landmark

    try:
        if len(raw) != NUM_LANDMARKS:
            return None
        pts = np.array([_coerce_point(p) for p in raw], dtype=np.float64)
    except (TypeError, ValueError, KeyError, IndexError):
        return None

    if pts.shape != (NUM_LANDMARKS, 2) or not np.all(np.isfinite(pts)):
        return None
    return pts


def palm_position(lms: np.ndarray) -> tuple[float, float]:
    """Midpoint of wrist and middle knuckle, x mirrored for selfie view."""
    mid = (lms[Landmark.WRIST] + lms[Landmark.MIDDLE_MCP]) * 0.5
    x = float(np.clip(1.0 - mid[0], 0.0, 1.0))
    y = float(np.clip(mid[1], 0.0, 1.0))
    return x, y


def count_folded(lms: np.ndarray) -> int:
    wrist = lms[Landmark.WRIST]
    ref = lms[Landmark.MIDDLE_MCP] - wrist
    ref_sq = float(ref @ ref)

    tips = lms[FINGERTIPS] - wrist
    tip_sq = np.einsum("ij,ij->i", tips, tips)
    return int(np.count_nonzero(tip_sq < ref_sq * FOLD_RATIO_SQ))


def classify_gesture(lms: np.ndarray) -> HandGesture:
    # Ratios of squared distances: invariant to scale and rotation of the hand.
    if count_folded(lms) >= FOLDED_FOR_FIST:
        return HandGesture.FIST
    return HandGesture.OPEN


def hand_data_from_landmarks(raw) -> HandData:
    lms = parse_landmarks(raw)
    if lms is None:
        return NO_HAND
    x, y = palm_position(lms)
    return HandData(x=x, y=y, gesture=classify_gesture(lms), detected=True)


class HandSignal:
    """
    Last-value-wins holder between the detector callback and the render loop.

    update() may be called from any thread; `latest` is always a complete
    HandData since values are immutable and replaced whole.
    """

    def __init__(self):
        self._latest = NO_HAND

    @property
    def latest(self) -> HandData:
        return self._latest

    def update(self, raw) -> HandData:
        data = hand_data_from_landmarks(raw)
        self._latest = data
        return data

    def reset(self) -> None:
        self._latest = NO_HAND
