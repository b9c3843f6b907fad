"""
21-point hand landmark indices and the geometric features the classifiers use.

All distances are 2D Euclidean over normalized (x, y) coordinates; the
detector's z estimate is too noisy to contribute to pinch/spread thresholds.
"""

import math
from typing import Tuple

from gesture_engine.core.types import HandFrame, LandmarkPoint, Position

# MediaPipe hand landmark indices
WRIST = 0
THUMB_CMC = 1
THUMB_MCP = 2
THUMB_IP = 3
THUMB_TIP = 4
INDEX_MCP = 5
INDEX_PIP = 6
INDEX_DIP = 7
INDEX_TIP = 8
MIDDLE_MCP = 9
MIDDLE_PIP = 10
MIDDLE_DIP = 11
MIDDLE_TIP = 12
RING_MCP = 13
RING_PIP = 14
RING_DIP = 15
RING_TIP = 16
PINKY_MCP = 17
PINKY_PIP = 18
PINKY_DIP = 19
PINKY_TIP = 20


def distance(a: LandmarkPoint, b: LandmarkPoint) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def midpoint(a, b) -> Position:
    return Position((a.x + b.x) / 2.0, (a.y + b.y) / 2.0)


def wrist_position(hand: HandFrame) -> Tuple[float, float]:
    wrist = hand.get(WRIST)
    return (wrist.x, wrist.y)


def pinch_distance(hand: HandFrame) -> float:
    """Thumb tip to index tip."""
    return distance(hand.get(THUMB_TIP), hand.get(INDEX_TIP))


def pinch_center(hand: HandFrame) -> Position:
    """Midpoint of thumb tip and index tip."""
    return midpoint(hand.get(THUMB_TIP), hand.get(INDEX_TIP))


def spread_distance(hand: HandFrame) -> float:
    """Index tip to pinky tip."""
    return distance(hand.get(INDEX_TIP), hand.get(PINKY_TIP))


def hand_span(hand: HandFrame) -> float:
    """Thumb tip to pinky tip, used to scale thresholds to hand size."""
    return distance(hand.get(THUMB_TIP), hand.get(PINKY_TIP))
