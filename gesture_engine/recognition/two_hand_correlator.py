"""
Two-hand gesture correlation: clap and directional stretch/shrink.

Pairs the two hands reported in a frame by their handedness labels and keeps
a bounded history of pinch-center separation per pair. Directional gestures
compare the newest measurement against one a few slots back, so a single
noisy frame cannot trigger a resize on its own.

Decision order per frame:
    1. If either hand is not pinching: clear the pair history and check
       for a clap (middle-finger MCPs close together).
    2. If both hands pinch: record a measurement, then classify the change
       in separation once enough time and history have accumulated.
"""

import logging
from typing import Dict, Optional, Tuple

from gesture_engine.core.types import (
    DIRECTIONAL_TYPE_MAP, Direction, GestureType, HandFrame, Handedness,
    RawGesture,
)
from gesture_engine.recognition import landmarks as lm
from gesture_engine.recognition.history import HistoryEntry, HistoryWindow

logger = logging.getLogger(__name__)

CLAP_BASE_CONFIDENCE = 0.85
CLAP_PROXIMITY_BONUS = 0.1
DIRECTIONAL_BASE_CONFIDENCE = 0.65
DIRECTIONAL_CHANGE_GAIN = 8.0
FULL_HISTORY_BONUS = 0.1

PairKey = Tuple[str, str]


def pair_key(hand_a: HandFrame, hand_b: HandFrame) -> Optional[PairKey]:
    """Order-independent key for two hands, or None if their ids collide."""
    if hand_a.hand_id == hand_b.hand_id:
        return None
    return tuple(sorted((hand_a.hand_id, hand_b.hand_id)))


class TwoHandCorrelator:
    """Classifies CLAP and STRETCH/SHRINK gestures from a pair of hands."""

    def __init__(self, config):
        self._config = config
        self._histories: Dict[PairKey, HistoryWindow] = {}

    def update_config(self, config):
        self._config = config

    def classify(self, hand_a: HandFrame, hand_b: HandFrame,
                 now: int) -> Optional[RawGesture]:
        """Classify the two hands reported in one frame.

        Returns:
            RawGesture with its final confidence, or None
        """
        if not (hand_a.is_complete and hand_b.is_complete):
            logger.debug("Skipping two-hand correlation: malformed hand")
            return None

        key = pair_key(hand_a, hand_b)
        if key is None:
            logger.debug("Skipping two-hand correlation: both hands labelled %s",
                         hand_a.hand_id)
            return None

        # Process in key order so swapping array slots changes nothing
        if hand_a.hand_id != key[0]:
            hand_a, hand_b = hand_b, hand_a

        threshold = self._config.pinch_threshold
        both_pinching = (lm.pinch_distance(hand_a) < threshold
                         and lm.pinch_distance(hand_b) < threshold)

        if not both_pinching:
            history = self._histories.get(key)
            if history is not None and len(history):
                history.clear()
            return self._classify_clap(hand_a, hand_b)

        return self._classify_directional(key, hand_a, hand_b, now)

    def _classify_clap(self, hand_a: HandFrame, hand_b: HandFrame) -> Optional[RawGesture]:
        mcp_a = hand_a.get(lm.MIDDLE_MCP)
        mcp_b = hand_b.get(lm.MIDDLE_MCP)
        dist = lm.distance(mcp_a, mcp_b)
        clap_distance = self._config.clap_distance
        if dist >= clap_distance:
            return None

        confidence = min(
            self._config.max_confidence,
            CLAP_BASE_CONFIDENCE + CLAP_PROXIMITY_BONUS * (clap_distance - dist) / clap_distance,
        )
        return RawGesture(
            gesture=GestureType.CLAP,
            handedness=Handedness.BOTH,
            confidence=confidence,
            position=lm.midpoint(mcp_a, mcp_b),
            distance=dist,
        )

    def _classify_directional(self, key: PairKey, hand_a: HandFrame,
                              hand_b: HandFrame, now: int) -> Optional[RawGesture]:
        cfg = self._config
        center_a = lm.pinch_center(hand_a)
        center_b = lm.pinch_center(hand_b)
        entry = HistoryEntry(
            timestamp_ms=now,
            hands_distance=lm.distance(center_a, center_b),
            horizontal_spread=abs(center_a.x - center_b.x),
            vertical_spread=abs(center_a.y - center_b.y),
        )

        history = self._histories.get(key)
        if history is None:
            history = HistoryWindow(cfg.history_size)
            self._histories[key] = history
            logger.debug("Pair history started for %s", key)
        if not history.append(entry):
            return None

        # Warm-up
        if len(history) < max(cfg.min_history_entries, cfg.direction_lookback_entries):
            return None

        previous = history[-cfg.direction_lookback_entries]
        if entry.timestamp_ms - previous.timestamp_ms < cfg.direction_min_lookback_ms:
            return None

        distance_change = entry.hands_distance - previous.hands_distance
        if abs(distance_change) < cfg.min_distance_change:
            return None

        horizontal_change = entry.horizontal_spread - previous.horizontal_spread
        vertical_change = entry.vertical_spread - previous.vertical_spread
        direction = self._dominant_direction(horizontal_change, vertical_change)
        if direction is None:
            logger.debug("Ambiguous two-hand motion: dh=%.3f dv=%.3f",
                         horizontal_change, vertical_change)
            return None

        confidence = DIRECTIONAL_BASE_CONFIDENCE + abs(distance_change) * DIRECTIONAL_CHANGE_GAIN
        if history.is_full:
            confidence += FULL_HISTORY_BONUS

        return RawGesture(
            gesture=DIRECTIONAL_TYPE_MAP[(distance_change > 0, direction)],
            handedness=Handedness.BOTH,
            confidence=min(cfg.max_confidence, confidence),
            position=lm.midpoint(center_a, center_b),
            distance=entry.hands_distance,
            has_history=True,
            direction=direction,
            distance_change=distance_change,
        )

    def _dominant_direction(self, horizontal_change: float,
                            vertical_change: float) -> Optional[Direction]:
        ratio = self._config.min_direction_ratio
        if abs(horizontal_change) > abs(vertical_change) * ratio:
            return Direction.HORIZONTAL
        if abs(vertical_change) > abs(horizontal_change) * ratio:
            return Direction.VERTICAL
        return None

    def history(self, key: PairKey) -> Optional[HistoryWindow]:
        return self._histories.get(key)

    def forget(self, key: PairKey) -> bool:
        return self._histories.pop(key, None) is not None

    def reset(self):
        self._histories.clear()

    @property
    def tracked_pairs(self) -> list:
        return list(self._histories.keys())
