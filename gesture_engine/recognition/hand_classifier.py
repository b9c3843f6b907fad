"""
Single-hand gesture classifier: pinch and spread.

Pure geometry on one hand's landmarks, gated by the stability verdict.
The only state is a per-hand pinch history used for the sustained-pinch
confidence bonus.
"""

import logging
from typing import Dict, Optional

from gesture_engine.core.types import GestureType, HandFrame, RawGesture
from gesture_engine.recognition import landmarks as lm
from gesture_engine.recognition.history import HistoryEntry, HistoryWindow
from gesture_engine.recognition.stability_filter import StabilityVerdict

logger = logging.getLogger(__name__)

PINCH_BASE_CONFIDENCE = 0.8
SPREAD_BASE_CONFIDENCE = 0.75


class HandClassifier:
    """Classifies PINCH / SPREAD on a single hand.

    Pinch takes precedence over spread when both predicates hold.
    """

    def __init__(self, config):
        self._config = config
        # hand_id -> consecutive pinch measurements
        self._pinch_history: Dict[str, HistoryWindow] = {}

    def update_config(self, config):
        """Swap thresholds (e.g. after calibration); history is kept."""
        self._config = config

    def classify(self, hand: HandFrame, stability: StabilityVerdict,
                 now: int = 0) -> Optional[RawGesture]:
        """Classify one hand for the current frame.

        Args:
            hand: The hand's landmarks
            stability: Verdict from the StabilityFilter for this frame
            now: Frame timestamp in ms

        Returns:
            RawGesture with base confidence, or None
        """
        if not hand.is_complete:
            logger.debug("Dropped malformed %s hand: %d landmarks",
                         hand.hand_id, len(hand.landmarks))
            return None

        pinch_dist = lm.pinch_distance(hand)
        is_pinching = pinch_dist < self._config.pinch_threshold
        history = self._track_pinch(hand.hand_id, is_pinching, pinch_dist, now)

        # Jittery hands never emit single-hand gestures
        if not stability.is_stable:
            return None

        if is_pinching:
            return RawGesture(
                gesture=GestureType.PINCH,
                handedness=hand.handedness,
                confidence=PINCH_BASE_CONFIDENCE,
                position=lm.pinch_center(hand),
                distance=pinch_dist,
                stable=True,
                has_history=len(history) >= self._config.min_history_entries,
            )

        spread_dist = lm.spread_distance(hand)
        if spread_dist > self._config.spread_threshold:
            return RawGesture(
                gesture=GestureType.SPREAD,
                handedness=hand.handedness,
                confidence=SPREAD_BASE_CONFIDENCE,
                position=lm.midpoint(hand.get(lm.INDEX_TIP), hand.get(lm.PINKY_TIP)),
                distance=spread_dist,
                stable=True,
            )

        return None

    def _track_pinch(self, hand_id: str, is_pinching: bool,
                     pinch_dist: float, now: int) -> HistoryWindow:
        history = self._pinch_history.get(hand_id)
        if history is None:
            history = HistoryWindow(self._config.history_size)
            self._pinch_history[hand_id] = history

        if is_pinching:
            history.append(HistoryEntry(now, pinch_dist))
        elif len(history):
            # Streak broken
            history.clear()
        return history

    def pinch_history(self, hand_id: str) -> Optional[HistoryWindow]:
        return self._pinch_history.get(hand_id)

    def forget(self, hand_id: str) -> bool:
        return self._pinch_history.pop(hand_id, None) is not None

    def reset(self):
        self._pinch_history.clear()

    @property
    def tracked_hands(self) -> list:
        return list(self._pinch_history.keys())
