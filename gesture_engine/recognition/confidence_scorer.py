"""
Confidence scoring and the minimum-confidence gate.

Single-hand gestures get their final score here (base + stability and
history bonuses); two-hand gestures arrive already scored by the correlator
and only pass through accept().
"""

import logging
from collections import deque

import numpy as np

logger = logging.getLogger(__name__)

STABILITY_BONUS = 0.1
HISTORY_BONUS = 0.05


class ConfidenceScorer:
    """Composes final confidences and decides which gestures are kept."""

    def __init__(self, config):
        self._min_confidence = config.min_confidence_threshold
        self._max_confidence = config.max_confidence

        # Track confidence history per gesture for diagnostics
        self._history = {}

        # Recent accepted confidences for trend reporting
        self._recent_confidences = deque(maxlen=20)

    def score(self, base: float, stable: bool, has_history: bool) -> float:
        """Final bounded confidence for a single-hand gesture."""
        total = base
        if stable:
            total += STABILITY_BONUS
        if has_history:
            total += HISTORY_BONUS
        return min(self._max_confidence, total)

    def accept(self, gesture_name: str, confidence: float) -> bool:
        """True if the gesture clears the minimum confidence threshold."""
        if confidence < self._min_confidence:
            logger.debug("Discarded %s: confidence %.3f < %.3f",
                         gesture_name, confidence, self._min_confidence)
            return False
        self._recent_confidences.append(confidence)
        return True

    def get_threshold(self) -> float:
        return self._min_confidence

    def get_confidence_trend(self) -> str:
        """Get the trend direction of recent accepted confidences.

        Returns:
            'rising', 'falling', or 'stable'
        """
        if len(self._recent_confidences) < 5:
            return "stable"
        recent = list(self._recent_confidences)
        first_half = np.mean(recent[:len(recent)//2])
        second_half = np.mean(recent[len(recent)//2:])
        diff = second_half - first_half
        if diff > 0.05:
            return "rising"
        elif diff < -0.05:
            return "falling"
        return "stable"

    def record(self, gesture_name: str, confidence: float):
        """Record an emitted confidence for diagnostics."""
        if gesture_name not in self._history:
            self._history[gesture_name] = deque(maxlen=200)
        self._history[gesture_name].append(confidence)

    def get_stats(self, gesture_name: str) -> dict:
        """Get confidence statistics for a gesture."""
        values = self._history.get(gesture_name)
        if not values:
            return {"count": 0, "mean": 0.0, "std": 0.0, "min": 0.0, "max": 0.0}
        arr = np.array(values)
        return {
            "count": len(values),
            "mean": round(float(arr.mean()), 3),
            "std": round(float(arr.std()), 3),
            "min": round(float(arr.min()), 3),
            "max": round(float(arr.max()), 3),
        }

    def get_all_stats(self) -> dict:
        """Get stats for all recorded gestures."""
        return {name: self.get_stats(name) for name in self._history}

    def reset(self):
        self._history.clear()
        self._recent_confidences.clear()
