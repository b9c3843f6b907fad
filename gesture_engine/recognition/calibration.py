"""
Hand-size calibration for gesture thresholds.

A large hand close to the camera pinches at a larger normalized distance
than a small hand far away. Calibration measures the user's hand span once
and rescales the pinch, spread and clap thresholds to it.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from gesture_engine.core.types import HandFrame
from gesture_engine.recognition import landmarks as lm

logger = logging.getLogger(__name__)

PINCH_SPAN_RATIO = 0.15
SPREAD_SPAN_RATIO = 0.8
CLAP_SPAN_RATIO = 0.5
MIN_HAND_SPAN = 0.01


@dataclass(frozen=True)
class CalibrationResult:
    hand_span: float
    pinch_threshold: float
    spread_threshold: float
    clap_distance: float

    def as_thresholds(self) -> dict:
        return {
            "pinch_threshold": self.pinch_threshold,
            "spread_threshold": self.spread_threshold,
            "clap_distance": self.clap_distance,
        }


class HandCalibrator:
    """Derives gesture thresholds from a hand's thumb-to-pinky span."""

    def __init__(self, pinch_ratio=PINCH_SPAN_RATIO, spread_ratio=SPREAD_SPAN_RATIO,
                 clap_ratio=CLAP_SPAN_RATIO):
        self._pinch_ratio = pinch_ratio
        self._spread_ratio = spread_ratio
        self._clap_ratio = clap_ratio

    def calibrate(self, hand: HandFrame) -> Optional[CalibrationResult]:
        """Measure a hand and compute thresholds.

        Returns:
            CalibrationResult, or None if the hand is malformed or its
            span is too small to be a real open hand.
        """
        if not hand.is_complete:
            logger.warning("Calibration skipped: hand has %d landmarks", len(hand.landmarks))
            return None

        span = lm.hand_span(hand)
        if span < MIN_HAND_SPAN:
            logger.warning("Calibration skipped: hand span %.4f too small", span)
            return None

        result = CalibrationResult(
            hand_span=span,
            pinch_threshold=span * self._pinch_ratio,
            spread_threshold=span * self._spread_ratio,
            clap_distance=span * self._clap_ratio,
        )
        logger.info(
            "Calibrated for hand span %.3f: pinch=%.3f, spread=%.3f, clap=%.3f",
            span, result.pinch_threshold, result.spread_threshold, result.clap_distance,
        )
        return result
