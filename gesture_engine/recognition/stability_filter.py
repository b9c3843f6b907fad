"""
Per-hand wrist jitter filter.

Keeps a short window of wrist positions per tracked hand and classifies the
hand as stable only once the window is full and no consecutive pair of
samples moved more than the jitter limit. A hand missing from a frame starts
its window over when it returns.
"""

import logging
import math
from collections import deque
from enum import Enum
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class StabilityVerdict(Enum):
    STABLE = "stable"
    UNSTABLE = "unstable"

    @property
    def is_stable(self) -> bool:
        return self is StabilityVerdict.STABLE


class StabilityFilter:
    """Classifies each tracked hand as stable or jittery.

    Buffers are created lazily per hand id and only dropped through
    forget() / reset(); the engine owns the eviction policy.
    """

    def __init__(self, config):
        self._window_size = config.hand_stability_frames
        self._max_jitter = config.max_hand_jitter

        # hand_id -> deque of (x, y) wrist positions
        self._buffers: Dict[str, deque] = {}
        # hand_id -> frame index of the newest sample
        self._last_frame: Dict[str, int] = {}

    def observe(self, hand_id: str, wrist_position: Tuple[float, float],
                now: int = 0, frame_index: Optional[int] = None) -> StabilityVerdict:
        """Record a wrist sample and return the hand's current verdict.

        Args:
            hand_id: Stable per-hand key (handedness label)
            wrist_position: Normalized (x, y) of the wrist landmark
            now: Frame timestamp in ms (kept for log context only)
            frame_index: Engine frame counter; a gap since the hand's last
                         sample clears its window
        """
        buffer = self._buffers.get(hand_id)
        if buffer is None:
            buffer = deque(maxlen=self._window_size)
            self._buffers[hand_id] = buffer
            logger.debug("Stability tracking started for %s", hand_id)

        if frame_index is not None:
            last = self._last_frame.get(hand_id)
            if last is not None and frame_index - last != 1 and buffer:
                logger.debug("Hand %s missing for %d frames, restarting window",
                             hand_id, frame_index - last - 1)
                buffer.clear()
            self._last_frame[hand_id] = frame_index

        buffer.append((float(wrist_position[0]), float(wrist_position[1])))

        # Not enough evidence yet
        if len(buffer) < self._window_size:
            return StabilityVerdict.UNSTABLE

        jitter = self.max_displacement(hand_id)
        if jitter < self._max_jitter:
            return StabilityVerdict.STABLE

        logger.debug("Hand %s jittery at t=%d: %.4f >= %.4f",
                     hand_id, now, jitter, self._max_jitter)
        return StabilityVerdict.UNSTABLE

    def max_displacement(self, hand_id: str) -> float:
        """Largest step between consecutive buffered wrist positions."""
        buffer = self._buffers.get(hand_id)
        if not buffer or len(buffer) < 2:
            return 0.0
        samples = list(buffer)
        return max(
            math.hypot(b[0] - a[0], b[1] - a[1])
            for a, b in zip(samples, samples[1:])
        )

    def forget(self, hand_id: str) -> bool:
        self._last_frame.pop(hand_id, None)
        return self._buffers.pop(hand_id, None) is not None

    def reset(self):
        """Clear filter state."""
        self._buffers.clear()
        self._last_frame.clear()

    @property
    def tracked_hands(self) -> list:
        return list(self._buffers.keys())

    def window_fill(self, hand_id: str) -> float:
        """How full a hand's window is (0.0 - 1.0)."""
        buffer = self._buffers.get(hand_id)
        return len(buffer) / self._window_size if buffer else 0.0
