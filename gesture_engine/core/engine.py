"""
Core gesture engine: turns per-frame hand landmarks into gesture events.

Architecture (one process_frame call):
    FrameInput -> StabilityFilter (every complete hand)
    -> HandClassifier (exactly one hand) | TwoHandCorrelator (exactly two)
    -> ConfidenceScorer -> Debouncer -> EventBus -> subscribers

Routing by hand count means a frame yields at most one gesture; the
single-hand and two-hand paths never compete within a frame.

The engine is single-threaded and frame-synchronous: process_frame must
return before the next call, and it never blocks. All buffers are owned by
the engine instance and evicted once their hand or pair has not been seen
for `stale_frame_limit` frames.
"""

import time
import logging
from typing import Dict, List, Optional

from gesture_engine.core.events import EventBus, Subscription
from gesture_engine.core.types import FrameInput, GestureEvent, HandFrame, build_event
from gesture_engine.control.debouncer import Debouncer
from gesture_engine.recognition import landmarks as lm
from gesture_engine.recognition.calibration import CalibrationResult, HandCalibrator
from gesture_engine.recognition.confidence_scorer import ConfidenceScorer
from gesture_engine.recognition.hand_classifier import HandClassifier
from gesture_engine.recognition.stability_filter import StabilityFilter
from gesture_engine.recognition.two_hand_correlator import TwoHandCorrelator, pair_key
from gesture_engine.utils.config import EngineConfig

logger = logging.getLogger(__name__)

MAX_HANDS = 2


class GestureEngine:
    """Stateful, debounced gesture classifier for a stream of landmark frames.

    Example:
        >>> engine = GestureEngine()
        >>> engine.subscribe(lambda event: print(event.type, event.confidence))
        >>> for frame in landmark_source:
        ...     engine.process_frame(frame)
        >>> engine.destroy()
    """

    def __init__(self, config: Optional[EngineConfig] = None,
                 event_bus: Optional[EventBus] = None):
        self._config = config or EngineConfig()
        self._bus = event_bus or EventBus(self._config.replay_log_size)

        self._stability = StabilityFilter(self._config)
        self._hand_classifier = HandClassifier(self._config)
        self._correlator = TwoHandCorrelator(self._config)
        self._scorer = ConfidenceScorer(self._config)
        self._debouncer = Debouncer(self._config)
        self._calibrator = HandCalibrator()

        # Frame index at which each hand id / pair key was last reported
        self._last_seen_hands: Dict[str, int] = {}
        self._last_seen_pairs: Dict[tuple, int] = {}

        # State
        self._frame_count = 0
        self._event_count = 0
        self._debounced_count = 0
        self._low_confidence_count = 0
        self._processing = False
        self._destroyed = False

        logger.info("GestureEngine initialized (pinch=%.3f, spread=%.3f, clap=%.3f)",
                    self._config.pinch_threshold, self._config.spread_threshold,
                    self._config.clap_distance)

    # =========================================================================
    # Subscription
    # =========================================================================

    def subscribe(self, callback) -> Subscription:
        return self._bus.subscribe(callback)

    def unsubscribe(self, token: Subscription) -> bool:
        return self._bus.unsubscribe(token)

    # =========================================================================
    # Frame Processing
    # =========================================================================

    def process_frame(self, frame: FrameInput) -> List[GestureEvent]:
        """Run one recognition pass and publish accepted events.

        Args:
            frame: Hands reported for this tick. A missing timestamp is
                   replaced by the wall clock.

        Returns:
            Events published during this pass, in publication order

        Raises:
            RuntimeError: if called from inside a subscriber callback
        """
        if self._destroyed:
            return []
        if self._processing:
            raise RuntimeError("process_frame is not re-entrant")

        self._processing = True
        try:
            return self._process(frame)
        finally:
            self._processing = False

    def _process(self, frame: FrameInput) -> List[GestureEvent]:
        now = frame.timestamp_ms
        if now is None:
            now = int(time.time() * 1000)
        self._frame_count += 1

        hands = self._observe_hands(frame, now)

        raw = None
        if len(hands) == 1:
            hand, verdict = hands[0]
            raw = self._hand_classifier.classify(hand, verdict, now)
        elif len(hands) == 2:
            (hand_a, _), (hand_b, _) = hands
            key = pair_key(hand_a, hand_b)
            if key is not None:
                self._last_seen_pairs[key] = self._frame_count
            raw = self._correlator.classify(hand_a, hand_b, now)

        events = []
        if raw is not None:
            event = self._emit(raw, now)
            if event is not None:
                events.append(event)

        self._evict_stale(now)
        return events

    def _observe_hands(self, frame: FrameInput, now: int) -> list:
        """Feed every usable hand to the stability filter.

        Returns:
            [(HandFrame, StabilityVerdict)] for the complete hands, at most two
        """
        complete = []
        for hand in frame.hands:
            if hand.is_complete:
                complete.append(hand)
            else:
                logger.debug("Skipping %s hand with %d landmarks",
                             hand.hand_id, len(hand.landmarks))

        if len(complete) > MAX_HANDS:
            logger.debug("Frame reported %d usable hands, using the first %d",
                         len(complete), MAX_HANDS)
            complete = complete[:MAX_HANDS]

        observed = []
        seen_ids = set()
        for hand in complete:
            if hand.hand_id in seen_ids:
                # Same label twice: one stability buffer must not mix two hands
                observed.append((hand, None))
                continue
            seen_ids.add(hand.hand_id)

            verdict = self._stability.observe(hand.hand_id, lm.wrist_position(hand), now,
                                              frame_index=self._frame_count)
            self._last_seen_hands[hand.hand_id] = self._frame_count
            observed.append((hand, verdict))
        return observed

    def _emit(self, raw, now: int) -> Optional[GestureEvent]:
        """Score, gate, debounce and publish one classified gesture."""
        name = raw.gesture.value
        if raw.gesture.is_two_hand:
            confidence = raw.confidence
        else:
            confidence = self._scorer.score(raw.confidence, raw.stable, raw.has_history)

        if not self._scorer.accept(name, confidence):
            self._low_confidence_count += 1
            return None

        key = (raw.gesture, raw.handedness)
        if not self._debouncer.admit(key, now):
            self._debounced_count += 1
            return None

        event = build_event(raw, confidence, now)
        self._scorer.record(name, confidence)
        self._event_count += 1
        logger.debug("Emitting %r", event)
        self._bus.publish(event)
        return event

    def _evict_stale(self, now: int):
        limit = self._config.stale_frame_limit

        stale_hands = [hand_id for hand_id, seen in self._last_seen_hands.items()
                       if self._frame_count - seen > limit]
        for hand_id in stale_hands:
            del self._last_seen_hands[hand_id]
            self._stability.forget(hand_id)
            self._hand_classifier.forget(hand_id)
            logger.debug("Evicted stale hand %s", hand_id)

        stale_pairs = [key for key, seen in self._last_seen_pairs.items()
                       if self._frame_count - seen > limit]
        for key in stale_pairs:
            del self._last_seen_pairs[key]
            self._correlator.forget(key)
            logger.debug("Evicted stale pair %s", key)

        if stale_hands or stale_pairs:
            self._debouncer.prune(now)

    # =========================================================================
    # Calibration
    # =========================================================================

    def calibrate(self, hand: HandFrame) -> Optional[CalibrationResult]:
        """Rescale pinch/spread/clap thresholds to a hand's span.

        New thresholds apply from the next processed frame.
        """
        result = self._calibrator.calibrate(hand)
        if result is None:
            return None

        self._config = self._config.with_thresholds(**result.as_thresholds())
        self._hand_classifier.update_config(self._config)
        self._correlator.update_config(self._config)
        return result

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def destroy(self):
        """Clear all buffers, debounce state and subscribers.

        After destroy() no event is ever published; process_frame returns [].
        """
        if self._destroyed:
            return
        self._stability.reset()
        self._hand_classifier.reset()
        self._correlator.reset()
        self._debouncer.reset()
        self._scorer.reset()
        self._last_seen_hands.clear()
        self._last_seen_pairs.clear()
        self._bus.close()
        self._destroyed = True
        logger.info("GestureEngine destroyed after %d frames, %d events",
                    self._frame_count, self._event_count)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.destroy()
        return False

    # =========================================================================
    # Introspection
    # =========================================================================

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def tracked_hands(self) -> list:
        return sorted(set(self._stability.tracked_hands) | set(self._hand_classifier.tracked_hands))

    @property
    def tracked_pairs(self) -> list:
        return self._correlator.tracked_pairs

    @property
    def stats(self) -> dict:
        return {
            "frames": self._frame_count,
            "events": self._event_count,
            "debounced": self._debounced_count,
            "low_confidence": self._low_confidence_count,
            "tracked_hands": len(self.tracked_hands),
            "tracked_pairs": len(self.tracked_pairs),
            "confidence": self._scorer.get_all_stats(),
            "confidence_trend": self._scorer.get_confidence_trend(),
        }
