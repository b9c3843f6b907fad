"""
Tests for the GestureEngine pipeline
=====================================
"""

import pytest

from gesture_engine.core.engine import GestureEngine
from gesture_engine.core.types import (
    ClapEvent, Direction, DirectionalEvent, GestureType, Handedness, PinchEvent,
)
from gesture_engine.utils.config import EngineConfig

from hand_factory import make_frame, make_hand, pinching_pair

FRAME_MS = 33


def hand_frames(count, start=0, step=FRAME_MS, **hand_kwargs):
    """`count` frames of the same single hand."""
    hand = make_hand(**hand_kwargs)
    return [make_frame(start + i * step, hand) for i in range(count)]


def run(engine, frames):
    events = []
    for frame in frames:
        events.extend(engine.process_frame(frame))
    return events


def mixed_session():
    frames = hand_frames(8, start=0, handedness="Right", pinch=0.03)
    frames += hand_frames(6, start=1000, handedness="Left", spread=0.30)
    frames.append(make_frame(
        2000,
        make_hand("Left", middle_mcp=(0.455, 0.5)),
        make_hand("Right", middle_mcp=(0.545, 0.5)),
    ))
    frames += [pinching_pair(0.20 + 0.03 * i, 3000 + 200 * i) for i in range(6)]
    frames += [pinching_pair(0.50 - 0.03 * i, 5000 + 250 * i, axis="vertical") for i in range(6)]
    return frames


class TestScenarios:
    """End-to-end scenarios through process_frame."""

    def test_stable_pinch(self, engine, received):
        events = run(engine, hand_frames(6, handedness="Right", pinch=0.03))

        assert len(events) == 1
        event = events[0]
        assert isinstance(event, PinchEvent)
        assert event.type is GestureType.PINCH
        assert event.handedness is Handedness.RIGHT
        assert event.confidence == pytest.approx(0.95)
        assert event.timestamp == 3 * FRAME_MS  # first stable frame
        assert received == events

    def test_stable_spread(self, engine):
        events = run(engine, hand_frames(6, handedness="Left", spread=0.30))

        assert [e.type for e in events] == [GestureType.SPREAD]
        assert events[0].confidence == pytest.approx(0.85)
        assert events[0].distance == pytest.approx(0.30)

    def test_clap(self, engine):
        frame = make_frame(
            0,
            make_hand("Left", middle_mcp=(0.455, 0.5)),
            make_hand("Right", middle_mcp=(0.545, 0.5)),
        )
        events = engine.process_frame(frame)

        assert len(events) == 1
        assert isinstance(events[0], ClapEvent)
        assert events[0].handedness is Handedness.BOTH
        assert 0.75 <= events[0].confidence <= 0.95

    def test_shrink_vertical(self, engine):
        frames = [pinching_pair(d, t, axis="vertical")
                  for d, t in ((0.40, 0), (0.375, 250), (0.35, 500))]
        events = run(engine, frames)

        assert len(events) == 1
        event = events[0]
        assert isinstance(event, DirectionalEvent)
        assert event.type is GestureType.SHRINK_VERTICAL
        assert event.direction is Direction.VERTICAL
        assert event.distance_change == pytest.approx(-0.05)
        assert not event.is_stretch

    def test_stretch_horizontal(self, engine):
        frames = [pinching_pair(d, t) for d, t in ((0.20, 0), (0.23, 200), (0.26, 400))]
        events = run(engine, frames)

        assert [e.type for e in events] == [GestureType.STRETCH_HORIZONTAL]
        assert events[0].to_dict()["direction"] == "horizontal"

    def test_repeat_pinch_inside_debounce_window(self, engine):
        hand = make_hand("Right", pinch=0.03)
        first = run(engine, [make_frame(t, hand) for t in (0, 50, 100, 150)])
        assert len(first) == 1 and first[0].timestamp == 150

        assert engine.process_frame(make_frame(300, hand)) == []
        assert len(engine.process_frame(make_frame(550, hand))) == 1
        assert engine.stats["debounced"] == 1


class TestEngineProperties:
    """Invariants that hold for any input stream."""

    def test_confidence_bounds(self, engine):
        events = run(engine, mixed_session())
        assert events
        for event in events:
            assert 0.75 <= event.confidence <= 0.95

    def test_debounce_spacing(self, engine, config):
        frames = hand_frames(90, handedness="Right", pinch=0.03)
        frames += [pinching_pair(0.20 + 0.03 * i, 3000 + 200 * i) for i in range(12)]
        events = run(engine, frames)

        last_seen = {}
        for event in events:
            if event.key in last_seen:
                assert event.timestamp - last_seen[event.key] >= config.debounce_ms(event.type)
            last_seen[event.key] = event.timestamp
        assert sum(1 for e in events if e.type is GestureType.PINCH) > 1

    def test_jittery_hand_emits_nothing(self, engine):
        frames = [
            make_frame(i * FRAME_MS, make_hand("Right", wrist=(0.5 + 0.03 * (i % 2), 0.7), pinch=0.03))
            for i in range(10)
        ]
        assert run(engine, frames) == []

    def test_replay_is_deterministic(self):
        session = mixed_session()
        first = run(GestureEngine(), session)
        second = run(GestureEngine(), session)

        assert first == second
        assert len({e.type for e in first}) >= 4

    def test_at_most_one_event_per_frame(self, engine):
        for frame in mixed_session():
            assert len(engine.process_frame(frame)) <= 1


class TestEngineRouting:
    """Hand-count routing and malformed input."""

    def test_two_hands_never_emit_single_hand_gestures(self, engine):
        frames = [
            make_frame(i * FRAME_MS,
                       make_hand("Left", wrist=(0.2, 0.7), pinch=0.03, middle_mcp=(0.2, 0.5)),
                       make_hand("Right", wrist=(0.8, 0.7), spread=0.30, middle_mcp=(0.8, 0.5)))
            for i in range(8)
        ]
        assert run(engine, frames) == []

    def test_malformed_hand_is_skipped(self, engine):
        frames = [
            make_frame(i * FRAME_MS,
                       make_hand("Left", num_landmarks=12),
                       make_hand("Right", pinch=0.03))
            for i in range(5)
        ]
        events = run(engine, frames)
        assert [(e.type, e.handedness) for e in events] == [(GestureType.PINCH, Handedness.RIGHT)]

    def test_only_malformed_hands(self, engine):
        frames = hand_frames(6, pinch=0.03, num_landmarks=4)
        assert run(engine, frames) == []
        assert engine.tracked_hands == []

    def test_duplicate_handedness_skips_correlation(self, engine):
        frame = make_frame(
            0,
            make_hand("Left", middle_mcp=(0.48, 0.5)),
            make_hand("Left", middle_mcp=(0.52, 0.5)),
        )
        assert engine.process_frame(frame) == []
        assert engine.tracked_pairs == []

    def test_unknown_hand_uses_synthetic_id(self, engine):
        events = run(engine, hand_frames(5, handedness="Unknown", pinch=0.03))
        assert events[0].handedness is Handedness.UNKNOWN
        assert engine.tracked_hands == ["Unknown"]

    def test_extra_hands_are_ignored(self, engine):
        frame = make_frame(
            0,
            make_hand("Left", middle_mcp=(0.455, 0.5)),
            make_hand("Right", middle_mcp=(0.545, 0.5)),
            make_hand("Unknown"),
        )
        assert [e.type for e in engine.process_frame(frame)] == [GestureType.CLAP]

    def test_malformed_hands_do_not_count_toward_limit(self, engine):
        frame = make_frame(
            0,
            make_hand("Unknown", num_landmarks=8),
            make_hand("Left", middle_mcp=(0.455, 0.5)),
            make_hand("Right", middle_mcp=(0.545, 0.5)),
        )
        assert [e.type for e in engine.process_frame(frame)] == [GestureType.CLAP]

    def test_missing_timestamp_uses_clock(self, engine):
        hand = make_hand(pinch=0.03)
        events = run(engine, [make_frame(None, hand) for _ in range(4)])
        assert events and events[0].timestamp > 0


class TestEngineLifecycle:
    """Subscription, eviction, calibration and shutdown."""

    def test_subscribers_in_order_and_isolated(self, engine):
        calls = []

        def broken(event):
            calls.append("broken")
            raise ValueError("subscriber bug")

        engine.subscribe(lambda event: calls.append("first"))
        engine.subscribe(broken)
        engine.subscribe(lambda event: calls.append("last"))

        events = run(engine, hand_frames(4, pinch=0.03))
        assert len(events) == 1
        assert calls == ["first", "broken", "last"]

    def test_unsubscribe(self, engine):
        received = []
        token = engine.subscribe(received.append)
        assert engine.unsubscribe(token)
        assert not engine.unsubscribe(token)

        run(engine, hand_frames(4, pinch=0.03))
        assert received == []

    def test_reentrant_call_is_rejected(self, engine):
        errors = []

        def reenter(event):
            try:
                engine.process_frame(make_frame(event.timestamp + 1))
            except RuntimeError as e:
                errors.append(e)

        engine.subscribe(reenter)
        run(engine, hand_frames(4, pinch=0.03))
        assert len(errors) == 1

    def test_stale_hands_are_evicted(self):
        engine = GestureEngine(EngineConfig(stale_frame_limit=3))
        engine.process_frame(make_frame(0, make_hand("Right")))
        engine.process_frame(pinching_pair(0.3, 33))
        assert engine.tracked_hands == ["Left", "Right"]
        assert engine.tracked_pairs == [("Left", "Right")]

        for i in range(3):
            engine.process_frame(make_frame(100 + i * FRAME_MS))
        assert engine.tracked_hands == ["Left", "Right"]

        engine.process_frame(make_frame(500))
        assert engine.tracked_hands == []
        assert engine.tracked_pairs == []

    def test_calibration_rescales_thresholds(self, engine):
        result = engine.calibrate(make_hand(pinch=0.10, spread=0.10))
        assert result is not None
        assert engine.config.pinch_threshold == pytest.approx(0.03)

        # 0.04 pinched under the default threshold but not the calibrated one
        assert run(engine, hand_frames(6, pinch=0.04, spread=0.10)) == []

    def test_failed_calibration_keeps_config(self, engine, config):
        assert engine.calibrate(make_hand(num_landmarks=3)) is None
        assert engine.config == config

    def test_low_confidence_is_discarded(self):
        engine = GestureEngine(EngineConfig(min_confidence_threshold=0.9))
        assert run(engine, hand_frames(4, spread=0.30)) == []
        assert engine.stats["low_confidence"] == 1

    def test_destroy(self, engine):
        received = []
        engine.subscribe(received.append)
        run(engine, hand_frames(3, pinch=0.03))

        engine.destroy()
        assert engine.destroyed
        assert engine.tracked_hands == []
        assert engine.event_bus.subscriber_count == 0
        assert engine.process_frame(make_frame(200, make_hand(pinch=0.03))) == []
        assert received == []

    def test_destroy_from_subscriber_stops_delivery(self, engine):
        late = []
        engine.subscribe(lambda event: engine.destroy())
        engine.subscribe(late.append)

        run(engine, hand_frames(4, pinch=0.03))
        assert engine.destroyed
        assert late == []
        assert engine.process_frame(make_frame(500, make_hand(pinch=0.03))) == []

    def test_unsubscribe_from_subscriber_stops_delivery(self, engine):
        removed = []
        tokens = {}
        engine.subscribe(lambda event: engine.unsubscribe(tokens["second"]))
        tokens["second"] = engine.subscribe(removed.append)

        events = run(engine, hand_frames(4, pinch=0.03))
        assert len(events) == 1
        assert removed == []

    def test_hand_returning_after_gap_must_restabilize(self, engine):
        hand = make_hand("Right", pinch=0.03)
        frames = [make_frame(t, hand) for t in (0, 33, 66)]
        frames.append(make_frame(99))
        frames += [make_frame(t, hand) for t in (132, 165, 198)]
        assert run(engine, frames) == []

        assert len(engine.process_frame(make_frame(231, hand))) == 1

    def test_context_manager(self):
        with GestureEngine() as engine:
            run(engine, hand_frames(4, pinch=0.03))
        assert engine.destroyed
