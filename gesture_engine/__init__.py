"""
Gesture Recognition Engine
===========================

Turns a per-frame stream of hand landmarks into debounced,
confidence-scored gesture events (pinch, spread, clap, stretch/shrink).

Modules:
    - core: data types, event bus, and the GestureEngine
    - recognition: stability filter, single/two-hand classifiers, scoring
    - control: debounce gate and the scene command mapper
    - utils: configuration, logging, recording replay
"""

from gesture_engine.core.engine import GestureEngine
from gesture_engine.core.events import EventBus, Subscription
from gesture_engine.core.types import (
    ClapEvent, Direction, DirectionalEvent, FrameInput, GestureEvent,
    GestureType, HandFrame, Handedness, LandmarkPoint, PinchEvent, SpreadEvent,
)
from gesture_engine.utils.config import EngineConfig

__version__ = "1.0.0"

__all__ = [
    "GestureEngine",
    "EventBus",
    "Subscription",
    "EngineConfig",
    "FrameInput",
    "HandFrame",
    "LandmarkPoint",
    "Handedness",
    "GestureType",
    "Direction",
    "GestureEvent",
    "PinchEvent",
    "SpreadEvent",
    "ClapEvent",
    "DirectionalEvent",
]
