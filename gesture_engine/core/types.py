"""
Shared domain types for the gesture recognition engine.

Centralizes enums, landmark containers, and the gesture event variants used
across modules to eliminate circular imports and ensure type consistency.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, NamedTuple, Optional, Tuple

logger = logging.getLogger(__name__)

NUM_LANDMARKS = 21


# =============================================================================
# Enums
# =============================================================================

class Handedness(Enum):
    """Which hand produced a gesture. BOTH is reserved for two-hand gestures."""
    LEFT = "Left"
    RIGHT = "Right"
    BOTH = "Both"
    UNKNOWN = "Unknown"

    @classmethod
    def from_label(cls, label: Optional[str]) -> "Handedness":
        """Parse a detector label ("Left", "right", ...), safely."""
        if not label:
            return cls.UNKNOWN
        normalized = str(label).strip().capitalize()
        if normalized == cls.BOTH.value:
            # A single detected hand is never "Both"
            return cls.UNKNOWN
        try:
            return cls(normalized)
        except ValueError:
            return cls.UNKNOWN


class GestureType(Enum):
    """All recognized gesture types (single-hand and two-hand)."""
    PINCH = "PINCH"
    SPREAD = "SPREAD"
    CLAP = "CLAP"
    STRETCH_HORIZONTAL = "STRETCH_HORIZONTAL"
    STRETCH_VERTICAL = "STRETCH_VERTICAL"
    SHRINK_HORIZONTAL = "SHRINK_HORIZONTAL"
    SHRINK_VERTICAL = "SHRINK_VERTICAL"

    @classmethod
    def from_string(cls, name: str) -> Optional["GestureType"]:
        """Convert a gesture name to GestureType, or None if unknown."""
        try:
            return cls(str(name).upper())
        except ValueError:
            return None

    @property
    def is_two_hand(self) -> bool:
        return self not in (GestureType.PINCH, GestureType.SPREAD)

    @property
    def is_directional(self) -> bool:
        return self in DIRECTIONAL_TYPES


class Direction(Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


DIRECTIONAL_TYPES = {
    GestureType.STRETCH_HORIZONTAL,
    GestureType.STRETCH_VERTICAL,
    GestureType.SHRINK_HORIZONTAL,
    GestureType.SHRINK_VERTICAL,
}

# (stretching, direction) -> directional gesture type
DIRECTIONAL_TYPE_MAP: Dict[Tuple[bool, Direction], GestureType] = {
    (True, Direction.HORIZONTAL): GestureType.STRETCH_HORIZONTAL,
    (True, Direction.VERTICAL): GestureType.STRETCH_VERTICAL,
    (False, Direction.HORIZONTAL): GestureType.SHRINK_HORIZONTAL,
    (False, Direction.VERTICAL): GestureType.SHRINK_VERTICAL,
}

GestureKey = Tuple[GestureType, Handedness]


# =============================================================================
# Landmark Input
# =============================================================================

class LandmarkPoint(NamedTuple):
    """A single landmark point with normalized coordinates."""
    x: float  # 0.0 to 1.0, normalized by image width
    y: float  # 0.0 to 1.0, normalized by image height
    z: float = 0.0  # Depth relative to wrist

    @classmethod
    def from_raw(cls, raw) -> "LandmarkPoint":
        """Build from an [x, y, z] sequence or an {x, y, z} mapping."""
        if isinstance(raw, dict):
            return cls(float(raw["x"]), float(raw["y"]), float(raw.get("z", 0.0)))
        values = list(raw)
        z = float(values[2]) if len(values) > 2 else 0.0
        return cls(float(values[0]), float(values[1]), z)


@dataclass(frozen=True)
class HandFrame:
    """One hand's landmarks for a single frame, as reported by the detector."""
    landmarks: Tuple[LandmarkPoint, ...]
    handedness: Handedness = Handedness.UNKNOWN
    score: float = 1.0

    @property
    def is_complete(self) -> bool:
        return len(self.landmarks) >= NUM_LANDMARKS

    @property
    def hand_id(self) -> str:
        """Key for per-hand state: the detector's label, never the array slot.

        Unlabelled hands share the synthetic id "Unknown".
        """
        return self.handedness.value

    def get(self, index: int) -> LandmarkPoint:
        return self.landmarks[index]

    @classmethod
    def from_dict(cls, data: dict) -> "HandFrame":
        """Create from the wire shape used by recordings.

        Raises:
            KeyError / TypeError / ValueError on structurally invalid input.
            A hand with too few landmarks is still returned; the classifiers
            drop it.
        """
        landmarks = tuple(LandmarkPoint.from_raw(p) for p in data["landmarks"])
        return cls(
            landmarks=landmarks,
            handedness=Handedness.from_label(data.get("handedness")),
            score=float(data.get("score", 1.0)),
        )


@dataclass(frozen=True)
class FrameInput:
    """Everything the landmark source reports for one frame tick."""
    hands: Tuple[HandFrame, ...] = ()
    timestamp_ms: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict) -> "FrameInput":
        hands = tuple(HandFrame.from_dict(h) for h in data.get("hands", []))
        timestamp = data.get("timestamp")
        return cls(
            hands=hands,
            timestamp_ms=int(timestamp) if timestamp is not None else None,
        )

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp_ms,
            "hands": [
                {
                    "handedness": hand.handedness.value,
                    "score": hand.score,
                    "landmarks": [[p.x, p.y, p.z] for p in hand.landmarks],
                }
                for hand in self.hands
            ],
        }


# =============================================================================
# Classifier Output
# =============================================================================

class Position(NamedTuple):
    x: float
    y: float


@dataclass(frozen=True)
class RawGesture:
    """Unscored, undebounced classifier output.

    Uses plain fields so the engine can turn it into the matching event
    variant after scoring.
    """
    gesture: GestureType
    handedness: Handedness
    confidence: float
    position: Position
    distance: float
    stable: bool = False
    has_history: bool = False
    direction: Optional[Direction] = None
    distance_change: Optional[float] = None


# =============================================================================
# Gesture Events (one variant per gesture kind)
# =============================================================================

@dataclass(frozen=True)
class GestureEvent:
    """Fields shared by every emitted gesture."""
    type: GestureType
    handedness: Handedness
    confidence: float
    position: Position
    timestamp: int

    @property
    def key(self) -> GestureKey:
        return (self.type, self.handedness)

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "handedness": self.handedness.value,
            "confidence": self.confidence,
            "position": {"x": self.position.x, "y": self.position.y},
            "timestamp": self.timestamp,
        }

    def __repr__(self):
        return (f"{type(self).__name__}({self.type.value}, {self.handedness.value}, "
                f"conf={self.confidence:.2f}, t={self.timestamp})")


@dataclass(frozen=True, repr=False)
class PinchEvent(GestureEvent):
    distance: float = 0.0

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["distance"] = self.distance
        return data


@dataclass(frozen=True, repr=False)
class SpreadEvent(GestureEvent):
    distance: float = 0.0

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["distance"] = self.distance
        return data


@dataclass(frozen=True, repr=False)
class ClapEvent(GestureEvent):
    distance: float = 0.0  # Middle-finger MCP separation

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["distance"] = self.distance
        return data


@dataclass(frozen=True, repr=False)
class DirectionalEvent(GestureEvent):
    """Two-hand stretch/shrink along a dominant axis."""
    direction: Direction = Direction.HORIZONTAL
    distance: float = 0.0
    distance_change: float = 0.0

    @property
    def is_stretch(self) -> bool:
        return self.distance_change > 0

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["direction"] = self.direction.value
        data["distance"] = self.distance
        data["distance_change"] = self.distance_change
        return data


def build_event(raw: RawGesture, confidence: float, timestamp: int) -> GestureEvent:
    """Turn a scored RawGesture into the event variant for its gesture type."""
    common = dict(
        type=raw.gesture,
        handedness=raw.handedness,
        confidence=confidence,
        position=raw.position,
        timestamp=timestamp,
    )
    if raw.gesture is GestureType.PINCH:
        return PinchEvent(distance=raw.distance, **common)
    if raw.gesture is GestureType.SPREAD:
        return SpreadEvent(distance=raw.distance, **common)
    if raw.gesture is GestureType.CLAP:
        return ClapEvent(distance=raw.distance, **common)
    return DirectionalEvent(
        direction=raw.direction,
        distance=raw.distance,
        distance_change=raw.distance_change,
        **common,
    )
