"""Gesture recognition components."""
from .stability_filter import StabilityFilter, StabilityVerdict
from .hand_classifier import HandClassifier
from .two_hand_correlator import TwoHandCorrelator
from .confidence_scorer import ConfidenceScorer
from .history import HistoryEntry, HistoryWindow

__all__ = [
    "StabilityFilter",
    "StabilityVerdict",
    "HandClassifier",
    "TwoHandCorrelator",
    "ConfidenceScorer",
    "HistoryEntry",
    "HistoryWindow",
]
