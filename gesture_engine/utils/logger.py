"""
Logging setup and a gesture event logger.
"""

import os
import logging
import logging.handlers
import time
from collections import deque
from functools import wraps

CONSOLE_FORMAT = "%(asctime)s  %(levelname)-5s  %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)-7s] %(name)-40s | %(message)s"
DATE_FORMAT = "%H:%M:%S"

# Per-frame rejection logs; only shown when the console itself is at DEBUG
FRAME_LOGGERS = (
    "gesture_engine.recognition",
    "gesture_engine.control.debouncer",
)


def _level(name, default=logging.INFO) -> int:
    return getattr(logging, str(name).upper(), default)


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3,
                  file_level="DEBUG"):
    """Configure the root logger for the replay tool.

    Console output uses `level`. The optional rotating log file records
    everything from `file_level` up, including per-frame rejections.
    """
    console_level = _level(level)
    handler_levels = [console_level]

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=int(max_size_mb * 1024 * 1024),
            backupCount=backup_count,
        )
        file_handler.setLevel(_level(file_level, logging.DEBUG))
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)
        handler_levels.append(file_handler.level)

    root_logger.setLevel(min(handler_levels))

    frame_level = logging.INFO if console_level > logging.DEBUG and not log_file else logging.NOTSET
    for name in FRAME_LOGGERS:
        logging.getLogger(name).setLevel(frame_level)

    return root_logger


class GestureLogger:
    """Event-bus subscriber that logs every emitted gesture.

    Usage:
        gesture_logger = GestureLogger()
        engine.subscribe(gesture_logger)
    """

    def __init__(self, max_history: int = 500):
        self.logger = logging.getLogger("gesture_events")
        self._gesture_history = deque(maxlen=max_history)
        self._counts = {}

    def __call__(self, event):
        self.log_gesture(event)

    def log_gesture(self, event):
        """Log a recognized gesture event."""
        self._gesture_history.append(event.to_dict())
        name = event.type.value
        self._counts[name] = self._counts.get(name, 0) + 1
        self.logger.info(
            "Gesture: %-18s | Hand: %-7s | Confidence: %.2f | At: (%.2f, %.2f)",
            name,
            event.handedness.value,
            event.confidence,
            event.position.x,
            event.position.y,
        )

    def get_history(self, last_n=None):
        """Get recent gesture history as dicts."""
        history = list(self._gesture_history)
        if last_n:
            return history[-last_n:]
        return history

    @property
    def counts(self) -> dict:
        return dict(self._counts)

    @property
    def total_gestures(self):
        return sum(self._counts.values())


def log_timing(func):
    """Decorator to log function execution time."""
    logger = logging.getLogger(func.__module__)

    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug("%s took %.2fms", func.__name__, elapsed)
        return result

    return wrapper
