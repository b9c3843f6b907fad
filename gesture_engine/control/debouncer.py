"""
Per-key debounce gate for gesture emission.

A gesture key is (gesture type, handedness). Each key may be emitted at
most once per debounce window; the window length is looked up per gesture
type so two-hand gestures can use a longer one than pinch/spread.

All times are frame timestamps in milliseconds supplied by the caller, so
replaying a recording debounces exactly like the live session did.
"""

import logging

logger = logging.getLogger(__name__)


class Debouncer:
    """Minimum re-emission interval per (gesture type, handedness)."""

    def __init__(self, config):
        self._default_ms = config.debounce_default_ms
        self._overrides_ms = dict(config.debounce_overrides_ms)

        # (GestureType, Handedness) -> last emission ms
        self._last_emit_times = {}

    def window_for(self, gesture) -> int:
        """Debounce window in ms for a gesture type."""
        return self._overrides_ms.get(gesture, self._default_ms)

    def admit(self, key, now: int) -> bool:
        """Check and record an emission for a key.

        Returns:
            True if the key is outside its debounce window. The emission
            time is recorded only when admitted.
        """
        gesture, handedness = key
        last = self._last_emit_times.get(key)
        if last is not None and now - last < self.window_for(gesture):
            logger.debug("Debounced %s/%s: %dms since last emission",
                         gesture.value, handedness.value, now - last)
            return False

        self._last_emit_times[key] = now
        return True

    def remaining(self, key, now: int) -> int:
        """Milliseconds until the key can be emitted again (0 if ready)."""
        last = self._last_emit_times.get(key)
        if last is None:
            return 0
        return max(0, self.window_for(key[0]) - (now - last))

    def prune(self, now: int) -> int:
        """Drop entries whose window has elapsed. Returns the number dropped."""
        expired = [
            key for key, last in self._last_emit_times.items()
            if now - last >= self.window_for(key[0])
        ]
        for key in expired:
            del self._last_emit_times[key]
        return len(expired)

    def last_emission(self, key):
        return self._last_emit_times.get(key)

    def reset(self):
        """Clear all state."""
        self._last_emit_times.clear()

    def __len__(self) -> int:
        return len(self._last_emit_times)
