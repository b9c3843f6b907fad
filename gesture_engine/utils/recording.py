"""
JSON-lines landmark recordings for offline replay.

One frame per line:
    {"timestamp": 1000, "hands": [{"handedness": "Left", "score": 0.97,
                                    "landmarks": [[x, y, z], ... 21 points]}]}
"""

import os
import json
import logging
from typing import Iterable, Iterator

from gesture_engine.core.types import FrameInput

logger = logging.getLogger(__name__)


def load_recording(path: str) -> Iterator[FrameInput]:
    """Yield frames from a recording, skipping lines that fail to parse.

    Raises:
        FileNotFoundError: if the recording does not exist
    """
    skipped = 0
    with open(path, "r") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                frame = FrameInput.from_dict(json.loads(line))
            except (ValueError, LookupError, TypeError) as e:
                skipped += 1
                logger.warning("%s:%d: skipping unreadable frame: %s", path, line_no, e)
                continue
            yield frame

    if skipped:
        logger.info("Skipped %d unreadable frames in %s", skipped, path)


def save_recording(path: str, frames: Iterable[FrameInput]) -> int:
    """Write frames as JSON lines. Returns the number of frames written."""
    out_dir = os.path.dirname(path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)

    count = 0
    with open(path, "w") as f:
        for frame in frames:
            f.write(json.dumps(frame.to_dict()))
            f.write("\n")
            count += 1
    logger.info("Saved %d frames to %s", count, path)
    return count
