#!/usr/bin/env python3
"""
Gesture Recognition Engine - recording replay.

Feeds a JSON-lines landmark recording through the engine and reports the
gesture events and scene commands it produces.

Usage:
    python main.py --replay session.jsonl
    python main.py --replay session.jsonl --json        # one JSON event per line
    python main.py --replay session.jsonl --config my.yaml --log-level DEBUG
"""

import sys
import json
import argparse
import logging

from gesture_engine.core.engine import GestureEngine
from gesture_engine.control.command_mapper import SceneCommandMapper
from gesture_engine.utils.config import Config
from gesture_engine.utils.logger import setup_logging, GestureLogger, log_timing
from gesture_engine.utils.recording import load_recording

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Replay a hand-landmark recording through the gesture engine"
    )
    parser.add_argument(
        "--replay", type=str, required=True,
        help="Path to a JSON-lines landmark recording"
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="Path to engine.yaml"
    )
    parser.add_argument(
        "--log-level", type=str, default=None,
        help="Override logging level (DEBUG, INFO, ...)"
    )
    parser.add_argument(
        "--json", action="store_true",
        help="Print each event as a JSON line on stdout"
    )
    return parser.parse_args(argv)


@log_timing
def replay(engine: GestureEngine, path: str, as_json: bool = False) -> int:
    """Run every frame of a recording through the engine.

    Returns:
        Number of frames processed
    """
    if as_json:
        engine.subscribe(lambda event: print(json.dumps(event.to_dict()), flush=True))

    frames = 0
    for frame in load_recording(path):
        engine.process_frame(frame)
        frames += 1
    return frames


def main(argv=None) -> int:
    args = parse_args(argv)

    config = Config().load(config_path=args.config)

    log_cfg = config.logging
    setup_logging(
        level=args.log_level or log_cfg.get("level", "INFO"),
        log_file=log_cfg.get("file"),
        max_size_mb=log_cfg.get("max_size_mb", 10),
        backup_count=log_cfg.get("backup_count", 3),
        file_level=log_cfg.get("file_level", "DEBUG"),
    )

    try:
        engine_config = config.engine_config()
    except ValueError as e:
        logger.error("Invalid engine configuration: %s", e)
        return 2

    gesture_logger = GestureLogger()
    mapper = SceneCommandMapper(config.commands)

    with GestureEngine(engine_config) as engine:
        engine.subscribe(gesture_logger)
        engine.subscribe(mapper)

        try:
            frames = replay(engine, args.replay, as_json=args.json)
        except FileNotFoundError:
            logger.error("Recording not found: %s", args.replay)
            return 1

        stats = engine.stats

    logger.info("=" * 60)
    logger.info("  Frames: %d | Events: %d | Debounced: %d | Low confidence: %d",
                frames, stats["events"], stats["debounced"], stats["low_confidence"])
    for name, count in sorted(gesture_logger.counts.items()):
        logger.info("  %-20s %d", name, count)
    logger.info("  Final scene: %s", mapper.commands)
    logger.info("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
