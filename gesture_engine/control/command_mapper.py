"""
Maps gesture events to scene commands for a 3D object scene.

This is the reference consumer of the engine: it folds the event stream
into a small command state (create/select toggles, object scale, physics
toggle) that a renderer can poll each frame.
"""

import logging
from dataclasses import dataclass, replace
from typing import Callable, List, Optional

from gesture_engine.core.types import GestureEvent, GestureType, Handedness

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SceneCommands:
    create_cube: bool = False
    select_cube: bool = False
    resize_value: float = 1.0
    toggle_physics: bool = False


class SceneCommandMapper:
    """Applies gesture events to SceneCommands.

    Right-hand pinch toggles cube creation, any other pinch toggles
    selection. Stretch/shrink resize within [min_size, max_size]. A clap or
    a left-hand spread toggles physics; a right-hand spread resets the size.
    """

    def __init__(self, config: dict = None):
        config = config or {}
        self._resize_step = config.get("resize_step", 0.3)
        self._min_size = config.get("min_size", 0.3)
        self._max_size = config.get("max_size", 3.0)
        self._default_size = config.get("default_size", 1.0)

        self._commands = SceneCommands(resize_value=self._default_size)
        self._last_command: Optional[str] = None
        self._command_callbacks: List[Callable] = []

    def __call__(self, event: GestureEvent):
        self.apply(event)

    def on_command(self, callback: Callable):
        """Register callback(description, commands) fired after each change."""
        self._command_callbacks.append(callback)

    def apply(self, event: GestureEvent) -> SceneCommands:
        """Fold one event into the command state."""
        cmds = self._commands
        right = event.handedness is Handedness.RIGHT

        if event.type is GestureType.PINCH:
            if right:
                cmds = replace(cmds, create_cube=not cmds.create_cube)
                description = "create cube (right pinch)"
            else:
                cmds = replace(cmds, select_cube=not cmds.select_cube)
                description = f"select cube ({event.handedness.value.lower()} pinch)"
        elif event.type in (GestureType.STRETCH_HORIZONTAL, GestureType.STRETCH_VERTICAL):
            cmds = replace(cmds, resize_value=min(self._max_size, cmds.resize_value + self._resize_step))
            description = f"stretch {event.direction.value} - grow"
        elif event.type in (GestureType.SHRINK_HORIZONTAL, GestureType.SHRINK_VERTICAL):
            cmds = replace(cmds, resize_value=max(self._min_size, cmds.resize_value - self._resize_step))
            description = f"shrink {event.direction.value} - shrink"
        elif event.type is GestureType.CLAP:
            cmds = replace(cmds, toggle_physics=not cmds.toggle_physics)
            description = "toggle physics (clap)"
        elif event.type is GestureType.SPREAD:
            if right:
                cmds = replace(cmds, resize_value=self._default_size)
                description = "reset size (right spread)"
            else:
                cmds = replace(cmds, toggle_physics=not cmds.toggle_physics)
                description = f"toggle physics ({event.handedness.value.lower()} spread)"
        else:
            logger.debug("Unhandled gesture: %s", event.type.value)
            return cmds

        self._commands = cmds
        self._last_command = description
        logger.info("Command: %s -> %s", description, cmds)

        for callback in self._command_callbacks:
            try:
                callback(description, cmds)
            except Exception as e:
                logger.error("Command callback error: %s", e)

        return cmds

    def reset(self):
        self._commands = SceneCommands(resize_value=self._default_size)
        self._last_command = None

    @property
    def commands(self) -> SceneCommands:
        return self._commands

    @property
    def last_command(self) -> Optional[str]:
        return self._last_command
