import pytest

from gesture_engine.core.engine import GestureEngine
from gesture_engine.utils.config import EngineConfig


@pytest.fixture
def config():
    return EngineConfig()


@pytest.fixture
def engine(config):
    engine = GestureEngine(config)
    yield engine
    engine.destroy()


@pytest.fixture
def received(engine):
    """Events delivered to a subscriber of the engine fixture."""
    events = []
    engine.subscribe(events.append)
    return events
