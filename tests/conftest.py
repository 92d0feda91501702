import pytest

from events import EventManager
from schedule import ScheduleConfig


@pytest.fixture
def daily():
    """18:50 São Paulo, one hour – the stock schedule."""
    return ScheduleConfig(start_hour=18, start_minute=50, duration_seconds=3600,
                          timezone="America/Sao_Paulo")


@pytest.fixture(autouse=True)
def empty_event_queue():
    EventManager.drain()
    yield
    EventManager.drain()
