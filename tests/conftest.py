from datetime import datetime, timedelta

import pytest

from tests.helpers.factories import NOW, make_event, route
from tests.helpers.memory_store import DictCache, InMemoryStore


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def cache() -> DictCache:
    return DictCache()


@pytest.fixture
def five_requests():
    """Five successful requests on route 1 a day before NOW."""
    return [
        make_event(route(1), NOW - timedelta(days=1, hours=i), duration)
        for i, duration in enumerate([50, 100, 150, 200, 250])
    ]
