import asyncio
import os
from collections import defaultdict, deque
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Select the Protean config overlay before any domain module is imported.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path or "/messaging/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


class InMemoryRedis:
    """Just enough of ``redis.asyncio.Redis`` for list-based request/reply tests."""

    def __init__(self):
        self.lists = defaultdict(deque)
        self.expirations = {}
        self.closed = False
        self._changed = asyncio.Condition()

    async def lpush(self, key, *values):
        async with self._changed:
            for value in values:
                self.lists[key].appendleft(value)
            self._changed.notify_all()
            return len(self.lists[key])

    async def brpop(self, keys, timeout=0):
        async with self._changed:
            try:
                await asyncio.wait_for(
                    self._changed.wait_for(lambda: any(self.lists[key] for key in keys)),
                    timeout=timeout or None,
                )
            except TimeoutError:
                return None
            for key in keys:
                if self.lists[key]:
                    return key, self.lists[key].pop()
        return None

    async def expire(self, key, seconds):
        self.expirations[key] = seconds
        return True

    async def delete(self, *keys):
        return sum(1 for key in keys if self.lists.pop(key, None) is not None)

    async def aclose(self):
        self.closed = True


@pytest.fixture
def fake_redis():
    return InMemoryRedis()
