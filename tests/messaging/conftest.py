import asyncio

import pytest
from shared.messaging.user_validation import (
    USER_NOT_FOUND,
    Role,
    UserSnapshot,
    UserValidationResponse,
)

KNOWN_USERS = {
    "user-001": UserSnapshot(id="user-001", email="jane@example.com", name="Jane Doe", role=Role.USER),
    "admin-001": UserSnapshot(id="admin-001", email="ada@example.com", name="Ada Admin", role=Role.ADMIN),
}


class DirectoryHandler:
    """Answers validation requests from a fixed directory and records what it was asked."""

    def __init__(self, users=None):
        self.users = dict(KNOWN_USERS if users is None else users)
        self.calls = []

    def __call__(self, request):
        self.calls.append(request.user_id)
        user = self.users.get(request.user_id)
        if user is None:
            return UserValidationResponse.invalid(USER_NOT_FOUND)
        return UserValidationResponse.valid(user)


async def _wait_until(predicate, timeout=1.0):
    """Poll ``predicate`` until it holds; fail the test if it never does."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def directory():
    return DirectoryHandler()


@pytest.fixture
def wait_until():
    return _wait_until
