import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture
from shared.messaging.transport import ValidationTransport
from shared.messaging.user_validation import USER_NOT_FOUND, Role, UserSnapshot, UserValidationResponse


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


class DirectoryTransport(ValidationTransport):
    """Validation transport answering from an in-memory user directory.

    ``unavailable`` simulates users whose validation call fails at transport level.
    """

    def __init__(self, users=(), unavailable=()):
        super().__init__(timeout=1.0)
        self.users = {user.id: user for user in users}
        self.unavailable = set(unavailable)
        self.calls = []

    def add(self, user_id, role=Role.USER, name=None):
        user = UserSnapshot(
            id=user_id,
            email=f"{user_id}@example.com",
            name=name or f"User {user_id}",
            role=role,
        )
        self.users[user_id] = user
        return user

    async def _send(self, request):
        self.calls.append(request.user_id)
        if request.user_id in self.unavailable:
            raise ConnectionError("identity unreachable")
        user = self.users.get(request.user_id)
        if user is None:
            return UserValidationResponse.invalid(USER_NOT_FOUND)
        return UserValidationResponse.valid(user)


@pytest.fixture
def transport():
    directory = DirectoryTransport()
    directory.add("user-001", name="Jane Doe")
    directory.add("user-002", name="John Roe")
    directory.add("admin-001", role=Role.ADMIN, name="Ada Admin")
    return directory


@pytest.fixture
def orchestrator(transport):
    from ordering.domain import ordering
    from ordering.order.orchestrator import OrderOrchestrator

    return OrderOrchestrator(transport, domain=ordering)
