"""Request-scoped dependencies for the Ordering API."""

from dataclasses import dataclass

from fastapi import Header, Request

from ordering.order.orchestrator import OrderOrchestrator
from shared.messaging.user_validation import Role


@dataclass(frozen=True)
class Requester:
    """The caller as identified by the authentication gateway."""

    id: str
    role: Role


def get_requester(
    x_user_id: str = Header(..., min_length=1),
    x_user_role: Role = Header(Role.USER),
) -> Requester:
    return Requester(id=x_user_id, role=x_user_role)


def get_orchestrator(request: Request) -> OrderOrchestrator:
    return request.app.state.order_orchestrator
