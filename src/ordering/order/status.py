"""Order status state machine.

    PENDING → IN_PROCESS → COMPLETED
    PENDING → COMPLETED

COMPLETED is terminal. Every transition is reserved for administrators:
ordinary users can place and read orders but never move them.

``check_transition`` is a pure function of (current status, requested status,
requester role). It reports why a transition is refused so callers can word
their error, but both refusals surface as the same ``InvalidTransition``.
"""

from dataclasses import dataclass
from enum import Enum

from ordering.errors import InvalidTransition
from shared.messaging.user_validation import Role


class OrderStatus(Enum):
    PENDING = "PENDING"
    IN_PROCESS = "IN_PROCESS"
    COMPLETED = "COMPLETED"


class DenyReason(Enum):
    ROLE_INSUFFICIENT = "role_insufficient"
    TRANSITION_NOT_PERMITTED = "transition_not_permitted"


# Transitions the lifecycle allows at all
ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.IN_PROCESS, OrderStatus.COMPLETED}),
    OrderStatus.IN_PROCESS: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),  # Terminal
}

# Transitions each role may request. Must list every Role.
ROLE_TRANSITIONS: dict[Role, dict[OrderStatus, frozenset[OrderStatus]]] = {
    Role.ADMIN: ORDER_TRANSITIONS,
    Role.USER: {status: frozenset() for status in OrderStatus},
}


@dataclass(frozen=True)
class TransitionDecision:
    current: OrderStatus
    requested: OrderStatus
    reason: DenyReason | None = None

    @property
    def allowed(self) -> bool:
        return self.reason is None

    @property
    def message(self) -> str:
        pair = f"from {self.current.value} to {self.requested.value}"
        if self.reason is DenyReason.ROLE_INSUFFICIENT:
            return f"Only administrators can change an order {pair}"
        if self.reason is DenyReason.TRANSITION_NOT_PERMITTED:
            return f"Cannot transition {pair}"
        return f"Transition {pair} allowed"


def can_change_status(role: Role) -> bool:
    """True if ``role`` may perform at least one transition."""
    return any(ROLE_TRANSITIONS[role].values())


def check_transition(current: OrderStatus, requested: OrderStatus, role: Role) -> TransitionDecision:
    """Decide whether ``role`` may move an order from ``current`` to ``requested``."""
    if requested in ROLE_TRANSITIONS[role][current]:
        return TransitionDecision(current, requested)

    if not can_change_status(role) or requested in ORDER_TRANSITIONS[current]:
        return TransitionDecision(current, requested, DenyReason.ROLE_INSUFFICIENT)

    return TransitionDecision(current, requested, DenyReason.TRANSITION_NOT_PERMITTED)


def require_transition(current: OrderStatus, requested: OrderStatus, role: Role) -> TransitionDecision:
    """Like ``check_transition``, but raise ``InvalidTransition`` on refusal."""
    decision = check_transition(current, requested, role)
    if not decision.allowed:
        raise InvalidTransition(current, requested, decision.message, reason=decision.reason)
    return decision
