"""Failures raised by the order use cases.

Each error derives from the Protean exception that carries the same meaning at
the HTTP boundary, so ``register_exception_handlers`` maps them to bad input
(400) and not found (404). ``PersistenceFailure`` is mapped to a generic 500 by
the ordering API.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError


class UserValidationFailed(ValidationError):
    """The user does not exist, or could not be validated in time."""

    def __init__(self, user_id, reason=None):
        self.user_id = user_id
        self.reason = reason
        super().__init__({"user": ["User is not valid"]})


class OrderNotFound(ObjectNotFoundError):
    """The order does not exist, or is not visible to the requester."""

    def __init__(self, order_id):
        self.order_id = order_id
        super().__init__({"order": [f"Order {order_id} not found"]})


class InvalidTransition(ValidationError):
    """A status change the order's state or the requester's role does not allow."""

    def __init__(self, current, requested, message, reason=None):
        self.current = current
        self.requested = requested
        self.reason = reason
        super().__init__({"status": [message]})


class PersistenceFailure(Exception):
    """The order store failed while carrying out ``operation``."""

    def __init__(self, operation):
        self.operation = operation
        super().__init__(f"Order {operation} failed")
