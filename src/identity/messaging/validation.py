"""Responder side of the user-validation protocol.

Other services ask, over the ``user_validation_queue``, whether a user ID
belongs to an existing account. The responder answers with a snapshot of the
user or with an error reason. It is read-only and never lets an exception
escape: a fault on a queue consumer would either kill the worker or leave the
requester waiting until its timeout.
"""

import structlog
from protean.domain import Domain
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from identity.domain import identity
from identity.user.user import User
from shared.messaging.user_validation import (
    INTERNAL_ERROR,
    USER_NOT_FOUND,
    UserValidationRequest,
    UserValidationResponse,
)

logger = structlog.get_logger(__name__)


class UserValidationResponder:
    """Looks users up by ID and turns the outcome into a validation verdict."""

    def __init__(self, domain: Domain = identity) -> None:
        self._domain = domain

    def __call__(self, request: UserValidationRequest) -> UserValidationResponse:
        return self.handle(request)

    def handle(self, request: UserValidationRequest) -> UserValidationResponse:
        logger.info("Received user validation request", user_id=request.user_id)

        try:
            with self._domain.domain_context():
                user = current_domain.repository_for(User).get(request.user_id)
                snapshot = user.to_snapshot()
        except ObjectNotFoundError:
            logger.warning("User not found", user_id=request.user_id)
            return UserValidationResponse.invalid(USER_NOT_FOUND)
        except Exception:
            logger.exception("Error validating user", user_id=request.user_id)
            return UserValidationResponse.invalid(INTERNAL_ERROR)

        logger.info("User validation successful", user_id=snapshot.id, role=snapshot.role.value)
        return UserValidationResponse.valid(snapshot)
