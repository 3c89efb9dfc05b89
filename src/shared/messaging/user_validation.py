"""Cross-service contract for user validation over the message queue.

The Ordering service asks the Identity service whether a user ID denotes an
existing account, and if so, for a point-in-time snapshot of the user's profile
and role. These models define the JSON shape on the wire; field aliases keep
the camelCase keys both services agree on.

Request:   {"userId": "..."}
Response:  {"isValid": true, "user": {"id", "email", "name", "role"}}
           {"isValid": false, "error": "..."}

Requests travel inside a ``ValidationEnvelope`` that carries the correlation
ID and the reply channel; the responder answers with a ``ReplyEnvelope``
carrying the same correlation ID.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

USER_VALIDATION_QUEUE = "user_validation_queue"
USER_VALIDATION_PATTERN = "validate_user"

# Error reasons carried in invalid responses
USER_NOT_FOUND = "user not found"
INTERNAL_ERROR = "internal error"
VALIDATION_UNAVAILABLE = "user validation unavailable"


class Role(Enum):
    """Closed set of account roles shared by both services."""

    USER = "USER"
    ADMIN = "ADMIN"


class UserSnapshot(BaseModel):
    """A user's profile as of the validation call. No freshness guarantee."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    name: str
    role: Role

    @classmethod
    def placeholder(cls, user_id: str) -> "UserSnapshot":
        """Stand-in profile for orders whose owner could not be validated."""
        return cls(id=user_id, email="", name="User not found", role=Role.USER)


class UserValidationRequest(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_id: str = Field(alias="userId", min_length=1)


class UserValidationResponse(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    is_valid: bool = Field(alias="isValid")
    user: UserSnapshot | None = None
    error: str | None = None

    @classmethod
    def valid(cls, user: UserSnapshot) -> "UserValidationResponse":
        return cls(is_valid=True, user=user)

    @classmethod
    def invalid(cls, error: str) -> "UserValidationResponse":
        return cls(is_valid=False, error=error)


class ValidationEnvelope(BaseModel):
    """A validation request as it sits on the queue."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    pattern: str = USER_VALIDATION_PATTERN
    id: str
    reply_to: str = Field(alias="replyTo")
    data: UserValidationRequest


class ReplyEnvelope(BaseModel):
    """A validation response routed back to the requester's reply channel."""

    model_config = ConfigDict(frozen=True)

    id: str
    response: UserValidationResponse


def to_wire(message: BaseModel) -> str:
    """Serialize a contract model to JSON using the agreed key names."""
    return message.model_dump_json(by_alias=True, exclude_none=True)
