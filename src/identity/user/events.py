"""Domain events for the User aggregate."""

from protean.fields import DateTime, Identifier, String

from identity.domain import identity


@identity.event(part_of="User")
class UserRegistered:
    """A new user account was created."""

    __version__ = "v1"

    user_id: Identifier(required=True)
    email: String(required=True)
    name: String(required=True)
    role: String(required=True)
    registered_at: DateTime(required=True)


@identity.event(part_of="User")
class UserPromoted:
    """An existing user was granted administrator rights."""

    __version__ = "v1"

    user_id: Identifier(required=True)
    previous_role: String(required=True)
    promoted_at: DateTime(required=True)
