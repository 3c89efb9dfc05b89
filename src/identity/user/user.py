"""User aggregate: an account that can place orders, identified by email."""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, String

from identity.domain import identity
from identity.shared.email import EmailAddress
from shared.messaging.user_validation import Role, UserSnapshot


@identity.aggregate
class User:
    """A registered person with a display name and a role.

    The role decides what the user may do in other services (administrators
    move orders through their lifecycle). Passwords and tokens are handled by
    the authentication gateway, not here.
    """

    email: String(required=True, max_length=254, unique=True)
    name: String(required=True, max_length=100)
    role: String(choices=Role, default=Role.USER.value)
    created_at: DateTime()
    updated_at: DateTime()

    @invariant.post
    def name_must_have_at_least_two_characters(self):
        if self.name is None or len(self.name.strip()) < 2:
            raise ValidationError({"name": ["Name must have at least 2 characters"]})

    @classmethod
    def register(cls, email, name, role=Role.USER):
        from identity.user.events import UserRegistered

        email_vo = EmailAddress(address=email.strip())
        now = datetime.now(UTC)

        user = cls(
            email=email_vo.normalized,
            name=name.strip(),
            role=role.value,
            created_at=now,
            updated_at=now,
        )
        user.raise_(
            UserRegistered(
                user_id=user.id,
                email=user.email,
                name=user.name,
                role=user.role,
                registered_at=now,
            )
        )
        return user

    @property
    def is_admin(self) -> bool:
        return Role(self.role) is Role.ADMIN

    def promote_to_admin(self):
        """Grant administrator rights. Promoting an administrator is a no-op."""
        from identity.user.events import UserPromoted

        if self.is_admin:
            return

        previous_role = self.role
        now = datetime.now(UTC)
        self.role = Role.ADMIN.value
        self.updated_at = now
        self.raise_(
            UserPromoted(
                user_id=self.id,
                previous_role=previous_role,
                promoted_at=now,
            )
        )

    def to_snapshot(self) -> UserSnapshot:
        return UserSnapshot(
            id=str(self.id),
            email=self.email,
            name=self.name,
            role=Role(self.role),
        )
