"""Administrator bootstrap: command and handler."""

import structlog
from protean import handle
from protean.fields import String
from protean.utils.globals import current_domain

from identity.domain import identity
from identity.user.user import User
from shared.messaging.user_validation import Role

logger = structlog.get_logger(__name__)


@identity.command(part_of="User")
class CreateAdmin:
    """Make sure an administrator exists for ``email``.

    An existing account is promoted; otherwise a new ADMIN account is created.
    """

    email: String(required=True, max_length=254)
    name: String(required=True, max_length=100)


@identity.command_handler(part_of=User)
class CreateAdminHandler:
    @handle(CreateAdmin)
    def create_admin(self, command):
        repo = current_domain.repository_for(User)

        user = repo.find_by_email(command.email)
        if user is not None:
            logger.info("Promoting existing user to administrator", user_id=str(user.id))
            user.promote_to_admin()
        else:
            user = User.register(email=command.email, name=command.name, role=Role.ADMIN)
            logger.info("Created administrator", user_id=str(user.id))

        repo.add(user)
        return str(user.id)
