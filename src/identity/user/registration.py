"""User registration: command and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import String
from protean.utils.globals import current_domain

from identity.domain import identity
from identity.user.user import User


class EmailAlreadyRegistered(ValidationError):
    """Another account already uses this email address."""

    def __init__(self, email):
        self.email = email
        super().__init__({"email": ["A user with this email already exists"]})


@identity.command(part_of="User")
class RegisterUser:
    """Create a new user account with the USER role."""

    email: String(required=True, max_length=254)
    name: String(required=True, max_length=100)


@identity.command_handler(part_of=User)
class RegisterUserHandler:
    @handle(RegisterUser)
    def register_user(self, command):
        repo = current_domain.repository_for(User)
        if repo.find_by_email(command.email) is not None:
            raise EmailAlreadyRegistered(command.email)

        user = User.register(email=command.email, name=command.name)
        repo.add(user)
        return str(user.id)
