"""EmailAddress value object used to validate user emails at registration."""

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import String

from identity.domain import identity

_FORBIDDEN_CHARACTERS = frozenset(';,()":<>\\')


def _is_ip_literal(domain_part: str) -> bool:
    return domain_part.startswith("[") and domain_part.endswith("]")


def _has_valid_edges(part: str, edge: str) -> bool:
    return bool(part) and not part.startswith(edge) and not part.endswith(edge)


def is_valid_email(email: str) -> bool:
    """Structural check: one @, sane local and domain parts, no forbidden characters."""
    if any(ch.isspace() for ch in email) or email.count("@") != 1:
        return False

    local_part, domain_part = email.split("@", 1)
    if not _has_valid_edges(local_part, ".") or not _has_valid_edges(domain_part, "."):
        return False
    if ".." in local_part or ".." in domain_part:
        return False

    ip_literal = _is_ip_literal(domain_part)
    forbidden = _FORBIDDEN_CHARACTERS if ip_literal else _FORBIDDEN_CHARACTERS | {"[", "]"}
    if forbidden & set(local_part):
        return False

    if ip_literal:
        return not (forbidden & set(domain_part[1:-1]))

    if "." not in domain_part or forbidden & set(domain_part):
        return False
    return all(_has_valid_edges(label, "-") for label in domain_part.split("."))


@identity.value_object
class EmailAddress:
    """A structurally valid email address.

    Users are looked up by email when an administrator is bootstrapped, so the
    address is normalised to lower case.
    """

    address: String(required=True, max_length=254)

    @invariant.post
    def verify_email_address(self):
        if not is_valid_email(self.address):
            raise ValidationError({"address": [f"Invalid email address: {self.address!r}"]})

    @property
    def normalized(self) -> str:
        return self.address.strip().lower()
