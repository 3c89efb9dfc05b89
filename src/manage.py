"""ShopStream management CLI.

Creates and drops database schemas for the Identity and Ordering domains, and
bootstraps administrator accounts.

Usage:
    python src/manage.py setup-db                      # Create all tables
    python src/manage.py drop-db --domain ordering     # Drop ordering tables
    python src/manage.py create-admin --email a@b.co --name "Ada Admin"
"""

import argparse
import sys

_DOMAIN_NAMES = ["identity", "ordering"]


def _domains(names=None):
    from identity.domain import identity
    from ordering.domain import ordering

    all_domains = {"identity": identity, "ordering": ordering}
    return {name: all_domains[name] for name in (names or _DOMAIN_NAMES)}


def setup_databases(domains=None):
    """Create database schemas for the specified (or all) domains."""
    from shared.db import setup_db

    for name, domain in _domains(domains).items():
        print(f"Initializing {name} domain...")
        domain.init()
        print(f"Creating {name} database schema...")
        setup_db(domain)
        print(f"  {name} schema ready.")

    print("Done.")


def drop_databases(domains=None):
    """Drop database schemas for the specified (or all) domains."""
    from shared.db import drop_db

    for name, domain in _domains(domains).items():
        print(f"Initializing {name} domain...")
        domain.init()
        print(f"Dropping {name} database schema...")
        drop_db(domain)
        print(f"  {name} schema dropped.")

    print("Done.")


def create_admin(email, name):
    """Create an administrator, or promote the user that already owns ``email``."""
    from identity.domain import identity
    from identity.user.administration import CreateAdmin
    from identity.user.user import User

    identity.init()
    with identity.domain_context():
        user_id = identity.process(CreateAdmin(email=email.strip(), name=name.strip()), asynchronous=False)
        user = identity.repository_for(User).get(user_id)

    print("Administrator ready.")
    print(f"  ID:    {user.id}")
    print(f"  Email: {user.email}")
    print(f"  Role:  {user.role}")


def main():
    parser = argparse.ArgumentParser(description="ShopStream management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    setup_parser = subparsers.add_parser("setup-db", help="Create all database tables")
    setup_parser.add_argument(
        "--domain",
        choices=_DOMAIN_NAMES,
        nargs="*",
        help="Specific domain(s) to set up (default: all)",
    )

    drop_parser = subparsers.add_parser("drop-db", help="Drop all database tables")
    drop_parser.add_argument(
        "--domain",
        choices=_DOMAIN_NAMES,
        nargs="*",
        help="Specific domain(s) to drop (default: all)",
    )

    admin_parser = subparsers.add_parser("create-admin", help="Create or promote an administrator")
    admin_parser.add_argument("--email", required=True)
    admin_parser.add_argument("--name", required=True)

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_databases(args.domain)
    elif args.command == "drop-db":
        drop_databases(args.domain)
    elif args.command == "create-admin":
        create_admin(args.email, args.name)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
