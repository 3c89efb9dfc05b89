"""Schema management for relational providers of a Protean domain."""

from protean.domain import Domain
from sqlalchemy import create_engine

_RDBMS_PROVIDERS = ("sqlite", "postgresql")


def _rdbms_providers(domain: Domain):
    for _, provider in domain.providers.items():
        if provider.conn_info["provider"] in _RDBMS_PROVIDERS:
            yield provider


def _register_models(domain: Domain, provider) -> None:
    """Force SQLAlchemy model registration for every element stored in ``provider``.

    Models are created lazily when a repository's DAO is first touched.
    """
    records = list(domain.registry.aggregates.values()) + list(domain.registry.entities.values())
    for record in records:
        if record.cls.meta_.provider == provider.name:
            domain.repository_for(record.cls)._dao  # noqa: B018


def setup_db(domain: Domain) -> None:
    """Create tables for every relational provider of ``domain``."""
    with domain.domain_context():
        for provider in _rdbms_providers(domain):
            _register_models(domain, provider)
            provider._metadata.create_all(create_engine(provider.conn_info["database_uri"]))


def drop_db(domain: Domain) -> None:
    """Drop tables for every relational provider of ``domain``."""
    with domain.domain_context():
        for provider in _rdbms_providers(domain):
            provider._metadata.drop_all(create_engine(provider.conn_info["database_uri"]))
