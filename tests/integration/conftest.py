"""Fixtures for cross-service integration tests.

These tests run the Ordering use cases against the real Identity responder,
either in-process or across an in-memory Redis queue.
"""

import os

import pytest


@pytest.fixture(scope="session")
def _identity_domain(request):
    """Initialize the identity domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from identity.domain import identity

    identity.init()
    return identity


@pytest.fixture(scope="session")
def _ordering_domain(request):
    """Initialize the ordering domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from ordering.domain import ordering

    ordering.init()
    return ordering


@pytest.fixture(scope="session", autouse=True)
def setup_databases(_identity_domain, _ordering_domain):
    """Create database schemas for both domains."""
    from shared.db import drop_db, setup_db

    setup_db(_identity_domain)
    setup_db(_ordering_domain)

    yield

    drop_db(_identity_domain)
    drop_db(_ordering_domain)


def _reset(domain):
    with domain.domain_context():
        from protean import current_domain

        for _, provider in current_domain.providers.items():
            provider._data_reset()

        for _, broker in current_domain.brokers.items():
            broker._data_reset()

        current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def clean_stores(_identity_domain, _ordering_domain):
    yield

    _reset(_identity_domain)
    _reset(_ordering_domain)


@pytest.fixture
def register_user(_identity_domain):
    """Register a user through the Identity command path and return its ID."""
    from identity.user.administration import CreateAdmin
    from identity.user.registration import RegisterUser

    def _register(email, name, admin=False):
        command_cls = CreateAdmin if admin else RegisterUser
        with _identity_domain.domain_context():
            return _identity_domain.process(command_cls(email=email, name=name), asynchronous=False)

    return _register


@pytest.fixture
def responder(_identity_domain):
    from identity.messaging.validation import UserValidationResponder

    return UserValidationResponder(_identity_domain)
