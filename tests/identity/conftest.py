import pytest


def _reset_stores(domain):
    """Empty every store the identity domain writes to."""
    for provider in domain.providers.values():
        provider._data_reset()
    for broker in domain.brokers.values():
        broker._data_reset()
    domain.event_store.store._data_reset()


@pytest.fixture(scope="session")
def identity_domain():
    from identity.domain import identity
    from shared.db import drop_db, setup_db

    identity.init()
    setup_db(identity)
    yield identity
    drop_db(identity)


@pytest.fixture(autouse=True)
def _identity_context(identity_domain):
    with identity_domain.domain_context():
        yield
        _reset_stores(identity_domain)
