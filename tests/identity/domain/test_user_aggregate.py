"""Tests for the User aggregate."""

import pytest
from identity.user.events import UserPromoted, UserRegistered
from identity.user.user import User
from protean.exceptions import ValidationError
from shared.messaging.user_validation import Role, UserSnapshot


def _make_user(**overrides):
    defaults = {"email": "jane@example.com", "name": "Jane Doe"}
    defaults.update(overrides)
    return User.register(**defaults)


class TestUserRegistration:
    def test_register_sets_fields(self):
        user = _make_user()
        assert user.email == "jane@example.com"
        assert user.name == "Jane Doe"
        assert user.role == Role.USER.value
        assert user.created_at is not None
        assert user.updated_at == user.created_at

    def test_register_generates_id(self):
        assert _make_user().id is not None

    def test_register_normalizes_email(self):
        user = _make_user(email="  Jane.Doe@Example.COM ")
        assert user.email == "jane.doe@example.com"

    def test_register_strips_name(self):
        assert _make_user(name="  Jane  ").name == "Jane"

    def test_register_as_admin(self):
        user = _make_user(role=Role.ADMIN)
        assert user.role == Role.ADMIN.value
        assert user.is_admin is True

    def test_register_rejects_invalid_email(self):
        with pytest.raises(ValidationError):
            _make_user(email="not-an-email")

    def test_register_rejects_short_name(self):
        with pytest.raises(ValidationError) as exc:
            _make_user(name="J")
        assert "Name must have at least 2 characters" in str(exc.value)

    def test_register_raises_user_registered(self):
        user = _make_user()
        assert len(user._events) == 1
        event = user._events[0]
        assert isinstance(event, UserRegistered)
        assert event.user_id == user.id
        assert event.email == "jane@example.com"
        assert event.role == Role.USER.value


class TestUserRole:
    def test_unknown_role_rejected(self):
        with pytest.raises(ValidationError):
            User(email="jane@example.com", name="Jane Doe", role="ROOT")

    def test_default_role_is_user(self):
        user = User(email="jane@example.com", name="Jane Doe")
        assert user.role == Role.USER.value
        assert user.is_admin is False


class TestPromotion:
    def test_promote_to_admin(self):
        user = _make_user()
        user._events.clear()

        user.promote_to_admin()

        assert user.is_admin is True
        assert len(user._events) == 1
        event = user._events[0]
        assert isinstance(event, UserPromoted)
        assert event.previous_role == Role.USER.value

    def test_promoting_admin_is_a_no_op(self):
        user = _make_user(role=Role.ADMIN)
        user._events.clear()

        user.promote_to_admin()

        assert user.is_admin is True
        assert user._events == []


class TestSnapshot:
    def test_to_snapshot(self):
        user = _make_user(role=Role.ADMIN)

        snapshot = user.to_snapshot()

        assert snapshot == UserSnapshot(id=str(user.id), email="jane@example.com", name="Jane Doe", role=Role.ADMIN)
