"""Tests for creator registration/login and administrator login."""

from __future__ import annotations

import pytest

from publishing_api import accounts
from publishing_api.errors import BadRequest, Conflict, Forbidden, NotFound, Unauthorized
from publishing_api.tokens import verify_token

from .conftest import ADMIN_PASSWORD, ADMIN_USERNAME, CREATOR_PASSWORD


def _register(engine, settings, **overrides):
    fields = {
        "username": "inkwell",
        "email": "ink@example.com",
        "phone_number": "5551234",
        "password": "pw-123456",
        "confirm_password": "pw-123456",
    }
    fields.update(overrides)
    return accounts.register_creator(engine, settings, **fields)


class TestRegister:
    def test_registers_active_creator_with_token(self, engine, settings):
        result = _register(engine, settings)
        creator = result["creator"]
        assert creator["status"] == "active"
        assert "password_hash" not in creator
        claims = verify_token(settings, result["token"])
        assert claims["role"] == "creator"
        assert claims["id"] == creator["id"]

    def test_missing_field(self, engine, settings):
        with pytest.raises(BadRequest, match="All fields"):
            _register(engine, settings, phone_number="")

    def test_password_mismatch(self, engine, settings):
        with pytest.raises(BadRequest, match="do not match"):
            _register(engine, settings, confirm_password="other")

    def test_duplicate_email(self, engine, settings):
        _register(engine, settings)
        with pytest.raises(Conflict, match="email"):
            _register(engine, settings, username="someone-else")

    def test_duplicate_username(self, engine, settings):
        _register(engine, settings)
        with pytest.raises(Conflict, match="username"):
            _register(engine, settings, email="other@example.com")


class TestCreatorLogin:
    def test_login(self, engine, settings, make_creator):
        creator = make_creator()
        result = accounts.login_creator(engine, settings, creator.phone_number, CREATOR_PASSWORD)
        assert result["creator"]["id"] == creator.id
        assert "password_hash" not in result["creator"]

    def test_wrong_password(self, engine, settings, make_creator):
        creator = make_creator()
        with pytest.raises(Unauthorized):
            accounts.login_creator(engine, settings, creator.phone_number, "nope")

    def test_unknown_phone(self, engine, settings):
        with pytest.raises(Unauthorized):
            accounts.login_creator(engine, settings, "000", CREATOR_PASSWORD)

    def test_missing_fields(self, engine, settings):
        with pytest.raises(BadRequest):
            accounts.login_creator(engine, settings, None, CREATOR_PASSWORD)

    @pytest.mark.parametrize("status", ["inactive", "suspended"])
    def test_inactive_creator_with_correct_credentials_is_forbidden(self, engine, settings, make_creator, status):
        creator = make_creator(status=status)
        with pytest.raises(Forbidden):
            accounts.login_creator(engine, settings, creator.phone_number, CREATOR_PASSWORD)


class TestAdminLogin:
    def test_login(self, settings):
        result = accounts.login_admin(settings, ADMIN_USERNAME, ADMIN_PASSWORD)
        assert result["admin"] == {"username": ADMIN_USERNAME, "role": "admin"}
        claims = verify_token(settings, result["token"])
        assert claims["role"] == "admin"
        assert claims["id"] == "admin"

    @pytest.mark.parametrize(
        "username,password",
        [(ADMIN_USERNAME, "wrong"), ("someone", ADMIN_PASSWORD), (ADMIN_USERNAME.lower(), ADMIN_PASSWORD)],
    )
    def test_bad_credentials(self, settings, username, password):
        with pytest.raises(Unauthorized):
            accounts.login_admin(settings, username, password)

    def test_missing_fields(self, settings):
        with pytest.raises(BadRequest):
            accounts.login_admin(settings, ADMIN_USERNAME, "")


class TestCreatorManagement:
    def test_set_status(self, engine, make_creator):
        creator = make_creator()
        updated = accounts.set_creator_status(engine, creator.id, "suspended")
        assert updated["status"] == "suspended"
        assert [c["status"] for c in accounts.list_creators(engine)] == ["suspended"]

    @pytest.mark.parametrize("status", ["banned", "Suspended", " active", None])
    def test_invalid_status(self, engine, make_creator, status):
        creator = make_creator()
        with pytest.raises(BadRequest):
            accounts.set_creator_status(engine, creator.id, status)

    def test_missing_creator(self, engine):
        with pytest.raises(NotFound):
            accounts.set_creator_status(engine, 404, "active")
