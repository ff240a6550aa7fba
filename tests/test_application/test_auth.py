"""
Tests for password hashing and user registration.
"""
from app.auth import (
    pwd_context, hash_password, verify_password, register_user, get_user_by_email, is_super_admin,
)
from app.infrastructure.db.models import Profile


class TestPasswords:
    def test_single_scheme(self):
        assert pwd_context.schemes() == ("pbkdf2_sha256",)

    def test_hash_and_verify(self):
        hashed = hash_password("s3cret")
        assert hashed.startswith("$pbkdf2-sha256$")
        assert verify_password("s3cret", hashed)
        assert not verify_password("wrong", hashed)


class TestRegisterUser:
    def test_creates_profile_and_normalizes_email(self, db_session):
        user = register_user(db_session, " Dana@Example.com ", "pw")
        assert user.email == "dana@example.com"
        assert get_user_by_email(db_session, "DANA@example.com").id == user.id
        profile = db_session.get(Profile, user.id)
        assert profile is not None
        assert profile.subscription is None

    def test_admin_claim(self, alice, admin):
        assert is_super_admin(admin)
        assert not is_super_admin(alice)
        assert not is_super_admin(None)
