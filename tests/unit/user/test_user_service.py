"""Tests for the credential store."""

from datetime import timedelta
from unittest.mock import MagicMock

import bcrypt
import pytest
from pymongo.errors import DuplicateKeyError

from globetrotter.core.modules.user.models import PreferencesUpdate, ProfileUpdate, Theme
from globetrotter.core.modules.user.service import UserService, hash_password
from globetrotter.errors import NotFoundError, ValidationError
from globetrotter.utils import now


@pytest.fixture
def service(mock_database, mock_core):
    service = UserService(mock_database)
    service.set_core(mock_core)
    return service


class TestCreateUser:
    async def test_creates_user_with_hash_and_verification_token(self, service, users_collection):
        """Test that a new user is stored normalized, hashed and with a 24 hour verification token."""
        users_collection.find_one.return_value = None

        user, token = await service.create_user("  Ada ", "Lovelace", "  Ada@Example.COM ", "secret1")

        assert user.email == "ada@example.com"
        assert user.first_name == "Ada"
        assert bcrypt.checkpw(b"secret1", user.password_hash.encode("utf-8"))
        assert user.email_verification_token == token
        assert len(token) == 64
        assert now() + timedelta(hours=23) < user.email_verification_expires <= now() + timedelta(hours=24)
        assert user.active_sessions == []
        [stored], _ = users_collection.insert_one.call_args
        assert stored["_id"] == user.id
        assert "id" not in stored

    async def test_duplicate_email_rejected(self, service, users_collection, mock_user):
        """Test that registering an existing email fails."""
        users_collection.find_one.return_value = mock_user.to_mongo()

        with pytest.raises(ValidationError, match="already exists"):
            await service.create_user("Ada", "Lovelace", "ADA@example.com", "secret1")
        users_collection.insert_one.assert_not_awaited()

    async def test_duplicate_key_race_rejected(self, service, users_collection):
        """Test that losing the unique-index race is reported like a duplicate."""
        users_collection.find_one.return_value = None
        users_collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")

        with pytest.raises(ValidationError, match="already exists"):
            await service.create_user("Ada", "Lovelace", "ada@example.com", "secret1")

    @pytest.mark.parametrize(
        ("first_name", "email", "password", "message"),
        [
            ("A", "ada@example.com", "secret1", "First name"),
            ("Ada", "not-an-email", "secret1", "valid email"),
            ("Ada", "ada@example.com", "short", "at least 6"),
        ],
    )
    async def test_invalid_input(self, service, users_collection, first_name, email, password, message):
        """Test that invalid registration data is rejected before any write."""
        users_collection.find_one.return_value = None

        with pytest.raises(ValidationError, match=message):
            await service.create_user(first_name, "Lovelace", email, password)
        users_collection.insert_one.assert_not_awaited()


class TestPasswords:
    def test_verify_password(self, service, mock_user):
        """Test that only the original password verifies."""
        mock_user.password_hash = hash_password("secret1")
        assert service.verify_password(mock_user, "secret1") is True
        assert service.verify_password(mock_user, "secret2") is False

    def test_overlong_password_never_verifies(self, service, mock_user):
        """Test that passwords beyond bcrypt's limit are refused instead of raising."""
        mock_user.password_hash = hash_password("secret1")
        assert service.verify_password(mock_user, "x" * 100) is False

    async def test_reset_password_clears_token(self, service, users_collection, mock_user):
        """Test that a password reset rehashes and consumes the reset token."""
        await service.reset_password(mock_user.id, "new-secret")

        (query, update), _ = users_collection.update_one.call_args
        assert query == {"_id": mock_user.id}
        fields = update["$set"]
        assert bcrypt.checkpw(b"new-secret", fields["password_hash"].encode("utf-8"))
        assert fields["reset_password_token"] is None
        assert fields["reset_password_expires"] is None


class TestTokenLookups:
    async def test_reset_token_lookup_requires_unexpired(self, service, users_collection):
        """Test that reset token lookups filter out expired tokens."""
        users_collection.find_one.return_value = None

        assert await service.find_user_by_reset_token("abc") is None

        [query], _ = users_collection.find_one.call_args
        assert query["reset_password_token"] == "abc"
        assert "$gt" in query["reset_password_expires"]

    async def test_issue_reset_token_expires_in_one_hour(self, service, users_collection, mock_user):
        """Test that reset tokens are valid for one hour."""
        token = await service.issue_reset_token(mock_user.id)

        (_, update), _ = users_collection.update_one.call_args
        assert update["$set"]["reset_password_token"] == token
        assert update["$set"]["reset_password_expires"] <= now() + timedelta(hours=1)

    async def test_email_lookup_is_case_insensitive(self, service, users_collection):
        """Test that email lookups use the normalized address."""
        users_collection.find_one.return_value = None

        await service.find_user_by_email("  ADA@Example.com ")

        users_collection.find_one.assert_awaited_once_with({"email": "ada@example.com"})


class TestBackfill:
    async def test_backfill_targets_missing_and_null_ledgers(self, service, users_collection):
        """Test that the startup backfill initializes absent session ledgers."""
        users_collection.update_many.return_value = MagicMock(modified_count=2)

        assert await service.backfill_active_sessions() == 2

        (query, update), _ = users_collection.update_many.call_args
        assert query == {"$or": [{"active_sessions": {"$exists": False}}, {"active_sessions": None}]}
        assert update == {"$set": {"active_sessions": []}}


class TestUpdateProfile:
    async def test_preferences_merge_with_dotted_paths(self, service, users_collection, mock_user):
        """Test that only the sent preference keys are written, leaving the others as stored."""
        users_collection.find_one_and_update.return_value = mock_user.to_mongo()

        update = ProfileUpdate(
            first_name="  Augusta ",
            preferences=PreferencesUpdate.model_validate({"theme": "dark", "notifications": {"push": False}}),
        )
        await service.update_profile(mock_user.id, update)

        (query, change), _ = users_collection.find_one_and_update.call_args
        assert query == {"_id": mock_user.id}
        fields = change["$set"]
        assert fields["first_name"] == "Augusta"
        assert fields["preferences.theme"] == Theme.DARK
        assert fields["preferences.notifications.push"] is False
        assert "preferences.notifications.email" not in fields
        assert "preferences" not in fields
        assert "last_name" not in fields

    async def test_invalid_name_rejected(self, service, users_collection, mock_user):
        with pytest.raises(ValidationError, match="Last name"):
            await service.update_profile(mock_user.id, ProfileUpdate(last_name="L"))
        users_collection.find_one_and_update.assert_not_awaited()

    async def test_missing_user(self, service, users_collection, mock_user):
        users_collection.find_one_and_update.return_value = None

        with pytest.raises(NotFoundError):
            await service.update_profile(mock_user.id, ProfileUpdate(first_name="Augusta"))
