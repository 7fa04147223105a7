from datetime import timedelta
from typing import Any
from uuid import UUID

import bcrypt
import structlog
from pymongo.asynchronous.database import AsyncDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from globetrotter.core.core import Service
from globetrotter.core.modules.user.models import ProfileUpdate, User
from globetrotter.core.modules.user.validators import (
    MAX_PASSWORD_BYTES,
    validate_email,
    validate_name,
    validate_password,
)
from globetrotter.errors import NotFoundError, ValidationError
from globetrotter.utils import normalize_email, now, random_hex

logger = structlog.get_logger(__name__)

EMAIL_VERIFICATION_TTL = timedelta(hours=24)
PASSWORD_RESET_TTL = timedelta(hours=1)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


class UserService(Service):
    """Credential store: user documents, password hashes and one-time email tokens.

    Users are always read from MongoDB; the embedded session ledger changes on
    almost every request, so there is no in-process cache.
    """

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("users")

    async def on_start(self) -> None:
        """Create indexes and backfill the session ledger of legacy documents."""
        await self._collection.create_index([("email", 1)], unique=True)
        await self._collection.create_index([("email_verification_token", 1)], sparse=True)
        await self._collection.create_index([("reset_password_token", 1)], sparse=True)
        await self._collection.create_index([("active_sessions.session_id", 1)])
        await self._collection.create_index([("active_sessions.token", 1)])
        migrated = await self.backfill_active_sessions()
        logger.debug("user_service_started", backfilled_users=migrated)

    async def find_user(self, user_id: UUID) -> User | None:
        return User.from_mongo(await self._collection.find_one({"_id": user_id}))

    async def get_user(self, user_id: UUID) -> User:
        """Get user by ID, raise NotFoundError if missing."""
        user = await self.find_user(user_id)
        if user is None:
            raise NotFoundError(f"User '{user_id}' not found")
        return user

    async def find_user_by_email(self, email: str) -> User | None:
        return User.from_mongo(await self._collection.find_one({"email": normalize_email(email)}))

    async def find_user_by_session_id(self, session_id: str) -> User | None:
        return User.from_mongo(await self._collection.find_one({"active_sessions.session_id": session_id}))

    async def find_user_by_verification_token(self, token: str) -> User | None:
        """Find the user owning an unexpired email verification token."""
        doc = await self._collection.find_one(
            {"email_verification_token": token, "email_verification_expires": {"$gt": now()}}
        )
        return User.from_mongo(doc)

    async def find_user_by_reset_token(self, token: str) -> User | None:
        """Find the user owning an unexpired password reset token."""
        doc = await self._collection.find_one({"reset_password_token": token, "reset_password_expires": {"$gt": now()}})
        return User.from_mongo(doc)

    async def create_user(self, first_name: str, last_name: str, email: str, password: str) -> tuple[User, str]:
        """Create user with hashed password and a fresh email verification token."""
        email = validate_email(email)
        first_name = validate_name(first_name, "First name")
        last_name = validate_name(last_name, "Last name")
        validate_password(password)

        if await self.find_user_by_email(email) is not None:
            raise ValidationError("User with this email already exists")

        verification_token = random_hex()
        user = User(
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            email_verification_token=verification_token,
            email_verification_expires=now() + EMAIL_VERIFICATION_TTL,
        )
        try:
            await self._collection.insert_one(user.to_mongo())
        except DuplicateKeyError as e:
            raise ValidationError("User with this email already exists") from e
        logger.info("user_created", user_id=user.id)
        return user, verification_token

    def verify_password(self, user: User, password: str) -> bool:
        """Verify password against stored hash."""
        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            return False
        return bcrypt.checkpw(encoded, user.password_hash.encode("utf-8"))

    async def mark_email_verified(self, user_id: UUID) -> None:
        """Set the verified flag and consume the verification token."""
        await self._set(
            user_id,
            {"is_email_verified": True, "email_verification_token": None, "email_verification_expires": None},
        )

    async def issue_verification_token(self, user_id: UUID) -> str:
        token = random_hex()
        await self._set(
            user_id, {"email_verification_token": token, "email_verification_expires": now() + EMAIL_VERIFICATION_TTL}
        )
        return token

    async def issue_reset_token(self, user_id: UUID) -> str:
        token = random_hex()
        await self._set(user_id, {"reset_password_token": token, "reset_password_expires": now() + PASSWORD_RESET_TTL})
        return token

    async def reset_password(self, user_id: UUID, password: str) -> None:
        """Replace the password hash and consume the reset token."""
        validate_password(password)
        await self._set(
            user_id,
            {"password_hash": hash_password(password), "reset_password_token": None, "reset_password_expires": None},
        )

    async def update_profile(self, user_id: UUID, update: ProfileUpdate) -> User:
        """Change names and merge preferences. Preference keys not in the update keep their stored values."""
        fields: dict[str, Any] = {}
        if update.first_name is not None:
            fields["first_name"] = validate_name(update.first_name, "First name")
        if update.last_name is not None:
            fields["last_name"] = validate_name(update.last_name, "Last name")
        if update.preferences is not None:
            # Dotted paths merge into the stored sub-document instead of replacing it
            preferences = update.preferences.model_dump(exclude_none=True)
            for key, value in preferences.pop("notifications", {}).items():
                fields[f"preferences.notifications.{key}"] = value
            for key, value in preferences.items():
                fields[f"preferences.{key}"] = value

        doc = await self._collection.find_one_and_update(
            {"_id": user_id}, {"$set": {**fields, "updated_at": now()}}, return_document=ReturnDocument.AFTER
        )
        user = User.from_mongo(doc)
        if user is None:
            raise NotFoundError(f"User '{user_id}' not found")
        logger.info("profile_updated", user_id=user_id, fields=sorted(fields))
        return user

    async def backfill_active_sessions(self) -> int:
        """Give every user without a session ledger an empty one, return how many were fixed."""
        result = await self._collection.update_many(
            {"$or": [{"active_sessions": {"$exists": False}}, {"active_sessions": None}]},
            {"$set": {"active_sessions": []}},
        )
        if result.modified_count:
            logger.info("active_sessions_backfilled", user_count=result.modified_count)
        return result.modified_count

    async def _set(self, user_id: UUID, fields: dict[str, Any]) -> None:
        await self._collection.update_one({"_id": user_id}, {"$set": {**fields, "updated_at": now()}})
