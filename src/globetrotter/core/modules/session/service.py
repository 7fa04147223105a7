from datetime import timedelta
from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from globetrotter.core.core import Service
from globetrotter.core.modules.session.models import (
    MAX_ACTIVE_SESSIONS,
    STALE_SESSION_AGE,
    AuthToken,
    Session,
    SessionStats,
)
from globetrotter.core.modules.user.models import User
from globetrotter.errors import NotFoundError
from globetrotter.utils import now

logger = structlog.get_logger(__name__)


class SessionService(Service):
    """Persists the session ledger embedded in user documents.

    Every write is a single atomic update on the user document, so concurrent
    logins, logouts and activity updates for one user cannot overwrite each
    other. The in-memory ``User`` passed in is updated the same way.
    """

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("users")

    async def start_session(
        self, user: User, device_info: str = "Unknown", ip_address: str = "Unknown"
    ) -> tuple[AuthToken, str]:
        """Issue a token and session id for user and append them to the ledger."""
        token = self.core.tokens.issue(user.id)
        session_id = self.core.tokens.generate_session_id()
        session = user.add_session(session_id, token, device_info, ip_address)
        # $slice keeps the newest MAX_ACTIVE_SESSIONS entries, evicting from the front
        await self._collection.update_one(
            {"_id": user.id},
            {
                "$push": {
                    "active_sessions": {"$each": [session.model_dump()], "$slice": -MAX_ACTIVE_SESSIONS},
                },
                "$set": {"last_login": session.created_at},
            },
        )
        user.last_login = session.created_at
        logger.info("session_started", user_id=user.id, session_id=session_id[:8])
        return token, session_id

    async def end_session(self, session_id: str) -> User:
        """Remove one session from whichever user owns it."""
        user = await self.core.services.user.find_user_by_session_id(session_id)
        if user is None:
            raise NotFoundError("Session not found")
        await self.remove_session(user, session_id)
        return user

    async def remove_session(self, user: User, session_id: str) -> None:
        user.remove_session(session_id)
        await self._collection.update_one({"_id": user.id}, {"$pull": {"active_sessions": {"session_id": session_id}}})
        logger.info("session_ended", user_id=user.id, session_id=session_id[:8])

    async def touch_session(self, user: User, session: Session) -> None:
        """Record activity on a session. No-op if the session was removed meanwhile."""
        user.update_session_activity(session.session_id)
        await self._collection.update_one(
            {"_id": user.id, "active_sessions.session_id": session.session_id},
            {"$set": {"active_sessions.$.last_activity": now()}},
        )

    async def force_logout_all(self, user_id: UUID) -> bool:
        """Drop every session of a user. Returns False when the user does not exist."""
        result = await self._collection.update_one({"_id": user_id}, {"$set": {"active_sessions": []}})
        if result.matched_count:
            logger.info("sessions_force_cleared", user_id=user_id)
        return result.matched_count > 0

    async def sweep_stale_sessions(self, max_idle: timedelta = STALE_SESSION_AGE) -> int:
        """Remove sessions idle for longer than max_idle across all users.

        Returns the number of users whose ledger changed.
        """
        cutoff = now() - max_idle
        result = await self._collection.update_many(
            {"active_sessions.last_activity": {"$lt": cutoff}},
            {"$pull": {"active_sessions": {"last_activity": {"$lt": cutoff}}}},
        )
        if result.modified_count:
            logger.info("stale_sessions_swept", user_count=result.modified_count)
        return result.modified_count

    async def get_session_stats(self) -> SessionStats:
        pipeline: list[dict[str, Any]] = [
            {"$project": {"session_count": {"$size": {"$ifNull": ["$active_sessions", []]}}}},
            {
                "$group": {
                    "_id": None,
                    "total_users": {"$sum": 1},
                    "total_sessions": {"$sum": "$session_count"},
                    "avg_sessions_per_user": {"$avg": "$session_count"},
                }
            },
        ]
        cursor = await self._collection.aggregate(pipeline)
        rows = await cursor.to_list()
        if not rows:
            return SessionStats()
        return SessionStats.model_validate(rows[0])
