from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from uuid import UUID

from globetrotter.config import Config
from globetrotter.core.core import Core
from globetrotter.core.modules.auth.models import AuthContext, LoginResult
from globetrotter.core.modules.session.models import SessionStats, SessionView
from globetrotter.core.modules.trip.models import ProfileTrips, Trip, TripDraft, TripStatus, TripStatusCount, TripUpdate
from globetrotter.core.modules.user.models import ProfileUpdate, TokenUserView, User, UserView
from globetrotter.errors import AccessDeniedError, NotFoundError


class App:
    """Facade for all application operations, checks permissions before delegating to Core."""

    def __init__(self, config: Config) -> None:
        self._core = Core(config)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    async def authenticate(self, authorization: str | None) -> AuthContext:
        """Validate an Authorization header against token signature and the session ledger."""
        return await self._core.services.auth.authenticate(authorization)

    # === Account ===
    async def register(self, first_name: str, last_name: str, email: str, password: str) -> tuple[UserView, bool]:
        """Create an account. The flag tells whether the verification email was sent."""
        user, email_sent = await self._core.services.auth.register(first_name, last_name, email, password)
        return UserView.from_domain(user), email_sent

    async def login(self, email: str, password: str, device_info: str, ip_address: str) -> LoginResult:
        """Check credentials and open a new session for this device."""
        return await self._core.services.auth.login(email, password, device_info, ip_address)

    async def logout(self, session_id: str) -> None:
        """End one session by its id."""
        await self._core.services.auth.logout(session_id)

    async def get_sessions(self, auth: AuthContext) -> list[SessionView]:
        """List the caller's active sessions without tokens."""
        return [SessionView.from_domain(session) for session in auth.user.active_sessions]

    async def verify_email(self, token: str) -> User:
        return await self._core.services.auth.verify_email(token)

    async def forgot_password(self, email: str) -> None:
        await self._core.services.auth.request_password_reset(email)

    async def reset_password(self, token: str, password: str) -> None:
        await self._core.services.auth.reset_password(token, password)

    async def resend_verification(self, email: str) -> None:
        await self._core.services.auth.resend_verification(email)

    async def verify_token(self, auth: AuthContext) -> TokenUserView:
        return TokenUserView.from_domain(auth.user)

    # === Profile ===
    async def get_profile(self, auth: AuthContext) -> tuple[UserView, ProfileTrips]:
        """Caller's profile with planned, ongoing and completed trips."""
        trips = await self._core.services.trip.get_profile_trips(auth.user.id)
        return UserView.from_domain(auth.user), trips

    async def update_profile(self, auth: AuthContext, update: ProfileUpdate) -> UserView:
        user = await self._core.services.user.update_profile(auth.user.id, update)
        return UserView.from_domain(user)

    # === Administration ===
    async def get_session_stats(self, auth: AuthContext) -> SessionStats:
        """Aggregate session counts (admin only)."""
        self._ensure_admin(auth)
        return await self._core.services.session.get_session_stats()

    async def force_logout_user(self, auth: AuthContext, user_id: UUID) -> None:
        """Revoke every session of a user (admin only)."""
        self._ensure_admin(auth)
        if not await self._core.services.session.force_logout_all(user_id):
            raise NotFoundError(f"User '{user_id}' not found")

    # === Trips ===
    async def get_trips(self, auth: AuthContext, status: TripStatus | None = None) -> list[Trip]:
        return await self._core.services.trip.list_user_trips(auth.user.id, status)

    async def create_trip(self, auth: AuthContext, draft: TripDraft) -> Trip:
        return await self._core.services.trip.create_trip(auth.user.id, draft)

    async def get_trip(self, auth: AuthContext, trip_id: UUID) -> Trip:
        return await self._core.services.trip.get_trip(auth.user.id, trip_id)

    async def update_trip(self, auth: AuthContext, trip_id: UUID, update: TripUpdate) -> Trip:
        return await self._core.services.trip.update_trip(auth.user.id, trip_id, update)

    async def update_trip_status(self, auth: AuthContext, trip_id: UUID, status: TripStatus) -> Trip:
        return await self._core.services.trip.update_trip_status(auth.user.id, trip_id, status)

    async def delete_trip(self, auth: AuthContext, trip_id: UUID) -> None:
        await self._core.services.trip.delete_trip(auth.user.id, trip_id)

    async def get_trip_stats(self, auth: AuthContext) -> dict[TripStatus, TripStatusCount]:
        return await self._core.services.trip.get_user_trip_stats(auth.user.id)

    # === Private helpers ===
    @staticmethod
    def _ensure_admin(auth: AuthContext) -> None:
        if not auth.user.is_admin:
            raise AccessDeniedError("Admin privileges required")
