import structlog

from globetrotter.core.core import Service
from globetrotter.core.modules.auth.models import AuthContext, LoginResult
from globetrotter.core.modules.session.models import AuthToken
from globetrotter.core.modules.user.models import User
from globetrotter.errors import AuthenticationError, EmailDeliveryError, NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


def parse_bearer(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


class AuthService(Service):
    """Request authentication and the account flows around it (login, email verification, password reset)."""

    async def authenticate(self, authorization: str | None) -> AuthContext:
        """Admit a request carrying a bearer token.

        The token must verify cryptographically, resolve to an active user and
        still be present in that user's session ledger. Checks run in that order
        and stop at the first failure.
        """
        token = parse_bearer(authorization)
        if token is None:
            raise AuthenticationError("Access token required")

        user_id = self.core.tokens.verify(token)

        user = await self.core.services.user.find_user(user_id)
        if user is None:
            raise AuthenticationError("Invalid token")

        if not user.is_active:
            raise AuthenticationError("Account is deactivated")

        session = user.find_session_by_token(token)
        if session is None:
            raise AuthenticationError("Session expired or invalid")

        await self.core.services.session.touch_session(user, session)
        return AuthContext(user=user, token=AuthToken(token), session_id=session.session_id)

    async def register(self, first_name: str, last_name: str, email: str, password: str) -> tuple[User, bool]:
        """Create an account and send the verification email.

        Returns the new user and whether the verification email went out; the
        account is kept either way.
        """
        user, verification_token = await self.core.services.user.create_user(first_name, last_name, email, password)
        try:
            await self.core.services.mail.send_email_verification(user.email, user.first_name, verification_token)
        except EmailDeliveryError:
            logger.warning("verification_email_failed", user_id=user.id)
            return user, False
        return user, True

    async def login(
        self, email: str, password: str, device_info: str = "Unknown", ip_address: str = "Unknown"
    ) -> LoginResult:
        users = self.core.services.user
        user = await users.find_user_by_email(email)
        if user is None:
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated. Please contact support.")
        if not users.verify_password(user, password):
            raise AuthenticationError("Invalid email or password")

        token, session_id = await self.core.services.session.start_session(user, device_info, ip_address)
        logger.info("user_logged_in", user_id=user.id, sessions=user.get_active_sessions_count())
        return LoginResult(token=token, session_id=session_id, user=user)

    async def logout(self, session_id: str) -> None:
        await self.core.services.session.end_session(session_id)

    async def verify_email(self, token: str) -> User:
        """Consume an email verification token; the welcome email is best-effort."""
        users = self.core.services.user
        user = await users.find_user_by_verification_token(token)
        if user is None:
            raise ValidationError("Invalid or expired verification token")

        await users.mark_email_verified(user.id)
        user.is_email_verified = True
        user.email_verification_token = None
        user.email_verification_expires = None
        logger.info("email_verified", user_id=user.id)

        try:
            await self.core.services.mail.send_welcome_email(user.email, user.first_name)
        except EmailDeliveryError:
            logger.warning("welcome_email_failed", user_id=user.id)
        return user

    async def request_password_reset(self, email: str) -> None:
        """Issue a reset token and mail it if the account exists.

        Behaves identically for unknown addresses so callers cannot discover which accounts exist.
        """
        users = self.core.services.user
        user = await users.find_user_by_email(email)
        if user is None:
            logger.debug("password_reset_unknown_email")
            return

        reset_token = await users.issue_reset_token(user.id)
        try:
            await self.core.services.mail.send_password_reset(user.email, user.first_name, reset_token)
        except EmailDeliveryError:
            logger.warning("password_reset_email_failed", user_id=user.id)

    async def reset_password(self, token: str, password: str) -> None:
        users = self.core.services.user
        user = await users.find_user_by_reset_token(token)
        if user is None:
            raise ValidationError("Invalid or expired reset token")
        await users.reset_password(user.id, password)
        logger.info("password_reset", user_id=user.id)

    async def resend_verification(self, email: str) -> None:
        """Issue a fresh verification token and mail it. Mail failures propagate."""
        users = self.core.services.user
        user = await users.find_user_by_email(email)
        if user is None:
            raise NotFoundError("User not found")
        if user.is_email_verified:
            raise ValidationError("Email is already verified")

        verification_token = await users.issue_verification_token(user.id)
        await self.core.services.mail.send_email_verification(user.email, user.first_name, verification_token)
