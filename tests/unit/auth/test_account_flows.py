"""Tests for registration, login and email-token flows."""

from unittest.mock import MagicMock

import pytest

from globetrotter.core.modules.auth.service import AuthService
from globetrotter.errors import AuthenticationError, EmailDeliveryError, NotFoundError, ValidationError


@pytest.fixture
def auth_service(mock_core):
    service = AuthService(MagicMock())
    service.set_core(mock_core)
    return service


class TestRegister:
    async def test_register_sends_verification(self, auth_service, mock_core, mock_user):
        """Test that registration mails the verification token of the new user."""
        mock_core.services.user.create_user.return_value = (mock_user, "verify-token")

        user, email_sent = await auth_service.register("Ada", "Lovelace", "ada@example.com", "secret1")

        assert user is mock_user
        assert email_sent is True
        mock_core.services.mail.send_email_verification.assert_awaited_once_with(
            "ada@example.com", "Ada", "verify-token"
        )

    async def test_register_survives_mail_failure(self, auth_service, mock_core, mock_user):
        """Test that the account is kept when the verification email cannot be sent."""
        mock_core.services.user.create_user.return_value = (mock_user, "verify-token")
        mock_core.services.mail.send_email_verification.side_effect = EmailDeliveryError("smtp down")

        user, email_sent = await auth_service.register("Ada", "Lovelace", "ada@example.com", "secret1")

        assert user is mock_user
        assert email_sent is False


class TestLogin:
    async def test_login_opens_session(self, auth_service, mock_core, mock_user):
        """Test that valid credentials start a session for the device."""
        mock_core.services.user.find_user_by_email.return_value = mock_user
        mock_core.services.session.start_session.return_value = ("tok", "sid")

        result = await auth_service.login("ada@example.com", "secret1", "Firefox", "10.0.0.1")

        assert (result.token, result.session_id, result.user) == ("tok", "sid", mock_user)
        mock_core.services.session.start_session.assert_awaited_once_with(mock_user, "Firefox", "10.0.0.1")

    async def test_unknown_email(self, auth_service, mock_core):
        """Test that an unknown email gets the generic credentials error."""
        mock_core.services.user.find_user_by_email.return_value = None

        with pytest.raises(AuthenticationError, match="Invalid email or password"):
            await auth_service.login("nobody@example.com", "secret1")

    async def test_wrong_password(self, auth_service, mock_core, mock_user):
        """Test that a wrong password gets the same error as an unknown email."""
        mock_core.services.user.find_user_by_email.return_value = mock_user
        mock_core.services.user.verify_password.return_value = False

        with pytest.raises(AuthenticationError, match="Invalid email or password"):
            await auth_service.login("ada@example.com", "wrong")
        mock_core.services.session.start_session.assert_not_awaited()

    async def test_deactivated_account(self, auth_service, mock_core, mock_user):
        """Test that deactivated accounts cannot log in."""
        mock_user.is_active = False
        mock_core.services.user.find_user_by_email.return_value = mock_user

        with pytest.raises(AuthenticationError, match="deactivated"):
            await auth_service.login("ada@example.com", "secret1")


class TestVerifyEmail:
    async def test_verify_marks_user_and_sends_welcome(self, auth_service, mock_core, mock_user):
        """Test that a valid token verifies the email and triggers the welcome email."""
        mock_user.is_email_verified = False
        mock_core.services.user.find_user_by_verification_token.return_value = mock_user

        user = await auth_service.verify_email("verify-token")

        assert user.is_email_verified is True
        assert user.email_verification_token is None
        mock_core.services.user.mark_email_verified.assert_awaited_once_with(mock_user.id)
        mock_core.services.mail.send_welcome_email.assert_awaited_once_with("ada@example.com", "Ada")

    async def test_welcome_email_failure_is_swallowed(self, auth_service, mock_core, mock_user):
        """Test that verification succeeds even when the welcome email fails."""
        mock_core.services.user.find_user_by_verification_token.return_value = mock_user
        mock_core.services.mail.send_welcome_email.side_effect = EmailDeliveryError("smtp down")

        user = await auth_service.verify_email("verify-token")

        assert user.is_email_verified is True

    async def test_invalid_token(self, auth_service, mock_core):
        """Test that unknown or expired tokens are rejected."""
        mock_core.services.user.find_user_by_verification_token.return_value = None

        with pytest.raises(ValidationError, match="Invalid or expired verification token"):
            await auth_service.verify_email("nope")


class TestPasswordReset:
    async def test_unknown_email_is_silent(self, auth_service, mock_core):
        """Test that a reset request for an unknown email returns normally and sends nothing."""
        mock_core.services.user.find_user_by_email.return_value = None

        assert await auth_service.request_password_reset("nobody@example.com") is None
        mock_core.services.mail.send_password_reset.assert_not_awaited()

    async def test_known_email_gets_reset_link(self, auth_service, mock_core, mock_user):
        """Test that a reset request for a known email issues and mails a token."""
        mock_core.services.user.find_user_by_email.return_value = mock_user
        mock_core.services.user.issue_reset_token.return_value = "reset-token"

        assert await auth_service.request_password_reset("ada@example.com") is None
        mock_core.services.mail.send_password_reset.assert_awaited_once_with("ada@example.com", "Ada", "reset-token")

    async def test_mail_failure_does_not_change_outcome(self, auth_service, mock_core, mock_user):
        """Test that a failed reset email is not surfaced to the caller."""
        mock_core.services.user.find_user_by_email.return_value = mock_user
        mock_core.services.mail.send_password_reset.side_effect = EmailDeliveryError("smtp down")

        assert await auth_service.request_password_reset("ada@example.com") is None

    async def test_reset_with_valid_token(self, auth_service, mock_core, mock_user):
        """Test that a valid reset token replaces the password."""
        mock_core.services.user.find_user_by_reset_token.return_value = mock_user

        await auth_service.reset_password("reset-token", "new-secret")

        mock_core.services.user.reset_password.assert_awaited_once_with(mock_user.id, "new-secret")

    async def test_reset_with_invalid_token(self, auth_service, mock_core):
        """Test that an unknown or expired reset token is rejected."""
        mock_core.services.user.find_user_by_reset_token.return_value = None

        with pytest.raises(ValidationError, match="Invalid or expired reset token"):
            await auth_service.reset_password("nope", "new-secret")


class TestResendVerification:
    async def test_resend_for_unverified_user(self, auth_service, mock_core, mock_user):
        """Test that a new verification token is issued and mailed."""
        mock_user.is_email_verified = False
        mock_core.services.user.find_user_by_email.return_value = mock_user
        mock_core.services.user.issue_verification_token.return_value = "fresh-token"

        await auth_service.resend_verification("ada@example.com")

        mock_core.services.mail.send_email_verification.assert_awaited_once_with(
            "ada@example.com", "Ada", "fresh-token"
        )

    async def test_already_verified(self, auth_service, mock_core, mock_user):
        """Test that verified accounts are refused."""
        mock_core.services.user.find_user_by_email.return_value = mock_user

        with pytest.raises(ValidationError, match="already verified"):
            await auth_service.resend_verification("ada@example.com")

    async def test_unknown_user(self, auth_service, mock_core):
        """Test that unknown emails are reported as not found."""
        mock_core.services.user.find_user_by_email.return_value = None

        with pytest.raises(NotFoundError, match="User not found"):
            await auth_service.resend_verification("nobody@example.com")

    async def test_mail_failure_propagates(self, auth_service, mock_core, mock_user):
        """Test that a failed verification email is surfaced."""
        mock_user.is_email_verified = False
        mock_core.services.user.find_user_by_email.return_value = mock_user
        mock_core.services.mail.send_email_verification.side_effect = EmailDeliveryError("smtp down")

        with pytest.raises(EmailDeliveryError):
            await auth_service.resend_verification("ada@example.com")
