from email.message import EmailMessage

import aiosmtplib
import structlog

from globetrotter.core.core import Service
from globetrotter.core.modules.mail import templates
from globetrotter.errors import EmailDeliveryError

logger = structlog.get_logger(__name__)


class MailService(Service):
    """Sends account emails over SMTP. Raises EmailDeliveryError when a mail cannot be sent."""

    async def send_email_verification(self, to: str, name: str, token: str) -> None:
        subject, body = templates.email_verification(name, self._link(f"/verify-email/{token}"))
        await self.send(to, subject, body)

    async def send_welcome_email(self, to: str, name: str) -> None:
        subject, body = templates.welcome(name, self._link("/dashboard"))
        await self.send(to, subject, body)

    async def send_password_reset(self, to: str, name: str, token: str) -> None:
        subject, body = templates.password_reset(name, self._link(f"/reset-password?token={token}"))
        await self.send(to, subject, body)

    async def send(self, to: str, subject: str, html_body: str) -> None:
        """Send an HTML email via the configured SMTP server."""
        config = self.core.config
        if not config.smtp_host:
            logger.warning("email_not_sent_smtp_unconfigured", to=to, subject=subject)
            raise EmailDeliveryError("SMTP is not configured")

        message = EmailMessage()
        message["From"] = config.smtp_sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(html_body, subtype="html")

        try:
            await aiosmtplib.send(
                message,
                hostname=config.smtp_host,
                port=config.smtp_port,
                username=config.smtp_username,
                password=config.smtp_password,
                start_tls=config.smtp_start_tls,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.exception("email_send_failed", to=to, subject=subject)
            raise EmailDeliveryError(f"Failed to send email to {to}") from e
        logger.info("email_sent", to=to, subject=subject)

    def _link(self, path: str) -> str:
        return self.core.config.frontend_url.rstrip("/") + path
