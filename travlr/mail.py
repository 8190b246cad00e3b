"""
Travlr Auth - Mail Dispatch

Outgoing mail for the password-reset flow. The transport is an explicitly
passed collaborator: the app builds one from settings and hands it to the
auth service, tests hand in a recorder.

- SMTPMailer: real delivery over SMTP (implicit TLS or STARTTLS)
- LoggingMailer: development fallback when no SMTP host is configured;
  logs recipient and subject only, never the body (it holds reset links)
"""

import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Optional, Protocol

from pydantic import BaseModel


logger = logging.getLogger("travlr.mail")


class MailMessage(BaseModel):
    """A single HTML e-mail."""
    to: str
    sender: str
    subject: str
    html: str


class MailDeliveryError(Exception):
    """Raised when a message could not be handed to the transport."""
    pass


class Mailer(Protocol):
    def send(self, message: MailMessage) -> None:
        """Deliver a message or raise MailDeliveryError."""
        ...


class SMTPMailer:
    """
    SMTP transport.

    Args:
        host: SMTP server host
        port: SMTP server port (465 for implicit TLS)
        secure: Connect over TLS from the start; otherwise upgrade
            with STARTTLS when the server offers it
        username/password: Optional SMTP AUTH credentials
        timeout: Socket timeout in seconds
    """

    def __init__(
        self,
        host: str,
        port: int = 465,
        secure: bool = True,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.secure = secure
        self.username = username
        self.password = password
        self.timeout = timeout

    def _connect(self) -> smtplib.SMTP:
        context = ssl.create_default_context()
        if self.secure:
            client = smtplib.SMTP_SSL(
                self.host, self.port, timeout=self.timeout, context=context
            )
        else:
            client = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
            client.ehlo()
            if client.has_extn("starttls"):
                client.starttls(context=context)
                client.ehlo()
        if self.username:
            client.login(self.username, self.password or "")
        return client

    def send(self, message: MailMessage) -> None:
        email = EmailMessage()
        email["To"] = message.to
        email["From"] = message.sender
        email["Subject"] = message.subject
        email.set_content(message.html, subtype="html")

        try:
            with self._connect() as client:
                client.send_message(email)
        except (smtplib.SMTPException, OSError) as e:
            raise MailDeliveryError(f"SMTP delivery failed: {e}") from e

        logger.info("Mail sent to %s (%s)", message.to, message.subject)

    def verify(self) -> bool:
        """Check that the transport accepts a connection (and login)."""
        try:
            with self._connect() as client:
                client.noop()
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Mail transport verification failed: %s", e)
            return False

        logger.info("Mail transport ready (%s:%s)", self.host, self.port)
        return True


class LoggingMailer:
    """Development transport: records that a message would have been sent."""

    def send(self, message: MailMessage) -> None:
        logger.info(
            "SMTP not configured; not sending mail to %s (%s)",
            message.to, message.subject,
        )

    def verify(self) -> bool:
        return True
