"""Email delivery for account notifications.

:class:`EmailSender` opens a short-lived SMTP connection per message. The
connection is blocking, so delivery runs in the thread pool to keep the event
loop free. Any transport failure is logged and re-raised as
:class:`~account_service.errors.NotificationError`.
"""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from account_service import config
from account_service.errors import NotificationError

logger = logging.getLogger(__name__)


class EmailSender:
    """Send HTML emails through an SMTP relay."""

    def __init__(
        self,
        host: str = "",
        port: int = 0,
        sender: str = "",
        username: Optional[str] = None,
        password: Optional[str] = None,
        starttls: bool = False,
        timeout: int = 10,
    ) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._username = username
        self._password = password
        self._starttls = starttls
        self._timeout = timeout

    def _new_connection(self) -> smtplib.SMTP:
        return smtplib.SMTP(host=self._host, port=self._port, timeout=self._timeout)

    def build_message(self, address: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self._sender
        message["To"] = address
        message["Subject"] = subject
        message.set_content(body, subtype="html")
        return message

    def _deliver(self, message: EmailMessage) -> None:
        with self._new_connection() as conn:
            if self._starttls:
                conn.starttls()
            if self._username and self._password:
                conn.login(self._username, self._password)
            conn.send_message(message)

    async def send_message(self, address: str, subject: str, body: str) -> None:
        """Deliver ``body`` to ``address``.

        Raises NotificationError if the relay cannot be reached or refuses the
        message.
        """
        message = self.build_message(address, subject, body)
        try:
            await run_in_threadpool(self._deliver, message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send '%s' email to %s: %s", subject, address, exc)
            raise NotificationError(str(exc)) from exc
        logger.info("Sent '%s' email to %s", subject, address)


def get_email_sender() -> EmailSender:
    """FastAPI dependency returning a sender configured from the environment."""
    return EmailSender(
        host=config.SMTP_HOST,
        port=config.SMTP_PORT,
        sender=config.MAIL_FROM,
        username=config.SMTP_USERNAME,
        password=config.SMTP_PASSWORD,
        starttls=config.SMTP_STARTTLS,
        timeout=config.SMTP_TIMEOUT,
    )
