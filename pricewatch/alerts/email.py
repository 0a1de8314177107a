"""Price-drop e-mail notifications."""

import asyncio
import smtplib
import ssl
from email.message import EmailMessage
from typing import Protocol

from loguru import logger

from ..exceptions import DeliveryError

DEFAULT_SUBJECT = "Takip ettiğiniz bir ürünün fiyatı değişti!"

BODY_TEMPLATE = (
    "{title} isimli ürünün fiyatı artık: {new_price:.2f} (eski fiyatı: {old_price:.2f})\n"
    "Ürünün linki: {link}"
)


class MailTransport(Protocol):
    def send(self, recipient: str, subject: str, body: str) -> None:
        """Deliver one message or raise ``DeliveryError``."""
        ...


class SmtpTransport:
    """Send plain-text mail through an SMTP server."""

    def __init__(
        self,
        smtp_host: str,
        smtp_port: int,
        smtp_user: str,
        smtp_password: str,
        mail_from: str = "",
        timeout: float = 20.0,
    ):
        """Initialize SMTP transport.

        Args:
            smtp_host: SMTP server host
            smtp_port: SMTP server port, 587 for STARTTLS or 465 for SSL
            smtp_user: SMTP username
            smtp_password: SMTP password
            mail_from: Sender address, defaults to the SMTP username
            timeout: Socket timeout in seconds
        """
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.mail_from = mail_from or smtp_user
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings) -> "SmtpTransport":
        return cls(
            smtp_host=settings.smtp_host,
            smtp_port=settings.smtp_port,
            smtp_user=settings.smtp_user,
            smtp_password=settings.smtp_password,
            mail_from=settings.mail_from,
        )

    def send(self, recipient: str, subject: str, body: str) -> None:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.mail_from
        msg["To"] = recipient
        msg.set_content(body)

        context = ssl.create_default_context()
        try:
            if self.smtp_port == 465:
                with smtplib.SMTP_SSL(
                    self.smtp_host, self.smtp_port, context=context, timeout=self.timeout
                ) as server:
                    server.login(self.smtp_user, self.smtp_password)
                    server.send_message(msg)
            else:
                with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                    server.starttls(context=context)
                    server.login(self.smtp_user, self.smtp_password)
                    server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(recipient, str(e)) from e


class LogTransport:
    """Transport that only logs messages, used when mail is disabled."""

    def send(self, recipient: str, subject: str, body: str) -> None:
        logger.info(f"[mail disabled] to={recipient} subject={subject!r}\n{body}")


class EmailNotifier:
    """Formats price-drop messages and hands them to a mail transport."""

    def __init__(self, transport: MailTransport, subject: str = DEFAULT_SUBJECT):
        self.transport = transport
        self.subject = subject

    def format_body(self, title: str, old_price: float, new_price: float, link: str) -> str:
        return BODY_TEMPLATE.format(
            title=title, new_price=new_price, old_price=old_price, link=link
        )

    async def notify(
        self,
        email: str,
        title: str,
        old_price: float,
        new_price: float,
        link: str,
    ) -> bool:
        """Send one price-drop notification.

        Delivery failures are logged and reported as ``False``; they never
        propagate to the caller.

        Returns:
            True if the message was handed to the transport successfully
        """
        body = self.format_body(title, old_price, new_price, link)
        try:
            await asyncio.to_thread(self.transport.send, email, self.subject, body)
        except DeliveryError as e:
            logger.error(f"Price-drop mail to {email} failed: {e.reason}")
            return False

        logger.info(f"Price-drop mail sent to {email} for {link}")
        return True
