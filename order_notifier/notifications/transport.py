"""SMTP transport for rendered notifications.

Thin wrapper around smtplib with implicit TLS / STARTTLS support,
authentication and connection cleanup. Each send opens its own connection,
so a transport holds no state between calls.
"""

import logging
import smtplib
import ssl
from contextlib import contextmanager
from email.message import EmailMessage
from email.utils import make_msgid, parseaddr
from typing import Callable, Iterator, Optional, Protocol

from order_notifier.config.providers import ProviderConfig

from .models import RenderedMessage, TransportError

logger = logging.getLogger(__name__)


class TransportHandle(Protocol):
    """Anything able to send one rendered message."""

    def send(self, message: RenderedMessage) -> str:
        """Send ``message`` and return its message id.

        Raises:
            TransportError: If the message could not be delivered
        """
        ...


class SMTPConnector:
    """Opens authenticated SMTP sessions for a provider.

    The smtplib classes are injectable so tests can substitute mocks.
    """

    def __init__(
        self,
        smtp_factory: Optional[Callable] = None,
        smtp_ssl_factory: Optional[Callable] = None,
    ):
        self.smtp_factory = smtp_factory or smtplib.SMTP
        self.smtp_ssl_factory = smtp_ssl_factory or smtplib.SMTP_SSL

    @contextmanager
    def session(self, config: ProviderConfig) -> Iterator[smtplib.SMTP]:
        """Yield a connected, authenticated SMTP client and always close it.

        Raises:
            TransportError: On any SMTP or network failure, including ones
                raised by the caller while the session is open
        """
        smtp = None
        try:
            if config.secure:
                logger.debug(f"Connecting to {config.host}:{config.port} with implicit TLS")
                smtp = self.smtp_ssl_factory(
                    config.host,
                    config.port,
                    timeout=config.timeout,
                    context=ssl.create_default_context(),
                )
            else:
                logger.debug(f"Connecting to {config.host}:{config.port}")
                smtp = self.smtp_factory(config.host, config.port, timeout=config.timeout)
                if config.starttls:
                    smtp.starttls(context=ssl.create_default_context())

            smtp.login(config.username, config.password.get_secret_value())
            yield smtp

        except smtplib.SMTPException as e:
            raise TransportError(f"SMTP error via {config.key}: {e}") from e
        except OSError as e:
            raise TransportError(f"Network error connecting to {config.host}:{config.port}: {e}") from e
        finally:
            if smtp is not None:
                try:
                    smtp.quit()
                except (smtplib.SMTPException, OSError) as e:
                    logger.warning(f"Error closing SMTP connection: {e}")


def build_email_message(message: RenderedMessage, message_id: str) -> EmailMessage:
    """Convert a RenderedMessage into an EmailMessage with an HTML body."""
    email = EmailMessage()
    email["Subject"] = message.subject
    email["From"] = message.sender
    email["To"] = message.to
    email["Message-ID"] = message_id
    email.set_content(message.html, subtype="html")
    return email


class SMTPTransport:
    """TransportHandle delivering through one configured SMTP provider."""

    def __init__(self, config: ProviderConfig, connector: Optional[SMTPConnector] = None):
        self.config = config
        self.connector = connector or SMTPConnector()

    def send(self, message: RenderedMessage) -> str:
        _, sender_address = parseaddr(message.sender)
        domain = sender_address.rpartition("@")[2] or None
        message_id = make_msgid(domain=domain)

        with self.connector.session(self.config) as smtp:
            smtp.send_message(build_email_message(message, message_id))

        logger.debug(f"Message {message_id} accepted by {self.config.key} for {message.to}")
        return message_id
