import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr

from ...application.ports.email_sender import EmailSender
from ...exceptions import ExternalServiceFailure
from ...utils import hash_email

logger = logging.getLogger(__name__)


class SmtpEmailSender(EmailSender):
    """Delivers HTML mail through an SMTP relay (SendGrid's by default)."""

    def __init__(self, host: str, port: int, username: str, password: str,
                 from_email: str, from_name: str = "", use_ssl: bool = True, timeout: int = 10) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email
        self.from_name = from_name
        self.use_ssl = use_ssl
        self.timeout = timeout

    def _build(self, to: str, subject: str, html: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = formataddr((self.from_name, self.from_email)) if self.from_name else self.from_email
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content("This message requires an HTML capable email client.")
        msg.add_alternative(html, subtype="html")
        return msg

    def send(self, to: str, subject: str, html: str) -> None:
        if not self.host or not self.password:
            raise ExternalServiceFailure("Email service is not configured.")
        message = self._build(to, subject, html)
        try:
            if self.use_ssl:
                with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout) as server:
                    server.login(self.username, self.password)
                    server.send_message(message)
            else:
                with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                    server.starttls()
                    server.login(self.username, self.password)
                    server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP delivery to {hash_email(to)[:12]} failed: {e}")
            raise ExternalServiceFailure("Could not send email.")
