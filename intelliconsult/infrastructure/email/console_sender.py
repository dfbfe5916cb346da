import logging

from ...application.ports.email_sender import EmailSender

logger = logging.getLogger(__name__)


class ConsoleEmailSender(EmailSender):
    """Development sender: writes the message to the log instead of delivering it."""

    def send(self, to: str, subject: str, html: str) -> None:
        logger.info(f"EMAIL to={to} subject={subject!r}\n{html}")
