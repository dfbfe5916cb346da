import logging
from typing import Optional
from fastapi import BackgroundTasks

from ...application.ports.email_sender import EmailSender
from ...application.ports.notifier import Notifier
from ...utils import hash_email

logger = logging.getLogger(__name__)


class EmailNotifier(Notifier):
    """Runs deliveries after the response is sent when background tasks are available."""

    def __init__(self, sender: EmailSender, background_tasks: Optional[BackgroundTasks] = None) -> None:
        self.sender = sender
        self.background_tasks = background_tasks

    def notify(self, to: str, subject: str, html: str) -> None:
        if self.background_tasks is not None:
            self.background_tasks.add_task(self._deliver, to, subject, html)
        else:
            self._deliver(to, subject, html)

    def _deliver(self, to: str, subject: str, html: str) -> None:
        try:
            self.sender.send(to, subject, html)
        except Exception as e:
            logger.error(f"Notification '{subject}' to {hash_email(to)[:12]} failed: {e}")
