from typing import Protocol


class Notifier(Protocol):
    def notify(self, to: str, subject: str, html: str) -> None:
        """Best-effort delivery. Never raises; failures are only logged."""
        ...
