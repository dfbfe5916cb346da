from typing import Protocol


class EmailSender(Protocol):
    def send(self, to: str, subject: str, html: str) -> None:
        """Deliver one message; raises ExternalServiceFailure when delivery fails."""
        ...
