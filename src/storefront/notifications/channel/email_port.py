"""Outbound email contract used by order notifications."""

from abc import ABC, abstractmethod

SENT = "sent"
FAILED = "failed"


class EmailSender(ABC):
    """Delivers one message per call.

    Adapters report delivery problems in the returned mapping
    (``{"message_id", "status", "error"}``) instead of raising; ``status``
    is ``SENT`` or ``FAILED``.
    """

    @abstractmethod
    def send(self, to: str, subject: str, body: str, html_body: str | None = None) -> dict: ...
