"""Email channel port — how order notifications leave the storefront."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class EmailReceipt:
    """Outcome of one send. A rejected message carries the provider's reason."""

    delivered: bool
    message_id: str | None = None
    error: str | None = None


class EmailPort(ABC):
    @abstractmethod
    def send(self, to: str, subject: str, body: str) -> EmailReceipt:
        """Send a plain-text message. Transport failures may raise instead."""
