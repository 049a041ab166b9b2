"""In-memory email channel; keeps an outbox for assertions."""

from dataclasses import dataclass
from uuid import uuid4

from storefront.notifications.channel.email_port import EmailPort, EmailReceipt


@dataclass(frozen=True)
class OutboundEmail:
    message_id: str
    to: str
    subject: str
    body: str


class FakeEmailAdapter(EmailPort):
    def __init__(self) -> None:
        self.outbox: list[OutboundEmail] = []
        self._rejection: str | None = None
        self._transport_error: str | None = None

    def reject(self, reason: str = "Mailbox unavailable") -> None:
        """Answer later sends with an undelivered receipt."""
        self._rejection = reason

    def disconnect(self, reason: str = "SMTP connection refused") -> None:
        """Make later sends raise ConnectionError."""
        self._transport_error = reason

    def send(self, to: str, subject: str, body: str) -> EmailReceipt:
        if self._transport_error:
            raise ConnectionError(self._transport_error)
        if self._rejection:
            return EmailReceipt(delivered=False, error=self._rejection)

        message = OutboundEmail(message_id=f"email-{uuid4().hex[:12]}", to=to, subject=subject, body=body)
        self.outbox.append(message)
        return EmailReceipt(delivered=True, message_id=message.message_id)
