"""Mail Adapter — outbound mail collaborator.

Invariants:
    - send() never blocks the event loop on network IO
    - Each call is one delivery attempt; no deduplication happens here

Design Decisions:
    - LoggingMailer is the default transport until SMTP credentials exist:
      the message is written to the log with the recipient as a structured field
"""

import logging

logger = logging.getLogger(__name__)


class LoggingMailer:
    """Mailer that records messages in the application log."""

    def __init__(self) -> None:
        self.sent_count = 0

    async def send(self, to: str, subject: str, body: str) -> None:
        self.sent_count += 1
        logger.info(
            f"Email to {to}: {subject}\n{body}",
            extra={"recipient": to},
        )


_mailer = LoggingMailer()


def get_mailer() -> LoggingMailer:
    """FastAPI dependency for the mail collaborator."""
    return _mailer
