"""User-facing notices (the alert() of the browser client)."""

from typing import Optional
import logging

logger = logging.getLogger(__name__)


class NoticeBoard:
    """
    Holds the single most recent notice.

    A new notice replaces the previous one; notices are never queued or
    batched. The server hands the notice to the page with the response of
    the command that raised it.
    """

    def __init__(self) -> None:
        self.last: Optional[str] = None

    def post(self, message: str) -> None:
        logger.info(f"📢 {message}")
        self.last = message

    def take(self) -> Optional[str]:
        """Return the pending notice and clear it."""
        message, self.last = self.last, None
        return message
