import asyncio
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cancellation signal for one in-flight request."""

    def __init__(self, task: asyncio.Task):
        self.task = task
        self.cancelled = False

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        self.task.cancel()


class CancellationController:
    """Single slot holding the token of the one request allowed in flight."""

    def __init__(self):
        self._token: Optional[CancellationToken] = None

    @property
    def active(self) -> bool:
        return self._token is not None

    def bind(self, task: asyncio.Task) -> CancellationToken:
        self._token = CancellationToken(task)
        return self._token

    def cancel(self) -> bool:
        if self._token is None:
            return False
        logger.info("Cancelling in-flight generation request")
        self._token.cancel()
        return True

    def release(self, token: CancellationToken) -> None:
        if self._token is token:
            self._token = None
