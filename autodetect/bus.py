"""Message channels.

A ``Bus`` is an ordered queue of ``Message`` values. The prober attaches a
private bus to each candidate it trial-activates and drains it on failure;
nothing outside the probe ever sees that bus. A bus created with a
``sync_handler`` does not queue at all: every posted message is handed to the
handler immediately, which is how a bound component's errors reach the
facade's own message log.
"""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .errors import ErrorDomain

logger = logging.getLogger("autodetect.bus")


class MessageType(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class Message:
    type: MessageType
    source: str
    domain: ErrorDomain
    code: str
    text: str
    debug: str = ""

    def __str__(self) -> str:
        detail = f" ({self.debug})" if self.debug else ""
        return f"{self.type.value} from {self.source}: {self.text}{detail}"


class Bus:
    def __init__(self, sync_handler: Callable[[Message], None] | None = None):
        self._queue: deque[Message] = deque()
        self._sync_handler = sync_handler

    def post(self, message: Message) -> None:
        if self._sync_handler is not None:
            self._sync_handler(message)
            return
        logger.debug("Queued %s", message)
        self._queue.append(message)

    def pop(self, message_type: MessageType | None = None) -> Message | None:
        """
        Remove and return the oldest queued message.

        With ``message_type`` set, messages of other types are skipped and
        discarded, and the oldest matching one is returned.
        """
        while self._queue:
            message = self._queue.popleft()
            if message_type is None or message.type is message_type:
                return message
        return None

    def drain(self, message_type: MessageType | None = None) -> list[Message]:
        """Pop every (matching) message, oldest first."""
        drained = []
        while True:
            message = self.pop(message_type)
            if message is None:
                return drained
            drained.append(message)

    def __len__(self) -> int:
        return len(self._queue)
