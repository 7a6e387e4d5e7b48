"""
Conversation log and generation statistics.

The conversation is the append-only record shown in the chat panel. A second
append-only history sequence keeps successful prompt/response pairs and
survives a plain ``clear()``.
"""

import logging
import math
from typing import Any, Dict, List, Optional
from pydantic import BaseModel
from refgen.models.message import Message, MessageKind, now_ms

logger = logging.getLogger(__name__)


class GenerationStats(BaseModel):
    total_generations: int
    total_images: int
    avg_generation_time_seconds: int
    current_queue_depth: int


class ConversationImage(BaseModel):
    src: str
    aspect_ratio: str
    message_id: int
    timestamp: int
    settings: Optional[Dict[str, Any]] = None
    index: int


class ConversationLog:
    def __init__(self):
        self._messages: List[Message] = []
        self._history: List[Message] = []
        self._last_id = 0

    @property
    def messages(self) -> List[Message]:
        return list(self._messages)

    @property
    def history(self) -> List[Message]:
        return list(self._history)

    def next_id(self) -> int:
        self._last_id = max(now_ms(), self._last_id + 1)
        return self._last_id

    def append(self, message: Message) -> Message:
        self._messages.append(message)
        return message

    def record_history(self, *messages: Message) -> None:
        self._history.extend(messages)

    def find_prompt(self, message_id: int) -> Optional[Message]:
        for message in reversed(self._messages):
            if message.id == message_id and message.kind == MessageKind.PROMPT:
                return message
        return None

    def clear(self, clear_history: bool = False) -> None:
        self._messages = []
        if clear_history:
            self._history = []
        logger.debug(f"Conversation cleared (history cleared: {clear_history})")

    def all_images(self, default_aspect_ratio: str = "1:1") -> List[ConversationImage]:
        images = []
        for message in self._messages:
            for index, src in enumerate(message.images or []):
                images.append(ConversationImage(
                    src=src,
                    aspect_ratio=message.aspect_ratio or default_aspect_ratio,
                    message_id=message.id,
                    timestamp=message.metadata.get("timestamp", message.id),
                    settings=message.metadata.get("settings"),
                    index=index,
                ))
        return images

    def stats(self, current_queue_depth: int) -> GenerationStats:
        total_generations = sum(
            1 for m in self._messages if m.kind == MessageKind.RESPONSE and m.images
        )
        total_images = sum(len(m.images or []) for m in self._messages)

        timings = [
            m.metadata["generation_time_ms"]
            for m in self._history
            if m.metadata.get("generation_time_ms")
        ]
        avg_ms = sum(timings) / max(1, len(timings))

        return GenerationStats(
            total_generations=total_generations,
            total_images=total_images,
            avg_generation_time_seconds=math.floor(avg_ms / 1000 + 0.5),
            current_queue_depth=current_queue_depth,
        )
