import time
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class MessageKind(str, Enum):
    PROMPT = "prompt"
    RESPONSE = "response"


class Message(BaseModel):
    id: int
    kind: MessageKind
    text: Optional[str] = None
    images: Optional[List[str]] = None
    aspect_ratio: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_error(self) -> bool:
        return "error" in self.metadata

    @property
    def is_cancellation(self) -> bool:
        return bool(self.metadata.get("cancelled"))


def now_ms() -> int:
    return int(time.time() * 1000)
