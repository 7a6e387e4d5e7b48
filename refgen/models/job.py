import asyncio
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, PrivateAttr
from refgen.core.exceptions import InvalidJobTransition
from refgen.schemas.generation import DetailedSettings


class GenerationState(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATES = frozenset({GenerationState.COMPLETED, GenerationState.FAILED})

ALLOWED_TRANSITIONS = {
    GenerationState.IDLE: frozenset({GenerationState.GENERATING}),
    GenerationState.GENERATING: frozenset({GenerationState.COMPLETED, GenerationState.FAILED}),
    GenerationState.COMPLETED: frozenset(),
    GenerationState.FAILED: frozenset(),
}


class GenerationJob(BaseModel):
    """One tracked generation request.

    The job owns the handles of the timers driving it: the progress ticker
    task while it is generating and the delayed removal from the active
    registry once it is terminal.
    """

    id: str
    prompt: str
    settings: DetailedSettings
    state: GenerationState = GenerationState.IDLE
    progress: Optional[float] = None
    start_time: float
    estimated_duration_ms: int
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    _progress_task: Optional[asyncio.Task] = PrivateAttr(default=None)
    _cleanup_handle: Optional[asyncio.TimerHandle] = PrivateAttr(default=None)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def transition_to(self, target: GenerationState) -> None:
        if target not in ALLOWED_TRANSITIONS[self.state]:
            raise InvalidJobTransition(self.id, self.state.value, target.value)
        self.state = target

    def update_progress(self, value: float) -> None:
        # ticks arriving after a terminal snap are dropped
        if self.state != GenerationState.GENERATING:
            return
        value = max(0.0, min(100.0, value))
        if self.progress is None or value > self.progress:
            self.progress = value

    def __str__(self):
        return f"Job {self.id} - {self.state.value}"
