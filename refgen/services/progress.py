import asyncio
import time
from typing import Callable
from refgen.models.job import GenerationJob, GenerationState

MAX_ESTIMATED_PROGRESS = 95.0


def estimate_progress(elapsed_ms: float, estimated_duration_ms: float) -> float:
    if estimated_duration_ms <= 0:
        return MAX_ESTIMATED_PROGRESS
    return min(MAX_ESTIMATED_PROGRESS, max(0.0, elapsed_ms / estimated_duration_ms * 100))


class ProgressEstimator:
    """Time-based progress heuristic ticking while a job is generating."""

    def __init__(self, interval: float = 1.0, clock: Callable[[], float] = time.monotonic):
        self.interval = interval
        self.clock = clock

    def tick(self, job: GenerationJob) -> None:
        elapsed_ms = (self.clock() - job.start_time) * 1000
        job.update_progress(estimate_progress(elapsed_ms, job.estimated_duration_ms))

    def start(self, job: GenerationJob) -> asyncio.Task:
        job._progress_task = asyncio.ensure_future(self._run(job))
        return job._progress_task

    def stop(self, job: GenerationJob) -> None:
        task = job._progress_task
        if task is not None:
            task.cancel()
            job._progress_task = None

    async def _run(self, job: GenerationJob) -> None:
        while job.state == GenerationState.GENERATING:
            await asyncio.sleep(self.interval)
            self.tick(job)
