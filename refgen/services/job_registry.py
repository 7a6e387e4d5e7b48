import asyncio
import logging
from typing import Dict, List, Optional
from refgen.models.job import GenerationJob, GenerationState

logger = logging.getLogger(__name__)


class JobRegistry:
    """Active jobs, in submission order, including terminal jobs awaiting removal."""

    def __init__(self):
        self._jobs: Dict[str, GenerationJob] = {}

    def add(self, job: GenerationJob) -> None:
        self._jobs[job.id] = job

    def get(self, job_id: str) -> Optional[GenerationJob]:
        return self._jobs.get(job_id)

    def remove(self, job_id: str) -> None:
        job = self._jobs.pop(job_id, None)
        if job is not None:
            job._cleanup_handle = None
            logger.debug(f"Removed {job} from the generation queue")

    @property
    def jobs(self) -> List[GenerationJob]:
        return list(self._jobs.values())

    def count(self, state: GenerationState) -> int:
        return sum(1 for job in self._jobs.values() if job.state == state)

    def schedule_removal(self, job: GenerationJob, delay: float) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        job._cleanup_handle = loop.call_later(delay, self.remove, job.id)
        return job._cleanup_handle

    def close(self) -> None:
        for job in self._jobs.values():
            if job._cleanup_handle is not None:
                job._cleanup_handle.cancel()
                job._cleanup_handle = None
        self._jobs.clear()

    def __contains__(self, job_id: str) -> bool:
        return job_id in self._jobs

    def __len__(self) -> int:
        return len(self._jobs)
