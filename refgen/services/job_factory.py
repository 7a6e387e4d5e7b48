import time
from typing import Callable
from uuid import uuid4
from refgen.core.config import settings as app_settings
from refgen.models.job import GenerationJob, GenerationState
from refgen.schemas.generation import DetailedSettings


def new_job_id() -> str:
    return f"job-{uuid4().hex[:12]}"


def estimate_duration_ms(number_of_images: int, ms_per_image: int = None) -> int:
    if ms_per_image is None:
        ms_per_image = app_settings.ms_per_image_estimate
    return number_of_images * ms_per_image


def create_generation_job(
    full_prompt: str,
    detailed_settings: DetailedSettings,
    clock: Callable[[], float] = time.monotonic,
    ms_per_image: int = None,
) -> GenerationJob:
    """Create a job already in the generating state from a settings snapshot."""
    snapshot = detailed_settings.model_copy(deep=True)
    job = GenerationJob(
        id=new_job_id(),
        prompt=full_prompt,
        settings=snapshot,
        start_time=clock(),
        estimated_duration_ms=estimate_duration_ms(snapshot.number_of_images, ms_per_image),
    )
    job.transition_to(GenerationState.GENERATING)
    return job
