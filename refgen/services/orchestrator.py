"""
Job orchestrator.

Drives one reference-generation session: guards and serializes submissions,
creates jobs, records the conversation, runs the generation call with
progress estimation and cancellation, and reconciles the outcome.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional
from refgen.core.config import settings as app_settings
from refgen.core.exceptions import GenerationCancelled
from refgen.models.job import GenerationJob, GenerationState
from refgen.models.message import Message, MessageKind, now_ms
from refgen.models.session import SessionState
from refgen.schemas.generation import DetailedSettings, GenerateRequest, GeneratedReference
from refgen.services.attachment_store import AttachmentFile
from refgen.services.cancellation import CancellationController, CancellationToken
from refgen.services.conversation import ConversationImage, GenerationStats
from refgen.services.generation_service import GenerationService
from refgen.services.job_factory import create_generation_job
from refgen.services.progress import ProgressEstimator
from refgen.services.prompt_builder import PromptValidation, build_prompt, validate_prompt
from refgen.services.selection_mapper import map_selections, remove_selection, toggle_selection

logger = logging.getLogger(__name__)

CANCELLED_TEXT = "生成がキャンセルされました。"
FAILURE_TEXT = "画像の生成に失敗しました。後でもう一度お試しください。"

REFERENCE_DETAIL_FIELDS = {"id", "image_url", "image_path", "base_prompt", "enhanced_prompt"}


class JobOrchestrator:
    def __init__(
        self,
        service: GenerationService,
        state: Optional[SessionState] = None,
        prompt_builder: Callable[[str, Mapping[str, str]], str] = build_prompt,
        prompt_validator: Callable[[str], PromptValidation] = validate_prompt,
        progress_interval: Optional[float] = None,
        cleanup_delay: Optional[float] = None,
        ms_per_image: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.service = service
        self.state = state if state is not None else SessionState()
        self.prompt_builder = prompt_builder
        self.prompt_validator = prompt_validator
        self.cleanup_delay = app_settings.job_cleanup_delay if cleanup_delay is None else cleanup_delay
        self.ms_per_image = ms_per_image
        self.clock = clock
        self.estimator = ProgressEstimator(
            interval=app_settings.progress_tick_interval if progress_interval is None else progress_interval,
            clock=clock,
        )
        self.cancellation = CancellationController()
        self._settle_task: Optional[asyncio.Task] = None

    # -- read side -------------------------------------------------------

    @property
    def is_loading(self) -> bool:
        return self.state.is_loading

    @property
    def conversation(self) -> List[Message]:
        return self.state.conversation.messages

    @property
    def generation_history(self) -> List[Message]:
        return self.state.conversation.history

    @property
    def generation_queue(self) -> List[GenerationJob]:
        return self.state.generation_queue.jobs

    @property
    def all_images(self) -> List[ConversationImage]:
        return self.state.conversation.all_images(self.state.detailed_settings.aspect_ratio)

    async def list_references(self) -> List[GeneratedReference]:
        if not self.state.project_id:
            return []
        return await self.service.list_references(self.state.project_id)

    def get_stats(self) -> GenerationStats:
        depth = self.state.generation_queue.count(GenerationState.GENERATING)
        return self.state.conversation.stats(current_queue_depth=depth)

    # -- submission ------------------------------------------------------

    def start(self, text: str) -> Optional[GenerationJob]:
        """
        Run the synchronous half of a submission.

        Returns the new job, or None when a guard refused the submission.
        The generation call itself is scheduled on the running loop.
        """
        state = self.state
        if not text.strip() or state.is_loading:
            return None

        if not state.project_id:
            logger.debug("Submission ignored: no project selected")
            return None

        validation = self.prompt_validator(text)
        if not validation.is_valid:
            logger.warning(f"Invalid prompt: {validation.suggestion}")
            return None

        selections = dict(state.structured_selections)
        full_prompt = self.prompt_builder(text, selections)

        job = create_generation_job(full_prompt, state.detailed_settings, self.clock, self.ms_per_image)
        state.generation_queue.add(job)

        handles, files = state.attachments.take_for_submission()
        prompt_message = self._prompt_message(text, full_prompt, job, handles)
        state.conversation.append(prompt_message)
        state.is_loading = True
        state.prompt = ""

        request = GenerateRequest(
            base_prompt=full_prompt,
            tags=map_selections(selections),
            count=job.settings.number_of_images,
            aspect_ratio=job.settings.aspect_ratio,
            negative_prompt=job.settings.negative_prompt,
        )

        call = None
        try:
            self.estimator.start(job)
            if files:
                call = self.service.generate_from_images(state.project_id, request, files)
            else:
                call = self.service.generate(state.project_id, request)
            call_task = asyncio.ensure_future(call)
        except Exception as e:
            if asyncio.iscoroutine(call):
                call.close()
            self._abort_start(job, e)
            raise
        token = self.cancellation.bind(call_task)

        logger.info(f"Started {job} with {request.count} images ({len(files)} attachments)")
        self._settle_task = asyncio.ensure_future(self._settle(job, prompt_message, call_task, token))
        return job

    async def submit(self, text: str) -> Optional[GenerationJob]:
        job = self.start(text)
        if job is not None:
            await self.wait()
        return job

    async def wait(self) -> None:
        """Wait until the in-flight generation, if any, has settled."""
        if self._settle_task is not None and not self._settle_task.done():
            await self._settle_task

    def cancel(self) -> bool:
        return self.cancellation.cancel()

    def start_regenerate(self, message_id: int) -> Optional[GenerationJob]:
        message = self.state.conversation.find_prompt(message_id)
        if message is None or not message.text:
            return None
        return self.start(message.text)

    async def regenerate(self, message_id: int) -> Optional[GenerationJob]:
        job = self.start_regenerate(message_id)
        if job is not None:
            await self.wait()
        return job

    def clear(self, clear_history: bool = False) -> None:
        self.state.conversation.clear(clear_history)
        self.state.prompt = ""
        self.cancel()

    # -- settlement ------------------------------------------------------

    async def _settle(
        self,
        job: GenerationJob,
        prompt_message: Message,
        call_task: asyncio.Task,
        token: CancellationToken,
    ) -> None:
        try:
            try:
                references = await call_task
            except asyncio.CancelledError:
                if token.cancelled:
                    raise GenerationCancelled() from None
                raise
            self._record_success(job, prompt_message, references)
        except GenerationCancelled:
            self._record_cancellation(job)
        except Exception as e:
            self._record_failure(job, e)
        finally:
            self.estimator.stop(job)
            if job.state == GenerationState.GENERATING:
                job.transition_to(GenerationState.FAILED)
            self.state.is_loading = False
            self.cancellation.release(token)
            self.state.generation_queue.schedule_removal(job, self.cleanup_delay)

    def _record_success(self, job: GenerationJob, prompt_message: Message, references: List[GeneratedReference]) -> None:
        generation_time_ms = int((self.clock() - job.start_time) * 1000)
        response = Message(
            id=self.state.conversation.next_id(),
            kind=MessageKind.RESPONSE,
            images=[ref.image_url for ref in references],
            aspect_ratio=job.settings.aspect_ratio,
            metadata={
                "job_id": job.id,
                "generation_time_ms": generation_time_ms,
                "settings": job.settings.model_dump(),
                "timestamp": now_ms(),
                "generated_references": [
                    ref.model_dump(include=REFERENCE_DETAIL_FIELDS) for ref in references
                ],
            },
        )
        self.state.conversation.append(response)
        self.state.conversation.record_history(prompt_message, response)

        job.update_progress(100.0)
        job.transition_to(GenerationState.COMPLETED)
        logger.info(f"Completed {job} with {len(references)} images in {generation_time_ms} ms")

    def _record_cancellation(self, job: GenerationJob) -> None:
        self.state.conversation.append(Message(
            id=self.state.conversation.next_id(),
            kind=MessageKind.RESPONSE,
            text=CANCELLED_TEXT,
            metadata={"job_id": job.id, "timestamp": now_ms(), "cancelled": True},
        ))
        job.transition_to(GenerationState.FAILED)
        logger.info(f"Generation cancelled for {job}")

    def _record_failure(self, job: GenerationJob, error: Exception) -> None:
        logger.error(f"Failed to generate images for job {job.id}: {str(error)}")
        self.state.conversation.append(Message(
            id=self.state.conversation.next_id(),
            kind=MessageKind.RESPONSE,
            text=FAILURE_TEXT,
            metadata={"job_id": job.id, "error": str(error), "timestamp": now_ms()},
        ))
        job.transition_to(GenerationState.FAILED)

    def _abort_start(self, job: GenerationJob, error: Exception) -> None:
        self.estimator.stop(job)
        self._record_failure(job, error)
        self.state.is_loading = False
        self.state.generation_queue.remove(job.id)

    def _prompt_message(self, text: str, full_prompt: str, job: GenerationJob, handles: List[str]) -> Message:
        return Message(
            id=self.state.conversation.next_id(),
            kind=MessageKind.PROMPT,
            text=text,
            images=handles or None,
            metadata={
                "full_prompt": full_prompt,
                "settings": job.settings.model_dump(),
                "job_id": job.id,
                "timestamp": now_ms(),
            },
        )

    # -- settings, selections, attachments -------------------------------

    def update_settings(self, **changes: Any) -> DetailedSettings:
        merged: Dict[str, Any] = {**self.state.detailed_settings.model_dump(), **changes}
        self.state.detailed_settings = DetailedSettings.model_validate(merged)
        return self.state.detailed_settings

    def set_project(self, project_id: Optional[str]) -> None:
        self.state.project_id = project_id

    def set_selections(self, selections: Mapping[str, str]) -> Dict[str, str]:
        self.state.structured_selections = {k: v for k, v in selections.items() if v}
        return self.state.structured_selections

    def select_option(self, category: str, option: str) -> Dict[str, str]:
        self.state.structured_selections = toggle_selection(self.state.structured_selections, category, option)
        return self.state.structured_selections

    def remove_selection(self, category: str) -> Dict[str, str]:
        self.state.structured_selections = remove_selection(self.state.structured_selections, category)
        return self.state.structured_selections

    def add_attachments(self, files: Iterable[AttachmentFile]) -> List[str]:
        return self.state.attachments.add(files)

    def remove_attachment(self, index: int) -> bool:
        return self.state.attachments.remove(index)

    def clear_attachments(self) -> None:
        self.state.attachments.clear()

    async def aclose(self) -> None:
        self.cancel()
        if self._settle_task is not None and not self._settle_task.done():
            try:
                await self._settle_task
            except asyncio.CancelledError:
                pass
        self.state.generation_queue.close()
