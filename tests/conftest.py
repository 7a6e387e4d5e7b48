import asyncio
from typing import List, Optional, Sequence

import pytest

from refgen.models.session import SessionState
from refgen.schemas.generation import GenerateRequest, GeneratedReference
from refgen.services.attachment_store import AttachmentFile
from refgen.services.generation_service import GenerationService
from refgen.services.orchestrator import JobOrchestrator


def make_references(request: GenerateRequest) -> List[GeneratedReference]:
    return [
        GeneratedReference(
            id=f"ref-{i}",
            image_url=f"https://cdn.example.com/ref-{i}.png",
            image_path=f"references/ref-{i}.png",
            base_prompt=request.base_prompt,
            enhanced_prompt=f"{request.base_prompt} (enhanced)",
        )
        for i in range(request.count)
    ]


class GatedGenerationService(GenerationService):
    """Generation service whose calls block until the test opens the gate."""

    def __init__(self, error: Optional[Exception] = None):
        self.gate = asyncio.Event()
        self.error = error
        self.calls = []

    async def generate(self, project_id: str, request: GenerateRequest) -> List[GeneratedReference]:
        self.calls.append(("generate", project_id, request, ()))
        return await self._respond(request)

    async def generate_from_images(
        self,
        project_id: str,
        request: GenerateRequest,
        files: Sequence[AttachmentFile],
    ) -> List[GeneratedReference]:
        self.calls.append(("generate_from_images", project_id, request, tuple(files)))
        return await self._respond(request)

    async def list_references(self, project_id: str) -> List[GeneratedReference]:
        return []

    async def _respond(self, request: GenerateRequest) -> List[GeneratedReference]:
        await self.gate.wait()
        if self.error is not None:
            raise self.error
        return make_references(request)


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


async def settle_loop(rounds: int = 5) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def service():
    return GatedGenerationService()


@pytest.fixture
def make_orchestrator():
    created = []

    def _make(service: GenerationService, project_id: Optional[str] = "project-1", **kwargs) -> JobOrchestrator:
        kwargs.setdefault("progress_interval", 0.01)
        kwargs.setdefault("cleanup_delay", 0.05)
        orchestrator = JobOrchestrator(service, state=SessionState(project_id=project_id), **kwargs)
        created.append(orchestrator)
        return orchestrator

    yield _make

    for orchestrator in created:
        orchestrator.state.generation_queue.close()


@pytest.fixture
def png_files():
    return [
        AttachmentFile(filename="front.png", content=b"\x89PNG front", content_type="image/png"),
        AttachmentFile(filename="side.png", content=b"\x89PNG side", content_type="image/png"),
    ]
