import asyncio
import logging
from datetime import datetime, timezone
from collections import defaultdict
from typing import Dict, List, Sequence
from uuid import uuid4
from refgen.core.config import settings
from refgen.schemas.generation import GenerateRequest, GeneratedReference
from refgen.services.attachment_store import AttachmentFile
from refgen.services.generation_service import GenerationService

logger = logging.getLogger(__name__)


class FakeGenerationService(GenerationService):
    """Fake implementation of GenerationService for testing and development."""

    def __init__(self, latency: float = None, base_url: str = "http://app:8000"):
        self.latency = settings.fake_generation_latency if latency is None else latency
        self.base_url = base_url
        self.calls: List[tuple] = []
        self.generated: Dict[str, List[GeneratedReference]] = defaultdict(list)
    
    async def generate(self, project_id: str, request: GenerateRequest) -> List[GeneratedReference]:
        self.calls.append(("generate", project_id, request, ()))
        return await self._fake_references(project_id, request)

    async def generate_from_images(
        self,
        project_id: str,
        request: GenerateRequest,
        files: Sequence[AttachmentFile],
    ) -> List[GeneratedReference]:
        self.calls.append(("generate_from_images", project_id, request, tuple(files)))
        return await self._fake_references(project_id, request)

    async def list_references(self, project_id: str) -> List[GeneratedReference]:
        return list(self.generated.get(project_id, []))

    async def _fake_references(self, project_id: str, request: GenerateRequest) -> List[GeneratedReference]:
        """
        Generate fake references for testing purposes.
        
        Returns URLs cycling through local static fake images.
        """
        logger.info(f"Generating fake references for project {project_id}, prompt: {request.base_prompt}, count: {request.count}")
        
        if self.latency > 0:
            await asyncio.sleep(self.latency)
        
        fake_image_files = ["fake.jpg", "fake1.jpg", "fake2.jpg"]
        created_at = datetime.now(timezone.utc).isoformat()
        
        references = []
        for i in range(request.count):
            image_file = fake_image_files[i % len(fake_image_files)]
            references.append(GeneratedReference(
                id=str(uuid4()),
                image_url=f"{self.base_url}/static/{image_file}",
                image_path=f"projects/{project_id}/references/{image_file}",
                base_prompt=request.base_prompt,
                enhanced_prompt=request.base_prompt,
                tags=request.tags.model_dump(exclude_none=True),
                created_at=created_at,
            ))
        
        self.generated[project_id].extend(references)
        logger.info(f"Generated {len(references)} fake references pointing to local static images")
        return references
