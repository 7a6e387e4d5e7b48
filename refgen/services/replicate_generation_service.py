import io
import replicate
import logging
from datetime import datetime, timezone
from collections import defaultdict
from typing import Any, Dict, List, Sequence
from uuid import uuid4
from refgen.core.config import settings
from refgen.core.exceptions import GenerationServiceError
from refgen.schemas.generation import GenerateRequest, GeneratedReference
from refgen.services.attachment_store import AttachmentFile
from refgen.services.generation_service import GenerationService

logger = logging.getLogger(__name__)


def enhance_prompt(request: GenerateRequest) -> str:
    tags = request.tags
    tag_text = ", ".join(
        value for value in (
            f"{tags.style} style" if tags.style else None,
            f"{tags.pose} pose" if tags.pose else None,
            f"{tags.camera} shot" if tags.camera else None,
            f"{tags.lighting} lighting" if tags.lighting else None,
        ) if value
    )
    return f"{request.base_prompt}, {tag_text}" if tag_text else request.base_prompt


class ReplicateGenerationService(GenerationService):
    """Runs generation directly against a Replicate model."""

    def __init__(self, model: str = None):
        self.client = replicate.Client(api_token=settings.replicate_api_token)
        self.model = model or settings.replicate_model
        self.generated: Dict[str, List[GeneratedReference]] = defaultdict(list)
    
    async def generate(self, project_id: str, request: GenerateRequest) -> List[GeneratedReference]:
        return await self._run(project_id, request, self._input_params(request))

    async def generate_from_images(
        self,
        project_id: str,
        request: GenerateRequest,
        files: Sequence[AttachmentFile],
    ) -> List[GeneratedReference]:
        input_params = self._input_params(request)
        if files:
            # the models accept a single guide image
            input_params["image"] = io.BytesIO(files[0].content)
        return await self._run(project_id, request, input_params)

    async def list_references(self, project_id: str) -> List[GeneratedReference]:
        # Replicate keeps no per-project listing, only what this process generated
        return list(self.generated.get(project_id, []))

    def _input_params(self, request: GenerateRequest) -> Dict[str, Any]:
        input_params = {
            "prompt": enhance_prompt(request),
            "num_outputs": request.count,
            "aspect_ratio": request.aspect_ratio,
        }
        if request.negative_prompt:
            input_params["negative_prompt"] = request.negative_prompt
        return input_params

    async def _run(self, project_id: str, request: GenerateRequest, input_params: Dict[str, Any]) -> List[GeneratedReference]:
        try:
            logger.info(f"Generating media with model {self.model} for project {project_id}: {input_params.get('prompt')}")
            
            output = await self.client.async_run(self.model, input=input_params)
            
            if isinstance(output, list):
                urls = [str(item) for item in output]
            else:
                urls = [str(output)]
            
            if not urls:
                raise GenerationServiceError("No media URLs returned from Replicate")
            
            logger.info(f"Successfully generated {len(urls)} media files")
        except GenerationServiceError:
            raise
        except Exception as e:
            logger.error(f"Error generating media with Replicate: {str(e)}")
            raise GenerationServiceError(str(e)) from e

        created_at = datetime.now(timezone.utc).isoformat()
        enhanced = input_params["prompt"]
        references = [
            GeneratedReference(
                id=str(uuid4()),
                image_url=url,
                image_path=url,
                base_prompt=request.base_prompt,
                enhanced_prompt=enhanced,
                tags=request.tags.model_dump(exclude_none=True),
                created_at=created_at,
            )
            for url in urls
        ]
        self.generated[project_id].extend(references)
        return references
