import httpx
import logging
from typing import List, Optional, Sequence
from pydantic import ValidationError
from refgen.core.config import settings
from refgen.core.exceptions import GenerationServiceError
from refgen.schemas.generation import GenerateRequest, GeneratedReference
from refgen.services.attachment_store import AttachmentFile
from refgen.services.generation_service import GenerationService

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1/reference-generation/projects"


class BackendGenerationService(GenerationService):
    """Client for the dashboard backend's reference-generation endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {}
        token = api_token if api_token is not None else settings.backend_api_token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.client = httpx.AsyncClient(
            base_url=base_url or settings.backend_base_url,
            headers=headers,
            timeout=timeout if timeout is not None else settings.request_timeout,
            transport=transport,
        )

    async def generate(self, project_id: str, request: GenerateRequest) -> List[GeneratedReference]:
        logger.info(f"Generating {request.count} references for project {project_id}")
        response = await self._send(
            "POST",
            f"{API_PREFIX}/{project_id}/generate",
            json=request.model_dump(exclude_none=True),
        )
        return self._parse_references(response)

    async def generate_from_images(
        self,
        project_id: str,
        request: GenerateRequest,
        files: Sequence[AttachmentFile],
    ) -> List[GeneratedReference]:
        logger.info(
            f"Generating {request.count} references for project {project_id} from {len(files)} images"
        )
        multipart = [
            ("images", (f.filename, f.content, f.content_type)) for f in files
        ]
        response = await self._send(
            "POST",
            f"{API_PREFIX}/{project_id}/generate-from-images",
            data={"request": request.model_dump_json(exclude_none=True)},
            files=multipart,
        )
        return self._parse_references(response)

    async def list_references(self, project_id: str) -> List[GeneratedReference]:
        response = await self._send("GET", f"{API_PREFIX}/{project_id}/references")
        return self._parse_references(response)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self.client.request(method, url, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            logger.error(f"Generation backend returned {e.response.status_code} for {url}")
            raise GenerationServiceError(
                f"Backend returned HTTP {e.response.status_code}: {e.response.text[:200]}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Error calling generation backend {url}: {str(e)}")
            raise GenerationServiceError(f"Request to generation backend failed: {str(e)}") from e

    def _parse_references(self, response: httpx.Response) -> List[GeneratedReference]:
        try:
            payload = response.json()
            if not isinstance(payload, list):
                raise GenerationServiceError("Expected a list of generated references")
            return [GeneratedReference.model_validate(item) for item in payload]
        except (ValueError, ValidationError) as e:
            raise GenerationServiceError(f"Malformed generation response: {str(e)}") from e
