from abc import ABC, abstractmethod
from typing import List, Sequence
from refgen.schemas.generation import GenerateRequest, GeneratedReference
from refgen.services.attachment_store import AttachmentFile


class GenerationService(ABC):
    """Abstract interface for reference image generation backends."""
    
    @abstractmethod
    async def generate(self, project_id: str, request: GenerateRequest) -> List[GeneratedReference]:
        """
        Generate reference images from text.
        
        Args:
            project_id: Project the references belong to
            request: Prompt, tags, count and aspect ratio
            
        Returns:
            The generated references, one per image
        """
        pass

    @abstractmethod
    async def generate_from_images(
        self,
        project_id: str,
        request: GenerateRequest,
        files: Sequence[AttachmentFile],
    ) -> List[GeneratedReference]:
        """
        Generate reference images guided by attached source images.
        
        Args:
            project_id: Project the references belong to
            request: Prompt, tags, count and aspect ratio
            files: Image attachments uploaded with the request
            
        Returns:
            The generated references, one per image
        """
        pass

    @abstractmethod
    async def list_references(self, project_id: str) -> List[GeneratedReference]:
        """List the references already generated for a project."""
        pass

    async def aclose(self) -> None:
        """Release any network resources held by the service."""
        return None
