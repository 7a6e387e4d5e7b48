import logging
from refgen.core.config import settings
from refgen.services.generation_service import GenerationService
from refgen.services.backend_generation_service import BackendGenerationService
from refgen.services.replicate_generation_service import ReplicateGenerationService
from refgen.services.fake_generation_service import FakeGenerationService

logger = logging.getLogger(__name__)


class GenerationServiceFactory:
    """Factory for creating generation service instances."""
    
    _instance = None
    
    @classmethod
    def get_instance(cls) -> GenerationService:
        """
        Get the generation service matching the configured provider.
        
        Returns:
            GenerationService instance based on the configured provider
        """
        if cls._instance is None:
            provider = settings.generation_provider.lower()
            
            if provider == "backend":
                logger.info("Creating BackendGenerationService instance")
                cls._instance = BackendGenerationService()
            elif provider == "replicate":
                logger.info("Creating ReplicateGenerationService instance")
                cls._instance = ReplicateGenerationService()
            elif provider == "fake":
                logger.info("Creating FakeGenerationService instance")
                cls._instance = FakeGenerationService()
            else:
                logger.warning(f"Unknown generation provider '{provider}', defaulting to BackendGenerationService")
                cls._instance = BackendGenerationService()
        
        return cls._instance
    
    @classmethod
    async def close_instance(cls):
        """Close and drop the current instance, if one was created."""
        if cls._instance is not None:
            await cls._instance.aclose()
            cls._instance = None
    
    @classmethod
    def reset_instance(cls):
        """Reset the singleton instance. Useful for testing."""
        cls._instance = None


def get_generation_service() -> GenerationService:
    """Convenience function to get the generation service instance."""
    return GenerationServiceFactory.get_instance()
