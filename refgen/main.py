from fastapi import FastAPI
from contextlib import asynccontextmanager
from refgen.core.logging import setup_logging
from refgen.api.routes import router
from refgen.services.generation_service_factory import GenerationServiceFactory, get_generation_service
from refgen.services.preferences import PreferenceStore
from refgen.services.session_manager import SessionManager
import logging

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up application")
    app.state.session_manager = SessionManager(get_generation_service)
    app.state.preference_store = PreferenceStore()
    yield
    logger.info("Shutting down application")
    await app.state.session_manager.close()
    await GenerationServiceFactory.close_instance()


app = FastAPI(
    title="Reference Generation Service",
    description="Chat-style reference image generation sessions with tracked, cancellable jobs",
    version="1.0.0",
    lifespan=lifespan
)

app.include_router(router, prefix="/api/v1")


@app.get("/")
async def root():
    return {"message": "Reference Generation Service", "status": "running"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
