import logging
from typing import Callable, Dict, Optional
from uuid import uuid4
from refgen.core.exceptions import SessionNotFound
from refgen.models.session import SessionState
from refgen.services.attachment_store import AttachmentFile, AttachmentStore, BlobArena
from refgen.services.generation_service import GenerationService
from refgen.services.orchestrator import JobOrchestrator

logger = logging.getLogger(__name__)


class SessionManager:
    """In-memory registry of chat sessions sharing one blob arena."""

    def __init__(self, service_provider: Callable[[], GenerationService]):
        self.service_provider = service_provider
        self.arena = BlobArena()
        self._sessions: Dict[str, JobOrchestrator] = {}

    def create(self, project_id: Optional[str] = None) -> str:
        session_id = uuid4().hex
        state = SessionState(project_id=project_id, attachments=AttachmentStore(self.arena))
        self._sessions[session_id] = JobOrchestrator(self.service_provider(), state=state)
        logger.info(f"Created session {session_id} for project {project_id}")
        return session_id

    def get(self, session_id: str) -> JobOrchestrator:
        orchestrator = self._sessions.get(session_id)
        if orchestrator is None:
            raise SessionNotFound(session_id)
        return orchestrator

    def get_blob(self, handle: str) -> Optional[AttachmentFile]:
        return self.arena.get(handle)

    async def close_session(self, session_id: str) -> None:
        orchestrator = self._sessions.pop(session_id, None)
        if orchestrator is None:
            raise SessionNotFound(session_id)
        orchestrator.clear_attachments()
        await orchestrator.aclose()
        released = orchestrator.state.attachments.release_archived()
        logger.info(f"Closed session {session_id}, released {released} archived attachments")

    async def close(self) -> None:
        for session_id in list(self._sessions):
            await self.close_session(session_id)
