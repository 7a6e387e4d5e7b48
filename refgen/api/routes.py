from typing import List
from fastapi import APIRouter, Depends, File, HTTPException, Request, Response, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from refgen.core.exceptions import GenerationServiceError, SessionNotFound
from refgen.schemas.session import (
    AttachmentsResponse,
    CancelResponse,
    ImagesResponse,
    ProjectUpdateRequest,
    ReferencesResponse,
    ReviewModeRequest,
    ReviewModeResponse,
    SelectionToggleRequest,
    SessionCreateRequest,
    SessionCreateResponse,
    SessionStateResponse,
    SettingsUpdateRequest,
    StatsResponse,
    SubmitRequest,
    SubmitResponse,
)
from refgen.services.attachment_store import AttachmentFile
from refgen.services.orchestrator import JobOrchestrator
from refgen.services.preferences import PreferenceStore
from refgen.services.session_manager import SessionManager
import logging

logger = logging.getLogger(__name__)
router = APIRouter()


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def get_preference_store(request: Request) -> PreferenceStore:
    return request.app.state.preference_store


def get_orchestrator(session_id: str, manager: SessionManager = Depends(get_session_manager)) -> JobOrchestrator:
    try:
        return manager.get(session_id)
    except SessionNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session {session_id} not found"
        )


def _snapshot(session_id: str, orchestrator: JobOrchestrator) -> SessionStateResponse:
    state = orchestrator.state
    return SessionStateResponse(
        session_id=session_id,
        project_id=state.project_id,
        prompt=state.prompt,
        is_loading=state.is_loading,
        detailed_settings=state.detailed_settings.model_dump(),
        structured_selections=state.structured_selections,
        attachments=state.attachments.handles,
        conversation=orchestrator.conversation,
        generation_queue=orchestrator.generation_queue,
        generation_history=orchestrator.generation_history,
    )


@router.post("/sessions", response_model=SessionCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_session(request: SessionCreateRequest, manager: SessionManager = Depends(get_session_manager)):
    session_id = manager.create(project_id=request.project_id)
    return SessionCreateResponse(session_id=session_id, project_id=request.project_id)


@router.get("/sessions/{session_id}", response_model=SessionStateResponse)
async def get_session(session_id: str, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    return _snapshot(session_id, orchestrator)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: str, manager: SessionManager = Depends(get_session_manager)):
    try:
        await manager.close_session(session_id)
    except SessionNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session {session_id} not found"
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/sessions/{session_id}/project", response_model=SessionStateResponse)
async def set_project(session_id: str, request: ProjectUpdateRequest, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    orchestrator.set_project(request.project_id)
    return _snapshot(session_id, orchestrator)


@router.post("/sessions/{session_id}/submit", response_model=SubmitResponse)
async def submit_prompt(session_id: str, request: SubmitRequest, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    try:
        job = orchestrator.start(request.text)
    except Exception as e:
        logger.error(f"Error starting generation for session {session_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to start generation: {str(e)}"
        )

    if job is None:
        return SubmitResponse(accepted=False, message="Submission ignored")

    logger.info(f"Session {session_id} started {job}")
    return SubmitResponse(accepted=True, job=job, message="Generation started")


@router.post("/sessions/{session_id}/cancel", response_model=CancelResponse)
async def cancel_generation(orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    return CancelResponse(cancelled=orchestrator.cancel())


@router.post("/sessions/{session_id}/regenerate/{message_id}", response_model=SubmitResponse)
async def regenerate(session_id: str, message_id: int, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    job = orchestrator.start_regenerate(message_id)
    if job is None:
        return SubmitResponse(accepted=False, message="Nothing to regenerate")
    return SubmitResponse(accepted=True, job=job, message="Generation started")


@router.post("/sessions/{session_id}/clear", response_model=SessionStateResponse)
async def clear_conversation(session_id: str, clear_history: bool = False, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    orchestrator.clear(clear_history)
    return _snapshot(session_id, orchestrator)


@router.put("/sessions/{session_id}/settings", response_model=SessionStateResponse)
async def update_settings(session_id: str, request: SettingsUpdateRequest, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    try:
        orchestrator.update_settings(**request.model_dump(exclude_unset=True))
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False))
    return _snapshot(session_id, orchestrator)


@router.put("/sessions/{session_id}/selections", response_model=SessionStateResponse)
async def set_selections(session_id: str, selections: dict, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    orchestrator.set_selections({str(k): str(v) for k, v in selections.items() if v})
    return _snapshot(session_id, orchestrator)


@router.post("/sessions/{session_id}/selections/toggle", response_model=SessionStateResponse)
async def toggle_selection(session_id: str, request: SelectionToggleRequest, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    orchestrator.select_option(request.category, request.option)
    return _snapshot(session_id, orchestrator)


@router.delete("/sessions/{session_id}/selections/{category}", response_model=SessionStateResponse)
async def remove_selection(session_id: str, category: str, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    orchestrator.remove_selection(category)
    return _snapshot(session_id, orchestrator)


@router.post("/sessions/{session_id}/attachments", response_model=AttachmentsResponse)
async def add_attachments(files: List[UploadFile] = File(...), orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    staged = []
    for upload in files:
        staged.append(AttachmentFile(
            filename=upload.filename or "attachment",
            content=await upload.read(),
            content_type=upload.content_type or "application/octet-stream",
        ))
    orchestrator.add_attachments(staged)
    return AttachmentsResponse(handles=orchestrator.state.attachments.handles)


@router.delete("/sessions/{session_id}/attachments/{index}", response_model=AttachmentsResponse)
async def remove_attachment(index: int, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    orchestrator.remove_attachment(index)
    return AttachmentsResponse(handles=orchestrator.state.attachments.handles)


@router.delete("/sessions/{session_id}/attachments", response_model=AttachmentsResponse)
async def clear_attachments(orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    orchestrator.clear_attachments()
    return AttachmentsResponse(handles=[])


@router.get("/sessions/{session_id}/stats", response_model=StatsResponse)
async def get_stats(orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    return StatsResponse(**orchestrator.get_stats().model_dump())


@router.get("/sessions/{session_id}/images", response_model=ImagesResponse)
async def get_images(orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    return ImagesResponse(images=orchestrator.all_images)


@router.get("/sessions/{session_id}/references", response_model=ReferencesResponse)
async def list_references(session_id: str, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    try:
        references = await orchestrator.list_references()
    except GenerationServiceError as e:
        logger.error(f"Error listing references for session {session_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to list references: {str(e)}"
        )
    return ReferencesResponse(references=references)


@router.get("/blobs/{handle:path}")
async def get_blob(handle: str, manager: SessionManager = Depends(get_session_manager)):
    blob = manager.get_blob(handle)
    if blob is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Blob {handle} not found"
        )
    return Response(content=blob.content, media_type=blob.content_type)


@router.get("/preferences/review-mode", response_model=ReviewModeResponse)
async def get_review_mode(store: PreferenceStore = Depends(get_preference_store)):
    return ReviewModeResponse(mode=store.get_review_mode())


@router.put("/preferences/review-mode", response_model=ReviewModeResponse)
async def set_review_mode(request: ReviewModeRequest, store: PreferenceStore = Depends(get_preference_store)):
    saved = store.set_review_mode(request.mode)
    return ReviewModeResponse(mode=request.mode, saved=saved)
