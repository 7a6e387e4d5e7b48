from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from refgen.models.job import GenerationJob
from refgen.models.message import Message
from refgen.schemas.generation import AspectRatio, GeneratedReference
from refgen.services.conversation import ConversationImage, GenerationStats
from refgen.services.preferences import ReviewMode


class SessionCreateRequest(BaseModel):
    project_id: Optional[str] = Field(default=None, description="Project the generated references belong to")


class SessionCreateResponse(BaseModel):
    session_id: str
    project_id: Optional[str]


class ProjectUpdateRequest(BaseModel):
    project_id: Optional[str] = None


class SubmitRequest(BaseModel):
    text: str = Field(..., description="Free text prompt typed by the user")


class SubmitResponse(BaseModel):
    accepted: bool
    job: Optional[GenerationJob] = None
    message: str


class CancelResponse(BaseModel):
    cancelled: bool


class SettingsUpdateRequest(BaseModel):
    number_of_images: Optional[int] = Field(default=None, ge=1, le=4)
    aspect_ratio: Optional[AspectRatio] = None
    negative_prompt: Optional[str] = Field(default=None, max_length=500)


class SelectionToggleRequest(BaseModel):
    category: str
    option: str


class AttachmentsResponse(BaseModel):
    handles: List[str]


class SessionStateResponse(BaseModel):
    session_id: str
    project_id: Optional[str]
    prompt: str
    is_loading: bool
    detailed_settings: Dict
    structured_selections: Dict[str, str]
    attachments: List[str]
    conversation: List[Message]
    generation_queue: List[GenerationJob]
    generation_history: List[Message]


class ImagesResponse(BaseModel):
    images: List[ConversationImage]


class ReferencesResponse(BaseModel):
    references: List[GeneratedReference]


class StatsResponse(GenerationStats):
    pass


class ReviewModeRequest(BaseModel):
    mode: ReviewMode


class ReviewModeResponse(BaseModel):
    mode: ReviewMode
    saved: bool = True
