from dataclasses import dataclass, field
from typing import Dict, Optional
from refgen.schemas.generation import DetailedSettings
from refgen.services.attachment_store import AttachmentStore
from refgen.services.conversation import ConversationLog
from refgen.services.job_registry import JobRegistry
from refgen.services.selection_mapper import default_selections


@dataclass
class SessionState:
    """Everything one reference-generation chat panel owns."""

    project_id: Optional[str] = None
    prompt: str = ""
    is_loading: bool = False
    detailed_settings: DetailedSettings = field(default_factory=DetailedSettings)
    structured_selections: Dict[str, str] = field(default_factory=default_selections)
    conversation: ConversationLog = field(default_factory=ConversationLog)
    generation_queue: JobRegistry = field(default_factory=JobRegistry)
    attachments: AttachmentStore = field(default_factory=AttachmentStore)
