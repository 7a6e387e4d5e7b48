import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import uuid4

logger = logging.getLogger(__name__)

LOCAL_HANDLE_PREFIX = "blob:"


@dataclass(frozen=True)
class AttachmentFile:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


class Ownership(str, Enum):
    STAGING = "staging"
    ARCHIVED = "archived"


class BlobArena:
    """Locally allocated display handles and the bytes behind them."""

    def __init__(self):
        self._blobs: Dict[str, AttachmentFile] = {}

    def allocate(self, file: AttachmentFile) -> str:
        handle = f"{LOCAL_HANDLE_PREFIX}{uuid4()}"
        self._blobs[handle] = file
        return handle

    def get(self, handle: str) -> Optional[AttachmentFile]:
        return self._blobs.get(handle)

    def release(self, handle: str) -> bool:
        """Free a handle. Returns False if it was already released or unknown."""
        return self._blobs.pop(handle, None) is not None

    def __contains__(self, handle: str) -> bool:
        return handle in self._blobs

    def __len__(self) -> int:
        return len(self._blobs)


def is_local_handle(handle: str) -> bool:
    return handle.startswith(LOCAL_HANDLE_PREFIX)


class AttachmentStore:
    """
    Staged image attachments for the next prompt.

    Handles (for previews) and files (for upload) are kept in two parallel
    lists of the same length and order.
    """

    def __init__(self, arena: Optional[BlobArena] = None):
        self.arena = arena if arena is not None else BlobArena()
        self._handles: List[str] = []
        self._files: List[AttachmentFile] = []
        self._ownership: Dict[str, Ownership] = {}

    @property
    def handles(self) -> List[str]:
        return list(self._handles)

    @property
    def files(self) -> List[AttachmentFile]:
        return list(self._files)

    def ownership(self, handle: str) -> Optional[Ownership]:
        return self._ownership.get(handle)

    def __len__(self) -> int:
        return len(self._handles)

    def add(self, files: Iterable[AttachmentFile]) -> List[str]:
        files = list(files)
        if not files:
            return []
        added = []
        for file in files:
            handle = self.arena.allocate(file)
            self._ownership[handle] = Ownership.STAGING
            self._handles.append(handle)
            self._files.append(file)
            added.append(handle)
        logger.debug(f"Staged {len(added)} attachments ({len(self._handles)} total)")
        return added

    def remove(self, index: int) -> bool:
        if index < 0 or index >= len(self._handles):
            return False
        handle = self._handles[index]
        self._release(handle)
        del self._handles[index]
        del self._files[index]
        return True

    def clear(self) -> None:
        for handle in self._handles:
            self._release(handle)
        self._handles = []
        self._files = []

    def take_for_submission(self) -> Tuple[List[str], List[AttachmentFile]]:
        """
        Hand the staged attachments over to a submitted prompt.

        The handles stay allocated because the prompt message keeps
        referencing them; only the staging lists are emptied.
        """
        handles, files = self._handles, self._files
        for handle in handles:
            self._ownership[handle] = Ownership.ARCHIVED
        self._handles = []
        self._files = []
        return handles, files

    def release_archived(self) -> int:
        """Free the handles handed over to prompt messages. Returns how many were freed."""
        archived = [h for h, tag in self._ownership.items() if tag == Ownership.ARCHIVED]
        for handle in archived:
            del self._ownership[handle]
            if is_local_handle(handle):
                self.arena.release(handle)
        return len(archived)

    def _release(self, handle: str) -> None:
        if self._ownership.get(handle) != Ownership.STAGING:
            return
        del self._ownership[handle]
        if is_local_handle(handle):
            self.arena.release(handle)
