import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Optional
from refgen.core.config import settings

logger = logging.getLogger(__name__)

REVIEW_MODE_KEY = "ai-review-mode"


class ReviewMode(str, Enum):
    QUALITY = "quality"
    SPEED = "speed"


DEFAULT_REVIEW_MODE = ReviewMode.QUALITY


class PreferenceStore:
    """Best-effort local key-value store backed by a JSON file."""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or settings.preferences_path)

    def get_item(self, key: str) -> Optional[str]:
        try:
            if not self.path.exists():
                return None
            data = json.loads(self.path.read_text(encoding="utf-8"))
            value = data.get(key) if isinstance(data, dict) else None
            return value if isinstance(value, str) else None
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read preferences from {self.path}: {e}")
            return None

    def set_item(self, key: str, value: str) -> bool:
        try:
            data = {}
            if self.path.exists():
                loaded = json.loads(self.path.read_text(encoding="utf-8"))
                if isinstance(loaded, dict):
                    data = loaded
            data[key] = value
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
            os.replace(tmp, self.path)
            return True
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to save preference {key} to {self.path}: {e}")
            return False

    def get_review_mode(self) -> ReviewMode:
        saved = self.get_item(REVIEW_MODE_KEY)
        try:
            return ReviewMode(saved) if saved else DEFAULT_REVIEW_MODE
        except ValueError:
            return DEFAULT_REVIEW_MODE

    def set_review_mode(self, mode: ReviewMode) -> bool:
        return self.set_item(REVIEW_MODE_KEY, ReviewMode(mode).value)
