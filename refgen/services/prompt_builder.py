"""
Prompt builder.

Turns the structured selections into short English-ish phrases and prefixes
them to the user's free text.
"""

from typing import Mapping, Optional
from pydantic import BaseModel

EMPTY_PROMPT_SUGGESTION = "プロンプトを入力してください"


class PromptValidation(BaseModel):
    is_valid: bool
    suggestion: Optional[str] = None


def _format_basic(category: str, item: str) -> str:
    if "basic-bodyType" in category:
        return f"{item} body type"
    if "basic-skinColor" in category:
        return f"{item} skin"
    return item


def _format_hair(category: str, item: str) -> str:
    if "hair-style" in category:
        return f"{item} hair"
    if "hair-bangs" in category:
        return f"{item} bangs"
    if "hair-color" in category:
        return f"{item} hair color"
    return item


def _format_expression(category: str, item: str) -> str:
    if "expression-face" in category:
        return f"{item} expression"
    return item


def _format_clothing(category: str, item: str) -> str:
    if "clothing-theme" in category:
        return f"{item} style clothing"
    if "clothing-tops" in category:
        return f"wearing {item}"
    if "clothing-accessories" in category:
        return f"with {item}"
    return item


def _format_pose(category: str, item: str) -> str:
    if "pose-gaze" in category:
        return f"looking {item}"
    if "pose-composition" in category:
        return f"{item} shot"
    if "pose-hands" in category:
        return f"{item} with hands"
    return item


_FORMATTERS = (
    ("basic-", _format_basic),
    ("hair-", _format_hair),
    ("expression-", _format_expression),
    ("clothing-", _format_clothing),
    ("pose-", _format_pose),
)


def format_selection(category: str, item: str) -> str:
    for prefix, formatter in _FORMATTERS:
        if prefix in category:
            return formatter(category, item)
    return item


def build_prompt(base_prompt: str, selections: Mapping[str, str]) -> str:
    """
    Build the complete prompt sent to the generator.

    Args:
        base_prompt: Free text typed by the user
        selections: Structured selections, one option per category

    Returns:
        ``"<selection>, <selection>, ..., <base_prompt>"`` or the base prompt
        unchanged when nothing is selected
    """
    parts = [format_selection(category, item) for category, item in selections.items() if item]
    combined = ", ".join(parts)
    return f"{combined}, {base_prompt}" if combined else base_prompt


def validate_prompt(prompt_text: str) -> PromptValidation:
    if not prompt_text.strip():
        return PromptValidation(is_valid=False, suggestion=EMPTY_PROMPT_SUGGESTION)
    return PromptValidation(is_valid=True)
