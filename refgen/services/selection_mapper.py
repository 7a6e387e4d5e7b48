"""
Selection mapper.

Maps the structured character-builder selections (one option per category
key such as ``"pose-composition"``) onto the small tag vocabulary the
generation backend understands.
"""

from typing import Dict, Mapping, Optional, Sequence
from refgen.schemas.generation import GenerationTags

StructuredSelections = Dict[str, str]

DEFAULT_STYLE = "anime"
DEFAULT_POSE = "standing"
DEFAULT_CAMERA = "full-body"
DEFAULT_LIGHTING = "natural"

STYLE_MAPPING: Dict[str, str] = {
    "日本人": "anime",
    "東アジア系": "anime",
    "白人系": "anime",
    "黒人系": "anime",
    "ファンタジー種族": "anime",
    "現代風": "anime",
    "和風": "anime",
    "ファンタジー": "anime",
    "SF": "anime",
}

POSE_MAPPING: Dict[str, str] = {
    "立ちポーズ": "standing",
    "座りポーズ": "sitting",
    "ジャンプ": "action",
    "走る": "action",
    "歩く": "action",
    "踊る": "action",
    "戦闘ポーズ": "action",
    "リラックス": "sitting",
    "寝そべり": "sitting",
}

CAMERA_MAPPING: Dict[str, str] = {
    "顔アップ": "close-up",
    "バストアップ": "portrait",
    "膝上": "portrait",
    "全身": "full-body",
    "後ろ姿": "full-body",
    "横顔": "portrait",
    "俯瞰": "wide-shot",
    "仰角": "wide-shot",
}

# Category-key fragments consulted for each tag, in evaluation order.
STYLE_CATEGORIES = ("ethnicity", "clothing-theme")
POSE_CATEGORIES = ("pose-pose",)
CAMERA_CATEGORIES = ("pose-composition",)


def resolve_tag(
    selections: Mapping[str, str],
    categories: Sequence[str],
    table: Mapping[str, str],
) -> Optional[str]:
    """
    Return the first mapped value for a tag.

    Category fragments are tried in the given order; within one fragment the
    selections are scanned in mapping order. Values missing from ``table``
    fall through to the next candidate.
    """
    for fragment in categories:
        for category, value in selections.items():
            if fragment in category and value in table:
                return table[value]
    return None


def default_selections() -> StructuredSelections:
    return {
        "basic-ethnicity": "日本人",
        "pose-pose": "立ちポーズ",
        "pose-composition": "全身",
    }


def map_selections(selections: Mapping[str, str]) -> GenerationTags:
    return GenerationTags(
        style=resolve_tag(selections, STYLE_CATEGORIES, STYLE_MAPPING) or DEFAULT_STYLE,
        pose=resolve_tag(selections, POSE_CATEGORIES, POSE_MAPPING) or DEFAULT_POSE,
        camera=resolve_tag(selections, CAMERA_CATEGORIES, CAMERA_MAPPING) or DEFAULT_CAMERA,
        lighting=DEFAULT_LIGHTING,
    )


def toggle_selection(selections: Mapping[str, str], category: str, option: str) -> StructuredSelections:
    """Single-select toggle: picking the current option clears the category."""
    updated = dict(selections)
    if updated.get(category) == option:
        del updated[category]
    else:
        updated[category] = option
    return updated


def remove_selection(selections: Mapping[str, str], category: str) -> StructuredSelections:
    updated = dict(selections)
    updated.pop(category, None)
    return updated
