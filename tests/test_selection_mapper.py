"""
Tests for the structured selection mapper.

Run with: pytest tests/test_selection_mapper.py -v
"""

from refgen.services.selection_mapper import (
    STYLE_CATEGORIES,
    default_selections,
    map_selections,
    remove_selection,
    resolve_tag,
    toggle_selection,
)


class TestDefaults:
    def test_empty_selections_use_defaults(self):
        tags = map_selections({})

        assert tags.model_dump() == {
            "style": "anime",
            "pose": "standing",
            "camera": "full-body",
            "lighting": "natural",
        }

    def test_default_selections_map_to_defaults(self):
        tags = map_selections(default_selections())

        assert (tags.style, tags.pose, tags.camera) == ("anime", "standing", "full-body")

    def test_unknown_values_fall_through(self):
        tags = map_selections({"pose-pose": "逆立ち", "pose-composition": "魚眼"})

        assert tags.pose == "standing"
        assert tags.camera == "full-body"


class TestMapping:
    def test_pose_and_camera_tables(self):
        tags = map_selections({"pose-pose": "戦闘ポーズ", "pose-composition": "顔アップ"})

        assert tags.pose == "action"
        assert tags.camera == "close-up"

    def test_lighting_is_always_natural(self):
        assert map_selections({"pose-composition": "俯瞰"}).lighting == "natural"

    def test_other_pose_categories_are_ignored(self):
        tags = map_selections({"pose-gaze": "座りポーズ"})

        assert tags.pose == "standing"


class TestFirstMatchOrder:
    """Ethnicity categories are evaluated before clothing-theme categories."""

    TABLE = {"日本人": "from-ethnicity", "SF": "from-theme"}

    def test_ethnicity_wins_over_theme(self):
        selections = {"basic-ethnicity": "日本人", "clothing-theme": "SF"}

        assert resolve_tag(selections, STYLE_CATEGORIES, self.TABLE) == "from-ethnicity"

    def test_ethnicity_wins_regardless_of_insertion_order(self):
        selections = {"clothing-theme": "SF", "basic-ethnicity": "日本人"}

        assert resolve_tag(selections, STYLE_CATEGORIES, self.TABLE) == "from-ethnicity"

    def test_unmapped_ethnicity_falls_back_to_theme(self):
        selections = {"basic-ethnicity": "混血", "clothing-theme": "SF"}

        assert resolve_tag(selections, STYLE_CATEGORIES, self.TABLE) == "from-theme"

    def test_first_mapped_value_wins_within_a_category(self):
        selections = {"basic-ethnicity": "日本人", "extra-ethnicity": "SF"}

        assert resolve_tag(selections, STYLE_CATEGORIES, self.TABLE) == "from-ethnicity"

    def test_real_tables_for_mixed_style_selection(self):
        tags = map_selections({"basic-ethnicity": "日本人", "clothing-theme": "SF"})

        assert tags.style == "anime"


class TestSelectionEditing:
    def test_selecting_second_option_replaces_first(self):
        selections = toggle_selection({"pose-pose": "立ちポーズ"}, "pose-pose", "走る")

        assert selections == {"pose-pose": "走る"}

    def test_selecting_same_option_deselects(self):
        assert toggle_selection({"pose-pose": "走る"}, "pose-pose", "走る") == {}

    def test_toggle_does_not_mutate_input(self):
        original = {"pose-pose": "走る"}
        toggle_selection(original, "pose-composition", "全身")

        assert original == {"pose-pose": "走る"}

    def test_remove_missing_category_is_noop(self):
        assert remove_selection({"pose-pose": "走る"}, "hair-color") == {"pose-pose": "走る"}
