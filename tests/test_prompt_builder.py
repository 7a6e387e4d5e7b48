from refgen.services.prompt_builder import EMPTY_PROMPT_SUGGESTION, build_prompt, validate_prompt


class TestBuildPrompt:
    def test_no_selections_returns_base_prompt(self):
        assert build_prompt("剣を構える少女", {}) == "剣を構える少女"

    def test_selections_are_prefixed_in_order(self):
        prompt = build_prompt("剣を構える少女", {
            "hair-color": "銀髪",
            "clothing-tops": "甲冑",
            "pose-composition": "全身",
        })

        assert prompt == "銀髪 hair color, wearing 甲冑, 全身 shot, 剣を構える少女"

    def test_category_specific_formats(self):
        assert build_prompt("x", {"basic-bodyType": "スリム"}) == "スリム body type, x"
        assert build_prompt("x", {"expression-face": "笑顔"}) == "笑顔 expression, x"
        assert build_prompt("x", {"clothing-theme": "和風"}) == "和風 style clothing, x"
        assert build_prompt("x", {"pose-gaze": "横向き"}) == "looking 横向き, x"
        assert build_prompt("x", {"custom": "value"}) == "value, x"

    def test_empty_values_are_skipped(self):
        assert build_prompt("x", {"hair-style": ""}) == "x"


class TestValidatePrompt:
    def test_blank_prompt_is_rejected(self):
        result = validate_prompt("   ")

        assert not result.is_valid
        assert result.suggestion == EMPTY_PROMPT_SUGGESTION

    def test_text_is_accepted(self):
        assert validate_prompt("少女").is_valid
