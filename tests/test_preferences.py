import logging

from refgen.services.preferences import PreferenceStore, ReviewMode


class TestReviewMode:
    def test_defaults_to_quality(self, tmp_path):
        store = PreferenceStore(str(tmp_path / "prefs.json"))

        assert store.get_review_mode() == ReviewMode.QUALITY

    def test_round_trip(self, tmp_path):
        path = tmp_path / "prefs.json"
        PreferenceStore(str(path)).set_review_mode(ReviewMode.SPEED)

        assert PreferenceStore(str(path)).get_review_mode() == ReviewMode.SPEED

    def test_unknown_saved_value_falls_back(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text('{"ai-review-mode": "turbo"}', encoding="utf-8")

        assert PreferenceStore(str(path)).get_review_mode() == ReviewMode.QUALITY

    def test_corrupt_file_falls_back(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text("{not json", encoding="utf-8")

        assert PreferenceStore(str(path)).get_review_mode() == ReviewMode.QUALITY

    def test_write_failure_is_swallowed(self, tmp_path, caplog):
        store = PreferenceStore(str(tmp_path / "missing-dir" / "prefs.json"))

        with caplog.at_level(logging.WARNING, logger="refgen"):
            saved = store.set_review_mode(ReviewMode.SPEED)

        assert saved is False
        assert "Failed to save preference" in caplog.text
