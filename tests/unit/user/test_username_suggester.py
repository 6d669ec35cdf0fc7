"""Unit tests for username sanitization and suggestion."""

import pytest

from src.forum_admin.core.services.user import UsernameSuggester, sanitize_username


class TestSanitizeUsername:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Hokli$$!!", "Hokli"),
            ("Bob The Bob", "Bob_The_Bob"),
            ("bob", "bob"),
            ("  __bob__  ", "bob"),
            ("a--b..c", "a_b_c"),
            ("José", "Jose"),
            ("$$$", ""),
            ("", ""),
            (None, ""),
        ],
    )
    def test_sanitizes(self, raw, expected):
        assert sanitize_username(raw) == expected

    def test_is_deterministic(self):
        assert sanitize_username("We!rd N@me") == sanitize_username("We!rd N@me")


class TestUsernameSuggester:
    @pytest.fixture
    def suggester(self) -> UsernameSuggester:
        return UsernameSuggester(min_length=3, max_length=20)

    def test_pads_short_names(self, suggester):
        assert suggester.sanitize("ab") == "ab1"

    def test_truncates_long_names(self, suggester):
        assert suggester.sanitize("a" * 30) == "a" * 20

    def test_first_valid_falls_back_through_candidates(self, suggester):
        """Should skip candidates that sanitize to nothing."""
        assert suggester.first_valid([None, "!!!", "Bob The Bob"]) == "Bob_The_Bob"

    def test_returns_empty_when_nothing_survives(self, suggester):
        assert suggester.suggest(["!!!", None], is_taken=lambda _: False) == ""

    def test_keeps_free_name(self, suggester):
        assert suggester.suggest(["bob"], is_taken=lambda _: False) == "bob"

    def test_appends_smallest_free_suffix(self, suggester):
        taken = {"bob", "bob1", "bob2"}

        assert suggester.suggest(["bob"], is_taken=taken.__contains__) == "bob3"

    def test_suffix_respects_max_length(self, suggester):
        name = "b" * 20

        result = suggester.suggest([name], is_taken=lambda n: n == name)

        assert result == "b" * 19 + "1"
