"""Tests for placeholder and template text detection."""

import pytest

from campaign_pipeline.domain.validation.text_rules import (
    find_generic_phrase,
    find_placeholders,
    find_template_marker,
    is_short,
    mentions,
)


class TestPlaceholders:
    """Tests for find_placeholders."""

    def test_case_insensitive(self):
        """Placeholder detection ignores case."""
        assert find_placeholders("LOREM IPSUM dolor") == ["lorem ipsum"]

    def test_multiple_patterns(self):
        """Every matching placeholder is reported."""
        assert find_placeholders("TODO: replace placeholder") == ["placeholder", "todo"]

    @pytest.mark.parametrize("text", [None, "", "Barcelona from 12 500 RUB"])
    def test_clean_text(self, text):
        """Clean text has no placeholders."""
        assert find_placeholders(text) == []


class TestTemplateMarkers:
    """Tests for find_template_marker."""

    def test_braces(self):
        """Double braces are a template marker."""
        assert find_template_marker("Hi {{first_name}}!") == "{{first_name}}"

    def test_unbalanced_braces(self):
        """Unbalanced braces are a template marker."""
        assert find_template_marker("Hi {{first_name") == "{{"

    def test_insert_marker(self):
        """INSERT markers are a template marker."""
        assert find_template_marker("Fly to [INSERT DESTINATION]") == "[INSERT DESTINATION]"

    def test_ellipsis_only(self):
        """Text that is only an ellipsis is a template marker."""
        assert find_template_marker(" ... ") == "..."
        assert find_template_marker("…") == "…"

    def test_ellipsis_inside_text_is_fine(self):
        """An ellipsis inside real text is allowed."""
        assert find_template_marker("Wait for it... Barcelona") is None

    def test_single_braces_are_fine(self):
        """Single braces are allowed."""
        assert find_template_marker("body { color: red }") is None


class TestGenericPhrases:
    """Tests for find_generic_phrase."""

    def test_longest_phrase_wins(self):
        """The longest matching generic phrase is reported."""
        assert find_generic_phrase("Unknown Destination") == "Unknown Destination"

    def test_case_sensitive(self):
        """Generic phrase matching is case sensitive."""
        assert find_generic_phrase("unknown destination") is None

    def test_short_phrase(self):
        """A bare generic word is reported."""
        assert find_generic_phrase("Unknown") == "Unknown"


class TestHelpers:
    """Tests for is_short and mentions."""

    def test_is_short(self):
        """is_short() compares stripped length."""
        assert is_short("Hi there ")
        assert not is_short("Mediterranean autumn")
        assert not is_short(None)

    def test_mentions(self):
        """mentions() ignores case."""
        assert mentions("Fly to BARCELONA now", " Barcelona ")
        assert not mentions("Fly to Madrid", "Barcelona")
        assert not mentions(None, "Barcelona")
        assert not mentions("Barcelona", "")
