"""Tests for content derivation and version history."""

from datetime import datetime, timezone

import pytest

from notevault.models.note import ContentType
from notevault.services.content import (
    VersionedContent,
    apply_content_update,
    derive_stats,
    make_excerpt,
    to_plain_text,
)


NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def fresh(content: str = "Hello", title: str = "Greeting") -> VersionedContent:
    return VersionedContent(title=title, content=content, content_type=ContentType.MARKDOWN)


class TestDeriveStats:
    """Test excerpt, word count and reading time."""

    def test_plain_word_count(self):
        stats = derive_stats("one two three", ContentType.PLAIN)

        assert stats.word_count == 3
        assert stats.reading_time == 1
        assert stats.excerpt == "one two three"

    def test_empty_body_has_no_reading_time(self):
        stats = derive_stats("   ", ContentType.PLAIN)

        assert stats.word_count == 0
        assert stats.reading_time == 0

    def test_reading_time_rounds_up(self):
        stats = derive_stats(" ".join(["word"] * 201), ContentType.PLAIN)

        assert stats.word_count == 201
        assert stats.reading_time == 2

    def test_markdown_syntax_is_not_counted(self):
        stats = derive_stats("# Title\n\n**bold** and [a link](http://example.com)", ContentType.MARKDOWN)

        assert stats.excerpt == "Title bold and a link"
        assert stats.word_count == 5

    def test_rich_text_strips_html(self):
        text = to_plain_text("<p>Hello&nbsp;<b>world</b></p>", ContentType.RICH)

        assert text == "Hello world"

    def test_rich_text_decodes_entities(self):
        stats = derive_stats("<p>Caf&eacute; &amp; cr&egrave;me</p>", ContentType.RICH)

        assert stats.excerpt == "Café & crème"
        assert stats.word_count == 2

    def test_rich_text_blocks_stay_separate_words(self):
        text = to_plain_text("<h1>Plan</h1><p>one</p><ul><li>two</li><li>three</li></ul>line<br>break", ContentType.RICH)

        assert text == "Plan one two three line break"

    def test_markdown_entities_are_decoded(self):
        stats = derive_stats("Salt &amp; pepper, `a < b`", ContentType.MARKDOWN)

        assert stats.excerpt == "Salt & pepper, a < b"

    def test_excerpt_is_cut_at_word_boundary(self):
        stats = derive_stats("lorem ipsum " * 50, ContentType.PLAIN, excerpt_length=30)

        assert len(stats.excerpt) <= 33
        assert stats.excerpt.endswith("...")
        assert not stats.excerpt[:-3].endswith(" ")

    def test_short_text_excerpt_unchanged(self):
        assert make_excerpt("short", 200) == "short"


class TestApplyContentUpdate:
    """Test the version history transformation."""

    def test_hello_world_scenario(self):
        current = fresh("Hello")

        updated = apply_content_update(current, None, "Hello world", editor_id=7, now=NOW)

        assert updated.version == 2
        assert updated.edit_count == 1
        assert updated.content == "Hello world"
        assert len(updated.previous_versions) == 1
        entry = updated.previous_versions[0]
        assert entry["version"] == 1
        assert entry["content"] == "Hello"
        assert entry["title"] == "Greeting"
        assert entry["modified_by"] == 7
        assert entry["modified_at"] == NOW.isoformat()

    def test_input_is_not_mutated(self):
        current = fresh("Hello")

        apply_content_update(current, None, "Hello world", editor_id=1, now=NOW)

        assert current.version == 1
        assert current.previous_versions == ()

    def test_title_only_change_keeps_version(self):
        current = fresh("Hello")

        updated = apply_content_update(current, "New title", None, editor_id=1, now=NOW)

        assert updated.title == "New title"
        assert updated.version == 1
        assert updated.edit_count == 0
        assert updated.previous_versions == ()

    def test_same_content_is_not_an_edit(self):
        current = fresh("Hello")

        updated = apply_content_update(current, None, "Hello", editor_id=1, now=NOW)

        assert updated == current

    def test_content_type_change_is_an_edit(self):
        current = fresh("Hello")

        updated = apply_content_update(current, None, None, editor_id=1, content_type=ContentType.PLAIN, now=NOW)

        assert updated.version == 2
        assert updated.content_type == ContentType.PLAIN

    @pytest.mark.parametrize("edits", [1, 5, 10, 11, 25])
    def test_n_edits(self, edits):
        state = fresh("v0")
        for i in range(1, edits + 1):
            state = apply_content_update(state, None, f"v{i}", editor_id=1, now=NOW)

        assert state.version == edits + 1
        assert state.edit_count == edits
        assert len(state.previous_versions) == min(edits, 10)

    def test_history_evicts_oldest_first(self):
        state = fresh("Hello")
        state = apply_content_update(state, None, "Hello world", editor_id=1, now=NOW)
        for i in range(10):
            state = apply_content_update(state, None, f"Hello world {i}", editor_id=1, now=NOW)

        versions = [entry["version"] for entry in state.previous_versions]
        assert len(versions) == 10
        # Version 1 ("Hello") was the oldest and has been dropped
        assert versions == list(range(2, 12))
        assert state.previous_versions[0]["content"] == "Hello world"
        assert state.version == 12

    def test_custom_history_limit(self):
        state = fresh("a")
        for content in ("b", "c", "d"):
            state = apply_content_update(state, None, content, editor_id=1, now=NOW, history_limit=2)

        assert [entry["content"] for entry in state.previous_versions] == ["b", "c"]
