"""Tests for Slack text formatting."""

from ooda_ai_bot.formatting import MAX_SOURCES, cleanup_markdown, format_reply, format_sources
from ooda_ai_bot.models import QueryResult, Source


class TestCleanupMarkdown:
    """Markdown stripping rules."""

    def test_bold_italic_and_code(self):
        assert cleanup_markdown("**bold** and *em* and `code`") == "bold and em and code"

    def test_heading_at_start(self):
        assert cleanup_markdown("# Heading\ntext") == "Heading\ntext"

    def test_headings_on_every_line(self):
        text = "## Overview\nBody\n###### Deep\nMore"
        assert cleanup_markdown(text) == "Overview\nBody\nDeep\nMore"

    def test_seven_hashes_not_a_heading(self):
        assert cleanup_markdown("####### Too deep") == "####### Too deep"

    def test_hash_without_space_is_kept(self):
        assert cleanup_markdown("#hashtag") == "#hashtag"

    def test_double_underscores(self):
        assert cleanup_markdown("a __strong__ claim") == "a strong claim"

    def test_single_underscores_untouched(self):
        assert cleanup_markdown("snake_case_name") == "snake_case_name"

    def test_trims_whitespace(self):
        assert cleanup_markdown("\n\n  **Summary**  \n") == "Summary"

    def test_non_greedy_pairs(self):
        assert cleanup_markdown("**a** plain **b**") == "a plain b"

    def test_unpaired_marker_left_alone(self):
        assert cleanup_markdown("5 * 3") == "5 * 3"

    def test_plain_text_unchanged(self):
        assert cleanup_markdown("John Boyd described the loop.") == "John Boyd described the loop."


class TestFormatSources:
    """Source list rendering."""

    def test_empty_and_none(self):
        assert format_sources([]) == ""
        assert format_sources(None) == ""

    def test_single_source(self):
        sources = [Source(title="OODA Loop", url="https://oodaloop.com/ooda")]
        assert format_sources(sources) == "\n\n*Sources:*\n• <https://oodaloop.com/ooda|OODA Loop>"

    def test_caps_at_fifteen_in_order(self):
        sources = [Source(title=f"T{i}", url=f"https://example.com/{i}") for i in range(20)]
        text = format_sources(sources)

        bullets = [line for line in text.split("\n") if line.startswith("• ")]
        assert len(bullets) == MAX_SOURCES == 15
        assert bullets == [f"• <https://example.com/{i}|T{i}>" for i in range(15)]
        assert "T15" not in text

    def test_exactly_fifteen(self):
        sources = [Source(title=f"T{i}", url=f"https://example.com/{i}") for i in range(15)]
        assert format_sources(sources).count("\n• ") == 15


class TestFormatReply:
    def test_summary_and_sources(self):
        result = QueryResult(
            summary="## Answer\n**Boyd** said so.",
            sources=[Source(title="A", url="https://a")],
        )
        assert format_reply(result) == "Answer\nBoyd said so.\n\n*Sources:*\n• <https://a|A>"

    def test_no_sources(self):
        assert format_reply(QueryResult(summary="Just text")) == "Just text"
