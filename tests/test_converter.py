"""End-to-end conversion tests."""

import pytest
from unittest.mock import AsyncMock, patch

from getmd import (
    ConversionOptions,
    Converter,
    EventType,
    MarkdownRule,
    ModelError,
    convert_blocking,
    convert_to_markdown,
    fetch_and_convert,
)
from getmd.conversion.postprocess import TRUNCATION_MARKER
from getmd.core.converter import build_pipeline
from getmd.llm import ModelUnavailableError

HELLO = "<h1>Hello</h1><p>World</p>"


class TestConvertToMarkdown:
    """Tests for convert_to_markdown."""

    @pytest.mark.asyncio
    async def test_minimal_document(self):
        """A heading and a paragraph come out as markdown."""
        result = await convert_to_markdown(HELLO, include_meta=False)

        assert "# Hello\n\nWorld" in result.markdown
        assert result.markdown.endswith("\n")
        assert not result.markdown.startswith("---")

    @pytest.mark.asyncio
    async def test_frontmatter_by_default(self):
        """Metadata is prefixed as frontmatter unless disabled."""
        result = await convert_to_markdown(HELLO)

        assert result.markdown.startswith("---\ntitle: Hello\n")
        assert "word_count: 3" in result.markdown
        assert result.metadata.title == "Hello"
        assert result.metadata.reading_time == 1

    @pytest.mark.asyncio
    async def test_without_images(self):
        """include_images=False leaves no image syntax and counts none."""
        html = '<p>Text with a picture</p><p><img src="https://example.com/a.png" alt="A"></p>'
        result = await convert_to_markdown(html, include_images=False, include_meta=False)

        assert "![" not in result.markdown
        assert result.stats.image_count == 0

    @pytest.mark.asyncio
    async def test_counts_images_and_links(self):
        """Stats count images and links in the rendered HTML."""
        html = (
            '<p>See <a href="https://example.com/a">a</a> and <a href="https://example.com/b">b</a>.</p>'
            '<p><img src="https://example.com/i.png" alt="I"></p>'
        )
        result = await convert_to_markdown(html, include_meta=False)

        assert result.stats.image_count == 1
        assert result.stats.link_count == 2
        assert "![I](https://example.com/i.png)" in result.markdown

    @pytest.mark.asyncio
    async def test_without_links(self):
        """include_links=False keeps the link text only."""
        html = '<p>Read <a href="https://example.com/docs">the docs</a> first.</p>'
        result = await convert_to_markdown(html, include_links=False, include_meta=False)

        assert "Read the docs first." in result.markdown
        assert "](" not in result.markdown
        assert result.stats.link_count == 0

    @pytest.mark.asyncio
    async def test_leading_rule_without_frontmatter(self):
        """Without frontmatter the output never starts with ---, even after an <hr>."""
        result = await convert_to_markdown(
            "<hr><p>Hello world</p>", ConversionOptions(include_meta=False, extract_content=False)
        )

        assert not result.markdown.startswith("---")
        assert result.markdown == "Hello world\n"

    @pytest.mark.asyncio
    async def test_leading_rule_with_frontmatter(self):
        """A leading <hr> follows the frontmatter block as a rule."""
        result = await convert_to_markdown("<hr><p>Hello world</p>", extract_content=False)

        assert result.markdown.startswith("---\nword_count: ")
        assert "---\n\n---\n\nHello world" in result.markdown

    @pytest.mark.asyncio
    async def test_styled_div_becomes_heading(self):
        """A title-classed div is promoted to a heading through the full pipeline."""
        html = '<h1>Doc</h1><h2>Part</h2><div class="section-title">Overview</div><p>Body text</p>'
        result = await convert_to_markdown(html, include_meta=False)

        assert "### Overview" in result.markdown

    @pytest.mark.asyncio
    async def test_without_tables(self):
        """include_tables=False removes tables."""
        html = "<p>Intro</p><table><tr><th>A</th></tr><tr><td>1</td></tr></table>"
        result = await convert_to_markdown(html, include_tables=False, include_meta=False)

        assert "|" not in result.markdown
        assert "Intro" in result.markdown

    @pytest.mark.asyncio
    async def test_relative_links_resolved(self):
        """base_url makes links and images absolute."""
        html = '<p><a href="/guide">Guide</a> <img src="logo.png" alt="Logo"></p>'
        result = await convert_to_markdown(html, base_url="https://example.com/docs/", include_meta=False)

        assert "[Guide](https://example.com/guide)" in result.markdown
        assert "![Logo](https://example.com/docs/logo.png)" in result.markdown

    @pytest.mark.asyncio
    async def test_lists_start_at_column_zero(self):
        """Top-level list items are not indented."""
        result = await convert_to_markdown("<ul><li>One</li><li>Two</li></ul>", include_meta=False)

        assert "- One\n- Two" in result.markdown
        assert "  - One" not in result.markdown

    @pytest.mark.asyncio
    async def test_code_block_language(self):
        """Code language survives cleaning and lands on the fence."""
        html = '<p>Example:</p><pre><code class="language-python">print("hi")</code></pre>'
        result = await convert_to_markdown(html, include_meta=False)

        assert '```python\nprint("hi")\n```' in result.markdown

    @pytest.mark.asyncio
    async def test_heading_levels_repaired(self):
        """Skipped heading levels are clamped."""
        result = await convert_to_markdown("<h2>Top</h2><h4>Sub</h4><p>Text</p>", include_meta=False)

        assert "# Top" in result.markdown
        assert "## Sub" in result.markdown
        assert "###" not in result.markdown

    @pytest.mark.asyncio
    async def test_truncation(self):
        """Output longer than max_length is cut and marked."""
        result = await convert_to_markdown(HELLO, include_meta=False, max_length=5)

        assert result.markdown == "# Hel" + TRUNCATION_MARKER
        assert result.stats.output_length == len(result.markdown)

    @pytest.mark.asyncio
    async def test_custom_rules(self):
        """Custom rules flow through to the renderer."""
        rule = MarkdownRule(name="highlight", filter="mark", replacement=lambda content, node: f"=={content}==")
        result = await convert_to_markdown(
            "<p>A <mark>key</mark> point</p>",
            ConversionOptions(custom_rules=[rule], include_meta=False),
        )

        assert "A ==key== point" in result.markdown

    @pytest.mark.asyncio
    async def test_extracts_article(self):
        """Long pages are narrowed to the article and the result says so."""
        paragraph = "Readable article text that goes on long enough to count as real content. " * 3
        html = (
            "<html><head><title>Long Read</title></head><body>"
            "<nav><a href='/'>Home</a></nav>"
            f"<article><h1>Long Read</h1><p>{paragraph}</p><p>{paragraph}</p><p>{paragraph}</p></article>"
            "</body></html>"
        )
        result = await convert_to_markdown(html, include_meta=False)

        assert result.stats.extraction_succeeded is True
        assert "Readable article text" in result.markdown
        assert "Home" not in result.markdown

    @pytest.mark.asyncio
    async def test_stats(self):
        """Stats record input and output lengths."""
        result = await convert_to_markdown(HELLO)

        assert result.stats.input_length == len(HELLO)
        assert result.stats.output_length == len(result.markdown)
        assert result.stats.processing_time_ms >= 0
        assert result.stats.extraction_succeeded is False

    @pytest.mark.asyncio
    async def test_options_mapping(self):
        """Options may be given as a mapping."""
        result = await convert_to_markdown(HELLO, {"include_meta": False, "llm_optimized": False})

        assert result.markdown == "# Hello\n\nWorld\n"


class TestModelFallback:
    """Tests for model rendering through the full pipeline."""

    @pytest.mark.asyncio
    async def test_missing_model_falls_back(self, tmp_path, events):
        """A missing model falls back to deterministic rendering with an event."""
        result = await convert_to_markdown(
            HELLO,
            include_meta=False,
            use_llm=True,
            llm_model_path=tmp_path / "missing.gguf",
            on_event=events.append,
        )

        assert "# Hello\n\nWorld" in result.markdown
        fallback = [event for event in events if event.type == EventType.FALLBACK_START]
        assert len(fallback) == 1
        assert "missing.gguf" in fallback[0].reason

    @pytest.mark.asyncio
    async def test_missing_model_without_fallback_raises(self, tmp_path):
        """With fallback disabled the model error reaches the caller."""
        with pytest.raises(ModelUnavailableError):
            await convert_to_markdown(
                HELLO,
                use_llm=True,
                llm_model_path=tmp_path / "missing.gguf",
                llm_fallback=False,
            )

    @pytest.mark.asyncio
    async def test_model_output_is_post_processed(self, fake_llama, model_file):
        """Model markdown goes through the same formatting as deterministic output."""
        fake_llama.pieces = ["```markdown\n", "### From\n\n\n\n* model", "\n```"]
        result = await convert_to_markdown(HELLO, include_meta=False, use_llm=True, llm_model_path=model_file)

        assert result.markdown == "# From\n\n- model\n"

    @pytest.mark.asyncio
    async def test_model_errors_share_base_class(self, tmp_path):
        """Model failures can be caught as ModelError."""
        with pytest.raises(ModelError):
            await Converter().convert(
                HELLO,
                use_llm=True,
                llm_model_path=tmp_path / "missing.gguf",
                llm_fallback=False,
            )


class TestFetchAndConvert:
    """Tests for URL input."""

    @pytest.mark.asyncio
    async def test_url_is_fetched(self):
        """convert_to_markdown fetches http(s) input first."""
        with patch("getmd.core.converter.fetch_url", AsyncMock(return_value="<h1>Remote</h1><p>Page</p>")) as fetch:
            result = await convert_to_markdown("https://example.com/page", include_meta=False)

        fetch.assert_awaited_once()
        assert fetch.call_args[0][0] == "https://example.com/page"
        assert "# Remote" in result.markdown
        assert result.metadata.canonical_url == "https://example.com/page"

    @pytest.mark.asyncio
    async def test_url_is_base_url(self):
        """Relative links in a fetched page resolve against its URL."""
        html = '<p><a href="next">Next</a></p>'
        with patch("getmd.core.converter.fetch_url", AsyncMock(return_value=html)):
            result = await fetch_and_convert("https://example.com/docs/start", include_meta=False)

        assert "[Next](https://example.com/docs/next)" in result.markdown


class TestConvertBlocking:
    """Tests for convert_blocking."""

    def test_blocking(self):
        """The blocking wrapper runs the conversion to completion."""
        result = convert_blocking(HELLO, include_meta=False)

        assert "# Hello" in result.markdown

    @pytest.mark.asyncio
    async def test_rejects_running_loop(self):
        """Calling it from async code is an error."""
        with pytest.raises(RuntimeError, match="async context"):
            convert_blocking(HELLO)


class TestBuildPipeline:
    """Tests for build_pipeline."""

    def test_stage_order(self):
        """The standard pipeline runs the nine stages in order."""
        names = [step.name for step in build_pipeline().steps]

        assert names == [
            "extract",
            "metadata",
            "clean",
            "enhance",
            "code_blocks",
            "filter",
            "render",
            "format",
            "postprocess",
        ]
