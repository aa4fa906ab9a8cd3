"""Tests for pipeline steps and the render-mode state machine."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from getmd import ConversionOptions, EventType
from getmd.conversion import ExtractedContent
from getmd.llm import ModelInferenceError, ModelRenderResult, ModelUnavailableError, RenderStatus
from getmd.pipeline import ConversionContext, ConversionPipeline, RenderMode
from getmd.pipeline.steps import (
    CleanStep,
    CodeBlockStep,
    EnhanceStep,
    ExtractStep,
    FilterStep,
    FormatStep,
    MetadataStep,
    PostProcessStep,
    RenderStep,
)


def make_context(html="<h1>Hello</h1><p>World</p>", **options):
    return ConversionContext(source_html=html, options=ConversionOptions(**options))


class TestConversionContext:
    """Tests for ConversionContext."""

    def test_working_html_starts_as_source(self):
        """The working HTML is initialized from the source document."""
        ctx = make_context("<p>x</p>")

        assert ctx.html == "<p>x</p>"
        assert ctx.markdown is None
        assert ctx.render_mode is None
        assert ctx.metadata.is_empty()


class TestExtractStep:
    """Tests for ExtractStep."""

    @pytest.mark.asyncio
    async def test_uses_extracted_content(self):
        """Extracted content replaces the working HTML."""
        extractor = MagicMock()
        extractor.extract.return_value = ExtractedContent(content_html="<p>Main</p>", title="Extracted")
        ctx = make_context("<nav>x</nav><p>Main</p>", base_url="https://example.com/")

        ctx = await ExtractStep(extractor).execute(ctx)

        assert ctx.html == "<p>Main</p>"
        assert ctx.extraction_succeeded is True
        assert ctx.metadata.title == "Extracted"
        extractor.extract.assert_called_once_with("<nav>x</nav><p>Main</p>", "https://example.com/")

    @pytest.mark.asyncio
    async def test_nothing_found_keeps_document(self):
        """When the extractor finds nothing, the whole document is used."""
        extractor = MagicMock()
        extractor.extract.return_value = None
        ctx = await ExtractStep(extractor).execute(make_context("<p>All</p>"))

        assert ctx.html == "<p>All</p>"
        assert ctx.extraction_succeeded is False

    @pytest.mark.asyncio
    async def test_failure_keeps_document(self):
        """Extractor exceptions are recovered from."""
        extractor = MagicMock()
        extractor.extract.side_effect = ValueError("unparseable")
        ctx = await ExtractStep(extractor).execute(make_context("<p>All</p>"))

        assert ctx.html == "<p>All</p>"
        assert ctx.extraction_succeeded is False

    @pytest.mark.asyncio
    async def test_disabled(self):
        """extract_content=False skips the extractor."""
        extractor = MagicMock()
        await ExtractStep(extractor).execute(make_context(extract_content=False))

        extractor.extract.assert_not_called()


class TestMetadataStep:
    """Tests for MetadataStep."""

    @pytest.mark.asyncio
    async def test_extractor_values_win(self):
        """Scraped values only fill gaps left by the extractor."""
        html = '<html><head><title>Scraped</title><meta name="author" content="Ann"></head><body></body></html>'
        ctx = make_context(html)
        ctx.metadata = ExtractedContent(content_html="", title="Extracted").metadata

        ctx = await MetadataStep().execute(ctx)

        assert ctx.metadata.title == "Extracted"
        assert ctx.metadata.author == "Ann"

    @pytest.mark.asyncio
    async def test_scrapes_source_document(self):
        """Metadata comes from the original document, not the extracted subtree."""
        ctx = make_context('<html><head><meta property="og:title" content="OG"></head><body></body></html>')
        ctx.html = "<p>subtree</p>"

        ctx = await MetadataStep().execute(ctx)

        assert ctx.metadata.title == "OG"


class TestHtmlSteps:
    """Tests for the clean, enhance, code block and filter steps."""

    @pytest.mark.asyncio
    async def test_steps_rewrite_working_html(self):
        """Each step rewrites ctx.html and leaves the source alone."""
        source = (
            '<script>x()</script><h3 class="t">Title</h3>'
            '<pre>code</pre><p><img src="/a.png" alt="A"> text</p>'
        )
        ctx = make_context(source, include_images=False, base_url="https://example.com/")

        for step in (CleanStep(), EnhanceStep(), CodeBlockStep(), FilterStep()):
            ctx = await step.execute(ctx)

        assert "<script>" not in ctx.html
        assert "<h1>Title</h1>" in ctx.html
        assert "<pre><code>code</code></pre>" in ctx.html
        assert "<img" not in ctx.html
        assert ctx.source_html == source

    def test_step_names(self):
        """Steps are named for logging."""
        names = [step.name for step in (CleanStep(), EnhanceStep(), CodeBlockStep(), FilterStep())]

        assert names == ["clean", "enhance", "code_blocks", "filter"]


class TestRenderStep:
    """Tests for RenderStep."""

    @pytest.mark.asyncio
    async def test_deterministic_without_llm(self):
        """Without use_llm the model is never consulted."""
        runner = AsyncMock()
        ctx = await RenderStep(model_runner=runner).execute(make_context())

        assert ctx.render_mode is RenderMode.DETERMINISTIC
        assert "# Hello" in ctx.markdown
        runner.assert_not_called()

    @pytest.mark.asyncio
    async def test_model_success(self):
        """A successful model run ends in MODEL."""
        runner = AsyncMock(return_value=ModelRenderResult(status=RenderStatus.SUCCESS, markdown="# From model"))
        ctx = await RenderStep(model_runner=runner).execute(make_context(use_llm=True))

        assert ctx.render_mode is RenderMode.MODEL
        assert ctx.markdown == "# From model"

    @pytest.mark.asyncio
    async def test_fallback(self):
        """NEEDS_FALLBACK renders deterministically and emits fallback-start."""
        error = ModelUnavailableError("/models/missing.gguf")
        runner = AsyncMock(return_value=ModelRenderResult(status=RenderStatus.NEEDS_FALLBACK, error=error))
        emit = MagicMock()

        ctx = await RenderStep(model_runner=runner).execute(make_context(use_llm=True), emit)

        assert ctx.render_mode is RenderMode.FALLBACK_TO_DETERMINISTIC
        assert "# Hello" in ctx.markdown
        event = emit.call_args[0][0]
        assert event.type == EventType.FALLBACK_START
        assert "/models/missing.gguf" in event.reason

    @pytest.mark.asyncio
    async def test_fatal_raises(self):
        """FATAL raises the model error and marks the context FAILED."""
        error = ModelInferenceError("Model inference failed: boom")
        runner = AsyncMock(return_value=ModelRenderResult(status=RenderStatus.FATAL, error=error))
        ctx = make_context(use_llm=True, llm_fallback=False)

        with pytest.raises(ModelInferenceError):
            await RenderStep(model_runner=runner).execute(ctx)
        assert ctx.render_mode is RenderMode.FAILED

    @pytest.mark.asyncio
    async def test_renderer_factory(self):
        """The deterministic renderer is built per conversion from the options."""
        renderer = MagicMock()
        renderer.render.return_value = "custom"
        factory = MagicMock(return_value=renderer)
        ctx = make_context()

        ctx = await RenderStep(renderer_factory=factory).execute(ctx)

        assert ctx.markdown == "custom"
        factory.assert_called_once_with(ctx.options)


class TestFinalizeSteps:
    """Tests for FormatStep and PostProcessStep."""

    @pytest.mark.asyncio
    async def test_format_only_when_llm_optimized(self):
        """FormatStep is a no-op when llm_optimized is off."""
        ctx = make_context(llm_optimized=False)
        ctx.markdown = "### Deep"

        assert (await FormatStep().execute(ctx)).markdown == "### Deep"

        ctx = make_context()
        ctx.markdown = "### Deep"
        assert (await FormatStep().execute(ctx)).markdown == "# Deep"

    @pytest.mark.asyncio
    async def test_postprocess_builds_result(self):
        """The result carries frontmatter, stats and counts."""
        ctx = make_context('<p><img src="a.png"><a href="/x">x</a><a href="/y">y</a></p>')
        ctx.metadata = ExtractedContent(content_html="", title="Doc").metadata
        ctx.markdown = "# Doc\n\n\n\nOne two three."

        ctx = await PostProcessStep().execute(ctx)
        result = ctx.result

        assert result.markdown.startswith("---\ntitle: Doc\nword_count: 5\nreading_time: 1\n---\n\n# Doc")
        assert result.metadata.word_count == 5
        assert result.stats.image_count == 1
        assert result.stats.link_count == 2
        assert result.stats.output_length == len(result.markdown)
        assert ctx.markdown == result.markdown

    @pytest.mark.asyncio
    async def test_postprocess_without_meta(self):
        """include_meta=False omits the frontmatter but keeps metadata."""
        ctx = make_context(include_meta=False)
        ctx.markdown = "# Hello\n\nWorld"

        ctx = await PostProcessStep().execute(ctx)

        assert ctx.result.markdown == "# Hello\n\nWorld\n"
        assert ctx.result.metadata.word_count == 3


class TestConversionPipeline:
    """Tests for ConversionPipeline."""

    @pytest.mark.asyncio
    async def test_runs_steps_in_order(self):
        """Steps see the context left by the previous one."""
        calls = []

        class Recorder:
            def __init__(self, name):
                self.name = name

            async def execute(self, ctx, emit=None):
                calls.append(self.name)
                return ctx

        pipeline = ConversionPipeline(steps=[Recorder("a")]).add_step(Recorder("b"))
        await pipeline.execute("<p>x</p>", ConversionOptions())

        assert calls == ["a", "b"]

    @pytest.mark.asyncio
    async def test_step_errors_propagate(self):
        """A failing step's exception reaches the caller unchanged."""
        failing = MagicMock()
        failing.name = "boom"
        failing.execute = AsyncMock(side_effect=KeyError("missing"))

        with pytest.raises(KeyError):
            await ConversionPipeline(steps=[failing]).execute("<p>x</p>", ConversionOptions())
