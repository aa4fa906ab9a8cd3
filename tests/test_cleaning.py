"""Tests for the HTML rewriting stages: clean, enhance, code blocks, filter."""

from bs4 import BeautifulSoup

from getmd.conversion import NodeKind, clean_html, enhance_structure, filter_content, node_kind, normalize_code_blocks
from getmd.conversion.dom import element_children, iter_comments


def parse(html):
    return BeautifulSoup(html, "html.parser")


class TestCleanHtml:
    """Tests for clean_html."""

    def test_removes_scripts_styles_and_noscript(self):
        """Script, style and noscript are removed even when not aggressive."""
        html = "<script>alert(1)</script><style>p{}</style><noscript>JS off</noscript><p>Body</p>"
        result = clean_html(html, aggressive=False)

        assert "alert" not in result
        assert "p{}" not in result
        assert "JS off" not in result
        assert "Body" in result

    def test_strips_attributes_outside_allow_list(self):
        """Only href, src, alt, title, colspan, rowspan and align survive."""
        html = (
            '<div class="wrapper" id="main" data-x="1">'
            '<p style="color: red" onclick="go()">Hi <a href="https://example.com" rel="nofollow">link</a></p>'
            '<table><tr><td colspan="2" align="right" width="50">Cell</td></tr></table>'
            "</div>"
        )
        soup = parse(clean_html(html))

        for element in soup.find_all(True):
            assert set(element.attrs) <= {"href", "src", "alt", "title", "colspan", "rowspan", "align"}
        cell = soup.find("td")
        assert cell["colspan"] == "2"
        assert cell["align"] == "right"

    def test_resolves_relative_urls(self):
        """Relative src and href are made absolute against base_url."""
        html = '<p><a href="/guide">Guide</a> <img src="img/logo.png" alt="Logo"></p>'
        soup = parse(clean_html(html, base_url="https://example.com/docs/"))

        assert soup.find("a")["href"] == "https://example.com/guide"
        assert soup.find("img")["src"] == "https://example.com/docs/img/logo.png"

    def test_leaves_fragments_and_mailto_alone(self):
        """Fragment, mailto and absolute URLs are not rewritten."""
        html = '<p><a href="#top">Top</a> <a href="mailto:a@b.c">Mail</a> <a href="https://other.org/x">X</a></p>'
        soup = parse(clean_html(html, base_url="https://example.com/"))

        hrefs = [a["href"] for a in soup.find_all("a")]
        assert hrefs == ["#top", "mailto:a@b.c", "https://other.org/x"]

    def test_promotes_lazy_image_source(self):
        """data-src becomes src before attributes are pruned."""
        html = '<p><img data-src="/lazy.png" alt="Lazy"></p>'
        img = parse(clean_html(html, base_url="https://example.com/")).find("img")

        assert img["src"] == "https://example.com/lazy.png"
        assert "data-src" not in img.attrs

    def test_removes_navigation_and_sidebars(self):
        """Aggressive mode drops nav, asides and ads."""
        html = (
            '<nav role="navigation"><a href="/">Home</a></nav>'
            "<aside><p>Sidebar stuff</p></aside>"
            '<div class="advertisement">Buy now</div>'
            "<p>Article body</p>"
        )
        result = clean_html(html)

        assert "Home" not in result
        assert "Sidebar stuff" not in result
        assert "Buy now" not in result
        assert "Article body" in result

    def test_non_aggressive_keeps_noise(self):
        """Without aggressive cleanup, noise selectors are not applied."""
        html = "<aside><p>Sidebar stuff</p></aside><p>Article body</p>"
        result = clean_html(html, aggressive=False)

        assert "Sidebar stuff" in result

    def test_removes_short_boilerplate(self):
        """Short elements mentioning newsletter or cookie phrases are removed."""
        html = "<div><p>Sign up for our weekly digest</p></div><p>Real content stays here.</p>"
        result = clean_html(html)

        assert "Sign up" not in result
        assert "Real content stays here." in result

    def test_keeps_long_text_mentioning_boilerplate_phrase(self):
        """Long paragraphs that merely mention a phrase are content."""
        text = "Our newsletter archive explains the release process in detail. " * 5
        result = clean_html(f"<p>{text}</p>")

        assert "newsletter archive" in result

    def test_boilerplate_length_boundary(self):
        """Text of exactly 200 characters is long enough to be content."""
        kept = clean_html(f"<p>follow us {'a' * 190}</p>")
        removed = clean_html(f"<p>follow us {'a' * 189}</p>")

        assert "follow us" in kept
        assert "follow us" not in removed

    def test_removes_comments(self):
        """HTML comments are dropped."""
        result = clean_html("<p>Visible<!-- hidden note --></p>")

        assert "hidden note" not in result
        assert "Visible" in result

    def test_removes_empty_and_separator_elements(self):
        """Empty containers and separator-only paragraphs disappear."""
        html = "<div></div><p>   </p><p>|</p><p>---</p><span></span><p>Text</p>"
        soup = parse(clean_html(html))

        assert [p.get_text() for p in soup.find_all("p")] == ["Text"]
        assert soup.find("div") is None
        assert soup.find("span") is None

    def test_keeps_image_only_containers(self):
        """A wrapper holding only an image is not empty."""
        html = '<div><img src="https://example.com/a.png" alt="A"></div>'
        soup = parse(clean_html(html))

        assert soup.find("img") is not None

    def test_keeps_empty_table_cells(self):
        """Empty cells keep their column."""
        html = "<table><tr><td>A</td><td></td><td>C</td></tr></table>"
        soup = parse(clean_html(html))

        assert len(soup.find_all("td")) == 3

    def test_keeps_code_language_hint(self):
        """A language class survives attribute stripping as a title hint."""
        html = '<pre><code class="language-python">x = 1</code></pre>'
        code = parse(clean_html(html)).find("code")

        assert code["title"] == "language-python"
        assert "class" not in code.attrs

    def test_applies_clipboard_source_before_stripping(self):
        """Clipboard data attributes are used before they are stripped."""
        html = (
            '<div data-snippet-clipboard-copy-content="npm install getmd">'
            '<pre><span class="k">npm</span> <span>install</span></pre></div>'
        )
        soup = parse(clean_html(html))

        assert soup.find("code").get_text() == "npm install getmd"


class TestEnhanceStructure:
    """Tests for enhance_structure."""

    @staticmethod
    def levels(html):
        return [int(h.name[1]) for h in parse(html).find_all(["h1", "h2", "h3", "h4", "h5", "h6"])]

    def test_clamps_skipped_levels(self):
        """Each heading is at most one level below the previous."""
        result = enhance_structure("<h1>A</h1><h3>B</h3><h6>C</h6>")

        assert self.levels(result) == [1, 2, 3]

    def test_lone_deep_heading_becomes_h1(self):
        """The first heading cannot be deeper than h1."""
        result = enhance_structure("<h5>Only</h5><p>Text</p>")

        assert self.levels(result) == [1]

    def test_headings_going_up_are_unchanged(self):
        """Returning to a shallower level is allowed."""
        result = enhance_structure("<h1>A</h1><h2>B</h2><h3>C</h3><h2>D</h2><h1>E</h1>")

        assert self.levels(result) == [1, 2, 3, 2, 1]

    def test_heading_levels_never_jump(self):
        """No heading is more than one level deeper than its predecessor."""
        result = enhance_structure("<h2>A</h2><h4>B</h4><h1>C</h1><h6>D</h6><h3>E</h3>")
        levels = self.levels(result)

        assert levels[0] == 1
        for previous, current in zip(levels, levels[1:]):
            assert current <= previous + 1

    def test_idempotent(self):
        """Enhancing twice gives the same result as once."""
        html = '<div><div><p><div class="title">Intro</div></p></div></div><h4>Deep</h4><p>Text</p>'
        once = enhance_structure(html)

        assert enhance_structure(once) == once

    def test_unwraps_nested_divs(self):
        """div>div chains collapse to one div."""
        soup = parse(enhance_structure("<div><div><div><p>Text</p></div></div></div>"))

        assert len(soup.find_all("div")) == 1
        assert soup.find("p").get_text() == "Text"

    def test_unwraps_paragraph_holding_single_block(self):
        """A paragraph wrapping one block element is replaced by it."""
        soup = parse(enhance_structure("<p><ul><li>One</li></ul></p>"))

        assert soup.find("p") is None
        assert soup.find("ul") is not None

    def test_promotes_title_classed_div(self):
        """Short title-classed divs become h3 headings."""
        html = '<h1>Doc</h1><h2>Part</h2><div class="section-title">Overview</div><p>Text</p>'
        soup = parse(enhance_structure(html))

        heading = soup.find("h3")
        assert heading is not None
        assert heading.get_text() == "Overview"

    def test_promotes_bold_span(self):
        """Bold-styled spans become headings."""
        html = '<h1>Doc</h1><h2>Part</h2><span style="font-weight: bold">Key points</span>'
        soup = parse(enhance_structure(html))

        assert soup.find("h3").get_text() == "Key points"

    def test_promoted_heading_is_clamped(self):
        """A promoted heading follows the same level repair."""
        soup = parse(enhance_structure('<div class="heading">First</div><p>Text</p>'))

        assert soup.find("h1").get_text() == "First"

    def test_promotes_after_cleaning(self):
        """Heading styling survives the cleaner, which strips class and style."""
        html = '<h1>Doc</h1><h2>Part</h2><div class="section-title">Overview</div><p>Body text</p>'
        soup = parse(enhance_structure(clean_html(html)))

        assert soup.find("h3").get_text() == "Overview"
        assert soup.find(title=True) is None

    def test_unpromoted_candidates_lose_the_mark(self):
        """Styled elements too long to promote keep no trace of the styling."""
        text = "x" * 150
        soup = parse(enhance_structure(clean_html(f'<div class="card-title">{text}</div>')))

        assert soup.find("h3") is None
        assert soup.find(title=True) is None
        assert text in soup.get_text()

    def test_does_not_promote_long_text(self):
        """Text of 100 characters or more stays as it is."""
        text = "x" * 120
        soup = parse(enhance_structure(f'<div class="title">{text}</div>'))

        assert soup.find("h3") is None
        assert soup.find("h1") is None


class TestNormalizeCodeBlocks:
    """Tests for normalize_code_blocks."""

    def test_uses_clipboard_content(self):
        """Highlighted markup is replaced by the clipboard source."""
        html = (
            "<div data-code-content=\"print('hi')\">"
            '<pre><span class="k">print</span>(<span class="s">\'hi\'</span>)</pre></div>'
        )
        soup = parse(normalize_code_blocks(html))

        assert soup.find("pre").find("code").get_text() == "print('hi')"
        assert soup.find("span") is None

    def test_wraps_bare_pre(self):
        """A pre without code gets a code child holding its text."""
        soup = parse(normalize_code_blocks("<pre>line one\n  line two</pre>"))

        code = soup.find("pre").find("code")
        assert code is not None
        assert code.get_text() == "line one\n  line two"

    def test_leaves_existing_code_alone(self):
        """Well-formed code blocks are not rewritten."""
        html = '<pre><code class="language-js">let a = 1;</code></pre>'

        assert normalize_code_blocks(html) == html

    def test_ignores_whitespace_only_pre(self):
        """Blank pre elements are not wrapped."""
        soup = parse(normalize_code_blocks("<pre>   </pre>"))

        assert soup.find("code") is None

    def test_idempotent(self):
        """A second pass changes nothing."""
        html = '<pre>a</pre><figure data-clipboard-text="b = 2"><pre><b>b</b></pre></figure>'
        once = normalize_code_blocks(html)

        assert normalize_code_blocks(once) == once


class TestFilterContent:
    """Tests for filter_content."""

    def test_everything_included_is_unchanged(self):
        """With every option on, the HTML is returned as-is."""
        html = '<p>A <a href="/x">b</a></p><img src="c.png">'

        assert filter_content(html) == html

    def test_removes_images_pictures_and_figures(self):
        """include_images=False drops img, picture and figure."""
        html = (
            '<p>Text <img src="a.png"></p>'
            '<figure><img src="b.png"><figcaption>Caption</figcaption></figure>'
            '<picture><source srcset="c.webp"><img src="c.png"></picture>'
        )
        soup = parse(filter_content(html, include_images=False))

        assert soup.find("img") is None
        assert soup.find("figure") is None
        assert soup.find("picture") is None
        assert "Text" in soup.get_text()

    def test_replaces_links_with_text(self):
        """include_links=False keeps link text in place."""
        soup = parse(filter_content('<p>See <a href="/docs">the docs</a> now</p>', include_links=False))

        assert soup.find("a") is None
        assert soup.find("p").get_text() == "See the docs now"

    def test_removes_tables(self):
        """include_tables=False drops tables entirely."""
        html = "<p>Before</p><table><tr><td>Cell</td></tr></table><p>After</p>"
        result = filter_content(html, include_tables=False)

        assert "Cell" not in result
        assert "Before" in result and "After" in result


class TestNodeKind:
    """Tests for node classification."""

    def test_kinds(self):
        """Documents, elements, text and comments are told apart."""
        soup = parse("<!DOCTYPE html><p>Text<!-- note --></p>")
        p = soup.find("p")
        text, comment = p.contents

        assert node_kind(soup) is NodeKind.DOCUMENT
        assert node_kind(p) is NodeKind.ELEMENT
        assert node_kind(text) is NodeKind.TEXT
        assert node_kind(comment) is NodeKind.COMMENT
        assert node_kind(soup.contents[0]) is NodeKind.OTHER

    def test_helpers_use_kinds(self):
        """Comment and child helpers only return their own kind."""
        soup = parse("<div>a<span>b</span><!-- c --><em>d</em></div>")

        assert [child.name for child in element_children(soup.div)] == ["span", "em"]
        assert [str(comment).strip() for comment in iter_comments(soup)] == ["c"]
