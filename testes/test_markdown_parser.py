import pytest

from site_import.models.sources import WordPressSource
from site_import.models.post import Post
from site_import.parsers.markdown_parser import (
    FilteredHTMLMarkdownExtractor,
    autop,
    markdown_from_html,
    strip_shortcodes,
)
from site_import.utils.errors import ExtractionError


def source(body, html=None):
    post = Post(
        id=1,
        title="Post",
        slug="post",
        link="https://leogdion.name/post/",
        body=body,
        pub_date="2020-01-01T00:00:00+00:00",
    )
    return WordPressSource(section_name="articles", post=post, html=html)


def test_headings_lists_and_images():
    html = (
        "<h2>Apps</h2>"
        "<ul><li>Things</li><li>Fantastical</li></ul>"
        '<p><img src="/media/leogdion/2019/08/productivity-apps.png" alt="Apps" /></p>'
    )

    markdown = markdown_from_html(html)

    assert "## Apps" in markdown
    assert "- Things" in markdown
    assert "![Apps](/media/leogdion/2019/08/productivity-apps.png)" in markdown


def test_scripts_are_removed():
    markdown = markdown_from_html("<p>Hello</p><script>alert('x')</script><style>p {}</style>")
    assert markdown == "Hello"


def test_plain_export_bodies_get_paragraphs():
    assert autop("First line\n\nSecond") == "<p>First line</p><p>Second</p>"
    assert autop("<p>Already</p>") == "<p>Already</p>"
    assert markdown_from_html("First line\n\nSecond") == "First line\n\nSecond"


def test_caption_shortcodes_are_stripped():
    html = '[caption id="attachment_1" align="aligncenter"]<img src="/a.png" alt="A" /> A[/caption]'
    assert strip_shortcodes(html) == '<img src="/a.png" alt="A" /> A'


def test_extractor_uses_rewritten_html_and_filters():
    extractor = FilteredHTMLMarkdownExtractor([str.upper])

    result = extractor.markdown(source("<p>original</p>", html="<p>rewritten</p>"), markdown_from_html)

    assert result == "REWRITTEN"


def test_converter_failures_become_extraction_errors():
    def broken(html):
        raise RuntimeError("boom")

    with pytest.raises(ExtractionError):
        FilteredHTMLMarkdownExtractor().markdown(source("<p>x</p>"), broken)
