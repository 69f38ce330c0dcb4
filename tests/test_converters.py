from pathlib import PurePosixPath

from markheim.converters import MarkdownConverter, markdown_to_html
from markheim.protocols import ContentConverter


def test_markdown_to_html_basic():
    assert markdown_to_html("Hello **world**") == "<p>Hello <strong>world</strong></p>\n"


def test_headings_get_unique_ids():
    html = markdown_to_html("# Intro\n\n## Intro\n\n## Next Steps!\n")
    assert '<h1 id="intro">Intro</h1>' in html
    assert '<h2 id="intro-1">Intro</h2>' in html
    assert '<h2 id="next-steps">Next Steps!</h2>' in html


def test_known_language_is_highlighted():
    html = markdown_to_html("```python\nprint('hi')\n```\n")
    assert 'class="highlight"' in html
    assert "print" in html


def test_unknown_language_falls_back_to_plain_code():
    html = markdown_to_html("```nosuchlang\na < b\n```\n")
    assert '<pre><code class="language-nosuchlang">a &lt; b\n</code></pre>' in html


def test_code_without_language():
    html = markdown_to_html("```\nx = 1\n```\n")
    assert "<pre><code>x = 1\n</code></pre>" in html


def test_tables_plugin_enabled():
    html = markdown_to_html("| a | b |\n|---|---|\n| 1 | 2 |\n")
    assert "<table>" in html


def test_converter_matches_configured_extensions():
    converter = MarkdownConverter("markdown,mkdown,md")
    assert isinstance(converter, ContentConverter)
    assert converter.matches(PurePosixPath("post.md"))
    assert converter.matches(PurePosixPath("docs/POST.MARKDOWN"))
    assert not converter.matches(PurePosixPath("page.html"))
    assert converter.output_path(PurePosixPath("docs/a.markdown")) == PurePosixPath("docs/a.html")


def test_converter_accepts_list_setting():
    converter = MarkdownConverter([".md", "txt", ""])
    assert converter.extensions == {".md", ".txt"}


def test_converter_from_config_defaults_to_md():
    assert MarkdownConverter.from_config({}).extensions == {".md"}
    assert MarkdownConverter.from_config({"markdown_ext": "mkd"}).extensions == {".mkd"}


def test_convert_delegates_to_markdown():
    assert MarkdownConverter("md").convert("*x*") == "<p><em>x</em></p>\n"


def test_convert_keeps_template_tags_verbatim():
    html = MarkdownConverter("md").convert(
        'See [home]({{ "/" | relative_url }}) and {{ "x" }}.\n\n'
        '{% if page.title == "A" %}yes{% endif %}\n'
    )
    assert '<a href="{{ "/" | relative_url }}">home</a>' in html
    assert '{{ "x" }}' in html
    assert '{% if page.title == "A" %}yes{% endif %}' in html
    assert "&quot;" not in html
    assert "zzmarkheimtag" not in html
