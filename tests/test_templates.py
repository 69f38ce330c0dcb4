import asyncio
from pathlib import Path, PurePosixPath

import pytest

from markheim.config import SiteConfig, SitePaths
from markheim.context import Globals
from markheim.engines import EngineRegistry
from markheim.errors import ConfigLoadError
from markheim.frontmatter import SourceFile
from markheim.protocols import RenderParams, TemplateEngine
from markheim.templates import RenderError, TemplateRenderer


def make_config(root: Path, template=None, **values) -> SiteConfig:
    paths = SitePaths.from_settings(
        root,
        root / "_config.yml",
        {"source": ".", "destination": "_site", "plugins": "_plugins", "layouts": "_layouts"},
    )
    settings = {
        "generator": "jekyll",
        "template": template or {"language": "jinja2", "layout_ext": ".html"},
        **values,
    }
    return SiteConfig(settings, paths)


def make_globals(config: SiteConfig, content: str, layout=None, page=None) -> Globals:
    source = SourceFile(
        path=config.paths.source / "page.html",
        relative=PurePosixPath("page.html"),
        raw=content.encode("utf-8"),
        front_matter={},
        body=content,
        has_front_matter=True,
    )
    return Globals(
        site=config,
        page=page or {"title": "Hello"},
        content=content,
        internals={config.generator: {"layout": layout}},
        source=source,
    )


class RecordingEngine:
    def __init__(self):
        self.calls = []

    def render_file(self, path, params):
        self.calls.append(("file", path, params))
        return "from file"

    def render(self, content, params):
        self.calls.append(("string", content, params))
        return "from string"


def test_render_through_layout(tmp_path):
    (tmp_path / "_layouts").mkdir()
    (tmp_path / "_layouts" / "default.html").write_text(
        "<title>{{ page.title }} | {{ site.title }}</title><main>{{ content }}</main>",
        encoding="utf-8",
    )
    config = make_config(tmp_path, title="My Site")
    renderer = TemplateRenderer(config)

    output = asyncio.run(renderer.render(make_globals(config, "<p>Hi</p>", layout="default")))

    assert output == b"<title>Hello | My Site</title><main><p>Hi</p></main>"


def test_render_without_layout_renders_content(tmp_path):
    config = make_config(tmp_path, title="My Site")
    renderer = TemplateRenderer(config)

    output = asyncio.run(
        renderer.render(make_globals(config, "{{ site.title }}: {{ page.title }}"))
    )

    assert output == b"My Site: Hello"


def test_blank_layout_renders_content(tmp_path):
    config = make_config(tmp_path)
    renderer = TemplateRenderer(config)
    output = asyncio.run(renderer.render(make_globals(config, "plain", layout="  ")))
    assert output == b"plain"


def test_layout_can_include_partials(tmp_path):
    (tmp_path / "_layouts").mkdir()
    (tmp_path / "_includes").mkdir()
    (tmp_path / "_layouts" / "default.html").write_text(
        "{% include 'nav.html' %}|{{ content }}", encoding="utf-8"
    )
    (tmp_path / "_includes" / "nav.html").write_text(
        "<nav>{{ page.title }}</nav>", encoding="utf-8"
    )
    config = make_config(tmp_path)
    renderer = TemplateRenderer(config)

    output = asyncio.run(renderer.render(make_globals(config, "body", layout="default")))

    assert output == b"<nav>Hello</nav>|body"


def test_layout_can_extend_another_layout(tmp_path):
    (tmp_path / "_layouts").mkdir()
    (tmp_path / "_layouts" / "base.html").write_text(
        "<body>{% block main %}{% endblock %}</body>", encoding="utf-8"
    )
    (tmp_path / "_layouts" / "post.html").write_text(
        "{% extends 'base.html' %}{% block main %}{{ post.title }}{% endblock %}",
        encoding="utf-8",
    )
    config = make_config(tmp_path)
    renderer = TemplateRenderer(config)

    output = asyncio.run(renderer.render(make_globals(config, "", layout="post")))

    assert output == b"<body>Hello</body>"


def test_missing_layout_raises_render_error(tmp_path):
    config = make_config(tmp_path)
    renderer = TemplateRenderer(config)
    globals_ = make_globals(config, "body", layout="nope")

    with pytest.raises(RenderError) as excinfo:
        asyncio.run(renderer.render(globals_))

    assert excinfo.value.source_path == globals_.source.path
    assert "Template not found" in excinfo.value.message


def test_template_syntax_error_raises_render_error(tmp_path):
    config = make_config(tmp_path)
    renderer = TemplateRenderer(config)

    with pytest.raises(RenderError) as excinfo:
        asyncio.run(renderer.render(make_globals(config, "{% if %}")))

    assert "Template syntax error" in excinfo.value.message
    assert excinfo.value.original_error is not None


def test_renderer_passes_locals_and_include_dir(tmp_path):
    config = make_config(tmp_path)
    engine = RecordingEngine()
    renderer = TemplateRenderer(config, engine=engine)

    output = asyncio.run(renderer.render(make_globals(config, "text", layout="post")))

    assert output == b"from file"
    kind, path, params = engine.calls[0]
    assert kind == "file"
    assert path == tmp_path / "_layouts" / "post.html"
    assert isinstance(params, RenderParams)
    assert params.include_dir == tmp_path / "_includes"
    assert set(params.locals) == {"site", "page", "content", "paginator", "post"}
    assert params.locals["content"] == "text"


def test_renderer_renders_string_without_layout(tmp_path):
    config = make_config(tmp_path)
    engine = RecordingEngine()
    renderer = TemplateRenderer(config, engine=engine)

    output = asyncio.run(renderer.render(make_globals(config, "text")))

    assert output == b"from string"
    assert engine.calls[0][:2] == ("string", "text")


def test_layout_ext_is_configurable(tmp_path):
    config = make_config(tmp_path, template={"language": "jinja2", "layout_ext": ".jinja"})
    renderer = TemplateRenderer(config, engine=RecordingEngine())
    assert renderer.layout_path("post") == tmp_path / "_layouts" / "post.jinja"


def test_filters_default_to_generator_name(tmp_path):
    config = make_config(tmp_path, template={"language": "jinja2"})
    renderer = TemplateRenderer(config)
    assert renderer.filters == "jekyll"
    assert renderer.layout_ext == ".html"
    assert renderer.engine.filters == "jekyll"


def test_explicit_filters_setting_wins(tmp_path):
    config = make_config(tmp_path, template={"language": "jinja2", "filters": "none"})
    renderer = TemplateRenderer(config)
    assert renderer.filters == "none"


def test_unknown_language_raises_config_error(tmp_path):
    config = make_config(tmp_path, template={"language": "liquid"})
    with pytest.raises(ConfigLoadError, match="Unknown template language 'liquid'"):
        TemplateRenderer(config)


def test_custom_engine_from_registry(tmp_path):
    created = {}

    def factory(layouts_dir=None, filters=None):
        created.update(layouts_dir=layouts_dir, filters=filters)
        return RecordingEngine()

    registry = EngineRegistry()
    registry.register("Fake", factory)
    config = make_config(tmp_path, template={"language": "fake"})
    renderer = TemplateRenderer(config, registry=registry)

    assert isinstance(renderer.engine, TemplateEngine)
    assert created == {"layouts_dir": tmp_path / "_layouts", "filters": "jekyll"}


def test_jekyll_filters_available_in_templates(tmp_path):
    config = make_config(tmp_path, baseurl="/blog")
    renderer = TemplateRenderer(config)
    content = "{{ '2020-03-04' | date_to_string }} {{ 'about/' | relative_url }}"

    output = asyncio.run(renderer.render(make_globals(config, content)))

    assert output == b"04 Mar 2020 /blog/about/"
