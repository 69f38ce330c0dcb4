from datetime import date, datetime
from pathlib import Path, PurePosixPath

from markheim.config import SiteConfig, SitePaths
from markheim.context import Globals, build_globals, sort_posts
from markheim.frontmatter import SourceFile
from markheim.variables import Partition


def make_config(root: Path, **values) -> SiteConfig:
    paths = SitePaths.from_settings(
        root,
        root / "_config.yml",
        {"source": ".", "destination": "_site", "plugins": "_plugins", "layouts": "_layouts"},
    )
    return SiteConfig({"generator": "jekyll", **values}, paths)


def make_source(root: Path, body: str = "Body text") -> SourceFile:
    return SourceFile(
        path=root / "index.html",
        relative=PurePosixPath("index.html"),
        raw=body.encode("utf-8"),
        front_matter={"title": "Home"},
        body=body,
        has_front_matter=True,
    )


def make_partition(**internals) -> Partition:
    return Partition(internals=internals, page={"title": "Home"}, custom={})


def test_build_globals_populates_context(tmp_path):
    config = make_config(tmp_path, title="Site")
    globals_ = build_globals(make_source(tmp_path), make_partition(layout="post"), config)

    assert globals_.site is config
    assert globals_.page == {"title": "Home"}
    assert globals_.content == "Body text"
    assert globals_.paginator is None
    assert globals_.internals == {"jekyll": {"layout": "post"}}
    assert globals_.file_internals == {"layout": "post"}


def test_locals_hide_internals(tmp_path):
    config = make_config(tmp_path)
    globals_ = build_globals(make_source(tmp_path), make_partition(layout="post"), config)
    context = globals_.locals()

    assert set(context) == {"site", "page", "content", "paginator", "post"}
    assert "layout" not in context["page"]
    assert context["post"] == context["page"]
    assert context["post"] is not context["page"]


def test_posts_sorted_newest_first(tmp_path):
    config = make_config(
        tmp_path, posts=[{"date": "2020-01-01"}, {"date": "2021-01-01"}]
    )
    globals_ = build_globals(make_source(tmp_path), make_partition(), config)

    assert [post["date"] for post in globals_.site["posts"]] == [
        "2021-01-01",
        "2020-01-01",
    ]
    # the shared configuration keeps its original order
    assert [post["date"] for post in config["posts"]] == ["2020-01-01", "2021-01-01"]


def test_sorted_posts_reuse_config(tmp_path):
    config = make_config(
        tmp_path, posts=[{"date": "2021-01-01"}, {"date": "2020-01-01"}]
    )
    globals_ = build_globals(make_source(tmp_path), make_partition(), config)
    assert globals_.site is config


def test_sort_posts_places_undated_last_in_original_order():
    posts = [
        {"title": "no-date-1"},
        {"title": "old", "date": date(2019, 5, 1)},
        {"title": "bad", "date": "someday"},
        {"title": "new", "date": datetime(2022, 1, 1, 12, 0)},
        {"title": "mid", "date": "2020-06-01"},
    ]
    ordered = [post["title"] for post in sort_posts(posts)]
    assert ordered == ["new", "mid", "old", "no-date-1", "bad"]


def test_sort_posts_is_stable_for_equal_dates():
    posts = [
        {"title": "a", "date": "2020-01-01"},
        {"title": "b", "date": date(2020, 1, 1)},
        {"title": "c", "date": "2020-01-01"},
    ]
    assert [post["title"] for post in sort_posts(posts)] == ["a", "b", "c"]


def test_globals_without_source_defaults(tmp_path):
    config = make_config(tmp_path)
    globals_ = Globals(site=config, page={})
    assert globals_.file_internals == {}
    assert globals_.locals()["content"] is None
