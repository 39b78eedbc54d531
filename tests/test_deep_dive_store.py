import pytest

from portfolio_pipeline.content.deep_dives import DeepDiveStore, parse_deep_dive, split_frontmatter
from portfolio_pipeline.schema.errors import SchemaError


DOC = """---
title: Closing public buckets
themes: [cloud-security]
tools: [terraform, aws]
impactSnapshot:
  - 0 public buckets
status: published
---
# Body heading

Body text.
"""


def _write(tmp_path, name: str, text: str) -> None:
    (tmp_path / name).write_text(text, encoding="utf-8")


def test_split_frontmatter_without_fence_returns_whole_text():
    data, body = split_frontmatter("Just a body\n---\nnot frontmatter\n")

    assert data == {}
    assert body == "Just a body\n---\nnot frontmatter\n"


def test_split_frontmatter_empty_block():
    data, body = split_frontmatter("---\n---\nBody\n")

    assert data == {}
    assert body == "Body\n"


def test_split_frontmatter_rejects_non_mapping():
    with pytest.raises(SchemaError) as excinfo:
        split_frontmatter("---\n- a\n- b\n---\nBody\n", source="bad.mdx")

    assert excinfo.value.path == "frontmatter"
    assert excinfo.value.details["source"] == "bad.mdx"


def test_split_frontmatter_invalid_yaml_raises_value_error():
    with pytest.raises(ValueError, match="Invalid frontmatter YAML in broken.mdx"):
        split_frontmatter("---\ntitle: [unclosed\n---\nBody\n", source="broken.mdx")


def test_parse_deep_dive_reads_contract_fields_and_keeps_extras():
    doc = parse_deep_dive("prj-one", DOC)

    assert doc.slug == "prj-one"
    assert doc.frontmatter.title == "Closing public buckets"
    assert doc.frontmatter.themes == ("cloud-security",)
    assert doc.frontmatter.tools == ("terraform", "aws")
    assert doc.frontmatter.impact_snapshot == ("0 public buckets",)
    assert doc.frontmatter.extra == {"status": "published"}
    assert doc.body.startswith("# Body heading")


def test_display_title_falls_back_when_title_blank():
    doc = parse_deep_dive("prj-one", "---\ntitle: '   '\n---\nBody\n")

    assert doc.frontmatter.title is None
    assert doc.display_title("Project title") == "Project title"


def test_frontmatter_list_fields_must_be_strings():
    with pytest.raises(SchemaError) as excinfo:
        parse_deep_dive("prj-one", "---\ntools: terraform\n---\nBody\n")

    assert excinfo.value.path == "frontmatter.tools"


def test_store_lists_slugs_sorted(tmp_path):
    _write(tmp_path, "zeta.mdx", DOC)
    _write(tmp_path, "alpha.mdx", DOC)
    _write(tmp_path, "notes.txt", "ignored")
    (tmp_path / "nested.mdx").mkdir()

    store = DeepDiveStore(str(tmp_path))

    assert store.list_slugs() == ["alpha", "zeta"]


def test_store_missing_directory_is_empty(tmp_path):
    store = DeepDiveStore(str(tmp_path / "missing"))

    assert store.list_slugs() == []
    assert store.has_slug("anything") is False
    assert store.get_by_slug("anything") is None


def test_store_has_slug_and_get_by_slug(tmp_path):
    _write(tmp_path, "prj-one.mdx", DOC)
    store = DeepDiveStore(str(tmp_path))

    assert store.has_slug("prj-one") is True
    assert store.has_slug("nonexistent-file") is False
    assert store.get_by_slug("nonexistent-file") is None

    doc = store.get_by_slug("prj-one")
    assert doc is not None
    assert doc.path.endswith("prj-one.mdx")
    assert doc.frontmatter.title == "Closing public buckets"


@pytest.mark.parametrize("slug", ["", "   ", "../secrets", ".hidden", "a/b"])
def test_store_rejects_unsafe_slugs(tmp_path, slug):
    _write(tmp_path, ".hidden.mdx", DOC)
    store = DeepDiveStore(str(tmp_path))

    assert store.has_slug(slug) is False
    assert store.get_by_slug(slug) is None


def test_store_honours_custom_extension(tmp_path):
    _write(tmp_path, "prj-one.md", DOC)
    _write(tmp_path, "prj-two.mdx", DOC)

    store = DeepDiveStore(str(tmp_path), extension=".md")

    assert store.list_slugs() == ["prj-one"]
    assert store.has_slug("prj-two") is False
