"""
Deep-dive content store.

Long-form project write-ups live as one file per slug (`<slug>.mdx`) with YAML
frontmatter between `---` fences followed by the body text. The pipeline only
depends on the lookup contract (`list_slugs`, `has_slug`, `get_by_slug`) and on
the frontmatter fields below; body rendering belongs to the presentation layer.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import yaml

from portfolio_pipeline.schema.errors import SchemaError

FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE)


@dataclass(frozen=True)
class DeepDiveFrontmatter:
    """
    Frontmatter contract for deep-dive documents.

    Absent fields fall back to None (title) or an empty tuple (lists). Fields
    outside the contract are kept verbatim in `extra`.
    """

    title: str | None = None
    themes: tuple[str, ...] = ()
    tools: tuple[str, ...] = ()
    impact_snapshot: tuple[str, ...] = ()
    extra: Mapping[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_mapping(data: Mapping[str, Any], *, source: str | None = None) -> "DeepDiveFrontmatter":
        def string_list(key: str) -> tuple[str, ...]:
            value = data.get(key)
            if value is None:
                return ()
            if not isinstance(value, (list, tuple)) or not all(isinstance(item, str) for item in value):
                raise SchemaError(f"frontmatter.{key}", "expected list of strings", source=source)
            return tuple(value)

        title = data.get("title")
        if title is not None and not isinstance(title, str):
            raise SchemaError("frontmatter.title", "expected string", source=source)

        known = {"title", "themes", "tools", "impactSnapshot"}
        return DeepDiveFrontmatter(
            title=(title.strip() or None) if title is not None else None,
            themes=string_list("themes"),
            tools=string_list("tools"),
            impact_snapshot=string_list("impactSnapshot"),
            extra={key: value for key, value in data.items() if key not in known},
        )


@dataclass(frozen=True)
class DeepDiveDocument:
    slug: str
    path: str
    frontmatter: DeepDiveFrontmatter
    body: str

    def display_title(self, fallback: str) -> str:
        return self.frontmatter.title or fallback


def split_frontmatter(text: str, *, source: str | None = None) -> tuple[dict[str, Any], str]:
    """Split `---` fenced YAML frontmatter from the body. No fence means empty frontmatter."""

    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text

    try:
        payload = yaml.safe_load(match.group(1))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid frontmatter YAML in {source or '<document>'}: {exc}") from exc

    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        raise SchemaError("frontmatter", "expected mapping", source=source)
    return dict(payload), text[match.end() :]


def parse_deep_dive(slug: str, text: str, *, path: str = "") -> DeepDiveDocument:
    source = os.path.basename(path) if path else f"{slug}.mdx"
    data, body = split_frontmatter(text, source=source)
    return DeepDiveDocument(
        slug=slug,
        path=path,
        frontmatter=DeepDiveFrontmatter.from_mapping(data, source=source),
        body=body,
    )


class DeepDiveStore:
    """Filesystem-backed deep-dive lookup by filename stem."""

    def __init__(self, content_dir: str, *, extension: str = ".mdx"):
        self.content_dir = content_dir
        self.extension = extension

    def _path_for(self, slug: str) -> str | None:
        if not isinstance(slug, str) or not slug.strip():
            return None
        if slug.startswith(".") or "/" in slug or "\\" in slug or os.sep in slug:
            return None
        return os.path.join(self.content_dir, f"{slug}{self.extension}")

    def list_slugs(self) -> list[str]:
        if not os.path.isdir(self.content_dir):
            return []
        return sorted(
            name[: -len(self.extension)]
            for name in os.listdir(self.content_dir)
            if name.endswith(self.extension) and os.path.isfile(os.path.join(self.content_dir, name))
        )

    def has_slug(self, slug: str) -> bool:
        path = self._path_for(slug)
        return path is not None and os.path.isfile(path)

    def get_by_slug(self, slug: str) -> DeepDiveDocument | None:
        path = self._path_for(slug)
        if path is None or not os.path.isfile(path):
            return None
        with open(path, "r", encoding="utf-8") as handle:
            text = handle.read()
        return parse_deep_dive(slug, text, path=path)
