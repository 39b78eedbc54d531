"""
Structural parsing of raw YAML payloads into typed records.

Only shape is checked here (required keys, types, min lengths, enums, list
defaults). Cross-field rules live in `portfolio_pipeline.schema.validators`.
Unknown keys are ignored so authors can annotate documents freely.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .errors import SchemaError
from .models import (
    EDGE_RELS,
    IMPACT_TYPES,
    TOOL_CATEGORIES,
    Catalog,
    Company,
    DeepDive,
    Edge,
    HideConfig,
    Impact,
    OrderConfig,
    PeopleScope,
    Portfolio,
    Problem,
    Project,
    Solution,
    Theme,
    Tool,
)

_MISSING = object()


def _join(parent: str, key: str | int) -> str:
    if isinstance(key, int):
        return f"{parent}[{key}]"
    if not parent:
        return key
    return f"{parent}.{key}"


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    return type(value).__name__


class _Fields:
    """Field accessor for one mapping that reports failures with their full path."""

    def __init__(self, value: Any, path: str, source: str | None):
        if not isinstance(value, Mapping):
            raise SchemaError(path or "<root>", f"expected mapping, got {_type_name(value)}", source=source)
        self.data = value
        self.path = path
        self.source = source

    def fail(self, key: str | int, message: str) -> SchemaError:
        return SchemaError(_join(self.path, key), message, source=self.source)

    def raw(self, key: str, default: Any = _MISSING) -> Any:
        if key not in self.data or self.data.get(key) is None:
            if default is _MISSING:
                raise self.fail(key, "required field is missing")
            return default
        return self.data[key]

    def nested(self, key: str, *, default: Any = _MISSING) -> "_Fields":
        value = self.raw(key, default)
        return _Fields(value, _join(self.path, key), self.source)

    def string(self, key: str, *, min_length: int = 1) -> str:
        value = self.raw(key)
        return _check_string(value, _join(self.path, key), self.source, min_length=min_length)

    def optional_string(self, key: str) -> str | None:
        value = self.raw(key, None)
        if value is None:
            return None
        return _check_string(value, _join(self.path, key), self.source, min_length=0)

    def enum(self, key: str, allowed: tuple[str, ...]) -> str:
        value = self.raw(key)
        if not isinstance(value, str) or value not in allowed:
            raise self.fail(key, f"expected one of {', '.join(allowed)}, got {value!r}")
        return value

    def string_list(
        self, key: str, *, min_length: int = 0, required: bool = False, trimmed: bool = False
    ) -> tuple[str, ...]:
        value = self.raw(key) if required else self.raw(key, [])
        item_path = _join(self.path, key)
        if not isinstance(value, (list, tuple)):
            raise self.fail(key, f"expected list of strings, got {_type_name(value)}")
        return tuple(
            _check_string(item, _join(item_path, idx), self.source, min_length=min_length, trimmed=trimmed)
            for idx, item in enumerate(value)
        )

    def mapping_list(self, key: str, *, required: bool = True) -> list["_Fields"]:
        value = self.raw(key) if required else self.raw(key, [])
        item_path = _join(self.path, key)
        if not isinstance(value, (list, tuple)):
            raise self.fail(key, f"expected list, got {_type_name(value)}")
        return [_Fields(item, _join(item_path, idx), self.source) for idx, item in enumerate(value)]


def _check_string(value: Any, path: str, source: str | None, *, min_length: int, trimmed: bool = False) -> str:
    if not isinstance(value, str):
        raise SchemaError(path, f"expected string, got {_type_name(value)}", source=source)
    length = len(value.strip()) if trimmed else len(value)
    if length < min_length:
        qualifier = " after trimming" if trimmed else ""
        raise SchemaError(
            path,
            f"must be at least {min_length} characters{qualifier} (got {length}: {value!r})",
            source=source,
        )
    return value


def _parse_people_scope(fields: _Fields) -> PeopleScope:
    team_size = fields.raw("team_size", None)
    if team_size is not None:
        if isinstance(team_size, bool) or not isinstance(team_size, int):
            raise fields.fail("team_size", f"expected integer, got {_type_name(team_size)}")
        if team_size < 0:
            raise fields.fail("team_size", f"must be >= 0 (got {team_size})")
    return PeopleScope(team_size=team_size, team_model=fields.optional_string("team_model"))


def _parse_company(fields: _Fields) -> Company:
    return Company(
        id=fields.string("id", min_length=2),
        label=fields.string("label", min_length=2),
        role=fields.string("role", min_length=2),
        period=fields.string("period", min_length=2),
        tags=fields.string_list("tags"),
        people_scope=_parse_people_scope(fields.nested("people_scope", default={})),
    )


def _parse_impact(fields: _Fields) -> Impact:
    return Impact(
        id=fields.string("id", min_length=2),
        label=fields.string("label", min_length=4),
        type=fields.enum("type", IMPACT_TYPES),  # type: ignore[arg-type]
        metrics=fields.string_list("metrics"),
    )


def _parse_deep_dive(fields: _Fields) -> DeepDive:
    enabled = fields.raw("enabled", False)
    if not isinstance(enabled, bool):
        raise fields.fail("enabled", f"expected boolean, got {_type_name(enabled)}")
    return DeepDive(enabled=enabled, slug=fields.optional_string("slug") or None)


def _parse_project(fields: _Fields) -> Project:
    problem = fields.nested("problem")
    solution = fields.nested("solution")
    return Project(
        id=fields.string("id", min_length=2),
        title=fields.string("title", min_length=4),
        themes=fields.string_list("themes", min_length=2),
        problem=Problem(
            id=problem.string("id", min_length=2),
            statement=problem.string("statement", min_length=10),
        ),
        solution=Solution(
            id=solution.string("id", min_length=2),
            statement=solution.string("statement", min_length=10),
            tools=solution.string_list("tools", min_length=2, trimmed=True),
        ),
        impact_ids=fields.string_list("impact_ids", min_length=2),
        summary=fields.optional_string("summary"),
        deep_dive=_parse_deep_dive(fields.nested("deepDive", default={})),
    )


def _parse_edge(fields: _Fields) -> Edge:
    return Edge(
        from_id=fields.string("from", min_length=2),
        to_id=fields.string("to", min_length=2),
        rel=fields.enum("rel", EDGE_RELS),  # type: ignore[arg-type]
    )


def parse_portfolio(raw: Any, *, source: str | None = None) -> Portfolio:
    """
    Parse one company document into a `Portfolio`.

    Raises:
        SchemaError: on the first structural violation, naming the field path.
    """

    root = _Fields(raw, "", source)
    return Portfolio(
        company=_parse_company(root.nested("company")),
        impacts=tuple(_parse_impact(item) for item in root.mapping_list("impacts")),
        projects=tuple(_parse_project(item) for item in root.mapping_list("projects")),
        edges=tuple(_parse_edge(item) for item in root.mapping_list("edges")),
    )


def parse_catalog(raw: Any, *, source: str | None = None) -> Catalog:
    root = _Fields(raw, "", source)
    themes = tuple(
        Theme(id=item.string("id"), label=item.string("label")) for item in root.mapping_list("themes")
    )
    tools = tuple(
        Tool(
            id=item.string("id"),
            label=item.string("label"),
            category=item.enum("category", TOOL_CATEGORIES),  # type: ignore[arg-type]
        )
        for item in root.mapping_list("tools")
    )
    return Catalog(themes=themes, tools=tools)


def parse_order_config(raw: Any, *, source: str | None = None) -> OrderConfig:
    root = _Fields(raw, "", source)

    version = root.raw("version")
    if isinstance(version, bool) or not isinstance(version, int) or version <= 0:
        raise root.fail("version", f"expected positive integer, got {version!r}")

    lanes_fields = root.nested("lanes", default={})
    lanes: dict[str, tuple[str, ...]] = {}
    for company_id in lanes_fields.data:
        if not isinstance(company_id, str):
            raise lanes_fields.fail(str(company_id), "lane keys must be company id strings")
        lanes[company_id] = lanes_fields.string_list(company_id, required=True)

    hide = root.nested("hide", default={})
    return OrderConfig(
        version=version,
        companies=root.string_list("companies"),
        lanes=lanes,
        hide=HideConfig(
            companies=hide.string_list("companies"),
            lanes=hide.string_list("lanes"),
        ),
    )
