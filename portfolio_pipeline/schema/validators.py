"""
Semantic rules over one parsed portfolio document.

Each `check_*` function is pure and returns a `ValidationFailure` (or None when
the rule holds). The `validate_*` wrappers raise `PortfolioValidationError` so
loaders can fail fast; `validate_and_normalize` is the per-document entry point.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from typing import Protocol

from .errors import ValidationFailure, raise_on_failure
from .models import Portfolio


class SlugLookup(Protocol):
    """Minimal deep-dive store interface needed by `check_deep_dive`."""

    def has_slug(self, slug: str) -> bool: ...


def find_duplicates(ids: Iterable[str]) -> list[str]:
    """Ids that occur more than once, each reported once, in order of first repeat."""

    seen: set[str] = set()
    dupes: list[str] = []
    for item in ids:
        if item in seen and item not in dupes:
            dupes.append(item)
        seen.add(item)
    return dupes


def check_uniqueness(doc: Portfolio) -> ValidationFailure | None:
    id_classes = (
        ("DUPLICATE_PROJECT_ID", "project", [p.id for p in doc.projects]),
        ("DUPLICATE_IMPACT_ID", "impact", [i.id for i in doc.impacts]),
        ("DUPLICATE_PROBLEM_ID", "problem", [p.problem.id for p in doc.projects]),
        ("DUPLICATE_SOLUTION_ID", "solution", [p.solution.id for p in doc.projects]),
    )
    for rule, label, ids in id_classes:
        dupes = find_duplicates(ids)
        if dupes:
            return ValidationFailure(
                rule,
                f"Duplicate {label} IDs found: {', '.join(dupes)}",
                {"duplicates": dupes},
            )
    return None


def known_node_ids(doc: Portfolio) -> list[str]:
    """Every id an edge may point at, in declaration order."""

    ids: list[str] = [doc.company.id]
    for project in doc.projects:
        ids.extend((project.id, project.problem.id, project.solution.id))
    ids.extend(impact.id for impact in doc.impacts)
    return list(dict.fromkeys(ids))


def check_edge_integrity(doc: Portfolio) -> ValidationFailure | None:
    known = known_node_ids(doc)
    valid = set(known)
    for edge in doc.edges:
        for endpoint, node_id in (("from", edge.from_id), ("to", edge.to_id)):
            if node_id in valid:
                continue
            return ValidationFailure(
                "BROKEN_EDGE",
                f"Edge references unknown '{endpoint}' node: "
                f"\"{edge.from_id}\" -> \"{edge.to_id}\" (rel: {edge.rel})",
                {"edge": edge.as_dict(), "endpoint": endpoint, "missing": node_id, "known_ids": known},
            )
    return None


def check_deep_dive(doc: Portfolio, store: SlugLookup) -> ValidationFailure | None:
    for project in doc.projects:
        deep_dive = project.deep_dive
        if not deep_dive.enabled:
            continue
        if not deep_dive.slug:
            return ValidationFailure(
                "MISSING_DEEPDIVE_SLUG",
                f'Project "{project.id}" has deepDive.enabled=true but no slug specified',
                {"project_id": project.id},
            )
        if not store.has_slug(deep_dive.slug):
            return ValidationFailure(
                "MISSING_MDX_FILE",
                f'Project "{project.id}" references deep-dive slug "{deep_dive.slug}" '
                "but no content document exists for it",
                {"project_id": project.id, "slug": deep_dive.slug},
            )
    return None


def normalize_tool_list(tools: Iterable[str]) -> tuple[str, ...]:
    cleaned = (tool.strip().lower() for tool in tools)
    return tuple(dict.fromkeys(tool for tool in cleaned if tool))


def normalize_tools(doc: Portfolio) -> Portfolio:
    """Return a copy with each solution's tools trimmed, lowercased and deduplicated."""

    projects = tuple(
        dataclasses.replace(
            project,
            solution=dataclasses.replace(project.solution, tools=normalize_tool_list(project.solution.tools)),
        )
        for project in doc.projects
    )
    return dataclasses.replace(doc, projects=projects)


def validate_uniqueness(doc: Portfolio) -> None:
    raise_on_failure(check_uniqueness(doc))


def validate_edge_integrity(doc: Portfolio) -> None:
    raise_on_failure(check_edge_integrity(doc))


def validate_deep_dive(doc: Portfolio, store: SlugLookup) -> None:
    raise_on_failure(check_deep_dive(doc, store))


def validate_and_normalize(doc: Portfolio, store: SlugLookup) -> Portfolio:
    """
    Run every per-document rule, then normalize tools.

    Order: uniqueness -> edge integrity -> deep dive -> tool normalization.

    Raises:
        PortfolioValidationError: for the first rule that fails.
    """

    raise_on_failure(check_uniqueness(doc))
    raise_on_failure(check_edge_integrity(doc))
    raise_on_failure(check_deep_dive(doc, store))
    return normalize_tools(doc)
