"""
STAR-lane layout engine.

Each project becomes a self-contained horizontal lane:

    [PROBLEM] --> [SOLUTION] --> [IMPACT badges]

No cross-project edges in the default overview; impacts sharing a type are
merged into one badge per lane. Pure functions only: nothing here touches the
filesystem, the loader or the deep-dive store.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, Mapping

from portfolio_pipeline.schema.models import Impact, Portfolio, Project

IMPACT_TYPE_ORDER: tuple[str, ...] = ("reliability", "observability", "scalability", "security")

_FIRST_SENTENCE_RE = re.compile(r"^.*?[.!?]", re.DOTALL)


@dataclass(frozen=True)
class LaneImpact:
    id: str
    label: str
    type: str
    metrics: tuple[str, ...] = ()


@dataclass(frozen=True)
class StarLane:
    project_id: str
    project_title: str
    project_summary: str
    deep_dive_slug: str | None
    problem_id: str
    problem_text: str
    solution_id: str
    solution_text: str
    tools: tuple[str, ...]
    themes: tuple[str, ...]
    impacts: tuple[LaneImpact, ...]
    index: int


@dataclass(frozen=True)
class StarLayout:
    company_id: str
    company_label: str
    company_role: str
    company_period: str
    lanes: tuple[StarLane, ...]
    all_impacts: tuple[Impact, ...]
    impact_project_map: Mapping[str, tuple[str, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class ImpactGroup:
    type: str
    impacts: tuple[LaneImpact, ...]


def derive_summary(project: Project) -> str:
    """Explicit summary, else the first sentence of the solution statement, else the whole statement."""

    if project.summary and project.summary.strip():
        return project.summary.strip()
    statement = project.solution.statement
    match = _FIRST_SENTENCE_RE.match(statement)
    if match:
        return match.group(0).strip()
    return statement.strip()


def _dedupe_casefold(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for value in values:
        key = value.casefold()
        if key in seen:
            continue
        seen.add(key)
        out.append(value)
    return out


def merge_impacts_by_type(impacts: Sequence[LaneImpact]) -> list[LaneImpact]:
    """
    Collapse impacts that share a type into one display entry per type.

    Groups appear in the order their type is first seen. A merged entry joins
    member ids with "+", unique labels with "; " and keeps unique metrics;
    single-member groups are returned unchanged.
    """

    groups: dict[str, list[LaneImpact]] = {}
    for impact in impacts:
        groups.setdefault(impact.type.lower(), []).append(impact)

    merged: list[LaneImpact] = []
    for members in groups.values():
        if len(members) == 1:
            merged.append(members[0])
            continue
        merged.append(
            LaneImpact(
                id="+".join(member.id for member in members),
                label="; ".join(_dedupe_casefold(member.label for member in members)),
                type=members[0].type,
                metrics=tuple(_dedupe_casefold(metric for member in members for metric in member.metrics)),
            )
        )
    return merged


def group_impacts_by_type(impacts: Sequence[LaneImpact]) -> list[ImpactGroup]:
    """Canonical display grouping: IMPACT_TYPE_ORDER, empty types omitted, member order kept."""

    buckets: dict[str, list[LaneImpact]] = {}
    for impact in impacts:
        buckets.setdefault(impact.type, []).append(impact)
    return [
        ImpactGroup(type=impact_type, impacts=tuple(buckets[impact_type]))
        for impact_type in IMPACT_TYPE_ORDER
        if impact_type in buckets
    ]


def _resolve_impacts(project: Project, impact_map: Mapping[str, Impact]) -> list[LaneImpact]:
    resolved: list[LaneImpact] = []
    for impact_id in project.impact_ids:
        impact = impact_map.get(impact_id)
        if impact is None:
            continue
        resolved.append(LaneImpact(id=impact.id, label=impact.label, type=impact.type, metrics=tuple(impact.metrics)))
    return resolved


def compute_layout(portfolio: Portfolio) -> StarLayout:
    company = portfolio.company
    impact_map = {impact.id: impact for impact in portfolio.impacts}

    project_ids_by_impact: dict[str, list[str]] = {}
    for project in portfolio.projects:
        for impact_id in project.impact_ids:
            project_ids_by_impact.setdefault(impact_id, []).append(project.id)

    lanes = tuple(
        StarLane(
            project_id=project.id,
            project_title=project.title,
            project_summary=derive_summary(project),
            deep_dive_slug=project.deep_dive.slug if project.deep_dive.enabled else None,
            problem_id=project.problem.id,
            problem_text=project.problem.statement,
            solution_id=project.solution.id,
            solution_text=project.solution.statement,
            tools=tuple(project.solution.tools),
            themes=tuple(project.themes),
            impacts=tuple(merge_impacts_by_type(_resolve_impacts(project, impact_map))),
            index=index,
        )
        for index, project in enumerate(portfolio.projects)
    )

    return StarLayout(
        company_id=company.id,
        company_label=company.label,
        company_role=company.role,
        company_period=company.period,
        lanes=lanes,
        all_impacts=tuple(portfolio.impacts),
        impact_project_map={key: tuple(value) for key, value in project_ids_by_impact.items()},
    )


def _lane_impact_to_dict(impact: LaneImpact | Impact) -> dict[str, Any]:
    return {"id": impact.id, "label": impact.label, "type": impact.type, "metrics": list(impact.metrics)}


def layout_to_dict(layout: StarLayout) -> dict[str, Any]:
    """JSON-ready mapping using the presentation layer's camelCase field names."""

    lanes: list[dict[str, Any]] = []
    for lane in layout.lanes:
        payload: dict[str, Any] = {
            "projectId": lane.project_id,
            "projectTitle": lane.project_title,
            "projectSummary": lane.project_summary,
            "problemId": lane.problem_id,
            "problemText": lane.problem_text,
            "solutionId": lane.solution_id,
            "solutionText": lane.solution_text,
            "tools": list(lane.tools),
            "impacts": [_lane_impact_to_dict(impact) for impact in lane.impacts],
            "themes": list(lane.themes),
            "index": lane.index,
        }
        if lane.deep_dive_slug:
            payload["deepDiveSlug"] = lane.deep_dive_slug
        lanes.append(payload)

    return {
        "companyId": layout.company_id,
        "companyLabel": layout.company_label,
        "companyRole": layout.company_role,
        "companyPeriod": layout.company_period,
        "lanes": lanes,
        "allImpacts": [_lane_impact_to_dict(impact) for impact in layout.all_impacts],
        "impactProjectMap": {key: list(value) for key, value in layout.impact_project_map.items()},
    }
