"""
Typed portfolio records.

Everything here is immutable once constructed: the loader builds these at
startup and hands them to the layout engine and presentation layer read-only.
Keep ids stable; routes and deep links depend on them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Mapping

ImpactType = Literal["reliability", "observability", "scalability", "security"]
EdgeRel = Literal["owns", "has_problem", "has_solution", "solved_by", "drives"]
ToolCategory = Literal[
    "cloud",
    "iac",
    "observability",
    "incident",
    "security",
    "language",
    "platform",
    "collaboration",
    "data",
    "integration",
    "other",
]

IMPACT_TYPES: tuple[str, ...] = ("reliability", "observability", "scalability", "security")
EDGE_RELS: tuple[str, ...] = ("owns", "has_problem", "has_solution", "solved_by", "drives")
TOOL_CATEGORIES: tuple[str, ...] = (
    "cloud",
    "iac",
    "observability",
    "incident",
    "security",
    "language",
    "platform",
    "collaboration",
    "data",
    "integration",
    "other",
)


@dataclass(frozen=True)
class PeopleScope:
    team_size: int | None = None
    team_model: str | None = None


@dataclass(frozen=True)
class Company:
    id: str
    label: str
    role: str
    period: str
    tags: tuple[str, ...] = ()
    people_scope: PeopleScope = field(default_factory=PeopleScope)


@dataclass(frozen=True)
class Problem:
    id: str
    statement: str


@dataclass(frozen=True)
class Solution:
    id: str
    statement: str
    tools: tuple[str, ...] = ()


@dataclass(frozen=True)
class DeepDive:
    enabled: bool = False
    slug: str | None = None


@dataclass(frozen=True)
class Project:
    id: str
    title: str
    problem: Problem
    solution: Solution
    themes: tuple[str, ...] = ()
    impact_ids: tuple[str, ...] = ()
    summary: str | None = None
    deep_dive: DeepDive = field(default_factory=DeepDive)


@dataclass(frozen=True)
class Impact:
    id: str
    label: str
    type: ImpactType
    metrics: tuple[str, ...] = ()


@dataclass(frozen=True)
class Edge:
    from_id: str
    to_id: str
    rel: EdgeRel

    def as_dict(self) -> dict[str, str]:
        return {"from": self.from_id, "to": self.to_id, "rel": self.rel}


@dataclass(frozen=True)
class Portfolio:
    company: Company
    impacts: tuple[Impact, ...]
    projects: tuple[Project, ...]
    edges: tuple[Edge, ...]


@dataclass(frozen=True)
class Theme:
    id: str
    label: str


@dataclass(frozen=True)
class Tool:
    id: str
    label: str
    category: ToolCategory


@dataclass(frozen=True)
class Catalog:
    themes: tuple[Theme, ...] = ()
    tools: tuple[Tool, ...] = ()


@dataclass(frozen=True)
class HideConfig:
    companies: tuple[str, ...] = ()
    lanes: tuple[str, ...] = ()


@dataclass(frozen=True)
class OrderConfig:
    version: int = 1
    companies: tuple[str, ...] = ()
    lanes: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    hide: HideConfig = field(default_factory=HideConfig)
