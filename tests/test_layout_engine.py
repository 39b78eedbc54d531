import dataclasses

from portfolio_pipeline.layout.engine import (
    IMPACT_TYPE_ORDER,
    LaneImpact,
    compute_layout,
    derive_summary,
    group_impacts_by_type,
    layout_to_dict,
    merge_impacts_by_type,
)
from portfolio_pipeline.schema.parsing import parse_portfolio


def _portfolio(**project_overrides):
    project = {
        "id": "prj-1",
        "title": "Lane one",
        "problem": {"id": "p-1", "statement": "Pages were waking people up nightly."},
        "solution": {
            "id": "s-1",
            "statement": "Built runbook automation. Then rolled it out to every team.",
            "tools": ["python", "slack"],
        },
        "themes": ["automation"],
        "impact_ids": ["imp-r1", "imp-r2", "imp-s1"],
    }
    project.update(project_overrides)
    return parse_portfolio(
        {
            "company": {"id": "test-co", "label": "Test Co", "role": "SRE", "period": "2021-2024"},
            "impacts": [
                {"id": "imp-s1", "label": "Closed buckets", "type": "security", "metrics": ["0 public"]},
                {"id": "imp-r1", "label": "uptime", "type": "reliability", "metrics": ["99.9%"]},
                {"id": "imp-r2", "label": "latency", "type": "reliability", "metrics": ["p99 200ms", "99.9%"]},
            ],
            "projects": [project],
            "edges": [{"from": "test-co", "to": "prj-1", "rel": "owns"}],
        }
    )


def test_merge_impacts_collapses_same_type():
    impacts = [
        LaneImpact(id="r1", label="uptime", type="reliability"),
        LaneImpact(id="r2", label="latency", type="reliability"),
    ]

    merged = merge_impacts_by_type(impacts)

    assert merged == [LaneImpact(id="r1+r2", label="uptime; latency", type="reliability")]


def test_merge_impacts_keeps_first_seen_type_order_and_singletons():
    single = LaneImpact(id="s1", label="Closed buckets", type="security", metrics=("0 public",))
    impacts = [
        single,
        LaneImpact(id="r1", label="Uptime", type="reliability", metrics=("99.9%",)),
        LaneImpact(id="r2", label="uptime", type="reliability", metrics=("99.9%", "p99 200ms")),
    ]

    merged = merge_impacts_by_type(impacts)

    assert merged[0] is single
    assert merged[1].id == "r1+r2"
    assert merged[1].label == "Uptime"
    assert merged[1].metrics == ("99.9%", "p99 200ms")


def test_merge_impacts_empty():
    assert merge_impacts_by_type([]) == []


def test_group_impacts_uses_canonical_order_and_skips_empty_types():
    impacts = [
        LaneImpact(id="sec", label="Security win", type="security"),
        LaneImpact(id="obs", label="Tracing", type="observability"),
        LaneImpact(id="sec2", label="Another security win", type="security"),
    ]

    groups = group_impacts_by_type(impacts)

    assert [group.type for group in groups] == ["observability", "security"]
    assert [impact.id for impact in groups[1].impacts] == ["sec", "sec2"]
    assert IMPACT_TYPE_ORDER == ("reliability", "observability", "scalability", "security")


def test_derive_summary_prefers_explicit_summary():
    project = _portfolio(summary="  Explicit summary.  ").projects[0]

    assert derive_summary(project) == "Explicit summary."


def test_derive_summary_uses_first_sentence_of_solution():
    project = _portfolio().projects[0]

    assert derive_summary(project) == "Built runbook automation."


def test_derive_summary_falls_back_to_whole_statement():
    project = _portfolio().projects[0]
    project = dataclasses.replace(
        project, solution=dataclasses.replace(project.solution, statement="Shipped a tracing pipeline")
    )

    assert derive_summary(project) == "Shipped a tracing pipeline"


def test_compute_layout_builds_one_lane_per_project():
    layout = compute_layout(_portfolio())

    assert layout.company_id == "test-co"
    assert layout.company_role == "SRE"
    assert len(layout.lanes) == 1
    lane = layout.lanes[0]
    assert lane.index == 0
    assert lane.problem_id == "p-1"
    assert lane.solution_id == "s-1"
    assert lane.tools == ("python", "slack")
    assert lane.themes == ("automation",)
    assert lane.deep_dive_slug is None
    assert [impact.id for impact in lane.impacts] == ["imp-r1+imp-r2", "imp-s1"]
    assert lane.impacts[0].label == "uptime; latency"
    assert lane.impacts[0].metrics == ("99.9%", "p99 200ms")
    assert [impact.id for impact in layout.all_impacts] == ["imp-s1", "imp-r1", "imp-r2"]


def test_compute_layout_drops_unresolved_impact_ids():
    layout = compute_layout(_portfolio(impact_ids=["imp-s1", "imp-ghost"]))

    assert [impact.id for impact in layout.lanes[0].impacts] == ["imp-s1"]
    assert layout.impact_project_map["imp-s1"] == ("prj-1",)
    assert layout.impact_project_map["imp-ghost"] == ("prj-1",)


def test_compute_layout_impact_project_map():
    layout = compute_layout(_portfolio())

    assert dict(layout.impact_project_map) == {
        "imp-r1": ("prj-1",),
        "imp-r2": ("prj-1",),
        "imp-s1": ("prj-1",),
    }


def test_deep_dive_slug_only_when_enabled():
    enabled = compute_layout(_portfolio(deepDive={"enabled": True, "slug": "prj-one"}))
    disabled = compute_layout(_portfolio(deepDive={"enabled": False, "slug": "prj-one"}))

    assert enabled.lanes[0].deep_dive_slug == "prj-one"
    assert disabled.lanes[0].deep_dive_slug is None


def test_layout_to_dict_uses_camel_case_keys():
    payload = layout_to_dict(compute_layout(_portfolio(deepDive={"enabled": True, "slug": "prj-one"})))

    assert payload["companyId"] == "test-co"
    assert payload["companyPeriod"] == "2021-2024"
    lane = payload["lanes"][0]
    assert lane["projectSummary"] == "Built runbook automation."
    assert lane["deepDiveSlug"] == "prj-one"
    assert lane["impacts"][0] == {
        "id": "imp-r1+imp-r2",
        "label": "uptime; latency",
        "type": "reliability",
        "metrics": ["99.9%", "p99 200ms"],
    }
    assert payload["impactProjectMap"]["imp-s1"] == ["prj-1"]


def test_layout_to_dict_omits_missing_deep_dive_slug():
    lane = layout_to_dict(compute_layout(_portfolio()))["lanes"][0]

    assert "deepDiveSlug" not in lane
