from .engine import (
    IMPACT_TYPE_ORDER,
    ImpactGroup,
    LaneImpact,
    StarLane,
    StarLayout,
    compute_layout,
    derive_summary,
    group_impacts_by_type,
    layout_to_dict,
    merge_impacts_by_type,
)

__all__ = [
    "IMPACT_TYPE_ORDER",
    "ImpactGroup",
    "LaneImpact",
    "StarLane",
    "StarLayout",
    "compute_layout",
    "derive_summary",
    "group_impacts_by_type",
    "layout_to_dict",
    "merge_impacts_by_type",
]
