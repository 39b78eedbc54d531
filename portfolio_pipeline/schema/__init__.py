"""Portfolio document schema: typed records, structural parsing and semantic rules."""

from .errors import PortfolioValidationError, SchemaError, ValidationFailure
from .models import (
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
from .parsing import parse_catalog, parse_order_config, parse_portfolio
from .validators import (
    normalize_tools,
    validate_and_normalize,
    validate_deep_dive,
    validate_edge_integrity,
    validate_uniqueness,
)

__all__ = [
    "Catalog",
    "Company",
    "DeepDive",
    "Edge",
    "HideConfig",
    "Impact",
    "OrderConfig",
    "PeopleScope",
    "Portfolio",
    "PortfolioValidationError",
    "Problem",
    "Project",
    "SchemaError",
    "Solution",
    "Theme",
    "Tool",
    "ValidationFailure",
    "normalize_tools",
    "parse_catalog",
    "parse_order_config",
    "parse_portfolio",
    "validate_and_normalize",
    "validate_deep_dive",
    "validate_edge_integrity",
    "validate_uniqueness",
]
