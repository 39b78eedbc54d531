"""Discover, validate, merge and order portfolio documents."""

from .aggregate import (
    PortfolioCorpus,
    check_catalog_membership,
    discover_portfolio_files,
    load_all_portfolios,
    load_catalog,
    load_portfolio,
    validate_cross_portfolio_uniqueness,
)
from .order import apply_ordering, default_order_config, load_order_config, validate_order_config

__all__ = [
    "PortfolioCorpus",
    "apply_ordering",
    "check_catalog_membership",
    "default_order_config",
    "discover_portfolio_files",
    "load_all_portfolios",
    "load_catalog",
    "load_order_config",
    "load_portfolio",
    "validate_cross_portfolio_uniqueness",
    "validate_order_config",
]
