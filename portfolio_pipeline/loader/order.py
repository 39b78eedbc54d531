"""
Ordering and visibility overrides (`portfolio.order.yaml`).

Listed ids come first in listed order; everything else follows in discovery
order. Hidden companies and lanes are dropped, and the impacts and edges that
only served hidden lanes go with them.
"""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping

from portfolio_pipeline.foundation.config_io import load_yaml_document
from portfolio_pipeline.schema.errors import PortfolioValidationError
from portfolio_pipeline.schema.models import HideConfig, OrderConfig, Portfolio, Project
from portfolio_pipeline.schema.parsing import parse_order_config


def default_order_config() -> OrderConfig:
    return OrderConfig(version=1, companies=(), lanes={}, hide=HideConfig(companies=(), lanes=()))


def load_order_config(path: str) -> OrderConfig:
    """Parse the order file; a missing file means no explicit ordering was requested."""

    if not os.path.exists(path):
        return default_order_config()
    raw = load_yaml_document(path)
    return parse_order_config(raw, source=os.path.basename(path))


def validate_order_config(config: OrderConfig, portfolio_map: Mapping[str, Portfolio]) -> list[str]:
    """
    Check the order config against the loaded portfolios.

    Returns soft warnings (placeholder companies, hidden lanes that match nothing).

    Raises:
        PortfolioValidationError: DUPLICATE_ORDER_COMPANY, DUPLICATE_ORDER_LANE or
            UNKNOWN_LANE_IN_ORDER.
    """

    warnings: list[str] = []
    hidden_companies = set(config.hide.companies)
    hidden_lanes = set(config.hide.lanes)

    seen_companies: set[str] = set()
    for company_id in config.companies:
        if company_id in seen_companies:
            raise PortfolioValidationError(
                "DUPLICATE_ORDER_COMPANY",
                f'Company ID "{company_id}" appears multiple times in the order config companies list',
                {"company_id": company_id},
            )
        seen_companies.add(company_id)

    for company_id in config.companies:
        if company_id not in portfolio_map and company_id not in hidden_companies:
            warnings.append(f'Order config lists company "{company_id}" but no portfolio document declares it')

    for company_id, project_ids in config.lanes.items():
        portfolio = portfolio_map.get(company_id)
        if portfolio is None:
            # Placeholder company without data yet.
            continue

        known_projects = [project.id for project in portfolio.projects]
        known_set = set(known_projects)
        seen_projects: set[str] = set()
        for project_id in project_ids:
            if project_id in seen_projects:
                raise PortfolioValidationError(
                    "DUPLICATE_ORDER_LANE",
                    f'Project ID "{project_id}" appears multiple times in order config lanes.{company_id}',
                    {"company_id": company_id, "project_id": project_id},
                )
            seen_projects.add(project_id)

            if project_id not in known_set and project_id not in hidden_lanes:
                raise PortfolioValidationError(
                    "UNKNOWN_LANE_IN_ORDER",
                    f'Project ID "{project_id}" in order config lanes.{company_id} '
                    f'does not exist in company "{company_id}"',
                    {"company_id": company_id, "project_id": project_id, "known_projects": known_projects},
                )

    all_project_ids = {project.id for portfolio in portfolio_map.values() for project in portfolio.projects}
    for project_id in config.hide.lanes:
        if project_id not in all_project_ids:
            warnings.append(f'Hidden lane "{project_id}" not found in any company')

    return warnings


def _order_projects(projects: tuple[Project, ...], lane_order: tuple[str, ...]) -> list[Project]:
    by_id = {project.id: project for project in projects}
    listed = [by_id[project_id] for project_id in dict.fromkeys(lane_order) if project_id in by_id]
    listed_ids = set(lane_order)
    unlisted = [project for project in projects if project.id not in listed_ids]
    return listed + unlisted


def apply_ordering(portfolio_map: Mapping[str, Portfolio], config: OrderConfig) -> list[Portfolio]:
    """Return visible portfolios in display order with hidden lanes pruned."""

    hidden_companies = set(config.hide.companies)
    hidden_lanes = set(config.hide.lanes)
    listed_companies = set(config.companies)

    ordered_company_ids = [
        company_id
        for company_id in dict.fromkeys(config.companies)
        if company_id in portfolio_map and company_id not in hidden_companies
    ]
    ordered_company_ids.extend(
        company_id
        for company_id in portfolio_map
        if company_id not in listed_companies and company_id not in hidden_companies
    )

    result: list[Portfolio] = []
    for company_id in ordered_company_ids:
        portfolio = portfolio_map[company_id]

        visible = tuple(project for project in portfolio.projects if project.id not in hidden_lanes)
        projects = _order_projects(visible, tuple(config.lanes.get(company_id, ())))
        visible_ids = {project.id for project in projects}

        referenced_impacts = {impact_id for project in projects for impact_id in project.impact_ids}
        impacts = tuple(impact for impact in portfolio.impacts if impact.id in referenced_impacts)
        pruned_impacts = {impact.id for impact in portfolio.impacts} - referenced_impacts

        edges = tuple(
            edge
            for edge in portfolio.edges
            if ((edge.from_id == company_id and edge.to_id in visible_ids) or edge.from_id in visible_ids)
            and edge.to_id not in pruned_impacts
        )

        result.append(dataclasses.replace(portfolio, projects=tuple(projects), impacts=impacts, edges=edges))

    return result
