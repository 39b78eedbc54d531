from __future__ import annotations

import logging
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from portfolio_pipeline.content.deep_dives import DeepDiveStore
from portfolio_pipeline.foundation.config_io import load_yaml_document
from portfolio_pipeline.framework.config import PipelineConfig
from portfolio_pipeline.schema.errors import PortfolioValidationError, ValidationFailure
from portfolio_pipeline.schema.models import Catalog, OrderConfig, Portfolio
from portfolio_pipeline.schema.parsing import parse_catalog, parse_portfolio
from portfolio_pipeline.schema.validators import SlugLookup, find_duplicates, validate_and_normalize

from .order import apply_ordering, load_order_config, validate_order_config


@dataclass(frozen=True)
class PortfolioCorpus:
    """Everything one pipeline run produces for downstream consumers."""

    portfolios: tuple[Portfolio, ...]
    catalog: Catalog
    order: OrderConfig
    sources: Mapping[str, str] = field(default_factory=dict)
    warnings: tuple[str, ...] = ()


def load_catalog(path: str) -> Catalog:
    if not os.path.exists(path):
        raise FileNotFoundError(f"Missing catalog file: {path}")
    raw = load_yaml_document(path)
    return parse_catalog(raw, source=os.path.basename(path))


def load_portfolio(path: str, store: SlugLookup) -> Portfolio:
    """Parse, validate and normalize one company document."""

    source = os.path.basename(path)
    raw = load_yaml_document(path)
    try:
        parsed = parse_portfolio(raw, source=source)
        return validate_and_normalize(parsed, store)
    except PortfolioValidationError as exc:
        annotated = exc.with_source(source)
        if annotated is exc:
            raise
        raise annotated from exc


def discover_portfolio_files(
    data_dir: str,
    *,
    extension: str = ".yaml",
    catalog_filename: str = "catalog.yaml",
    excluded: Sequence[str] = (),
) -> list[str]:
    """Company documents in `data_dir`, sorted by filename so discovery order is stable."""

    if not os.path.isdir(data_dir):
        raise FileNotFoundError(f"Missing portfolio data directory: {data_dir}")

    skip = {catalog_filename, *excluded}
    names = sorted(
        name
        for name in os.listdir(data_dir)
        if name.endswith(extension) and name not in skip and os.path.isfile(os.path.join(data_dir, name))
    )
    return [os.path.join(data_dir, name) for name in names]


def build_portfolio_map(
    loaded: Sequence[tuple[str, Portfolio]],
) -> tuple[dict[str, Portfolio], dict[str, str]]:
    """Key portfolios by company id, preserving discovery order."""

    portfolio_map: dict[str, Portfolio] = {}
    sources: dict[str, str] = {}
    for path, portfolio in loaded:
        company_id = portfolio.company.id
        if company_id in portfolio_map:
            first = os.path.basename(sources[company_id])
            second = os.path.basename(path)
            raise PortfolioValidationError(
                "CROSS_DUPLICATE_COMPANY_ID",
                f'Company ID "{company_id}" is declared by both "{first}" and "{second}"',
                {"id": company_id, "sources": [first, second]},
            )
        portfolio_map[company_id] = portfolio
        sources[company_id] = path
    return portfolio_map, sources


def validate_cross_portfolio_uniqueness(portfolios: Sequence[Portfolio]) -> None:
    """
    Ids share one namespace across companies.

    Raises:
        PortfolioValidationError: CROSS_DUPLICATE_{PROJECT,PROBLEM,SOLUTION,IMPACT}_ID
            naming both company ids.
    """

    seen: dict[str, dict[str, str]] = {"PROJECT": {}, "PROBLEM": {}, "SOLUTION": {}, "IMPACT": {}}

    def claim(kind: str, entity_id: str, company_id: str) -> None:
        owners = seen[kind]
        if entity_id in owners:
            first = owners[entity_id]
            raise PortfolioValidationError(
                f"CROSS_DUPLICATE_{kind}_ID",
                f'{kind.title()} ID "{entity_id}" exists in both "{first}" and "{company_id}"',
                {"id": entity_id, "companies": [first, company_id]},
            )
        owners[entity_id] = company_id

    for portfolio in portfolios:
        company_id = portfolio.company.id
        for project in portfolio.projects:
            claim("PROJECT", project.id, company_id)
            claim("PROBLEM", project.problem.id, company_id)
            claim("SOLUTION", project.solution.id, company_id)
        for impact in portfolio.impacts:
            claim("IMPACT", impact.id, company_id)


def check_catalog_membership(portfolios: Sequence[Portfolio], catalog: Catalog) -> list[ValidationFailure]:
    """Catalog vocabulary issues: duplicate catalog ids, tools/themes the catalog does not define."""

    failures: list[ValidationFailure] = []

    tool_ids = [tool.id for tool in catalog.tools]
    theme_ids = [theme.id for theme in catalog.themes]
    for rule, kind, ids in (
        ("DUPLICATE_CATALOG_TOOL_ID", "tool", tool_ids),
        ("DUPLICATE_CATALOG_THEME_ID", "theme", theme_ids),
    ):
        dupes = find_duplicates(ids)
        if dupes:
            failures.append(
                ValidationFailure(rule, f"Duplicate catalog {kind} IDs: {', '.join(dupes)}", {"duplicates": dupes})
            )

    known_tools = set(tool_ids)
    known_themes = set(theme_ids)
    for portfolio in portfolios:
        for project in portfolio.projects:
            missing_tools = [tool for tool in project.solution.tools if tool not in known_tools]
            if missing_tools:
                failures.append(
                    ValidationFailure(
                        "UNKNOWN_CATALOG_TOOL",
                        f'Project "{project.id}" uses tools missing from the catalog: {", ".join(missing_tools)}',
                        {"company_id": portfolio.company.id, "project_id": project.id, "missing": missing_tools},
                    )
                )
            missing_themes = [theme for theme in project.themes if theme not in known_themes]
            if missing_themes:
                failures.append(
                    ValidationFailure(
                        "UNKNOWN_CATALOG_THEME",
                        f'Project "{project.id}" uses themes missing from the catalog: {", ".join(missing_themes)}',
                        {"company_id": portfolio.company.id, "project_id": project.id, "missing": missing_themes},
                    )
                )
    return failures


def load_all_portfolios(
    settings: PipelineConfig,
    *,
    store: SlugLookup | None = None,
    logger: logging.Logger | None = None,
) -> PortfolioCorpus:
    """
    Load, validate, order and filter every company document.

    Steps: catalog -> discover + load documents -> company id uniqueness ->
    order config load + validate -> apply ordering -> cross-portfolio uniqueness
    -> catalog membership.

    Raises:
        PortfolioValidationError: on the first rule violation; nothing partial is returned.
        FileNotFoundError: if the catalog or data directory is missing.
    """

    if store is None:
        store = DeepDiveStore(settings.content_dir, extension=settings.content_extension)

    catalog = load_catalog(settings.catalog_path)
    if logger:
        logger.debug("Catalog loaded: themes=%d tools=%d", len(catalog.themes), len(catalog.tools))

    paths = discover_portfolio_files(
        settings.data_dir,
        extension=settings.data_extension,
        catalog_filename=settings.catalog_filename,
        excluded=settings.excluded_filenames,
    )
    loaded = [(path, load_portfolio(path, store)) for path in paths]
    if logger:
        logger.info("Loaded %d portfolio document(s) from %s", len(loaded), settings.data_dir)

    portfolio_map, sources = build_portfolio_map(loaded)

    order = load_order_config(settings.order_config_path)
    warnings = validate_order_config(order, portfolio_map)

    portfolios = apply_ordering(portfolio_map, order)
    validate_cross_portfolio_uniqueness(portfolios)

    catalog_failures = check_catalog_membership(portfolios, catalog)
    if catalog_failures and settings.enforce_catalog_membership:
        raise catalog_failures[0].to_error()
    warnings.extend(f"[{failure.rule}] {failure.message}" for failure in catalog_failures)

    if logger:
        for warning in warnings:
            logger.warning("%s", warning)
        logger.info(
            "Portfolio corpus ready: companies=%d projects=%d",
            len(portfolios),
            sum(len(portfolio.projects) for portfolio in portfolios),
        )

    return PortfolioCorpus(
        portfolios=tuple(portfolios),
        catalog=catalog,
        order=order,
        sources=sources,
        warnings=tuple(warnings),
    )
