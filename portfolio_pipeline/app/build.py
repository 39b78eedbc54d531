from __future__ import annotations

import json
import logging
import os
from typing import Any

import pandas as pd

from portfolio_pipeline.content.deep_dives import DeepDiveStore
from portfolio_pipeline.framework.config import PipelineConfig
from portfolio_pipeline.layout.engine import compute_layout, layout_to_dict
from portfolio_pipeline.loader.aggregate import PortfolioCorpus, load_all_portfolios

PROJECT_INDEX_COLUMNS = (
    "company_id",
    "company_label",
    "lane_index",
    "project_id",
    "project_title",
    "themes",
    "tools",
    "impact_ids",
    "deep_dive_slug",
)


def collect_deep_dives(corpus: PortfolioCorpus, store: DeepDiveStore) -> dict[str, dict[str, Any]]:
    """Resolve deep-dive documents for visible projects, falling back to the project title."""

    resolved: dict[str, dict[str, Any]] = {}
    for portfolio in corpus.portfolios:
        for project in portfolio.projects:
            slug = project.deep_dive.slug if project.deep_dive.enabled else None
            if not slug or slug in resolved:
                continue
            document = store.get_by_slug(slug)
            if document is None:
                raise FileNotFoundError(f"Deep-dive document disappeared during build: {slug}")
            resolved[slug] = {
                "slug": slug,
                "companyId": portfolio.company.id,
                "projectId": project.id,
                "title": document.display_title(project.title),
                "themes": list(document.frontmatter.themes),
                "tools": list(document.frontmatter.tools),
                "impactSnapshot": list(document.frontmatter.impact_snapshot),
                "content": document.body,
            }
    return resolved


def project_index_frame(corpus: PortfolioCorpus) -> pd.DataFrame:
    rows: list[dict[str, Any]] = []
    for portfolio in corpus.portfolios:
        for index, project in enumerate(portfolio.projects):
            rows.append(
                {
                    "company_id": portfolio.company.id,
                    "company_label": portfolio.company.label,
                    "lane_index": index,
                    "project_id": project.id,
                    "project_title": project.title,
                    "themes": ";".join(project.themes),
                    "tools": ";".join(project.solution.tools),
                    "impact_ids": ";".join(project.impact_ids),
                    "deep_dive_slug": project.deep_dive.slug if project.deep_dive.enabled else "",
                }
            )
    return pd.DataFrame(rows, columns=list(PROJECT_INDEX_COLUMNS))


def build_payload(corpus: PortfolioCorpus, store: DeepDiveStore) -> dict[str, Any]:
    return {
        "layouts": [layout_to_dict(compute_layout(portfolio)) for portfolio in corpus.portfolios],
        "catalog": {
            "themes": [{"id": theme.id, "label": theme.label} for theme in corpus.catalog.themes],
            "tools": [
                {"id": tool.id, "label": tool.label, "category": tool.category} for tool in corpus.catalog.tools
            ],
        },
        "deepDives": collect_deep_dives(corpus, store),
    }


def run_build(
    settings: PipelineConfig,
    *,
    output_dir: str | None = None,
    logger: logging.Logger | None = None,
) -> dict[str, str]:
    """
    Load the corpus and write `layouts.json` and `project_index.csv`.

    Returns the written artifact paths keyed by artifact name.
    """

    store = DeepDiveStore(settings.content_dir, extension=settings.content_extension)
    corpus = load_all_portfolios(settings, store=store, logger=logger)

    out_dir = output_dir or settings.output_dir
    os.makedirs(out_dir, exist_ok=True)

    layouts_path = os.path.join(out_dir, "layouts.json")
    with open(layouts_path, "w", encoding="utf-8") as handle:
        json.dump(build_payload(corpus, store), handle, ensure_ascii=False, indent=2)
        handle.write("\n")

    index_path = os.path.join(out_dir, "project_index.csv")
    project_index_frame(corpus).to_csv(index_path, index=False)

    if logger:
        logger.info("Wrote layouts to %s", layouts_path)
        logger.info("Wrote project index to %s", index_path)

    return {"layouts": layouts_path, "project_index": index_path}
