from __future__ import annotations

import argparse
import json
import os
import sys
from collections.abc import Sequence
from datetime import datetime, timezone

from .foundation.config_io import load_config
from .foundation.logging_utils import setup_pipeline_logger
from .framework.config import PipelineConfig
from .schema.errors import PortfolioValidationError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="portfolio_pipeline", add_help=True)
    parser.add_argument(
        "--config",
        default=None,
        help="Pipeline config file (default: $PORTFOLIO_PIPELINE_CONFIG or config/portfolio.yaml)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("validate", help="Load and validate every portfolio document")

    build = sub.add_parser("build", help="Write layouts.json and project_index.csv")
    build.add_argument("--output-dir", default=None, help="Override paths.output_dir")

    sub.add_parser("list-slugs", help="List deep-dive slugs in the content store")

    return parser


def load_settings(config_path: str | None) -> tuple[PipelineConfig, list[str]]:
    cfg, source = load_config(config_path)
    base_dir = source.repo_root or os.path.dirname(source.paths[0])
    return PipelineConfig.from_dict(cfg, base_dir=base_dir)


def _report_failure(exc: PortfolioValidationError) -> None:
    print(str(exc), file=sys.stderr)
    if exc.details:
        print(json.dumps(exc.details, indent=2, ensure_ascii=False, default=str), file=sys.stderr)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(list(argv) if argv is not None else None)

    try:
        settings, config_warnings = load_settings(args.config)
    except (ValueError, FileNotFoundError) as exc:
        print(f"Invalid pipeline config: {exc}", file=sys.stderr)
        return 1

    run_id = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    logger, _log_file = setup_pipeline_logger(run_id, level=settings.log_level, log_dir=settings.log_dir)
    for warning in config_warnings:
        logger.warning("%s", warning)

    if args.command == "list-slugs":
        from .content.deep_dives import DeepDiveStore

        for slug in DeepDiveStore(settings.content_dir, extension=settings.content_extension).list_slugs():
            print(slug)
        return 0

    try:
        if args.command == "validate":
            from .loader.aggregate import load_all_portfolios

            corpus = load_all_portfolios(settings, logger=logger)
            project_count = sum(len(portfolio.projects) for portfolio in corpus.portfolios)
            print(
                f"OK: {len(corpus.portfolios)} companies, {project_count} projects, "
                f"{len(corpus.warnings)} warnings"
            )
            return 0

        if args.command == "build":
            from .app.build import run_build

            artifacts = run_build(settings, output_dir=args.output_dir, logger=logger)
            for name, path in artifacts.items():
                print(f"{name}: {path}")
            return 0
    except PortfolioValidationError as exc:
        logger.error("Portfolio validation failed: %s", exc.rule)
        _report_failure(exc)
        return 1
    except (ValueError, FileNotFoundError) as exc:
        logger.error("Portfolio input could not be loaded")
        print(str(exc), file=sys.stderr)
        return 1

    raise AssertionError(f"Unhandled command: {args.command}")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main(sys.argv[1:]))
