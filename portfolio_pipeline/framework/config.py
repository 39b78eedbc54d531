from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping

from portfolio_pipeline.foundation.config_io import find_repo_root


DEFAULT_DATA_DIR = os.path.join("content", "data")
DEFAULT_CONTENT_DIR = os.path.join("content", "deep-dives")
DEFAULT_ORDER_CONFIG = "portfolio.order.yaml"
DEFAULT_OUTPUT_DIR = os.path.join("build", "portfolio")


def parse_bool(value: Any, path: str) -> bool:
    """
    Strict boolean parsing to avoid bool('false') footguns.

    Accepts:
      - True/False
      - 0/1 (ints)
      - strings: true/false/1/0/yes/no (case-insensitive, surrounding whitespace ignored)

    Raises:
      ValueError for anything else, with the provided config key path.
    """

    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in (0, 1):
            return bool(value)
        raise ValueError(f"Invalid boolean for {path}: {value!r}")
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"true", "1", "yes"}:
            return True
        if normalized in {"false", "0", "no"}:
            return False
        raise ValueError(f"Invalid boolean for {path}: {value!r}")

    raise ValueError(f"Invalid boolean for {path}: {value!r}")


def parse_str(value: Any, path: str) -> str:
    if value is None:
        raise ValueError(f"Invalid config value for {path}: None")
    if not isinstance(value, str):
        raise ValueError(f"Invalid config type for {path}: expected string")
    if not value.strip():
        raise ValueError(f"Invalid config value for {path}: must be a non-empty string")
    return value.strip()


def parse_extension(value: Any, path: str) -> str:
    raw = parse_str(value, path)
    return raw if raw.startswith(".") else f".{raw}"


@dataclass(frozen=True)
class PipelineConfig:
    data_dir: str
    content_dir: str
    order_config_path: str
    output_dir: str

    data_extension: str = ".yaml"
    catalog_filename: str = "catalog.yaml"
    excluded_filenames: tuple[str, ...] = ()
    content_extension: str = ".mdx"

    enforce_catalog_membership: bool = False

    log_level: str = "INFO"
    log_dir: str | None = None

    @property
    def catalog_path(self) -> str:
        return os.path.join(self.data_dir, self.catalog_filename)

    @staticmethod
    def from_dict(
        cfg: Mapping[str, Any],
        *,
        base_dir: str | None = None,
    ) -> tuple["PipelineConfig", list[str]]:
        """
        Parse and validate pipeline settings, returning (PipelineConfig, warnings).

        Relative paths resolve against `base_dir` (default: the repo root).

        Raises:
            ValueError: if a key has the wrong type, or unknown keys appear in strict mode.
        """

        if not isinstance(cfg, Mapping):
            raise ValueError("Config must be a mapping")

        warnings: list[str] = []
        root: str | None = base_dir

        strict_unknown_keys = False
        if "strict" in cfg:
            strict_unknown_keys = parse_bool(cfg.get("strict"), "strict")

        schema: Mapping[str, Any] = {
            "strict": None,
            "paths": {
                "data_dir": None,
                "content_dir": None,
                "order_config": None,
                "output_dir": None,
            },
            "data": {"extension": None, "catalog_filename": None, "exclude": None},
            "content": {"extension": None},
            "catalog": {"enforce_membership": None},
            "logging": {"level": None, "log_dir": None},
        }

        def collect_unknown_keys(mapping: Any, subschema: Mapping[str, Any], *, prefix: str) -> list[str]:
            if not isinstance(mapping, Mapping):
                return []
            unknown: list[str] = []
            for key, value in mapping.items():
                if not isinstance(key, str):
                    continue
                full_key = f"{prefix}.{key}" if prefix else key
                if key not in subschema:
                    unknown.append(full_key)
                    continue
                nested = subschema.get(key)
                if isinstance(nested, Mapping):
                    unknown.extend(collect_unknown_keys(value, nested, prefix=full_key))
            return unknown

        unknown_keys = sorted(set(collect_unknown_keys(cfg, schema, prefix="")))
        if unknown_keys:
            if strict_unknown_keys:
                raise ValueError("Unknown config keys: " + ", ".join(unknown_keys))
            warnings.extend(f"Unknown config key: {key}" for key in unknown_keys)

        def section(name: str) -> Mapping[str, Any]:
            raw = cfg.get(name)
            if raw is None:
                return {}
            if not isinstance(raw, Mapping):
                raise ValueError(f"Invalid config type for {name}: expected mapping")
            return raw

        def normalize_path(value: str) -> str:
            nonlocal root
            expanded = os.path.expandvars(os.path.expanduser(value.strip()))
            if not os.path.isabs(expanded):
                if root is None:
                    root = find_repo_root()
                expanded = os.path.join(root, expanded)
            return os.path.abspath(expanded)

        def path_value(mapping: Mapping[str, Any], key: str, prefix: str, default: str) -> str:
            raw = mapping.get(key)
            if raw is None:
                return normalize_path(default)
            return normalize_path(parse_str(raw, f"{prefix}.{key}"))

        paths = section("paths")
        data_dir = path_value(paths, "data_dir", "paths", DEFAULT_DATA_DIR)
        content_dir = path_value(paths, "content_dir", "paths", DEFAULT_CONTENT_DIR)
        order_config_path = path_value(paths, "order_config", "paths", DEFAULT_ORDER_CONFIG)
        output_dir = path_value(paths, "output_dir", "paths", DEFAULT_OUTPUT_DIR)

        data = section("data")
        data_extension = ".yaml"
        if data.get("extension") is not None:
            data_extension = parse_extension(data.get("extension"), "data.extension")
        catalog_filename = "catalog.yaml"
        if data.get("catalog_filename") is not None:
            catalog_filename = parse_str(data.get("catalog_filename"), "data.catalog_filename")
            if os.path.basename(catalog_filename) != catalog_filename:
                raise ValueError("Invalid config value for data.catalog_filename: must be a bare filename")

        excluded: list[str] = []
        raw_exclude = data.get("exclude")
        if raw_exclude is not None:
            if not isinstance(raw_exclude, (list, tuple)):
                raise ValueError("Invalid config type for data.exclude: expected list[str]")
            for idx, item in enumerate(raw_exclude):
                name = parse_str(item, f"data.exclude[{idx}]")
                if name not in excluded:
                    excluded.append(name)

        content = section("content")
        content_extension = ".mdx"
        if content.get("extension") is not None:
            content_extension = parse_extension(content.get("extension"), "content.extension")

        catalog = section("catalog")
        enforce_membership = False
        if catalog.get("enforce_membership") is not None:
            enforce_membership = parse_bool(catalog.get("enforce_membership"), "catalog.enforce_membership")

        logging_cfg = section("logging")
        log_level = "INFO"
        if logging_cfg.get("level") is not None:
            log_level = parse_str(logging_cfg.get("level"), "logging.level").upper()
        log_dir: str | None = None
        raw_log_dir = logging_cfg.get("log_dir")
        if isinstance(raw_log_dir, str) and raw_log_dir.strip():
            log_dir = normalize_path(raw_log_dir)
        elif raw_log_dir is not None and not isinstance(raw_log_dir, str):
            raise ValueError("Invalid config type for logging.log_dir: expected string")

        return (
            PipelineConfig(
                data_dir=data_dir,
                content_dir=content_dir,
                order_config_path=order_config_path,
                output_dir=output_dir,
                data_extension=data_extension,
                catalog_filename=catalog_filename,
                excluded_filenames=tuple(excluded),
                content_extension=content_extension,
                enforce_catalog_membership=enforce_membership,
                log_level=log_level,
                log_dir=log_dir,
            ),
            warnings,
        )
