"""
Pipeline settings files.

Settings live in `<repo_root>/config/portfolio.yaml`, optionally overlaid by an
untracked `config/config.local.yaml`. A single explicit file (`--config` or
`$PORTFOLIO_PIPELINE_CONFIG`) replaces both.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

CONFIG_ENV_VAR = "PORTFOLIO_PIPELINE_CONFIG"
CONFIG_DIR = "config"
BASE_CONFIG_FILENAME = "portfolio.yaml"
LOCAL_OVERLAY_FILENAME = "config.local.yaml"
REPO_MARKERS = ("pyproject.toml", ".git")


@dataclass(frozen=True)
class ConfigSource:
    """Where the settings mapping came from."""

    mode: str  # "explicit", "env", "base" or "base+local"
    paths: tuple[str, ...]
    repo_root: str | None = None


def find_repo_root(start: str | os.PathLike[str] | None = None) -> str:
    """Nearest ancestor of `start` (default: cwd) holding a repo marker."""

    origin = Path(start or os.getcwd()).resolve()
    if origin.is_file():
        origin = origin.parent

    for candidate in (origin, *origin.parents):
        if any((candidate / marker).exists() for marker in REPO_MARKERS):
            return str(candidate)

    raise FileNotFoundError(f"No {' or '.join(REPO_MARKERS)} found in {origin} or its parents")


def load_yaml_document(path: str) -> Any:
    """Read one YAML document; syntax errors are reported with the file path."""

    with open(path, "r", encoding="utf-8") as handle:
        try:
            return yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {path}: {exc}") from exc


def load_yaml_mapping(path: str) -> dict[str, Any]:
    payload = load_yaml_document(path)
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise ValueError(f"YAML file must contain a mapping: {path}")
    return dict(payload)


def merge_overlay(base: Mapping[str, Any], overlay: Mapping[str, Any], *, prefix: str = "") -> dict[str, Any]:
    """
    Recursively apply `overlay` on top of `base` without mutating either.

    Nested mappings merge key by key; any other overlay value (lists included)
    replaces the base value. Replacing a mapping with a non-mapping, or the
    reverse, is rejected.
    """

    merged = dict(base)
    for key, value in overlay.items():
        key_path = f"{prefix}.{key}" if prefix else str(key)
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_overlay(current, value, prefix=key_path)
            continue
        if current is not None and value is not None and isinstance(current, Mapping) != isinstance(value, Mapping):
            raise ValueError(
                f"Cannot merge config overlay at {key_path}: "
                f"{type(current).__name__} in base, {type(value).__name__} in overlay"
            )
        merged[key] = value
    return merged


def _explicit_path(raw: str) -> str:
    return os.path.abspath(os.path.expandvars(os.path.expanduser(raw.strip())))


def load_config(
    config_path: str | None = None,
    *,
    env_var: str = CONFIG_ENV_VAR,
    start_dir: str | os.PathLike[str] | None = None,
) -> tuple[dict[str, Any], ConfigSource]:
    """
    Load the settings mapping.

    Resolution order: `config_path`, then the file named by `env_var`, then the
    repo's `config/portfolio.yaml` merged with `config/config.local.yaml`.
    The repo root is searched upward from `start_dir` (default: cwd).

    Raises:
        FileNotFoundError: if the chosen file (or the repo base file) is missing.
        ValueError: on invalid YAML, a non-mapping document or an overlay type clash.
    """

    if config_path and config_path.strip():
        path = _explicit_path(config_path)
        return load_yaml_mapping(path), ConfigSource(mode="explicit", paths=(path,))

    env_value = os.environ.get(env_var, "")
    if env_value.strip():
        path = _explicit_path(env_value)
        return load_yaml_mapping(path), ConfigSource(mode="env", paths=(path,))

    repo_root = find_repo_root(start_dir)
    config_dir = os.path.join(repo_root, CONFIG_DIR)
    base_path = os.path.join(config_dir, BASE_CONFIG_FILENAME)
    overlay_path = os.path.join(config_dir, LOCAL_OVERLAY_FILENAME)

    if not os.path.isfile(base_path):
        raise FileNotFoundError(f"Missing base config file: {base_path}")

    cfg = load_yaml_mapping(base_path)
    if not os.path.isfile(overlay_path):
        return cfg, ConfigSource(mode="base", paths=(base_path,), repo_root=repo_root)

    cfg = merge_overlay(cfg, load_yaml_mapping(overlay_path))
    return cfg, ConfigSource(mode="base+local", paths=(base_path, overlay_path), repo_root=repo_root)
