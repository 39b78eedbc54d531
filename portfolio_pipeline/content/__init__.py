"""Long-form deep-dive documents keyed by slug."""

from .deep_dives import DeepDiveDocument, DeepDiveFrontmatter, DeepDiveStore, parse_deep_dive

__all__ = ["DeepDiveDocument", "DeepDiveFrontmatter", "DeepDiveStore", "parse_deep_dive"]
