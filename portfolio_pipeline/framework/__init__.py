"""Project-specific framework utilities.

Structural helpers shared by the loader, CLI and build export (typed pipeline
settings). Content semantics live in `portfolio_pipeline.schema`,
`portfolio_pipeline.loader` and `portfolio_pipeline.layout`.
"""
