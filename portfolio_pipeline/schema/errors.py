from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


class PortfolioValidationError(ValueError):
    """A content rule was violated. `rule` is stable and machine-readable."""

    def __init__(self, rule: str, message: str, details: Mapping[str, Any] | None = None):
        super().__init__(f"[{rule}] {message}")
        self.rule = rule
        self.message = message
        self.details: dict[str, Any] = dict(details or {})

    def with_source(self, source: str) -> "PortfolioValidationError":
        if self.details.get("source") == source:
            return self
        details = dict(self.details)
        details["source"] = source
        clone = type(self).__new__(type(self))
        clone.__dict__.update(self.__dict__)
        clone.message = f"{source}: {self.message}"
        clone.details = details
        clone.args = (f"[{self.rule}] {clone.message}",)
        return clone

    def to_dict(self) -> dict[str, Any]:
        return {"rule": self.rule, "message": self.message, "details": dict(self.details)}


class SchemaError(PortfolioValidationError):
    """A document failed structural parsing; `path` names the offending field."""

    RULE = "INVALID_SCHEMA"

    def __init__(self, path: str, message: str, *, source: str | None = None):
        location = f"{source}: {path}" if source else path
        details: dict[str, Any] = {"path": path}
        if source:
            details["source"] = source
        super().__init__(self.RULE, f"{location}: {message}", details)
        self.path = path


@dataclass(frozen=True)
class ValidationFailure:
    """Tagged failure produced by a `check_*` function; None means the check passed."""

    rule: str
    message: str
    details: Mapping[str, Any] = field(default_factory=dict)

    def to_error(self) -> PortfolioValidationError:
        return PortfolioValidationError(self.rule, self.message, self.details)


def raise_on_failure(failure: ValidationFailure | None) -> None:
    if failure is not None:
        raise failure.to_error()
