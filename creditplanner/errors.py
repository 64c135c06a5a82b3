"""
Exception hierarchy.

Pure engine code (intervals, conflicts, analyze, alternatives) never raises
for structurally valid input. Errors come from two places only:
- parsing payloads / catalog records (ValidationError)
- talking to the catalog data source (CatalogError, NotFoundError)
"""

from __future__ import annotations


class CreditPlannerError(Exception):
    """Base class for all errors raised by this package."""


class ValidationError(CreditPlannerError, ValueError):
    """Malformed input: unknown day, bad time, missing field, ..."""


class CatalogError(CreditPlannerError):
    """The catalog data source could not be read."""


class NotFoundError(CatalogError):
    """A course, study plan or slot does not exist in the catalog."""

    def __init__(self, kind: str, key: object) -> None:
        super().__init__(f"{kind} not found: {key!r}")
        self.kind = kind
        self.key = key
