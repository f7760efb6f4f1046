"""
component_order/errors.py
═════════════════════════

Exception hierarchy for component-order-lint.

    ┌──────────────────────────────────────────────────────────────┐
    │  ComponentOrderError (base)                                  │
    │  ├── AstShapeError     - node lacks a field the engine needs │
    │  ├── ConfigError       - bad primitive table / options       │
    │  └── FixConflictError  - edits that cannot be applied        │
    └──────────────────────────────────────────────────────────────┘

The ordering engine itself never raises for odd statement shapes: the
classifier degrades such statements to *uncategorized*.  These exceptions
surface at the edges (loading configuration, reading dumps, applying
fixes) where the caller has something to act on.
"""

from __future__ import annotations

from typing import Any, Optional


class ComponentOrderError(Exception):
    """Base class for every error raised by this package."""


class AstShapeError(ComponentOrderError):
    """An ESTree node does not have the shape the engine relies on."""

    def __init__(self, message: str, node: Optional[Any] = None) -> None:
        super().__init__(message)
        self.node = node


class ConfigError(ComponentOrderError):
    """Invalid primitive-table or runner configuration."""


class FixConflictError(ComponentOrderError):
    """A text edit is out of bounds or overlaps another edit."""

    def __init__(self, message: str, start: int = 0, end: int = 0) -> None:
        super().__init__(message)
        self.start = start
        self.end = end


__all__ = [
    "ComponentOrderError",
    "AstShapeError",
    "ConfigError",
    "FixConflictError",
]
