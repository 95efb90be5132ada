"""Error types raised by the equity engine."""

from __future__ import annotations


class EquityEngineError(Exception):
    """Base class for recoverable, per-agreement engine failures."""


class ValidationError(EquityEngineError, ValueError):
    """An agreement or vehicle field holds a value the model cannot use."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f'{field}: {message}')


class ValuationUnavailable(EquityEngineError):
    """No external valuation and no purchase date to fall back on."""


class InsufficientData(EquityEngineError):
    """The agreement lacks the inputs needed to state a liability."""
