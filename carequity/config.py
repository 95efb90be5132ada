"""
Engine configuration.
Tunable constants of the equity model; the numeric formulas themselves live in
carequity/calculations.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EngineConfig:
    # private buyers pay this fraction above the trade-in / market figure
    private_sale_markup: float = 0.08

    # used by the tabular loader when a row leaves rate or term blank
    default_interest_rate_percent: float = 7.0
    default_term_months: int = 60

    # projections always reach at least this far past "now"
    horizon_extension_months: int = 12

    # cash position band reported as 'breakeven'
    status_threshold: float = 200.0

    # early settlement interest penalty, in months of interest
    settlement_penalty_months: float = 2.0

    def __post_init__(self) -> None:
        if self.private_sale_markup < 0:
            raise ValueError('private_sale_markup must be >= 0.')
        if self.default_interest_rate_percent < 0:
            raise ValueError('default_interest_rate_percent must be >= 0.')
        if self.default_term_months <= 0:
            raise ValueError('default_term_months must be > 0.')
        if self.horizon_extension_months < 0:
            raise ValueError('horizon_extension_months must be >= 0.')
        if self.status_threshold < 0:
            raise ValueError('status_threshold must be >= 0.')
        if self.settlement_penalty_months < 0:
            raise ValueError('settlement_penalty_months must be >= 0.')


DEFAULT_CONFIG = EngineConfig()
