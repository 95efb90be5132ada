"""Projection series and swap-window result models."""

from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from carequity.models.errors import ValidationError

SALE_CHANNELS = ('trade_in', 'private')


def check_channel(channel: str) -> str:
    key = str(channel).strip().lower()
    if key not in SALE_CHANNELS:
        raise ValidationError('channel', f'unknown sale channel {channel!r} (expected one of {SALE_CHANNELS})')
    return key


@dataclass(frozen=True)
class CashPosition:
    """Equity for each sale channel: proceeds minus the outstanding balance."""

    trade_in: float
    private: float

    def for_channel(self, channel: str) -> float:
        return float(getattr(self, check_channel(channel)))


@dataclass(frozen=True)
class MonthlyProjectionPoint:
    month_index: int
    date: pd.Timestamp
    market_value: float
    private_sale_value: float
    loan_balance: float
    cash_position: CashPosition
    is_break_even_month: bool = False
    is_optimal_month: bool = False
    is_contract_end: bool = False


@dataclass(frozen=True)
class SwapWindow:
    """Contiguous run of non-negative equity months; -1 bounds when there is none."""

    start_month: int
    end_month: int
    peak_month: int
    peak_equity: float
    is_in_window: bool

    @property
    def exists(self) -> bool:
        return self.start_month >= 0

    @property
    def length_months(self) -> int:
        return self.end_month - self.start_month + 1 if self.exists else 0


NO_SWAP_WINDOW = SwapWindow(start_month=-1, end_month=-1, peak_month=-1, peak_equity=0.0, is_in_window=False)


@dataclass(frozen=True)
class SwapAnalysis:
    channel: str
    break_even_month: int | None
    swap_window: SwapWindow
