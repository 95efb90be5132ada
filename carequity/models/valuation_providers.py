"""Valuation provider interfaces for resolving an external market value."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass

import pandas as pd


class ValuationProvider(ABC):
    """Capability handed to the engine for market lookups.

    `resolve` returns `None` when the provider has no figure (NotAvailable).
    """

    @abstractmethod
    def resolve(self, make: str, model: str, year: int | None, mileage: float | None) -> float | None:
        ...


@dataclass
class FixedValuationProvider(ValuationProvider):
    """Always answers with the same figure; used for overrides and testing."""

    value: float | None

    def resolve(self, make: str, model: str, year: int | None, mileage: float | None) -> float | None:
        if self.value is None:
            return None
        return float(self.value)


@dataclass
class TableValuationProvider(ValuationProvider):
    """Table-backed provider with (make, model, year, value[, mileage]) rows.

    When a `mileage` column is present the row with the closest mileage wins. Blank or
    non-positive values count as not available.
    """

    values_df: pd.DataFrame

    def resolve(self, make: str, model: str, year: int | None, mileage: float | None) -> float | None:
        df = self.values_df
        mask = (df['make'].astype(str).str.strip().str.lower() == str(make).strip().lower()) & (
            df['model'].astype(str).str.strip().str.lower() == str(model).strip().lower()
        )
        if year is not None and 'year' in df.columns:
            mask &= pd.to_numeric(df['year'], errors='coerce') == int(year)
        subset = df.loc[mask]
        if subset.empty:
            return None
        if mileage is not None and 'mileage' in subset.columns:
            distance = (pd.to_numeric(subset['mileage'], errors='coerce') - float(mileage)).abs()
            if distance.notna().any():
                subset = subset.loc[[distance.idxmin()]]
        value = float(pd.to_numeric(subset['value'], errors='coerce').iloc[0])
        if not math.isfinite(value) or value <= 0:
            return None
        return value
