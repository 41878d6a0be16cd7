"""CompletionPolicy: stage 5 — the terminal completeness strategy.

Two mutually exclusive modes, chosen by ETLConfig.completion_mode:

STRICT
    Keep only rows with no null field and no "unknown" categorical. Nothing
    is invented, at the cost of dropping rows.

AVERAGE_FILL
    Keep every row. Remaining nulls in quantity, price_per_unit and
    total_spent get the column mean (over the non-null values of the input,
    rounded to 2 decimals). Categoricals and dates are left as they are.

The mean is taken over the whole stage-4 frame before any row is filled, so
every null in a column receives the same value.
"""

import numpy as np
import pandas as pd

from cafeclean.etl.config import (
    ETLConfig,
    CompletionMode,
    CATEGORICAL_COLUMNS,
    COLUMNS,
    NUMERIC_COLUMNS,
    UNKNOWN,
)


class CompletionPolicy:
    """Applies the configured terminal mode to the fully resolved frame."""

    def __init__(self, config: ETLConfig, mode: CompletionMode | str | None = None):
        self._config = config
        self._mode = CompletionMode.parse(mode if mode is not None else config.completion_mode)
        self._report: dict = {}

    @property
    def mode(self) -> CompletionMode:
        return self._mode

    def complete(self, df: pd.DataFrame) -> pd.DataFrame:
        """Dispatch to the configured mode."""
        if self._mode is CompletionMode.STRICT:
            return self.drop_incomplete(df)
        return self.fill_with_means(df)

    def drop_incomplete(self, df: pd.DataFrame) -> pd.DataFrame:
        """Strict mode: drop any row with a null or an "unknown" categorical."""
        before = len(df)
        complete_mask = df[COLUMNS].notna().all(axis=1)
        for col in CATEGORICAL_COLUMNS:
            complete_mask &= df[col] != UNKNOWN

        out = df[complete_mask].reset_index(drop=True)
        dropped = before - len(out)

        self._report = {
            "mode": self._mode.value,
            "rows_before": before,
            "rows_after": len(out),
            "rows_dropped": dropped,
            "pct_dropped": round(dropped / before * 100, 2) if before else 0.0,
        }
        print(f"    strict: dropped {dropped:,} of {before:,} rows "
              f"({self._report['pct_dropped']}%)")
        return out

    def fill_with_means(self, df: pd.DataFrame) -> pd.DataFrame:
        """Average-fill mode: replace numeric nulls with rounded column means."""
        means = column_means(df, decimals=self._config.fill_decimals)

        out = df.copy()
        filled = {}
        for col in NUMERIC_COLUMNS:
            gaps = out[col].isna()
            filled[col] = int(gaps.sum()) if means[col] is not None else 0
            if means[col] is not None:
                out.loc[gaps, col] = means[col]

        self._report = {
            "mode": self._mode.value,
            "rows_before": len(df),
            "rows_after": len(out),
            "rows_dropped": 0,
            "pct_dropped": 0.0,
            "fill_values": means,
            "cells_filled": filled,
        }
        for col in NUMERIC_COLUMNS:
            print(f"    average_fill: {col} ← {means[col]} ({filled[col]:,} cells)")
        return out

    def get_report(self) -> dict:
        return self._report


def column_means(df: pd.DataFrame, decimals: int = 2) -> dict[str, float | None]:
    """Mean of each numeric column over its non-null values, rounded.

    A column with no values at all has no mean and maps to None.
    """
    means = {}
    for col in NUMERIC_COLUMNS:
        values = df[col].dropna()
        means[col] = round(float(np.mean(values)), decimals) if len(values) else None
    return means
