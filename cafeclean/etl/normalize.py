"""Normalizer: stage 1 — type coercion and anomaly normalization.

Every raw cell arrives as text. The placeholders "", "UNKNOWN" and "ERROR"
(any casing) mean the original value was lost:

- categorical columns get the literal "unknown",
- numeric columns get NaN,
- the date column gets NaT.

Text that isn't a placeholder but still fails to parse is treated exactly
like a placeholder, and so is a negative or infinite amount. Nothing here
raises and no row or column is dropped.
"""

import numpy as np
import pandas as pd
from pandas.api.types import is_datetime64_any_dtype, is_numeric_dtype

from cafeclean.etl.config import (
    ETLConfig,
    ANOMALY_VALUES,
    CATEGORICAL_COLUMNS,
    CATEGORICAL_SUBSTITUTIONS,
    COLUMNS,
    DATE_COLUMN,
    DATE_FORMAT,
    ID_COLUMN,
    NUMERIC_COLUMNS,
    UNKNOWN,
)


class Normalizer:
    """Maps raw text cells to typed values or null."""

    def __init__(self, config: ETLConfig):
        self._config = config
        self._report: dict = {}

    def normalize(self, df: pd.DataFrame) -> pd.DataFrame:
        """Apply the per-column rules and return a new, typed DataFrame.

        Already-typed columns (e.g. output of a previous run) pass through
        unchanged, so the stage is idempotent.

        Args:
            df: Raw DataFrame with the eight COLUMNS as text.

        Returns:
            DataFrame with the same rows, in COLUMNS order.
        """
        self._report = {"rows": len(df), "anomalies": {}, "unparsable": {}}
        out = pd.DataFrame(index=df.index)

        out[ID_COLUMN] = _as_text(df[ID_COLUMN]).str.lower().astype(object)

        for col in CATEGORICAL_COLUMNS:
            out[col] = self._normalize_categorical(df[col], col)

        for col in NUMERIC_COLUMNS:
            out[col] = self._normalize_numeric(df[col], col)

        out[DATE_COLUMN] = self._normalize_date(df[DATE_COLUMN])

        for col, count in self._report["anomalies"].items():
            unparsable = self._report["unparsable"].get(col, 0)
            extra = f", {unparsable:,} unparsable" if unparsable else ""
            print(f"    {col}: {count:,} anomalies{extra}")

        return out[COLUMNS]

    def get_report(self) -> dict:
        """Anomaly and parse-failure counts per column from the last normalize()."""
        return self._report

    # ── Private helpers ────────────────────────────────────────────

    def _normalize_categorical(self, series: pd.Series, col: str) -> pd.Series:
        text = _as_text(series)
        anomaly = _anomaly_mask(text)
        self._report["anomalies"][col] = int(anomaly.sum())

        values = text.str.lower()
        if col in CATEGORICAL_SUBSTITUTIONS:
            old, new = CATEGORICAL_SUBSTITUTIONS[col]
            values = values.str.replace(old, new, regex=False)

        return values.where(~anomaly, UNKNOWN).astype(object)

    def _normalize_numeric(self, series: pd.Series, col: str) -> pd.Series:
        if is_numeric_dtype(series):
            self._report["anomalies"][col] = 0
            values = series.astype("float64")
            return values.where(np.isfinite(values) & (values >= 0))

        text = _as_text(series)
        anomaly = _anomaly_mask(text)
        parsed = pd.to_numeric(text.astype(object).where(~anomaly, None), errors="coerce")
        parsed = parsed.astype("float64")
        # inf and negatives are not valid amounts
        parsed = parsed.where(np.isfinite(parsed) & (parsed >= 0))

        self._report["anomalies"][col] = int(anomaly.sum())
        self._report["unparsable"][col] = int((parsed.isna() & ~anomaly).sum())
        return parsed

    def _normalize_date(self, series: pd.Series) -> pd.Series:
        if is_datetime64_any_dtype(series):
            self._report["anomalies"][DATE_COLUMN] = 0
            return series.dt.normalize()

        text = _as_text(series)
        anomaly = _anomaly_mask(text)
        parsed = pd.to_datetime(
            text.astype(object).where(~anomaly, None),
            format=DATE_FORMAT,
            errors="coerce",
        )

        self._report["anomalies"][DATE_COLUMN] = int(anomaly.sum())
        self._report["unparsable"][DATE_COLUMN] = int((parsed.isna() & ~anomaly).sum())
        return parsed


def _as_text(series: pd.Series) -> pd.Series:
    """Strip surrounding whitespace; real nulls become <NA>."""
    return series.astype("string").str.strip()


def _anomaly_mask(text: pd.Series) -> pd.Series:
    """True where the cell is null or one of the placeholder values."""
    return (text.isna() | text.str.lower().isin(ANOMALY_VALUES)).astype(bool)
