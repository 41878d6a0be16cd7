"""Data quality checks run before, between, and after the cleaning stages.

The find_* helpers each answer one question about a frame and return the
offending rows or values, so they are easy to assert on in tests. The
QualityChecker bundles them into pass/fail entries for the pipeline result.
"""

import numpy as np
import pandas as pd

from cafeclean.etl.config import (
    ETLConfig,
    CompletionMode,
    ANOMALY_VALUES,
    CATEGORICAL_COLUMNS,
    COLUMNS,
    DATE_COLUMN,
    DATE_FORMAT,
    ID_COLUMN,
    NUMERIC_COLUMNS,
    UNKNOWN,
)


def check_transaction_ids(df: pd.DataFrame) -> dict:
    """Null count and duplicated ids (case-insensitive) in a raw frame."""
    ids = df[ID_COLUMN].astype("string").str.strip().str.lower()
    nulls = ids.isna() | (ids == "")
    present = ids[~nulls]
    return {
        "null_count": int(nulls.sum()),
        "duplicate_ids": sorted(present[present.duplicated()].unique().tolist()),
    }


def find_anomalies(df: pd.DataFrame) -> dict[str, list[str]]:
    """Distinct placeholder values (as written) found in each raw column."""
    found = {}
    for col in COLUMNS:
        if col == ID_COLUMN:
            continue
        text = df[col].astype("string")
        hits = text[text.str.strip().str.lower().isin(ANOMALY_VALUES).fillna(False)]
        found[col] = sorted(hits.unique().tolist())
    return found


def find_untrimmed_values(df: pd.DataFrame) -> dict[str, int]:
    """Count of cells per column with leading/trailing whitespace."""
    counts = {}
    for col in COLUMNS:
        text = df[col].astype("string")
        counts[col] = int((text != text.str.strip()).fillna(False).sum())
    return counts


def find_unparsable_dates(df: pd.DataFrame) -> list[str]:
    """Raw date values that aren't placeholders yet don't parse as ISO dates."""
    text = df[DATE_COLUMN].astype("string").str.strip()
    candidates = text[~(text.isna() | text.str.lower().isin(ANOMALY_VALUES))]
    parsed = pd.to_datetime(candidates.astype(object), format=DATE_FORMAT, errors="coerce")
    return sorted(candidates[parsed.isna()].unique().tolist())


def check_item_price_mapping(df: pd.DataFrame) -> dict[str, list[float]]:
    """Items observed with more than one distinct price (should be none).

    Expects a typed frame (stage 1 or later).
    """
    known = df[(df["item"] != UNKNOWN) & df["price_per_unit"].notna()]
    prices = known.groupby("item")["price_per_unit"].unique()
    return {
        item: sorted(float(p) for p in values)
        for item, values in prices.items()
        if len(values) > 1
    }


def find_arithmetic_mismatches(df: pd.DataFrame, tolerance: float = 1e-6) -> pd.DataFrame:
    """Rows where all three numerics are present and quantity * price != total."""
    complete = df[NUMERIC_COLUMNS].notna().all(axis=1)
    rows = df[complete]
    diff = np.abs(rows["quantity"] * rows["price_per_unit"] - rows["total_spent"])
    return rows[diff > tolerance]


def find_remaining_nulls(df: pd.DataFrame, columns: list[str] | None = None) -> pd.DataFrame:
    """Rows with a null in any of the given columns (all columns by default)."""
    columns = columns or COLUMNS
    mask = df[columns].isna().any(axis=1)
    for col in columns:
        if col in CATEGORICAL_COLUMNS:
            mask |= df[col] == UNKNOWN
    return df[mask]


class QualityChecker:
    """Runs the checks that make sense at each point of the pipeline."""

    def __init__(self, config: ETLConfig):
        self._config = config

    def profile_raw(self, raw: pd.DataFrame) -> dict:
        """Diagnostics on the raw text (informational, never fails the run)."""
        return {
            "rows": len(raw),
            "anomalies": find_anomalies(raw),
            "untrimmed": find_untrimmed_values(raw),
            "unparsable_dates": find_unparsable_dates(raw),
        }

    def validate(
        self,
        stages: dict[str, pd.DataFrame],
        mode: CompletionMode | None = None,
    ) -> list[dict]:
        """Run post-stage checks. Returns [{check, passed, details}].

        Args:
            stages: Stage outputs keyed by stage name.
            mode: Completion mode the final stage ran with (defaults to config).
        """
        checks = []
        tolerance = self._config.arithmetic_tolerance

        if "normalized" in stages:
            conflicts = check_item_price_mapping(stages["normalized"])
            checks.append({
                "check": "item_price_mapping",
                "passed": not conflicts,
                "details": f"items_with_multiple_prices={len(conflicts)}",
            })

        if "item_inferred" in stages:
            mismatches = find_arithmetic_mismatches(stages["item_inferred"], tolerance)
            checks.append({
                "check": "arithmetic_identity_before_resolve",
                "passed": mismatches.empty,
                "details": f"mismatched_rows={len(mismatches)}",
            })

        if "arithmetic_resolved" in stages:
            mismatches = find_arithmetic_mismatches(stages["arithmetic_resolved"], tolerance)
            checks.append({
                "check": "arithmetic_identity_after_resolve",
                "passed": mismatches.empty,
                "details": f"mismatched_rows={len(mismatches)}",
            })

        if "completed" in stages:
            final = stages["completed"]
            if (mode or self._config.completion_mode) is CompletionMode.STRICT:
                remaining = find_remaining_nulls(final)
            else:
                remaining = find_remaining_nulls(final, NUMERIC_COLUMNS)
            checks.append({
                "check": "no_remaining_gaps",
                "passed": remaining.empty,
                "details": f"incomplete_rows={len(remaining)}",
            })

        for c in checks:
            status = "✓" if c["passed"] else "✗"
            print(f"  {status} {c['check']}: {c['details']}")

        return checks
