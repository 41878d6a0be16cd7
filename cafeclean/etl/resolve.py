"""ArithmeticResolver: stage 4 — fill one missing value from quantity × price = total.

A row is resolved only when exactly one of the three numeric fields is null.
Rows with two or three nulls pass through untouched, as do rows where the
divisor is zero (the target stays null for the completion stage).
"""

import pandas as pd

from cafeclean.etl.config import ETLConfig, NUMERIC_COLUMNS


class ArithmeticResolver:
    """Resolves a single missing numeric field per row."""

    def __init__(self, config: ETLConfig):
        self._config = config
        self._report: dict = {}
        self._resolved_mask: pd.Series | None = None

    def resolve(self, df: pd.DataFrame) -> pd.DataFrame:
        """Return a copy of df with the identity applied to single-gap rows.

        Branch masks are computed once from the input, so a value filled by
        one branch can never feed another branch in the same pass.
        """
        df = df.copy()
        before = df[NUMERIC_COLUMNS].copy()
        qty = before["quantity"]
        price = before["price_per_unit"]
        total = before["total_spent"]

        missing_count = df[NUMERIC_COLUMNS].isna().sum(axis=1)
        single_gap = missing_count == 1

        need_qty = single_gap & qty.isna() & (price != 0)
        need_price = single_gap & price.isna() & (qty != 0)
        need_total = single_gap & total.isna()

        df.loc[need_qty, "quantity"] = total[need_qty] / price[need_qty]
        df.loc[need_price, "price_per_unit"] = total[need_price] / qty[need_price]
        df.loc[need_total, "total_spent"] = qty[need_total] * price[need_total]

        zero_guarded = single_gap & (
            (qty.isna() & (price == 0)) | (price.isna() & (qty == 0))
        )

        self._resolved_mask = need_qty | need_price | need_total
        self._report = {
            "quantity_resolved": int(need_qty.sum()),
            "price_per_unit_resolved": int(need_price.sum()),
            "total_spent_resolved": int(need_total.sum()),
            "zero_divisor_skipped": int(zero_guarded.sum()),
            "multi_gap_rows": int((missing_count > 1).sum()),
        }
        print(f"    resolved quantity={self._report['quantity_resolved']:,}, "
              f"price_per_unit={self._report['price_per_unit_resolved']:,}, "
              f"total_spent={self._report['total_spent_resolved']:,} "
              f"({self._report['zero_divisor_skipped']:,} skipped on zero divisor)")
        return df

    def get_report(self) -> dict:
        return self._report

    @property
    def resolved_mask(self) -> pd.Series | None:
        """Rows filled by the last resolve() call (aligned to its input index)."""
        return self._resolved_mask
