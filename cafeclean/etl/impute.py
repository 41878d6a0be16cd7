"""Catalog-driven imputation: stage 2 (price from item) and stage 3 (item from price).

Both stages read the same Catalog, so the order matters: prices filled in
stage 2 are never used to re-infer an item (the item was known), and items
inferred in stage 3 only come from prices that were already present.
"""

import pandas as pd

from cafeclean.etl.config import ETLConfig, Catalog, UNKNOWN


class PriceImputer:
    """Fills missing price_per_unit from the item → price table."""

    def __init__(self, config: ETLConfig, catalog: Catalog | None = None):
        self._config = config
        self._catalog = catalog or config.catalog
        self._report: dict = {}

    def impute_prices(self, df: pd.DataFrame) -> pd.DataFrame:
        """Return a copy of df with catalog prices filled in.

        Only rows with a null price and a known item are touched. Items that
        aren't on the menu keep their null price.
        """
        df = df.copy()
        candidates = df["price_per_unit"].isna() & (df["item"] != UNKNOWN)

        prices = df.loc[candidates, "item"].map(self._catalog.price_for).astype("float64")
        df.loc[candidates, "price_per_unit"] = prices

        filled = int(prices.notna().sum())
        self._report = {
            "candidates": int(candidates.sum()),
            "filled": filled,
            "unmapped_items": sorted(df.loc[candidates & df["price_per_unit"].isna(), "item"].unique().tolist()),
        }
        print(f"    price_per_unit: filled {filled:,} of {self._report['candidates']:,} from catalog")
        return df

    def get_report(self) -> dict:
        return self._report


class ItemInferencer:
    """Resolves item == "unknown" from price_per_unit via the price → item table."""

    def __init__(self, config: ETLConfig, catalog: Catalog | None = None):
        self._config = config
        self._catalog = catalog or config.catalog
        self._report: dict = {}

    def infer_items(self, df: pd.DataFrame) -> pd.DataFrame:
        """Return a copy of df with unknown items inferred where the price is unambiguous."""
        df = df.copy()
        candidates = (df["item"] == UNKNOWN) & df["price_per_unit"].notna()

        items = df.loc[candidates, "price_per_unit"].map(self._catalog.item_for)
        resolved = items.notna()
        df.loc[items[resolved].index, "item"] = items[resolved]

        self._report = {
            "candidates": int(candidates.sum()),
            "inferred": int(resolved.sum()),
        }
        print(f"    item: inferred {self._report['inferred']:,} of "
              f"{self._report['candidates']:,} unknown items from price")
        return df

    def get_report(self) -> dict:
        return self._report
