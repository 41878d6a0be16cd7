"""Central configuration for the cafe sales cleaning pipeline.

Every constant, column name, and catalog price used across the ETL lives here.
No other module hardcodes these values — they import from this config.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Mapping
from dotenv import load_dotenv
import os

load_dotenv()

# ── Project paths ──────────────────────────────────────────────

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "data"

# ── Raw data ───────────────────────────────────────────────────

RAW_DATA_FILENAME = "dirty_cafe_sales.csv"
RAW_DATA_PATH = Path(os.getenv("RAW_DATA_PATH", str(DATA_DIR / RAW_DATA_FILENAME)))
OUTPUT_DIR = Path(os.getenv("OUTPUT_DIR", str(DATA_DIR / "output")))

# ── Database (optional) ────────────────────────────────────────

DATABASE_URL = os.getenv("DATABASE_URL")
CLEANED_TABLE_NAME = "cleaned_cafe_sales"

# ── Column names ───────────────────────────────────────────────
# Order here is the order of every DataFrame the pipeline emits.

COLUMNS = [
    "transaction_id",
    "item",
    "quantity",
    "price_per_unit",
    "total_spent",
    "payment_method",
    "location",
    "transaction_date",
]

# Headers as they appear in the public "dirty cafe sales" CSV
RAW_HEADERS = {
    "transaction_id": "Transaction ID",
    "item": "Item",
    "quantity": "Quantity",
    "price_per_unit": "Price Per Unit",
    "total_spent": "Total Spent",
    "payment_method": "Payment Method",
    "location": "Location",
    "transaction_date": "Transaction Date",
}

CATEGORICAL_COLUMNS = ["item", "payment_method", "location"]
NUMERIC_COLUMNS = ["quantity", "price_per_unit", "total_spent"]
DATE_COLUMN = "transaction_date"
ID_COLUMN = "transaction_id"

# ── Anomalies ──────────────────────────────────────────────────
# Compared after strip + lower. Nothing else counts as an anomaly.

ANOMALY_VALUES = frozenset({"", "unknown", "error"})
UNKNOWN = "unknown"
DATE_FORMAT = "%Y-%m-%d"

# Applied after lowercasing, per categorical column: (old, new)
CATEGORICAL_SUBSTITUTIONS = {
    "payment_method": (" ", "_"),
    "location": ("-", ""),
}

# ── Catalog ────────────────────────────────────────────────────
# Fixed menu prices. cake/juice share 3.0 and sandwich/smoothie share 4.0,
# so those prices cannot identify an item and are left out of PRICE_ITEM.

ITEM_PRICE = MappingProxyType({
    "cake": 3.0,
    "coffee": 2.0,
    "cookie": 1.0,
    "juice": 3.0,
    "salad": 5.0,
    "sandwich": 4.0,
    "smoothie": 4.0,
    "tea": 1.5,
})

PRICE_ITEM = MappingProxyType({
    1.0: "cookie",
    1.5: "tea",
    2.0: "coffee",
    5.0: "salad",
})

# ── Thresholds ─────────────────────────────────────────────────

ARITHMETIC_TOLERANCE = 1e-6       # quantity * price vs total_spent
FILL_DECIMALS = 2                 # rounding of column means in average-fill mode


class CompletionMode(str, Enum):
    """Terminal policy applied after arithmetic resolution."""
    STRICT = "strict"
    AVERAGE_FILL = "average_fill"

    @classmethod
    def parse(cls, value: "str | CompletionMode") -> "CompletionMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ValueError(
                f"Unknown completion mode: {value!r} (expected one of: {valid})"
            ) from None


COMPLETION_MODE = os.getenv("COMPLETION_MODE", CompletionMode.STRICT.value)


@dataclass(frozen=True)
class Catalog:
    """Item ↔ price lookup tables handed to the imputation stages.

    Frozen so one instance can be shared by every stage. Tests build their
    own instances to exercise alternate menus.
    """
    item_price: Mapping[str, float] = field(default_factory=lambda: ITEM_PRICE)
    price_item: Mapping[float, str] = field(default_factory=lambda: PRICE_ITEM)

    def price_for(self, item: str) -> float | None:
        return self.item_price.get(item)

    def item_for(self, price: float) -> str | None:
        return self.price_item.get(price_key(price))

    def validate(self) -> list[str]:
        """Return a list of inconsistencies between the two tables (empty if none)."""
        problems = []
        for price, item in self.price_item.items():
            if self.item_price.get(item) != price:
                problems.append(f"PRICE_ITEM[{price}]={item!r} but ITEM_PRICE has {self.item_price.get(item)!r}")

        counts: dict[float, int] = {}
        for price in self.item_price.values():
            counts[price] = counts.get(price, 0) + 1
        for item, price in self.item_price.items():
            if counts[price] == 1 and self.price_item.get(price) != item:
                problems.append(f"ITEM_PRICE[{item!r}]={price} has no matching PRICE_ITEM entry")
            if counts[price] > 1 and price in self.price_item:
                problems.append(f"price {price} is shared by several items but maps to {self.price_item[price]!r}")
        return problems


def price_key(price: float) -> float:
    """Key used to look a price up in PRICE_ITEM.

    Exact float equality. Catalog prices are short decimals, so this holds
    today. Rounding here (e.g. to cents) would harden it against drift.
    """
    return float(price)


@dataclass
class ETLConfig:
    """Bundled config object passed to ETL classes.

    Exists so we can override values in tests without touching module-level constants.
    Production code uses the defaults; tests can pass modified instances.
    """
    raw_data_path: Path = RAW_DATA_PATH
    output_dir: Path = OUTPUT_DIR
    database_url: str | None = DATABASE_URL
    table_name: str = CLEANED_TABLE_NAME
    completion_mode: CompletionMode | str = COMPLETION_MODE
    catalog: Catalog = field(default_factory=Catalog)
    arithmetic_tolerance: float = ARITHMETIC_TOLERANCE
    fill_decimals: int = FILL_DECIMALS

    def __post_init__(self):
        self.completion_mode = CompletionMode.parse(self.completion_mode)
        self.raw_data_path = Path(self.raw_data_path)
        self.output_dir = Path(self.output_dir)
