import numpy as np
import pandas as pd
import pytest

from cafeclean.etl.config import ETLConfig, CompletionMode, COLUMNS, ITEM_PRICE


@pytest.fixture
def config(tmp_path):
    return ETLConfig(
        raw_data_path=tmp_path / "dirty_cafe_sales.csv",
        output_dir=tmp_path / "output",
        database_url=None,
        completion_mode=CompletionMode.STRICT,
    )


@pytest.fixture
def average_config(config):
    config.completion_mode = CompletionMode.AVERAGE_FILL
    return config


@pytest.fixture
def raw_rows():
    """A handful of raw rows covering each kind of defect."""
    return [
        {"transaction_id": "TXN_1000001", "item": "Coffee", "quantity": "2", "price_per_unit": "2.0",
         "total_spent": "4.0", "payment_method": "Credit Card", "location": "In-store",
         "transaction_date": "2023-09-08"},
        {"transaction_id": "TXN_1000002", "item": "Tea", "quantity": "3", "price_per_unit": "ERROR",
         "total_spent": "4.5", "payment_method": "Cash", "location": "Takeaway",
         "transaction_date": "2023-05-16"},
        {"transaction_id": "TXN_1000003", "item": "UNKNOWN", "quantity": "1", "price_per_unit": "5.0",
         "total_spent": "", "payment_method": "Digital Wallet", "location": "ERROR",
         "transaction_date": "2023-07-19"},
        {"transaction_id": "TXN_1000004", "item": "Sandwich", "quantity": "UNKNOWN", "price_per_unit": "4.0",
         "total_spent": "12.0", "payment_method": "", "location": "In-store",
         "transaction_date": "error"},
        {"transaction_id": "TXN_1000005", "item": "", "quantity": "", "price_per_unit": "",
         "total_spent": "9.0", "payment_method": "Cash", "location": "Takeaway",
         "transaction_date": "2023-13-45"},
    ]


@pytest.fixture
def make_frame():
    """Build a stage-1-shaped frame from partial dicts (missing keys → null)."""
    def _make(rows):
        defaults = {
            "transaction_id": None,
            "item": "unknown",
            "quantity": np.nan,
            "price_per_unit": np.nan,
            "total_spent": np.nan,
            "payment_method": "cash",
            "location": "takeaway",
            "transaction_date": "2023-01-01",
        }
        filled = []
        for i, row in enumerate(rows):
            record = {**defaults, "transaction_id": f"txn_{i}", **row}
            filled.append({k: (np.nan if v is None and k != "transaction_date" else v) for k, v in record.items()})
        df = pd.DataFrame(filled, columns=COLUMNS)
        for col in ("quantity", "price_per_unit", "total_spent"):
            df[col] = df[col].astype("float64")
        df["transaction_date"] = pd.to_datetime(df["transaction_date"])
        return df
    return _make


@pytest.fixture
def sample_raw_df():
    """Seeded synthetic dataset shaped like the dirty cafe sales CSV.

    Every row starts consistent (quantity * price == total, catalog prices),
    then about 2% of cells are replaced by placeholders.
    """
    rng = np.random.default_rng(7)
    n = 500
    items = list(ITEM_PRICE)
    chosen = rng.choice(items, size=n)
    qty = rng.integers(1, 6, size=n)
    price = np.array([ITEM_PRICE[i] for i in chosen])
    dates = pd.Timestamp("2023-01-01") + pd.to_timedelta(rng.integers(0, 365, size=n), unit="D")

    df = pd.DataFrame({
        "transaction_id": [f"TXN_{1000000 + i}" for i in range(n)],
        "item": [i.title() for i in chosen],
        "quantity": qty.astype(str),
        "price_per_unit": price.astype(str),
        "total_spent": (qty * price).astype(str),
        "payment_method": rng.choice(["Cash", "Credit Card", "Digital Wallet"], size=n),
        "location": rng.choice(["In-store", "Takeaway"], size=n),
        "transaction_date": dates.strftime("%Y-%m-%d"),
    })

    placeholders = np.array(["", "UNKNOWN", "ERROR"])
    for col in COLUMNS[1:]:
        hit = rng.random(n) < 0.02
        df.loc[hit, col] = rng.choice(placeholders, size=int(hit.sum()))
    return df
