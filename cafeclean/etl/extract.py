"""Extractor: reads raw sales rows from the source and returns a text-only DataFrame.

Single responsibility — no cleaning, no typing. Every cell stays a string so
the Normalizer sees exactly what the source held ("ERROR", "", "UNKNOWN").
If the data source changes, only this module needs to change.
"""

from collections.abc import Iterable, Mapping

import pandas as pd

from cafeclean.etl.config import ETLConfig, COLUMNS, RAW_HEADERS
from cafeclean.etl.errors import MalformedRecordError
from cafeclean.etl.quality import check_transaction_ids


class Extractor:
    """Reads the raw CSV and returns a DataFrame of text columns."""

    def __init__(self, config: ETLConfig):
        self._config = config

    def extract_records(self) -> pd.DataFrame:
        """Read the raw CSV with every column as text.

        Returns:
            DataFrame with snake_case columns in COLUMNS order, all values str.

        Raises:
            FileNotFoundError: If the raw data file doesn't exist.
            ValueError: If expected columns are missing.
        """
        path = self._config.raw_data_path
        if not path.exists():
            raise FileNotFoundError(
                f"Raw data file not found: {path}\n"
                f"Set RAW_DATA_PATH or place dirty_cafe_sales.csv at: {path}"
            )

        print(f"  Reading {path.name}...")
        # keep_default_na=False: "" must reach the Normalizer as "", not NaN
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
        print(f"    → {len(df):,} rows")

        return records_to_frame(df)


def records_to_frame(records: Iterable[Mapping] | pd.DataFrame) -> pd.DataFrame:
    """Turn any sequence of raw rows into the pipeline's input DataFrame.

    Accepts snake_case or the dataset's Title Case headers. Extra columns are
    dropped; missing ones raise.
    """
    if isinstance(records, pd.DataFrame):
        df = records.copy()
    else:
        rows = list(records)
        df = pd.DataFrame(rows) if rows else pd.DataFrame(columns=COLUMNS, dtype=object)

    rename_map = {v: k for k, v in RAW_HEADERS.items()}
    df = df.rename(columns=rename_map)
    _validate_columns(df)
    return df[COLUMNS].reset_index(drop=True)


def validate_transaction_ids(df: pd.DataFrame) -> None:
    """Fail fast if any transaction_id is null/blank or appears more than once.

    Ids are compared the way the Normalizer will emit them (trimmed,
    lowercased), so "TXN_1" and "txn_1" count as a duplicate.

    Raises:
        MalformedRecordError: On the first batch that violates either rule.
    """
    result = check_transaction_ids(df)
    if result["null_count"] or result["duplicate_ids"]:
        raise MalformedRecordError(**result)


def _validate_columns(df: pd.DataFrame) -> None:
    """Verify all expected raw columns are present.

    Raises:
        ValueError: If expected columns are missing.
    """
    expected = set(COLUMNS)
    actual = set(df.columns)
    missing = expected - actual
    if missing:
        raise ValueError(
            f"Missing expected columns: {sorted(missing)}\n"
            f"Found columns: {sorted(map(str, actual))}"
        )
