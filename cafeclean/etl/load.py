"""Loader: writes the cleaned table out of the pipeline.

CSV is always available. A SQL target is optional and goes through
SQLAlchemy; each load replaces the table, so re-running the pipeline gives
the same result.
"""

from pathlib import Path

import pandas as pd
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from cafeclean.etl.config import ETLConfig, DATE_COLUMN


class Loader:
    """Persists cleaned DataFrames to CSV and, if configured, a SQL database."""

    def __init__(self, config: ETLConfig, engine: Engine | None = None):
        self._config = config
        self._engine = engine
        if self._engine is None and config.database_url:
            self._engine = create_engine(config.database_url)

    @property
    def engine(self) -> Engine | None:
        """Expose engine for callers that need DB access (None when not configured)."""
        return self._engine

    def write_csv(self, df: pd.DataFrame, filename: str) -> Path:
        """Write df under the output directory. Dates are written as YYYY-MM-DD.

        Returns:
            Path of the written file.
        """
        out_dir = self._config.output_dir
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / filename

        df.to_csv(path, index=False, date_format="%Y-%m-%d")
        print(f"  Wrote {len(df):,} rows → {path}")
        return path

    def load_table(self, df: pd.DataFrame, table_name: str | None = None) -> int:
        """Replace a SQL table with df.

        Args:
            df: Cleaned DataFrame. Column names become table columns.
            table_name: Target table (defaults to config.table_name).

        Returns:
            Number of rows loaded.

        Raises:
            RuntimeError: If no database is configured.
        """
        if self._engine is None:
            raise RuntimeError("No database configured (set DATABASE_URL)")

        table_name = table_name or self._config.table_name
        out = df.copy()
        out[DATE_COLUMN] = out[DATE_COLUMN].dt.date

        out.to_sql(
            name=table_name,
            con=self._engine,
            if_exists="replace",
            index=False,
            chunksize=1000,
        )

        row_count = len(out)
        print(f"  Loaded {row_count:,} rows → {table_name}")
        return row_count

    def verify_row_count(self, table_name: str | None = None) -> int:
        """Query actual row count from a table for validation."""
        if self._engine is None:
            raise RuntimeError("No database configured (set DATABASE_URL)")
        table_name = table_name or self._config.table_name
        with self._engine.connect() as conn:
            result = conn.execute(text(f"SELECT COUNT(*) FROM {table_name}"))
            return result.scalar()


def to_records(df: pd.DataFrame) -> list[dict]:
    """Cleaned rows as plain dicts: NaN/NaT become None, dates become datetime.date."""
    out = df.copy()
    out[DATE_COLUMN] = out[DATE_COLUMN].dt.date
    out = out.astype(object).where(out.notna(), None)
    return out.to_dict(orient="records")
