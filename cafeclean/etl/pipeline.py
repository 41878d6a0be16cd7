"""Pipeline: orchestrates the five cleaning stages.

Validate ids → Normalize → Impute prices → Infer items → Resolve arithmetic
→ Complete. Each stage consumes the full output of the previous one, and
every intermediate frame is kept on the result so it can be inspected.

Usage:
    python -m cafeclean.etl.pipeline
"""

import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

import pandas as pd

from cafeclean.etl.config import ETLConfig, CompletionMode
from cafeclean.etl.extract import Extractor, records_to_frame, validate_transaction_ids
from cafeclean.etl.normalize import Normalizer
from cafeclean.etl.impute import PriceImputer, ItemInferencer
from cafeclean.etl.resolve import ArithmeticResolver
from cafeclean.etl.complete import CompletionPolicy
from cafeclean.etl.quality import QualityChecker
from cafeclean.etl.load import Loader

STAGE_NAMES = [
    "normalized",
    "price_imputed",
    "item_inferred",
    "arithmetic_resolved",
    "completed",
]


@dataclass
class PipelineResult:
    """Summary of a pipeline run, including every intermediate frame."""
    success: bool
    mode: CompletionMode = CompletionMode.STRICT
    stages: dict[str, pd.DataFrame] = field(default_factory=dict)
    stage_reports: dict[str, dict] = field(default_factory=dict)
    raw_profile: dict = field(default_factory=dict)
    validation: list[dict] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def output(self) -> pd.DataFrame:
        """The final cleaned frame."""
        return self.stages["completed"]

    def stage(self, name: str) -> pd.DataFrame:
        """Output of one stage by name (see STAGE_NAMES)."""
        if name not in self.stages:
            raise KeyError(f"Unknown stage {name!r}; expected one of {STAGE_NAMES}")
        return self.stages[name]


class Pipeline:
    """Runs the cleaning stages in order over a whole batch."""

    def __init__(self, config: ETLConfig | None = None):
        self._config = config or ETLConfig()
        self._normalizer = Normalizer(self._config)
        self._price_imputer = PriceImputer(self._config)
        self._item_inferencer = ItemInferencer(self._config)
        self._resolver = ArithmeticResolver(self._config)
        self._completion = CompletionPolicy(self._config)
        self._checker = QualityChecker(self._config)

    def run(self, records: Iterable[Mapping] | pd.DataFrame) -> PipelineResult:
        """Clean a batch of raw rows.

        Args:
            records: Raw rows (mappings of column → text) or a DataFrame of them.

        Returns:
            PipelineResult with each stage's output and the validation checks.

        Raises:
            MalformedRecordError: If transaction_id is null or duplicated.
            ValueError: If expected columns are missing.
        """
        result = PipelineResult(success=False, mode=self._completion.mode)
        start = time.time()

        try:
            # ── Precondition: transaction ids ─────────────────────
            # Runs once on the raw batch; nothing is cleaned if it fails.
            raw = records_to_frame(records)
            validate_transaction_ids(raw)
            result.raw_profile = self._checker.profile_raw(raw)

            print(f"\n[1/5] Normalizing {len(raw):,} rows...")
            df = self._normalizer.normalize(raw)
            self._record(result, "normalized", df, self._normalizer)

            print("\n[2/5] Imputing prices from catalog...")
            df = self._price_imputer.impute_prices(df)
            self._record(result, "price_imputed", df, self._price_imputer)

            print("\n[3/5] Inferring items from price...")
            df = self._item_inferencer.infer_items(df)
            self._record(result, "item_inferred", df, self._item_inferencer)

            print("\n[4/5] Resolving quantity × price = total...")
            df = self._resolver.resolve(df)
            self._record(result, "arithmetic_resolved", df, self._resolver)

            print(f"\n[5/5] Completing ({self._completion.mode.value})...")
            df = self._completion.complete(df)
            self._record(result, "completed", df, self._completion)

            print("\nValidating...")
            result.validation = self._checker.validate(
                result.stages,
                mode=self._completion.mode,
            )
            result.success = all(v["passed"] for v in result.validation)

        except Exception as e:
            print(f"\n❌ Pipeline failed: {e}")
            raise

        finally:
            result.duration_seconds = round(time.time() - start, 2)

        return result

    def _record(self, result: PipelineResult, name: str, df: pd.DataFrame, stage) -> None:
        result.stages[name] = df
        result.stage_reports[name] = stage.get_report()


# ── CLI entry point ────────────────────────────────────────────

def main():
    """Extract the raw CSV, clean it, and write the result."""
    print("=" * 60)
    print("Cafe Sales Cleaning Pipeline")
    print("=" * 60)

    config = ETLConfig()
    raw = Extractor(config).extract_records()
    result = Pipeline(config).run(raw)

    loader = Loader(config)
    loader.write_csv(result.output, f"cleaned_cafe_sales_{result.mode.value}.csv")
    if loader.engine is not None:
        loader.load_table(result.output)

    completion = result.stage_reports["completed"]
    print("\n" + "=" * 60)
    print("Summary")
    print("=" * 60)
    print(f"Success: {result.success}")
    print(f"Mode: {result.mode.value}")
    print(f"Duration: {result.duration_seconds}s")
    print(f"Rows: {completion['rows_before']:,} → {completion['rows_after']:,} "
          f"({completion['pct_dropped']}% dropped)")

    return result


if __name__ == "__main__":
    main()
