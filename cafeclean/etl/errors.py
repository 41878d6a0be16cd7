"""Errors raised by the cleaning pipeline.

Only the batch-level precondition on transaction_id is fatal. Everything else
(bad numbers, bad dates, unmapped items, zero divisors) degrades to a missing
value instead of raising.
"""


class MalformedRecordError(ValueError):
    """Raw input has null or duplicated transaction ids."""

    def __init__(self, null_count: int = 0, duplicate_ids: list[str] | None = None):
        self.null_count = null_count
        self.duplicate_ids = list(duplicate_ids or [])

        problems = []
        if null_count:
            problems.append(f"{null_count:,} null transaction_id value(s)")
        if self.duplicate_ids:
            preview = ", ".join(self.duplicate_ids[:5])
            more = "" if len(self.duplicate_ids) <= 5 else f" (+{len(self.duplicate_ids) - 5} more)"
            problems.append(f"{len(self.duplicate_ids):,} duplicated transaction_id(s): {preview}{more}")
        super().__init__("Malformed input: " + "; ".join(problems or ["transaction_id check failed"]))
