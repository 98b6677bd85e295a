"""
Build history recording.

Every completed build attempt is kept as a BuildRecord for the lifetime of
the session. At shutdown the records are appended to a Parquet file, so the
file accumulates the build timings of every session.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

import polars as pl

from ..models.runtime import BuildRecord
from .parquet_storage import ParquetStorage

logger = logging.getLogger(__name__)

HISTORY_SCHEMA = {
    "package": pl.Utf8,
    "trigger": pl.Utf8,
    "started_at": pl.Float64,
    "duration_s": pl.Float64,
    "success": pl.Boolean,
    "error": pl.Utf8,
}


class BuildHistory:
    """
    In-memory list of build records with Polars export.
    """

    def __init__(self, storage: Optional[ParquetStorage] = None):
        self.storage = storage or ParquetStorage()
        self._records: List[BuildRecord] = []

    def record(self, record: BuildRecord) -> None:
        self._records.append(record)

    @property
    def records(self) -> List[BuildRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def to_dataframe(self) -> pl.DataFrame:
        """All records as a DataFrame with the history schema."""
        return pl.DataFrame(
            {column: [getattr(r, column) for r in self._records] for column in HISTORY_SCHEMA},
            schema=HISTORY_SCHEMA,
        )

    def summary(self) -> pl.DataFrame:
        """
        Per-package aggregates: builds, failures, mean and max duration.

        Packages appear in the order of their first build.
        """
        return (
            self.to_dataframe()
            .group_by("package", maintain_order=True)
            .agg(
                pl.len().alias("builds"),
                (~pl.col("success")).sum().alias("failures"),
                pl.col("duration_s").mean().alias("mean_duration_s"),
                pl.col("duration_s").max().alias("max_duration_s"),
            )
        )

    def log_summary(self) -> None:
        if not self._records:
            return
        logger.info("--- Build summary ---")
        for row in self.summary().iter_rows(named=True):
            logger.info(
                f"{row['package']}: {row['builds']} builds, {row['failures']} failed, "
                f"mean {row['mean_duration_s']:.2f}s, max {row['max_duration_s']:.2f}s"
            )

    def save(self, path: Union[str, Path]) -> bool:
        """
        Append this session's records to ``path``.

        Returns:
            False when there was nothing to save
        """
        if not self._records:
            logger.debug("No build records to save")
            return False
        self.storage.append_dataframe(self.to_dataframe(), path)
        logger.info(f"Build history ({len(self._records)} records) saved to {path}")
        return True
