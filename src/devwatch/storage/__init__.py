"""
Storage module for build history.

Build records are kept in memory during a session and appended to a
compressed Parquet file at shutdown, using Polars for DataFrame operations.
"""

from .history import HISTORY_SCHEMA, BuildHistory
from .parquet_storage import ParquetStorage

__all__ = ["BuildHistory", "HISTORY_SCHEMA", "ParquetStorage"]
