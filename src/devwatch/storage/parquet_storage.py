"""
Parquet storage implementation using Polars.
"""

import logging
from pathlib import Path
from typing import List, Literal, Optional, Union

import polars as pl

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class ParquetStorage:
    """
    Parquet storage for build history frames.

    This implementation provides:
    - Compressed columnar files
    - Column pruning on load
    - Append by concatenating with the existing file
    """

    def __init__(self, compression: Literal["snappy", "gzip", "brotli", "lz4", "zstd"] = "snappy"):
        self.compression = compression
        logger.debug(f"Initialized ParquetStorage with compression: {compression}")

    def save_dataframe(self, df: pl.DataFrame, path: PathLike) -> None:
        """
        Save a Polars DataFrame to Parquet format.

        Args:
            df: Polars DataFrame to save
            path: File path to save to
        """
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            df.write_parquet(path, compression=self.compression)
            logger.debug(f"Saved DataFrame with {len(df)} rows to {path}")
        except Exception as e:
            logger.error(f"Failed to save DataFrame to {path}: {e}")
            raise

    def load_dataframe(self, path: PathLike, columns: Optional[List[str]] = None) -> pl.DataFrame:
        """
        Load a Polars DataFrame from Parquet format.

        Args:
            path: File path to load from
            columns: Optional list of columns to load

        Returns:
            Loaded Polars DataFrame
        """
        try:
            if columns:
                return pl.read_parquet(path, columns=columns)
            return pl.read_parquet(path)
        except Exception as e:
            logger.error(f"Failed to load DataFrame from {path}: {e}")
            raise

    def append_dataframe(self, df: pl.DataFrame, path: PathLike) -> None:
        """
        Append a Polars DataFrame to an existing Parquet file, creating it if needed.
        """
        if self.file_exists(path):
            existing_df = self.load_dataframe(path)
            combined_df = pl.concat([existing_df, df], how="vertical_relaxed")
            self.save_dataframe(combined_df, path)
            logger.debug(f"Appended {len(df)} rows to existing file {path}")
        else:
            self.save_dataframe(df, path)
            logger.debug(f"Created new file {path} with {len(df)} rows")

    def file_exists(self, path: PathLike) -> bool:
        return Path(path).exists()
