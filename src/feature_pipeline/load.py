"""
Data loading module for the admissions feature pipeline.

Handles reading the raw admissions export, rewriting column names to their
canonical form, pruning timestamp and redundant columns, and writing the
processed table.
"""
import re
from pathlib import Path
from typing import List, Optional
import logging

import pandas as pd

from src import config
from src.feature_pipeline.validation import SchemaError

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xls"}


def load_raw_data(file_path: Optional[str] = None) -> pd.DataFrame:
    """
    Load the raw admissions export from a spreadsheet or CSV file.

    Args:
        file_path: Path to the export. If None, uses default from config.

    Returns:
        DataFrame with raw applicant records (one row per applicant).

    Raises:
        FileNotFoundError: If the file doesn't exist.
        pd.errors.EmptyDataError: If a CSV file is empty.

    Example:
        >>> df = load_raw_data("data/raw/slate_export.xlsx")
        >>> print(df.shape)
        (18234, 36)
    """
    if file_path is None:
        file_path = config.RAW_DATA_PATH
    file_path = Path(file_path)

    logger.info(f"Loading raw data from: {file_path}")

    try:
        if file_path.suffix.lower() in EXCEL_SUFFIXES:
            df = pd.read_excel(file_path)
        else:
            df = pd.read_csv(file_path)
    except FileNotFoundError:
        logger.error(f"File not found: {file_path}")
        raise
    except pd.errors.EmptyDataError:
        logger.error(f"File is empty: {file_path}")
        raise

    logger.info(f"Loaded {len(df):,} rows × {len(df.columns)} columns")

    return df


def canonical_name(name) -> str:
    """
    Rewrite one column name to lowercase, underscore-separated form.

    Example:
        >>> canonical_name("Decision History (All Decisions)")
        'decision_history_all_decisions'
        >>> canonical_name("FAFSA Received")
        'fafsa_received'
        >>> canonical_name("emailOpenRate %")
        'email_open_rate_percent'
    """
    text = str(name).strip()
    text = text.replace("%", " percent ").replace("#", " number ")
    # camelCase and ALLCapsWord boundaries
    text = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", text)
    text = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", text)
    text = re.sub(r"[^0-9a-zA-Z]+", "_", text)
    text = re.sub(r"_+", "_", text).strip("_").lower()
    return text or "x"


def normalize_column_names(df: pd.DataFrame) -> pd.DataFrame:
    """
    Rename every column to its canonical name.

    Pure renaming: column order and every cell value are preserved.

    Args:
        df: DataFrame with arbitrary column names.

    Returns:
        DataFrame with canonical column names.

    Raises:
        SchemaError: If two or more columns normalize to the same name.

    Example:
        >>> df_norm = normalize_column_names(df_raw)
        >>> assert "decision_history_all_decisions" in df_norm.columns
    """
    new_names = [canonical_name(c) for c in df.columns]

    originals = {}
    for original, new in zip(df.columns, new_names):
        originals.setdefault(new, []).append(original)
    collisions = {new: olds for new, olds in originals.items() if len(olds) > 1}
    if collisions:
        new, olds = next(iter(collisions.items()))
        raise SchemaError(
            f"{len(olds)} columns normalize to the same name: {olds}",
            stage="normalize",
            column=new,
        )

    df = df.copy()
    renamed = sum(1 for old, new in zip(df.columns, new_names) if old != new)
    df.columns = new_names

    logger.info(f"Normalized column names ({renamed} of {len(new_names)} renamed)")

    return df


def prune_columns(
    df: pd.DataFrame,
    marker: Optional[str] = None,
    redundant_columns: Optional[List[str]] = None,
) -> pd.DataFrame:
    """
    Drop timestamp-like columns and the redundant interaction log.

    Removes:
    - every column whose canonical name contains `marker` ("timestamp")
    - every column in `redundant_columns` that is present

    Absent redundant columns are skipped, so re-applying the pruner to
    already-pruned output is a no-op.

    Args:
        df: DataFrame with canonical column names.
        marker: Substring identifying timestamp columns (default config).
        redundant_columns: Named columns to drop (default config).

    Returns:
        DataFrame without the pruned columns.

    Example:
        >>> df_pruned = prune_columns(df_norm)
        >>> assert not any("timestamp" in c for c in df_pruned.columns)
    """
    if marker is None:
        marker = config.TIMESTAMP_MARKER
    if redundant_columns is None:
        redundant_columns = config.REDUNDANT_COLUMNS

    timestamp_cols = [c for c in df.columns if marker in c]
    redundant_present = [c for c in redundant_columns if c in df.columns]
    for missing in set(redundant_columns) - set(redundant_present):
        logger.debug(f"Redundant column '{missing}' already absent; skipping")

    to_drop = timestamp_cols + [c for c in redundant_present if c not in timestamp_cols]
    df_pruned = df.drop(columns=to_drop)

    logger.info(
        f"Pruned {len(to_drop)} columns "
        f"({len(timestamp_cols)} timestamp, {len(redundant_present)} redundant)"
    )

    return df_pruned


def save_processed_data(
    df: pd.DataFrame,
    path: Optional[Path] = None,
    csv_path: Optional[Path] = None,
) -> Path:
    """
    Write the model-ready table as parquet and, optionally, CSV.

    Args:
        df: Final processed DataFrame.
        path: Parquet output path (default config.PROCESSED_DATA_PATH).
        csv_path: Optional CSV copy for spreadsheet consumers.

    Returns:
        Path of the parquet file.
    """
    path = Path(path) if path is not None else config.PROCESSED_DATA_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_parquet(path, index=False)
    logger.info(f"Saved processed data to: {path}")

    if csv_path is not None:
        csv_path = Path(csv_path)
        csv_path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(csv_path, index=False)
        logger.info(f"Saved CSV copy to: {csv_path}")

    return path
