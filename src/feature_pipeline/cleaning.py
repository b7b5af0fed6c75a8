"""
Data cleaning module for the admissions feature pipeline.

Handles missing-value imputation for engagement counters, the FAFSA presence
flag, and decomposition of the compound round column.
"""
from typing import List, Optional
import logging

import numpy as np
import pandas as pd

from src import config
from src.feature_pipeline.audit import AuditTrail
from src.feature_pipeline.validation import ConfigurationError, require_columns

logger = logging.getLogger(__name__)


def _is_blank(series: pd.Series) -> pd.Series:
    """True where a value is missing or a whitespace-only string."""
    blank_text = series.map(lambda v: isinstance(v, str) and not v.strip())
    return series.isna() | blank_text.astype(bool)


def resolve_missing_values(
    df: pd.DataFrame,
    zero_fill_columns: Optional[List[str]] = None,
    fafsa_column: Optional[str] = None,
    audit: Optional[AuditTrail] = None,
) -> pd.DataFrame:
    """
    Apply the per-column missing-value rules.

    Strategy:
    - Engagement/event counters: missing → 0 (no recorded interaction);
      non-missing values are left untouched
    - FAFSA date: replaced by an integer presence flag (1 = submitted),
      the date itself is discarded

    Args:
        df: DataFrame with canonical column names.
        zero_fill_columns: Columns to zero-fill (default config.ZERO_FILL_COLUMNS).
        fafsa_column: Date column turned into a flag (default config.FAFSA_COLUMN).
        audit: Optional AuditTrail receiving per-column counts.

    Returns:
        DataFrame where the zero-fill columns contain no missing values.

    Raises:
        ConfigurationError: If an enumerated column is absent from the table.

    Example:
        >>> df_clean = resolve_missing_values(df_pruned)
        >>> assert df_clean[config.ZERO_FILL_COLUMNS].isnull().sum().sum() == 0
    """
    if zero_fill_columns is None:
        zero_fill_columns = config.ZERO_FILL_COLUMNS
    if fafsa_column is None:
        fafsa_column = config.FAFSA_COLUMN

    for column in list(zero_fill_columns) + [fafsa_column]:
        if column not in df.columns:
            raise ConfigurationError(
                "imputation rule references a column absent from the table",
                stage="impute",
                column=column,
            )

    df = df.copy()

    for column in zero_fill_columns:
        n_missing = int(df[column].isna().sum())
        df[column] = df[column].fillna(0)
        if audit is not None:
            audit.record("impute", column, "zero_filled", n_missing)
        if n_missing:
            logger.debug(f"Zero-filled {n_missing:,} missing values in {column}")

    present = ~_is_blank(df[fafsa_column])
    df[fafsa_column] = present.astype(int)
    n_present = int(present.sum())
    if audit is not None:
        audit.record("impute", fafsa_column, "flagged_present", n_present)

    logger.info(
        f"Zero-filled {len(zero_fill_columns)} engagement columns; "
        f"{fafsa_column} → presence flag ({n_present:,} of {len(df):,} submitted)"
    )

    return df


def _round_text(value):
    """Round cell as stripped text; integral floats (2026.0) lose the decimal."""
    if pd.isna(value):
        return np.nan
    if isinstance(value, (float, np.floating)) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def split_round(
    df: pd.DataFrame,
    column: Optional[str] = None,
    year_column: Optional[str] = None,
    period_column: Optional[str] = None,
) -> pd.DataFrame:
    """
    Split the compound round column into year and period.

    Splits on the first whitespace only, since period labels are multi-word:
    - '2025 Early Decision' → year '2025', period 'Early Decision'
    - '2026' → year '2026', period missing
    - missing → both missing

    The two products replace the round column at its position.

    Args:
        df: DataFrame with the round column.
        column: Compound column (default config.ROUND_COLUMN).
        year_column: Name for the first token (default config.YEAR_COLUMN).
        period_column: Name for the remainder (default config.PERIOD_COLUMN).

    Returns:
        DataFrame with year and period instead of round.

    Raises:
        SchemaError: If the round column is absent.
    """
    column = column or config.ROUND_COLUMN
    year_column = year_column or config.YEAR_COLUMN
    period_column = period_column or config.PERIOD_COLUMN

    require_columns(df, [column], stage="split")

    df = df.copy()

    text = df[column].map(_round_text).astype(object)
    parts = text.str.split(n=1, expand=True).reindex(columns=[0, 1])

    position = df.columns.get_loc(column)
    df = df.drop(columns=[column])
    df.insert(position, year_column, parts[0])
    df.insert(position + 1, period_column, parts[1])

    n_no_period = int(df[year_column].notna().sum() - df[period_column].notna().sum())
    logger.info(
        f"Split {column} into {year_column}/{period_column} "
        f"({n_no_period:,} rows without a period)"
    )

    return df


def clean_data(df: pd.DataFrame, audit: Optional[AuditTrail] = None) -> pd.DataFrame:
    """
    Execute the cleaning stages.

    Orchestrates:
    1. Missing-value rules (zero-fill, FAFSA presence flag)
    2. Round → year/period split

    Args:
        df: Normalized, pruned DataFrame.
        audit: Optional AuditTrail receiving per-column counts.

    Returns:
        Cleaned DataFrame (same row count as input).
    """
    logger.info("Starting data cleaning pipeline")

    df = resolve_missing_values(df, audit=audit)
    df = split_round(df)

    logger.info(f"Cleaning complete. Shape: {df.shape}")

    return df
