"""
Schema and configuration validation for the admissions feature pipeline.

Fatal problems (missing columns, name collisions, config lists that reference
unknown columns) raise a PipelineError subclass naming the stage and column.
Row-level data problems never raise; stages resolve them to missing values or
documented defaults and count them in the AuditTrail instead.
"""
import re
from typing import Iterable, List, Optional
import logging

import pandas as pd

from src import config

logger = logging.getLogger(__name__)

CANONICAL_NAME_PATTERN = re.compile(r"^[a-z0-9]+(_[a-z0-9]+)*$")


class PipelineError(Exception):
    """Fatal pipeline error tied to a stage and (optionally) a column."""

    def __init__(self, message: str, stage: str, column: Optional[str] = None):
        self.message = message
        self.stage = stage
        self.column = column
        super().__init__(message)

    def __str__(self) -> str:
        location = f"[{self.stage}]"
        if self.column is not None:
            location += f" {self.column}:"
        return f"{location} {self.message}"


class SchemaError(PipelineError, KeyError):
    """A column required by a stage is absent, or normalized names collide."""


class ConfigurationError(PipelineError, ValueError):
    """A configured column list references a name absent from the schema."""


def require_columns(df: pd.DataFrame, columns: Iterable[str], stage: str) -> None:
    """
    Ensure every column a stage reads is present.

    Raises:
        SchemaError: For the first missing column.
    """
    for column in columns:
        if column not in df.columns:
            raise SchemaError(
                f"required column is missing (available: {len(df.columns)} columns)",
                stage=stage,
                column=column,
            )


def validate_config(
    df: pd.DataFrame,
    zero_fill_columns: Optional[List[str]] = None,
    numeric_columns: Optional[List[str]] = None,
    drop_columns: Optional[List[str]] = None,
    fafsa_column: Optional[str] = None,
    round_column: Optional[str] = None,
) -> None:
    """
    Fail fast when a configured column list does not match the schema.

    Runs against the normalized, pruned table before any row is transformed,
    so schema drift in the export aborts the run instead of silently skipping
    an imputation or projection rule.

    Args:
        df: Normalized and pruned DataFrame.
        zero_fill_columns: Columns to zero-fill (default config.ZERO_FILL_COLUMNS).
        numeric_columns: Columns to coerce (default config.NUMERIC_COLUMNS).
        drop_columns: Final exclusion list (default config.FINAL_DROP_COLUMNS).
        fafsa_column: FAFSA date column (default config.FAFSA_COLUMN).
        round_column: Compound round column (default config.ROUND_COLUMN).

    Raises:
        ConfigurationError: Naming the list and the first unknown column.
    """
    checks = {
        "zero_fill_columns": zero_fill_columns if zero_fill_columns is not None else config.ZERO_FILL_COLUMNS,
        "numeric_columns": numeric_columns if numeric_columns is not None else config.NUMERIC_COLUMNS,
        "drop_columns": drop_columns if drop_columns is not None else config.FINAL_DROP_COLUMNS,
        "fafsa_column": [fafsa_column or config.FAFSA_COLUMN],
        "round_column": [round_column or config.ROUND_COLUMN],
    }

    for list_name, columns in checks.items():
        for column in columns:
            if column not in df.columns:
                raise ConfigurationError(
                    f"{list_name} references a column absent from the normalized schema",
                    stage="config",
                    column=column,
                )

    logger.info(f"Configuration validated against {len(df.columns)} columns")


def validate_output(
    df: pd.DataFrame,
    expected_rows: int,
    drop_columns: Optional[List[str]] = None,
) -> None:
    """
    Check the invariants of the model-ready table.

    - Row count equals the input row count
    - location in {0, 1, 2}, student_group in {0..6}, enrolling_stage in {0, 1}
    - No excluded column survives; every name is canonical

    Raises:
        PipelineError: On the first violated invariant.
    """
    if drop_columns is None:
        drop_columns = config.FINAL_DROP_COLUMNS

    if len(df) != expected_rows:
        raise PipelineError(
            f"row count changed from {expected_rows:,} to {len(df):,}",
            stage="output",
        )

    domains = {
        config.LOCATION_COLUMN: {
            config.LOCATION_INTERNATIONAL,
            config.LOCATION_DOMESTIC,
            config.LOCATION_IN_STATE,
        },
        config.STUDENT_GROUP_COLUMN: set(range(7)),
        config.ENROLLING_STAGE_COLUMN: {0, 1},
        config.VISIT_FLAG_COLUMN: {0, 1},
    }
    for column, allowed in domains.items():
        if column not in df.columns:
            continue
        unexpected = set(df[column].dropna().unique()) - allowed
        if unexpected or df[column].isna().any():
            raise PipelineError(
                f"values outside {sorted(allowed)}: {sorted(unexpected)}",
                stage="output",
                column=column,
            )

    leftover = [c for c in drop_columns if c in df.columns]
    if leftover:
        raise PipelineError(
            f"excluded columns still present: {leftover}",
            stage="output",
            column=leftover[0],
        )

    bad_names = [c for c in df.columns if not CANONICAL_NAME_PATTERN.match(str(c))]
    if bad_names:
        raise PipelineError(
            f"non-canonical column names: {bad_names}",
            stage="output",
            column=str(bad_names[0]),
        )
