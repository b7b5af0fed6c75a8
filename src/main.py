"""
Admissions feature pipeline - main entry point.

Runs the full transformation from raw admissions export to model-ready
feature table:

    load → normalize names → prune → validate config → impute → split round
         → derive features → final projection

Usage:
    python -m src.main
"""
from pathlib import Path
from typing import Optional, Tuple
import logging

import pandas as pd

from src import config
from src.feature_pipeline import (
    AuditTrail,
    clean_data,
    create_features,
    load_raw_data,
    normalize_column_names,
    prepare_final_dataset,
    prune_columns,
    save_processed_data,
    validate_config,
)

logger = logging.getLogger(__name__)


def run_preprocessing_pipeline(
    file_path: Optional[str] = None,
    save_outputs: bool = False,
    geocoder=None,
    df: Optional[pd.DataFrame] = None,
    output_path: Optional[Path] = None,
    csv_path: Optional[Path] = None,
) -> Tuple[pd.DataFrame, AuditTrail]:
    """
    Execute the complete preprocessing pipeline.

    Stages run strictly in order; derived features read raw columns the
    final projection removes. Outputs are written only after every stage
    succeeded, so a failed run leaves no partial artifact.

    Args:
        file_path: Raw export path (default config.RAW_DATA_PATH). Ignored when df is given.
        save_outputs: Write parquet/CSV table and audit report.
        geocoder: Postal-code geocoder (default utils.geo.default_geocoder()).
        df: Already-loaded raw DataFrame.
        output_path: Parquet path (default config.PROCESSED_DATA_PATH).
        csv_path: Optional CSV copy path.

    Returns:
        Tuple of (final DataFrame, AuditTrail with row-level counts).

    Raises:
        PipelineError: Schema or configuration problems, naming stage and column.
    """
    audit = AuditTrail()

    if df is None:
        df = load_raw_data(file_path)
    n_rows = len(df)

    df = normalize_column_names(df)
    df = prune_columns(df)
    validate_config(df)
    df = clean_data(df, audit=audit)
    df = create_features(df, geocoder=geocoder, audit=audit)
    df = prepare_final_dataset(df)

    enroll_rate = df[config.ENROLLING_STAGE_COLUMN].mean() * 100 if n_rows else 0.0
    logger.info("=" * 60)
    logger.info(f"Rows: {n_rows:,} in → {len(df):,} out; {len(df.columns)} columns")
    logger.info(f"Enrollment rate: {enroll_rate:.2f}%")
    logger.info(
        f"Zero-filled: {audit.total('zero_filled'):,}; "
        f"coerced to missing: {audit.total('coerced_to_missing'):,}; "
        f"invalid postal codes: {audit.total('invalid_postal_code'):,}; "
        f"unknown postal codes: {audit.total('unknown_postal_code'):,}; "
        f"empty decision logs: {audit.total('defaulted'):,}"
    )
    logger.info("=" * 60)

    if save_outputs:
        parquet_path = save_processed_data(df, path=output_path, csv_path=csv_path)
        audit.save(parquet_path.with_name(config.AUDIT_REPORT_PATH.name))

    return df, audit


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    run_preprocessing_pipeline(save_outputs=True)
