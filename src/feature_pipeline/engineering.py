"""
Feature engineering module for the admissions feature pipeline.

Handles derived-feature creation (event participation, distance, location,
student group, numeric coercion, enrollment outcome) and final column
projection. All derived features use snake_case naming.
"""
from typing import List, Optional, Sequence, Tuple
import logging

import numpy as np
import pandas as pd

from src import config
from src.feature_pipeline.audit import AuditTrail
from src.feature_pipeline.validation import (
    ConfigurationError,
    SchemaError,
    require_columns,
    validate_output,
)
from src.utils.geo import default_geocoder, haversine_distance, normalize_postal_code

logger = logging.getLogger(__name__)


def create_visit_flag(
    df: pd.DataFrame,
    markers: Optional[List[str]] = None,
) -> pd.DataFrame:
    """
    Create the event-participation flag.

    Feature created:
    - our_visits: 1 if the events log contains any marker substring
      (case-sensitive), else 0. Missing/empty logs yield 0.

    Args:
        df: Input DataFrame with events_comma_separated column.
        markers: Event marker substrings (default config.EVENT_MARKERS).

    Returns:
        DataFrame with our_visits feature.

    Example:
        >>> df_eng = create_visit_flag(df)
        >>> # "Virtual College Fair, Info Session" → 1, "Info Session" → 0
    """
    if markers is None:
        markers = config.EVENT_MARKERS

    require_columns(df, [config.EVENTS_COLUMN], stage="derive")
    df = df.copy()

    events = df[config.EVENTS_COLUMN].fillna("").astype(str)
    hit = pd.Series(False, index=df.index)
    for marker in markers:
        hit |= events.str.contains(marker, regex=False)

    df[config.VISIT_FLAG_COLUMN] = hit.astype(int)

    logger.info(
        f"Created {config.VISIT_FLAG_COLUMN} feature "
        f"({int(hit.sum()):,} applicants met us at an event)"
    )

    return df


def create_distance(
    df: pd.DataFrame,
    geocoder=None,
    institution_postal_code: Optional[str] = None,
    audit: Optional[AuditTrail] = None,
) -> pd.DataFrame:
    """
    Create great-circle distance (miles) from the institution.

    Feature created:
    - distance: haversine distance between the applicant's postal-code
      centroid and the institution's. Missing, malformed or unknown postal
      codes yield NaN, never 0 (0 means co-located).

    Args:
        df: Input DataFrame with postal column.
        geocoder: Object with lookup(Series) -> DataFrame[latitude, longitude].
            Defaults to utils.geo.default_geocoder().
        institution_postal_code: Home postal code (default config).
        audit: Optional AuditTrail receiving the invalid-code count.

    Returns:
        DataFrame with distance feature.

    Raises:
        ConfigurationError: If the institutional postal code cannot be geocoded.
    """
    if institution_postal_code is None:
        institution_postal_code = config.INSTITUTION_POSTAL_CODE
    if geocoder is None:
        geocoder = default_geocoder()

    require_columns(df, [config.POSTAL_COLUMN], stage="derive")
    df = df.copy()

    home_code = normalize_postal_code(institution_postal_code)
    home = geocoder.lookup(pd.Series([home_code]))
    if home_code is None or home.isna().to_numpy().any():
        raise ConfigurationError(
            f"institutional postal code {institution_postal_code!r} cannot be geocoded",
            stage="derive",
            column=config.DISTANCE_COLUMN,
        )
    home_lat, home_lon = home.iloc[0]["latitude"], home.iloc[0]["longitude"]

    codes = df[config.POSTAL_COLUMN].map(normalize_postal_code)
    coords = geocoder.lookup(codes)

    df[config.DISTANCE_COLUMN] = haversine_distance(
        coords["latitude"].to_numpy(),
        coords["longitude"].to_numpy(),
        home_lat,
        home_lon,
    )

    n_missing_raw = int(df[config.POSTAL_COLUMN].isna().sum())
    n_invalid = int(codes.isna().sum()) - n_missing_raw
    n_unknown = int(df[config.DISTANCE_COLUMN].isna().sum()) - int(codes.isna().sum())
    if audit is not None:
        audit.record("derive", config.POSTAL_COLUMN, "invalid_postal_code", n_invalid)
        audit.record("derive", config.POSTAL_COLUMN, "unknown_postal_code", n_unknown)
    if n_invalid or n_unknown:
        logger.warning(
            f"{n_invalid:,} malformed and {n_unknown:,} unknown postal codes → distance missing"
        )

    logger.info(
        f"Created {config.DISTANCE_COLUMN} feature "
        f"({int(df[config.DISTANCE_COLUMN].notna().sum()):,} of {len(df):,} rows located)"
    )

    return df


def create_location(
    df: pd.DataFrame,
    in_state_region: Optional[str] = None,
    domestic_country: Optional[str] = None,
) -> pd.DataFrame:
    """
    Create the three-way location category.

    Feature created:
    - location: 0 = international (country is not the domestic country,
      checked first), 2 = in-state (domestic and region matches),
      1 = domestic elsewhere.

    Args:
        df: Input DataFrame with country and region columns.
        in_state_region: Home region code (default config.IN_STATE_REGION).
        domestic_country: Domestic country label (default config.DOMESTIC_COUNTRY).

    Returns:
        DataFrame with location feature.

    Example:
        >>> df_eng = create_location(df)
        >>> print(df_eng['location'].value_counts())
    """
    if in_state_region is None:
        in_state_region = config.IN_STATE_REGION
    if domestic_country is None:
        domestic_country = config.DOMESTIC_COUNTRY

    require_columns(df, [config.COUNTRY_COLUMN, config.REGION_COLUMN], stage="derive")
    df = df.copy()

    international = df[config.COUNTRY_COLUMN] != domestic_country
    in_state = df[config.REGION_COLUMN] == in_state_region

    df[config.LOCATION_COLUMN] = np.select(
        [international, in_state],
        [config.LOCATION_INTERNATIONAL, config.LOCATION_IN_STATE],
        default=config.LOCATION_DOMESTIC,
    ).astype(int)

    logger.info(
        f"Created {config.LOCATION_COLUMN} feature "
        f"{df[config.LOCATION_COLUMN].value_counts().sort_index().to_dict()}"
    )

    return df


def classify_tags(
    tags,
    rules: Optional[Sequence[Tuple[Sequence[str], int]]] = None,
    default: Optional[int] = None,
) -> int:
    """
    Return the code of the first rule whose patterns all occur in `tags`.

    Example:
        >>> classify_tags("Recruit, UWC, Forester Scholars Weekend")
        6
        >>> classify_tags(None)
        0
    """
    if rules is None:
        rules = config.STUDENT_GROUP_RULES
    if default is None:
        default = config.STUDENT_GROUP_DEFAULT

    if not isinstance(tags, str):
        return default
    for patterns, code in rules:
        if all(pattern in tags for pattern in patterns):
            return code
    return default


def create_student_group(
    df: pd.DataFrame,
    rules: Optional[Sequence[Tuple[Sequence[str], int]]] = None,
) -> pd.DataFrame:
    """
    Create the student-group category from the tags field.

    Feature created:
    - student_group: code of the first matching rule in the precedence table
      (most specific combination first); 0 when no rule matches or tags are
      missing.

    Args:
        df: Input DataFrame with tags column.
        rules: Ordered (patterns, code) table (default config.STUDENT_GROUP_RULES).

    Returns:
        DataFrame with student_group feature.
    """
    require_columns(df, [config.TAGS_COLUMN], stage="derive")
    df = df.copy()

    df[config.STUDENT_GROUP_COLUMN] = (
        df[config.TAGS_COLUMN].map(lambda t: classify_tags(t, rules)).astype(int)
    )

    logger.info(
        f"Created {config.STUDENT_GROUP_COLUMN} feature "
        f"{df[config.STUDENT_GROUP_COLUMN].value_counts().sort_index().to_dict()}"
    )

    return df


def coerce_numeric_columns(
    df: pd.DataFrame,
    columns: Optional[List[str]] = None,
    audit: Optional[AuditTrail] = None,
) -> pd.DataFrame:
    """
    Parse text-stored metrics to numbers.

    Values that fail to parse become NaN and are counted; the run is never
    aborted by a single bad cell.

    Args:
        df: Input DataFrame with the numeric-as-text columns.
        columns: Columns to coerce (default config.NUMERIC_COLUMNS).
        audit: Optional AuditTrail receiving per-column coercion failures.

    Returns:
        DataFrame with numeric dtypes for the listed columns.
    """
    if columns is None:
        columns = config.NUMERIC_COLUMNS

    require_columns(df, columns, stage="derive")
    df = df.copy()

    for column in columns:
        raw = df[column].map(lambda v: (v.strip() or np.nan) if isinstance(v, str) else v)
        parsed = pd.to_numeric(raw, errors="coerce")
        n_failed = int((raw.notna() & parsed.isna()).sum())
        df[column] = parsed
        if audit is not None:
            audit.record("derive", column, "coerced_to_missing", n_failed)
        if n_failed:
            logger.warning(f"{n_failed:,} unparseable values in {column} → missing")

    logger.info(f"Coerced {len(columns)} columns to numeric")

    return df


def last_decision(history) -> Optional[str]:
    """Most recent entry of a comma-separated decision log, or None if empty."""
    if not isinstance(history, str):
        return None
    entries = [e.strip() for e in history.split(config.DECISION_LOG_SEPARATOR)]
    entries = [e for e in entries if e]
    return entries[-1] if entries else None


def create_enrolling_stage(
    df: pd.DataFrame,
    enroll_label: Optional[str] = None,
    audit: Optional[AuditTrail] = None,
) -> pd.DataFrame:
    """
    Create the enrollment outcome label.

    Feature created:
    - enrolling_stage: 1 if the last entry of the decision history equals
      the enroll label ("Deposit Paid (Enroll)"), else 0. Empty or missing
      logs resolve to 0.

    Args:
        df: Input DataFrame with decision_history_all_decisions column.
        enroll_label: Success label (default config.ENROLL_DECISION_LABEL).
        audit: Optional AuditTrail receiving the empty-log count.

    Returns:
        DataFrame with enrolling_stage feature.

    Example:
        >>> # "Applied, Admitted, Deposit Paid (Enroll)" → 1
        >>> # "Applied, Admitted, Denied" → 0
    """
    if enroll_label is None:
        enroll_label = config.ENROLL_DECISION_LABEL

    require_columns(df, [config.DECISION_HISTORY_COLUMN], stage="derive")
    df = df.copy()

    latest = df[config.DECISION_HISTORY_COLUMN].map(last_decision)
    df[config.ENROLLING_STAGE_COLUMN] = (latest == enroll_label).astype(int)

    n_empty = int(latest.isna().sum())
    if audit is not None:
        audit.record("derive", config.DECISION_HISTORY_COLUMN, "defaulted", n_empty)

    enrolled = int(df[config.ENROLLING_STAGE_COLUMN].sum())
    logger.info(
        f"Created {config.ENROLLING_STAGE_COLUMN} feature "
        f"({enrolled:,} enrolled, {n_empty:,} empty decision logs → 0)"
    )

    return df


def create_features(
    df: pd.DataFrame,
    geocoder=None,
    audit: Optional[AuditTrail] = None,
) -> pd.DataFrame:
    """
    Execute full feature engineering pipeline.

    Orchestrates all feature creation steps:
    1. Event-participation flag
    2. Distance from the institution
    3. Location category
    4. Student-group category
    5. Numeric coercion of text-stored metrics
    6. Enrollment outcome

    Every step reads raw columns that prepare_final_dataset() later drops,
    so this must run before the final projection.

    Args:
        df: Input DataFrame from cleaning module.
        geocoder: Postal-code geocoder for the distance feature.
        audit: Optional AuditTrail receiving row-level counts.

    Returns:
        DataFrame with all derived features (same row count as input).
    """
    logger.info("Starting feature engineering pipeline")

    df = create_visit_flag(df)
    df = create_distance(df, geocoder=geocoder, audit=audit)
    df = create_location(df)
    df = create_student_group(df)
    df = coerce_numeric_columns(df, audit=audit)
    df = create_enrolling_stage(df, audit=audit)

    logger.info(f"Feature engineering complete. Shape: {df.shape}")

    return df


def prepare_final_dataset(
    df: pd.DataFrame,
    drop_columns: Optional[List[str]] = None,
) -> pd.DataFrame:
    """
    Drop superseded and irrelevant columns to produce the model-ready table.

    Steps:
    1. Require every derived column (the projection must follow derivation)
    2. Drop the columns in config.FINAL_DROP_COLUMNS that are present
    3. Validate output invariants

    Already-projected input passes through unchanged.

    Args:
        df: Input DataFrame with all derived features.
        drop_columns: Exclusion list (default config.FINAL_DROP_COLUMNS).

    Returns:
        Final processed DataFrame.

    Raises:
        SchemaError: If a derived column is missing.
        PipelineError: If an output invariant is violated.

    Example:
        >>> df_final = prepare_final_dataset(df_features)
        >>> assert 'tags' not in df_final.columns
    """
    if drop_columns is None:
        drop_columns = config.FINAL_DROP_COLUMNS

    missing_derived = [c for c in config.DERIVED_COLUMNS if c not in df.columns]
    if missing_derived:
        raise SchemaError(
            "derived features must be created before the final projection",
            stage="project",
            column=missing_derived[0],
        )

    existing_cols_to_drop = [c for c in drop_columns if c in df.columns]
    df_final = df.drop(columns=existing_cols_to_drop)
    logger.info(f"Dropped {len(existing_cols_to_drop)} superseded/irrelevant columns")

    validate_output(df_final, expected_rows=len(df), drop_columns=drop_columns)

    logger.info(f"Final dataset prepared - Shape: {df_final.shape}")
    logger.info(
        f"Enrollment distribution: "
        f"{df_final[config.ENROLLING_STAGE_COLUMN].value_counts().to_dict()}"
    )

    return df_final
