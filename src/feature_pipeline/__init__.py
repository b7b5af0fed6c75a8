"""
Feature pipeline for the admissions export.

Public API for loading, normalizing, cleaning, and engineering features from
the raw admissions export.
"""
from src.feature_pipeline.load import (
    load_raw_data,
    normalize_column_names,
    prune_columns,
    save_processed_data,
)
from src.feature_pipeline.cleaning import (
    clean_data,
    resolve_missing_values,
    split_round,
)
from src.feature_pipeline.engineering import (
    create_features,
    prepare_final_dataset,
)
from src.feature_pipeline.audit import AuditTrail
from src.feature_pipeline.validation import (
    ConfigurationError,
    PipelineError,
    SchemaError,
    validate_config,
)

__all__ = [
    'load_raw_data',
    'normalize_column_names',
    'prune_columns',
    'save_processed_data',
    'clean_data',
    'resolve_missing_values',
    'split_round',
    'create_features',
    'prepare_final_dataset',
    'AuditTrail',
    'ConfigurationError',
    'PipelineError',
    'SchemaError',
    'validate_config',
]
