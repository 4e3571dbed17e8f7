"""
Data module for the BigQuery probe connector.

Contains the configuration and measure models, and the normalization of
measure payloads into BigQuery rows.
"""

from kdc_bigquery.data.normalization import (
    normalize_field_name,
    is_legal_field_name,
    flatten_object,
    normalize_measure_data,
    extract_measure_data,
)
from kdc_bigquery.data.schemas import (
    ProbeType,
    FieldType,
    FieldMode,
    FieldSpec,
    TableSchema,
    ProbeConfig,
    Measure,
)

__all__ = [
    # Normalization
    "normalize_field_name",
    "is_legal_field_name",
    "flatten_object",
    "normalize_measure_data",
    "extract_measure_data",
    # Models
    "ProbeType",
    "FieldType",
    "FieldMode",
    "FieldSpec",
    "TableSchema",
    "ProbeConfig",
    "Measure",
]
