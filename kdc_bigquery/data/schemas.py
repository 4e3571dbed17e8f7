"""
Module: schemas

Purpose: Pydantic models for probe configuration, table schemas and measures.

All models use Pydantic v2 and are frozen: they are built once from the
host configuration (or from an incoming event) and never mutated afterwards.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from kdc_bigquery.data.normalization import is_legal_field_name


# =============================================================================
# ENUMS
# =============================================================================


class ProbeType(str, Enum):
    """Probe types emitted by the probe plugin."""

    MONITOR = "monitor"
    COUNTER = "counter"
    WATCHER = "watcher"
    SAMPLER = "sampler"


class FieldType(str, Enum):
    """BigQuery column types (legacy and standard SQL names)."""

    STRING = "STRING"
    BYTES = "BYTES"
    INTEGER = "INTEGER"
    INT64 = "INT64"
    FLOAT = "FLOAT"
    FLOAT64 = "FLOAT64"
    NUMERIC = "NUMERIC"
    BIGNUMERIC = "BIGNUMERIC"
    BOOLEAN = "BOOLEAN"
    BOOL = "BOOL"
    TIMESTAMP = "TIMESTAMP"
    DATE = "DATE"
    TIME = "TIME"
    DATETIME = "DATETIME"
    GEOGRAPHY = "GEOGRAPHY"
    JSON = "JSON"
    RECORD = "RECORD"
    STRUCT = "STRUCT"


class FieldMode(str, Enum):
    """BigQuery column modes."""

    NULLABLE = "NULLABLE"
    REQUIRED = "REQUIRED"
    REPEATED = "REPEATED"


# =============================================================================
# BASE MODEL
# =============================================================================


class BaseSchema(BaseModel):
    """Base model with common configuration."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# =============================================================================
# TABLE SCHEMAS
# =============================================================================


class FieldSpec(BaseSchema):
    """A single column of a BigQuery table."""

    name: str
    type: FieldType
    mode: FieldMode = FieldMode.NULLABLE
    description: str | None = None
    fields: list["FieldSpec"] = Field(default_factory=list)  # RECORD sub-fields

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Ensure the column name is accepted by BigQuery."""
        if not is_legal_field_name(v):
            msg = f"Field name '{v}' must only contain letters, digits and underscores"
            raise ValueError(msg)
        return v

    @field_validator("type", "mode", mode="before")
    @classmethod
    def upper_case(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v

    def to_api_repr(self) -> dict[str, Any]:
        """Return the field as the dict shape used by the BigQuery REST API."""
        repr_: dict[str, Any] = {
            "name": self.name,
            "type": self.type.value,
            "mode": self.mode.value,
        }
        if self.description is not None:
            repr_["description"] = self.description
        if self.fields:
            repr_["fields"] = [f.to_api_repr() for f in self.fields]
        return repr_

    def to_bigquery(self, bigquery: Any) -> Any:
        """Build a ``bigquery.SchemaField`` from this field definition."""
        return bigquery.SchemaField(
            self.name,
            self.type.value,
            mode=self.mode.value,
            description=self.description,
            fields=tuple(f.to_bigquery(bigquery) for f in self.fields),
        )


class TableSchema(BaseSchema):
    """Ordered list of columns of a BigQuery table."""

    fields: list[FieldSpec] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def accept_field_list(cls, data: Any) -> Any:
        """Accept a bare list of fields as well as the ``{"fields": [...]}`` shape."""
        if isinstance(data, list):
            return {"fields": data}
        return data

    @field_validator("fields")
    @classmethod
    def validate_unique_names(cls, v: list[FieldSpec]) -> list[FieldSpec]:
        """Ensure no two columns share the same name."""
        seen: set[str] = set()
        for spec in v:
            if spec.name in seen:
                msg = f"Duplicate field name '{spec.name}' in table schema"
                raise ValueError(msg)
            seen.add(spec.name)
        return v

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def has_field(self, name: str) -> bool:
        return name in self.field_names

    def with_field(self, spec: FieldSpec) -> "TableSchema":
        """Return a copy of this schema with ``spec`` appended."""
        return TableSchema(fields=[*self.fields, spec])

    def to_api_repr(self) -> dict[str, Any]:
        return {"fields": [f.to_api_repr() for f in self.fields]}

    def to_bigquery(self, bigquery: Any = None) -> list[Any]:
        """Return the schema as a list of ``google.cloud.bigquery.SchemaField``."""
        if bigquery is None:
            from google.cloud import bigquery

        return [f.to_bigquery(bigquery) for f in self.fields]

    def __repr__(self) -> str:
        return f"TableSchema(fields={self.field_names!r})"


# =============================================================================
# PROBE CONFIGURATION
# =============================================================================


class ProbeConfig(BaseSchema):
    """Configuration of one probe whose measures are forwarded to BigQuery."""

    # Kept as a plain string: unknown types must reach the schema resolver
    type: str | None = None
    table_name: str | None = Field(default=None, alias="tableName")
    table_schema: TableSchema | None = Field(default=None, alias="schema")

    # Validated by the schema resolver, not at parse time
    hooks: Any = None

    # Inject a client-side Unix timestamp in every saved row
    timestamp: bool = False

    @property
    def probe_type(self) -> ProbeType | None:
        """Return the type as a ProbeType, or None if unset or unknown."""
        try:
            return ProbeType(self.type) if self.type is not None else None
        except ValueError:
            return None


# =============================================================================
# MEASURES
# =============================================================================


class Measure(BaseSchema):
    """A measure emitted by a probe and carried by a "save measure" event."""

    probe_name: str = Field(alias="probeName")
    data: Any = None

    def __repr__(self) -> str:
        return f"Measure(probe_name={self.probe_name!r})"
