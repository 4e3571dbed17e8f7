"""
Schema and table resolution for probes.

Decides which BigQuery table receives the measures of a probe, and which
schema that table is created with when it does not exist yet.
"""

from collections.abc import Callable, Mapping
from typing import cast

from pydantic import ValidationError

from kdc_bigquery.data.normalization import normalize_field_name
from kdc_bigquery.data.schemas import (
    FieldMode,
    FieldSpec,
    FieldType,
    ProbeConfig,
    ProbeType,
    TableSchema,
)
from kdc_bigquery.exceptions import ConfigurationError


TIMESTAMP_FIELD = FieldSpec(name="timestamp", type=FieldType.TIMESTAMP, mode=FieldMode.REQUIRED)

COUNTER_SCHEMA = TableSchema(
    fields=[
        FieldSpec(name="count", type=FieldType.INTEGER, mode=FieldMode.REQUIRED),
        TIMESTAMP_FIELD,
    ]
)


# =============================================================================
# TABLE NAMES
# =============================================================================


def get_table_for_probe(probes: Mapping[str, ProbeConfig], probe_name: str) -> str | None:
    """
    Get the name of the table receiving the measures of a probe.

    Args:
        probes: Probe registry (probe name -> ProbeConfig)
        probe_name: Name of the probe

    Returns:
        The probe's ``tableName`` if set, the probe name otherwise.
        None if the probe is not being tracked.
    """
    probe = probes.get(probe_name)
    if probe is None:
        return None

    return probe.table_name or probe_name


# =============================================================================
# SCHEMAS
# =============================================================================


def build_monitor_schema(hooks: list[str]) -> TableSchema:
    """
    Build a table schema from the list of hooks a monitor probe listens to.

    One nullable INTEGER column per hook (in declaration order), followed by
    a required ``timestamp`` column.

    Raises:
        ConfigurationError: If a hook does not make a valid column name, or two
            hooks make the same one
    """
    try:
        fields = [
            FieldSpec(name=normalize_field_name(hook), type=FieldType.INTEGER, mode=FieldMode.NULLABLE)
            for hook in hooks
        ]
        fields.append(TIMESTAMP_FIELD)

        return TableSchema(fields=fields)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid monitor hooks {hooks!r}: {e}",
            field="hooks",
        ) from e


def _explicit_schema(probe: ProbeConfig) -> TableSchema:
    schema = cast(TableSchema, probe.table_schema)

    if (
        probe.type == ProbeType.WATCHER
        and probe.timestamp
        and not schema.has_field(TIMESTAMP_FIELD.name)
    ):
        return schema.with_field(TIMESTAMP_FIELD)

    return schema


def _missing_type(probe: ProbeConfig) -> TableSchema:
    raise ConfigurationError(
        "Type field is mandatory in probes that do not provide schema",
        field="type",
    )


def _monitor_schema(probe: ProbeConfig) -> TableSchema:
    hooks = probe.hooks
    if (
        not isinstance(hooks, list)
        or not hooks
        or not all(isinstance(hook, str) for hook in hooks)
    ):
        raise ConfigurationError(
            'Monitor probes must have an "hooks" field, of type Array.',
            field="hooks",
        )

    return build_monitor_schema(hooks)


def _counter_schema(probe: ProbeConfig) -> TableSchema:
    return COUNTER_SCHEMA


def _unsupported_type(probe: ProbeConfig) -> TableSchema:
    raise ConfigurationError(
        f"Schema is mandatory for probes of type {probe.type}",
        field="schema",
    )


# Evaluated in order, the first matching rule wins
SCHEMA_RULES: list[tuple[Callable[[ProbeConfig], bool], Callable[[ProbeConfig], TableSchema]]] = [
    (lambda probe: probe.table_schema is not None, _explicit_schema),
    (lambda probe: probe.type is None, _missing_type),
    (lambda probe: probe.type == ProbeType.MONITOR, _monitor_schema),
    (lambda probe: probe.type == ProbeType.COUNTER, _counter_schema),
]


def get_schema_for_probe(probe: ProbeConfig | Mapping) -> TableSchema:
    """
    Infer a table schema for a probe, based on its explicit schema or its type.

    Args:
        probe: The probe configuration (a ProbeConfig or its raw dict form)

    Returns:
        The schema to create the probe's table with

    Raises:
        ConfigurationError: If the probe configuration is invalid, or no schema
            can be determined for the probe
    """
    if not isinstance(probe, ProbeConfig):
        try:
            probe = ProbeConfig.model_validate(probe)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid probe configuration: {e}") from e

    for matches, resolve in SCHEMA_RULES:
        if matches(probe):
            return resolve(probe)

    return _unsupported_type(probe)
