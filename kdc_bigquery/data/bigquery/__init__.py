"""
BigQuery side of the probe connector.

Handles:
- Connector configuration and probe registry
- Table name and schema resolution per probe
- Table creation and row insertion through the BigQuery client
"""

from kdc_bigquery.data.bigquery.config import (
    ConnectorConfig,
    DEFAULT_PROBE_PLUGIN_NAME,
    load_config_file,
    parse_probes,
)
from kdc_bigquery.data.bigquery.schema_resolver import (
    COUNTER_SCHEMA,
    build_monitor_schema,
    get_schema_for_probe,
    get_table_for_probe,
)
from kdc_bigquery.data.bigquery.warehouse import WarehouseClient
from kdc_bigquery.data.bigquery.connector import (
    BigQueryConnector,
    ConnectorState,
)

__all__ = [
    # Config
    "ConnectorConfig",
    "DEFAULT_PROBE_PLUGIN_NAME",
    "load_config_file",
    "parse_probes",
    # Schema resolution
    "COUNTER_SCHEMA",
    "build_monitor_schema",
    "get_schema_for_probe",
    "get_table_for_probe",
    # Warehouse
    "WarehouseClient",
    # Connector
    "BigQueryConnector",
    "ConnectorState",
]
