"""
Module: connector

Purpose: Forward probe measures to BigQuery.

Key Functions:
- BigQueryConnector.initialize: Validate config and ensure every probe table exists
- BigQueryConnector.ensure_table: Create the table of a probe if it does not exist
- BigQueryConnector.save_measure: Insert the row(s) of a measure in its probe's table

Architecture Notes:
- The probe registry is set once by initialize and only read afterwards
- Warehouse calls are blocking and run in worker threads (asyncio.to_thread)
- Table creation is fanned out over all probes and joined before the
  connector becomes ready; one failing probe does not cancel the others
- save_measure is fire-and-forget: insert failures are logged, never raised
"""

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any
import asyncio
import logging
import time

from kdc_bigquery.data.bigquery.config import ConnectorConfig
from kdc_bigquery.data.bigquery.schema_resolver import (
    get_schema_for_probe,
    get_table_for_probe,
)
from kdc_bigquery.data.bigquery.warehouse import WarehouseClient
from kdc_bigquery.data.normalization import extract_measure_data
from kdc_bigquery.data.schemas import Measure, ProbeConfig
from kdc_bigquery.exceptions import (
    ConfigurationError,
    ConnectorNotReadyError,
    InitializationError,
    TableCreationError,
)


logger = logging.getLogger(__name__)


TIMESTAMP_COLUMN = "timestamp"


class ConnectorState(str, Enum):
    """Lifecycle of a connector."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


class BigQueryConnector:
    """
    Forwards measures coming from probes to BigQuery tables.

    Each configured probe owns one table, named after the probe unless the
    probe sets a ``tableName``. Measures from probes that are not configured
    are ignored.
    """

    def __init__(
        self,
        warehouse: WarehouseClient | None = None,
        *,
        log: Any = None,
    ):
        """
        Initialize the connector.

        Args:
            warehouse: Client used for all remote calls. Built from the
                configuration by initialize() when not provided.
            log: Host logger (any object with ``info`` and ``error``).
                Defaults to this module's logger.
        """
        self.warehouse = warehouse
        self.log = log or logger
        self.config: ConnectorConfig | None = None
        self.state = ConnectorState.UNINITIALIZED

    @property
    def probes(self) -> Mapping[str, ProbeConfig]:
        """Read-only view of the probe registry."""
        if self.config is None:
            return MappingProxyType({})
        return MappingProxyType(self.config.probes)

    @property
    def is_ready(self) -> bool:
        return self.state == ConnectorState.READY

    async def initialize(self, config: ConnectorConfig | Mapping[str, Any]) -> None:
        """
        Validate the configuration and ensure every probe's table exists.

        Args:
            config: ConnectorConfig, or the raw host configuration

        Raises:
            ConfigurationError: If a mandatory configuration key is missing
            InitializationError: If the table of at least one probe could not
                be set up (every probe is attempted regardless)
        """
        if not isinstance(config, ConnectorConfig):
            try:
                config = ConnectorConfig.from_dict(config)
            except ConfigurationError:
                self.state = ConnectorState.FAILED
                raise

        self.state = ConnectorState.INITIALIZING
        self.config = config

        if self.warehouse is None:
            self.warehouse = WarehouseClient(config.project_id, config.credentials)

        probe_names = list(config.probes)
        results = await asyncio.gather(
            *(self.ensure_table(probe_name) for probe_name in probe_names),
            return_exceptions=True,
        )

        failures = {
            probe_name: result
            for probe_name, result in zip(probe_names, results)
            if isinstance(result, BaseException)
        }

        if failures:
            self.state = ConnectorState.FAILED
            raise InitializationError(
                f"Could not set up the table of probe(s): {', '.join(sorted(failures))}",
                failures=failures,
            )

        self.state = ConnectorState.READY
        logger.info(f"Connector ready, {len(probe_names)} probe(s) registered")

    async def ensure_table(self, probe_name: str) -> None:
        """
        Create the table of a probe (with its schema) if it does not exist.

        Does nothing for probes absent from the registry.

        Raises:
            ConnectorNotReadyError: If called before initialize()
            ConfigurationError: If no schema can be determined for the probe
            TableCreationError: If the table could not be created
        """
        config = self._require_config()
        table_name = get_table_for_probe(config.probes, probe_name)

        if table_name is None:
            return

        try:
            exists = await asyncio.to_thread(
                self.warehouse.table_exists, config.data_set, table_name
            )
        except Exception as e:
            self.log.error(
                f"Could not check whether table {table_name} exists, creating it: {e}"
            )
            exists = False

        if exists:
            self.log.info(f"Table {table_name} exists. Done.")
            return

        self.log.info(f"Table {table_name} does not exist. Creating.")

        try:
            schema = get_schema_for_probe(config.probes[probe_name])
            await asyncio.to_thread(
                self.warehouse.create_table, config.data_set, table_name, schema
            )
        except ConfigurationError as e:
            self.log.error(
                f"Something went wrong while creating table for probe {probe_name}: {e}"
            )
            raise ConfigurationError(
                f"Probe {probe_name}: {e.message}",
                field=e.field,
                probe_name=probe_name,
            ) from e
        except Exception as e:
            self.log.error(
                f"Something went wrong while creating table for probe {probe_name}: {e}"
            )
            raise TableCreationError(
                f"Could not create table {table_name} for probe {probe_name}: {e}",
                probe_name=probe_name,
                table_name=table_name,
            ) from e

    async def save_measure(self, measure: Measure | Mapping[str, Any]) -> None:
        """
        Save a measure in the table of the probe that emitted it.

        Measures from unregistered probes are ignored. Insert failures are
        logged and the measure is dropped: nothing is raised to the caller.

        Args:
            measure: Measure, or its raw ``{probeName, data}`` event form

        Raises:
            TypeError/AttributeError: If the measure data is not a mapping
        """
        if not isinstance(measure, Measure):
            measure = Measure.model_validate(measure)

        if not self.is_ready:
            self.log.error(
                f"Measure from probe {measure.probe_name} dropped: connector is {self.state.value}"
            )
            return

        table_name = get_table_for_probe(self.config.probes, measure.probe_name)

        if table_name is None:
            return

        rows = extract_measure_data(measure.data)

        if not rows:
            logger.debug(f"Measure from probe {measure.probe_name} has no row to insert")
            return

        if self.config.probes[measure.probe_name].timestamp:
            now = int(time.time())
            for row in rows:
                row[TIMESTAMP_COLUMN] = now

        try:
            await asyncio.to_thread(
                self.warehouse.insert_rows, self.config.data_set, table_name, rows
            )
        except Exception as e:
            self.log.error(
                f"Failed to insert measure into table {table_name}: {e} (rows={rows!r})"
            )

    def _require_config(self) -> ConnectorConfig:
        if self.config is None:
            raise ConnectorNotReadyError(
                "The connector must be initialized first",
                state=self.state.value,
            )
        return self.config
