"""
Module: plugin

Purpose: Host plugin entry point of the BigQuery probe connector.

Key Functions:
- ProbeConnectorPlugin.init: Build the configuration and initialize the connector
- ProbeConnectorPlugin.save_measure: Handler of the probe plugin "measure" events

Architecture Notes:
- The host reads ``hooks`` (event name -> handler name) once init completed
  and calls the handler with the event payload
- Both historical event names emitted by the probe plugin are subscribed
"""

from collections.abc import Mapping
from typing import Any
import logging

from kdc_bigquery.data.bigquery.config import ConnectorConfig
from kdc_bigquery.data.bigquery.connector import BigQueryConnector, ConnectorState
from kdc_bigquery.data.bigquery.warehouse import WarehouseClient
from kdc_bigquery.data.schemas import Measure
from kdc_bigquery.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


SAVE_MEASURE_HANDLER = "save_measure"


class ProbeConnectorPlugin:
    """Plugin forwarding measures coming from probes to Google BigQuery."""

    def __init__(self, warehouse: WarehouseClient | None = None):
        self.hooks: dict[str, str] = {}
        self.context: Any = None
        self.connector = BigQueryConnector(warehouse)

    async def init(self, custom_config: Mapping[str, Any], context: Any = None) -> None:
        """
        Initialize the plugin.

        Args:
            custom_config: Plugin configuration, as set in the host configuration
            context: Host plugin context. Its ``log`` attribute, when present,
                receives the connector diagnostics.

        Raises:
            ConfigurationError: If the configuration is invalid
            InitializationError: If a probe table could not be set up
        """
        self.context = context
        host_log = getattr(context, "log", None)
        if host_log is not None:
            self.connector.log = host_log

        try:
            config = ConnectorConfig.from_dict(custom_config)
        except ConfigurationError:
            self.connector.state = ConnectorState.FAILED
            raise

        for event_name in config.event_names():
            self.hooks[event_name] = SAVE_MEASURE_HANDLER
        logger.debug(f"Subscribed to {', '.join(self.hooks)}")

        await self.connector.initialize(config)

    async def save_measure(self, measure: Measure | Mapping[str, Any]) -> None:
        """Handle a "measure saved" event."""
        await self.connector.save_measure(measure)
