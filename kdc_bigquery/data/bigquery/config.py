"""
Configuration for the BigQuery probe connector.

Defines the connector settings loaded once from the host plugin
configuration, and the probe registry built from them.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
import logging

from pydantic import ValidationError
import yaml

from kdc_bigquery.data.schemas import ProbeConfig
from kdc_bigquery.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


PLUGIN_NAME = "kdc-bigquery-connector"
DEFAULT_PROBE_PLUGIN_NAME = "kuzzle-enterprise-probe"

# Event names (suffixes) under which the probe plugin emits its measures
MEASURE_EVENTS = ("saveMeasure", "receivedMeasure")

# Checked in this order, the first missing key is reported
MANDATORY_KEYS = ("projectId", "credentials", "dataSet", "probes")


@dataclass(frozen=True)
class ConnectorConfig:
    """Complete configuration of the connector."""

    # GCP project and dataset
    project_id: str
    credentials: dict[str, Any] | str  # Service account info, or path to a key file
    data_set: str

    # Probe registry: probe name -> probe configuration
    probes: dict[str, ProbeConfig] = field(default_factory=dict)

    # Name of the plugin emitting the measures
    probe_plugin_name: str = DEFAULT_PROBE_PLUGIN_NAME

    def event_names(self) -> list[str]:
        """Get the names of the events carrying measures to save."""
        return [f"plugin-{self.probe_plugin_name}:{event}" for event in MEASURE_EVENTS]

    @classmethod
    def from_dict(cls, config: Mapping[str, Any]) -> "ConnectorConfig":
        """
        Create config from the host plugin configuration.

        Args:
            config: Raw configuration (camelCase keys, as in the host config file)

        Returns:
            Validated ConnectorConfig

        Raises:
            ConfigurationError: If a mandatory key is missing or a probe is invalid
        """
        for key in MANDATORY_KEYS:
            if config.get(key) in (None, ""):
                raise ConfigurationError(
                    f"{PLUGIN_NAME}: The {key} configuration is mandatory",
                    field=key,
                )

        return cls(
            project_id=config["projectId"],
            credentials=config["credentials"],
            data_set=config["dataSet"],
            probes=parse_probes(config["probes"]),
            probe_plugin_name=config.get("probePluginName") or DEFAULT_PROBE_PLUGIN_NAME,
        )


def parse_probes(raw_probes: Mapping[str, Any] | list[str]) -> dict[str, ProbeConfig]:
    """
    Build the probe registry.

    Probes are normally configured as a mapping (name -> probe config). A list
    of probe names is accepted too, each probe getting an empty configuration.
    """
    if isinstance(raw_probes, list):
        raw_probes = {name: {} for name in raw_probes}

    if not isinstance(raw_probes, Mapping):
        raise ConfigurationError(
            f"{PLUGIN_NAME}: The probes configuration must be an object",
            field="probes",
        )

    probes: dict[str, ProbeConfig] = {}
    for probe_name, raw_probe in raw_probes.items():
        try:
            probes[probe_name] = ProbeConfig.model_validate(raw_probe or {})
        except ValidationError as e:
            raise ConfigurationError(
                f"{PLUGIN_NAME}: Invalid configuration for probe {probe_name}: {e}",
                probe_name=probe_name,
            ) from e

    return probes


def load_config_file(path: Path | str) -> dict[str, Any]:
    """
    Load the raw connector configuration from a YAML (or JSON) file.

    Args:
        path: Path to the configuration file

    Returns:
        The raw configuration dict, to be passed to ConnectorConfig.from_dict

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigurationError: If the file is not a valid YAML/JSON object
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid configuration file {path}: {e}") from e

    if data is None:
        logger.warning(f"Configuration file {path} is empty")
        return {}

    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must contain an object")

    return data
