#!/usr/bin/env python3
"""
Script: save_sample_measure.py

Purpose: Smoke-test the connector against a real BigQuery dataset.

Usage:
    python scripts/save_sample_measure.py --config config/connector.yaml
    python scripts/save_sample_measure.py --config config/connector.yaml --probe test

This script initializes the connector (creating the probe tables if needed)
and saves one sample measure for the given probe.
"""

import argparse
import asyncio
import json
import logging
import sys
import time
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from kdc_bigquery.data.bigquery.config import ConnectorConfig, load_config_file
from kdc_bigquery.data.bigquery.connector import BigQueryConnector
from kdc_bigquery.exceptions import ConnectorError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def sample_data() -> dict:
    """Build a measure payload exercising the common column types."""
    return {
        "field_string": "some other string",
        "field_int": 12533,
        "field_bool": True,
        "field_timestamp": int(time.time()),
    }


async def run(config: ConnectorConfig, probe_name: str, data: dict) -> None:
    connector = BigQueryConnector()
    await connector.initialize(config)
    await connector.save_measure({"probeName": probe_name, "data": data})


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Save a sample measure through the BigQuery connector",
    )
    parser.add_argument(
        "--config",
        type=Path,
        required=True,
        help="Path to the connector configuration (YAML or JSON)",
    )
    parser.add_argument(
        "--probe",
        default="test",
        help="Name of the probe the measure is attributed to (default: test)",
    )
    parser.add_argument(
        "--data",
        type=str,
        default=None,
        help="Measure data as a JSON object (default: a sample payload)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        config = ConnectorConfig.from_dict(load_config_file(args.config))
        data = json.loads(args.data) if args.data else sample_data()
    except (FileNotFoundError, json.JSONDecodeError, ConnectorError) as e:
        logger.error(f"Invalid input: {e}")
        return 1

    if args.probe not in config.probes:
        logger.error(f"Probe {args.probe} is not configured in {args.config}")
        return 1

    try:
        asyncio.run(run(config, args.probe, data))
    except ConnectorError as e:
        logger.error(f"Connector failed: {e}")
        return 1

    logger.info(f"Measure saved for probe {args.probe}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
