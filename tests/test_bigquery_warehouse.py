"""
Tests for kdc_bigquery/data/bigquery/warehouse.py

The BigQuery client is mocked: no request leaves the test process.
"""

from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock, patch, PropertyMock
import time

import pytest
from google.api_core.exceptions import NotFound

from kdc_bigquery.data.bigquery.warehouse import WarehouseClient
from kdc_bigquery.data.schemas import TableSchema
from kdc_bigquery.exceptions import RemoteOperationError


@pytest.fixture
def warehouse() -> WarehouseClient:
    return WarehouseClient("test-project", {"type": "service_account"})


# =============================================================================
# TESTS: Client creation
# =============================================================================


class TestClientCreation:
    """Tests for lazy client creation."""

    def test_client_built_once(self, warehouse: WarehouseClient) -> None:
        mock_bigquery = MagicMock()

        with patch.object(warehouse, "_get_bigquery", return_value=mock_bigquery), \
                patch.object(warehouse, "_build_credentials", return_value="creds"):
            first = warehouse.client
            second = warehouse.client

        assert first is second
        mock_bigquery.Client.assert_called_once_with(project="test-project", credentials="creds")

    def test_client_built_once_across_threads(self, warehouse: WarehouseClient) -> None:
        """Concurrent first uses share a single client."""
        mock_bigquery = MagicMock()

        def slow_client(**kwargs: object) -> MagicMock:
            time.sleep(0.05)
            return MagicMock()

        mock_bigquery.Client.side_effect = slow_client

        with patch.object(warehouse, "_get_bigquery", return_value=mock_bigquery), \
                patch.object(warehouse, "_build_credentials", return_value=None):
            with ThreadPoolExecutor(max_workers=5) as pool:
                clients = list(pool.map(lambda _: warehouse.client, range(5)))

        assert mock_bigquery.Client.call_count == 1
        assert all(client is clients[0] for client in clients)

    def test_credentials_from_info(self, warehouse: WarehouseClient) -> None:
        with patch(
            "google.oauth2.service_account.Credentials.from_service_account_info",
            return_value="creds",
        ) as mock_from_info:
            assert warehouse._build_credentials() == "creds"

        mock_from_info.assert_called_once_with({"type": "service_account"})

    def test_credentials_from_file(self) -> None:
        warehouse = WarehouseClient("p", "/secrets/key.json")

        with patch(
            "google.oauth2.service_account.Credentials.from_service_account_file",
            return_value="creds",
        ) as mock_from_file:
            assert warehouse._build_credentials() == "creds"

        mock_from_file.assert_called_once_with("/secrets/key.json")

    def test_default_credentials(self) -> None:
        assert WarehouseClient("p")._build_credentials() is None

    def test_table_id(self, warehouse: WarehouseClient) -> None:
        assert warehouse.table_id("ds", "t") == "test-project.ds.t"


# =============================================================================
# TESTS: table_exists
# =============================================================================


class TestTableExists:
    """Tests for WarehouseClient.table_exists."""

    def test_exists(self, warehouse: WarehouseClient) -> None:
        mock_client = MagicMock()

        with patch.object(WarehouseClient, "client", new_callable=PropertyMock) as mock_client_prop:
            mock_client_prop.return_value = mock_client

            assert warehouse.table_exists("ds", "t") is True

        mock_client.get_table.assert_called_once_with("test-project.ds.t")

    def test_not_found(self, warehouse: WarehouseClient) -> None:
        mock_client = MagicMock()
        mock_client.get_table.side_effect = NotFound("no such table")

        with patch.object(WarehouseClient, "client", new_callable=PropertyMock) as mock_client_prop:
            mock_client_prop.return_value = mock_client

            assert warehouse.table_exists("ds", "t") is False

    def test_api_error(self, warehouse: WarehouseClient) -> None:
        mock_client = MagicMock()
        mock_client.get_table.side_effect = Exception("API Error")

        with patch.object(WarehouseClient, "client", new_callable=PropertyMock) as mock_client_prop:
            mock_client_prop.return_value = mock_client

            with pytest.raises(RemoteOperationError, match="API Error") as exc_info:
                warehouse.table_exists("ds", "t")

        assert exc_info.value.operation == "table_exists"
        assert exc_info.value.table_name == "t"


# =============================================================================
# TESTS: create_table
# =============================================================================


class TestCreateTable:
    """Tests for WarehouseClient.create_table."""

    def test_create(self, warehouse: WarehouseClient) -> None:
        mock_bigquery = MagicMock()
        mock_client = MagicMock()
        schema = TableSchema.model_validate([{"name": "count", "type": "INTEGER"}])

        with patch.object(warehouse, "_get_bigquery", return_value=mock_bigquery), \
                patch.object(WarehouseClient, "client", new_callable=PropertyMock) as mock_client_prop:
            mock_client_prop.return_value = mock_client

            warehouse.create_table("ds", "t", schema)

        mock_bigquery.Table.assert_called_once()
        args, kwargs = mock_bigquery.Table.call_args
        assert args == ("test-project.ds.t",)
        assert len(kwargs["schema"]) == 1
        mock_client.create_table.assert_called_once_with(mock_bigquery.Table.return_value)

    def test_create_fails(self, warehouse: WarehouseClient) -> None:
        mock_client = MagicMock()
        mock_client.create_table.side_effect = Exception("Permission denied")

        with patch.object(warehouse, "_get_bigquery", return_value=MagicMock()), \
                patch.object(WarehouseClient, "client", new_callable=PropertyMock) as mock_client_prop:
            mock_client_prop.return_value = mock_client

            with pytest.raises(RemoteOperationError, match="Permission denied") as exc_info:
                warehouse.create_table("ds", "t", TableSchema())

        assert exc_info.value.operation == "create_table"


# =============================================================================
# TESTS: insert_rows
# =============================================================================


class TestInsertRows:
    """Tests for WarehouseClient.insert_rows."""

    def test_insert(self, warehouse: WarehouseClient) -> None:
        mock_client = MagicMock()
        mock_client.insert_rows_json.return_value = []
        rows = [{"count": 1}]

        with patch.object(WarehouseClient, "client", new_callable=PropertyMock) as mock_client_prop:
            mock_client_prop.return_value = mock_client

            warehouse.insert_rows("ds", "t", rows)

        mock_client.insert_rows_json.assert_called_once_with("test-project.ds.t", rows)

    def test_rejected_rows(self, warehouse: WarehouseClient) -> None:
        mock_client = MagicMock()
        errors = [{"index": 0, "errors": [{"reason": "invalid"}]}]
        mock_client.insert_rows_json.return_value = errors

        with patch.object(WarehouseClient, "client", new_callable=PropertyMock) as mock_client_prop:
            mock_client_prop.return_value = mock_client

            with pytest.raises(RemoteOperationError, match="1 row\\(s\\) rejected") as exc_info:
                warehouse.insert_rows("ds", "t", [{"count": "x"}])

        assert exc_info.value.context["insert_errors"] == errors

    def test_request_fails(self, warehouse: WarehouseClient) -> None:
        mock_client = MagicMock()
        mock_client.insert_rows_json.side_effect = Exception("timeout")

        with patch.object(WarehouseClient, "client", new_callable=PropertyMock) as mock_client_prop:
            mock_client_prop.return_value = mock_client

            with pytest.raises(RemoteOperationError, match="timeout"):
                warehouse.insert_rows("ds", "t", [{"count": 1}])
