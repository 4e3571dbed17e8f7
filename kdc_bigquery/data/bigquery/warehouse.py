"""
BigQuery client wrapper.

Thin layer over ``google.cloud.bigquery.Client`` exposing the three remote
operations the connector needs, with every client failure wrapped into a
RemoteOperationError.
"""

from typing import Any
import logging
import threading

from google.api_core.exceptions import NotFound

from kdc_bigquery.data.schemas import TableSchema
from kdc_bigquery.exceptions import RemoteOperationError


logger = logging.getLogger(__name__)


class WarehouseClient:
    """
    Client for the tables receiving probe measures.

    The underlying BigQuery client is created on first use, authenticated
    with the configured service account. Methods are blocking and may be
    called from several worker threads at once.
    """

    def __init__(
        self,
        project_id: str,
        credentials: dict[str, Any] | str | None = None,
    ):
        """
        Initialize the client.

        Args:
            project_id: GCP project ID
            credentials: Service account info (as found in a JSON key file),
                a path to a key file, or None for application default credentials
        """
        self.project_id = project_id
        self.credentials = credentials
        self._client: Any = None  # bigquery.Client
        self._bigquery_module: Any = None
        self._client_lock = threading.Lock()

    def _get_bigquery(self) -> Any:
        """Lazy import of BigQuery module."""
        if self._bigquery_module is None:
            try:
                from google.cloud import bigquery
                self._bigquery_module = bigquery
            except ImportError:
                raise ImportError(
                    "google-cloud-bigquery is required. "
                    "Install with: pip install google-cloud-bigquery"
                )
        return self._bigquery_module

    def _build_credentials(self) -> Any:
        if self.credentials is None:
            return None

        from google.oauth2 import service_account

        if isinstance(self.credentials, str):
            return service_account.Credentials.from_service_account_file(self.credentials)
        return service_account.Credentials.from_service_account_info(self.credentials)

    @property
    def client(self) -> Any:
        """Get or create BigQuery client (shared by all threads)."""
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    bigquery = self._get_bigquery()
                    self._client = bigquery.Client(
                        project=self.project_id,
                        credentials=self._build_credentials(),
                    )
        return self._client

    def table_id(self, dataset: str, table: str) -> str:
        """Get fully qualified table name."""
        return f"{self.project_id}.{dataset}.{table}"

    def table_exists(self, dataset: str, table: str) -> bool:
        """
        Check whether a table exists.

        Raises:
            RemoteOperationError: If the check itself failed
        """
        table_id = self.table_id(dataset, table)
        try:
            self.client.get_table(table_id)
        except NotFound:
            return False
        except Exception as e:
            raise RemoteOperationError(
                f"Could not check whether table {table_id} exists: {e}",
                operation="table_exists",
                table_name=table,
            ) from e

        return True

    def create_table(self, dataset: str, table: str, schema: TableSchema) -> Any:
        """
        Create a table with the given schema.

        Returns:
            The created ``bigquery.Table``

        Raises:
            RemoteOperationError: If the table could not be created
        """
        bigquery = self._get_bigquery()
        table_id = self.table_id(dataset, table)
        try:
            return self.client.create_table(
                bigquery.Table(table_id, schema=schema.to_bigquery(bigquery))
            )
        except Exception as e:
            raise RemoteOperationError(
                f"Could not create table {table_id}: {e}",
                operation="create_table",
                table_name=table,
            ) from e

    def insert_rows(self, dataset: str, table: str, rows: list[dict[str, Any]]) -> None:
        """
        Stream rows into a table.

        Raises:
            RemoteOperationError: If the request failed or any row was rejected
        """
        table_id = self.table_id(dataset, table)
        try:
            errors = self.client.insert_rows_json(table_id, rows)
        except Exception as e:
            raise RemoteOperationError(
                f"Could not insert rows into {table_id}: {e}",
                operation="insert_rows",
                table_name=table,
            ) from e

        if errors:
            raise RemoteOperationError(
                f"{len(errors)} row(s) rejected by {table_id}",
                operation="insert_rows",
                table_name=table,
                context={"insert_errors": errors},
            )

        logger.debug(f"Inserted {len(rows)} row(s) into {table_id}")
