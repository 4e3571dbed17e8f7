"""
Module: exceptions

Purpose: Domain-specific exception hierarchy for the BigQuery probe connector.

All exceptions include context information so that the host logs can tell
which probe, table or configuration key was involved.
"""

from typing import Any


class ConnectorError(Exception):
    """Base exception for all connector errors."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, context={self.context!r})"


class ConfigurationError(ConnectorError):
    """Raised when the connector or a probe is misconfigured."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        probe_name: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        if field is not None:
            ctx["field"] = field
        if probe_name is not None:
            ctx["probe_name"] = probe_name
        super().__init__(message, context=ctx)
        self.field = field
        self.probe_name = probe_name


class RemoteOperationError(ConnectorError):
    """Raised when a call to the warehouse client fails."""

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        table_name: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        ctx["operation"] = operation
        if table_name is not None:
            ctx["table_name"] = table_name
        super().__init__(message, context=ctx)
        self.operation = operation
        self.table_name = table_name


class TableCreationError(RemoteOperationError):
    """Raised when the table backing a probe cannot be created."""

    def __init__(
        self,
        message: str,
        *,
        probe_name: str,
        table_name: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        ctx["probe_name"] = probe_name
        super().__init__(message, operation="create_table", table_name=table_name, context=ctx)
        self.probe_name = probe_name


class InitializationError(ConnectorError):
    """Raised when one or more probes could not be set up during initialization."""

    def __init__(
        self,
        message: str,
        *,
        failures: dict[str, BaseException],
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        ctx["failed_probes"] = sorted(failures)
        super().__init__(message, context=ctx)
        self.failures = failures


class ConnectorNotReadyError(ConnectorError):
    """Raised when the connector is used before initialization completed."""

    def __init__(
        self,
        message: str,
        *,
        state: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        ctx["state"] = state
        super().__init__(message, context=ctx)
        self.state = state
