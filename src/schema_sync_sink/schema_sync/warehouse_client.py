"""BigQuery table maintenance."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Protocol

from google.api_core.exceptions import NotFound
from google.cloud import bigquery

from schema_sync_sink.configuration.runtime_settings import BigQuerySettings

logger = logging.getLogger(__name__)


class TableUpdateFailure(Exception):
    """Raised when the warehouse rejects a table create or alter."""


class WarehouseClient(Protocol):
    """Contract the schema sync needs from the warehouse."""

    def upsert_table(self, columns: Sequence[bigquery.SchemaField]) -> bool: ...

    def close(self) -> None: ...


class BigQueryClientProtocol(Protocol):
    """Subset of `google.cloud.bigquery.Client` used by the table client."""

    def get_table(self, table: Any) -> bigquery.Table: ...

    def create_table(self, table: Any, exists_ok: bool = False) -> bigquery.Table: ...

    def update_table(self, table: Any, fields: Sequence[str]) -> bigquery.Table: ...

    def close(self) -> None: ...


class BigQueryTableClient:
    """Idempotent create-or-alter of the sink table."""

    def __init__(
        self, settings: BigQuerySettings, client: BigQueryClientProtocol | None = None
    ) -> None:
        self._settings = settings
        self._client = client or bigquery.Client(
            project=settings.project, location=settings.location
        )

    @property
    def table_id(self) -> str:
        return self._settings.table_id

    def upsert_table(self, columns: Sequence[bigquery.SchemaField]) -> bool:
        """Create the table or bring its schema up to `columns`.

        Returns True when the table was created or altered, False when the
        existing schema already matched.
        """
        try:
            table = self._client.get_table(self.table_id)
        except NotFound:
            self._client.create_table(self._new_table(columns), exists_ok=True)
            logger.info("Created table %s with %d columns", self.table_id, len(columns))
            return True

        existing = list(table.schema)
        merged = merge_with_existing(existing, columns)
        if merged == existing:
            logger.info("Table %s schema already up to date", self.table_id)
            return False
        table.schema = merged
        self._client.update_table(table, ["schema"])
        logger.info("Updated table %s schema to %d columns", self.table_id, len(merged))
        return True

    def close(self) -> None:
        self._client.close()

    def _new_table(self, columns: Sequence[bigquery.SchemaField]) -> bigquery.Table:
        table = bigquery.Table(self.table_id, schema=list(columns))
        if self._settings.partition_field:
            table.time_partitioning = bigquery.TimePartitioning(
                type_=bigquery.TimePartitioningType.DAY,
                field=self._settings.partition_field,
            )
        if self._settings.clustering_fields:
            table.clustering_fields = list(self._settings.clustering_fields)
        if self._settings.labels:
            table.labels = dict(self._settings.labels)
        return table


def merge_with_existing(
    existing: Sequence[bigquery.SchemaField], columns: Sequence[bigquery.SchemaField]
) -> list[bigquery.SchemaField]:
    """Apply `columns` over the existing schema.

    BigQuery cannot drop columns, so columns missing from the new list stay
    in place; same-named columns take the new definition and new columns are
    appended in order.
    """
    incoming = {column.name: column for column in columns}
    merged = [incoming.pop(column.name, column) for column in existing]
    merged.extend(column for column in columns if column.name in incoming)
    return merged
