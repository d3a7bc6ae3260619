"""Schema change reconciliation.

A registry notification runs the sequence convert -> merge metadata ->
commit table -> publish converter. The active converter is replaced only
after the warehouse accepted the schema; any failure leaves the previously
published converter serving traffic. Reconciliations for the same message
class never overlap.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping, Sequence
from enum import Enum
from typing import Any

from google.cloud import bigquery

from schema_sync_sink.configuration.runtime_settings import (
    ConverterSettings,
    MetadataSettings,
    SchemaSettings,
)
from schema_sync_sink.schema_conversion.column_mapping import (
    columns_version,
    generate_bigquery_schema,
)
from schema_sync_sink.schema_conversion.metadata_merger import merge_metadata_fields
from schema_sync_sink.schema_management.schema_catalog import SchemaCatalog
from schema_sync_sink.schema_management.schema_models import MessageSchema

from .active_converter import ActiveConverter
from .record_converter import MessageRecordConverter
from .warehouse_client import TableUpdateFailure, WarehouseClient

logger = logging.getLogger(__name__)

ColumnMapper = Callable[[MessageSchema], Sequence[bigquery.SchemaField]]

_CLASS_LOCKS: dict[str, threading.Lock] = {}
_CLASS_LOCKS_GUARD = threading.Lock()


def class_lock(class_name: str) -> threading.Lock:
    """Process-wide gate serializing reconciliations of one message class."""
    with _CLASS_LOCKS_GUARD:
        lock = _CLASS_LOCKS.get(class_name)
        if lock is None:
            lock = threading.Lock()
            _CLASS_LOCKS[class_name] = lock
        return lock


class SyncState(str, Enum):
    IDLE = "idle"
    CONVERTING = "converting"
    MERGING = "merging"
    COMMITTING = "committing"
    PUBLISHING = "publishing"
    FAILED = "failed"


class SyncOutcome(str, Enum):
    """Result of one reconciliation request."""

    PUBLISHED = "published"
    UNCHANGED = "unchanged"
    IGNORED = "ignored"


class SchemaChangeCoordinator:  # pylint: disable=too-many-instance-attributes
    """Reacts to registry refreshes for the configured message class."""

    def __init__(  # pylint: disable=too-many-arguments
        self,
        *,
        schema_settings: SchemaSettings,
        metadata_settings: MetadataSettings,
        converter_settings: ConverterSettings,
        catalog: SchemaCatalog,
        warehouse_client: WarehouseClient,
        active_converter: ActiveConverter | None = None,
        column_mapper: ColumnMapper = generate_bigquery_schema,
    ) -> None:
        self._schema_settings = schema_settings
        self._metadata_settings = metadata_settings
        self._converter_settings = converter_settings
        self._catalog = catalog
        self._warehouse_client = warehouse_client
        self._active_converter = active_converter or ActiveConverter()
        self._column_mapper = column_mapper
        self._state = SyncState.IDLE
        self._last_error: Exception | None = None

    @property
    def class_name(self) -> str:
        return self._schema_settings.active_class

    @property
    def active_converter(self) -> ActiveConverter:
        return self._active_converter

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def last_error(self) -> Exception | None:
        return self._last_error

    def on_schema_update(self, descriptions: Mapping[str, Any]) -> SyncOutcome:
        """Entry point for registry refresh notifications."""
        if self.class_name not in descriptions:
            logger.debug("Schema refresh does not touch %s, ignoring", self.class_name)
            return SyncOutcome.IGNORED
        logger.info("Schema registry refreshed, validating if table schema changed")
        with class_lock(self.class_name):
            self._transition(SyncState.CONVERTING)
            try:
                self._catalog.update({self.class_name: descriptions[self.class_name]})
            except Exception as exc:  # pylint: disable=broad-exception-caught
                self._fail(exc)
                raise
            return self._reconcile_locked()

    def bootstrap(self) -> SyncOutcome:
        """Reconcile against whatever schema the catalog already holds."""
        with class_lock(self.class_name):
            self._transition(SyncState.CONVERTING)
            return self._reconcile_locked()

    def close(self) -> None:
        self._warehouse_client.close()

    def _reconcile_locked(self) -> SyncOutcome:
        try:
            schema = self._catalog.get_schema(self.class_name)
            columns = list(self._column_mapper(schema))

            self._transition(SyncState.MERGING)
            merged = merge_metadata_fields(
                columns,
                self._metadata_settings.effective_columns,
                self._metadata_settings.namespace,
            )
            version = columns_version(merged)
            if self._active_converter.version == version:
                logger.info("Columns for %s unchanged at %s", self.class_name, version)
                self._transition(SyncState.IDLE)
                return SyncOutcome.UNCHANGED

            self._transition(SyncState.COMMITTING)
            self._commit(merged)

            self._transition(SyncState.PUBLISHING)
            converter = MessageRecordConverter(
                schema,
                merged,
                schema_settings=self._schema_settings,
                metadata_settings=self._metadata_settings,
                converter_settings=self._converter_settings,
            )
            self._active_converter.publish(converter)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            self._fail(exc)
            raise
        logger.info("Published converter for %s at %s", self.class_name, converter.version)
        self._last_error = None
        self._transition(SyncState.IDLE)
        return SyncOutcome.PUBLISHED

    def _commit(self, columns: Sequence[bigquery.SchemaField]) -> None:
        try:
            self._warehouse_client.upsert_table(columns)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise TableUpdateFailure(
                f"Error while updating bigquery table on callback:{exc}"
            ) from exc

    def _transition(self, state: SyncState) -> None:
        logger.info("%s: %s -> %s", self.class_name, self._state.value, state.value)
        self._state = state

    def _fail(self, exc: Exception) -> None:
        logger.error("Schema sync for %s failed: %s", self.class_name, exc)
        self._last_error = exc
        self._transition(SyncState.FAILED)
