"""Schema sync exports."""

from .active_converter import ActiveConverter, ConverterUnavailableError
from .coordinator import SchemaChangeCoordinator, SyncOutcome, SyncState, class_lock
from .record_converter import (
    ConvertedRecords,
    ErrorInfo,
    ErrorType,
    InputMessage,
    MessageConversionError,
    MessageRecordConverter,
    Record,
)
from .warehouse_client import BigQueryTableClient, TableUpdateFailure, WarehouseClient

__all__ = [
    "ActiveConverter",
    "BigQueryTableClient",
    "ConvertedRecords",
    "ConverterUnavailableError",
    "ErrorInfo",
    "ErrorType",
    "InputMessage",
    "MessageConversionError",
    "MessageRecordConverter",
    "Record",
    "SchemaChangeCoordinator",
    "SyncOutcome",
    "SyncState",
    "TableUpdateFailure",
    "WarehouseClient",
    "class_lock",
]
