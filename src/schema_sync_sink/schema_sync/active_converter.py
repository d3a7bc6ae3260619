"""Single active converter reference."""

from __future__ import annotations

import threading

from .record_converter import MessageRecordConverter


class ConverterUnavailableError(Exception):
    """Raised when no converter has been published yet."""


class ActiveConverter:
    """Atomically swappable cell holding the published converter.

    Readers take one snapshot per operation and never block; the schema and
    the conversion logic live in the same immutable converter, so a snapshot
    is always consistent. Writers are serialized.
    """

    def __init__(self, initial: MessageRecordConverter | None = None) -> None:
        self._write_lock = threading.Lock()
        self._converter = initial

    def get(self) -> MessageRecordConverter | None:
        return self._converter

    def require(self) -> MessageRecordConverter:
        converter = self._converter
        if converter is None:
            raise ConverterUnavailableError("No converter has been published yet.")
        return converter

    @property
    def version(self) -> str | None:
        converter = self._converter
        return converter.version if converter is not None else None

    def publish(self, converter: MessageRecordConverter) -> MessageRecordConverter | None:
        """Replace the active converter and return the previous one."""
        with self._write_lock:
            previous = self._converter
            self._converter = converter
        return previous
