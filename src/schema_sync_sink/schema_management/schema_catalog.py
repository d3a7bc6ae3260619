"""Latest known message schemas, keyed by class name."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any

from .schema_models import MessageSchema
from .schema_projection import SchemaMappingError, load_message_schema

logger = logging.getLogger(__name__)


class SchemaCatalog:
    """Thread-safe view of the schemas most recently pushed by the registry."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._schemas: dict[str, MessageSchema] = {}

    def update(self, descriptions: Mapping[str, Any]) -> dict[str, MessageSchema]:
        """Parse every description and replace the catalog entries together."""
        parsed = {
            class_name: load_message_schema(class_name, description)
            for class_name, description in descriptions.items()
        }
        with self._lock:
            for class_name, schema in parsed.items():
                previous = self._schemas.get(class_name)
                if previous is None or previous.version != schema.version:
                    logger.info("Schema for %s now at version %s", class_name, schema.version)
                self._schemas[class_name] = schema
        return parsed

    def get_schema(self, class_name: str) -> MessageSchema:
        with self._lock:
            schema = self._schemas.get(class_name)
        if schema is None:
            raise SchemaMappingError(f"No schema known for class {class_name}.")
        return schema

    def class_names(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._schemas)
