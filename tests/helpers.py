"""Test helpers: log event builder and in-memory pymongo fakes."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

from mongosink.events import (
    DictionaryValue,
    LogEvent,
    LogLevel,
    ScalarValue,
    SequenceValue,
    StructureValue,
)

_PROPERTY_VALUES = (ScalarValue, SequenceValue, StructureValue, DictionaryValue)


def make_event(level=LogLevel.INFORMATION, message="Test", properties=None, **kwargs):
    """Build a LogEvent; plain property values are wrapped in ScalarValue."""
    props = {}
    for name, value in (properties or {}).items():
        if not isinstance(value, _PROPERTY_VALUES):
            value = ScalarValue(value)
        props[name] = value
    return LogEvent(
        timestamp=kwargs.pop("timestamp", datetime.now(timezone.utc)),
        level=level,
        message=message,
        properties=props,
        **kwargs,
    )


class FakeStore:
    """A client -> database -> collection chain of mocks wired like pymongo."""

    def __init__(self, existing=()):
        self.collection = MagicMock(name="collection")
        self.collection.name = "logs"

        self.database = MagicMock(name="database")
        self.database.name = "logging"
        self.database.list_collection_names.return_value = list(existing)
        self.database.get_collection.return_value = self.collection

        self.client = MagicMock(name="client")
        self.client.get_database.return_value = self.database
