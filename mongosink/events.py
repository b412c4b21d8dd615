# mongosink/events.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any, Dict, List, Optional, Tuple, Union

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


class LogLevel(IntEnum):
    VERBOSE = 0
    DEBUG = 1
    INFORMATION = 2
    WARNING = 3
    ERROR = 4
    FATAL = 5


@dataclass(frozen=True)
class ScalarValue:
    value: Any = None

    def __str__(self):
        """
        Debug form of the value, as used for dictionary keys:
        text is quoted with only embedded double quotes escaped, None renders
        as null, everything else uses str().
        """
        if self.value is None:
            return "null"
        if isinstance(self.value, str):
            return '"' + self.value.replace('"', '\\"') + '"'
        return str(self.value)


@dataclass(frozen=True)
class SequenceValue:
    elements: List["PropertyValue"] = field(default_factory=list)


@dataclass(frozen=True)
class LogEventProperty:
    name: str
    value: "PropertyValue"


@dataclass(frozen=True)
class StructureValue:
    properties: List[LogEventProperty] = field(default_factory=list)
    type_tag: Optional[str] = None


@dataclass(frozen=True)
class DictionaryValue:
    elements: List[Tuple[ScalarValue, "PropertyValue"]] = field(default_factory=list)


PropertyValue = Union[ScalarValue, SequenceValue, StructureValue, DictionaryValue]


@dataclass(frozen=True)
class LogEvent:
    timestamp: datetime
    level: LogLevel
    message: str
    properties: Dict[str, PropertyValue] = field(default_factory=dict)
    exception: Optional[BaseException] = None
    # int (OpenTelemetry style), raw bytes, or an already hex encoded string
    trace_id: Union[int, bytes, str, None] = None
    span_id: Union[int, bytes, str, None] = None

    def __post_init__(self):
        for name in ("trace_id", "span_id"):
            value = getattr(self, name)
            if isinstance(value, str) and not _is_hex(value):
                raise ValueError(f"{name} must be a hex string, got {value!r}")


def _is_hex(text: str) -> bool:
    return bool(text) and all(c in _HEX_DIGITS for c in text)
