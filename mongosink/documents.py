# mongosink/documents.py
import sys
import traceback
import uuid
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional, Set, Tuple

import bson
from bson.binary import Binary, UuidRepresentation
from bson.decimal128 import Decimal128
from bson.errors import InvalidDocument

from . import defaults
from .events import (
    DictionaryValue,
    LogEvent,
    LogLevel,
    ScalarValue,
    SequenceValue,
    StructureValue,
)

_LEVEL_NAMES = {
    LogLevel.VERBOSE: "Verbose",
    LogLevel.DEBUG: "Debug",
    LogLevel.INFORMATION: "Information",
    LogLevel.WARNING: "Warning",
    LogLevel.ERROR: "Error",
    LogLevel.FATAL: "Fatal",
}

# already BSON native, skip the encode probe
_NATIVE_TYPES = (str, bool, float, bytes)


class DocumentFactory:
    """
    Converts log events to MongoDB documents.

    Subclass and override create_document to change the document layout;
    returning None drops the event from the batch.
    """

    def create_document(self, event: Optional[LogEvent], options) -> Optional[Dict[str, Any]]:
        if event is None:
            return None
        if options is None:
            raise TypeError("options is required")

        if event.level < options.minimum_level:
            return None

        document = {
            defaults.TIMESTAMP: to_bson_datetime(event.timestamp),
            defaults.LEVEL: _LEVEL_NAMES.get(event.level, "Verbose"),
            defaults.MESSAGE: event.message,
        }

        if event.trace_id is not None:
            document[defaults.TRACE_ID] = _hex_id(event.trace_id, 32)
        if event.span_id is not None:
            document[defaults.SPAN_ID] = _hex_id(event.span_id, 16)

        promoted = _fold(options.properties)
        self.promote_properties(event, promoted, document)

        exception_document = self.create_exception(event.exception)
        if exception_document is not None:
            document[defaults.EXCEPTION] = exception_document

        ignored = promoted if options.optimize_properties else None
        properties = create_properties(event.properties.items(), ignored)
        if properties:
            document[defaults.PROPERTIES] = properties

        return document

    @staticmethod
    def promote_properties(event: LogEvent, promoted: Set[str], document: Dict[str, Any]):
        if not promoted:
            return
        for name, value in event.properties.items():
            if name is None or name.casefold() not in promoted:
                continue
            document[sanitize_field_name(name)] = convert_property(value)

    @staticmethod
    def create_exception(exception: Optional[BaseException]) -> Optional[Dict[str, Any]]:
        """
        Exception groups holding a single leaf are unwrapped to it; nested groups
        with several leaves are flattened into one group of the leaves. Fields
        without a value are left out.
        """
        if exception is None:
            return None

        if isinstance(exception, BaseExceptionGroup):
            leaves = list(_flatten(exception))
            if len(leaves) == 1:
                exception = leaves[0]
            elif any(isinstance(e, BaseExceptionGroup) for e in exception.exceptions):
                exception = _flat_group(exception, leaves)

        document = {
            defaults.MESSAGE: str(exception),
            defaults.BASE_MESSAGE: str(_base_exception(exception)),
            defaults.TYPE: _type_name(exception),
            defaults.TEXT: "".join(traceback.format_exception(exception)),
        }

        if isinstance(exception, OSError):
            error_code = getattr(exception, "winerror", None)
            if error_code is None:
                error_code = exception.errno
            if error_code is not None:
                document[defaults.ERROR_CODE] = error_code

        document[defaults.HRESULT] = _result_code(exception)

        frame = _raising_frame(exception)
        if frame is None:
            return document

        source = frame.f_code.co_filename
        if source:
            document[defaults.SOURCE] = source

        document[defaults.METHOD_NAME] = frame.f_code.co_name

        module_name = frame.f_globals.get("__name__")
        if module_name:
            document[defaults.MODULE_NAME] = module_name
            package = sys.modules.get(module_name.partition(".")[0])
            version = getattr(package, "__version__", None)
            if isinstance(version, str) and version:
                document[defaults.MODULE_VERSION] = version

        return document


def create_properties(items: Iterable[Tuple[Any, Any]], ignored: Optional[Set[str]] = None) -> Dict[str, Any]:
    document = {}
    for name, value in items:
        if ignored and name is not None and name.casefold() in ignored:
            continue
        document[sanitize_field_name(name)] = convert_property(value)
    return document


def convert_property(value) -> Any:
    if isinstance(value, ScalarValue):
        return convert_scalar(value.value)
    if isinstance(value, SequenceValue):
        return [convert_property(element) for element in value.elements]
    if isinstance(value, StructureValue):
        return create_properties((p.name, p.value) for p in value.properties)
    if isinstance(value, DictionaryValue):
        return create_properties((str(key), element) for key, element in value.elements)
    return str(value)


def convert_scalar(value) -> Any:
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return Binary.from_uuid(value, UuidRepresentation.STANDARD)
    # datetime before date, it is a subclass
    if isinstance(value, datetime):
        return to_bson_datetime(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, time):
        return value.isoformat()
    if isinstance(value, timedelta):
        return format_duration(value)
    if isinstance(value, Decimal):
        try:
            return Decimal128(value)
        except ArithmeticError:
            return str(value)
    return _create_value_safe(value)


def _create_value_safe(value) -> Any:
    if isinstance(value, _NATIVE_TYPES):
        return value
    try:
        bson.encode({"v": value})
    except (InvalidDocument, OverflowError):
        return str(value)
    return value


def sanitize_field_name(name: Optional[str]) -> str:
    """
    MongoDB field names may not contain '.' or '$', and control characters
    are replaced as well. Returns the name itself when it is already valid.
    """
    if not name:
        return "_"
    if not any(_is_invalid(c) for c in name):
        return name
    return "".join("_" if _is_invalid(c) else c for c in name)


def _is_invalid(c: str) -> bool:
    return c == "." or c == "$" or c < " " or "\x7f" <= c <= "\x9f"


def to_bson_datetime(value: datetime) -> datetime:
    """Naive UTC, truncated to the millisecond precision BSON stores."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def format_duration(value: timedelta) -> str:
    # [-][d.]hh:mm:ss[.fffffff]
    sign = "-" if value < timedelta(0) else ""
    value = abs(value)
    hours, rest = divmod(value.seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    text = f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    if value.days:
        text = f"{value.days}.{text}"
    if value.microseconds:
        text = f"{text}.{value.microseconds:06d}0"
    return sign + text


def _fold(names) -> Set[str]:
    if not names:
        return set()
    return {n.casefold() for n in names if n is not None}


def _hex_id(value, width: int) -> str:
    if isinstance(value, int):
        return format(value, f"0{width}x")
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    # LogEvent rejects strings that are not hex
    return value.lower()


def _flatten(group):
    for exc in group.exceptions:
        if isinstance(exc, BaseExceptionGroup):
            yield from _flatten(exc)
        else:
            yield exc


def _flat_group(group, leaves):
    flat = group.derive(leaves)
    flat.__traceback__ = group.__traceback__
    flat.__cause__ = group.__cause__
    flat.__context__ = group.__context__
    flat.__suppress_context__ = group.__suppress_context__
    return flat


def _base_exception(exception: BaseException) -> BaseException:
    seen = {id(exception)}
    while True:
        inner = exception.__cause__
        if inner is None and not exception.__suppress_context__:
            inner = exception.__context__
        if inner is None or id(inner) in seen:
            return exception
        seen.add(id(inner))
        exception = inner


def _type_name(exception: BaseException) -> str:
    cls = type(exception)
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def _result_code(exception: BaseException) -> int:
    if isinstance(exception, OSError) and isinstance(exception.errno, int):
        return exception.errno
    code = getattr(exception, "code", None)
    if isinstance(code, int) and not isinstance(code, bool):
        return code
    return 0


def _raising_frame(exception: BaseException):
    tb = exception.__traceback__
    if tb is None:
        return None
    while tb.tb_next is not None:
        tb = tb.tb_next
    return tb.tb_frame
