# mongosink/options.py
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, Optional, Set

from pymongo.uri_parser import parse_uri

from . import defaults
from .events import LogLevel


@dataclass(frozen=True)
class MongoUrl:
    """
    Explicit connection locator: a validated MongoDB URI plus any extra
    MongoClient keyword arguments. Takes precedence over a plain connection string.
    """
    url: str
    database_name: Optional[str] = None
    client_options: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def parse(cls, url: str, **client_options):
        # raises InvalidURI / ConfigurationError for malformed strings
        parsed = parse_uri(url)
        return cls(url=url, database_name=parsed.get("database"), client_options=client_options)


@dataclass
class SinkOptions:
    minimum_level: LogLevel = LogLevel.VERBOSE

    connection_string: Optional[str] = None
    mongo_url: Optional[MongoUrl] = None

    database_name: Optional[str] = defaults.DATABASE_NAME
    collection_name: Optional[str] = defaults.COLLECTION_NAME

    # TTL for the Timestamp index; ignored for capped collections
    expire_after: Optional[timedelta] = None

    # promoted to top-level fields, matched case-insensitively
    properties: Optional[Set[str]] = field(default_factory=lambda: {defaults.SOURCE_CONTEXT})
    optimize_properties: bool = False

    # keyword arguments for Database.create_collection (capped, size, max, timeseries, ...)
    collection_options: Optional[Dict[str, Any]] = None

    # seconds, applied with pymongo.timeout() around store calls
    timeout: Optional[float] = None

    document_factory: Any = None
    mongo_factory: Any = None

    @property
    def capped(self) -> bool:
        return bool(self.collection_options and self.collection_options.get("capped"))

    @property
    def time_series(self) -> bool:
        return bool(self.collection_options and self.collection_options.get("timeseries"))
