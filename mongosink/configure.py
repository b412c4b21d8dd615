# mongosink/configure.py
from datetime import timedelta
from typing import Callable, Iterable, Optional

from . import defaults
from .events import LogLevel
from .options import MongoUrl, SinkOptions
from .sink import MongoSink


def create_sink(configure: Callable[[SinkOptions], None]) -> MongoSink:
    """Build a sink from default options adjusted by `configure`."""
    if configure is None:
        raise TypeError("configure is required")

    options = SinkOptions()
    configure(options)
    return MongoSink(options)


def create_sink_from_connection_string(
    connection_string: str,
    database_name: Optional[str] = None,
    collection_name: Optional[str] = None,
    minimum_level: LogLevel = LogLevel.VERBOSE,
    expire_after: Optional[timedelta] = None,
    max_documents: Optional[int] = None,
    max_size: Optional[int] = None,
    properties: Optional[Iterable[str]] = None,
    optimize_properties: bool = False,
    document_factory=None,
    time_series: bool = False,
    timeout: Optional[float] = None,
) -> MongoSink:
    if not connection_string:
        raise ValueError("'connection_string' cannot be None or empty.")

    return create_sink_from_url(
        MongoUrl.parse(connection_string),
        database_name=database_name,
        collection_name=collection_name,
        minimum_level=minimum_level,
        expire_after=expire_after,
        max_documents=max_documents,
        max_size=max_size,
        properties=properties,
        optimize_properties=optimize_properties,
        document_factory=document_factory,
        time_series=time_series,
        timeout=timeout,
    )


def create_sink_from_url(
    mongo_url: MongoUrl,
    database_name: Optional[str] = None,
    collection_name: Optional[str] = None,
    minimum_level: LogLevel = LogLevel.VERBOSE,
    expire_after: Optional[timedelta] = None,
    max_documents: Optional[int] = None,
    max_size: Optional[int] = None,
    properties: Optional[Iterable[str]] = None,
    optimize_properties: bool = False,
    document_factory=None,
    time_series: bool = False,
    timeout: Optional[float] = None,
) -> MongoSink:
    """
    Capped when max_size or max_documents is given; the database name falls
    back to the one in the URL, then to the default.
    """
    if mongo_url is None:
        raise TypeError("mongo_url is required")
    if expire_after is not None and expire_after < timedelta(seconds=1):
        raise ValueError("expire_after must be at least one second")

    collection_options = {}
    if max_size is not None or max_documents is not None:
        collection_options["capped"] = True
        if max_size is not None:
            collection_options["size"] = max_size
        if max_documents is not None:
            collection_options["max"] = max_documents
    if time_series:
        collection_options["timeseries"] = dict(defaults.TIME_SERIES_OPTIONS)

    def configure(options: SinkOptions):
        options.mongo_url = mongo_url
        options.database_name = database_name or mongo_url.database_name or defaults.DATABASE_NAME
        options.collection_name = collection_name
        options.minimum_level = minimum_level
        options.expire_after = expire_after
        options.collection_options = collection_options or None
        options.optimize_properties = optimize_properties
        options.timeout = timeout

        if properties is not None:
            options.properties = set(properties)

        if document_factory is not None:
            options.document_factory = document_factory

    return create_sink(configure)
