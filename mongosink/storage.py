# mongosink/storage.py
import logging
import math
import threading
from contextlib import nullcontext

import pymongo
from pymongo import ASCENDING, DESCENDING, TEXT, IndexModel, MongoClient

from . import defaults

logger = logging.getLogger(__name__)


def operation_timeout(options):
    """Client-side deadline for store calls; pending calls are cancelled once it passes."""
    if options.timeout is None:
        return nullcontext()
    return pymongo.timeout(options.timeout)


class MongoFactory:
    """
    Lazily creates and caches the client, database and collection for a sink.

    Each handle is created at most once behind its own lock (double-checked),
    and the first caller to cache the collection makes sure it exists and
    carries the log indexes. Errors raised while creating or setting up
    propagate to that caller; nothing is retried.
    """

    def __init__(self):
        self._client_lock = threading.Lock()
        self._database_lock = threading.Lock()
        self._collection_lock = threading.Lock()
        self._initialized_lock = threading.Lock()

        self._collection_initialized = False

        self._client = None
        self._database = None
        self._collection = None

    def get_client(self, options) -> MongoClient:
        if self._client is not None:
            return self._client

        with self._client_lock:
            if self._client is not None:
                return self._client

            if options.mongo_url is not None:
                client = MongoClient(options.mongo_url.url, **options.mongo_url.client_options)
            else:
                client = MongoClient(options.connection_string or defaults.CONNECTION_STRING)

            self._client = client
            return client

    def get_database(self, options, client=None):
        if self._database is not None:
            return self._database

        if client is None:
            client = self.get_client(options)

        with self._database_lock:
            if self._database is None:
                name = options.database_name or defaults.DATABASE_NAME
                self._database = client.get_database(name)
            return self._database

    def get_collection(self, options, database=None):
        if self._collection is not None:
            return self._collection

        if database is None:
            database = self.get_database(options)

        with self._collection_lock:
            if self._collection is None:
                name = options.collection_name or defaults.COLLECTION_NAME
                self._collection = database.get_collection(name)
            collection = self._collection

        # only the first caller to flip the flag performs setup
        if not self._claim_initialization():
            return collection

        with operation_timeout(options):
            self.ensure_collection_exists(options, database, collection)
            self.ensure_collection_indexes(options, collection)

        return collection

    def close(self):
        with self._client_lock:
            client = self._client
            self._client = None
        with self._database_lock:
            self._database = None
        with self._collection_lock:
            self._collection = None
        with self._initialized_lock:
            self._collection_initialized = False

        if client is not None:
            client.close()

    def _claim_initialization(self) -> bool:
        with self._initialized_lock:
            if self._collection_initialized:
                return False
            self._collection_initialized = True
            return True

    @staticmethod
    def ensure_collection_exists(options, database, collection):
        if collection.name in database.list_collection_names():
            return

        database.create_collection(collection.name, **(options.collection_options or {}))
        logger.debug("Created collection %s.%s", database.name, collection.name)

    @staticmethod
    def ensure_collection_indexes(options, collection):
        timestamp = {}
        # capped collections do not support TTL indexes
        if options.expire_after is not None and not options.capped:
            # whole seconds, at least one
            timestamp["expireAfterSeconds"] = max(1, math.ceil(options.expire_after.total_seconds()))

        indexes = [
            IndexModel([(defaults.TIMESTAMP, DESCENDING)], **timestamp),
            IndexModel([(defaults.LEVEL, ASCENDING)]),
        ]

        # time-series collections do not support text indexes
        if not options.time_series:
            indexes.append(IndexModel([(defaults.MESSAGE, TEXT)]))

        indexes.append(IndexModel([(defaults.TRACE_ID, ASCENDING)]))
        indexes.append(IndexModel([(defaults.SPAN_ID, ASCENDING)]))

        collection.create_indexes(indexes)
        logger.debug("Created %d indexes on %s", len(indexes), collection.name)
