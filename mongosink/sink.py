# mongosink/sink.py
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from . import selflog
from .documents import DocumentFactory
from .events import LogEvent
from .storage import MongoFactory, operation_timeout

logger = logging.getLogger(__name__)


class MongoSink:
    """
    Batched sink writing log events to a MongoDB collection.

    The external scheduler calls emit_batch from its flush loop, or
    on_empty_batch when there was nothing to send. Mapping and insert
    failures are reported to selflog and the batch is dropped; errors
    creating or setting up the collection reach the caller.
    """

    def __init__(self, options):
        if options is None:
            raise TypeError("options is required")
        self._options = options
        self._document_factory = options.document_factory or DocumentFactory()
        self._mongo_factory = options.mongo_factory or MongoFactory()

    @property
    def options(self):
        return self._options

    def emit_batch(self, batch: Sequence[LogEvent]) -> None:
        if not batch:
            return

        documents, error = self._create_documents(batch)
        if error is not None:
            self._report(error)
            return

        if not documents:
            return

        collection = self._mongo_factory.get_collection(self._options)

        ok, error = self._insert_documents(collection, documents)
        if not ok:
            self._report(error)

    def on_empty_batch(self) -> None:
        return None

    def close(self):
        close = getattr(self._mongo_factory, "close", None)
        if close is not None:
            close()

    def _create_documents(self, batch) -> Tuple[List[Dict[str, Any]], Optional[Exception]]:
        documents = []
        try:
            for event in batch:
                document = self._document_factory.create_document(event, self._options)
                if document is not None:
                    documents.append(document)
        except Exception as e:
            return [], e
        return documents, None

    def _insert_documents(self, collection, documents) -> Tuple[bool, Optional[Exception]]:
        try:
            with operation_timeout(self._options):
                res = collection.insert_many(documents)
        except Exception as e:
            return False, e
        logger.debug("Inserted %d log documents", len(res.inserted_ids))
        return True, None

    @staticmethod
    def _report(error: Exception):
        selflog.write_line("Error while emitting log events to MongoDB: %s", error)
