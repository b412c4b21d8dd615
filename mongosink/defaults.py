# mongosink/defaults.py
import os

CONNECTION_STRING = os.getenv("MONGO_URL", "mongodb://localhost:27017")

DATABASE_NAME = os.getenv("MONGO_LOG_DATABASE", "logging")
COLLECTION_NAME = os.getenv("MONGO_LOG_COLLECTION", "logs")

# document fields
TIMESTAMP = "Timestamp"
LEVEL = "Level"
MESSAGE = "Message"
EXCEPTION = "Exception"
PROPERTIES = "Properties"
TRACE_ID = "TraceId"
SPAN_ID = "SpanId"

# exception sub-document fields
BASE_MESSAGE = "BaseMessage"
TYPE = "Type"
TEXT = "Text"
ERROR_CODE = "ErrorCode"
HRESULT = "HResult"
SOURCE = "Source"
METHOD_NAME = "MethodName"
MODULE_NAME = "ModuleName"
MODULE_VERSION = "ModuleVersion"

SOURCE_CONTEXT = "SourceContext"

TIME_SERIES_OPTIONS = {"timeField": TIMESTAMP}
