# mongosink/selflog.py
import logging
import threading
from datetime import datetime, timezone

logger = logging.getLogger("mongosink.selflog")

_lock = threading.Lock()
_output = None


def enable(output):
    """Also send diagnostic lines to a callable or a writable stream (e.g. sys.stderr)."""
    global _output
    if output is None:
        raise TypeError("output is required")
    with _lock:
        _output = output


def disable():
    global _output
    with _lock:
        _output = None


def write_line(fmt, *args):
    message = fmt % args if args else fmt
    logger.warning(message)

    output = _output
    if output is None:
        return

    line = f"{datetime.now(timezone.utc).isoformat()} {message}"
    if callable(output):
        output(line)
    else:
        output.write(line + "\n")
        output.flush()
