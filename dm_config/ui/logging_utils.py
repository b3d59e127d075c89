# dm_config/ui/logging_utils.py
from __future__ import annotations
import logging
import queue

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"
LOG_DATEFMT = "%H:%M:%S"


class QueueLogHandler(logging.Handler):
    """Push formatted records to a thread-safe queue; the window drains it with after()."""
    def __init__(self, q: queue.Queue):
        super().__init__()
        self.q = q

    def emit(self, record: logging.LogRecord):
        try:
            self.q.put_nowait(self.format(record))
        except queue.Full:
            pass
        except Exception:
            self.handleError(record)


def install_queue_logging(q: queue.Queue, level: int = logging.INFO) -> QueueLogHandler:
    """
    Route the root logger into `q` and nowhere else.
    Records come from both the Tk thread and the session's event loop thread.
    """
    handler = QueueLogHandler(q)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
    root.setLevel(level)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return handler
