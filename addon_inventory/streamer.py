"""Forward records to the caller's sink as they are produced."""

import threading
from typing import Callable, Optional

from .logging import get_logger
from .models import AddonRecord

logger = get_logger(__name__)

Sink = Callable[[AddonRecord], None]


class ResultStreamer:
    """Hands records to *sink* one at a time, in arrival order.

    No batching, reordering, filtering or deduplication. Safe to call from
    several worker threads; sink calls are serialized. When *limit* rows
    have been delivered the shared cancel event is set and later records
    are dropped.
    """

    def __init__(
        self,
        sink: Sink,
        limit: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.sink = sink
        self.limit = limit
        self.cancel_event = cancel_event or threading.Event()
        self.count = 0
        self._lock = threading.Lock()

        if limit == 0:
            self.cancel_event.set()

    @property
    def limit_reached(self) -> bool:
        return self.limit is not None and self.count >= self.limit

    def stream(self, record: AddonRecord) -> bool:
        """Deliver *record*; return ``False`` if it was dropped."""
        with self._lock:
            if self.limit_reached:
                return False

            self.sink(record)
            self.count += 1

            if self.limit_reached:
                logger.info("Row limit reached, cancelling remaining work", limit=self.limit)
                self.cancel_event.set()
            return True
