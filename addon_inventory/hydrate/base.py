"""Base class for the remote stages of the hydration pipeline."""

import threading
from typing import Optional


class RemoteStage:
    """Common state for stages that call one regional EKS client.

    The client is shared read-only with every other stage in the same
    region. ``cancel_event`` is the evaluation-wide stop signal: once set,
    a stage issues no further remote calls.
    """

    operation: str = ""

    def __init__(self, client, region: str, cancel_event: Optional[threading.Event] = None):
        self.client = client
        self.region = region
        self.cancel_event = cancel_event or threading.Event()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()
