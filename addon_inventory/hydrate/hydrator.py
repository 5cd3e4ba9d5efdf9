"""Detail hydration: one ``describe_addon`` call per add-on."""

import threading
from typing import Dict, Optional, Tuple

from botocore.exceptions import ClientError

from ..errors import ErrorClassifier, HydrationMismatchError, error_code
from ..logging import get_logger, trace_operation
from ..models import AddonRecord, LookupKey
from .base import RemoteStage

logger = get_logger(__name__)


class AddonHydrator(RemoteStage):
    """Fetches the full record for a lookup key.

    Errors the classifier marks ignorable (the add-on vanished between
    list and get, or its identifier is no longer valid) become ``None``.
    Everything else propagates unmodified. There is no retry loop here;
    the client config owns retries.
    """

    operation = "DescribeAddon"

    def __init__(self, client, region: str, classifier: ErrorClassifier, cancel_event=None):
        super().__init__(client, region, cancel_event)
        self.classifier = classifier

    @trace_operation("describe_addon")
    def hydrate(self, key: LookupKey) -> Optional[AddonRecord]:
        try:
            response = self.client.describe_addon(
                clusterName=key.cluster_name, addonName=key.addon_name
            )
        except ClientError as exc:
            if self.classifier.is_ignorable(exc):
                logger.info(
                    "Add-on not found, skipping",
                    region=self.region,
                    cluster_name=key.cluster_name,
                    addon_name=key.addon_name,
                    error_code=error_code(exc),
                )
                return None
            raise

        record = AddonRecord.from_api(self.region, response["addon"])
        if record.lookup_key() != key:
            raise HydrationMismatchError(
                key.model_dump(), record.lookup_key().model_dump(), region=self.region
            )
        return record


CacheKey = Tuple[str, str, str]


class HydrationCache:
    """Per-evaluation memo so each add-on is described at most once.

    ``None`` outcomes are cached too. A new cache is created for every
    evaluation; nothing carries over between runs.
    """

    def __init__(self):
        self._records: Dict[CacheKey, Optional[AddonRecord]] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get_or_hydrate(self, hydrator: AddonHydrator, key: LookupKey) -> Optional[AddonRecord]:
        cache_key = (hydrator.region, key.cluster_name, key.addon_name)
        with self._lock:
            if cache_key in self._records:
                self.hits += 1
                return self._records[cache_key]
            self.misses += 1

        record = hydrator.hydrate(key)

        with self._lock:
            self._records.setdefault(cache_key, record)
            return self._records[cache_key]

    def __len__(self) -> int:
        return len(self._records)
