"""
List/get hydration pipeline for EKS add-ons.

The pipeline resolves the region matrix, enumerates clusters per region,
and fans every (region x cluster) unit out onto a bounded thread pool.
Each unit walks ``list_addons`` and, when the query asks for a column the
listing cannot answer, hydrates each add-on with ``describe_addon``.

Error policy:

- ignorable detail errors (add-on vanished) produce no row and no fault
- authorization/configuration errors, and any other detail error, cancel
  the whole evaluation and are re-raised unmodified
- any other listing error aborts only that cluster's listing; remaining
  units run to completion and the first such error is re-raised at the end
- a sink that raises cancels the evaluation and its exception is re-raised
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import List, Optional, Set

from .config import InventoryConfig, get_config
from .errors import ErrorClassifier, error_code, operation_name
from .hydrate import AddonHydrator, AddonLister, ClusterEnumerator, HydrationCache
from .logging import correlation_scope, get_logger, time_operation
from .models import AddonIdentity, AddonRecord, Cluster, RegionContext
from .query import Query
from .regions import ClientFactory, RegionMatrix
from .streamer import ResultStreamer, Sink

logger = get_logger(__name__)

# Failures raised by our own code or the caller, not by a remote call
_LOCAL_STAGES = ("sink", "unit")


@dataclass
class EvaluationSummary:
    """What one evaluation did."""

    correlation_id: str
    regions: List[str] = field(default_factory=list)
    clusters: int = 0
    rows: int = 0
    describe_calls: int = 0
    suppressed: int = 0
    cancelled: bool = False
    duration_seconds: float = 0.0


class _Evaluation:
    """State for a single run. Created fresh by every ``InventoryPipeline.run``."""

    def __init__(self, pipeline: "InventoryPipeline", query: Query, sink: Sink):
        self.pipeline = pipeline
        self.query = query
        self.cancel_event = threading.Event()
        self.streamer = ResultStreamer(sink, limit=query.limit, cancel_event=self.cancel_event)
        self.cache = HydrationCache()
        self.correlation_id: Optional[str] = None

        self._lock = threading.Lock()
        self.fatal_error: Optional[BaseException] = None
        self.listing_error: Optional[BaseException] = None
        self.suppressed = 0

    # ------------------------------------------------------------------
    # Failure bookkeeping
    # ------------------------------------------------------------------

    def fail(self, exc: BaseException, stage: str, **context):
        """Record *exc*; fatal failures cancel everything still running."""
        fatal = stage != "list" or self.pipeline.classifier.is_fatal(exc)
        with self._lock:
            if fatal:
                if self.fatal_error is None:
                    self.fatal_error = exc
            elif self.listing_error is None:
                self.listing_error = exc

        if stage in _LOCAL_STAGES:
            logger.error(
                "Local step failed",
                stage=stage,
                error=str(exc),
                error_type=type(exc).__name__,
                **context,
            )
        else:
            log = logger.error if fatal else logger.warning
            log(
                "Remote call failed",
                stage=stage,
                operation=operation_name(exc),
                error_code=error_code(exc),
                error=str(exc),
                fatal=fatal,
                **context,
            )
        if fatal:
            self.cancel_event.set()

    def raise_for_failures(self):
        if self.fatal_error is not None:
            raise self.fatal_error
        if self.listing_error is not None:
            raise self.listing_error

    def submit(self, executor: ThreadPoolExecutor, fn, *args):
        """Submit *fn* so it logs under this evaluation's correlation id."""
        return executor.submit(self._in_scope, fn, *args)

    def _in_scope(self, fn, *args):
        with correlation_scope(self.correlation_id):
            return fn(*args)

    # ------------------------------------------------------------------
    # Units of work
    # ------------------------------------------------------------------

    def _hydrator(self, region: str) -> AddonHydrator:
        return AddonHydrator(
            self.pipeline.client_factory.get(region),
            region,
            self.pipeline.classifier,
            self.cancel_event,
        )

    def _hydrate(self, hydrator: AddonHydrator, identity: AddonIdentity) -> Optional[AddonRecord]:
        record = self.cache.get_or_hydrate(hydrator, identity.lookup_key())
        if record is None:
            with self._lock:
                self.suppressed += 1
        return record

    def emit(self, record: AddonRecord, **context) -> bool:
        """Stream *record*; a failing sink fails the evaluation at once."""
        try:
            self.streamer.stream(record)
        except Exception as exc:
            self.fail(exc, "sink", **context)
            return False
        return True

    def list_cluster(self, cluster: Cluster):
        """List one cluster's add-ons and stream them, hydrating when needed."""
        region = cluster.region
        client = self.pipeline.client_factory.get(region)
        lister = AddonLister(
            client, region, self.cancel_event, page_size=self.pipeline.config.page_size
        )
        hydrator = self._hydrator(region) if self.query.needs_hydration else None

        identities = lister.iter_addons(cluster)
        try:
            while not self.cancel_event.is_set():
                try:
                    identity = next(identities, None)
                except Exception as exc:
                    self.fail(exc, "list", region=region, cluster_name=cluster.cluster_name)
                    return
                if identity is None:
                    return
                if self.query.addon_name is not None and identity.addon_name != self.query.addon_name:
                    continue

                if hydrator is None:
                    if not self.emit(AddonRecord.from_identity(identity), region=region):
                        return
                    continue

                # The page may have arrived after cancellation
                if self.cancel_event.is_set():
                    return
                try:
                    record = self._hydrate(hydrator, identity)
                except Exception as exc:
                    self.fail(
                        exc,
                        "describe",
                        region=region,
                        cluster_name=cluster.cluster_name,
                        addon_name=identity.addon_name,
                    )
                    return
                if record is not None and not self.emit(record, region=region):
                    return
        finally:
            identities.close()

    def direct_get(self, region: RegionContext):
        """Answer a fully keyed query with one detail call."""
        if self.cancel_event.is_set():
            return
        key = self.query.lookup_key()
        identity = AddonIdentity(region=region.region, **key.model_dump())
        try:
            record = self._hydrate(self._hydrator(region.region), identity)
        except Exception as exc:
            self.fail(exc, "describe", region=region.region, **key.model_dump())
            return
        if record is not None:
            self.emit(record, region=region.region)

    def iter_clusters(self, region: RegionContext):
        enumerator = ClusterEnumerator(
            self.pipeline.client_factory.get(region.region), region.region, self.cancel_event
        )
        try:
            yield from enumerator.iter_clusters(self.query.cluster_name)
        except Exception as exc:
            # Enumeration shares the listing policy
            self.fail(exc, "list", region=region.region)


class InventoryPipeline:
    """Drives the list/get hydration of EKS add-ons across regions.

    Collaborators default to ones built from configuration and can be
    replaced (tests pass stubbed clients through ``client_factory``).
    """

    def __init__(
        self,
        config: Optional[InventoryConfig] = None,
        client_factory=None,
        region_matrix: Optional[RegionMatrix] = None,
        classifier: Optional[ErrorClassifier] = None,
    ):
        self.config = config or get_config()
        self.client_factory = client_factory or ClientFactory(config=self.config)
        self.region_matrix = region_matrix or RegionMatrix(self.config.regions)
        self.classifier = classifier or ErrorClassifier.from_config(self.config)
        self._active: Set[_Evaluation] = set()
        self._active_lock = threading.Lock()

    def cancel(self):
        """Stop issuing remote calls for every evaluation in progress."""
        with self._active_lock:
            active = list(self._active)
        for evaluation in active:
            evaluation.cancel_event.set()

    def run(self, query: Query, sink: Sink) -> EvaluationSummary:
        """Evaluate *query*, handing each record to *sink* as it is produced.

        Raises the original remote exception if the evaluation failed.
        Rows delivered before the failure are not retracted.
        """
        evaluation = _Evaluation(self, query, sink)
        with self._active_lock:
            self._active.add(evaluation)
        start = time.perf_counter()

        with correlation_scope() as correlation_id:
            summary = EvaluationSummary(correlation_id=correlation_id)
            evaluation.correlation_id = correlation_id
            try:
                with time_operation(logger, "evaluation", direct_get=query.is_direct_get):
                    self._execute(evaluation, summary)
            finally:
                with self._active_lock:
                    self._active.discard(evaluation)
                summary.rows = evaluation.streamer.count
                summary.describe_calls = evaluation.cache.misses
                summary.suppressed = evaluation.suppressed
                summary.cancelled = evaluation.cancel_event.is_set()
                summary.duration_seconds = time.perf_counter() - start

            logger.info(
                "Evaluation finished",
                regions=summary.regions,
                clusters=summary.clusters,
                rows=summary.rows,
                describe_calls=summary.describe_calls,
                suppressed=summary.suppressed,
            )
        return summary

    def collect(self, query: Query) -> List[AddonRecord]:
        """Evaluate *query* and return the records in delivery order."""
        records: List[AddonRecord] = []
        self.run(query, records.append)
        return records

    def _execute(self, evaluation: _Evaluation, summary: EvaluationSummary):
        query = evaluation.query
        regions = self.region_matrix.resolve(query.regions)
        summary.regions = [r.region for r in regions]

        if not regions or evaluation.cancel_event.is_set():
            return

        executor = ThreadPoolExecutor(
            max_workers=self.config.max_parallelism, thread_name_prefix="AddonWorker"
        )
        futures = []
        try:
            if query.is_direct_get:
                for region in regions:
                    futures.append(evaluation.submit(executor, evaluation.direct_get, region))
            else:
                for region in regions:
                    for cluster in evaluation.iter_clusters(region):
                        if evaluation.cancel_event.is_set():
                            break
                        summary.clusters += 1
                        futures.append(evaluation.submit(executor, evaluation.list_cluster, cluster))
                    if evaluation.cancel_event.is_set():
                        break

            wait(futures)
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

        # Anything a unit did not handle itself
        for future in futures:
            if not future.cancelled() and future.exception() is not None:
                evaluation.fail(future.exception(), "unit")

        evaluation.raise_for_failures()
