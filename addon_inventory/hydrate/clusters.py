"""Enumerate the EKS clusters that seed add-on listing."""

from typing import Iterator, Optional

from ..logging import get_logger
from ..models import Cluster
from .base import RemoteStage

logger = get_logger(__name__)


class ClusterEnumerator(RemoteStage):
    """Walks ``list_clusters`` for one region.

    Errors propagate unmodified; the generator is finite and cannot be
    restarted once consumed.
    """

    operation = "ListClusters"

    def iter_clusters(self, cluster_name: Optional[str] = None) -> Iterator[Cluster]:
        """Yield clusters in API page order.

        With *cluster_name* the listing is still drained but only that
        cluster is yielded, so an unknown name yields nothing.
        """
        paginator = self.client.get_paginator("list_clusters")
        for page in paginator.paginate():
            if self.cancelled:
                logger.debug("Cluster enumeration cancelled", region=self.region)
                return
            for name in page.get("clusters", []):
                if cluster_name is not None and name != cluster_name:
                    continue
                yield Cluster(region=self.region, cluster_name=name)
