"""Paginated add-on listing for one cluster in one region."""

from typing import Iterator, Optional

from ..logging import get_logger
from ..models import AddonIdentity, Cluster
from .base import RemoteStage

logger = get_logger(__name__)


class AddonLister(RemoteStage):
    """Walks ``list_addons`` to completion for a cluster.

    Identities are yielded as soon as their page arrives, in page order.
    A page error ends the walk and propagates; identities already yielded
    stand.
    """

    operation = "ListAddons"

    def __init__(self, client, region: str, cancel_event=None, page_size: Optional[int] = None):
        super().__init__(client, region, cancel_event)
        self.page_size = page_size

    def iter_addons(self, cluster: Cluster) -> Iterator[AddonIdentity]:
        params = {"clusterName": cluster.cluster_name}
        if self.page_size:
            params["maxResults"] = self.page_size

        pages = 0
        while True:
            if self.cancelled:
                logger.debug(
                    "Add-on listing cancelled",
                    region=self.region,
                    cluster_name=cluster.cluster_name,
                    pages=pages,
                )
                return

            page = self.client.list_addons(**params)
            pages += 1

            for addon_name in page.get("addons", []):
                yield AddonIdentity(
                    region=self.region,
                    cluster_name=cluster.cluster_name,
                    addon_name=addon_name,
                )

            next_token = page.get("nextToken")
            if not next_token:
                break
            params["nextToken"] = next_token

        logger.debug(
            "Add-on listing complete",
            region=self.region,
            cluster_name=cluster.cluster_name,
            pages=pages,
        )
