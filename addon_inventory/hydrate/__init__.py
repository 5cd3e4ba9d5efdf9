"""Remote stages of the add-on pipeline: clusters, add-on listing and detail hydration."""

from .base import RemoteStage
from .clusters import ClusterEnumerator
from .hydrator import AddonHydrator, HydrationCache
from .lister import AddonLister

__all__ = [
    "RemoteStage",
    "ClusterEnumerator",
    "AddonLister",
    "AddonHydrator",
    "HydrationCache",
]
