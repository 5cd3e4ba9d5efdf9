"""
addon-inventory - list/get hydration of EKS add-ons across regions.

A cheap paginated ``list_addons`` call yields add-on identities per cluster;
``describe_addon`` hydrates them into full records only when the query asks
for a column the listing cannot answer.
"""

from .config import InventoryConfig, get_config
from .errors import (
    ConfigurationError,
    ErrorClassifier,
    HydrationMismatchError,
    InventoryError,
    QueryError,
)
from .models import AddonIdentity, AddonRecord, Cluster, LookupKey, RegionContext
from .pipeline import EvaluationSummary, InventoryPipeline
from .query import Query

__version__ = "0.1.0"

__all__ = [
    "InventoryConfig",
    "get_config",
    "InventoryPipeline",
    "EvaluationSummary",
    "Query",
    "RegionContext",
    "Cluster",
    "AddonIdentity",
    "LookupKey",
    "AddonRecord",
    "ErrorClassifier",
    "InventoryError",
    "ConfigurationError",
    "QueryError",
    "HydrationMismatchError",
]
