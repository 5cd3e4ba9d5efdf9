"""Pydantic models for regions, clusters and EKS add-ons."""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, computed_field

# Region prefix -> partition, longest prefix first
_PARTITION_PREFIXES = (
    ("us-isob-", "aws-iso-b"),
    ("us-iso-", "aws-iso"),
    ("us-gov-", "aws-us-gov"),
    ("cn-", "aws-cn"),
)


def partition_for_region(region: str) -> str:
    for prefix, partition in _PARTITION_PREFIXES:
        if region.startswith(prefix):
            return partition
    return "aws"


class RegionContext(BaseModel):
    """Selects the endpoint and client a unit of work runs against."""

    model_config = ConfigDict(frozen=True)

    region: str
    partition: str = "aws"

    @classmethod
    def for_region(cls, region: str) -> "RegionContext":
        return cls(region=region, partition=partition_for_region(region))


class Cluster(BaseModel):
    """An EKS cluster: the parent resource add-ons are listed under."""

    model_config = ConfigDict(frozen=True)

    region: str
    cluster_name: str


class LookupKey(BaseModel):
    """Addresses exactly one ``describe_addon`` call."""

    model_config = ConfigDict(frozen=True)

    cluster_name: str
    addon_name: str


class AddonIdentity(BaseModel):
    """What ``list_addons`` tells us about an add-on."""

    model_config = ConfigDict(frozen=True)

    region: str
    cluster_name: str
    addon_name: str

    def lookup_key(self) -> LookupKey:
        return LookupKey(cluster_name=self.cluster_name, addon_name=self.addon_name)


class AddonRecord(BaseModel):
    """A normalized EKS add-on row.

    Records built from an identity alone carry only the identity columns;
    the rest are populated by ``describe_addon``.
    """

    model_config = ConfigDict(frozen=True)

    region: str
    partition: str = "aws"
    cluster_name: str
    addon_name: str
    arn: Optional[str] = None
    addon_version: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    service_account_role_arn: Optional[str] = None
    health_issues: Optional[List[Dict[str, Any]]] = None
    tags: Optional[Dict[str, str]] = None

    @computed_field
    @property
    def title(self) -> str:
        return self.addon_name

    @computed_field
    @property
    def akas(self) -> List[str]:
        return [self.arn] if self.arn else []

    @computed_field
    @property
    def account_id(self) -> Optional[str]:
        # arn:partition:service:region:account-id:resource
        if not self.arn:
            return None
        parts = self.arn.split(":", 5)
        if len(parts) < 6 or not parts[4]:
            return None
        return parts[4]

    def lookup_key(self) -> LookupKey:
        return LookupKey(cluster_name=self.cluster_name, addon_name=self.addon_name)

    @classmethod
    def from_identity(cls, identity: AddonIdentity) -> "AddonRecord":
        return cls(
            region=identity.region,
            partition=partition_for_region(identity.region),
            cluster_name=identity.cluster_name,
            addon_name=identity.addon_name,
        )

    @classmethod
    def from_api(cls, region: str, addon: Dict[str, Any]) -> "AddonRecord":
        """Build a record from the ``addon`` member of a ``describe_addon`` response."""
        return cls(
            region=region,
            partition=partition_for_region(region),
            cluster_name=addon["clusterName"],
            addon_name=addon["addonName"],
            arn=addon.get("addonArn"),
            addon_version=addon.get("addonVersion"),
            status=addon.get("status"),
            created_at=addon.get("createdAt"),
            modified_at=addon.get("modifiedAt"),
            service_account_role_arn=addon.get("serviceAccountRoleArn"),
            health_issues=addon.get("health", {}).get("issues", []),
            tags=addon.get("tags", {}),
        )

    def to_row(self, columns: Optional[Sequence[str]] = None) -> Dict[str, Any]:
        """Return the requested columns as a JSON-ready dict, in column order."""
        data = self.model_dump(mode="json")
        if columns is None:
            return data
        return {name: data.get(name) for name in columns}
