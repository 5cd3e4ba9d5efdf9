"""Column catalogue for the EKS add-on inventory.

Each column records whether it can be answered from ``list_addons`` alone
or needs the ``describe_addon`` detail call.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .errors import QueryError


@dataclass(frozen=True)
class Column:
    name: str
    description: str
    type: str = "string"
    hydrate: bool = True


COLUMNS: List[Column] = [
    Column("addon_name", "The name of the add-on.", hydrate=False),
    Column("arn", "The Amazon Resource Name (ARN) of the add-on."),
    Column("cluster_name", "The name of the cluster.", hydrate=False),
    Column("addon_version", "The version of the add-on."),
    Column("status", "The status of the add-on."),
    Column("created_at", "The date and time that the add-on was created.", "timestamp"),
    Column("modified_at", "The date and time that the add-on was last modified.", "timestamp"),
    Column(
        "service_account_role_arn",
        "The Amazon Resource Name (ARN) of the IAM role that is bound to the "
        "Kubernetes service account used by the add-on.",
    ),
    Column("health_issues", "An object that represents the add-on's health issues.", "json"),
    Column("title", "Title of the resource.", hydrate=False),
    Column(
        "tags",
        "The metadata that you apply to the add-on to assist with categorization "
        "and organization.",
        "json",
    ),
    Column("akas", "Array of globally unique identifier strings (also known as) for the resource.", "json"),
    Column("partition", "The AWS partition in which the resource is located.", hydrate=False),
    Column("region", "The AWS Region in which the resource is located.", hydrate=False),
    Column("account_id", "The AWS Account ID in which the resource is located."),
]

COLUMNS_BY_NAME: Dict[str, Column] = {column.name: column for column in COLUMNS}

DEFAULT_COLUMNS: List[str] = [column.name for column in COLUMNS]


def resolve_columns(columns: Optional[Iterable[str]]) -> List[str]:
    """Return the requested column names, or every column when none are given."""
    if not columns:
        return list(DEFAULT_COLUMNS)
    names = [name.strip() for name in columns if name and name.strip()]
    unknown = [name for name in names if name not in COLUMNS_BY_NAME]
    if unknown:
        raise QueryError(f"unknown column(s) {unknown}", known=DEFAULT_COLUMNS)
    return names


def requires_hydration(columns: Iterable[str]) -> bool:
    """True when any of *columns* is only returned by the detail call."""
    return any(COLUMNS_BY_NAME[name].hydrate for name in columns)
