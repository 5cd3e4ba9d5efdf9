"""The caller's side of an evaluation: columns, key predicates, regions and limit."""

from dataclasses import dataclass, field
from typing import List, Optional

from .columns import requires_hydration, resolve_columns
from .errors import QueryError
from .models import LookupKey


@dataclass
class Query:
    """A single inventory query.

    ``cluster_name`` and ``addon_name`` are equality predicates. When both
    are set the query is answered with one detail call per region and the
    listing stage is skipped.
    """

    columns: List[str] = field(default_factory=list)
    cluster_name: Optional[str] = None
    addon_name: Optional[str] = None
    regions: Optional[List[str]] = None
    limit: Optional[int] = None

    def __post_init__(self):
        self.columns = resolve_columns(self.columns)

        if self.limit is not None and self.limit < 0:
            raise QueryError("limit cannot be negative", limit=self.limit)

        if self.cluster_name == "" or self.addon_name == "":
            raise QueryError("key predicates cannot be empty strings")

    @property
    def is_direct_get(self) -> bool:
        return self.cluster_name is not None and self.addon_name is not None

    @property
    def needs_hydration(self) -> bool:
        return requires_hydration(self.columns)

    def lookup_key(self) -> LookupKey:
        if not self.is_direct_get:
            raise QueryError("both cluster_name and addon_name are required for a direct get")
        return LookupKey(cluster_name=self.cluster_name, addon_name=self.addon_name)
