"""Region matrix and per-region EKS clients."""

import threading
from fnmatch import fnmatchcase
from typing import Dict, Iterable, List, Optional

import boto3
from botocore.config import Config

from .config import InventoryConfig, get_config
from .errors import ConfigurationError
from .logging import get_logger
from .models import RegionContext

logger = get_logger(__name__)

_WILDCARDS = set("*?[")


def _is_pattern(entry: str) -> bool:
    return any(ch in _WILDCARDS for ch in entry)


def known_regions(session: Optional[boto3.Session] = None, service: str = "eks") -> List[str]:
    """Every region botocore's endpoint data lists for *service*, across partitions."""
    session = session or boto3.Session()
    regions: List[str] = []
    for partition in session.get_available_partitions():
        regions.extend(session.get_available_regions(service, partition_name=partition))
    return sorted(set(regions))


class RegionMatrix:
    """Resolves the configured region entries into the regions an evaluation runs in.

    Entries are exact region names or fnmatch patterns. Patterns are
    expanded against *available*; exact names are kept even when botocore
    does not know them yet.
    """

    def __init__(self, entries: Iterable[str], available: Optional[Iterable[str]] = None):
        self.entries = [entry.strip() for entry in entries if entry and entry.strip()]
        if not self.entries:
            raise ConfigurationError("regions", list(entries), "at least one region or pattern")
        self._available = sorted(set(available)) if available is not None else None

    @property
    def available(self) -> List[str]:
        if self._available is None:
            self._available = known_regions()
        return self._available

    def configured_regions(self) -> List[str]:
        regions = set()
        for entry in self.entries:
            if _is_pattern(entry):
                matched = [r for r in self.available if fnmatchcase(r, entry)]
                if not matched:
                    logger.warning("Region pattern matched nothing", pattern=entry)
                regions.update(matched)
            else:
                regions.add(entry)
        return sorted(regions)

    def resolve(self, constraint: Optional[Iterable[str]] = None) -> List[RegionContext]:
        """Return the region contexts to evaluate.

        With a *constraint* only the intersection is returned; an empty
        intersection is an empty evaluation, not an error.
        """
        regions = self.configured_regions()
        if constraint is not None:
            wanted = set(constraint)
            regions = [r for r in regions if r in wanted]
            if not regions:
                logger.info(
                    "Region constraint matched no configured region",
                    constraint=sorted(wanted),
                    configured=self.entries,
                )
        return [RegionContext.for_region(r) for r in regions]


class ClientFactory:
    """Builds one EKS client per region and shares it across that region's work.

    Retries and timeouts live in the botocore client config so every remote
    call gets the same policy.
    """

    def __init__(
        self,
        session: Optional[boto3.Session] = None,
        config: Optional[InventoryConfig] = None,
        service: str = "eks",
    ):
        self.config = config or get_config()
        self.session = session or boto3.Session(profile_name=self.config.aws_profile)
        self.service = service
        self._clients: Dict[str, object] = {}
        self._lock = threading.Lock()

    def client_config(self) -> Config:
        return Config(
            retries={"max_attempts": self.config.max_attempts, "mode": self.config.retry_mode},
            connect_timeout=self.config.connect_timeout,
            read_timeout=self.config.read_timeout,
        )

    def get(self, region: str):
        """Return the shared client for *region*."""
        with self._lock:
            client = self._clients.get(region)
            if client is None:
                client = self.session.client(
                    self.service, region_name=region, config=self.client_config()
                )
                self._clients[region] = client
                logger.debug("Created client", service=self.service, region=region)
            return client

    __call__ = get
