"""
Region catalog for Make Your Choice.

Each region is a display name mapped to its GameLift endpoints and a stability
flag. The catalog is built once at startup and passed explicitly to every
policy and detector call; nothing here is mutated after construction.

Host order matters: index 0 is the service endpoint, index 1 (when present)
the latency-probe endpoint.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Set, Tuple

GROUPS = ("Europe", "Americas", "Asia", "Oceania", "China")


class ApplyMode(str, Enum):
    GATEKEEP = "gatekeep"
    UNIVERSAL_REDIRECT = "universal_redirect"


class BlockMode(str, Enum):
    BOTH = "both"
    ONLY_PING = "only_ping"
    ONLY_SERVICE = "only_service"


@dataclass(frozen=True)
class Region:
    name: str
    hosts: Tuple[str, ...]
    stable: bool = True

    @property
    def service_host(self) -> str:
        return self.hosts[0]

    @property
    def ping_host(self) -> str:
        return self.hosts[1] if len(self.hosts) > 1 else self.hosts[0]


def group_name(region: str) -> str:
    """Map a region display name to its geographic group."""
    if region.startswith("Europe"):
        return "Europe"
    if region.startswith(("US", "Canada", "South America")):
        return "Americas"
    if "Sydney" in region:
        return "Oceania"
    if "China" in region:
        return "China"
    return "Asia"


def _freeze(regions: Mapping[str, Region]) -> Mapping[str, Region]:
    return MappingProxyType(dict(regions))


@dataclass(frozen=True)
class RegionCatalog:
    """Selectable regions plus the regions that are always null-routed."""

    regions: Mapping[str, Region] = field(default_factory=dict)
    blocked: Mapping[str, Region] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "regions", _freeze(self.regions))
        object.__setattr__(self, "blocked", _freeze(self.blocked))

    @classmethod
    def from_lists(cls, regions, blocked=()) -> "RegionCatalog":
        return cls({r.name: r for r in regions}, {r.name: r for r in blocked})

    def get(self, name: str) -> Optional[Region]:
        return self.regions.get(name)

    def all_regions(self) -> Iterator[Region]:
        yield from self.regions.values()
        yield from self.blocked.values()

    def managed_hostnames(self) -> Set[str]:
        return {host.lower() for region in self.all_regions() for host in region.hosts}

    def grouped(self) -> Dict[str, list]:
        """Selectable regions bucketed by group, in GROUPS order."""
        out: Dict[str, list] = {g: [] for g in GROUPS}
        for region in self.regions.values():
            out[group_name(region.name)].append(region)
        return {g: rs for g, rs in out.items() if rs}


def _gamelift(name: str, code: str, stable: bool = True, service: Optional[str] = None) -> Region:
    return Region(
        name=name,
        hosts=(service or f"gamelift.{code}.amazonaws.com", f"gamelift-ping.{code}.api.aws"),
        stable=stable,
    )


def default_catalog() -> RegionCatalog:
    selectable = [
        # Europe
        _gamelift("Europe (London)", "eu-west-2", stable=False),
        _gamelift("Europe (Ireland)", "eu-west-1"),
        _gamelift("Europe (Frankfurt am Main)", "eu-central-1"),
        # The Americas
        _gamelift("US East (N. Virginia)", "us-east-1"),
        _gamelift("US East (Ohio)", "us-east-2", stable=False),
        _gamelift("US West (N. California)", "us-west-1"),
        _gamelift("US West (Oregon)", "us-west-2"),
        _gamelift("Canada (Central)", "ca-central-1", stable=False),
        _gamelift("South America (São Paulo)", "sa-east-1"),
        # Asia (excluding Mainland China)
        _gamelift("Asia Pacific (Tokyo)", "ap-northeast-1"),
        _gamelift("Asia Pacific (Seoul)", "ap-northeast-2"),
        _gamelift("Asia Pacific (Mumbai)", "ap-south-1"),
        _gamelift("Asia Pacific (Singapore)", "ap-southeast-1"),
        _gamelift("Asia Pacific (Hong Kong)", "ap-east-1", service="ec2.ap-east-1.amazonaws.com"),
        # Oceania
        _gamelift("Asia Pacific (Sydney)", "ap-southeast-2"),
    ]
    # Not used by the game; blocked so matchmaking never lands there.
    blocked = [
        _gamelift("Africa (Cape Town)", "af-south-1"),
        _gamelift("Asia Pacific (Osaka)", "ap-northeast-3"),
        _gamelift("Europe (Stockholm)", "eu-north-1"),
        _gamelift("Europe (Paris)", "eu-west-3"),
        _gamelift("Europe (Milan)", "eu-south-1"),
        _gamelift("Middle East (Bahrain)", "me-south-1"),
        _gamelift("Asia Pacific (Malaysia)", "ap-southeast-5"),
        _gamelift("Asia Pacific (Thailand)", "ap-southeast-7"),
        Region(
            "China (Beijing)",
            ("gamelift.cn-north-1.amazonaws.com.cn", "gamelift-ping.cn-north-1.api.aws"),
        ),
        Region(
            "China (Ningxia)",
            ("gamelift.cn-northwest-1.amazonaws.com.cn", "gamelift-ping.cn-northwest-1.api.aws"),
        ),
    ]
    return RegionCatalog.from_lists(selectable, blocked)
