"""
Builders for the managed section content.

Gatekeep leaves the selected regions resolving normally (their lines are
commented out) and null-routes everything else. Universal Redirect points
every managed hostname at the addresses of one chosen region.

The builders only produce text; HostsManager writes it.
"""

from __future__ import annotations

import logging
import socket
from typing import Callable, Iterable, List, Optional, Set

from mychoice.errors import ResolutionError, ValidationError
from mychoice.regions import BlockMode, Region, RegionCatalog, group_name

logger = logging.getLogger(__name__)

NULL_ROUTE = "0.0.0.0"
COLUMN_WIDTH = 9

Resolver = Callable[[str], str]


def _header(mode_line: str, help_url: Optional[str]) -> List[str]:
    lines = [
        "# Edited by Make Your Choice (DbD Server Selector)",
        f"# {mode_line}",
    ]
    if help_url:
        lines.append(f"# Need help? Discord: {help_url}")
    lines.append("")
    return lines


def _null_routes(regions: Iterable[Region], pad: bool) -> List[str]:
    lines: List[str] = []
    for region in regions:
        for host in region.hosts:
            prefix = f"{NULL_ROUTE:<{COLUMN_WIDTH}}" if pad else NULL_ROUTE
            lines.append(f"{prefix} {host}")
        lines.append("")
    return lines


def resolve_allow_set(
    catalog: RegionCatalog, selected: Iterable[str], merge_unstable: bool
) -> Set[str]:
    """Selected regions, plus a stable stand-in per group when none is stable.

    The stand-in is the alphabetically first stable region of the same group.
    """
    allowed = set(selected)
    if not allowed:
        raise ValidationError("Please select at least one server to allow.")
    any_stable = any(catalog.regions[r].stable for r in allowed if r in catalog.regions)
    if not merge_unstable or any_stable:
        return allowed

    stable_names = sorted(name for name, info in catalog.regions.items() if info.stable)
    for name in sorted(allowed):
        info = catalog.get(name)
        if info is None or info.stable:
            continue
        group = group_name(name)
        alt = next((s for s in stable_names if group_name(s) == group), None)
        if alt is not None:
            logger.debug("Merging unstable %s with %s", name, alt)
            allowed.add(alt)
    return allowed


def _in_scope(host: str, block_mode: BlockMode) -> bool:
    is_ping = "ping" in host
    if block_mode == BlockMode.ONLY_PING:
        return is_ping
    if block_mode == BlockMode.ONLY_SERVICE:
        return not is_ping
    return True


def build_gatekeep(
    catalog: RegionCatalog,
    selected: Iterable[str],
    block_mode: BlockMode = BlockMode.BOTH,
    merge_unstable: bool = True,
    help_url: Optional[str] = None,
) -> str:
    allowed = resolve_allow_set(catalog, selected, merge_unstable)

    lines = _header(
        "Unselected servers are blocked (Gatekeep Mode); selected servers are commented out.",
        help_url,
    )
    for name, region in catalog.regions.items():
        prefix = "#" if name in allowed else NULL_ROUTE
        for host in region.hosts:
            if _in_scope(host, block_mode):
                lines.append(f"{prefix:<{COLUMN_WIDTH}} {host}")
        lines.append("")
    lines.extend(_null_routes(catalog.blocked.values(), pad=True))
    return "\n".join(lines) + "\n"


def resolve_ipv4(hostname: str) -> str:
    """First IPv4 address for `hostname` from the system resolver."""
    try:
        infos = socket.getaddrinfo(hostname, 443, socket.AF_INET, socket.SOCK_STREAM)
    except (socket.gaierror, UnicodeError) as exc:
        raise ResolutionError(hostname, str(exc)) from exc
    if not infos:
        raise ResolutionError(hostname, "no addresses found")
    return infos[0][4][0]


def build_universal_redirect(
    catalog: RegionCatalog,
    selected: Iterable[str],
    resolver: Resolver = resolve_ipv4,
    help_url: Optional[str] = None,
) -> str:
    chosen = list(dict.fromkeys(selected))
    if len(chosen) != 1:
        raise ValidationError("Please select only one server when using Universal Redirect mode.")
    region = catalog.get(chosen[0])
    if region is None:
        raise ValidationError(f"Selected region not found: {chosen[0]}")

    service_ip = resolver(region.service_host)
    ping_ip = resolver(region.ping_host)
    logger.info("Universal redirect to %s: service=%s ping=%s", region.name, service_ip, ping_ip)

    lines = _header(
        "Universal Redirect mode: redirect all GameLift endpoints to selected region",
        help_url,
    )
    for other in catalog.regions.values():
        for host in other.hosts:
            ip = ping_ip if "ping" in host.lower() else service_ip
            lines.append(f"{ip} {host}")
        lines.append("")
    lines.extend(_null_routes(catalog.blocked.values(), pad=False))
    return "\n".join(lines) + "\n"
