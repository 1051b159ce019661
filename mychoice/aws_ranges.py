"""
IPv4 to AWS region lookup backed by the public ip-ranges.json feed.

The table is rebuilt from scratch on every refresh and swapped in whole, so a
reader always sees either the old table or the new one. Refreshes are
single-flight: a caller that arrives while a fetch is running waits for that
fetch and shares its outcome instead of starting another.
"""

from __future__ import annotations

import ipaddress
import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple

import requests

from mychoice.config import DEFAULT_FEED_TIMEOUT, DEFAULT_FEED_URL
from mychoice.errors import FeedError

logger = logging.getLogger(__name__)

USER_AGENT = "make-your-choice"

REGION_LABELS = {
    "us-east-1": "US East (N. Virginia)",
    "us-east-2": "US East (Ohio)",
    "us-west-1": "US West (N. California)",
    "us-west-2": "US West (Oregon)",
    "ca-central-1": "Canada (Central)",
    "sa-east-1": "South America (São Paulo)",
    "eu-west-1": "Europe (Ireland)",
    "eu-west-2": "Europe (London)",
    "eu-central-1": "Europe (Frankfurt am Main)",
    "eu-north-1": "Europe (Stockholm)",
    "eu-west-3": "Europe (Paris)",
    "eu-south-1": "Europe (Milan)",
    "ap-northeast-1": "Asia Pacific (Tokyo)",
    "ap-northeast-2": "Asia Pacific (Seoul)",
    "ap-south-1": "Asia Pacific (Mumbai)",
    "ap-southeast-1": "Asia Pacific (Singapore)",
    "ap-southeast-2": "Asia Pacific (Sydney)",
    "ap-east-1": "Asia Pacific (Hong Kong)",
    "af-south-1": "Africa (Cape Town)",
    "me-south-1": "Middle East (Bahrain)",
    "ap-northeast-3": "Asia Pacific (Osaka)",
}


def pretty_region_name(code: str) -> str:
    return REGION_LABELS.get(code, code)


@dataclass(frozen=True)
class CidrEntry:
    network: int
    mask: int
    prefix_len: int
    region: str

    def contains(self, ip: int) -> bool:
        return (ip & self.mask) == self.network


def parse_ipv4_cidr(cidr: str) -> Optional[Tuple[int, int, int]]:
    """Parse "a.b.c.d/n" into (network, mask, prefix_len), or None.

    Host bits are cleared rather than rejected, as the feed is not strict
    about them.
    """
    parts = cidr.split("/")
    if len(parts) != 2:
        return None
    ip_str, prefix_str = parts
    if not (prefix_str.isascii() and prefix_str.isdigit()):
        return None
    prefix_len = int(prefix_str)
    if prefix_len > 32:
        return None
    try:
        ip = int(ipaddress.IPv4Address(ip_str))
    except ValueError:
        return None
    mask = (0xFFFFFFFF << (32 - prefix_len)) & 0xFFFFFFFF
    return ip & mask, mask, prefix_len


class CidrTable:
    """Immutable list of CIDR entries with longest-prefix-match lookup."""

    def __init__(self, entries: Iterable[CidrEntry] = ()):
        self._entries: Tuple[CidrEntry, ...] = tuple(entries)

    def __len__(self) -> int:
        return len(self._entries)

    @classmethod
    def from_feed(cls, payload: Any) -> "CidrTable":
        """Build from a decoded ip-ranges.json document, skipping bad records."""
        entries: List[CidrEntry] = []
        prefixes = payload.get("prefixes") if isinstance(payload, dict) else None
        if not isinstance(prefixes, list):
            return cls()
        skipped = 0
        for record in prefixes:
            if not isinstance(record, dict):
                skipped += 1
                continue
            ip_prefix = record.get("ip_prefix")
            if not isinstance(ip_prefix, str) or not ip_prefix:
                skipped += 1
                continue
            parsed = parse_ipv4_cidr(ip_prefix)
            if parsed is None:
                skipped += 1
                continue
            region = record.get("region")
            network, mask, prefix_len = parsed
            entries.append(CidrEntry(network, mask, prefix_len, region if isinstance(region, str) else ""))
        if skipped:
            logger.debug("Skipped %d malformed range records", skipped)
        return cls(entries)

    def lookup(self, ip: str) -> Optional[CidrEntry]:
        """Most specific entry containing `ip`; ties go to the earliest entry."""
        try:
            addr = ipaddress.ip_address(ip.strip())
        except ValueError:
            return None
        if addr.version != 4:
            return None
        value = int(addr)
        best: Optional[CidrEntry] = None
        for entry in self._entries:
            if entry.contains(value) and (best is None or entry.prefix_len > best.prefix_len):
                best = entry
        return best

    def classify(self, ip: str) -> Optional[str]:
        entry = self.lookup(ip)
        if entry is None:
            return None
        return pretty_region_name(entry.region)


class AwsIpRanges:
    def __init__(
        self,
        url: str = DEFAULT_FEED_URL,
        timeout: float = DEFAULT_FEED_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self._table = CidrTable()
        self._table_lock = threading.Lock()
        self._gate = threading.Lock()
        self._inflight: Optional[Future] = None

    @property
    def table(self) -> CidrTable:
        with self._table_lock:
            return self._table

    def _fetch(self) -> CidrTable:
        try:
            resp = self.session.get(self.url, headers={"User-Agent": USER_AGENT}, timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
        except requests.RequestException as exc:
            raise FeedError(f"Failed to fetch {self.url}: {exc}") from exc
        except ValueError as exc:
            raise FeedError(f"Invalid JSON from {self.url}: {exc}") from exc
        if not isinstance(payload, dict):
            raise FeedError(f"Unexpected payload from {self.url}")
        return CidrTable.from_feed(payload)

    def refresh(self) -> CidrTable:
        """Fetch the feed and publish a new table.

        Concurrent callers join the refresh already in flight and receive its
        table (or its exception).
        """
        with self._gate:
            pending = self._inflight
            owner = pending is None
            if owner:
                pending = self._inflight = Future()
        if not owner:
            return pending.result()

        try:
            table = self._fetch()
            with self._table_lock:
                self._table = table
            logger.info("Loaded %d IPv4 ranges", len(table))
            pending.set_result(table)
            return table
        except BaseException as exc:
            pending.set_exception(exc)
            raise
        finally:
            with self._gate:
                self._inflight = None

    def classify(self, ip: str) -> Optional[str]:
        """Classify against the current table without fetching."""
        return self.table.classify(ip)

    def get_region(self, ip: str) -> Optional[str]:
        """Refresh, then classify. A failed refresh yields None."""
        try:
            table = self.refresh()
        except FeedError as exc:
            logger.warning("%s", exc)
            return None
        return table.classify(ip)
