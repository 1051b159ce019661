"""
System hosts file manager for Make Your Choice.

Owns a sentinel-delimited section of the OS hosts file and rewrites it to
steer the game's server discovery.
- Idempotent: re-applying the same selection leaves the file unchanged.
- Scoped: content outside our section is never rewritten, except when the
  operator explicitly clears conflicting lines or restores the default file.
- Recoverable: the previous file is copied to a sibling `.bak` before writes.

Note: Modifying the hosts file requires administrator/root privileges.
Write failures propagate as OSError (usually PermissionError); the UI turns
them into instructions for running elevated.
"""

from __future__ import annotations

import logging
import os
import platform
import shutil
import subprocess
from pathlib import Path
from typing import Iterable, List, Optional, Set

from mychoice.config import default_hosts_path
from mychoice.conflicts import find_conflicts, remove_lines
from mychoice.errors import ValidationError
from mychoice.hosts_section import SectionState, replace_section, section_inner, section_state
from mychoice.policies import NULL_ROUTE, Resolver, build_gatekeep, build_universal_redirect, resolve_ipv4
from mychoice.regions import ApplyMode, BlockMode, RegionCatalog

logger = logging.getLogger(__name__)

UNIX_DEFAULT_HOSTS = """# Static table lookup for hostnames.
# See hosts(5) for details.
127.0.0.1        localhost
::1              localhost
"""

WINDOWS_DEFAULT_HOSTS = """# Copyright (c) 1993-2009 Microsoft Corp.
#
# This is a sample HOSTS file used by Microsoft TCP/IP for Windows.
#
# This file contains the mappings of IP addresses to host names. Each
# entry should be kept on an individual line. The IP address should
# be placed in the first column followed by the corresponding host name.
# The IP address and the host name should be separated by at least one
# space.
#
# Additionally, comments (such as these) may be inserted on individual
# lines or following the machine name denoted by a '#' symbol.
#
# For example:
#
#      102.54.94.97     rhino.acme.com          # source server
#       38.25.63.10     x.acme.com              # x client host

# localhost name resolution is handled within DNS itself.
#	127.0.0.1       localhost
#	::1             localhost
"""


class HostsManager:
    def __init__(
        self,
        hosts_path: Optional[Path] = None,
        resolver: Resolver = resolve_ipv4,
        help_url: Optional[str] = None,
        flush_cache: bool = True,
    ):
        self.hosts_path = Path(hosts_path) if hosts_path else default_hosts_path()
        self.backup_path = self.hosts_path.with_name(self.hosts_path.name + ".bak")
        self.resolver = resolver
        self.help_url = help_url
        self.flush_cache = flush_cache

    def read_hosts(self) -> str:
        """Current file content; an unreadable or missing file reads as empty."""
        try:
            with self.hosts_path.open("r", encoding="utf-8", errors="surrogateescape", newline="") as fh:
                return fh.read()
        except FileNotFoundError:
            return ""
        except OSError as exc:
            logger.warning("Could not read %s: %s", self.hosts_path, exc)
            return ""

    def write_hosts(self, content: str) -> None:
        self._backup()
        # Line endings and undecodable bytes are written back as they were read.
        with self.hosts_path.open("w", encoding="utf-8", errors="surrogateescape", newline="") as fh:
            fh.write(content)
        logger.info("Wrote %s (%d bytes)", self.hosts_path, len(content))
        if self.flush_cache:
            self.flush_dns()

    def _backup(self) -> None:
        if not self.hosts_path.exists():
            return
        try:
            shutil.copyfile(self.hosts_path, self.backup_path)
        except OSError as exc:
            logger.debug("Backup to %s failed: %s", self.backup_path, exc)

    def write_section(self, inner: str) -> None:
        self.write_hosts(replace_section(self.read_hosts(), inner))

    def apply_gatekeep(
        self,
        catalog: RegionCatalog,
        selected: Iterable[str],
        block_mode: BlockMode = BlockMode.BOTH,
        merge_unstable: bool = True,
    ) -> None:
        content = build_gatekeep(catalog, selected, block_mode, merge_unstable, self.help_url)
        self.write_section(content)

    def apply_universal_redirect(self, catalog: RegionCatalog, selected: Iterable[str]) -> None:
        content = build_universal_redirect(catalog, selected, self.resolver, self.help_url)
        self.write_section(content)

    def apply(
        self,
        catalog: RegionCatalog,
        selected: Iterable[str],
        mode: ApplyMode,
        block_mode: BlockMode = BlockMode.BOTH,
        merge_unstable: bool = True,
    ) -> None:
        if mode == ApplyMode.GATEKEEP:
            self.apply_gatekeep(catalog, selected, block_mode, merge_unstable)
        elif mode == ApplyMode.UNIVERSAL_REDIRECT:
            self.apply_universal_redirect(catalog, selected)
        else:
            raise ValidationError(f"Unknown apply mode: {mode!r}")

    def revert(self) -> None:
        """Remove our section; the rest of the file is left as is."""
        self.write_section("")

    def restore_default(self) -> None:
        if platform.system().lower() == "windows":
            self.write_hosts(WINDOWS_DEFAULT_HOSTS)
        else:
            self.write_hosts(UNIX_DEFAULT_HOSTS)

    def section_state(self) -> SectionState:
        return section_state(self.read_hosts())

    def blocked_hostnames(self) -> Set[str]:
        """Hostnames null-routed inside a complete managed section."""
        blocked: Set[str] = set()
        inner = section_inner(self.read_hosts())
        if inner is None:
            return blocked
        for raw in inner.splitlines():
            parts = raw.split()
            if len(parts) < 2 or parts[0] != NULL_ROUTE:
                continue
            blocked.update(host.lower() for host in parts[1:])
        return blocked

    def detect_conflicts(self, catalog: RegionCatalog) -> List[str]:
        return find_conflicts(self.read_hosts(), catalog.managed_hostnames())

    def clear_conflicts(self, conflicts: Iterable[str]) -> None:
        conflicts = list(conflicts)
        if not conflicts:
            return
        original = self.read_hosts()
        cleaned = remove_lines(original, conflicts)
        if cleaned != original:
            self.write_hosts(cleaned)

    def is_writable(self) -> bool:
        target = self.hosts_path if self.hosts_path.exists() else self.hosts_path.parent
        return os.access(target, os.W_OK)

    def flush_dns(self) -> None:
        """Best-effort resolver cache flush so changes take effect sooner.

        - macOS: dscacheutil + mDNSResponder
        - Windows: ipconfig /flushdns
        - Linux: resolvectl, systemd-resolve, nscd (whichever exist)
        """
        system = platform.system().lower()
        if system == "darwin":
            commands = [
                ["/usr/bin/dscacheutil", "-flushcache"],
                ["/usr/bin/killall", "-HUP", "mDNSResponder"],
            ]
        elif system == "windows":
            commands = [["ipconfig", "/flushdns"]]
        else:
            commands = [
                ["resolvectl", "flush-caches"],
                ["systemd-resolve", "--flush-caches"],
                ["nscd", "-i", "hosts"],
            ]
        for cmd in commands:
            try:
                subprocess.run(cmd, check=False, capture_output=True, timeout=10)
            except (OSError, subprocess.SubprocessError) as exc:
                logger.debug("Cache flush %s failed: %s", cmd[0], exc)
