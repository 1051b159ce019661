"""
Startup checks.

- Reports whether the hosts file can be written by this process.
- Notices a half-written managed section (one sentinel, no closing one).
- Collects conflicting entries so the UI can warn before the first apply.
Nothing is written here; repairs happen on the operator's next apply/revert.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from mychoice.hosts_manager import HostsManager
from mychoice.hosts_section import SectionState
from mychoice.regions import RegionCatalog

logger = logging.getLogger(__name__)


@dataclass
class StartupReport:
    writable: bool
    section: SectionState
    conflicts: List[str] = field(default_factory=list)

    @property
    def partial_section(self) -> bool:
        return self.section == SectionState.PARTIAL


class Startup:
    @staticmethod
    def inspect(hosts: HostsManager, catalog: RegionCatalog) -> StartupReport:
        report = StartupReport(
            writable=hosts.is_writable(),
            section=hosts.section_state(),
            conflicts=hosts.detect_conflicts(catalog),
        )
        if not report.writable:
            logger.warning("%s is not writable; run elevated to apply changes", hosts.hosts_path)
        if report.partial_section:
            logger.warning("%s has an unterminated managed section", hosts.hosts_path)
        if report.conflicts:
            logger.info("%d conflicting hosts entries found", len(report.conflicts))
        return report
