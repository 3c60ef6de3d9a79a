# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Progress reporting for long-running phases.

Engine and rewrite components receive a reporter explicitly instead of
writing to the console themselves. NullProgressReporter is the default
for library use; LoggingProgressReporter reports through the logger.
"""

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class ProgressReporter(ABC):
    """Receives phase start, per-item and phase end notifications."""

    @abstractmethod
    def start(self, phase: str, total: int) -> None:
        pass

    @abstractmethod
    def advance(self, phase: str, index: int, total: int, item: str) -> None:
        """Report that item number index (1-based) of total is being processed."""
        pass

    @abstractmethod
    def finish(self, phase: str) -> None:
        pass


class NullProgressReporter(ProgressReporter):
    def start(self, phase: str, total: int) -> None:
        pass

    def advance(self, phase: str, index: int, total: int, item: str) -> None:
        pass

    def finish(self, phase: str) -> None:
        pass


class LoggingProgressReporter(ProgressReporter):
    """Logs phase boundaries at INFO and items at DEBUG."""

    def __init__(self, log: logging.Logger = logger):
        self.log = log

    def start(self, phase: str, total: int) -> None:
        self.log.info(f"{phase}: {total} item(s)")

    def advance(self, phase: str, index: int, total: int, item: str) -> None:
        self.log.debug(f"{phase}: [{index}/{total}] {item}")

    def finish(self, phase: str) -> None:
        self.log.info(f"{phase}: done")
