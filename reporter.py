#!/usr/bin/env python3
"""
Periodic statistics reporter
Samples a StatsCounter on its own timer, independent of the send cadence
"""

import logging
import sys
import threading
from typing import Callable, Optional

from stats_counter import StatsCounter, StatsSnapshot

logger = logging.getLogger(__name__)


def print_snapshot(snapshot: StatsSnapshot):
    """Overwrite the current console line"""
    sys.stdout.write('\r' + snapshot.format_line())
    sys.stdout.flush()


def log_snapshot(snapshot: StatsSnapshot):
    logger.info(snapshot.format_line())


class Reporter:
    """Render a stats snapshot every interval seconds"""

    def __init__(self, stats: StatsCounter, interval: float = 1.0,
                 render: Optional[Callable[[StatsSnapshot], None]] = None):
        self.stats = stats
        self.interval = interval
        self.render = render or print_snapshot
        self._stop = threading.Event()
        self.thread = None

    def start(self):
        self._stop.clear()
        self.thread = threading.Thread(target=self._report_loop, name='stats-reporter', daemon=True)
        self.thread.start()

    def stop(self, final: bool = False):
        self._stop.set()
        if self.thread:
            self.thread.join(timeout=self.interval + 1)
            self.thread = None
        if final:
            self.render(self.stats.snapshot())

    def _report_loop(self):
        while not self._stop.wait(self.interval):
            try:
                self.render(self.stats.snapshot())
            except Exception as e:
                logger.error(f"Stats report failed: {e}")
