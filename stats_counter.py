#!/usr/bin/env python3
"""
Thread-safe transmit statistics
Shared between the send loop and the periodic reporter
"""

import threading
import time
from dataclasses import dataclass, asdict
from typing import Callable, Dict, Optional

# Below this many seconds derived rates are reported as zero
MIN_ELAPSED = 1e-6


@dataclass(frozen=True)
class StatsSnapshot:
    """Point-in-time view of the counters"""
    packets: int
    bytes: int
    errors: int
    elapsed: float
    pps: float
    bps: float

    @property
    def mbps(self) -> float:
        return self.bps / 1_000_000

    def format_line(self) -> str:
        return (f"Packets: {self.packets} | Rate: {self.pps:.2f} pps | "
                f"Bandwidth: {self.mbps:.2f} Mbps | Errors: {self.errors}")

    def to_dict(self) -> Dict:
        data = asdict(self)
        data['mbps'] = self.mbps
        return data


class StatsCounter:
    """Packet, byte and error counters guarded by a single lock"""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self.start_time: Optional[float] = None
        self.packets = 0
        self.bytes = 0
        self.errors = 0

    def start(self):
        """Fix the start timestamp; later calls keep the first one"""
        with self._lock:
            if self.start_time is None:
                self.start_time = self._clock()

    def update(self, nbytes: int, error: Optional[BaseException] = None):
        with self._lock:
            if error is not None:
                self.errors += 1
                return
            self.packets += 1
            self.bytes += nbytes

    def elapsed(self) -> float:
        start = self.start_time
        if start is None:
            return 0.0
        return max(0.0, self._clock() - start)

    def snapshot(self) -> StatsSnapshot:
        with self._lock:
            packets, nbytes, errors = self.packets, self.bytes, self.errors

        elapsed = self.elapsed()
        if elapsed < MIN_ELAPSED:
            pps = bps = 0.0
        else:
            pps = packets / elapsed
            bps = nbytes * 8 / elapsed

        return StatsSnapshot(packets=packets, bytes=nbytes, errors=errors,
                             elapsed=elapsed, pps=pps, bps=bps)
