#!/usr/bin/env python3
"""
ethgen Traffic Engine
Rate-governed send loop with sequential, random and burst traffic modes
"""

import logging
import random
import threading
import time
from typing import Callable, Dict, Optional

from errors import ConfigurationError, TransportWriteError
from frame_builder import build_frame, header_length
from stats_counter import StatsCounter
from traffic_config import TrafficConfig, TrafficMode
from transport import TransportSink

logger = logging.getLogger(__name__)

BURST_SIZE = 10


class TrafficEngine:
    """Send one prebuilt frame per tick at config.rate ticks per second"""

    def __init__(self, config: TrafficConfig, clock: Callable[[], float] = time.monotonic):
        self.config = config
        self._clock = clock
        self.stop_event = threading.Event()
        self.ticks = 0
        self.frame: Optional[bytes] = None

        self._handlers: Dict[TrafficMode, Callable] = {
            TrafficMode.SEQUENTIAL: self._send_sequential,
            TrafficMode.RANDOM: self._send_random,
            TrafficMode.BURST: self._send_burst,
        }
        missing = set(TrafficMode) - set(self._handlers)
        if missing:
            raise ConfigurationError(f"no handler for traffic modes: {sorted(m.value for m in missing)}")

    @property
    def period(self) -> float:
        return 1.0 / self.config.rate

    def prepare(self) -> bytes:
        """Build the frame up front so construction errors surface before any I/O"""
        if self.frame is None:
            self.frame = build_frame(self.config)
        return self.frame

    def stop(self):
        """Ask the send loop to exit at the next tick boundary"""
        self.stop_event.set()

    def run(self, sink: TransportSink, stats: StatsCounter,
            stop_event: Optional[threading.Event] = None) -> int:
        """
        Blocking send loop

        Builds the frame once, then ticks until config.count ticks have been
        performed (never, when continuous) or the stop event is set. Returns
        the number of ticks performed. Frame construction errors propagate
        before anything is written. Without an external stop_event the
        engine's own event is cleared, so an engine can be run again after
        stop().
        """
        if self.config.rate <= 0:
            raise ConfigurationError(f"rate must be positive, got {self.config.rate}")

        if stop_event is not None:
            self.stop_event = stop_event
        else:
            self.stop_event.clear()

        frame = self.prepare()
        send = self._handlers[self.config.mode]
        period = self.period

        logger.info(f"Sending {len(frame)}-byte frames on {self.config.interface}: "
                    f"mode={self.config.mode.value}, rate={self.config.rate} pps, "
                    f"count={'continuous' if self.config.continuous else self.config.count}")

        stats.start()
        self.ticks = 0
        next_tick = self._clock() + period

        while True:
            delay = next_tick - self._clock()
            if delay > 0:
                if self.stop_event.wait(delay):
                    break
            elif self.stop_event.is_set():
                break

            send(sink, frame, stats)
            self.ticks += 1

            if not self.config.continuous and self.ticks >= self.config.count:
                break

            next_tick += period
            now = self._clock()
            if now > next_tick + period:
                # Fell more than a tick behind; drop the missed ticks
                next_tick = now + period

        logger.info(f"Send loop finished after {self.ticks} ticks")
        return self.ticks

    def _write(self, sink: TransportSink, frame: bytes, stats: StatsCounter):
        try:
            sink.write_frame(frame)
        except TransportWriteError as e:
            logger.debug(f"Write failed: {e}")
            stats.update(len(frame), e)
        else:
            stats.update(len(frame))

    def _send_sequential(self, sink: TransportSink, frame: bytes, stats: StatsCounter):
        self._write(sink, frame, stats)

    def _send_random(self, sink: TransportSink, frame: bytes, stats: StatsCounter):
        offset = header_length(self.config)
        mutated = frame[:offset] + random.randbytes(len(frame) - offset)
        self._write(sink, mutated, stats)

    def _send_burst(self, sink: TransportSink, frame: bytes, stats: StatsCounter):
        for _ in range(BURST_SIZE):
            self._write(sink, frame, stats)


def generate_traffic(sink: TransportSink, config: TrafficConfig, stats: StatsCounter,
                     stop_event: Optional[threading.Event] = None) -> int:
    """Run a TrafficEngine for config until it finishes or is stopped"""
    return TrafficEngine(config).run(sink, stats, stop_event)
