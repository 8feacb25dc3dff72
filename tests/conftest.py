"""
Pytest configuration and shared fixtures for ethgen tests
"""
import pytest
import sys
import os
import threading

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from errors import TransportWriteError
from traffic_config import TrafficConfig
from transport import TransportSink


class RecordingSink(TransportSink):
    """Keeps every written frame in memory"""

    def __init__(self, fail_every: int = 0):
        self.frames = []
        self.attempts = 0
        self.fail_every = fail_every
        self.closed = False
        self._lock = threading.Lock()

    def write_frame(self, frame: bytes) -> int:
        with self._lock:
            self.attempts += 1
            if self.fail_every and self.attempts % self.fail_every == 0:
                raise TransportWriteError("injected failure")
            self.frames.append(bytes(frame))
        return len(frame)

    def close(self):
        self.closed = True


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def failing_sink():
    """Every second write fails"""
    return RecordingSink(fail_every=2)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_config():
    """Factory for configs with sane defaults"""
    def _make(**overrides):
        values = {
            'interface': 'eth0',
            'src_mac': 'aa:bb:cc:dd:ee:01',
            'dst_mac': 'aa:bb:cc:dd:ee:02',
            'ether_type': 0x0800,
            'payload_size': 46,
            'rate': 1000,
            'count': 5,
        }
        values.update(overrides)
        return TrafficConfig(**values)
    return _make
