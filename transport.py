#!/usr/bin/env python3
"""
Transport sinks for generated frames
Raw AF_PACKET injection on a live interface, or a pcap file for offline runs
"""

import logging
import socket
import struct
import threading
import time

from errors import ConfigurationError, TransportWriteError

logger = logging.getLogger(__name__)

PCAP_MAGIC = 0xa1b2c3d4
PCAP_VERSION = (2, 4)
LINKTYPE_ETHERNET = 1
ETH_P_ALL = 0x0003


class TransportSink:
    """Single-writer frame sink"""

    def write_frame(self, frame: bytes) -> int:
        raise NotImplementedError

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class RawSocketSink(TransportSink):
    """Inject frames through a raw packet socket bound to one interface"""

    def __init__(self, interface: str):
        self.interface = interface
        self.socket = None

    def open(self) -> 'RawSocketSink':
        try:
            self.socket = socket.socket(socket.AF_PACKET, socket.SOCK_RAW, socket.htons(ETH_P_ALL))
            self.socket.bind((self.interface, 0))
        except (OSError, AttributeError, TypeError, ValueError) as e:
            # AttributeError: no AF_PACKET on this platform
            if self.socket:
                self.socket.close()
                self.socket = None
            raise ConfigurationError(f"cannot open raw socket on {self.interface}: {e}") from e

        logger.info(f"Opened raw socket on {self.interface}")
        return self

    def write_frame(self, frame: bytes) -> int:
        if self.socket is None:
            raise TransportWriteError(f"socket on {self.interface} is not open")
        try:
            sent = self.socket.send(frame)
        except OSError as e:
            raise TransportWriteError(f"send error on {self.interface}: {e}") from e
        if sent != len(frame):
            raise TransportWriteError(f"short send on {self.interface}: {sent}/{len(frame)} bytes")
        return sent

    def close(self):
        if self.socket:
            self.socket.close()
            self.socket = None
            logger.info(f"Closed raw socket on {self.interface}")


class PcapFileSink(TransportSink):
    """Append every frame to a classic libpcap capture file"""

    def __init__(self, path: str, snaplen: int = 65535, clock=time.time):
        self.path = path
        self.snaplen = snaplen
        self._clock = clock
        self._lock = threading.Lock()
        self._file = None

    def open(self) -> 'PcapFileSink':
        try:
            self._file = open(self.path, 'wb')
            self._file.write(struct.pack('<IHHiIII', PCAP_MAGIC,
                                         PCAP_VERSION[0], PCAP_VERSION[1],
                                         0, 0, self.snaplen, LINKTYPE_ETHERNET))
        except OSError as e:
            raise ConfigurationError(f"cannot open pcap file {self.path}: {e}") from e

        logger.info(f"Writing frames to pcap file {self.path}")
        return self

    def write_frame(self, frame: bytes) -> int:
        ts = self._clock()
        ts_sec = int(ts)
        ts_usec = int((ts - ts_sec) * 1_000_000)
        caplen = min(len(frame), self.snaplen)

        with self._lock:
            if self._file is None:
                raise TransportWriteError(f"pcap file {self.path} is closed")
            try:
                self._file.write(struct.pack('<IIII', ts_sec, ts_usec, caplen, len(frame)))
                self._file.write(frame[:caplen])
            except (OSError, ValueError) as e:
                raise TransportWriteError(f"pcap write error on {self.path}: {e}") from e
        return len(frame)

    def close(self):
        with self._lock:
            if self._file:
                self._file.close()
                self._file = None
