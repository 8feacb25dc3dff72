#!/usr/bin/env python3
"""
Ethernet frame builder
Serializes Ethernet II (optionally 802.1Q tagged) frames from a TrafficConfig
"""

import re
import struct

from errors import InvalidAddress, SerializationError
from traffic_config import TrafficConfig

ETHERTYPE_DOT1Q = 0x8100
ETHERTYPE_LLC = 0x0000       # 802.3 frame, type field carries the length
MAX_LLC_LENGTH = 0x0600
ETH_HEADER_LEN = 14
DOT1Q_TAG_LEN = 4
MIN_FRAME_LEN = 60           # without FCS

_MAC_PATTERNS = (
    re.compile(r'^([0-9a-f]{2}):([0-9a-f]{2}):([0-9a-f]{2}):([0-9a-f]{2}):([0-9a-f]{2}):([0-9a-f]{2})$'),
    re.compile(r'^([0-9a-f]{2})-([0-9a-f]{2})-([0-9a-f]{2})-([0-9a-f]{2})-([0-9a-f]{2})-([0-9a-f]{2})$'),
    re.compile(r'^([0-9a-f]{4})\.([0-9a-f]{4})\.([0-9a-f]{4})$'),
)


def parse_mac(text: str, field: str = 'hardware') -> bytes:
    """Parse a 6-octet MAC in colon, dash or dotted notation"""
    if isinstance(text, str):
        candidate = text.strip().lower()
        for pattern in _MAC_PATTERNS:
            match = pattern.match(candidate)
            if match:
                return bytes.fromhex(''.join(match.groups()))
    raise InvalidAddress(field, text)


def header_length(config: TrafficConfig) -> int:
    """Bytes in front of the payload"""
    if config.vlan is not None:
        return ETH_HEADER_LEN + DOT1Q_TAG_LEN
    return ETH_HEADER_LEN


def generate_dot1q_tag(vlan_id: int, inner_type: int, pcp: int = 0, dei: bool = False) -> bytes:
    """802.1Q tag body: TCI followed by the encapsulated EtherType"""
    tci = (pcp << 13) | (int(dei) << 12) | (vlan_id & 0x0FFF)
    return struct.pack('!HH', tci, inner_type)


def build_frame(config: TrafficConfig) -> bytes:
    """
    Build the frame described by config

    Raises InvalidAddress for a malformed source or destination MAC and
    SerializationError when the layers cannot be packed. Never returns a
    partial frame.
    """
    src = parse_mac(config.src_mac, 'source')
    dst = parse_mac(config.dst_mac, 'destination')

    payload = bytes(config.payload_size)

    try:
        if config.vlan is not None:
            header = dst + src + struct.pack('!H', ETHERTYPE_DOT1Q)
            header += generate_dot1q_tag(config.vlan, config.ether_type)
        else:
            type_or_length = config.ether_type
            if type_or_length == ETHERTYPE_LLC:
                type_or_length = len(payload)
                if type_or_length > MAX_LLC_LENGTH:
                    raise SerializationError(f"invalid 802.3 length {type_or_length}")
            header = dst + src + struct.pack('!H', type_or_length)
    except struct.error as e:
        raise SerializationError(f"failed to serialize frame header: {e}") from e

    frame = header + payload
    if config.pad_short_frames and len(frame) < MIN_FRAME_LEN:
        frame += bytes(MIN_FRAME_LEN - len(frame))
    return frame
