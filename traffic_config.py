#!/usr/bin/env python3
"""
Traffic configuration for the ethgen link-layer generator
Loaded from command line flags, YAML files or JSON API requests
"""

import logging
from dataclasses import dataclass, asdict, fields
from enum import Enum
from typing import Dict, Optional

import yaml

from errors import ConfigurationError

logger = logging.getLogger(__name__)

ETHERTYPE_IPV4 = 0x0800
MAX_VLAN_ID = 0x0FFF


class TrafficMode(Enum):
    """Per-tick shaping strategy"""
    SEQUENTIAL = "sequential"   # identical replay
    RANDOM = "random"           # payload rerandomized every tick
    BURST = "burst"             # ten frames back to back per tick


@dataclass(frozen=True)
class TrafficConfig:
    """Immutable description of the traffic to generate"""
    interface: str
    src_mac: str
    dst_mac: str
    ether_type: int = ETHERTYPE_IPV4
    payload_size: int = 46
    protocol: str = "ipv4"  # informational only
    rate: int = 1000        # packets per second
    count: int = 1000       # 0 = continuous
    mode: TrafficMode = TrafficMode.SEQUENTIAL
    vlan: Optional[int] = None
    pad_short_frames: bool = False

    def __post_init__(self):
        if not isinstance(self.mode, TrafficMode):
            object.__setattr__(self, 'mode', parse_mode(self.mode))
        self.validate()

    @property
    def continuous(self) -> bool:
        return self.count == 0

    def validate(self):
        """Reject configurations the engine cannot run"""
        if not isinstance(self.interface, str) or not self.interface:
            raise ConfigurationError(f"interface must be a non-empty string, got {self.interface!r}")
        if not isinstance(self.protocol, str):
            raise ConfigurationError(f"protocol must be a string, got {self.protocol!r}")
        if not isinstance(self.pad_short_frames, bool):
            raise ConfigurationError(f"pad_short_frames must be true or false, got {self.pad_short_frames!r}")
        if isinstance(self.rate, bool) or not isinstance(self.rate, int):
            raise ConfigurationError(f"rate must be an integer, got {self.rate!r}")
        if self.rate <= 0:
            raise ConfigurationError(f"rate must be positive, got {self.rate}")
        if not isinstance(self.count, int) or self.count < 0:
            raise ConfigurationError(f"count must be >= 0, got {self.count!r}")
        if not isinstance(self.payload_size, int) or self.payload_size < 0:
            raise ConfigurationError(f"payload size must be >= 0, got {self.payload_size!r}")
        if not isinstance(self.ether_type, int) or not 0 <= self.ether_type <= 0xFFFF:
            raise ConfigurationError(f"EtherType must fit in 16 bits, got {self.ether_type!r}")
        if self.vlan is not None:
            if not isinstance(self.vlan, int) or not 0 <= self.vlan <= MAX_VLAN_ID:
                raise ConfigurationError(f"VLAN id must fit in 12 bits, got {self.vlan!r}")

    def to_dict(self) -> Dict:
        data = asdict(self)
        data['mode'] = self.mode.value
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> 'TrafficConfig':
        """
        Build a config from a flat mapping

        Keys may use dashes or underscores. ether_type accepts ints or
        strings like "0x0800"; a vlan of -1 or None means untagged.
        """
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            name = key.replace('-', '_')
            if name not in known:
                raise ConfigurationError(f"unknown configuration option: {key}")
            kwargs[name] = value

        try:
            if 'ether_type' in kwargs:
                kwargs['ether_type'] = parse_int(kwargs['ether_type'])
            for name in ('payload_size', 'rate', 'count'):
                if name in kwargs:
                    kwargs[name] = parse_int(kwargs[name])
            if 'vlan' in kwargs:
                vlan = kwargs['vlan']
                kwargs['vlan'] = None if vlan is None or parse_int(vlan) == -1 else parse_int(vlan)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"invalid numeric option: {e}") from e

        try:
            return cls(**kwargs)
        except TypeError as e:
            # missing required fields
            raise ConfigurationError(str(e)) from e


def parse_mode(value) -> TrafficMode:
    try:
        return TrafficMode(str(value).lower())
    except ValueError:
        choices = ', '.join(m.value for m in TrafficMode)
        raise ConfigurationError(f"unknown traffic mode {value!r} (expected one of: {choices})")


def parse_int(value) -> int:
    """Accept ints and decimal/hex strings ("2048", "0x0800")"""
    if isinstance(value, bool):
        raise ValueError(f"not an integer: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value.strip(), 0)
    raise TypeError(f"not an integer: {value!r}")


def load_config(path: str, overrides: Optional[Dict] = None) -> TrafficConfig:
    """
    Load a TrafficConfig from a YAML file

    The file is either a flat mapping of options or holds them under a
    top-level 'traffic' key. Non-None overrides win over file values.
    """
    try:
        with open(path, 'r') as f:
            raw = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise ConfigurationError(f"config file not found: {path}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"malformed config file {path}: {e}")

    if not isinstance(raw, dict):
        raise ConfigurationError(f"config file {path} must contain a mapping")

    data = dict(raw.get('traffic', raw))
    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})

    config = TrafficConfig.from_dict(data)
    logger.info(f"Loaded traffic configuration from {path}")
    return config
