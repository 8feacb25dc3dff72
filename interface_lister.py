#!/usr/bin/env python3
"""
Host interface listing
Diagnostic helper for picking an interface; not used by the send path
"""

import re
import subprocess
import logging
from dataclasses import dataclass, field, asdict
from typing import Dict, List

logger = logging.getLogger(__name__)

_LINK_RE = re.compile(r'^(\d+):\s+([^:@\s]+)(?:@\S+)?:')
_ETHER_RE = re.compile(r'link/\S+\s+([0-9a-f]{2}(?::[0-9a-f]{2}){5})')
_ADDR_RE = re.compile(r'^\d+:\s+(\S+)\s+inet6?\s+(\S+)')


@dataclass
class InterfaceInfo:
    index: int
    name: str
    mac: str = ''
    addresses: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return asdict(self)


def parse_ip_link(output: str) -> List[InterfaceInfo]:
    """Parse `ip -o link show` output"""
    interfaces = []
    for line in output.splitlines():
        match = _LINK_RE.match(line)
        if not match:
            continue
        mac_match = _ETHER_RE.search(line)
        interfaces.append(InterfaceInfo(
            index=int(match.group(1)),
            name=match.group(2),
            mac=mac_match.group(1) if mac_match else ''
        ))
    return interfaces


def parse_ip_addr(output: str) -> Dict[str, List[str]]:
    """Parse `ip -o addr show` output into name -> [address/prefix]"""
    addresses: Dict[str, List[str]] = {}
    for line in output.splitlines():
        match = _ADDR_RE.match(line)
        if match:
            addresses.setdefault(match.group(1), []).append(match.group(2))
    return addresses


def _run_ip(*args: str) -> str:
    result = subprocess.run(['ip', '-o'] + list(args),
                            capture_output=True, text=True, timeout=5)
    if result.returncode != 0:
        raise RuntimeError(result.stderr.strip() or f"ip {' '.join(args)} failed")
    return result.stdout


def list_interfaces() -> List[InterfaceInfo]:
    """Enumerate host interfaces with index, MAC and configured addresses"""
    try:
        interfaces = parse_ip_link(_run_ip('link', 'show'))
        addresses = parse_ip_addr(_run_ip('addr', 'show'))
    except (OSError, RuntimeError, subprocess.TimeoutExpired) as e:
        logger.error(f"Error listing interfaces: {e}")
        return []

    for iface in interfaces:
        iface.addresses = addresses.get(iface.name, [])
    return interfaces


def format_interfaces(interfaces: List[InterfaceInfo]) -> str:
    lines = ["Available network interfaces:"]
    for iface in interfaces:
        lines.append(f"[{iface.index}] {iface.name}")
        lines.append(f"    MAC: {iface.mac}")
        lines.append(f"    Addresses: {', '.join(iface.addresses)}")
    return '\n'.join(lines)
