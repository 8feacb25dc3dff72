#!/usr/bin/env python3
"""
ethgen - Link-Layer Traffic Generator
Builds raw Ethernet frames and sends them on an interface at a fixed rate
"""

import argparse
import logging
import signal
import sys
import threading
from typing import List, Optional

from errors import TrafficGenError
from interface_lister import list_interfaces, format_interfaces
from reporter import Reporter, print_snapshot, log_snapshot
from stats_counter import StatsCounter
from traffic_config import TrafficConfig, TrafficMode, load_config, parse_int
from traffic_engine import TrafficEngine
from transport import RawSocketSink, PcapFileSink
from web_api import serve

logger = logging.getLogger(__name__)

# flag dest -> TrafficConfig field
CONFIG_FLAGS = {
    'interface': 'interface',
    'src_mac': 'src_mac',
    'dst_mac': 'dst_mac',
    'ether_type': 'ether_type',
    'payload_size': 'payload_size',
    'protocol': 'protocol',
    'rate': 'rate',
    'count': 'count',
    'vlan': 'vlan',
    'mode': 'mode',
    'pad': 'pad_short_frames',
}


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog='ethgen', description='Link-layer traffic generator')
    ap.add_argument('-i', '--interface', help='Network interface name')
    ap.add_argument('--list', action='store_true', help='List available network interfaces')
    ap.add_argument('--src-mac', help='Source MAC address')
    ap.add_argument('--dst-mac', help='Destination MAC address')
    ap.add_argument('--ether-type', type=parse_int, help='EtherType value (default 0x0800)')
    ap.add_argument('--payload-size', type=int, help='Payload size in bytes (default 46)')
    ap.add_argument('--protocol', help='Protocol label (ipv4, ipv6, arp, tcp, udp)')
    ap.add_argument('--rate', type=int, help='Packets per second (default 1000)')
    ap.add_argument('--count', type=int, help='Number of packets to send, 0 for continuous (default 1000)')
    ap.add_argument('--vlan', type=int, help='VLAN ID (-1 to disable)')
    ap.add_argument('--mode', choices=[m.value for m in TrafficMode],
                    help='Traffic mode (default sequential)')
    ap.add_argument('--pad', action='store_const', const=True,
                    help='Pad frames to the 60-byte Ethernet minimum')
    ap.add_argument('--config', help='YAML configuration file; flags override its values')
    ap.add_argument('--pcap', help='Write frames to this pcap file instead of the interface')
    ap.add_argument('--log-stats', action='store_true', help='Report stats through the log')
    ap.add_argument('--serve', action='store_true', help='Run the HTTP control API')
    ap.add_argument('--host', default='0.0.0.0')
    ap.add_argument('--port', type=int, default=5000)
    ap.add_argument('-v', '--verbose', action='store_true')
    return ap


def config_from_args(args: argparse.Namespace) -> TrafficConfig:
    """Merge flags over an optional YAML file"""
    overrides = {field: getattr(args, dest) for dest, field in CONFIG_FLAGS.items()
                 if getattr(args, dest) is not None}
    if args.pcap and not args.config:
        overrides.setdefault('interface', args.pcap)

    if args.config:
        return load_config(args.config, overrides)
    return TrafficConfig.from_dict(overrides)


def run_traffic(config: TrafficConfig, pcap: Optional[str] = None,
                log_stats: bool = False, stop_event: Optional[threading.Event] = None) -> StatsCounter:
    """Open the sink, run the engine with a reporter alongside, close the sink"""
    sink = PcapFileSink(pcap) if pcap else RawSocketSink(config.interface)
    stats = StatsCounter()
    engine = TrafficEngine(config)
    engine.prepare()
    reporter = Reporter(stats, render=log_snapshot if log_stats else print_snapshot)

    with sink.open():
        reporter.start()
        try:
            engine.run(sink, stats, stop_event)
        finally:
            reporter.stop(final=True)
    return stats


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s - %(levelname)s - %(message)s')

    if args.list:
        print(format_interfaces(list_interfaces()))
        return 0

    if args.serve:
        serve(args.host, args.port)
        return 0

    if not args.interface and not args.pcap and not args.config:
        logger.error("Interface name is required")
        return 1

    stop_event = threading.Event()

    def _handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, stopping")
        stop_event.set()

    previous = {}
    if threading.current_thread() is threading.main_thread():
        for signum in (signal.SIGINT, signal.SIGTERM):
            previous[signum] = signal.signal(signum, _handle_signal)

    try:
        config = config_from_args(args)
        run_traffic(config, pcap=args.pcap, log_stats=args.log_stats, stop_event=stop_event)
    except TrafficGenError as e:
        logger.error(f"Error: {e}")
        return 1
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)

    print("\nTraffic generation completed")
    return 0


if __name__ == '__main__':
    sys.exit(main())
