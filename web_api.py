#!/usr/bin/env python3
"""
ethgen Web API Backend
RESTful API for starting, stopping and monitoring a traffic generation job
"""

from flask import Flask, request, jsonify
from flask_cors import CORS
import threading
import logging
from typing import Dict, Optional

from errors import TrafficGenError
from interface_lister import list_interfaces
from stats_counter import StatsCounter
from traffic_config import TrafficConfig
from traffic_engine import TrafficEngine
from transport import TransportSink, RawSocketSink, PcapFileSink

logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)


def open_sink(config: TrafficConfig, pcap_file: Optional[str] = None) -> TransportSink:
    """Open the sink a job writes to"""
    if pcap_file:
        return PcapFileSink(pcap_file).open()
    return RawSocketSink(config.interface).open()


class TrafficJob:
    """One engine run in a background thread"""

    def __init__(self, config: TrafficConfig):
        self.config = config
        self.sink: Optional[TransportSink] = None
        self.stats = StatsCounter()
        self.engine = TrafficEngine(config)
        self.engine.prepare()
        self.error: Optional[str] = None
        self.stop_event = threading.Event()
        self.thread = threading.Thread(target=self._run, name='traffic-engine', daemon=True)

    def start(self, sink: TransportSink):
        self.sink = sink
        self.thread.start()

    def _run(self):
        try:
            self.engine.run(self.sink, self.stats, self.stop_event)
        except TrafficGenError as e:
            logger.error(f"Traffic job failed: {e}")
            self.error = str(e)
        finally:
            self.sink.close()

    @property
    def running(self) -> bool:
        return self.thread.is_alive()

    def stop(self, timeout: float = 2.0):
        self.stop_event.set()
        self.thread.join(timeout=timeout)


current_job: Optional[TrafficJob] = None
job_lock = threading.Lock()


def _job_status() -> Dict:
    job = current_job
    return {
        'running': bool(job and job.running),
        'config': job.config.to_dict() if job else None,
        'error': job.error if job else None
    }


@app.route('/api/status', methods=['GET'])
def get_status():
    """Get generator status"""
    with job_lock:
        status = _job_status()
    return jsonify({'success': True, **status})


@app.route('/api/interfaces', methods=['GET'])
def get_interfaces():
    """Get host network interfaces"""
    interfaces = [iface.to_dict() for iface in list_interfaces()]
    return jsonify({
        'success': True,
        'interfaces': interfaces
    })


@app.route('/api/traffic/start', methods=['POST'])
def start_traffic():
    """Start traffic generation"""
    global current_job
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return jsonify({
            'success': False,
            'error': 'Request body must be a JSON object'
        }), 400
    data = dict(data)
    pcap_file = data.pop('pcap_file', None)

    try:
        config = TrafficConfig.from_dict(data)

        with job_lock:
            if current_job and current_job.running:
                return jsonify({
                    'success': False,
                    'error': 'Traffic generation already running'
                }), 409

            job = TrafficJob(config)
            job.start(open_sink(config, pcap_file))
            current_job = job

        logger.info(f"Started traffic job on {config.interface}")
        return jsonify({
            'success': True,
            'message': 'Traffic generation started',
            'config': config.to_dict()
        })

    except TrafficGenError as e:
        return jsonify({
            'success': False,
            'error': str(e)
        }), 400


@app.route('/api/traffic/stop', methods=['POST'])
def stop_traffic():
    """Stop traffic generation"""
    with job_lock:
        job = current_job
    if job and job.running:
        job.stop()
        if job.running:
            logger.warning("Traffic job did not stop within the timeout")
            return jsonify({
                'success': False,
                'error': 'Traffic generation is still stopping'
            }), 503
        logger.info("Stopped traffic job")

    return jsonify({
        'success': True,
        'message': 'Traffic generation stopped'
    })


@app.route('/api/traffic/stats', methods=['GET'])
def get_traffic_stats():
    """Get traffic statistics"""
    with job_lock:
        job = current_job
        status = _job_status()

    stats = job.stats.snapshot().to_dict() if job else None
    return jsonify({
        'success': True,
        'running': status['running'],
        'stats': stats
    })


def serve(host: str = '0.0.0.0', port: int = 5000):
    print("=" * 60)
    print("ethgen Link-Layer Traffic Generator")
    print("=" * 60)
    print(f"API Endpoints: http://{host}:{port}/api/")
    print("=" * 60)

    app.run(host=host, port=port, debug=False, use_reloader=False)


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
    serve()
