"""
Tests for the Flask control API in web_api.py
"""
import time
from unittest.mock import patch

import pytest

import web_api
from interface_lister import InterfaceInfo
from conftest import RecordingSink

CONFIG = {
    'interface': 'eth0',
    'src_mac': 'aa:bb:cc:dd:ee:01',
    'dst_mac': 'aa:bb:cc:dd:ee:02',
    'rate': 1000,
    'count': 5,
}


@pytest.fixture
def client(monkeypatch):
    sinks = []

    def fake_open_sink(config, pcap_file=None):
        sink = RecordingSink()
        sinks.append(sink)
        return sink

    monkeypatch.setattr(web_api, 'open_sink', fake_open_sink)
    monkeypatch.setattr(web_api, 'current_job', None)
    web_api.app.config['TESTING'] = True
    with web_api.app.test_client() as client:
        client.sinks = sinks
        yield client
    job = web_api.current_job
    if job and job.running:
        job.stop()


def _wait_idle(client, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if not client.get('/api/status').get_json()['running']:
            return
        time.sleep(0.01)
    raise AssertionError("job did not finish")


def test_status_idle(client):
    data = client.get('/api/status').get_json()
    assert data['success']
    assert data['running'] is False
    assert data['config'] is None


def test_bounded_job(client):
    response = client.post('/api/traffic/start', json=CONFIG)
    assert response.status_code == 200
    assert response.get_json()['config']['mode'] == 'sequential'

    _wait_idle(client)
    stats = client.get('/api/traffic/stats').get_json()
    assert stats['running'] is False
    assert stats['stats']['packets'] == 5
    assert stats['stats']['bytes'] == 5 * 60
    assert client.sinks[0].closed


def test_continuous_job_stop(client):
    response = client.post('/api/traffic/start', json=dict(CONFIG, count=0))
    assert response.status_code == 200
    time.sleep(0.05)
    assert client.get('/api/status').get_json()['running'] is True

    conflict = client.post('/api/traffic/start', json=CONFIG)
    assert conflict.status_code == 409

    assert client.post('/api/traffic/stop').get_json()['success']
    assert client.get('/api/status').get_json()['running'] is False
    assert client.get('/api/traffic/stats').get_json()['stats']['packets'] > 0


def test_stop_when_idle(client):
    response = client.post('/api/traffic/stop')
    assert response.status_code == 200


@pytest.mark.parametrize('body', [
    dict(CONFIG, rate=0),
    dict(CONFIG, src_mac='not-a-mac'),
    dict(CONFIG, vlan=5000),
    dict(CONFIG, mode='flood'),
    {'interface': 'eth0'},
    dict(CONFIG, interface=5),
    dict(CONFIG, pad_short_frames='no'),
    [1, 2],
    'abc',
    5,
])
def test_start_rejects_bad_config(client, body):
    response = client.post('/api/traffic/start', json=body)
    assert response.status_code == 400
    data = response.get_json()
    assert data['success'] is False
    assert data['error']
    assert client.sinks == []


def test_stats_without_job(client):
    data = client.get('/api/traffic/stats').get_json()
    assert data['stats'] is None


@patch('web_api.list_interfaces')
def test_interfaces(mock_list, client):
    mock_list.return_value = [InterfaceInfo(2, 'eth0', '02:42:ac:11:00:02', ['172.17.0.2/16'])]
    data = client.get('/api/interfaces').get_json()
    assert data['interfaces'] == [{
        'index': 2,
        'name': 'eth0',
        'mac': '02:42:ac:11:00:02',
        'addresses': ['172.17.0.2/16'],
    }]


def test_open_sink_pcap(tmp_path, make_config):
    sink = web_api.open_sink(make_config(), str(tmp_path / 'api.pcap'))
    try:
        assert sink.write_frame(b'\x00' * 60) == 60
    finally:
        sink.close()


class StuckJob:
    """Job whose engine thread never exits"""
    config = None
    error = None
    running = True

    def __init__(self):
        self.stop_calls = 0

    def stop(self, timeout=2.0):
        self.stop_calls += 1


def test_stop_reports_stuck_job(client, monkeypatch):
    job = StuckJob()
    monkeypatch.setattr(web_api, 'current_job', job)

    response = client.post('/api/traffic/stop')
    assert response.status_code == 503
    data = response.get_json()
    assert data['success'] is False
    assert 'still stopping' in data['error']
    assert job.stop_calls == 1
    monkeypatch.setattr(web_api, 'current_job', None)
