#!/usr/bin/env python3
"""
Analyzer Web Controller Tests
Exercises the controller behind the HTTP API, plus one real request round trip
"""

import json
import threading
import urllib.request
from functools import partial

import numpy as np
import pytest

try:
    import cv2
    CV2_AVAILABLE = True
except ImportError:
    CV2_AVAILABLE = False

if CV2_AVAILABLE:
    from target_analyzer.utils.config import AnalyzerConfig
    from target_analyzer.web.analyzer_handler import AnalyzerHandler
    from target_analyzer.web.analyzer_web import AnalyzerController, ThreadingHTTPServer


def make_target():
    image = np.full((400, 400, 3), 255, dtype=np.uint8)
    for x, y in [(80, 80), (200, 90), (120, 220)]:
        cv2.circle(image, (x, y), 10, (20, 20, 20), -1)
    return image


@pytest.fixture
def controller(tmp_path):
    config = AnalyzerConfig(str(tmp_path / "analyzer_config.yaml"), create=False)
    config.data['default_image_path'] = str(tmp_path / "default_target.jpg")
    return AnalyzerController(config, background_detection=False)


@pytest.mark.skipif(not CV2_AVAILABLE, reason="opencv not installed")
def test_load_image_calibrates_and_detects(controller):
    success, message = controller.load_image(make_target())

    assert success, message
    state = controller.get_state()
    assert state['has_image']
    assert state['scale_status'] == 'calibrated'
    assert state['detected_count'] >= 3
    assert state['is_processing'] is False


@pytest.mark.skipif(not CV2_AVAILABLE, reason="opencv not installed")
def test_load_undecodable_bytes(controller):
    success, message = controller.load_image_bytes(b"not an image")

    assert not success
    assert controller.get_state()['has_image'] is False


@pytest.mark.skipif(not CV2_AVAILABLE, reason="opencv not installed")
def test_click_mode_and_results(controller):
    controller.load_image(np.full((200, 200, 3), 255, dtype=np.uint8))

    controller.click(20, 20)
    controller.click(50, 60)
    assert controller.get_state()['manual_count'] == 2

    success, _ = controller.set_mode('distance')
    assert success
    controller.click(20, 20)
    controller.click(50, 60)

    results = controller.get_results()
    expected = 50.0 / controller.config.pixels_per_mm
    assert results['distance']['center_distance_mm'] == pytest.approx(round(expected, 2))

    success, _ = controller.set_mode('bogus')
    assert not success
    assert controller.get_state()['mode'] == 'distance'


@pytest.mark.skipif(not CV2_AVAILABLE, reason="opencv not installed")
def test_invalid_inputs_are_refused(controller):
    assert not controller.click('a', None)[0]
    assert not controller.set_bullet_diameter('wide')[0]
    assert not controller.set_bullet_diameter(-1)[0]
    assert controller.set_bullet_diameter(7.62)[0]
    assert controller.get_state()['bullet_diameter_mm'] == pytest.approx(7.62)
    assert not controller.detect()[0]


@pytest.mark.skipif(not CV2_AVAILABLE, reason="opencv not installed")
def test_clear_image(controller):
    controller.load_image(make_target())

    controller.clear_image()

    state = controller.get_state()
    assert not state['has_image']
    assert state['scale_status'] == 'uncalibrated'
    assert state['circles'] == []
    assert controller.get_overlay_jpeg() is None


@pytest.mark.skipif(not CV2_AVAILABLE, reason="opencv not installed")
def test_overlay_jpeg(controller):
    controller.load_image(make_target())

    jpeg = controller.get_overlay_jpeg()

    assert jpeg[:2] == b'\xff\xd8'


@pytest.mark.skipif(not CV2_AVAILABLE, reason="opencv not installed")
def test_save_and_reset_default(controller):
    assert not controller.save_default()[0]

    controller.load_image(make_target())
    success, message = controller.save_default()
    assert success, message

    success, _ = controller.load_startup_image()
    assert success

    controller.reset_default()
    assert not controller.get_state()['has_image']
    assert not controller.load_startup_image()[0]


@pytest.mark.skipif(not CV2_AVAILABLE, reason="opencv not installed")
def test_background_detection(tmp_path):
    config = AnalyzerConfig(str(tmp_path / "cfg.yaml"), create=False)
    controller = AnalyzerController(config, background_detection=True)

    success, message = controller.load_image(make_target())

    assert success
    assert controller.runner.wait(timeout=10)
    assert controller.get_state()['detected_count'] >= 3


@pytest.mark.skipif(not CV2_AVAILABLE, reason="opencv not installed")
def test_http_round_trip(controller):
    server = ThreadingHTTPServer(('127.0.0.1', 0), partial(AnalyzerHandler, controller))
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    base = f"http://127.0.0.1:{server.server_address[1]}"

    try:
        ok, buffer = cv2.imencode('.png', make_target())
        request = urllib.request.Request(f"{base}/api/image", data=buffer.tobytes(), method='POST')
        with urllib.request.urlopen(request, timeout=10) as response:
            body = json.loads(response.read())
        assert body['success'], body

        request = urllib.request.Request(
            f"{base}/api/mode", data=json.dumps({'mode': 'stddev'}).encode('utf-8'), method='POST'
        )
        with urllib.request.urlopen(request, timeout=10) as response:
            body = json.loads(response.read())
        assert body['success']
        assert body['data']['mode'] == 'stddev'

        with urllib.request.urlopen(f"{base}/api/state", timeout=10) as response:
            body = json.loads(response.read())
        assert body['data']['detected_count'] >= 3

        with urllib.request.urlopen(f"{base}/api/results", timeout=10) as response:
            body = json.loads(response.read())
        assert body['data']['message'] == 'Select 2 or more points for group analysis.'

        request = urllib.request.Request(f"{base}/api/nope", data=b"{}", method='POST')
        with urllib.request.urlopen(request, timeout=10) as response:
            body = json.loads(response.read())
        assert body == {'success': False, 'message': 'Unknown API endpoint'}
    finally:
        server.shutdown()
        server.server_close()


@pytest.mark.skipif(not CV2_AVAILABLE, reason="opencv not installed")
@pytest.mark.parametrize("x, y", [(float('nan'), 5), ('inf', 5), (5, '-Infinity')])
def test_non_finite_click_is_refused(controller, x, y):
    controller.load_image(np.full((200, 200, 3), 255, dtype=np.uint8))

    success, _ = controller.click(x, y)

    assert not success
    state = controller.get_state()
    assert state['manual_count'] == 0
    json.dumps(state, allow_nan=False)


@pytest.mark.skipif(not CV2_AVAILABLE, reason="opencv not installed")
def test_oversized_body_is_refused(controller):
    class SmallBodyHandler(AnalyzerHandler):
        max_body_bytes = 64

    server = ThreadingHTTPServer(('127.0.0.1', 0), partial(SmallBodyHandler, controller))
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    base = f"http://127.0.0.1:{server.server_address[1]}"

    try:
        request = urllib.request.Request(f"{base}/api/image", data=b"x" * 200, method='POST')
        with urllib.request.urlopen(request, timeout=10) as response:
            body = json.loads(response.read())
        assert not body['success']
        assert 'too large' in body['message']

        payload = json.dumps({'mode': 'stddev', 'padding': 'y' * 200}).encode('utf-8')
        request = urllib.request.Request(f"{base}/api/mode", data=payload, method='POST')
        with urllib.request.urlopen(request, timeout=10) as response:
            body = json.loads(response.read())
        assert not body['success']
        assert controller.get_state()['mode'] == 'edit'
        assert not controller.get_state()['has_image']
    finally:
        server.shutdown()
        server.server_close()
