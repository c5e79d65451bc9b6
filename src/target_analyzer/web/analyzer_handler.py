"""
HTTP request handler for the target analyzer API
"""

import json
import traceback
from http.server import BaseHTTPRequestHandler
from urllib.parse import urlparse

MAX_BODY_BYTES = 32 * 1024 * 1024


class AnalyzerHandler(BaseHTTPRequestHandler):
    """JSON API over an AnalyzerController"""

    max_body_bytes = MAX_BODY_BYTES

    def __init__(self, controller, *args, **kwargs):
        """Initialize handler with controller reference

        Args:
            controller: AnalyzerController instance to use for all operations
        """
        self.controller = controller
        super().__init__(*args, **kwargs)

    def do_GET(self):
        """Handle GET requests"""
        try:
            path = urlparse(self.path).path

            if path == '/api/state':
                self._send_json_response({'success': True, 'data': self.controller.get_state()})
            elif path == '/api/results':
                self._send_json_response({'success': True, 'data': self.controller.get_results()})
            elif path == '/api/overlay.jpg':
                self._serve_overlay()
            else:
                self.send_error(404)
        except Exception as e:
            print(f"ERROR in do_GET({self.path}): {e}")
            traceback.print_exc()
            self.send_error(500)

    def do_POST(self):
        """Handle POST requests for API calls"""
        try:
            path = urlparse(self.path).path

            if path == '/api/image':
                self._handle_image_upload()
            elif path.startswith('/api/'):
                self._handle_api_request(path)
            else:
                self.send_error(404)
        except Exception as e:
            print(f"ERROR in do_POST({self.path}): {e}")
            traceback.print_exc()
            self.send_error(500)

    def _read_body(self) -> bytes:
        content_length = int(self.headers.get('Content-Length', 0))
        if content_length <= 0:
            return b''
        if content_length > self.max_body_bytes:
            self._discard_body(content_length)
            raise ValueError(f"Request body too large ({content_length} bytes, "
                             f"limit {self.max_body_bytes})")
        return self.rfile.read(content_length)

    def _discard_body(self, remaining: int, chunk_size: int = 64 * 1024):
        """Consume a refused body without holding it in memory"""
        while remaining > 0:
            chunk = self.rfile.read(min(chunk_size, remaining))
            if not chunk:
                break
            remaining -= len(chunk)

    def _handle_image_upload(self):
        """Raw image bytes in the request body"""
        try:
            body = self._read_body()
        except ValueError as e:
            print(f"Image upload refused: {e}")
            self._send_json_response({'success': False, 'message': str(e)})
            return
        success, message = self.controller.load_image_bytes(body)
        self._send_json_response({'success': success, 'message': message})

    def _handle_api_request(self, path):
        """Handle JSON API requests"""
        try:
            body = self._read_body()
            data = json.loads(body.decode('utf-8')) if body else {}

            response = {'success': False, 'message': 'Unknown API endpoint'}

            if path == '/api/click':
                success, message = self.controller.click(data.get('x'), data.get('y'))
                response = {'success': success, 'message': message}

            elif path == '/api/mode':
                success, message = self.controller.set_mode(data.get('mode'))
                response = {'success': success, 'message': message}

            elif path == '/api/clear_selection':
                success, message = self.controller.clear_selection()
                response = {'success': success, 'message': message}

            elif path == '/api/detect':
                success, message = self.controller.detect()
                response = {'success': success, 'message': message}

            elif path == '/api/clear_image':
                success, message = self.controller.clear_image()
                response = {'success': success, 'message': message}

            elif path == '/api/bullet_diameter':
                success, message = self.controller.set_bullet_diameter(data.get('diameter'))
                response = {'success': success, 'message': message}

            elif path == '/api/save_default':
                success, message = self.controller.save_default()
                response = {'success': success, 'message': message}

            elif path == '/api/reset_default':
                success, message = self.controller.reset_default()
                response = {'success': success, 'message': message}

            if response['success']:
                response['data'] = self.controller.get_state()

            self._send_json_response(response)

        except Exception as e:
            print(f"API request error: {e}")
            self._send_json_response({'success': False, 'message': str(e)})

    def _serve_overlay(self):
        jpeg = self.controller.get_overlay_jpeg()
        if jpeg is None:
            self.send_error(404, 'No image loaded')
            return
        self.send_response(200)
        self.send_header('Content-Type', 'image/jpeg')
        self.send_header('Content-Length', str(len(jpeg)))
        self.send_header('Cache-Control', 'no-cache')
        self.end_headers()
        self.wfile.write(jpeg)

    def _send_json_response(self, data):
        """Send JSON response"""
        json_data = json.dumps(data).encode('utf-8')
        self.send_response(200)
        self.send_header('Content-Type', 'application/json')
        self.send_header('Content-Length', str(len(json_data)))
        self.send_header('Access-Control-Allow-Origin', '*')
        self.end_headers()
        self.wfile.write(json_data)

    def log_message(self, format, *args):
        """Custom logging"""
        print(f"Web Server: {format % args}")
