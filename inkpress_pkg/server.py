"""
Local preview server for a generated site.
"""

import re
import http.server
import socketserver
from functools import partial
from pathlib import Path

DEFAULT_PORT = 3000

ASSET_CACHE = 'public, max-age=31536000'
PAGE_CACHE = 'public, max-age=0'

POST_ROUTE = re.compile(r'^/posts/([^/.]+)/?$')
PAGE_ROUTE = re.compile(r'^/page/(\d+)/?$')


class SiteHandler(http.server.SimpleHTTPRequestHandler):
    """Serve the output root with route mapping and cache headers."""

    def route(self, url_path):
        """Map a request path to a file under the output root, or None."""
        root = Path(self.directory)
        match = POST_ROUTE.match(url_path)
        if match:
            return root / 'posts' / f'{match.group(1)}.html'
        match = PAGE_ROUTE.match(url_path)
        if match:
            return root / 'page' / match.group(1) / 'index.html'

        path = Path(self.translate_path(url_path))
        if path.is_dir():
            path = path / 'index.html'
        return path

    def do_GET(self):
        url_path = self.path.split('?', 1)[0].split('#', 1)[0]
        target = self.route(url_path)
        if target is None or not target.is_file():
            return self.send_not_found()
        self.cache_control = PAGE_CACHE if target.suffix == '.html' else ASSET_CACHE
        self.path = '/' + target.relative_to(self.directory).as_posix()
        return http.server.SimpleHTTPRequestHandler.do_GET(self)

    def send_not_found(self):
        not_found = Path(self.directory) / '404.html'
        body = not_found.read_bytes() if not_found.is_file() else b'Not Found'
        self.send_response(404)
        self.send_header('Content-Type', 'text/html; charset=utf-8')
        self.send_header('Content-Length', str(len(body)))
        self.cache_control = PAGE_CACHE
        self.end_headers()
        self.wfile.write(body)

    def end_headers(self):
        cache_control = getattr(self, 'cache_control', None)
        if cache_control:
            self.send_header('Cache-Control', cache_control)
        http.server.SimpleHTTPRequestHandler.end_headers(self)


def serve(output_dir, port=DEFAULT_PORT):
    """Serve ``output_dir`` until interrupted."""
    directory = str(Path(output_dir).resolve())
    handler = partial(SiteHandler, directory=directory)

    with socketserver.TCPServer(("", port), handler) as httpd:
        print(f"Serving {directory} at http://localhost:{port}")
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            pass
