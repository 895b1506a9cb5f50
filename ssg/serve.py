"""Local web server for previewing a generated site."""

import functools
import http.server
import logging
import socketserver
from pathlib import Path

LOGGER = logging.getLogger(__name__)

DEFAULT_PORT = 6969


class SiteRequestHandler(http.server.SimpleHTTPRequestHandler):
    """Serve files from the output directory, logging through ``logging``."""

    def log_message(self, format, *args):
        LOGGER.debug("%s - %s", self.address_string(), format % args)


class _ThreadingServer(socketserver.ThreadingMixIn, socketserver.TCPServer):
    allow_reuse_address = True
    daemon_threads = True


def build_server(output_dir: Path, port: int = DEFAULT_PORT, host: str = "") -> socketserver.TCPServer:
    handler = functools.partial(SiteRequestHandler, directory=str(output_dir))
    return _ThreadingServer((host, port), handler)


def serve_site(output_dir: Path, port: int = DEFAULT_PORT) -> None:
    """
    Serve ``output_dir`` over HTTP until interrupted.

    Args:
        output_dir: Root of a generated site
        port: HTTP server port
    """
    if not output_dir.is_dir():
        raise FileNotFoundError(f"Output directory not found: {output_dir}")

    with build_server(output_dir, port) as httpd:
        LOGGER.info("Serving %s on http://localhost:%d", output_dir, port)
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            LOGGER.info("Server stopped.")
