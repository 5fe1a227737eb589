from __future__ import annotations

import functools
import logging
import mimetypes
import os
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from threading import Thread
from urllib.parse import unquote, urlparse


logger = logging.getLogger(__name__)

BIND_HOST = "127.0.0.1"
HTML_SCAN_DEPTH = 2
IGNORED_DIRS = {"node_modules"}

mimetypes.add_type("text/javascript", ".js")
mimetypes.add_type("text/css", ".css")
mimetypes.add_type("image/svg+xml", ".svg")


class StaticHandler(BaseHTTPRequestHandler):
    def __init__(self, *args, root: Path, is_single_page_application: bool, **kwargs) -> None:
        self.root = root
        self.is_single_page_application = is_single_page_application
        super().__init__(*args, **kwargs)

    def _bytes(self, payload: bytes, status: int = 200, content_type: str = "application/octet-stream") -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(payload)

    def _send_file(self, path: Path) -> None:
        content_type, _ = mimetypes.guess_type(path.name)
        self._bytes(path.read_bytes(), 200, content_type or "application/octet-stream")

    def _resolve_static(self, request_path: str) -> Path | None:
        target = (self.root / unquote(request_path).lstrip("/")).resolve()
        if target != self.root and self.root not in target.parents:
            return None
        if target.is_dir():
            target = target / "index.html"
        if target.is_file():
            return target
        return None

    def do_GET(self) -> None:
        target = self._resolve_static(urlparse(self.path).path)
        if target:
            return self._send_file(target)

        index_path = self.root / "index.html"
        if self.is_single_page_application and index_path.is_file():
            return self._send_file(index_path)
        return self._bytes(b"Not found", 404, "text/plain")

    def do_HEAD(self) -> None:
        self.do_GET()

    def log_message(self, format: str, *args) -> None:
        logger.debug("fallback server: " + format, *args)


class FallbackServer:
    """
    Minimal static-file server standing in for a site's own web server.

    With `is_single_page_application`, any path that doesn't match a file is
    answered with the root `index.html` so client-side routes resolve.
    """

    def __init__(self, path_to_build_dir: str | os.PathLike[str], is_single_page_application: bool = False) -> None:
        self.path_to_build_dir = Path(path_to_build_dir).resolve()
        self.is_single_page_application = is_single_page_application
        self._httpd: ThreadingHTTPServer | None = None
        self._thread: Thread | None = None

    @property
    def port(self) -> int:
        if self._httpd is None:
            raise RuntimeError("fallback server is not listening")
        return int(self._httpd.server_address[1])

    @property
    def url(self) -> str:
        return f"http://localhost:{self.port}"

    def listen(self) -> None:
        if self._httpd is not None:
            return
        handler = functools.partial(
            StaticHandler,
            root=self.path_to_build_dir,
            is_single_page_application=self.is_single_page_application,
        )
        self._httpd = ThreadingHTTPServer((BIND_HOST, 0), handler)
        self._thread = Thread(target=self._httpd.serve_forever, daemon=True)
        self._thread.start()
        logger.debug("fallback server for %s listening on port %d", self.path_to_build_dir, self.port)

    def close(self) -> None:
        if self._httpd is None:
            return
        self._httpd.shutdown()
        self._httpd.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)
        self._httpd = None
        self._thread = None

    def get_available_urls(self) -> list[str]:
        base = self.url
        return [f"{base}/{path}" for path in read_html_files_in_directory(self.path_to_build_dir)]

    def __enter__(self) -> FallbackServer:
        self.listen()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def read_html_files_in_directory(directory: Path, depth: int = HTML_SCAN_DEPTH) -> list[str]:
    """Return `/`-joined paths of `.html` files under `directory`, descending at most `depth` levels."""
    found: list[str] = []
    for entry in sorted(directory.iterdir()):
        if entry.is_file() and entry.suffix == ".html":
            found.append(entry.name)
        elif entry.is_dir() and depth > 0:
            if entry.name in IGNORED_DIRS or entry.name.startswith("."):
                continue
            found.extend(f"{entry.name}/{child}" for child in read_html_files_in_directory(entry, depth - 1))
    return found
