"""Pytest configuration — adds src/ to sys.path and builds synthetic tablet stores."""

import json
import os
import sys
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

# Add src/ to Python path so tests can import from rmsync
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))


def _write_metadata(directory, stem, visible_name, item_type, **extra):
    """Write a .metadata file the way the tablet stores it."""
    record = {
        "deleted": False,
        "lastModified": "1577836800000",
        "metadatamodified": False,
        "modified": False,
        "parent": "",
        "pinned": False,
        "synced": True,
        "type": item_type,
        "version": 1,
        "visibleName": visible_name,
    }
    record.update(extra)
    path = directory / f"{stem}.metadata"
    path.write_text(json.dumps(record))
    return path


@pytest.fixture
def write_metadata():
    return _write_metadata


@pytest.fixture
def xochitl_dir(tmp_path):
    """A tablet store with one collection, one document and one orphan document."""
    base = tmp_path / "xochitl"
    base.mkdir()
    _write_metadata(base, "c0ffee", "Notes", "CollectionType")
    _write_metadata(base, "d0c001", "Report", "DocumentType", parent="c0ffee")
    (base / "d0c001.pdf").write_bytes(b"%PDF-1.4 report")
    _write_metadata(base, "0rphan", "Orphan", "DocumentType")
    return base


class _DripHandler(BaseHTTPRequestHandler):
    """Answers any request with a chunked body written one byte at a time."""

    protocol_version = "HTTP/1.1"
    drips = 20
    interval = 0.2

    def do_GET(self):
        self._drip()

    def do_POST(self):
        self.rfile.read(int(self.headers.get("Content-Length", 0)))
        self._drip()

    def _drip(self):
        self.send_response(200)
        self.send_header("Transfer-Encoding", "chunked")
        self.end_headers()
        try:
            for _ in range(self.drips):
                self.wfile.write(b"1\r\nx\r\n")
                self.wfile.flush()
                time.sleep(self.interval)
            self.wfile.write(b"0\r\n\r\n")
        except (BrokenPipeError, ConnectionResetError):
            pass

    def log_message(self, format, *args):
        pass


@pytest.fixture
def drip_server():
    """Local HTTP server that takes ~4s to finish any response; yields its base URL."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), _DripHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()
