"""Shared fixtures for gadget container tests."""

import threading
from pathlib import Path

import pytest

from gadget_container.http.fetcher import HttpRequest, HttpResponse


class StubFetcher:
    """HttpFetcher that serves canned responses and records every request."""

    def __init__(self):
        self.responses = {}
        self.requests = []
        self._lock = threading.Lock()

    def add(self, url, body, status_code=200):
        self.responses[url] = HttpResponse(status_code=status_code, body=body.encode("utf-8"))

    def fetch(self, request: HttpRequest) -> HttpResponse:
        with self._lock:
            self.requests.append(request)
        return self.responses.get(request.url, HttpResponse(status_code=404))

    def count(self, url):
        return sum(1 for r in self.requests if r.url == url)


@pytest.fixture
def stub_fetcher():
    return StubFetcher()


def write_feature(root: Path, directory: str, xml: str, files=None) -> Path:
    """Write one feature directory under ``root`` and return its descriptor path."""
    feature_dir = root / directory
    feature_dir.mkdir(parents=True, exist_ok=True)
    descriptor = feature_dir / "feature.xml"
    descriptor.write_text(xml, encoding="utf-8")
    for name, content in (files or {}).items():
        (feature_dir / name).write_text(content, encoding="utf-8")
    return descriptor


def write_manifest(root: Path, directories) -> None:
    lines = [f"{root.name}/{d}/feature.xml" for d in directories]
    (root / "features.txt").write_text("\n".join(lines) + "\n", encoding="utf-8")


@pytest.fixture
def feature_root(tmp_path):
    """A small feature tree: core, core.io, rpc and settitle."""
    root = tmp_path / "features"
    write_feature(
        root,
        "core",
        "<feature><name>core</name><gadget><script src=\"core.js\"/></gadget>"
        "<container><script>containerCore();</script></container></feature>",
        {"core.js": "var core = {};"},
    )
    write_feature(
        root,
        "core.io",
        "<feature><name>core.io</name><dependency>core</dependency>"
        "<gadget><script>core.io = {};</script></gadget></feature>",
    )
    write_feature(
        root,
        "rpc",
        "<feature><name>rpc</name><all><script>var rpc = {};</script></all></feature>",
    )
    write_feature(
        root,
        "settitle",
        "<feature><name>settitle</name><dependency>rpc</dependency>"
        "<gadget><script>setTitle();</script></gadget></feature>",
    )
    write_manifest(root, ["core", "core.io", "rpc", "settitle"])
    return root


@pytest.fixture
def make_feature():
    return write_feature


@pytest.fixture
def make_manifest():
    return write_manifest
