"""Pytest configuration and fixtures."""

import re

import httpx
import pytest

UPSTREAM_GO_MOD = """\
module example.com/upstream

go 1.21

toolchain go1.21.5

require (
	github.com/pkg/errors v0.9.1
	golang.org/x/mod v0.12.0
	golang.org/x/sync v0.3.0
)

require (
	golang.org/x/sys v0.10.0 // indirect
	golang.org/x/text v0.11.0 // indirect
)

exclude golang.org/x/net v0.1.0

replace github.com/pkg/errors => github.com/pkg/errors v0.9.0

// Published with a broken go.mod.
retract v1.0.1
"""

DOWNSTREAM_GO_MOD = """\
module example.com/fork

go 1.22

require (
	github.com/pkg/errors v0.9.1
	golang.org/x/mod v0.14.0
	golang.org/x/sys v0.15.0
	golang.org/x/text v0.9.0
	github.com/fork/only v1.0.0
)

exclude golang.org/x/crypto v0.1.0

replace golang.org/x/mod => ../mod
"""


def fake_hash(path: str, version: str) -> str:
    """Deterministic stand-in for an h1: hash."""
    return "h1:" + re.sub(r"[^A-Za-z0-9]", "", f"{path}{version}")[-40:] + "="


def record_for(path: str, version: str, record_id: int = 1234) -> bytes:
    """Build a /lookup response body for a module version."""
    text = (
        f"{path} {version} {fake_hash(path, version)}\n"
        f"{path} {version}/go.mod {fake_hash(path, version + '/go.mod')}\n"
    )
    note = "go.sum database tree\n5000\nAAAA=\n\n— sum.golang.org Az3grnmrIbJ=\n"
    return f"{record_id}\n{text}\n{note}".encode("utf-8")


def unescape(value: str) -> str:
    return re.sub(r"!([a-z])", lambda m: m.group(1).upper(), value)


class FakeSumDB:
    """Serves /lookup requests and records every requested path."""

    def __init__(self, failures: dict[str, int] | None = None):
        self.failures = failures or {}
        self.requests: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request.url.path)
        match = re.match(r"^/lookup/(.+)@(.+)$", request.url.path)
        if match is None:
            return httpx.Response(404, request=request, text="not found")

        path, version = unescape(match.group(1)), unescape(match.group(2))
        if path in self.failures:
            return httpx.Response(self.failures[path], request=request, text="failure")
        return httpx.Response(200, request=request, content=record_for(path, version))


@pytest.fixture
def fake_sumdb():
    """Fake checksum database handler."""
    return FakeSumDB()


@pytest.fixture
def go_mod_files(tmp_path):
    """Write upstream and downstream go.mod files."""
    upstream = tmp_path / "upstream.go.mod"
    downstream = tmp_path / "downstream.go.mod"
    upstream.write_text(UPSTREAM_GO_MOD)
    downstream.write_text(DOWNSTREAM_GO_MOD)
    return upstream, downstream


@pytest.fixture
def upstream_text():
    return UPSTREAM_GO_MOD


@pytest.fixture
def downstream_text():
    return DOWNSTREAM_GO_MOD


@pytest.fixture
def sumdb_factory():
    """Build a FakeSumDB with failing module paths mapped to status codes."""
    return FakeSumDB


@pytest.fixture
def record_factory():
    return record_for


@pytest.fixture
def hash_factory():
    return fake_hash
