"""
Tests for the HTTP collaborator.

Tests RequestsHttpFetcher caching and error mapping, fetch_all ordering and the blacklist.
"""

import threading
import time
from unittest.mock import MagicMock

import pytest
import requests

from gadget_container.cache.memory_cache import MemoryCache
from gadget_container.exceptions import FetchError
from gadget_container.http.blacklist import PatternBlacklist
from gadget_container.http.fetcher import HttpRequest, HttpResponse, RequestsHttpFetcher, fetch_all


def fake_response(status_code=200, content=b"<Module/>", headers=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.content = content
    resp.headers = headers or {"Content-Type": "text/xml"}
    return resp


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


class TestRequestsHttpFetcher:
    """Test RequestsHttpFetcher."""

    def test_successful_fetch(self, session):
        session.request.return_value = fake_response()
        fetcher = RequestsHttpFetcher(session=session, user_agent="test-agent")

        response = fetcher.fetch(HttpRequest(url="http://example.com/gadget.xml"))

        assert response.ok
        assert response.text == "<Module/>"
        _, kwargs = session.request.call_args
        assert kwargs["headers"]["User-Agent"] == "test-agent"
        assert kwargs["timeout"] == 20.0

    def test_transport_error_becomes_504(self, session):
        session.request.side_effect = requests.exceptions.ConnectionError("refused")
        fetcher = RequestsHttpFetcher(session=session)

        response = fetcher.fetch(HttpRequest(url="http://example.com/gadget.xml"))

        assert response.status_code == 504
        assert not response.ok

    def test_ok_responses_are_cached(self, session):
        session.request.return_value = fake_response()
        fetcher = RequestsHttpFetcher(session=session, cache=MemoryCache())

        first = fetcher.fetch(HttpRequest(url="http://example.com/gadget.xml"))
        second = fetcher.fetch(HttpRequest(url="http://example.com/gadget.xml"))

        assert session.request.call_count == 1
        assert first.body == second.body

    def test_cached_body_is_byte_identical(self, session):
        body = "\u00e9t\u00e9".encode("latin-1")
        session.request.return_value = fake_response(content=body)
        fetcher = RequestsHttpFetcher(session=session, cache=MemoryCache())

        fresh = fetcher.fetch(HttpRequest(url="http://example.com/messages/fr_ALL.xml"))
        cached = fetcher.fetch(HttpRequest(url="http://example.com/messages/fr_ALL.xml"))

        assert session.request.call_count == 1
        assert fresh.body == body
        assert cached.body == body

    def test_ignore_cache_refetches(self, session):
        session.request.return_value = fake_response()
        fetcher = RequestsHttpFetcher(session=session, cache=MemoryCache())

        fetcher.fetch(HttpRequest(url="http://example.com/gadget.xml"))
        fetcher.fetch(HttpRequest(url="http://example.com/gadget.xml", ignore_cache=True))

        assert session.request.call_count == 2

    def test_error_responses_not_cached(self, session):
        session.request.return_value = fake_response(status_code=500, content=b"")
        fetcher = RequestsHttpFetcher(session=session, cache=MemoryCache())

        fetcher.fetch(HttpRequest(url="http://example.com/gadget.xml"))
        fetcher.fetch(HttpRequest(url="http://example.com/gadget.xml"))

        assert session.request.call_count == 2

    def test_signed_request_without_signer(self, session):
        fetcher = RequestsHttpFetcher(session=session)
        with pytest.raises(FetchError):
            fetcher.fetch(HttpRequest(url="http://example.com/data", signed=True))
        session.request.assert_not_called()

    def test_signed_request_uses_signer(self, session):
        session.request.return_value = fake_response()

        def signer(request):
            return HttpRequest(url=request.url + "?sig=abc", signed=True)

        fetcher = RequestsHttpFetcher(session=session, signer=signer)
        fetcher.fetch(HttpRequest(url="http://example.com/data", signed=True))

        args, _ = session.request.call_args
        assert args == ("GET", "http://example.com/data?sig=abc")


class TestFetchAll:
    """Test concurrent fetching."""

    def test_preserves_input_order(self):
        class SlowFirstFetcher:
            def fetch(self, request):
                if request.url.endswith("/0"):
                    time.sleep(0.05)
                return HttpResponse(status_code=200, body=request.url.encode())

        urls = [f"http://example.com/{i}" for i in range(5)]
        responses = fetch_all(SlowFirstFetcher(), [HttpRequest(url=u) for u in urls])

        assert [r.text for r in responses] == urls

    def test_runs_concurrently(self):
        barrier = threading.Barrier(3, timeout=5)

        class BarrierFetcher:
            def fetch(self, request):
                barrier.wait()
                return HttpResponse(status_code=200)

        responses = fetch_all(BarrierFetcher(), [HttpRequest(url=f"http://e/{i}") for i in range(3)])
        assert all(r.ok for r in responses)

    def test_empty(self):
        assert fetch_all(MagicMock(), []) == []


class TestHttpResponse:
    """Test HttpResponse helpers."""

    def test_dict_form(self):
        response = HttpResponse(status_code=200, headers={"A": "b"}, body="héllo".encode("utf-8"))
        restored = HttpResponse.from_dict(response.to_dict())
        assert restored == response

    def test_dict_form_keeps_non_utf8_body(self):
        body = "caf\u00e9".encode("latin-1") + b"\xff\xfe"
        response = HttpResponse(status_code=200, body=body)
        assert HttpResponse.from_dict(response.to_dict()).body == body


class TestPatternBlacklist:
    """Test PatternBlacklist."""

    def test_matches_patterns_case_insensitively(self):
        blacklist = PatternBlacklist([r"^https?://evil\.example\.com/", r"\.exe$"])
        assert blacklist.is_blacklisted("http://EVIL.example.com/gadget.xml")
        assert blacklist.is_blacklisted("http://ok.example.com/setup.exe")
        assert not blacklist.is_blacklisted("http://ok.example.com/gadget.xml")

    def test_empty_blacklist(self):
        assert not PatternBlacklist().is_blacklisted("http://anything")

    def test_invalid_pattern(self):
        with pytest.raises(ValueError):
            PatternBlacklist(["(unclosed"])
