"""
HTTP Fetcher

Outbound fetches for gadget specs, message bundles, remote feature scripts and
preloads. Network faults are reported as error responses rather than raised so
callers can decide between fatal and degraded handling by status code.
"""

import base64
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence
import logging

import requests

from gadget_container.cache.cache_strategy import CacheStrategy
from gadget_container.exceptions import FetchError
from gadget_container.logging_config import get_logger

GATEWAY_TIMEOUT = 504


@dataclass(frozen=True)
class HttpRequest:
    url: str
    method: str = "GET"
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    ignore_cache: bool = False
    signed: bool = False

    @property
    def cache_key(self) -> str:
        return f"{self.method}:{self.url}"


@dataclass(frozen=True)
class HttpResponse:
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return self.status_code == 200

    @property
    def text(self) -> str:
        return self.body.decode('utf-8', errors='replace')

    @classmethod
    def error(cls, status_code: int = GATEWAY_TIMEOUT) -> "HttpResponse":
        return cls(status_code=status_code)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status_code': self.status_code,
            'headers': dict(self.headers),
            'body': base64.b64encode(self.body).decode('ascii'),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HttpResponse":
        return cls(
            status_code=int(data['status_code']),
            headers=dict(data.get('headers', {})),
            body=base64.b64decode(data.get('body', '')),
        )


class HttpFetcher(Protocol):
    def fetch(self, request: HttpRequest) -> HttpResponse:
        ...


# A signer receives the outgoing request and returns the request to send instead.
RequestSigner = Callable[[HttpRequest], HttpRequest]


class RequestsHttpFetcher:
    """HttpFetcher built on ``requests`` with an optional response cache."""

    def __init__(
        self,
        timeout: float = 20.0,
        cache: Optional[Any] = None,
        strategy: Optional[CacheStrategy] = None,
        signer: Optional[RequestSigner] = None,
        user_agent: str = "gadget-container",
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None
    ) -> None:
        """
        Initialize the fetcher.

        Args:
            timeout: Per-request timeout in seconds
            cache: Optional cache with get(key, max_age)/set(key, value)
            strategy: Cache strategy used to pick max ages per URL
            signer: Optional request signer applied to ``signed`` requests
            user_agent: User-Agent header sent with every request
            session: Optional requests session (a new one is created otherwise)
            logger: Optional logger instance
        """
        self.logger = logger or get_logger(__name__)
        self.timeout = timeout
        self.cache = cache
        self.strategy = strategy or CacheStrategy()
        self.signer = signer
        self.user_agent = user_agent
        self.session = session or requests.Session()

    def fetch(self, request: HttpRequest) -> HttpResponse:
        if request.signed:
            if self.signer is None:
                raise FetchError(
                    f"Signed fetch requested for {request.url} but no signer is configured",
                    context={'url': request.url}
                )
            request = self.signer(request)

        policy = self.strategy.get_cache_strategy(self.strategy.get_data_type_from_key(request.url))
        use_cache = self.cache is not None and policy['cacheable'] and request.method == "GET"

        if use_cache and not request.ignore_cache:
            cached = self.cache.get(request.cache_key, max_age=policy['max_age'])
            if cached is not None:
                self.logger.debug("Cache hit for %s", request.url)
                return HttpResponse.from_dict(cached)

        headers = {'User-Agent': self.user_agent}
        headers.update(request.headers)
        try:
            resp = self.session.request(
                request.method,
                request.url,
                headers=headers,
                data=request.body,
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            self.logger.warning("Error fetching %s: %s", request.url, e)
            return HttpResponse.error()

        response = HttpResponse(
            status_code=resp.status_code,
            headers=dict(resp.headers),
            body=resp.content
        )
        if use_cache and response.ok:
            self.cache.set(request.cache_key, response.to_dict())
        if not response.ok:
            self.logger.info("Fetch of %s returned HTTP %d", request.url, response.status_code)
        return response


def fetch_all(
    fetcher: HttpFetcher,
    requests_to_send: Sequence[HttpRequest],
    max_workers: int = 8
) -> List[HttpResponse]:
    """
    Issue independent fetches concurrently.

    Args:
        fetcher: Fetcher to use
        requests_to_send: Requests with no ordering dependency among them
        max_workers: Thread pool size

    Returns:
        Responses in the same order as ``requests_to_send``
    """
    if not requests_to_send:
        return []
    if len(requests_to_send) == 1:
        return [fetcher.fetch(requests_to_send[0])]
    with ThreadPoolExecutor(max_workers=min(max_workers, len(requests_to_send))) as executor:
        return list(executor.map(fetcher.fetch, requests_to_send))
