"""HTTP collaborator: request/response types, fetchers and the spec blacklist."""

from gadget_container.http.blacklist import Blacklist, PatternBlacklist
from gadget_container.http.fetcher import (
    HttpFetcher,
    HttpRequest,
    HttpResponse,
    RequestsHttpFetcher,
    fetch_all,
)

__all__ = [
    "Blacklist",
    "HttpFetcher",
    "HttpRequest",
    "HttpResponse",
    "PatternBlacklist",
    "RequestsHttpFetcher",
    "fetch_all",
]
