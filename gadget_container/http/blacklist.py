"""Gadget URL blacklist."""

import re
from typing import Iterable, List, Optional, Protocol
import logging

from gadget_container.logging_config import get_logger


class Blacklist(Protocol):
    def is_blacklisted(self, url: str) -> bool:
        ...


class PatternBlacklist:
    """Blacklist backed by a list of regular expressions matched against the full URL."""

    def __init__(self, patterns: Optional[Iterable[str]] = None, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or get_logger(__name__)
        self._patterns: List[re.Pattern] = []
        for pattern in patterns or []:
            try:
                self._patterns.append(re.compile(pattern, re.IGNORECASE))
            except re.error as e:
                raise ValueError(f"Invalid blacklist pattern {pattern!r}: {e}") from e

    def is_blacklisted(self, url: str) -> bool:
        for pattern in self._patterns:
            if pattern.search(url):
                self.logger.info("URL %s matched blacklist pattern %s", url, pattern.pattern)
                return True
        return False
