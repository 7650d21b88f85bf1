"""
Content Assembler

Turns a resolved, ordered feature list into the JavaScript payload a gadget
or container page embeds. Script bodies come from inline text, files beside
the descriptor, or remote URLs; compiled (minified) bundles are cached per
feature and context for the life of the cache.
"""

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
import logging

from gadget_container.exceptions import FeatureError, MissingScriptFileError
from gadget_container.features.descriptor import FeatureContext, FeatureDescriptor, ScriptEntry, ScriptKind
from gadget_container.features.minifier import Minifier, RJSMinMinifier
from gadget_container.features.registry import Registry
from gadget_container.http.fetcher import HttpFetcher, HttpRequest, fetch_all
from gadget_container.logging_config import get_logger


class ContentAssembler:
    """Loads, concatenates and optionally minifies feature scripts."""

    def __init__(
        self,
        registry: Registry,
        fetcher: HttpFetcher,
        cache: Optional[Any] = None,
        minifier: Optional[Minifier] = None,
        compress: bool = True,
        max_workers: int = 4,
        logger: Optional[logging.Logger] = None
    ) -> None:
        """
        Initialize the assembler.

        Args:
            registry: Feature registry
            fetcher: Fetcher for URL script entries
            cache: Cache for compiled bundles (get/add/clear); required when compress is on.
                Compiled bundles are expected to live until ``clear_cache``, so pass a
                cache that does not evict, e.g. ``MemoryCache(max_size=None)``
            minifier: Minifier used when compress is on
            compress: Minify and cache assembled feature content
            max_workers: Concurrent fetches for one feature's URL entries
            logger: Optional logger instance
        """
        self.logger = logger or get_logger(__name__)
        self.registry = registry
        self.fetcher = fetcher
        self.cache = cache
        self.minifier = minifier or RJSMinMinifier()
        self.compress = compress and cache is not None
        self.max_workers = max_workers

    @staticmethod
    def cache_key(feature_name: str, context: FeatureContext) -> str:
        return f"features:{feature_name}:{FeatureContext(context).value}"

    def content(self, feature_name: str, context: FeatureContext, ignore_cache: bool = False) -> str:
        """
        Return the assembled script content of one feature.

        Args:
            feature_name: Registered feature name
            context: Rendering context selecting the script list
            ignore_cache: Bypass the HTTP cache for URL entries

        Returns:
            The feature's scripts, newline-terminated, minified when compression is on

        Raises:
            FeatureError: The feature is not registered
            MissingScriptFileError: A file entry cannot be read
        """
        if not feature_name:
            return ''
        descriptor = self.registry.get(feature_name)
        if descriptor is None:
            raise FeatureError(f"Invalid feature: {feature_name}", feature=feature_name)

        context = FeatureContext(context)
        entries = descriptor.scripts_for(context)
        if not entries:
            return ''

        key = self.cache_key(feature_name, context)
        if self.compress:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        source = ''.join(self._load_entries(descriptor, entries, ignore_cache))
        if not self.compress:
            return source

        minified = self.minifier.minify(source)
        return self.cache.add(key, minified)

    def content_for_many(
        self,
        feature_names: Iterable[str],
        context: FeatureContext,
        ignore_cache: bool = False
    ) -> str:
        """Concatenate ``content`` for each name, in the order given."""
        return ''.join(self.content(name, context, ignore_cache) for name in feature_names)

    def clear_cache(self) -> None:
        if self.cache is not None:
            self.cache.clear()
            self.logger.info("Cleared compiled feature cache")

    def _load_entries(
        self,
        descriptor: FeatureDescriptor,
        entries: Iterable[ScriptEntry],
        ignore_cache: bool
    ) -> List[str]:
        entries = list(entries)
        url_indexes = [i for i, entry in enumerate(entries) if entry.kind is ScriptKind.URL]
        fetched: Dict[int, Optional[str]] = {}
        if url_indexes:
            requests_to_send = [
                HttpRequest(url=entries[i].content, ignore_cache=ignore_cache) for i in url_indexes
            ]
            responses = fetch_all(self.fetcher, requests_to_send, self.max_workers)
            for index, response in zip(url_indexes, responses):
                if response.ok:
                    fetched[index] = response.text
                else:
                    self.logger.warning(
                        "Remote script %s for feature %s returned HTTP %d, skipping",
                        entries[index].content,
                        descriptor.name,
                        response.status_code
                    )
                    fetched[index] = None

        parts = []
        for index, entry in enumerate(entries):
            if entry.kind is ScriptKind.INLINE:
                parts.append(entry.content + "\n")
            elif entry.kind is ScriptKind.FILE:
                parts.append(self._read_file(descriptor, entry) + "\n")
            else:
                body = fetched.get(index)
                if body is not None:
                    parts.append(body + "\n")
        return parts

    def _read_file(self, descriptor: FeatureDescriptor, entry: ScriptEntry) -> str:
        path = Path(descriptor.base_path) / entry.content
        try:
            return path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            self.logger.error("Cannot read script %s for feature %s: %s", path, descriptor.name, e)
            raise MissingScriptFileError(str(path), feature=descriptor.name) from e
