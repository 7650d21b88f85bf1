"""
Registry Factory

Builds the feature registry once per process. With a disk cache configured the
built registry is persisted, keyed by a hash of the feature roots, and reloaded
on the next start instead of re-parsing every descriptor.
"""

import hashlib
import threading
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union
import logging

from gadget_container.features.loader import FeatureLoader
from gadget_container.features.registry import Registry
from gadget_container.logging_config import get_logger

REGISTRY_CACHE_PREFIX = "registry:"


def roots_cache_key(roots: Sequence[Union[str, Path]], resource_base: str = "") -> str:
    """
    Disk cache key for a registry built from ``roots``.

    ``resource_base`` is part of the key because ``res://`` script locations
    are rewritten against it at load time.
    """
    joined = "|".join(str(Path(root).resolve()) for root in roots)
    if resource_base:
        joined += "|" + resource_base
    return REGISTRY_CACHE_PREFIX + hashlib.sha1(joined.encode('utf-8')).hexdigest()


class RegistryFactory:
    """Thread-safe, build-once holder of the process registry."""

    def __init__(
        self,
        loader: Optional[FeatureLoader] = None,
        disk_cache: Optional[object] = None,
        logger: Optional[logging.Logger] = None
    ) -> None:
        self.logger = logger or get_logger(__name__)
        self.loader = loader or FeatureLoader(logger=self.logger)
        self.disk_cache = disk_cache
        self._lock = threading.Lock()
        # (roots, registry), replaced as one value so readers never see a mixed pair
        self._current: Optional[Tuple[Tuple[str, ...], Registry]] = None

    def cache_key(self, roots: Sequence[Union[str, Path]]) -> str:
        return roots_cache_key(roots, self.loader.resource_base)

    def get_registry(self, roots: Sequence[Union[str, Path]]) -> Registry:
        """
        Return the registry for ``roots``, building it on first use.

        Asking for a different set of roots than the current registry was
        built from rebuilds it.

        Raises:
            FeatureDescriptorError: A descriptor is malformed
            DependencyCycleError: The dependency graph is cyclic
        """
        roots_id = tuple(str(root) for root in roots)
        current = self._current
        if current is not None and current[0] == roots_id:
            return current[1]

        with self._lock:
            current = self._current
            if current is not None and current[0] == roots_id:
                return current[1]
            registry = self._load_cached(roots)
            if registry is None:
                registry = self.loader.load_all(roots)
                self._store_cached(roots, registry)
            self._current = (roots_id, registry)
            return registry

    def reset(self, clear_disk: bool = False) -> None:
        """Drop the in-process registry; optionally also the persisted copy."""
        with self._lock:
            if clear_disk and self.disk_cache is not None and self._current is not None:
                self.disk_cache.clear(self.cache_key(self._current[0]))
            self._current = None

    def _load_cached(self, roots: Sequence[Union[str, Path]]) -> Optional[Registry]:
        if self.disk_cache is None:
            return None
        data = self.disk_cache.get(self.cache_key(roots))
        if data is None:
            return None
        try:
            registry = Registry.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            self.logger.warning("Ignoring stale registry cache: %s", e)
            return None
        self.logger.info("Loaded feature registry from cache (%d features)", len(registry))
        return registry

    def _store_cached(self, roots: Sequence[Union[str, Path]], registry: Registry) -> None:
        if self.disk_cache is None:
            return
        try:
            self.disk_cache.set(self.cache_key(roots), registry.to_dict())
        except OSError as e:
            self.logger.warning("Could not persist feature registry: %s", e)
