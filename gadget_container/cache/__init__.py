"""Cache components: in-memory, on-disk and the max-age strategy."""

from gadget_container.cache.cache_strategy import CacheStrategy
from gadget_container.cache.disk_cache import DiskCache
from gadget_container.cache.memory_cache import MemoryCache

__all__ = ["CacheStrategy", "DiskCache", "MemoryCache"]
