"""Registry service: owns the process-wide feature registry and assembler."""

from typing import Any

from gadget_container.cache.cache_strategy import CacheStrategy
from gadget_container.cache.disk_cache import DiskCache
from gadget_container.cache.memory_cache import MemoryCache
from gadget_container.config_manager import ConfigManager
from gadget_container.features.assembler import ContentAssembler
from gadget_container.features.descriptor import FeatureContext
from gadget_container.features.factory import RegistryFactory
from gadget_container.features.loader import FeatureLoader
from gadget_container.features.registry import Registry
from gadget_container.http.fetcher import RequestsHttpFetcher


class RegistryService:
    """Class-level holder of the registry, fetcher and content assembler."""

    _config_manager: ConfigManager = None
    _factory: RegistryFactory = None
    _registry: Registry = None
    _fetcher: RequestsHttpFetcher = None
    _assembler: ContentAssembler = None

    @classmethod
    def init(cls, config_manager: ConfigManager | None = None) -> None:
        cls._config_manager = config_manager or ConfigManager()
        config = cls._config_manager.get_config()
        features_config = config.get("features", {})
        http_config = config.get("http", {})
        cache_config = config.get("cache", {})

        cls._fetcher = RequestsHttpFetcher(
            timeout=float(http_config.get("timeout", 20)),
            cache=MemoryCache(max_size=int(cache_config.get("memory_max_size", 1000))),
            strategy=CacheStrategy(cache_config),
            user_agent=http_config.get("user_agent", "gadget-container"),
        )

        disk_cache = None
        if cache_config.get("registry_cache", True):
            disk_cache = DiskCache(cls._config_manager.get_cache_directory())
        loader = FeatureLoader(
            resource_host=features_config.get("resource_host", ""),
            secure=bool(features_config.get("secure", False)),
        )
        cls._factory = RegistryFactory(loader=loader, disk_cache=disk_cache)
        cls._registry = cls._factory.get_registry(cls._config_manager.get_feature_paths())

        cls._assembler = ContentAssembler(
            registry=cls._registry,
            fetcher=cls._fetcher,
            cache=MemoryCache(max_size=None),
            compress=bool(features_config.get("compress_javascript", True)),
            max_workers=int(http_config.get("max_workers", 8)),
        )

    @classmethod
    def get_config(cls) -> dict[str, Any]:
        return cls._config_manager.get_config()

    @classmethod
    def get_registry(cls) -> Registry:
        return cls._registry

    @classmethod
    def get_fetcher(cls) -> RequestsHttpFetcher:
        return cls._fetcher

    @classmethod
    def get_assembler(cls) -> ContentAssembler:
        return cls._assembler

    @classmethod
    def list_features(cls) -> list[dict[str, Any]]:
        registry = cls._registry
        result = []
        for name in registry.topological_order:
            descriptor = registry.get(name)
            result.append(
                {
                    "name": name,
                    "core": descriptor.is_core,
                    "dependencies": list(descriptor.dependencies),
                    "gadget_scripts": len(descriptor.gadget_scripts),
                    "container_scripts": len(descriptor.container_scripts),
                }
            )
        return result

    @classmethod
    def resolve(cls, names: list[str]) -> dict[str, list[str]]:
        result = cls._registry.resolve(names)
        return {"found": list(result.found), "missing": list(result.missing)}

    @classmethod
    def feature_js(
        cls, libs: list[str], context: FeatureContext, ignore_cache: bool = False
    ) -> tuple[str, list[str]]:
        """Concatenated JavaScript for ``libs`` and their dependencies, plus any unknown names."""
        result = cls._registry.resolve(libs)
        if result.missing:
            return "", list(result.missing)
        return cls._assembler.content_for_many(result.found, context, ignore_cache), []

    @classmethod
    def clear_cache(cls) -> None:
        cls._assembler.clear_cache()
