"""
Feature Processors

Each resolved feature gets a processor with a ``prepare`` and a ``process``
step. The pipeline runs ``prepare`` for every feature before any feature's
``process`` so processors can rely on each other's preparation.
"""

from typing import Any, Callable, Dict, Optional, Protocol
import logging

from gadget_container.logging_config import get_logger


class FeatureProcessor(Protocol):
    def prepare(self, gadget: Any, context: Any, params: Dict[str, str]) -> None:
        ...

    def process(self, gadget: Any, context: Any, params: Dict[str, str]) -> None:
        ...


ProcessorFactory = Callable[[str], FeatureProcessor]


class JsLibraryProcessor:
    """Default processor: marks the feature's JavaScript for inclusion."""

    def __init__(self, feature_name: str) -> None:
        self.feature_name = feature_name

    def prepare(self, gadget: Any, context: Any, params: Dict[str, str]) -> None:
        pass

    def process(self, gadget: Any, context: Any, params: Dict[str, str]) -> None:
        if self.feature_name not in gadget.js_features:
            gadget.js_features.append(self.feature_name)


class ProcessorRegistry:
    """Maps feature names to processor factories."""

    def __init__(
        self,
        default_factory: Optional[ProcessorFactory] = None,
        logger: Optional[logging.Logger] = None
    ) -> None:
        self.logger = logger or get_logger(__name__)
        self.default_factory = default_factory or JsLibraryProcessor
        self._factories: Dict[str, ProcessorFactory] = {}

    def register(self, feature_name: str, factory: ProcessorFactory) -> None:
        if feature_name in self._factories:
            self.logger.info("Replacing processor for feature %s", feature_name)
        self._factories[feature_name] = factory

    def unregister(self, feature_name: str) -> bool:
        return self._factories.pop(feature_name, None) is not None

    def is_registered(self, feature_name: str) -> bool:
        return feature_name in self._factories

    def create(self, feature_name: str) -> FeatureProcessor:
        """Return a fresh processor instance for ``feature_name``."""
        factory = self._factories.get(feature_name, self.default_factory)
        return factory(feature_name)
