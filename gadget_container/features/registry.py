"""
Feature Registry

The process-wide, immutable view of every registered feature plus the
dependency resolver that builds it.

Build happens once at startup: core features are injected as dependencies of
every ordinary feature, then all features are put in one global topological
order (Kahn's algorithm, ties broken by manifest order). A cycle aborts the
build. Per-request resolution walks the graph depth-first from the requested
names and never mutates the registry.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple
import logging

from gadget_container.exceptions import DependencyCycleError
from gadget_container.features.descriptor import FeatureDescriptor, is_core_name
from gadget_container.logging_config import get_logger

# Features that must not receive the implicit core dependencies.
CORE_EXEMPT_NAMES = frozenset({"glob", "shindig.auth"})

REGISTRY_FORMAT_VERSION = 1


@dataclass(frozen=True)
class ResolutionResult:
    found: Tuple[str, ...]
    missing: Tuple[str, ...]

    @property
    def success(self) -> bool:
        return not self.missing


class Registry:
    """Immutable feature registry. Construct it through ``DependencyResolver.build``."""

    def __init__(
        self,
        features: Mapping[str, FeatureDescriptor],
        core_feature_names: Tuple[str, ...],
        topological_order: Tuple[str, ...],
        resolver: Optional["DependencyResolver"] = None
    ) -> None:
        self._features = MappingProxyType(dict(features))
        self._core_feature_names = tuple(core_feature_names)
        self._topological_order = tuple(topological_order)
        self._lower_index: Dict[str, str] = {}
        for name in self._features:
            self._lower_index.setdefault(name.lower(), name)
        self._resolver = resolver or DependencyResolver()

    @property
    def features(self) -> Mapping[str, FeatureDescriptor]:
        return self._features

    @property
    def core_feature_names(self) -> Tuple[str, ...]:
        return self._core_feature_names

    @property
    def topological_order(self) -> Tuple[str, ...]:
        return self._topological_order

    def __contains__(self, name: object) -> bool:
        return name in self._features

    def __len__(self) -> int:
        return len(self._features)

    def get(self, name: str) -> Optional[FeatureDescriptor]:
        return self._features.get(name)

    def lookup(self, name: str) -> Optional[str]:
        """Case-insensitive name lookup, as used for dependency matching."""
        return self._lower_index.get(name.lower())

    def resolve(self, needed: Iterable[str]) -> ResolutionResult:
        return self._resolver.resolve(needed, self)

    def sort_features(self, subset: Iterable[str]) -> List[str]:
        """
        Re-express ``subset`` in the registry's global dependency order.

        Names in ``subset`` that are not registered are dropped.
        """
        wanted = set(subset)
        if not wanted:
            return []
        return [name for name in self._topological_order if name in wanted]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': REGISTRY_FORMAT_VERSION,
            'features': [descriptor.to_dict() for descriptor in self._features.values()],
            'core_feature_names': list(self._core_feature_names),
            'topological_order': list(self._topological_order),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Registry":
        if data.get('version') != REGISTRY_FORMAT_VERSION:
            raise ValueError(f"Unsupported registry format version: {data.get('version')}")
        features = {}
        for entry in data['features']:
            descriptor = FeatureDescriptor.from_dict(entry)
            features[descriptor.name] = descriptor
        order = tuple(data['topological_order'])
        if set(order) != set(features):
            raise ValueError("Cached registry order does not cover its features")
        return cls(features, tuple(data['core_feature_names']), order)

    def __repr__(self) -> str:
        return f"Registry({len(self._features)} features, core={list(self._core_feature_names)})"


class DependencyResolver:
    """Builds registries and resolves feature requests against them."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or get_logger(__name__)

    @staticmethod
    def receives_core(name: str) -> bool:
        return not is_core_name(name) and name not in CORE_EXEMPT_NAMES

    def build(self, features: Mapping[str, FeatureDescriptor]) -> Registry:
        """
        Build an immutable registry.

        Args:
            features: Descriptors keyed by name, in manifest order

        Returns:
            The registry

        Raises:
            DependencyCycleError: If the graph, after core injection, is cyclic
        """
        names = list(features)
        core_names = tuple(name for name in names if is_core_name(name))

        injected: Dict[str, FeatureDescriptor] = {}
        for name in names:
            descriptor = features[name]
            if self.receives_core(name):
                descriptor = descriptor.with_dependencies(core_names)
            injected[name] = descriptor

        lower_index: Dict[str, str] = {}
        for name in names:
            lower_index.setdefault(name.lower(), name)

        dependents: Dict[str, List[str]] = {name: [] for name in names}
        in_degree: Dict[str, int] = {}
        for name in names:
            deps = self._known_dependencies(injected[name], lower_index)
            in_degree[name] = len(deps)
            for dep in deps:
                dependents[dep].append(name)

        order: List[str] = []
        pending = dict(in_degree)
        while pending:
            # Every feature ready at the start of a pass is emitted in that pass,
            # in manifest order; features freed during the pass wait for the next one.
            ready = [name for name, count in pending.items() if count == 0]
            if not ready:
                self.logger.error("Feature dependency cycle among %s", sorted(pending))
                raise DependencyCycleError(pending)
            for name in ready:
                order.append(name)
                del pending[name]
                for dependent in dependents[name]:
                    if dependent in pending:
                        pending[dependent] -= 1

        self.logger.info("Built feature registry: %d features, %d core", len(order), len(core_names))
        return Registry(injected, core_names, tuple(order), resolver=self)

    @staticmethod
    def _known_dependencies(descriptor: FeatureDescriptor, lower_index: Mapping[str, str]) -> List[str]:
        known: List[str] = []
        for dep in descriptor.dependencies:
            actual = lower_index.get(dep.lower())
            if actual is not None and actual not in known:
                known.append(actual)
        return known

    def resolve(self, needed: Iterable[str], registry: Registry) -> ResolutionResult:
        """
        Compute the dependency closure of ``needed``.

        An empty request means the core feature set. Each found feature
        appears once, after all of its dependencies.
        """
        requested = list(dict.fromkeys(needed))
        if not requested:
            requested = list(registry.core_feature_names)

        found: List[str] = []
        visited: Set[str] = set()
        missing: List[str] = []
        for name in requested:
            if name not in registry:
                if name not in missing:
                    missing.append(name)
                continue
            self._visit(name, registry, found, visited)

        if missing:
            self.logger.debug("Unresolved features: %s", missing)
        return ResolutionResult(found=tuple(found), missing=tuple(missing))

    def _visit(self, name: str, registry: Registry, found: List[str], visited: Set[str]) -> None:
        if name in visited:
            return
        visited.add(name)
        descriptor = registry.get(name)
        for dep in descriptor.dependencies:
            actual = registry.lookup(dep)
            if actual is None:
                self.logger.debug("Feature %s declares unknown dependency %s", name, dep)
                continue
            self._visit(actual, registry, found, visited)
        found.append(name)
