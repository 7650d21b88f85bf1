"""Feature registry: descriptors, loading, dependency resolution and script assembly."""

from gadget_container.features.assembler import ContentAssembler
from gadget_container.features.descriptor import (
    FeatureContext,
    FeatureDescriptor,
    ScriptEntry,
    ScriptKind,
)
from gadget_container.features.factory import RegistryFactory
from gadget_container.features.loader import FeatureLoader
from gadget_container.features.minifier import Minifier, RJSMinMinifier
from gadget_container.features.processors import (
    FeatureProcessor,
    JsLibraryProcessor,
    ProcessorRegistry,
)
from gadget_container.features.registry import DependencyResolver, Registry, ResolutionResult

__all__ = [
    "ContentAssembler",
    "DependencyResolver",
    "FeatureContext",
    "FeatureDescriptor",
    "FeatureLoader",
    "FeatureProcessor",
    "JsLibraryProcessor",
    "Minifier",
    "ProcessorRegistry",
    "RJSMinMinifier",
    "Registry",
    "RegistryFactory",
    "ResolutionResult",
    "ScriptEntry",
    "ScriptKind",
]
