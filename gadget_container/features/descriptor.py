"""
Feature Descriptor

Immutable records for one feature's metadata: its name, declared dependencies
and the script entries it contributes to each rendering context.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, Tuple


class FeatureContext(str, Enum):
    """Which of a feature's two script lists applies."""

    GADGET = "gadget"
    CONTAINER = "container"


class ScriptKind(str, Enum):
    INLINE = "inline"
    FILE = "file"
    URL = "url"


@dataclass(frozen=True)
class ScriptEntry:
    """
    One script of a feature.

    ``content`` holds the literal source for INLINE entries, a path relative
    to the feature's base path for FILE entries and an absolute URL for URL entries.
    """

    kind: ScriptKind
    content: str

    @classmethod
    def inline(cls, source: str) -> "ScriptEntry":
        return cls(ScriptKind.INLINE, source)

    @classmethod
    def file(cls, path: str) -> "ScriptEntry":
        return cls(ScriptKind.FILE, path)

    @classmethod
    def url(cls, url: str) -> "ScriptEntry":
        return cls(ScriptKind.URL, url)

    def to_dict(self) -> Dict[str, str]:
        return {'kind': self.kind.value, 'content': self.content}

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> "ScriptEntry":
        return cls(ScriptKind(data['kind']), data['content'])


@dataclass(frozen=True)
class FeatureDescriptor:
    name: str
    dependencies: Tuple[str, ...] = ()
    gadget_scripts: Tuple[ScriptEntry, ...] = ()
    container_scripts: Tuple[ScriptEntry, ...] = ()
    base_path: str = ""

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Feature name must be non-empty")

    @property
    def is_core(self) -> bool:
        return is_core_name(self.name)

    def scripts_for(self, context: FeatureContext) -> Tuple[ScriptEntry, ...]:
        if FeatureContext(context) is FeatureContext.CONTAINER:
            return self.container_scripts
        return self.gadget_scripts

    def with_dependencies(self, extra: Iterable[str]) -> "FeatureDescriptor":
        """Return a copy whose dependencies also include ``extra`` (existing names are not duplicated)."""
        deps = list(self.dependencies)
        for dep in extra:
            if dep not in deps:
                deps.append(dep)
        if len(deps) == len(self.dependencies):
            return self
        return replace(self, dependencies=tuple(deps))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'dependencies': list(self.dependencies),
            'gadget_scripts': [s.to_dict() for s in self.gadget_scripts],
            'container_scripts': [s.to_dict() for s in self.container_scripts],
            'base_path': self.base_path,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FeatureDescriptor":
        return cls(
            name=data['name'],
            dependencies=tuple(data.get('dependencies', [])),
            gadget_scripts=tuple(ScriptEntry.from_dict(s) for s in data.get('gadget_scripts', [])),
            container_scripts=tuple(ScriptEntry.from_dict(s) for s in data.get('container_scripts', [])),
            base_path=data.get('base_path', ''),
        )


CORE_PREFIX = "core"


def is_core_name(name: str) -> bool:
    return name.lower().startswith(CORE_PREFIX)
