"""
Feature Loader

Discovers feature descriptors listed in each root's ``features.txt`` manifest,
parses them into FeatureDescriptor records and hands the result to the
dependency resolver to build the registry.
"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union
from urllib.parse import urlparse
import logging
import xml.etree.ElementTree as ET

from gadget_container.exceptions import FeatureDescriptorError
from gadget_container.features.descriptor import FeatureContext, FeatureDescriptor, ScriptEntry
from gadget_container.features.registry import DependencyResolver, Registry
from gadget_container.logging_config import get_logger

MANIFEST_NAME = "features.txt"
DESCRIPTOR_NAME = "feature.xml"
RESOURCE_PATH = "/gadgets/resources/"


def manifest_sort_key(line: str) -> str:
    """Sort key for a manifest line: the descriptor's parent directory name, case-folded."""
    stripped = line.strip().replace("\\", "/")
    if stripped.endswith("/" + DESCRIPTOR_NAME):
        stripped = stripped[: -len(DESCRIPTOR_NAME) - 1]
    return stripped.rsplit("/", 1)[-1].lower()


def is_descriptor_reference(line: str) -> bool:
    stripped = line.strip()
    if not stripped or stripped.startswith("#") or stripped.startswith("//"):
        return False
    return DESCRIPTOR_NAME in stripped


class FeatureLoader:
    """Reads feature manifests and descriptor files."""

    def __init__(
        self,
        resource_host: str = "localhost",
        secure: bool = False,
        resolver: Optional[DependencyResolver] = None,
        logger: Optional[logging.Logger] = None
    ) -> None:
        """
        Initialize the feature loader.

        Args:
            resource_host: Host used to rewrite ``res://`` script locations
            secure: Rewrite ``res://`` locations to https instead of http
            resolver: Dependency resolver used to build the registry
            logger: Optional logger instance
        """
        self.logger = logger or get_logger(__name__)
        self.resource_host = resource_host or "localhost"
        self.secure = secure
        self.resolver = resolver or DependencyResolver(logger=self.logger)

    @property
    def resource_base(self) -> str:
        """Prefix that ``res://`` script locations are rewritten to."""
        scheme = 'https' if self.secure else 'http'
        return f"{scheme}://{self.resource_host}{RESOURCE_PATH}"

    def load_all(self, roots: Sequence[Union[str, Path]]) -> Registry:
        """
        Load every feature under ``roots`` and build the registry.

        Raises:
            FeatureDescriptorError: A descriptor is malformed
            DependencyCycleError: The dependency graph is cyclic
        """
        return self.resolver.build(self.load_descriptors(roots))

    def load_descriptors(self, roots: Sequence[Union[str, Path]]) -> Dict[str, FeatureDescriptor]:
        """
        Parse the descriptors of every root, in manifest order.

        A feature registered by a later root replaces an earlier one of the same
        name but keeps the earlier position.
        """
        features: Dict[str, FeatureDescriptor] = {}
        for root in roots:
            for descriptor_path in self.read_manifest(Path(root)):
                descriptor = self.parse_file(descriptor_path)
                if descriptor is None:
                    continue
                if descriptor.name in features:
                    self.logger.info(
                        "Feature %s redefined by %s",
                        descriptor.name,
                        descriptor_path
                    )
                features[descriptor.name] = descriptor
        return features

    def read_manifest(self, root: Path) -> List[Path]:
        """
        Return the descriptor paths listed in ``root``'s manifest.

        Entries are relative to the root's parent directory, sorted by their
        feature directory name. Blank lines, comments and lines that do not
        reference a descriptor are skipped.
        """
        manifest = root / MANIFEST_NAME
        if not manifest.exists():
            self.logger.warning("No feature manifest at %s", manifest)
            return []

        lines = manifest.read_text(encoding='utf-8').splitlines()
        entries = [line.strip() for line in lines if is_descriptor_reference(line)]
        entries.sort(key=manifest_sort_key)

        paths = []
        for entry in entries:
            path = Path(entry)
            if not path.is_absolute():
                path = root.parent / path
            paths.append(path.resolve())
        return paths

    def parse_file(self, path: Path) -> Optional[FeatureDescriptor]:
        if not path.is_file():
            self.logger.warning("Feature descriptor listed in manifest not found: %s", path)
            return None
        try:
            content = path.read_text(encoding='utf-8')
        except OSError as e:
            self.logger.warning("Could not read feature descriptor %s: %s", path, e)
            return None
        if not content.strip():
            self.logger.warning("Empty feature descriptor: %s", path)
            return None
        return self.parse(content, str(path.parent))

    def parse(self, content: str, base_path: str) -> FeatureDescriptor:
        """
        Parse descriptor XML.

        Args:
            content: Descriptor XML
            base_path: Directory that FILE script entries are relative to

        Raises:
            FeatureDescriptorError: Unparsable XML or missing ``name``
        """
        try:
            doc = ET.fromstring(content)
        except ET.ParseError as e:
            raise FeatureDescriptorError(
                f"Invalid feature descriptor XML in {base_path}: {e}",
                context={'base_path': base_path}
            ) from e

        name_elem = doc.find('name')
        name = (name_elem.text or '').strip() if name_elem is not None else ''
        if not name:
            self.logger.error("Feature descriptor in %s has no name", base_path)
            raise FeatureDescriptorError(
                f"Invalid name in feature: {base_path}",
                context={'base_path': base_path}
            )

        dependencies: List[str] = []
        for dep_elem in doc.findall('dependency'):
            dep = (dep_elem.text or '').strip()
            if dep and dep not in dependencies:
                dependencies.append(dep)

        all_blocks = doc.findall('all')
        gadget_blocks = doc.findall(FeatureContext.GADGET.value) or all_blocks
        container_blocks = doc.findall(FeatureContext.CONTAINER.value) or all_blocks

        return FeatureDescriptor(
            name=name,
            dependencies=tuple(dependencies),
            gadget_scripts=tuple(self._scripts(gadget_blocks)),
            container_scripts=tuple(self._scripts(container_blocks)),
            base_path=base_path,
        )

    def _scripts(self, blocks: List[ET.Element]) -> List[ScriptEntry]:
        entries = []
        for block in blocks:
            for script in block.findall('script'):
                entries.append(self.classify_script(script))
        return entries

    def classify_script(self, script: ET.Element) -> ScriptEntry:
        src = script.get('src')
        if src is None:
            return ScriptEntry.inline(''.join(script.itertext()))

        location = src.strip()
        url = urlparse(location)
        if not (url.scheme and url.netloc and url.path):
            return ScriptEntry.file(location)
        if url.scheme == 'res':
            return ScriptEntry.url(f"{self.resource_base}{url.netloc}{url.path}")
        if url.scheme in ('http', 'https'):
            return ScriptEntry.url(location)
        return ScriptEntry.file(location)
