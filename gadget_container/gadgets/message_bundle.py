"""Locale message bundles: <messagebundle><msg name="...">text</msg></messagebundle>."""

from typing import Dict, Iterator, Mapping, Optional
import xml.etree.ElementTree as ET

from gadget_container.exceptions import SpecParserError


class MessageBundle(Mapping[str, str]):
    """Read-only mapping of message name to text."""

    def __init__(self, messages: Optional[Mapping[str, str]] = None) -> None:
        self._messages: Dict[str, str] = dict(messages or {})

    @classmethod
    def parse(cls, xml: str) -> "MessageBundle":
        """
        Parse a message bundle document.

        Raises:
            SpecParserError: Malformed XML or a <msg> without a name
        """
        try:
            doc = ET.fromstring(xml.strip())
        except ET.ParseError as e:
            raise SpecParserError(f"Invalid message bundle XML: {e}") from e

        messages = {}
        for msg in doc.iter('msg'):
            name = msg.get('name')
            if not name:
                raise SpecParserError("Message bundle <msg> is missing its name attribute")
            messages[name] = ''.join(msg.itertext()).strip()
        return cls(messages)

    @classmethod
    def merge(cls, specific: Mapping[str, str], *general: Mapping[str, str]) -> "MessageBundle":
        """Start from ``specific`` and back-fill keys it lacks from each more general bundle in turn."""
        merged = dict(specific)
        for bundle in general:
            for name, text in bundle.items():
                merged.setdefault(name, text)
        return cls(merged)

    def __getitem__(self, name: str) -> str:
        return self._messages[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def to_dict(self) -> Dict[str, str]:
        return dict(self._messages)
