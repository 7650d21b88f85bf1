"""
Gadget Model

The per-request aggregate built from a gadget's XML spec. A Gadget belongs to
exactly one rendering request and is mutated as it moves through the pipeline.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

DEFAULT_VIEW = "default"
ALL = "all"


@dataclass(frozen=True)
class GadgetId:
    url: str
    module_id: int = 0

    @property
    def key(self) -> str:
        return self.url


@dataclass
class FeatureRequirement:
    """A <Require> or <Optional> declaration and its <Param> values."""

    name: str
    optional: bool = False
    params: Dict[str, str] = field(default_factory=dict)


@dataclass
class UserPref:
    name: str
    display_name: str = ""
    datatype: str = "string"
    default_value: str = ""
    required: bool = False
    enum_values: Dict[str, str] = field(default_factory=dict)


@dataclass
class Preload:
    href: str
    authz: str = "none"
    views: List[str] = field(default_factory=list)

    def applies_to(self, view: str) -> bool:
        return not self.views or view in self.views


@dataclass
class View:
    name: str
    type: str = "html"
    content: str = ""
    href: str = ""
    quirks: bool = True

    @property
    def is_url(self) -> bool:
        return self.type == "url"


@dataclass
class LocaleSpec:
    language: str = ALL
    country: str = ALL
    messages_url: str = ""
    right_to_left: bool = False

    def matches(self, language: str, country: str) -> bool:
        return self.language.lower() == language.lower() and self.country.lower() == country.lower()


@dataclass
class Gadget:
    id: GadgetId
    title: str = ""
    title_url: str = ""
    author: str = ""
    author_email: str = ""
    description: str = ""
    directory_title: str = ""
    screenshot: str = ""
    thumbnail: str = ""
    height: int = 0
    width: int = 0
    requires: Dict[str, FeatureRequirement] = field(default_factory=dict)
    user_prefs: List[UserPref] = field(default_factory=list)
    preloads: List[Preload] = field(default_factory=list)
    views: Dict[str, View] = field(default_factory=dict)
    locale_specs: List[LocaleSpec] = field(default_factory=list)

    # Filled in while rendering
    message_bundle: Dict[str, str] = field(default_factory=dict)
    right_to_left: bool = False
    user_pref_values: Dict[str, str] = field(default_factory=dict)
    js_features: List[str] = field(default_factory=list)
    missing_optional_features: List[str] = field(default_factory=list)
    feature_content: str = ""

    # Metadata fields that go through substitution
    SUBSTITUTED_FIELDS = (
        'title', 'title_url', 'author', 'author_email', 'description',
        'directory_title', 'screenshot', 'thumbnail',
    )

    def locale_spec(self, language: str, country: str) -> Optional[LocaleSpec]:
        for spec in self.locale_specs:
            if spec.matches(language, country):
                return spec
        return None

    def get_view(self, name: Optional[str]) -> Optional[View]:
        """Return the named view, falling back to the default view."""
        if name and name in self.views:
            return self.views[name]
        return self.views.get(DEFAULT_VIEW)

    def required_features(self) -> List[str]:
        return [name for name, req in self.requires.items() if not req.optional]

    def optional_features(self) -> List[str]:
        return [name for name, req in self.requires.items() if req.optional]

    def feature_params(self, name: str) -> Dict[str, str]:
        req = self.requires.get(name)
        return dict(req.params) if req is not None else {}
