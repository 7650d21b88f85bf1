"""
Spec Parser

Turns gadget XML (<Module><ModulePrefs/><UserPref/><Content/></Module>) into a
Gadget.
"""

from typing import Dict, List, Optional
import logging
import xml.etree.ElementTree as ET

from gadget_container.exceptions import SpecParserError
from gadget_container.gadgets.spec import (
    DEFAULT_VIEW,
    FeatureRequirement,
    Gadget,
    GadgetId,
    LocaleSpec,
    Preload,
    UserPref,
    View,
)
from gadget_container.logging_config import get_logger

CONTENT_TYPES = ('html', 'url')


def _bool_attr(elem: ET.Element, name: str, default: bool) -> bool:
    value = elem.get(name)
    if value is None:
        return default
    return value.strip().lower() == 'true'


def _int_attr(elem: ET.Element, name: str) -> int:
    try:
        return int(elem.get(name, '0'))
    except ValueError:
        return 0


def _split_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(',') if item.strip()]


class SpecParser:
    """Parses gadget spec XML with ElementTree."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or get_logger(__name__)

    def parse(self, xml: str, gadget_id: GadgetId) -> Gadget:
        """
        Parse a gadget spec.

        Args:
            xml: The spec document
            gadget_id: Identity of the gadget being rendered

        Returns:
            The parsed Gadget

        Raises:
            SpecParserError: Malformed XML or missing required elements
        """
        try:
            doc = ET.fromstring(xml.strip())
        except ET.ParseError as e:
            raise SpecParserError(
                f"Invalid gadget XML for {gadget_id.url}: {e}",
                context={'url': gadget_id.url}
            ) from e

        if doc.tag != 'Module':
            raise SpecParserError(f"Gadget XML root must be <Module>, got <{doc.tag}>")

        prefs = doc.findall('ModulePrefs')
        if len(prefs) != 1:
            raise SpecParserError("Gadget XML must contain exactly one <ModulePrefs>")
        module_prefs = prefs[0]

        title = (module_prefs.get('title') or '').strip()
        if not title:
            raise SpecParserError("ModulePrefs@title is required")

        gadget = Gadget(
            id=gadget_id,
            title=title,
            title_url=module_prefs.get('title_url', ''),
            author=module_prefs.get('author', ''),
            author_email=module_prefs.get('author_email', ''),
            description=module_prefs.get('description', ''),
            directory_title=module_prefs.get('directory_title', ''),
            screenshot=module_prefs.get('screenshot', ''),
            thumbnail=module_prefs.get('thumbnail', ''),
            height=_int_attr(module_prefs, 'height'),
            width=_int_attr(module_prefs, 'width'),
        )

        gadget.requires = self._parse_requires(module_prefs)
        gadget.locale_specs = [self._parse_locale(e) for e in module_prefs.findall('Locale')]
        gadget.preloads = [self._parse_preload(e) for e in module_prefs.findall('Preload')]
        gadget.user_prefs = [self._parse_user_pref(e) for e in doc.findall('UserPref')]
        gadget.views = self._parse_views(doc.findall('Content'))
        if not gadget.views:
            raise SpecParserError("Gadget XML has no <Content> section")
        return gadget

    def _parse_requires(self, module_prefs: ET.Element) -> Dict[str, FeatureRequirement]:
        requires: Dict[str, FeatureRequirement] = {}
        for elem in module_prefs:
            if elem.tag not in ('Require', 'Optional'):
                continue
            name = (elem.get('feature') or '').strip()
            if not name:
                raise SpecParserError(f"<{elem.tag}> is missing its feature attribute")
            params = {}
            for param in elem.findall('Param'):
                param_name = param.get('name')
                if not param_name:
                    raise SpecParserError(f"<Param> of feature {name} is missing its name attribute")
                params[param_name] = (param.text or '').strip()
            requires[name] = FeatureRequirement(name=name, optional=elem.tag == 'Optional', params=params)
        return requires

    def _parse_locale(self, elem: ET.Element) -> LocaleSpec:
        return LocaleSpec(
            language=elem.get('lang') or 'all',
            country=elem.get('country') or 'all',
            messages_url=elem.get('messages', ''),
            right_to_left=(elem.get('language_direction') or '').lower() == 'rtl',
        )

    def _parse_preload(self, elem: ET.Element) -> Preload:
        href = (elem.get('href') or '').strip()
        if not href:
            raise SpecParserError("<Preload> is missing its href attribute")
        return Preload(
            href=href,
            authz=(elem.get('authz') or 'none').lower(),
            views=_split_list(elem.get('views')),
        )

    def _parse_user_pref(self, elem: ET.Element) -> UserPref:
        name = (elem.get('name') or '').strip()
        if not name:
            raise SpecParserError("<UserPref> is missing its name attribute")
        enum_values = {}
        for enum in elem.findall('EnumValue'):
            value = enum.get('value')
            if value is None:
                raise SpecParserError(f"<EnumValue> of user pref {name} is missing its value")
            enum_values[value] = enum.get('display_value', value)
        return UserPref(
            name=name,
            display_name=elem.get('display_name', name),
            datatype=(elem.get('datatype') or 'string').lower(),
            default_value=elem.get('default_value', ''),
            required=_bool_attr(elem, 'required', False),
            enum_values=enum_values,
        )

    def _parse_views(self, contents: List[ET.Element]) -> Dict[str, View]:
        views: Dict[str, View] = {}
        for elem in contents:
            content_type = (elem.get('type') or 'html').lower()
            if content_type not in CONTENT_TYPES:
                raise SpecParserError(f"Unknown content type: {content_type}")
            href = (elem.get('href') or '').strip()
            if content_type == 'url' and not href:
                raise SpecParserError("Content@href is required for type=\"url\"")
            body = ''.join(elem.itertext())
            quirks = _bool_attr(elem, 'quirks', True)

            for view_name in _split_list(elem.get('view')) or [DEFAULT_VIEW]:
                view = views.get(view_name)
                if view is None:
                    views[view_name] = View(
                        name=view_name,
                        type=content_type,
                        content=body,
                        href=href,
                        quirks=quirks,
                    )
                elif view.type != content_type:
                    raise SpecParserError(f"View {view_name} mixes html and url content")
                else:
                    # Several <Content> sections for the same view are concatenated
                    view.content += body
        return views
