"""
HTML Renderer

Builds the iframe document for html views and the redirect location for url
views.
"""

import hashlib
import json
import threading
from typing import Any, Dict, List, Optional
from urllib.parse import quote_plus
import logging

from gadget_container.exceptions import GadgetError
from gadget_container.features.assembler import ContentAssembler
from gadget_container.features.descriptor import FeatureContext
from gadget_container.features.registry import Registry
from gadget_container.gadgets.context import GadgetContext
from gadget_container.gadgets.spec import Gadget, View
from gadget_container.http.fetcher import HttpFetcher, HttpRequest, fetch_all
from gadget_container.logging_config import get_logger

DOCTYPE = '<!DOCTYPE HTML PUBLIC "-//W3C//DTD HTML 4.01//EN" "http://www.w3.org/TR/html4/strict.dtd">\n'
EXTERN_SCRIPT = '<script src="{}"></script>'


def js_version(registry: Registry, assembler: ContentAssembler) -> str:
    """md5 of every registered feature's gadget content, used to version JS URLs."""
    digest = hashlib.md5()
    for name in registry.topological_order:
        digest.update(assembler.content(name, FeatureContext.GADGET).encode('utf-8'))
    return digest.hexdigest()


def split_libs(libs: Optional[str]) -> List[str]:
    if not libs:
        return []
    return [lib for lib in libs.split(':') if lib]


class GadgetHtmlRenderer:
    """Renders prepared gadgets."""

    def __init__(
        self,
        registry: Registry,
        assembler: ContentAssembler,
        config: Optional[Dict[str, Any]] = None,
        forced_libs: str = "",
        fetcher: Optional[HttpFetcher] = None,
        logger: Optional[logging.Logger] = None
    ) -> None:
        """
        Initialize the renderer.

        Args:
            registry: Feature registry
            assembler: Assembler for feature content
            config: The ``gadgets`` config section
            forced_libs: Colon-separated features always served from the JS endpoint
            fetcher: Fetcher for unsigned preloads; preloads are skipped without one
            logger: Optional logger instance
        """
        self.logger = logger or get_logger(__name__)
        self.registry = registry
        self.assembler = assembler
        self.config = config or {}
        self.forced_libs = forced_libs or ""
        self.fetcher = fetcher
        self._version: Optional[str] = None
        self._version_lock = threading.Lock()

    def js_version(self) -> str:
        if self._version is None:
            with self._version_lock:
                if self._version is None:
                    self._version = js_version(self.registry, self.assembler)
        return self._version

    def js_url(self, libs: List[str]) -> str:
        """``core:rpc.js?v=<version>`` style path for the JS endpoint."""
        return f"{':'.join(libs) or 'core'}.js?v={self.js_version()}"

    def select_view(self, gadget: Gadget, context: GadgetContext) -> View:
        view = gadget.get_view(context.view)
        if view is None:
            raise GadgetError(
                f"View: '{context.view}' invalid for gadget: {gadget.id.key}",
                context={'view': context.view, 'url': gadget.id.url}
            )
        return view

    def render(self, gadget: Gadget, context: GadgetContext) -> str:
        """
        Render an html view.

        Raises:
            GadgetError: The requested view does not exist or is not an html view
        """
        view = self.select_view(gadget, context)
        if view.is_url:
            raise GadgetError(f"View {view.name} of {gadget.id.key} is a url view")

        forced = split_libs(context.forced_libs or self.forced_libs)
        parts = []
        if not view.quirks:
            parts.append(DOCTYPE)
        parts.append(
            '<html><head><meta http-equiv="Content-Type" content="text/html; charset=utf-8"/>'
            f'<style type="text/css">{self.config.get("gadget_css", "")}</style></head><body>\n'
        )
        if forced:
            prefix = self.config.get('default_js_prefix', '/gadgets/js/')
            src = f"{prefix}{self.js_url(forced)}&container={quote_plus(context.container)}"
            parts.append(EXTERN_SCRIPT.format(src) + "\n")

        parts.append("<script>\n")
        parts.append(self._inline_features(gadget, context, forced))
        parts.append(self._js_config(gadget, bool(forced)))
        parts.append(f"gadgets.Prefs.setMessages_({json.dumps(gadget.message_bundle)});\n")
        parts.append(f"gadgets.Prefs.setDefaultPrefs_({json.dumps(gadget.user_pref_values)});\n")
        parts.append(self._preloads(gadget, context))
        parts.append("</script>")
        parts.append(view.content)
        parts.append("\n<script>gadgets.util.runOnLoadHandlers();</script></body>\n</html>")
        return ''.join(parts)

    def _inline_features(self, gadget: Gadget, context: GadgetContext, forced: List[str]) -> str:
        if not forced:
            return gadget.feature_content
        # Features already served by the forced-libs script must not be inlined again
        covered = set(self.registry.resolve(forced).found)
        remaining = [name for name in gadget.js_features if name not in covered]
        return self.assembler.content_for_many(remaining, context.rendering_context, context.ignore_cache)

    def _js_config(self, gadget: Gadget, has_forced_libs: bool) -> str:
        feature_config = self.config.get('feature_config', {}) or {}
        if has_forced_libs:
            gadget_config = dict(feature_config)
        else:
            gadget_config = {
                name: feature_config[name]
                for name in gadget.js_features
                if feature_config.get(name)
            }
        gadget_config['core.util'] = {name: {} for name in gadget.requires}
        return f"gadgets.config.init({json.dumps(gadget_config)});\n"

    def _preloads(self, gadget: Gadget, context: GadgetContext) -> str:
        preloaded: Dict[str, Dict[str, Any]] = {}
        if self.fetcher is not None:
            hrefs = []
            for preload in gadget.preloads:
                if not preload.applies_to(context.view):
                    continue
                if preload.authz != 'none':
                    self.logger.debug("Skipping %s preload %s", preload.authz, preload.href)
                    continue
                hrefs.append(preload.href)
            requests_to_send = [HttpRequest(url=href, ignore_cache=context.ignore_cache) for href in hrefs]
            for href, response in zip(hrefs, fetch_all(self.fetcher, requests_to_send)):
                preloaded[href] = {'body': response.text, 'rc': response.status_code}
        return f"gadgets.io.preloaded_ = {json.dumps(preloaded)};\n"

    def redirect_url(self, gadget: Gadget, context: GadgetContext) -> str:
        """
        Location for a url view: the view href plus user prefs and the libs parameter.

        Raises:
            GadgetError: The requested view does not exist or is not a url view
        """
        view = self.select_view(gadget, context)
        if not view.is_url:
            raise GadgetError(f"View {view.name} of {gadget.id.key} is not a url view")

        prefix = self.config.get('userpref_param_prefix', 'up_')
        query = [
            f"{prefix}{quote_plus(name)}={quote_plus(value)}"
            for name, value in gadget.user_pref_values.items()
        ]
        libs = split_libs(context.forced_libs or self.forced_libs) or list(gadget.requires)
        query.append(f"{self.config.get('libs_param_name', 'libs')}={self.js_url(libs)}")

        separator = '&' if '?' in view.href else '?'
        return view.href + separator + '&'.join(query)
