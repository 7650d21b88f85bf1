"""
Gadget Rendering Pipeline

Runs one gadget render as a sequence of stages:

1. fetch and parse the spec (blacklist check first)
2. fetch and merge the locale message bundles
3. set up substitutions (module id, messages, bidi, user prefs)
4. reconcile required/optional features against the registry
5. prepare every feature, then process every feature
6. apply substitutions to metadata, views and preloads
7. assemble the feature JavaScript

Any stage failure stops the run. Feature content is assembled last so a failed
render never carries a partial script payload.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple
from urllib.parse import urljoin
import logging

from gadget_container.exceptions import (
    BlacklistedGadgetError,
    FeatureProcessingError,
    GadgetError,
    SpecFetchError,
    SpecParserError,
    UnsupportedFeatureError,
)
from gadget_container.features.assembler import ContentAssembler
from gadget_container.features.processors import ProcessorRegistry
from gadget_container.features.registry import Registry
from gadget_container.gadgets.context import GadgetContext
from gadget_container.gadgets.message_bundle import MessageBundle
from gadget_container.gadgets.spec import ALL, Gadget, LocaleSpec
from gadget_container.gadgets.spec_parser import SpecParser
from gadget_container.gadgets.substitutions import Substitutions, SubstitutionType
from gadget_container.http.blacklist import Blacklist
from gadget_container.http.fetcher import HttpFetcher, HttpRequest, fetch_all
from gadget_container.logging_config import get_logger


class RenderState(str, Enum):
    RENDERED = "rendered"
    FAILED = "failed"


@dataclass
class RenderResult:
    state: RenderState
    gadget: Optional[Gadget] = None
    error: Optional[GadgetError] = None

    @property
    def ok(self) -> bool:
        return self.state is RenderState.RENDERED


class GadgetRenderingPipeline:
    """Turns a GadgetContext into a fully prepared Gadget."""

    def __init__(
        self,
        registry: Registry,
        fetcher: HttpFetcher,
        assembler: ContentAssembler,
        spec_parser: Optional[SpecParser] = None,
        blacklist: Optional[Blacklist] = None,
        processors: Optional[ProcessorRegistry] = None,
        max_workers: int = 8,
        logger: Optional[logging.Logger] = None
    ) -> None:
        self.logger = logger or get_logger(__name__)
        self.registry = registry
        self.fetcher = fetcher
        self.assembler = assembler
        self.spec_parser = spec_parser or SpecParser(logger=self.logger)
        self.blacklist = blacklist
        self.processors = processors or ProcessorRegistry(logger=self.logger)
        self.max_workers = max_workers

    def render(self, context: GadgetContext) -> RenderResult:
        """Run the pipeline, reporting failure in the result instead of raising."""
        try:
            gadget = self.process(context)
        except GadgetError as e:
            self.logger.warning("Render of %s failed: %s", context.url, e)
            return RenderResult(state=RenderState.FAILED, error=e)
        return RenderResult(state=RenderState.RENDERED, gadget=gadget)

    def process(self, context: GadgetContext) -> Gadget:
        """
        Run the pipeline.

        Raises:
            BlacklistedGadgetError: The spec URL is blacklisted
            SpecFetchError: The spec could not be fetched
            SpecParserError: The spec is malformed
            UnsupportedFeatureError: Required features are not registered
            FeatureProcessingError: A feature processor failed
            MissingScriptFileError: A feature's script file is unreadable
        """
        gadget = self.fetch_spec(context)
        self.logger.debug("Fetched spec for %s", context.url)

        messages, right_to_left = self.load_messages(gadget, context)
        gadget.message_bundle = messages.to_dict()
        gadget.right_to_left = right_to_left

        substitutions = self.build_substitutions(gadget, context)

        features = self.reconcile_features(gadget)
        self.logger.debug("Resolved features for %s: %s", context.url, features)

        self.run_processors(gadget, context, features)
        self.apply_substitutions(gadget, substitutions)

        gadget.feature_content = self.assembler.content_for_many(
            gadget.js_features,
            context.rendering_context,
            context.ignore_cache
        )
        return gadget

    def fetch_spec(self, context: GadgetContext) -> Gadget:
        if not context.url:
            raise SpecFetchError(context.url, 400)
        if self.blacklist is not None and self.blacklist.is_blacklisted(context.url):
            self.logger.error("Refusing blacklisted gadget %s", context.url)
            raise BlacklistedGadgetError(context.url)

        response = self.fetcher.fetch(HttpRequest(url=context.url, ignore_cache=context.ignore_cache))
        if not response.ok:
            self.logger.error("Spec fetch for %s returned HTTP %d", context.url, response.status_code)
            raise SpecFetchError(context.url, response.status_code)
        return self.spec_parser.parse(response.text, context.gadget_id)

    def load_messages(self, gadget: Gadget, context: GadgetContext) -> Tuple[MessageBundle, bool]:
        """
        Fetch and merge the message bundles for the request locale.

        Looks up (language, country), (language, all) and (all, all), most
        specific first. Bundles that are absent or fail to load are skipped.

        Returns:
            The merged bundle and the right-to-left flag of the most specific matching locale
        """
        candidates: List[LocaleSpec] = []
        for language, country in self._locale_chain(context):
            spec = gadget.locale_spec(language, country)
            if spec is not None and spec not in candidates:
                candidates.append(spec)

        right_to_left = candidates[0].right_to_left if candidates else False

        with_messages = [spec for spec in candidates if spec.messages_url]
        requests_to_send = [
            HttpRequest(url=urljoin(gadget.id.url, spec.messages_url), ignore_cache=context.ignore_cache)
            for spec in with_messages
        ]
        responses = fetch_all(self.fetcher, requests_to_send, self.max_workers)

        bundles: List[MessageBundle] = []
        for request, response in zip(requests_to_send, responses):
            if not response.ok:
                self.logger.warning("Message bundle %s returned HTTP %d", request.url, response.status_code)
                continue
            try:
                bundles.append(MessageBundle.parse(response.text))
            except SpecParserError as e:
                self.logger.warning("Ignoring message bundle %s: %s", request.url, e)

        if not bundles:
            return MessageBundle(), right_to_left
        return MessageBundle.merge(bundles[0], *bundles[1:]), right_to_left

    @staticmethod
    def _locale_chain(context: GadgetContext) -> List[Tuple[str, str]]:
        chain = [(context.language, context.country), (context.language, ALL), (ALL, ALL)]
        return list(dict.fromkeys(chain))

    def build_substitutions(self, gadget: Gadget, context: GadgetContext) -> Substitutions:
        substitutions = Substitutions()
        substitutions.add_module_id(context.module_id)
        substitutions.add_substitutions(SubstitutionType.MESSAGE, gadget.message_bundle)
        substitutions.add_bidi(gadget.right_to_left)

        values: Dict[str, str] = {}
        for pref in gadget.user_prefs:
            value = context.user_prefs.get(pref.name)
            if value is None:
                value = pref.default_value or ''
            values[pref.name] = value
        gadget.user_pref_values = values
        substitutions.add_substitutions(SubstitutionType.USER_PREF, values)
        return substitutions

    def reconcile_features(self, gadget: Gadget) -> List[str]:
        """
        Resolve the gadget's declared features.

        Returns:
            Every found feature, dependencies first

        Raises:
            UnsupportedFeatureError: Listing every missing required feature
        """
        result = self.registry.resolve(list(gadget.requires))
        if result.missing:
            missing_required = [
                name for name in result.missing
                if not (name in gadget.requires and gadget.requires[name].optional)
            ]
            if missing_required:
                self.logger.error("Gadget %s requires unsupported features: %s", gadget.id.url, missing_required)
                raise UnsupportedFeatureError(missing_required)
            for name in result.missing:
                self.logger.info("Optional feature %s not available for %s", name, gadget.id.url)
                gadget.missing_optional_features.append(name)
        return list(result.found)

    def run_processors(self, gadget: Gadget, context: GadgetContext, features: List[str]) -> None:
        for phase in ('prepare', 'process'):
            for name in features:
                processor = self.processors.create(name)
                try:
                    getattr(processor, phase)(gadget, context, gadget.feature_params(name))
                except GadgetError:
                    raise
                except Exception as e:
                    self.logger.error("Feature %s failed during %s: %s", name, phase, e)
                    raise FeatureProcessingError(name, phase, e) from e

    def apply_substitutions(self, gadget: Gadget, substitutions: Substitutions) -> None:
        for field_name in Gadget.SUBSTITUTED_FIELDS:
            setattr(gadget, field_name, substitutions.substitute(getattr(gadget, field_name)))
        for view in gadget.views.values():
            view.content = substitutions.substitute(view.content)
            view.href = substitutions.substitute(view.href)
        for preload in gadget.preloads:
            preload.href = substitutions.substitute(preload.href)
