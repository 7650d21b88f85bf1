"""Gadget rendering: spec model and parser, message bundles, substitutions and the pipeline."""

from gadget_container.gadgets.context import GadgetContext
from gadget_container.gadgets.message_bundle import MessageBundle
from gadget_container.gadgets.pipeline import GadgetRenderingPipeline, RenderResult, RenderState
from gadget_container.gadgets.renderer import GadgetHtmlRenderer, js_version
from gadget_container.gadgets.spec import (
    FeatureRequirement,
    Gadget,
    GadgetId,
    LocaleSpec,
    Preload,
    UserPref,
    View,
)
from gadget_container.gadgets.spec_parser import SpecParser
from gadget_container.gadgets.substitutions import Substitutions, SubstitutionType

__all__ = [
    "FeatureRequirement",
    "Gadget",
    "GadgetContext",
    "GadgetHtmlRenderer",
    "GadgetId",
    "GadgetRenderingPipeline",
    "LocaleSpec",
    "MessageBundle",
    "Preload",
    "RenderResult",
    "RenderState",
    "SpecParser",
    "SubstitutionType",
    "Substitutions",
    "UserPref",
    "View",
    "js_version",
]
