"""Render service: wraps the rendering pipeline and the HTML renderer."""

from typing import Any

from gadget_container.gadgets.context import GadgetContext
from gadget_container.gadgets.pipeline import GadgetRenderingPipeline
from gadget_container.gadgets.renderer import GadgetHtmlRenderer
from gadget_container.http.blacklist import PatternBlacklist
from web_api.services.registry_service import RegistryService


class RenderService:
    """Class-level holder of the pipeline and renderer."""

    _pipeline: GadgetRenderingPipeline = None
    _renderer: GadgetHtmlRenderer = None
    _gadgets_config: dict[str, Any] = {}

    @classmethod
    def init(cls) -> None:
        config = RegistryService.get_config()
        cls._gadgets_config = config.get("gadgets", {})
        registry = RegistryService.get_registry()
        fetcher = RegistryService.get_fetcher()
        assembler = RegistryService.get_assembler()

        cls._pipeline = GadgetRenderingPipeline(
            registry=registry,
            fetcher=fetcher,
            assembler=assembler,
            blacklist=PatternBlacklist(cls._gadgets_config.get("blacklist", [])),
            max_workers=int(config.get("http", {}).get("max_workers", 8)),
        )
        cls._renderer = GadgetHtmlRenderer(
            registry=registry,
            assembler=assembler,
            config=cls._gadgets_config,
            forced_libs=config.get("features", {}).get("forced_libs", ""),
            fetcher=fetcher,
        )

    @classmethod
    def is_debug(cls) -> bool:
        return bool(cls._gadgets_config.get("debug", False))

    @classmethod
    def build_context(cls, params: dict[str, str]) -> GadgetContext:
        return GadgetContext.from_params(
            params,
            userpref_prefix=cls._gadgets_config.get("userpref_param_prefix", "up_"),
            default_view=cls._gadgets_config.get("default_view", "default"),
        )

    @classmethod
    def render(cls, params: dict[str, str]) -> tuple[str, str]:
        """
        Render a gadget request.

        Returns ("html", document) for html views or ("redirect", location) for url views.
        Raises GadgetError when rendering fails.
        """
        context = cls.build_context(params)
        gadget = cls._pipeline.process(context)
        view = cls._renderer.select_view(gadget, context)
        if view.is_url:
            return "redirect", cls._renderer.redirect_url(gadget, context)
        return "html", cls._renderer.render(gadget, context)
