"""Per-request rendering parameters."""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from gadget_container.features.descriptor import FeatureContext
from gadget_container.gadgets.spec import ALL, DEFAULT_VIEW, GadgetId

DEFAULT_CONTAINER = "default"


def _truthy_flag(value: Any) -> bool:
    try:
        return int(value) == 1
    except (TypeError, ValueError):
        return False


@dataclass
class GadgetContext:
    url: str
    module_id: int = 0
    language: str = ALL
    country: str = ALL
    view: str = DEFAULT_VIEW
    container: str = DEFAULT_CONTAINER
    user_prefs: Dict[str, str] = field(default_factory=dict)
    ignore_cache: bool = False
    rendering_context: FeatureContext = FeatureContext.GADGET
    forced_libs: Optional[str] = None

    @property
    def gadget_id(self) -> GadgetId:
        return GadgetId(self.url, self.module_id)

    @classmethod
    def from_params(
        cls,
        params: Mapping[str, str],
        userpref_prefix: str = "up_",
        default_view: str = DEFAULT_VIEW
    ) -> "GadgetContext":
        """
        Build a context from request query parameters.

        ``nocache=1`` or ``bpc=1`` bypass caches; ``synd`` is accepted as an
        alias of ``container``; parameters starting with ``userpref_prefix``
        are user pref values.
        """
        mid = params.get('mid', '0')
        module_id = int(mid) if str(mid).isdigit() else 0
        user_prefs = {
            key[len(userpref_prefix):]: value
            for key, value in params.items()
            if key.startswith(userpref_prefix) and len(key) > len(userpref_prefix)
        }
        libs = params.get('libs')
        return cls(
            url=params.get('url', ''),
            module_id=module_id,
            language=params.get('lang') or ALL,
            country=params.get('country') or ALL,
            view=params.get('view') or default_view,
            container=params.get('container') or params.get('synd') or DEFAULT_CONTAINER,
            user_prefs=user_prefs,
            ignore_cache=_truthy_flag(params.get('nocache')) or _truthy_flag(params.get('bpc')),
            forced_libs=libs.strip() if libs else None,
        )
