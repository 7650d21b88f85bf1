"""Gadget rendering and feature JavaScript endpoints."""

import html
import json

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from gadget_container.exceptions import GadgetError
from gadget_container.features.descriptor import FeatureContext
from web_api.services.registry_service import RegistryService
from web_api.services.render_service import RenderService

router = APIRouter(prefix="/gadgets", tags=["gadgets"])

ONE_YEAR = 365 * 24 * 60 * 60
FIVE_MINUTES = 5 * 60


def cache_headers(params: dict[str, str], ignore_cache: bool) -> dict[str, str]:
    if ignore_cache:
        return {"Cache-Control": "no-cache, no-store, must-revalidate", "Pragma": "no-cache"}
    if "v" in params:
        return {"Cache-Control": f"public, max-age={ONE_YEAR}"}
    return {"Cache-Control": f"public, max-age={FIVE_MINUTES}"}


def error_page(error: GadgetError, debug: bool) -> str:
    body = f"<html><body><h1>Error</h1>{html.escape(error.message)}"
    if debug and error.context:
        body += f"<p><b>Debug</b></p><pre>{html.escape(json.dumps(error.context, indent=2, default=str))}</pre>"
    return body + "</body></html>"


@router.get("/ifr")
def render_gadget(request: Request) -> Response:
    """Render a gadget into its iframe document."""
    params = dict(request.query_params)
    if not params.get("url"):
        return HTMLResponse(
            error_page(GadgetError("Missing required parameter: url"), False), status_code=400
        )
    try:
        kind, body = RenderService.render(params)
    except GadgetError as e:
        return HTMLResponse(error_page(e, RenderService.is_debug()), status_code=400)

    if kind == "redirect":
        return RedirectResponse(body, status_code=302)
    ignore_cache = params.get("nocache") == "1" or params.get("bpc") == "1"
    return HTMLResponse(body, headers=cache_headers(params, ignore_cache))


@router.get("/js/{libs}")
def feature_js(libs: str, request: Request) -> Response:
    """Serve the JavaScript for ``core:rpc.js`` style feature lists."""
    params = dict(request.query_params)
    if libs.endswith(".js"):
        libs = libs[: -len(".js")]
    names = [name for name in libs.split(":") if name]
    context = FeatureContext.CONTAINER if params.get("c") == "1" else FeatureContext.GADGET
    ignore_cache = params.get("nocache") == "1"

    try:
        content, missing = RegistryService.feature_js(names, context, ignore_cache)
    except GadgetError as e:
        return Response(f"/* {e.message} */", status_code=500, media_type="application/javascript")
    if missing:
        return Response(
            f"/* Unknown feature(s): {', '.join(missing)} */",
            status_code=404,
            media_type="application/javascript",
        )
    return Response(content, media_type="application/javascript", headers=cache_headers(params, ignore_cache))
