"""Gadget container web service: FastAPI backend."""

import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from fastapi import FastAPI

from gadget_container import __version__
from gadget_container.config_manager import ConfigManager
from gadget_container.logging_config import setup_logging
from web_api.routers.features import router as features_router
from web_api.routers.gadgets import router as gadgets_router
from web_api.services.registry_service import RegistryService
from web_api.services.render_service import RenderService

app = FastAPI(title="Gadget Container", version=__version__, docs_url=None, redoc_url=None)


@app.on_event("startup")
async def startup():
    """Build the feature registry and rendering services."""
    config_manager = ConfigManager()
    setup_logging(config_manager.get_section("logging").get("level"))
    RegistryService.init(config_manager)
    RenderService.init()


app.include_router(gadgets_router)
app.include_router(features_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": __version__}
