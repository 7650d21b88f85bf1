"""Fixtures that initialise the web services against the bundled feature tree."""

import json

import pytest

from gadget_container.config_manager import PROJECT_ROOT, ConfigManager
from web_api.services.registry_service import RegistryService
from web_api.services.render_service import RenderService


@pytest.fixture
def services(tmp_path, stub_fetcher):
    """Initialise RegistryService/RenderService; gadget fetches go to ``stub_fetcher``."""
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({
        "features": {"paths": [str(PROJECT_ROOT / "features")]},
        "cache": {"directory": str(tmp_path / "cache"), "registry_cache": False},
        "gadgets": {"blacklist": [r"blocked\.example\.com"]},
    }))
    RegistryService.init(ConfigManager(config_path=str(config_file)))
    RenderService.init()
    RenderService._pipeline.fetcher = stub_fetcher
    RenderService._renderer.fetcher = stub_fetcher
    return stub_fetcher
