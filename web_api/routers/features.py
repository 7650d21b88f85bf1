"""Feature registry API endpoints."""

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from web_api.services.registry_service import RegistryService

router = APIRouter(prefix="/api/features", tags=["features"])


class ResolveRequest(BaseModel):
    features: list[str] = []


@router.get("")
async def list_features() -> list[dict[str, Any]]:
    """List registered features in dependency order."""
    return RegistryService.list_features()


@router.post("/resolve")
async def resolve_features(body: ResolveRequest) -> dict[str, list[str]]:
    """Resolve a feature set to its ordered dependency closure."""
    return RegistryService.resolve(body.features)


@router.post("/cache/clear")
async def clear_feature_cache() -> dict[str, str]:
    """Drop compiled feature content."""
    RegistryService.clear_cache()
    return {"status": "ok"}
