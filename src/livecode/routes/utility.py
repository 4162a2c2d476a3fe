"""Health and version endpoints."""

from fastapi import APIRouter

import livecode
from livecode.schemas import HealthResponse, VersionResponse

router = APIRouter(tags=["utility"])


@router.get("/health")
async def health() -> HealthResponse:
    return HealthResponse()


@router.get("/v1/version")
async def version() -> VersionResponse:
    return VersionResponse(version=livecode.__version__)
