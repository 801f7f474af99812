"""Daily digest and travel-time lookup."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from src.api.auth import require_user
from src.api.deps import get_digest_generator, get_maps
from src.api.schemas import DigestResponse, DistanceResponse
from src.core.digest import DigestGenerator
from src.integrations.google_maps import GoogleMapsClient

router = APIRouter(tags=["insights"])


@router.get("/digest", response_model=DigestResponse)
async def digest(
    user_id: str = Depends(require_user),
    generator: DigestGenerator = Depends(get_digest_generator),
) -> DigestResponse:
    return DigestResponse(digest=await generator.generate(user_id))


@router.get("/distance", response_model=DistanceResponse)
async def distance(
    origin: str = "",
    destination: str = "",
    user_id: str = Depends(require_user),
    maps: GoogleMapsClient = Depends(get_maps),
) -> DistanceResponse:
    result = await maps.get_distance(origin, destination)
    return DistanceResponse(
        duration=result.duration_text,
        distance=result.distance_text,
        in_traffic=result.in_traffic,
    )
