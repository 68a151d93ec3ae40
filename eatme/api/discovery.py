"""
Discovery API - nearby-restaurant search for the consumer map.
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from typing import Optional

from eatme.services.nearby_search import (
    DailyFilters,
    NearbySearchClient,
    NearbySearchResponse,
    PermanentFilters,
    build_search_filters,
)

router = APIRouter()


class NearbySearchRequest(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    radius_km: Optional[float] = Field(None, gt=0)
    limit: Optional[int] = Field(None, ge=1)
    daily: Optional[DailyFilters] = None
    permanent: Optional[PermanentFilters] = None


def get_nearby_client() -> NearbySearchClient:
    return NearbySearchClient()


@router.post("/nearby", response_model=NearbySearchResponse)
async def nearby_restaurants(
    data: NearbySearchRequest,
    nearby_client: NearbySearchClient = Depends(get_nearby_client),
):
    """Forward the position and filter state to the hosted nearby-restaurants function."""
    filters = build_search_filters(data.daily, data.permanent)
    async with nearby_client as client:
        return await client.search(
            data.latitude,
            data.longitude,
            radius_km=data.radius_km,
            limit=data.limit,
            filters=filters,
        )
