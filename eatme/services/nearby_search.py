"""
Nearby-restaurant search client.

The geospatial query runs in a hosted function; this module only turns the
consumer's filter state into the function's ``filters`` object and POSTs
the request. Distances come back from the function; nothing is computed
locally.
"""
import logging
from typing import Any, Literal, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError

from eatme.config import get_settings
from eatme.exceptions import NearbySearchError
from eatme.utils.helpers import enabled_keys

settings = get_settings()
logger = logging.getLogger(__name__)


class PriceRange(BaseModel):
    min: float
    max: float


class ServiceTypes(BaseModel):
    delivery: bool = False
    takeout: bool = False
    dine_in: bool = False


class DailyFilters(BaseModel):
    """Filters the consumer sets per outing"""
    cuisines: list[str] = []
    price_range: Optional[PriceRange] = None
    service_types: Optional[ServiceTypes] = None


class PermanentFilters(BaseModel):
    """Profile-level preferences"""
    diet_preference: Literal["all", "vegetarian", "vegan"] = "all"
    protein_types: list[str] = []  # proteins the consumer eats: meat, poultry, fish, ...
    allergies: dict[str, bool] = {}  # {"peanuts": True, "gluten": False}


def build_search_filters(
    daily: Optional[DailyFilters] = None, permanent: Optional[PermanentFilters] = None
) -> Optional[dict[str, Any]]:
    """Function ``filters`` object for the given filter state, or None when nothing is set."""
    daily = daily or DailyFilters()
    permanent = permanent or PermanentFilters()
    filters: dict[str, Any] = {}

    if daily.cuisines:
        filters["cuisines"] = list(daily.cuisines)

    if daily.price_range:
        filters["priceMin"] = daily.price_range.min
        filters["priceMax"] = daily.price_range.max

    dietary_tags = []
    if permanent.diet_preference in ("vegan", "vegetarian"):
        dietary_tags.append(permanent.diet_preference)
    if permanent.protein_types and not {"meat", "poultry"} & set(permanent.protein_types):
        dietary_tags.append("vegetarian")
    if dietary_tags:
        filters["dietaryTags"] = list(dict.fromkeys(dietary_tags))

    allergies = enabled_keys(permanent.allergies)
    if allergies:
        filters["excludeAllergens"] = allergies

    if daily.service_types:
        service_types = [
            name
            for name, enabled in (
                ("delivery", daily.service_types.delivery),
                ("takeout", daily.service_types.takeout),
                ("dine_in", daily.service_types.dine_in),
            )
            if enabled
        ]
        if service_types:
            filters["serviceTypes"] = service_types

    return filters or None


class CenterPoint(BaseModel):
    latitude: float
    longitude: float


class NearbySearchResponse(BaseModel):
    restaurants: list[dict[str, Any]] = []
    total_count: int = Field(0, alias="totalCount")
    search_radius: float = Field(alias="searchRadius")
    center_point: CenterPoint = Field(alias="centerPoint")
    applied_filters: Optional[dict[str, Any]] = Field(None, alias="appliedFilters")

    class Config:
        populate_by_name = True


class NearbySearchClient:
    """
    Async client for the hosted nearby-restaurants function.

    Usage:
        async with NearbySearchClient() as client:
            response = await client.search(52.52, 13.40, filters=filters)
    """

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url or settings.NEARBY_SEARCH_URL
        self.api_key = settings.NEARBY_SEARCH_API_KEY if api_key is None else api_key
        self.timeout = timeout or settings.NEARBY_SEARCH_TIMEOUT
        self.transport = transport
        self.client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self.client = httpx.AsyncClient(timeout=self.timeout, transport=self.transport)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.client.aclose()

    def _headers(self) -> dict[str, str]:
        if not self.api_key:
            return {}
        return {"Authorization": f"Bearer {self.api_key}", "apikey": self.api_key}

    async def search(
        self,
        latitude: float,
        longitude: float,
        radius_km: Optional[float] = None,
        limit: Optional[int] = None,
        filters: Optional[dict[str, Any]] = None,
    ) -> NearbySearchResponse:
        if self.client is None:
            raise RuntimeError("NearbySearchClient must be used as an async context manager")

        body = {
            "latitude": latitude,
            "longitude": longitude,
            "radiusKm": radius_km if radius_km is not None else settings.NEARBY_DEFAULT_RADIUS_KM,
            "limit": limit if limit is not None else settings.NEARBY_DEFAULT_LIMIT,
            "filters": filters,
        }

        try:
            response = await self.client.post(self.url, json=body, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error(f"Nearby search request failed: {e}")
            raise NearbySearchError(f"Nearby search request failed: {e}")

        if response.status_code >= 400:
            logger.error(f"Nearby search returned {response.status_code}: {response.text[:200]}")
            raise NearbySearchError(
                f"Nearby search failed with status {response.status_code}",
                details={"status_code": response.status_code},
            )

        try:
            data = response.json()
        except ValueError:
            raise NearbySearchError("Nearby search returned invalid JSON")
        if not data:
            raise NearbySearchError("Nearby search returned no data")

        try:
            result = NearbySearchResponse.model_validate(data)
        except ValidationError as e:
            logger.error(f"Unexpected nearby search payload: {e}")
            raise NearbySearchError("Nearby search returned an unexpected payload")

        logger.info(f"Nearby search found {result.total_count} restaurants within {result.search_radius}km")
        return result
