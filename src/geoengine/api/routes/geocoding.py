"""Geocoding endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...errors import AddressNotFound, GeocodeFailed, InvalidInput, ServiceFailure
from ...models.domain import Coordinate
from ...schemas.geocoding import (
    GeocodeRequest,
    GeocodeResponse,
    ReverseGeocodeResponse,
    SuggestionModel,
    SuggestionsResponse,
)
from ...services.engine import GeoEngine, get_engine

router = APIRouter(prefix="/geocode", tags=["geocoding"])

logger = logging.getLogger(__name__)


@router.post("", response_model=GeocodeResponse, status_code=status.HTTP_200_OK)
def geocode(payload: GeocodeRequest, engine: GeoEngine = Depends(get_engine)) -> GeocodeResponse:
    try:
        match = engine.address_resolver.resolve_match(payload.address)
    except InvalidInput as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except GeocodeFailed as exc:
        if isinstance(exc.cause, AddressNotFound):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return GeocodeResponse(
        address=payload.address.strip(),
        lat=match.coordinate.lat,
        lng=match.coordinate.lng,
        formatted_address=match.display_name,
    )


@router.get("/reverse", response_model=ReverseGeocodeResponse, status_code=status.HTTP_200_OK)
def reverse_geocode(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    engine: GeoEngine = Depends(get_engine),
) -> ReverseGeocodeResponse:
    try:
        result = engine.address_resolver.reverse(Coordinate(lat=lat, lng=lng))
    except InvalidInput as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ServiceFailure as exc:
        logger.warning(f"Reverse geocoding failed for ({lat}, {lng}): {exc}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return ReverseGeocodeResponse(
        lat=lat,
        lng=lng,
        formatted_address=result.formatted_address,
        place_id=result.place_id,
        components={key: str(value) for key, value in result.components.items()},
    )


@router.get("/suggest", response_model=SuggestionsResponse, status_code=status.HTTP_200_OK)
def suggest(
    q: str = Query(..., description="Partial address typed by the user."),
    limit: int | None = Query(default=None, ge=1, le=20),
    engine: GeoEngine = Depends(get_engine),
) -> SuggestionsResponse:
    try:
        matches = engine.address_resolver.suggest(q, limit=limit)
    except ServiceFailure as exc:
        # Autocomplete is best effort
        logger.warning(f"Address suggestions failed for '{q}': {exc}")
        matches = []
    return SuggestionsResponse(
        query=q,
        suggestions=[
            SuggestionModel(
                display_name=match.display_name,
                lat=match.coordinate.lat,
                lng=match.coordinate.lng,
                place_id=match.place_id,
            )
            for match in matches
        ],
    )
