"""Routing endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ...errors import InvalidInput, ServiceFailure
from ...models.domain import AddressText, Coordinate, ResolvedLocation
from ...schemas.common import CoordinateModel
from ...schemas.routing import (
    FailedDestinationModel,
    RouteStopModel,
    RoutingRequest,
    RoutingResponse,
)
from ...services.engine import GeoEngine, get_engine
from ...services.routing.estimator import format_duration
from ...services.routing.models import RouteResult
from ...services.routing.navigation import navigation_links

router = APIRouter(prefix="/routes", tags=["routes"])

logger = logging.getLogger(__name__)


def _origin_for(payload: RoutingRequest, engine: GeoEngine) -> Coordinate | AddressText | ResolvedLocation:
    if payload.origin is not None:
        return payload.origin.to_domain()
    if payload.origin_address and payload.origin_address.strip():
        return AddressText(payload.origin_address)
    location = engine.location_resolver.resolve_current_location()
    if location.is_default:
        # A fixed fallback point is not a usable route start
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Current location is unavailable; provide an origin to calculate a route.",
        )
    return location


def _to_response(
    result: RouteResult,
    origin_confidence: str | None,
    include_navigation: bool,
) -> RoutingResponse:
    stops = []
    for index, destination in enumerate(result.ordered_destinations):
        point = result.waypoints[index + 1]
        leg = result.legs_meters[index] if index < len(result.legs_meters) else 0.0
        stops.append(
            RouteStopModel(
                sequence=index + 1,
                order_id=destination.id,
                display_name=destination.display_name,
                status=destination.status,
                lat=point.lat,
                lng=point.lng,
                distance_from_prev_km=round(leg / 1000.0, 3),
            )
        )
    failed = [
        FailedDestinationModel(
            order_id=item.destination.id,
            display_name=item.destination.display_name,
            reason=str(item.reason),
            error_type=type(item.reason).__name__,
        )
        for item in result.failed_destinations
    ]
    navigation = {}
    if include_navigation and result.ordered_destinations:
        navigation = navigation_links(result.waypoints[0], list(result.waypoints[1:]))
    return RoutingResponse(
        origin=CoordinateModel.from_domain(result.waypoints[0]),
        origin_confidence=origin_confidence,
        stops=stops,
        waypoints=[CoordinateModel.from_domain(point) for point in result.waypoints],
        total_distance_meters=result.total_distance_meters,
        total_distance_km=round(result.total_distance_km, 3),
        total_duration_minutes=result.total_duration_minutes,
        duration_text=format_duration(result.total_duration_minutes),
        failed_destinations=failed,
        navigation=navigation,
    )


@router.post("/optimize", response_model=RoutingResponse, status_code=status.HTTP_200_OK)
def optimize(payload: RoutingRequest, engine: GeoEngine = Depends(get_engine)) -> RoutingResponse:
    origin = _origin_for(payload, engine)
    origin_confidence = origin.confidence.value if isinstance(origin, ResolvedLocation) else None
    try:
        result = engine.optimize_orders(origin, [order.to_record() for order in payload.orders])
    except (InvalidInput, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ServiceFailure as exc:
        # Only the origin can fail the whole run; destination failures are reported in the body
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error optimizing route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize route: {str(exc)}"
        ) from exc
    return _to_response(result, origin_confidence, payload.include_navigation)
