"""Order tracking endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ...schemas.tracking import (
    PositionUpdateModel,
    StatusUpdateRequest,
    TrackedOrdersResponse,
    TrackingStatusResponse,
)
from ...services.engine import GeoEngine, get_engine
from ...services.tracking.channels import LatestPositionChannel

router = APIRouter(prefix="/tracking", tags=["tracking"])


@router.get("", response_model=TrackedOrdersResponse, status_code=status.HTTP_200_OK)
def list_tracked(engine: GeoEngine = Depends(get_engine)) -> TrackedOrdersResponse:
    return TrackedOrdersResponse(
        order_ids=sorted(engine.gate.snapshot()),
        broadcaster_running=engine.broadcaster.running,
    )


@router.post("/{order_id}/status", response_model=TrackingStatusResponse, status_code=status.HTTP_200_OK)
def update_status(
    order_id: str,
    payload: StatusUpdateRequest,
    engine: GeoEngine = Depends(get_engine),
) -> TrackingStatusResponse:
    """Feed an order status transition into the tracking gate."""
    tracking = engine.gate.apply_status(order_id, payload.status)
    if not tracking and isinstance(engine.channel, LatestPositionChannel):
        engine.channel.forget(order_id)
    return TrackingStatusResponse(order_id=order_id, tracking=tracking)


@router.get("/{order_id}", response_model=TrackingStatusResponse, status_code=status.HTTP_200_OK)
def tracking_status(order_id: str, engine: GeoEngine = Depends(get_engine)) -> TrackingStatusResponse:
    return TrackingStatusResponse(order_id=order_id, tracking=engine.gate.is_tracking(order_id))


@router.get("/{order_id}/position", response_model=PositionUpdateModel, status_code=status.HTTP_200_OK)
def latest_position(order_id: str, engine: GeoEngine = Depends(get_engine)) -> PositionUpdateModel:
    channel = engine.channel
    if not isinstance(channel, LatestPositionChannel):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Positions are pushed to an external channel and cannot be polled.",
        )
    update = channel.latest(order_id)
    if update is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No position has been published for order {order_id}.",
        )
    return PositionUpdateModel.from_domain(update)


@router.post("/tick", response_model=list[PositionUpdateModel], status_code=status.HTTP_200_OK)
def run_tick(engine: GeoEngine = Depends(get_engine)) -> list[PositionUpdateModel]:
    """Run one broadcast cycle immediately."""
    return [PositionUpdateModel.from_domain(update) for update in engine.broadcaster.tick()]
