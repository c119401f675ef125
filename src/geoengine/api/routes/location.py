"""Courier location endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ...errors import InvalidInput
from ...schemas.location import PositionReport, ResolvedLocationModel
from ...services.engine import GeoEngine, get_engine
from ...services.location.sensor import ReportedPositionSensor

router = APIRouter(prefix="/location", tags=["location"])


def _reported_sensor(engine: GeoEngine) -> ReportedPositionSensor:
    sensor = engine.sensor
    if not isinstance(sensor, ReportedPositionSensor):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="The configured location sensor does not accept reported positions.",
        )
    return sensor


@router.post("/report", status_code=status.HTTP_202_ACCEPTED)
def report_position(payload: PositionReport, engine: GeoEngine = Depends(get_engine)) -> dict:
    """Record a fix from the courier device."""
    sensor = _reported_sensor(engine)
    try:
        reading = sensor.report(
            payload.lat,
            payload.lng,
            payload.accuracy_meters,
            high_accuracy=payload.high_accuracy,
            captured_at=payload.captured_at,
        )
    except InvalidInput as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {"accepted": True, "captured_at": reading.captured_at.isoformat()}


@router.post("/deny", status_code=status.HTTP_202_ACCEPTED)
def deny_permission(engine: GeoEngine = Depends(get_engine)) -> dict:
    """Device reports that location permission was refused."""
    _reported_sensor(engine).deny()
    return {"accepted": True}


@router.get("/current", response_model=ResolvedLocationModel, status_code=status.HTTP_200_OK)
def current_location(engine: GeoEngine = Depends(get_engine)) -> ResolvedLocationModel:
    resolver = engine.location_resolver
    location = resolver.resolve_current_location()
    sensor_error = resolver.last_sensor_error.reason if resolver.last_sensor_error else None
    return ResolvedLocationModel.from_domain(location, sensor_error=sensor_error)
