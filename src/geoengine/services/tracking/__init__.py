"""Courier tracking services."""

from .broadcaster import PositionBroadcaster
from .channels import LatestPositionChannel, RealtimeChannel
from .gate import TrackingGate
from .models import PositionUpdate

__all__ = [
    "LatestPositionChannel",
    "PositionBroadcaster",
    "PositionUpdate",
    "RealtimeChannel",
    "TrackingGate",
]
