"""Route ordering and estimation services."""

from .estimator import RouteEstimator, format_duration
from .models import FailedDestination, RouteEstimate, RouteResult
from .optimizer import RouteOptimizer

__all__ = [
    "FailedDestination",
    "RouteEstimate",
    "RouteEstimator",
    "RouteOptimizer",
    "RouteResult",
    "format_duration",
]
