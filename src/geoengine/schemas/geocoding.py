"""Geocoding request/response schemas."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class GeocodeRequest(BaseModel):
    address: str = Field(..., description="Free-text address to resolve.")


class GeocodeResponse(BaseModel):
    address: str
    lat: float
    lng: float
    formatted_address: Optional[str] = None


class ReverseGeocodeResponse(BaseModel):
    lat: float
    lng: float
    formatted_address: str
    place_id: Optional[str] = None
    components: Dict[str, str] = Field(default_factory=dict)


class SuggestionModel(BaseModel):
    display_name: Optional[str] = None
    lat: float
    lng: float
    place_id: Optional[str] = None


class SuggestionsResponse(BaseModel):
    query: str
    suggestions: List[SuggestionModel]
