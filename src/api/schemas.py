"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, model_validator

from src.domain.enums import SubmissionStatus


# ── Requests ──────────────────────────────────────────────────────────


def _reject_nulls(model: BaseModel, not_null: frozenset[str]) -> BaseModel:
    """Partial updates may omit a NOT NULL column but never send it as null."""
    nulls = sorted(
        name for name in not_null & model.model_fields_set
        if getattr(model, name) is None
    )
    if nulls:
        raise ValueError(f"{', '.join(nulls)} cannot be null")
    return model


class PharmacyCreateRequest(BaseModel):
    city_id: int
    name_me: str = Field(..., min_length=1, max_length=255)
    name_en: Optional[str] = Field(None, max_length=255)
    address: str = Field(..., min_length=1, max_length=255)
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    is_24h: bool = False
    open_sunday: bool = False
    hours_monfri: str = Field("", max_length=50)
    hours_sat: str = Field("", max_length=50)
    hours_sun: str = Field("", max_length=50)
    phone: Optional[str] = Field(None, max_length=50)
    website: Optional[str] = Field(None, max_length=255)
    active: bool = True


PHARMACY_NOT_NULL = frozenset({
    "city_id", "name_me", "address", "lat", "lng", "is_24h", "open_sunday",
    "hours_monfri", "hours_sat", "hours_sun", "active",
})


class PharmacyUpdateRequest(BaseModel):
    city_id: Optional[int] = None
    name_me: Optional[str] = Field(None, min_length=1, max_length=255)
    name_en: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = Field(None, min_length=1, max_length=255)
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)
    is_24h: Optional[bool] = None
    open_sunday: Optional[bool] = None
    hours_monfri: Optional[str] = Field(None, max_length=50)
    hours_sat: Optional[str] = Field(None, max_length=50)
    hours_sun: Optional[str] = Field(None, max_length=50)
    phone: Optional[str] = Field(None, max_length=50)
    website: Optional[str] = Field(None, max_length=255)
    active: Optional[bool] = None

    @model_validator(mode="after")
    def reject_null_columns(self):
        return _reject_nulls(self, PHARMACY_NOT_NULL)


class MedicineCreateRequest(BaseModel):
    name_me: str = Field(..., min_length=1, max_length=255)
    name_en: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None


class MedicineUpdateRequest(BaseModel):
    name_me: Optional[str] = Field(None, min_length=1, max_length=255)
    name_en: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    active: Optional[bool] = None

    @model_validator(mode="after")
    def reject_null_columns(self):
        return _reject_nulls(self, frozenset({"name_me", "active"}))


class AdCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    image_url: str = Field(..., max_length=500)
    target_url: str = Field(..., max_length=500)
    active: bool = True
    weight: int = Field(1, ge=1, le=100)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class AdUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    image_url: Optional[str] = Field(None, max_length=500)
    target_url: Optional[str] = Field(None, max_length=500)
    active: Optional[bool] = None
    weight: Optional[int] = Field(None, ge=1, le=100)
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def reject_null_columns(self):
        return _reject_nulls(
            self, frozenset({"name", "image_url", "target_url", "active", "weight"})
        )


class SubmissionCreateRequest(BaseModel):
    name_me: str = Field(..., min_length=1, max_length=255)
    name_en: Optional[str] = Field(None, max_length=255)
    address: str = Field(..., min_length=1, max_length=255)
    city_slug: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    website: Optional[str] = Field(None, max_length=255)
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    is_24h: bool = False
    open_sunday: bool = False
    hours_monfri: str = Field("", max_length=50)
    hours_sat: str = Field("", max_length=50)
    hours_sun: str = Field("", max_length=50)
    notes: Optional[str] = None


class SubmissionStatusUpdateRequest(BaseModel):
    status: SubmissionStatus
    review_notes: Optional[str] = None


class SyncStartRequest(BaseModel):
    city_slugs: Optional[list[str]] = Field(
        None,
        description="Cities to sync, in order.  Defaults to every known city.",
    )


# ── Responses ─────────────────────────────────────────────────────────


class CityResponse(BaseModel):
    id: int
    slug: str
    name_me: str
    name_en: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    model_config = {"from_attributes": True}


class CoordinateResponse(BaseModel):
    latitude: float
    longitude: float


class NearestCityResponse(BaseModel):
    city: Optional[CityResponse] = None
    display_name: Optional[str] = None
    distance_km: Optional[float] = None
    origin: CoordinateResponse
    used_fallback: bool = False


class PharmacyResponse(BaseModel):
    id: int
    city_id: int
    name_me: str
    name_en: Optional[str] = None
    address: str
    lat: float
    lng: float
    is_24h: bool
    open_sunday: bool
    hours_monfri: str = ""
    hours_sat: str = ""
    hours_sun: str = ""
    phone: Optional[str] = None
    website: Optional[str] = None
    active: bool = True

    model_config = {"from_attributes": True}


class NearbyPharmacyResponse(PharmacyResponse):
    distance_km: float


class NearbyPharmaciesResponse(BaseModel):
    origin: CoordinateResponse
    used_fallback: bool = False
    radius_km: int
    pharmacies: list[NearbyPharmacyResponse] = []


class NearestPharmacyResponse(BaseModel):
    pharmacy: Optional[PharmacyResponse] = None
    distance_km: Optional[float] = None
    origin: CoordinateResponse
    used_fallback: bool = False


class MedicineResponse(BaseModel):
    id: int
    name_me: str
    name_en: Optional[str] = None
    description: Optional[str] = None
    active: bool = True

    model_config = {"from_attributes": True}


class MedicineDetailResponse(MedicineResponse):
    pharmacies: list[PharmacyResponse] = []


class AdResponse(BaseModel):
    id: int
    name: str
    image_url: str
    target_url: str
    active: bool
    weight: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    click_count: int = 0
    impression_count: int = 0

    model_config = {"from_attributes": True}


class SubmissionResponse(BaseModel):
    id: int
    name_me: str
    name_en: Optional[str] = None
    address: str
    city_slug: str
    email: str
    phone: Optional[str] = None
    website: Optional[str] = None
    lat: float
    lng: float
    is_24h: bool
    open_sunday: bool
    hours_monfri: str = ""
    hours_sat: str = ""
    hours_sun: str = ""
    notes: Optional[str] = None
    status: str
    review_notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SyncResultResponse(BaseModel):
    processed: int
    created: int
    updated: int
    city_name: str = ""

    model_config = {"from_attributes": True}


class SyncTaskResponse(BaseModel):
    city_slug: str
    city_name: str
    status: str
    retry_count: int
    max_retries: int
    error: Optional[str] = None
    result: Optional[SyncResultResponse] = None

    model_config = {"from_attributes": True}


class SyncStateResponse(BaseModel):
    in_progress: bool
    current: Optional[SyncTaskResponse] = None
    queue: list[str] = []
    completed: list[SyncTaskResponse] = []
    failed: list[SyncTaskResponse] = []
    total_cities: int = 0
    processed_cities: int = 0
    progress_percent: int = 0
    message: Optional[str] = None


class StatsResponse(BaseModel):
    cities: int
    pharmacies: int
    medicines: int
    active_ads: int
    pending_submissions: int


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
