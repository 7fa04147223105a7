from datetime import UTC, datetime
from enum import StrEnum
from typing import Annotated
from uuid import UUID

from pydantic import AfterValidator, BaseModel, Field, model_validator

from globetrotter.core.db import MongoModel
from globetrotter.utils import now


class TripStatus(StrEnum):
    PLANNED = "planned"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TripType(StrEnum):
    LEISURE = "leisure"
    BUSINESS = "business"
    ADVENTURE = "adventure"
    CULTURAL = "cultural"
    FAMILY = "family"
    ROMANTIC = "romantic"


def _assume_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


# Naive datetimes from clients are taken as UTC
UtcDatetime = Annotated[datetime, AfterValidator(_assume_utc)]


class TripDraft(BaseModel):
    """User-supplied trip fields."""

    title: str = Field(..., min_length=1, max_length=100, description="Trip title")
    description: str = Field("", max_length=500, description="Short description")
    start_place: str = Field(..., min_length=1, description="Where the trip starts")
    end_place: str = Field(..., min_length=1, description="Where the trip ends")
    stops: list[str] = Field(default_factory=list, description="Intermediate stops in order")
    start_date: UtcDatetime = Field(..., description="First day of the trip")
    end_date: UtcDatetime = Field(..., description="Last day of the trip")
    travelers: int = Field(1, ge=1, description="Number of travelers")
    budget: float | None = Field(None, ge=0, description="Planned budget")
    trip_type: TripType = Field(TripType.LEISURE, description="Kind of trip")
    notes: str = Field("", max_length=1000, description="Free-form notes")
    is_public: bool = Field(False, description="Whether the trip is visible to the community")

    @model_validator(mode="after")
    def _dates_in_order(self) -> "TripDraft":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class TripUpdate(BaseModel):
    """Partial trip edit. Only fields present in the request are changed; owner and status are not editable here."""

    title: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    start_place: str | None = Field(None, min_length=1)
    end_place: str | None = Field(None, min_length=1)
    stops: list[str] | None = None
    start_date: UtcDatetime | None = None
    end_date: UtcDatetime | None = None
    travelers: int | None = Field(None, ge=1)
    budget: float | None = Field(None, ge=0)
    trip_type: TripType | None = None
    notes: str | None = Field(None, max_length=1000)
    is_public: bool | None = None


class Trip(TripDraft, MongoModel):
    """Planned trip owned by one user.

    Indexed on (user_id, status), start_date, (status, start_date).
    """

    user_id: UUID
    status: TripStatus = TripStatus.PLANNED
    total_cost: float = 0
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)


class TripStatusCount(BaseModel):
    count: int = 0
    total_cost: float = 0


class TripStatusUpdate(BaseModel):
    """Outcome of one trip status sweep."""

    completed: int = Field(..., description="Trips moved to completed")
    ongoing: int = Field(..., description="Trips moved to ongoing")


class ProfileTrips(BaseModel):
    """A user's active and past trips, grouped for the profile page."""

    planned: list[Trip] = Field(default_factory=list, description="Upcoming trips, soonest first")
    ongoing: list[Trip] = Field(default_factory=list, description="Trips under way, soonest start first")
    completed: list[Trip] = Field(default_factory=list, description="Finished trips, most recent end first")
