from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from globetrotter.core.modules.trip.models import Trip, TripDraft, TripStatus, TripStatusCount, TripUpdate
from globetrotter.web.deps import AppDep, AuthDep
from globetrotter.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["trips"])


class TripStatusChange(BaseModel):
    status: TripStatus = Field(..., description="New status, e.g. cancelled")


@router.get(
    "/trips",
    summary="List my trips",
    description="Trips of the current user ordered by start date, optionally filtered by status.",
    operation_id="listTrips",
    responses={
        200: {"description": "List of trips"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_trips(
    app: AppDep,
    auth: AuthDep,
    status: Annotated[TripStatus | None, Query(description="Only trips in this status")] = None,
) -> list[Trip]:
    return await app.get_trips(auth, status)


@router.post(
    "/trips",
    summary="Create trip",
    description="Plan a new trip for the current user.",
    operation_id="createTrip",
    status_code=201,
    responses={
        201: {"description": "Trip created"},
        400: {"model": ErrorResponse, "description": "Invalid trip data"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def create_trip(draft: TripDraft, app: AppDep, auth: AuthDep) -> Trip:
    return await app.create_trip(auth, draft)


@router.get(
    "/trips/stats",
    summary="Trip statistics",
    description="Number of trips and total cost per status for the current user.",
    operation_id="getTripStats",
    responses={
        200: {"description": "Per-status counts"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_trip_stats(app: AppDep, auth: AuthDep) -> dict[TripStatus, TripStatusCount]:
    return await app.get_trip_stats(auth)


@router.get(
    "/trips/{trip_id}",
    summary="Get trip",
    description="A single trip of the current user.",
    operation_id="getTrip",
    responses={
        200: {"description": "Trip details"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Trip not found"},
    },
)
async def get_trip(trip_id: UUID, app: AppDep, auth: AuthDep) -> Trip:
    return await app.get_trip(auth, trip_id)


@router.put(
    "/trips/{trip_id}",
    summary="Update trip",
    description="Edit a trip of the current user. Only the fields sent are changed.",
    operation_id="updateTrip",
    responses={
        200: {"description": "Updated trip"},
        400: {"model": ErrorResponse, "description": "Invalid trip data"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Trip not found"},
    },
)
async def update_trip(trip_id: UUID, update: TripUpdate, app: AppDep, auth: AuthDep) -> Trip:
    return await app.update_trip(auth, trip_id, update)


@router.patch(
    "/trips/{trip_id}/status",
    summary="Change trip status",
    description="Set the status of a trip of the current user, for example to cancel it.",
    operation_id="updateTripStatus",
    responses={
        200: {"description": "Updated trip"},
        400: {"model": ErrorResponse, "description": "Invalid status"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Trip not found"},
    },
)
async def update_trip_status(trip_id: UUID, data: TripStatusChange, app: AppDep, auth: AuthDep) -> Trip:
    return await app.update_trip_status(auth, trip_id, data.status)


@router.delete(
    "/trips/{trip_id}",
    summary="Delete trip",
    description="Delete a trip of the current user.",
    operation_id="deleteTrip",
    status_code=204,
    responses={
        204: {"description": "Trip deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Trip not found"},
    },
)
async def delete_trip(trip_id: UUID, app: AppDep, auth: AuthDep) -> None:
    await app.delete_trip(auth, trip_id)
