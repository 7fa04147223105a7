from typing import Any
from uuid import UUID

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from globetrotter.core.core import Service
from globetrotter.core.modules.trip.models import (
    ProfileTrips,
    Trip,
    TripDraft,
    TripStatus,
    TripStatusCount,
    TripStatusUpdate,
    TripUpdate,
)
from globetrotter.errors import NotFoundError, ValidationError
from globetrotter.utils import now

logger = structlog.get_logger(__name__)


class TripService(Service):
    """Manages trips and advances their status as dates pass."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("trips")

    async def on_start(self) -> None:
        await self._collection.create_index([("user_id", 1), ("status", 1)])
        await self._collection.create_index([("start_date", 1)])
        await self._collection.create_index([("status", 1), ("start_date", 1)])

    async def create_trip(self, user_id: UUID, draft: TripDraft) -> Trip:
        trip = Trip(user_id=user_id, **draft.model_dump())
        await self._collection.insert_one(trip.to_mongo())
        logger.info("trip_created", user_id=user_id, trip_id=trip.id)
        return trip

    async def get_trip(self, user_id: UUID, trip_id: UUID) -> Trip:
        """Get a trip owned by user_id. Trips of other users are reported as missing."""
        trip = Trip.from_mongo(await self._collection.find_one({"_id": trip_id, "user_id": user_id}))
        if trip is None:
            raise NotFoundError(f"Trip '{trip_id}' not found")
        return trip

    async def list_user_trips(self, user_id: UUID, status: TripStatus | None = None) -> list[Trip]:
        """List a user's trips, soonest start date first."""
        query: dict[str, Any] = {"user_id": user_id}
        if status is not None:
            query["status"] = status
        return await Trip.list_cursor(self._collection.find(query).sort("start_date", 1))

    async def update_trip(self, user_id: UUID, trip_id: UUID, update: TripUpdate) -> Trip:
        """Apply a partial edit to a trip owned by user_id, keeping its dates in order."""
        trip = await self.get_trip(user_id, trip_id)
        # Explicit nulls are ignored, so required fields can never be cleared
        changes = update.model_dump(exclude_unset=True, exclude_none=True)
        start_date = changes.get("start_date", trip.start_date)
        end_date = changes.get("end_date", trip.end_date)
        if end_date < start_date:
            raise ValidationError("end_date must not be before start_date")
        if not changes:
            return trip

        changes["updated_at"] = now()
        doc = await self._collection.find_one_and_update(
            {"_id": trip_id, "user_id": user_id}, {"$set": changes}, return_document=ReturnDocument.AFTER
        )
        updated = Trip.from_mongo(doc)
        if updated is None:
            raise NotFoundError(f"Trip '{trip_id}' not found")
        logger.info("trip_updated", user_id=user_id, trip_id=trip_id, fields=sorted(changes))
        return updated

    async def update_trip_status(self, user_id: UUID, trip_id: UUID, status: TripStatus) -> Trip:
        """Set the status of a trip owned by user_id, e.g. to cancel it."""
        doc = await self._collection.find_one_and_update(
            {"_id": trip_id, "user_id": user_id},
            {"$set": {"status": status, "updated_at": now()}},
            return_document=ReturnDocument.AFTER,
        )
        trip = Trip.from_mongo(doc)
        if trip is None:
            raise NotFoundError(f"Trip '{trip_id}' not found")
        logger.info("trip_status_changed", user_id=user_id, trip_id=trip_id, status=status)
        return trip

    async def delete_trip(self, user_id: UUID, trip_id: UUID) -> None:
        result = await self._collection.delete_one({"_id": trip_id, "user_id": user_id})
        if result.deleted_count == 0:
            raise NotFoundError(f"Trip '{trip_id}' not found")
        logger.info("trip_deleted", user_id=user_id, trip_id=trip_id)

    async def get_profile_trips(self, user_id: UUID) -> ProfileTrips:
        """Planned, ongoing and completed trips of a user. Cancelled trips are left out."""
        query = {"user_id": user_id, "status": {"$in": [TripStatus.PLANNED, TripStatus.ONGOING, TripStatus.COMPLETED]}}
        trips = await Trip.list_cursor(self._collection.find(query).sort("start_date", 1))
        completed = [trip for trip in trips if trip.status == TripStatus.COMPLETED]
        completed.sort(key=lambda trip: trip.end_date, reverse=True)
        return ProfileTrips(
            planned=[trip for trip in trips if trip.status == TripStatus.PLANNED],
            ongoing=[trip for trip in trips if trip.status == TripStatus.ONGOING],
            completed=completed,
        )

    async def get_user_trip_stats(self, user_id: UUID) -> dict[TripStatus, TripStatusCount]:
        """Count trips and sum their cost per status. Every status is present in the result."""
        pipeline: list[dict[str, Any]] = [
            {"$match": {"user_id": user_id}},
            {"$group": {"_id": "$status", "count": {"$sum": 1}, "total_cost": {"$sum": "$total_cost"}}},
        ]
        cursor = await self._collection.aggregate(pipeline)
        stats = {status: TripStatusCount() for status in TripStatus}
        async for row in cursor:
            stats[TripStatus(row["_id"])] = TripStatusCount(count=row["count"], total_cost=row["total_cost"])
        return stats

    async def update_trip_statuses(self) -> TripStatusUpdate:
        """Move finished trips to completed and trips under way to ongoing."""
        timestamp = now()
        completed = await self._collection.update_many(
            {"end_date": {"$lt": timestamp}, "status": {"$in": [TripStatus.PLANNED, TripStatus.ONGOING]}},
            {"$set": {"status": TripStatus.COMPLETED, "updated_at": timestamp}},
        )
        ongoing = await self._collection.update_many(
            {"start_date": {"$lte": timestamp}, "end_date": {"$gte": timestamp}, "status": TripStatus.PLANNED},
            {"$set": {"status": TripStatus.ONGOING, "updated_at": timestamp}},
        )
        result = TripStatusUpdate(completed=completed.modified_count, ongoing=ongoing.modified_count)
        logger.info("trip_statuses_updated", completed=result.completed, ongoing=result.ongoing)
        return result
