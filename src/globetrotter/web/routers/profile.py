from fastapi import APIRouter
from pydantic import BaseModel, Field

from globetrotter.core.modules.trip.models import ProfileTrips
from globetrotter.core.modules.user.models import ProfileUpdate, UserView
from globetrotter.web.deps import AppDep, AuthDep
from globetrotter.web.openapi import ErrorResponse

router = APIRouter(tags=["profile"])


class ProfileResponse(BaseModel):
    """Current user with their trips grouped by status."""

    user: UserView = Field(..., description="Profile of the current user")
    trips: ProfileTrips = Field(..., description="Planned, ongoing and completed trips")


class ProfileUpdateResponse(BaseModel):
    message: str = Field("Profile updated successfully", description="Human-readable outcome")
    user: UserView = Field(..., description="Updated profile")


@router.get(
    "/profile",
    summary="Get current user profile",
    description="Get the profile of the currently authenticated user together with their trips.",
    operation_id="getCurrentUserProfile",
    responses={
        200: {"description": "Current user profile"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_profile(app: AppDep, auth: AuthDep) -> ProfileResponse:
    user, trips = await app.get_profile(auth)
    return ProfileResponse(user=user, trips=trips)


@router.put(
    "/profile",
    summary="Update current user profile",
    description="Change first/last name and merge preferences. Omitted fields keep their values.",
    operation_id="updateCurrentUserProfile",
    responses={
        200: {"description": "Profile updated"},
        400: {"model": ErrorResponse, "description": "Invalid name or preferences"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def update_profile(data: ProfileUpdate, app: AppDep, auth: AuthDep) -> ProfileUpdateResponse:
    return ProfileUpdateResponse(user=await app.update_profile(auth, data))
