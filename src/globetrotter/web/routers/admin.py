from uuid import UUID

from fastapi import APIRouter

from globetrotter.core.modules.session.models import SessionStats
from globetrotter.web.deps import AppDep, AuthDep
from globetrotter.web.openapi import ErrorResponse

router = APIRouter(tags=["admin"])


@router.get(
    "/admin/sessions/stats",
    summary="Session statistics",
    description="Total users, total active sessions and average sessions per user. Admin only.",
    operation_id="getSessionStats",
    responses={
        200: {"description": "Session statistics"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
    },
)
async def get_session_stats(app: AppDep, auth: AuthDep) -> SessionStats:
    return await app.get_session_stats(auth)


@router.post(
    "/admin/users/{user_id}/force-logout",
    summary="Force logout",
    description="End every session of a user. Admin only.",
    operation_id="forceLogoutUser",
    status_code=204,
    responses={
        204: {"description": "All sessions ended"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def force_logout_user(user_id: UUID, app: AppDep, auth: AuthDep) -> None:
    await app.force_logout_user(auth, user_id)
