from fastapi import APIRouter
from pydantic import BaseModel, Field

from globetrotter.core.modules.session.models import SessionView
from globetrotter.core.modules.user.models import TokenUserView, UserView
from globetrotter.web.deps import AppDep, AuthDep, ClientInfoDep
from globetrotter.web.openapi import ErrorResponse

router = APIRouter(tags=["auth"])

PASSWORD_RESET_REQUESTED = "If an account with this email exists, you will receive a password reset link."


class MessageResponse(BaseModel):
    message: str = Field(..., description="Human-readable outcome")


class RegisterRequest(BaseModel):
    """Account registration request."""

    first_name: str = Field(..., description="First name, 2 to 50 characters")
    last_name: str = Field(..., description="Last name, 2 to 50 characters")
    email: str = Field(..., description="Email address, used as login")
    password: str = Field(..., description="Password, at least 6 characters")


class RegisterResponse(BaseModel):
    message: str = Field(..., description="Human-readable outcome")
    user: UserView = Field(..., description="Profile of the new account")


class LoginRequest(BaseModel):
    """Authentication request."""

    email: str = Field(..., description="Email address")
    password: str = Field(..., min_length=1, description="Password")


class LoginResponse(BaseModel):
    """Authentication response."""

    message: str = Field("Login successful", description="Human-readable outcome")
    token: str = Field(..., description="Bearer token for subsequent requests")
    session_id: str = Field(..., description="Handle of this session, used to log it out")
    user: UserView = Field(..., description="Profile of the authenticated user")


class LogoutRequest(BaseModel):
    session_id: str = Field(..., min_length=1, description="Session to end")


class SessionsResponse(BaseModel):
    sessions: list[SessionView] = Field(..., description="Active sessions of the caller, oldest first")
    total_sessions: int = Field(..., description="Number of active sessions")


class VerifyEmailResponse(BaseModel):
    message: str = Field(..., description="Human-readable outcome")
    email: str = Field(..., description="The verified address")


class EmailRequest(BaseModel):
    email: str = Field(..., description="Email address of the account")


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1, description="Reset token from the email link")
    password: str = Field(..., description="New password, at least 6 characters")


class VerifyTokenResponse(BaseModel):
    user: TokenUserView = Field(..., description="The token's owner")


@router.post(
    "/auth/register",
    summary="Register account",
    description="Create an account and send an email verification link.",
    operation_id="register",
    status_code=201,
    responses={
        201: {"description": "Account created"},
        400: {"model": ErrorResponse, "description": "Invalid input or email already registered"},
    },
)
async def register(data: RegisterRequest, app: AppDep) -> RegisterResponse:
    user, email_sent = await app.register(data.first_name, data.last_name, data.email, data.password)
    message = "Account created successfully! Please check your email for verification link."
    if not email_sent:
        message += " If you don't receive it, contact support."
    return RegisterResponse(message=message, user=user)


@router.post(
    "/auth/login",
    summary="Authenticate user",
    description="Authenticate with email and password. Opens a new session; other devices stay logged in.",
    operation_id="login",
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Invalid credentials or deactivated account"},
    },
)
async def login(data: LoginRequest, app: AppDep, client_info: ClientInfoDep) -> LoginResponse:
    device_info, ip_address = client_info
    result = await app.login(data.email, data.password, device_info, ip_address)
    return LoginResponse(token=result.token, session_id=result.session_id, user=UserView.from_domain(result.user))


@router.post(
    "/auth/logout",
    summary="End session",
    description="Remove one session by its id. The bearer token of that session stops working.",
    operation_id="logout",
    responses={
        200: {"description": "Successfully logged out"},
        400: {"model": ErrorResponse, "description": "Session id missing"},
        404: {"model": ErrorResponse, "description": "Session not found"},
    },
)
async def logout(data: LogoutRequest, app: AppDep) -> MessageResponse:
    await app.logout(data.session_id)
    return MessageResponse(message="Logout successful")


@router.get(
    "/auth/sessions",
    summary="List active sessions",
    description="Active sessions of the current user. Tokens are never included.",
    operation_id="listSessions",
    responses={
        200: {"description": "Active sessions"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_sessions(app: AppDep, auth: AuthDep) -> SessionsResponse:
    sessions = await app.get_sessions(auth)
    return SessionsResponse(sessions=sessions, total_sessions=len(sessions))


@router.get(
    "/auth/verify-email/{token}",
    summary="Verify email",
    description="Consume an email verification token.",
    operation_id="verifyEmail",
    responses={
        200: {"description": "Email verified"},
        400: {"model": ErrorResponse, "description": "Invalid or expired token"},
    },
)
async def verify_email(token: str, app: AppDep) -> VerifyEmailResponse:
    user = await app.verify_email(token)
    return VerifyEmailResponse(message="Email verified successfully! Welcome to GlobeTrotter!", email=user.email)


@router.post(
    "/auth/forgot-password",
    summary="Request password reset",
    description="Send a password reset link. The response is the same whether or not the account exists.",
    operation_id="forgotPassword",
    responses={200: {"description": "Request accepted"}},
)
async def forgot_password(data: EmailRequest, app: AppDep) -> MessageResponse:
    await app.forgot_password(data.email)
    return MessageResponse(message=PASSWORD_RESET_REQUESTED)


@router.post(
    "/auth/reset-password",
    summary="Reset password",
    description="Set a new password using a reset token.",
    operation_id="resetPassword",
    responses={
        200: {"description": "Password changed"},
        400: {"model": ErrorResponse, "description": "Invalid or expired token, or weak password"},
    },
)
async def reset_password(data: ResetPasswordRequest, app: AppDep) -> MessageResponse:
    await app.reset_password(data.token, data.password)
    return MessageResponse(message="Password reset successfully! You can now login with your new password.")


@router.post(
    "/auth/resend-verification",
    summary="Resend verification email",
    description="Issue a new verification link for an unverified account.",
    operation_id="resendVerification",
    responses={
        200: {"description": "Verification email sent"},
        400: {"model": ErrorResponse, "description": "Email already verified"},
        404: {"model": ErrorResponse, "description": "User not found"},
        500: {"model": ErrorResponse, "description": "Email could not be sent"},
    },
)
async def resend_verification(data: EmailRequest, app: AppDep) -> MessageResponse:
    await app.resend_verification(data.email)
    return MessageResponse(message="Verification email sent successfully!")


@router.get(
    "/auth/verify-token",
    summary="Check token",
    description="Validate the bearer token and return its owner.",
    operation_id="verifyToken",
    responses={
        200: {"description": "Token is valid"},
        401: {"model": ErrorResponse, "description": "Token invalid or session ended"},
    },
)
async def verify_token(app: AppDep, auth: AuthDep) -> VerifyTokenResponse:
    return VerifyTokenResponse(user=await app.verify_token(auth))
