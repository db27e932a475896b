# =============================================================================
# Auth API Routes
# =============================================================================
#
# Endpoints:
#   POST /auth/login           - Get tokens (cookies + body)
#   POST /auth/logout          - Clear token cookies
#   POST /auth/refresh         - Rotate tokens (cookie or body refresh token)
#   GET  /auth/me              - Get current user
#   POST /auth/change-password - Change password (authenticated)
#   POST /auth/forgot-password - Request password reset
#   POST /auth/reset-password  - Reset password with token
#
# =============================================================================

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr

from classroom.api.handlers import error_response
from classroom.auth.context import Principal
from classroom.auth.gate import require_auth
from classroom.auth.service import Authenticator
from classroom.auth.transport import SessionTransport
from classroom.errors import AuthError, Unauthenticated

router = APIRouter(prefix="/auth", tags=["auth"])


# =============================================================================
# Request Models
# =============================================================================

class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str | None = None


class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str


# =============================================================================
# Dependencies
# =============================================================================

def get_authenticator(request: Request) -> Authenticator:
    return request.app.state.authenticator


def get_transport(request: Request) -> SessionTransport:
    return request.app.state.transport


# =============================================================================
# Session Endpoints
# =============================================================================

@router.post("/login")
async def login(
    data: LoginRequest,
    auth: Authenticator = Depends(get_authenticator),
    transport: SessionTransport = Depends(get_transport),
):
    """
    Authenticate and get tokens.
    """
    session = await auth.login(data.email, data.password)
    response = JSONResponse(transport.body(session))
    transport.attach(response, session)
    return response


@router.post("/logout")
async def logout(
    auth: Authenticator = Depends(get_authenticator),
    transport: SessionTransport = Depends(get_transport),
):
    """
    Logout: clear both cookies. Always succeeds.

    Issued tokens are not revoked; API clients must discard their copies.
    """
    await auth.logout()
    response = JSONResponse({"success": True, "message": "Logged out successfully"})
    transport.clear(response)
    return response


@router.post("/refresh")
async def refresh(
    request: Request,
    data: RefreshRequest | None = None,
    auth: Authenticator = Depends(get_authenticator),
    transport: SessionTransport = Depends(get_transport),
):
    """
    Use a refresh token to get a new access AND refresh token.

    Any failure clears the cookies; the client must login again.
    """
    token = transport.refresh_token_from(request, data.refresh_token if data else None)
    try:
        if not token:
            raise Unauthenticated()
        session = await auth.refresh(token)
    except AuthError as e:
        response = error_response(e)
        transport.clear(response)
        return response

    response = JSONResponse(transport.body(session))
    transport.attach(response, session)
    return response


# =============================================================================
# Protected Endpoints
# =============================================================================

@router.get("/me")
async def get_current_user(principal: Principal = Depends(require_auth())):
    """
    Get the current authenticated user.
    """
    return {
        "success": True,
        "user": {
            "id": principal.id,
            "name": principal.name,
            "email": principal.email,
            "role": principal.role.value,
            "is_active": principal.is_active,
        },
    }


@router.post("/change-password")
async def change_password(
    data: ChangePasswordRequest,
    principal: Principal = Depends(require_auth()),
    auth: Authenticator = Depends(get_authenticator),
):
    """
    Change the current user's password.
    """
    await auth.change_password(principal.id, data.old_password, data.new_password)
    return {"success": True, "message": "Password updated successfully"}


# =============================================================================
# Password Reset
# =============================================================================

@router.post("/forgot-password")
async def forgot_password(
    data: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    auth: Authenticator = Depends(get_authenticator),
):
    """
    Request password reset email.

    Always returns the same body to prevent email enumeration. Delivery
    runs after the response for known and unknown addresses alike.
    """
    notice = await auth.initiate_reset(data.email)
    background_tasks.add_task(auth.deliver_reset, notice)
    return {
        "success": True,
        "message": "If an account exists with this email, a reset link has been sent",
    }


@router.post("/reset-password")
async def reset_password(
    data: ResetPasswordRequest,
    auth: Authenticator = Depends(get_authenticator),
):
    """
    Reset password using token from email.
    """
    await auth.complete_reset(data.token, data.new_password)
    return {"success": True, "message": "Password reset successfully. You can now login"}
