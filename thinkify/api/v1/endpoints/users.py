from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from thinkify.api.errors import CONTROLLER_FAILURES, controller_failure
from thinkify.core.database import get_db
from thinkify.core.exceptions import AuthenticationError, AuthorizationError
from thinkify.core.logging_config import logger, set_user_id
from thinkify.core.rate_limiter import auth_rate_limit, registration_rate_limit
from thinkify.core.responses import success_response
from thinkify.core.security import create_user_token
from thinkify.models.user import User
from thinkify.modules.auth.dependencies import all_roles
from thinkify.schemas.auth import AuthData, TokenStatus, UserLogin, UserRegister, UserResponse
from thinkify.services.user_service import UserService

router = APIRouter()


def _auth_payload(user: User) -> AuthData:
    return AuthData(token=create_user_token(user), user=UserResponse.model_validate(user))


@router.post("/registration", status_code=status.HTTP_201_CREATED)
@registration_rate_limit()
async def register(
    request: Request,
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """Register a student or teacher and sign them in"""
    try:
        user = await UserService(db).register(user_data)
    except CONTROLLER_FAILURES as e:
        return await controller_failure(db, "Registration failed", e, "Registration failed", "register")
    set_user_id(str(user.id))
    logger.log_auth_event(event="register", success=True, user_email=user.email, user_role=user.role.value)
    return success_response("Registration successful", _auth_payload(user), status.HTTP_201_CREATED)


@router.post("/login")
@auth_rate_limit()
async def login(
    request: Request,
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """Exchange credentials for an access token"""
    client_ip = request.client.host if request.client else "unknown"
    user = await UserService(db).authenticate(credentials.email, credentials.password)

    if user is None or not user.is_active:
        reason = "Invalid credentials" if user is None else "Account inactive"
        logger.log_auth_event("login", False, credentials.email, reason, client_ip=client_ip)
        if user is None:
            raise AuthenticationError("Invalid email or password")
        raise AuthorizationError("User account is inactive")

    set_user_id(str(user.id))
    logger.log_auth_event("login", True, user.email, client_ip=client_ip, user_role=user.role.value)
    return success_response("Login successful", _auth_payload(user))


@router.get("/me")
async def get_current_user_info(current_user: User = Depends(all_roles)):
    """Get current user info"""
    return success_response("User retrieved successfully", UserResponse.model_validate(current_user))


@router.get("/validate-token")
async def validate_token(current_user: User = Depends(all_roles)):
    """
    Validate a stored token.

    Clients call this at startup to confirm the token they hold still maps to
    an active account before trusting the role stored beside it.
    """
    return success_response(
        "Token is valid",
        TokenStatus(valid=True, user=UserResponse.model_validate(current_user)),
    )


@router.post("/logout")
async def logout(current_user: User = Depends(all_roles)):
    """
    Logout user.

    Tokens are stateless; the client discards its session. This only records the event.
    """
    logger.log_auth_event(event="logout", success=True, user_email=current_user.email)
    return success_response("Logged out successfully")
