"""
Login and session endpoints
"""

from fastapi import APIRouter, HTTPException, Depends

from .auth import GoCashSystem, get_current_user, get_system, logger
from .schemas import LoginRequest
from ..errors import AuthenticationError
from ..logging_config import log_action
from ..models import User
from ..rbac import authenticate, issue_token, landing_view, views_for


router = APIRouter()


def _session_user(user: User) -> dict:
    data = user.public_dict()
    data["views"] = sorted(view.value for view in views_for(user.role))
    data["landing_view"] = landing_view(user.role).value
    return data


@router.post("/login")
async def login(
    request: LoginRequest,
    system: GoCashSystem = Depends(get_system)
):
    """Authenticate user and return JWT token"""
    try:
        user = authenticate(system.store.users, request.email, request.password, request.role)
    except AuthenticationError as e:
        log_action(
            logger, "warning", "Authentication failed",
            action="login_failed", resource="auth",
            extra={"email": request.email, "role": request.role.value}
        )
        raise HTTPException(status_code=401, detail=str(e))

    token = issue_token(
        user, system.config.jwt_secret,
        algorithm=system.config.jwt_algorithm,
        expiry_hours=system.config.jwt_expiry_hours
    )

    log_action(
        logger, "info", "User authenticated successfully",
        user_id=user.id, action="login", resource="auth"
    )

    return {
        "access_token": token,
        "token_type": "bearer",
        "user": _session_user(user),
        "message": "Login successful"
    }


@router.get("/me")
async def get_me(user: User = Depends(get_current_user)):
    """Current user with the views their role may open"""
    return _session_user(user)
