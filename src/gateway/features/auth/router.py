"""API routes for authentication: login, token validation and refresh."""
import logging
from fastapi import APIRouter, Depends
from typing import Annotated

from ...core.errors import AuthenticationError
from . import schemas
from . import security as auth_security
from . import service as auth_service

logger = logging.getLogger(__name__)
router = APIRouter(
    tags=["Authentication"],
    prefix="/auth"
)


def _auth_response(user: schemas.User) -> schemas.AuthResponse:
    return schemas.AuthResponse(
        token=auth_security.create_user_token(user),
        expires_in=int(auth_security.token_lifetime().total_seconds()),
        user=user,
    )


@router.post("/login", response_model=schemas.AuthResponse)
async def login(credentials: schemas.LoginRequest):
    configured = auth_service.authenticate(credentials.username, credentials.password)
    if configured is None:
        logger.info(f"Failed login for {credentials.username}")
        raise AuthenticationError(
            "Invalid credentials",
            details={"username": "Incorrect username or password"},
        )
    return _auth_response(schemas.User(username=configured.username, role=configured.role))


@router.get("/validate", response_model=schemas.ValidateResponse)
async def validate_token(
    current_user: Annotated[schemas.User, Depends(auth_security.get_current_user)],
):
    return schemas.ValidateResponse(user=current_user)


@router.post("/refresh", response_model=schemas.AuthResponse)
async def refresh_token(
    current_user: Annotated[schemas.User, Depends(auth_security.get_current_user)],
):
    return _auth_response(current_user)
