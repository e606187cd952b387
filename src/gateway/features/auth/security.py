import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import ValidationError
import bcrypt

from ...core.config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES
from ...core.errors import AuthenticationError, AuthorizationError
from . import schemas

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False, description="JWT from POST /api/auth/login")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))


def get_password_hash(password: str) -> str:
    hashed = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt())
    return hashed.decode('utf-8')


def token_lifetime() -> timedelta:
    return timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or token_lifetime())
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def create_user_token(user: schemas.User) -> str:
    return create_access_token(data={"sub": user.username, "role": user.role})


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> schemas.User:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Bearer token required")
    try:
        payload = jwt.decode(credentials.credentials, SECRET_KEY, algorithms=[ALGORITHM])
        token_data = schemas.TokenData(**payload)
        if token_data.sub is None:
            logger.warning("Token sub (username) is missing.")
            raise AuthenticationError("Could not validate credentials")
        return schemas.User(username=token_data.sub, role=token_data.role)
    except JWTError as e:
        logger.info(f"JWT decoding error: {e}")
        raise AuthenticationError("Invalid or expired token")
    except ValidationError as e:
        logger.warning(f"Token data validation error: {e}")
        raise AuthenticationError("Could not validate credentials")


def require_roles(*roles: str):
    """Dependency factory that only lets users with one of ``roles`` through."""

    async def _dependency(
        current_user: Annotated[schemas.User, Depends(get_current_user)],
    ) -> schemas.User:
        if current_user.role not in roles:
            raise AuthorizationError(
                "The user doesn't have enough privileges",
                details={"required": list(roles), "role": current_user.role},
            )
        return current_user

    return _dependency


get_current_admin_user = require_roles("admin")
