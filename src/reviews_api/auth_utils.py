import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Mapping, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from reviews_api import config
from reviews_api.errors import InvalidToken, MissingToken

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)

_TOKEN_USER_FIELDS = ("id", "username", "email")


@lru_cache(maxsize=None)
def _crypt_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def _pwd_context() -> CryptContext:
    # BCRYPT_ROUNDS is read per call, like every other setting.
    return _crypt_context(config.bcrypt_rounds())


# PUBLIC_INTERFACE
def hash_password(password: str) -> str:
    """Hash a plaintext password with a fresh random salt."""
    return _pwd_context().hash(password)


# PUBLIC_INTERFACE
def verify_password(password: str, password_hash: str) -> bool:
    """Verify a plaintext password against a stored hash (constant-time compare)."""
    return _pwd_context().verify(password, password_hash)


# PUBLIC_INTERFACE
def dummy_verify() -> None:
    """Spend the same time as a real verification; used when no user matched."""
    _pwd_context().dummy_verify()


def _create_access_token(payload: Dict[str, Any], expires_delta: timedelta) -> str:
    to_encode = payload.copy()
    now = datetime.now(timezone.utc)
    to_encode.update({"iat": now, "exp": now + expires_delta})
    return jwt.encode(to_encode, config.jwt_secret(), algorithm=config.jwt_algorithm())


# PUBLIC_INTERFACE
def issue_token(user: Mapping[str, Any]) -> str:
    """Create a signed, time-limited bearer token for a user."""
    return _create_access_token(
        {
            "sub": str(user["id"]),
            "id": str(user["id"]),
            "username": user["username"],
            "email": user["email"],
        },
        expires_delta=timedelta(minutes=config.jwt_exp_minutes()),
    )


# PUBLIC_INTERFACE
def verify_token(token: Optional[str]) -> Dict[str, Any]:
    """
    Decode a bearer token and validate its signature and expiry.

    Returns the user claims ``{id, username, email}``.
    Raises MissingToken when no token is given and InvalidToken otherwise.
    """
    if not token:
        raise MissingToken()
    try:
        payload = jwt.decode(token, config.jwt_secret(), algorithms=[config.jwt_algorithm()])
    except JWTError as exc:
        raise InvalidToken(str(exc)) from exc

    if any(not payload.get(field) for field in _TOKEN_USER_FIELDS):
        raise InvalidToken("Invalid token payload")
    return {field: payload[field] for field in _TOKEN_USER_FIELDS}


# PUBLIC_INTERFACE
def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer)) -> Dict[str, Any]:
    """Dependency that returns the authenticated user's token claims."""
    try:
        return verify_token(credentials.credentials if credentials else None)
    except MissingToken:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except InvalidToken as exc:
        logger.info("Rejected bearer token: %s", exc)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
