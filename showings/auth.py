# showings/auth.py

from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from passlib.context import CryptContext

from showings.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")


def create_access_token(data: dict, expires_minutes: Optional[int] = None) -> str:
    if expires_minutes is None:
        expires_minutes = settings.auth.access_token_expire_minutes
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode["exp"] = expire
    return jwt.encode(to_encode, settings.auth.secret_key, algorithm=settings.auth.algorithm)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


@lru_cache(maxsize=1)
def _admin_password_hash() -> str:
    return hash_password(settings.auth.admin_password)


def authenticate_admin(username: str, password: str) -> bool:
    if username != settings.auth.admin_username:
        return False
    return verify_password(password, _admin_password_hash())


def _credentials_error(detail: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(token: str = Depends(oauth2_scheme)) -> dict:
    try:
        payload = jwt.decode(token, settings.auth.secret_key, algorithms=[settings.auth.algorithm])
    except JWTError:
        raise _credentials_error("Invalid token")

    username = payload.get("sub")
    if username is None:
        raise _credentials_error("Invalid token")
    if username != settings.auth.admin_username:
        raise _credentials_error("User not found")

    return {"username": username, "role": payload.get("role", "admin")}
