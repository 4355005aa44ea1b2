"""
Security utilities and authentication
"""

import secrets
import time
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from conference_app.core.config import settings
from conference_app.core.db import get_db
from conference_app.models.user import UserStatus
from conference_app.schemas.auth import Actor, TokenPayload
from conference_app.services.repositories import UserRepo

# Simple in-memory rate limiter
rate_limiter = defaultdict(list)

security = HTTPBearer()


def generate_cancellation_token() -> str:
    """Unguessable, URL-safe bearer credential for self-service cancellation"""
    return secrets.token_urlsafe(settings.CANCELLATION_TOKEN_BYTES)


def verify_cron_secret(credentials: HTTPAuthorizationCredentials = Depends(security)):
    """Verify the shared secret passed by the external reminder scheduler"""
    if not secrets.compare_digest(credentials.credentials, settings.CRON_SECRET):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized"
        )
    return credentials.credentials


def create_access_token(user_id: str, expires_in: Optional[timedelta] = None) -> str:
    """Sign a bearer token for a user id"""
    expire = datetime.now(timezone.utc) + (expires_in or timedelta(hours=24))
    return jwt.encode(
        {"sub": user_id, "exp": expire},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_access_token(token: str) -> TokenPayload:
    payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    return TokenPayload(**payload)


def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> Actor:
    """Resolve the bearer token into the request's actor"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        token_data = decode_access_token(credentials.credentials)
    except (JWTError, ValueError):
        raise credentials_exception

    user = UserRepo.get_by_id(db, token_data.sub)
    if not user:
        raise credentials_exception
    if user.status != UserStatus.ACTIVE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account has been suspended. Please contact an administrator."
        )

    return Actor(user_id=user.id, username=user.username, role=user.role)


def rate_limit_check(client_ip: str, limit: int = None) -> bool:
    """Simple rate limiting by IP address"""
    if limit is None:
        limit = settings.RATE_LIMIT_PER_MINUTE

    current_time = time.time()
    minute_ago = current_time - 60

    # Clean old requests, dropping clients with none left
    for ip in list(rate_limiter):
        recent = [req_time for req_time in rate_limiter[ip] if req_time > minute_ago]
        if recent:
            rate_limiter[ip] = recent
        else:
            rate_limiter.pop(ip, None)

    # Check limit
    if len(rate_limiter.get(client_ip, [])) >= limit:
        return False

    # Add current request
    rate_limiter[client_ip].append(current_time)
    return True


def get_client_ip(request) -> str:
    """Extract client IP from request"""
    # Check for forwarded IP first (for reverse proxy setups)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    # Check for real IP header
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    # Fall back to direct client IP
    return request.client.host
