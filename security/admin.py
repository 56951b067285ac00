import secrets
from typing import Optional

from fastapi import Header, HTTPException, status

from core.config import settings


def require_admin(authorization: Optional[str] = Header(default=None)) -> None:
    """Guard mutating admin routes with the ADMIN_API_KEY bearer token.

    Without a configured key the guard is open, except in production where the
    server refuses admin operations altogether.
    """
    api_key = settings.ADMIN_API_KEY
    if not api_key:
        if settings.ENVIRONMENT == "production":
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Server misconfigured: ADMIN_API_KEY not set",
            )
        return

    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: Missing or invalid Authorization header",
        )

    if not secrets.compare_digest(authorization[len("Bearer "):], api_key):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden: Invalid API key")
