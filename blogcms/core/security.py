import os
from datetime import datetime, timedelta, timezone
from typing import Annotated
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

# JWT, shared with the identity provider that issues sessions
SECRET_KEY = os.getenv("AUTH_JWT_SECRET", "your-secret-key")  # don't use the default in production
AUDIENCE = os.getenv("AUTH_JWT_AUDIENCE") or None
ALGORITHM = "HS256"
ADMIN_ROLE = "admin"

bearer_scheme = HTTPBearer(auto_error=False)

def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create an access token"""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=15))
    to_encode.update({"exp": expire})
    if AUDIENCE and "aud" not in to_encode:
        to_encode["aud"] = AUDIENCE
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

def get_role(claims: dict) -> str | None:
    """Read the role claim, user metadata first, then app metadata"""
    for key in ("user_metadata", "app_metadata"):
        metadata = claims.get(key) or {}
        if isinstance(metadata, dict) and metadata.get("role"):
            return metadata["role"]
    return None

def get_token_claims(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]
) -> dict:
    """Decode and verify the bearer token"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    options = {"verify_aud": AUDIENCE is not None}
    try:
        return jwt.decode(
            credentials.credentials,
            SECRET_KEY,
            algorithms=[ALGORITHM],
            audience=AUDIENCE,
            options=options,
        )
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except JWTError:
        raise credentials_exception

def require_admin(
    claims: Annotated[dict, Depends(get_token_claims)]
) -> dict:
    """Allow the request only when the token carries the admin role"""
    if get_role(claims) != ADMIN_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )
    return claims
