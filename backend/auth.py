import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import Settings, get_settings

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
JWT_EXP_DELTA_DAYS = 7

bearer_scheme = HTTPBearer(auto_error=False)


def _settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


def create_access_token(user_id: str, secret: str, expires_in: Optional[timedelta] = None) -> str:
    payload = {
        "userId": user_id,
        "exp": datetime.now(timezone.utc) + (expires_in or timedelta(days=JWT_EXP_DELTA_DAYS)),
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str, secret: str) -> dict:
    return jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> dict:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Access token not found")

    try:
        payload = decode_access_token(credentials.credentials, _settings(request).jwt_secret)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=403, detail="Token expired")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Token verification error: {e}")
        raise HTTPException(status_code=403, detail="Invalid token")

    user_id = payload.get("userId")
    if not user_id:
        raise HTTPException(status_code=403, detail="Invalid token")
    return {"user_id": str(user_id)}
