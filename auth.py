import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Cookie, Depends, HTTPException, Response
from jose import JWTError, jwt
from pydantic import BaseModel

import config

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


class TokenUser(BaseModel):
    email: str = ""
    uid: str = ""
    userType: str = "basic"
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def token_claims(user: Optional[Dict[str, Any]], email: str) -> Dict[str, str]:
    user = user or {}
    return {
        "email": email,
        "uid": user.get("uid") or "",
        "userType": user.get("userType") or "basic",
        "role": user.get("role") or "user",
    }


def _encode(data: dict, secret: str, expires_delta: timedelta) -> str:
    to_encode = data.copy()
    to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta})
    return jwt.encode(to_encode, secret, algorithm=config.JWT_ALG)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    return _encode(
        data,
        config.ACCESS_TOKEN_SECRET,
        expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRES_MIN),
    )


def create_refresh_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    return _encode(
        data,
        config.REFRESH_TOKEN_SECRET,
        expires_delta or timedelta(days=config.REFRESH_TOKEN_EXPIRES_DAYS),
    )


def decode_token(token: str, secret: str) -> TokenUser:
    """Raises ``JWTError`` on a bad signature or an expired token."""
    payload = jwt.decode(token, secret, algorithms=[config.JWT_ALG])
    return TokenUser(**{k: v for k, v in payload.items() if k in TokenUser.model_fields and v is not None})


def _cookie_options() -> Dict[str, Any]:
    # Cross-site deployments need SameSite=None, which browsers only accept with Secure
    if config.IS_PRODUCTION:
        return {"httponly": True, "secure": True, "samesite": "none", "path": "/"}
    return {"httponly": True, "secure": False, "samesite": "strict", "path": "/"}


def set_auth_cookies(response: Response, access_token: str, refresh_token: Optional[str] = None) -> None:
    options = _cookie_options()
    response.set_cookie(ACCESS_COOKIE, access_token, max_age=config.ACCESS_TOKEN_EXPIRES_MIN * 60, **options)
    if refresh_token is not None:
        response.set_cookie(
            REFRESH_COOKIE,
            refresh_token,
            max_age=config.REFRESH_TOKEN_EXPIRES_DAYS * 24 * 60 * 60,
            **options,
        )


def clear_auth_cookies(response: Response) -> None:
    options = _cookie_options()
    response.delete_cookie(ACCESS_COOKIE, **options)
    response.delete_cookie(REFRESH_COOKIE, **options)


# Dependencies

def get_current_user(access_token: Optional[str] = Cookie(None, alias=ACCESS_COOKIE)) -> TokenUser:
    if not access_token:
        raise HTTPException(status_code=401, detail="Unauthorized Access")
    try:
        return decode_token(access_token, config.ACCESS_TOKEN_SECRET)
    except JWTError:
        raise HTTPException(status_code=403, detail="Access Token Expired or Invalid")


def require_admin(user: TokenUser = Depends(get_current_user)) -> TokenUser:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def ensure_owner_or_admin(user: TokenUser, uid: Optional[str], detail: str = "Forbidden") -> None:
    if user.is_admin:
        return
    if user.uid and user.uid == uid:
        return
    logger.info("Denied %s access to resource owned by %s", user.uid or "anonymous", uid)
    raise HTTPException(status_code=403, detail=detail)
